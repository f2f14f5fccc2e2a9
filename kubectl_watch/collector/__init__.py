"""Collector package for kubectl-watch.

Discovers resource types, lists and watches each of them, and turns watch
notifications into ChangeEvents on a shared queue.

Submodules
----------
client     -- ClusterClient protocol and the kubernetes-asyncio implementation.
errors     -- Cluster API error taxonomy (not found / unsupported / other).
stopping   -- Broadcast stop signal helpers used at every suspension point.
dispatcher -- Catalog enumeration, name filtering and the dispatch queue.
spawner    -- Bounded worker pool: initial listing, then one watcher per type.
watcher    -- ResourceWatcher: connect / stream / reconnect state machine.
"""
