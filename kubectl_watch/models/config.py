"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class KubeConfig:
    """Cluster connection settings."""

    master: str = ""
    kubeconfig: str = ""
    context: str = ""
    max_connections: int = 1000
    qps: float = 24.0
    burst: int = 100


@dataclass
class FilterConfig:
    """Name filter patterns (``name`` includes, ``!name`` excludes)."""

    namespaces: list[str] = field(default_factory=list)
    group_versions: list[str] = field(default_factory=list)
    group_version_resources: list[str] = field(default_factory=list)


@dataclass
class OutputConfig:
    """Event output settings."""

    format: str = "default"
    colorize: bool = True


@dataclass
class PipelineConfig:
    """Watch pipeline sizing and timing."""

    spawn_concurrency: int = 4
    event_buffer: int = 100
    poll_interval: float = 1.0
    watch_timeout: int = 240
    shutdown_grace: float = 5.0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class WatchConfig:
    """Top-level kubectl-watch configuration."""

    kube: KubeConfig = field(default_factory=KubeConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    log: LogConfig = field(default_factory=LogConfig)
