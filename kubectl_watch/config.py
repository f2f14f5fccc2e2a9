"""Configuration loading from environment variables and CLI overrides."""

from __future__ import annotations

import os
from typing import Any

from kubectl_watch.filters import split_patterns
from kubectl_watch.models.config import (
    FilterConfig,
    KubeConfig,
    LogConfig,
    OutputConfig,
    PipelineConfig,
    WatchConfig,
)

OUTPUT_FORMATS = ("default", "trace")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBECTL_WATCH_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None, max_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_list(key: str) -> list[str]:
    return split_patterns([_env(key, "")])


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_output(value: str) -> str:
    # An empty value selects the default format, like an unset -o flag.
    value = value.lower() or "default"
    if value not in OUTPUT_FORMATS:
        raise ValueError(f"Invalid output format: {value}. Must be one of {OUTPUT_FORMATS}")
    return value


def load_config(**overrides: Any) -> WatchConfig:
    """Load configuration from KUBECTL_WATCH_* environment variables.

    Keyword overrides (as produced by the CLI) win over the environment when
    they are not ``None``. Recognised keys: master, kubeconfig, context, output,
    colorize, namespaces, group_versions, group_version_resources, log_level.
    """
    opts = {key: value for key, value in overrides.items() if value is not None}

    output = _validate_output(opts.get("output", _env("OUTPUT", "default")))
    colorize = opts.get("colorize", _env_bool("COLOR", True))
    if output == "trace":
        # Escape sequences would corrupt the trace records.
        colorize = False

    spawn_concurrency = _env_int("SPAWN_CONCURRENCY", 4, min_val=1, max_val=64)

    return WatchConfig(
        kube=KubeConfig(
            master=opts.get("master", _env("MASTER", "")),
            kubeconfig=opts.get("kubeconfig", _env("KUBECONFIG", "")),
            context=opts.get("context", _env("CONTEXT", "")),
            max_connections=_env_int("MAX_CONNECTIONS", 1000, min_val=10, max_val=10000),
            # Request budget scales with the number of concurrent listings.
            qps=_env_float("QPS", 6.0 * spawn_concurrency, min_val=1.0, max_val=1000.0),
            burst=_env_int("BURST", 100, min_val=1, max_val=1000),
        ),
        filters=FilterConfig(
            namespaces=split_patterns(opts["namespaces"]) if "namespaces" in opts else _env_list("NAMESPACES"),
            group_versions=(
                split_patterns(opts["group_versions"]) if "group_versions" in opts else _env_list("GROUP_VERSIONS")
            ),
            group_version_resources=(
                split_patterns(opts["group_version_resources"])
                if "group_version_resources" in opts
                else _env_list("GROUP_VERSION_RESOURCES")
            ),
        ),
        output=OutputConfig(format=output, colorize=colorize),
        pipeline=PipelineConfig(
            spawn_concurrency=spawn_concurrency,
            event_buffer=_env_int("EVENT_BUFFER", 100, min_val=1, max_val=10000),
            poll_interval=_env_float("POLL_INTERVAL", 1.0, min_val=0.1, max_val=300.0),
            watch_timeout=_env_int("WATCH_TIMEOUT", 240, min_val=30, max_val=3600),
            shutdown_grace=_env_float("SHUTDOWN_GRACE", 5.0, min_val=0.0, max_val=300.0),
        ),
        log=LogConfig(
            level=_validate_log_level(opts.get("log_level", _env("LOG_LEVEL", "info"))),
        ),
    )
