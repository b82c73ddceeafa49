"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubestatus.models.config import KubeStatusConfig, LogConfig, StatusConfig
from kubestatus.observability.logging import LOG_FORMATS


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBESTATUS_{key}", default)


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


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    if value.lower() not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {value}. Must be one of {LOG_FORMATS}")
    return value.lower()


def load_config() -> KubeStatusConfig:
    """Load configuration from KUBESTATUS_* environment variables."""
    command_name = _env("COMMAND_NAME", "oc")
    return KubeStatusConfig(
        status=StatusConfig(
            namespace=_env("NAMESPACE", "default"),
            all_namespaces=_env_bool("ALL_NAMESPACES", False),
            server=_env("SERVER", ""),
            suggest=_env_bool("SUGGEST", False),
            command_name=command_name,
            logs_command_name=_env("LOGS_COMMAND", f"{command_name} logs"),
            set_probe_command_name=_env("SET_PROBE_COMMAND", f"{command_name} set probe"),
            load_timeout_seconds=_env_int("LOAD_TIMEOUT", 0, min_val=0, max_val=300),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "warning")),
            format=_validate_log_format(_env("LOG_FORMAT", "console")),
        ),
    )
