"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StatusConfig:
    """Status report configuration."""

    namespace: str = "default"
    all_namespaces: bool = False
    server: str = ""
    suggest: bool = False
    command_name: str = "oc"
    logs_command_name: str = "oc logs"
    set_probe_command_name: str = "oc set probe"
    load_timeout_seconds: int = 0  # 0 disables the timeout


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"
    format: str = "console"  # console or json


@dataclass
class KubeStatusConfig:
    """Top-level kubestatus configuration."""

    status: StatusConfig = field(default_factory=StatusConfig)
    log: LogConfig = field(default_factory=LogConfig)
