"""Core data structures for kubestatus."""

from kubestatus.models.config import KubeStatusConfig, LogConfig, StatusConfig
from kubestatus.models.markers import Marker, Severity
from kubestatus.models.resources import Resource, ResourceKind

__all__ = [
    "KubeStatusConfig",
    "LogConfig",
    "Marker",
    "Resource",
    "ResourceKind",
    "Severity",
    "StatusConfig",
]
