"""Diagnostic marker data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kubestatus.graph.models import GraphNode


class Severity(StrEnum):
    """Marker severity level."""

    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Marker:
    """A finding produced by an analyzer over the completed graph.

    Immutable: markers are pure output and are never persisted.
    """

    severity: Severity
    key: str
    message: str
    node: GraphNode | None = None
    suggestion: str = ""
