"""Marker pipeline: run analyzers, filter, order and bucket their findings."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from kubestatus.graph.graph import ResourceGraph
from kubestatus.graph.naming import Namer
from kubestatus.models.markers import Marker, Severity
from kubestatus.models.resources import ResourceKind
from kubestatus.observability.logging import get_logger
from kubestatus.observability.metrics import markers_total

_logger = get_logger("analysis.pipeline")

MarkerScanner = Callable[[ResourceGraph, Namer], list[Marker]]

FORBIDDEN_LIST_WARNING = "Forbidden"


def create_forbidden_markers(forbidden_kinds: Iterable[ResourceKind]) -> list[Marker]:
    return [
        Marker(
            severity=Severity.WARNING,
            key=FORBIDDEN_LIST_WARNING,
            message=f"Unable to list {kind.plural} resources.  Not all status relationships can be established.",
        )
        for kind in sorted(forbidden_kinds)
    ]


def filter_by_namespace(markers: Iterable[Marker], namespace: str) -> list[Marker]:
    """Drop markers about nodes outside *namespace*; ``""`` keeps everything."""
    if not namespace:
        return list(markers)
    return [m for m in markers if m.node is None or m.node.namespace == namespace]


def _node_order(marker: Marker) -> tuple[int, tuple[str, ...]]:
    if marker.node is None:
        return (0, ())
    return (1, marker.node.key)


def sort_markers(markers: Iterable[Marker]) -> list[Marker]:
    """Group by key, then by related node; ties keep analyzer emission order."""
    by_key = sorted(markers, key=lambda m: m.key)
    return sorted(by_key, key=_node_order)


def by_severity(markers: Iterable[Marker], severity: Severity) -> list[Marker]:
    return [m for m in markers if m.severity == severity]


@dataclass
class MarkerReport:
    errors: list[Marker] = field(default_factory=list)
    warnings: list[Marker] = field(default_factory=list)

    @property
    def error_suggestions(self) -> int:
        return sum(1 for m in self.errors if m.suggestion)


def collect_markers(
    g: ResourceGraph,
    namer: Namer,
    namespace: str,
    scanners: Sequence[MarkerScanner],
    forbidden_kinds: Iterable[ResourceKind] = (),
) -> MarkerReport:
    """Run every scanner in order and return the filtered, sorted findings."""
    markers = create_forbidden_markers(forbidden_kinds)
    for scanner in scanners:
        markers.extend(scanner(g, namer))

    markers = sort_markers(filter_by_namespace(markers, namespace))
    report = MarkerReport(
        errors=by_severity(markers, Severity.ERROR),
        warnings=by_severity(markers, Severity.WARNING),
    )
    markers_total.labels(severity=Severity.ERROR.value).inc(len(report.errors))
    markers_total.labels(severity=Severity.WARNING.value).inc(len(report.warnings))
    _logger.debug("markers_collected", errors=len(report.errors), warnings=len(report.warnings))
    return report
