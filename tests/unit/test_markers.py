"""Tests for the marker pipeline and the report summary."""

from __future__ import annotations

from kubestatus.analysis.pipeline import (
    FORBIDDEN_LIST_WARNING,
    collect_markers,
    create_forbidden_markers,
    filter_by_namespace,
    sort_markers,
)
from kubestatus.describe.status import describe_summary, print_lines, suggestion_lines
from kubestatus.graph.graph import ResourceGraph
from kubestatus.graph.naming import NamespacedFormatter
from kubestatus.models.markers import Marker, Severity
from kubestatus.models.resources import ResourceKind


def _make_marker(key: str, node=None, severity: Severity = Severity.WARNING, message: str = "") -> Marker:
    return Marker(severity=severity, key=key, message=message or key, node=node)


class TestSortMarkers:
    def test_groups_by_node_then_key(self) -> None:
        g = ResourceGraph()
        pod = g.ensure_node(ResourceKind.POD, "ns", "web")
        bc = g.ensure_node(ResourceKind.BUILD_CONFIG, "ns", "app")
        markers = [
            _make_marker("B", pod),
            _make_marker("A", pod),
            _make_marker("Z"),
            _make_marker("C", bc),
        ]

        ordered = sort_markers(markers)

        assert [(m.key, m.node.name if m.node else None) for m in ordered] == [
            ("Z", None),
            ("C", "app"),
            ("A", "web"),
            ("B", "web"),
        ]

    def test_ties_keep_emission_order(self) -> None:
        first = _make_marker("Same", message="first")
        second = _make_marker("Same", message="second")
        assert [m.message for m in sort_markers([first, second])] == ["first", "second"]
        assert [m.message for m in sort_markers([second, first])] == ["second", "first"]

    def test_node_order_ignores_insertion_id(self) -> None:
        g = ResourceGraph()
        later = g.ensure_node(ResourceKind.POD, "ns", "b")
        earlier = g.ensure_node(ResourceKind.POD, "ns", "a")
        ordered = sort_markers([_make_marker("K", later), _make_marker("K", earlier)])
        assert [m.node.name for m in ordered] == ["a", "b"]


class TestFilterByNamespace:
    def test_drops_foreign_nodes_but_keeps_global_markers(self) -> None:
        g = ResourceGraph()
        local = _make_marker("A", g.ensure_node(ResourceKind.POD, "ns", "web"))
        foreign = _make_marker("B", g.ensure_node(ResourceKind.POD, "other", "web"))
        global_marker = _make_marker("C")

        assert filter_by_namespace([local, foreign, global_marker], "ns") == [local, global_marker]
        assert filter_by_namespace([local, foreign, global_marker], "") == [local, foreign, global_marker]


class TestForbiddenMarkers:
    def test_one_warning_per_kind(self) -> None:
        markers = create_forbidden_markers({ResourceKind.SECRET, ResourceKind.BUILD})
        assert [m.message for m in markers] == [
            "Unable to list builds resources.  Not all status relationships can be established.",
            "Unable to list secrets resources.  Not all status relationships can be established.",
        ]
        assert {m.key for m in markers} == {FORBIDDEN_LIST_WARNING}
        assert all(m.severity == Severity.WARNING and m.node is None for m in markers)


class TestCollectMarkers:
    def test_buckets_by_severity(self) -> None:
        g = ResourceGraph()
        pod = g.ensure_node(ResourceKind.POD, "ns", "web")

        def scanner(graph: ResourceGraph, namer) -> list[Marker]:
            return [
                Marker(Severity.ERROR, "Broken", "broken", node=pod, suggestion="fix it"),
                Marker(Severity.WARNING, "Meh", "meh", node=pod),
            ]

        report = collect_markers(g, NamespacedFormatter("ns"), "ns", [scanner], [ResourceKind.ROUTE])

        assert [m.key for m in report.errors] == ["Broken"]
        assert [m.key for m in report.warnings] == [FORBIDDEN_LIST_WARNING, "Meh"]
        assert report.error_suggestions == 1


class TestSummary:
    def test_errors_and_warnings(self) -> None:
        assert describe_summary(2, 1, 0, False, False) == [
            "2 errors and 1 warning identified, use 'oc status -v' to see details."
        ]

    def test_errors_with_suggestions(self) -> None:
        assert describe_summary(2, 0, 1, False, False) == ["2 errors identified, use 'oc status -v' to see details."]

    def test_errors_without_suggestions_fall_through(self) -> None:
        assert describe_summary(1, 0, 0, False, False) == [
            "View details with 'oc describe <resource>/<name>' or list everything with 'oc get all'."
        ]

    def test_warnings_only(self) -> None:
        assert describe_summary(0, 3, 0, False, False, "kubectl") == [
            "3 warnings identified, use 'kubectl status -v' to see details."
        ]

    def test_nothing_found(self) -> None:
        assert describe_summary(0, 0, 0, False, True) == [
            "You have no services, deployment configs, or build configs.",
            "Run 'oc new-app' to create an application.",
        ]

    def test_verbose_never_points_at_verbose(self) -> None:
        assert describe_summary(2, 1, 1, True, False) == [
            "View details with 'oc describe <resource>/<name>' or list everything with 'oc get all'."
        ]


class TestLineLayout:
    def test_continuation_lines_get_extra_indent(self) -> None:
        out: list[str] = []
        print_lines(out, "  ", 1, ["head", "tail", "more"])
        assert out == ["  head", "    tail", "    more"]

    def test_suggestion_lines(self) -> None:
        assert suggestion_lines("") == []
        assert suggestion_lines("oc do-it") == ["    try: oc do-it"]
        assert suggestion_lines("line one\nline two") == ["", "    line one", "    line two"]
