"""Project status describer.

Loads a namespace's resources into a graph, partitions the graph into
display groups, runs the analyzers and renders everything as one block of
text. Namespace ``""`` means all namespaces.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from kubestatus.analysis.pipeline import MarkerReport, MarkerScanner, collect_markers
from kubestatus.analysis.scanners import default_marker_scanners
from kubestatus.describe.builds import describe_additional_build_detail, describe_standalone_build_group
from kubestatus.describe.formatting import Clock, sort_exposed_routes, utcnow
from kubestatus.describe.groups import (
    describe_deployment_in_service_group,
    describe_monopod,
    describe_pod_in_service_group,
    describe_rc_in_service_group,
    describe_route_in_service_group,
    describe_service_in_service_group,
)
from kubestatus.graph.graph import ResourceGraph
from kubestatus.graph.naming import NamespacedFormatter
from kubestatus.graph.views import Partition, partition
from kubestatus.loader.fanout import GraphLoadResult, make_graph
from kubestatus.loader.lister import ResourceLister
from kubestatus.models.markers import Marker
from kubestatus.models.resources import ResourceKind
from kubestatus.observability.logging import get_logger

_logger = get_logger("describe.status")

INDENT = "  "


def print_lines(out: list[str], indent: str, depth: int, lines: Iterable[str]) -> None:
    """Append *lines* at *depth*; continuation lines get one extra indent."""
    for i, line in enumerate(lines):
        prefix = indent * depth
        if i != 0:
            prefix += indent
        out.append(prefix + line)


def describe_project_and_server(namespace: str, server: str) -> str:
    if not server:
        return f"In project {namespace}"
    return f"In project {namespace} on server {server}"


def describe_all_projects_on_server(server: str) -> str:
    if not server:
        return "Showing all projects"
    return f"Showing all projects on server {server}"


def suggestion_lines(suggestion: str) -> list[str]:
    """Multi-line suggestions become an indented block, single lines a ``try:`` hint."""
    if "\n" in suggestion:
        return ["", *(INDENT + "  " + line for line in suggestion.split("\n"))]
    if suggestion:
        return [INDENT + "  try: " + suggestion]
    return []


def _count(n: int, noun: str) -> str:
    if n == 0:
        return ""
    if n == 1:
        return f"1 {noun}"
    return f"{n} {noun}s"


def describe_summary(
    error_count: int,
    warning_count: int,
    error_suggestions: int,
    suggest: bool,
    nothing_found: bool,
    command_name: str = "oc",
) -> list[str]:
    """Trailing guidance; the first matching branch wins."""
    errors, warnings = _count(error_count, "error"), _count(warning_count, "warning")
    if not suggest and error_count > 0 and warning_count > 0:
        return [f"{errors} and {warnings} identified, use '{command_name} status -v' to see details."]
    if not suggest and error_count > 0 and error_suggestions > 0:
        return [f"{errors} identified, use '{command_name} status -v' to see details."]
    if not suggest and warning_count > 0:
        return [f"{warnings} identified, use '{command_name} status -v' to see details."]
    if nothing_found:
        return [
            "You have no services, deployment configs, or build configs.",
            f"Run '{command_name} new-app' to create an application.",
        ]
    return [
        f"View details with '{command_name} describe <resource>/<name>' "
        f"or list everything with '{command_name} get all'."
    ]


@dataclass
class ProjectStatusDescriber:
    """Generates the status report for a namespace."""

    lister: ResourceLister
    server: str = ""
    suggest: bool = False
    command_name: str = "oc"
    logs_command_name: str = "oc logs"
    set_probe_command_name: str = "oc set probe"
    load_timeout: float | None = None
    scanners: Sequence[MarkerScanner] | None = None
    clock: Clock = utcnow

    async def make_graph(self, namespace: str) -> GraphLoadResult:
        """Load the graph, bounding the whole fan-out by ``load_timeout`` if set.

        Raises:
            ResourceLoadError: on any genuine loader failure.
            TimeoutError: when the fan-out does not finish in time.
        """
        loading = make_graph(namespace, self.lister)
        if self.load_timeout:
            return await asyncio.wait_for(loading, self.load_timeout)
        return await loading

    async def describe(self, namespace: str) -> str:
        result = await self.make_graph(namespace)
        return self.render(result.graph, namespace, result.forbidden_kinds)

    def marker_scanners(self) -> Sequence[MarkerScanner]:
        if self.scanners is not None:
            return self.scanners
        return default_marker_scanners(self.command_name, self.logs_command_name, self.set_probe_command_name)

    def render(self, g: ResourceGraph, namespace: str, forbidden_kinds: Iterable[ResourceKind] = ()) -> str:
        all_namespaces = namespace == ""
        f = NamespacedFormatter(current_namespace=namespace)
        now = self.clock()
        parts = partition(g)

        out: list[str] = []
        if all_namespaces:
            out.append(describe_all_projects_on_server(self.server))
        else:
            out.append(describe_project_and_server(namespace, self.server))

        self._render_groups(out, g, f, parts, namespace, now)

        report = collect_markers(g, f, namespace, self.marker_scanners(), forbidden_kinds)
        out.append("")
        self._render_markers(out, report)
        out.extend(
            describe_summary(
                len(report.errors),
                len(report.warnings),
                report.error_suggestions,
                self.suggest,
                parts.is_empty,
                self.command_name,
            )
        )

        _logger.info(
            "status_described",
            namespace=namespace or "<all>",
            service_groups=len(parts.service_groups),
            deployment_pipelines=len(parts.deployment_pipelines),
            image_pipelines=len(parts.image_pipelines),
            replication_controllers=len(parts.replication_controllers),
            monopods=len(parts.monopods),
            errors=len(report.errors),
            warnings=len(report.warnings),
        )
        return "\n".join(out) + "\n"

    def _render_groups(
        self,
        out: list[str],
        g: ResourceGraph,
        f: NamespacedFormatter,
        parts: Partition,
        namespace: str,
        now: datetime,
    ) -> None:
        for group in parts.service_groups:
            local = NamespacedFormatter(current_namespace=group.service.namespace)
            exposes: list[str] = []
            for route in group.exposing_routes:
                exposes.extend(describe_route_in_service_group(local, route))

            out.append("")
            print_lines(out, "", 0, describe_service_in_service_group(f, group.service, sort_exposed_routes(exposes)))
            for pipeline in group.deployment_pipelines:
                print_lines(out, INDENT, 1, describe_deployment_in_service_group(local, pipeline, now))
            for rc in group.standalone_rcs(g):
                print_lines(out, INDENT, 1, describe_rc_in_service_group(local, rc, now))
            for pod in group.standalone_pods(g):
                print_lines(out, INDENT, 1, describe_pod_in_service_group(local, pod))

        for pipeline in parts.deployment_pipelines:
            out.append("")
            print_lines(out, INDENT, 0, describe_deployment_in_service_group(f, pipeline, now))

        for image in parts.image_pipelines:
            out.append("")
            lines = describe_standalone_build_group(f, image, namespace)
            lines.extend(describe_additional_build_detail(image, True, now))
            print_lines(out, INDENT, 0, lines)

        for view in parts.replication_controllers:
            out.append("")
            print_lines(out, INDENT, 0, describe_rc_in_service_group(f, view.rc, now))

        for view in parts.monopods:
            out.append("")
            print_lines(out, INDENT, 0, describe_monopod(f, view.pod))

    def _render_markers(self, out: list[str], report: MarkerReport) -> None:
        if report.errors:
            out.append("Errors:")
            for marker in report.errors:
                self._render_marker(out, marker)

        if report.warnings and self.suggest:
            out.append("Warnings:")
            for marker in report.warnings:
                self._render_marker(out, marker)

        # errors always print, warnings only in verbose mode
        if report.errors or (self.suggest and report.warnings):
            out.append("")

    def _render_marker(self, out: list[str], marker: Marker) -> None:
        out.append(INDENT + "* " + marker.message)
        if self.suggest:
            out.extend(suggestion_lines(marker.suggestion))
