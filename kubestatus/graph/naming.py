"""Human-readable node names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from kubestatus.graph.models import GraphNode


class Namer(Protocol):
    """Produces the label a report uses for a node."""

    def resource_name(self, node: GraphNode) -> str: ...


def namespace_name_with_type(
    resource: str, name: str, namespace: str, default_namespace: str, no_namespace: bool
) -> str:
    if no_namespace or namespace == default_namespace or not namespace:
        return f"{resource}/{name}"
    return f"{resource}/{name}[{namespace}]"


@dataclass(frozen=True)
class NamespacedFormatter:
    """Names nodes as ``<abbrev>/<name>``, adding ``[<namespace>]`` for foreign namespaces."""

    current_namespace: str = ""
    hide_namespace: bool = False

    def resource_name(self, node: GraphNode) -> str:
        return namespace_name_with_type(
            node.kind.abbreviation,
            node.name,
            node.namespace,
            self.current_namespace,
            self.hide_namespace,
        )
