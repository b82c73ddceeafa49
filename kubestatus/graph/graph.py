"""In-memory relationship graph.

Nodes live in an arena indexed by stable integers; a ``(kind, namespace,
name)`` index enforces identity. Edges are id pairs labelled with an
EdgeKind. The graph is populated once per report, after every loader has
returned, and is only read from then on.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from kubestatus.graph.models import EdgeKind, GraphEdge, GraphNode, NodeKey
from kubestatus.models.resources import Resource, ResourceKind


def _by_key(node: GraphNode) -> NodeKey:
    return node.key


class ResourceGraph:
    """Directed graph of typed resource nodes and typed edges."""

    def __init__(self) -> None:
        self._nodes: list[GraphNode] = []
        self._index: dict[NodeKey, int] = {}
        # source id -> target id -> edge kinds
        self._out: dict[int, dict[int, set[EdgeKind]]] = {}
        self._in: dict[int, dict[int, set[EdgeKind]]] = {}
        self._edge_count = 0

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def ensure_node(self, kind: ResourceKind, namespace: str, name: str, payload: Resource | None = None) -> GraphNode:
        """Insert a node, or return the existing node with the same identity."""
        key = (kind.value, namespace, name)
        existing = self._index.get(key)
        if existing is not None:
            return self._nodes[existing]
        node = GraphNode(id=len(self._nodes), kind=kind, namespace=namespace, name=name, payload=payload or {})
        self._nodes.append(node)
        self._index[key] = node.id
        return node

    def find(self, kind: ResourceKind, namespace: str, name: str) -> GraphNode | None:
        node_id = self._index.get((kind.value, namespace, name))
        return None if node_id is None else self._nodes[node_id]

    def node(self, node_id: int) -> GraphNode:
        return self._nodes[node_id]

    def nodes(self, kind: ResourceKind | None = None) -> list[GraphNode]:
        """All nodes, optionally of one kind, sorted by identity key."""
        selected = self._nodes if kind is None else [n for n in self._nodes if n.kind == kind]
        return sorted(selected, key=_by_key)

    def __contains__(self, node_id: object) -> bool:
        return isinstance(node_id, int) and 0 <= node_id < len(self._nodes)

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self._nodes)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def add_edge(self, source: GraphNode | int, target: GraphNode | int, edge_kind: EdgeKind) -> bool:
        """Add a directed edge; returns False when it already existed.

        Raises:
            KeyError: if either endpoint is not a node of this graph.
        """
        src, dst = _node_id(source), _node_id(target)
        for node_id in (src, dst):
            if node_id not in self:
                raise KeyError(f"node {node_id} is not in the graph")
        kinds = self._out.setdefault(src, {}).setdefault(dst, set())
        if edge_kind in kinds:
            return False
        kinds.add(edge_kind)
        self._in.setdefault(dst, {}).setdefault(src, set()).add(edge_kind)
        self._edge_count += 1
        return True

    def has_edge(self, source: GraphNode | int, target: GraphNode | int, edge_kind: EdgeKind | None = None) -> bool:
        kinds = self._out.get(_node_id(source), {}).get(_node_id(target))
        if not kinds:
            return False
        return edge_kind is None or edge_kind in kinds

    def successors(
        self,
        node: GraphNode | int,
        edge_kind: EdgeKind | None = None,
        kind: ResourceKind | None = None,
    ) -> list[GraphNode]:
        """Targets of edges leaving *node*, sorted by identity key."""
        return self._neighbors(self._out.get(_node_id(node), {}), edge_kind, kind)

    def predecessors(
        self,
        node: GraphNode | int,
        edge_kind: EdgeKind | None = None,
        kind: ResourceKind | None = None,
    ) -> list[GraphNode]:
        """Sources of edges entering *node*, sorted by identity key."""
        return self._neighbors(self._in.get(_node_id(node), {}), edge_kind, kind)

    def edges(self) -> Iterator[GraphEdge]:
        """Every edge, one per (source, target, kind)."""
        for src, targets in self._out.items():
            for dst, kinds in targets.items():
                for edge_kind in sorted(kinds):
                    yield GraphEdge(source=src, target=dst, edge_kind=edge_kind)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def _neighbors(
        self,
        adjacent: dict[int, set[EdgeKind]],
        edge_kind: EdgeKind | None,
        kind: ResourceKind | None,
    ) -> list[GraphNode]:
        found: Iterable[GraphNode] = (
            self._nodes[node_id]
            for node_id, kinds in adjacent.items()
            if edge_kind is None or edge_kind in kinds
        )
        if kind is not None:
            found = (n for n in found if n.kind == kind)
        return sorted(found, key=_by_key)


def _node_id(node: GraphNode | int) -> int:
    return node if isinstance(node, int) else node.id
