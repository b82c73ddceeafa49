"""Resource relationship graph and its display-group partitioning.

The graph is populated once per report from the loaded resources; edges are
inferred from declared configuration (label selectors, owner references,
deployment and build annotations, image-change triggers, build
inputs/outputs, route backends, secret mounts).
"""

from kubestatus.graph.graph import ResourceGraph
from kubestatus.graph.models import EdgeKind, GraphEdge, GraphNode
from kubestatus.graph.naming import NamespacedFormatter, Namer
from kubestatus.graph.views import Partition, partition

__all__ = [
    "EdgeKind",
    "GraphEdge",
    "GraphNode",
    "NamespacedFormatter",
    "Namer",
    "Partition",
    "ResourceGraph",
    "partition",
]
