"""Data structures for the resource relationship graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from kubestatus.models.resources import Resource, ResourceKind

NodeKey = tuple[str, str, str]


class EdgeKind(StrEnum):
    """Types of relationships between resources."""

    EXPOSES = "exposes"  # Service -> Pod / ReplicationController / DeploymentConfig
    MANAGES = "manages"  # ReplicationController -> Pod
    DEPLOYS = "deploys"  # DeploymentConfig -> ReplicationController
    TRIGGERS = "triggers"  # ImageStreamTag -> DeploymentConfig
    BUILD_INPUT = "build-input"  # ImageStreamTag -> BuildConfig
    BUILD_OUTPUT = "build-output"  # BuildConfig -> ImageStreamTag
    BUILDS = "builds"  # BuildConfig -> Build
    TAG_OF = "tag-of"  # ImageStreamTag -> ImageStream
    ROUTES_TO = "routes-to"  # Route -> Service
    RUNS_AS = "runs-as"  # Pod -> ServiceAccount
    MOUNTS_SECRET = "mounts-secret"  # Pod -> Secret
    MOUNTABLE_SECRET = "mountable-secret"  # ServiceAccount -> Secret


@dataclass(frozen=True)
class GraphNode:
    """A node in the relationship graph wrapping one resource.

    ``id`` is the node's stable index in the graph arena; identity is
    ``(kind, namespace, name)``.
    """

    id: int
    kind: ResourceKind
    namespace: str
    name: str
    payload: Resource = field(default_factory=dict, compare=False, hash=False, repr=False)

    @property
    def key(self) -> NodeKey:
        """Return the unique key for this node."""
        return (self.kind.value, self.namespace, self.name)


@dataclass(frozen=True)
class GraphEdge:
    """A typed, directed edge between two nodes."""

    source: int
    target: int
    edge_kind: EdgeKind
