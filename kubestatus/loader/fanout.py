"""Concurrent, partial-failure-tolerant loading of resource collections.

Every loader lists its kind concurrently and stages the items in its own
buffer. Nothing touches the graph until all loaders have returned; only then,
and only if no genuine failure occurred, are the staged items committed as
nodes and edges inferred.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from kubestatus.errors import ForbiddenError, NotFoundError, ResourceLoadError
from kubestatus.graph.edges import DEFAULT_EDGE_BUILDERS, EdgeBuilder, add_all_edges
from kubestatus.graph.graph import ResourceGraph
from kubestatus.loader.lister import ResourceLister
from kubestatus.models.resources import Resource, ResourceKind, metadata, spec, status
from kubestatus.observability.logging import get_logger
from kubestatus.observability.metrics import loader_lists_total

_logger = get_logger("loader.fanout")


@dataclass
class ResourceLoader:
    """Lists one resource kind and later commits the items to a graph."""

    kind: ResourceKind
    namespace: str
    lister: ResourceLister
    tolerate_not_found: bool = False
    items: list[Resource] = field(default_factory=list)

    async def load(self) -> None:
        try:
            self.items = await self.lister.list(self.kind, self.namespace)
        except NotFoundError:
            if not self.tolerate_not_found:
                loader_lists_total.labels(kind=self.kind.value, outcome="error").inc()
                raise
            loader_lists_total.labels(kind=self.kind.value, outcome="not_found").inc()
            _logger.debug("kind_not_served", kind=self.kind.value, namespace=self.namespace)
            self.items = []
            return
        except ForbiddenError:
            loader_lists_total.labels(kind=self.kind.value, outcome="forbidden").inc()
            raise
        except Exception:
            loader_lists_total.labels(kind=self.kind.value, outcome="error").inc()
            raise
        loader_lists_total.labels(kind=self.kind.value, outcome="ok").inc()
        _logger.debug("kind_listed", kind=self.kind.value, namespace=self.namespace, count=len(self.items))

    def add_to_graph(self, g: ResourceGraph) -> None:
        for item in self.items:
            meta = metadata(item)
            g.ensure_node(self.kind, meta.get("namespace", self.namespace), meta.get("name", ""), item)


class ImageStreamLoader(ResourceLoader):
    """Commits image streams plus one ImageStreamTag node per known tag."""

    def add_to_graph(self, g: ResourceGraph) -> None:
        super().add_to_graph(g)
        for item in self.items:
            meta = metadata(item)
            namespace, stream = meta.get("namespace", self.namespace), meta.get("name", "")
            for tag in image_stream_tags(item):
                tag_name = f"{stream}:{tag}"
                g.ensure_node(
                    ResourceKind.IMAGE_STREAM_TAG,
                    namespace,
                    tag_name,
                    {"metadata": {"name": tag_name, "namespace": namespace}, "tag": tag, "imageStream": stream},
                )


def image_stream_tags(stream: Resource) -> list[str]:
    """Tag names from spec and status, in first-seen order without duplicates."""
    tags: list[str] = []
    for entry in spec(stream).get("tags") or []:
        tags.append(entry.get("name", ""))
    for entry in status(stream).get("tags") or []:
        tags.append(entry.get("tag", ""))
    return list(dict.fromkeys(t for t in tags if t))


def default_loaders(namespace: str, lister: ResourceLister) -> list[ResourceLoader]:
    """One loader per resource kind, in commit order.

    The build kinds tolerate a missing API: clusters without a build
    service simply have no build configs or builds.
    """
    return [
        ResourceLoader(ResourceKind.SERVICE, namespace, lister),
        ResourceLoader(ResourceKind.SERVICE_ACCOUNT, namespace, lister),
        ResourceLoader(ResourceKind.SECRET, namespace, lister),
        ResourceLoader(ResourceKind.REPLICATION_CONTROLLER, namespace, lister),
        ResourceLoader(ResourceKind.POD, namespace, lister),
        ResourceLoader(ResourceKind.BUILD_CONFIG, namespace, lister, tolerate_not_found=True),
        ResourceLoader(ResourceKind.BUILD, namespace, lister, tolerate_not_found=True),
        ImageStreamLoader(ResourceKind.IMAGE_STREAM, namespace, lister),
        ResourceLoader(ResourceKind.DEPLOYMENT_CONFIG, namespace, lister),
        ResourceLoader(ResourceKind.ROUTE, namespace, lister),
    ]


@dataclass
class GraphLoadResult:
    """A populated graph plus the kinds the caller was not allowed to list."""

    graph: ResourceGraph
    forbidden_kinds: set[ResourceKind] = field(default_factory=set)


async def make_graph(
    namespace: str,
    lister: ResourceLister,
    loaders: list[ResourceLoader] | None = None,
    edge_builders: tuple[EdgeBuilder, ...] = DEFAULT_EDGE_BUILDERS,
) -> GraphLoadResult:
    """Load every kind concurrently and build the relationship graph.

    Raises:
        ResourceLoadError: if any loader failed with something other than a
            forbidden error; no graph is produced in that case.
    """
    if loaders is None:
        loaders = default_loaders(namespace, lister)

    results = await asyncio.gather(*(loader.load() for loader in loaders), return_exceptions=True)

    forbidden: set[ResourceKind] = set()
    errors: list[BaseException] = []
    for loader, result in zip(loaders, results, strict=True):
        if result is None:
            continue
        if isinstance(result, ForbiddenError):
            _logger.warning("kind_forbidden", kind=result.kind.value, namespace=namespace)
            forbidden.add(result.kind)
            continue
        _logger.error("kind_load_failed", kind=loader.kind.value, namespace=namespace, error=str(result))
        errors.append(result)

    if errors:
        raise ResourceLoadError(errors)

    g = ResourceGraph()
    for loader in loaders:
        loader.add_to_graph(g)
    add_all_edges(g, edge_builders)

    _logger.info(
        "graph_built",
        namespace=namespace or "<all>",
        nodes=g.node_count,
        edges=g.edge_count,
        forbidden=sorted(k.value for k in forbidden),
    )
    return GraphLoadResult(graph=g, forbidden_kinds=forbidden)
