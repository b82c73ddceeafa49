"""Group views and the coverage partitioner.

A group view bundles a primary node with the related nodes shown alongside
it. Each partition pass takes the nodes already claimed (``covered``) and
returns the views whose defining node is unclaimed plus the ids those views
newly claim. Views own only what they claim; they may still reference nodes
claimed earlier for display context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from kubestatus.graph.edges import build_strategy_from
from kubestatus.graph.graph import ResourceGraph
from kubestatus.graph.models import EdgeKind, GraphNode
from kubestatus.models.resources import (
    BUILD_ANNOTATION,
    DEPLOYER_POD_FOR_LABEL,
    ResourceKind,
    annotations,
    build_timestamp,
    deployment_version,
    labels,
    spec,
    status,
)

CoveredSet = frozenset[int]

_EPOCH = datetime.min.replace(tzinfo=UTC)

ACTIVE_BUILD_PHASES = frozenset({"New", "Pending", "Running"})
UNSUCCESSFUL_BUILD_PHASES = frozenset({"Failed", "Error", "Cancelled"})


@dataclass(frozen=True)
class ImageTagLocation:
    """Where an image lives: an image stream tag, or a plain image pull spec."""

    namespace: str
    name: str
    is_tag: bool = True
    node: GraphNode | None = None

    def image_spec(self) -> str:
        if self.is_tag:
            return f"{self.namespace}/{self.name}"
        return self.name


@dataclass(frozen=True)
class ImagePipeline:
    """A build config, its builds, and the image it pushes to."""

    build_config: GraphNode | None = None
    image: ImageTagLocation | None = None
    base_image: ImageTagLocation | None = None
    last_successful_build: GraphNode | None = None
    last_unsuccessful_build: GraphNode | None = None
    active_builds: tuple[GraphNode, ...] = ()
    destination_resolved: bool = True
    covered: CoveredSet = frozenset()


@dataclass(frozen=True)
class DeploymentPipeline:
    """A deployment config with its deployments and triggering images."""

    deployment: GraphNode
    active_deployment: GraphNode | None = None
    inactive_deployments: tuple[GraphNode, ...] = ()
    images: tuple[ImagePipeline, ...] = ()
    covered: CoveredSet = frozenset()


@dataclass(frozen=True)
class ReplicationControllerView:
    rc: GraphNode
    owned_pods: tuple[GraphNode, ...] = ()
    covered: CoveredSet = frozenset()


@dataclass(frozen=True)
class PodView:
    pod: GraphNode
    covered: CoveredSet = frozenset()


@dataclass(frozen=True)
class ServiceGroup:
    """A service plus everything that satisfies or exposes it."""

    service: GraphNode
    exposing_routes: tuple[GraphNode, ...] = ()
    deployment_pipelines: tuple[DeploymentPipeline, ...] = ()
    fulfilling_rcs: tuple[GraphNode, ...] = ()
    fulfilling_pods: tuple[GraphNode, ...] = ()
    covered: CoveredSet = frozenset()

    @property
    def fulfilling_dcs(self) -> tuple[GraphNode, ...]:
        return tuple(p.deployment for p in self.deployment_pipelines)

    def standalone_rcs(self, g: ResourceGraph) -> list[GraphNode]:
        """Controllers not already shown as a deployment of one of the group's configs."""
        return [
            rc
            for rc in self.fulfilling_rcs
            if not any(g.has_edge(dc, rc, EdgeKind.DEPLOYS) for dc in self.fulfilling_dcs)
        ]

    def standalone_pods(self, g: ResourceGraph) -> list[GraphNode]:
        """Pods not already rolled up under one of the group's controllers."""
        return [
            pod
            for pod in self.fulfilling_pods
            if not any(g.has_edge(rc, pod, EdgeKind.MANAGES) for rc in self.fulfilling_rcs)
        ]


# ----------------------------------------------------------------------
# View builders
# ----------------------------------------------------------------------


def _unclaimed(nodes: list[GraphNode], covered: set[int]) -> list[GraphNode]:
    return [n for n in nodes if n.id not in covered]


def _claim(claimed: set[int], covered: set[int], *nodes: GraphNode) -> None:
    for node in nodes:
        if node.id not in covered:
            claimed.add(node.id)
            covered.add(node.id)


def _sort_time(build: GraphNode) -> datetime:
    return build_timestamp(build.payload) or _EPOCH


def image_location(ref: dict | None, default_namespace: str, g: ResourceGraph) -> ImageTagLocation | None:
    """Resolve an ObjectReference (ImageStreamTag, ImageStreamImage or DockerImage) to a location."""
    if not ref or not ref.get("name"):
        return None
    kind = ref.get("kind")
    namespace = ref.get("namespace") or default_namespace
    if kind == "ImageStreamTag":
        name = ref["name"] if ":" in ref["name"] else f"{ref['name']}:latest"
        return ImageTagLocation(namespace, name, node=g.find(ResourceKind.IMAGE_STREAM_TAG, namespace, name))
    if kind == "ImageStreamImage":
        return ImageTagLocation(namespace, ref["name"])
    return ImageTagLocation(namespace, ref["name"], is_tag=False)


def image_pipeline_from_build_config(g: ResourceGraph, bc: GraphNode, covered: set[int]) -> ImagePipeline:
    """Build the pipeline for *bc*, claiming its unclaimed nodes into *covered*."""
    claimed: set[int] = set()
    _claim(claimed, covered, bc)

    output_ref = (spec(bc.payload).get("output") or {}).get("to")
    image = image_location(output_ref, bc.namespace, g)
    destination_resolved = True
    if image is not None and image.is_tag:
        stream_name = image.name.split(":", 1)[0]
        destination_resolved = g.find(ResourceKind.IMAGE_STREAM, image.namespace, stream_name) is not None
        if image.node is not None:
            _claim(claimed, covered, image.node)

    builds = g.successors(bc, EdgeKind.BUILDS, ResourceKind.BUILD)
    _claim(claimed, covered, *builds)

    last_successful = last_unsuccessful = None
    active: list[GraphNode] = []
    for build in builds:
        phase = status(build.payload).get("phase", "")
        if phase == "Complete":
            if last_successful is None or _sort_time(build) > _sort_time(last_successful):
                last_successful = build
        elif phase in UNSUCCESSFUL_BUILD_PHASES:
            if last_unsuccessful is None or _sort_time(build) > _sort_time(last_unsuccessful):
                last_unsuccessful = build
        elif phase in ACTIVE_BUILD_PHASES:
            active.append(build)
    active.sort(key=_sort_time, reverse=True)

    return ImagePipeline(
        build_config=bc,
        image=image,
        base_image=image_location(build_strategy_from(bc.payload), bc.namespace, g),
        last_successful_build=last_successful,
        last_unsuccessful_build=last_unsuccessful,
        active_builds=tuple(active),
        destination_resolved=destination_resolved,
        covered=frozenset(claimed),
    )


def image_pipeline_from_tag(g: ResourceGraph, tag: GraphNode, covered: set[int]) -> ImagePipeline:
    """Pipeline for an image stream tag, through the build config that pushes to it (if any)."""
    builders = g.predecessors(tag, EdgeKind.BUILD_OUTPUT, ResourceKind.BUILD_CONFIG)
    location = ImageTagLocation(tag.namespace, tag.name, node=tag)
    if builders:
        pipeline = image_pipeline_from_build_config(g, builders[0], covered)
        return ImagePipeline(
            build_config=pipeline.build_config,
            image=location,
            base_image=pipeline.base_image,
            last_successful_build=pipeline.last_successful_build,
            last_unsuccessful_build=pipeline.last_unsuccessful_build,
            active_builds=pipeline.active_builds,
            destination_resolved=pipeline.destination_resolved,
            covered=pipeline.covered,
        )
    claimed: set[int] = set()
    _claim(claimed, covered, tag)
    return ImagePipeline(image=location, covered=frozenset(claimed))


def replication_controller_view(g: ResourceGraph, rc: GraphNode, covered: set[int]) -> ReplicationControllerView:
    claimed: set[int] = set()
    owned = g.successors(rc, EdgeKind.MANAGES, ResourceKind.POD)
    _claim(claimed, covered, rc, *owned)
    return ReplicationControllerView(rc=rc, owned_pods=tuple(owned), covered=frozenset(claimed))


def deployment_pipeline(g: ResourceGraph, dc: GraphNode, covered: set[int]) -> DeploymentPipeline:
    claimed: set[int] = set()
    _claim(claimed, covered, dc)

    deployments = sorted(
        g.successors(dc, EdgeKind.DEPLOYS, ResourceKind.REPLICATION_CONTROLLER),
        key=lambda rc: deployment_version(rc.payload),
        reverse=True,
    )
    for rc in deployments:
        claimed |= replication_controller_view(g, rc, covered).covered

    active = None
    inactive = deployments
    latest_version = status(dc.payload).get("latestVersion", 0)
    if deployments and deployment_version(deployments[0].payload) == latest_version:
        active, inactive = deployments[0], deployments[1:]

    images = []
    for tag in g.predecessors(dc, EdgeKind.TRIGGERS, ResourceKind.IMAGE_STREAM_TAG):
        pipeline = image_pipeline_from_tag(g, tag, covered)
        claimed |= pipeline.covered
        images.append(pipeline)

    return DeploymentPipeline(
        deployment=dc,
        active_deployment=active,
        inactive_deployments=tuple(inactive),
        images=tuple(images),
        covered=frozenset(claimed),
    )


# ----------------------------------------------------------------------
# Partition passes
# ----------------------------------------------------------------------


def all_service_groups(g: ResourceGraph, covered: CoveredSet) -> tuple[list[ServiceGroup], CoveredSet]:
    running = set(covered)
    groups = []
    for svc in g.nodes(ResourceKind.SERVICE):
        if svc.id in running:
            continue
        before = set(running)
        claimed: set[int] = set()
        _claim(claimed, running, svc)

        routes = _unclaimed(g.predecessors(svc, EdgeKind.ROUTES_TO, ResourceKind.ROUTE), before)
        _claim(claimed, running, *routes)

        pipelines = []
        for dc in _unclaimed(g.successors(svc, EdgeKind.EXPOSES, ResourceKind.DEPLOYMENT_CONFIG), before):
            pipeline = deployment_pipeline(g, dc, running)
            claimed |= pipeline.covered
            pipelines.append(pipeline)

        rcs = _unclaimed(g.successors(svc, EdgeKind.EXPOSES, ResourceKind.REPLICATION_CONTROLLER), before)
        for rc in rcs:
            claimed |= replication_controller_view(g, rc, running).covered

        pods = _unclaimed(g.successors(svc, EdgeKind.EXPOSES, ResourceKind.POD), before)
        _claim(claimed, running, *pods)

        groups.append(
            ServiceGroup(
                service=svc,
                exposing_routes=tuple(routes),
                deployment_pipelines=tuple(pipelines),
                fulfilling_rcs=tuple(rcs),
                fulfilling_pods=tuple(pods),
                covered=frozenset(claimed),
            )
        )
    return groups, frozenset(running - covered)


def all_deployment_pipelines(g: ResourceGraph, covered: CoveredSet) -> tuple[list[DeploymentPipeline], CoveredSet]:
    running = set(covered)
    pipelines = [
        deployment_pipeline(g, dc, running)
        for dc in g.nodes(ResourceKind.DEPLOYMENT_CONFIG)
        if dc.id not in running
    ]
    return pipelines, frozenset(running - covered)


def all_replication_controllers(
    g: ResourceGraph, covered: CoveredSet
) -> tuple[list[ReplicationControllerView], CoveredSet]:
    running = set(covered)
    views = []
    for rc in g.nodes(ResourceKind.REPLICATION_CONTROLLER):
        if rc.id not in running:
            views.append(replication_controller_view(g, rc, running))
    return views, frozenset(running - covered)


def all_image_pipelines_from_build_configs(
    g: ResourceGraph, covered: CoveredSet
) -> tuple[list[ImagePipeline], CoveredSet]:
    running = set(covered)
    pipelines = []
    for bc in g.nodes(ResourceKind.BUILD_CONFIG):
        if bc.id not in running:
            pipelines.append(image_pipeline_from_build_config(g, bc, running))
    return pipelines, frozenset(running - covered)


def all_pods(g: ResourceGraph, covered: CoveredSet) -> tuple[list[PodView], CoveredSet]:
    views = [
        PodView(pod=pod, covered=frozenset({pod.id})) for pod in g.nodes(ResourceKind.POD) if pod.id not in covered
    ]
    return views, frozenset(v.pod.id for v in views)


def is_boring_pod(pod: GraphNode) -> bool:
    """Deployer pods, builder pods and finished pods are not worth listing."""
    is_deployer = DEPLOYER_POD_FOR_LABEL in labels(pod.payload)
    is_builder = BUILD_ANNOTATION in annotations(pod.payload)
    is_finished = status(pod.payload).get("phase") in ("Succeeded", "Failed")
    return is_deployer or is_builder or is_finished


def filter_boring_pods(pods: list[PodView]) -> tuple[list[PodView], list[PodView]]:
    """Split standalone pods into ``(monopods, boring)``."""
    monopods, boring = [], []
    for view in pods:
        (boring if is_boring_pod(view.pod) else monopods).append(view)
    return monopods, boring


@dataclass
class Partition:
    """The disjoint display groups of one report, in pass order."""

    service_groups: list[ServiceGroup] = field(default_factory=list)
    deployment_pipelines: list[DeploymentPipeline] = field(default_factory=list)
    replication_controllers: list[ReplicationControllerView] = field(default_factory=list)
    image_pipelines: list[ImagePipeline] = field(default_factory=list)
    monopods: list[PodView] = field(default_factory=list)
    boring_pods: list[PodView] = field(default_factory=list)
    covered: CoveredSet = frozenset()

    @property
    def is_empty(self) -> bool:
        """True when there is nothing an application owner would recognise."""
        return not (self.service_groups or self.deployment_pipelines or self.image_pipelines)


def partition(g: ResourceGraph) -> Partition:
    """Run the five partition passes in their fixed priority order."""
    covered: CoveredSet = frozenset()

    services, newly = all_service_groups(g, covered)
    covered |= newly
    dcs, newly = all_deployment_pipelines(g, covered)
    covered |= newly
    rcs, newly = all_replication_controllers(g, covered)
    covered |= newly
    images, newly = all_image_pipelines_from_build_configs(g, covered)
    covered |= newly
    pods, newly = all_pods(g, covered)
    covered |= newly

    monopods, boring = filter_boring_pods(pods)
    return Partition(
        service_groups=services,
        deployment_pipelines=dcs,
        replication_controllers=rcs,
        image_pipelines=images,
        monopods=monopods,
        boring_pods=boring,
        covered=covered,
    )
