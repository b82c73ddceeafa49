"""Default edge inference over a fully loaded graph.

Every function here only links nodes that already exist; none of them
creates nodes, and re-running any of them is a no-op.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kubestatus.graph.graph import ResourceGraph
from kubestatus.graph.models import EdgeKind, GraphNode
from kubestatus.models.resources import (
    BUILD_CONFIG_ANNOTATION,
    BUILD_CONFIG_LABEL,
    DEPLOYMENT_CONFIG_ANNOTATION,
    ResourceKind,
    annotations,
    labels,
    metadata,
    selector_matches,
    spec,
    status,
)

EdgeBuilder = Callable[[ResourceGraph], None]


def image_stream_tag_ref(ref: dict[str, Any] | None, default_namespace: str) -> tuple[str, str] | None:
    """Resolve an ``ObjectReference`` to ``(namespace, "<stream>:<tag>")``.

    Returns None unless the reference points at an ImageStreamTag. A missing
    tag defaults to ``latest``.
    """
    if not ref or ref.get("kind") != "ImageStreamTag" or not ref.get("name"):
        return None
    name = str(ref["name"])
    if ":" not in name:
        name = f"{name}:latest"
    return (ref.get("namespace") or default_namespace, name)


def build_strategy_from(bc: dict[str, Any]) -> dict[str, Any] | None:
    """The ``from`` reference of whichever build strategy is configured."""
    strategy = spec(bc).get("strategy") or {}
    for strategy_key in ("sourceStrategy", "dockerStrategy", "customStrategy"):
        params = strategy.get(strategy_key)
        if params:
            return params.get("from")
    return None


def pod_template_labels(controller: dict[str, Any]) -> dict[str, str]:
    template = spec(controller).get("template") or {}
    return (template.get("metadata") or {}).get("labels") or {}


def add_all_exposed_edges(g: ResourceGraph) -> None:
    """Service -> Pod / ReplicationController / DeploymentConfig by label selector."""
    for svc in g.nodes(ResourceKind.SERVICE):
        selector = spec(svc.payload).get("selector")
        if not selector:
            continue
        for pod in g.nodes(ResourceKind.POD):
            if pod.namespace == svc.namespace and selector_matches(selector, labels(pod.payload)):
                g.add_edge(svc, pod, EdgeKind.EXPOSES)
        for kind in (ResourceKind.REPLICATION_CONTROLLER, ResourceKind.DEPLOYMENT_CONFIG):
            for controller in g.nodes(kind):
                if controller.namespace != svc.namespace:
                    continue
                if selector_matches(selector, pod_template_labels(controller.payload)):
                    g.add_edge(svc, controller, EdgeKind.EXPOSES)


def add_all_managed_by_rc_pod_edges(g: ResourceGraph) -> None:
    """ReplicationController -> Pod by owner reference or selector."""
    for rc in g.nodes(ResourceKind.REPLICATION_CONTROLLER):
        selector = spec(rc.payload).get("selector")
        for pod in g.nodes(ResourceKind.POD):
            if pod.namespace != rc.namespace:
                continue
            owned = any(
                ref.get("kind") == "ReplicationController" and ref.get("name") == rc.name
                for ref in metadata(pod.payload).get("ownerReferences") or []
            )
            if owned or selector_matches(selector, labels(pod.payload)):
                g.add_edge(rc, pod, EdgeKind.MANAGES)


def add_all_requested_service_account_edges(g: ResourceGraph) -> None:
    for pod in g.nodes(ResourceKind.POD):
        pod_spec = spec(pod.payload)
        sa_name = pod_spec.get("serviceAccountName") or pod_spec.get("serviceAccount")
        if not sa_name:
            continue
        sa = g.find(ResourceKind.SERVICE_ACCOUNT, pod.namespace, sa_name)
        if sa is not None:
            g.add_edge(pod, sa, EdgeKind.RUNS_AS)


def mounted_secret_names(pod: dict[str, Any]) -> list[str]:
    names = []
    for volume in spec(pod).get("volumes") or []:
        secret = volume.get("secret") or {}
        if secret.get("secretName"):
            names.append(secret["secretName"])
    return names


def add_all_mounted_secret_edges(g: ResourceGraph) -> None:
    for pod in g.nodes(ResourceKind.POD):
        for secret_name in mounted_secret_names(pod.payload):
            secret = g.find(ResourceKind.SECRET, pod.namespace, secret_name)
            if secret is not None:
                g.add_edge(pod, secret, EdgeKind.MOUNTS_SECRET)


def add_all_mountable_secret_edges(g: ResourceGraph) -> None:
    for sa in g.nodes(ResourceKind.SERVICE_ACCOUNT):
        for ref in sa.payload.get("secrets") or []:
            secret = g.find(ResourceKind.SECRET, sa.namespace, ref.get("name", ""))
            if secret is not None:
                g.add_edge(sa, secret, EdgeKind.MOUNTABLE_SECRET)


def add_all_image_stream_tag_edges(g: ResourceGraph) -> None:
    for tag in g.nodes(ResourceKind.IMAGE_STREAM_TAG):
        stream = g.find(ResourceKind.IMAGE_STREAM, tag.namespace, tag.name.split(":", 1)[0])
        if stream is not None:
            g.add_edge(tag, stream, EdgeKind.TAG_OF)


def add_all_input_output_edges(g: ResourceGraph) -> None:
    """ImageStreamTag -> BuildConfig for inputs, BuildConfig -> ImageStreamTag for outputs."""
    for bc in g.nodes(ResourceKind.BUILD_CONFIG):
        output = image_stream_tag_ref((spec(bc.payload).get("output") or {}).get("to"), bc.namespace)
        if output is not None:
            tag = g.find(ResourceKind.IMAGE_STREAM_TAG, *output)
            if tag is not None:
                g.add_edge(bc, tag, EdgeKind.BUILD_OUTPUT)
        source = image_stream_tag_ref(build_strategy_from(bc.payload), bc.namespace)
        if source is not None:
            tag = g.find(ResourceKind.IMAGE_STREAM_TAG, *source)
            if tag is not None:
                g.add_edge(tag, bc, EdgeKind.BUILD_INPUT)


def build_config_name_for(build: dict[str, Any]) -> str:
    return (
        labels(build).get(BUILD_CONFIG_LABEL)
        or annotations(build).get(BUILD_CONFIG_ANNOTATION)
        or (status(build).get("config") or {}).get("name", "")
    )


def add_all_build_edges(g: ResourceGraph) -> None:
    for build in g.nodes(ResourceKind.BUILD):
        bc_name = build_config_name_for(build.payload)
        if not bc_name:
            continue
        bc = g.find(ResourceKind.BUILD_CONFIG, build.namespace, bc_name)
        if bc is not None:
            g.add_edge(bc, build, EdgeKind.BUILDS)


def image_change_trigger_refs(dc: GraphNode) -> list[tuple[str, str]]:
    refs = []
    for trigger in spec(dc.payload).get("triggers") or []:
        if trigger.get("type") != "ImageChange":
            continue
        params = trigger.get("imageChangeParams") or {}
        ref = image_stream_tag_ref(params.get("from"), dc.namespace)
        if ref is not None:
            refs.append(ref)
    return refs


def add_all_trigger_edges(g: ResourceGraph) -> None:
    for dc in g.nodes(ResourceKind.DEPLOYMENT_CONFIG):
        for ref in image_change_trigger_refs(dc):
            tag = g.find(ResourceKind.IMAGE_STREAM_TAG, *ref)
            if tag is not None:
                g.add_edge(tag, dc, EdgeKind.TRIGGERS)


def add_all_deployment_edges(g: ResourceGraph) -> None:
    for rc in g.nodes(ResourceKind.REPLICATION_CONTROLLER):
        dc_name = annotations(rc.payload).get(DEPLOYMENT_CONFIG_ANNOTATION)
        if not dc_name:
            continue
        dc = g.find(ResourceKind.DEPLOYMENT_CONFIG, rc.namespace, dc_name)
        if dc is not None:
            g.add_edge(dc, rc, EdgeKind.DEPLOYS)


def route_backend_names(route: dict[str, Any]) -> list[str]:
    route_spec = spec(route)
    backends = [route_spec.get("to") or {}] + list(route_spec.get("alternateBackends") or [])
    return [b["name"] for b in backends if b.get("kind", "Service") == "Service" and b.get("name")]


def add_all_route_edges(g: ResourceGraph) -> None:
    for route in g.nodes(ResourceKind.ROUTE):
        for svc_name in route_backend_names(route.payload):
            svc = g.find(ResourceKind.SERVICE, route.namespace, svc_name)
            if svc is not None:
                g.add_edge(route, svc, EdgeKind.ROUTES_TO)


DEFAULT_EDGE_BUILDERS: tuple[EdgeBuilder, ...] = (
    add_all_exposed_edges,
    add_all_managed_by_rc_pod_edges,
    add_all_requested_service_account_edges,
    add_all_mountable_secret_edges,
    add_all_mounted_secret_edges,
    add_all_image_stream_tag_edges,
    add_all_input_output_edges,
    add_all_build_edges,
    add_all_trigger_edges,
    add_all_deployment_edges,
    add_all_route_edges,
)


def add_all_edges(g: ResourceGraph, builders: tuple[EdgeBuilder, ...] = DEFAULT_EDGE_BUILDERS) -> None:
    """Run every edge builder, in order, over a fully loaded graph."""
    for builder in builders:
        builder(g)
