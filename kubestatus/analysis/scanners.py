"""Built-in analyzers.

Each analyzer is a pure function of the completed graph and a namer that
returns zero or more markers. None of them mutate the graph.
"""

from __future__ import annotations

from collections import deque
from datetime import UTC, datetime

from kubestatus.analysis.pipeline import MarkerScanner
from kubestatus.graph.edges import (
    build_strategy_from,
    image_change_trigger_refs,
    image_stream_tag_ref,
    mounted_secret_names,
    route_backend_names,
)
from kubestatus.graph.graph import ResourceGraph
from kubestatus.graph.models import EdgeKind, GraphNode
from kubestatus.graph.naming import Namer
from kubestatus.models.markers import Marker, Severity
from kubestatus.models.resources import ResourceKind, build_timestamp, pod_template_containers, spec, status

CRASH_LOOPING_POD = "CrashLoopingPod"
RESTARTING_POD = "RestartingPod"
DUELING_REPLICATION_CONTROLLERS = "DuelingReplicationControllers"
MISSING_SECRET = "MissingSecret"
MISSING_OUTPUT_IMAGE_STREAM = "MissingOutputImageStream"
CYCLIC_BUILD_CONFIG = "CyclicBuildConfig"
LATEST_BUILD_FAILED = "LatestBuildFailed"
TAG_NOT_AVAILABLE = "TagNotAvailable"
MISSING_IMAGE_STREAM = "MissingImageStream"
MISSING_IMAGE_STREAM_TAG = "MissingImageStreamTag"
MISSING_INPUT_IMAGE_STREAM = "MissingInputImageStream"
MISSING_READINESS_PROBE = "DeploymentConfigHasNoReadinessProbe"
MISSING_ROUTE_PORT = "MissingRoutePort"
MISSING_ROUTE_SERVICE = "MissingRouteService"
MISSING_TLS_TERMINATION = "MissingTLSTerminationType"
PATH_BASED_PASSTHROUGH = "PathBasedPassthroughRoute"
ROUTE_NOT_ADMITTED = "RouteNotAdmitted"
HOST_ALREADY_CLAIMED = "HostAlreadyClaimed"

RESTART_THRESHOLD = 5
_EPOCH = datetime.min.replace(tzinfo=UTC)


# ---------------------------------------------------------------------------
# Pods and controllers
# ---------------------------------------------------------------------------


def find_restarting_pods(g: ResourceGraph, f: Namer, logs_command_name: str) -> list[Marker]:
    markers = []
    for pod in g.nodes(ResourceKind.POD):
        for container in status(pod.payload).get("containerStatuses") or []:
            name = container.get("name", "")
            waiting = (container.get("state") or {}).get("waiting") or {}
            restarts = container.get("restartCount", 0)
            if waiting.get("reason") == "CrashLoopBackOff":
                markers.append(
                    Marker(
                        severity=Severity.ERROR,
                        key=CRASH_LOOPING_POD,
                        node=pod,
                        message=f"container {name!r} in {f.resource_name(pod)} is crash-looping",
                        suggestion=(
                            "The container is starting and exiting repeatedly. Check the container logs with\n"
                            f"  {logs_command_name} -p {pod.name} -c {name}"
                        ),
                    )
                )
            elif restarts > RESTART_THRESHOLD:
                markers.append(
                    Marker(
                        severity=Severity.WARNING,
                        key=RESTARTING_POD,
                        node=pod,
                        message=f"container {name!r} in {f.resource_name(pod)} has restarted {restarts} times",
                        suggestion=f"{logs_command_name} -p {pod.name} -c {name}",
                    )
                )
    return markers


def find_dueling_replication_controllers(g: ResourceGraph, f: Namer) -> list[Marker]:
    markers = []
    for pod in g.nodes(ResourceKind.POD):
        owners = g.predecessors(pod, EdgeKind.MANAGES, ResourceKind.REPLICATION_CONTROLLER)
        if len(owners) < 2:
            continue
        names = ", ".join(f.resource_name(rc) for rc in owners)
        markers.append(
            Marker(
                severity=Severity.WARNING,
                key=DUELING_REPLICATION_CONTROLLERS,
                node=pod,
                message=f"{f.resource_name(pod)} is being managed by multiple replication controllers: {names}",
                suggestion="Update the selectors of the replication controllers so that each pod matches exactly one.",
            )
        )
    return markers


def find_missing_secrets(g: ResourceGraph, f: Namer) -> list[Marker]:
    markers = []
    for pod in g.nodes(ResourceKind.POD):
        for secret_name in mounted_secret_names(pod.payload):
            if g.find(ResourceKind.SECRET, pod.namespace, secret_name) is not None:
                continue
            markers.append(
                Marker(
                    severity=Severity.WARNING,
                    key=MISSING_SECRET,
                    node=pod,
                    message=f"{f.resource_name(pod)} is attempting to mount a missing secret secret/{secret_name}",
                )
            )
    return markers


# ---------------------------------------------------------------------------
# Builds and images
# ---------------------------------------------------------------------------


def _stream_exists(g: ResourceGraph, namespace: str, tag_name: str) -> bool:
    return g.find(ResourceKind.IMAGE_STREAM, namespace, tag_name.split(":", 1)[0]) is not None


def _tag_label(f: Namer, g: ResourceGraph, namespace: str, tag_name: str) -> str:
    tag = g.find(ResourceKind.IMAGE_STREAM_TAG, namespace, tag_name)
    return f.resource_name(tag) if tag is not None else f"istag/{tag_name}"


def find_unpushable_build_configs(g: ResourceGraph, f: Namer, command_name: str) -> list[Marker]:
    markers = []
    for bc in g.nodes(ResourceKind.BUILD_CONFIG):
        ref = image_stream_tag_ref((spec(bc.payload).get("output") or {}).get("to"), bc.namespace)
        if ref is None or _stream_exists(g, *ref):
            continue
        namespace, tag_name = ref
        stream = tag_name.split(":", 1)[0]
        markers.append(
            Marker(
                severity=Severity.ERROR,
                key=MISSING_OUTPUT_IMAGE_STREAM,
                node=bc,
                message=(
                    f"{f.resource_name(bc)} is pushing to {_tag_label(f, g, namespace, tag_name)}, "
                    "but the image stream for that tag does not exist."
                ),
                suggestion=f"{command_name} create imagestream {stream} -n {namespace}",
            )
        )
    return markers


def find_missing_input_image_streams(g: ResourceGraph, f: Namer) -> list[Marker]:
    markers = []
    for bc in g.nodes(ResourceKind.BUILD_CONFIG):
        ref = image_stream_tag_ref(build_strategy_from(bc.payload), bc.namespace)
        if ref is None or _stream_exists(g, *ref):
            continue
        markers.append(
            Marker(
                severity=Severity.WARNING,
                key=MISSING_INPUT_IMAGE_STREAM,
                node=bc,
                message=(
                    f"{f.resource_name(bc)} builds from {_tag_label(f, g, *ref)}, "
                    "but the image stream for that tag does not exist."
                ),
            )
        )
    return markers


def _downstream_build_configs(g: ResourceGraph) -> dict[int, list[GraphNode]]:
    """For each build config, the build configs that build from a tag it pushes to."""
    downstream: dict[int, list[GraphNode]] = {}
    for bc in g.nodes(ResourceKind.BUILD_CONFIG):
        found: dict[int, GraphNode] = {}
        for tag in g.successors(bc, EdgeKind.BUILD_OUTPUT):
            for nxt in g.successors(tag, EdgeKind.BUILD_INPUT, ResourceKind.BUILD_CONFIG):
                found.setdefault(nxt.id, nxt)
        downstream[bc.id] = sorted(found.values(), key=lambda n: n.key)
    return downstream


def _strongly_connected(roots: list[GraphNode], downstream: dict[int, list[GraphNode]]) -> list[list[GraphNode]]:
    """Tarjan's strongly connected components, iterative so long build chains cannot exhaust the stack."""
    index: dict[int, int] = {}
    lowlink: dict[int, int] = {}
    stack: list[GraphNode] = []
    on_stack: set[int] = set()
    components: list[list[GraphNode]] = []

    def push(node: GraphNode) -> None:
        index[node.id] = lowlink[node.id] = len(index)
        stack.append(node)
        on_stack.add(node.id)

    for root in roots:
        if root.id in index:
            continue
        push(root)
        work = [(root, iter(downstream[root.id]))]
        while work:
            node, children = work[-1]
            child = next(children, None)
            if child is not None:
                if child.id not in index:
                    push(child)
                    work.append((child, iter(downstream[child.id])))
                elif child.id in on_stack:
                    lowlink[node.id] = min(lowlink[node.id], index[child.id])
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent.id] = min(lowlink[parent.id], lowlink[node.id])
            if lowlink[node.id] != index[node.id]:
                continue
            component: list[GraphNode] = []
            while True:
                member = stack.pop()
                on_stack.discard(member.id)
                component.append(member)
                if member.id == node.id:
                    break
            components.append(component)
    return components


def _cycle_through(start: GraphNode, members: set[int], downstream: dict[int, list[GraphNode]]) -> list[GraphNode]:
    """Shortest path from *start* back to itself that stays inside one component."""
    parents: dict[int, GraphNode] = {}
    seen = {start.id}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        for nxt in downstream[node.id]:
            if nxt.id == start.id:
                path = [node]
                while path[-1].id != start.id:
                    path.append(parents[path[-1].id])
                return path[::-1]
            if nxt.id in members and nxt.id not in seen:
                seen.add(nxt.id)
                parents[nxt.id] = node
                queue.append(nxt)
    return [start]


def _build_cycles(g: ResourceGraph) -> list[list[GraphNode]]:
    """One cycle per group of build configs that feed each other, starting at the group's smallest key.

    A group is a strongly connected component with more than one member, or a
    single build config that builds from its own output.
    """
    downstream = _downstream_build_configs(g)
    cycles = []
    for component in _strongly_connected(g.nodes(ResourceKind.BUILD_CONFIG), downstream):
        start = min(component, key=lambda n: n.key)
        if len(component) == 1 and start not in downstream[start.id]:
            continue
        cycles.append(_cycle_through(start, {n.id for n in component}, downstream))
    return sorted(cycles, key=lambda cycle: [n.key for n in cycle])


def find_circular_builds(g: ResourceGraph, f: Namer) -> list[Marker]:
    markers = []
    for cycle in _build_cycles(g):
        path = " -> ".join(f.resource_name(bc) for bc in [*cycle, cycle[0]])
        markers.append(
            Marker(
                severity=Severity.WARNING,
                key=CYCLIC_BUILD_CONFIG,
                node=cycle[0],
                message=f"Cycle detected in build configurations: {path}",
            )
        )
    return markers


def _latest_build(g: ResourceGraph, bc: GraphNode) -> GraphNode | None:
    builds = g.successors(bc, EdgeKind.BUILDS, ResourceKind.BUILD)
    return max(builds, key=lambda b: build_timestamp(b.payload) or _EPOCH, default=None)


def find_pending_tags(g: ResourceGraph, f: Namer, command_name: str) -> list[Marker]:
    """Tags that build configs push to but that do not exist in their image stream yet."""
    pushers: dict[tuple[str, str], list[GraphNode]] = {}
    for bc in g.nodes(ResourceKind.BUILD_CONFIG):
        ref = image_stream_tag_ref((spec(bc.payload).get("output") or {}).get("to"), bc.namespace)
        if ref is None or not _stream_exists(g, *ref) or g.find(ResourceKind.IMAGE_STREAM_TAG, *ref) is not None:
            continue
        pushers.setdefault(ref, []).append(bc)

    markers = []
    for (namespace, tag_name), bcs in sorted(pushers.items()):
        build_found = False
        for bc in bcs:
            latest = _latest_build(g, bc)
            if latest is None:
                continue
            build_found = True
            # new, pending and running builds may still produce the tag
            if status(latest.payload).get("phase") == "Failed":
                markers.append(
                    Marker(
                        severity=Severity.ERROR,
                        key=LATEST_BUILD_FAILED,
                        node=latest,
                        message=f"{f.resource_name(latest)} has failed.",
                        suggestion=f"Inspect the build failure with '{command_name} logs -f {f.resource_name(bc)}'",
                    )
                )
        if not build_found:
            markers.append(
                Marker(
                    severity=Severity.WARNING,
                    key=TAG_NOT_AVAILABLE,
                    node=bcs[0],
                    message=f"istag/{tag_name} needs to be imported or created by a build.",
                    suggestion=f"{command_name} start-build {bcs[0].name} -n {namespace}",
                )
            )
    return markers


# ---------------------------------------------------------------------------
# Deployment configs
# ---------------------------------------------------------------------------


def find_deployment_config_trigger_errors(g: ResourceGraph, f: Namer, command_name: str) -> list[Marker]:
    markers = []
    for dc in g.nodes(ResourceKind.DEPLOYMENT_CONFIG):
        for namespace, tag_name in image_change_trigger_refs(dc):
            stream = tag_name.split(":", 1)[0]
            if not _stream_exists(g, namespace, tag_name):
                markers.append(
                    Marker(
                        severity=Severity.ERROR,
                        key=MISSING_IMAGE_STREAM,
                        node=dc,
                        message=(
                            f"{f.resource_name(dc)} is deploying from istag/{tag_name}, "
                            f"but the image stream is/{stream} does not exist."
                        ),
                        suggestion=f"{command_name} create imagestream {stream} -n {namespace}",
                    )
                )
            elif g.find(ResourceKind.IMAGE_STREAM_TAG, namespace, tag_name) is None:
                markers.append(
                    Marker(
                        severity=Severity.WARNING,
                        key=MISSING_IMAGE_STREAM_TAG,
                        node=dc,
                        message=(
                            f"{f.resource_name(dc)} is deploying from istag/{tag_name}, "
                            "but the tag does not exist yet."
                        ),
                        suggestion=f"{command_name} tag <image> {namespace}/{tag_name}",
                    )
                )
    return markers


def find_deployment_config_readiness_warnings(g: ResourceGraph, f: Namer, set_probe_command_name: str) -> list[Marker]:
    markers = []
    for dc in g.nodes(ResourceKind.DEPLOYMENT_CONFIG):
        containers = pod_template_containers(dc.payload)
        if not containers or any(c.get("readinessProbe") for c in containers):
            continue
        name = f.resource_name(dc)
        markers.append(
            Marker(
                severity=Severity.WARNING,
                key=MISSING_READINESS_PROBE,
                node=dc,
                message=(
                    f"{name} has no readiness probe to verify pods are ready to accept traffic "
                    "or ensure deployment is successful."
                ),
                suggestion=f"{set_probe_command_name} {name} --readiness ...",
            )
        )
    return markers


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _service_port_matches(service_port: dict, target: object) -> bool:
    return target in (service_port.get("targetPort"), service_port.get("port"), service_port.get("name"))


def find_port_mapping_issues(g: ResourceGraph, f: Namer) -> list[Marker]:
    markers = []
    for route in g.nodes(ResourceKind.ROUTE):
        for svc_name in route_backend_names(route.payload):
            if g.find(ResourceKind.SERVICE, route.namespace, svc_name) is None:
                markers.append(
                    Marker(
                        severity=Severity.WARNING,
                        key=MISSING_ROUTE_SERVICE,
                        node=route,
                        message=(
                            f"{f.resource_name(route)} is supposed to route traffic to svc/{svc_name} "
                            f"but svc/{svc_name} doesn't exist."
                        ),
                    )
                )

        target = (spec(route.payload).get("port") or {}).get("targetPort")
        if target in (None, ""):
            continue
        for svc in g.successors(route, EdgeKind.ROUTES_TO, ResourceKind.SERVICE):
            if any(_service_port_matches(p, target) for p in spec(svc.payload).get("ports") or []):
                continue
            markers.append(
                Marker(
                    severity=Severity.ERROR,
                    key=MISSING_ROUTE_PORT,
                    node=route,
                    message=(
                        f"{f.resource_name(route)} has a port specified ({target}) that does not match "
                        f"any port of {f.resource_name(svc)}"
                    ),
                )
            )
    return markers


def find_missing_tls_termination(g: ResourceGraph, f: Namer, command_name: str) -> list[Marker]:
    markers = []
    for route in g.nodes(ResourceKind.ROUTE):
        tls = spec(route.payload).get("tls")
        if tls is None or tls.get("termination"):
            continue
        name = f.resource_name(route)
        markers.append(
            Marker(
                severity=Severity.ERROR,
                key=MISSING_TLS_TERMINATION,
                node=route,
                message=f"{name} has a TLS configuration but no termination type specified.",
                suggestion=f"""{command_name} patch {name} -p '{{"spec":{{"tls":{{"termination":"<type>"}}}}}}'""",
            )
        )
    return markers


def find_path_based_passthrough_routes(g: ResourceGraph, f: Namer) -> list[Marker]:
    markers = []
    for route in g.nodes(ResourceKind.ROUTE):
        route_spec = spec(route.payload)
        if (route_spec.get("tls") or {}).get("termination") != "passthrough" or not route_spec.get("path"):
            continue
        markers.append(
            Marker(
                severity=Severity.ERROR,
                key=PATH_BASED_PASSTHROUGH,
                node=route,
                message=(
                    f"{f.resource_name(route)} is a passthrough route with a path set; "
                    "the router cannot inspect encrypted traffic, so path-based routing is ignored."
                ),
                suggestion="Remove the path from the route, or switch to edge or reencrypt termination.",
            )
        )
    return markers


def find_route_admission_failures(g: ResourceGraph, f: Namer) -> list[Marker]:
    markers = []
    for route in g.nodes(ResourceKind.ROUTE):
        for ingress in status(route.payload).get("ingress") or []:
            for condition in ingress.get("conditions") or []:
                if condition.get("type") != "Admitted" or condition.get("status") != "False":
                    continue
                reason = condition.get("reason", "")
                severity = Severity.WARNING if reason == HOST_ALREADY_CLAIMED else Severity.ERROR
                router = ingress.get("routerName", "")
                detail = condition.get("message") or reason
                markers.append(
                    Marker(
                        severity=severity,
                        key=ROUTE_NOT_ADMITTED,
                        node=route,
                        message=f"{f.resource_name(route)} was not accepted by router {router!r}: {detail}",
                    )
                )
    return markers


def default_marker_scanners(
    command_name: str = "oc",
    logs_command_name: str = "oc logs",
    set_probe_command_name: str = "oc set probe",
) -> tuple[MarkerScanner, ...]:
    """The ordered analyzer list used by the status describer."""
    return (
        lambda g, f: find_restarting_pods(g, f, logs_command_name),
        find_dueling_replication_controllers,
        find_missing_secrets,
        lambda g, f: find_unpushable_build_configs(g, f, command_name),
        find_circular_builds,
        lambda g, f: find_pending_tags(g, f, command_name),
        lambda g, f: find_deployment_config_trigger_errors(g, f, command_name),
        find_missing_input_image_streams,
        lambda g, f: find_deployment_config_readiness_warnings(g, f, set_probe_command_name),
        find_port_mapping_issues,
        lambda g, f: find_missing_tls_termination(g, f, command_name),
        find_path_based_passthrough_routes,
        find_route_admission_failures,
    )
