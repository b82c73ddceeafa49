"""Lines describing services, routes, deployments, controllers and pods."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from kubestatus.describe.builds import describe_additional_build_detail, describe_image_in_pipeline
from kubestatus.describe.formatting import (
    describe_pod_summary_inline,
    describe_service_ports,
    format_relative_time,
    indent_lines,
)
from kubestatus.graph.models import GraphNode
from kubestatus.graph.naming import NamespacedFormatter, Namer
from kubestatus.graph.views import DeploymentPipeline
from kubestatus.models.resources import (
    DEPLOYMENT_PHASE_ANNOTATION,
    DEPLOYMENT_REASON_ANNOTATION,
    Resource,
    annotations,
    creation_timestamp,
    deployment_version,
    pod_template_containers,
    spec,
    status,
)

_MAX_LINE_WIDTH = 120


def _time_ago(obj: Resource, now: datetime | None) -> str:
    created = creation_timestamp(obj)
    if created is None:
        return "<unknown>"
    return format_relative_time(created, now).lower()


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _admitted_condition(ingress: dict[str, Any]) -> dict[str, Any] | None:
    for condition in ingress.get("conditions") or []:
        if condition.get("type") == "Admitted":
            return condition
    return None


def extract_route_info(route: Resource) -> tuple[bool, list[str], list[str]]:
    """Return ``(requested_host_admitted, other_admitted_hosts, rejection_reasons)``."""
    requested = False
    other: list[str] = []
    reasons: set[str] = set()
    host = spec(route).get("host", "")
    for ingress in status(route).get("ingress") or []:
        condition = _admitted_condition(ingress)
        if condition is not None and condition.get("status") == "False":
            reasons.add(condition.get("reason", ""))
        elif ingress.get("host") == host:
            requested = True
        else:
            other.append(ingress.get("host", ""))
    return requested, other, sorted(reasons)


def describe_route_exposed(host: str, route: Resource, errors: bool) -> str:
    trailer = " (!)" if errors else ""
    tls = spec(route).get("tls")
    termination = (tls or {}).get("termination", "")
    insecure = (tls or {}).get("insecureEdgeTerminationPolicy", "")

    if tls is None:
        prefix = f"http://{host}"
    elif termination == "passthrough":
        prefix = f"https://{host} (passthrough)"
    elif termination == "reencrypt":
        prefix = f"https://{host} (reencrypt)"
    elif termination != "edge":
        prefix = f"https://{host}"
    elif insecure == "Redirect":
        prefix = f"https://{host} (redirects)"
    elif insecure == "Allow":
        prefix = f"https://{host} (and http)"
    else:
        prefix = f"https://{host}"

    target_port = (spec(route).get("port") or {}).get("targetPort")
    if target_port not in (None, ""):
        return f"{prefix} to pod port {target_port}{trailer}"
    return f"{prefix}{trailer}"


def describe_route_in_service_group(f: Namer, route: GraphNode) -> list[str]:
    requested, other, errors = extract_route_info(route.payload)
    host = spec(route.payload).get("host", "")
    lines = []
    if requested:
        lines.append(describe_route_exposed(host, route.payload, bool(errors)))
    for other_host in other:
        lines.append(describe_route_exposed(other_host, route.payload, bool(errors)))
    if lines:
        return lines

    if errors:
        # the router rejected the route
        return [f"{f.resource_name(route)} not accepted: {errors[0]}"]
    if not host:
        return [f"{f.resource_name(route)} has no host set"]
    if not status(route.payload).get("ingress"):
        # host set but no ingress status: a legacy router
        return [describe_route_exposed(host, route.payload, False)]
    return [f"exposed as {host} by {f.resource_name(route)}"]


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def describe_service_in_service_group(f: Namer, svc: GraphNode, exposed: list[str]) -> list[str]:
    service_spec = spec(svc.payload)
    ip = service_spec.get("clusterIP", "")
    port = describe_service_ports(service_spec)
    name = f.resource_name(svc)

    if len(exposed) > 1:
        return [f"{exposed[0]} ({name})", *exposed[1:]]
    if len(exposed) == 1:
        return [f"{exposed[0]} ({name})"]
    if service_spec.get("type") == "NodePort":
        return [f"{name} (all nodes){port}"]
    if ip == "None":
        return [f"{name} (headless){port}"]
    if not ip:
        return [f"{name} <initializing>{port}"]
    return [f"{name} - {ip}{port}"]


# ---------------------------------------------------------------------------
# Controllers and pods
# ---------------------------------------------------------------------------


def _container_images(containers: list[dict[str, Any]]) -> str:
    return ", ".join(c.get("image", "") for c in containers)


def describe_rc_status(rc: Resource, now: datetime | None = None) -> str:
    name = (rc.get("metadata") or {}).get("name", "")
    return f"rc/{name} created {_time_ago(rc, now)} ago{describe_pod_summary_inline(rc, False)}"


def describe_rc_in_service_group(f: Namer, rc: GraphNode, now: datetime | None = None) -> list[str]:
    if not spec(rc.payload).get("template"):
        return []
    images = _container_images(pod_template_containers(rc.payload))
    return [f"{f.resource_name(rc)} runs {images}", describe_rc_status(rc.payload, now)]


def describe_pod(f: Namer, pod: GraphNode) -> list[str]:
    images = _container_images(spec(pod.payload).get("containers") or [])
    return [f"{f.resource_name(pod)} runs {images}"]


describe_pod_in_service_group = describe_pod
describe_monopod = describe_pod


# ---------------------------------------------------------------------------
# Deployment configs
# ---------------------------------------------------------------------------


def describe_deployment_config_trigger(dc: Resource) -> str:
    if not spec(dc).get("triggers"):
        return "(manual)"
    return ""


def describe_deployment_config_triggers(dc: Resource) -> tuple[str, bool]:
    """Return ``(when, automatic)`` for the config's triggers."""
    types = {t.get("type") for t in spec(dc).get("triggers") or []}
    has_config, has_image = "ConfigChange" in types, "ImageChange" in types
    if has_config and has_image:
        return "on image or update", True
    if has_config:
        return "on update", True
    if has_image:
        return "on image", True
    return "for manual", False


def describe_deployment_status(rc: Resource, first: bool, test: bool, now: datetime | None = None) -> str:
    time_at = _time_ago(rc, now)
    phase = annotations(rc).get(DEPLOYMENT_PHASE_ANNOTATION, "")
    version = deployment_version(rc)

    if phase == "Failed":
        reason = annotations(rc).get(DEPLOYMENT_REASON_ANNOTATION, "")
        if reason:
            reason = f": {reason}"
        return f"deployment #{version} failed {time_at} ago{reason}{describe_pod_summary_inline(rc, False)}"
    if phase == "Complete":
        if test:
            return f"test deployment #{version} deployed {time_at} ago"
        return f"deployment #{version} deployed {time_at} ago{describe_pod_summary_inline(rc, first)}"
    if phase == "Running":
        kind = "test deployment" if test else "deployment"
        return f"{kind} #{version} running for {time_at}{describe_pod_summary_inline(rc, False)}"
    return f"deployment #{version} {phase.lower()} {time_at} ago{describe_pod_summary_inline(rc, False)}"


def describe_deployments(
    dc: GraphNode,
    active: GraphNode | None,
    inactive: tuple[GraphNode, ...],
    count: int,
    now: datetime | None = None,
) -> list[str]:
    """Status lines for up to *count* deployments, newest first.

    A *count* of -1 lists deployments until the first complete one.
    """
    out = []
    to_print = list(inactive)
    if active is None:
        on, auto = describe_deployment_config_triggers(dc.payload)
        latest_version = status(dc.payload).get("latestVersion", 0)
        if latest_version == 0:
            out.append(f"deployment #1 waiting {on}")
        elif auto:
            out.append(f"deployment #{latest_version} pending {on}")
    else:
        to_print = [active, *inactive]

    test = bool(spec(dc.payload).get("test"))
    for i, deployment in enumerate(to_print):
        out.append(describe_deployment_status(deployment.payload, i == 0, test, now))
        if count == -1:
            if annotations(deployment.payload).get(DEPLOYMENT_PHASE_ANNOTATION) == "Complete":
                return out
        elif i + 1 >= count:
            return out
    return out


def describe_deployment_in_service_group(
    f: Namer, pipeline: DeploymentPipeline, now: datetime | None = None
) -> list[str]:
    dc = pipeline.deployment
    local = NamespacedFormatter(current_namespace=dc.namespace)
    include_last_pass = pipeline.active_deployment is None
    verb = "test deploys" if spec(dc.payload).get("test") else "deploys"
    trigger = describe_deployment_config_trigger(dc.payload)
    deployments = describe_deployments(dc, pipeline.active_deployment, pipeline.inactive_deployments, 3, now)

    if len(pipeline.images) <= 1:
        if pipeline.images:
            image = pipeline.images[0]
            subject = describe_image_in_pipeline(local, image, dc.namespace)
            build_detail = describe_additional_build_detail(image, include_last_pass, now)
        else:
            subject = _container_images(pod_template_containers(dc.payload))
            build_detail = []
        header = " ".join(part for part in (f.resource_name(dc), verb, subject, trigger) if part)
        lines = [header]
        if len(header) > _MAX_LINE_WIDTH and " <- " in header:
            head, tail = header.split(" <- ", 1)
            lines = [head + " <-", tail]
        lines.extend(indent_lines("  ", build_detail))
        lines.extend(deployments)
        return lines

    lines = [" ".join(part for part in (f.resource_name(dc), verb, trigger) if part)]
    for image in pipeline.images:
        lines.append(describe_image_in_pipeline(local, image, dc.namespace))
        lines.extend(indent_lines("  ", describe_additional_build_detail(image, include_last_pass, now)))
    lines.extend(deployments)
    return lines
