"""Small text-formatting helpers shared by the status describer."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from kubestatus.models.resources import Resource, spec, status

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def human_duration(seconds: float) -> str:
    """Coarse, human readable rendering of a duration."""
    if seconds < 1:
        return "Less than a second"
    if seconds < 2:
        return "1 second"
    if seconds < 60:
        return f"{int(seconds)} seconds"
    minutes = int(seconds / 60)
    if minutes == 1:
        return "About a minute"
    if minutes < 46:
        return f"{minutes} minutes"
    hours = int(seconds / 3600 + 0.5)
    if hours == 1:
        return "About an hour"
    if hours < 48:
        return f"{hours} hours"
    if hours < 24 * 7 * 2:
        return f"{hours // 24} days"
    if hours < 24 * 30 * 2:
        return f"{hours // 24 // 7} weeks"
    if hours < 24 * 365 * 2:
        return f"{hours // 24 // 30} months"
    return f"{int(seconds / 3600) // 24 // 365} years"


def format_relative_time(t: datetime, now: datetime | None = None) -> str:
    """Duration between *t* and now, e.g. ``5 minutes``; callers append "ago"."""
    now = now or utcnow()
    return human_duration((now - t).total_seconds())


# ---------------------------------------------------------------------------
# Exposed route ordering
# ---------------------------------------------------------------------------


def _host_segment_length(s: str) -> int:
    index = s.find(" ")
    return len(s) if index == -1 else index


def exposed_route_key(route: str) -> tuple[int, int, str]:
    """Sort key: ``https://`` first, then ``http://``, then anything else.

    Within a scheme, shorter text up to the first space (the host) sorts
    first, then plain string order. Strings without a known scheme are
    ordered by plain string order only.
    """
    if route.startswith("https://"):
        rest = route[len("https://") :]
        return (0, _host_segment_length(rest), rest)
    if route.startswith("http://"):
        rest = route[len("http://") :]
        return (1, _host_segment_length(rest), rest)
    return (2, 0, route)


def sort_exposed_routes(routes: Iterable[str]) -> list[str]:
    return sorted(routes, key=exposed_route_key)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def target_port_string(port: dict[str, Any]) -> str:
    target = port.get("targetPort")
    if target is None or target == "":
        return "0"
    return str(target)


def port_or_node_port(service_spec: dict[str, Any], port: dict[str, Any]) -> str:
    if service_spec.get("type") != "NodePort":
        return str(port.get("port", 0))
    if not port.get("nodePort"):
        return "<initializing>"
    return str(port["nodePort"])


def describe_service_ports(service_spec: dict[str, Any]) -> str:
    ports = service_spec.get("ports") or []
    headless = service_spec.get("clusterIP") == "None"

    if not ports:
        return " no ports"

    if len(ports) == 1:
        port = port_or_node_port(service_spec, ports[0])
        target = target_port_string(ports[0])
        if target == "0" or headless or port == target:
            return f":{port}"
        return f":{port} -> {target}"

    pairs = []
    for entry in ports:
        external = port_or_node_port(service_spec, entry)
        target = target_port_string(entry)
        if target == "0" or headless:
            pairs.append(external)
        elif entry.get("port") == entry.get("targetPort"):
            pairs.append(target)
        else:
            pairs.append(f"{external}->{target}")
    return " ports " + ", ".join(pairs)


# ---------------------------------------------------------------------------
# Replica summaries
# ---------------------------------------------------------------------------


def describe_pod_summary(rc: Resource, include_empty: bool) -> str:
    actual = status(rc).get("replicas", 0)
    requested = spec(rc).get("replicas", 0)
    if actual == requested:
        if actual == 0:
            return "0 pods" if include_empty else ""
        if actual > 1:
            return f"{actual} pods"
        return "1 pod"
    return f"{actual}/{requested} pods"


def describe_pod_summary_inline(rc: Resource, include_empty: bool) -> str:
    summary = describe_pod_summary(rc, include_empty)
    if not summary:
        return summary
    actual = status(rc).get("replicas", 0)
    desired = spec(rc).get("replicas", 0)
    change = ""
    if desired < actual:
        change = f" reducing to {desired}"
    elif desired > actual:
        change = f" growing to {desired}"
    return f" - {summary}{change}"


def indent_lines(indent: str, lines: Iterable[str]) -> list[str]:
    return [indent + line for line in lines]
