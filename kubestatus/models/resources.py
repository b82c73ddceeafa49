"""Resource kinds and accessors for raw Kubernetes JSON payloads."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

Resource = dict[str, Any]


class ResourceKind(StrEnum):
    """Kinds of resources that take part in a status report."""

    SERVICE = "Service"
    REPLICATION_CONTROLLER = "ReplicationController"
    POD = "Pod"
    SERVICE_ACCOUNT = "ServiceAccount"
    SECRET = "Secret"
    BUILD_CONFIG = "BuildConfig"
    BUILD = "Build"
    IMAGE_STREAM = "ImageStream"
    IMAGE_STREAM_TAG = "ImageStreamTag"
    DEPLOYMENT_CONFIG = "DeploymentConfig"
    ROUTE = "Route"

    @property
    def abbreviation(self) -> str:
        """Short resource name used when naming nodes (``svc/frontend``)."""
        return _ABBREVIATIONS[self]

    @property
    def plural(self) -> str:
        """Plural API resource name (``replicationcontrollers``)."""
        return _PLURALS[self]

    @property
    def api_group(self) -> tuple[str, str] | None:
        """``(group, version)`` for OpenShift kinds; None for core kinds."""
        return _API_GROUPS.get(self)


_ABBREVIATIONS = {
    ResourceKind.SERVICE: "svc",
    ResourceKind.REPLICATION_CONTROLLER: "rc",
    ResourceKind.POD: "pod",
    ResourceKind.SERVICE_ACCOUNT: "sa",
    ResourceKind.SECRET: "secret",
    ResourceKind.BUILD_CONFIG: "bc",
    ResourceKind.BUILD: "build",
    ResourceKind.IMAGE_STREAM: "is",
    ResourceKind.IMAGE_STREAM_TAG: "istag",
    ResourceKind.DEPLOYMENT_CONFIG: "dc",
    ResourceKind.ROUTE: "route",
}

_PLURALS = {
    ResourceKind.SERVICE: "services",
    ResourceKind.REPLICATION_CONTROLLER: "replicationcontrollers",
    ResourceKind.POD: "pods",
    ResourceKind.SERVICE_ACCOUNT: "serviceaccounts",
    ResourceKind.SECRET: "secrets",
    ResourceKind.BUILD_CONFIG: "buildconfigs",
    ResourceKind.BUILD: "builds",
    ResourceKind.IMAGE_STREAM: "imagestreams",
    ResourceKind.IMAGE_STREAM_TAG: "imagestreamtags",
    ResourceKind.DEPLOYMENT_CONFIG: "deploymentconfigs",
    ResourceKind.ROUTE: "routes",
}

_API_GROUPS = {
    ResourceKind.BUILD_CONFIG: ("build.openshift.io", "v1"),
    ResourceKind.BUILD: ("build.openshift.io", "v1"),
    ResourceKind.IMAGE_STREAM: ("image.openshift.io", "v1"),
    ResourceKind.IMAGE_STREAM_TAG: ("image.openshift.io", "v1"),
    ResourceKind.DEPLOYMENT_CONFIG: ("apps.openshift.io", "v1"),
    ResourceKind.ROUTE: ("route.openshift.io", "v1"),
}

# Well-known labels and annotations
DEPLOYER_POD_FOR_LABEL = "openshift.io/deployer-pod-for.name"
BUILD_ANNOTATION = "openshift.io/build.name"
BUILD_CONFIG_LABEL = "openshift.io/build-config.name"
BUILD_CONFIG_ANNOTATION = "openshift.io/build-config.name"
DEPLOYMENT_CONFIG_ANNOTATION = "openshift.io/deployment-config.name"
DEPLOYMENT_VERSION_ANNOTATION = "openshift.io/deployment-config.latest-version"
DEPLOYMENT_PHASE_ANNOTATION = "openshift.io/deployment.phase"
DEPLOYMENT_REASON_ANNOTATION = "openshift.io/deployment.status-reason"


def metadata(obj: Resource) -> dict[str, Any]:
    return obj.get("metadata") or {}


def labels(obj: Resource) -> dict[str, str]:
    return metadata(obj).get("labels") or {}


def annotations(obj: Resource) -> dict[str, str]:
    return metadata(obj).get("annotations") or {}


def spec(obj: Resource) -> dict[str, Any]:
    return obj.get("spec") or {}


def status(obj: Resource) -> dict[str, Any]:
    return obj.get("status") or {}


def parse_timestamp(value: object) -> datetime | None:
    """Parse an RFC 3339 timestamp as emitted by the API server.

    Returns None for missing or unparseable values.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def creation_timestamp(obj: Resource) -> datetime | None:
    return parse_timestamp(metadata(obj).get("creationTimestamp"))


def pod_template_containers(obj: Resource) -> list[dict[str, Any]]:
    """Containers of a controller's pod template, or [] when there is no template."""
    template = spec(obj).get("template") or {}
    return (template.get("spec") or {}).get("containers") or []


def selector_matches(selector: dict[str, str] | None, target_labels: dict[str, str]) -> bool:
    """Equality-based label selector match. An empty selector matches nothing."""
    if not selector:
        return False
    return all(target_labels.get(key) == value for key, value in selector.items())


def build_timestamp(build: Resource | None) -> datetime | None:
    """Completion time, else start time, else creation time of a build."""
    if build is None:
        return None
    build_status = status(build)
    return (
        parse_timestamp(build_status.get("completionTimestamp"))
        or parse_timestamp(build_status.get("startTimestamp"))
        or creation_timestamp(build)
    )


def deployment_version(rc: Resource) -> int:
    try:
        return int(annotations(rc).get(DEPLOYMENT_VERSION_ANNOTATION, 0))
    except ValueError:
        return 0
