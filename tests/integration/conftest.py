"""Shared fixtures for kubestatus integration tests.

Provides a realistic project (a routed web front end with its build and
deployment history, a broken standalone build, a crash-looping debug pod)
served by an in-memory lister so the full describe pipeline runs without
a cluster.
"""

from __future__ import annotations

import pytest

from kubestatus.describe.status import ProjectStatusDescriber
from kubestatus.errors import ForbiddenError
from kubestatus.models.resources import Resource, ResourceKind
from tests.factories import (
    NOW,
    FakeLister,
    make_bc,
    make_build,
    make_builder_pod,
    make_dc,
    make_deployer_pod,
    make_image_stream,
    make_pod,
    make_rc,
    make_route,
    make_service,
)

SERVER = "https://api.example.com:6443"


def project_items() -> dict[ResourceKind, list[Resource]]:
    """Every resource of the sample project, keyed by kind."""
    frontend_2_labels = {"app": "frontend", "deployment": "frontend-2"}
    crash_status = [{"name": "debug", "restartCount": 12, "state": {"waiting": {"reason": "CrashLoopBackOff"}}}]
    return {
        ResourceKind.SERVICE: [make_service("frontend")],
        ResourceKind.ROUTE: [
            make_route(
                "frontend",
                "frontend",
                host="www.example.com",
                tls={"termination": "edge", "insecureEdgeTerminationPolicy": "Redirect"},
            )
        ],
        ResourceKind.DEPLOYMENT_CONFIG: [
            make_dc(
                "frontend",
                template_labels={"app": "frontend"},
                images=("172.30.1.1:5000/myproject/frontend@sha256:abc",),
                trigger_tag="frontend:latest",
                latest_version=2,
            )
        ],
        ResourceKind.REPLICATION_CONTROLLER: [
            make_rc(
                "frontend-2",
                template_labels=frontend_2_labels,
                replicas=2,
                dc="frontend",
                version=2,
                phase="Complete",
                created_minutes_ago=180,
            ),
            make_rc(
                "frontend-1",
                template_labels={"app": "frontend", "deployment": "frontend-1"},
                replicas=0,
                dc="frontend",
                version=1,
                phase="Complete",
                created_minutes_ago=24 * 60,
            ),
        ],
        ResourceKind.POD: [
            make_pod("frontend-2-abcde", labels=frontend_2_labels, owner_rc="frontend-2"),
            make_pod("frontend-2-fghij", labels=frontend_2_labels, owner_rc="frontend-2"),
            make_deployer_pod("frontend-2-deploy", "frontend-2"),
            make_builder_pod("frontend-3-build", "frontend-3"),
            make_pod("debug", images=("busybox:1.36",), container_statuses=crash_status),
        ],
        ResourceKind.IMAGE_STREAM: [make_image_stream("frontend")],
        ResourceKind.BUILD_CONFIG: [
            make_bc(
                "frontend",
                git_uri="https://git.example.com/fe.git",
                output_tag="frontend:latest",
                from_ref={"kind": "DockerImage", "name": "nodejs:18"},
            ),
            make_bc(
                "worker",
                strategy="Docker",
                git_uri="https://git.example.com/worker.git",
                output_tag="worker:latest",
            ),
        ],
        ResourceKind.BUILD: [
            make_build("frontend-3", "frontend", "Running", started_minutes_ago=2, output_tag="frontend:latest"),
            make_build(
                "frontend-2",
                "frontend",
                "Complete",
                started_minutes_ago=205,
                completed_minutes_ago=200,
                output_tag="frontend:latest",
            ),
            make_build(
                "worker-1",
                "worker",
                "Failed",
                started_minutes_ago=32,
                completed_minutes_ago=30,
                output_tag="worker:latest",
            ),
        ],
    }


@pytest.fixture
def project_lister() -> FakeLister:
    """Lister serving the sample project, with secrets forbidden."""
    return FakeLister(
        project_items(),
        failures={ResourceKind.SECRET: ForbiddenError(ResourceKind.SECRET)},
    )


@pytest.fixture
def describer(project_lister: FakeLister) -> ProjectStatusDescriber:
    return ProjectStatusDescriber(lister=project_lister, server=SERVER, clock=lambda: NOW)


@pytest.fixture
def verbose_describer(project_lister: FakeLister) -> ProjectStatusDescriber:
    return ProjectStatusDescriber(lister=project_lister, server=SERVER, suggest=True, clock=lambda: NOW)
