"""Tests for group views and the coverage partitioner."""

from __future__ import annotations

import random

from hypothesis import given, settings
from hypothesis import strategies as st

from kubestatus.graph.views import (
    Partition,
    deployment_pipeline,
    filter_boring_pods,
    is_boring_pod,
    partition,
)
from kubestatus.models.resources import Resource, ResourceKind
from tests.factories import (
    NS,
    build_graph,
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


def _names(nodes) -> list[str]:
    return [n.name for n in nodes]


def _all_views(parts: Partition) -> list:
    return [
        *parts.service_groups,
        *parts.deployment_pipelines,
        *parts.replication_controllers,
        *parts.image_pipelines,
        *parts.monopods,
        *parts.boring_pods,
    ]


def _mixed_project() -> dict[ResourceKind, list[Resource]]:
    return {
        ResourceKind.SERVICE: [
            make_service("web"),
            make_service("api"),
            make_service("shared-a", selector={"tier": "shared"}),
            make_service("shared-b", selector={"tier": "shared"}),
        ],
        ResourceKind.ROUTE: [make_route("web", "web", host="web.example.com")],
        ResourceKind.DEPLOYMENT_CONFIG: [
            make_dc("web", template_labels={"app": "web"}, trigger_tag="web:latest", latest_version=2),
            make_dc("batch", template_labels={"app": "batch"}),
        ],
        ResourceKind.REPLICATION_CONTROLLER: [
            make_rc("web-1", template_labels={"app": "web", "v": "1"}, dc="web", version=1),
            make_rc("web-2", template_labels={"app": "web", "v": "2"}, dc="web", version=2),
            make_rc("legacy", template_labels={"app": "legacy"}),
        ],
        ResourceKind.POD: [
            make_pod("web-2-a", labels={"app": "web", "v": "2"}),
            make_pod("legacy-a", labels={"app": "legacy"}),
            make_pod("api-a", labels={"app": "api"}),
            make_pod("shared-a", labels={"tier": "shared"}),
            make_pod("loner"),
            make_pod("done", phase="Succeeded"),
            make_deployer_pod("web-2-deploy", "web-2"),
            make_builder_pod("web-1-build", "web-1"),
        ],
        ResourceKind.IMAGE_STREAM: [make_image_stream("web"), make_image_stream("tools")],
        ResourceKind.BUILD_CONFIG: [
            make_bc("web", output_tag="web:latest"),
            make_bc("tools", output_tag="tools:latest"),
        ],
        ResourceKind.BUILD: [
            make_build("web-1", "web", "Complete", completed_minutes_ago=10),
            make_build("tools-1", "tools", "Failed", completed_minutes_ago=5),
        ],
    }


class TestPartitionPasses:
    def test_each_pass_gets_only_unclaimed_roots(self) -> None:
        parts = partition(build_graph(_mixed_project()))

        assert _names(g.service for g in parts.service_groups) == ["api", "shared-a", "shared-b", "web"]
        assert _names(p.deployment for p in parts.deployment_pipelines) == ["batch"]
        assert _names(v.rc for v in parts.replication_controllers) == ["legacy"]
        assert _names(p.build_config for p in parts.image_pipelines) == ["tools"]
        assert _names(v.pod for v in parts.monopods) == ["loner"]
        assert sorted(_names(v.pod for v in parts.boring_pods)) == ["done", "web-1-build", "web-2-deploy"]

    def test_service_group_nests_deployment_and_image_pipeline(self) -> None:
        parts = partition(build_graph(_mixed_project()))
        web = next(g for g in parts.service_groups if g.service.name == "web")

        assert _names(web.exposing_routes) == ["web"]
        (pipeline,) = web.deployment_pipelines
        assert pipeline.active_deployment.name == "web-2"
        assert _names(pipeline.inactive_deployments) == ["web-1"]
        (image,) = pipeline.images
        assert image.build_config.name == "web"
        assert image.last_successful_build.name == "web-1"

    def test_nested_members_are_not_listed_standalone(self) -> None:
        g = build_graph(_mixed_project())
        parts = partition(g)
        web = next(grp for grp in parts.service_groups if grp.service.name == "web")

        assert _names(web.fulfilling_rcs) == ["web-1", "web-2"]
        assert web.standalone_rcs(g) == []
        assert _names(web.fulfilling_pods) == ["web-2-a"]
        assert web.standalone_pods(g) == []

    def test_shared_pod_is_owned_by_first_service_only(self) -> None:
        parts = partition(build_graph(_mixed_project()))
        groups = {grp.service.name: grp for grp in parts.service_groups}

        assert _names(groups["shared-a"].fulfilling_pods) == ["shared-a"]
        assert groups["shared-b"].fulfilling_pods == ()

    def test_legacy_rc_owns_its_pods(self) -> None:
        parts = partition(build_graph(_mixed_project()))
        (legacy,) = parts.replication_controllers
        assert _names(legacy.owned_pods) == ["legacy-a"]
        assert "legacy-a" not in _names(v.pod for v in parts.monopods)

    def test_groups_are_disjoint_and_cover_everything_claimed(self) -> None:
        parts = partition(build_graph(_mixed_project()))
        views = _all_views(parts)

        total = sum(len(v.covered) for v in views)
        union = frozenset().union(*(v.covered for v in views))
        assert total == len(union)
        assert union == parts.covered

    def test_empty_graph(self) -> None:
        parts = partition(build_graph({}))
        assert parts.is_empty
        assert parts.covered == frozenset()

    def test_only_pods_still_counts_as_empty(self) -> None:
        parts = partition(build_graph({ResourceKind.POD: [make_pod("loner")]}))
        assert parts.is_empty
        assert _names(v.pod for v in parts.monopods) == ["loner"]


class TestDeploymentPipeline:
    def test_no_active_deployment_when_latest_missing(self) -> None:
        g = build_graph(
            {
                ResourceKind.DEPLOYMENT_CONFIG: [make_dc("web", latest_version=3)],
                ResourceKind.REPLICATION_CONTROLLER: [
                    make_rc("web-1", dc="web", version=1),
                    make_rc("web-2", dc="web", version=2),
                ],
            }
        )
        pipeline = deployment_pipeline(g, g.find(ResourceKind.DEPLOYMENT_CONFIG, NS, "web"), set())

        assert pipeline.active_deployment is None
        assert _names(pipeline.inactive_deployments) == ["web-2", "web-1"]

    def test_unresolved_output_stream(self) -> None:
        g = build_graph({ResourceKind.BUILD_CONFIG: [make_bc("app", output_tag="nowhere:latest")]})
        (image,) = partition(g).image_pipelines
        assert image.destination_resolved is False
        assert image.image.node is None


class TestBoringPods:
    def test_classification(self) -> None:
        g = build_graph(
            {
                ResourceKind.POD: [
                    make_deployer_pod("d", "web-1"),
                    make_builder_pod("b", "web-1"),
                    make_pod("failed", phase="Failed"),
                    make_pod("pending", phase="Pending"),
                ]
            }
        )
        boring = {pod.name: is_boring_pod(pod) for pod in g.nodes(ResourceKind.POD)}
        assert boring == {"b": True, "d": True, "failed": True, "pending": False}

    def test_filter_preserves_order(self) -> None:
        g = build_graph({ResourceKind.POD: [make_pod("c"), make_pod("a", phase="Succeeded"), make_pod("b")]})
        parts = partition(g)
        monopods, boring = filter_boring_pods(parts.monopods + parts.boring_pods)
        assert _names(v.pod for v in monopods) == ["b", "c"]
        assert _names(v.pod for v in boring) == ["a"]


def _shape(parts: Partition) -> list[tuple[str, ...]]:
    """Order-sensitive summary of a partition by node identity."""
    return [
        tuple(g.service.name for g in parts.service_groups),
        tuple(sorted(n.name for g in parts.service_groups for n in g.fulfilling_pods)),
        tuple(p.deployment.name for p in parts.deployment_pipelines),
        tuple(v.rc.name for v in parts.replication_controllers),
        tuple(p.build_config.name for p in parts.image_pipelines),
        tuple(v.pod.name for v in parts.monopods),
        tuple(v.pod.name for v in parts.boring_pods),
    ]


class TestPartitionDeterminism:
    @settings(max_examples=40, deadline=None)
    @given(st.randoms(use_true_random=False))
    def test_insertion_order_does_not_matter(self, rnd: random.Random) -> None:
        items = _mixed_project()
        baseline = _shape(partition(build_graph(items)))

        shuffled = {kind: rnd.sample(resources, len(resources)) for kind, resources in items.items()}
        parts = partition(build_graph(shuffled))

        assert _shape(parts) == baseline
        views = _all_views(parts)
        assert sum(len(v.covered) for v in views) == len(parts.covered)
