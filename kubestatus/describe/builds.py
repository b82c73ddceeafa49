"""Phrasing for builds, build configs and image pipelines."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from kubestatus.describe.formatting import format_relative_time
from kubestatus.graph.models import GraphNode
from kubestatus.graph.naming import Namer
from kubestatus.graph.views import ImagePipeline, ImageTagLocation
from kubestatus.models.resources import Resource, build_timestamp, metadata, spec, status

# Stands in for an absent timestamp; earlier than any real one.
_ZERO_TIME = datetime.min.replace(tzinfo=UTC)


def describe_source_control_user(user: dict[str, Any] | None) -> str:
    user = user or {}
    name, email = user.get("name", ""), user.get("email", "")
    if not name:
        return email
    if not email:
        return name
    return f"{name} <{email}>"


def describe_source_revision(revision: dict[str, Any] | None) -> str:
    git = (revision or {}).get("git")
    if not git:
        return ""
    author = describe_source_control_user(git.get("author")) or describe_source_control_user(git.get("committer"))
    if author:
        author = f" ({author})"
    commit = git.get("commit", "")[:7]
    return f"{commit}: {git.get('message', '')}{author}"


def build_identification(build_name: str, parent_name: str) -> str:
    """``build #N`` for builds named ``<parent>-<N>``, else ``build/<name>``."""
    prefix = parent_name + "-"
    if build_name.startswith(prefix):
        suffix = build_name[len(prefix) :]
        if suffix.isascii() and suffix.isdigit():
            return f"build #{int(suffix)}"
    return f"build/{build_name}"


def describe_build_phase(
    build: Resource,
    parent_name: str,
    push_target_resolved: bool,
    now: datetime | None = None,
) -> str:
    image_stream_failure = ""
    if (spec(build).get("output") or {}).get("to") and not push_target_resolved:
        image_stream_failure = " (can't push to image)"

    timestamp = build_timestamp(build)
    time = "<unknown>" if timestamp is None else format_relative_time(timestamp, now).lower()

    identification = build_identification(metadata(build).get("name", ""), parent_name)

    revision = describe_source_revision(spec(build).get("revision"))
    if revision:
        revision = f" - {revision}"

    phase = status(build).get("phase", "")
    if phase == "Complete":
        return f"{identification} succeeded {time} ago{revision}{image_stream_failure}"
    if phase == "Error":
        return f"{identification} stopped with an error {time} ago{revision}{image_stream_failure}"
    if phase == "Failed":
        return f"{identification} failed {time} ago{revision}{image_stream_failure}"
    return f"{identification} {phase.lower()} for {time}{revision}{image_stream_failure}"


def describe_additional_build_detail(
    pipeline: ImagePipeline,
    include_success: bool,
    now: datetime | None = None,
) -> list[str]:
    """Recent build history for a pipeline's build config.

    Active builds are listed after the last finished builds when they
    started before them, and before them otherwise.
    """
    if pipeline.build_config is None:
        return []
    parent = pipeline.build_config.name
    resolved = pipeline.destination_resolved
    last_successful, last_unsuccessful = pipeline.last_successful_build, pipeline.last_unsuccessful_build

    pass_time = _ZERO_TIME
    if last_successful is not None:
        pass_time = build_timestamp(last_successful.payload) or _ZERO_TIME
    fail_time = _ZERO_TIME
    if last_unsuccessful is not None:
        fail_time = build_timestamp(last_unsuccessful.payload) or _ZERO_TIME

    last_time = pass_time if pass_time > fail_time else fail_time

    out: list[str] = []
    # show the last success when asked to, or as context for an active build
    if last_successful is not None and (include_success or pipeline.active_builds):
        out.append(describe_build_phase(last_successful.payload, parent, resolved, now))
    if pass_time < fail_time and last_unsuccessful is not None:
        out.append(describe_build_phase(last_unsuccessful.payload, parent, resolved, now))

    if pipeline.active_builds:
        active_out = [describe_build_phase(b.payload, parent, resolved, now) for b in pipeline.active_builds]
        if (build_timestamp(pipeline.active_builds[0].payload) or _ZERO_TIME) < last_time:
            out.extend(active_out)
        else:
            out = active_out + out

    if not out and last_successful is None:
        out.append("not built yet")
    return out


def describe_source_in_pipeline(source: dict[str, Any]) -> str | None:
    git = source.get("git")
    if git:
        if not git.get("ref"):
            return git.get("uri", "")
        return f"{git.get('uri', '')}#{git['ref']}"
    if source.get("dockerfile") is not None:
        return "Dockerfile"
    return None


def describe_build_in_pipeline(bc: GraphNode, base_image: ImageTagLocation | None) -> str:
    strategy = spec(bc.payload).get("strategy") or {}
    strategy_type = strategy.get("type", "")
    source = describe_source_in_pipeline(spec(bc.payload).get("source") or {})
    name = bc.name

    if strategy.get("dockerStrategy") is not None or strategy_type == "Docker":
        if source is None:
            return f"bc/{name} unconfigured docker build - no source set"
        return f"bc/{name} docker build of {source}"
    if strategy.get("sourceStrategy") is not None or strategy_type == "Source":
        if source is None:
            return f"bc/{name} unconfigured source build"
        if base_image is None:
            return f"bc/{name} {source}; no image set"
        return f"bc/{name} builds {source} with {base_image.image_spec()}"
    if strategy.get("customStrategy") is not None or strategy_type == "Custom":
        if source is None:
            return f"bc/{name} custom build "
        return f"bc/{name} custom build of {source}"
    return f"bc/{name} unrecognized build"


def describe_image_tag_in_pipeline(f: Namer, image: ImageTagLocation, namespace: str) -> str:
    if not image.is_tag or image.namespace != namespace:
        return image.image_spec()
    if image.node is not None:
        return f.resource_name(image.node)
    return f"istag/{image.name}"


def describe_image_in_pipeline(f: Namer, pipeline: ImagePipeline, namespace: str) -> str:
    if pipeline.image is not None and pipeline.build_config is not None:
        tag = describe_image_tag_in_pipeline(f, pipeline.image, namespace)
        return f"{tag} <- {describe_build_in_pipeline(pipeline.build_config, pipeline.base_image)}"
    if pipeline.image is not None:
        return describe_image_tag_in_pipeline(f, pipeline.image, namespace)
    if pipeline.build_config is not None:
        return describe_build_in_pipeline(pipeline.build_config, pipeline.base_image)
    return "<unknown>"


def describe_standalone_build_group(f: Namer, pipeline: ImagePipeline, namespace: str) -> list[str]:
    if pipeline.build_config is not None:
        lines = [describe_build_in_pipeline(pipeline.build_config, pipeline.base_image)]
        if pipeline.image is not None:
            lines.append(f"pushes to {describe_image_tag_in_pipeline(f, pipeline.image, namespace)}")
        return lines
    if pipeline.image is not None:
        return [describe_image_tag_in_pipeline(f, pipeline.image, namespace)]
    return ["<unknown>"]
