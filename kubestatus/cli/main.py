"""``kubestatus`` command: print the status report for a namespace."""

from __future__ import annotations

import asyncio

import click

from kubestatus.config import load_config
from kubestatus.describe.status import ProjectStatusDescriber
from kubestatus.errors import ResourceLoadError
from kubestatus.models.config import StatusConfig
from kubestatus.observability.logging import get_logger, setup_logging

_LOG_LEVELS = ["debug", "info", "warning", "error"]


async def _load_kube_config() -> str:
    """Configure kubernetes-asyncio from in-cluster config or kubeconfig; return the API server URL."""
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
    from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

    log = get_logger("cli")
    try:
        # load_incluster_config() is synchronous in kubernetes-asyncio
        k8s_config.load_incluster_config()
        log.debug("k8s client configured from in-cluster service account")
    except k8s_config.ConfigException:
        await k8s_config.load_kube_config()
        log.debug("k8s client configured from kubeconfig")
    return k8s_client.Configuration.get_default_copy().host or ""


async def _describe(status: StatusConfig) -> str:
    from kubestatus.loader.lister import KubernetesLister

    server = await _load_kube_config()
    lister = KubernetesLister()
    try:
        describer = ProjectStatusDescriber(
            lister=lister,
            server=status.server or server,
            suggest=status.suggest,
            command_name=status.command_name,
            logs_command_name=status.logs_command_name,
            set_probe_command_name=status.set_probe_command_name,
            load_timeout=status.load_timeout_seconds or None,
        )
        return await describer.describe("" if status.all_namespaces else status.namespace)
    finally:
        await lister.close()


@click.command(name="kubestatus")
@click.option("-n", "--namespace", default=None, help="Namespace to describe.")
@click.option("-A", "--all-namespaces", is_flag=True, default=False, help="Describe every namespace.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show warnings and suggestions.")
@click.option("--server", default=None, help="Server URL shown in the report header.")
@click.option("--log-level", type=click.Choice(_LOG_LEVELS), default=None, help="Log level for stderr output.")
def cli(
    namespace: str | None,
    all_namespaces: bool,
    verbose: bool,
    server: str | None,
    log_level: str | None,
) -> None:
    """Show a high level overview of the resources in a namespace."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    status = config.status
    if namespace:
        status.namespace = namespace
    if all_namespaces:
        status.all_namespaces = True
    if verbose:
        status.suggest = True
    if server:
        status.server = server
    setup_logging(log_level or config.log.level, config.log.format)

    try:
        report = asyncio.run(_describe(status))
    except ResourceLoadError as exc:
        raise click.ClickException(f"unable to load resources: {exc}") from exc
    except TimeoutError as exc:
        raise click.ClickException(
            f"timed out after {status.load_timeout_seconds}s waiting for the resource lists"
        ) from exc
    click.echo(report, nl=False)
