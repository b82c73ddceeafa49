"""Resource listers: the narrow contract the loader fan-out depends on."""

from __future__ import annotations

from typing import Protocol

from kubernetes_asyncio import client  # type: ignore[import-untyped]
from kubernetes_asyncio.client.rest import ApiException  # type: ignore[import-untyped]

from kubestatus.errors import ForbiddenError, NotFoundError
from kubestatus.models.resources import Resource, ResourceKind
from kubestatus.observability.logging import get_logger

_logger = get_logger("loader.lister")

# kind -> (namespaced list method, all-namespaces list method) on CoreV1Api
_CORE_LIST_METHODS = {
    ResourceKind.SERVICE: ("list_namespaced_service", "list_service_for_all_namespaces"),
    ResourceKind.SERVICE_ACCOUNT: ("list_namespaced_service_account", "list_service_account_for_all_namespaces"),
    ResourceKind.SECRET: ("list_namespaced_secret", "list_secret_for_all_namespaces"),
    ResourceKind.REPLICATION_CONTROLLER: (
        "list_namespaced_replication_controller",
        "list_replication_controller_for_all_namespaces",
    ),
    ResourceKind.POD: ("list_namespaced_pod", "list_pod_for_all_namespaces"),
}


class ResourceLister(Protocol):
    """Lists every resource of one kind in a namespace ("" for all namespaces).

    Raises ForbiddenError or NotFoundError for those conditions; any other
    exception is a genuine failure.
    """

    async def list(self, kind: ResourceKind, namespace: str) -> list[Resource]: ...


class KubernetesLister:
    """ResourceLister backed by kubernetes-asyncio.

    Core kinds go through CoreV1Api; OpenShift kinds through CustomObjectsApi.
    Items are returned as plain JSON dictionaries with camelCase keys.
    """

    def __init__(self, api_client: client.ApiClient | None = None) -> None:
        self._api_client = api_client or client.ApiClient()
        self._core = client.CoreV1Api(self._api_client)
        self._custom = client.CustomObjectsApi(self._api_client)

    async def list(self, kind: ResourceKind, namespace: str) -> list[Resource]:
        try:
            if kind.api_group is None:
                return await self._list_core(kind, namespace)
            return await self._list_custom(kind, namespace)
        except ApiException as exc:
            _logger.debug("list_failed", kind=kind.value, namespace=namespace, status=exc.status)
            if exc.status == 403:
                raise ForbiddenError(kind, exc.reason or "") from exc
            if exc.status == 404:
                raise NotFoundError(kind) from exc
            raise

    async def _list_core(self, kind: ResourceKind, namespace: str) -> list[Resource]:
        try:
            namespaced, all_namespaces = _CORE_LIST_METHODS[kind]
        except KeyError:
            raise ValueError(f"{kind.value} is not a core resource kind") from None
        if namespace:
            result = await getattr(self._core, namespaced)(namespace)
        else:
            result = await getattr(self._core, all_namespaces)()
        serialized = self._api_client.sanitize_for_serialization(result)
        return list(serialized.get("items") or [])

    async def _list_custom(self, kind: ResourceKind, namespace: str) -> list[Resource]:
        group, version = kind.api_group  # type: ignore[misc]
        if namespace:
            result = await self._custom.list_namespaced_custom_object(group, version, namespace, kind.plural)
        else:
            result = await self._custom.list_cluster_custom_object(group, version, kind.plural)
        return list(result.get("items") or [])

    async def close(self) -> None:
        await self._api_client.close()
