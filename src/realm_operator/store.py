"""Access to KeycloakRealm custom resources.

The reconciler only depends on the ResourceStore protocol. Two
implementations exist: one backed by the Kubernetes custom objects API and
an in-memory one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException

from realm_operator.config import Settings
from realm_operator.models import RealmResource

logger = logging.getLogger(__name__)


class ResourceStoreError(Exception):
    """Base exception for store failures."""

    pass


class ResourceNotFoundError(ResourceStoreError):
    """No resource with that name."""

    pass


class ResourceConflictError(ResourceStoreError):
    """The resource version sent with a replace is stale."""

    pass


class ResourceStore(Protocol):
    """Named-key store with optimistic concurrency on replace."""

    async def get(self, name: str) -> RealmResource: ...

    async def list(self) -> list[RealmResource]: ...

    async def replace(self, resource: RealmResource) -> RealmResource: ...


class InMemoryResourceStore:
    """Dict-backed store; resource versions are increasing integers."""

    def __init__(self, resources: list[RealmResource] | None = None):
        self._items: dict[str, RealmResource] = {}
        self._version = 0
        self.replace_calls: list[str] = []
        for resource in resources or []:
            self.add(resource)

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def add(self, resource: RealmResource) -> RealmResource:
        """Insert or overwrite a resource, ignoring its resource version."""
        stored = resource.model_copy(deep=True)
        stored.resource_version = self._next_version()
        self._items[stored.name] = stored
        return stored.model_copy(deep=True)

    async def get(self, name: str) -> RealmResource:
        try:
            return self._items[name].model_copy(deep=True)
        except KeyError:
            raise ResourceNotFoundError(f"Resource not found: {name}") from None

    async def list(self) -> list[RealmResource]:
        return [r.model_copy(deep=True) for r in self._items.values()]

    async def replace(self, resource: RealmResource) -> RealmResource:
        self.replace_calls.append(resource.name)
        current = self._items.get(resource.name)
        if current is None:
            raise ResourceNotFoundError(f"Resource not found: {resource.name}")
        if resource.resource_version != current.resource_version:
            raise ResourceConflictError(
                f"Resource {resource.name} was modified "
                f"(have {resource.resource_version}, store has {current.resource_version})"
            )
        stored = resource.model_copy(deep=True)
        stored.resource_version = self._next_version()
        self._items[stored.name] = stored
        return stored.model_copy(deep=True)


class KubernetesResourceStore:
    """Store backed by the Kubernetes custom objects API.

    The kubernetes client is synchronous; calls run in a worker thread.
    """

    def __init__(self, settings: Settings, api: k8s_client.CustomObjectsApi | None = None):
        self._settings = settings
        self._api = api or k8s_client.CustomObjectsApi()

    @classmethod
    def from_settings(cls, settings: Settings) -> "KubernetesResourceStore":
        """Load cluster credentials and build a store."""
        if settings.in_cluster:
            k8s_config.load_incluster_config()
        else:
            k8s_config.load_kube_config()
        return cls(settings)

    @property
    def _coordinates(self) -> dict[str, str]:
        return {
            "group": self._settings.group,
            "version": self._settings.version,
            "namespace": self._settings.namespace,
            "plural": self._settings.plural,
        }

    def _translate(self, e: ApiException, name: str | None) -> ResourceStoreError:
        if e.status == 404:
            return ResourceNotFoundError(f"Resource not found: {name}")
        if e.status == 409:
            return ResourceConflictError(f"Resource {name} was modified: {e.reason}")
        return ResourceStoreError(f"Kubernetes API returned {e.status}: {e.reason}")

    async def get(self, name: str) -> RealmResource:
        try:
            body = await asyncio.to_thread(
                self._api.get_namespaced_custom_object, name=name, **self._coordinates
            )
        except ApiException as e:
            raise self._translate(e, name) from e
        return RealmResource.from_k8s(body)

    async def list(self) -> list[RealmResource]:
        try:
            body = await asyncio.to_thread(
                self._api.list_namespaced_custom_object, **self._coordinates
            )
        except ApiException as e:
            raise self._translate(e, None) from e
        return [RealmResource.from_k8s(item) for item in body.get("items", [])]

    async def replace(self, resource: RealmResource) -> RealmResource:
        if self._settings.status_subresource:
            replace = self._api.replace_namespaced_custom_object_status
        else:
            replace = self._api.replace_namespaced_custom_object

        logger.debug("Replacing %s at resourceVersion %s", resource.name, resource.resource_version)
        try:
            body = await asyncio.to_thread(
                replace, name=resource.name, body=resource.to_k8s(), **self._coordinates
            )
        except ApiException as e:
            raise self._translate(e, resource.name) from e
        return RealmResource.from_k8s(body)
