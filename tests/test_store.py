import pytest
from kubernetes.client.rest import ApiException

from conftest import make_resource
from realm_operator.config import Settings
from realm_operator.store import (
    InMemoryResourceStore,
    KubernetesResourceStore,
    ResourceConflictError,
    ResourceNotFoundError,
    ResourceStoreError,
)


@pytest.mark.asyncio
async def test_in_memory_replace_bumps_version():
    store = InMemoryResourceStore([make_resource()])
    resource = await store.get("r1")
    resource.status.error = "boom"

    stored = await store.replace(resource)

    assert int(stored.resource_version) > int(resource.resource_version)
    assert (await store.get("r1")).status.error == "boom"


@pytest.mark.asyncio
async def test_in_memory_rejects_stale_version():
    store = InMemoryResourceStore([make_resource()])
    first = await store.get("r1")
    second = await store.get("r1")
    await store.replace(first)

    with pytest.raises(ResourceConflictError):
        await store.replace(second)


@pytest.mark.asyncio
async def test_in_memory_get_missing():
    with pytest.raises(ResourceNotFoundError):
        await InMemoryResourceStore().get("nope")


@pytest.mark.asyncio
async def test_in_memory_returns_copies():
    store = InMemoryResourceStore([make_resource()])
    resource = await store.get("r1")
    resource.status.error = "local only"

    assert (await store.get("r1")).status.error is None


class FakeCustomObjectsApi:
    def __init__(self):
        self.calls = []
        self.error: ApiException | None = None
        self.body = {
            "apiVersion": "k8s.kiwigrid.com/v1beta1",
            "kind": "KeycloakRealm",
            "metadata": {"name": "r1", "namespace": "iam", "resourceVersion": "7"},
            "spec": {"keycloak": "default", "realm": "r1"},
        }

    def _call(self, method, **kwargs):
        self.calls.append((method, kwargs))
        if self.error is not None:
            raise self.error

    def get_namespaced_custom_object(self, **kwargs):
        self._call("get", **kwargs)
        return self.body

    def list_namespaced_custom_object(self, **kwargs):
        self._call("list", **kwargs)
        return {"items": [self.body]}

    def replace_namespaced_custom_object(self, **kwargs):
        self._call("replace", **kwargs)
        body = kwargs["body"]
        body["metadata"]["resourceVersion"] = "8"
        return body

    def replace_namespaced_custom_object_status(self, **kwargs):
        self._call("replace_status", **kwargs)
        body = kwargs["body"]
        body["metadata"]["resourceVersion"] = "8"
        return body


def _store(api, **overrides) -> KubernetesResourceStore:
    settings = Settings(namespace="iam", **overrides)
    return KubernetesResourceStore(settings, api=api)


@pytest.mark.asyncio
async def test_kubernetes_get_and_list():
    api = FakeCustomObjectsApi()
    store = _store(api)

    resource = await store.get("r1")
    listed = await store.list()

    assert resource.resource_version == "7"
    assert [r.name for r in listed] == ["r1"]
    method, kwargs = api.calls[0]
    assert kwargs == {
        "name": "r1",
        "group": "k8s.kiwigrid.com",
        "version": "v1beta1",
        "namespace": "iam",
        "plural": "keycloakrealms",
    }


@pytest.mark.asyncio
async def test_kubernetes_replace_sends_resource_version():
    api = FakeCustomObjectsApi()
    store = _store(api)
    resource = await store.get("r1")
    resource.status.error = "boom"

    stored = await store.replace(resource)

    method, kwargs = api.calls[-1]
    assert method == "replace_status"
    assert kwargs["body"]["status"]["error"] == "boom"
    assert stored.resource_version == "8"


@pytest.mark.asyncio
async def test_kubernetes_replace_without_status_subresource():
    api = FakeCustomObjectsApi()
    store = _store(api, status_subresource=False)

    await store.replace(await store.get("r1"))

    assert api.calls[-1][0] == "replace"


@pytest.mark.asyncio
async def test_kubernetes_full_replace_leaves_spec_untouched():
    api = FakeCustomObjectsApi()
    api.body["spec"] = {"keycloak": "default", "realm": "r1", "roles": ["b", "a", "a"], "displayName": "X"}
    api.body["status"] = {"error": None, "timestamp": None, "conditions": []}
    store = _store(api, status_subresource=False)
    resource = await store.get("r1")
    resource.status.error = "boom"
    resource.status.timestamp = "2024-01-01T00:00:00Z"

    await store.replace(resource)

    sent = api.calls[-1][1]["body"]
    assert sent["spec"] == {"keycloak": "default", "realm": "r1", "roles": ["b", "a", "a"], "displayName": "X"}
    assert sent["status"] == {"error": "boom", "timestamp": "2024-01-01T00:00:00Z", "conditions": []}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, expected",
    [(409, ResourceConflictError), (404, ResourceNotFoundError), (500, ResourceStoreError)],
)
async def test_kubernetes_errors_are_translated(status, expected):
    api = FakeCustomObjectsApi()
    store = _store(api)
    resource = await store.get("r1")
    api.error = ApiException(status=status, reason="nope")

    with pytest.raises(expected):
        await store.replace(resource)
