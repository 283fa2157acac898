"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from realm_operator.keycloak.client import KeycloakConflictError, KeycloakNotFoundError
from realm_operator.models import RealmResource, RealmSpec, RealmStatus
from realm_operator.store import InMemoryResourceStore

MUTATING = {"create_realm", "create_realm_role"}


class FakeKeycloak:
    """In-memory stand-in for KeycloakAdminClient.

    `failures` maps a call key to the exception it raises: "get_realm",
    "create_realm", "list_realm_roles" or ("create_realm_role", role).
    """

    def __init__(
        self,
        name: str = "default",
        realms: dict[str, list[dict[str, Any]]] | None = None,
    ):
        self.name = name
        self.realms: dict[str, list[dict[str, Any]]] = realms or {}
        self.calls: list[tuple] = []
        self.failures: dict[Any, Exception] = {}

    def _maybe_fail(self, key: Any) -> None:
        if key in self.failures:
            raise self.failures[key]

    @property
    def mutating_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in MUTATING]

    async def get_realm(self, realm: str) -> dict[str, Any]:
        self.calls.append(("get_realm", realm))
        self._maybe_fail("get_realm")
        if realm not in self.realms:
            raise KeycloakNotFoundError(f"Resource not found: {realm}", status_code=404, body="")
        return {"realm": realm, "enabled": True}

    async def create_realm(self, representation: dict[str, Any]) -> None:
        self.calls.append(("create_realm", representation))
        self._maybe_fail("create_realm")
        if representation["realm"] in self.realms:
            raise KeycloakConflictError("Resource already exists", status_code=409, body="")
        self.realms[representation["realm"]] = []

    async def list_realm_roles(self, realm: str) -> list[dict[str, Any]]:
        self.calls.append(("list_realm_roles", realm))
        self._maybe_fail("list_realm_roles")
        return [dict(r) for r in self.realms[realm]]

    async def create_realm_role(self, realm: str, representation: dict[str, Any]) -> None:
        self.calls.append(("create_realm_role", realm, representation))
        self._maybe_fail(("create_realm_role", representation["name"]))
        self.realms[realm].append(dict(representation))


class FakeLocator:
    def __init__(self, *servers: FakeKeycloak):
        self._servers = {s.name: s for s in servers}

    def resolve(self, name: str) -> FakeKeycloak | None:
        return self._servers.get(name)


def make_resource(
    name: str = "r1",
    keycloak: str = "default",
    realm: str = "r1",
    roles: list[str] | None = None,
    error: str | None = None,
    timestamp: str | None = None,
) -> RealmResource:
    return RealmResource(
        name=name,
        namespace="default",
        spec=RealmSpec(keycloak=keycloak, realm=realm, roles=roles or []),
        status=RealmStatus(error=error, timestamp=timestamp),
    )


@pytest.fixture
def keycloak() -> FakeKeycloak:
    return FakeKeycloak()


@pytest.fixture
def locator(keycloak: FakeKeycloak) -> FakeLocator:
    return FakeLocator(keycloak)


@pytest.fixture
def store() -> InMemoryResourceStore:
    return InMemoryResourceStore()
