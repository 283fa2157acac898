"""Reconcile KeycloakRealm resources against Keycloak.

For each resource the reconciler makes sure the realm exists and that every
declared role exists as a realm role. Existing realms and roles are never
modified or removed. The outcome of every attempt is written to the
resource status, but only when it differs from what is already stored.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol, TypeVar

from realm_operator.audit import StatusAuditLogger
from realm_operator.faults import StructuredFault, classify
from realm_operator.keycloak.client import (
    KeycloakAdminClient,
    KeycloakConflictError,
    KeycloakNotFoundError,
)
from realm_operator.keycloak.locator import KeycloakLocator
from realm_operator.models import RealmResource, RealmSpec
from realm_operator.store import ResourceConflictError, ResourceStore

logger = logging.getLogger(__name__)

T = TypeVar("T", contravariant=True)


class Reconciler(Protocol[T]):
    """Drives one kind of custom resource towards its desired state."""

    async def apply(self, resource: T) -> None: ...

    async def delete(self, resource: T) -> None: ...

    async def retry(self) -> list[str]: ...


def utc_timestamp() -> str:
    """Current UTC time truncated to seconds, ISO-8601 with a Z suffix."""
    return datetime.now(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


class RealmReconciler:
    """Reconciler for KeycloakRealm resources."""

    def __init__(
        self,
        locator: KeycloakLocator,
        store: ResourceStore,
        audit: StatusAuditLogger | None = None,
    ):
        self._locator = locator
        self._store = store
        self._audit = audit or StatusAuditLogger(enabled=False)

    async def apply(self, resource: RealmResource) -> None:
        spec = resource.spec

        keycloak = self._locator.resolve(spec.keycloak)
        if keycloak is None:
            logger.warning("%s: unable to create realm because Keycloak is unknown", resource.label)
            await self.update_status(resource, f"Keycloak {spec.keycloak} not found")
            return

        try:
            await self._ensure_realm(keycloak, spec)
            await self.manage_realm_roles(keycloak, spec)
            error = None
        except Exception as e:
            fault = classify(e)
            error = fault.describe()
            if isinstance(fault, StructuredFault):
                logger.error("%s: %s", resource.label, error)
            else:
                logger.exception("%s: unable to create realm", resource.label)

        await self.update_status(resource, error)

    async def delete(self, resource: RealmResource) -> None:
        logger.warning("%s: deleting realm not supported!", resource.label)

    async def retry(self) -> list[str]:
        """Re-apply every resource whose last attempt failed."""
        retried: list[str] = []
        for resource in await self._store.list():
            if resource.status.error is None:
                continue
            logger.debug("%s: retrying after error: %s", resource.label, resource.status.error)
            retried.append(resource.name)
            try:
                await self.apply(resource)
            except Exception:
                logger.exception("%s: status update failed during retry", resource.label)
        return retried

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    async def update_status(self, resource: RealmResource, error: str | None) -> None:
        """Persist status unless it is already up to date."""
        status = resource.status
        if status.timestamp is not None and status.error == error:
            return

        previous_error = status.error
        status.error = error
        status.timestamp = utc_timestamp()
        try:
            stored = await self._store.replace(resource)
        except ResourceConflictError as e:
            # Another writer got there first with a fresher attempt
            logger.info("%s: status update dropped: %s", resource.label, e)
            return

        resource.resource_version = stored.resource_version
        self._audit.log_status_change(resource, previous_error)

    async def _ensure_realm(self, keycloak: KeycloakAdminClient, spec: RealmSpec) -> None:
        try:
            await keycloak.get_realm(spec.realm)
            logger.debug("%s/%s: realm already exists", spec.keycloak, spec.realm)
            return
        except KeycloakNotFoundError:
            pass

        try:
            await keycloak.create_realm({"realm": spec.realm, "enabled": True})
        except KeycloakConflictError:
            logger.warning("%s/%s: realm created concurrently", spec.keycloak, spec.realm)
            return
        logger.info("%s/%s: created realm", spec.keycloak, spec.realm)

    async def manage_realm_roles(self, keycloak: KeycloakAdminClient, spec: RealmSpec) -> None:
        # no roles to handle?
        if not spec.roles:
            return

        existing = {
            role["name"]
            for role in await keycloak.list_realm_roles(spec.realm)
            if not role.get("clientRole", False)
        }

        for role in sorted(spec.roles):
            if role in existing:
                logger.debug("%s/%s: realm role %s already exists", spec.keycloak, spec.realm, role)
                continue

            try:
                await keycloak.create_realm_role(spec.realm, {"name": role, "clientRole": False})
            except KeycloakConflictError:
                logger.warning(
                    "%s/%s: realm role %s created concurrently", spec.keycloak, spec.realm, role
                )
                continue
            logger.info("%s/%s: created realm role %s", spec.keycloak, spec.realm, role)
