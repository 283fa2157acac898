"""Construction of the realm reconciler.

The reconciler is built once at start-up from its collaborators (Keycloak
locator, resource store) and handed to whoever drives it: the kopf
handlers, the retry sweep or a one-shot CLI command.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from realm_operator.audit import StatusAuditLogger, configure_audit_logging
from realm_operator.config import Settings
from realm_operator.keycloak.locator import KeycloakLocator
from realm_operator.keycloak.settings import KeycloakServersConfig
from realm_operator.reconciler import RealmReconciler
from realm_operator.store import KubernetesResourceStore, ResourceStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_reconciler(
    settings: Settings,
    store: ResourceStore | None = None,
    servers: KeycloakServersConfig | None = None,
) -> AsyncIterator[RealmReconciler]:
    """Build a reconciler and close its Keycloak sessions on exit."""
    if servers is None:
        servers = KeycloakServersConfig.from_yaml(settings.servers_file)
    if store is None:
        store = KubernetesResourceStore.from_settings(settings)

    if settings.audit_enabled:
        configure_audit_logging(log_level=settings.log_level, json_format=settings.audit_json)
    audit = StatusAuditLogger(enabled=settings.audit_enabled)

    async with KeycloakLocator(servers) as locator:
        logger.info(
            "Reconciling %s.%s/%s in namespace %s",
            settings.plural,
            settings.group,
            settings.version,
            settings.namespace,
        )
        yield RealmReconciler(locator, store, audit=audit)
