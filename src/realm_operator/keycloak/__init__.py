"""Keycloak admin access.

Provides the admin REST client, per-server settings and the locator that
maps Keycloak names used in realm resources to live clients.
"""

from realm_operator.keycloak.settings import KeycloakSettings, KeycloakServersConfig
from realm_operator.keycloak.client import (
    KeycloakAdminClient,
    KeycloakAuthError,
    KeycloakConflictError,
    KeycloakError,
    KeycloakNotFoundError,
)
from realm_operator.keycloak.locator import KeycloakLocator

__all__ = [
    "KeycloakSettings",
    "KeycloakServersConfig",
    "KeycloakAdminClient",
    "KeycloakAuthError",
    "KeycloakConflictError",
    "KeycloakError",
    "KeycloakNotFoundError",
    "KeycloakLocator",
]
