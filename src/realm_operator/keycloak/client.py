"""Keycloak Admin API client.

Wraps the parts of the Keycloak Admin REST API the operator needs:
- Realms (get, create)
- Realm roles (list, create)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from realm_operator.keycloak.settings import KeycloakSettings

logger = logging.getLogger(__name__)


class KeycloakError(Exception):
    """Base exception for Keycloak API errors."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class KeycloakAuthError(KeycloakError):
    """Authentication failed."""

    pass


class KeycloakNotFoundError(KeycloakError):
    """Resource not found."""

    pass


class KeycloakConflictError(KeycloakError):
    """Resource already exists."""

    pass


@dataclass
class TokenInfo:
    """OAuth token information."""

    access_token: str
    expires_at: float

    def is_valid(self, leeway: int = 30) -> bool:
        """Check if token is still valid."""
        return time.time() < (self.expires_at - leeway)


class KeycloakAdminClient:
    """Async client for the Keycloak Admin REST API of one server."""

    def __init__(
        self,
        settings: KeycloakSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport
        self._token: TokenInfo | None = None
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "KeycloakAdminClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=self._settings.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def authenticate(self) -> None:
        """Authenticate and obtain access token.

        Tries service client credentials first, falls back to admin user/pass.
        """
        if self._settings.has_client_credentials:
            data = {
                "grant_type": "client_credentials",
                "client_id": self._settings.admin_client_id,
                "client_secret": self._settings.admin_client_secret,
            }
            principal = self._settings.admin_client_id
        elif self._settings.has_admin_credentials:
            data = {
                "grant_type": "password",
                "client_id": self._settings.admin_client_id,
                "username": self._settings.admin_user,
                "password": self._settings.admin_password,
            }
            principal = self._settings.admin_user
        else:
            raise KeycloakAuthError(
                f"No credentials configured for Keycloak {self._settings.name}"
            )

        logger.debug("Authenticating to %s as %s", self._settings.name, principal)

        response = await self._http.post(self._settings.token_url, data=data)

        if response.status_code != 200:
            raise KeycloakAuthError(
                f"Authentication failed: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        payload = response.json()
        self._token = TokenInfo(
            access_token=payload["access_token"],
            expires_at=time.time() + float(payload.get("expires_in", 300)),
        )
        logger.info("Authenticated to %s as %s", self._settings.name, principal)

    async def _ensure_token(self) -> str:
        """Ensure we have a valid token."""
        if not self._token or not self._token.is_valid():
            await self.authenticate()
        return self._token.access_token

    async def _headers(self) -> dict[str, str]:
        """Get request headers with auth token."""
        token = await self._ensure_token()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    # -------------------------------------------------------------------------
    # HTTP helpers
    # -------------------------------------------------------------------------

    @property
    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("KeycloakAdminClient used outside of its context")
        return self._client

    async def _get(self, path: str) -> Any:
        """Make GET request to admin API."""
        url = f"{self._settings.admin_url}{path}"
        headers = await self._headers()
        response = await self._http.get(url, headers=headers)
        return self._handle_response(response)

    async def _post(self, path: str, json: list | dict | None = None) -> Any:
        """Make POST request to admin API."""
        url = f"{self._settings.admin_url}{path}"
        headers = await self._headers()
        response = await self._http.post(url, headers=headers, json=json)
        return self._handle_response(response, expected_status=[200, 201, 204])

    def _handle_response(
        self,
        response: httpx.Response,
        expected_status: list[int] | None = None,
    ) -> Any:
        """Handle API response."""
        expected = expected_status or [200]

        if response.status_code == 404:
            raise KeycloakNotFoundError(
                f"Resource not found: {response.request.url}",
                status_code=404,
                body=response.text,
            )

        if response.status_code == 409:
            raise KeycloakConflictError(
                f"Resource already exists: {response.text}",
                status_code=409,
                body=response.text,
            )

        if response.status_code == 401:
            raise KeycloakAuthError(
                "Authentication expired or invalid",
                status_code=401,
                body=response.text,
            )

        if response.status_code not in expected:
            raise KeycloakError(
                f"Unexpected response {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        if response.status_code in (201, 204) or not response.content:
            return None

        return response.json()

    # -------------------------------------------------------------------------
    # Realms
    # -------------------------------------------------------------------------

    async def get_realm(self, realm: str) -> dict[str, Any]:
        """Get a realm representation.

        Raises KeycloakNotFoundError if the realm does not exist.
        """
        return await self._get(f"/{quote(realm, safe='')}")

    async def create_realm(self, representation: dict[str, Any]) -> None:
        """Create a realm from its representation."""
        logger.debug("Creating realm: %s", representation.get("realm"))
        await self._post("", json=representation)

    # -------------------------------------------------------------------------
    # Realm roles
    # -------------------------------------------------------------------------

    async def list_realm_roles(self, realm: str) -> list[dict[str, Any]]:
        """List the roles of a realm."""
        return await self._get(f"/{quote(realm, safe='')}/roles") or []

    async def create_realm_role(self, realm: str, representation: dict[str, Any]) -> None:
        """Create a realm role."""
        logger.debug("Creating realm role %s in %s", representation.get("name"), realm)
        await self._post(f"/{quote(realm, safe='')}/roles", json=representation)
