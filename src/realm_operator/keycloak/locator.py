"""Resolve Keycloak names to admin sessions."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack

import httpx

from realm_operator.keycloak.client import KeycloakAdminClient
from realm_operator.keycloak.settings import KeycloakServersConfig

logger = logging.getLogger(__name__)


class KeycloakLocator:
    """Holds one admin client per configured Keycloak server.

    An unknown name is an ordinary condition (the realm resource may have
    been created before its Keycloak was configured) and resolves to None.
    """

    def __init__(
        self,
        servers: KeycloakServersConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._servers = servers
        self._transport = transport
        self._clients: dict[str, KeycloakAdminClient] = {}
        self._stack: AsyncExitStack | None = None

    async def __aenter__(self) -> "KeycloakLocator":
        self._stack = AsyncExitStack()
        for server in self._servers.keycloaks:
            client = KeycloakAdminClient(server, transport=self._transport)
            self._clients[server.name] = await self._stack.enter_async_context(client)
        logger.info(
            "Configured Keycloak servers: %s",
            ", ".join(sorted(self._clients)) or "<none>",
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._stack is not None:
            await self._stack.aclose()
            self._stack = None
        self._clients.clear()

    @property
    def names(self) -> list[str]:
        return sorted(self._clients)

    def resolve(self, name: str) -> KeycloakAdminClient | None:
        """Return the admin client for `name`, or None if unknown."""
        return self._clients.get(name)
