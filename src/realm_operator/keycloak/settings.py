"""Keycloak server settings.

Servers are declared in a YAML file (default `keycloaks.yaml`):

    keycloaks:
      - name: default
        base_url: http://keycloak:8080
        admin_user: admin
        admin_password: ${KEYCLOAK_ADMIN_PASSWORD}
      - name: staging
        base_url: https://keycloak.staging.example.com
        admin_client_id: realm-operator
        admin_client_secret: ${STAGING_SECRET:-changeme}

`${VAR}` and `${VAR:-default}` placeholders are resolved from the environment.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# Pattern for ${VAR} and ${VAR:-default} interpolation
_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(:-([^}]*))?\}")


def _resolve_env_str(s: str) -> str:
    """Resolve environment variable placeholders in a string."""
    def repl(m: re.Match[str]) -> str:
        var = m.group(1)
        default = m.group(3)
        val = os.getenv(var)
        if val is None or val == "":
            return default if default is not None else ""
        return val

    # Resolve repeatedly until stable (handles nested defaults)
    prev = None
    cur = s
    for _ in range(5):
        if cur == prev:
            break
        prev = cur
        cur = _ENV_PATTERN.sub(repl, cur)
    return cur


def _resolve_env(value: Any) -> Any:
    """Recursively resolve environment variables in a data structure."""
    if isinstance(value, str):
        return _resolve_env_str(value)
    if isinstance(value, list):
        return [_resolve_env(v) for v in value]
    if isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in value.items()}
    return value


class KeycloakSettings(BaseModel):
    """Connection and authentication settings for one Keycloak server."""

    name: str = Field(..., description="Logical name referenced by realm resources")
    base_url: str = Field(
        default="http://localhost:8080",
        description="Keycloak base URL",
    )
    auth_realm: str = Field(
        default="master",
        description="Realm the operator authenticates against",
    )
    timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )

    # Admin user authentication
    admin_user: str | None = None
    admin_password: str | None = None

    # Service client authentication (preferred)
    admin_client_id: str = Field(
        default="admin-cli",
        description="Client used for token requests",
    )
    admin_client_secret: str | None = None

    @property
    def token_url(self) -> str:
        """Token endpoint of the authentication realm."""
        return f"{self.base_url.rstrip('/')}/realms/{self.auth_realm}/protocol/openid-connect/token"

    @property
    def admin_url(self) -> str:
        """Root of the admin REST API."""
        return f"{self.base_url.rstrip('/')}/admin/realms"

    @property
    def has_client_credentials(self) -> bool:
        """Check if service client credentials are available."""
        return bool(self.admin_client_id and self.admin_client_secret)

    @property
    def has_admin_credentials(self) -> bool:
        """Check if admin user credentials are available."""
        return bool(self.admin_user and self.admin_password)


class KeycloakServersConfig(BaseModel):
    """All Keycloak servers the operator may reconcile realms on."""

    keycloaks: list[KeycloakSettings] = Field(default_factory=list)

    @field_validator("keycloaks")
    @classmethod
    def unique_names(cls, v: list[KeycloakSettings]) -> list[KeycloakSettings]:
        seen: set[str] = set()
        for server in v:
            if server.name in seen:
                raise ValueError(f"Duplicate Keycloak name: {server.name}")
            seen.add(server.name)
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "KeycloakServersConfig":
        """Load servers from a YAML file with env var interpolation.

        A missing file yields an empty configuration.
        """
        p = Path(path)
        if not p.exists():
            logger.warning("Keycloak servers file not found: %s", p)
            return cls()

        raw = yaml.safe_load(p.read_text())
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ValueError(f"Servers file must be a YAML mapping: {path}")

        return cls.model_validate(_resolve_env(raw))
