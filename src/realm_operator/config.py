"""Operator configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Operator settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REALM_OPERATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Custom resource
    namespace: str = "default"
    group: str = "k8s.kiwigrid.com"
    version: str = "v1beta1"
    plural: str = "keycloakrealms"
    status_subresource: bool = True
    in_cluster: bool = False

    # Keycloak servers
    servers_file: Path = Field(default=Path("keycloaks.yaml"))

    # Retry sweep
    retry_interval: float = 60.0

    # Audit
    audit_enabled: bool = True
    audit_json: bool = True


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Backward-compatible alias for the module-level settings singleton."""
    return settings
