"""Pydantic models for the KeycloakRealm custom resource.

Example resource:
    apiVersion: k8s.kiwigrid.com/v1beta1
    kind: KeycloakRealm
    metadata:
      name: my-realm
    spec:
      keycloak: default
      realm: my-realm
      roles:
        - viewer
        - editor
    status:
      error: null
      timestamp: "2024-01-01T00:00:00Z"
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

KIND = "KeycloakRealm"
API_VERSION = "k8s.kiwigrid.com/v1beta1"


class RealmSpec(BaseModel):
    """Desired state of a realm on a Keycloak server."""

    keycloak: str = Field(..., description="Name of the Keycloak server hosting the realm")
    realm: str = Field(..., description="Realm name")
    roles: set[str] = Field(
        default_factory=set,
        description="Realm roles that must exist (never removed or updated)",
    )

    @field_serializer("roles")
    def serialize_roles(self, roles: set[str]) -> list[str]:
        return sorted(roles)


class RealmStatus(BaseModel):
    """Outcome of the last reconcile attempt."""

    error: str | None = None
    timestamp: str | None = None


class RealmResource(BaseModel):
    """A KeycloakRealm custom resource as read from the store.

    `resource_version` is the optimistic concurrency token the resource was
    read with; it is sent back unchanged on replace.
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str
    namespace: str | None = None
    resource_version: str | None = None
    api_version: str = API_VERSION
    spec: RealmSpec
    status: RealmStatus = Field(default_factory=RealmStatus)

    # Everything else under metadata (labels, uid, ...) round-trips untouched
    metadata_extra: dict[str, Any] = Field(default_factory=dict)

    # spec and status exactly as read; written back with only error and
    # timestamp replaced so user-owned and unknown keys survive a replace
    raw_spec: dict[str, Any] | None = None
    raw_status: dict[str, Any] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        """Log prefix: keycloak/realm."""
        return f"{self.spec.keycloak}/{self.spec.realm}"

    @classmethod
    def from_k8s(cls, body: dict[str, Any]) -> "RealmResource":
        """Build a resource from a custom-object body."""
        metadata = dict(body.get("metadata") or {})
        name = metadata.pop("name")
        namespace = metadata.pop("namespace", None)
        resource_version = metadata.pop("resourceVersion", None)
        raw_spec = dict(body.get("spec") or {})
        raw_status = dict(body.get("status") or {})
        return cls(
            name=name,
            namespace=namespace,
            resource_version=resource_version,
            api_version=body.get("apiVersion", API_VERSION),
            spec=RealmSpec.model_validate(raw_spec),
            status=RealmStatus.model_validate(raw_status),
            metadata_extra=metadata,
            raw_spec=raw_spec,
            raw_status=raw_status,
        )

    def to_k8s(self) -> dict[str, Any]:
        """Render the resource as a custom-object body."""
        metadata: dict[str, Any] = dict(self.metadata_extra)
        metadata["name"] = self.name
        if self.namespace is not None:
            metadata["namespace"] = self.namespace
        if self.resource_version is not None:
            metadata["resourceVersion"] = self.resource_version
        return {
            "apiVersion": self.api_version,
            "kind": KIND,
            "metadata": metadata,
            "spec": dict(self.raw_spec) if self.raw_spec is not None else self.spec.model_dump(),
            "status": {**self.raw_status, **self.status.model_dump()},
        }
