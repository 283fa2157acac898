"""Classification of failures raised while talking to Keycloak.

Every exception caught by the reconciler is turned into one of two shapes:

- StructuredFault: Keycloak answered with an error status and a body.
- RuntimeFault: anything else (transport errors, timeouts, bugs).

The status message written to the resource depends only on the shape.
"""

from __future__ import annotations

from dataclasses import dataclass

from realm_operator.keycloak.client import KeycloakError


@dataclass(frozen=True)
class StructuredFault:
    """Keycloak returned an error response."""

    code: int
    body: str

    def describe(self) -> str:
        return f"Keycloak returned {self.code} with: {self.body}"


@dataclass(frozen=True)
class RuntimeFault:
    """Unstructured failure: kind is the exception class name."""

    kind: str
    message: str

    def describe(self) -> str:
        return f"{self.kind}: {self.message}"


Fault = StructuredFault | RuntimeFault


def classify(exc: BaseException) -> Fault:
    """Map an exception to its fault shape."""
    if isinstance(exc, KeycloakError) and exc.status_code is not None:
        body = exc.body if exc.body is not None else str(exc)
        return StructuredFault(code=exc.status_code, body=body)
    return RuntimeFault(kind=type(exc).__name__, message=str(exc))
