import httpx

from realm_operator.faults import RuntimeFault, StructuredFault, classify
from realm_operator.keycloak.client import KeycloakError, KeycloakNotFoundError


def test_keycloak_error_is_structured():
    fault = classify(KeycloakError("Unexpected response 500: boom", status_code=500, body="boom"))

    assert fault == StructuredFault(code=500, body="boom")
    assert fault.describe() == "Keycloak returned 500 with: boom"


def test_not_found_is_structured_404():
    fault = classify(KeycloakNotFoundError("Resource not found", status_code=404, body='{"error":"x"}'))

    assert isinstance(fault, StructuredFault)
    assert fault.describe() == 'Keycloak returned 404 with: {"error":"x"}'


def test_keycloak_error_without_status_is_runtime():
    fault = classify(KeycloakError("No credentials configured for Keycloak default"))

    assert fault == RuntimeFault(kind="KeycloakError", message="No credentials configured for Keycloak default")


def test_transport_error_is_runtime():
    fault = classify(httpx.ReadTimeout("timed out"))

    assert fault.describe() == "ReadTimeout: timed out"


def test_arbitrary_exception_is_runtime():
    fault = classify(KeyError("name"))

    assert isinstance(fault, RuntimeFault)
    assert fault.kind == "KeyError"
