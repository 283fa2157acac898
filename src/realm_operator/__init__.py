"""Keycloak realm operator.

Keeps Keycloak realms and their realm roles in sync with KeycloakRealm
custom resources.
"""

from realm_operator.models import RealmResource, RealmSpec, RealmStatus
from realm_operator.reconciler import RealmReconciler, Reconciler

__all__ = [
    "RealmResource",
    "RealmSpec",
    "RealmStatus",
    "RealmReconciler",
    "Reconciler",
]

__version__ = "0.1.0"
