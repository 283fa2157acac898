"""Realm operator CLI - Main entrypoint.

Usage:
    realm-operator run
    realm-operator apply <name>
    realm-operator retry
    realm-operator status
"""

from __future__ import annotations

import typer

from realm_operator.cli.commands import apply, retry, run, status

app = typer.Typer(
    name="realm-operator",
    help="Keep Keycloak realms and roles in sync with KeycloakRealm resources",
    add_completion=True,
)

app.command("run")(run)
app.command("apply")(apply)
app.command("retry")(retry)
app.command("status")(status)


def create_app() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    create_app()
