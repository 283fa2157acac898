"""Realm operator CLI commands.

Commands:
    realm-operator run
    realm-operator apply <name>
    realm-operator retry
    realm-operator status
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import kopf
import typer

from realm_operator.config import get_settings
from realm_operator.logs import configure_logging
from realm_operator.store import KubernetesResourceStore, ResourceNotFoundError, ResourceStoreError


Verbose = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable verbose output"),
]


def run(verbose: Verbose = False) -> None:
    """Watch realm resources and reconcile them until interrupted."""
    configure_logging(verbose)
    settings = get_settings()

    # Registers the kopf handlers
    import realm_operator.handlers  # noqa: F401

    typer.echo(
        f"Watching {settings.plural}.{settings.group} in namespace {settings.namespace}"
    )
    kopf.run(standalone=True, namespaces=[settings.namespace])


def apply(
    name: Annotated[str, typer.Argument(help="Name of the realm resource")],
    verbose: Verbose = False,
) -> None:
    """Reconcile a single realm resource once."""
    configure_logging(verbose)

    try:
        error = asyncio.run(_async_apply(name))
    except ResourceNotFoundError:
        typer.secho(f"Realm resource not found: {name}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except ResourceStoreError as e:
        typer.secho(f"Kubernetes error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if error is not None:
        typer.secho(f"{name}: {error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    typer.secho(f"{name}: in sync", fg=typer.colors.GREEN)


async def _async_apply(name: str) -> str | None:
    from realm_operator.service import open_reconciler

    settings = get_settings()
    store = KubernetesResourceStore.from_settings(settings)
    resource = await store.get(name)
    async with open_reconciler(settings, store=store) as reconciler:
        await reconciler.apply(resource)
    return resource.status.error


def retry(verbose: Verbose = False) -> None:
    """Re-apply every realm resource currently in error state."""
    configure_logging(verbose)

    try:
        retried = asyncio.run(_async_retry())
    except ResourceStoreError as e:
        typer.secho(f"Kubernetes error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if not retried:
        typer.echo("No realm resources in error state")
        return
    typer.echo(f"Retried {len(retried)} realm resource(s):")
    for name in retried:
        typer.echo(f"  - {name}")


async def _async_retry() -> list[str]:
    from realm_operator.service import open_reconciler

    async with open_reconciler(get_settings()) as reconciler:
        return await reconciler.retry()


def status(verbose: Verbose = False) -> None:
    """Show the status of all realm resources."""
    configure_logging(verbose)
    settings = get_settings()

    try:
        resources = asyncio.run(KubernetesResourceStore.from_settings(settings).list())
    except ResourceStoreError as e:
        typer.secho(f"Kubernetes error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    typer.echo(f"\nRealm resources ({len(resources)}):")
    for resource in sorted(resources, key=lambda r: r.name):
        st = resource.status
        if st.timestamp is None:
            state, color = "pending", typer.colors.YELLOW
        elif st.error is None:
            state, color = "ok", typer.colors.GREEN
        else:
            state, color = "error", typer.colors.RED
        typer.secho(f"  - {resource.name} ({resource.label}): {state}", fg=color)
        if st.error:
            typer.echo(f"      error: {st.error}")
        if st.timestamp:
            typer.echo(f"      since: {st.timestamp}")
