"""kopf handlers wiring watch events and the retry sweep to the reconciler.

Create, update and resume events reconcile the resource. Delete events are
only logged. A background task retries resources left in error state every
`retry_interval` seconds.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

import kopf

from realm_operator.config import get_settings
from realm_operator.models import RealmResource
from realm_operator.reconciler import Reconciler
from realm_operator.service import open_reconciler

logger = logging.getLogger(__name__)

_settings = get_settings()
_GROUP = _settings.group
_VERSION = _settings.version
_PLURAL = _settings.plural


async def sweep_forever(reconciler: Reconciler[RealmResource], interval: float) -> None:
    """Run the retry sweep every `interval` seconds until cancelled."""
    while True:
        try:
            retried = await reconciler.retry()
            if retried:
                logger.info("Retried %d failed realm(s): %s", len(retried), ", ".join(retried))
        except Exception:
            logger.exception("Retry sweep failed")
        await asyncio.sleep(interval)


@kopf.on.startup()
async def startup(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Build the reconciler and start the retry sweep."""
    # Status is owned by the reconciler; keep kopf's bookkeeping in annotations
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()

    memo.stack = contextlib.AsyncExitStack()
    memo.reconciler = await memo.stack.enter_async_context(open_reconciler(_settings))
    memo.sweep = asyncio.create_task(sweep_forever(memo.reconciler, _settings.retry_interval))


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, **_: Any) -> None:
    """Stop the retry sweep and close Keycloak sessions."""
    sweep = memo.get("sweep")
    if sweep is not None:
        sweep.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep
    stack = memo.get("stack")
    if stack is not None:
        await stack.aclose()


@kopf.on.create(_GROUP, _VERSION, _PLURAL)
@kopf.on.update(_GROUP, _VERSION, _PLURAL, field="spec")
@kopf.on.resume(_GROUP, _VERSION, _PLURAL)
async def on_apply(body: kopf.Body, memo: kopf.Memo, **_: Any) -> None:
    await memo.reconciler.apply(RealmResource.from_k8s(dict(body)))


@kopf.on.delete(_GROUP, _VERSION, _PLURAL, optional=True)
async def on_delete(body: kopf.Body, memo: kopf.Memo, **_: Any) -> None:
    await memo.reconciler.delete(RealmResource.from_k8s(dict(body)))
