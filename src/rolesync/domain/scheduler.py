"""Fixed-delay driver for reconciliation passes."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from rolesync.domain.reconciliation import PassResult

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationScheduler:
    """Run one pass, wait the full interval, repeat.

    Passes never overlap: a pass that overruns the interval delays the next start
    instead of stacking. A failing pass is logged and the loop carries on.
    """

    run_pass: Callable[[], Awaitable[PassResult]]
    interval_seconds: float
    ready: Callable[[], Awaitable[None]] | None = None

    async def run(
        self,
        *,
        stop: asyncio.Event | None = None,
        max_passes: int | None = None,
    ) -> int:
        """Loop until ``stop`` is set or ``max_passes`` passes ran; return the pass count."""

        stop_event = stop or asyncio.Event()
        if self.ready is not None:
            await self.ready()
            log.info("Access-control client ready; reconciling every %ss", self.interval_seconds)

        passes = 0
        while not stop_event.is_set():
            await self.run_once()
            passes += 1
            if max_passes is not None and passes >= max_passes:
                break
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
        log.info("Scheduler stopped after %s pass(es)", passes)
        return passes

    async def run_once(self) -> PassResult | None:
        try:
            return await self.run_pass()
        except Exception:  # noqa: BLE001
            log.exception("Reconciliation pass failed; retrying on the next tick")
            return None
