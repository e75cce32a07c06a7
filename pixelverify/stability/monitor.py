"""Stabilization monitor — waits until a live image stops changing.

The check is a two-state machine: a surface starts ``Pending`` and ends
either ``Stable`` (the content identifier read twice across the settle window
is identical) or ``Unstable``. By default a single settle check is made; the
caller decides whether to try again. ``TimeoutConfig.stability_retries``
opts into a bounded retry loop with exponential backoff whose total duration
never exceeds the ``max_wait_ms`` budget.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Protocol

from pixelverify.errors import NotVisibleError, UnstableError
from pixelverify.models.comparison import StabilityResult
from pixelverify.models.config import TimeoutConfig

logger = logging.getLogger(__name__)


class SurfaceHandle(Protocol):
    """Read-only view of the live surface supplied by the browser driver."""

    @property
    def description(self) -> str: ...

    async def wait_for_visible(self, timeout_ms: int) -> bool: ...

    async def is_visible(self) -> bool: ...

    async def get_attribute(self, name: str) -> Optional[str]: ...

    async def wait_for_network_idle(self, timeout_ms: int) -> bool: ...

    async def fetch_bytes(self, url: str, timeout_ms: int) -> tuple[int, bytes]: ...

    def resolve_url(self, content_id: str) -> str: ...


class StabilizationMonitor:
    """Blocks until the content identifier of a surface is quiescent."""

    def __init__(self, timeouts: TimeoutConfig | None = None, content_attribute: str = "src"):
        self.timeouts = timeouts or TimeoutConfig()
        self.content_attribute = content_attribute

    async def await_stable(
        self,
        surface: SurfaceHandle,
        settle_window_ms: int | None = None,
        max_wait_ms: int | None = None,
    ) -> StabilityResult:
        """Wait for visibility, quiesce the network, then run the settle check.

        Raises NotVisibleError if the surface never shows up within
        ``max_wait_ms`` and UnstableError if the identifier changes across the
        settle window (on every permitted attempt).

        The first settle window always runs in full, so a ``settle_window_ms``
        longer than ``max_wait_ms`` is rejected with ValueError.
        """
        settle_ms = settle_window_ms if settle_window_ms is not None else self.timeouts.settle_window_ms
        budget_ms = max_wait_ms if max_wait_ms is not None else self.timeouts.visible_timeout_ms
        if settle_ms > budget_ms:
            raise ValueError(f"settle window of {settle_ms}ms exceeds the {budget_ms}ms wait budget")
        start = time.monotonic()
        deadline = start + budget_ms / 1000

        if not await surface.wait_for_visible(budget_ms):
            raise NotVisibleError(surface.description, budget_ms)

        await self._quiesce_network(surface, deadline)

        attempts = 0
        window_ms: float = settle_ms
        while True:
            attempts += 1
            initial = await surface.get_attribute(self.content_attribute)
            await asyncio.sleep(window_ms / 1000)
            current = await surface.get_attribute(self.content_attribute)
            logger.debug(
                "Stability sample %d on %s: %r -> %r (%.0fms)",
                attempts, surface.description, initial, current, window_ms,
            )

            if initial is not None and initial == current:
                elapsed = time.monotonic() - start
                logger.debug("Surface %s stable after %.2fs", surface.description, elapsed)
                return StabilityResult(
                    is_stable=True,
                    final_content_id=current,
                    elapsed_seconds=elapsed,
                    attempts=attempts,
                )

            if attempts > self.timeouts.stability_retries:
                raise UnstableError(initial, current, settle_ms, attempts)

            window_ms *= self.timeouts.stability_backoff_factor
            if time.monotonic() + window_ms / 1000 > deadline:
                logger.debug("Next settle window of %.0fms would exceed the wait budget", window_ms)
                raise UnstableError(initial, current, settle_ms, attempts)

    async def _quiesce_network(self, surface: SurfaceHandle, deadline: float) -> None:
        remaining_ms = max(0, int((deadline - time.monotonic()) * 1000))
        timeout_ms = min(self.timeouts.network_idle_timeout_ms, remaining_ms)
        if timeout_ms <= 0:
            return
        # Pages that long-poll never go idle; carry on with the settle check
        if not await surface.wait_for_network_idle(timeout_ms):
            logger.warning("Network did not go idle within %dms for %s", timeout_ms, surface.description)
