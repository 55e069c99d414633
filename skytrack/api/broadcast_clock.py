"""
BroadcastClock — Async background timer for snapshot pushes.

Ticks at a fixed interval while running and notifies registered callbacks
with the tick count. Supports pause/resume and interval changes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

# Fastest allowed tick rate (30 per second)
MIN_INTERVAL_S = 1.0 / 30.0
MAX_INTERVAL_S = 60.0


class BroadcastClock:
    """
    Async clock that drives WebSocket snapshot broadcasts.

    At interval=0.5 the callbacks run twice per second. Callbacks decide for
    themselves whether there is anything new to send.
    """

    def __init__(self, interval_s: float = 0.5):
        self.interval_s = max(MIN_INTERVAL_S, min(MAX_INTERVAL_S, interval_s))
        self.tick: int = 0
        self.is_running: bool = False
        self._task: asyncio.Task | None = None
        self._callbacks: list[Callable[[int], Coroutine[Any, Any, None]]] = []

    def on_tick(self, callback: Callable[[int], Coroutine[Any, Any, None]]) -> None:
        """Register an async callback to be called on each tick."""
        self._callbacks.append(callback)

    def resume(self) -> None:
        """Start or resume ticking."""
        if self.is_running:
            return
        self.is_running = True
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
        logger.info("Broadcast clock running every %.3fs", self.interval_s)

    def pause(self) -> None:
        """Pause ticking."""
        self.is_running = False
        logger.info("Broadcast clock paused at tick %d", self.tick)

    def set_interval(self, interval_s: float) -> None:
        """Set the tick interval in seconds."""
        self.interval_s = max(MIN_INTERVAL_S, min(MAX_INTERVAL_S, interval_s))
        logger.info("Broadcast interval set to %.3fs", self.interval_s)

    async def start(self) -> None:
        """Start the clock background task (called during app lifespan)."""
        self.is_running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the clock background task."""
        self.is_running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def fire(self) -> None:
        """Advance one tick and notify callbacks."""
        self.tick += 1
        for cb in self._callbacks:
            try:
                await cb(self.tick)
            except Exception:
                logger.exception("Error in broadcast callback")

    async def _run(self) -> None:
        """Main loop: sleep one interval, then tick."""
        while True:
            if not self.is_running:
                await asyncio.sleep(0.1)
                continue

            await asyncio.sleep(self.interval_s)

            if not self.is_running:
                continue

            await self.fire()
