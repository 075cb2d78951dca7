"""
Rotating progress text shown while the video job runs.

Purely cosmetic: the phrases advance on their own clock and say nothing
about the real job. Use as an async context manager so the timer task is
cancelled on every exit path of the block it decorates.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from .. import config

logger = logging.getLogger(__name__)

VIDEO_PHRASES = (
    "Calibrating studio lighting...",
    "Setting up camera gimbal...",
    "Rendering volumetric rays...",
    "Simulating fluid dynamics...",
    "Finalizing high-res export...",
    "Optimizing bitrate...",
)


class StatusTicker:
    """
    Usage:
        async with StatusTicker(VIDEO_PHRASES, on_update=set_text):
            url = await generate_video(...)
    """

    def __init__(
        self,
        phrases: Sequence[str],
        on_update: Callable[[str], None],
        interval: float = config.VIDEO_STATUS_INTERVAL,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not phrases:
            raise ValueError("StatusTicker needs at least one phrase")
        self._phrases = tuple(phrases)
        self._on_update = on_update
        self._interval = interval
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    async def _run(self):
        while True:
            await self._sleep(self._interval)
            self._on_update(self._phrases[self.ticks % len(self._phrases)])
            self.ticks += 1

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self) -> "StatusTicker":
        self._task = asyncio.create_task(self._run())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        # Cancelling the caller while it waits here must still propagate
        await asyncio.wait([task])
        logger.debug(f"Status ticker stopped after {self.ticks} tick(s)")
