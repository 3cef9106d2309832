"""Duel runner - drives a duel's frame loop on the event loop until knockout."""

import asyncio
import logging

from .duel import DuelEngine, DuelResult
from .types import DuelPhase

logger = logging.getLogger(__name__)


class FrameDriver:
    """Calls engine.update() at a roughly constant rate while the duel is fighting."""

    def __init__(self, engine: DuelEngine, frame_interval: float) -> None:
        if frame_interval <= 0:
            raise ValueError("frame_interval must be positive")
        self.engine = engine
        self.frame_interval = frame_interval
        self.frames = 0

    async def run(self) -> None:
        """Run frames until the duel leaves the FIGHTING phase."""
        while self.engine.phase is DuelPhase.FIGHTING:
            self.engine.update()
            self.frames += 1
            await asyncio.sleep(self.frame_interval)


class DuelRunner:
    """Starts a duel and runs its frame driver until the outcome is known."""

    def __init__(self, engine: DuelEngine, frame_interval: float = 1 / 60) -> None:
        self.engine = engine
        self.driver = FrameDriver(engine, frame_interval)

    async def run(self) -> DuelResult:
        """Start the duel and drive it to its conclusion.

        Returns:
            DuelResult with the outcome, or the start failure unchanged
        """
        started = self.engine.start()
        if not started.success:
            return started

        frame_task = asyncio.create_task(self.driver.run())
        concluded_task = asyncio.create_task(self.engine.wait_concluded())
        try:
            done, _ = await asyncio.wait({frame_task, concluded_task}, return_when=asyncio.FIRST_COMPLETED)
            if frame_task in done and concluded_task not in done:
                # Raises if a frame blew up; otherwise the duel concluded on the last frame
                frame_task.result()
            outcome = await concluded_task
        finally:
            self.engine.shutdown()
            for task in (frame_task, concluded_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(frame_task, concluded_task, return_exceptions=True)

        logger.debug(f"Duel finished after {self.driver.frames} frames")
        return DuelResult(
            success=True,
            message="Duel concluded",
            outcome=outcome,
            combat_log=self.engine.get_combat_log(),
        )
