"""Turn scheduler - fires alternating attack triggers on a fixed cadence."""

import asyncio
import logging
from collections.abc import Callable

from .types import Duel, DuelPhase, Side

logger = logging.getLogger(__name__)

# Receives the duel and the side whose turn it is; returns whether an attack started
AttackTrigger = Callable[[Duel, Side], bool]


class TurnScheduler:
    """Emits one attack trigger per interval, flipping the turn after each.

    The scheduler does not wait for the previous attack to finish. A trigger
    aimed at a fighter that is still attacking is a no-op for that fighter,
    but the turn flips regardless.
    """

    def __init__(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError("Scheduler interval must be positive")
        self.interval = interval
        self._duel: Duel | None = None
        self._trigger: AttackTrigger | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, duel: Duel, trigger: AttackTrigger) -> None:
        """Begin emitting triggers for the duel. Must be called inside a running event loop."""
        if self.running:
            raise RuntimeError("Scheduler is already running")
        self._duel = duel
        self._trigger = trigger
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel future triggers. Safe to call repeatedly or before start."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Turn scheduler stopped")

    def tick(self) -> Side | None:
        """Emit a single trigger for the current turn and flip it.

        Returns:
            The side that was triggered, or None if the duel is not fighting
        """
        duel = self._duel
        if duel is None or self._trigger is None or duel.phase is not DuelPhase.FIGHTING:
            return None

        side = duel.turn
        self._trigger(duel, side)
        duel.turn = side.opposite
        duel.trigger_count += 1
        duel.attack_history.append(side)
        return side

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self._duel is None or self._duel.phase is not DuelPhase.FIGHTING:
                return
            self.tick()
