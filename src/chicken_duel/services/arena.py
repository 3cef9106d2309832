"""Arena service - per-user arena sessions between coupon login and duel result."""

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field

from ..engine.clock import Clock
from ..engine.duel import DuelEngine, DuelResult
from ..engine.logging import CombatLogger
from ..engine.types import DuelConfig, DuelPhase, Side

logger = logging.getLogger(__name__)


@dataclass
class ArenaSession:
    """An authorized visitor in the arena with their (single) duel."""

    telegram_user_id: int
    coupon_id: int
    coupon_code: str
    player_code: str
    engine: DuelEngine
    task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def is_running(self) -> bool:
        """Check if the duel's driver task is alive (or the engine is fighting without one)."""
        if self.task is not None:
            return not self.task.done()
        return self.engine.phase is DuelPhase.FIGHTING


class ArenaRegistry:
    """In-memory registry of arena sessions keyed by Telegram user ID.

    Shared with handlers through the dispatcher's workflow data.
    """

    def __init__(
        self,
        config: DuelConfig | None = None,
        rng: random.Random | None = None,
        clock_factory: Callable[[], Clock] | None = None,
    ) -> None:
        self.config = config or DuelConfig()
        self.rng = rng
        self.clock_factory = clock_factory
        self._sessions: dict[int, ArenaSession] = {}
        # Coupons whose duel concluded but whose result is not yet stored
        self._settled: set[int] = set()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, telegram_user_id: int) -> ArenaSession | None:
        """Get the arena session for a user."""
        return self._sessions.get(telegram_user_id)

    def login(
        self,
        telegram_user_id: int,
        coupon_id: int,
        coupon_code: str,
        player_code: str,
    ) -> DuelResult:
        """Open an arena session for a validated coupon.

        A finished or idle session is replaced; a running duel is never interrupted.
        A coupon whose duel already concluded is refused even while its result
        is still unsaved.

        Returns:
            DuelResult indicating success or failure
        """
        existing = self._sessions.get(telegram_user_id)
        if existing and existing.is_running:
            return DuelResult(success=False, message="Your fight is still in progress!")

        if self.is_settled(coupon_id):
            return DuelResult(success=False, message="This coupon has already been used")

        for session in self._sessions.values():
            if session.coupon_id == coupon_id and session.telegram_user_id != telegram_user_id:
                return DuelResult(success=False, message="This coupon is already in use in the arena")

        engine = DuelEngine(
            self.config,
            clock=self.clock_factory() if self.clock_factory else None,
            rng=self.rng,
            logger=CombatLogger(duel_label=f"coupon {coupon_code}"),
            session_authorized=True,
            session_token=coupon_id,
        )
        engine.add_result_listener(lambda outcome: self._settled.add(coupon_id))
        self._sessions[telegram_user_id] = ArenaSession(
            telegram_user_id=telegram_user_id,
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            player_code=player_code,
            engine=engine,
        )
        logger.info(f"User {telegram_user_id} entered the arena with coupon {coupon_code}")
        return DuelResult(success=True, message="Welcome to the arena")

    def select_side(self, telegram_user_id: int, side: Side | str) -> DuelResult:
        """Record the side a user backs."""
        session = self._sessions.get(telegram_user_id)
        if session is None:
            return DuelResult(success=False, message="Please /login with your coupon first")
        return session.engine.select_side(side)

    def is_settled(self, coupon_id: int) -> bool:
        """Check whether a coupon's duel concluded without its result being stored yet."""
        return coupon_id in self._settled

    def release(self, session: ArenaSession) -> None:
        """Forget a session whose result has been stored.

        The stored coupon is USED from then on, so the registry no longer needs
        to guard it. Does not touch the session's task (the caller may be it).
        """
        if self._sessions.get(session.telegram_user_id) is session:
            del self._sessions[session.telegram_user_id]
        self._settled.discard(session.coupon_id)

    def discard(self, telegram_user_id: int) -> ArenaSession | None:
        """Remove a session, stopping its duel's scheduler if any."""
        session = self._sessions.pop(telegram_user_id, None)
        if session is not None:
            session.engine.shutdown()
            if session.task is not None and not session.task.done():
                session.task.cancel()
        return session

    def shutdown(self) -> None:
        """Stop every session (used when the bot stops polling)."""
        for user_id in list(self._sessions):
            self.discard(user_id)
