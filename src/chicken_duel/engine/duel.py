"""Duel engine - orchestrates the full duel flow."""

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .attack import AttackResolver, AttackUpdate
from .clock import Clock, MonotonicClock
from .outcome import OutcomeResolver
from .scheduler import TurnScheduler
from .types import Duel, DuelConfig, DuelOutcome, DuelPhase, Side

if TYPE_CHECKING:
    from .logging import CombatLog, CombatLogger

logger = logging.getLogger(__name__)

ResultListener = Callable[[DuelOutcome], None]


@dataclass
class DuelResult:
    """Result of a duel command."""

    success: bool
    message: str
    outcome: DuelOutcome | None = None
    combat_log: "CombatLog | None" = None


class DuelEngine:
    """Main duel engine - owns one duel from side selection to knockout.

    Two sources drive it on the same event loop: the turn scheduler calls
    trigger_attack() on a fixed cadence, and a frame driver calls update() as
    often as it likes. Triggers only touch attack state; frames only touch
    health, hit flags and attack completion.
    """

    def __init__(
        self,
        config: DuelConfig | None = None,
        *,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        logger: "CombatLogger | None" = None,
        session_authorized: bool = False,
        session_token: str | int | None = None,
        scheduler: TurnScheduler | None = None,
    ) -> None:
        self.config = config or DuelConfig()
        self.clock = clock or MonotonicClock()
        self.rng = rng or random.Random()
        self.logger = logger
        self.session_authorized = session_authorized
        self.session_token = session_token

        self.duel = Duel.create(max_health=self.config.max_health)
        self.attack_resolver = AttackResolver(self.config, rng=self.rng, logger=logger)
        self.outcome_resolver = OutcomeResolver(self.config.prize_options, rng=self.rng)
        self.scheduler = scheduler or TurnScheduler(self.config.tick_interval)

        self._listeners: list[ResultListener] = []
        self._concluded = asyncio.Event()

    @property
    def phase(self) -> DuelPhase:
        return self.duel.phase

    @property
    def is_over(self) -> bool:
        return self.duel.phase is DuelPhase.CONCLUDED

    def add_result_listener(self, listener: ResultListener) -> None:
        """Register a callback invoked once with the outcome at conclusion."""
        self._listeners.append(listener)

    def select_side(self, side: Side | str) -> DuelResult:
        """Record which side the observer backs.

        Args:
            side: Side or its string value ("red"/"blue")

        Returns:
            DuelResult indicating success or failure
        """
        if self.duel.phase is not DuelPhase.IDLE:
            return DuelResult(success=False, message="The fight has already started, your pick is locked in")

        try:
            chosen = Side(side)
        except ValueError:
            return DuelResult(success=False, message=f"Unknown fighter: {side}")

        self.duel.player_choice = chosen
        return DuelResult(success=True, message=f"You chose {chosen.value.upper()}")

    def start(self) -> DuelResult:
        """Start the duel (transition IDLE -> FIGHTING) and the turn scheduler.

        Must be called from inside a running event loop.

        Returns:
            DuelResult indicating success or failure
        """
        if not self.session_authorized:
            return DuelResult(success=False, message="Session is not authorized")

        if self.duel.phase is DuelPhase.FIGHTING:
            return DuelResult(success=False, message="The fight is already in progress")

        if self.duel.phase is DuelPhase.CONCLUDED:
            return DuelResult(success=False, message="The fight is already over")

        if self.duel.player_choice is None:
            return DuelResult(success=False, message="Please select a fighter!")

        first = self.rng.choice([Side.RED, Side.BLUE])
        self.duel.turn = first
        self.duel.first_turn = first
        self.scheduler.start(self.duel, self.trigger_attack)
        self.duel.phase = DuelPhase.FIGHTING

        now = self.clock.elapsed()
        if self.logger:
            self.logger.log_duel_started(now, first_turn=first, player_choice=self.duel.player_choice)
        logger.info(
            f"Duel started (session={self.session_token}): observer backs "
            f"{self.duel.player_choice.value}, first attack {first.value}"
        )

        return DuelResult(success=True, message=f"The fight begins! First attack: {first.value.upper()}")

    def trigger_attack(self, duel: Duel, side: Side) -> bool:
        """Scheduler callback: start an attack for a side unless it is mid-attack.

        Returns:
            True if a new attack instance began
        """
        if duel.phase is not DuelPhase.FIGHTING:
            return False

        fighter = duel.fighter(side)
        now = self.clock.elapsed()

        if not fighter.begin_attack(now):
            logger.debug(f"Trigger for {side.value} ignored, attack still in progress")
            if self.logger:
                self.logger.log_attack_ignored(now, fighter)
            return False

        if self.logger:
            self.logger.log_attack_triggered(now, fighter)
        return True

    def update(self, now: float | None = None) -> list[AttackUpdate]:
        """Per-frame update: advance every attacking fighter, then check for knockout.

        Args:
            now: Duel clock reading; read from the clock when omitted

        Returns:
            The attack updates processed this frame (empty once the duel is over)
        """
        if self.duel.phase is not DuelPhase.FIGHTING:
            return []

        if now is None:
            now = self.clock.elapsed()

        # Earlier attacks reach their impact window first; RED breaks exact ties
        attackers = sorted(
            (f for f in self.duel.fighters if f.is_attacking),
            key=lambda f: (f.attack_start_time, f.side is not Side.RED),
        )

        updates: list[AttackUpdate] = []
        winner: Side | None = None
        for attacker in attackers:
            defender = self.duel.opponent(attacker.side)
            update = self.attack_resolver.advance(attacker, defender, now)
            updates.append(update)
            if update.hit and defender.health == 0 and winner is None:
                winner = attacker.side

        # Knockout is only evaluated after every fighter's damage for this frame resolved
        if winner is None:
            for fighter in self.duel.fighters:
                if fighter.health == 0:
                    winner = fighter.side.opposite
                    break

        if winner is not None:
            self.conclude(winner, now)

        return updates

    def conclude(self, winner: Side, now: float | None = None) -> DuelOutcome | None:
        """Conclude the duel with a winner. Repeated calls return the first outcome.

        Returns:
            The duel outcome, or None if the duel never started
        """
        if self.duel.phase is DuelPhase.CONCLUDED:
            return self.duel.result
        if self.duel.phase is not DuelPhase.FIGHTING or self.duel.player_choice is None:
            return None

        if now is None:
            now = self.clock.elapsed()

        self.duel.phase = DuelPhase.CONCLUDED
        self.scheduler.stop()

        loser = self.duel.opponent(winner)
        outcome = self.outcome_resolver.resolve(winner, self.duel.player_choice)
        self.duel.result = DuelOutcome(
            winner=winner,
            player_choice=self.duel.player_choice,
            player_won=outcome.player_won,
            reward=outcome.reward,
            session_token=self.session_token,
            first_turn=self.duel.first_turn,
            concluded_at=now,
        )

        if self.logger:
            self.logger.log_knockout(now, loser)
            self.logger.log_winner(now, winner)
            self.logger.log_reward(now, self.duel.player_choice, outcome.player_won, outcome.reward)
        logger.info(
            f"Duel concluded (session={self.session_token}): winner {winner.value}, "
            f"observer {'won' if outcome.player_won else 'lost'}, reward {outcome.reward}"
        )

        self._notify(self.duel.result)
        self._concluded.set()
        return self.duel.result

    def shutdown(self) -> None:
        """Stop the scheduler without concluding (e.g. the host is going away)."""
        self.scheduler.stop()

    async def wait_concluded(self) -> DuelOutcome:
        """Wait until the duel concludes and return its outcome."""
        await self._concluded.wait()
        # Set before the event fires
        return self.duel.result

    def get_duel_state(self) -> dict[str, Any]:
        """Get the current state of the duel for display."""
        result = self.duel.result
        return {
            "phase": self.duel.phase.value,
            "turn": self.duel.turn.value,
            "first_turn": self.duel.first_turn.value if self.duel.first_turn else None,
            "player_choice": self.duel.player_choice.value if self.duel.player_choice else None,
            "fighters": [
                {
                    "side": f.side.value,
                    "health": f.health,
                    "max_health": f.max_health,
                    "is_attacking": f.is_attacking,
                }
                for f in self.duel.fighters
            ],
            "result": {
                "winner": result.winner.value,
                "player_won": result.player_won,
                "reward": result.reward,
            }
            if result
            else None,
        }

    def get_combat_log(self) -> "CombatLog | None":
        """Get the combat log if a logger is attached."""
        return self.logger.get_log() if self.logger else None

    def _notify(self, outcome: DuelOutcome) -> None:
        """Hand the outcome to every listener; a failing listener can't undo the result."""
        for listener in self._listeners:
            try:
                listener(outcome)
            except Exception:
                logger.exception(f"Result listener {listener!r} failed (session={self.session_token})")
