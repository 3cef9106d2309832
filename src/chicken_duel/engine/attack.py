"""Attack resolver - decides when an attack lands and how hard it hits."""

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .types import DuelConfig, Fighter

if TYPE_CHECKING:
    from .logging import CombatLogger

logger = logging.getLogger(__name__)


@dataclass
class AttackUpdate:
    """What happened to one attacking fighter during a frame."""

    progress: float
    damage: int | None = None  # Set only when the hit landed this frame
    completed: bool = False

    @property
    def hit(self) -> bool:
        return self.damage is not None


class AttackResolver:
    """Advances attack instances and applies damage inside the impact window.

    Damage lands while progress is strictly inside the hit window rather than at
    a single instant, so a frame-sampled update still catches it exactly once.
    """

    def __init__(
        self,
        config: DuelConfig,
        rng: random.Random | None = None,
        logger: "CombatLogger | None" = None,
    ) -> None:
        self.config = config
        self.rng = rng or random.Random()
        self.logger = logger

    def compute_progress(self, attacker: Fighter, now: float) -> float:
        """Normalized progress of the attacker's current attack, clamped to 1.0."""
        elapsed = max(0.0, now - attacker.attack_start_time)
        return min(elapsed / self.config.attack_duration, 1.0)

    def in_hit_window(self, progress: float) -> bool:
        """Check whether progress lies strictly inside the impact window."""
        return self.config.hit_window_start < progress < self.config.hit_window_end

    def roll_damage(self) -> int:
        """Draw damage uniformly from the inclusive damage range."""
        return self.rng.randint(self.config.damage_min, self.config.damage_max)

    def advance(self, attacker: Fighter, defender: Fighter, now: float) -> AttackUpdate:
        """Advance one attacking fighter to the given clock reading.

        Args:
            attacker: Fighter whose attack is in flight
            defender: Opponent receiving the hit
            now: Current duel clock reading

        Returns:
            AttackUpdate describing progress, damage dealt and completion
        """
        progress = self.compute_progress(attacker, now)
        update = AttackUpdate(progress=progress)

        if self.in_hit_window(progress) and not attacker.hit_applied:
            health_before = defender.health
            damage = self.roll_damage()
            defender.take_damage(damage)
            attacker.hit_applied = True
            update.damage = damage

            logger.debug(
                f"{attacker.side.value} hits {defender.side.value} for {damage} "
                f"({health_before} -> {defender.health}) at progress {progress:.3f}"
            )
            if self.logger:
                self.logger.log_hit_applied(
                    timestamp=now,
                    attacker=attacker,
                    defender=defender,
                    damage=damage,
                    progress=progress,
                    health_before=health_before,
                )

        # An attack may complete without ever landing if a frame gap skipped the window
        if progress >= 1.0:
            attacker.is_attacking = False
            update.completed = True
            if self.logger:
                self.logger.log_attack_completed(timestamp=now, attacker=attacker)

        return update
