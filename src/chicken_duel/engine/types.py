"""Type definitions for the duel engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import Settings


class Side(str, Enum):
    """The two corners of the arena."""

    RED = "red"
    BLUE = "blue"

    @property
    def opposite(self) -> "Side":
        """Get the other side."""
        return Side.BLUE if self is Side.RED else Side.RED


class DuelPhase(str, Enum):
    """Lifecycle phase of a duel."""

    IDLE = "idle"  # Created, waiting for side selection and start
    FIGHTING = "fighting"  # Scheduler running, frames being processed
    CONCLUDED = "concluded"  # Knockout happened, terminal


@dataclass(frozen=True)
class DuelConfig:
    """Tuning constants for a single duel.

    Built from Settings via from_settings(); the engine never reads settings directly.
    """

    attack_duration: float = 0.5  # seconds
    attack_tick_ms: int = 900
    max_health: int = 100
    damage_min: int = 5
    damage_max: int = 20
    hit_window_start: float = 0.4
    hit_window_end: float = 0.6
    prize_options: tuple[int, ...] = (3000, 5000, 8000)

    def __post_init__(self) -> None:
        if self.attack_duration <= 0:
            raise ValueError("attack_duration must be positive")
        # An attack should finish before the next tick reaches the same fighter
        if self.attack_tick_ms / 1000 <= self.attack_duration:
            raise ValueError("attack_tick_ms must be longer than attack_duration")
        if self.max_health <= 0:
            raise ValueError("max_health must be positive")
        if not 0 < self.damage_min <= self.damage_max:
            raise ValueError("damage range must satisfy 0 < damage_min <= damage_max")
        if not 0.0 < self.hit_window_start < self.hit_window_end < 1.0:
            raise ValueError("hit window must lie strictly inside (0, 1)")
        if not self.prize_options:
            raise ValueError("prize_options must not be empty")

    @property
    def tick_interval(self) -> float:
        """Scheduler interval in seconds."""
        return self.attack_tick_ms / 1000

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DuelConfig":
        """Build a duel config from application settings."""
        return cls(
            attack_duration=settings.attack_duration,
            attack_tick_ms=settings.attack_tick_ms,
            max_health=settings.fighter_max_health,
            damage_min=settings.damage_min,
            damage_max=settings.damage_max,
            hit_window_start=settings.hit_window_start,
            hit_window_end=settings.hit_window_end,
            prize_options=tuple(settings.get_prize_options()),
        )


@dataclass
class Fighter:
    """In-memory state of one combatant.

    Attack fields are written by the scheduler tick; health is written only by
    the attack resolver during frame updates.
    """

    side: Side
    health: int
    max_health: int
    is_attacking: bool = False
    attack_start_time: float = 0.0
    hit_applied: bool = False

    @classmethod
    def fresh(cls, side: Side, max_health: int) -> "Fighter":
        """Create a fighter at full health."""
        return cls(side=side, health=max_health, max_health=max_health)

    def is_alive(self) -> bool:
        """Check if the fighter still has health left."""
        return self.health > 0

    def begin_attack(self, now: float) -> bool:
        """Start a new attack instance. Returns False if one is already running."""
        if self.is_attacking:
            return False
        self.is_attacking = True
        self.attack_start_time = now
        self.hit_applied = False
        return True

    def take_damage(self, amount: int) -> int:
        """Apply damage, flooring health at 0. Returns actual damage dealt."""
        actual = min(self.health, amount)
        self.health -= actual
        return actual


@dataclass
class Outcome:
    """Result of the outcome resolver."""

    winner: Side
    player_won: bool
    reward: int


@dataclass
class DuelOutcome:
    """Result event handed to result sinks at conclusion."""

    winner: Side
    player_choice: Side
    player_won: bool
    reward: int
    session_token: str | int | None = None
    first_turn: Side | None = None
    concluded_at: float = 0.0  # duel clock reading


@dataclass
class Duel:
    """Aggregate owning both fighters and the lifecycle state."""

    red: Fighter
    blue: Fighter
    phase: DuelPhase = DuelPhase.IDLE
    turn: Side = Side.RED
    first_turn: Side | None = None
    player_choice: Side | None = None
    result: DuelOutcome | None = None
    trigger_count: int = 0
    attack_history: list[Side] = field(default_factory=list)

    @classmethod
    def create(cls, max_health: int = 100) -> "Duel":
        """Create an idle duel with two fresh fighters."""
        return cls(
            red=Fighter.fresh(Side.RED, max_health),
            blue=Fighter.fresh(Side.BLUE, max_health),
        )

    def fighter(self, side: Side) -> Fighter:
        """Get the fighter on a side."""
        return self.red if side is Side.RED else self.blue

    def opponent(self, side: Side) -> Fighter:
        """Get the fighter opposing a side."""
        return self.fighter(side.opposite)

    @property
    def fighters(self) -> tuple[Fighter, Fighter]:
        return (self.red, self.blue)
