"""Combat logging system for tracking and verifying duel engine output.

Provides structured logging of all duel events including:
- Duel start and the randomly chosen first turn
- Attack triggers (and triggers ignored because the fighter was busy)
- Hits with the progress at which they landed and before/after health
- Knockout, winner and reward
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .types import Fighter, Side


class LogEventType(str, Enum):
    """Types of log events."""

    # Duel lifecycle
    DUEL_STARTED = "duel_started"

    # Attack lifecycle
    ATTACK_TRIGGERED = "attack_triggered"
    ATTACK_IGNORED = "attack_ignored"  # Fighter was still mid-attack
    HIT_APPLIED = "hit_applied"
    ATTACK_COMPLETED = "attack_completed"

    # Conclusion
    KNOCKOUT = "knockout"
    WINNER_DETERMINED = "winner_determined"
    REWARD_RESOLVED = "reward_resolved"


@dataclass
class FighterSnapshot:
    """Snapshot of a fighter's state at a point in time."""

    side: Side
    health: int
    max_health: int
    is_attacking: bool
    hit_applied: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "side": self.side.value,
            "health": self.health,
            "max_health": self.max_health,
            "is_attacking": self.is_attacking,
            "hit_applied": self.hit_applied,
        }


@dataclass
class LogEntry:
    """A single log entry representing a duel event."""

    event_type: LogEventType
    timestamp: float  # Duel clock reading
    order: int = 0  # Insertion order for deterministic sorting

    side: Side | None = None
    target_side: Side | None = None
    value: int | None = None  # Damage or reward
    progress: float | None = None
    description: str | None = None

    state_before: FighterSnapshot | None = None
    state_after: FighterSnapshot | None = None

    winner: Side | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "event_type": self.event_type.value,
            "timestamp": round(self.timestamp, 4),
            "order": self.order,
        }

        if self.side is not None:
            result["side"] = self.side.value
        if self.target_side is not None:
            result["target_side"] = self.target_side.value
        if self.value is not None:
            result["value"] = self.value
        if self.progress is not None:
            result["progress"] = round(self.progress, 4)
        if self.description is not None:
            result["description"] = self.description
        if self.state_before is not None:
            result["state_before"] = self.state_before.to_dict()
        if self.state_after is not None:
            result["state_after"] = self.state_after.to_dict()
        if self.winner is not None:
            result["winner"] = self.winner.value

        return result


@dataclass
class CombatLog:
    """Complete log of one duel."""

    duel_label: str
    entries: list[LogEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "duel": self.duel_label,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    def get_entries_by_type(self, event_type: LogEventType) -> list[LogEntry]:
        """Get all entries of a specific type."""
        return [e for e in self.entries if e.event_type == event_type]

    def get_entries_for_side(self, side: Side) -> list[LogEntry]:
        """Get all entries where the given side acted."""
        return [e for e in self.entries if e.side == side]

    def total_damage_by(self, side: Side) -> int:
        """Sum the damage dealt by a side."""
        return sum(e.value or 0 for e in self.get_entries_by_type(LogEventType.HIT_APPLIED) if e.side == side)

    def format_readable(self) -> str:
        """Format the log in a human-readable format."""
        lines: list[str] = [f"=== Combat Log ({self.duel_label}) ==="]
        for entry in self.entries:
            lines.append(f"[{entry.timestamp:7.3f}s] {self._format_entry(entry)}")
        return "\n".join(lines)

    def _format_entry(self, entry: LogEntry) -> str:
        """Format a single log entry."""
        side = entry.side.value.upper() if entry.side else "?"

        match entry.event_type:
            case LogEventType.DUEL_STARTED:
                return f"Duel begins, first attack: {side}"

            case LogEventType.ATTACK_TRIGGERED:
                return f"{side} attacks"

            case LogEventType.ATTACK_IGNORED:
                return f"{side} is still attacking, trigger ignored"

            case LogEventType.HIT_APPLIED:
                target = entry.target_side.value.upper() if entry.target_side else "?"
                hp_change = ""
                if entry.state_before and entry.state_after:
                    hp_change = f" [HP: {entry.state_before.health} → {entry.state_after.health}]"
                return f"  → {side} hits {target} for {entry.value}{hp_change} at {entry.progress:.2f}"

            case LogEventType.ATTACK_COMPLETED:
                return f"  {side} attack finished"

            case LogEventType.KNOCKOUT:
                return f"*** {side} is knocked out ***"

            case LogEventType.WINNER_DETERMINED:
                winner = entry.winner.value.upper() if entry.winner else "?"
                return f"*** WINNER: {winner} ***"

            case LogEventType.REWARD_RESOLVED:
                return f"Reward: {entry.value} ({entry.description or ''})"

            case _:
                return f"{entry.event_type.value}: {entry.description or ''}"


class CombatLogger:
    """Logger for tracking duel events.

    Usage:
        logger = CombatLogger(duel_label="coupon 42")
        engine = DuelEngine(config, logger=logger, ...)
        # ... run the duel ...
        print(logger.get_log().format_readable())
    """

    def __init__(self, duel_label: str = "duel") -> None:
        """Initialize the logger for a duel."""
        self.duel_label = duel_label
        self._log = CombatLog(duel_label=duel_label)
        self._order_counter = 0

    def _next_order(self) -> int:
        """Get the next insertion order value."""
        self._order_counter += 1
        return self._order_counter

    def _append(self, entry: LogEntry) -> None:
        entry.order = self._next_order()
        self._log.entries.append(entry)

    def get_log(self) -> CombatLog:
        """Get the complete combat log."""
        return self._log

    def clear(self) -> None:
        """Clear all log entries."""
        self._log.entries.clear()
        self._order_counter = 0

    @staticmethod
    def snapshot_fighter(fighter: Fighter) -> FighterSnapshot:
        """Create a snapshot from a Fighter."""
        return FighterSnapshot(
            side=fighter.side,
            health=fighter.health,
            max_health=fighter.max_health,
            is_attacking=fighter.is_attacking,
            hit_applied=fighter.hit_applied,
        )

    def log_duel_started(self, timestamp: float, first_turn: Side, player_choice: Side) -> None:
        """Log the start of a duel."""
        self._append(
            LogEntry(
                event_type=LogEventType.DUEL_STARTED,
                timestamp=timestamp,
                side=first_turn,
                description=f"observer backs {player_choice.value}",
            )
        )

    def log_attack_triggered(self, timestamp: float, attacker: Fighter) -> None:
        """Log an attack trigger that started a new attack instance."""
        self._append(LogEntry(event_type=LogEventType.ATTACK_TRIGGERED, timestamp=timestamp, side=attacker.side))

    def log_attack_ignored(self, timestamp: float, attacker: Fighter) -> None:
        """Log a trigger that arrived while the fighter was still attacking."""
        self._append(LogEntry(event_type=LogEventType.ATTACK_IGNORED, timestamp=timestamp, side=attacker.side))

    def log_hit_applied(
        self,
        timestamp: float,
        attacker: Fighter,
        defender: Fighter,
        damage: int,
        progress: float,
        health_before: int,
    ) -> None:
        """Log a hit with the defender's before/after state."""
        after = self.snapshot_fighter(defender)
        before = FighterSnapshot(
            side=defender.side,
            health=health_before,
            max_health=defender.max_health,
            is_attacking=defender.is_attacking,
            hit_applied=defender.hit_applied,
        )
        self._append(
            LogEntry(
                event_type=LogEventType.HIT_APPLIED,
                timestamp=timestamp,
                side=attacker.side,
                target_side=defender.side,
                value=damage,
                progress=progress,
                state_before=before,
                state_after=after,
            )
        )

    def log_attack_completed(self, timestamp: float, attacker: Fighter) -> None:
        """Log an attack instance finishing."""
        self._append(
            LogEntry(
                event_type=LogEventType.ATTACK_COMPLETED,
                timestamp=timestamp,
                side=attacker.side,
                description="hit" if attacker.hit_applied else "no hit",
            )
        )

    def log_knockout(self, timestamp: float, fighter: Fighter) -> None:
        """Log a fighter reaching zero health."""
        self._append(
            LogEntry(
                event_type=LogEventType.KNOCKOUT,
                timestamp=timestamp,
                side=fighter.side,
                state_after=self.snapshot_fighter(fighter),
            )
        )

    def log_winner(self, timestamp: float, winner: Side) -> None:
        """Log the winner determination."""
        self._append(LogEntry(event_type=LogEventType.WINNER_DETERMINED, timestamp=timestamp, winner=winner))

    def log_reward(self, timestamp: float, player_choice: Side, player_won: bool, reward: int) -> None:
        """Log the observer's reward."""
        self._append(
            LogEntry(
                event_type=LogEventType.REWARD_RESOLVED,
                timestamp=timestamp,
                side=player_choice,
                value=reward,
                description="observer won" if player_won else "observer lost",
            )
        )
