"""Duel engine module - handles turn scheduling, attack resolution, knockout and rewards."""

from .attack import AttackResolver, AttackUpdate
from .clock import Clock, ManualClock, MonotonicClock
from .duel import DuelEngine, DuelResult
from .exceptions import DuelEngineError, OutcomeAlreadyResolvedError
from .logging import CombatLog, CombatLogger, FighterSnapshot, LogEntry, LogEventType
from .outcome import OutcomeResolver
from .runner import DuelRunner, FrameDriver
from .scheduler import TurnScheduler
from .types import Duel, DuelConfig, DuelOutcome, DuelPhase, Fighter, Outcome, Side

__all__ = [
    "AttackResolver",
    "AttackUpdate",
    "Clock",
    "ManualClock",
    "MonotonicClock",
    "DuelEngine",
    "DuelResult",
    "DuelEngineError",
    "OutcomeAlreadyResolvedError",
    "CombatLogger",
    "CombatLog",
    "LogEntry",
    "LogEventType",
    "FighterSnapshot",
    "OutcomeResolver",
    "DuelRunner",
    "FrameDriver",
    "TurnScheduler",
    "Duel",
    "DuelConfig",
    "DuelOutcome",
    "DuelPhase",
    "Fighter",
    "Outcome",
    "Side",
]
