"""Duel clocks - elapsed-time sources for attack timing."""

import time
from typing import Protocol


class Clock(Protocol):
    """Anything that reports monotonic elapsed seconds."""

    def elapsed(self) -> float: ...


class MonotonicClock:
    """Wall clock measuring seconds since creation."""

    def __init__(self) -> None:
        self._origin = time.monotonic()

    def elapsed(self) -> float:
        return time.monotonic() - self._origin


class ManualClock:
    """Clock advanced by hand. Used to replay frames deterministically."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def elapsed(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        """Move time forward and return the new reading."""
        if seconds < 0:
            raise ValueError("Clock cannot go backwards")
        self.now += seconds
        return self.now
