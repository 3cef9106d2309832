"""Outcome resolver - turns a knockout into a verdict and a reward."""

import random

from .exceptions import OutcomeAlreadyResolvedError
from .types import Outcome, Side


class OutcomeResolver:
    """Resolves the winner against the observer's pick, at most once per duel."""

    def __init__(self, prize_options: tuple[int, ...], rng: random.Random | None = None) -> None:
        if not prize_options:
            raise ValueError("prize_options must not be empty")
        self.prize_options = prize_options
        self.rng = rng or random.Random()
        self._resolved: Outcome | None = None

    @property
    def resolved(self) -> Outcome | None:
        """The outcome already granted, if any."""
        return self._resolved

    def pick_prize(self) -> int:
        """Draw a prize uniformly from the configured options."""
        return self.rng.choice(self.prize_options)

    def resolve(self, winner: Side, player_choice: Side) -> Outcome:
        """Decide whether the observer won and how much they receive.

        Raises:
            OutcomeAlreadyResolvedError: if this duel's outcome was already granted
        """
        if self._resolved is not None:
            raise OutcomeAlreadyResolvedError(
                f"Outcome already resolved (winner={self._resolved.winner.value}, reward={self._resolved.reward})"
            )

        player_won = player_choice == winner
        reward = self.pick_prize() if player_won else 0
        self._resolved = Outcome(winner=winner, player_won=player_won, reward=reward)
        return self._resolved
