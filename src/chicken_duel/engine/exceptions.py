"""Engine exceptions."""


class DuelEngineError(Exception):
    """Base class for duel engine invariant violations."""


class OutcomeAlreadyResolvedError(DuelEngineError):
    """Raised when a duel's outcome would be granted a second time."""
