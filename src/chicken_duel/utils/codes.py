"""Normalization of user-typed coupon and player codes."""

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")


def sanitize_code(raw: str | None) -> str:
    """Normalize a code the way it is stored.

    Applies NFKC normalization (folds full-width characters and the like),
    removes every whitespace character including non-breaking spaces, and
    upper-cases the result.

    Args:
        raw: Code as typed by the user

    Returns:
        Normalized code, empty string for None
    """
    normalized = unicodedata.normalize("NFKC", raw or "")
    return _WHITESPACE.sub("", normalized).upper()


def format_prize(amount: int) -> str:
    """Format a prize amount with thousands separators (e.g. 'Rp 5,000')."""
    return f"Rp {amount:,}"
