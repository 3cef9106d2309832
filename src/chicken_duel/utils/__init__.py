"""Utility modules."""

from .codes import format_prize, sanitize_code

__all__ = [
    "format_prize",
    "sanitize_code",
]
