"""Enums for arena models."""

from enum import Enum


class CouponStatus(str, Enum):
    """Lifecycle of an arena coupon."""

    ACTIVE = "active"  # Issued, not yet spent on a duel
    USED = "used"  # A duel result was recorded against it


class FighterSide(str, Enum):
    """Side stored on duel records (mirrors engine Side)."""

    RED = "red"
    BLUE = "blue"
