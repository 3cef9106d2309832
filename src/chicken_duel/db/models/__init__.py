"""Database models."""

from .base import Base, TimestampMixin
from .coupons import Coupon, DuelRecord
from .enums import CouponStatus, FighterSide

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Enums
    "CouponStatus",
    "FighterSide",
    # Coupons
    "Coupon",
    "DuelRecord",
]
