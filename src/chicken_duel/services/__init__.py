"""Service layer for arena logic."""

from .arena import ArenaRegistry, ArenaSession
from .coupons import CouponCheck, CouponCheckStatus, CouponService
from .results import ResultService, SaveResult

__all__ = [
    "ArenaRegistry",
    "ArenaSession",
    "CouponCheck",
    "CouponCheckStatus",
    "CouponService",
    "ResultService",
    "SaveResult",
]
