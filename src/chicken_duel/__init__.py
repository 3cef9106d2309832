"""Chicken Duel - a timed two-fighter duel arena with coupon-backed prizes."""

__version__ = "0.1.0"
