"""Database layer - coupons and duel records."""
