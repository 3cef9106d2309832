"""Coupon and duel record models."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .enums import CouponStatus, FighterSide


class Coupon(Base, TimestampMixin):
    """A single-use entry ticket to the arena.

    Bound to one player code; becomes USED once a duel result is recorded.
    """

    __tablename__ = "coupons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    player_code: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[CouponStatus] = mapped_column(
        SQLEnum(CouponStatus, name="coupon_status"), nullable=False, default=CouponStatus.ACTIVE
    )

    # Filled in when the duel result is saved (0 for a lost duel)
    reward: Mapped[int | None] = mapped_column(Integer, nullable=True)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    used_by_telegram_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    # Relationships
    duel_records: Mapped[list["DuelRecord"]] = relationship(
        "DuelRecord", back_populates="coupon", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Coupon(id={self.id}, code={self.code}, status={self.status})>"


class DuelRecord(Base, TimestampMixin):
    """Outcome of a finished duel, kept for auditing payouts."""

    __tablename__ = "duel_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    coupon_id: Mapped[int] = mapped_column(Integer, ForeignKey("coupons.id"), nullable=False, index=True)
    telegram_user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    player_choice: Mapped[FighterSide] = mapped_column(SQLEnum(FighterSide, name="fighter_side"), nullable=False)
    winner: Mapped[FighterSide] = mapped_column(SQLEnum(FighterSide, name="fighter_side"), nullable=False)
    first_turn: Mapped[FighterSide | None] = mapped_column(
        SQLEnum(FighterSide, name="fighter_side"), nullable=True
    )
    player_won: Mapped[bool] = mapped_column(Boolean, nullable=False)
    reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_seconds: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Serialized CombatLog, if one was captured
    combat_log: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )

    # Relationships
    coupon: Mapped["Coupon"] = relationship("Coupon", back_populates="duel_records")

    def __repr__(self) -> str:
        return f"<DuelRecord(id={self.id}, winner={self.winner}, reward={self.reward})>"
