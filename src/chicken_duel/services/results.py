"""Result service - persists duel outcomes against the coupon that paid for them."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models.coupons import DuelRecord
from ..db.models.enums import FighterSide
from ..engine.logging import CombatLog
from ..engine.types import DuelOutcome
from .coupons import CouponService

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Result of saving a duel outcome."""

    success: bool
    message: str
    record_id: int | None = None


class ResultService:
    """Service for storing finished duels."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.coupons = CouponService(session)

    async def save_duel(
        self,
        coupon_id: int,
        telegram_user_id: int,
        outcome: DuelOutcome,
        duration_seconds: float = 0.0,
        combat_log: CombatLog | None = None,
    ) -> SaveResult:
        """Record a duel and spend its coupon in a single transaction.

        Args:
            coupon_id: Coupon that authorized the duel
            telegram_user_id: Telegram user who watched the duel
            outcome: Outcome reported by the engine
            duration_seconds: How long the fight lasted
            combat_log: Optional structured log to attach

        Returns:
            SaveResult indicating success or failure
        """
        recorded = await self.coupons.record_result(coupon_id, outcome.reward, telegram_user_id)
        if not recorded:
            await self.session.rollback()
            return SaveResult(success=False, message="Coupon is missing or was already used")

        record = DuelRecord(
            coupon_id=coupon_id,
            telegram_user_id=telegram_user_id,
            player_choice=FighterSide(outcome.player_choice.value),
            winner=FighterSide(outcome.winner.value),
            first_turn=FighterSide(outcome.first_turn.value) if outcome.first_turn else None,
            player_won=outcome.player_won,
            reward=outcome.reward,
            duration_seconds=duration_seconds,
            combat_log=combat_log.to_dict() if combat_log else None,
        )
        self.session.add(record)
        await self.session.commit()

        logger.info(f"Saved duel record {record.id} for coupon {coupon_id}: reward {outcome.reward}")
        return SaveResult(success=True, message="Result saved", record_id=record.id)

    async def get_records_for_user(self, telegram_user_id: int) -> list[DuelRecord]:
        """Get all duel records for a Telegram user, newest first."""
        stmt = (
            select(DuelRecord)
            .where(DuelRecord.telegram_user_id == telegram_user_id)
            .order_by(DuelRecord.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
