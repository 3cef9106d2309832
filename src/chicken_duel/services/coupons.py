"""Coupon service - validates arena coupons and records what they paid out."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models.coupons import Coupon
from ..db.models.enums import CouponStatus
from ..utils.codes import sanitize_code

logger = logging.getLogger(__name__)


class CouponCheckStatus(str, Enum):
    """Verdict of a coupon check."""

    VALID = "valid"
    USED = "used"
    INVALID = "invalid"


@dataclass
class CouponCheck:
    """Result of a coupon check."""

    status: CouponCheckStatus
    coupon_id: int | None = None
    code: str = ""
    player_code: str = ""

    @property
    def is_valid(self) -> bool:
        return self.status == CouponCheckStatus.VALID


class CouponService:
    """Service for coupon operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def check_coupon(self, code: str, player_code: str) -> CouponCheck:
        """Check whether a coupon may be used by a player.

        Both values are sanitized before lookup. A coupon bound to a different
        player code is reported as INVALID, not USED, so codes can't be probed.

        Args:
            code: Coupon code as typed
            player_code: Player ID as typed

        Returns:
            CouponCheck with the verdict and coupon ID when valid
        """
        clean_code = sanitize_code(code)
        clean_player = sanitize_code(player_code)
        if not clean_code or not clean_player:
            return CouponCheck(status=CouponCheckStatus.INVALID, code=clean_code, player_code=clean_player)

        coupon = await self._get_by_code(clean_code)
        if coupon is None or coupon.player_code != clean_player:
            logger.info(f"Coupon check failed for {clean_code!r}")
            return CouponCheck(status=CouponCheckStatus.INVALID, code=clean_code, player_code=clean_player)

        if coupon.status == CouponStatus.USED:
            return CouponCheck(
                status=CouponCheckStatus.USED, coupon_id=coupon.id, code=clean_code, player_code=clean_player
            )

        return CouponCheck(
            status=CouponCheckStatus.VALID, coupon_id=coupon.id, code=clean_code, player_code=clean_player
        )

    async def issue_coupon(self, code: str, player_code: str) -> Coupon | None:
        """Create a new active coupon.

        Returns:
            The coupon, or None if the code is empty or already exists
        """
        clean_code = sanitize_code(code)
        clean_player = sanitize_code(player_code)
        if not clean_code or not clean_player:
            return None

        if await self._get_by_code(clean_code) is not None:
            return None

        coupon = Coupon(code=clean_code, player_code=clean_player, status=CouponStatus.ACTIVE)
        self.session.add(coupon)
        await self.session.flush()
        return coupon

    async def record_result(self, coupon_id: int, reward: int, telegram_user_id: int | None = None) -> bool:
        """Mark a coupon as used and store the reward it paid (0 for a loss).

        Returns:
            True if recorded, False if the coupon is missing or already used
        """
        coupon = await self.session.get(Coupon, coupon_id)
        if coupon is None:
            logger.warning(f"No coupon {coupon_id} to record a result against")
            return False

        if coupon.status == CouponStatus.USED:
            logger.warning(f"Coupon {coupon_id} already has a recorded result")
            return False

        coupon.status = CouponStatus.USED
        coupon.reward = reward
        coupon.used_at = datetime.now(timezone.utc)
        coupon.used_by_telegram_id = telegram_user_id
        await self.session.flush()
        return True

    async def get_coupon(self, coupon_id: int) -> Coupon | None:
        """Get coupon by ID."""
        return await self.session.get(Coupon, coupon_id)

    async def _get_by_code(self, code: str) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.code == code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
