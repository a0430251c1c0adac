"""Coupon repository for managing discount coupons."""
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import Row, func, select, update

from database.models import Coupon, CouponStatus
from database.repositories.base import BaseRepository


class CouponRepository(BaseRepository[Coupon]):
    """Repository for coupon operations."""

    model_class = Coupon

    def fingerprint_columns(self) -> list[Any]:
        return [
            *super().fingerprint_columns(),
            func.count(Coupon.id).filter(Coupon.status == CouponStatus.WORKING.value),
        ]

    async def list_all(self) -> Sequence[Coupon]:
        """All coupons, including soft-deleted ones, newest first."""
        result = await self.session.execute(
            select(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc())
        )
        return result.scalars().all()

    async def list_working(self) -> Sequence[Coupon]:
        """Coupons in ``working`` status, newest first."""
        result = await self.session.execute(
            select(Coupon)
            .where(Coupon.status == CouponStatus.WORKING.value)
            .order_by(Coupon.created_at.desc(), Coupon.id.desc())
        )
        return result.scalars().all()

    async def create(self, cupon_name: str, discount_percent: int) -> Coupon:
        """Create a working coupon."""
        coupon = Coupon(
            cupon_name=cupon_name,
            discount_percent=discount_percent,
            status=CouponStatus.WORKING.value,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(coupon)
        await self.session.flush()
        return coupon

    async def soft_delete(self, coupon_id: int) -> Row[Any]:
        """
        Mark a working coupon deleted and return ``(id, cupon_name, deleted_at)``.

        Raises:
            RowCountError: no working coupon with this id
        """
        result = await self.session.execute(
            update(Coupon)
            .where(Coupon.id == coupon_id, Coupon.status != CouponStatus.DELETED.value)
            .values(status=CouponStatus.DELETED.value, deleted_at=datetime.now(timezone.utc))
            .returning(Coupon.id, Coupon.cupon_name, Coupon.deleted_at)
        )
        return self.expect_single_row(result.all(), "update")
