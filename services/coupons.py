"""Coupon management."""
import logging
from typing import Any, List

from core.dto import CreateCouponDTO
from core.exceptions import ActiveCouponExistsError, CouponNotFoundError, RowCountError
from database.models import Coupon
from database.repositories import CouponRepository, UserRepository
from services.base import BaseService, translate_query_errors
from services.invalidation import Collection

logger = logging.getLogger(__name__)


def coupon_to_dict(coupon: Coupon) -> dict[str, Any]:
    return {
        "id": coupon.id,
        "cupon_name": coupon.cupon_name,
        "discount_percent": coupon.discount_percent,
        "status": coupon.status,
        "is_working": coupon.is_working,
        "created_at": coupon.created_at.isoformat() if coupon.created_at else None,
        "deleted_at": coupon.deleted_at.isoformat() if coupon.deleted_at else None,
    }


class CouponService(BaseService):
    """List, create and soft-delete coupons; reset users' coupon usage."""

    @translate_query_errors
    async def list_coupons(self) -> List[dict[str, Any]]:
        coupons = await CouponRepository(self.session).list_all()
        return [coupon_to_dict(c) for c in coupons]

    @translate_query_errors
    async def create_coupon(self, data: CreateCouponDTO) -> dict[str, Any]:
        """
        Create the working coupon.

        Raises:
            ActiveCouponExistsError: another coupon is still working
        """
        repo = CouponRepository(self.session)
        working = await repo.list_working()
        if working:
            raise ActiveCouponExistsError(working[0].cupon_name)

        coupon = await repo.create(data.cupon_name, data.discount_percent)
        await self.session.commit()
        logger.info(
            f"Coupon '{coupon.cupon_name}' created ({coupon.discount_percent}%)",
            extra={"coupon_id": coupon.id},
        )
        await self.notify(Collection.COUPONS)
        return coupon_to_dict(coupon)

    @translate_query_errors
    async def delete_coupon(self, coupon_id: int) -> dict[str, Any]:
        """
        Soft-delete a coupon (status -> deleted, deleted_at set).

        Raises:
            CouponNotFoundError: no coupon with this id
            RowCountError: the coupon is already deleted
        """
        repo = CouponRepository(self.session)
        try:
            row = await repo.soft_delete(coupon_id)
        except RowCountError:
            await self.session.rollback()
            if not await repo.exists(coupon_id):
                raise CouponNotFoundError(f"Купон #{coupon_id} не найден")
            raise
        await self.session.commit()
        logger.info(f"Coupon '{row.cupon_name}' deleted", extra={"coupon_id": row.id})
        await self.notify(Collection.COUPONS)
        return {
            "id": row.id,
            "cupon_name": row.cupon_name,
            "deleted_at": row.deleted_at.isoformat() if row.deleted_at else None,
        }

    @translate_query_errors
    async def reset_user_coupon_status(self) -> int:
        """Mark every user's coupon as unused; returns the number of users changed."""
        updated = await UserRepository(self.session).reset_coupon_status()
        await self.session.commit()
        logger.info(f"Coupon status reset for {updated} users")
        await self.notify(Collection.USERS)
        return updated
