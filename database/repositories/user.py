"""User repository for registered clients."""
from datetime import date, datetime, time
from typing import Any, List

from sqlalchemy import and_, func, or_, select, update

from database.models import User, UserCouponStatus
from database.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    model_class = User

    def fingerprint_columns(self) -> list[Any]:
        return [
            *super().fingerprint_columns(),
            func.count(User.id).filter(User.cupon_status != UserCouponStatus.NOT_USED),
        ]

    async def get_registered_between(self, start_date: date, end_date: date) -> List[User]:
        """Users whose ``created_at`` falls within the days [start_date, end_date], newest first."""
        start_dt = datetime.combine(start_date, time.min)
        end_dt = datetime.combine(end_date, time.max)
        result = await self.session.execute(
            select(User)
            .where(and_(User.created_at >= start_dt, User.created_at <= end_dt))
            .order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_ids(self, user_ids: list[int]) -> List[User]:
        """Users by primary keys."""
        if not user_ids:
            return []
        result = await self.session.execute(
            select(User).where(User.id.in_(user_ids)).order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    async def reset_coupon_status(self) -> int:
        """Mark every user's coupon as unused; returns the number of rows changed."""
        result = await self.session.execute(
            update(User)
            .where(
                or_(
                    User.cupon_status.is_(None),
                    User.cupon_status != UserCouponStatus.NOT_USED,
                )
            )
            .values(cupon_status=UserCouponStatus.NOT_USED)
            .returning(User.id)
        )
        return len(result.all())
