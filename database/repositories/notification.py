"""Notification repository."""
from typing import Any, List

from sqlalchemy import Row, func, select, update

from database.models import Notification
from database.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for shell notifications."""

    model_class = Notification

    def fingerprint_columns(self) -> list[Any]:
        return [
            *super().fingerprint_columns(),
            func.count(Notification.id).filter(Notification.is_read.is_(False)),
        ]

    async def list_unread(self, limit: int = 10) -> List[Notification]:
        """Newest unread notifications."""
        result = await self.session.execute(
            select(Notification)
            .where(Notification.is_read.is_(False))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_unread(self) -> int:
        result = await self.session.execute(
            select(func.count(Notification.id)).where(Notification.is_read.is_(False))
        )
        return result.scalar() or 0

    async def mark_read(self, notification_id: int) -> Row[Any]:
        """
        Mark one notification read.

        Raises:
            RowCountError: the update did not affect exactly one row
        """
        result = await self.session.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .values(is_read=True)
            .returning(Notification.id)
        )
        return self.expect_single_row(result.all(), "update")
