"""Booking repository for database operations."""
from datetime import date
from typing import Any, Optional, List

from sqlalchemy import Row, and_, delete, func, or_, select, update
from sqlalchemy.sql.elements import ColumnElement

from core.records import BookingRecord
from database.models import Booking, BookingStatus, CANCELED_STATUSES
from database.repositories.base import BaseRepository


def not_canceled() -> ColumnElement[bool]:
    """Filter out canceled bookings; a NULL status reads as ``new``."""
    return or_(
        Booking.status.is_(None),
        func.lower(Booking.status).notin_(CANCELED_STATUSES),
    )


class BookingRepository(BaseRepository[Booking]):
    """Repository for Booking model operations.

    Read methods return ``BookingRecord`` values with services already
    normalized; canceled bookings are never returned.
    """

    model_class = Booking

    def fingerprint_columns(self) -> list[Any]:
        """Also tracks live and succeeded counts and revenue, so status and price edits move it."""
        return [
            *super().fingerprint_columns(),
            func.count(Booking.id).filter(not_canceled()),
            func.count(Booking.id).filter(func.lower(Booking.status) == BookingStatus.SUCCEEDED.value),
            func.coalesce(func.sum(Booking.total), 0),
        ]

    async def _records(self, query) -> List[BookingRecord]:
        result = await self.session.execute(query)
        return [BookingRecord.from_row(row) for row in result.scalars().all()]

    async def get_records_in_range(
        self,
        start_date: date,
        end_date: date,
        coupon_name: Optional[str] = None,
    ) -> List[BookingRecord]:
        """Non-canceled bookings dated within [start_date, end_date], oldest first."""
        query = select(Booking).where(
            and_(
                Booking.date >= start_date,
                Booking.date <= end_date,
                not_canceled(),
            )
        )
        if coupon_name:
            query = query.where(Booking.cupon_name == coupon_name)
        query = query.order_by(Booking.date, Booking.time, Booking.id)
        return await self._records(query)

    async def get_client_keys_before(self, day: date) -> set[tuple[str, str]]:
        """(name, phone) pairs with at least one booking dated strictly before ``day``."""
        result = await self.session.execute(
            select(Booking.name, Booking.phone)
            .where(and_(Booking.date < day, not_canceled()))
            .distinct()
        )
        return {(row.name or "", row.phone or "") for row in result.all()}

    async def get_revenue_in_range(self, start_date: date, end_date: date) -> int | float:
        """Sum of stored totals of non-canceled bookings in the range."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(Booking.total), 0))
            .where(
                and_(
                    Booking.date >= start_date,
                    Booking.date <= end_date,
                    not_canceled(),
                )
            )
        )
        return result.scalar() or 0

    async def get_records_for_client(
        self,
        name: str,
        phone: str,
        start_date: date,
        end_date: date,
    ) -> List[BookingRecord]:
        """One (name, phone) client's bookings in the range, newest first."""
        query = (
            select(Booking)
            .where(
                and_(
                    Booking.name == name,
                    Booking.phone == phone,
                    Booking.date >= start_date,
                    Booking.date <= end_date,
                    not_canceled(),
                )
            )
            .order_by(Booking.date.desc(), Booking.time.desc())
        )
        return await self._records(query)

    async def get_records_for_user(
        self,
        user_id: int,
        phone: Optional[str] = None,
    ) -> List[BookingRecord]:
        """All-time bookings linked to a user by reference or by phone, newest first."""
        conditions = [Booking.cabinet_id == user_id]
        if phone:
            conditions.append(Booking.phone == phone)
        query = (
            select(Booking)
            .where(and_(or_(*conditions), not_canceled()))
            .order_by(Booking.date.desc(), Booking.time.desc(), Booking.id.desc())
        )
        return await self._records(query)

    async def get_all_records(self) -> List[BookingRecord]:
        """Every non-canceled booking, newest first."""
        query = select(Booking).where(not_canceled()).order_by(Booking.date.desc(), Booking.id.desc())
        return await self._records(query)

    async def get_phones_for_users(self, user_ids: list[int]) -> dict[int, str]:
        """First booking phone seen for each user reference."""
        if not user_ids:
            return {}
        result = await self.session.execute(
            select(Booking.cabinet_id, Booking.phone)
            .where(Booking.cabinet_id.in_(user_ids))
            .order_by(Booking.id)
        )
        phones: dict[int, str] = {}
        for row in result.all():
            if row.phone and row.cabinet_id not in phones:
                phones[row.cabinet_id] = row.phone
        return phones

    async def set_status(
        self,
        booking_id: int,
        status: str,
        blocked_statuses: tuple[str, ...] = (),
    ) -> Row[Any]:
        """
        Update one booking's status and return ``(id, status, date)``.

        Rows whose current status is in ``blocked_statuses`` are not touched.

        Raises:
            RowCountError: the update did not affect exactly one row
        """
        query = update(Booking).where(Booking.id == booking_id)
        if blocked_statuses:
            query = query.where(
                or_(
                    Booking.status.is_(None),
                    func.lower(Booking.status).notin_(blocked_statuses),
                )
            )
        query = query.values(status=status).returning(Booking.id, Booking.status, Booking.date)
        result = await self.session.execute(query)
        return self.expect_single_row(result.all(), "update")

    async def delete_one(self, booking_id: int) -> Row[Any]:
        """
        Delete one booking and return ``(id, date)``.

        Raises:
            RowCountError: the delete did not affect exactly one row
        """
        result = await self.session.execute(
            delete(Booking)
            .where(Booking.id == booking_id)
            .returning(Booking.id, Booking.date)
        )
        return self.expect_single_row(result.all(), "delete")
