"""Booking status changes requested by the operator."""
import logging
from typing import Any, NoReturn

from core.exceptions import BookingNotFoundError, BookingStatusError, RowCountError
from database.models import BookingStatus, CANCELED_STATUSES, TERMINAL_STATUSES
from database.repositories import BookingRepository
from services.base import BaseService, translate_query_errors
from services.invalidation import Collection

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """Complete, cancel and purge bookings.

    Every write must touch exactly one row; the transaction is committed
    only after that check, then the bookings collection is invalidated
    for the booking's date.
    """

    async def _raise_for_miss(self, booking_id: int, target: str, error: RowCountError) -> NoReturn:
        repo = BookingRepository(self.session)
        booking = await repo.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id) from error
        current = (booking.status or BookingStatus.NEW.value).lower()
        if current in TERMINAL_STATUSES:
            raise BookingStatusError(current, target) from error
        raise error

    async def _set_status(
        self,
        booking_id: int,
        status: BookingStatus,
        blocked: tuple[str, ...],
    ) -> dict[str, Any]:
        repo = BookingRepository(self.session)
        try:
            row = await repo.set_status(booking_id, status.value, blocked)
        except RowCountError as e:
            await self.session.rollback()
            await self._raise_for_miss(booking_id, status.value, e)
        await self.session.commit()
        logger.info(
            f"Booking {booking_id} -> {status.value}",
            extra={"booking_id": booking_id},
        )
        await self.notify(Collection.BOOKINGS, row.date)
        return {"id": row.id, "status": row.status, "date": row.date.isoformat()}

    @translate_query_errors
    async def complete_booking(self, booking_id: int) -> dict[str, Any]:
        """
        Mark a booking as succeeded.

        Raises:
            BookingNotFoundError: no booking with this id
            BookingStatusError: booking already succeeded or canceled
        """
        return await self._set_status(booking_id, BookingStatus.SUCCEEDED, TERMINAL_STATUSES)

    @translate_query_errors
    async def cancel_booking(self, booking_id: int) -> dict[str, Any]:
        """
        Soft-cancel a booking: it disappears from every view, history is kept.

        Raises:
            BookingNotFoundError: no booking with this id
            BookingStatusError: booking already canceled
        """
        return await self._set_status(booking_id, BookingStatus.CANCELED, CANCELED_STATUSES)

    @translate_query_errors
    async def purge_booking(self, booking_id: int) -> dict[str, Any]:
        """
        Delete a booking row.

        Raises:
            BookingNotFoundError: no booking with this id
        """
        repo = BookingRepository(self.session)
        try:
            row = await repo.delete_one(booking_id)
        except RowCountError as e:
            await self.session.rollback()
            if e.affected == 0:
                raise BookingNotFoundError(booking_id) from e
            raise
        await self.session.commit()
        logger.warning(f"Booking {booking_id} deleted", extra={"booking_id": booking_id})
        await self.notify(Collection.BOOKINGS, row.date)
        return {"id": row.id, "date": row.date.isoformat(), "deleted": True}
