"""Booking model - represents a clinic appointment."""
from datetime import date as date_type
from enum import Enum
from typing import Any

from sqlalchemy import Date, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from database.base import Base, IdType


class BookingStatus(str, Enum):
    """Booking status enum."""
    NEW = "new"  # Новая
    SUCCEEDED = "succeeded"  # Услуга оказана
    CANCELED = "canceled"  # Отменена
    CANCELLED = "cancelled"  # Отменена (альтернативное написание)


CANCELED_STATUSES = (BookingStatus.CANCELED.value, BookingStatus.CANCELLED.value)
TERMINAL_STATUSES = (BookingStatus.SUCCEEDED.value, *CANCELED_STATUSES)


class Booking(Base):
    """Booking model."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    # Client as entered on the booking form
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, index=True)

    # Appointment slot
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[str | None] = mapped_column(String(8), nullable=True, comment="HH:MM")

    # Services: JSON array (catalog ids or {name, price} objects) or a JSON-encoded string
    services: Mapped[Any] = mapped_column(JSON(none_as_null=True), nullable=True)

    # Stored price after discount
    total: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[str | None] = mapped_column(
        String(20),
        default=BookingStatus.NEW.value,
        nullable=True,
        index=True
    )

    # Registered client reference
    cabinet_id: Mapped[int | None] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Applied coupon
    cupon_name: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, name='{self.name}', date={self.date}, "
            f"time='{self.time}', status='{self.status}')>"
        )
