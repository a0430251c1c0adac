"""Coupon model - represents a percentage discount rule."""
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from database.base import Base, IdType


class CouponStatus(str, Enum):
    """Coupon lifecycle status."""

    WORKING = "working"  # Active, applied on the booking form
    DELETED = "deleted"  # Soft-deleted, kept for historical attribution


class Coupon(Base):
    """Coupon model."""

    __tablename__ = "cupons"

    # Primary key
    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    cupon_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Coupon name entered by clients"
    )
    discount_percent: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Discount percentage (1-100)"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CouponStatus.WORKING.value,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_working(self) -> bool:
        return self.status == CouponStatus.WORKING.value

    def __repr__(self) -> str:
        return f"<Coupon(cupon_name='{self.cupon_name}', discount={self.discount_percent}, status='{self.status}')>"
