"""User model - represents a registered clinic client."""
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from database.base import Base, IdType


class UserCouponStatus:
    """Per-user coupon usage marker."""
    USED = "used"
    NOT_USED = "not_used"


class User(Base):
    """Registered user model."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    # Account
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    login: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    # Personal info
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    middle_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    number: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)

    cupon_status: Mapped[str] = mapped_column(
        String(20),
        default=UserCouponStatus.NOT_USED,
        server_default=UserCouponStatus.NOT_USED,
        nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True
    )

    @property
    def full_name(self) -> str:
        """Last, first and middle name joined; falls back to username or login."""
        parts = [self.last_name, self.name, self.middle_name]
        joined = " ".join(p for p in parts if p)
        return joined or self.username or self.login or ""

    def __repr__(self) -> str:
        return f"<User(id={self.id}, login='{self.login}', number='{self.number}')>"
