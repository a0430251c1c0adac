"""Database repositories package."""
from database.repositories.booking import BookingRepository
from database.repositories.user import UserRepository
from database.repositories.coupon import CouponRepository
from database.repositories.notification import NotificationRepository

__all__ = [
    "BookingRepository",
    "UserRepository",
    "CouponRepository",
    "NotificationRepository",
]
