"""Database models package."""
from database.models.user import User, UserCouponStatus
from database.models.booking import Booking, BookingStatus, CANCELED_STATUSES, TERMINAL_STATUSES
from database.models.coupon import Coupon, CouponStatus
from database.models.notification import Notification

__all__ = [
    "User",
    "UserCouponStatus",
    "Booking",
    "BookingStatus",
    "CANCELED_STATUSES",
    "TERMINAL_STATUSES",
    "Coupon",
    "CouponStatus",
    "Notification",
]
