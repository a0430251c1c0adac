"""
Custom application exceptions.

These exceptions represent business logic errors that should be handled
gracefully with user-friendly messages. ``status_code`` is the HTTP status
the API answers with.
"""
from typing import Optional


class DentalAdminError(Exception):
    """Base exception for all application errors."""

    message: str = "Произошла ошибка"
    status_code: int = 400

    def __init__(self, message: Optional[str] = None, **kwargs):
        self.message = message or self.message
        self.details = kwargs
        super().__init__(self.message)


# ============== Configuration ==============

class ConfigurationError(DentalAdminError):
    """Application is misconfigured."""
    message = "Ошибка конфигурации"
    status_code = 500


# ============== Authentication ==============

class NotAuthenticatedError(DentalAdminError):
    """Request has no valid admin session."""
    message = "Требуется вход в систему"
    status_code = 401


class InvalidCredentialsError(NotAuthenticatedError):
    """Login or password mismatch."""
    message = "Неверный логин или пароль"


# ============== Data store ==============

class QueryError(DentalAdminError):
    """Query or network failure talking to the data store."""
    message = "Ошибка запроса к базе данных"
    status_code = 502


class RowCountError(DentalAdminError):
    """A targeted write affected zero or several rows."""
    status_code = 409

    def __init__(self, table: str, action: str, affected: int):
        self.table = table
        self.action = action
        self.affected = affected
        super().__init__(
            f"Ожидалась ровно одна запись ({action}), затронуто: {affected}. "
            f"Проверьте права доступа к таблице \"{table}\" и что запись существует."
        )


# ============== Bookings ==============

class BookingError(DentalAdminError):
    """Base booking error."""
    message = "Ошибка записи"


class BookingNotFoundError(BookingError):
    """Booking not found."""
    message = "Запись не найдена"
    status_code = 404

    def __init__(self, booking_id: Optional[int] = None):
        self.booking_id = booking_id
        super().__init__(f"Запись #{booking_id} не найдена" if booking_id else self.message)


class BookingStatusError(BookingError):
    """Invalid booking status transition."""
    message = "Невозможно изменить статус записи"
    status_code = 409

    def __init__(self, current_status: str, target_status: str):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Невозможно изменить статус с '{current_status}' на '{target_status}'"
        )


# ============== Coupons ==============

class CouponError(DentalAdminError):
    """Base coupon error."""
    message = "Ошибка купона"


class CouponNotFoundError(CouponError):
    """Coupon not found."""
    message = "Купон не найден"
    status_code = 404


class ActiveCouponExistsError(CouponError):
    """Another coupon is already working."""
    message = "Можно создать только один купон. Сначала удалите существующий."
    status_code = 409

    def __init__(self, active_name: Optional[str] = None):
        self.active_name = active_name
        super().__init__()


# ============== Validation ==============

class ValidationError(DentalAdminError):
    """Data validation error."""
    message = "Ошибка валидации"

    def __init__(self, field: str, error: str):
        self.field = field
        self.error = error
        super().__init__(f"Ошибка в поле '{field}': {error}")


# ============== Users ==============

class UserNotFoundError(DentalAdminError):
    """Registered user not found."""
    message = "Пользователь не найден"
    status_code = 404
