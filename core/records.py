"""Normalized booking records handed out by the data-access layer."""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from core.catalog import ServiceItem, normalize_services

CANCELED = ("canceled", "cancelled")

ClientKey = tuple[str, str]


def is_canceled_status(status: Optional[str]) -> bool:
    return (status or "").strip().lower() in CANCELED


@dataclass
class BookingRecord:
    """A booking with services resolved and money fields derived."""

    id: int
    name: str
    phone: str
    date: date
    time: Optional[str]
    services: list[ServiceItem]
    total: int | float
    status: str
    cabinet_id: Optional[int] = None
    cupon_name: Optional[str] = None
    stored_total: Optional[int | float] = field(default=None, repr=False)

    @classmethod
    def from_row(cls, row: Any) -> "BookingRecord":
        """Build from a ``Booking`` row (or any object with the same attributes)."""
        return cls(
            id=row.id,
            name=row.name or "",
            phone=row.phone or "",
            date=row.date,
            time=row.time,
            services=normalize_services(row.services),
            total=row.total or 0,
            status=row.status or "new",
            cabinet_id=row.cabinet_id,
            cupon_name=row.cupon_name,
            stored_total=row.total,
        )

    @property
    def client_key(self) -> ClientKey:
        return (self.name, self.phone)

    @property
    def units(self) -> int:
        return len(self.services)

    @property
    def original_total(self) -> int | float:
        """Sum of resolved service prices before any discount."""
        return sum(s.price for s in self.services)

    @property
    def discount(self) -> int | float:
        """Coupon discount: services sum minus stored total, never negative."""
        original = self.original_total
        if original <= 0:
            return 0
        return max(original - self.total, 0)

    @property
    def has_coupon_name(self) -> bool:
        return self.cupon_name is not None and self.cupon_name != ""

    @property
    def has_price_discount(self) -> bool:
        original = self.original_total
        return original > 0 and self.total < original

    @property
    def has_coupon(self) -> bool:
        """Coupon attribution: explicit coupon name or a price below the services sum."""
        return self.has_coupon_name or self.has_price_discount

    @property
    def is_registered(self) -> bool:
        return self.cabinet_id is not None

    @property
    def is_canceled(self) -> bool:
        return is_canceled_status(self.status)

    @property
    def display_total(self) -> int | float:
        """Stored total, or the services sum when no total was stored."""
        return self.stored_total or self.original_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "date": self.date.isoformat(),
            "time": self.time,
            "services": [s.to_dict() for s in self.services],
            "total": self.total,
            "original_total": self.original_total,
            "discount": self.discount,
            "has_coupon": self.has_coupon,
            "cupon_name": self.cupon_name,
            "status": self.status,
            "cabinet_id": self.cabinet_id,
        }
