"""
Single-pass folds over normalized bookings.

Every function here is pure: it takes already-fetched ``BookingRecord``
values (canceled ones are filtered out at the query level) and returns
plain data. Grouping preserves first-encountered order, so ties in any
ranking are broken by input order.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from core.periods import RU_WEEKDAYS
from core.records import BookingRecord, ClientKey


def percent(part: int | float, whole: int | float) -> float:
    """``part / whole * 100``; 0 when ``whole`` is 0."""
    if not whole:
        return 0.0
    return part / whole * 100


def ratio(part: int | float, whole: int | float) -> float:
    if not whole:
        return 0.0
    return part / whole


def product_share(count: int, total_products_sold: int) -> float:
    """Share of one product in all units sold, in percent."""
    return percent(count, total_products_sold)


def growth_rate(current: int | float, previous: int | float) -> float:
    """Period-over-period growth in percent.

    Display heuristic: 100 when the previous period had no revenue and the
    current one has some, 0 when both are zero.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    if current > 0:
        return 100.0
    return 0.0


# ========== Clients ==========

@dataclass
class ClientTotals:
    name: str
    phone: str
    total: int | float = 0
    order_count: int = 0
    units: int = 0
    is_registered: bool = False

    @property
    def key(self) -> ClientKey:
        return (self.name, self.phone)

    @property
    def is_repeat(self) -> bool:
        return self.order_count >= 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "total": self.total,
            "order_count": self.order_count,
            "units": self.units,
            "is_registered": self.is_registered,
            "is_repeat": self.is_repeat,
        }


def client_totals(records: Iterable[BookingRecord]) -> list[ClientTotals]:
    """Group by exact (name, phone); sorted by total paid, highest first."""
    by_key: dict[ClientKey, ClientTotals] = {}
    for record in records:
        stats = by_key.get(record.client_key)
        if stats is None:
            stats = by_key[record.client_key] = ClientTotals(record.name, record.phone)
        stats.total += record.total
        stats.order_count += 1
        stats.units += record.units
        if record.is_registered:
            stats.is_registered = True
    return sorted(by_key.values(), key=lambda c: c.total, reverse=True)


def unique_clients(records: Iterable[BookingRecord]) -> set[ClientKey]:
    return {r.client_key for r in records}


def new_clients(records: Iterable[BookingRecord], prior_keys: set[ClientKey]) -> set[ClientKey]:
    """Clients with no booking dated before the period (``prior_keys``)."""
    return {r.client_key for r in records if r.client_key not in prior_keys}


def repeat_clients(records: Iterable[BookingRecord]) -> set[ClientKey]:
    """Clients with two or more bookings in ``records``."""
    seen: set[ClientKey] = set()
    repeat: set[ClientKey] = set()
    for record in records:
        if record.client_key in seen:
            repeat.add(record.client_key)
        seen.add(record.client_key)
    return repeat


def unregistered_clients(records: Iterable[BookingRecord]) -> list[dict[str, str]]:
    """Distinct (name, phone) pairs of bookings without a user reference."""
    found: dict[ClientKey, dict[str, str]] = {}
    for record in records:
        if record.is_registered or record.client_key in found:
            continue
        found[record.client_key] = {
            "name": record.name,
            "phone": record.phone,
            "key": f"{record.name}|{record.phone}",
        }
    return list(found.values())


@dataclass
class ClientIdentity:
    """One person across all time: a registered user or a (name, phone) guest."""
    name: str
    phone: str
    total: int | float = 0
    order_count: int = 0
    user: Any = None
    keys: set[ClientKey] = field(default_factory=set)

    @property
    def is_registered(self) -> bool:
        return self.user is not None

    @property
    def display_name(self) -> str:
        if self.user is not None:
            return self.user.full_name or self.name
        return self.name

    def to_dict(self) -> dict[str, Any]:
        user = self.user
        created_at = getattr(user, "created_at", None)
        return {
            "name": self.name,
            "phone": self.phone,
            "display_name": self.display_name,
            "total": self.total,
            "order_count": self.order_count,
            "is_registered": self.is_registered,
            "cabinet_id": user.id if user is not None else None,
            "first_name": user.name if user is not None else None,
            "last_name": user.last_name if user is not None else None,
            "middle_name": user.middle_name if user is not None else None,
            "username": user.username if user is not None else None,
            "phone_number": (user.number if user is not None and user.number else self.phone),
            "registration_date": created_at.isoformat() if created_at else None,
        }


def merge_client_identities(
    records: Sequence[BookingRecord],
    users: Iterable[Any],
) -> list[ClientIdentity]:
    """Enumerate every client once, registered and unregistered together.

    Bookings whose ``cabinet_id`` matches a known user are grouped by that
    user. The rest are grouped by (name, phone) and folded into a
    registered identity when the same (name, phone) appears on that user's
    bookings or the phone equals the user's number. Sorted by total paid.
    """
    users_by_id = {u.id: u for u in users}

    registered: dict[Any, ClientIdentity] = {}
    key_owner: dict[ClientKey, Any] = {}
    phone_owner: dict[str, Any] = {}

    for user in users_by_id.values():
        if user.number:
            phone_owner.setdefault(user.number, user.id)

    guests: dict[ClientKey, ClientIdentity] = {}
    order: list[tuple[str, Any]] = []

    for record in records:
        user = users_by_id.get(record.cabinet_id) if record.cabinet_id is not None else None
        if user is not None:
            identity = registered.get(user.id)
            if identity is None:
                identity = registered[user.id] = ClientIdentity(record.name, record.phone, user=user)
                order.append(("user", user.id))
            key_owner.setdefault(record.client_key, user.id)
        else:
            identity = guests.get(record.client_key)
            if identity is None:
                identity = guests[record.client_key] = ClientIdentity(record.name, record.phone)
                order.append(("guest", record.client_key))
        identity.total += record.total
        identity.order_count += 1
        identity.keys.add(record.client_key)

    result: list[ClientIdentity] = []
    for kind, ref in order:
        if kind == "user":
            result.append(registered[ref])
            continue
        guest = guests[ref]
        owner_id = key_owner.get(ref, phone_owner.get(guest.phone))
        owner = registered.get(owner_id) if owner_id is not None else None
        if owner is None:
            result.append(guest)
        else:
            owner.total += guest.total
            owner.order_count += guest.order_count
            owner.keys |= guest.keys

    return sorted(result, key=lambda c: c.total, reverse=True)


# ========== Products ==========

@dataclass
class ProductStats:
    name: str
    quantity: int = 0
    revenue: int | float = 0
    with_coupon: int = 0
    without_coupon: int = 0
    order_ids: set[int] = field(default_factory=set)

    @property
    def orders(self) -> int:
        return len(self.order_ids)

    @property
    def average_price(self) -> float:
        return ratio(self.revenue, self.quantity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "revenue": self.revenue,
            "orders": self.orders,
            "with_coupon": self.with_coupon,
            "without_coupon": self.without_coupon,
            "average_price": self.average_price,
        }


@dataclass
class ProductSummary:
    products: list[ProductStats]
    total_units: int
    most_popular: Optional[ProductStats]
    least_popular: Optional[ProductStats]


def product_stats(records: Iterable[BookingRecord]) -> ProductSummary:
    """Group sold services by resolved name.

    ``products`` is ordered by quantity, highest first; equal quantities keep
    first-encountered order. ``most_popular``/``least_popular`` are the first
    encountered max/min by quantity.
    """
    by_name: dict[str, ProductStats] = {}
    total_units = 0
    for record in records:
        has_coupon = record.has_coupon
        for service in record.services:
            stats = by_name.get(service.name)
            if stats is None:
                stats = by_name[service.name] = ProductStats(service.name)
            stats.quantity += 1
            stats.revenue += service.price
            stats.order_ids.add(record.id)
            if has_coupon:
                stats.with_coupon += 1
            else:
                stats.without_coupon += 1
            total_units += 1

    encountered = list(by_name.values())
    most = max(encountered, key=lambda p: p.quantity) if encountered else None
    least = min(encountered, key=lambda p: p.quantity) if encountered else None
    ranked = sorted(encountered, key=lambda p: p.quantity, reverse=True)
    return ProductSummary(ranked, total_units, most, least)


# ========== Coupons ==========

@dataclass
class CouponSplit:
    orders_with_coupon: int = 0
    orders_without_coupon: int = 0
    revenue_with_coupon: int | float = 0
    revenue_without_coupon: int | float = 0
    units_with_coupon: int = 0
    units_without_coupon: int = 0
    original_revenue_with_coupon: int | float = 0
    total_discount: int | float = 0

    @property
    def average_discount(self) -> float:
        return ratio(self.total_discount, self.orders_with_coupon)

    def to_dict(self) -> dict[str, Any]:
        return {
            "orders_with_coupon": self.orders_with_coupon,
            "orders_without_coupon": self.orders_without_coupon,
            "revenue_with_coupon": self.revenue_with_coupon,
            "revenue_without_coupon": self.revenue_without_coupon,
            "units_with_coupon": self.units_with_coupon,
            "units_without_coupon": self.units_without_coupon,
            "total_discount": self.total_discount,
            "average_discount": self.average_discount,
        }


def coupon_split(records: Iterable[BookingRecord]) -> CouponSplit:
    """Orders, revenue and units with and without a coupon."""
    split = CouponSplit()
    for record in records:
        if record.has_coupon:
            split.orders_with_coupon += 1
            split.revenue_with_coupon += record.total
            split.units_with_coupon += record.units
            split.original_revenue_with_coupon += record.original_total
            split.total_discount += record.discount
        else:
            split.orders_without_coupon += 1
            split.revenue_without_coupon += record.total
            split.units_without_coupon += record.units
    return split


# ========== Time buckets ==========

def daily_buckets(records: Iterable[BookingRecord]) -> list[dict[str, Any]]:
    """Revenue, orders and discount per calendar date, ascending."""
    by_day: dict[date, dict[str, Any]] = {}
    for record in records:
        bucket = by_day.get(record.date)
        if bucket is None:
            bucket = by_day[record.date] = {
                "date": record.date.isoformat(),
                "revenue": 0,
                "orders": 0,
                "discount": 0,
            }
        bucket["revenue"] += record.total
        bucket["orders"] += 1
        bucket["discount"] += record.discount
    return [by_day[day] for day in sorted(by_day)]


def weekday_buckets(records: Iterable[BookingRecord]) -> list[dict[str, Any]]:
    """Revenue and orders per weekday, Monday first, only weekdays that occur."""
    by_weekday: dict[int, dict[str, Any]] = {}
    for record in records:
        index = record.date.weekday()
        bucket = by_weekday.get(index)
        if bucket is None:
            bucket = by_weekday[index] = {
                "weekday": index,
                "day": RU_WEEKDAYS[index],
                "revenue": 0,
                "orders": 0,
            }
        bucket["revenue"] += record.total
        bucket["orders"] += 1
    return [by_weekday[i] for i in sorted(by_weekday)]


def peak_weekday(buckets: Sequence[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Weekday with most orders; the earliest weekday wins ties."""
    if not buckets:
        return None
    return max(buckets, key=lambda b: b["orders"])


def total_revenue(records: Iterable[BookingRecord]) -> int | float:
    return sum(r.total for r in records)
