"""Analytics service for admin reports and client drill-downs."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.dto import ClientFilter
from core.exceptions import UserNotFoundError
from core.periods import Period
from core.records import BookingRecord
from database.models import User
from database.repositories import BookingRepository, CouponRepository, UserRepository
from services import aggregation as agg
from services.base import BaseService, translate_query_errors
from services.coupons import coupon_to_dict

logger = logging.getLogger(__name__)


def user_to_dict(user: User, phone_fallback: Optional[str] = None) -> Dict[str, Any]:
    """Serialize a registered user; a missing phone is taken from their bookings."""
    return {
        "id": user.id,
        "username": user.username,
        "login": user.login,
        "name": user.name,
        "last_name": user.last_name,
        "middle_name": user.middle_name,
        "full_name": user.full_name,
        "number": user.number or phone_fallback,
        "age": user.age,
        "cupon_status": user.cupon_status,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def user_matches(user: Dict[str, Any], query: Optional[str]) -> bool:
    """Case-insensitive match over name parts, username and login; substring over phone."""
    if not query:
        return True
    needle = query.lower()
    name_parts = [user.get("last_name"), user.get("name"), user.get("middle_name")]
    full_name = " ".join(p for p in name_parts if p).lower()
    texts = [full_name, *(user.get(k) for k in ("name", "last_name", "middle_name", "username", "login"))]
    if any(t and needle in str(t).lower() for t in texts):
        return True
    return bool(user.get("number")) and query in str(user["number"])


def client_matches(client: Dict[str, Any], query: Optional[str]) -> bool:
    """Case-insensitive match over the client's names; substring over phone."""
    if not query:
        return True
    needle = query.lower()
    names = [client.get("display_name"), client.get("name")]
    if any(n and needle in str(n).lower() for n in names):
        return True
    phones = [client.get("phone"), client.get("phone_number")]
    return any(p and query in str(p) for p in phones)


def product_rows(
    summary: agg.ProductSummary,
    revenue_base: int | float = 0,
) -> List[Dict[str, Any]]:
    rows = []
    for product in summary.products:
        row = product.to_dict()
        row["share"] = agg.product_share(product.quantity, summary.total_units)
        row["revenue_share"] = agg.percent(product.revenue, revenue_base)
        rows.append(row)
    return rows


def _product(product: Optional[agg.ProductStats]) -> Optional[Dict[str, Any]]:
    return product.to_dict() if product is not None else None


class AnalyticsService(BaseService):
    """Period reports built from non-canceled bookings.

    Each report fetches exactly the rows it needs and folds them with
    ``services.aggregation``. Nothing is cached: the store is shared with
    the public booking site, so every call re-queries.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.bookings = BookingRepository(session)
        self.users = UserRepository(session)
        self.coupons = CouponRepository(session)

    # ========== Registered / unregistered users ==========

    async def _registered_users(
        self,
        period: Period,
        records: List[BookingRecord],
    ) -> List[Dict[str, Any]]:
        """Users registered in the period plus users with a booking in it."""
        in_period = await self.users.get_registered_between(period.start, period.end)
        known = {u.id for u in in_period}
        purchaser_ids = []
        for record in records:
            if record.cabinet_id is not None and record.cabinet_id not in known:
                known.add(record.cabinet_id)
                purchaser_ids.append(record.cabinet_id)
        purchasers = await self.users.get_by_ids(purchaser_ids)

        users = [*in_period, *purchasers]
        phones = await self.bookings.get_phones_for_users([u.id for u in users if not u.number])
        return [user_to_dict(u, phones.get(u.id)) for u in users]

    # ========== Overview ==========

    @translate_query_errors
    async def get_overview(self, period: Period) -> Dict[str, Any]:
        """Headline numbers for a period: clients, products, coupon usage, revenue."""
        records = await self.bookings.get_records_in_range(period.start, period.end)
        registered = await self._registered_users(period, records)
        unregistered = agg.unregistered_clients(records)
        clients = agg.client_totals(records)
        products = agg.product_stats(records)
        split = agg.coupon_split(records)

        logger.info(
            f"Overview {period.label}: {len(records)} bookings, "
            f"{len(registered)} registered, {len(unregistered)} unregistered"
        )
        return {
            "period": period.to_dict(),
            "label": period.label,
            "total_clients": len(registered) + len(unregistered),
            "registered_clients": len(registered),
            "non_registered_clients": len(unregistered),
            "clients": [c.to_dict() for c in clients],
            "products": product_rows(products),
            "most_popular": _product(products.most_popular),
            "least_popular": _product(products.least_popular),
            "purchases_with_coupon": split.orders_with_coupon,
            "purchases_without_coupon": split.orders_without_coupon,
            "products_sold_with_coupon": split.units_with_coupon,
            "products_sold_without_coupon": split.units_without_coupon,
            "total_revenue": agg.total_revenue(records),
            "total_products_sold": products.total_units,
        }

    # ========== Revenue ==========

    @translate_query_errors
    async def get_revenue_report(self, period: Period) -> Dict[str, Any]:
        """Sales, product, customer and time metrics with growth vs the previous period."""
        records = await self.bookings.get_records_in_range(period.start, period.end)
        previous = period.previous()
        previous_revenue = await self.bookings.get_revenue_in_range(previous.start, previous.end)
        prior_keys = await self.bookings.get_client_keys_before(period.start)

        revenue = agg.total_revenue(records)
        orders = len(records)
        products = agg.product_stats(records)
        units = products.total_units
        split = agg.coupon_split(records)
        clients = agg.client_totals(records)
        unique = len(clients)
        registered = sum(1 for c in clients if c.is_registered)

        return {
            "period": period.to_dict(),
            "previous_period": previous.to_dict(),
            "total_revenue": revenue,
            "total_units_sold": units,
            "total_orders": orders,
            "average_order_value": agg.ratio(revenue, orders),
            "average_selling_price": agg.ratio(revenue, units),
            "average_items_per_order": agg.ratio(units, orders),
            "products": product_rows(products, revenue),
            "top_product": _product(products.most_popular),
            "least_product": _product(products.least_popular),
            "average_units_per_customer": agg.ratio(units, unique),
            "orders_with_coupon": split.orders_with_coupon,
            "orders_without_coupon": split.orders_without_coupon,
            "revenue_with_coupon": split.revenue_with_coupon,
            "revenue_without_coupon": split.revenue_without_coupon,
            "total_discount": split.total_discount,
            "average_discount": split.average_discount,
            "unique_customers": unique,
            "new_customers": len(agg.new_clients(records, prior_keys)),
            "repeat_customers": len(agg.repeat_clients(records)),
            "revenue_per_customer": agg.ratio(revenue, unique),
            "registered_clients": registered,
            "guest_clients": unique - registered,
            "registered_percentage": agg.percent(registered, unique),
            "clients": [c.to_dict() for c in clients],
            "daily": agg.daily_buckets(records),
            "weekly": agg.weekday_buckets(records),
            "previous_revenue": previous_revenue,
            "revenue_growth_rate": agg.growth_rate(revenue, previous_revenue),
        }

    # ========== Coupons ==========

    @translate_query_errors
    async def get_coupon_report(self, period: Period, coupon_name: Optional[str] = None) -> Dict[str, Any]:
        """Coupon effectiveness; ``coupon_name`` restricts it to one coupon."""
        all_coupons = await self.coupons.list_all()
        working = await self.coupons.list_working()
        records = await self.bookings.get_records_in_range(period.start, period.end, coupon_name)
        prior_keys = await self.bookings.get_client_keys_before(period.start)

        if coupon_name:
            with_coupon = [r for r in records if r.cupon_name == coupon_name]
            without_coupon: List[BookingRecord] = []
            active = next((c for c in all_coupons if c.cupon_name == coupon_name), None)
        else:
            with_coupon = [r for r in records if r.has_coupon]
            without_coupon = [r for r in records if not r.has_coupon]
            active = working[0] if working else None

        split = agg.coupon_split(with_coupon)
        revenue_with = split.revenue_with_coupon
        orders_with = split.orders_with_coupon
        revenue_without = agg.total_revenue(without_coupon)
        orders_without = len(without_coupon)
        total_revenue = revenue_with + revenue_without

        clients = agg.client_totals(with_coupon)
        unique = len(clients)
        registered = sum(1 for c in clients if c.is_registered)
        products = agg.product_stats(with_coupon)
        weekly = agg.weekday_buckets(with_coupon)
        product_list = product_rows(products, revenue_with)

        return {
            "period": period.to_dict(),
            "coupons": [coupon_to_dict(c) for c in all_coupons],
            "selected_coupon_name": coupon_name,
            "active_coupon": coupon_to_dict(active) if active is not None else None,
            "discount_percent": active.discount_percent if active is not None else 0,
            "total_revenue_with_coupon": revenue_with,
            "orders_with_coupon": orders_with,
            "total_discount": split.total_discount,
            "original_revenue_with_coupon": split.original_revenue_with_coupon,
            "average_order_value_with_coupon": agg.ratio(revenue_with, orders_with),
            "average_order_value_without_coupon": agg.ratio(revenue_without, orders_without),
            "coupon_share_of_sales": agg.percent(revenue_with, total_revenue),
            "unique_clients_with_coupon": unique,
            "new_clients_with_coupon": len(agg.new_clients(with_coupon, prior_keys)),
            "repeat_clients_with_coupon": len(agg.repeat_clients(with_coupon)),
            "average_revenue_per_client": agg.ratio(revenue_with, unique),
            "registered_clients": registered,
            "guest_clients": unique - registered,
            "registered_percentage": agg.percent(registered, unique),
            "products": product_list,
            "top_products": product_list[:10],
            "total_items_with_coupon": split.units_with_coupon,
            "average_discount_per_item": agg.ratio(split.total_discount, split.units_with_coupon),
            "daily": agg.daily_buckets(with_coupon),
            "weekly": weekly,
            "peak_activity": agg.peak_weekday(weekly),
            "clients": [c.to_dict() for c in clients],
            "total_revenue": total_revenue,
            "total_orders": orders_with + orders_without,
            "orders_without_coupon": orders_without,
            "revenue_without_coupon": revenue_without,
        }

    # ========== Client drill-downs ==========

    @translate_query_errors
    async def get_client_bookings(self, period: Period, name: str, phone: str) -> List[Dict[str, Any]]:
        """Bookings of one (name, phone) client in the period, newest first."""
        records = await self.bookings.get_records_for_client(name, phone, period.start, period.end)
        return [r.to_dict() for r in records]

    @translate_query_errors
    async def get_user_bookings(self, user_id: int) -> Dict[str, Any]:
        """
        All-time bookings of a registered user, by reference or phone.

        Raises:
            UserNotFoundError: no user with this id
        """
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(f"Пользователь #{user_id} не найден")
        phone = user.number
        if not phone:
            phone = (await self.bookings.get_phones_for_users([user.id])).get(user.id)
        records = await self.bookings.get_records_for_user(user.id, phone)
        return {
            "user": user_to_dict(user, phone),
            "bookings": [r.to_dict() for r in records],
            "total": agg.total_revenue(records),
        }

    @translate_query_errors
    async def get_all_clients(
        self,
        client_filter: ClientFilter = ClientFilter.ALL,
        query: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Every client of all time, registered and not, with counts before filtering."""
        records = await self.bookings.get_all_records()
        users = await self.users.get_all()
        clients = [c.to_dict() for c in agg.merge_client_identities(records, users)]
        registered = sum(1 for c in clients if c["is_registered"])
        stats = {
            "total": len(clients),
            "registered": registered,
            "unregistered": len(clients) - registered,
        }
        if client_filter == ClientFilter.REGISTERED:
            clients = [c for c in clients if c["is_registered"]]
        elif client_filter == ClientFilter.UNREGISTERED:
            clients = [c for c in clients if not c["is_registered"]]
        return {
            "clients": [c for c in clients if client_matches(c, query)],
            "stats": stats,
        }

    @translate_query_errors
    async def list_registered_users(self, period: Period, query: Optional[str] = None) -> List[Dict[str, Any]]:
        """Users registered in the period or with a booking in it."""
        records = await self.bookings.get_records_in_range(period.start, period.end)
        users = await self._registered_users(period, records)
        return [u for u in users if user_matches(u, query)]

    @translate_query_errors
    async def list_unregistered_clients(self, period: Period, query: Optional[str] = None) -> List[Dict[str, str]]:
        """Distinct (name, phone) clients of the period without a user reference."""
        records = await self.bookings.get_records_in_range(period.start, period.end)
        clients = agg.unregistered_clients(records)
        if not query:
            return clients
        needle = query.lower()
        return [
            c for c in clients
            if needle in c["name"].lower() or query in c["phone"]
        ]
