"""
REST API endpoints for the admin console.

Handlers only parse input, open a request-scoped session and call services.
Errors are raised as exceptions and rendered by the error middleware.
"""

import json
import logging
from datetime import date, datetime, timezone

from aiohttp import web

from console.keys import CHANGE_WATCHER, REGISTRY, SESSION_MAKER, SESSION_STORE, SETTINGS
from core.dto import (
    ClientBookingsQueryDTO,
    ClientsQueryDTO,
    CouponReportQueryDTO,
    CreateCouponDTO,
    LoginDTO,
    MonthQueryDTO,
    PeriodQueryDTO,
    SearchQueryDTO,
)
from core.exceptions import ValidationError
from core.time_utils import local_today
from database.repositories import NotificationRepository
from services.analytics import AnalyticsService
from services.auth import authenticate
from services.bookings import BookingService
from services.calendar import CalendarService
from services.coupons import CouponService
from services.invalidation import Collection

logger = logging.getLogger(__name__)


def setup_routes(app: web.Application):
    """Setup all API routes."""
    # Health check
    app.router.add_get('/health', health_check)

    # Auth
    app.router.add_post('/api/auth/login', login)
    app.router.add_post('/api/auth/logout', logout)

    # Calendar and bookings
    app.router.add_get('/api/calendar', get_calendar)
    app.router.add_post(r'/api/bookings/{booking_id:\d+}/complete', complete_booking)
    app.router.add_post(r'/api/bookings/{booking_id:\d+}/cancel', cancel_booking)
    app.router.add_delete(r'/api/bookings/{booking_id:\d+}', purge_booking)

    # Coupons
    app.router.add_get('/api/coupons', list_coupons)
    app.router.add_post('/api/coupons', create_coupon)
    app.router.add_delete(r'/api/coupons/{coupon_id:\d+}', delete_coupon)
    app.router.add_post('/api/coupons/reset-user-status', reset_user_coupon_status)

    # Notifications
    app.router.add_get('/api/notifications', list_notifications)
    app.router.add_get('/api/notifications/unread-count', unread_notifications_count)
    app.router.add_post(r'/api/notifications/{notification_id:\d+}/read', mark_notification_read)

    # Change feed
    app.router.add_get('/api/changes', get_changes)

    # Analytics
    app.router.add_get('/api/analytics/overview', get_overview)
    app.router.add_get('/api/analytics/revenue', get_revenue)
    app.router.add_get('/api/analytics/coupons', get_coupon_analytics)
    app.router.add_get('/api/analytics/clients', get_all_clients)
    app.router.add_get('/api/analytics/clients/bookings', get_client_bookings)
    app.router.add_get('/api/analytics/users/registered', get_registered_users)
    app.router.add_get('/api/analytics/users/unregistered', get_unregistered_users)
    app.router.add_get(r'/api/analytics/users/{user_id:\d+}/bookings', get_user_bookings)


# ========== Helpers ==========

def _today(request: web.Request) -> date:
    return local_today(request.app[SETTINGS].timezone)


def _query(request: web.Request) -> dict:
    return dict(request.query)


async def _json_body(request: web.Request) -> dict:
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("body", "ожидается JSON")
    if not isinstance(data, dict):
        raise ValidationError("body", "ожидается JSON-объект")
    return data


# ========== Health Check ==========

async def health_check(request: web.Request):
    """Health check endpoint."""
    return web.json_response({
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat()
    })


# ========== Auth ==========

async def login(request: web.Request):
    """Open an admin session for the configured login/password."""
    data = LoginDTO.model_validate(await _json_body(request))
    settings = request.app[SETTINGS]
    session = authenticate(
        request.app[SESSION_STORE],
        data.login,
        data.password,
        settings.admin_login,
        settings.admin_password,
    )
    return web.json_response(session.to_dict())


async def logout(request: web.Request):
    session = request["admin_session"]
    request.app[SESSION_STORE].revoke(session.token)
    return web.json_response({"ok": True})


# ========== Calendar & bookings ==========

async def get_calendar(request: web.Request):
    """Month grid: ``?month=YYYY-MM`` (current month by default)."""
    query = MonthQueryDTO.model_validate(_query(request))
    today = _today(request)
    async with request.app[SESSION_MAKER]() as session:
        grid = await CalendarService(session).get_month(query.to_reference(today), today)
    return web.json_response(grid)


async def complete_booking(request: web.Request):
    booking_id = int(request.match_info['booking_id'])
    async with request.app[SESSION_MAKER]() as session:
        result = await BookingService(session, request.app[REGISTRY]).complete_booking(booking_id)
    return web.json_response({"ok": True, **result})


async def cancel_booking(request: web.Request):
    booking_id = int(request.match_info['booking_id'])
    async with request.app[SESSION_MAKER]() as session:
        result = await BookingService(session, request.app[REGISTRY]).cancel_booking(booking_id)
    return web.json_response({"ok": True, **result})


async def purge_booking(request: web.Request):
    booking_id = int(request.match_info['booking_id'])
    async with request.app[SESSION_MAKER]() as session:
        result = await BookingService(session, request.app[REGISTRY]).purge_booking(booking_id)
    return web.json_response({"ok": True, **result})


# ========== Coupons ==========

async def list_coupons(request: web.Request):
    async with request.app[SESSION_MAKER]() as session:
        coupons = await CouponService(session).list_coupons()
    return web.json_response({"coupons": coupons})


async def create_coupon(request: web.Request):
    """Create the working coupon from ``{cupon_name, discount_percent}``."""
    data = CreateCouponDTO.model_validate(await _json_body(request))
    async with request.app[SESSION_MAKER]() as session:
        coupon = await CouponService(session, request.app[REGISTRY]).create_coupon(data)
    return web.json_response(coupon, status=201)


async def delete_coupon(request: web.Request):
    coupon_id = int(request.match_info['coupon_id'])
    async with request.app[SESSION_MAKER]() as session:
        result = await CouponService(session, request.app[REGISTRY]).delete_coupon(coupon_id)
    return web.json_response({"ok": True, **result})


async def reset_user_coupon_status(request: web.Request):
    async with request.app[SESSION_MAKER]() as session:
        updated = await CouponService(session, request.app[REGISTRY]).reset_user_coupon_status()
    return web.json_response({"ok": True, "updated": updated})


# ========== Notifications ==========

async def list_notifications(request: web.Request):
    """Ten newest unread notifications."""
    async with request.app[SESSION_MAKER]() as session:
        notifications = await NotificationRepository(session).list_unread(limit=10)
    return web.json_response({
        "notifications": [
            {
                "id": n.id,
                "message": n.message,
                "is_read": n.is_read,
                "created_at": n.created_at.isoformat() if n.created_at else None,
            }
            for n in notifications
        ]
    })


async def unread_notifications_count(request: web.Request):
    async with request.app[SESSION_MAKER]() as session:
        count = await NotificationRepository(session).count_unread()
    return web.json_response({"count": count})


async def mark_notification_read(request: web.Request):
    notification_id = int(request.match_info['notification_id'])
    async with request.app[SESSION_MAKER]() as session:
        await NotificationRepository(session).mark_read(notification_id)
        await session.commit()
    await request.app[REGISTRY].invalidate(Collection.NOTIFICATIONS)
    return web.json_response({"ok": True, "id": notification_id})


# ========== Change feed ==========

async def get_changes(request: web.Request):
    """Collection versions; a client refetches panels whose collections moved.

    The store is polled first so writes from other processes are counted.
    """
    async with request.app[SESSION_MAKER]() as session:
        await request.app[CHANGE_WATCHER].poll(session)
    return web.json_response({"versions": request.app[REGISTRY].versions()})


# ========== Analytics ==========

async def get_overview(request: web.Request):
    query = PeriodQueryDTO.model_validate(_query(request))
    async with request.app[SESSION_MAKER]() as session:
        report = await AnalyticsService(session).get_overview(query.to_period(_today(request)))
    return web.json_response(report)


async def get_revenue(request: web.Request):
    query = PeriodQueryDTO.model_validate(_query(request))
    async with request.app[SESSION_MAKER]() as session:
        report = await AnalyticsService(session).get_revenue_report(query.to_period(_today(request)))
    return web.json_response(report)


async def get_coupon_analytics(request: web.Request):
    query = CouponReportQueryDTO.model_validate(_query(request))
    async with request.app[SESSION_MAKER]() as session:
        report = await AnalyticsService(session).get_coupon_report(
            query.to_period(_today(request)),
            query.coupon,
        )
    return web.json_response(report)


async def get_all_clients(request: web.Request):
    """All clients of all time: ``?filter=all|registered|unregistered&q=``."""
    query = ClientsQueryDTO.model_validate(_query(request))
    async with request.app[SESSION_MAKER]() as session:
        result = await AnalyticsService(session).get_all_clients(query.filter, query.q)
    return web.json_response(result)


async def get_client_bookings(request: web.Request):
    query = ClientBookingsQueryDTO.model_validate(_query(request))
    async with request.app[SESSION_MAKER]() as session:
        bookings = await AnalyticsService(session).get_client_bookings(
            query.to_period(_today(request)),
            query.name,
            query.phone,
        )
    return web.json_response({"name": query.name, "phone": query.phone, "bookings": bookings})


async def get_registered_users(request: web.Request):
    query = SearchQueryDTO.model_validate(_query(request))
    async with request.app[SESSION_MAKER]() as session:
        users = await AnalyticsService(session).list_registered_users(
            query.to_period(_today(request)),
            query.q,
        )
    return web.json_response({"users": users})


async def get_unregistered_users(request: web.Request):
    query = SearchQueryDTO.model_validate(_query(request))
    async with request.app[SESSION_MAKER]() as session:
        clients = await AnalyticsService(session).list_unregistered_clients(
            query.to_period(_today(request)),
            query.q,
        )
    return web.json_response({"users": clients})


async def get_user_bookings(request: web.Request):
    user_id = int(request.match_info['user_id'])
    async with request.app[SESSION_MAKER]() as session:
        result = await AnalyticsService(session).get_user_bookings(user_id)
    return web.json_response(result)
