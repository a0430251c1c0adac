"""Tests for the analytics reports."""
from datetime import date, datetime, timezone

import pytest

from core.dto import ClientFilter
from core.exceptions import QueryError, UserNotFoundError
from core.periods import Period
from services.analytics import AnalyticsService, client_matches, user_matches
from factories import create_booking, create_coupon, create_user

MARCH = Period.for_month(2024, 3)


@pytest.mark.asyncio
async def test_overview(db_session):
    user = await create_user(db_session, number=None, created_at=datetime(2023, 5, 1, tzinfo=timezone.utc))
    await create_user(db_session, login="new", created_at=datetime(2024, 3, 20, tzinfo=timezone.utc))
    await create_booking(db_session, name="Иван", phone="+7111", cabinet_id=user.id, total=800,
                         services=[{"name": "Чистка", "price": 1000}])
    await create_booking(db_session, name="Гость", phone="+7222", total=500,
                         services=[{"name": "Снимок", "price": 500}])
    await create_booking(db_session, name="Гость", phone="+7222", total=500, date=date(2024, 3, 20),
                         services=[{"name": "Снимок", "price": 500}])
    await create_booking(db_session, name="Отмена", phone="+7333", total=9000, status="canceled")

    report = await AnalyticsService(db_session).get_overview(MARCH)

    assert report["label"] == "Март 2024"
    assert report["registered_clients"] == 2
    assert report["non_registered_clients"] == 1
    assert report["total_clients"] == 3
    assert report["total_revenue"] == 1800
    assert report["total_products_sold"] == 3
    assert report["purchases_with_coupon"] == 1
    assert report["purchases_without_coupon"] == 2
    assert report["products_sold_with_coupon"] == 1
    assert report["most_popular"]["name"] == "Снимок"
    assert report["least_popular"]["name"] == "Чистка"
    assert [c["name"] for c in report["clients"]] == ["Гость", "Иван"]
    shares = {p["name"]: p["share"] for p in report["products"]}
    assert shares["Снимок"] == pytest.approx(200 / 3)


@pytest.mark.asyncio
async def test_registered_users_phone_filled_from_bookings(db_session):
    user = await create_user(db_session, number=None, created_at=datetime(2023, 5, 1, tzinfo=timezone.utc))
    await create_booking(db_session, phone="+7444", cabinet_id=user.id)

    [found] = await AnalyticsService(db_session).list_registered_users(MARCH)

    assert found["id"] == user.id
    assert found["number"] == "+7444"


@pytest.mark.asyncio
async def test_registered_users_search(db_session):
    await create_user(db_session, login="anna", name="Анна", last_name="Смирнова", number="+7555",
                      created_at=datetime(2024, 3, 2, tzinfo=timezone.utc))
    await create_user(db_session, login="boris", name="Борис", last_name="Иванов", number="+7666",
                      created_at=datetime(2024, 3, 3, tzinfo=timezone.utc))
    service = AnalyticsService(db_session)

    assert [u["login"] for u in await service.list_registered_users(MARCH, "смирн")] == ["anna"]
    assert [u["login"] for u in await service.list_registered_users(MARCH, "766")] == ["boris"]
    assert len(await service.list_registered_users(MARCH)) == 2


@pytest.mark.asyncio
async def test_unregistered_clients_search(db_session):
    await create_booking(db_session, name="Ольга", phone="+7101")
    await create_booking(db_session, name="Пётр", phone="+7202")
    service = AnalyticsService(db_session)

    assert [c["name"] for c in await service.list_unregistered_clients(MARCH, "ольг")] == ["Ольга"]
    assert [c["name"] for c in await service.list_unregistered_clients(MARCH, "202")] == ["Пётр"]


@pytest.mark.asyncio
async def test_revenue_report(db_session):
    await create_booking(db_session, name="Старый", phone="+7100", date=date(2024, 2, 10), total=1000)
    await create_booking(db_session, name="Старый", phone="+7100", date=date(2024, 3, 4), total=700,
                         services=[{"name": "Чистка", "price": 700}])
    await create_booking(db_session, name="Новый", phone="+7200", date=date(2024, 3, 6), total=400,
                         services=[{"name": "Чистка", "price": 500}])
    await create_booking(db_session, name="Новый", phone="+7200", date=date(2024, 3, 6), total=400,
                         services=[{"name": "Чистка", "price": 400}])

    report = await AnalyticsService(db_session).get_revenue_report(MARCH)

    assert report["total_revenue"] == 1500
    assert report["total_orders"] == 3
    assert report["previous_revenue"] == 1000
    assert report["revenue_growth_rate"] == pytest.approx(50.0)
    assert report["unique_customers"] == 2
    assert report["new_customers"] == 1
    assert report["repeat_customers"] == 1
    assert report["orders_with_coupon"] == 1
    assert report["total_discount"] == 100
    assert report["average_order_value"] == pytest.approx(500)
    assert [d["date"] for d in report["daily"]] == ["2024-03-04", "2024-03-06"]
    assert [w["day"] for w in report["weekly"]] == ["Понедельник", "Среда"]


@pytest.mark.asyncio
async def test_revenue_growth_from_empty_previous_period(db_session):
    await create_booking(db_session, total=500)
    report = await AnalyticsService(db_session).get_revenue_report(MARCH)
    assert report["revenue_growth_rate"] == 100.0


@pytest.mark.asyncio
async def test_coupon_report_unfiltered(db_session):
    await create_coupon(db_session, cupon_name="OLD", status="deleted")
    await create_coupon(db_session, cupon_name="SPRING", discount_percent=20)
    await create_booking(db_session, name="A", phone="1", total=800, cupon_name="SPRING",
                         services=[{"name": "Чистка", "price": 1000}])
    await create_booking(db_session, name="B", phone="2", total=900,
                         services=[{"name": "Чистка", "price": 1000}])
    await create_booking(db_session, name="C", phone="3", total=1000,
                         services=[{"name": "Чистка", "price": 1000}])

    report = await AnalyticsService(db_session).get_coupon_report(MARCH)

    assert report["active_coupon"]["cupon_name"] == "SPRING"
    assert report["discount_percent"] == 20
    assert {c["cupon_name"] for c in report["coupons"]} == {"OLD", "SPRING"}
    assert report["orders_with_coupon"] == 2
    assert report["total_revenue_with_coupon"] == 1700
    assert report["total_discount"] == 300
    assert report["orders_without_coupon"] == 1
    assert report["total_revenue"] == 2700
    assert report["coupon_share_of_sales"] == pytest.approx(1700 / 2700 * 100)
    assert report["peak_activity"]["day"] == "Пятница"


@pytest.mark.asyncio
async def test_coupon_report_filtered_by_name(db_session):
    await create_coupon(db_session, cupon_name="OLD", status="deleted", discount_percent=10)
    await create_booking(db_session, total=900, cupon_name="OLD", services=[{"name": "A", "price": 1000}])
    await create_booking(db_session, total=800, services=[{"name": "A", "price": 1000}])

    report = await AnalyticsService(db_session).get_coupon_report(MARCH, "OLD")

    assert report["selected_coupon_name"] == "OLD"
    assert report["active_coupon"]["cupon_name"] == "OLD"
    assert report["discount_percent"] == 10
    assert report["orders_with_coupon"] == 1
    assert report["orders_without_coupon"] == 0
    assert report["total_revenue"] == 900


@pytest.mark.asyncio
async def test_client_bookings_newest_first(db_session):
    await create_booking(db_session, date=date(2024, 3, 2), time="10:00")
    await create_booking(db_session, date=date(2024, 3, 9), time="10:00")
    await create_booking(db_session, date=date(2024, 3, 9), time="12:00", status="canceled")
    await create_booking(db_session, date=date(2024, 3, 9), name="Другой")

    bookings = await AnalyticsService(db_session).get_client_bookings(MARCH, "Иван", "+79001234567")

    assert [b["date"] for b in bookings] == ["2024-03-09", "2024-03-02"]


@pytest.mark.asyncio
async def test_user_bookings(db_session, sample_user):
    await create_booking(db_session, cabinet_id=sample_user.id, date=date(2023, 1, 1), total=100)
    await create_booking(db_session, phone=sample_user.number, date=date(2024, 3, 1), total=200)

    result = await AnalyticsService(db_session).get_user_bookings(sample_user.id)

    assert result["user"]["id"] == sample_user.id
    assert [b["date"] for b in result["bookings"]] == ["2024-03-01", "2023-01-01"]
    assert result["total"] == 300


@pytest.mark.asyncio
async def test_user_bookings_unknown_user(db_session):
    with pytest.raises(UserNotFoundError):
        await AnalyticsService(db_session).get_user_bookings(999)


@pytest.mark.asyncio
async def test_all_clients_filters_and_counts(db_session):
    user = await create_user(db_session, number="+7111")
    await create_booking(db_session, name="Иван", phone="+7111", cabinet_id=user.id, total=100)
    await create_booking(db_session, name="Ваня", phone="+7111", total=50)
    await create_booking(db_session, name="Гость", phone="+7999", total=30)
    service = AnalyticsService(db_session)

    everyone = await service.get_all_clients()
    assert everyone["stats"] == {"total": 2, "registered": 1, "unregistered": 1}
    assert everyone["clients"][0]["total"] == 150

    guests = await service.get_all_clients(ClientFilter.UNREGISTERED)
    assert [c["name"] for c in guests["clients"]] == ["Гость"]

    found = await service.get_all_clients(ClientFilter.ALL, "999")
    assert [c["name"] for c in found["clients"]] == ["Гость"]


@pytest.mark.asyncio
async def test_reports_see_bookings_written_by_other_sessions(db_session, session_maker):
    service = AnalyticsService(db_session)
    await create_booking(db_session, total=100)
    assert (await service.get_overview(MARCH))["total_revenue"] == 100

    async with session_maker() as other:
        await create_booking(other, total=200)

    assert (await service.get_overview(MARCH))["total_revenue"] == 300
    assert (await service.get_revenue_report(MARCH))["total_revenue"] == 300


@pytest.mark.asyncio
async def test_query_failure_becomes_query_error(db_session, async_engine):
    async with async_engine.begin() as conn:
        await conn.exec_driver_sql("DROP TABLE bookings")

    with pytest.raises(QueryError) as exc_info:
        await AnalyticsService(db_session).get_revenue_report(MARCH)
    assert exc_info.value.status_code == 502


def test_user_and_client_matching():
    user = {"name": "Анна", "last_name": "Смирнова", "middle_name": None,
            "username": "ann", "login": "anna@example.com", "number": "+79005554433"}
    assert user_matches(user, None)
    assert user_matches(user, "СМИРНОВА АННА")
    assert user_matches(user, "example")
    assert user_matches(user, "555")
    assert not user_matches(user, "борис")

    client = {"name": "Гость", "display_name": "Гость", "phone": "+7999", "phone_number": "+7999"}
    assert client_matches(client, "гос")
    assert client_matches(client, "799")
    assert not client_matches(client, "иван")
