"""Tests for the aggregation folds."""
import random
from datetime import date
from types import SimpleNamespace

import pytest

from core.catalog import ServiceItem
from core.records import BookingRecord
from services import aggregation as agg


def record(id=1, name="Ivan", phone="+7900", day=date(2024, 3, 4), total=1000,
           services=None, cabinet_id=None, cupon_name=None, time="10:00"):
    if services is None:
        services = [ServiceItem("Чистка", total)]
    return BookingRecord(
        id=id,
        name=name,
        phone=phone,
        date=day,
        time=time,
        services=services,
        total=total,
        status="new",
        cabinet_id=cabinet_id,
        cupon_name=cupon_name,
        stored_total=total,
    )


def user(id, number=None, **fields):
    values = {"id": id, "number": number, "name": None, "last_name": None,
              "middle_name": None, "username": None, "login": None, "created_at": None}
    values.update(fields)
    values.setdefault("full_name", " ".join(
        p for p in (values["last_name"], values["name"], values["middle_name"]) if p
    ))
    return SimpleNamespace(**values)


# ========== Growth ==========

@pytest.mark.parametrize("current,previous,expected", [
    (0, 0, 0.0),
    (500, 0, 100.0),
    (1500, 1000, 50.0),
    (500, 1000, -50.0),
])
def test_growth_rate(current, previous, expected):
    assert agg.growth_rate(current, previous) == pytest.approx(expected)


def test_product_share():
    assert agg.product_share(1, 4) == 25.0
    assert agg.product_share(3, 0) == 0


# ========== Clients ==========

def test_two_bookings_same_client_are_repeat():
    records = [record(id=1, name="Ivan", phone="+7900", total=500),
               record(id=2, name="Ivan", phone="+7900", total=700)]

    [client] = agg.client_totals(records)

    assert client.total == 1200
    assert client.order_count == 2
    assert client.is_repeat
    assert agg.repeat_clients(records) == {("Ivan", "+7900")}


def test_client_totals_are_order_independent():
    records = [
        record(id=i, name=name, phone=phone, total=total)
        for i, (name, phone, total) in enumerate([
            ("A", "1", 100), ("B", "2", 300), ("A", "1", 250),
            ("C", "3", 50), ("B", "2", 10), ("A", "2", 999),
        ])
    ]
    expected = {c.key: (c.total, c.order_count) for c in agg.client_totals(records)}

    shuffled = records[:]
    random.Random(7).shuffle(shuffled)
    actual = {c.key: (c.total, c.order_count) for c in agg.client_totals(shuffled)}

    assert actual == expected


def test_client_totals_sorted_by_total_desc():
    records = [record(id=1, name="A", total=100), record(id=2, name="B", total=300)]
    assert [c.name for c in agg.client_totals(records)] == ["B", "A"]


def test_same_name_different_phone_are_different_clients():
    records = [record(id=1, phone="1"), record(id=2, phone="2")]
    assert len(agg.client_totals(records)) == 2
    assert agg.repeat_clients(records) == set()


def test_client_registered_if_any_booking_registered():
    records = [record(id=1), record(id=2, cabinet_id=5)]
    [client] = agg.client_totals(records)
    assert client.is_registered


def test_new_clients_excludes_prior_keys():
    records = [record(id=1, name="Old"), record(id=2, name="New")]
    assert agg.new_clients(records, {("Old", "+7900")}) == {("New", "+7900")}


def test_unregistered_clients_distinct():
    records = [record(id=1, name="A"), record(id=2, name="A"), record(id=3, name="B", cabinet_id=1)]
    assert agg.unregistered_clients(records) == [{"name": "A", "phone": "+7900", "key": "A|+7900"}]


# ========== Products ==========

def test_product_stats_counts_and_coupon_split():
    records = [
        record(id=1, total=800, services=[ServiceItem("Чистка", 1000)]),
        record(id=2, total=1500, services=[ServiceItem("Чистка", 1000), ServiceItem("Снимок", 500)]),
    ]
    summary = agg.product_stats(records)
    by_name = {p.name: p for p in summary.products}

    assert summary.total_units == 3
    assert by_name["Чистка"].quantity == 2
    assert by_name["Чистка"].orders == 2
    assert by_name["Чистка"].with_coupon == 1
    assert by_name["Чистка"].without_coupon == 1
    assert by_name["Снимок"].revenue == 500
    assert summary.most_popular.name == "Чистка"
    assert summary.least_popular.name == "Снимок"


def test_product_ties_broken_by_first_encountered():
    records = [record(id=1, services=[ServiceItem("B", 1), ServiceItem("A", 1)])]
    summary = agg.product_stats(records)

    assert summary.most_popular.name == "B"
    assert summary.least_popular.name == "B"
    assert [p.name for p in summary.products] == ["B", "A"]


def test_product_stats_empty():
    summary = agg.product_stats([])
    assert summary.products == []
    assert summary.most_popular is None
    assert summary.least_popular is None


# ========== Coupons ==========

def test_coupon_split():
    records = [
        record(id=1, total=800, services=[ServiceItem("A", 1000)]),
        record(id=2, total=1000, services=[ServiceItem("A", 1000)]),
        record(id=3, total=0, services=[], cupon_name="SPRING"),
    ]
    split = agg.coupon_split(records)

    assert split.orders_with_coupon == 2
    assert split.orders_without_coupon == 1
    assert split.revenue_with_coupon == 800
    assert split.revenue_without_coupon == 1000
    assert split.total_discount == 200
    assert split.average_discount == 100


# ========== Time buckets ==========

def test_daily_buckets_sorted_ascending():
    records = [record(id=1, day=date(2024, 3, 5), total=100),
               record(id=2, day=date(2024, 3, 4), total=200),
               record(id=3, day=date(2024, 3, 5), total=50)]
    buckets = agg.daily_buckets(records)

    assert [b["date"] for b in buckets] == ["2024-03-04", "2024-03-05"]
    assert buckets[1]["revenue"] == 150
    assert buckets[1]["orders"] == 2


def test_weekday_buckets_monday_first_only_present():
    # 2024-03-10 is a Sunday, 2024-03-04 a Monday, 2024-03-06 a Wednesday
    records = [record(id=1, day=date(2024, 3, 10)),
               record(id=2, day=date(2024, 3, 6)),
               record(id=3, day=date(2024, 3, 4))]
    buckets = agg.weekday_buckets(records)

    assert [b["day"] for b in buckets] == ["Понедельник", "Среда", "Воскресенье"]
    assert [b["weekday"] for b in buckets] == [0, 2, 6]


def test_peak_weekday_earliest_wins_ties():
    buckets = [{"weekday": 0, "orders": 2}, {"weekday": 3, "orders": 2}, {"weekday": 5, "orders": 1}]
    assert agg.peak_weekday(buckets)["weekday"] == 0
    assert agg.peak_weekday([]) is None


# ========== Identity merge ==========

def test_merge_groups_by_registered_user():
    users = [user(1, number="+7111", last_name="Петров", name="Иван")]
    records = [
        record(id=1, name="Ваня", phone="+7111", total=100, cabinet_id=1),
        record(id=2, name="Иван П.", phone="+7222", total=200, cabinet_id=1),
    ]
    [identity] = agg.merge_client_identities(records, users)

    assert identity.is_registered
    assert identity.total == 300
    assert identity.order_count == 2
    assert identity.display_name == "Петров Иван"


def test_merge_folds_guest_with_users_phone():
    users = [user(1, number="+7111")]
    records = [
        record(id=1, name="Ваня", phone="+7111", total=100, cabinet_id=1),
        record(id=2, name="Иван", phone="+7111", total=50),
    ]
    [identity] = agg.merge_client_identities(records, users)

    assert identity.total == 150
    assert identity.order_count == 2


def test_merge_folds_guest_with_same_name_and_phone():
    users = [user(1, number=None)]
    records = [
        record(id=1, name="Ваня", phone="+7333", total=100, cabinet_id=1),
        record(id=2, name="Ваня", phone="+7333", total=70),
    ]
    [identity] = agg.merge_client_identities(records, users)
    assert identity.total == 170


def test_merge_keeps_unrelated_guests_and_unknown_users():
    users = [user(1, number="+7111")]
    records = [
        record(id=1, name="A", phone="+7999", total=10),
        record(id=2, name="B", phone="+7888", total=20, cabinet_id=42),
        record(id=3, name="C", phone="+7111", total=30, cabinet_id=1),
    ]
    identities = agg.merge_client_identities(records, users)

    assert [(i.name, i.is_registered) for i in identities] == [("C", True), ("B", False), ("A", False)]
