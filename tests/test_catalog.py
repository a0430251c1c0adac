"""Tests for service payload normalization."""
import json

import pytest

from core.catalog import (
    DEFAULT_SERVICE_NAME,
    CatalogRef,
    InlineService,
    ServiceItem,
    normalize_services,
    parse_service_refs,
)


@pytest.mark.parametrize("raw", [None, "", "not json", "{broken", b"\xff\xfe", 42, {"name": "x"}, '{"a": 1}'])
def test_malformed_payload_degrades_to_empty(raw):
    """Unparsable or non-list payloads never raise."""
    assert normalize_services(raw) == []


def test_json_string_payload_is_decoded():
    raw = json.dumps([{"name": "Чистка", "price": 1000}])
    assert normalize_services(raw) == [ServiceItem("Чистка", 1000)]


def test_catalog_id_resolves_to_catalog_entry():
    assert normalize_services(["serv-ortho"]) == [ServiceItem("Ортодонтия", 0)]
    assert normalize_services([{"id": "serv-thera"}]) == [ServiceItem("Терапия", 0)]


def test_unknown_catalog_id_uses_default_name():
    assert normalize_services(["serv-unknown"]) == [ServiceItem(DEFAULT_SERVICE_NAME, 0)]


def test_explicit_name_and_price_win_over_catalog():
    items = normalize_services([{"id": "serv-ortho", "name": "Брекеты", "price": 55000}])
    assert items == [ServiceItem("Брекеты", 55000)]


def test_title_is_used_when_name_missing():
    assert normalize_services([{"title": "Отбеливание", "price": 7000}]) == [ServiceItem("Отбеливание", 7000)]


def test_catalog_name_fills_missing_name():
    items = normalize_services([{"id": "serv-plasti", "price": 3000}])
    assert items == [ServiceItem("Пластика", 3000)]


def test_non_numeric_price_falls_back_to_zero():
    items = normalize_services([{"name": "Консультация", "price": "1500"}, {"name": "Снимок", "price": True}])
    assert items == [ServiceItem("Консультация", 0), ServiceItem("Снимок", 0)]


def test_unusable_entries_resolve_to_default_item():
    assert normalize_services([None, 5]) == [
        ServiceItem(DEFAULT_SERVICE_NAME, 0),
        ServiceItem(DEFAULT_SERVICE_NAME, 0),
    ]


def test_order_is_preserved():
    items = normalize_services([{"name": "B", "price": 2}, "serv-ortho", {"name": "A", "price": 1}])
    assert [i.name for i in items] == ["B", "Ортодонтия", "A"]


def test_parse_produces_tagged_references():
    refs = parse_service_refs(["serv-ortho", {"id": "serv-thera"}, {"name": "X", "price": 10}])
    assert refs == [
        CatalogRef("serv-ortho"),
        CatalogRef("serv-thera"),
        InlineService(name="X", price=10, id=None),
    ]
