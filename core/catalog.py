"""
Service catalog and service payload normalization.

A booking stores its services as a JSON array (or a JSON-encoded string of
one). Entries are either catalog ids or inline ``{name, price}`` objects.
The payload is parsed once into a tagged union of references and resolved
into ``ServiceItem`` values; malformed payloads degrade to an empty list.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Union

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "Услуга"


@dataclass(frozen=True)
class ServiceItem:
    """Resolved service: display name and price."""
    name: str
    price: int | float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "price": self.price}


# Fallback used when a service entry lacks an explicit name/price.
SERVICE_CATALOG: dict[str, ServiceItem] = {
    "serv-ortho": ServiceItem("Ортодонтия", 0),
    "serv-thera": ServiceItem("Терапия", 0),
    "serv-plasti": ServiceItem("Пластика", 0),
}


@dataclass(frozen=True)
class CatalogRef:
    """Reference to a catalog entry by id."""
    id: str


@dataclass(frozen=True)
class InlineService:
    """Service carried inline on the booking."""
    name: str | None = None
    price: int | float | None = None
    id: str | None = None


ServiceRef = Union[CatalogRef, InlineService]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_service_refs(raw: Any) -> list[ServiceRef]:
    """Parse a stored services payload into references.

    Never raises: unparsable strings and non-list payloads give ``[]``.
    """
    if raw is None or raw == "":
        return []

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Unparsable services payload ignored")
            return []

    if not isinstance(raw, list):
        return []

    refs: list[ServiceRef] = []
    for entry in raw:
        if isinstance(entry, str):
            refs.append(CatalogRef(entry))
        elif isinstance(entry, dict):
            name = entry.get("name") or entry.get("title")
            price = entry.get("price")
            entry_id = entry.get("id")
            if name is None and price is None and entry_id is not None:
                refs.append(CatalogRef(str(entry_id)))
            else:
                refs.append(InlineService(
                    name=str(name) if name else None,
                    price=price if _is_number(price) else None,
                    id=str(entry_id) if entry_id is not None else None,
                ))
        else:
            refs.append(InlineService())
    return refs


def resolve_service(ref: ServiceRef) -> ServiceItem:
    """Resolve a reference: explicit name/price, then catalog, then defaults."""
    catalog_entry = SERVICE_CATALOG.get(ref.id) if ref.id else None

    if isinstance(ref, CatalogRef):
        if catalog_entry:
            return catalog_entry
        return ServiceItem(DEFAULT_SERVICE_NAME, 0)

    name = ref.name or (catalog_entry.name if catalog_entry else DEFAULT_SERVICE_NAME)
    if ref.price is not None:
        price = ref.price
    else:
        price = catalog_entry.price if catalog_entry else 0
    return ServiceItem(name, price)


def normalize_services(raw: Any) -> list[ServiceItem]:
    """Stored payload -> ordered list of resolved services."""
    return [resolve_service(ref) for ref in parse_service_refs(raw)]
