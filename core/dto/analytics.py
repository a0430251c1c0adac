"""Query DTOs for client and user drill-downs."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from core.dto.periods import PeriodQueryDTO


class ClientFilter(str, Enum):
    ALL = "all"
    REGISTERED = "registered"
    UNREGISTERED = "unregistered"


def _strip_query(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class SearchQueryDTO(PeriodQueryDTO):
    """Period plus an optional free-text search."""

    q: Optional[str] = Field(None, max_length=255, description="Search text")

    @field_validator('q')
    @classmethod
    def strip_q(cls, v: Optional[str]) -> Optional[str]:
        return _strip_query(v)


class ClientsQueryDTO(BaseModel):
    """All-time client list: registration filter and search."""

    filter: ClientFilter = Field(ClientFilter.ALL, description="Registration filter")
    q: Optional[str] = Field(None, max_length=255, description="Search text")

    @field_validator('q')
    @classmethod
    def strip_q(cls, v: Optional[str]) -> Optional[str]:
        return _strip_query(v)


class ClientBookingsQueryDTO(PeriodQueryDTO):
    """One (name, phone) client within a period."""

    name: str = Field(..., min_length=1, max_length=255, description="Client name as booked")
    phone: str = Field(..., min_length=1, max_length=32, description="Client phone as booked")


class CouponReportQueryDTO(PeriodQueryDTO):
    """Coupon report with an optional coupon name filter."""

    coupon: Optional[str] = Field(None, max_length=100, description="Coupon name")

    @field_validator('coupon')
    @classmethod
    def strip_coupon(cls, v: Optional[str]) -> Optional[str]:
        return _strip_query(v)
