"""
Data Transfer Objects (DTOs) for data validation.

This package contains Pydantic models for validating API input.
"""

from core.dto.analytics import (
    ClientBookingsQueryDTO,
    ClientFilter,
    ClientsQueryDTO,
    CouponReportQueryDTO,
    SearchQueryDTO,
)
from core.dto.auth import LoginDTO
from core.dto.coupons import CreateCouponDTO
from core.dto.periods import PeriodQueryDTO, MonthQueryDTO

__all__ = [
    'LoginDTO',
    'CreateCouponDTO',
    'PeriodQueryDTO',
    'MonthQueryDTO',
    'SearchQueryDTO',
    'ClientsQueryDTO',
    'ClientFilter',
    'ClientBookingsQueryDTO',
    'CouponReportQueryDTO',
]
