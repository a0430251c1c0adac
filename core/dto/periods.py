"""Query DTOs for period-scoped reports."""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from core.periods import Period, PeriodKind


class PeriodQueryDTO(BaseModel):
    """Period selector: ``period=month|year``, ``year``, ``month`` (1-12)."""

    period: PeriodKind = Field(PeriodKind.MONTH, description="Period kind")
    year: Optional[int] = Field(None, ge=2000, le=2100, description="Calendar year")
    month: Optional[int] = Field(None, ge=1, le=12, description="Month number (1-12)")

    @model_validator(mode='after')
    def require_month_when_year_given(self) -> "PeriodQueryDTO":
        if self.period == PeriodKind.MONTH and self.year is not None and self.month is None:
            raise ValueError("month is required when year is given for a monthly period")
        return self

    def to_period(self, today: date) -> Period:
        """Resolve to a ``Period``; missing parts default to ``today``."""
        year = self.year if self.year is not None else today.year
        if self.period == PeriodKind.YEAR:
            return Period.for_year(year)
        month = self.month if self.month is not None else today.month
        return Period.for_month(year, month)


class MonthQueryDTO(BaseModel):
    """Calendar month selector: ``month=YYYY-MM``."""

    month: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$", description="Month as YYYY-MM")

    @field_validator('month')
    @classmethod
    def validate_month_number(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and (int(v[:4]) < 1 or not 1 <= int(v[5:]) <= 12):
            raise ValueError("month must be between 01 and 12")
        return v

    def to_reference(self, today: date) -> date:
        """First day of the requested month (current month by default)."""
        if not self.month:
            return today.replace(day=1)
        return date(int(self.month[:4]), int(self.month[5:]), 1)
