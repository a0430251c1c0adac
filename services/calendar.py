"""Month calendar of bookings."""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional

from core.periods import RU_MONTHS
from core.records import BookingRecord
from core.time_utils import time_sort_key
from database.repositories import BookingRepository
from services.base import BaseService, translate_query_errors

logger = logging.getLogger(__name__)

PREVIEW_SIZE = 3


@dataclass
class CalendarCell:
    """One day of the month grid."""
    date: date
    in_month: bool
    is_today: bool
    bookings: List[BookingRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.bookings)

    @property
    def total(self) -> int | float:
        return sum(b.display_total for b in self.bookings)

    @property
    def preview(self) -> List[BookingRecord]:
        return self.bookings[:PREVIEW_SIZE]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "day": self.date.day,
            "in_month": self.in_month,
            "is_today": self.is_today,
            "count": self.count,
            "total": self.total,
            "more": max(self.count - PREVIEW_SIZE, 0),
            "preview": [b.to_dict() for b in self.preview],
            "bookings": [b.to_dict() for b in self.bookings],
        }


@dataclass
class MonthGrid:
    reference: date
    cells: List[CalendarCell]

    @property
    def label(self) -> str:
        return f"{RU_MONTHS[self.reference.month - 1]} {self.reference.year}"

    @property
    def weeks(self) -> List[List[CalendarCell]]:
        return [self.cells[i:i + 7] for i in range(0, len(self.cells), 7)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.reference.strftime("%Y-%m"),
            "label": self.label,
            "start": self.cells[0].date.isoformat(),
            "end": self.cells[-1].date.isoformat(),
            "weeks": [[cell.to_dict() for cell in week] for week in self.weeks],
        }


def month_bounds(reference: date) -> tuple[date, date]:
    """First and last day of the reference month."""
    first = reference.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    return first, next_month - timedelta(days=1)


def grid_bounds(reference: date) -> tuple[date, date]:
    """Monday on/before the 1st and Sunday on/after the last day of the month."""
    first, last = month_bounds(reference)
    start = first - timedelta(days=first.weekday())
    end = last + timedelta(days=6 - last.weekday())
    return start, end


def build_month_grid(
    reference: date,
    records: Iterable[BookingRecord],
    today: Optional[date] = None,
) -> MonthGrid:
    """
    Lay bookings out on a Monday-first month grid.

    Canceled records are skipped; each day's bookings are sorted by time.
    """
    start, end = grid_bounds(reference)
    by_day: dict[date, List[BookingRecord]] = {}
    for record in records:
        if record.is_canceled or not start <= record.date <= end:
            continue
        by_day.setdefault(record.date, []).append(record)

    cells = []
    day = start
    while day <= end:
        bookings = sorted(by_day.get(day, []), key=lambda b: time_sort_key(b.time))
        cells.append(CalendarCell(
            date=day,
            in_month=(day.year, day.month) == (reference.year, reference.month),
            is_today=day == today,
            bookings=bookings,
        ))
        day += timedelta(days=1)
    return MonthGrid(reference.replace(day=1), cells)


class CalendarService(BaseService):
    """Calendar view of bookings, re-queried on every call."""

    @translate_query_errors
    async def get_month(self, reference: date, today: date) -> dict[str, Any]:
        """Month grid for ``reference``'s month, serialized."""
        start, end = grid_bounds(reference)
        records = await BookingRepository(self.session).get_records_in_range(start, end)
        grid = build_month_grid(reference, records, today)
        logger.debug(f"Calendar {grid.label}: {len(records)} bookings in grid range")
        return grid.to_dict()
