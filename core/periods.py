"""Report periods: a calendar month or a calendar year."""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

RU_MONTHS = [
    "Январь", "Февраль", "Март", "Апрель", "Май", "Июнь",
    "Июль", "Август", "Сентябрь", "Октябрь", "Ноябрь", "Декабрь",
]

# Indexed by date.weekday(): 0 = Monday
RU_WEEKDAYS = [
    "Понедельник", "Вторник", "Среда", "Четверг", "Пятница", "Суббота", "Воскресенье",
]


class PeriodKind(str, Enum):
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class Period:
    """A calendar month or calendar year used to scope analytics."""
    kind: PeriodKind
    year: int
    month: int = 1

    @classmethod
    def for_month(cls, year: int, month: int) -> "Period":
        return cls(PeriodKind.MONTH, year, month)

    @classmethod
    def for_year(cls, year: int) -> "Period":
        return cls(PeriodKind.YEAR, year, 1)

    @property
    def start(self) -> date:
        if self.kind == PeriodKind.MONTH:
            return date(self.year, self.month, 1)
        return date(self.year, 1, 1)

    @property
    def end(self) -> date:
        if self.kind == PeriodKind.MONTH:
            return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])
        return date(self.year, 12, 31)

    def previous(self) -> "Period":
        if self.kind == PeriodKind.YEAR:
            return Period.for_year(self.year - 1)
        prev_last_day = self.start - timedelta(days=1)
        return Period.for_month(prev_last_day.year, prev_last_day.month)

    @property
    def label(self) -> str:
        if self.kind == PeriodKind.MONTH:
            return f"{RU_MONTHS[self.month - 1]} {self.year}"
        return str(self.year)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "year": self.year,
            "month": self.month if self.kind == PeriodKind.MONTH else None,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "label": self.label,
        }
