"""Calendar-month periods in UTC."""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

MONTH_PATTERN = re.compile(r"\d{4}-\d{2}")

MonthInput = Union[str, date, datetime, None]


class MonthPeriod(BaseModel):
    """
    Half-open UTC range [start, end) covering one calendar month.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        """The month as YYYY-MM."""
        return self.start.strftime("%Y-%m")

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    @classmethod
    def for_year_month(cls, year: int, month: int) -> "MonthPeriod":
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        if month == 12:
            end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
        return cls(start=start, end=end)

    @classmethod
    def containing(cls, moment: Union[date, datetime]) -> "MonthPeriod":
        """Month containing a date or datetime. Naive datetimes are UTC."""
        if isinstance(moment, datetime):
            moment = as_utc(moment)
        return cls.for_year_month(moment.year, moment.month)

    @classmethod
    def current(cls, now: Optional[datetime] = None) -> "MonthPeriod":
        return cls.containing(now or datetime.now(timezone.utc))

    @classmethod
    def parse(cls, value: str) -> "MonthPeriod":
        """
        Parse a YYYY-MM string.

        Raises ValueError for anything that is not a real calendar month.
        """
        if not isinstance(value, str) or not MONTH_PATTERN.fullmatch(value):
            raise ValueError("Month must be in YYYY-MM format")
        year, month = (int(part) for part in value.split("-"))
        if not 1 <= month <= 12 or year < 1:
            raise ValueError("Month must be in YYYY-MM format")
        return cls.for_year_month(year, month)


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
