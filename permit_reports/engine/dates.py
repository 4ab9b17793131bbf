"""Date normalization, report windows and date labels.

Two membership tests are kept apart on purpose:

- ``in_window`` compares on calendar-month boundaries (Month/Year reports
  include the whole boundary months);
- ``in_window_by_day`` compares on exact days (Day reports).
"""

from __future__ import annotations

import calendar
import enum
from dataclasses import dataclass
from datetime import date, datetime, tzinfo


class DateType(str, enum.Enum):
    DAY = "Day"
    MONTH = "Month"
    YEAR = "Year"
    NONE = ""

    @classmethod
    def parse(cls, value: object) -> "DateType":
        if isinstance(value, DateType):
            return value
        if isinstance(value, (list, tuple)):
            # The filter UI may send the selected types as a list; Day wins.
            parsed = [cls.parse(item) for item in value]
            if cls.DAY in parsed:
                return cls.DAY
            return parsed[0] if parsed else cls.NONE
        if isinstance(value, str):
            folded = value.strip().lower()
            for member in cls:
                if member.value.lower() == folded:
                    return member
        return cls.NONE


def month_start(value: date) -> date:
    return date(value.year, value.month, 1)


def month_end(value: date) -> date:
    return date(value.year, value.month, calendar.monthrange(value.year, value.month)[1])


def normalize(value: object, tz: tzinfo | None = None) -> date | None:
    """Coerce a date, datetime or ISO-like string to a ``date``; ``None`` when invalid.

    Offset-aware timestamps are read as calendar days in ``tz`` when one is
    given, so a local midnight sent as UTC keeps its local date.
    """

    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            return value.astimezone(tz).date()
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if len(text) == 7:
        text = f"{text}-01"
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        return normalize(datetime.fromisoformat(text), tz)
    except ValueError:
        return None


def parse_month(month: object) -> tuple[date, bool] | None:
    """Parse a record month; the flag tells whether it carried a day component."""

    if not isinstance(month, str):
        return None
    text = month.strip()
    if len(text) == 7:
        parsed = normalize(text)
        return (parsed, False) if parsed is not None else None
    parsed = normalize(text)
    return (parsed, True) if parsed is not None else None


@dataclass(frozen=True, slots=True)
class DateWindow:
    start: date | None = None
    end: date | None = None

    @classmethod
    def from_bounds(cls, start: object, end: object, tz: tzinfo | None = None) -> "DateWindow":
        return cls(start=normalize(start, tz), end=normalize(end, tz))

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None


def in_window(month: object, window: DateWindow) -> bool:
    """Calendar-month membership: compare month starts against month-widened bounds."""

    if window.is_open:
        return True
    parsed = parse_month(month)
    if parsed is None:
        return False
    first_day = month_start(parsed[0])
    if window.start is not None and first_day < month_start(window.start):
        return False
    if window.end is not None and first_day > month_end(window.end):
        return False
    return True


def in_window_by_day(month: object, window: DateWindow) -> bool:
    """Day membership: day records compare exactly, month records match on overlap."""

    if window.is_open:
        return True
    parsed = parse_month(month)
    if parsed is None:
        return False
    value, has_day = parsed
    first_day = value if has_day else month_start(value)
    last_day = value if has_day else month_end(value)
    if window.start is not None and last_day < window.start:
        return False
    if window.end is not None and first_day > window.end:
        return False
    return True


def format_month_year(month: str) -> str:
    """"2024-02" or "2024-02-15" -> "February 2024"; anything else is echoed."""

    if not month:
        return ""
    parsed = parse_month(month)
    if parsed is None:
        return month
    return parsed[0].strftime("%B %Y")


def format_month_span(months: tuple[str, ...] | list[str]) -> str:
    if not months:
        return ""
    if len(months) == 1:
        return f"({format_month_year(months[0])})"
    return f"({format_month_year(months[0])} - {format_month_year(months[-1])})"


def _day(value: date) -> str:
    return value.strftime("%b %d, %Y")


def date_range_label(start: date | None, end: date | None, date_type: DateType) -> str:
    if start is None and end is None:
        return ""
    if start is not None and end is not None:
        if date_type in (DateType.MONTH, DateType.YEAR):
            return f"{start.strftime('%B %Y')} - {end.strftime('%B %Y')}"
        if date_type is DateType.DAY and start == end:
            return _day(start)
        return f"{_day(start)} - {_day(end)}"
    return _day(start or end)
