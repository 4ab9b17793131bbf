from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from permit_reports.engine.dates import (
    DateType,
    DateWindow,
    date_range_label,
    format_month_span,
    in_window,
    in_window_by_day,
    normalize,
)
from permit_reports.engine.fields import (
    display_city_name,
    extract_city,
    extract_province,
    matches_any,
    normalize_city_lists,
)


def test_normalize_accepts_common_shapes() -> None:
    assert normalize(date(2024, 2, 3)) == date(2024, 2, 3)
    assert normalize(datetime(2024, 2, 3, 10, 30)) == date(2024, 2, 3)
    assert normalize("2024-02") == date(2024, 2, 1)
    assert normalize("2024-02-15") == date(2024, 2, 15)
    assert normalize("2024-02-15T08:00:00Z") == date(2024, 2, 15)


@pytest.mark.parametrize("value", [None, "", "not-a-date", "2024-13", 20240215])
def test_normalize_invalid_is_unbounded(value: object) -> None:
    assert normalize(value) is None
    assert DateWindow.from_bounds(value, value).is_open


def test_date_type_parse() -> None:
    assert DateType.parse("day") is DateType.DAY
    assert DateType.parse("Month") is DateType.MONTH
    assert DateType.parse(["Month", "Day"]) is DateType.DAY
    assert DateType.parse(None) is DateType.NONE
    assert DateType.parse("weekly") is DateType.NONE


def test_month_window_uses_calendar_month_boundaries() -> None:
    window = DateWindow.from_bounds("2024-02-15", "2024-03-10")

    assert not in_window("2024-01", window)
    assert in_window("2024-02", window)
    assert in_window("2024-03", window)
    assert in_window("2024-03-28", window)
    assert not in_window("2024-04", window)
    assert not in_window("garbage", window)


def test_day_window_compares_exact_days() -> None:
    window = DateWindow.from_bounds("2024-02-10", "2024-02-20")

    assert in_window_by_day("2024-02-10", window)
    assert in_window_by_day("2024-02-20", window)
    assert not in_window_by_day("2024-02-09", window)
    assert not in_window_by_day("2024-02-21", window)
    # A month-only record overlaps any day window inside that month.
    assert in_window_by_day("2024-02", window)
    assert not in_window_by_day("2024-03", window)


def test_open_window_admits_everything() -> None:
    window = DateWindow()

    assert in_window("1999-01", window)
    assert in_window_by_day("2099-12-31", window)


def test_date_range_label() -> None:
    start, end = date(2024, 1, 1), date(2024, 3, 31)

    assert date_range_label(start, end, DateType.MONTH) == "January 2024 - March 2024"
    assert date_range_label(start, end, DateType.YEAR) == "January 2024 - March 2024"
    assert date_range_label(date(2024, 2, 1), date(2024, 2, 1), DateType.DAY) == "Feb 01, 2024"
    assert date_range_label(date(2024, 2, 1), date(2024, 2, 10), DateType.DAY) == "Feb 01, 2024 - Feb 10, 2024"
    assert date_range_label(start, end, DateType.NONE) == "Jan 01, 2024 - Mar 31, 2024"
    assert date_range_label(start, None, DateType.MONTH) == "Jan 01, 2024"
    assert date_range_label(None, None, DateType.DAY) == ""


def test_format_month_span() -> None:
    assert format_month_span([]) == ""
    assert format_month_span(["2024-02"]) == "(February 2024)"
    assert format_month_span(["2024-02", "2024-03"]) == "(February 2024 - March 2024)"


def test_province_and_city_from_lgu() -> None:
    assert extract_city("Quezon City, Metro Manila") == "Quezon City"
    assert extract_province("Quezon City, Metro Manila") == "Metro Manila"
    assert extract_city("Pasig") == "Pasig"
    assert extract_province("Pasig") is None
    assert extract_province("Pasig", "Metro Manila") == "Metro Manila"
    assert extract_city("Pasig, Metro Manila", "Pasig City") == "Pasig City"


def test_matches_any_is_case_insensitive_and_trimmed() -> None:
    assert matches_any("Metro Manila", (" metro manila ",))
    assert not matches_any("Laguna", ("Cavite",))
    assert not matches_any(None, ("Laguna",))


def test_city_display_names() -> None:
    assert display_city_name("Calamba City") == "City of Calamba"
    assert display_city_name("City of Manila") == "City of Manila"
    assert display_city_name(" Los Banos ") == "Los Banos"
    assert normalize_city_lists({"Laguna": ["Calamba City, Laguna", "Bay, Laguna"]}) == {
        "Laguna": ["City of Calamba", "Bay"]
    }


def test_utc_timestamps_keep_their_local_calendar_day() -> None:
    manila = ZoneInfo("Asia/Manila")

    # Local midnight of Feb 1 in Manila, as a browser sends it.
    assert normalize("2024-01-31T16:00:00.000Z", manila) == date(2024, 2, 1)
    assert normalize("2024-01-31T16:00:00.000Z") == date(2024, 1, 31)
    assert normalize("2024-01-31T16:00:00", manila) == date(2024, 1, 31)
    assert normalize("2024-02-01", manila) == date(2024, 2, 1)

    window = DateWindow.from_bounds("2024-01-31T16:00:00.000Z", "2024-02-29T16:00:00.000Z", manila)
    assert not in_window("2024-01", window)
    assert in_window("2024-02", window)
