"""Typed record shapes for raw and aggregated report data.

Raw payloads come from an external source and are loosely shaped; parsing
here is tolerant: malformed entries are skipped, non-numeric counters are
ignored, and every missing counter reads as zero through ``counter_value``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import tzinfo

from permit_reports.engine.dates import DateType, DateWindow, format_month_span
from permit_reports.engine.fields import extract_city, extract_province
from permit_reports.engine.regions import to_internal_key

Number = int | float


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _optional_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def counter_value(counters: Mapping[str, Number], name: str) -> Number:
    """Single zero-fallback accessor for counters."""

    value = counters.get(name)
    return value if _is_number(value) else 0


@dataclass(frozen=True, slots=True)
class MonthlyRecord:
    month: str
    counters: Mapping[str, Number] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: object) -> "MonthlyRecord | None":
        if not isinstance(raw, Mapping):
            return None
        month = raw.get("month")
        if not isinstance(month, str) or not month.strip():
            return None
        counters = {str(key): value for key, value in raw.items() if _is_number(value)}
        return cls(month=month.strip(), counters=counters)

    def value(self, name: str) -> Number:
        return counter_value(self.counters, name)


@dataclass(frozen=True, slots=True)
class LocalityRecord:
    lgu: str
    monthly_results: tuple[MonthlyRecord, ...] = ()
    province_field: str | None = None
    city_field: str | None = None
    region: str | None = None
    region_code: str | None = None

    @classmethod
    def from_mapping(cls, raw: object) -> "LocalityRecord | None":
        if not isinstance(raw, Mapping):
            return None
        lgu = raw.get("lgu")
        if not isinstance(lgu, str):
            return None
        monthly_raw = raw.get("monthlyResults")
        if not isinstance(monthly_raw, (list, tuple)):
            monthly_raw = []
        months = tuple(
            record for record in (MonthlyRecord.from_mapping(item) for item in monthly_raw) if record is not None
        )
        return cls(
            lgu=lgu,
            monthly_results=months,
            province_field=_optional_str(raw.get("province")),
            city_field=_optional_str(raw.get("city")),
            region=_optional_str(raw.get("region")),
            region_code=_optional_str(raw.get("regionCode")),
        )

    @property
    def province(self) -> str | None:
        return extract_province(self.lgu, self.province_field)

    @property
    def city(self) -> str | None:
        return extract_city(self.lgu, self.city_field)

    @property
    def identity(self) -> tuple[str, str]:
        return (self.lgu, self.province or "")


def parse_dataset(raw: object) -> list[LocalityRecord]:
    """Parse ``{"results": [...]}``; anything malformed yields an empty list."""

    if not isinstance(raw, Mapping):
        return []
    results = raw.get("results")
    if not isinstance(results, (list, tuple)):
        return []
    return [record for record in (LocalityRecord.from_mapping(item) for item in results) if record is not None]


@dataclass(frozen=True, slots=True)
class AggregatedRecord:
    lgu: str
    province: str | None
    city: str | None
    province_field: str | None
    region: str | None
    region_code: str | None
    region_key: str | None
    months: tuple[str, ...]
    values: Mapping[str, Number]
    monthly: tuple[MonthlyRecord, ...] = ()
    day_mode: bool = False

    @property
    def display_name(self) -> str:
        if self.province_field:
            return f"{self.lgu} ({self.province_field})"
        return self.lgu

    @property
    def label(self) -> str:
        span = format_month_span(self.months)
        return f"{self.display_name} {span}" if span else self.display_name


def record_value(record: AggregatedRecord, name: str) -> Number:
    """Counter of an aggregated record; zero when no in-window month carried it."""

    return counter_value(record.values, name)


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    selected_regions: tuple[str, ...] = ()
    selected_provinces: tuple[str, ...] = ()
    selected_cities: tuple[str, ...] = ()
    selected_islands: tuple[str, ...] = ()
    date_window: DateWindow = field(default_factory=DateWindow)
    selected_date_type: DateType = DateType.NONE

    @classmethod
    def build(
        cls,
        *,
        selected_regions: Iterable[str] = (),
        selected_provinces: Iterable[str] = (),
        selected_cities: Iterable[str] = (),
        selected_islands: Iterable[str] = (),
        start: object = None,
        end: object = None,
        selected_date_type: object = "",
        tz: tzinfo | None = None,
    ) -> "FilterCriteria":
        return cls(
            selected_regions=tuple(to_internal_key(region) or region for region in selected_regions if region),
            selected_provinces=tuple(value for value in selected_provinces if value),
            selected_cities=tuple(value for value in selected_cities if value),
            selected_islands=tuple(value for value in selected_islands if value),
            date_window=DateWindow.from_bounds(start, end, tz),
            selected_date_type=DateType.parse(selected_date_type),
        )

    @property
    def is_day_mode(self) -> bool:
        return self.selected_date_type is DateType.DAY
