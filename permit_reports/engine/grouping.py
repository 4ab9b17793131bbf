"""Region grouping and totals over aggregated report rows."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from permit_reports.engine.layouts import ReportLayout
from permit_reports.engine.records import AggregatedRecord, Number, counter_value, record_value
from permit_reports.engine.regions import RegionResolver, to_display_code


@dataclass(frozen=True, slots=True)
class RegionGroup:
    region_key: str
    records: tuple[AggregatedRecord, ...]

    @property
    def region_code(self) -> str:
        return to_display_code(self.region_key)


def _resolve(record: AggregatedRecord, resolver: RegionResolver | None) -> str | None:
    if record.region_key is not None:
        return record.region_key
    if resolver is None:
        return None
    return resolver.resolve(lgu=record.lgu, region=record.region, region_code=record.region_code)


def group_by_region(
    records: Iterable[AggregatedRecord],
    resolver: RegionResolver | None = None,
) -> list[RegionGroup]:
    """Group rows by internal region key in first-appearance order.

    Rows whose region cannot be resolved are left out; see ``unregistered``.
    """

    buckets: dict[str, list[AggregatedRecord]] = {}
    for record in records:
        key = _resolve(record, resolver)
        if key is None:
            continue
        buckets.setdefault(key, []).append(record)
    return [RegionGroup(region_key=key, records=tuple(rows)) for key, rows in buckets.items()]


def unregistered(
    records: Iterable[AggregatedRecord],
    resolver: RegionResolver | None = None,
) -> list[AggregatedRecord]:
    return [record for record in records if _resolve(record, resolver) is None]


def flatten(groups: Iterable[RegionGroup]) -> list[AggregatedRecord]:
    return [record for group in groups for record in group.records]


def compute_totals(records: Iterable[AggregatedRecord], fields: Sequence[str]) -> dict[str, Number]:
    totals: dict[str, Number] = {name: 0 for name in fields}
    for record in records:
        for name in fields:
            totals[name] += record_value(record, name)
    return totals


def compute_region_totals(group: RegionGroup, fields: Sequence[str]) -> dict[str, Number]:
    return compute_totals(group.records, fields)


def row_values(record: AggregatedRecord, layout: ReportLayout) -> list[Number]:
    """Numeric cells of one row, derived columns included."""

    return [sum(record_value(record, name) for name in column.fields) for column in layout.columns]


def totals_values(totals: dict[str, Number], layout: ReportLayout) -> list[Number]:
    return [sum(counter_value(totals, name) for name in column.fields) for column in layout.columns]
