"""Filter, date-window and merge raw locality data into report rows."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from permit_reports.engine.dates import DateWindow, in_window, in_window_by_day
from permit_reports.engine.fields import matches_any
from permit_reports.engine.layouts import ReportLayout
from permit_reports.engine.records import (
    AggregatedRecord,
    FilterCriteria,
    LocalityRecord,
    MonthlyRecord,
    Number,
    parse_dataset,
)
from permit_reports.engine.regions import RegionResolver, internal_keys_for_islands

logger = logging.getLogger(__name__)


class AggregationEngine:
    """Turns an ``ApiDataset`` and a ``FilterCriteria`` into ``AggregatedRecord`` rows.

    The same engine serves every report kind; ``layout`` only names the
    module the rows belong to, every numeric counter found is carried through.
    """

    def __init__(self, layout: ReportLayout, lookup: Mapping[str, str] | None = None) -> None:
        self.layout = layout
        self.resolver = RegionResolver(lookup)

    def _region_key(self, locality: LocalityRecord) -> str | None:
        return self.resolver.resolve(lgu=locality.lgu, region=locality.region, region_code=locality.region_code)

    def filter_localities(self, localities: list[LocalityRecord], criteria: FilterCriteria) -> list[LocalityRecord]:
        filtered = localities
        if criteria.selected_islands:
            allowed = internal_keys_for_islands(criteria.selected_islands)
            filtered = [item for item in filtered if self._region_key(item) in allowed]
        elif criteria.selected_regions:
            allowed = set(criteria.selected_regions)
            filtered = [item for item in filtered if self._region_key(item) in allowed]

        if criteria.selected_provinces:
            filtered = [item for item in filtered if matches_any(item.province, criteria.selected_provinces)]
        if criteria.selected_cities:
            filtered = [item for item in filtered if matches_any(item.city, criteria.selected_cities)]
        return filtered

    def aggregate(self, dataset: object, criteria: FilterCriteria) -> list[AggregatedRecord]:
        localities = dataset if isinstance(dataset, list) else parse_dataset(dataset)
        filtered = self.filter_localities(localities, criteria)
        if criteria.is_day_mode:
            records = self._day_rows(filtered, criteria.date_window)
        else:
            records = self._merged_rows(filtered, criteria.date_window)
        logger.debug(
            "Aggregated %s report: %d localities in, %d after filters, %d rows out",
            self.layout.kind.value,
            len(localities),
            len(filtered),
            len(records),
        )
        return records

    def _day_rows(self, localities: list[LocalityRecord], window: DateWindow) -> list[AggregatedRecord]:
        rows: list[AggregatedRecord] = []
        for locality in localities:
            region_key = self._region_key(locality)
            for month in locality.monthly_results:
                if not in_window_by_day(month.month, window):
                    continue
                rows.append(
                    AggregatedRecord(
                        lgu=locality.lgu,
                        province=locality.province,
                        city=locality.city,
                        province_field=locality.province_field,
                        region=locality.region,
                        region_code=locality.region_code,
                        region_key=region_key,
                        months=(month.month,),
                        values=dict(month.counters),
                        monthly=(month,),
                        day_mode=True,
                    )
                )
        return rows

    def _merged_rows(self, localities: list[LocalityRecord], window: DateWindow) -> list[AggregatedRecord]:
        # Insertion order of the dict keeps first-appearance order of (lgu, province).
        firsts: dict[tuple[str, str], LocalityRecord] = {}
        months_by_key: dict[tuple[str, str], list[MonthlyRecord]] = {}
        for locality in localities:
            key = locality.identity
            firsts.setdefault(key, locality)
            bucket = months_by_key.setdefault(key, [])
            bucket.extend(month for month in locality.monthly_results if in_window(month.month, window))

        rows: list[AggregatedRecord] = []
        for key, locality in firsts.items():
            months = months_by_key[key]
            if not months:
                continue
            sums: dict[str, Number] = {}
            for month in months:
                for name in month.counters:
                    sums[name] = sums.get(name, 0) + month.value(name)
            rows.append(
                AggregatedRecord(
                    lgu=locality.lgu,
                    province=locality.province,
                    city=locality.city,
                    province_field=locality.province_field,
                    region=locality.region,
                    region_code=locality.region_code,
                    region_key=self._region_key(locality),
                    months=tuple(sorted({month.month for month in months})),
                    values=sums,
                    monthly=tuple(months),
                )
            )
        return rows
