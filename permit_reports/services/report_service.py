"""Report table, export and locality lookup service layer."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from permit_reports.core.config import Settings, get_settings
from permit_reports.engine.aggregation import AggregationEngine
from permit_reports.engine.dates import date_range_label
from permit_reports.engine.document import PDF_MEDIA_TYPE, PaginatedDocumentRenderer, ProgressCallback
from permit_reports.engine.errors import ReportExportError, UnknownReportKindError
from permit_reports.engine.fields import normalize_city_lists
from permit_reports.engine.grouping import (
    RegionGroup,
    compute_region_totals,
    compute_totals,
    group_by_region,
    row_values,
    totals_values,
    unregistered,
)
from permit_reports.engine.layouts import ReportKind, ReportLayout, get_layout
from permit_reports.engine.records import AggregatedRecord, FilterCriteria, Number
from permit_reports.engine.regions import to_internal_key
from permit_reports.engine.spreadsheet import XLSX_MEDIA_TYPE, SpreadsheetRenderer, grand_total_label
from permit_reports.models.entities import LocalityRegion
from permit_reports.repositories.locality_repository import LocalityRepository

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {"xlsx", "pdf"}
_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._ ()-]+")


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


@dataclass(slots=True)
class LocalityUpsertData:
    lgu: str
    province: str
    city: str | None
    region_key: str
    active: bool = True


@dataclass(slots=True)
class ReportBuild:
    layout: ReportLayout
    criteria: FilterCriteria
    records: list[AggregatedRecord]
    groups: list[RegionGroup]
    grand_totals: dict[str, Number]
    unregistered: list[AggregatedRecord]
    date_label: str


def safe_filename(label: str | None, default: str) -> str:
    cleaned = _UNSAFE_FILENAME.sub("_", label or "").strip(" ._")
    return cleaned or default


class ReportService:
    """Builds report tables and export files from caller-supplied datasets."""

    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.repo = LocalityRepository(db)
        self.settings = settings or get_settings()

    # ---------- Layouts and lookups ----------
    def layout_for(self, report_kind: str) -> ReportLayout:
        try:
            layout = get_layout(report_kind)
        except UnknownReportKindError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown report kind: {report_kind}.",
            ) from exc

        if layout.kind is ReportKind.BARANGAY_CLEARANCE:
            return dataclasses.replace(
                layout,
                first_page_rows=self.settings.pdf_clearance_first_page_rows,
                rows_per_page=self.settings.pdf_clearance_rows_per_page,
            )
        return dataclasses.replace(
            layout,
            first_page_rows=self.settings.pdf_permit_first_page_rows,
            rows_per_page=self.settings.pdf_permit_rows_per_page,
        )

    def region_lookup(self, overrides: Mapping[str, str] | None = None) -> dict[str, str]:
        lookup = self.repo.region_lookup()
        lookup.update(overrides or {})
        return lookup

    # ---------- Report building ----------
    def build(
        self,
        *,
        report_kind: str,
        dataset: Any,
        criteria: FilterCriteria,
        lgu_to_region: Mapping[str, str] | None = None,
    ) -> ReportBuild:
        layout = self.layout_for(report_kind)
        engine = AggregationEngine(layout, self.region_lookup(lgu_to_region))
        records = engine.aggregate(dataset, criteria)
        groups = group_by_region(records, engine.resolver)
        missing = unregistered(records, engine.resolver)
        if missing:
            logger.info("%d %s rows have no resolvable region", len(missing), layout.kind.value)

        window = criteria.date_window
        return ReportBuild(
            layout=layout,
            criteria=criteria,
            records=records,
            groups=groups,
            grand_totals=compute_totals(records, layout.fields),
            unregistered=missing,
            date_label=date_range_label(window.start, window.end, criteria.selected_date_type),
        )

    def build_table(
        self,
        *,
        report_kind: str,
        dataset: Any,
        criteria: FilterCriteria,
        lgu_to_region: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        built = self.build(report_kind=report_kind, dataset=dataset, criteria=criteria, lgu_to_region=lgu_to_region)
        layout = built.layout
        return {
            "report_kind": layout.kind.value,
            "title": layout.title,
            "date_label": built.date_label,
            "date_type": built.criteria.selected_date_type.value,
            "columns": layout.column_titles,
            "groups": [
                {
                    "region_key": group.region_key,
                    "region_code": group.region_code,
                    "rows": [
                        {
                            "lgu": record.lgu,
                            "province": record.province,
                            "city": record.city,
                            "months": list(record.months),
                            "label": record.label,
                            "values": row_values(record, layout),
                        }
                        for record in group.records
                    ],
                    "totals": totals_values(compute_region_totals(group, layout.fields), layout),
                }
                for group in built.groups
            ],
            "grand_total_label": grand_total_label(built.date_label),
            "grand_totals": totals_values(built.grand_totals, layout),
            "row_count": sum(len(group.records) for group in built.groups),
            "unregistered": [{"lgu": record.lgu, "province": record.province} for record in built.unregistered],
        }

    # ---------- Export ----------
    async def export_report(
        self,
        *,
        report_kind: str,
        format_name: str,
        dataset: Any,
        criteria: FilterCriteria,
        lgu_to_region: Mapping[str, str] | None = None,
        file_label: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> ExportFilePayload:
        normalized_format = format_name.strip().lower()
        if normalized_format not in EXPORT_FORMATS:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="format must be one of: pdf, xlsx.",
            )

        # Lookup query, aggregation and xlsx writing are blocking; keep them off the event loop.
        built = await asyncio.to_thread(
            self.build,
            report_kind=report_kind,
            dataset=dataset,
            criteria=criteria,
            lgu_to_region=lgu_to_region,
        )
        base_filename = safe_filename(file_label, f"{built.layout.kind.value}-report")

        try:
            if normalized_format == "xlsx":
                content = await asyncio.to_thread(
                    SpreadsheetRenderer(built.layout).to_bytes,
                    built.groups,
                    built.grand_totals,
                    built.date_label,
                )
                return ExportFilePayload(
                    media_type=XLSX_MEDIA_TYPE,
                    filename=f"{base_filename}.xlsx",
                    content=content,
                )

            renderer = PaginatedDocumentRenderer(
                built.layout,
                logo_path=self.settings.report_logo_path,
                raster_width_px=self.settings.report_raster_width_px,
                raster_scale=self.settings.report_raster_scale,
                font_path=self.settings.report_font_path,
            )
            document = await renderer.render(built.groups, built.grand_totals, built.date_label, progress=progress)
        except ReportExportError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Report export failed: {exc}",
            ) from exc

        return ExportFilePayload(media_type=PDF_MEDIA_TYPE, filename=f"{base_filename}.pdf", content=document.content)

    # ---------- Localities ----------
    def list_provinces(self) -> list[str]:
        return sorted({row.province for row in self.repo.list_active() if row.province})

    def list_cities(self) -> dict[str, list[str]]:
        """Province -> city display names, "Foo City" rendered as "City of Foo"."""

        entries: dict[str, list[str]] = {}
        for row in self.repo.list_active():
            if row.province:
                entries.setdefault(row.province, []).append(row.city or row.lgu)
        cities = normalize_city_lists(entries)
        return {province: sorted(set(names)) for province, names in sorted(cities.items())}

    def bulk_upsert_localities(self, items: list[LocalityUpsertData]) -> list[LocalityRegion]:
        if not items:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="At least one locality entry is required.",
            )

        # Last entry wins for repeated (lgu, province) pairs.
        normalized: dict[tuple[str, str], LocalityUpsertData] = {}
        for item in items:
            lgu = item.lgu.strip()
            region_key = to_internal_key(item.region_key)
            if not lgu:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="lgu must not be blank.",
                )
            if region_key is None:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail=f"Unknown region for {lgu}: {item.region_key}.",
                )
            province = item.province.strip()
            normalized[(lgu, province)] = LocalityUpsertData(
                lgu=lgu,
                province=province,
                city=item.city.strip() if item.city and item.city.strip() else None,
                region_key=region_key,
                active=item.active,
            )

        now = datetime.utcnow()
        saved: list[LocalityRegion] = []
        try:
            for (lgu, province), data in normalized.items():
                row = self.repo.get_by_identity(lgu, province)
                if row is None:
                    row = self.repo.add(
                        LocalityRegion(
                            lgu=lgu,
                            province=province,
                            city=data.city,
                            region_key=data.region_key,
                            active=data.active,
                            created_at=now,
                            updated_at=now,
                        )
                    )
                else:
                    row.city = data.city
                    row.region_key = data.region_key
                    row.active = data.active
                    row.updated_at = now
                saved.append(row)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Locality lookup conflicts with an existing entry.",
            ) from exc

        for row in saved:
            self.db.refresh(row)
        logger.info("Upserted %d locality region entries", len(saved))
        return saved
