"""Report table endpoints."""

from __future__ import annotations

from datetime import tzinfo
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from permit_reports.core.config import get_settings
from permit_reports.db.dependencies import get_db_session
from permit_reports.engine.records import FilterCriteria
from permit_reports.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DateRangePayload(CamelModel):
    # Kept as strings: unparseable bounds mean "unbounded", not a request error.
    start: str | None = None
    end: str | None = None


class FilterCriteriaPayload(CamelModel):
    selected_regions: list[str] = Field(default_factory=list)
    selected_provinces: list[str] = Field(default_factory=list)
    selected_cities: list[str] = Field(default_factory=list)
    selected_islands: list[str] = Field(default_factory=list)
    date_range: DateRangePayload = Field(default_factory=DateRangePayload)
    selected_date_type: str | list[str] | None = None

    def to_criteria(self, tz: tzinfo | None = None) -> FilterCriteria:
        return FilterCriteria.build(
            selected_regions=self.selected_regions,
            selected_provinces=self.selected_provinces,
            selected_cities=self.selected_cities,
            selected_islands=self.selected_islands,
            start=self.date_range.start,
            end=self.date_range.end,
            selected_date_type=self.selected_date_type,
            tz=tz,
        )


class ReportRequestPayload(CamelModel):
    dataset: dict[str, Any] = Field(default_factory=dict)
    criteria: FilterCriteriaPayload = Field(default_factory=FilterCriteriaPayload)
    lgu_to_region: dict[str, str] = Field(default_factory=dict)


def _service(db: Session) -> ReportService:
    return ReportService(db)


@router.post("/{report_kind}/table")
def report_table(
    report_kind: str,
    payload: ReportRequestPayload,
    db: Session = Depends(get_db_session),
) -> dict[str, Any]:
    return _service(db).build_table(
        report_kind=report_kind,
        dataset=payload.dataset,
        criteria=payload.criteria.to_criteria(get_settings().report_tzinfo),
        lgu_to_region=payload.lgu_to_region,
    )
