"""Locality lookup endpoints: province/city lists and region assignments."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from permit_reports.db.dependencies import get_db_session
from permit_reports.services.report_service import LocalityUpsertData, ReportService

router = APIRouter(prefix="/localities", tags=["localities"])


class LocalityPayload(BaseModel):
    lgu: str = Field(min_length=1, max_length=255)
    province: str = Field(default="", max_length=255)
    city: str | None = Field(default=None, max_length=255)
    region_key: str = Field(min_length=1, max_length=16)
    active: bool = True


class LocalityBulkPayload(BaseModel):
    items: list[LocalityPayload] = Field(min_length=1)


class LocalityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lgu: str
    province: str
    city: str | None
    region_key: str
    active: bool
    updated_at: datetime


def _service(db: Session) -> ReportService:
    return ReportService(db)


@router.get("/provinces")
def list_provinces(db: Session = Depends(get_db_session)) -> list[str]:
    return _service(db).list_provinces()


@router.get("/cities")
def list_cities(db: Session = Depends(get_db_session)) -> dict[str, list[str]]:
    return _service(db).list_cities()


@router.put("/bulk", response_model=list[LocalityResponse])
def bulk_upsert(payload: LocalityBulkPayload, db: Session = Depends(get_db_session)) -> list[LocalityResponse]:
    rows = _service(db).bulk_upsert_localities(
        [
            LocalityUpsertData(
                lgu=item.lgu,
                province=item.province,
                city=item.city,
                region_key=item.region_key,
                active=item.active,
            )
            for item in payload.items
        ]
    )
    return [LocalityResponse.model_validate(row) for row in rows]
