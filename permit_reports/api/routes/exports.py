"""Export endpoint for report datasets."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from permit_reports.api.routes.reports import ReportRequestPayload
from permit_reports.core.config import get_settings
from permit_reports.db.dependencies import get_db_session
from permit_reports.services.report_service import ReportService

router = APIRouter(prefix="/exports", tags=["exports"])


def _service(db: Session) -> ReportService:
    return ReportService(db)


@router.post("/{report_kind}")
async def export_report(
    report_kind: str,
    payload: ReportRequestPayload,
    format: str = Query(default="xlsx"),
    file_label: str | None = Query(default=None, max_length=200),
    db: Session = Depends(get_db_session),
) -> Response:
    exported = await _service(db).export_report(
        report_kind=report_kind,
        format_name=format,
        dataset=payload.dataset,
        criteria=payload.criteria.to_criteria(get_settings().report_tzinfo),
        lgu_to_region=payload.lgu_to_region,
        file_label=file_label,
    )
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
