"""Repository helpers for the locality to region lookup."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from permit_reports.models.entities import LocalityRegion


class LocalityRepository:
    """Persistence operations used by report and locality services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_active(self) -> list[LocalityRegion]:
        return self.db.scalars(
            select(LocalityRegion)
            .where(LocalityRegion.active.is_(True))
            .order_by(LocalityRegion.province.asc(), LocalityRegion.lgu.asc())
        ).all()

    def get_by_identity(self, lgu: str, province: str) -> LocalityRegion | None:
        return self.db.scalar(
            select(LocalityRegion).where(LocalityRegion.lgu == lgu, LocalityRegion.province == province)
        )

    def region_lookup(self) -> dict[str, str]:
        """``lgu -> region_key`` over active rows; later provinces do not override earlier ones."""

        lookup: dict[str, str] = {}
        for row in self.list_active():
            lookup.setdefault(row.lgu, row.region_key)
        return lookup

    def add(self, row: LocalityRegion) -> LocalityRegion:
        self.db.add(row)
        self.db.flush()
        return row
