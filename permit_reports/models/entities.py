"""ORM entities for the locality lookup tables."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from permit_reports.db.base import Base


class LocalityRegion(Base):
    """Locality (LGU) to region assignment, plus the province/city it belongs to."""

    __tablename__ = "locality_regions"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lgu: Mapped[str] = mapped_column(String(255), nullable=False)
    # Empty string rather than NULL so the unique constraint also covers province-less rows.
    province: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    region_key: Mapped[str] = mapped_column(String(16), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("lgu", "province", name="uq_locality_regions_lgu_province"),
        Index("ix_locality_regions_region_key", "region_key"),
    )
