"""locality regions

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "locality_regions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("lgu", sa.String(length=255), nullable=False),
        sa.Column("province", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("city", sa.String(length=255), nullable=True),
        sa.Column("region_key", sa.String(length=16), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("lgu", "province", name="uq_locality_regions_lgu_province"),
    )
    op.create_index("ix_locality_regions_region_key", "locality_regions", ["region_key"])


def downgrade() -> None:
    op.drop_index("ix_locality_regions_region_key", table_name="locality_regions")
    op.drop_table("locality_regions")
