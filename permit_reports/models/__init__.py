"""ORM model package."""

from permit_reports.models.entities import LocalityRegion

__all__ = [
    "LocalityRegion",
]
