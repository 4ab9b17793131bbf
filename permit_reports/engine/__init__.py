"""Report aggregation and export engine."""

from permit_reports.engine.aggregation import AggregationEngine
from permit_reports.engine.dates import DateType, DateWindow, date_range_label
from permit_reports.engine.document import PaginatedDocumentRenderer, RenderedDocument, paginate, render_page
from permit_reports.engine.errors import ReportEngineError, ReportExportError, UnknownReportKindError
from permit_reports.engine.grouping import RegionGroup, compute_region_totals, compute_totals, group_by_region
from permit_reports.engine.layouts import LAYOUTS, ReportKind, ReportLayout, get_layout
from permit_reports.engine.records import AggregatedRecord, FilterCriteria, LocalityRecord, MonthlyRecord
from permit_reports.engine.regions import RegionResolver, to_display_code, to_internal_key
from permit_reports.engine.spreadsheet import SpreadsheetRenderer

__all__ = [
    "AggregatedRecord",
    "AggregationEngine",
    "DateType",
    "DateWindow",
    "FilterCriteria",
    "LAYOUTS",
    "LocalityRecord",
    "MonthlyRecord",
    "PaginatedDocumentRenderer",
    "RegionGroup",
    "RegionResolver",
    "RenderedDocument",
    "ReportEngineError",
    "ReportExportError",
    "ReportKind",
    "ReportLayout",
    "SpreadsheetRenderer",
    "UnknownReportKindError",
    "compute_region_totals",
    "compute_totals",
    "date_range_label",
    "get_layout",
    "group_by_region",
    "paginate",
    "render_page",
    "to_display_code",
    "to_internal_key",
]
