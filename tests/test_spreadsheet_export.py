from __future__ import annotations

from io import BytesIO
from unittest.mock import patch

import pytest
from conftest import locality
from openpyxl import load_workbook

from permit_reports.engine.aggregation import AggregationEngine
from permit_reports.engine.errors import ReportExportError
from permit_reports.engine.grouping import compute_totals, group_by_region
from permit_reports.engine.layouts import ReportKind, get_layout
from permit_reports.engine.records import FilterCriteria
from permit_reports.engine.spreadsheet import SpreadsheetRenderer

CLEARANCE = get_layout(ReportKind.BARANGAY_CLEARANCE)
BUSINESS = get_layout(ReportKind.BUSINESS_PERMIT)

DATASET = {
    "results": [
        locality("Cebu City, Cebu", {"2024-01": {"totalCount": 5, "newPaid": 1}}, region="VII"),
        locality("Mandaue City, Cebu", {"2024-01": {"totalCount": 7, "newPaid": 2}}, region="VII"),
        locality("Laoag City", {"2024-02": {"totalCount": 2, "newPending": 3}}, region="I", province="Ilocos Norte"),
    ]
}


def _render(layout):
    engine = AggregationEngine(layout)
    records = engine.aggregate(DATASET, FilterCriteria.build())
    groups = group_by_region(records, engine.resolver)
    content = SpreadsheetRenderer(layout).to_bytes(groups, compute_totals(records, layout.fields), "January 2024 - February 2024")
    return load_workbook(BytesIO(content)).active


def test_clearance_sheet_layout() -> None:
    sheet = _render(CLEARANCE)
    merged = {str(cell_range) for cell_range in sheet.merged_cells.ranges}

    assert sheet.title == "Report"
    assert sheet["A1"].value == "January 2024 - February 2024"
    assert "A1:C1" in merged
    assert [cell.value for cell in sheet[2]] == ["Region", "LGU", "Total Results"]
    assert sheet["A3"].value == "R7"
    assert "A3:A4" in merged
    assert sheet["B3"].value == "Cebu City, Cebu (January 2024)"
    assert sheet["C4"].value == 7
    assert sheet["A5"].value == "R1"
    assert sheet["B5"].value == "Laoag City (Ilocos Norte) (February 2024)"
    assert [cell.value for cell in sheet[6]] == [None, "GRAND TOTAL FOR (January 2024 - February 2024)", 14]
    assert sheet.max_row == 6


def test_single_row_region_is_not_merged() -> None:
    sheet = _render(CLEARANCE)
    merged = {str(cell_range) for cell_range in sheet.merged_cells.ranges}

    assert not any(cell_range.startswith("A5:") for cell_range in merged)


def test_permit_sheet_has_sixteen_columns() -> None:
    sheet = _render(BUSINESS)

    assert sheet.max_column == 16
    assert sheet["B2"].value == "LGU"
    assert sheet["F2"].value == "NEW GRANDTOTAL"
    # NEW GRANDTOTAL for the grand-total row: 1 + 2 + 3.
    assert sheet["F6"].value == 6
    assert sheet["C6"].value == 3
    assert sheet["D6"].value == 0
    assert sheet["E6"].value == 3


def test_empty_report_still_has_grand_total_row() -> None:
    content = SpreadsheetRenderer(CLEARANCE).to_bytes([], {"totalCount": 0}, "")
    sheet = load_workbook(BytesIO(content)).active

    assert sheet.max_row == 3
    assert sheet["B3"].value == "GRAND TOTAL FOR ()"
    assert sheet["C3"].value == 0


def test_write_failure_raises_export_error() -> None:
    renderer = SpreadsheetRenderer(CLEARANCE)

    with patch("permit_reports.engine.spreadsheet.Workbook.save", side_effect=OSError("disk full")):
        with pytest.raises(ReportExportError):
            renderer.to_bytes([], {"totalCount": 0}, "")
