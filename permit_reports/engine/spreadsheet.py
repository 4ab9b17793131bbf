"""Spreadsheet export of grouped report rows."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from permit_reports.engine.errors import ReportExportError
from permit_reports.engine.grouping import RegionGroup, row_values, totals_values
from permit_reports.engine.layouts import ReportLayout
from permit_reports.engine.records import Number

logger = logging.getLogger(__name__)

SHEET_TITLE = "Report"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)


def grand_total_label(date_label: str) -> str:
    return f"GRAND TOTAL FOR ({date_label})"


class SpreadsheetRenderer:
    """Renders region groups as one "Report" sheet.

    Row 1 carries the date label merged across every column, row 2 the column
    titles, then one block per region (region cell merged down the block) and
    finally the grand-total row.
    """

    def __init__(self, layout: ReportLayout) -> None:
        self.layout = layout

    def render(self, groups: Sequence[RegionGroup], totals: dict[str, Number], date_label: str) -> Workbook:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_TITLE
        last_column = self.layout.column_count

        sheet.append([date_label, *([None] * (last_column - 1))])
        sheet.merge_cells(start_row=1, start_column=1, end_row=1, end_column=last_column)
        sheet.cell(row=1, column=1).alignment = _CENTER
        sheet.cell(row=1, column=1).font = Font(bold=True)

        sheet.append(self.layout.column_titles)
        for column in range(1, last_column + 1):
            cell = sheet.cell(row=2, column=column)
            cell.font = Font(bold=True)
            cell.alignment = _CENTER

        current_row = 3
        for group in groups:
            start_row = current_row
            for index, record in enumerate(group.records):
                region_cell = group.region_code if index == 0 else None
                sheet.append([region_cell, record.label, *row_values(record, self.layout)])
                current_row += 1
            if len(group.records) > 1:
                sheet.merge_cells(start_row=start_row, start_column=1, end_row=current_row - 1, end_column=1)
            sheet.cell(row=start_row, column=1).alignment = _CENTER

        sheet.append([None, grand_total_label(date_label), *totals_values(totals, self.layout)])
        for column in range(1, last_column + 1):
            sheet.cell(row=current_row, column=column).font = Font(bold=True)

        sheet.column_dimensions[get_column_letter(1)].width = 12
        sheet.column_dimensions[get_column_letter(2)].width = 48
        for column in range(3, last_column + 1):
            sheet.column_dimensions[get_column_letter(column)].width = 18
        return workbook

    def to_bytes(self, groups: Sequence[RegionGroup], totals: dict[str, Number], date_label: str) -> bytes:
        try:
            workbook = self.render(groups, totals, date_label)
            output = BytesIO()
            workbook.save(output)
        except Exception as exc:
            logger.exception("Spreadsheet export failed for %s report", self.layout.kind.value)
            raise ReportExportError("Spreadsheet export failed.") from exc
        return output.getvalue()
