"""Report kinds and their column/pagination capability descriptors."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from permit_reports.engine.errors import UnknownReportKindError


class ReportKind(str, enum.Enum):
    BUSINESS_PERMIT = "business-permit"
    WORKING_PERMIT = "working-permit"
    BARANGAY_CLEARANCE = "barangay-clearance"


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """One numeric column: the sum of ``fields`` for a row."""

    title: str
    fields: tuple[str, ...]
    subtitle: str = ""
    width: int = 60
    derived: bool = False


@dataclass(frozen=True, slots=True)
class HeaderGroup:
    label: str
    span: int


@dataclass(frozen=True, slots=True)
class ReportLayout:
    kind: ReportKind
    title: str
    columns: tuple[ColumnSpec, ...]
    header_groups: tuple[HeaderGroup, ...] = ()
    first_page_rows: int = 8
    rows_per_page: int = 10
    region_width: int = 80
    lgu_width: int = 180

    @property
    def column_titles(self) -> list[str]:
        return ["Region", "LGU", *(column.title for column in self.columns)]

    @property
    def column_count(self) -> int:
        return 2 + len(self.columns)

    @property
    def fields(self) -> tuple[str, ...]:
        ordered: list[str] = []
        for column in self.columns:
            for name in column.fields:
                if name not in ordered:
                    ordered.append(name)
        return tuple(ordered)


def _permit_columns() -> tuple[ColumnSpec, ...]:
    egov = "PAID (Per OR Paid with eGOVPay)"
    return (
        ColumnSpec("NEW PAID", ("newPaid",), "PAID"),
        ColumnSpec("NEW PAID (Per OR Paid with eGOVPay)", ("newPaidViaEgov",), egov, width=80),
        ColumnSpec("NEW PENDING", ("newPending",), "PENDING"),
        ColumnSpec(
            "NEW GRANDTOTAL",
            ("newPaid", "newPaidViaEgov", "newPending"),
            "GRANDTOTAL PER LGU",
            width=80,
            derived=True,
        ),
        ColumnSpec("RENEWAL PAID", ("renewPaid",), "PAID"),
        ColumnSpec("RENEWAL PAID (Per OR Paid with eGOVPay)", ("renewPaidViaEgov",), egov, width=80),
        ColumnSpec("RENEWAL PENDING", ("renewPending",), "PENDING"),
        ColumnSpec(
            "RENEWAL GRANDTOTAL",
            ("renewPaid", "renewPaidViaEgov", "renewPending"),
            "GRANDTOTAL PER LGU",
            width=80,
            derived=True,
        ),
        ColumnSpec("MALE PAID", ("malePaid",), "PAID"),
        ColumnSpec("MALE PENDING", ("malePending",), "PENDING"),
        ColumnSpec("MALE GRANDTOTAL", ("malePaid", "malePending"), "GRANDTOTAL PER LGU", width=80, derived=True),
        ColumnSpec("FEMALE PAID", ("femalePaid",), "PAID"),
        ColumnSpec("FEMALE PENDING", ("femalePending",), "PENDING"),
        ColumnSpec(
            "FEMALE GRANDTOTAL",
            ("femalePaid", "femalePending"),
            "GRANDTOTAL PER LGU",
            width=80,
            derived=True,
        ),
    )


_PERMIT_GROUPS = (
    HeaderGroup("NEW", 4),
    HeaderGroup("RENEWAL", 4),
    HeaderGroup("MALE", 3),
    HeaderGroup("FEMALE", 3),
)

LAYOUTS: dict[ReportKind, ReportLayout] = {
    ReportKind.BUSINESS_PERMIT: ReportLayout(
        kind=ReportKind.BUSINESS_PERMIT,
        title="Business Permit",
        columns=_permit_columns(),
        header_groups=_PERMIT_GROUPS,
        first_page_rows=8,
        rows_per_page=10,
    ),
    ReportKind.WORKING_PERMIT: ReportLayout(
        kind=ReportKind.WORKING_PERMIT,
        title="Working Permit",
        columns=_permit_columns(),
        header_groups=_PERMIT_GROUPS,
        first_page_rows=8,
        rows_per_page=10,
    ),
    ReportKind.BARANGAY_CLEARANCE: ReportLayout(
        kind=ReportKind.BARANGAY_CLEARANCE,
        title="Barangay Clearance",
        columns=(ColumnSpec("Total Results", ("totalCount",), width=200),),
        first_page_rows=15,
        rows_per_page=18,
        region_width=160,
        lgu_width=480,
    ),
}


def get_layout(kind: ReportKind | str) -> ReportLayout:
    try:
        return LAYOUTS[ReportKind(kind)]
    except ValueError as exc:
        raise UnknownReportKindError(f"Unknown report kind: {kind!r}") from exc
