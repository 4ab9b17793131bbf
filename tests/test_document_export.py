from __future__ import annotations

import asyncio

import pytest
from conftest import locality
from PIL import Image

from permit_reports.engine.aggregation import AggregationEngine
from permit_reports.engine.document import (
    PageRenderContext,
    PaginatedDocumentRenderer,
    flatten_rows,
    paginate,
    render_page,
)
from permit_reports.engine.errors import ReportExportError
from permit_reports.engine.grouping import compute_totals, group_by_region
from permit_reports.engine.layouts import ReportKind, get_layout
from permit_reports.engine.records import FilterCriteria

CLEARANCE = get_layout(ReportKind.BARANGAY_CLEARANCE)
BUSINESS = get_layout(ReportKind.BUSINESS_PERMIT)


def _groups(count: int, layout=CLEARANCE, criteria: FilterCriteria | None = None):
    regions = ["I", "II", "III"]
    dataset = {
        "results": [
            locality(
                f"Town {index}, Province {index % 4}",
                {"2024-01": {"totalCount": index, "newPaid": 1}, "2024-02": {"totalCount": 1, "newPaid": 1}},
                region=regions[index % 3],
            )
            for index in range(count)
        ]
    }
    engine = AggregationEngine(layout)
    records = engine.aggregate(dataset, criteria or FilterCriteria.build())
    return group_by_region(records, engine.resolver), compute_totals(records, layout.fields)


class RecordingPageRenderer:
    def __init__(self) -> None:
        self.contexts: list[PageRenderContext] = []

    def __call__(self, context: PageRenderContext) -> Image.Image:
        self.contexts.append(context)
        return Image.new("RGB", (600, 200), "white")


def test_paginate_short_first_page_then_full_pages() -> None:
    groups, _ = _groups(37)
    rows = flatten_rows(groups)

    chunks = paginate(rows, 15, 18)

    assert [len(chunk) for chunk in chunks] == [15, 18, 4]
    assert [row for chunk in chunks for row in chunk] == rows


def test_paginate_edges() -> None:
    assert paginate([], 8, 10) == [[]]
    with pytest.raises(ValueError):
        paginate([], 0, 10)


def test_render_reports_progress_and_puts_grand_total_on_last_page_only() -> None:
    groups, totals = _groups(37)
    page_renderer = RecordingPageRenderer()
    progress: list[int] = []
    renderer = PaginatedDocumentRenderer(CLEARANCE, page_renderer=page_renderer)

    document = asyncio.run(renderer.render(groups, totals, "January 2024", progress=progress.append))

    assert document.content.startswith(b"%PDF")
    assert document.page_count == 3
    assert document.chunk_sizes == (15, 18, 4)
    assert progress == [33, 67, 100]
    assert [context.page_index for context in page_renderer.contexts] == [0, 1, 2]
    assert [context.grand_totals is not None for context in page_renderer.contexts] == [False, False, True]
    assert page_renderer.contexts[-1].grand_totals["totalCount"] == totals["totalCount"]
    assert all(context.merge_regions for context in page_renderer.contexts)


def test_zero_rows_render_one_page_with_grand_total() -> None:
    page_renderer = RecordingPageRenderer()
    renderer = PaginatedDocumentRenderer(CLEARANCE, page_renderer=page_renderer)

    document = asyncio.run(renderer.render([], {"totalCount": 0}, ""))

    assert document.page_count == 1
    assert page_renderer.contexts[0].rows == ()
    assert page_renderer.contexts[0].is_last_page


def test_day_mode_disables_region_merging() -> None:
    criteria = FilterCriteria.build(start="2024-01-01", end="2024-02-29", selected_date_type="Day")
    groups, totals = _groups(3, criteria=criteria)
    page_renderer = RecordingPageRenderer()

    asyncio.run(PaginatedDocumentRenderer(CLEARANCE, page_renderer=page_renderer).render(groups, totals, "x"))

    assert not page_renderer.contexts[0].merge_regions
    assert len(page_renderer.contexts[0].rows) == 6


def test_rasterization_failure_aborts_export() -> None:
    groups, totals = _groups(20)
    calls: list[int] = []

    def failing_renderer(context: PageRenderContext) -> Image.Image:
        calls.append(context.page_index)
        if context.page_index == 1:
            raise RuntimeError("out of memory")
        return Image.new("RGB", (600, 200), "white")

    renderer = PaginatedDocumentRenderer(CLEARANCE, page_renderer=failing_renderer)

    with pytest.raises(ReportExportError):
        asyncio.run(renderer.render(groups, totals, "January 2024"))
    assert calls == [0, 1]


@pytest.mark.parametrize("layout", [CLEARANCE, BUSINESS])
def test_render_page_draws_full_width_table(layout) -> None:
    groups, totals = _groups(5, layout)
    rows = tuple(flatten_rows(groups))
    context = PageRenderContext(
        layout=layout,
        rows=rows,
        date_label="January 2024 - February 2024",
        page_index=0,
        total_pages=1,
        is_last_page=True,
        merge_regions=True,
        grand_totals=totals,
        width_px=400,
        scale=1,
    )

    image = render_page(context)

    assert image.width == 400
    assert image.height > 0
    # Header band colour in the top-left corner, inside the grid line.
    assert image.getpixel((5, 5)) == (0xCB, 0xD5, 0xE1)
    image.close()


def test_real_pages_with_logo(tmp_path) -> None:
    logo = tmp_path / "logo.png"
    Image.new("RGB", (500, 140), "navy").save(logo)
    groups, totals = _groups(10)
    renderer = PaginatedDocumentRenderer(CLEARANCE, logo_path=str(logo), raster_width_px=300, raster_scale=1)

    document = asyncio.run(renderer.render(groups, totals, "January 2024"))

    assert document.content.startswith(b"%PDF")
    assert document.page_count == 1


def test_missing_logo_is_skipped(tmp_path) -> None:
    groups, totals = _groups(2)
    renderer = PaginatedDocumentRenderer(
        CLEARANCE,
        logo_path=str(tmp_path / "missing.png"),
        raster_width_px=300,
        raster_scale=1,
    )

    document = asyncio.run(renderer.render(groups, totals, ""))

    assert document.page_count == 1
