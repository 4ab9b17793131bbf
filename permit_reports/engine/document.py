"""Paginated, rasterized PDF export of grouped report rows.

Each page is drawn by ``render_page`` from its own ``PageRenderContext`` into
a Pillow image, and the image is placed on a landscape A4 page with
reportlab. Pages are produced one after another; the first page is shorter
because it also carries the logo.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as rl_canvas

from permit_reports.engine.errors import ReportExportError
from permit_reports.engine.grouping import RegionGroup, row_values, totals_values
from permit_reports.engine.layouts import ReportLayout
from permit_reports.engine.records import AggregatedRecord, Number

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PAGE_SIZE = landscape(A4)
PAGE_MARGIN = 20.0
LOGO_WIDTH = 250.0
LOGO_HEIGHT = 70.0
LOGO_MARGIN_BOTTOM = 30.0

HEADER_BG = "#cbd5e1"
ZEBRA_BG = "#f1f5f9"
DERIVED_BG = "#e5e5e5"
TOTAL_BG = "#4b5563"
GRID = "#cccccc"
TEXT = "#111827"
MUTED = "#1e40af"
WHITE = "#ffffff"

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True, slots=True)
class DocumentRow:
    region_key: str
    region_code: str
    record: AggregatedRecord


@dataclass(slots=True)
class ExportJob:
    """Pagination state of one export call."""

    chunks: list[list[DocumentRow]]
    progress: int = 0

    @property
    def total_pages(self) -> int:
        return len(self.chunks)

    def is_last(self, page_index: int) -> bool:
        return page_index == len(self.chunks) - 1

    def advance(self, page_index: int) -> int:
        # Half-up rounding, as in the on-screen progress bar.
        self.progress = math.floor((page_index + 1) * 100 / len(self.chunks) + 0.5)
        return self.progress


@dataclass(frozen=True, slots=True)
class RenderedDocument:
    content: bytes
    page_count: int
    chunk_sizes: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class PageRenderContext:
    """Everything one page needs; owned by that page only."""

    layout: ReportLayout
    rows: tuple[DocumentRow, ...]
    date_label: str
    page_index: int
    total_pages: int
    is_last_page: bool
    merge_regions: bool
    grand_totals: dict[str, Number] | None = None
    width_px: int = 1200
    scale: int = 2
    font_path: str | None = None


def flatten_rows(groups: Sequence[RegionGroup]) -> list[DocumentRow]:
    return [
        DocumentRow(region_key=group.region_key, region_code=group.region_code, record=record)
        for group in groups
        for record in group.records
    ]


def paginate(rows: Sequence[DocumentRow], first_page_rows: int, rows_per_page: int) -> list[list[DocumentRow]]:
    """Split rows into a short first page followed by full pages.

    An empty row list still yields one (empty) page so the grand total shows.
    """

    if first_page_rows < 1 or rows_per_page < 1:
        raise ValueError("Page capacities must be positive.")
    if not rows:
        return [[]]
    chunks = [list(rows[:first_page_rows])]
    index = first_page_rows
    while index < len(rows):
        chunks.append(list(rows[index : index + rows_per_page]))
        index += rows_per_page
    return chunks


# ---------- Rasterization ----------
FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont


@lru_cache(maxsize=32)
def load_font(size: int, bold: bool = False, font_path: str | None = None) -> FontType:
    candidates = [font_path] if font_path else []
    candidates.append("DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf")
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def _line_height(font: FontType, spacing: int) -> int:
    left, top, right, bottom = font.getbbox("Ag")
    return int(bottom - top) + spacing


def _wrap(text: str, font: FontType, max_width: float) -> list[str]:
    words = text.split()
    if not words:
        return [""]
    lines: list[str] = []
    current = words[0]
    for word in words[1:]:
        candidate = f"{current} {word}"
        if font.getlength(candidate) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


@dataclass(slots=True)
class _Cell:
    box: tuple[int, int, int, int]
    lines: list[tuple[str, FontType, str]] = field(default_factory=list)
    background: str = WHITE
    align: str = "center"


class _PageGeometry:
    def __init__(self, context: PageRenderContext) -> None:
        layout = context.layout
        scale = context.scale
        self.scale = scale
        self.width = context.width_px * scale
        self.pad = 6 * scale
        self.spacing = 3 * scale
        self.title_font = load_font(18 * scale, True, context.font_path)
        self.header_font = load_font(10 * scale, True, context.font_path)
        self.body_font = load_font(9 * scale, False, context.font_path)
        self.bold_font = load_font(9 * scale, True, context.font_path)
        self.small_font = load_font(8 * scale, False, context.font_path)

        weights = [layout.region_width, layout.lgu_width, *(column.width for column in layout.columns)]
        total = sum(weights)
        self.xs = [0]
        for weight in weights:
            self.xs.append(self.xs[-1] + int(self.width * weight / total))
        self.xs[-1] = self.width - 1

    def lines_height(self, lines: list[tuple[str, FontType, str]]) -> int:
        return sum(_line_height(font, self.spacing) for _, font, _ in lines)

    def wrapped(self, text: str, font: FontType, color: str, first: int, last: int) -> list[tuple[str, FontType, str]]:
        available = self.xs[last + 1] - self.xs[first] - 2 * self.pad
        return [(line, font, color) for line in _wrap(text, font, available)]


def _header_cells(context: PageRenderContext, geo: _PageGeometry) -> tuple[list[_Cell], int]:
    layout = context.layout
    cells: list[_Cell] = []
    y = 0

    title_lines = geo.wrapped(context.date_label or layout.title, geo.title_font, TEXT, 0, layout.column_count - 1)
    title_height = geo.lines_height(title_lines) + 2 * geo.pad
    cells.append(_Cell((0, y, geo.xs[-1], y + title_height), title_lines, HEADER_BG))
    y += title_height

    if layout.header_groups:
        group_height = _line_height(geo.header_font, geo.spacing) + 2 * geo.pad
        sub_lines = [
            geo.wrapped(column.subtitle or column.title, geo.header_font, TEXT, index + 2, index + 2)
            for index, column in enumerate(layout.columns)
        ]
        sub_height = max(geo.lines_height(lines) for lines in sub_lines) + 2 * geo.pad
        bottom = y + group_height + sub_height
        cells.append(_Cell((geo.xs[0], y, geo.xs[1], bottom), geo.wrapped("Region", geo.header_font, TEXT, 0, 0), HEADER_BG))
        cells.append(_Cell((geo.xs[1], y, geo.xs[2], bottom), geo.wrapped("LGU", geo.header_font, TEXT, 1, 1), HEADER_BG))
        column = 2
        for group in layout.header_groups:
            last = column + group.span - 1
            lines = geo.wrapped(group.label, geo.header_font, TEXT, column, last)
            cells.append(_Cell((geo.xs[column], y, geo.xs[last + 1], y + group_height), lines, HEADER_BG))
            column = last + 1
        for index, lines in enumerate(sub_lines):
            column = index + 2
            box = (geo.xs[column], y + group_height, geo.xs[column + 1], bottom)
            cells.append(_Cell(box, lines, HEADER_BG))
        return cells, bottom

    titles = layout.column_titles
    title_lines_per_column = [geo.wrapped(title, geo.header_font, TEXT, index, index) for index, title in enumerate(titles)]
    height = max(geo.lines_height(lines) for lines in title_lines_per_column) + 2 * geo.pad
    for index, lines in enumerate(title_lines_per_column):
        cells.append(_Cell((geo.xs[index], y, geo.xs[index + 1], y + height), lines, HEADER_BG))
    return cells, y + height


def _body_cells(context: PageRenderContext, geo: _PageGeometry, top: int) -> tuple[list[_Cell], int]:
    layout = context.layout
    cells: list[_Cell] = []
    y = top
    region_start: int | None = None
    region_key: str | None = None
    region_code = ""

    def close_region(bottom: int) -> None:
        if region_start is None:
            return
        lines = geo.wrapped(region_code, geo.bold_font, TEXT, 0, 0)
        cells.append(_Cell((geo.xs[0], region_start, geo.xs[1], bottom), lines))

    for index, row in enumerate(context.rows):
        record = row.record
        background = ZEBRA_BG if index % 2 else WHITE
        lgu_lines = geo.wrapped(record.display_name, geo.bold_font, TEXT, 1, 1)
        span_text = record.label[len(record.display_name) :].strip()
        if span_text:
            lgu_lines += geo.wrapped(span_text, geo.small_font, MUTED, 1, 1)
        height = max(geo.lines_height(lgu_lines), _line_height(geo.body_font, geo.spacing)) + 2 * geo.pad

        if not context.merge_regions or row.region_key != region_key:
            close_region(y)
            region_start, region_key, region_code = y, row.region_key, row.region_code
            if not context.merge_regions:
                close_region(y + height)
                region_start = None

        cells.append(_Cell((geo.xs[1], y, geo.xs[2], y + height), lgu_lines, background, align="left"))
        for offset, (column, value) in enumerate(zip(layout.columns, row_values(record, layout))):
            position = offset + 2
            cell_background = DERIVED_BG if column.derived else background
            lines = [(f"{value:,}", geo.body_font, TEXT)]
            cells.append(_Cell((geo.xs[position], y, geo.xs[position + 1], y + height), lines, cell_background))
        y += height

    close_region(y)

    if context.is_last_page and context.grand_totals is not None:
        label = [
            ("GRAND TOTAL FOR", geo.bold_font, WHITE),
            *geo.wrapped(f"({context.date_label})", geo.small_font, "#d1d5db", 0, 1),
        ]
        height = geo.lines_height(label) + 2 * geo.pad
        cells.append(_Cell((geo.xs[0], y, geo.xs[2], y + height), label, TOTAL_BG, align="left"))
        for offset, value in enumerate(totals_values(context.grand_totals, layout)):
            position = offset + 2
            lines = [(f"{value:,}", geo.bold_font, WHITE)]
            cells.append(_Cell((geo.xs[position], y, geo.xs[position + 1], y + height), lines, TOTAL_BG))
        y += height
    return cells, y


def _draw_cell(draw: ImageDraw.ImageDraw, cell: _Cell, geo: _PageGeometry) -> None:
    x0, y0, x1, y1 = cell.box
    draw.rectangle(cell.box, fill=cell.background, outline=GRID, width=max(1, geo.scale // 2))
    text_height = geo.lines_height(cell.lines)
    y = y0 + (y1 - y0 - text_height) / 2
    for text, font, color in cell.lines:
        if cell.align == "left":
            x = x0 + geo.pad
        else:
            x = x0 + (x1 - x0 - font.getlength(text)) / 2
        draw.text((x, y), text, font=font, fill=color)
        y += _line_height(font, geo.spacing)


def render_page(context: PageRenderContext) -> Image.Image:
    """Rasterize one page's table: repeated header block, zebra rows, grid lines."""

    geo = _PageGeometry(context)
    header, header_bottom = _header_cells(context, geo)
    body, bottom = _body_cells(context, geo, header_bottom)
    image = Image.new("RGB", (geo.width, bottom + 1), WHITE)
    draw = ImageDraw.Draw(image)
    for cell in (*header, *body):
        _draw_cell(draw, cell, geo)
    return image


# ---------- Document assembly ----------
class PaginatedDocumentRenderer:
    def __init__(
        self,
        layout: ReportLayout,
        *,
        logo_path: str | None = None,
        raster_width_px: int = 1200,
        raster_scale: int = 2,
        font_path: str | None = None,
        page_renderer: Callable[[PageRenderContext], Image.Image] = render_page,
    ) -> None:
        self.layout = layout
        self.logo_path = logo_path
        self.raster_width_px = raster_width_px
        self.raster_scale = raster_scale
        self.font_path = font_path
        self.page_renderer = page_renderer

    def plan(self, groups: Sequence[RegionGroup]) -> ExportJob:
        rows = flatten_rows(groups)
        return ExportJob(chunks=paginate(rows, self.layout.first_page_rows, self.layout.rows_per_page))

    def _draw_logo(self, canv: rl_canvas.Canvas) -> float:
        """Draw the centered logo; returns the top offset left for the table."""

        if not self.logo_path:
            return PAGE_MARGIN
        if not Path(self.logo_path).is_file():
            logger.warning("Report logo %s not found; continuing without it", self.logo_path)
            return PAGE_MARGIN
        page_width, page_height = PAGE_SIZE
        try:
            logo = ImageReader(self.logo_path)
            canv.drawImage(
                logo,
                (page_width - LOGO_WIDTH) / 2,
                page_height - PAGE_MARGIN - LOGO_HEIGHT,
                width=LOGO_WIDTH,
                height=LOGO_HEIGHT,
                preserveAspectRatio=True,
                mask="auto",
            )
        except OSError:
            logger.warning("Report logo %s could not be loaded; continuing without it", self.logo_path)
            return PAGE_MARGIN
        return PAGE_MARGIN + LOGO_HEIGHT + LOGO_MARGIN_BOTTOM

    @staticmethod
    def _place(canv: rl_canvas.Canvas, image: Image.Image, top_offset: float) -> None:
        page_width, page_height = PAGE_SIZE
        target_width = page_width - 2 * PAGE_MARGIN
        target_height = image.height * target_width / image.width
        available = page_height - top_offset - PAGE_MARGIN
        if target_height > available:
            target_width = target_width * available / target_height
            target_height = available
        x = (page_width - target_width) / 2
        y = page_height - top_offset - target_height
        canv.drawImage(ImageReader(image), x, y, width=target_width, height=target_height)

    def _write_page(self, canv: rl_canvas.Canvas, image: Image.Image, page_index: int) -> None:
        top_offset = self._draw_logo(canv) if page_index == 0 else PAGE_MARGIN
        self._place(canv, image, top_offset)
        canv.showPage()

    async def render(
        self,
        groups: Sequence[RegionGroup],
        totals: dict[str, Number],
        date_label: str,
        progress: ProgressCallback | None = None,
    ) -> RenderedDocument:
        job = self.plan(groups)
        merge_regions = not any(row.record.day_mode for chunk in job.chunks for row in chunk)
        buffer = BytesIO()
        canv = rl_canvas.Canvas(buffer, pagesize=PAGE_SIZE)
        canv.setTitle(f"{self.layout.title} {date_label}".strip())

        for page_index, chunk in enumerate(job.chunks):
            is_last = job.is_last(page_index)
            context = PageRenderContext(
                layout=self.layout,
                rows=tuple(chunk),
                date_label=date_label,
                page_index=page_index,
                total_pages=job.total_pages,
                is_last_page=is_last,
                merge_regions=merge_regions,
                grand_totals=totals if is_last else None,
                width_px=self.raster_width_px,
                scale=self.raster_scale,
                font_path=self.font_path,
            )
            try:
                image = await asyncio.to_thread(self.page_renderer, context)
            except Exception as exc:
                logger.exception("Rasterizing page %d/%d failed", page_index + 1, job.total_pages)
                raise ReportExportError(f"Rendering page {page_index + 1} of {job.total_pages} failed.") from exc

            try:
                await asyncio.to_thread(self._write_page, canv, image, page_index)
            except Exception as exc:
                logger.exception("Placing page %d/%d failed", page_index + 1, job.total_pages)
                raise ReportExportError(f"Writing page {page_index + 1} of {job.total_pages} failed.") from exc
            finally:
                image.close()

            percent = job.advance(page_index)
            logger.debug("%s export page %d/%d done (%d%%)", self.layout.kind.value, page_index + 1, job.total_pages, percent)
            if progress is not None:
                progress(percent)

        await asyncio.to_thread(canv.save)
        logger.info("%s export finished: %d pages", self.layout.kind.value, job.total_pages)
        return RenderedDocument(
            content=buffer.getvalue(),
            page_count=job.total_pages,
            chunk_sizes=tuple(len(chunk) for chunk in job.chunks),
        )
