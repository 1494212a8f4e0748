"""Cell-level structural analysis of calendar workbooks.

Commodity advisory and cycle calendars encode timing visually: an activity
name sits in a left-hand column and the weeks it covers are the colored (or
otherwise styled) cells to its right, under a row of week/month labels.
:class:`StructuralAnalyzer` recovers that layout in four passes per sheet:

1. **Cells** -- every populated or styled cell in the sheet's bounding range
   becomes a :class:`~ingestkit_agri.models.CellInfo` carrying its value,
   formatting, normalized colors, content tag and ``is_active`` flag.
2. **Anchors** -- the activity column and the timeline row are located by
   counting tagged cells in the top-left corner of the sheet.
3. **Activities and timeline** -- each named row below the timeline becomes
   an :class:`~ingestkit_agri.models.Activity` whose periods are its active
   cells; the timeline is read from the detected row or inferred as weeks.
4. **Color patterns** -- non-white colors are aggregated across the sheet.

Iteration is strictly row-major with ascending columns.  Every first-seen
dedup and first-match scan depends on that order.
"""

from __future__ import annotations

import io
import logging
import re
from typing import Any, Iterable

import openpyxl
from openpyxl.cell.cell import Cell, MergedCell
from openpyxl.styles import PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ingestkit_agri.colors import resolve_color
from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.errors import ErrorCode, FormatError, IngestError
from ingestkit_agri.models import (
    Activity,
    CalendarType,
    CalendarTypeResult,
    CellColors,
    CellContentType,
    CellInfo,
    ColorPattern,
    ColorStatistics,
    FormattingSummary,
    Period,
    SheetAnalysis,
    SheetRange,
    StructurePatterns,
    Timeline,
    TimelineKind,
    TimelinePeriod,
    WorkbookAnalysis,
)
from ingestkit_agri.normalize import clean_string, is_blank
from ingestkit_agri.reference import CROP_ACTIVITY_TERMS, POULTRY_ACTIVITY_TERMS

logger = logging.getLogger("ingestkit_agri")

# ---------------------------------------------------------------------------
# Content tagging
# ---------------------------------------------------------------------------

_ORDINAL = re.compile(r"\d+(st|nd|rd|th)")
_TIME_TOKEN = re.compile(
    r"week|month|day|jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec"
)

# (tag, substrings) pairs checked in order; first hit wins.
_ACTIVITY_KEYWORDS: tuple[tuple[CellContentType, tuple[str, ...]], ...] = (
    (CellContentType.ACTIVITY_PLANTING, ("plant", "sowing")),
    (CellContentType.ACTIVITY_HARVEST, ("harvest",)),
    (CellContentType.ACTIVITY_FERTILIZER, ("fertiliz", "fertiliser")),
    (CellContentType.ACTIVITY_WEEDING, ("weed",)),
    (CellContentType.ACTIVITY_PEST_CONTROL, ("pest", "spray")),
)

_TOP_COLOR_LIMIT = 10


def tag_cell(
    text: str, row: int, column: int, config: AgriProcessorConfig | None = None
) -> CellContentType:
    """Assign a content tag to a cell's display text.

    ``row`` and ``column`` are zero-based.  Labels in the left columns below
    the header band that match no keyword are potential activities.
    """
    cfg = config or AgriProcessorConfig()
    value = text.strip().lower()
    if not value:
        return CellContentType.EMPTY

    for tag, keywords in _ACTIVITY_KEYWORDS:
        if any(k in value for k in keywords):
            return tag
    if _ORDINAL.search(value):
        return CellContentType.ACTIVITY_NUMBERED
    if _TIME_TOKEN.search(value):
        return CellContentType.TIME_INDICATOR
    if (
        row > cfg.potential_activity_min_row
        and column <= cfg.potential_activity_max_column
        and len(value) > cfg.potential_activity_min_length
    ):
        return CellContentType.POTENTIAL_ACTIVITY
    return CellContentType.CONTENT


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class StructuralAnalyzer:
    """Builds a :class:`WorkbookAnalysis` from ``.xlsx`` bytes.

    Parameters
    ----------
    config:
        Scan window sizes, detection thresholds and the default (white)
        color.
    """

    def __init__(self, config: AgriProcessorConfig | None = None) -> None:
        self._config = config or AgriProcessorConfig()
        self._white = self._config.default_color.upper()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(self, data: bytes) -> WorkbookAnalysis:
        """Analyze every worksheet of a workbook.

        Raises
        ------
        FormatError
            If the workbook cannot be opened.
        """
        values_wb = self._load(data, data_only=True)
        formulas_wb = self._load(data, data_only=False)

        warnings: list[IngestError] = []
        for chart in values_wb.chartsheets:
            logger.warning(
                "ingestkit_agri | sheet=%s | code=%s | chart sheet skipped",
                chart.title,
                ErrorCode.W_SHEET_SKIPPED_CHART.value,
            )
            warnings.append(
                IngestError(
                    code=ErrorCode.W_SHEET_SKIPPED_CHART,
                    message=f"Sheet '{chart.title}' is a chart sheet",
                    sheet_name=chart.title,
                    stage="analyze",
                    recoverable=True,
                )
            )

        sheets: dict[str, SheetAnalysis] = {}
        for ws in values_wb.worksheets:
            formula_ws = (
                formulas_wb[ws.title] if ws.title in formulas_wb.sheetnames else None
            )
            sheets[ws.title] = self.analyze_sheet(ws, formula_ws)

        first = next(iter(sheets.values()), None)
        analysis = WorkbookAnalysis(
            sheets=sheets,
            calendar_type=infer_calendar_type(first.activities if first else []),
            formatting_summary=summarize_formatting(sheets.values()),
            warnings=warnings,
        )
        logger.info(
            "Analyzed %d sheet(s); calendar type %s (confidence %.2f)",
            len(sheets),
            analysis.calendar_type.calendar_type.value,
            analysis.calendar_type.confidence,
        )
        return analysis

    def analyze_sheet(
        self, ws: Worksheet, formula_ws: Worksheet | None = None
    ) -> SheetAnalysis:
        """Run all four passes over one worksheet."""
        sheet_range = SheetRange(
            start_row=ws.min_row - 1,
            end_row=ws.max_row - 1,
            start_column=ws.min_column - 1,
            end_column=ws.max_column - 1,
        )

        cells: dict[str, CellInfo] = {}
        grid: dict[tuple[int, int], CellInfo] = {}
        for row in ws.iter_rows(
            min_row=ws.min_row,
            max_row=ws.max_row,
            min_col=ws.min_column,
            max_col=ws.max_column,
        ):
            for cell in row:
                if cell.value is None and not cell.has_style:
                    continue
                info = self._cell_info(cell, formula_ws)
                cells[info.address] = info
                grid[(info.row, info.column)] = info

        structure = StructurePatterns(
            activity_column=self._detect_activity_column(grid, sheet_range),
            timeline_row=self._detect_timeline_row(grid, sheet_range),
        )
        activities = self._extract_activities(grid, sheet_range, structure)
        timeline = self._build_timeline(grid, sheet_range, structure)

        logger.debug(
            "Sheet '%s': %d cell(s), activity column %s, timeline row %s, "
            "%d activit(ies)",
            ws.title,
            len(cells),
            structure.activity_column,
            structure.timeline_row,
            len(activities),
        )
        return SheetAnalysis(
            name=ws.title,
            range=sheet_range,
            cells=cells,
            structure=structure,
            activities=activities,
            timeline=timeline,
            color_patterns=self._color_patterns(cells.values()),
        )

    # ------------------------------------------------------------------
    # Pass 1: cells
    # ------------------------------------------------------------------

    def _cell_info(self, cell: Cell | MergedCell, formula_ws: Worksheet | None) -> CellInfo:
        row, column = cell.row - 1, cell.column - 1
        value = cell.value
        display = clean_string(value)

        formatting: dict[str, dict[str, Any]] = {}
        colors = CellColors()
        style = None
        if cell.has_style:
            formatting, colors = _extract_formatting(cell)
            if cell.number_format and cell.number_format != "General":
                style = cell.number_format

        formula = None
        if formula_ws is not None:
            source = formula_ws.cell(row=cell.row, column=cell.column)
            if source.data_type == "f":
                formula = str(source.value)

        content_type = tag_cell(display, row, column, self._config)
        return CellInfo(
            address=f"{get_column_letter(cell.column)}{cell.row}",
            row=row,
            column=column,
            value=value,
            display_value=display,
            data_type=cell.data_type,
            formula=formula,
            style=style,
            formatting=formatting,
            colors=colors,
            content_type=content_type,
            is_active=self._is_active(value, colors, formatting),
        )

    @staticmethod
    def _is_active(
        value: Any, colors: CellColors, formatting: dict[str, dict[str, Any]]
    ) -> bool:
        """Any value, any color (white included) or any formatting marks a cell active."""
        return not is_blank(value) or bool(colors.present()) or bool(formatting)

    # ------------------------------------------------------------------
    # Pass 2: anchors
    # ------------------------------------------------------------------

    def _detect_activity_column(
        self, grid: dict[tuple[int, int], CellInfo], sheet_range: SheetRange
    ) -> int | None:
        cfg = self._config
        rows = range(1, min(cfg.activity_scan_rows, sheet_range.row_count))
        for column in range(min(cfg.activity_scan_columns, sheet_range.column_count)):
            hits = sum(
                1
                for row in rows
                if (row, column) in grid and grid[(row, column)].content_type.is_activity
            )
            if hits >= cfg.min_activity_cells:
                return column
        return None

    def _detect_timeline_row(
        self, grid: dict[tuple[int, int], CellInfo], sheet_range: SheetRange
    ) -> int | None:
        cfg = self._config
        columns = range(1, min(cfg.timeline_scan_columns, sheet_range.column_count))
        for row in range(min(cfg.timeline_scan_rows, sheet_range.row_count)):
            hits = sum(
                1
                for column in columns
                if (row, column) in grid
                and grid[(row, column)].content_type == CellContentType.TIME_INDICATOR
            )
            if hits >= cfg.min_timeline_cells:
                return row
        return None

    # ------------------------------------------------------------------
    # Pass 3: activities and timeline
    # ------------------------------------------------------------------

    def _extract_activities(
        self,
        grid: dict[tuple[int, int], CellInfo],
        sheet_range: SheetRange,
        structure: StructurePatterns,
    ) -> list[Activity]:
        name_column = structure.activity_column or 0
        start_row = 1
        if structure.timeline_row is not None:
            start_row = max(1, structure.timeline_row + 1)

        activities: list[Activity] = []
        for row in range(start_row, sheet_range.row_count):
            name_cell = grid.get((row, name_column))
            if name_cell is None or is_blank(name_cell.value):
                continue

            periods: list[Period] = []
            colors: list[str] = []
            for column in range(name_column + 1, sheet_range.column_count):
                cell = grid.get((row, column))
                if cell is None or not cell.is_active:
                    continue
                periods.append(
                    Period(
                        column=column,
                        week_index=column - name_column,
                        raw_value=cell.value,
                        colors=cell.colors,
                        formatting=cell.formatting,
                    )
                )
                background = cell.colors.background
                if (
                    background is not None
                    and background.upper() != self._white
                    and background not in colors
                ):
                    colors.append(background)

            if periods:
                activities.append(
                    Activity(
                        name=name_cell.display_value,
                        row=row,
                        periods=periods,
                        colors=colors,
                    )
                )
        return activities

    @staticmethod
    def _build_timeline(
        grid: dict[tuple[int, int], CellInfo],
        sheet_range: SheetRange,
        structure: StructurePatterns,
    ) -> Timeline:
        if structure.timeline_row is None:
            return Timeline(
                kind=TimelineKind.INFERRED,
                periods=[
                    TimelinePeriod(
                        index=column - 2,
                        column=column,
                        label=f"Week {column - 1}",
                        type="week",
                    )
                    for column in range(2, sheet_range.column_count)
                ],
            )

        periods: list[TimelinePeriod] = []
        for column in range(1, sheet_range.column_count):
            cell = grid.get((structure.timeline_row, column))
            if cell is None or is_blank(cell.value):
                continue
            periods.append(
                TimelinePeriod(
                    index=len(periods),
                    column=column,
                    label=cell.display_value,
                    type=cell.content_type.value,
                )
            )
        return Timeline(kind=TimelineKind.EXTRACTED, periods=periods)

    # ------------------------------------------------------------------
    # Pass 4: color patterns
    # ------------------------------------------------------------------

    def _color_patterns(self, cells: Iterable[CellInfo]) -> dict[str, ColorPattern]:
        occurrences: dict[str, list[str]] = {}
        for cell in cells:
            for color in cell.colors.present().values():
                if color.upper() == self._white:
                    continue
                occurrences.setdefault(color, []).append(cell.address)
        return {
            color: ColorPattern(count=len(addresses), cells=addresses)
            for color, addresses in occurrences.items()
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load(data: bytes, data_only: bool) -> openpyxl.Workbook:
        try:
            return openpyxl.load_workbook(io.BytesIO(data), data_only=data_only)
        except Exception as exc:
            logger.error("Workbook open failed during structural analysis: %s", exc)
            raise FormatError(
                f"Cannot open workbook: {exc}",
                code=ErrorCode.E_PARSE_CORRUPT,
                stage="analyze",
            ) from exc


def _extract_formatting(
    cell: Cell | MergedCell,
) -> tuple[dict[str, dict[str, Any]], CellColors]:
    """Collect the non-default style components of a styled cell."""
    formatting: dict[str, dict[str, Any]] = {}
    background = secondary = text = None

    fill = cell.fill
    if isinstance(fill, PatternFill) and fill.fill_type:
        background = resolve_color(fill.fgColor)
        secondary = resolve_color(fill.bgColor)
        formatting["fill"] = {
            "type": fill.fill_type,
            "foreground": background,
            "background": secondary,
        }

    font = cell.font
    if font is not None:
        text = resolve_color(font.color)
        formatting["font"] = {
            "name": font.name,
            "size": font.size,
            "bold": bool(font.bold),
            "italic": bool(font.italic),
            "underline": font.underline,
            "color": text,
        }

    border = cell.border
    if border is not None:
        sides = {
            side: getattr(border, side).style
            for side in ("left", "right", "top", "bottom")
            if getattr(border, side) is not None and getattr(border, side).style
        }
        if sides:
            formatting["border"] = sides

    alignment = cell.alignment
    if alignment is not None:
        aligned = {
            key: value
            for key, value in (
                ("horizontal", alignment.horizontal),
                ("vertical", alignment.vertical),
                ("wrap_text", alignment.wrap_text),
            )
            if value
        }
        if aligned:
            formatting["alignment"] = aligned

    return formatting, CellColors(
        background=background, background_secondary=secondary, text=text
    )


# ---------------------------------------------------------------------------
# Workbook-level summaries
# ---------------------------------------------------------------------------


def infer_calendar_type(activities: list[Activity]) -> CalendarTypeResult:
    """Classify a calendar as a poultry cycle or a crop season.

    Counts activity names mentioning poultry terms (brooding, laying ...)
    against those mentioning crop terms (planting, harvest ...).  Only a
    strict majority decides; confidence is the winning count over all
    activities.
    """
    if not activities:
        return CalendarTypeResult()

    names = [activity.name.lower() for activity in activities]
    poultry = sum(1 for n in names if any(term in n for term in POULTRY_ACTIVITY_TERMS))
    crop = sum(1 for n in names if any(term in n for term in CROP_ACTIVITY_TERMS))

    if poultry > crop:
        calendar_type = CalendarType.CYCLE
    elif crop > poultry:
        calendar_type = CalendarType.SEASONAL
    else:
        calendar_type = CalendarType.UNKNOWN

    return CalendarTypeResult(
        calendar_type=calendar_type,
        confidence=max(poultry, crop) / len(activities),
        poultry_count=poultry,
        crop_count=crop,
    )


def summarize_formatting(sheets: Iterable[SheetAnalysis]) -> FormattingSummary:
    colors: list[str] = []
    fonts: list[str] = []
    formatted = 0
    for sheet in sheets:
        for cell in sheet.cells.values():
            if cell.formatting:
                formatted += 1
            for color in cell.colors.present().values():
                if color not in colors:
                    colors.append(color)
            font = cell.formatting.get("font")
            if font and font.get("name"):
                label = f"{font['name']}-{font.get('size')}"
                if label not in fonts:
                    fonts.append(label)
    return FormattingSummary(
        unique_colors=colors, unique_fonts=fonts, formatted_cell_count=formatted
    )


def color_statistics(sheets: Iterable[SheetAnalysis]) -> ColorStatistics:
    """Aggregate per-sheet color patterns into workbook totals."""
    totals: dict[str, int] = {}
    colored: set[str] = set()
    for sheet in sheets:
        for color, pattern in sheet.color_patterns.items():
            totals[color] = totals.get(color, 0) + pattern.count
            colored.update(f"{sheet.name}!{address}" for address in pattern.cells)

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return ColorStatistics(
        unique_colors=len(totals),
        colored_cells=len(colored),
        top_colors=dict(ranked[:_TOP_COLOR_LIMIT]),
    )
