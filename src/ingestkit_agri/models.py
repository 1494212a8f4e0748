"""Pydantic data models and enumerations for ingestkit-agri.

Three groups of models live here:

* **Structural** -- the per-cell view of a workbook produced by
  :mod:`ingestkit_agri.structure` (``CellInfo``, ``Activity``, ``Timeline``,
  ``SheetAnalysis`` ...).
* **Canonical records** -- the five immutable record variants emitted by the
  record parsers.  Attributes are snake_case; serializing with
  ``model_dump(by_alias=True)`` yields the stable camelCase field names that
  downstream consumers filter on (``district``, ``crop``, ``week``,
  ``stage``, ``plantingStart`` ...).
* **Results** -- ``DataQualityReport`` and ``ParseResult``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ingestkit_agri.errors import IngestError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ContentType(str, Enum):
    """What a source file describes.  Drives parser selection."""

    CROP_CALENDAR = "crop_calendar"
    PRODUCTION_CALENDAR = "production_calendar"
    POULTRY_CALENDAR = "poultry_calendar"
    COMMODITY_ADVISORY = "commodity_advisory"
    AGROMET_ADVISORY = "agromet_advisory"
    UNKNOWN = "unknown"


class DeclaredFileType(str, Enum):
    """File type token supplied by the upload layer."""

    CSV = "csv"
    EXCEL = "excel"


class CellContentType(str, Enum):
    """Semantic tag assigned to a single worksheet cell."""

    EMPTY = "empty"
    ACTIVITY_PLANTING = "activity-planting"
    ACTIVITY_HARVEST = "activity-harvest"
    ACTIVITY_FERTILIZER = "activity-fertilizer"
    ACTIVITY_WEEDING = "activity-weeding"
    ACTIVITY_PEST_CONTROL = "activity-pest-control"
    ACTIVITY_NUMBERED = "activity-numbered"
    TIME_INDICATOR = "time-indicator"
    POTENTIAL_ACTIVITY = "potential-activity"
    CONTENT = "content"

    @property
    def is_activity(self) -> bool:
        return self.value.startswith("activity")


class TimelineKind(str, Enum):
    """How a sheet's timeline labels were obtained."""

    INFERRED = "inferred"
    EXTRACTED = "extracted"


class CalendarType(str, Enum):
    """Whole-file calendar shape: poultry-style cycle or crop-style season."""

    CYCLE = "cycle"
    SEASONAL = "seasonal"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Structural analysis
# ---------------------------------------------------------------------------


class CellColors(BaseModel):
    """Normalized ``#RRGGBB`` colors derived from a cell's style."""

    background: str | None = None
    background_secondary: str | None = None
    text: str | None = None

    def present(self) -> dict[str, str]:
        """Return the colors that are set, in background/secondary/text order."""
        return {
            name: value
            for name, value in (
                ("background", self.background),
                ("background_secondary", self.background_secondary),
                ("text", self.text),
            )
            if value is not None
        }


class CellInfo(BaseModel):
    """Everything the analyzer knows about one cell.

    ``row`` and ``column`` are zero-based; ``address`` is the A1 reference.
    ``formatting`` maps a component name (``fill``, ``font``, ``border``,
    ``alignment``) to its non-default attributes.
    """

    address: str
    row: int
    column: int
    value: Any = None
    display_value: str = ""
    data_type: str = "n"
    formula: str | None = None
    style: str | None = None
    formatting: dict[str, dict[str, Any]] = {}
    colors: CellColors = CellColors()
    content_type: CellContentType = CellContentType.EMPTY
    is_active: bool = False


class SheetRange(BaseModel):
    """Zero-based inclusive bounding box of a sheet's populated cells."""

    start_row: int = 0
    end_row: int = 0
    start_column: int = 0
    end_column: int = 0

    @property
    def row_count(self) -> int:
        """Number of rows counted from the top of the sheet."""
        return self.end_row + 1

    @property
    def column_count(self) -> int:
        """Number of columns counted from column A."""
        return self.end_column + 1


class StructurePatterns(BaseModel):
    """Detected layout anchors of a sheet (``None`` when not found)."""

    activity_column: int | None = None
    timeline_row: int | None = None


class Period(BaseModel):
    """One active cell to the right of an activity name."""

    column: int
    week_index: int
    raw_value: Any = None
    colors: CellColors = CellColors()
    formatting: dict[str, dict[str, Any]] = {}
    is_active: bool = True


class Activity(BaseModel):
    """A named row of work together with its active periods."""

    name: str
    row: int
    periods: list[Period] = []
    colors: list[str] = []


class TimelinePeriod(BaseModel):
    index: int
    column: int
    label: str
    type: str


class Timeline(BaseModel):
    kind: TimelineKind
    periods: list[TimelinePeriod] = []


class ColorPattern(BaseModel):
    """Occurrences of one color across a sheet, in first-seen order."""

    count: int = 0
    cells: list[str] = []


class SheetAnalysis(BaseModel):
    """Full structural analysis of a single worksheet."""

    name: str
    range: SheetRange
    cells: dict[str, CellInfo] = {}
    structure: StructurePatterns = StructurePatterns()
    activities: list[Activity] = []
    timeline: Timeline
    color_patterns: dict[str, ColorPattern] = {}


class CalendarTypeResult(BaseModel):
    calendar_type: CalendarType = CalendarType.UNKNOWN
    confidence: float = 0.0
    poultry_count: int = 0
    crop_count: int = 0


class FormattingSummary(BaseModel):
    """Workbook-wide formatting inventory."""

    unique_colors: list[str] = []
    unique_fonts: list[str] = []
    formatted_cell_count: int = 0


class WorkbookAnalysis(BaseModel):
    sheets: dict[str, SheetAnalysis] = {}
    calendar_type: CalendarTypeResult = CalendarTypeResult()
    formatting_summary: FormattingSummary = FormattingSummary()
    warnings: list[IngestError] = []


class ColorStatistics(BaseModel):
    """Color usage summary across every analyzed sheet."""

    unique_colors: int = 0
    colored_cells: int = 0
    top_colors: dict[str, int] = {}


# ---------------------------------------------------------------------------
# Canonical records
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _CanonicalRecord(_CamelModel):
    """Fields shared by every canonical record.  Records never change."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    content_type: ContentType
    created_at: str


class CropCalendarRecord(_CanonicalRecord):
    content_type: ContentType = ContentType.CROP_CALENDAR
    district: str
    crop: str
    variety: str = ""
    planting_start: str = ""
    planting_end: str = ""
    harvest_start: str = ""
    harvest_end: str = ""
    season: str = "Major"
    year: int
    notes: str = ""


class ProductionCalendarRecord(_CanonicalRecord):
    content_type: ContentType = ContentType.PRODUCTION_CALENDAR
    district: str
    crop: str = ""
    activity: str
    month: str = ""
    week: int = 0
    description: str = ""
    tools: str = ""
    season: str = "All"
    priority: str = "Medium"
    duration: str = ""


class AgrometAdvisoryRecord(_CanonicalRecord):
    """Weather advisory.

    The presentation-facing advisory texts keep their snake_case names on
    serialization and are passed through verbatim, including the ``"-"``
    no-value sentinel.
    """

    content_type: ContentType = ContentType.AGROMET_ADVISORY
    district: str
    date: str = ""
    weather_condition: str = ""
    advisory: str
    crop: str = "General"
    action: str = ""
    priority: str = "Medium"
    valid_from: str = ""
    valid_to: str = ""
    temperature: str = ""
    rainfall: str = ""
    humidity: str = ""
    category: str = "General"
    rainfall_advisory: str = Field(default="", alias="rainfall_advisory")
    temperature_advisory: str = Field(default="", alias="temperature_advisory")
    sms_text: str = Field(default="", alias="sms_text")


class PoultryCalendarRecord(_CanonicalRecord):
    content_type: ContentType = ContentType.POULTRY_CALENDAR
    district: str
    poultry_type: str = "Layers"
    breed_type: str = ""
    activity: str
    start_week: int = 1
    end_week: int = 1
    season: str = "All"
    year: int
    advisory: str = ""
    priority: str = "Medium"
    duration: str = ""
    notes: str = ""


class CommodityAdvisoryRecord(_CanonicalRecord):
    content_type: ContentType = ContentType.COMMODITY_ADVISORY
    commodity_code: str = ""
    crop: str
    region_code: str = ""
    region: str = ""
    district_code: str = ""
    district: str
    zone: str = ""
    stage: str
    production_stage: str = ""
    activity: str = ""
    month_year: str = ""
    week: str = ""
    start_week: int = 1
    end_week: int = 1
    start_date: str = ""
    end_date: str = ""
    advisory: str = ""
    priority: str = "Medium"
    category: str = "Production Stage"
    year: int
    season: str = "Unknown"
    sheet_name: str = ""
    row_index: int = 0


CanonicalRecord = Union[
    CropCalendarRecord,
    ProductionCalendarRecord,
    AgrometAdvisoryRecord,
    PoultryCalendarRecord,
    CommodityAdvisoryRecord,
]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class DataQualityReport(_CamelModel):
    """Post-parse quality summary.

    ``quality`` is the rounded percentage of records passing their type's
    required-field check; warnings never affect it.
    """

    total: int = 0
    valid: int = 0
    invalid: int = 0
    quality: int = 0
    warnings: list[str] = []


class ParseMetadata(_CamelModel):
    original_name: str
    record_count: int
    parsed_at: str
    data_quality: DataQualityReport
    is_multi_sheet: bool = False
    sheet_names: list[str] = []
    color_statistics: ColorStatistics | None = None
    parser_version: str = ""


class ParseResult(_CamelModel):
    """Successful outcome of one parse.  Fatal errors raise instead."""

    content_type: ContentType
    records: list[CanonicalRecord]
    metadata: ParseMetadata
    warnings: list[IngestError] = []
    sheets: dict[str, SheetAnalysis] | None = None
    calendar_type: CalendarTypeResult | None = None
