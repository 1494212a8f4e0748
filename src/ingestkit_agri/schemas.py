"""Declarative field layouts for the five canonical record types.

Each :class:`RecordSchema` lists its fields as :class:`FieldSpec` entries:
the canonical attribute name, the header aliases accepted for it (tried in
order), the normalizer applied to the resolved value, whether the field is
required, and its default.  Defaults pass through the normalizer like any
other value.  A schema may add a ``post_process`` hook for rules that span
several fields (week ordering, ``CODE/Name`` splitting).
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from pydantic import BaseModel

from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.models import (
    AgrometAdvisoryRecord,
    CommodityAdvisoryRecord,
    ContentType,
    CropCalendarRecord,
    PoultryCalendarRecord,
    ProductionCalendarRecord,
)
from ingestkit_agri.normalize import (
    clean_string,
    clamp_week,
    determine_season,
    extract_breed_type,
    extract_year,
    normalize_production_stage,
    parse_date,
    parse_int,
    parse_month,
    parse_sheet_date,
    parse_week_range,
    resolve_field,
    split_coded_value,
)
from ingestkit_agri.reference import ReferenceData

Normalizer = Callable[[Any], Any]


def _current_year() -> int:
    return dt.date.today().year


def _year(value: Any) -> int:
    return parse_int(value, default=_current_year())


def _week_number(value: Any) -> int:
    return parse_int(value, default=0)


def _week_bound(value: Any) -> int:
    return parse_int(value, default=1)


@dataclass(frozen=True)
class FieldSpec:
    """One canonical field and how to read it from a raw row."""

    name: str
    aliases: tuple[str, ...]
    normalizer: Normalizer = clean_string
    required: bool = False
    default: Any = ""
    default_factory: Callable[[], Any] | None = None

    def resolve(self, row: Mapping[str, Any]) -> Any:
        default = self.default_factory() if self.default_factory else self.default
        return self.normalizer(resolve_field(row, self.aliases, default))


@dataclass(frozen=True)
class RowContext:
    """Where a row came from, plus the shared lookups post-processors need."""

    index: int
    config: AgriProcessorConfig
    reference: ReferenceData
    sheet_name: str | None = None


PostProcessor = Callable[[dict[str, Any], RowContext], dict[str, Any]]


@dataclass(frozen=True)
class RecordSchema:
    """Field layout and row rules for one content type."""

    content_type: ContentType
    id_prefix: str
    record_model: type[BaseModel]
    fields: tuple[FieldSpec, ...]
    post_process: PostProcessor | None = None
    # Required fields that only exist after ``post_process``.
    derived_required: tuple[str, ...] = ()

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.required) + self.derived_required

    def resolve(self, row: Mapping[str, Any]) -> dict[str, Any]:
        return {spec.name: spec.resolve(row) for spec in self.fields}


# ---------------------------------------------------------------------------
# Shared field specs
# ---------------------------------------------------------------------------

_DISTRICT = FieldSpec("district", ("District", "district"), required=True)
_PRIORITY = FieldSpec("priority", ("Priority", "priority"), default="Medium")
_DURATION = FieldSpec("duration", ("Duration", "duration"))
_NOTES = FieldSpec("notes", ("Notes", "notes", "Remarks", "remarks"))
_YEAR = FieldSpec("year", ("Year", "year"), _year, default_factory=_current_year)


# ---------------------------------------------------------------------------
# Crop calendar
# ---------------------------------------------------------------------------

CROP_CALENDAR_SCHEMA = RecordSchema(
    content_type=ContentType.CROP_CALENDAR,
    id_prefix="crop",
    record_model=CropCalendarRecord,
    fields=(
        _DISTRICT,
        FieldSpec("crop", ("Crop", "crop"), required=True),
        FieldSpec(
            "planting_start",
            ("PlantingStart", "Planting Start", "planting_start"),
            parse_month,
        ),
        FieldSpec(
            "planting_end", ("PlantingEnd", "Planting End", "planting_end"), parse_month
        ),
        FieldSpec(
            "harvest_start",
            ("HarvestStart", "Harvest Start", "harvest_start"),
            parse_month,
        ),
        FieldSpec(
            "harvest_end", ("HarvestEnd", "Harvest End", "harvest_end"), parse_month
        ),
        FieldSpec("season", ("Season", "season"), default="Major"),
        _YEAR,
        FieldSpec("variety", ("Variety", "variety")),
        _NOTES,
    ),
)


# ---------------------------------------------------------------------------
# Production calendar
# ---------------------------------------------------------------------------

PRODUCTION_CALENDAR_SCHEMA = RecordSchema(
    content_type=ContentType.PRODUCTION_CALENDAR,
    id_prefix="prod",
    record_model=ProductionCalendarRecord,
    fields=(
        _DISTRICT,
        FieldSpec("activity", ("Activity", "activity"), required=True),
        FieldSpec("month", ("Month", "month"), parse_month),
        FieldSpec("week", ("Week", "week"), _week_number, default=0),
        FieldSpec("crop", ("Crop", "crop")),
        FieldSpec("description", ("Description", "description")),
        FieldSpec("tools", ("Tools", "tools", "Equipment", "equipment")),
        FieldSpec("season", ("Season", "season"), default="All"),
        _PRIORITY,
        _DURATION,
    ),
)


# ---------------------------------------------------------------------------
# Agromet advisory
# ---------------------------------------------------------------------------

AGROMET_ADVISORY_SCHEMA = RecordSchema(
    content_type=ContentType.AGROMET_ADVISORY,
    id_prefix="advisory",
    record_model=AgrometAdvisoryRecord,
    fields=(
        _DISTRICT,
        FieldSpec("date", ("Date", "date", "IssueDate", "issue_date"), parse_date),
        FieldSpec(
            "weather_condition",
            ("WeatherCondition", "Weather Condition", "weather_condition"),
        ),
        FieldSpec(
            "advisory",
            ("Advisory", "advisory", "Recommendation", "recommendation"),
            required=True,
        ),
        FieldSpec("crop", ("Crop", "crop"), default="General"),
        FieldSpec("action", ("Action", "action")),
        _PRIORITY,
        FieldSpec("valid_from", ("ValidFrom", "Valid From", "valid_from"), parse_date),
        FieldSpec("valid_to", ("ValidTo", "Valid To", "valid_to"), parse_date),
        FieldSpec("temperature", ("Temperature", "temperature")),
        FieldSpec("rainfall", ("Rainfall", "rainfall")),
        FieldSpec("humidity", ("Humidity", "humidity")),
        FieldSpec("category", ("Category", "category"), default="General"),
        FieldSpec(
            "rainfall_advisory",
            ("rainfall_advisory", "RainfallAdvisory", "Rainfall Advisory"),
        ),
        FieldSpec(
            "temperature_advisory",
            ("temperature_advisory", "TemperatureAdvisory", "Temperature Advisory"),
        ),
        FieldSpec("sms_text", ("sms_text", "SmsText", "SMS Text", "SMS")),
    ),
)


# ---------------------------------------------------------------------------
# Poultry calendar
# ---------------------------------------------------------------------------


def _order_weeks(values: dict[str, Any], context: RowContext) -> dict[str, Any]:
    """Clamp both week bounds and swap them when reversed."""
    cfg = context.config
    start = clamp_week(values["start_week"], cfg.week_min, cfg.week_max)
    end = clamp_week(values["end_week"], cfg.week_min, cfg.week_max)
    if start > end:
        start, end = end, start
    values["start_week"], values["end_week"] = start, end
    return values


def _poultry_post_process(values: dict[str, Any], context: RowContext) -> dict[str, Any]:
    values = _order_weeks(values, context)
    text = " ".join(
        (values["poultry_type"], values["activity"], values["notes"])
    )
    values["breed_type"] = extract_breed_type(text, context.reference.breed_types)
    return values


POULTRY_CALENDAR_SCHEMA = RecordSchema(
    content_type=ContentType.POULTRY_CALENDAR,
    id_prefix="poultry",
    record_model=PoultryCalendarRecord,
    fields=(
        _DISTRICT,
        FieldSpec(
            "poultry_type",
            ("PoultryType", "Poultry Type", "poultry_type", "Type", "type"),
            default="Layers",
        ),
        FieldSpec("activity", ("Activity", "activity"), required=True),
        FieldSpec(
            "start_week",
            ("StartWeek", "Start Week", "start_week", "Start", "start"),
            _week_bound,
            default=1,
        ),
        FieldSpec(
            "end_week",
            ("EndWeek", "End Week", "end_week", "End", "end"),
            _week_bound,
            default=1,
        ),
        FieldSpec("season", ("Season", "season"), default="All"),
        _YEAR,
        FieldSpec(
            "advisory", ("Advisory", "advisory", "Description", "description")
        ),
        _PRIORITY,
        _DURATION,
        _NOTES,
    ),
    post_process=_poultry_post_process,
)


# ---------------------------------------------------------------------------
# Commodity advisory
# ---------------------------------------------------------------------------

# Raw fields consumed by the commodity post-processor and then dropped.
_COMMODITY_RAW_FIELDS = ("region_raw", "district_raw", "crop_raw")

# Fields whose values decide whether a row is an untouched template row.
COMMODITY_PLACEHOLDER_FIELDS = ("zone", "region_raw", "district_raw", "month_year", "week")


def _commodity_post_process(values: dict[str, Any], context: RowContext) -> dict[str, Any]:
    ref = context.reference
    cfg = context.config
    sheet_name = context.sheet_name or ""

    values["commodity_code"], values["crop"] = split_coded_value(
        values["crop_raw"], "CT", ref.commodity_codes
    )
    values["region_code"], values["region"] = split_coded_value(
        values["region_raw"], "REG", ref.region_codes
    )
    values["district_code"], values["district"] = split_coded_value(
        values["district_raw"], "DS", ref.district_codes
    )
    for name in _COMMODITY_RAW_FIELDS:
        values.pop(name)

    weeks = parse_week_range(values["week"], cfg.week_min, cfg.week_max)
    values["start_week"], values["end_week"] = min(weeks), max(weeks)

    values["stage"] = sheet_name
    values["activity"] = sheet_name
    values["production_stage"] = normalize_production_stage(
        sheet_name, ref.production_stages
    )
    values["year"] = extract_year(values["month_year"], _current_year())
    values["season"] = determine_season(values["month_year"])
    values["advisory"] = (
        f"{sheet_name} activities for {values['crop']} in {values['district']}"
    )
    values["priority"] = "Medium"
    values["category"] = "Production Stage"
    values["sheet_name"] = sheet_name
    values["row_index"] = context.index
    return values


COMMODITY_ADVISORY_SCHEMA = RecordSchema(
    content_type=ContentType.COMMODITY_ADVISORY,
    id_prefix="commodity_advisory",
    record_model=CommodityAdvisoryRecord,
    fields=(
        FieldSpec("zone", ("[ZONE]", "ZONE", "Zone", "zone")),
        FieldSpec("region_raw", ("[REGION]", "REGION", "Region", "region")),
        FieldSpec("district_raw", ("[DISTRICT]", "DISTRICT", "District", "district")),
        FieldSpec("crop_raw", ("[CROP]", "CROP", "Crop", "crop", "Commodity")),
        FieldSpec(
            "month_year",
            ("[MONTH/YEAR]", "MONTH/YEAR", "Month/Year", "month_year", "MonthYear"),
        ),
        FieldSpec("week", ("[WEEK]", "WEEK", "Week", "week")),
        FieldSpec(
            "start_date",
            ("[START DATE]", "START DATE", "Start Date", "start_date"),
            parse_sheet_date,
        ),
        FieldSpec(
            "end_date",
            ("[END DATE]", "END DATE", "End Date", "end_date"),
            parse_sheet_date,
        ),
    ),
    post_process=_commodity_post_process,
    derived_required=("district", "crop"),
)


SCHEMAS: dict[ContentType, RecordSchema] = {
    schema.content_type: schema
    for schema in (
        CROP_CALENDAR_SCHEMA,
        PRODUCTION_CALENDAR_SCHEMA,
        AGROMET_ADVISORY_SCHEMA,
        POULTRY_CALENDAR_SCHEMA,
        COMMODITY_ADVISORY_SCHEMA,
    )
}
