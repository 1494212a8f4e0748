"""Tests for the schema-driven record parsers."""

from __future__ import annotations

import datetime as dt
from typing import Any

import pytest
from pydantic import ValidationError

from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.errors import ErrorCode, RowValidationError
from ingestkit_agri.extractor import TabularExtractor
from ingestkit_agri.models import (
    AgrometAdvisoryRecord,
    CommodityAdvisoryRecord,
    ContentType,
    CropCalendarRecord,
    PoultryCalendarRecord,
    ProductionCalendarRecord,
)
from ingestkit_agri.parsers import (
    DEFAULT_ADVISORY_SHEET,
    CommodityAdvisoryParser,
    RecordParser,
    create_parser,
)
from ingestkit_agri.reference import ReferenceData
from ingestkit_agri.schemas import SCHEMAS


def _parse(content_type: ContentType, *rows: dict[str, Any]) -> list[Any]:
    return create_parser(content_type).parse(list(rows))


# ---------------------------------------------------------------------------
# Crop calendar
# ---------------------------------------------------------------------------


class TestCropCalendarParser:
    def test_months_normalized(self) -> None:
        (record,) = _parse(
            ContentType.CROP_CALENDAR,
            {
                "District": "Kumasi Metropolitan",
                "Crop": "Maize",
                "PlantingStart": "3",
                "Planting End": "apr",
                "harvest_start": "July",
                "HarvestEnd": "August",
            },
        )

        assert isinstance(record, CropCalendarRecord)
        assert record.planting_start == "March"
        assert record.planting_end == "April"
        assert record.harvest_start == "July"
        assert record.harvest_end == "August"

    def test_defaults(self) -> None:
        (record,) = _parse(ContentType.CROP_CALENDAR, {"District": "Wa Municipal", "Crop": "Yam"})

        assert record.season == "Major"
        assert record.year == dt.date.today().year
        assert record.variety == ""
        assert record.content_type == ContentType.CROP_CALENDAR

    def test_year_and_remarks(self) -> None:
        (record,) = _parse(
            ContentType.CROP_CALENDAR,
            {"District": "Wa Municipal", "Crop": "Yam", "Year": "2024", "Remarks": "irrigated"},
        )

        assert record.year == 2024
        assert record.notes == "irrigated"

    def test_missing_required_aborts_whole_parse(self) -> None:
        with pytest.raises(RowValidationError) as exc_info:
            _parse(
                ContentType.CROP_CALENDAR,
                {"District": "Wa Municipal", "Crop": "Yam"},
                {"District": "Ho Municipal", "Crop": "  "},
            )

        assert exc_info.value.row_index == 1
        assert exc_info.value.code == ErrorCode.E_ROW_MISSING_REQUIRED
        assert "Row 2" in exc_info.value.message
        assert "crop" in exc_info.value.message

    def test_ids_share_timestamp_and_follow_row_order(self) -> None:
        records = _parse(
            ContentType.CROP_CALENDAR,
            {"District": "Wa Municipal", "Crop": "Yam"},
            {"District": "Ho Municipal", "Crop": "Rice"},
        )

        first, second = (r.id.split("_") for r in records)
        assert first[0] == second[0] == "crop"
        assert first[1] == second[1]
        assert (first[2], second[2]) == ("0", "1")
        assert records[0].created_at == records[1].created_at

    def test_records_are_immutable(self) -> None:
        (record,) = _parse(ContentType.CROP_CALENDAR, {"District": "Wa Municipal", "Crop": "Yam"})
        with pytest.raises(ValidationError):
            record.crop = "Rice"  # type: ignore[misc]

    def test_camel_case_serialization(self) -> None:
        (record,) = _parse(
            ContentType.CROP_CALENDAR,
            {"District": "Wa Municipal", "Crop": "Yam", "PlantingStart": "May"},
        )

        dumped = record.model_dump(by_alias=True)

        assert dumped["plantingStart"] == "May"
        assert dumped["contentType"] == ContentType.CROP_CALENDAR
        assert "createdAt" in dumped


# ---------------------------------------------------------------------------
# Production calendar
# ---------------------------------------------------------------------------


class TestProductionCalendarParser:
    def test_fields(self) -> None:
        (record,) = _parse(
            ContentType.PRODUCTION_CALENDAR,
            {
                "District": "Ho Municipal",
                "Activity": "Land preparation",
                "Month": "2",
                "Week": "3",
                "Equipment": "Cutlass",
            },
        )

        assert isinstance(record, ProductionCalendarRecord)
        assert record.month == "February"
        assert record.week == 3
        assert record.tools == "Cutlass"
        assert record.priority == "Medium"
        assert record.season == "All"

    def test_week_defaults_to_zero(self) -> None:
        (record,) = _parse(
            ContentType.PRODUCTION_CALENDAR,
            {"District": "Ho Municipal", "Activity": "Weeding", "Week": "late"},
        )
        assert record.week == 0

    def test_missing_activity(self) -> None:
        with pytest.raises(RowValidationError):
            _parse(ContentType.PRODUCTION_CALENDAR, {"District": "Ho Municipal"})


# ---------------------------------------------------------------------------
# Agromet advisory
# ---------------------------------------------------------------------------


class TestAgrometAdvisoryParser:
    def test_fields(self) -> None:
        (record,) = _parse(
            ContentType.AGROMET_ADVISORY,
            {
                "District": "Tamale Metropolitan",
                "Date": "2025-03-15",
                "Weather Condition": "Light rain",
                "Recommendation": "Delay spraying",
                "ValidFrom": "15 March 2025",
            },
        )

        assert isinstance(record, AgrometAdvisoryRecord)
        assert record.date == "2025-03-15"
        assert record.valid_from == "2025-03-15"
        assert record.weather_condition == "Light rain"
        assert record.advisory == "Delay spraying"
        assert record.crop == "General"
        assert record.category == "General"

    def test_presentation_fields_pass_through(self) -> None:
        (record,) = _parse(
            ContentType.AGROMET_ADVISORY,
            {
                "District": "Tamale Metropolitan",
                "Advisory": "Harvest early",
                "rainfall_advisory": "-",
                "temperature_advisory": "Hot afternoons",
                "SMS": "Harvest before Friday",
            },
        )

        dumped = record.model_dump(by_alias=True)
        assert dumped["rainfall_advisory"] == "-"
        assert dumped["temperature_advisory"] == "Hot afternoons"
        assert dumped["sms_text"] == "Harvest before Friday"
        assert dumped["weatherCondition"] == ""

    def test_missing_advisory(self) -> None:
        with pytest.raises(RowValidationError):
            _parse(ContentType.AGROMET_ADVISORY, {"District": "Tamale Metropolitan"})


# ---------------------------------------------------------------------------
# Poultry calendar
# ---------------------------------------------------------------------------


class TestPoultryCalendarParser:
    def test_reversed_weeks_swapped(self) -> None:
        (record,) = _parse(
            ContentType.POULTRY_CALENDAR,
            {"District": "Wa Municipal", "Activity": "Brooding", "StartWeek": 10, "EndWeek": 3},
        )

        assert isinstance(record, PoultryCalendarRecord)
        assert (record.start_week, record.end_week) == (3, 10)

    def test_weeks_clamped(self) -> None:
        (record,) = _parse(
            ContentType.POULTRY_CALENDAR,
            {"District": "Wa Municipal", "Activity": "Laying", "Start": "0", "End": "70"},
        )
        assert (record.start_week, record.end_week) == (1, 52)

    def test_defaults(self) -> None:
        (record,) = _parse(
            ContentType.POULTRY_CALENDAR, {"District": "Wa Municipal", "Activity": "Feeding"}
        )

        assert record.poultry_type == "Layers"
        assert (record.start_week, record.end_week) == (1, 1)
        assert record.breed_type == ""

    def test_breed_type_detected(self) -> None:
        (record,) = _parse(
            ContentType.POULTRY_CALENDAR,
            {"District": "Wa Municipal", "Activity": "Brooding", "PoultryType": "Broilers Cobb"},
        )
        assert record.breed_type == "Cobb 500"


# ---------------------------------------------------------------------------
# Commodity advisory
# ---------------------------------------------------------------------------


class TestCommodityAdvisoryParser:
    @pytest.fixture()
    def parsed(
        self, commodity_xlsx: bytes
    ) -> tuple[list[CommodityAdvisoryRecord], list[Any]]:
        sheets = TabularExtractor().extract_multi_sheet(commodity_xlsx)
        return CommodityAdvisoryParser().parse_sheets(sheets)

    def test_record_count(self, parsed: tuple[list[Any], list[Any]]) -> None:
        records, _ = parsed
        assert len(records) == 2

    def test_codes_split(self, parsed: tuple[list[Any], list[Any]]) -> None:
        record = parsed[0][0]

        assert record.commodity_code == "CT0000000002"
        assert record.crop == "Rice"
        assert record.region_code == "REG01"
        assert record.region == "Greater Accra Region"
        assert record.district_code == "DS004"
        assert record.district == "Accra Metropolitan"
        assert record.zone == "Coastal"

    def test_stage_from_sheet(self, parsed: tuple[list[Any], list[Any]]) -> None:
        first, second = parsed[0]

        assert first.stage == first.activity == first.sheet_name == "Land Preparation"
        assert first.production_stage == "Land Preparation"
        assert second.stage == "1st Fertilizer"
        assert second.production_stage == "1st Fertilizer Application"
        assert first.advisory == "Land Preparation activities for Rice in Accra Metropolitan"
        assert first.category == "Production Stage"

    def test_weeks_dates_and_season(self, parsed: tuple[list[Any], list[Any]]) -> None:
        first, second = parsed[0]

        assert first.week == "21 - 24"
        assert (first.start_week, first.end_week) == (21, 24)
        assert (second.start_week, second.end_week) == (28, 30)
        assert first.start_date == "2025-03-03"
        assert first.end_date == "2025-03-28"
        assert (first.year, first.season) == (2025, "Major")
        assert (second.year, second.season) == (2024, "Minor")

    def test_ids_numbered_across_sheets(self, parsed: tuple[list[Any], list[Any]]) -> None:
        first, second = parsed[0]

        assert first.id.startswith("commodity_advisory_")
        assert first.id.endswith("_0")
        assert second.id.endswith("_1")
        assert (first.row_index, second.row_index) == (0, 0)

    def test_bad_rows_become_warnings(self, parsed: tuple[list[Any], list[Any]]) -> None:
        _, warnings = parsed

        codes = [(w.code, w.sheet_name, w.row_index) for w in warnings]
        assert codes == [
            (ErrorCode.W_ROW_PLACEHOLDER, "Land Preparation", 1),
            (ErrorCode.W_ROW_SKIPPED, "1st Fertilizer", 1),
        ]
        assert all(w.recoverable for w in warnings)

    def test_placeholder_rows_kept_when_disabled(self, commodity_xlsx: bytes) -> None:
        sheets = TabularExtractor().extract_multi_sheet(commodity_xlsx)
        parser = CommodityAdvisoryParser(AgriProcessorConfig(skip_placeholder_rows=False))

        records, warnings = parser.parse_sheets(sheets)

        # The template row has a crop but its district is a name-only prompt.
        assert len(records) == 3
        assert records[1].district == "Enter District"
        assert [w.code for w in warnings] == [ErrorCode.W_ROW_SKIPPED]

    def test_bare_codes_resolved(self, reference: ReferenceData) -> None:
        parser = CommodityAdvisoryParser(reference=reference)
        rows = [{"[REGION]": "REG02", "[DISTRICT]": "DS004", "[CROP]": "CT0001", "[WEEK]": 5}]

        records, warnings = parser.parse_sheets({"Harvesting": rows})

        assert warnings == []
        assert records[0].region == "Ashanti Region"
        assert records[0].crop == "Maize"
        assert (records[0].start_week, records[0].end_week) == (5, 5)

    def test_single_sheet_default_stage(self) -> None:
        rows = [{"[DISTRICT]": "Wa Municipal", "[CROP]": "Maize", "[WEEK]": "3"}]

        records, _ = CommodityAdvisoryParser().parse_sheets({DEFAULT_ADVISORY_SHEET: rows})

        assert records[0].stage == "General Advisory"
        assert records[0].commodity_code == ""


# ---------------------------------------------------------------------------
# Factory and determinism
# ---------------------------------------------------------------------------


class TestCreateParser:
    def test_flat_types(self) -> None:
        for content_type in (
            ContentType.CROP_CALENDAR,
            ContentType.PRODUCTION_CALENDAR,
            ContentType.AGROMET_ADVISORY,
            ContentType.POULTRY_CALENDAR,
        ):
            parser = create_parser(content_type)
            assert type(parser) is RecordParser
            assert parser.schema is SCHEMAS[content_type]

    def test_commodity(self) -> None:
        assert isinstance(
            create_parser(ContentType.COMMODITY_ADVISORY), CommodityAdvisoryParser
        )

    def test_unknown(self) -> None:
        with pytest.raises(KeyError):
            create_parser(ContentType.UNKNOWN)

    def test_reparse_is_deterministic(self) -> None:
        rows = [
            {"District": "Wa Municipal", "Activity": "Brooding", "StartWeek": 4, "EndWeek": 2},
            {"District": "Ho Municipal", "Activity": "Laying", "StartWeek": 20},
        ]
        parser = create_parser(ContentType.POULTRY_CALENDAR)

        first = [r.model_dump(exclude={"id", "created_at"}) for r in parser.parse(rows)]
        second = [r.model_dump(exclude={"id", "created_at"}) for r in parser.parse(rows)]

        assert first == second
