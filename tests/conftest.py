"""Shared test fixtures for ingestkit-agri tests.

Provides a ``sample_config`` fixture, the packaged reference data, CSV byte
builders, and in-memory .xlsx generators for flat sheets, multi-sheet
commodity advisories, and color-coded calendars.
"""

from __future__ import annotations

import io
from datetime import datetime
from typing import Any, Sequence

import openpyxl
import pytest
from openpyxl.styles import PatternFill

from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.reference import ReferenceData, load_reference_data


COMMODITY_HEADERS = [
    "[ZONE]",
    "[REGION]",
    "[DISTRICT]",
    "[CROP]",
    "[MONTH/YEAR]",
    "[WEEK]",
    "[START DATE]",
    "[END DATE]",
]

GREEN = "FF00B050"
RED = "FFFF0000"


# ---------------------------------------------------------------------------
# Config and reference data
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_config() -> AgriProcessorConfig:
    """Return an AgriProcessorConfig with all defaults."""
    return AgriProcessorConfig()


@pytest.fixture()
def reference() -> ReferenceData:
    """Return the packaged reference tables."""
    return load_reference_data()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_csv(headers: Sequence[str], *rows: Sequence[Any]) -> bytes:
    """Build CSV bytes from a header row and data rows."""
    lines = [",".join(headers)]
    lines.extend(",".join(str(v) for v in row) for row in rows)
    return ("\n".join(lines) + "\n").encode("utf-8")


def make_xlsx(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Build .xlsx bytes with one worksheet per entry, in insertion order."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def solid_fill(argb: str) -> PatternFill:
    return PatternFill(fill_type="solid", start_color=argb, end_color=argb)


def make_calendar_xlsx(
    header: list[str],
    activities: list[tuple[str, list[int]]],
    title: str = "Calendar",
    argb: str = GREEN,
) -> bytes:
    """Build a color-coded calendar sheet.

    Each activity is a name in column A plus the 1-based column numbers
    (2 = column B) whose cells are filled with *argb*.
    """
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title
    ws.append(header)
    for offset, (name, filled) in enumerate(activities, start=2):
        ws.cell(row=offset, column=1, value=name)
        for column in filled:
            ws.cell(row=offset, column=column).fill = solid_fill(argb)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def commodity_row(
    district: str = "DS004/Accra Metropolitan",
    crop: str = "CT0000000002/Rice",
    week: Any = "21 - 24",
    month_year: str = "March 2025",
) -> list[Any]:
    return [
        "Coastal",
        "REG01/Greater Accra Region",
        district,
        crop,
        month_year,
        week,
        datetime(2025, 3, 3),
        datetime(2025, 3, 28),
    ]


# ---------------------------------------------------------------------------
# Workbook fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def crop_calendar_csv() -> bytes:
    """The two-row crop calendar used by the end-to-end scenario."""
    return make_csv(
        ["District", "Crop", "PlantingStart", "PlantingEnd", "HarvestStart", "HarvestEnd"],
        ["Kumasi Metropolitan", "Maize", "March", "April", "July", "August"],
    )


@pytest.fixture()
def commodity_xlsx() -> bytes:
    """A rice advisory with two stage sheets, a placeholder row and an empty sheet."""
    return make_xlsx(
        {
            "Land Preparation": [
                COMMODITY_HEADERS,
                commodity_row(),
                [
                    "Enter Zone",
                    "Enter Region",
                    "Enter District",
                    "CT0000000002/Rice",
                    "Enter Month/Year",
                    "Enter Week",
                ],
            ],
            "1st Fertilizer": [
                COMMODITY_HEADERS,
                commodity_row(week="30 - 28", month_year="October 2024"),
                commodity_row(district="", month_year="June 2025"),
            ],
            "Notes": [COMMODITY_HEADERS],
        }
    )


@pytest.fixture()
def crop_calendar_xlsx() -> bytes:
    """A color-coded crop calendar with a week timeline in row 1."""
    return make_calendar_xlsx(
        ["Activity", "Week 1", "Week 2", "Week 3", "Week 4"],
        [
            ("Land clearing", [2, 3]),
            ("Planting", [3]),
            ("Weeding", [4]),
            ("Harvest", [5]),
        ],
    )


@pytest.fixture()
def poultry_calendar_xlsx() -> bytes:
    """A layer cycle calendar whose activity names are all poultry terms."""
    return make_calendar_xlsx(
        ["Activity", "Week 1", "Week 2", "Week 3", "Week 4"],
        [
            ("Brooding", [2, 3]),
            ("Vaccination", [3]),
            ("Feeding", [2, 3, 4, 5]),
            ("Egg collection", [5]),
        ],
        argb=RED,
    )
