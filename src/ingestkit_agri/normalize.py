"""Stateless value normalization shared by every record parser.

None of these functions raise on bad input: each has a documented fallback
(the cleaned input, an empty string, or a default range).
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Mapping, NamedTuple, Sequence

import pandas as pd

from ingestkit_agri.reference import MONTHS, PLACEHOLDER_VALUES, SEASON_MONTHS

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_YEAR = re.compile(r"(\d{4})")
_EXCEL_EPOCH = datetime(1900, 1, 1)

WEEK_MIN = 1
WEEK_MAX = 52


class WeekRange(NamedTuple):
    start: int
    end: int


# ---------------------------------------------------------------------------
# Primitive helpers
# ---------------------------------------------------------------------------


def is_blank(value: Any) -> bool:
    """True for ``None``, NaN, and strings that are empty after stripping."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def leading_int(value: Any) -> int | None:
    """Parse the integer prefix of *value* (``"12abc"`` -> 12), or ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else int(value)
    match = _LEADING_INT.match(clean_string(value))
    return int(match.group(1)) if match else None


def clamp_week(value: int, week_min: int = WEEK_MIN, week_max: int = WEEK_MAX) -> int:
    return max(week_min, min(week_max, value))


def _format_temporal(value: date) -> str:
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.strftime("%Y-%m-%d")
        return value.isoformat(sep=" ")
    return value.isoformat()


# ---------------------------------------------------------------------------
# Field normalizers
# ---------------------------------------------------------------------------


def clean_string(value: Any) -> str:
    """Stringify and trim *value*.  ``None`` and NaN become ``""``.

    Integral floats (how spreadsheets store whole numbers) lose their
    ``.0`` suffix.
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (datetime, date)):
        return _format_temporal(value)
    return str(value).strip()


def parse_month(value: Any) -> str:
    """Resolve *value* to a month name.

    Tries, in order: an exact month name, a month number 1-12, then a
    case-insensitive substring match in either direction.  Falls back to the
    cleaned input.
    """
    cleaned = clean_string(value)
    if not cleaned:
        return ""
    if cleaned in MONTHS:
        return cleaned

    number = leading_int(cleaned)
    if number is not None and 1 <= number <= 12:
        return MONTHS[number - 1]

    lowered = cleaned.lower()
    for month in MONTHS:
        candidate = month.lower()
        if candidate in lowered or lowered in candidate:
            return month
    return cleaned


def parse_date(value: Any) -> str:
    """Parse *value* flexibly into ``YYYY-MM-DD``, else return it cleaned."""
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    cleaned = clean_string(value)
    if not cleaned:
        return ""
    try:
        parsed = pd.to_datetime(cleaned, errors="coerce")
    except (ValueError, OverflowError):
        return cleaned
    if pd.isna(parsed):
        return cleaned
    return parsed.strftime("%Y-%m-%d")


def parse_excel_serial_date(value: Any) -> str:
    """Convert an Excel serial day number to ``YYYY-MM-DD``.

    Day 1 is 1900-01-01.  Falsy or non-numeric input yields ``""``.
    """
    if isinstance(value, bool) or not value:
        return ""
    try:
        serial = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return ""
    if math.isnan(serial) or math.isinf(serial):
        return ""
    try:
        moment = _EXCEL_EPOCH + timedelta(days=serial - 1)
    except OverflowError:
        return ""
    return moment.strftime("%Y-%m-%d")


def parse_sheet_date(value: Any) -> str:
    """Date cell from a workbook: native dates pass through, numbers are serials."""
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    return parse_excel_serial_date(value)


def parse_week_range(
    value: Any, week_min: int = WEEK_MIN, week_max: int = WEEK_MAX
) -> WeekRange:
    """Parse ``"21 - 24"`` or ``"7"`` into a clamped :class:`WeekRange`.

    Reversed ranges are returned as-is; ordering is the caller's concern.
    Only a single hyphen marks a range, so ``"1-2-3"`` reads as week 1.
    Unparseable input yields ``WeekRange(1, 1)``.
    """
    text = clean_string(value)
    parts = text.split("-")
    if len(parts) == 2:
        start, end = leading_int(parts[0]), leading_int(parts[1])
        if start is not None and end is not None:
            return WeekRange(
                clamp_week(start, week_min, week_max),
                clamp_week(end, week_min, week_max),
            )

    single = leading_int(text)
    if single is not None:
        week = clamp_week(single, week_min, week_max)
        return WeekRange(week, week)
    return WeekRange(week_min, week_min)


def parse_int(value: Any, default: int = 0) -> int:
    number = leading_int(value)
    return default if number is None else number


# ---------------------------------------------------------------------------
# Alias resolution
# ---------------------------------------------------------------------------


def resolve_field(row: Mapping[str, Any], aliases: Sequence[str], default: Any = "") -> Any:
    """Return the value of the first alias in *row* that is not blank."""
    for alias in aliases:
        value = row.get(alias)
        if not is_blank(value):
            return value
    return default


# ---------------------------------------------------------------------------
# Commodity advisory helpers
# ---------------------------------------------------------------------------


def split_coded_value(
    value: Any, code_prefix: str, names: Mapping[str, str] | None = None
) -> tuple[str, str]:
    """Split ``"CT0000000001/Maize"`` into ``("CT0000000001", "Maize")``.

    Only the segment after the first slash is the name, so
    ``"CT01/Maize/White"`` gives ``"Maize"``.  A bare code (``"REG05"``) is
    resolved through *names* when possible.  Anything else is treated as a
    name without a code.
    """
    text = clean_string(value)
    if "/" in text:
        parts = text.split("/")
        return parts[0].strip(), parts[1].strip()
    if re.fullmatch(rf"{code_prefix}\d+", text):
        return text, (names or {}).get(text, text)
    return "", text


def normalize_production_stage(stage_name: str, stages: Mapping[str, str]) -> str:
    """Map a sheet name such as ``"1st fertilizer"`` to a canonical stage."""
    stripped = stage_name.strip()
    if not stripped:
        return "Unknown Stage"

    normalized = stripped.lower()
    if normalized in stages:
        return stages[normalized]
    for key, canonical in stages.items():
        if key in normalized or normalized in key:
            return canonical
    return stripped[:1].upper() + stripped[1:]


def extract_year(month_year: Any, default: int) -> int:
    match = _YEAR.search(clean_string(month_year))
    return int(match.group(1)) if match else default


def determine_season(month_year: Any) -> str:
    """Major (Mar-Jul), Minor (Sep-Nov) or Dry (Dec-Feb) from a month/year label."""
    text = clean_string(month_year).lower()
    if not text:
        return "Unknown"
    for season, months in SEASON_MONTHS:
        if any(month in text for month in months):
            return season
    return "Unknown"


def is_placeholder_row(values: Sequence[Any]) -> bool:
    """True when every value is blank or an untouched template prompt."""
    return all(clean_string(v).lower() in PLACEHOLDER_VALUES for v in values)


def extract_breed_type(text: str, breeds: Mapping[str, str]) -> str:
    lowered = text.lower()
    for key, breed in breeds.items():
        if re.search(rf"\b{re.escape(key)}", lowered):
            return breed
    return ""
