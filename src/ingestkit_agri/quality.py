"""Post-parse data quality validation.

The quality score counts only records that pass their content type's
required-field check.  Everything else reported here (unknown districts,
out-of-range weeks, missing or malformed codes) is an advisory warning and
never changes the score.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Sequence

from pydantic import BaseModel

from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.models import ContentType, DataQualityReport
from ingestkit_agri.normalize import is_blank
from ingestkit_agri.reference import ReferenceData, load_reference_data

logger = logging.getLogger("ingestkit_agri")

REQUIRED_FIELDS: dict[ContentType, tuple[str, ...]] = {
    ContentType.CROP_CALENDAR: ("district", "crop"),
    ContentType.PRODUCTION_CALENDAR: ("district", "activity"),
    ContentType.AGROMET_ADVISORY: ("district", "advisory"),
    ContentType.POULTRY_CALENDAR: ("district", "activity"),
    ContentType.COMMODITY_ADVISORY: ("district", "crop"),
}

_CODE_PATTERNS: tuple[tuple[str, str, re.Pattern[str]], ...] = (
    ("region_code", "region code", re.compile(r"^REG\d{2}$")),
    ("district_code", "district code", re.compile(r"^DS\d{3}$")),
    ("commodity_code", "commodity code", re.compile(r"^CT\d{4}(\d{6})?$")),
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class DataQualityValidator:
    """Scores a batch of canonical records and collects warnings."""

    def __init__(
        self,
        config: AgriProcessorConfig | None = None,
        reference: ReferenceData | None = None,
    ) -> None:
        self._config = config or AgriProcessorConfig()
        self._reference = reference or load_reference_data(
            self._config.reference_data_path
        )
        self._known_districts = tuple(d.lower() for d in self._reference.known_districts)

    def validate(
        self, records: Sequence[BaseModel], content_type: ContentType
    ) -> DataQualityReport:
        """Return the quality report for *records* of *content_type*.

        Warnings are numbered by 1-based record position.
        """
        required = REQUIRED_FIELDS.get(content_type, ())
        warnings: list[str] = []
        valid = 0

        for position, record in enumerate(records, start=1):
            if all(not is_blank(getattr(record, name, None)) for name in required):
                valid += 1

            if content_type == ContentType.CROP_CALENDAR:
                warnings.extend(self._district_warnings(record, position))
            elif content_type == ContentType.POULTRY_CALENDAR:
                warnings.extend(self._week_warnings(record, position))
            elif content_type == ContentType.COMMODITY_ADVISORY:
                if is_blank(record.commodity_code):
                    warnings.append(f"Row {position}: Missing commodity code")
                warnings.extend(self._week_warnings(record, position))
                warnings.extend(self._code_warnings(record, position))

        total = len(records)
        quality = _round_half_up(100 * valid / total) if total else 0
        report = DataQualityReport(
            total=total,
            valid=valid,
            invalid=total - valid,
            quality=quality,
            warnings=warnings,
        )
        logger.info(
            "Data quality for %s: %d/%d valid (%d%%), %d warning(s)",
            content_type.value,
            valid,
            total,
            quality,
            len(warnings),
        )
        return report

    # ------------------------------------------------------------------
    # Warning checks
    # ------------------------------------------------------------------

    def _district_warnings(self, record: BaseModel, position: int) -> list[str]:
        district = record.district
        needle = district.lower()
        if any(needle in known for known in self._known_districts):
            return []
        return [f'Row {position}: District "{district}" not recognized']

    def _week_warnings(self, record: BaseModel, position: int) -> list[str]:
        low, high = self._config.week_min, self._config.week_max
        start, end = record.start_week, record.end_week
        if low <= start <= high and low <= end <= high:
            return []
        return [f"Row {position}: Invalid week range ({start}-{end})"]

    @staticmethod
    def _code_warnings(record: BaseModel, position: int) -> list[str]:
        warnings = []
        for attribute, label, pattern in _CODE_PATTERNS:
            code = getattr(record, attribute)
            if code and not pattern.match(code):
                warnings.append(f"Row {position}: Invalid {label} ({code})")
        return warnings
