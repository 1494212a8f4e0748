"""Rule-based content-type classification from filename and header tokens.

Rules are evaluated in a fixed order and the first match wins:

1. filename ``crop`` + (``calendar`` | ``schedule``) -> crop calendar
2. filename ``production`` + ``calendar`` -> production calendar
3. filename ``poultry`` + ``calendar`` -> poultry calendar
4. filename ``advisory`` + a commodity keyword -> commodity advisory
5. filename ``agromet`` | ``advisory`` | ``weather`` -> agromet advisory
6. header tokens of the first sample row (see :meth:`ContentTypeClassifier._classify_headers`)
7. otherwise unknown

Rule 4 precedes rule 5, so ``RiceAdvisory.xlsx`` is a commodity advisory.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ingestkit_agri.models import ContentType
from ingestkit_agri.reference import (
    AGROMET_FILENAME_KEYWORDS,
    AGROMET_HEADER_KEYWORDS,
    COMMODITY_ADVISORY_KEYWORDS,
    COMMODITY_HEADER_TOKENS,
    POULTRY_HEADER_KEYWORDS,
)

logger = logging.getLogger("ingestkit_agri")


class ContentTypeClassifier:
    """Decides which of the six content types a file represents."""

    # -- public API ----------------------------------------------------------

    def classify(
        self, filename: str, sample_row: Mapping[str, Any] | None = None
    ) -> ContentType:
        """Classify a file by its name, falling back to its header tokens.

        Args:
            filename: Original filename as uploaded.
            sample_row: First data row; only its keys (the headers) are used.

        Returns:
            The matching :class:`ContentType`, or ``ContentType.UNKNOWN``.
        """
        content_type = self._classify_filename(filename.lower())
        if content_type is None and sample_row:
            content_type = self._classify_headers(sample_row)
        if content_type is None:
            content_type = ContentType.UNKNOWN

        logger.info("Classified %s as %s", filename, content_type.value)
        return content_type

    # -- rules ---------------------------------------------------------------

    @staticmethod
    def _classify_filename(name: str) -> ContentType | None:
        if "crop" in name and ("calendar" in name or "schedule" in name):
            return ContentType.CROP_CALENDAR
        if "production" in name and "calendar" in name:
            return ContentType.PRODUCTION_CALENDAR
        if "poultry" in name and "calendar" in name:
            return ContentType.POULTRY_CALENDAR
        if "advisory" in name and any(k in name for k in COMMODITY_ADVISORY_KEYWORDS):
            return ContentType.COMMODITY_ADVISORY
        if any(k in name for k in AGROMET_FILENAME_KEYWORDS):
            return ContentType.AGROMET_ADVISORY
        return None

    @staticmethod
    def _classify_headers(sample_row: Mapping[str, Any]) -> ContentType | None:
        """Match against all header names joined into one lowercase string."""
        headers = " ".join(str(key) for key in sample_row.keys()).lower()

        if "crop" in headers and ("plant" in headers or "harvest" in headers):
            return ContentType.CROP_CALENDAR
        if "production" in headers or "activity" in headers:
            return ContentType.PRODUCTION_CALENDAR
        if any(k in headers for k in AGROMET_HEADER_KEYWORDS):
            return ContentType.AGROMET_ADVISORY
        if any(k in headers for k in POULTRY_HEADER_KEYWORDS):
            return ContentType.POULTRY_CALENDAR
        if all(token in headers for token in COMMODITY_HEADER_TOKENS):
            return ContentType.COMMODITY_ADVISORY
        return None
