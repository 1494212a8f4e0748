"""Input validation run before any parsing.

Checks the payload size, that a declared workbook really is a ZIP/OOXML
container, and that the filename extension agrees with the declared type.
All checks are fail-fast: the first fatal error stops further checks.
"""

from __future__ import annotations

import logging
import pathlib

from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.errors import ErrorCode, IngestError
from ingestkit_agri.models import DeclaredFileType

logger = logging.getLogger("ingestkit_agri")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_ZIP_MAGIC = b"PK\x03\x04"

_EXTENSIONS: dict[DeclaredFileType, frozenset[str]] = {
    DeclaredFileType.CSV: frozenset({".csv", ".txt"}),
    DeclaredFileType.EXCEL: frozenset({".xlsx", ".xlsm"}),
}
_KNOWN_EXTENSIONS = frozenset().union(*_EXTENSIONS.values())


# ---------------------------------------------------------------------------
# AgriSecurityScanner
# ---------------------------------------------------------------------------


class AgriSecurityScanner:
    """Validates raw input bytes against the declared file type."""

    def __init__(self, config: AgriProcessorConfig) -> None:
        self._config = config

    def scan(
        self, data: bytes, file_type: DeclaredFileType, original_name: str
    ) -> list[IngestError]:
        """Run all checks.  Returns a list of errors, empty if all pass."""
        errors = self._check(data, file_type, original_name)
        if errors:
            logger.error(
                "ingestkit_agri | file=%s | code=%s | %s",
                original_name,
                errors[0].code.value,
                errors[0].message,
            )
        return errors

    def _check(
        self, data: bytes, file_type: DeclaredFileType, original_name: str
    ) -> list[IngestError]:
        errors: list[IngestError] = []

        # 1. Empty payload
        if not data:
            errors.append(
                IngestError(
                    code=ErrorCode.E_PARSE_EMPTY,
                    message="File is empty (0 bytes)",
                    stage="security",
                )
            )
            return errors

        # 2. Size limit
        max_bytes = self._config.max_file_size_mb * 1024 * 1024
        if len(data) > max_bytes:
            errors.append(
                IngestError(
                    code=ErrorCode.E_SECURITY_TOO_LARGE,
                    message=(
                        f"File size {len(data)} bytes exceeds limit of "
                        f"{self._config.max_file_size_mb} MB"
                    ),
                    stage="security",
                )
            )
            return errors

        # 3. Extension agrees with the declared type
        suffix = pathlib.Path(original_name).suffix.lower()
        if suffix in _KNOWN_EXTENSIONS and suffix not in _EXTENSIONS[file_type]:
            errors.append(
                IngestError(
                    code=ErrorCode.E_SECURITY_EXTENSION_MISMATCH,
                    message=(
                        f"Extension '{suffix}' does not match declared type "
                        f"'{file_type.value}'"
                    ),
                    stage="security",
                )
            )
            return errors

        # 4. Workbooks must be ZIP containers
        if file_type == DeclaredFileType.EXCEL and not data.startswith(_ZIP_MAGIC):
            errors.append(
                IngestError(
                    code=ErrorCode.E_SECURITY_BAD_MAGIC,
                    message="Declared workbook is not an OOXML (ZIP) container",
                    stage="security",
                )
            )

        return errors
