"""Normalized error codes, structured error model, and exceptions for ingestkit-agri.

Fatal failures are raised as subclasses of :class:`AgriIngestException`, each
carrying an :class:`IngestError` for inspection and serialization.  Recoverable
events (skipped rows, skipped sheets) are collected as ``IngestError`` warnings
on the :class:`~ingestkit_agri.models.ParseResult`.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Normalized error codes for the ingestkit-agri pipeline.

    Codes prefixed with ``E_`` are errors; codes prefixed with ``W_`` are
    non-fatal warnings.
    """

    # File access
    E_FILE_ACCESS = "E_FILE_ACCESS"

    # Parse errors
    E_PARSE_CORRUPT = "E_PARSE_CORRUPT"
    E_PARSE_EMPTY = "E_PARSE_EMPTY"
    E_PARSE_DELIMITED = "E_PARSE_DELIMITED"
    E_PARSE_INSUFFICIENT_ROWS = "E_PARSE_INSUFFICIENT_ROWS"
    E_PARSE_UNSUPPORTED_TYPE = "E_PARSE_UNSUPPORTED_TYPE"
    E_PARSE_NO_RECORDS = "E_PARSE_NO_RECORDS"

    # Security errors
    E_SECURITY_TOO_LARGE = "E_SECURITY_TOO_LARGE"
    E_SECURITY_BAD_MAGIC = "E_SECURITY_BAD_MAGIC"
    E_SECURITY_EXTENSION_MISMATCH = "E_SECURITY_EXTENSION_MISMATCH"

    # Classification errors
    E_CLASSIFY_UNKNOWN = "E_CLASSIFY_UNKNOWN"

    # Row errors
    E_ROW_MISSING_REQUIRED = "E_ROW_MISSING_REQUIRED"

    # Warnings (non-fatal)
    W_ROW_SKIPPED = "W_ROW_SKIPPED"
    W_ROW_PLACEHOLDER = "W_ROW_PLACEHOLDER"
    W_SHEET_SKIPPED_EMPTY = "W_SHEET_SKIPPED_EMPTY"
    W_SHEET_SKIPPED_CHART = "W_SHEET_SKIPPED_CHART"


class IngestError(BaseModel):
    """Structured error with code, message, and context.

    ``row_index`` is the zero-based position of the offending data row
    within its sheet (or within the delimited file), when one applies.
    """

    code: ErrorCode
    message: str
    sheet_name: str | None = None
    row_index: int | None = None
    stage: str | None = None
    recoverable: bool = False


class AgriIngestException(Exception):
    """Raisable exception wrapping an :class:`IngestError` data model.

    Carries the structured error as the ``.error`` attribute.  Convenience
    properties delegate to it for the common fields.
    """

    default_code: ErrorCode = ErrorCode.E_PARSE_CORRUPT
    default_stage: str | None = None

    def __init__(self, message: str, **kwargs: object) -> None:
        kwargs.setdefault("code", self.default_code)
        kwargs.setdefault("stage", self.default_stage)
        self.error = IngestError(message=message, **kwargs)  # type: ignore[arg-type]
        super().__init__(self.error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stage(self) -> str | None:
        return self.error.stage

    @property
    def recoverable(self) -> bool:
        return self.error.recoverable


class FormatError(AgriIngestException):
    """Corrupt or empty input, or too few rows to parse."""

    default_code = ErrorCode.E_PARSE_CORRUPT
    default_stage = "extract"


class ClassificationError(AgriIngestException):
    """The content type of a file resolved to ``unknown``."""

    default_code = ErrorCode.E_CLASSIFY_UNKNOWN
    default_stage = "classify"


class RowValidationError(AgriIngestException):
    """A required field is missing at a specific row."""

    default_code = ErrorCode.E_ROW_MISSING_REQUIRED
    default_stage = "parse"

    @property
    def row_index(self) -> int | None:
        return self.error.row_index


class FileAccessError(AgriIngestException):
    """The input file could not be read."""

    default_code = ErrorCode.E_FILE_ACCESS
    default_stage = "read"
