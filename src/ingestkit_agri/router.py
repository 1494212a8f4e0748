"""AgriRouter -- orchestrator and public API for the ingestkit-agri pipeline.

Routes an agricultural data file through the full pipeline:

1. Validate the declared file type and run the security pre-checks.
2. Extract rows with :class:`TabularExtractor`.  Workbooks whose filename
   marks them as commodity advisories are read sheet by sheet and, when
   enabled, analyzed cell by cell with :class:`StructuralAnalyzer`.
3. Classify the content with :class:`ContentTypeClassifier`.
4. Parse rows into canonical records with the schema-driven parsers.
5. Score the records with :class:`DataQualityValidator`.
6. Return a fully-assembled :class:`ParseResult`.

The router is **fail-closed**: any fatal condition raises an
:class:`~ingestkit_agri.errors.AgriIngestException` subclass and no partial
result is returned.
"""

from __future__ import annotations

import logging
import pathlib
import time
from datetime import datetime, timezone
from typing import Any

from ingestkit_agri.classifier import ContentTypeClassifier
from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.errors import (
    ClassificationError,
    ErrorCode,
    FileAccessError,
    FormatError,
    IngestError,
)
from ingestkit_agri.extractor import RawRow, TabularExtractor
from ingestkit_agri.models import (
    CanonicalRecord,
    ContentType,
    DeclaredFileType,
    ParseMetadata,
    ParseResult,
    WorkbookAnalysis,
)
from ingestkit_agri.parsers import (
    DEFAULT_ADVISORY_SHEET,
    CommodityAdvisoryParser,
    create_parser,
)
from ingestkit_agri.quality import DataQualityValidator
from ingestkit_agri.reference import ReferenceData, load_reference_data
from ingestkit_agri.security import AgriSecurityScanner
from ingestkit_agri.structure import StructuralAnalyzer, color_statistics

logger = logging.getLogger("ingestkit_agri")


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


class AgriRouter:
    """Drives one file at a time from raw bytes to a :class:`ParseResult`.

    The router holds no per-file state, so one instance may serve
    concurrent calls.

    Parameters
    ----------
    config:
        Pipeline configuration.  Uses defaults when *None*.
    reference:
        Reference tables.  Loaded from ``config.reference_data_path`` (or the
        packaged data) when *None*.
    """

    def __init__(
        self,
        config: AgriProcessorConfig | None = None,
        reference: ReferenceData | None = None,
    ) -> None:
        self._config = config or AgriProcessorConfig()
        self._reference = reference or load_reference_data(
            self._config.reference_data_path
        )

        self._security = AgriSecurityScanner(self._config)
        self._extractor = TabularExtractor(self._config)
        self._classifier = ContentTypeClassifier()
        self._analyzer = StructuralAnalyzer(self._config)
        self._validator = DataQualityValidator(self._config, self._reference)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(
        self,
        file_path: str,
        file_type: DeclaredFileType | str,
        original_name: str | None = None,
    ) -> ParseResult:
        """Read a file from disk and parse it.

        Parameters
        ----------
        file_path:
            Filesystem path of the uploaded file.
        file_type:
            Declared type token, ``"csv"`` or ``"excel"``.
        original_name:
            Filename as uploaded; drives classification.  Defaults to the
            basename of *file_path*.

        Raises
        ------
        FileAccessError
            If the file cannot be read.
        """
        path = pathlib.Path(file_path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            logger.error("Cannot read %s: %s", file_path, exc)
            raise FileAccessError(f"Cannot read file {file_path}: {exc}") from exc
        return self.process_bytes(data, file_type, original_name or path.name)

    def process_bytes(
        self,
        data: bytes,
        file_type: DeclaredFileType | str,
        original_name: str,
    ) -> ParseResult:
        """Parse an in-memory file.

        Returns
        -------
        ParseResult
            Content type, canonical records, quality report and metadata.

        Raises
        ------
        FormatError
            Unsupported type, failed pre-checks, unreadable content, or no
            records after parsing.
        ClassificationError
            If the content type resolves to ``unknown``.
        RowValidationError
            If a strictly-parsed content type has a row missing a required
            field.
        """
        start = time.monotonic()
        config = self._config

        # ----------------------------------------------------------
        # Step 1: Declared type and security pre-checks
        # ----------------------------------------------------------
        declared = self._declared_type(file_type)
        security_errors = self._security.scan(data, declared, original_name)
        if security_errors:
            first = security_errors[0]
            raise FormatError(first.message, code=first.code, stage=first.stage)

        # ----------------------------------------------------------
        # Step 2: Extract
        # ----------------------------------------------------------
        warnings: list[IngestError] = []
        rows: list[RawRow] = []
        sheets: dict[str, list[RawRow]] | None = None
        analysis: WorkbookAnalysis | None = None

        if declared == DeclaredFileType.CSV:
            rows = self._extractor.extract_delimited(data)
        elif self._classifier.classify(original_name) == ContentType.COMMODITY_ADVISORY:
            sheets, analysis = self._extract_workbook(data, original_name, warnings)
        else:
            rows = self._extractor.extract_spreadsheet(data)

        if config.log_sample_data and rows:
            logger.debug("First row of %s: %s", original_name, rows[0])

        # ----------------------------------------------------------
        # Step 3: Classify
        # ----------------------------------------------------------
        if sheets is not None:
            content_type = ContentType.COMMODITY_ADVISORY
        else:
            content_type = self._classifier.classify(original_name, rows[0])
            if (
                content_type == ContentType.COMMODITY_ADVISORY
                and declared == DeclaredFileType.EXCEL
            ):
                # Headers marked the first sheet as an advisory; the other
                # stage sheets belong to it too.
                sheets, analysis = self._extract_workbook(data, original_name, warnings)
                rows = []

        if content_type == ContentType.UNKNOWN:
            logger.error(
                "ingestkit_agri | file=%s | code=%s | headers=%s",
                original_name,
                ErrorCode.E_CLASSIFY_UNKNOWN.value,
                list(rows[0].keys()) if rows else [],
            )
            raise ClassificationError(
                f"Unable to determine content type for {original_name}"
            )

        # ----------------------------------------------------------
        # Step 4: Parse
        # ----------------------------------------------------------
        records = self._parse(content_type, rows, sheets, warnings)
        if not records:
            logger.error(
                "ingestkit_agri | file=%s | code=%s",
                original_name,
                ErrorCode.E_PARSE_NO_RECORDS.value,
            )
            raise FormatError(
                f"No valid records found in {original_name}",
                code=ErrorCode.E_PARSE_NO_RECORDS,
                stage="parse",
            )

        # ----------------------------------------------------------
        # Step 5: Data quality
        # ----------------------------------------------------------
        quality = self._validator.validate(records, content_type)

        # ----------------------------------------------------------
        # Step 6: Assemble result
        # ----------------------------------------------------------
        metadata = ParseMetadata(
            original_name=original_name,
            record_count=len(records),
            parsed_at=datetime.now(timezone.utc).isoformat(),
            data_quality=quality,
            is_multi_sheet=sheets is not None,
            sheet_names=list(sheets) if sheets is not None else [],
            color_statistics=(
                color_statistics(analysis.sheets.values()) if analysis else None
            ),
            parser_version=config.parser_version,
        )
        result = ParseResult(
            content_type=content_type,
            records=records,
            metadata=metadata,
            warnings=warnings,
            sheets=analysis.sheets if analysis else None,
            calendar_type=analysis.calendar_type if analysis else None,
        )

        logger.info(
            "Processed %s: type=%s records=%d quality=%d%% warnings=%d time=%.3fs",
            original_name,
            content_type.value,
            len(records),
            quality.quality,
            len(warnings),
            time.monotonic() - start,
        )
        return result

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _extract_workbook(
        self, data: bytes, original_name: str, warnings: list[IngestError]
    ) -> tuple[dict[str, list[RawRow]], WorkbookAnalysis | None]:
        """Extract every sheet of a commodity workbook, plus its structure."""
        sheets = self._extractor.extract_multi_sheet(data)
        if not sheets:
            raise FormatError(
                f"No sheet in {original_name} contains data rows",
                code=ErrorCode.E_PARSE_EMPTY,
            )
        analysis: WorkbookAnalysis | None = None
        if self._config.analyze_structure:
            analysis = self._analyzer.analyze(data)
            warnings.extend(analysis.warnings)
        return sheets, analysis

    def _parse(
        self,
        content_type: ContentType,
        rows: list[RawRow],
        sheets: dict[str, list[RawRow]] | None,
        warnings: list[IngestError],
    ) -> list[CanonicalRecord]:
        if content_type == ContentType.COMMODITY_ADVISORY:
            parser = CommodityAdvisoryParser(self._config, self._reference)
            records, row_warnings = parser.parse_sheets(
                sheets if sheets is not None else {DEFAULT_ADVISORY_SHEET: rows}
            )
            warnings.extend(row_warnings)
            return records
        return create_parser(content_type, self._config, self._reference).parse(rows)

    @staticmethod
    def _declared_type(file_type: Any) -> DeclaredFileType:
        try:
            return DeclaredFileType(file_type)
        except ValueError as exc:
            raise FormatError(
                f"Unsupported file type: {file_type!r}",
                code=ErrorCode.E_PARSE_UNSUPPORTED_TYPE,
            ) from exc


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_default_router(**overrides: Any) -> AgriRouter:
    """Create an AgriRouter with the packaged reference data.

    Keyword arguments are passed to :class:`AgriProcessorConfig`, except
    ``config`` (a ready-made config) and ``reference`` (ready-made
    reference tables).
    """
    config = overrides.pop("config", None)
    reference = overrides.pop("reference", None)
    if config is None:
        config = AgriProcessorConfig(**overrides)
    return AgriRouter(config=config, reference=reference)
