"""Schema-driven record parsing.

:class:`RecordParser` turns raw rows into immutable canonical records using
a :class:`~ingestkit_agri.schemas.RecordSchema`.  The flat content types are
parsed strictly: the first row missing a required field aborts the whole
batch with :class:`~ingestkit_agri.errors.RowValidationError`.
:class:`CommodityAdvisoryParser` is the lenient multi-sheet variant.  It skips
bad rows (and untouched template rows), records an ``IngestError`` warning for
each one, and carries on across every sheet.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from pydantic import BaseModel

from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.errors import ErrorCode, IngestError, RowValidationError
from ingestkit_agri.models import CanonicalRecord, ContentType
from ingestkit_agri.normalize import is_blank, is_placeholder_row
from ingestkit_agri.reference import ReferenceData, load_reference_data
from ingestkit_agri.schemas import (
    COMMODITY_ADVISORY_SCHEMA,
    COMMODITY_PLACEHOLDER_FIELDS,
    SCHEMAS,
    RecordSchema,
    RowContext,
)

logger = logging.getLogger("ingestkit_agri")

# Sheet name used when commodity rows arrive from a single-sheet source.
DEFAULT_ADVISORY_SHEET = "General Advisory"


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordParser:
    """Builds canonical records for one content type.

    Parameters
    ----------
    schema:
        Field layout of the target record type.
    config:
        Pipeline configuration (week bounds, logging policy).
    reference:
        Reference tables; defaults to the process-wide instance.
    """

    def __init__(
        self,
        schema: RecordSchema,
        config: AgriProcessorConfig | None = None,
        reference: ReferenceData | None = None,
    ) -> None:
        self._schema = schema
        self._config = config or AgriProcessorConfig()
        self._reference = reference or load_reference_data(
            self._config.reference_data_path
        )

    @property
    def schema(self) -> RecordSchema:
        return self._schema

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, rows: Sequence[Mapping[str, Any]]) -> list[CanonicalRecord]:
        """Parse every row, aborting on the first invalid one.

        Raises
        ------
        RowValidationError
            If a row lacks one of the schema's required fields.
        """
        timestamp = _timestamp_ms()
        created_at = _now_iso()
        records = [
            self.build_record(row, index, timestamp=timestamp, created_at=created_at)
            for index, row in enumerate(rows)
        ]
        return self._drop_incomplete(records)

    def build_record(
        self,
        row: Mapping[str, Any],
        index: int,
        *,
        timestamp: int,
        created_at: str,
        sheet_name: str | None = None,
        record_index: int | None = None,
    ) -> CanonicalRecord:
        """Build the record for one row.

        ``index`` is the row position within its sheet; ``record_index``
        (defaulting to ``index``) goes into the generated id.
        """
        context = RowContext(
            index=index,
            config=self._config,
            reference=self._reference,
            sheet_name=sheet_name,
        )
        values = self._schema.resolve(row)
        if self._schema.post_process is not None:
            values = self._schema.post_process(values, context)
        self._check_required(values, index, sheet_name)

        suffix = index if record_index is None else record_index
        return self._schema.record_model(
            id=f"{self._schema.id_prefix}_{timestamp}_{suffix}",
            created_at=created_at,
            **values,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _check_required(
        self, values: Mapping[str, Any], index: int, sheet_name: str | None
    ) -> None:
        missing = [name for name in self._schema.required_fields if is_blank(values.get(name))]
        if not missing:
            return
        content_type = self._schema.content_type.value
        raise RowValidationError(
            f"Row {index + 1}: missing required field(s) {', '.join(missing)} "
            f"for {content_type}",
            row_index=index,
            sheet_name=sheet_name,
        )

    def _drop_incomplete(self, records: list[BaseModel]) -> list[CanonicalRecord]:
        """Filter records still missing a required discriminator field."""
        required = self._schema.required_fields
        kept = [r for r in records if all(not is_blank(getattr(r, f)) for f in required)]
        if len(kept) != len(records):
            logger.warning(
                "Dropped %d %s record(s) missing required fields",
                len(records) - len(kept),
                self._schema.content_type.value,
            )
        return kept


class CommodityAdvisoryParser(RecordParser):
    """Lenient parser for multi-sheet commodity advisories.

    Every sheet is a production stage; its name becomes the ``stage`` of the
    records built from it.  Row ids are numbered across all sheets so they
    stay unique within one result.
    """

    def __init__(
        self,
        config: AgriProcessorConfig | None = None,
        reference: ReferenceData | None = None,
    ) -> None:
        super().__init__(COMMODITY_ADVISORY_SCHEMA, config, reference)

    def parse_sheets(
        self, sheets: Mapping[str, Sequence[Mapping[str, Any]]]
    ) -> tuple[list[CanonicalRecord], list[IngestError]]:
        """Parse all sheets, skipping bad rows.

        Returns
        -------
        tuple[list[CanonicalRecord], list[IngestError]]
            The records in sheet then row order, and one warning per
            skipped row.
        """
        timestamp = _timestamp_ms()
        created_at = _now_iso()
        records: list[CanonicalRecord] = []
        warnings: list[IngestError] = []
        record_index = 0

        for sheet_name, rows in sheets.items():
            sheet_count = 0
            for index, row in enumerate(rows):
                if self._config.skip_placeholder_rows and self._is_placeholder(row):
                    warnings.append(
                        IngestError(
                            code=ErrorCode.W_ROW_PLACEHOLDER,
                            message=f"Row {index + 1}: template placeholder row skipped",
                            sheet_name=sheet_name,
                            row_index=index,
                            stage="parse",
                            recoverable=True,
                        )
                    )
                    continue
                try:
                    record = self.build_record(
                        row,
                        index,
                        timestamp=timestamp,
                        created_at=created_at,
                        sheet_name=sheet_name,
                        record_index=record_index,
                    )
                except (RowValidationError, ValueError) as exc:
                    logger.warning(
                        "ingestkit_agri | sheet=%s | row=%d | code=%s | %s",
                        sheet_name,
                        index + 1,
                        ErrorCode.W_ROW_SKIPPED.value,
                        exc,
                    )
                    warnings.append(
                        IngestError(
                            code=ErrorCode.W_ROW_SKIPPED,
                            message=str(exc),
                            sheet_name=sheet_name,
                            row_index=index,
                            stage="parse",
                            recoverable=True,
                        )
                    )
                    continue
                records.append(record)
                record_index += 1
                sheet_count += 1
            logger.info(
                "Parsed %d commodity advisory record(s) from sheet '%s'",
                sheet_count,
                sheet_name,
            )

        return self._drop_incomplete(records), warnings

    def _is_placeholder(self, row: Mapping[str, Any]) -> bool:
        values = self._schema.resolve(row)
        return is_placeholder_row([values[name] for name in COMMODITY_PLACEHOLDER_FIELDS])


def create_parser(
    content_type: ContentType,
    config: AgriProcessorConfig | None = None,
    reference: ReferenceData | None = None,
) -> RecordParser:
    """Return the parser for *content_type*.

    Raises:
        KeyError: If *content_type* has no schema (``unknown``).
    """
    if content_type == ContentType.COMMODITY_ADVISORY:
        return CommodityAdvisoryParser(config, reference)
    return RecordParser(SCHEMAS[content_type], config, reference)
