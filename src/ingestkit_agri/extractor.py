"""Tabular extraction: raw file bytes to header-keyed rows.

Delimited input is read with pandas (every column as ``str``); workbooks are
read with openpyxl in ``data_only`` mode so formula cells yield their cached
values.  Nothing here knows about agricultural content.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Iterable

import openpyxl
import pandas as pd
from openpyxl.workbook.workbook import Workbook

from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.errors import ErrorCode, FormatError
from ingestkit_agri.normalize import clean_string, is_blank

logger = logging.getLogger("ingestkit_agri")

RawRow = dict[str, Any]


class TabularExtractor:
    """Turns CSV or workbook bytes into lists of :data:`RawRow`.

    Parameters
    ----------
    config:
        Pipeline configuration; only ``csv_encoding`` is consulted.
    """

    def __init__(self, config: AgriProcessorConfig | None = None) -> None:
        self._config = config or AgriProcessorConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract_delimited(self, data: bytes) -> list[RawRow]:
        """Parse CSV bytes whose first line is the header.

        Raises
        ------
        FormatError
            If any row is malformed (too many or too few fields) or if no
            data rows remain.
        """
        try:
            frame = pd.read_csv(
                io.BytesIO(data),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding=self._config.csv_encoding,
            )
        except pd.errors.EmptyDataError as exc:
            raise FormatError(
                "Delimited file contains no data", code=ErrorCode.E_PARSE_EMPTY
            ) from exc
        except ValueError as exc:
            # ParserError and UnicodeDecodeError are both ValueErrors.
            logger.error("Delimited parse failed: %s", exc)
            raise FormatError(
                f"Delimited parsing failed: {exc}", code=ErrorCode.E_PARSE_DELIMITED
            ) from exc

        if not frame.empty and not isinstance(frame.index, pd.RangeIndex):
            # Every row is longer than the header; pandas moved the surplus
            # leading fields into the index.
            raise FormatError(
                "Delimited parsing failed: data rows have more fields than the header",
                code=ErrorCode.E_PARSE_DELIMITED,
                row_index=0,
            )

        short_rows = [int(i) for i in frame.index[frame.isna().any(axis=1)]]
        if short_rows:
            first = short_rows[0]
            raise FormatError(
                f"Delimited parsing failed: row {first + 2} has too few fields "
                f"({len(short_rows)} malformed row(s))",
                code=ErrorCode.E_PARSE_DELIMITED,
                row_index=first,
            )

        if frame.empty:
            raise FormatError(
                "Delimited file has a header but no data rows",
                code=ErrorCode.E_PARSE_EMPTY,
            )

        rows = frame.to_dict(orient="records")
        logger.debug("Extracted %d delimited rows, %d columns", len(rows), len(frame.columns))
        return rows

    def extract_spreadsheet(self, data: bytes) -> list[RawRow]:
        """Rows of the first worksheet, keyed by its first row.

        Missing trailing cells become ``""``.  Rows that are entirely blank
        are dropped.

        Raises
        ------
        FormatError
            If the workbook cannot be opened or holds fewer than a header
            row plus one data row.
        """
        wb = self._open_workbook(data)
        try:
            if not wb.worksheets:
                raise FormatError(
                    "Workbook contains no worksheets", code=ErrorCode.E_PARSE_EMPTY
                )
            ws = wb.worksheets[0]
            values = list(ws.iter_rows(values_only=True))
        finally:
            wb.close()

        if len(values) < 2:
            raise FormatError(
                f"Sheet '{ws.title}' needs a header row and at least one data row",
                code=ErrorCode.E_PARSE_INSUFFICIENT_ROWS,
                sheet_name=ws.title,
            )

        rows = _rows_from_values(values)
        if not rows:
            raise FormatError(
                f"Sheet '{ws.title}' has a header but every data row is blank",
                code=ErrorCode.E_PARSE_INSUFFICIENT_ROWS,
                sheet_name=ws.title,
            )
        logger.debug("Extracted %d rows from sheet '%s'", len(rows), ws.title)
        return rows

    def extract_multi_sheet(self, data: bytes) -> dict[str, list[RawRow]]:
        """Rows of every worksheet keyed by sheet name.

        Each sheet uses its own first row as headers.  Blank rows are
        discarded, and sheets left without rows are omitted.
        """
        wb = self._open_workbook(data)
        sheets: dict[str, list[RawRow]] = {}
        try:
            for ws in wb.worksheets:
                values = list(ws.iter_rows(values_only=True))
                rows = _rows_from_values(values) if len(values) >= 2 else []
                if not rows:
                    logger.warning(
                        "ingestkit_agri | sheet=%s | code=%s | no data rows",
                        ws.title,
                        ErrorCode.W_SHEET_SKIPPED_EMPTY.value,
                    )
                    continue
                sheets[ws.title] = rows
        finally:
            wb.close()

        logger.debug(
            "Extracted %d sheet(s): %s",
            len(sheets),
            ", ".join(f"{name}={len(rows)}" for name, rows in sheets.items()),
        )
        return sheets

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _open_workbook(data: bytes) -> Workbook:
        try:
            return openpyxl.load_workbook(
                io.BytesIO(data), read_only=True, data_only=True
            )
        except Exception as exc:
            logger.error("Workbook open failed: %s", exc)
            raise FormatError(
                f"Cannot open workbook: {exc}", code=ErrorCode.E_PARSE_CORRUPT
            ) from exc


def _raw_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _rows_from_values(values: list[tuple[Any, ...]]) -> list[RawRow]:
    """Zip data rows with the header row, dropping all-blank rows."""
    headers = [clean_string(h) for h in values[0]]
    rows: list[RawRow] = []
    for raw in values[1:]:
        if _all_blank(raw):
            continue
        row: RawRow = {}
        for position, header in enumerate(headers):
            if not header:
                continue
            row[header] = _raw_value(raw[position]) if position < len(raw) else ""
        rows.append(row)
    return rows


def _all_blank(values: Iterable[Any]) -> bool:
    return all(is_blank(v) for v in values)
