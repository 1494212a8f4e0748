"""Tests for AgriSecurityScanner pre-parse checks."""

from __future__ import annotations

import pytest

from ingestkit_agri.config import AgriProcessorConfig
from ingestkit_agri.errors import ErrorCode
from ingestkit_agri.models import DeclaredFileType
from ingestkit_agri.security import AgriSecurityScanner
from tests.conftest import make_csv, make_xlsx


@pytest.fixture()
def scanner(sample_config: AgriProcessorConfig) -> AgriSecurityScanner:
    return AgriSecurityScanner(sample_config)


class TestAgriSecurityScanner:
    def test_valid_csv(self, scanner: AgriSecurityScanner) -> None:
        data = make_csv(["District", "Crop"], ["Wa Municipal", "Maize"])
        assert scanner.scan(data, DeclaredFileType.CSV, "crop_calendar.csv") == []

    def test_valid_workbook(self, scanner: AgriSecurityScanner) -> None:
        data = make_xlsx({"Sheet": [["District"], ["Wa Municipal"]]})
        assert scanner.scan(data, DeclaredFileType.EXCEL, "crop_calendar.xlsx") == []

    def test_empty(self, scanner: AgriSecurityScanner) -> None:
        (error,) = scanner.scan(b"", DeclaredFileType.CSV, "crop_calendar.csv")
        assert error.code == ErrorCode.E_PARSE_EMPTY
        assert error.stage == "security"

    def test_too_large(self) -> None:
        scanner = AgriSecurityScanner(AgriProcessorConfig(max_file_size_mb=1))
        data = b"a" * (1024 * 1024 + 1)

        (error,) = scanner.scan(data, DeclaredFileType.CSV, "big.csv")

        assert error.code == ErrorCode.E_SECURITY_TOO_LARGE

    def test_extension_mismatch(self, scanner: AgriSecurityScanner) -> None:
        data = make_csv(["District"], ["Wa Municipal"])
        (error,) = scanner.scan(data, DeclaredFileType.EXCEL, "crop_calendar.csv")
        assert error.code == ErrorCode.E_SECURITY_EXTENSION_MISMATCH

    def test_unrecognized_extension_allowed(self, scanner: AgriSecurityScanner) -> None:
        data = make_csv(["District"], ["Wa Municipal"])
        assert scanner.scan(data, DeclaredFileType.CSV, "upload") == []

    def test_workbook_without_zip_magic(self, scanner: AgriSecurityScanner) -> None:
        (error,) = scanner.scan(b"District,Crop\n", DeclaredFileType.EXCEL, "calendar.xlsx")
        assert error.code == ErrorCode.E_SECURITY_BAD_MAGIC

    def test_fail_fast(self, scanner: AgriSecurityScanner) -> None:
        errors = scanner.scan(b"not a zip", DeclaredFileType.EXCEL, "calendar.csv")
        assert [e.code for e in errors] == [ErrorCode.E_SECURITY_EXTENSION_MISMATCH]
