"""Tests for the packaged reference tables and their loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from ingestkit_agri.reference import MONTHS, ReferenceData, load_reference_data


class TestPackagedReference:
    def test_months(self) -> None:
        assert len(MONTHS) == 12
        assert MONTHS[0] == "January"
        assert MONTHS[-1] == "December"

    def test_known_districts(self, reference: ReferenceData) -> None:
        assert "Kumasi Metropolitan" in reference.known_districts
        assert len(reference.known_districts) == 20

    def test_region_codes(self, reference: ReferenceData) -> None:
        assert reference.region_codes["REG01"] == "Greater Accra Region"
        assert len(reference.region_codes) == 16

    def test_district_codes(self, reference: ReferenceData) -> None:
        assert reference.district_codes["DS004"] == "Accra Metropolitan"

    def test_short_and_long_commodity_codes_share_a_map(
        self, reference: ReferenceData
    ) -> None:
        assert reference.commodity_codes["CT0001"] == "Maize"
        assert reference.commodity_codes["CT0000000002"] == "rice"

    def test_production_stages(self, reference: ReferenceData) -> None:
        assert reference.production_stages["1st fertilizer"] == "1st Fertilizer Application"

    def test_tables_are_read_only(self, reference: ReferenceData) -> None:
        with pytest.raises(TypeError):
            reference.region_codes["REG99"] = "Nowhere"  # type: ignore[index]

    def test_loaded_once_per_path(self) -> None:
        assert load_reference_data() is load_reference_data()


class TestCustomReference:
    def test_loads_custom_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ref.yaml"
        path.write_text(
            "known_districts:\n  - Test District\n"
            "region_codes:\n  REG01: Test Region\n"
            "breed_types:\n  sasso: Sasso\n"
        )

        reference = load_reference_data(str(path))

        assert reference.known_districts == ("Test District",)
        assert reference.region_codes["REG01"] == "Test Region"
        assert reference.breed_types["sasso"] == "Sasso"
        assert dict(reference.commodity_codes) == {}

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_reference_data(str(tmp_path / "missing.yaml"))
