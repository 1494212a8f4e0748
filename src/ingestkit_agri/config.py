"""Tunable parameters for the ingestkit-agri pipeline.

``AgriProcessorConfig`` holds every threshold the extractor, analyzer,
parsers and validator consult.  Values come from keyword arguments or from
a YAML/JSON override file read by ``AgriProcessorConfig.from_file()``.
"""

from __future__ import annotations

import json
import pathlib
from typing import IO, Any, Callable

import yaml
from pydantic import BaseModel


class AgriProcessorConfig(BaseModel):
    """Extraction, analysis and normalization settings for one router."""

    # --- Identity ---
    parser_version: str = "ingestkit_agri:1.0.0"

    # --- Input limits ---
    max_file_size_mb: int = 50
    csv_encoding: str = "utf-8-sig"

    # --- Structural analysis ---
    activity_scan_columns: int = 5
    activity_scan_rows: int = 20
    min_activity_cells: int = 2
    timeline_scan_rows: int = 5
    timeline_scan_columns: int = 20
    min_timeline_cells: int = 3
    potential_activity_min_row: int = 2
    potential_activity_max_column: int = 3
    potential_activity_min_length: int = 3

    # --- Normalization ---
    week_min: int = 1
    week_max: int = 52
    default_color: str = "#FFFFFF"

    # --- Commodity advisory ---
    analyze_structure: bool = True
    skip_placeholder_rows: bool = True

    # --- Reference data ---
    reference_data_path: str | None = None

    # --- Logging / PII safety ---
    log_sample_data: bool = False

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> AgriProcessorConfig:
        """Build a config from a YAML (``.yaml`` / ``.yml``) or JSON file.

        Keys in the file replace the matching defaults.  An empty file gives
        the defaults unchanged.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the extension has no loader, or the file does not
                hold a mapping.
        """
        source = pathlib.Path(path)
        if not source.is_file():
            raise FileNotFoundError(f"Config file not found: {source}")

        loader = _LOADERS.get(source.suffix.lower())
        if loader is None:
            raise ValueError(
                f"Cannot load config from '{source.suffix}' files; "
                f"expected one of {', '.join(sorted(_LOADERS))}"
            )

        with source.open(encoding="utf-8") as fh:
            overrides = loader(fh) or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"Config file {source} must contain a mapping")
        return cls(**overrides)


_LOADERS: dict[str, Callable[[IO[str]], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}
