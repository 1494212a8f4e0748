"""Process-wide, read-only reference data for agricultural ingestion.

Month names and classifier keyword sets are module constants.  Larger
tables (districts, crops, region / district / commodity code maps,
production stages, breeds) live in the packaged ``data/reference.yaml`` and
are loaded once per path by :func:`load_reference_data`.  Every collection
is exposed as a tuple or a ``MappingProxyType`` so concurrent parses can
share it without locking.
"""

from __future__ import annotations

import functools
import logging
import pathlib
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

import yaml

logger = logging.getLogger("ingestkit_agri")

_DEFAULT_REFERENCE_PATH = pathlib.Path(__file__).parent / "data" / "reference.yaml"

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MONTHS: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# Filename keywords that turn a generic advisory into a commodity advisory.
COMMODITY_ADVISORY_KEYWORDS: tuple[str, ...] = (
    "rice",
    "maize",
    "tomato",
    "layers",
    "broilers",
    "soyabean",
    "sorghum",
)

AGROMET_FILENAME_KEYWORDS: tuple[str, ...] = ("agromet", "advisory", "weather")
AGROMET_HEADER_KEYWORDS: tuple[str, ...] = ("weather", "advisory", "recommendation")
POULTRY_HEADER_KEYWORDS: tuple[str, ...] = ("poultry", "bird", "layer", "broiler")
COMMODITY_HEADER_TOKENS: tuple[str, ...] = ("[zone]", "[region]", "[district]", "[crop]")

POULTRY_ACTIVITY_TERMS: frozenset[str] = frozenset(
    {"brooding", "laying", "feeding", "vaccination", "egg"}
)
CROP_ACTIVITY_TERMS: frozenset[str] = frozenset(
    {"planting", "sowing", "harvest", "weeding", "fertilizer"}
)

# Values that mark an untouched template row in commodity advisory sheets.
PLACEHOLDER_VALUES: frozenset[str] = frozenset(
    {
        "enter zone",
        "enter region",
        "enter district",
        "enter month/year",
        "enter week",
        "zone",
        "region",
        "district",
        "month/year",
        "week",
        "",
    }
)

SEASON_MONTHS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Major", ("march", "april", "may", "june", "july")),
    ("Minor", ("september", "october", "november")),
    ("Dry", ("december", "january", "february")),
)

# Office default theme palette, by theme index.
THEME_COLORS: Mapping[int, str] = MappingProxyType(
    {
        0: "#FFFFFF",
        1: "#000000",
        2: "#E7E6E6",
        3: "#44546A",
        4: "#5B9BD5",
        5: "#70AD47",
        6: "#FFC000",
        7: "#C55A11",
    }
)


# ---------------------------------------------------------------------------
# Loaded reference tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReferenceData:
    """Immutable reference tables loaded from YAML."""

    known_districts: tuple[str, ...]
    crops: tuple[str, ...]
    region_codes: Mapping[str, str]
    district_codes: Mapping[str, str]
    commodity_codes: Mapping[str, str]
    production_stages: Mapping[str, str]
    breed_types: Mapping[str, str]


@functools.lru_cache(maxsize=None)
def load_reference_data(path: str | None = None) -> ReferenceData:
    """Load reference tables from *path*, or from the packaged YAML file.

    The result is cached per path, so every caller in the process shares the
    same immutable instance.

    Raises:
        FileNotFoundError: If *path* does not exist.
    """
    source = pathlib.Path(path) if path else _DEFAULT_REFERENCE_PATH
    if not source.exists():
        raise FileNotFoundError(f"Reference data file not found: {source}")

    with open(source, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    # Short commodity codes (CT0001) and long ones (CT0000000001) share a map.
    commodity_codes = dict(data.get("commodity_names") or {})
    commodity_codes.update(data.get("commodity_codes") or {})

    reference = ReferenceData(
        known_districts=tuple(data.get("known_districts") or ()),
        crops=tuple(data.get("crops") or ()),
        region_codes=_freeze(data.get("region_codes")),
        district_codes=_freeze(data.get("district_codes")),
        commodity_codes=MappingProxyType(
            {str(k): str(v) for k, v in commodity_codes.items()}
        ),
        production_stages=_freeze(data.get("production_stages")),
        breed_types=_freeze(data.get("breed_types")),
    )
    logger.debug(
        "Loaded reference data from %s: %d districts, %d district codes, "
        "%d commodity codes",
        source,
        len(reference.known_districts),
        len(reference.district_codes),
        len(reference.commodity_codes),
    )
    return reference


def _freeze(mapping: dict | None) -> Mapping[str, str]:
    return MappingProxyType({str(k): str(v) for k, v in (mapping or {}).items()})
