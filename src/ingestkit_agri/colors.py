"""Resolve openpyxl ``Color`` objects to ``#RRGGBB`` strings.

Three color encodings occur in workbooks:

* ``rgb`` -- an ARGB (or RGB) hex string; the alpha byte is dropped.
* ``indexed`` -- a slot in the legacy 64-color palette, looked up in
  openpyxl's ``COLOR_INDEX``.  Slots 64/65 are the system foreground and
  background and carry no color of their own.
* ``theme`` -- a slot in the workbook theme, approximated with the Office
  default palette and adjusted by the color's tint.

So ``rgb="FFFF0000"`` and ``indexed=2`` both resolve to ``#FF0000``.
"""

from __future__ import annotations

import re

from openpyxl.styles.colors import COLOR_INDEX, Color

from ingestkit_agri.reference import THEME_COLORS

BLACK = "#000000"

_HEX = re.compile(r"^[0-9A-Fa-f]{6}([0-9A-Fa-f]{2})?$")
_PALETTE_SIZE = 64


def resolve_color(color: Color | None) -> str | None:
    """Return the ``#RRGGBB`` form of *color*, or ``None`` if it has none."""
    if color is None:
        return None

    kind = color.type
    if kind == "rgb":
        return _from_hex(color.rgb)
    if kind == "indexed":
        index = color.indexed
        if index is None or not 0 <= index < min(_PALETTE_SIZE, len(COLOR_INDEX)):
            return None
        return _from_hex(COLOR_INDEX[index])
    if kind == "theme":
        base = THEME_COLORS.get(color.theme, BLACK)
        tint = color.tint or 0.0
        return apply_tint(base, tint) if tint else base
    return None


def apply_tint(hex_color: str, tint: float) -> str:
    """Darken (negative *tint*) or lighten (positive *tint*) a color."""
    channels = [int(hex_color[i : i + 2], 16) for i in (1, 3, 5)]
    if tint < 0:
        adjusted = [round(c * (1 + tint)) for c in channels]
    else:
        adjusted = [round(c + (255 - c) * tint) for c in channels]
    return "#" + "".join(f"{max(0, min(255, c)):02X}" for c in adjusted)


def _from_hex(value: object) -> str | None:
    if not isinstance(value, str) or not _HEX.match(value):
        return None
    return "#" + value[-6:].upper()
