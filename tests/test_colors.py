"""Tests for openpyxl color resolution."""

from __future__ import annotations

import pytest
from openpyxl.styles.colors import Color

from ingestkit_agri.colors import apply_tint, resolve_color


class TestResolveColor:
    def test_rgb_and_indexed_are_equivalent(self) -> None:
        assert resolve_color(Color(rgb="FFFF0000")) == "#FF0000"
        assert resolve_color(Color(indexed=2)) == "#FF0000"

    def test_rgb_alpha_dropped_and_uppercased(self) -> None:
        assert resolve_color(Color(rgb="ff00b050")) == "#00B050"

    def test_indexed_palette(self) -> None:
        assert resolve_color(Color(indexed=1)) == "#FFFFFF"
        assert resolve_color(Color(indexed=5)) == "#FFFF00"

    @pytest.mark.parametrize("index", [64, 65])
    def test_system_indexes_have_no_color(self, index: int) -> None:
        assert resolve_color(Color(indexed=index)) is None

    def test_theme(self) -> None:
        assert resolve_color(Color(theme=1)) == "#000000"
        assert resolve_color(Color(theme=4)) == "#5B9BD5"

    def test_theme_with_tint(self) -> None:
        assert resolve_color(Color(theme=0, tint=-0.5)) == "#808080"

    def test_unknown_theme_slot_is_black(self) -> None:
        assert resolve_color(Color(theme=11)) == "#000000"

    def test_auto_has_no_color(self) -> None:
        assert resolve_color(Color(auto=True)) is None

    def test_none(self) -> None:
        assert resolve_color(None) is None


class TestApplyTint:
    def test_lighten(self) -> None:
        assert apply_tint("#000000", 0.5) == "#808080"

    def test_darken(self) -> None:
        assert apply_tint("#FF0000", -1.0) == "#000000"

    def test_full_lighten_is_white(self) -> None:
        assert apply_tint("#4472C4", 1.0) == "#FFFFFF"
