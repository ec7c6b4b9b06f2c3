"""Tests for the severity level table."""

import pytest

from redactlog import LEVELS, InvalidLevel, get_level, is_valid_level
from redactlog.levels import ANSI_RESET, LEVEL_NAMES


class TestLevelTable:
    """Tests for level ordering and prefixes."""

    def test_order_most_to_least_severe(self):
        """Levels should be ranked fault first, trace last."""
        assert [level.name for level in LEVELS] == [
            "fault",
            "error",
            "warn",
            "info",
            "verbose",
            "debug",
            "trace",
        ]
        assert [level.rank for level in LEVELS] == list(range(7))

    def test_names_match_table(self):
        """LEVEL_NAMES should list the same names as LEVELS."""
        assert LEVEL_NAMES == tuple(level.name for level in LEVELS)

    def test_text_prefixes_are_equal_width(self):
        """Every bracket tag should have the same width."""
        widths = {len(level.text_prefix) for level in LEVELS}
        assert widths == {9}

    def test_text_prefix_values(self):
        """Tags should match the documented strings."""
        assert get_level("fault").text_prefix == "[*FAULT*]"
        assert get_level("info").text_prefix == "[   info]"
        assert get_level("trace").text_prefix == "[      t]"

    def test_ansi_prefix_wraps_tag(self):
        """ANSI prefix should be color + tag + reset."""
        info = get_level("info")
        assert info.ansi_prefix == f"\x1b[92m[   info]{ANSI_RESET}"

    def test_trace_has_no_color(self):
        """Trace should have an uncolored tag."""
        assert get_level("trace").ansi_prefix == f"[      t]{ANSI_RESET}"


class TestEnables:
    """Tests for Level.enables."""

    def test_ceiling_enables_more_severe(self):
        """A ceiling should pass messages at or above its severity."""
        warn = get_level("warn")
        assert warn.enables(get_level("fault"))
        assert warn.enables(get_level("error"))
        assert warn.enables(warn)

    def test_ceiling_blocks_less_severe(self):
        """A ceiling should block less severe messages."""
        warn = get_level("warn")
        assert not warn.enables(get_level("info"))
        assert not warn.enables(get_level("trace"))


class TestGetLevel:
    """Tests for level lookup."""

    def test_by_name(self):
        """Names should resolve to the level."""
        assert get_level("debug").rank == 5

    def test_by_rank(self):
        """Ranks should resolve to the level."""
        assert get_level(2).name == "warn"

    def test_level_passes_through(self):
        """A Level instance should be returned unchanged."""
        level = LEVELS[4]
        assert get_level(level) is level

    @pytest.mark.parametrize("value", ["WARN", "warning", "", 7, -1, None, True, 1.0])
    def test_invalid_values(self, value):
        """Unknown names, out-of-range ranks and other types should be rejected."""
        with pytest.raises(InvalidLevel) as exc_info:
            get_level(value)
        assert exc_info.value.codes == ["invalid-level"]
        assert exc_info.value.value == value

    def test_is_valid_level(self):
        """is_valid_level should mirror get_level."""
        assert is_valid_level("verbose")
        assert is_valid_level(0)
        assert not is_valid_level("loud")
        assert not is_valid_level(False)
