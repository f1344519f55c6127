"""
Tests for size conversion utilities used by the --max-read ceiling and report sizes.
"""
import argparse

import pytest
from twinfinder.utils.convert_utils import ConvertUtils


class TestHumanToBytes:
    """Test conversion from human-readable sizes (e.g., "512M") to bytes."""

    def test_bytes_without_suffix(self):
        """Plain numbers should be interpreted as bytes."""
        assert ConvertUtils.human_to_bytes("0") == 0
        assert ConvertUtils.human_to_bytes("1024") == 1024

    def test_binary_multipliers(self):
        """Suffixes multiply by powers of 1024, long and short forms alike."""
        assert ConvertUtils.human_to_bytes("1K") == 1024
        assert ConvertUtils.human_to_bytes("1KB") == 1024
        assert ConvertUtils.human_to_bytes("1.5KB") == 1536
        assert ConvertUtils.human_to_bytes("512M") == 512 * 1024 * 1024
        assert ConvertUtils.human_to_bytes("1G") == 1024 ** 3
        assert ConvertUtils.human_to_bytes("2TB") == 2 * 1024 ** 4

    def test_default_read_ceiling_is_one_gibibyte(self):
        assert ConvertUtils.human_to_bytes("1G") == 1073741824

    def test_case_and_whitespace_tolerance(self):
        assert ConvertUtils.human_to_bytes("1kb") == 1024
        assert ConvertUtils.human_to_bytes(" 1MB ") == 1024 * 1024

    def test_rejects_negative_values(self):
        with pytest.raises(ValueError, match="Negative size not allowed"):
            ConvertUtils.human_to_bytes("-1")
        with pytest.raises(ValueError, match="Negative size not allowed"):
            ConvertUtils.human_to_bytes("-1KB")

    @pytest.mark.parametrize("value", ["", "invalid", "1.2.3KB", "1KB2", "1 XB", "KB"])
    def test_rejects_invalid_formats(self, value):
        with pytest.raises(ValueError):
            ConvertUtils.human_to_bytes(value)

    def test_size_argument_converts_for_argparse(self):
        assert ConvertUtils.size_argument("2M") == 2 * 1024 * 1024
        with pytest.raises(argparse.ArgumentTypeError, match="Invalid size format"):
            ConvertUtils.size_argument("one gig")


class TestBytesToHuman:
    """Test conversion from bytes to human-readable format."""

    @pytest.mark.parametrize("size, expected", [
        (0, "0.00B"),
        (1023, "1023.00B"),
        (1024, "1.00KB"),
        (1536, "1.50KB"),
        (1024 * 1024, "1.00MB"),
        (1024 ** 3, "1.00GB"),
    ])
    def test_formats_with_two_decimals(self, size, expected):
        assert ConvertUtils.bytes_to_human(size) == expected

    def test_negative_size_is_zero(self):
        assert ConvertUtils.bytes_to_human(-5) == "0B"
