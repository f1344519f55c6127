"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
Byte sizes in both directions: the --max-read ceiling ("512M", "1.5GB", "4096")
and the sizes printed by the report.
"""
import argparse
import re

# binary multipliers, indexed by power of 1024
SIZE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]

_SIZE_PATTERN = re.compile(r"^(?P<value>\d+(?:\.\d+)?)\s*(?P<prefix>[KMGTP]?)B?$", re.IGNORECASE)


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.50KB, 3.20MB).
        """
        if size_bytes < 0:
            return "0B"

        value = float(size_bytes)
        for unit in SIZE_UNITS:
            if value < 1024:
                return f"{value:.2f}{unit}"
            value /= 1024
        return f"{value:.2f}EB"

    @staticmethod
    def human_to_bytes(size_str: str) -> int:
        """
        Parses a byte count with an optional binary suffix (K, KB, M, MB ... P, PB).
        Raises ValueError for negative sizes or anything else it cannot read.
        """
        text = size_str.strip()
        if text.startswith("-"):
            raise ValueError(f"Negative size not allowed: '{text}'")

        match = _SIZE_PATTERN.match(text)
        if not match:
            raise ValueError(
                f"Invalid size format: '{text}'. Supported formats: 1.5GB, 512M, 2048KB, 4096"
            )

        prefix = match.group("prefix").upper()
        power = SIZE_UNITS.index(f"{prefix}B") if prefix else 0
        return int(float(match.group("value")) * 1024 ** power)

    @staticmethod
    def size_argument(size_str: str) -> int:
        """argparse `type=` for size options; reports parse errors as usage errors."""
        try:
            return ConvertUtils.human_to_bytes(size_str)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e)) from e
