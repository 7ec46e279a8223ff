from __future__ import annotations

import re

from .errors import SizeFormatError


class SizeParser:
    _pattern = re.compile(r"^(\d+)\s*(KB|MB|GB)$", re.IGNORECASE)
    _scale = {
        "KB": 1024,
        "MB": 1024**2,
        "GB": 1024**3,
    }

    @classmethod
    def parse_bytes(cls, value: str) -> int:
        match = cls._pattern.match(value.strip())
        if not match:
            raise SizeFormatError(
                f"Invalid size format: {value!r} (use a whole number followed by KB, MB, or GB)"
            )
        number = int(match.group(1))
        if number == 0:
            raise SizeFormatError(f"Invalid size: {value!r} (must be greater than zero)")
        return number * cls._scale[match.group(2).upper()]


def parse_size(value: str) -> int:
    return SizeParser.parse_bytes(value)
