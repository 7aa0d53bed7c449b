"""
Formatting and Checksum Helpers
===============================
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

_SIZE_UNITS: Final[tuple[str, ...]] = ("B", "KB", "MB", "GB")
_CHUNK_SIZE: Final[int] = 64 * 1024


def format_file_size(size: int) -> str:
    """Render a byte count as ``"1.50 KB"`` style text (1024 base, max GB)."""
    value = float(size)
    unit = 0
    while value >= 1024.0 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024.0
        unit += 1
    return f"{value:.2f} {_SIZE_UNITS[unit]}"


def byte_sum_checksum(data: bytes | bytearray | memoryview) -> str:
    """
    Non-cryptographic checksum: sum of all bytes modulo 2**32.

    Returns:
        Eight lower-case hex digits
    """
    return f"{sum(bytes(data)) & 0xFFFFFFFF:08x}"


def file_checksum(path: Path | str) -> str:
    """``byte_sum_checksum`` of a file's contents, read in chunks."""
    total = 0
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            total = (total + sum(chunk)) & 0xFFFFFFFF
    return f"{total:08x}"
