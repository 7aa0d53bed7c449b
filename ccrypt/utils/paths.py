"""
Path Utilities
==============

File-name handling for encrypted artifacts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

from werkzeug.utils import secure_filename

ARTIFACT_SUFFIX: Final[str] = ".ccrypt"
MAX_FILENAME_LENGTH: Final[int] = 255
_FALLBACK_STEM: Final[str] = "file"


def sanitize_filename(filename: str, max_length: int = 200) -> str:
    """
    Reduce a file name to a portable ASCII form.

    Args:
        filename: The filename to sanitize
        max_length: Truncation limit (leaves room for suffixes)

    Returns:
        Sanitized filename

    Raises:
        ValueError: If nothing usable remains
    """
    if not filename:
        raise ValueError("Filename cannot be empty")

    sanitized = secure_filename(filename)
    if not sanitized:
        raise ValueError("Filename becomes empty after sanitization")

    return sanitized[:max_length]


def file_extension(filename: str) -> str:
    """Return the lower-case extension without the dot, or ``""``."""
    suffix = Path(filename).suffix
    return suffix[1:].lower() if len(suffix) > 1 else ""


def generate_encrypted_filename(original_name: str, unique_id: int | None = None) -> str:
    """
    Build the artifact name for a source file.

    The original extension is dropped: ``report.pdf`` becomes
    ``report.ccrypt``, or ``report_7.ccrypt`` when ``unique_id`` is given.
    """
    stem = Path(original_name).stem
    try:
        base = sanitize_filename(stem)
    except ValueError:
        base = _FALLBACK_STEM
    if unique_id is not None:
        base = f"{base}_{unique_id}"
    return base + ARTIFACT_SUFFIX
