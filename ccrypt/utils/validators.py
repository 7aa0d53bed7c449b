"""
Validation Utilities
====================

Input validation for paths, names and passwords.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from ccrypt.core.errors import (
    FileMissingError,
    InvalidPasswordError,
    InvalidPathError,
    PermissionDeniedError,
)
from ccrypt.utils.paths import MAX_FILENAME_LENGTH


def validate_source_path(path: str | Path) -> Path:
    """
    Validate that a path names a readable regular file.

    Args:
        path: The path to validate

    Returns:
        Resolved Path object

    Raises:
        InvalidPathError: If the path is empty, malformed or not a file
        FileMissingError: If nothing exists at the path
        PermissionDeniedError: If the file is not readable
    """
    if not str(path).strip():
        raise InvalidPathError("Path cannot be empty")
    if "\x00" in str(path):
        raise InvalidPathError("Path contains invalid characters")

    try:
        resolved = Path(path).expanduser().resolve()
    except (ValueError, RuntimeError, OSError) as e:
        raise InvalidPathError(f"Invalid path: {e}") from e

    if not resolved.exists():
        raise FileMissingError(f"File not found: {resolved}")
    if not resolved.is_file():
        raise InvalidPathError(f"Not a file: {resolved}")
    if not os.access(resolved, os.R_OK):
        raise PermissionDeniedError(f"File is not readable: {resolved}")

    if len(resolved.name) > MAX_FILENAME_LENGTH:
        raise InvalidPathError(
            f"File name too long (max {MAX_FILENAME_LENGTH} characters)"
        )

    return resolved


def validate_artifact_name(name: str) -> str:
    """
    Validate a bare file name for an artifact inside the library directory.

    Raises:
        InvalidPathError: If the name is empty, too long, contains a path
            separator or a NUL byte, or is ``.``/``..``
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidPathError("File name cannot be empty")

    name = name.strip()
    if len(name) > MAX_FILENAME_LENGTH:
        raise InvalidPathError(
            f"File name too long (max {MAX_FILENAME_LENGTH} characters)"
        )
    if "\x00" in name or "/" in name or "\\" in name or os.sep in name:
        raise InvalidPathError("File name may not contain path separators")
    if name in (".", ".."):
        raise InvalidPathError("File name may not be '.' or '..'")

    return name


def validate_password(password: Union[str, bytes, bytearray, memoryview, None]) -> None:
    """
    Reject missing or empty passwords.

    Raises:
        InvalidPasswordError: If the password is None or empty
    """
    if password is None or len(password) == 0:
        raise InvalidPasswordError("Password must not be empty")
