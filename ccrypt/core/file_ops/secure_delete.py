"""
Artifact Deletion Module
========================

Removes encrypted artifacts from disk, optionally overwriting them first.

Overwrite Pattern:
    Pass 1: All zeros
    Pass 2: All ones
    Pass 3+: Random data

Overwriting makes recovery harder on spinning disks; on SSDs with wear
levelling it is best-effort only.
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Final

from ccrypt.core.errors import DeleteFailedError


DEFAULT_OVERWRITE_PASSES: Final[int] = 3
BLOCK_SIZE: Final[int] = 4096


class SecureDeleteError(DeleteFailedError):
    """Raised when overwriting or unlinking an artifact fails."""
    pass


def _overwrite(path: Path, passes: int) -> None:
    file_size = path.stat().st_size

    with open(path, "r+b") as f:
        for pass_num in range(passes):
            f.seek(0)

            if pass_num == 0:
                pattern = b"\x00" * BLOCK_SIZE
            elif pass_num == 1:
                pattern = b"\xFF" * BLOCK_SIZE
            else:
                pattern = None  # Generate per block

            bytes_written = 0
            while bytes_written < file_size:
                chunk_size = min(BLOCK_SIZE, file_size - bytes_written)
                if pattern is None:
                    data = secrets.token_bytes(chunk_size)
                else:
                    data = pattern[:chunk_size]
                f.write(data)
                bytes_written += chunk_size

            f.flush()
            os.fsync(f.fileno())

        f.truncate(0)


def secure_delete(
    path: Path | str,
    passes: int = DEFAULT_OVERWRITE_PASSES,
    verify: bool = True,
) -> None:
    """
    Delete a file after overwriting its contents.

    Args:
        path: Path to file to delete
        passes: Number of overwrite passes (0 just unlinks)
        verify: Whether to check the file is gone afterwards

    Raises:
        FileNotFoundError: If the file does not exist
        SecureDeleteError: If deletion fails
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if not path.is_file():
        raise SecureDeleteError(f"Not a file: {path}")

    try:
        if passes > 0:
            _overwrite(path, passes)
        path.unlink()
    except OSError as e:
        raise SecureDeleteError(f"Deletion failed: {e}") from e

    if verify and path.exists():
        raise SecureDeleteError(f"File still exists after deletion: {path}")
