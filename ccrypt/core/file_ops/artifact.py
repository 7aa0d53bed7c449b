"""
Encrypted Artifact Format
=========================

Binary layout of a ``.ccrypt`` file.

File Format:
    HEADER (9 bytes):
        - MAGIC: 4 bytes, b"CCRY"
        - FLAGS: 1 byte, bit 0 = payload was RLE-compressed
        - SEED:  4 bytes, little-endian u32 derived from the password
    PAYLOAD: remaining bytes, keystream-XORed (compressed first if flagged)

The seed is a wrong-password check value only; it does not authenticate
the payload.
"""

from __future__ import annotations

import os
import struct
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ccrypt.core.errors import InvalidArtifactError, translate_os_error


MAGIC_BYTES: Final[bytes] = b"CCRY"
HEADER_FORMAT: Final[str] = "<4sBI"
HEADER_SIZE: Final[int] = struct.calcsize(HEADER_FORMAT)  # 9

FLAG_COMPRESSED: Final[int] = 1 << 0
_KNOWN_FLAGS: Final[int] = FLAG_COMPRESSED


@dataclass(frozen=True, slots=True)
class ArtifactHeader:
    """Parsed 9-byte artifact header."""
    compressed: bool
    seed: int

    @property
    def flags(self) -> int:
        return FLAG_COMPRESSED if self.compressed else 0

    def to_bytes(self) -> bytes:
        return struct.pack(HEADER_FORMAT, MAGIC_BYTES, self.flags, self.seed & 0xFFFFFFFF)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ArtifactHeader":
        """
        Parse a header from the start of ``data``.

        Raises:
            InvalidArtifactError: If data is too short, the magic is wrong,
                or unknown flag bits are set
        """
        if len(data) < HEADER_SIZE:
            raise InvalidArtifactError(
                f"File too short for a CCrypt header ({len(data)} < {HEADER_SIZE} bytes)"
            )

        magic, flags, seed = struct.unpack(HEADER_FORMAT, data[:HEADER_SIZE])

        if magic != MAGIC_BYTES:
            raise InvalidArtifactError("Bad magic bytes")
        if flags & ~_KNOWN_FLAGS:
            raise InvalidArtifactError(f"Unknown header flags: 0x{flags:02x}")

        return cls(compressed=bool(flags & FLAG_COMPRESSED), seed=seed)


@dataclass(frozen=True, slots=True)
class EncryptedArtifact:
    """Header plus cipher-transformed payload."""
    header: ArtifactHeader
    payload: bytes

    def to_bytes(self) -> bytes:
        return self.header.to_bytes() + self.payload

    @classmethod
    def from_bytes(cls, data: bytes) -> "EncryptedArtifact":
        header = ArtifactHeader.from_bytes(data)
        return cls(header=header, payload=bytes(data[HEADER_SIZE:]))

    def save(self, path: Path | str) -> None:
        """Write the artifact atomically (temp file + replace)."""
        write_atomic(Path(path), self.to_bytes())

    @classmethod
    def load(cls, path: Path | str) -> "EncryptedArtifact":
        """
        Read and parse an artifact from disk.

        Raises:
            FileMissingError / PermissionDeniedError / InvalidPathError:
                If the file cannot be read
            InvalidArtifactError: If the header is invalid
        """
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            raise translate_os_error(e, path=path) from e
        return cls.from_bytes(data)


def write_atomic(path: Path, data: bytes) -> None:
    """
    Write ``data`` to ``path`` via a temporary sibling and ``os.replace``.

    On failure the temporary file is removed and no partial output is
    left at ``path``.

    Raises:
        PermissionDeniedError / FileMissingError / InvalidPathError
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as e:
        raise translate_os_error(e, path=path) from e

    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise translate_os_error(e, path=path) from e
