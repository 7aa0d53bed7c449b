"""
Run-Length Encoding Codec
=========================

Byte-oriented RLE used before encryption.

Encoded Format:
    A sequence of ``(count, value)`` byte pairs. Counts 1..255 are taken
    literally; a count byte of 0 stands for a run of 256. Longer runs are
    split into several pairs.

The codec is binary-safe and stateless. Incompressible input (every byte
different from its neighbour) doubles in size, so callers should use
``compress_if_smaller`` and record which representation was stored.
"""

from __future__ import annotations

from typing import Final, Tuple

from ccrypt.core.errors import CompressionError


MAX_RUN: Final[int] = 256
_SENTINEL_COUNT: Final[int] = 0  # encodes a run of MAX_RUN


def compress(data: bytes | bytearray | memoryview) -> bytes:
    """
    Run-length encode a byte string.

    Args:
        data: Raw bytes to encode

    Returns:
        Encoded ``(count, value)`` pairs; empty for empty input
    """
    src = bytes(data)
    length = len(src)
    out = bytearray()
    i = 0

    while i < length:
        value = src[i]
        run = 1
        while i + run < length and run < MAX_RUN and src[i + run] == value:
            run += 1
        out.append(_SENTINEL_COUNT if run == MAX_RUN else run)
        out.append(value)
        i += run

    return bytes(out)


def decompress(data: bytes | bytearray | memoryview) -> bytes:
    """
    Decode a stream produced by ``compress``.

    Args:
        data: Encoded pairs

    Returns:
        The original bytes

    Raises:
        CompressionError: If the stream has an odd length
    """
    src = bytes(data)
    if len(src) % 2:
        raise CompressionError(
            f"RLE stream has odd length ({len(src)} bytes)"
        )

    out = bytearray()
    for pos in range(0, len(src), 2):
        count = src[pos]
        run = MAX_RUN if count == _SENTINEL_COUNT else count
        out += bytes((src[pos + 1],)) * run

    return bytes(out)


def compress_if_smaller(data: bytes | bytearray | memoryview) -> Tuple[bytes, bool]:
    """
    Encode only when it actually saves space.

    Returns:
        Tuple of (payload, compressed). When the encoded form is not
        strictly smaller the input is returned verbatim with
        ``compressed=False``.
    """
    raw = bytes(data)
    encoded = compress(raw)
    if len(encoded) < len(raw):
        return encoded, True
    return raw, False
