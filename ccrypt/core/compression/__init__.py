"""
CCrypt Compression
==================

Run-length encoding applied to plaintext before the keystream cipher.
"""

from ccrypt.core.compression.rle import (
    MAX_RUN,
    compress,
    compress_if_smaller,
    decompress,
)

__all__ = [
    "MAX_RUN",
    "compress",
    "compress_if_smaller",
    "decompress",
]
