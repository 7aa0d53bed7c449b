"""
Memory Zeroization Utilities
============================

Explicit wiping of password buffers.

Passwords enter CCrypt as ``str`` or ``bytes`` (both immutable), so the
pipeline copies them into a ``bytearray`` that it owns and wipes on every
exit path, including error returns.

Limitations:
- Python may keep internal copies of the original object
- These are best-effort mitigations
"""

from __future__ import annotations

import ctypes
from contextlib import contextmanager
from typing import Iterator, Union


def secure_zero(data: bytearray | memoryview) -> None:
    """
    Zero a mutable byte buffer in place.

    Uses ctypes for direct memory access where possible, with a
    Python-level fallback.

    Args:
        data: Mutable byte buffer to zero
    """
    if len(data) == 0:
        return

    if isinstance(data, memoryview):
        if data.readonly:
            raise TypeError("Cannot zero a read-only buffer")
        for i in range(len(data)):
            data[i] = 0
        return

    try:
        addr = ctypes.addressof(
            (ctypes.c_char * len(data)).from_buffer(data)
        )
        ctypes.memset(addr, 0, len(data))
    except (TypeError, ValueError, BufferError):
        for i in range(len(data)):
            data[i] = 0


def password_buffer(password: Union[str, bytes, bytearray, memoryview]) -> bytearray:
    """
    Copy a password into a fresh, wipeable buffer.

    ``str`` passwords are UTF-8 encoded. The caller owns the returned
    buffer and must zero it (see ``ZeroizeContext``).
    """
    if isinstance(password, str):
        return bytearray(password.encode("utf-8"))
    return bytearray(password)


@contextmanager
def ZeroizeContext(*buffers: bytearray) -> Iterator[None]:
    """
    Context manager that zeroizes buffers on exit.

    Always zeroizes, whether exit is normal or exceptional.

    Usage:
        secret = password_buffer(password)
        with ZeroizeContext(secret):
            seed = derive_seed(secret)
        # secret is now zeroed
    """
    try:
        yield
    finally:
        for buf in buffers:
            secure_zero(buf)
