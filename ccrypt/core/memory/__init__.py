"""
CCrypt Memory Module
====================

Best-effort wiping of password material.

WARNING:
- Python's memory model doesn't guarantee secure erasure
- Callers should drop references to the original password objects
"""

from ccrypt.core.memory.zeroization import (
    ZeroizeContext,
    password_buffer,
    secure_zero,
)

__all__ = [
    "ZeroizeContext",
    "password_buffer",
    "secure_zero",
]
