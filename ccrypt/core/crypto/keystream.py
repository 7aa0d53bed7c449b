"""
Keystream Cipher
================

Deterministic, self-inverse XOR ciphers keyed by a password.

Constructions:
    1. LCG_STREAM: password -> 32-bit FNV-1a seed -> linear congruential
       generator; each step's bits 16..23 are XORed with one input byte.
    2. REPEATING_KEY: ``out[i] = in[i] ^ key[i % len(key)]``.

WARNING: Neither construction is cryptographically secure. There is no
authentication tag and no salt; equal passwords always produce equal
keystreams. The seed is stored in artifact headers purely as a
wrong-password check value.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final, Union

from ccrypt.core.errors import EncryptionError, InvalidPasswordError


# FNV-1a (32-bit)
FNV_OFFSET_BASIS: Final[int] = 2166136261
FNV_PRIME: Final[int] = 16777619

# LCG constants (Numerical Recipes)
LCG_MULTIPLIER: Final[int] = 1664525
LCG_INCREMENT: Final[int] = 1013904223

_MASK32: Final[int] = 0xFFFFFFFF

Password = Union[str, bytes, bytearray, memoryview]


class CipherMethod(IntEnum):
    """Keystream construction recorded with every artifact."""
    LCG_STREAM = 1
    REPEATING_KEY = 2


DEFAULT_METHOD: Final[CipherMethod] = CipherMethod.LCG_STREAM


def _password_bytes(password: Password) -> bytes | bytearray | memoryview:
    if isinstance(password, str):
        password = password.encode("utf-8")
    if len(password) == 0:
        raise InvalidPasswordError("Password must not be empty")
    return password


def derive_seed(password: Password) -> int:
    """
    Derive the 32-bit keystream seed from a password.

    Args:
        password: Non-empty password (``str`` is UTF-8 encoded)

    Returns:
        Unsigned 32-bit seed

    Raises:
        InvalidPasswordError: If the password is empty
    """
    seed = FNV_OFFSET_BASIS
    for byte in _password_bytes(password):
        seed ^= byte
        seed = (seed * FNV_PRIME) & _MASK32
    return seed


def keystream(seed: int, length: int) -> bytes:
    """Generate ``length`` keystream bytes from ``seed``."""
    state = seed & _MASK32
    out = bytearray(length)
    for i in range(length):
        state = (state * LCG_MULTIPLIER + LCG_INCREMENT) & _MASK32
        out[i] = (state >> 16) & 0xFF
    return bytes(out)


def transform(data: bytes | bytearray | memoryview, seed: int) -> bytes:
    """
    XOR data with the LCG keystream for ``seed``.

    Applying the transform twice with the same seed returns the input.
    Output length always equals input length.
    """
    src = bytes(data)
    if not src:
        return b""
    stream = keystream(seed, len(src))
    return bytes(a ^ b for a, b in zip(src, stream))


def xor_with_key(data: bytes | bytearray | memoryview, key: Password) -> bytes:
    """
    XOR data with a repeating key.

    Raises:
        InvalidPasswordError: If the key is empty
    """
    key_bytes = _password_bytes(key)
    key_len = len(key_bytes)
    src = bytes(data)
    return bytes(b ^ key_bytes[i % key_len] for i, b in enumerate(src))


def apply_cipher(
    data: bytes | bytearray | memoryview,
    password: Password,
    method: CipherMethod | int = DEFAULT_METHOD,
) -> bytes:
    """
    Apply the selected keystream construction.

    The operation is its own inverse, so it is used for both encryption
    and decryption.

    Args:
        data: Input bytes
        password: Non-empty password
        method: Construction to use

    Returns:
        Transformed bytes of the same length

    Raises:
        InvalidPasswordError: If the password is empty
        EncryptionError: If the method is unknown
    """
    try:
        method = CipherMethod(method)
    except ValueError as e:
        raise EncryptionError(f"Unknown cipher method: {method}") from e

    if method is CipherMethod.LCG_STREAM:
        return transform(data, derive_seed(password))
    return xor_with_key(data, password)
