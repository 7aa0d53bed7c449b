"""
CCrypt Cipher Engine
====================

Password-keyed, self-inverse keystream ciphers.

Architecture:
    1. derive_seed: FNV-1a hash of the password into a 32-bit seed
    2. transform: LCG keystream XOR seeded from that value
    3. xor_with_key: repeating-key XOR variant

WARNING: This is NOT a cryptographically secure cipher. It is
         deterministic and unauthenticated by design.
"""

from ccrypt.core.crypto.keystream import (
    CipherMethod,
    DEFAULT_METHOD,
    apply_cipher,
    derive_seed,
    keystream,
    transform,
    xor_with_key,
)

__all__ = [
    "CipherMethod",
    "DEFAULT_METHOD",
    "apply_cipher",
    "derive_seed",
    "keystream",
    "transform",
    "xor_with_key",
]
