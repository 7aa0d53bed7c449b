"""
File Decryption Module
======================

Turns an ``EncryptedArtifact`` back into plaintext.

Decryption Flow:
1. Parse the artifact header (bad magic / truncation -> InvalidArtifactError)
2. Compare the header seed with the seed of the supplied password
3. XOR with the supplied password's keystream
4. Decompress if the header says the payload was compressed

There is no authentication tag. A wrong password is detected only
through the stored seed; it raises ``PasswordMismatchWarning`` and
decryption continues, yielding garbage. The caller decides what to do
with the result.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ccrypt.core.compression.rle import decompress
from ccrypt.core.crypto.keystream import (
    CipherMethod,
    DEFAULT_METHOD,
    apply_cipher,
    derive_seed,
)
from ccrypt.core.errors import AllocationFailedError, PasswordMismatchWarning
from ccrypt.core.file_ops.artifact import ArtifactHeader, EncryptedArtifact, write_atomic
from ccrypt.core.memory.zeroization import ZeroizeContext, password_buffer, secure_zero
from ccrypt.utils.validators import validate_password

Password = Union[str, bytes, bytearray, memoryview]


@dataclass
class DecryptedFile:
    """
    Container for decrypted content.

    Provides memory wiping when done.
    """
    content: bytearray  # Mutable for wiping
    header: ArtifactHeader
    password_matched: bool
    _wiped: bool = field(default=False, repr=False)

    def __repr__(self) -> str:
        if self._wiped:
            return "DecryptedFile(WIPED)"
        return f"DecryptedFile(size={len(self.content)}, password_matched={self.password_matched})"

    def get_content(self) -> bytes:
        """Get content as immutable bytes."""
        if self._wiped:
            raise ValueError("Content has been wiped")
        return bytes(self.content)

    def secure_wipe(self) -> None:
        """Overwrite the content buffer with zeros."""
        if not self._wiped:
            secure_zero(self.content)
            self._wiped = True

    def __enter__(self) -> "DecryptedFile":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Always wipe content on exit."""
        self.secure_wipe()


@dataclass(frozen=True, slots=True)
class DecryptResult:
    """Outcome of writing decrypted content to disk."""
    output_path: Path
    size: int
    compressed: bool
    password_matched: bool
    # None when no checksum was recorded
    checksum_matched: Optional[bool] = None


class FileDecryptor:
    """
    Password-based artifact decryption.

    Usage:
        decryptor = FileDecryptor()
        with decryptor.decrypt_file(Path("notes.ccrypt"), "hunter2") as result:
            data = result.get_content()
        # content is wiped on exit
    """

    __slots__ = ("_method", "_log")

    def __init__(self, method: CipherMethod | int = DEFAULT_METHOD) -> None:
        self._method = CipherMethod(method)
        self._log = logging.getLogger("ccrypt.decrypt")

    def decrypt(self, artifact: EncryptedArtifact, password: Password) -> DecryptedFile:
        """
        Decrypt an artifact in memory.

        Args:
            artifact: Parsed artifact
            password: Non-empty password

        Returns:
            DecryptedFile (use as a context manager to wipe it)

        Raises:
            InvalidPasswordError: If the password is empty
            CompressionError: If the decrypted payload is not a valid RLE
                stream (typical after a wrong password)
            AllocationFailedError: If buffers cannot be allocated

        Warns:
            PasswordMismatchWarning: If the password seed differs from the
                header seed
        """
        validate_password(password)
        secret = password_buffer(password)

        with ZeroizeContext(secret):
            matched = derive_seed(secret) == artifact.header.seed
            if not matched:
                self._log.warning("Password does not match the artifact seed; output will be garbage")
                warnings.warn(
                    "Password does not match the one used to encrypt; output is likely garbage",
                    PasswordMismatchWarning,
                    stacklevel=3,
                )

            try:
                plaintext = apply_cipher(artifact.payload, secret, self._method)
                if artifact.header.compressed:
                    plaintext = decompress(plaintext)
                content = bytearray(plaintext)
            except MemoryError as e:
                raise AllocationFailedError("Out of memory while decrypting") from e

        return DecryptedFile(content=content, header=artifact.header, password_matched=matched)

    def decrypt_file(self, source_path: Path | str, password: Password) -> DecryptedFile:
        """Load an artifact from disk and decrypt it in memory."""
        return self.decrypt(EncryptedArtifact.load(source_path), password)

    def decrypt_to_file(
        self,
        encrypted_path: Path | str,
        output_path: Path | str,
        password: Password,
    ) -> DecryptResult:
        """
        Decrypt an artifact and save the plaintext.

        The output is written atomically; nothing is left at
        ``output_path`` if any step fails.
        """
        output_path = Path(output_path)
        with self.decrypt_file(encrypted_path, password) as result:
            write_atomic(output_path, result.content)
            return DecryptResult(
                output_path=output_path,
                size=len(result.content),
                compressed=result.header.compressed,
                password_matched=result.password_matched,
            )


def decrypt_file(
    encrypted_path: Path | str,
    password: Password,
    output_path: Optional[Path | str] = None,
    method: CipherMethod | int = DEFAULT_METHOD,
) -> DecryptResult:
    """
    Convenience function to decrypt a standalone artifact.

    Args:
        encrypted_path: Path to encrypted file
        password: Non-empty password
        output_path: Destination (default: artifact path + "_dec")
        method: Keystream construction used at encrypt time

    Returns:
        DecryptResult describing the written file
    """
    encrypted_path = Path(encrypted_path)
    if output_path is None:
        output_path = encrypted_path.with_name(encrypted_path.name + "_dec")
    return FileDecryptor(method).decrypt_to_file(encrypted_path, output_path, password)


def decrypt_bytes(
    artifact: EncryptedArtifact,
    password: Password,
    method: CipherMethod | int = DEFAULT_METHOD,
) -> bytes:
    """
    Convenience function to decrypt an artifact to bytes.

    Note:
        The returned bytes cannot be wiped. Prefer FileDecryptor with a
        context manager for sensitive content.
    """
    with FileDecryptor(method).decrypt(artifact, password) as result:
        return result.get_content()
