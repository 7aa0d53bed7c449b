"""
File Encryption Module
======================

Turns plaintext into an ``EncryptedArtifact``.

Encryption Flow:
1. Copy the password into a wipeable buffer
2. Optionally RLE-compress (kept only if it actually shrinks the data)
3. XOR with the password keystream
4. Record the compressed flag and the password seed in the header

WARNING: The keystream cipher is NOT cryptographically secure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from ccrypt.core.compression.rle import compress_if_smaller
from ccrypt.core.crypto.keystream import (
    CipherMethod,
    DEFAULT_METHOD,
    apply_cipher,
    derive_seed,
)
from ccrypt.core.errors import AllocationFailedError, EncryptionError, translate_os_error
from ccrypt.core.file_ops.artifact import ArtifactHeader, EncryptedArtifact
from ccrypt.core.memory.zeroization import ZeroizeContext, password_buffer
from ccrypt.utils.validators import validate_password, validate_source_path

Password = Union[str, bytes, bytearray, memoryview]


class FileEncryptor:
    """
    Password-based artifact encryption.

    Usage:
        encryptor = FileEncryptor()
        artifact = encryptor.encrypt_bytes(data, "hunter2", compress=True)
        artifact.save(Path("notes.ccrypt"))
    """

    __slots__ = ("_method", "_log")

    def __init__(self, method: CipherMethod | int = DEFAULT_METHOD) -> None:
        """
        Initialize the encryptor.

        Args:
            method: Keystream construction to apply
        """
        try:
            self._method = CipherMethod(method)
        except ValueError as e:
            raise EncryptionError(f"Unknown cipher method: {method}") from e
        self._log = logging.getLogger("ccrypt.encrypt")

    @property
    def method(self) -> CipherMethod:
        return self._method

    def encrypt_bytes(
        self,
        content: bytes | bytearray | memoryview,
        password: Password,
        compress: bool = False,
    ) -> EncryptedArtifact:
        """
        Encrypt bytes into an artifact.

        Args:
            content: Plaintext
            password: Non-empty password
            compress: Try RLE before encrypting

        Returns:
            EncryptedArtifact whose header flag reflects the representation
            actually stored

        Raises:
            InvalidPasswordError: If the password is empty
            AllocationFailedError: If buffers cannot be allocated
        """
        validate_password(password)
        secret = password_buffer(password)

        with ZeroizeContext(secret):
            try:
                if compress:
                    payload, compressed = compress_if_smaller(content)
                    if not compressed:
                        self._log.debug("RLE would not shrink %d bytes; storing verbatim", len(payload))
                else:
                    payload, compressed = bytes(content), False

                ciphertext = apply_cipher(payload, secret, self._method)
                header = ArtifactHeader(compressed=compressed, seed=derive_seed(secret))
            except MemoryError as e:
                raise AllocationFailedError("Out of memory while encrypting") from e

        return EncryptedArtifact(header=header, payload=ciphertext)

    def encrypt_file(
        self,
        source_path: Path | str,
        password: Password,
        compress: bool = False,
    ) -> EncryptedArtifact:
        """
        Encrypt a file from disk.

        Raises:
            FileMissingError / InvalidPathError / PermissionDeniedError:
                If the source cannot be read
        """
        source_path = validate_source_path(source_path)
        try:
            content = source_path.read_bytes()
        except OSError as e:
            raise translate_os_error(e, path=source_path) from e
        return self.encrypt_bytes(content, password, compress=compress)


def encrypt_file(
    source_path: Path | str,
    password: Password,
    output_path: Optional[Path | str] = None,
    compress: bool = False,
    method: CipherMethod | int = DEFAULT_METHOD,
) -> Path:
    """
    Convenience function to encrypt a file outside any library.

    Args:
        source_path: Path to file to encrypt
        password: Non-empty password
        output_path: Optional output path (default: source + .ccrypt)
        compress: Try RLE before encrypting
        method: Keystream construction

    Returns:
        Path to encrypted file
    """
    source_path = Path(source_path)

    if output_path is None:
        output_path = source_path.with_name(source_path.name + ".ccrypt")
    else:
        output_path = Path(output_path)

    artifact = FileEncryptor(method).encrypt_file(source_path, password, compress=compress)
    artifact.save(output_path)

    return output_path


def encrypt_bytes(
    content: bytes | bytearray | memoryview,
    password: Password,
    compress: bool = False,
    method: CipherMethod | int = DEFAULT_METHOD,
) -> EncryptedArtifact:
    """Convenience function to encrypt bytes."""
    return FileEncryptor(method).encrypt_bytes(content, password, compress=compress)
