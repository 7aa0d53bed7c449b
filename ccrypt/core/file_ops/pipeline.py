"""
Encrypt / Decrypt Pipeline
==========================

The only place that composes the codec, the cipher and the library.

Encrypt:
    validate source -> [compress] -> cipher -> write artifact
    -> build record -> library insert

Decrypt:
    read artifact -> parse header -> cipher -> [decompress] -> write output

The first failing step aborts the rest. Outputs are written atomically,
and an artifact whose record could not be inserted is removed again.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from ccrypt.core.config import CCryptConfig
from ccrypt.core.crypto.keystream import CipherMethod, DEFAULT_METHOD
from ccrypt.core.errors import AllocationFailedError, translate_os_error
from ccrypt.core.file_ops.artifact import EncryptedArtifact, write_atomic
from ccrypt.core.file_ops.decrypt import DecryptResult, FileDecryptor
from ccrypt.core.file_ops.encrypt import FileEncryptor
from ccrypt.core.files.library import FileRecord, Library
from ccrypt.core.memory.zeroization import ZeroizeContext, password_buffer
from ccrypt.utils.formatting import byte_sum_checksum, file_checksum
from ccrypt.utils.paths import file_extension, generate_encrypted_filename
from ccrypt.utils.validators import validate_password, validate_source_path

Password = Union[str, bytes, bytearray, memoryview]


class CryptPipeline:
    """
    Encrypts files into a library and decrypts them back out.

    Usage:
        library = open_library(config.paths.library_file, config.paths.artifact_dir)
        pipeline = CryptPipeline(library, config)
        record = pipeline.encrypt(Path("report.txt"), password, compress=True)
        result = pipeline.decrypt(record, password, Path("report.out"))
        library.save()
    """

    __slots__ = ("_library", "_config", "_method", "_log")

    def __init__(
        self,
        library: Library,
        config: Optional[CCryptConfig] = None,
        method: CipherMethod | int = DEFAULT_METHOD,
    ) -> None:
        self._library = library
        self._config = config
        self._method = CipherMethod(method)
        self._log = logging.getLogger("ccrypt.pipeline")

    @property
    def library(self) -> Library:
        return self._library

    def _default_compress(self) -> bool:
        if self._config is None:
            return True
        return self._config.library.default_compress

    def _artifact_name(self, original_name: str) -> str:
        """Pick an unused artifact name, falling back to ``<stem>_<id>``."""
        artifact_dir = self._library.artifact_dir
        taken = {record.encrypted_name for record in self._library}

        name = generate_encrypted_filename(original_name)
        unique_id = self._library.next_id
        while name in taken or (artifact_dir / name).exists():
            name = generate_encrypted_filename(original_name, unique_id)
            unique_id += 1
        return name

    def encrypt(
        self,
        source_path: Path | str,
        password: Password,
        compress: Optional[bool] = None,
    ) -> FileRecord:
        """
        Encrypt a file and register it in the library.

        Args:
            source_path: File to encrypt
            password: Non-empty password
            compress: Try RLE first (None uses the configured default)

        Returns:
            The stored record, carrying its encryption id

        Raises:
            InvalidPasswordError: If the password is empty
            FileMissingError / InvalidPathError / PermissionDeniedError:
                If the source cannot be read or the artifact not written
            CapacityExceededError: If the library is full
            AllocationFailedError: If buffers cannot be allocated
        """
        validate_password(password)
        source = validate_source_path(source_path)
        if compress is None:
            compress = self._default_compress()

        secret = password_buffer(password)
        with ZeroizeContext(secret):
            try:
                content = source.read_bytes()
            except OSError as e:
                raise translate_os_error(e, path=source) from e
            except MemoryError as e:
                raise AllocationFailedError(f"Cannot buffer {source.name}") from e

            artifact = FileEncryptor(self._method).encrypt_bytes(content, secret, compress=compress)

        encrypted_name = self._artifact_name(source.name)
        artifact_path = self._library.artifact_dir / encrypted_name
        artifact.save(artifact_path)

        record = FileRecord(
            original_name=source.name,
            encrypted_name=encrypted_name,
            original_size=len(content),
            encrypted_size=len(artifact.payload),
            is_compressed=artifact.header.compressed,
            method=self._method,
            original_path=str(source),
            file_type=file_extension(source.name),
            checksum=byte_sum_checksum(content),
        )

        try:
            stored = self._library.insert(record)
        except Exception:
            self._log.warning("Library insert failed; removing %s", encrypted_name)
            artifact_path.unlink(missing_ok=True)
            raise

        self._log.info(
            "Encrypted %s -> %s (id=%d, %d -> %d bytes, compressed=%s)",
            stored.original_name, stored.encrypted_name, stored.encryption_id,
            stored.original_size, stored.encrypted_size, stored.is_compressed,
        )
        return stored

    def decrypt(
        self,
        record: FileRecord,
        password: Password,
        output_path: Optional[Path | str] = None,
    ) -> DecryptResult:
        """
        Decrypt a library record's artifact.

        Args:
            record: Record whose artifact to decrypt
            password: Non-empty password
            output_path: Destination (default: the original name in the
                current directory)

        Returns:
            DecryptResult; ``password_matched`` is False after a wrong
            password and ``checksum_matched`` reports the content check

        Raises:
            InvalidPasswordError: If the password is empty
            FileMissingError: If the artifact is gone
            InvalidArtifactError: If the artifact header is invalid
            CompressionError: If the decrypted payload is not valid RLE

        Warns:
            PasswordMismatchWarning: On a wrong password
        """
        validate_password(password)
        output = Path(output_path) if output_path is not None else Path.cwd() / record.original_name

        artifact = EncryptedArtifact.load(self._library.artifact_path(record))
        if artifact.header.compressed != record.is_compressed:
            self._log.warning(
                "Record %d says compressed=%s but header says %s; using header",
                record.encryption_id, record.is_compressed, artifact.header.compressed,
            )

        decryptor = FileDecryptor(record.method)
        with decryptor.decrypt(artifact, password) as decrypted:
            write_atomic(output, decrypted.content)
            size = len(decrypted.content)
            password_matched = decrypted.password_matched

        # verify what actually landed on disk
        checksum_matched = None
        if record.checksum:
            checksum_matched = file_checksum(output) == record.checksum
            if not checksum_matched:
                self._log.warning("Checksum mismatch for id %d", record.encryption_id)
        result = DecryptResult(
            output_path=output,
            size=size,
            compressed=artifact.header.compressed,
            password_matched=password_matched,
            checksum_matched=checksum_matched,
        )

        self._log.info("Decrypted id %d -> %s (%d bytes)", record.encryption_id, output, result.size)
        return result

    def decrypt_file(
        self,
        artifact_path: Path | str,
        password: Password,
        output_path: Path | str,
    ) -> DecryptResult:
        """
        Decrypt an artifact that is not in the library, using only its header.
        """
        result = FileDecryptor(self._method).decrypt_to_file(artifact_path, output_path, password)
        self._log.info("Decrypted %s -> %s (%d bytes)", artifact_path, result.output_path, result.size)
        return result
