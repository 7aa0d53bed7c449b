"""
CCrypt File Operations Module
=============================

Provides file encryption, decryption and artifact handling.

Components:
- artifact.py: 9-byte header and on-disk artifact format
- encrypt.py: Plaintext -> artifact
- decrypt.py: Artifact -> plaintext, wrong-password detection
- pipeline.py: Encrypt/decrypt composed with the library
- secure_delete.py: Artifact removal with optional overwrite
"""

from ccrypt.core.file_ops.artifact import (
    ArtifactHeader,
    EncryptedArtifact,
    HEADER_SIZE,
    MAGIC_BYTES,
)
from ccrypt.core.file_ops.encrypt import (
    FileEncryptor,
    encrypt_file,
    encrypt_bytes,
)
from ccrypt.core.file_ops.decrypt import (
    DecryptedFile,
    DecryptResult,
    FileDecryptor,
    decrypt_file,
    decrypt_bytes,
)
from ccrypt.core.file_ops.pipeline import CryptPipeline
from ccrypt.core.file_ops.secure_delete import SecureDeleteError, secure_delete

__all__ = [
    "ArtifactHeader",
    "EncryptedArtifact",
    "HEADER_SIZE",
    "MAGIC_BYTES",
    "FileEncryptor",
    "encrypt_file",
    "encrypt_bytes",
    "DecryptedFile",
    "DecryptResult",
    "FileDecryptor",
    "decrypt_file",
    "decrypt_bytes",
    "CryptPipeline",
    "SecureDeleteError",
    "secure_delete",
]
