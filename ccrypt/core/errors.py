"""
Error Kinds
===========

Typed exceptions raised by every CCrypt component.

Each exception carries an ``ErrorKind`` so that front ends can translate
any failure into a single human-readable line via ``describe_error``
without ever showing raw internal codes or tracebacks.

Password mismatch is not an exception: the cipher carries no
authentication tag, so a mismatch is reported as a
``PasswordMismatchWarning`` and decryption proceeds.
"""

from __future__ import annotations

from enum import Enum
from typing import Final, Optional


class ErrorKind(Enum):
    """Categories of failure exposed to callers."""
    FILE_NOT_FOUND = "FileNotFound"
    INVALID_PATH = "InvalidPath"
    PERMISSION_DENIED = "PermissionDenied"
    INVALID_PASSWORD = "InvalidPassword"
    PASSWORD_MISMATCH = "PasswordMismatch"
    ALLOCATION_FAILED = "AllocationFailed"
    LIBRARY_CORRUPT = "LibraryCorrupt"
    COMPRESSION_FAILED = "CompressionFailed"
    ENCRYPTION_FAILED = "EncryptionFailed"
    INDEX_OUT_OF_RANGE = "IndexOutOfRange"
    RENAME_FAILED = "RenameFailed"
    DELETE_FAILED = "DeleteFailed"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    PERSISTENCE_FAILED = "PersistenceFailed"
    INVALID_FORMAT = "InvalidFormat"


_MESSAGES: Final[dict[ErrorKind, str]] = {
    ErrorKind.FILE_NOT_FOUND: "File not found",
    ErrorKind.INVALID_PATH: "Invalid path or file name",
    ErrorKind.PERMISSION_DENIED: "Permission denied",
    ErrorKind.INVALID_PASSWORD: "Password must not be empty",
    ErrorKind.PASSWORD_MISMATCH: "Password does not match the one used to encrypt; output is likely garbage",
    ErrorKind.ALLOCATION_FAILED: "Not enough memory to complete the operation",
    ErrorKind.LIBRARY_CORRUPT: "Library file is corrupt and could not be read",
    ErrorKind.COMPRESSION_FAILED: "Compressed data is malformed",
    ErrorKind.ENCRYPTION_FAILED: "Encryption failed",
    ErrorKind.INDEX_OUT_OF_RANGE: "No library entry at that position",
    ErrorKind.RENAME_FAILED: "Could not rename the encrypted file",
    ErrorKind.DELETE_FAILED: "Could not delete the encrypted file",
    ErrorKind.CAPACITY_EXCEEDED: "Library is full",
    ErrorKind.PERSISTENCE_FAILED: "Could not save the library",
    ErrorKind.INVALID_FORMAT: "Not a CCrypt encrypted file",
}


class CCryptError(Exception):
    """Base class for all CCrypt errors."""

    kind: ErrorKind = ErrorKind.ENCRYPTION_FAILED

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or _MESSAGES[self.kind])
        self.detail = detail


class FileMissingError(CCryptError):
    """Raised when a source file or artifact does not exist."""
    kind = ErrorKind.FILE_NOT_FOUND


class InvalidPathError(CCryptError):
    """Raised when a path or file name is unusable."""
    kind = ErrorKind.INVALID_PATH


class PermissionDeniedError(CCryptError):
    """Raised when the OS refuses access to a file."""
    kind = ErrorKind.PERMISSION_DENIED


class InvalidPasswordError(CCryptError):
    """Raised when the password is empty."""
    kind = ErrorKind.INVALID_PASSWORD


class AllocationFailedError(CCryptError):
    """Raised when a buffer could not be allocated."""
    kind = ErrorKind.ALLOCATION_FAILED


class LibraryCorruptError(CCryptError):
    """Raised when the persisted library cannot be parsed."""
    kind = ErrorKind.LIBRARY_CORRUPT


class CompressionError(CCryptError):
    """Raised when an RLE stream is malformed."""
    kind = ErrorKind.COMPRESSION_FAILED


class EncryptionError(CCryptError):
    """Raised when the cipher stage fails."""
    kind = ErrorKind.ENCRYPTION_FAILED


class IndexOutOfRangeError(CCryptError, IndexError):
    """Raised when a library position is outside ``0 <= index < count``."""
    kind = ErrorKind.INDEX_OUT_OF_RANGE


class RenameFailedError(CCryptError):
    """Raised when an artifact could not be renamed on disk."""
    kind = ErrorKind.RENAME_FAILED


class DeleteFailedError(CCryptError):
    """Raised when an artifact could not be removed from disk."""
    kind = ErrorKind.DELETE_FAILED


class CapacityExceededError(CCryptError):
    """Raised when a capped library is full."""
    kind = ErrorKind.CAPACITY_EXCEEDED


class PersistenceFailedError(CCryptError):
    """Raised when the library could not be written to disk."""
    kind = ErrorKind.PERSISTENCE_FAILED


class InvalidArtifactError(CCryptError):
    """Raised when an artifact is truncated or has a bad header."""
    kind = ErrorKind.INVALID_FORMAT


class PasswordMismatchWarning(UserWarning):
    """Warning emitted when the supplied password does not match the artifact seed."""
    kind = ErrorKind.PASSWORD_MISMATCH


def translate_os_error(
    exc: OSError,
    fallback: type[CCryptError] = InvalidPathError,
    path: Optional[object] = None,
) -> CCryptError:
    """
    Map a built-in ``OSError`` onto the matching CCrypt error.

    Args:
        exc: The OS error to translate
        fallback: Error class used for anything not covered below
        path: Optional path included in the message

    Returns:
        A CCryptError instance (not raised)
    """
    where = f": {path}" if path is not None else ""
    if isinstance(exc, FileNotFoundError):
        return FileMissingError(f"File not found{where}")
    if isinstance(exc, PermissionError):
        return PermissionDeniedError(f"Permission denied{where}")
    if isinstance(exc, (IsADirectoryError, NotADirectoryError)):
        return InvalidPathError(f"Not a regular file{where}")
    return fallback(f"{exc.strerror or exc}{where}")


def describe_error(error: BaseException) -> str:
    """
    Render any error as a single human-readable line.

    CCrypt errors use their kind's message, followed by the detail when it
    adds information. Anything else is reported generically.
    """
    if isinstance(error, CCryptError):
        base = _MESSAGES[error.kind]
        if error.detail and error.detail != base:
            return f"{base} ({error.detail})"
        return base
    if isinstance(error, PasswordMismatchWarning):
        return _MESSAGES[ErrorKind.PASSWORD_MISMATCH]
    if isinstance(error, MemoryError):
        return _MESSAGES[ErrorKind.ALLOCATION_FAILED]
    if isinstance(error, OSError):
        return describe_error(translate_os_error(error))
    return f"Unexpected error: {error.__class__.__name__}"
