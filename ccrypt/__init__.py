"""
CCrypt - Password-Based File Encryption Library
===============================================

Encrypts files with a password-derived keystream, optionally
RLE-compressing them first, and keeps a persistent catalog of the
resulting artifacts.

Security Notice:
- The keystream cipher is NOT cryptographically secure
- Passwords and seeds are never logged
- Password buffers are wiped after use
"""

from ccrypt.core.config import CCryptConfig
from ccrypt.core.errors import CCryptError, PasswordMismatchWarning, describe_error
from ccrypt.core.file_ops.pipeline import CryptPipeline
from ccrypt.core.files.library import FileRecord, Library, SortKey, open_library
from ccrypt.core.logging import get_secure_logger

__version__ = "1.0.0"
__author__ = "CCrypt Team"

__all__ = [
    "CCryptConfig",
    "CCryptError",
    "PasswordMismatchWarning",
    "describe_error",
    "CryptPipeline",
    "FileRecord",
    "Library",
    "SortKey",
    "open_library",
    "get_secure_logger",
    "__version__",
]
