"""
Utils module - Utility functions and helpers.

This module contains path, validation and formatting helpers used
throughout CCrypt.
"""

from ccrypt.utils.formatting import byte_sum_checksum, file_checksum, format_file_size
from ccrypt.utils.paths import (
    file_extension,
    generate_encrypted_filename,
    sanitize_filename,
)
from ccrypt.utils.validators import (
    validate_artifact_name,
    validate_password,
    validate_source_path,
)

__all__ = [
    "byte_sum_checksum",
    "file_checksum",
    "format_file_size",
    "file_extension",
    "generate_encrypted_filename",
    "sanitize_filename",
    "validate_artifact_name",
    "validate_password",
    "validate_source_path",
]
