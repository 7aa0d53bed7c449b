"""
Core module - Contains configuration, logging, errors and base components.
"""

from ccrypt.core.config import CCryptConfig
from ccrypt.core.errors import CCryptError, ErrorKind, describe_error
from ccrypt.core.logging import configure_root_logger, get_secure_logger, SecureLogFilter

__all__ = [
    "CCryptConfig",
    "CCryptError",
    "ErrorKind",
    "describe_error",
    "configure_root_logger",
    "get_secure_logger",
    "SecureLogFilter",
]
