"""
Library store - the persistent catalog of encrypted files.
"""

from ccrypt.core.files.library import FileRecord, Library, SortKey, open_library

__all__ = ["FileRecord", "Library", "SortKey", "open_library"]
