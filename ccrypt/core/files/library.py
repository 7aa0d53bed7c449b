"""
Encrypted File Library
======================

Tracks encrypted artifacts and their metadata.

The library is an ordered, in-memory collection of ``FileRecord`` values
owned by the running process. It is hydrated from disk with ``load()``
and flushed with ``save()``; between those points every mutation only
marks it dirty.

Persistence:
    A SQLite database with a ``records`` table (``position`` keeps the
    current order) and a ``meta`` table holding ``next_id``. ``save()``
    builds a fresh database next to the target and atomically replaces
    it, so a failed save never damages the previous file.

Concurrency:
    Not thread-safe. insert/remove/rename/sort/delete need exclusive
    access; compaction and reordering are unsafe under concurrent
    iteration.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import tempfile
from contextlib import closing
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Final, Iterator, List, Optional

from ccrypt.core.crypto.keystream import CipherMethod, DEFAULT_METHOD
from ccrypt.core.errors import (
    CapacityExceededError,
    DeleteFailedError,
    IndexOutOfRangeError,
    LibraryCorruptError,
    PermissionDeniedError,
    PersistenceFailedError,
    RenameFailedError,
    translate_os_error,
)
from ccrypt.core.file_ops.secure_delete import DEFAULT_OVERWRITE_PASSES, secure_delete
from ccrypt.utils.paths import MAX_FILENAME_LENGTH
from ccrypt.utils.validators import validate_artifact_name


SCHEMA_VERSION: Final[int] = 1
_SQLITE_MAGIC: Final[bytes] = b"SQLite format 3\x00"


@dataclass(frozen=True, slots=True)
class FileRecord:
    """
    One catalog entry describing an encrypted artifact.

    Records are immutable. The library replaces a stored record when it
    assigns an id or renames the artifact, so a record handed to a caller
    never changes underneath it.
    """
    original_name: str
    encrypted_name: str
    original_size: int
    encrypted_size: int
    is_compressed: bool
    method: CipherMethod = DEFAULT_METHOD
    encryption_id: int = 0  # 0 until inserted
    original_path: str = ""
    file_type: str = ""
    checksum: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", CipherMethod(self.method))
        object.__setattr__(self, "is_compressed", bool(self.is_compressed))

        for name in ("original_name", "encrypted_name"):
            value = getattr(self, name)
            if not value:
                raise ValueError(f"{name} cannot be empty")
            if len(value) > MAX_FILENAME_LENGTH:
                raise ValueError(f"{name} too long (max {MAX_FILENAME_LENGTH})")
        if self.original_size < 0 or self.encrypted_size < 0:
            raise ValueError("Sizes must be non-negative")
        if self.encryption_id < 0:
            raise ValueError("encryption_id must be non-negative")

    def __repr__(self) -> str:
        return (
            f"FileRecord(id={self.encryption_id}, original={self.original_name!r}, "
            f"encrypted={self.encrypted_name!r}, size={self.original_size})"
        )


class SortKey(str, Enum):
    """Library orderings."""
    NAME = "name"  # case-insensitive, ascending
    ID = "id"      # newest first
    SIZE = "size"  # largest first
    TYPE = "type"  # extension, case-insensitive, ascending


_SORT_SPECS: Final[dict[SortKey, tuple[Callable[[FileRecord], object], bool]]] = {
    SortKey.NAME: (lambda r: r.original_name.casefold(), False),
    SortKey.ID: (lambda r: r.encryption_id, True),
    SortKey.SIZE: (lambda r: r.original_size, True),
    SortKey.TYPE: (lambda r: r.file_type.casefold(), False),
}

_SCHEMA: Final[str] = """
CREATE TABLE meta (
    key TEXT PRIMARY KEY,
    value INTEGER NOT NULL
);
CREATE TABLE records (
    position INTEGER PRIMARY KEY,
    encryption_id INTEGER NOT NULL UNIQUE,
    original_name TEXT NOT NULL,
    encrypted_name TEXT NOT NULL,
    original_path TEXT NOT NULL,
    original_size INTEGER NOT NULL,
    encrypted_size INTEGER NOT NULL,
    is_compressed INTEGER NOT NULL,
    method INTEGER NOT NULL,
    file_type TEXT NOT NULL,
    checksum TEXT NOT NULL
);
"""

_COLUMNS: Final[tuple[str, ...]] = (
    "encryption_id", "original_name", "encrypted_name", "original_path",
    "original_size", "encrypted_size", "is_compressed", "method",
    "file_type", "checksum",
)


class Library:
    """
    Ordered, persistent catalog of encrypted files.

    Usage:
        library = Library.open(config.paths.library_file, config.paths.artifact_dir)
        record = library.insert(record)
        library.sort(SortKey.SIZE)
        for index in library.find_by_substring("report"):
            print(library[index].original_name)
        library.save()
    """

    __slots__ = (
        "_path", "_artifact_dir", "_records", "_next_id",
        "_modified", "_max_entries", "_log",
    )

    def __init__(
        self,
        path: Path | str,
        artifact_dir: Optional[Path | str] = None,
        max_entries: Optional[int] = None,
    ) -> None:
        """
        Create an empty library bound to ``path``.

        Args:
            path: Persistence file
            artifact_dir: Directory holding the artifacts (defaults to
                an ``encrypted`` directory beside ``path``)
            max_entries: Optional cap; None means unbounded
        """
        self._path = Path(path)
        self._artifact_dir = Path(artifact_dir) if artifact_dir else self._path.parent / "encrypted"
        self._records: List[FileRecord] = []
        self._next_id = 1
        self._modified = False
        self._max_entries = max_entries
        self._log = logging.getLogger("ccrypt.library")

    @classmethod
    def open(
        cls,
        path: Path | str,
        artifact_dir: Optional[Path | str] = None,
        max_entries: Optional[int] = None,
    ) -> Library:
        """Create a library and load it from ``path``."""
        library = cls(path, artifact_dir, max_entries)
        library.load()
        return library

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def artifact_dir(self) -> Path:
        return self._artifact_dir

    @property
    def count(self) -> int:
        """Number of live records."""
        return len(self._records)

    @property
    def next_id(self) -> int:
        """Id the next insert will assign."""
        return self._next_id

    @property
    def is_modified(self) -> bool:
        """True when there are unsaved changes."""
        return self._modified

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(tuple(self._records))

    def __getitem__(self, index: int) -> FileRecord:
        return self.get(index)

    def __repr__(self) -> str:
        return f"Library(path={str(self._path)!r}, count={self.count}, modified={self._modified})"

    def records(self) -> List[FileRecord]:
        """Snapshot of all records in current order."""
        return list(self._records)

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._records):
            raise IndexOutOfRangeError(
                f"Index {index!r} outside 0..{len(self._records) - 1}"
                if self._records else f"Index {index!r} on empty library"
            )

    def get(self, index: int) -> FileRecord:
        """
        Return the record at ``index`` in current order.

        Raises:
            IndexOutOfRangeError: Unless ``0 <= index < count``
        """
        self._check_index(index)
        return self._records[index]

    def artifact_path(self, record: FileRecord) -> Path:
        """Absolute location of a record's artifact."""
        return self._artifact_dir / record.encrypted_name

    def find_by_id(self, encryption_id: int) -> Optional[int]:
        """Position of the record with ``encryption_id``, or None."""
        for position, record in enumerate(self._records):
            if record.encryption_id == encryption_id:
                return position
        return None

    def find_by_substring(self, pattern: str, max_results: Optional[int] = None) -> List[int]:
        """
        Positions whose ``original_name`` contains ``pattern``.

        Matching is case-sensitive; results follow the current order and
        stop after ``max_results`` matches when given.
        """
        if max_results is not None and max_results <= 0:
            return []

        matches: List[int] = []
        for position, record in enumerate(self._records):
            if pattern in record.original_name:
                matches.append(position)
                if max_results is not None and len(matches) >= max_results:
                    break
        return matches

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, record: FileRecord) -> FileRecord:
        """
        Append a record and assign it the next encryption id.

        Any id already on ``record`` is ignored.

        Returns:
            The stored record, carrying its new id

        Raises:
            CapacityExceededError: If a ``max_entries`` cap is reached
        """
        if self._max_entries is not None and len(self._records) >= self._max_entries:
            raise CapacityExceededError(
                f"Library holds the maximum of {self._max_entries} entries"
            )

        stored = replace(record, encryption_id=self._next_id)
        self._records.append(stored)
        self._next_id += 1
        self._modified = True

        self._log.debug("Added %s as id %d (count=%d)", stored.original_name, stored.encryption_id, self.count)
        return stored

    def remove(self, index: int) -> FileRecord:
        """
        Drop the record at ``index``; later records shift down by one.

        The removed id is never handed out again.

        Raises:
            IndexOutOfRangeError: Unless ``0 <= index < count``
        """
        self._check_index(index)
        removed = self._records.pop(index)
        self._modified = True
        self._log.debug("Removed id %d (count=%d)", removed.encryption_id, self.count)
        return removed

    def sort(self, key: SortKey | str) -> None:
        """
        Reorder records in place.

        ``name`` and ``type`` sort ascending ignoring case; ``id`` and
        ``size`` sort descending. The sort is stable: records with equal
        keys keep their pre-sort relative order.

        Raises:
            ValueError: If ``key`` is not a known sort key
        """
        sort_key = SortKey(key)
        extract, descending = _SORT_SPECS[sort_key]
        self._records.sort(key=extract, reverse=descending)
        self._modified = True

    def rename(self, index: int, new_name: str) -> FileRecord:
        """
        Rename a record's artifact on disk and update ``encrypted_name``.

        The metadata only changes after the filesystem rename succeeded.

        Returns:
            The updated record

        Raises:
            IndexOutOfRangeError: Unless ``0 <= index < count``
            InvalidPathError: If ``new_name`` is not a bare, valid file name
            RenameFailedError: If the target exists or the OS rename fails
        """
        record = self.get(index)
        new_name = validate_artifact_name(new_name)

        if new_name == record.encrypted_name:
            return record

        if any(other.encrypted_name == new_name for other in self._records):
            raise RenameFailedError(f"Another entry already uses {new_name!r}")

        source = self.artifact_path(record)
        target = self._artifact_dir / new_name
        if target.exists():
            raise RenameFailedError(f"Target already exists: {new_name}")

        try:
            os.rename(source, target)
        except OSError as e:
            raise RenameFailedError(f"{record.encrypted_name} -> {new_name}: {e.strerror or e}") from e

        updated = replace(record, encrypted_name=new_name)
        self._records[index] = updated
        self._modified = True
        self._log.info("Renamed artifact %s -> %s", record.encrypted_name, new_name)
        return updated

    def delete(
        self,
        index: int,
        secure: bool = False,
        passes: int = DEFAULT_OVERWRITE_PASSES,
    ) -> FileRecord:
        """
        Remove a record's artifact from disk, then the record itself.

        An artifact that is already gone is logged and the record is
        still removed.

        Args:
            index: Position of the record
            secure: Overwrite the artifact before unlinking
            passes: Overwrite passes when ``secure`` is set

        Returns:
            The removed record

        Raises:
            IndexOutOfRangeError: Unless ``0 <= index < count``
            DeleteFailedError: If the artifact could not be removed; the
                record is kept
        """
        record = self.get(index)
        path = self.artifact_path(record)

        try:
            secure_delete(path, passes=passes if secure else 0)
        except FileNotFoundError:
            self._log.warning("Artifact %s already missing; dropping its record", record.encrypted_name)
        except DeleteFailedError:
            raise
        except OSError as e:
            raise DeleteFailedError(f"{record.encrypted_name}: {e.strerror or e}") from e

        return self.remove(index)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Replace the in-memory state with the persisted library.

        A missing or zero-length file yields an empty library.

        Raises:
            LibraryCorruptError: If the file exists but cannot be parsed
            PermissionDeniedError: If the file exists but cannot be read
        """
        self._records = []
        self._next_id = 1
        self._modified = False

        try:
            if not self._path.exists() or self._path.stat().st_size == 0:
                self._log.info("No library at %s; starting empty", self._path)
                return
            with self._path.open("rb") as fh:
                magic = fh.read(len(_SQLITE_MAGIC))
        except OSError as e:
            raise translate_os_error(e, path=self._path) from e

        if magic != _SQLITE_MAGIC:
            raise LibraryCorruptError(f"{self._path}: not a library file")

        uri = self._path.resolve().as_uri() + "?mode=ro"
        try:
            with closing(sqlite3.connect(uri, uri=True)) as conn:
                conn.row_factory = sqlite3.Row
                version = conn.execute("PRAGMA user_version").fetchone()[0]
                if version != SCHEMA_VERSION:
                    raise LibraryCorruptError(f"Unsupported library schema version {version}")
                meta = dict(conn.execute("SELECT key, value FROM meta").fetchall())
                rows = conn.execute(
                    f"SELECT {', '.join(_COLUMNS)} FROM records ORDER BY position"
                ).fetchall()
        except sqlite3.OperationalError as e:
            if "unable to open" in str(e):
                raise PermissionDeniedError(f"Cannot open {self._path}: {e}") from e
            raise LibraryCorruptError(f"{self._path}: {e}") from e
        except sqlite3.Error as e:
            raise LibraryCorruptError(f"{self._path}: {e}") from e

        try:
            records = [self._row_to_record(row) for row in rows]
            stored_next = int(meta.get("next_id", 1))
        except (ValueError, TypeError) as e:
            raise LibraryCorruptError(f"{self._path}: invalid record ({e})") from e

        highest = max((r.encryption_id for r in records), default=0)
        if any(r.encryption_id == 0 for r in records):
            raise LibraryCorruptError(f"{self._path}: record without an id")

        self._records = records
        self._next_id = max(stored_next, highest + 1, 1)
        self._log.info("Loaded %d library entries from %s", len(records), self._path)

    def save(self, force: bool = False) -> bool:
        """
        Write the library to disk atomically.

        Args:
            force: Write even when there are no unsaved changes

        Returns:
            True if the file was written

        Raises:
            PersistenceFailedError: If writing fails; the previous file
                is left untouched
        """
        if not self._modified and not force:
            return False

        tmp_name: Optional[str] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            os.close(fd)

            with closing(sqlite3.connect(tmp_name)) as conn:
                conn.executescript(_SCHEMA)
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
                conn.execute("INSERT INTO meta (key, value) VALUES ('next_id', ?)", (self._next_id,))
                conn.executemany(
                    f"INSERT INTO records (position, {', '.join(_COLUMNS)}) "
                    f"VALUES ({', '.join('?' * (len(_COLUMNS) + 1))})",
                    [
                        (position, *self._record_to_row(record))
                        for position, record in enumerate(self._records)
                    ],
                )
                conn.commit()

            os.replace(tmp_name, self._path)
            tmp_name = None
        except (OSError, sqlite3.Error) as e:
            self._log.error("Saving library to %s failed: %s", self._path, e)
            raise PersistenceFailedError(f"{self._path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    self._log.warning("Could not remove temporary file %s", tmp_name)

        self._modified = False
        self._log.info("Saved %d library entries to %s", self.count, self._path)
        return True

    @staticmethod
    def _record_to_row(record: FileRecord) -> tuple:
        return (
            record.encryption_id,
            record.original_name,
            record.encrypted_name,
            record.original_path,
            record.original_size,
            record.encrypted_size,
            int(record.is_compressed),
            int(record.method),
            record.file_type,
            record.checksum,
        )

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> FileRecord:
        return FileRecord(
            original_name=row["original_name"],
            encrypted_name=row["encrypted_name"],
            original_size=int(row["original_size"]),
            encrypted_size=int(row["encrypted_size"]),
            is_compressed=bool(row["is_compressed"]),
            method=CipherMethod(int(row["method"])),
            encryption_id=int(row["encryption_id"]),
            original_path=row["original_path"],
            file_type=row["file_type"],
            checksum=row["checksum"],
        )


def open_library(
    path: Path | str,
    artifact_dir: Optional[Path | str] = None,
    max_entries: Optional[int] = None,
) -> Library:
    """
    Load the library for startup, falling back to an empty one.

    A corrupt file is logged, moved aside to ``<name>.corrupt`` so the
    next save does not destroy it, and an empty library is returned.
    A file that exists but cannot be read is left in place and the
    error propagates.
    """
    library = Library(path, artifact_dir, max_entries)
    log = logging.getLogger("ccrypt.library")
    try:
        library.load()
    except LibraryCorruptError as e:
        log.error("Library unreadable, starting empty: %s", e)
        backup = library.path.with_name(library.path.name + ".corrupt")
        try:
            os.replace(library.path, backup)
            log.warning("Moved unreadable library to %s", backup)
        except OSError as move_error:
            log.error("Could not move unreadable library aside: %s", move_error)
    return library
