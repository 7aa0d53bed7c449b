from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from ccrypt.core.crypto import CipherMethod
from ccrypt.core.errors import (
    CapacityExceededError,
    IndexOutOfRangeError,
    InvalidPathError,
    LibraryCorruptError,
    PermissionDeniedError,
    PersistenceFailedError,
    RenameFailedError,
)
from ccrypt.core.files import FileRecord, Library, SortKey, open_library


def _record(name: str, size: int = 10, **overrides) -> FileRecord:
    fields = dict(
        original_name=name,
        encrypted_name=Path(name).stem + ".ccrypt",
        original_size=size,
        encrypted_size=size + 9,
        is_compressed=False,
        file_type=Path(name).suffix.lstrip(".").lower(),
    )
    fields.update(overrides)
    return FileRecord(**fields)


class LibraryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.root = Path(self.tmpdir.name)
        self.db_path = self.root / "library.db"
        self.artifact_dir = self.root / "encrypted"
        self.artifact_dir.mkdir()
        self.library = Library(self.db_path, self.artifact_dir)

    def add_with_artifact(self, name: str, size: int = 10) -> FileRecord:
        stored = self.library.insert(_record(name, size))
        self.library.artifact_path(stored).write_bytes(b"x" * stored.encrypted_size)
        return stored


class RecordTests(unittest.TestCase):
    def test_names_required(self):
        with self.assertRaises(ValueError):
            _record("a.txt", original_name="")
        with self.assertRaises(ValueError):
            _record("a.txt", encrypted_name="x" * 256)

    def test_negative_size_rejected(self):
        with self.assertRaises(ValueError):
            _record("a.txt", size=-1)

    def test_method_coerced(self):
        self.assertIs(_record("a.txt", method=2).method, CipherMethod.REPEATING_KEY)


class InsertRemoveTests(LibraryTestCase):
    def test_ids_are_sequential(self):
        ids = [self.library.insert(_record(f"f{i}.txt")).encryption_id for i in range(3)]
        self.assertEqual(ids, [1, 2, 3])
        self.assertEqual(self.library.count, 3)
        self.assertTrue(self.library.is_modified)

    def test_insert_ignores_supplied_id(self):
        stored = self.library.insert(_record("a.txt", encryption_id=42))
        self.assertEqual(stored.encryption_id, 1)

    def test_size_and_id_ordering_then_remove(self):
        for name, size in (("a.txt", 100), ("b.txt", 50), ("c.txt", 200)):
            self.library.insert(_record(name, size))

        self.library.sort(SortKey.SIZE)
        self.assertEqual([r.original_size for r in self.library], [200, 100, 50])

        self.library.sort(SortKey.ID)
        self.assertEqual([r.encryption_id for r in self.library], [3, 2, 1])

        removed = self.library.remove(1)
        self.assertEqual(removed.encryption_id, 2)
        self.assertEqual(self.library.count, 2)
        self.assertEqual([r.encryption_id for r in self.library], [3, 1])

    def test_removed_id_not_reused(self):
        self.library.insert(_record("a.txt"))
        self.library.insert(_record("b.txt"))
        self.library.remove(1)
        self.assertEqual(self.library.insert(_record("c.txt")).encryption_id, 3)

    def test_index_bounds(self):
        with self.assertRaises(IndexOutOfRangeError):
            self.library.get(0)
        self.library.insert(_record("a.txt"))
        with self.assertRaises(IndexError):
            self.library[1]
        with self.assertRaises(IndexOutOfRangeError):
            self.library.remove(-1)
        self.assertEqual(self.library.count, 1)

    def test_capacity(self):
        library = Library(self.db_path, self.artifact_dir, max_entries=2)
        library.insert(_record("a.txt"))
        library.insert(_record("b.txt"))
        with self.assertRaises(CapacityExceededError):
            library.insert(_record("c.txt"))
        self.assertEqual(library.count, 2)
        self.assertEqual(library.next_id, 3)


class SortSearchTests(LibraryTestCase):
    def test_name_sort_ignores_case(self):
        for name in ("beta.txt", "Alpha.txt", "gamma.txt"):
            self.library.insert(_record(name))
        self.library.sort("name")
        self.assertEqual(
            [r.original_name for r in self.library],
            ["Alpha.txt", "beta.txt", "gamma.txt"],
        )

    def test_type_sort(self):
        for name in ("a.txt", "b.PDF", "c.doc"):
            self.library.insert(_record(name))
        self.library.sort(SortKey.TYPE)
        self.assertEqual([r.file_type for r in self.library], ["doc", "pdf", "txt"])

    def test_sort_is_stable(self):
        for name in ("first.txt", "second.txt", "third.txt"):
            self.library.insert(_record(name, size=7))
        self.library.sort(SortKey.SIZE)
        self.assertEqual(
            [r.original_name for r in self.library],
            ["first.txt", "second.txt", "third.txt"],
        )

    def test_unknown_sort_key(self):
        with self.assertRaises(ValueError):
            self.library.sort("colour")

    def test_substring_search(self):
        for name in ("report_a.txt", "notes.txt", "report_b.txt"):
            self.library.insert(_record(name))

        self.assertEqual(self.library.find_by_substring("report"), [0, 2])
        self.assertEqual(self.library.find_by_substring("report", max_results=1), [0])
        self.assertEqual(self.library.find_by_substring("Report"), [])
        self.assertEqual(self.library.find_by_substring("report", max_results=0), [])

    def test_find_by_id(self):
        self.library.insert(_record("a.txt"))
        self.library.insert(_record("b.txt"))
        self.assertEqual(self.library.find_by_id(2), 1)
        self.assertIsNone(self.library.find_by_id(9))


class RenameDeleteTests(LibraryTestCase):
    def test_rename(self):
        stored = self.add_with_artifact("a.txt")
        updated = self.library.rename(0, "renamed.ccrypt")

        self.assertEqual(updated.encrypted_name, "renamed.ccrypt")
        self.assertEqual(updated.encryption_id, stored.encryption_id)
        self.assertTrue((self.artifact_dir / "renamed.ccrypt").exists())
        self.assertFalse((self.artifact_dir / "a.ccrypt").exists())

    def test_rename_to_existing_name_fails(self):
        self.add_with_artifact("a.txt")
        self.add_with_artifact("b.txt")
        with self.assertRaises(RenameFailedError):
            self.library.rename(0, "b.ccrypt")
        self.assertEqual(self.library[0].encrypted_name, "a.ccrypt")
        self.assertTrue((self.artifact_dir / "a.ccrypt").exists())

    def test_rename_rejects_paths(self):
        self.add_with_artifact("a.txt")
        for bad in ("", "../escape.ccrypt", "sub/dir.ccrypt", ".."):
            with self.assertRaises(InvalidPathError):
                self.library.rename(0, bad)
        self.assertEqual(self.library[0].encrypted_name, "a.ccrypt")

    def test_rename_missing_artifact_keeps_record(self):
        self.library.insert(_record("a.txt"))
        with self.assertRaises(RenameFailedError):
            self.library.rename(0, "b.ccrypt")
        self.assertEqual(self.library[0].encrypted_name, "a.ccrypt")

    def test_delete(self):
        self.add_with_artifact("a.txt")
        self.add_with_artifact("b.txt")
        removed = self.library.delete(0)
        self.assertEqual(removed.original_name, "a.txt")
        self.assertFalse((self.artifact_dir / "a.ccrypt").exists())
        self.assertEqual([r.original_name for r in self.library], ["b.txt"])

    def test_secure_delete(self):
        self.add_with_artifact("a.txt", size=5000)
        self.library.delete(0, secure=True, passes=2)
        self.assertFalse((self.artifact_dir / "a.ccrypt").exists())
        self.assertEqual(self.library.count, 0)

    def test_delete_missing_artifact_still_removes_record(self):
        self.library.insert(_record("a.txt"))
        with self.assertLogs("ccrypt.library", level="WARNING"):
            self.library.delete(0)
        self.assertEqual(self.library.count, 0)


class PersistenceTests(LibraryTestCase):
    def test_round_trip(self):
        self.library.insert(_record("a.txt", 100, is_compressed=True, checksum="0000abcd"))
        self.library.insert(_record("b.bin", 5, method=CipherMethod.REPEATING_KEY, original_path="/tmp/b.bin"))
        self.library.sort(SortKey.NAME)
        self.assertTrue(self.library.save())
        self.assertFalse(self.library.is_modified)

        reopened = Library.open(self.db_path, self.artifact_dir)
        self.assertEqual(reopened.records(), self.library.records())
        self.assertEqual(reopened.next_id, 3)

    def test_next_id_survives_removal_of_newest(self):
        for name in ("a.txt", "b.txt", "c.txt"):
            self.library.insert(_record(name))
        self.library.remove(2)
        self.library.save()

        reopened = Library.open(self.db_path, self.artifact_dir)
        self.assertEqual(reopened.next_id, 4)
        self.assertEqual(reopened.insert(_record("d.txt")).encryption_id, 4)

    def test_save_skips_when_unchanged(self):
        self.assertFalse(self.library.save())
        self.assertFalse(self.db_path.exists())
        self.assertTrue(self.library.save(force=True))
        self.assertTrue(self.db_path.exists())
        self.assertEqual(Library.open(self.db_path).count, 0)

    def test_missing_or_empty_file_loads_empty(self):
        self.assertEqual(Library.open(self.db_path).count, 0)
        self.db_path.write_bytes(b"")
        self.assertEqual(Library.open(self.db_path).count, 0)

    def test_corrupt_file(self):
        self.db_path.write_bytes(b"this is not a library file " * 40)
        with self.assertRaises(LibraryCorruptError):
            Library.open(self.db_path)

    def test_open_library_falls_back_to_empty(self):
        self.db_path.write_bytes(b"this is not a library file " * 40)
        with self.assertLogs("ccrypt.library", level="ERROR"):
            library = open_library(self.db_path, self.artifact_dir)
        self.assertEqual(library.count, 0)
        self.assertTrue((self.root / "library.db.corrupt").exists())
        self.assertFalse(self.db_path.exists())

    def test_unreadable_file_is_not_treated_as_corrupt(self):
        self.library.insert(_record("a.txt"))
        self.library.save()
        before = self.db_path.read_bytes()

        denied = PermissionError(13, "Permission denied")
        with mock.patch.object(Path, "open", side_effect=denied):
            with self.assertRaises(PermissionDeniedError):
                Library.open(self.db_path)
            with self.assertRaises(PermissionDeniedError):
                open_library(self.db_path, self.artifact_dir)

        self.assertFalse((self.root / "library.db.corrupt").exists())
        self.assertEqual(self.db_path.read_bytes(), before)

    def test_failed_save_keeps_previous_file(self):
        self.library.insert(_record("a.txt"))
        self.library.save()
        before = self.db_path.read_bytes()

        self.library.insert(_record("b.txt"))
        with mock.patch("ccrypt.core.files.library.os.replace", side_effect=OSError(28, "No space left on device")), \
                self.assertLogs("ccrypt.library", level="ERROR"):
            with self.assertRaises(PersistenceFailedError):
                self.library.save()

        self.assertTrue(self.library.is_modified)
        self.assertEqual(self.db_path.read_bytes(), before)
        self.assertEqual(sorted(p.name for p in self.root.iterdir()), ["encrypted", "library.db"])
        self.assertEqual(Library.open(self.db_path).count, 1)

    def test_save_onto_directory_fails(self):
        target = self.root / "taken"
        target.mkdir()
        library = Library(target, self.artifact_dir)
        library.insert(_record("a.txt"))
        with self.assertLogs("ccrypt.library", level="ERROR"):
            with self.assertRaises(PersistenceFailedError):
                library.save()
        self.assertTrue(target.is_dir())
        self.assertFalse(any(p.suffix == ".tmp" for p in self.root.iterdir()))


if __name__ == "__main__":
    unittest.main()
