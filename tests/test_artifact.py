from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from ccrypt.core.errors import FileMissingError, InvalidArtifactError
from ccrypt.core.file_ops import (
    ArtifactHeader,
    EncryptedArtifact,
    FileDecryptor,
    FileEncryptor,
    HEADER_SIZE,
    decrypt_bytes,
    decrypt_file,
    encrypt_bytes,
    encrypt_file,
)
from ccrypt.core.crypto import derive_seed


class ArtifactHeaderTests(unittest.TestCase):
    def test_layout(self):
        header = ArtifactHeader(compressed=True, seed=0x01020304)
        self.assertEqual(header.to_bytes(), b"CCRY\x01\x04\x03\x02\x01")
        self.assertEqual(HEADER_SIZE, 9)

    def test_parse(self):
        header = ArtifactHeader.from_bytes(b"CCRY\x00\xff\x00\x00\x00trailing")
        self.assertFalse(header.compressed)
        self.assertEqual(header.seed, 0xFF)

    def test_too_short(self):
        with self.assertRaises(InvalidArtifactError):
            ArtifactHeader.from_bytes(b"CCRY\x00")
        with self.assertRaises(InvalidArtifactError):
            EncryptedArtifact.from_bytes(b"")

    def test_bad_magic(self):
        with self.assertRaises(InvalidArtifactError):
            ArtifactHeader.from_bytes(b"NOPE\x00\x00\x00\x00\x00")

    def test_unknown_flags(self):
        with self.assertRaises(InvalidArtifactError):
            ArtifactHeader.from_bytes(b"CCRY\x02\x00\x00\x00\x00")


class ArtifactIOTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.root = Path(self.tmpdir.name)

    def test_save_and_load(self):
        artifact = encrypt_bytes(b"hello hello hello", "pw", compress=False)
        path = self.root / "sub" / "hello.ccrypt"
        artifact.save(path)

        self.assertEqual(path.stat().st_size, HEADER_SIZE + 17)
        loaded = EncryptedArtifact.load(path)
        self.assertEqual(loaded, artifact)
        self.assertEqual(loaded.header.seed, derive_seed("pw"))
        self.assertEqual(decrypt_bytes(loaded, "pw"), b"hello hello hello")
        # no temporary files left behind
        self.assertEqual([p.name for p in path.parent.iterdir()], ["hello.ccrypt"])

    def test_load_missing(self):
        with self.assertRaises(FileMissingError):
            EncryptedArtifact.load(self.root / "absent.ccrypt")

    def test_standalone_file_round_trip(self):
        source = self.root / "notes.txt"
        source.write_bytes(b"n" * 500 + b"otes")
        artifact_path = encrypt_file(source, "pw", compress=True)
        self.assertEqual(artifact_path.name, "notes.txt.ccrypt")

        result = decrypt_file(artifact_path, "pw")
        self.assertEqual(result.output_path.name, "notes.txt.ccrypt_dec")
        self.assertTrue(result.compressed)
        self.assertTrue(result.password_matched)
        self.assertEqual(result.output_path.read_bytes(), source.read_bytes())

    def test_decrypted_file_is_wiped(self):
        artifact = FileEncryptor().encrypt_bytes(b"sensitive", "pw")
        with FileDecryptor().decrypt(artifact, "pw") as result:
            self.assertEqual(result.get_content(), b"sensitive")
            buffer = result.content
        self.assertEqual(bytes(buffer), bytes(len(b"sensitive")))
        with self.assertRaises(ValueError):
            result.get_content()


if __name__ == "__main__":
    unittest.main()
