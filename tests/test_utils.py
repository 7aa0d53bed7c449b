from __future__ import annotations

import json
import logging
import tempfile
import unittest
from pathlib import Path

from ccrypt.core.errors import FileMissingError, InvalidPasswordError, InvalidPathError
from ccrypt.core.config import LoggingConfig
from ccrypt.core.logging import SecureLogFilter, configure_root_logger, get_secure_logger
from ccrypt.core.memory import ZeroizeContext, password_buffer, secure_zero
from ccrypt.utils import (
    byte_sum_checksum,
    file_checksum,
    file_extension,
    format_file_size,
    generate_encrypted_filename,
    sanitize_filename,
    validate_artifact_name,
    validate_password,
    validate_source_path,
)


class FormattingTests(unittest.TestCase):
    def test_format_file_size(self):
        self.assertEqual(format_file_size(0), "0.00 B")
        self.assertEqual(format_file_size(1536), "1.50 KB")
        self.assertEqual(format_file_size(5 * 1024 * 1024), "5.00 MB")
        self.assertEqual(format_file_size(1024 ** 4), "1024.00 GB")

    def test_checksums(self):
        self.assertEqual(byte_sum_checksum(b""), "00000000")
        self.assertEqual(byte_sum_checksum(b"\x01\x02\xff"), "00000102")
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "data.bin"
            path.write_bytes(b"\xff" * 1000)
            self.assertEqual(file_checksum(path), byte_sum_checksum(b"\xff" * 1000))


class PathTests(unittest.TestCase):
    def test_extension(self):
        self.assertEqual(file_extension("REPORT.PDF"), "pdf")
        self.assertEqual(file_extension("archive.tar.gz"), "gz")
        self.assertEqual(file_extension("Makefile"), "")

    def test_encrypted_filename(self):
        self.assertEqual(generate_encrypted_filename("report.pdf"), "report.ccrypt")
        self.assertEqual(generate_encrypted_filename("report.pdf", 7), "report_7.ccrypt")
        self.assertEqual(generate_encrypted_filename("my notes.txt"), "my_notes.ccrypt")
        self.assertEqual(generate_encrypted_filename("日本.txt"), "file.ccrypt")

    def test_sanitize(self):
        self.assertEqual(sanitize_filename("../../etc/passwd"), "etc_passwd")
        with self.assertRaises(ValueError):
            sanitize_filename("")


class ValidatorTests(unittest.TestCase):
    def test_artifact_names(self):
        self.assertEqual(validate_artifact_name("  ok.ccrypt "), "ok.ccrypt")
        for bad in ("", "   ", "a/b", "a\x00b", ".", "..", "x" * 256):
            with self.assertRaises(InvalidPathError):
                validate_artifact_name(bad)

    def test_source_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            with self.assertRaises(FileMissingError):
                validate_source_path(root / "absent.txt")
            with self.assertRaises(InvalidPathError):
                validate_source_path(root)
            with self.assertRaises(InvalidPathError):
                validate_source_path("")
            target = root / "present.txt"
            target.write_text("hi")
            self.assertEqual(validate_source_path(target), target.resolve())

    def test_password(self):
        validate_password("x")
        for bad in ("", b"", None):
            with self.assertRaises(InvalidPasswordError):
                validate_password(bad)


class ZeroizationTests(unittest.TestCase):
    def test_context_wipes(self):
        secret = password_buffer("hunter2")
        self.assertEqual(secret, bytearray(b"hunter2"))
        with ZeroizeContext(secret):
            pass
        self.assertEqual(secret, bytearray(7))

    def test_wipes_on_error(self):
        secret = password_buffer(b"abc")
        with self.assertRaises(RuntimeError):
            with ZeroizeContext(secret):
                raise RuntimeError("fail")
        self.assertEqual(secret, bytearray(3))

    def test_memoryview(self):
        buf = bytearray(b"abcd")
        secure_zero(memoryview(buf)[1:3])
        self.assertEqual(buf, bytearray(b"a\x00\x00d"))


class LogFilterTests(unittest.TestCase):
    def make_record(self, msg, *args):
        return logging.LogRecord("ccrypt.test", logging.INFO, __file__, 1, msg, args, None)

    def test_redacts_passwords_and_seeds(self):
        record = self.make_record("login password=hunter2 seed=0xdeadbeef done")
        SecureLogFilter().filter(record)
        self.assertNotIn("hunter2", record.getMessage())
        self.assertNotIn("deadbeef", record.getMessage())
        self.assertIn("done", record.getMessage())

    def test_redacts_arguments(self):
        record = self.make_record("value: %s", "password: swordfish")
        self.assertTrue(SecureLogFilter().filter(record))
        self.assertNotIn("swordfish", record.getMessage())


class LoggerSetupTests(unittest.TestCase):
    @staticmethod
    def close_handlers(logger: logging.Logger) -> None:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_json_file_logging_is_redacted(self):
        with tempfile.TemporaryDirectory() as tmp:
            logger = get_secure_logger("ccrypt.test_json", Path(tmp), enable_console=False, enable_json=True)
            logger.info("opened with password=hunter2")
            self.close_handlers(logger)

            payload = json.loads((Path(tmp) / "ccrypt_test_json.log").read_text(encoding="utf-8").strip())
            self.assertEqual(payload["level"], "INFO")
            self.assertEqual(payload["logger"], "ccrypt.test_json")
            self.assertNotIn("hunter2", payload["message"])

    def test_root_logger_writes_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = configure_root_logger(Path(tmp), LoggingConfig(enable_file=True))
            logging.getLogger("ccrypt.library").info("Saved 3 library entries")
            configure_root_logger(settings=LoggingConfig(enable_file=False))

            self.assertIn("Saved 3 library entries", (Path(tmp) / "ccrypt.log").read_text(encoding="utf-8"))
            self.assertIsInstance(root.handlers[0], logging.NullHandler)


if __name__ == "__main__":
    unittest.main()
