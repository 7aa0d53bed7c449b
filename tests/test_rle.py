from __future__ import annotations

import random
import unittest

from ccrypt.core.compression import compress, compress_if_smaller, decompress
from ccrypt.core.errors import CompressionError


class RunLengthCodecTests(unittest.TestCase):
    def test_empty_input(self):
        self.assertEqual(compress(b""), b"")
        self.assertEqual(decompress(b""), b"")

    def test_mixed_runs(self):
        encoded = compress(b"aaaabbbccd")
        self.assertEqual(encoded, bytes([4, ord("a"), 3, ord("b"), 2, ord("c"), 1, ord("d")]))
        self.assertEqual(decompress(encoded), b"aaaabbbccd")

    def test_run_of_256_uses_zero_count(self):
        self.assertEqual(compress(b"x" * 256), b"\x00x")
        self.assertEqual(decompress(b"\x00A"), b"A" * 256)

    def test_long_run_is_split(self):
        data = b"x" * 300
        encoded = compress(data)
        self.assertEqual(encoded, b"\x00x" + bytes([44]) + b"x")
        self.assertEqual(decompress(encoded), data)

    def test_all_byte_values(self):
        data = bytes(range(256))
        encoded = compress(data)
        self.assertEqual(len(encoded), 512)
        self.assertEqual(decompress(encoded), data)

    def test_binary_data_with_zero_bytes(self):
        data = b"\x00" * 10 + b"\xff\x00\x00" + b"\x01" * 3
        self.assertEqual(decompress(compress(data)), data)

    def test_random_round_trip(self):
        rng = random.Random(20240601)
        for size in (1, 2, 255, 4096):
            data = rng.randbytes(size)
            self.assertEqual(decompress(compress(data)), data)
        runs = bytes(b for _ in range(200) for b in [rng.randrange(4)] * rng.randint(1, 300))
        self.assertEqual(decompress(compress(runs)), runs)

    def test_odd_length_rejected(self):
        with self.assertRaises(CompressionError):
            decompress(b"\x03a\x02")

    def test_compress_if_smaller(self):
        payload, compressed = compress_if_smaller(b"z" * 100)
        self.assertTrue(compressed)
        self.assertEqual(payload, b"dz")

        raw = bytes(range(256))
        payload, compressed = compress_if_smaller(raw)
        self.assertFalse(compressed)
        self.assertEqual(payload, raw)

    def test_compress_if_smaller_requires_strict_gain(self):
        # equal length is not a gain
        payload, compressed = compress_if_smaller(b"aabb")
        self.assertFalse(compressed)
        self.assertEqual(payload, b"aabb")


if __name__ == "__main__":
    unittest.main()
