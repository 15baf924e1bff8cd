"""
Unit tests for number rendering and parsing in the digest text encoding.
"""

import math
import unittest

from merge_digest.core.text_format import (
    INT64_MAX,
    INT64_MIN,
    format_compression,
    format_count,
    format_double,
    parse_double,
    parse_int,
)


class TestFormatting(unittest.TestCase):
    """Tests for rendering numbers the way printf does."""

    def test_format_compression(self):
        self.assertEqual(format_compression(100), "100")
        self.assertEqual(format_compression(100.0), "100")
        self.assertEqual(format_compression(0), "0")
        self.assertEqual(format_compression(0.5), "0.5")
        self.assertEqual(format_compression(123.4567), "123.457")
        self.assertEqual(format_compression(1e6), "1e+06")

    def test_format_double(self):
        self.assertEqual(format_double(5.0), "5")
        self.assertEqual(format_double(-2.5), "-2.5")
        self.assertEqual(format_double(500.5), "500.5")
        self.assertEqual(format_double(0.1), "0.10000000000000001")
        self.assertEqual(format_double(1e22), "1e+22")

    def test_format_double_round_trips(self):
        for value in (0.1, 1 / 3, math.pi, -1e-12, 123456789.123456789, 2.0**-1074):
            self.assertEqual(float(format_double(value)), value)

    def test_format_count(self):
        self.assertEqual(format_count(0), "0")
        self.assertEqual(format_count(42), "42")
        self.assertEqual(format_count(INT64_MAX), "9223372036854775807")


class TestParsing(unittest.TestCase):
    """Tests for strict number parsing."""

    def test_parse_double_valid(self):
        self.assertEqual(parse_double("1.5"), 1.5)
        self.assertEqual(parse_double(" 2 "), 2.0)
        self.assertEqual(parse_double("1e3"), 1000.0)
        self.assertEqual(parse_double("-.5"), -0.5)
        self.assertEqual(parse_double("5."), 5.0)
        self.assertEqual(parse_double("+7E-1"), 0.7)
        self.assertEqual(parse_double("inf"), math.inf)
        self.assertEqual(parse_double("-Infinity"), -math.inf)
        self.assertTrue(math.isnan(parse_double("nan")))

    def test_parse_double_invalid(self):
        for token in ("", " ", "abc", "1_000", "0x10", "1.5x", "--1", "1e", ".", "١"):
            self.assertIsNone(parse_double(token), msg=f"token {token!r}")

    def test_parse_int_valid(self):
        self.assertEqual(parse_int("42"), 42)
        self.assertEqual(parse_int("-3"), -3)
        self.assertEqual(parse_int(" 7 "), 7)
        self.assertEqual(parse_int("9223372036854775807"), INT64_MAX)
        self.assertEqual(parse_int("-9223372036854775808"), INT64_MIN)

    def test_parse_int_invalid(self):
        for token in ("", "1.0", "1e3", "1_0", "x", "9223372036854775808", "١"):
            self.assertIsNone(parse_int(token), msg=f"token {token!r}")


if __name__ == "__main__":
    unittest.main()
