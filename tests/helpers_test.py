import unittest

from runemetrics.common.helpers import (
    format_clock,
    format_number,
    format_percentage,
    normalize_activity_text,
)


class TestHelpers(unittest.TestCase):
    def test_format_clock_without_value(self):
        self.assertEqual(format_clock(None), "--:--:--")

    def test_format_number(self):
        self.assertEqual(format_number(13_034_431), "13,034,431")
        self.assertEqual(format_number(0), "0")

    def test_format_percentage(self):
        self.assertEqual(format_percentage(40.6593), "40.7")
        self.assertEqual(format_percentage(None), "max")

    def test_normalize_activity_text(self):
        self.assertEqual(
            normalize_activity_text("  I levelled my  Attack skill,   I am now 99. "),
            "I levelled my Attack skill, I am now 99.",
        )
