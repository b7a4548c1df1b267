import json
import logging
import sys
import unittest

from runemetrics.logging_config import JSONFormatter


class TestJSONFormatter(unittest.TestCase):
    def test_formats_record_as_json(self):
        record = logging.LogRecord(
            "runemetrics.tasks",
            logging.WARNING,
            __file__,
            10,
            "gap %s",
            ("found",),
            None,
        )

        data = json.loads(JSONFormatter().format(record))

        self.assertEqual(data["level"], "WARNING")
        self.assertEqual(data["logger"], "runemetrics.tasks")
        self.assertEqual(data["message"], "gap found")
        self.assertNotIn("exception", data)

    def test_includes_exception(self):
        try:
            raise ValueError("bad cache")
        except ValueError:
            record = logging.LogRecord(
                "runemetrics",
                logging.ERROR,
                __file__,
                10,
                "failed",
                (),
                sys.exc_info(),
            )

        data = json.loads(JSONFormatter().format(record))

        self.assertIn("bad cache", data["exception"])

