import json
import logging
import os
import sys
import unittest
from unittest.mock import patch

from config.logging_config import JsonFormatter, SecretMaskFilter, configure_logging


def _record(msg, *args, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord("services.market", logging.INFO, __file__, 1, msg, args, exc_info)


class JsonFormatterTests(unittest.TestCase):
    def test_base_fields_and_extra(self) -> None:
        record = _record("request_finished status=%s", 200)
        record.extra = {"cache": "HIT", "status": 200, "level": "shadowed", "skip": None}

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["message"], "request_finished status=200")
        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["logger"], "services.market")
        self.assertTrue(payload["ts"].endswith("Z"))
        self.assertEqual(payload["cache"], "HIT")
        self.assertEqual(payload["status"], 200)
        self.assertNotIn("skip", payload)

    def test_sets_are_serialized_sorted(self) -> None:
        record = _record("found")
        record.extra = {"symbols": {"SOL", "BTC"}}
        payload = json.loads(JsonFormatter().format(record))
        self.assertEqual(payload["symbols"], ["BTC", "SOL"])

    def test_exception_is_included(self) -> None:
        try:
            raise ValueError("bad payload")
        except ValueError:
            record = _record("refresh failed", exc_info=sys.exc_info())
        payload = json.loads(JsonFormatter().format(record))
        self.assertIn("ValueError: bad payload", payload["exception"])


class SecretMaskFilterTests(unittest.TestCase):
    def test_masks_key_in_formatted_message(self) -> None:
        record = _record("calling CMC with key=%s", "abc-123")
        self.assertTrue(SecretMaskFilter(["abc-123"]).filter(record))
        self.assertEqual(record.getMessage(), "calling CMC with key=***")

    def test_leaves_other_records_untouched(self) -> None:
        record = _record("fetched %d coins", 100)
        SecretMaskFilter(["abc-123", None]).filter(record)
        self.assertEqual(record.args, (100,))
        self.assertEqual(record.getMessage(), "fetched 100 coins")

    def test_configure_logging_installs_filter_for_env_key(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        self.addCleanup(lambda: (setattr(root, "handlers", saved[0]), root.setLevel(saved[1])))

        with patch.dict(os.environ, {"COINMARKETCAP_API_KEY": "real-key", "LOG_JSON": "1"}):
            configure_logging("DEBUG")

        self.assertEqual(root.level, logging.DEBUG)
        self.assertEqual(len(root.handlers), 1)
        handler = root.handlers[0]
        self.assertIsInstance(handler.formatter, JsonFormatter)
        masks = [f for f in handler.filters if isinstance(f, SecretMaskFilter)]
        self.assertEqual(masks[0].secrets, ("real-key",))


if __name__ == "__main__":
    unittest.main()
