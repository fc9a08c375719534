"""Tests for structured logging behavior."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
import unittest

import structlog

from zen_chat.logging_utils import configure_logging


def _stream_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [
        h
        for h in root.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]


def _record(name: str, level: int = logging.INFO, msg: str = "ok") -> logging.LogRecord:
    return logging.LogRecord(
        name=name, level=level, pathname="", lineno=0, msg=msg, args=(), exc_info=None
    )


class ConfigureLoggingTests(unittest.TestCase):
    """Validate configure_logging() handler setup behavior."""

    def setUp(self) -> None:
        # Preserve root logger state so tests do not pollute each other.
        root = logging.getLogger()
        self._original_level = root.level
        self._original_handlers = list(root.handlers)

    def tearDown(self) -> None:
        root = logging.getLogger()
        for handler in root.handlers:
            if handler not in self._original_handlers:
                handler.close()
        root.setLevel(self._original_level)
        root.handlers.clear()
        root.handlers.extend(self._original_handlers)

    def test_structured_output_carries_extra_fields(self) -> None:
        configure_logging({"level": "INFO", "structured": True, "log_to_file": False})
        (handler,) = _stream_handlers(logging.getLogger())
        self.assertIsInstance(handler.formatter, structlog.stdlib.ProcessorFormatter)

        record = _record("zen_chat.controller", msg="chat.reset")
        record.event = "chat.reset"
        record.cancelled_request = True
        assert handler.formatter is not None
        data = json.loads(handler.formatter.format(record))
        self.assertEqual(data["event"], "chat.reset")
        self.assertIs(data["cancelled_request"], True)
        self.assertEqual(data["level"], "info")
        self.assertEqual(data["logger"], "zen_chat.controller")

    def test_plain_formatter_when_not_structured(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        formatters = [h.formatter for h in logging.getLogger().handlers]
        self.assertFalse(
            any(isinstance(f, structlog.stdlib.ProcessorFormatter) for f in formatters)
        )

    def test_sets_root_level(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False})
        self.assertEqual(logging.getLogger().level, logging.DEBUG)

    def test_stderr_only_shows_warnings(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False})
        (handler,) = _stream_handlers(logging.getLogger())
        self.assertEqual(handler.level, logging.WARNING)

    def test_noisy_loggers_set_to_warning(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False})
        for name in ("httpx", "httpcore"):
            self.assertEqual(logging.getLogger(name).level, logging.WARNING)

    def test_file_handler_created(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "logs" / "zen.log"
            configure_logging(
                {
                    "level": "DEBUG",
                    "structured": False,
                    "log_to_file": True,
                    "log_file_path": str(log_path),
                }
            )
            file_handlers = [
                h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
            ]
            self.assertEqual(len(file_handlers), 1)
            self.assertTrue(log_path.exists())

    def test_stderr_handler_filters_to_zen_chat(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False})
        (handler,) = _stream_handlers(logging.getLogger())
        self.assertTrue(handler.filter(_record("zen_chat.app", logging.WARNING)))
        self.assertFalse(handler.filter(_record("httpx", logging.WARNING, "noise")))


if __name__ == "__main__":
    unittest.main()
