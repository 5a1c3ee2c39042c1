"""
Tests for logging configuration.
"""

import json
import logging
import os
from unittest.mock import patch

from tmoid.logging_config import JsonFormatter, setup_global_logging


def make_record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="tmoid.core.strategy",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_formats_basic_fields(self):
        """Test the standard fields are present."""
        output = json.loads(JsonFormatter().format(make_record("Authentication failed")))

        assert output["severity"] == "WARNING"
        assert output["name"] == "tmoid.core.strategy"
        assert output["message"] == "Authentication failed"
        assert "timestamp" in output

    def test_includes_extra_fields(self):
        """Test fields passed via extra= become top-level keys."""
        record = make_record("failed", attempt_id="abc", status_code=400)

        output = json.loads(JsonFormatter().format(record))

        assert output["attempt_id"] == "abc"
        assert output["status_code"] == 400
        assert "pathname" not in output


class TestSetupGlobalLogging:
    """Tests for setup_global_logging."""

    def test_sets_level_and_single_handler(self):
        """Test LOG_LEVEL is applied and only one handler remains."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level

        try:
            with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
                setup_global_logging()

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_text_format(self):
        """Test LOG_FORMAT=text uses a plain formatter."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level

        try:
            with patch.dict(os.environ, {"LOG_FORMAT": "text"}):
                setup_global_logging()

            assert not isinstance(root.handlers[0].formatter, JsonFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
