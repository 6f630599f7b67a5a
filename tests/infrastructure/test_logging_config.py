"""Unit tests for the structured logging setup."""

import json
import logging
import sys

from registration_desk.infrastructure.logging_config import StructuredFormatter, setup_logging


class TestStructuredFormatter:
    """Test suite for StructuredFormatter."""

    def test_formats_record_as_json(self):
        """Test the standard fields are present."""
        record = logging.LogRecord("registration_desk.test", logging.INFO, __file__, 10, "Saved visit %s", ("v1",), None)

        data = json.loads(StructuredFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "registration_desk.test"
        assert data["message"] == "Saved visit v1"
        assert data["line"] == 10
        assert data["timestamp"].endswith("Z")

    def test_includes_exception_and_extra_fields(self):
        """Test exception text and extra fields are carried."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_info = sys.exc_info()
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, exc_info)
        record.extra_fields = {"operation": "create"}
        record.patient_id = "P001"

        data = json.loads(StructuredFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]
        assert data["operation"] == "create"
        assert data["patient_id"] == "P001"


class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_json_handler(self, restore_root_logger):
        """Test JSON output installs the structured formatter."""
        setup_logging(use_json=True, log_level="debug")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)

    def test_unknown_level_defaults_to_info(self, restore_root_logger):
        """Test an unknown level name falls back to INFO."""
        setup_logging(log_level="chatty")

        assert restore_root_logger.level == logging.INFO
        assert not isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)
