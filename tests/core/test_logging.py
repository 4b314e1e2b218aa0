"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from snapserve.config.models import LoggingConfig, LogOutputConfig
from snapserve.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)


class TestRequestIdCorrelation:
    """Request ID context variable tests."""

    def setup_method(self) -> None:
        clear_request_id()

    def test_given_request_id_when_set_then_can_retrieve(self) -> None:
        result = set_request_id("test-123")

        assert result == "test-123"
        assert get_request_id() == "test-123"

    def test_given_no_id_when_set_then_generates_uuid(self) -> None:
        rid = set_request_id()

        assert len(rid) == 12  # uuid4().hex[:12]

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_request_id("to-clear")

        clear_request_id()

        assert get_request_id() is None


class TestConfigureLogging:
    def teardown_method(self) -> None:
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()
        clear_request_id()

    def test_json_file_output_includes_request_id(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "logs" / "snapserve.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )
        configure_logging(config=config)
        set_request_id("req-1")

        # When
        get_logger("test").info("snapshot_written", path="static/home.html")
        for handler in logging.getLogger().handlers:
            handler.flush()

        # Then
        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["event"] == "snapshot_written"
        assert record["request_id"] == "req-1"
        assert record["path"] == "static/home.html"

    def test_simple_setup_sets_root_level(self) -> None:
        configure_logging(level="WARNING")

        assert logging.getLogger().level == logging.WARNING
        assert len(logging.getLogger().handlers) == 1
