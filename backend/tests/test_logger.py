"""Tests for logging setup."""
import logging

import pytest

from firecrawl_dashboard.utils.logger import ROOT_LOGGER_NAME, get_logger, resolve_level, setup_logger


class TestLogger:
    """Tests for the logging helpers."""

    @pytest.mark.parametrize(
        "level,expected",
        [
            ("debug", logging.DEBUG),
            (" WARNING ", logging.WARNING),
            (logging.ERROR, logging.ERROR),
            ("loud", logging.INFO),
        ],
    )
    def test_resolve_level(self, level, expected):
        assert resolve_level(level) == expected

    def test_setup_does_not_stack_handlers(self):
        first = setup_logger("firecrawl-dashboard-test", "info")
        second = setup_logger("firecrawl-dashboard-test", "debug")
        assert first is second
        assert len(second.handlers) == 1
        assert second.level == logging.DEBUG

    def test_http_client_logs_quiet_unless_debugging(self):
        setup_logger("firecrawl-dashboard-test", "info")
        assert logging.getLogger("httpx").level == logging.WARNING
        setup_logger("firecrawl-dashboard-test", "debug")
        assert logging.getLogger("httpx").level == logging.DEBUG
        setup_logger("firecrawl-dashboard-test", "info")

    def test_component_logger_is_child_of_root(self, caplog):
        component = get_logger("firecrawl")
        assert component.name == f"{ROOT_LOGGER_NAME}.firecrawl"

        with caplog.at_level(logging.INFO, logger=ROOT_LOGGER_NAME):
            component.info("job started")
        assert any(
            record.name == f"{ROOT_LOGGER_NAME}.firecrawl" and record.message == "job started"
            for record in caplog.records
        )
