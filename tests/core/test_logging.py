"""Tests for hitch.core.logging: structlog setup, context and console echo."""

from __future__ import annotations

import io
import logging
import sys
from unittest.mock import patch

import pytest
import structlog

from hitch.core import logging as hitch_logging
from hitch.core.logging import (
    bind_context,
    clear_context,
    configure_console_logger,
    configure_logging,
    get_logger,
    remove_console_logger,
    unbind_context,
)


@pytest.fixture
def hitch_logger():
    logger = logging.getLogger("hitch")
    level = logger.level
    yield logger
    remove_console_logger()
    logger.setLevel(level)


class TestConfigureLogging:
    @patch("hitch.core.logging.logging.basicConfig")
    @patch("hitch.core.logging.structlog.configure")
    def test_json_renderer(self, mock_configure, mock_basic, hitch_logger):
        configure_logging(level="DEBUG", json_format=True)
        processors = mock_configure.call_args.kwargs["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert mock_basic.call_args.kwargs["level"] == logging.DEBUG
        assert hitch_logger.level == logging.DEBUG

    @patch("hitch.core.logging.logging.basicConfig")
    @patch("hitch.core.logging.structlog.configure")
    def test_console_renderer(self, mock_configure, mock_basic, hitch_logger):
        configure_logging(level="warning", json_format=False)
        processors = mock_configure.call_args.kwargs["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert mock_configure.call_args.kwargs["logger_factory"].__class__ is structlog.stdlib.LoggerFactory

    @patch("hitch.core.logging.logging.basicConfig")
    @patch("hitch.core.logging.structlog.configure")
    def test_timestamp_optional(self, mock_configure, mock_basic, hitch_logger):
        configure_logging(json_format=True, add_timestamp=False)
        processors = mock_configure.call_args.kwargs["processors"]
        assert not any(isinstance(p, structlog.processors.TimeStamper) for p in processors)

    @patch("hitch.core.logging.logging.basicConfig")
    @patch("hitch.core.logging.structlog.configure")
    def test_service_metadata(self, mock_configure, mock_basic, hitch_logger):
        configure_logging(json_format=True, service="blog")
        try:
            event = hitch_logging._add_service_metadata(None, "info", {"event": "x"})
            assert event["service"] == "blog"
        finally:
            hitch_logging._SERVICE_NAME = "hitch"


class TestContext:
    def test_bind_and_clear(self):
        clear_context()
        bind_context(request_id="r1", gateway="default")
        assert structlog.contextvars.get_contextvars() == {"request_id": "r1", "gateway": "default"}
        unbind_context("gateway")
        assert structlog.contextvars.get_contextvars() == {"request_id": "r1"}
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_get_logger(self):
        assert hasattr(get_logger(__name__), "info")


class TestConsoleLogger:
    def test_skipped_when_other_orm_active(self, hitch_logger):
        before = list(hitch_logger.handlers)
        assert configure_console_logger(other_orm_active=True) is False
        assert hitch_logger.handlers == before

    @patch("hitch.core.logging._logs_to_std_stream", return_value=True)
    def test_skipped_when_already_on_terminal(self, _mock, hitch_logger):
        assert configure_console_logger() is False

    @patch("hitch.core.logging._logs_to_std_stream", return_value=False)
    def test_adds_stderr_handler(self, _mock, hitch_logger):
        assert configure_console_logger() is True
        added = hitch_logger.handlers[-1]
        assert isinstance(added, logging.StreamHandler)
        remove_console_logger()
        assert added not in hitch_logger.handlers

    def test_logs_to_std_stream(self):
        logger = logging.getLogger("hitch_tests.isolated")
        logger.propagate = False
        handler = logging.StreamHandler(io.StringIO())
        logger.addHandler(handler)
        try:
            assert hitch_logging._logs_to_std_stream(logger) is False
            handler.setStream(sys.stderr)
            assert hitch_logging._logs_to_std_stream(logger) is True
        finally:
            logger.removeHandler(handler)
