"""Tests for logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from governance_engine.app_logging import ROOT_LOGGER_NAME, get_logger, is_configured, setup_logging


def test_component_loggers_are_children():
    logger = get_logger("evaluation")

    assert logger.name == "governance_engine.evaluation"
    assert get_logger("evaluation") is logger


def test_rich_handler_by_default():
    setup_logging("debug")

    root = logging.getLogger(ROOT_LOGGER_NAME)
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], RichHandler)
    assert root.propagate is False
    assert is_configured()


def test_plain_stream_handler():
    setup_logging("WARNING", rich_console=False)

    (handler,) = logging.getLogger(ROOT_LOGGER_NAME).handlers
    assert not isinstance(handler, RichHandler)
    assert handler.level == logging.WARNING


def test_repeated_setup_replaces_handler():
    setup_logging("INFO")
    setup_logging("ERROR")

    root = logging.getLogger(ROOT_LOGGER_NAME)
    assert len(root.handlers) == 1
    assert root.level == logging.ERROR


def test_unknown_level():
    with pytest.raises(ValueError, match="VERBOSE"):
        setup_logging("VERBOSE")
