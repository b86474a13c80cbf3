"""Unit tests for shared logging configuration."""

from __future__ import annotations

import logging
from unittest.mock import patch

import structlog

from volume_analyzer.shared.logging import configure_logging


def test_configure_logging_calls_structlog_and_basicconfig() -> None:
    with (
        patch("volume_analyzer.shared.logging.logging.basicConfig") as basic_config,
        patch("volume_analyzer.shared.logging.structlog.configure") as configure,
    ):
        configure_logging(level=logging.DEBUG)

    basic_config.assert_called_once()
    assert basic_config.call_args.kwargs["level"] == logging.DEBUG
    configure.assert_called_once()


def test_json_output_selects_json_renderer() -> None:
    with (
        patch("volume_analyzer.shared.logging.logging.basicConfig"),
        patch("volume_analyzer.shared.logging.structlog.configure") as configure,
    ):
        configure_logging(json_output=True)

    processors = configure.call_args.kwargs["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)
