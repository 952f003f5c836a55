"""Tests for logging settings parsing."""

import logging
from pathlib import Path

from speakahead.logging_settings import (
    METRICS_LOGGERS,
    SPEECH_LOGGERS,
    LoggingSettings,
    apply_area_levels,
    parse_logging_settings,
)


def test_parse_logging_settings(tmp_path: Path) -> None:
    """Test parsing every area."""
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text(
        """
# Test config
terminal = debug
speech = info
metrics = warning
"""
    )

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level == 10  # DEBUG
    assert settings.speech_level == 20  # INFO
    assert settings.metrics_level == 30  # WARNING


def test_parse_logging_settings_defaults(tmp_path: Path) -> None:
    """Test default values when config file doesn't exist."""
    config_file = tmp_path / "nonexistent.conf"

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level == 20  # Default INFO
    assert settings.speech_level == 20  # Default INFO
    assert settings.metrics_level == 20  # Default INFO


def test_parse_logging_settings_partial(tmp_path: Path) -> None:
    """Test parsing with only some settings specified."""
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text("SPEECH = Debug\nnot a setting\nunknown = debug\n")

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level == 20  # Default INFO
    assert settings.speech_level == 10  # DEBUG
    assert settings.metrics_level == 20  # Default INFO


def test_parse_logging_settings_off_and_invalid(tmp_path: Path) -> None:
    """Test 'off' disables an area and unknown levels fall back to info."""
    config_file = tmp_path / "logging_settings.conf"
    config_file.write_text("terminal = off\nmetrics = loud\n")

    settings = parse_logging_settings(config_file)

    assert settings.terminal_level is None
    assert settings.metrics_level == 20


def test_apply_area_levels() -> None:
    apply_area_levels(
        LoggingSettings(terminal_level=20, speech_level=10, metrics_level=None)
    )

    for name in SPEECH_LOGGERS:
        assert logging.getLogger(name).level == logging.DEBUG
    for name in METRICS_LOGGERS:
        assert not logging.getLogger(name).isEnabledFor(logging.CRITICAL)

    # Child loggers follow their area
    assert not logging.getLogger("speakahead.simulation.agent").isEnabledFor(
        logging.ERROR
    )

    apply_area_levels(LoggingSettings(20, 20, 20))
