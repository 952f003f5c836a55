"""Helpers for parsing the simple logging settings file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

_LEVEL_MAP: dict[str, int | None] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "off": None,
}

_DEFAULT_KEYS = ("terminal", "speech", "metrics")
_DEFAULT_LEVEL = "info"

# Loggers adjusted by the per-area keys
SPEECH_LOGGERS = (
    "speakahead.services.tts",
    "speakahead.services.tts_service",
    "speakahead.services.session_controller",
)
METRICS_LOGGERS = (
    "speakahead.services.conversation_metrics",
    "speakahead.simulation",
)


@dataclass(frozen=True)
class LoggingSettings:
    terminal_level: int | None
    speech_level: int | None
    metrics_level: int | None


def _normalize_level(value: str) -> str:
    return value.strip().lower()


def _resolve_level(value: str) -> int | None:
    return _LEVEL_MAP.get(_normalize_level(value), _LEVEL_MAP[_DEFAULT_LEVEL])


def parse_logging_settings(path: Path) -> LoggingSettings:
    """Parse the human-readable logging settings file."""

    levels: dict[str, int | None] = {
        key: _LEVEL_MAP[_DEFAULT_LEVEL] for key in _DEFAULT_KEYS
    }

    if path.exists():
        for raw_line in path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, value = (part.strip() for part in line.split("=", 1))
            normalized_key = key.lower()
            if normalized_key in _DEFAULT_KEYS:
                levels[normalized_key] = _resolve_level(value)

    return LoggingSettings(
        terminal_level=levels["terminal"],
        speech_level=levels["speech"],
        metrics_level=levels["metrics"],
    )


def apply_area_levels(settings: LoggingSettings) -> None:
    """Apply the speech/metrics levels to their loggers. ``off`` silences them."""

    for names, level in (
        (SPEECH_LOGGERS, settings.speech_level),
        (METRICS_LOGGERS, settings.metrics_level),
    ):
        for name in names:
            # Child loggers inherit the effective level
            logging.getLogger(name).setLevel(
                logging.CRITICAL + 1 if level is None else level
            )


__all__ = ["LoggingSettings", "apply_area_levels", "parse_logging_settings"]
