"""Decide when partially typed text should start being spoken.

The gate is a two-state machine. A session starts in ``Waiting`` and moves to
``Speaking`` the first time :func:`should_start_speaking` returns true for a
newly completed word. ``Speaking`` is terminal; a new session is needed to
re-arm the gate.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

from ..config import Settings

logger = logging.getLogger(__name__)


class GatePolicy(str, Enum):
    RATE = "rate"
    FRACTION = "fraction"


@dataclass(frozen=True)
class GateConfig:
    """Tuning for the speaking gate."""

    policy: GatePolicy = GatePolicy.RATE
    assumed_speaking_wpm: float = 150.0
    tolerance_seconds: float = 4.0
    fallback_fraction: float = 0.8
    start_fraction: float = 0.25
    min_words: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "GateConfig":
        return cls(
            policy=GatePolicy(settings.gate_policy),
            assumed_speaking_wpm=settings.assumed_speaking_wpm,
            tolerance_seconds=settings.gate_tolerance_seconds,
            fallback_fraction=settings.gate_fallback_fraction,
            start_fraction=settings.gate_start_fraction,
            min_words=settings.gate_min_words,
        )

    @property
    def seconds_per_word(self) -> float:
        if self.assumed_speaking_wpm <= 0:
            return 0.0
        return 60.0 / self.assumed_speaking_wpm


DEFAULT_GATE_CONFIG = GateConfig()


@dataclass(frozen=True)
class Waiting:
    """Gate closed; evaluated for every newly completed word."""

    name = "waiting"


@dataclass(frozen=True)
class Speaking:
    """Gate opened after ``opened_at_word`` completed words."""

    opened_at_word: int
    name = "speaking"


GateState = Union[Waiting, Speaking]


def is_misconfigured(total_words_assumed: int, typing_rate_wpm: float) -> bool:
    """A non-positive target length or typing rate disables the gate."""
    return total_words_assumed <= 0 or typing_rate_wpm <= 0


def _known_duration(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def estimate_speech_seconds(
    words_typed_so_far: int,
    measured_durations: Sequence[Optional[float]],
    config: GateConfig = DEFAULT_GATE_CONFIG,
) -> float:
    """Sum the spoken duration of the completed words.

    Measured durations are used where known; missing, zero or non-finite
    entries fall back to the flat per-word speaking rate.
    """
    total = 0.0
    for index in range(words_typed_so_far):
        measured = (
            _known_duration(measured_durations[index])
            if index < len(measured_durations)
            else None
        )
        total += measured if measured is not None else config.seconds_per_word
    return total


def estimate_typing_seconds(
    words_typed_so_far: int, total_words_assumed: int, typing_rate_wpm: float
) -> float:
    remaining = max(total_words_assumed - words_typed_so_far, 0)
    return remaining * 60.0 / typing_rate_wpm


def should_start_speaking(
    words_typed_so_far: int,
    total_words_assumed: int,
    typing_rate_wpm: float,
    measured_durations: Sequence[Optional[float]] = (),
    config: GateConfig = DEFAULT_GATE_CONFIG,
) -> bool:
    """Return True when speech should start now.

    Args:
        words_typed_so_far: Number of completed words.
        total_words_assumed: Expected final sentence length.
        typing_rate_wpm: Expected typing rate.
        measured_durations: Per completed word, the measured audio duration in
            seconds or ``None`` when unknown.
        config: Gate tuning.
    """
    if is_misconfigured(total_words_assumed, typing_rate_wpm):
        return False
    if words_typed_so_far < max(config.min_words, 2):
        return False

    if config.policy is GatePolicy.FRACTION:
        if words_typed_so_far >= total_words_assumed:
            return True
        return words_typed_so_far >= math.floor(
            total_words_assumed * config.start_fraction
        )

    if words_typed_so_far >= math.ceil(total_words_assumed * config.fallback_fraction):
        return True

    typing_seconds = estimate_typing_seconds(
        words_typed_so_far, total_words_assumed, typing_rate_wpm
    )
    speech_seconds = estimate_speech_seconds(
        words_typed_so_far, measured_durations, config
    )
    return abs(typing_seconds - speech_seconds) <= config.tolerance_seconds


def advance_gate(
    state: GateState,
    words_typed_so_far: int,
    total_words_assumed: int,
    typing_rate_wpm: float,
    measured_durations: Sequence[Optional[float]] = (),
    config: GateConfig = DEFAULT_GATE_CONFIG,
) -> GateState:
    """Return the gate state after one more completed word."""
    if isinstance(state, Speaking):
        return state
    if should_start_speaking(
        words_typed_so_far,
        total_words_assumed,
        typing_rate_wpm,
        measured_durations,
        config,
    ):
        logger.info(
            "Speaking gate opened at %d/%d words", words_typed_so_far, total_words_assumed
        )
        return Speaking(opened_at_word=words_typed_so_far)
    return state


__all__ = [
    "DEFAULT_GATE_CONFIG",
    "GateConfig",
    "GatePolicy",
    "GateState",
    "Speaking",
    "Waiting",
    "advance_gate",
    "estimate_speech_seconds",
    "estimate_typing_seconds",
    "is_misconfigured",
    "should_start_speaking",
]
