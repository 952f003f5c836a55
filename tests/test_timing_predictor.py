"""Tests for the speaking gate."""

import math

import pytest

from speakahead.services.timing_predictor import (
    GateConfig,
    GatePolicy,
    Speaking,
    Waiting,
    advance_gate,
    estimate_speech_seconds,
    estimate_typing_seconds,
    should_start_speaking,
)

STRICT = GateConfig(tolerance_seconds=0.0)


def _first_open(total: int, wpm: float, config: GateConfig, durations=()) -> int | None:
    state = Waiting()
    for typed in range(1, total + 1):
        state = advance_gate(state, typed, total, wpm, durations, config)
        if isinstance(state, Speaking):
            return state.opened_at_word
    return None


@pytest.mark.parametrize("typed", [0, 1])
@pytest.mark.parametrize(
    "config",
    [
        GateConfig(),
        GateConfig(tolerance_seconds=1000.0),
        GateConfig(min_words=0),
        GateConfig(policy=GatePolicy.FRACTION, start_fraction=0.0, min_words=0),
    ],
)
def test_never_opens_before_two_words(typed, config):
    assert should_start_speaking(typed, 1, 30, config=config) is False
    assert should_start_speaking(typed, 10, 30, config=config) is False


def test_fallback_fires_by_eighty_percent():
    assert _first_open(10, 30, STRICT) == 8


def test_rate_comparison_can_fire_before_fallback():
    # |remaining typing - spoken| = |2 * (10 - t) - 0.4 * t| <= 4 first at t = 7
    assert _first_open(10, 30, GateConfig()) == 7


def test_three_word_sentence_only_opens_at_the_end():
    assert _first_open(3, 30, STRICT) == 3
    assert should_start_speaking(2, 3, 30, config=STRICT) is False


def test_measured_durations_replace_flat_rate():
    # Long measured clips make the spoken part catch up with the typing time
    durations = [5.0, 5.0]
    assert should_start_speaking(2, 10, 30, durations, STRICT) is False
    assert should_start_speaking(2, 7, 30, durations, STRICT) is True


@pytest.mark.parametrize("bad", [None, 0.0, -1.0, math.nan, math.inf])
def test_unknown_durations_use_flat_rate(bad):
    config = GateConfig()
    assert estimate_speech_seconds(2, [1.5, bad], config) == pytest.approx(
        1.5 + config.seconds_per_word
    )


def test_missing_duration_entries_use_flat_rate():
    config = GateConfig(assumed_speaking_wpm=120)
    assert estimate_speech_seconds(3, [], config) == pytest.approx(1.5)


def test_typing_estimate_counts_remaining_words():
    assert estimate_typing_seconds(4, 10, 30) == pytest.approx(12.0)
    assert estimate_typing_seconds(12, 10, 30) == 0.0


@pytest.mark.parametrize("total, wpm", [(0, 30), (-3, 30), (10, 0), (10, -5)])
def test_misconfiguration_disables_the_gate(total, wpm):
    assert should_start_speaking(5, total, wpm, config=GateConfig(tolerance_seconds=1e9)) is False


def test_fraction_policy_opens_at_quarter():
    config = GateConfig(policy=GatePolicy.FRACTION)
    assert _first_open(12, 30, config) == 3
    # floor(3 * 0.25) == 0, so the two-word minimum decides
    assert _first_open(3, 30, config) == 2


def test_fraction_policy_opens_at_sentence_end():
    config = GateConfig(policy=GatePolicy.FRACTION, start_fraction=1.0)
    assert _first_open(2, 30, config) == 2


def test_speaking_is_terminal():
    state = Speaking(opened_at_word=3)
    assert advance_gate(state, 1, 10, 30) is state


def test_waiting_stays_waiting_until_the_gate_fires():
    state = Waiting()
    assert advance_gate(state, 2, 10, 30, config=STRICT) is state


def test_gate_config_from_settings():
    from speakahead.config import Settings

    settings = Settings(
        _env_file=None,
        gate_policy="fraction",
        gate_tolerance_seconds=1.5,
        gate_min_words=3,
    )
    config = GateConfig.from_settings(settings)
    assert config.policy is GatePolicy.FRACTION
    assert config.tolerance_seconds == 1.5
    assert config.min_words == 3
