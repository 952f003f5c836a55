"""Tests for conversation-flow metrics."""

import pytest

from speakahead.services.conversation_metrics import (
    AnalyzerCounters,
    ConversationAnalyzer,
    MetricsSnapshot,
    TimingSample,
    compute_metrics,
)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_empty_log_is_all_zero(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    clock.now = 0.0
    assert analyzer.calculate_metrics() == MetricsSnapshot()


def test_empty_log_with_zero_elapsed_time():
    assert compute_metrics([], AnalyzerCounters(), 0.0) == MetricsSnapshot()


def test_timing_metrics(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    analyzer.record_typing_start("a")
    clock.now = 100.0
    analyzer.record_typing_start("b")
    clock.now = 500.0
    analyzer.record_speech_start("a")
    clock.now = 700.0
    analyzer.record_speech_start("b")
    clock.now = 60000.0

    metrics = analyzer.calculate_metrics()

    assert metrics.typing_to_speech_latency == pytest.approx(550.0)
    assert metrics.average_word_delay == pytest.approx(200.0)
    # "b" was typed while "a" waited for speech
    assert metrics.typing_speech_overlap_rate == pytest.approx(0.5)
    assert metrics.interaction_speed == pytest.approx(2.0)
    assert metrics.conversation_flow_score == pytest.approx(1 - 0.275 + 0.25)
    assert metrics.completion_efficiency == pytest.approx(0.3 * 0.5 + 0.2)


def test_prediction_counters(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    analyzer.record_prediction(True, True)
    analyzer.record_prediction(True, False)
    analyzer.record_prediction(False, True)

    metrics = analyzer.calculate_metrics()

    assert analyzer.counters.predictions_offered == 3
    assert analyzer.counters.correct_predictions == 1
    assert metrics.prediction_acceptance_rate == pytest.approx(2 / 3)
    assert metrics.predictive_accuracy == pytest.approx(0.5)
    assert metrics.interaction_speed == 0.0


def test_corrections_lower_flow(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    for word in ("one", "two"):
        analyzer.record_typing_start(word)
        analyzer.record_speech_start(word)
    analyzer.record_correction()

    metrics = analyzer.calculate_metrics()

    assert metrics.correction_rate == pytest.approx(0.5)
    assert metrics.conversation_flow_score == pytest.approx(1 - 0.2 * 0.5)


def test_flow_score_is_clamped(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    analyzer.record_typing_start("slow")
    clock.now = 10000.0
    analyzer.record_speech_start("slow")

    metrics = analyzer.calculate_metrics()

    assert metrics.typing_to_speech_latency == pytest.approx(10000.0)
    assert metrics.conversation_flow_score == 0.0


def test_speech_without_typing_record_has_zero_latency(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    clock.now = 250.0
    analyzer.record_speech_start("surprise")

    assert analyzer.samples == (
        TimingSample(word="surprise", typing_start=250.0, speech_start=250.0),
    )
    assert analyzer.calculate_metrics().typing_to_speech_latency == 0.0


def test_duplicate_words_complete_oldest_first(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    analyzer.record_typing_start("the")
    clock.now = 100.0
    analyzer.record_speech_start("the")
    clock.now = 200.0
    analyzer.record_typing_start("the")
    clock.now = 300.0
    analyzer.record_speech_start("the")

    samples = analyzer.samples
    assert [s.typing_start for s in samples] == [0.0, 200.0]
    assert [s.speech_start for s in samples] == [100.0, 300.0]


def test_repeated_typing_start_for_unspoken_word_is_ignored(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    analyzer.record_typing_start("hello")
    clock.now = 50.0
    analyzer.record_typing_start("hello")

    assert analyzer.total_words == 1
    assert analyzer.samples[0].typing_start == 0.0


def test_recorded_keystrokes_replace_estimate(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    analyzer.record_typing_start("word")
    analyzer.record_keystrokes(total=100, saved=20)
    analyzer.record_keystrokes(total=100, saved=20)

    metrics = analyzer.calculate_metrics()

    assert analyzer.counters.keystrokes_total == 200
    assert metrics.completion_efficiency == pytest.approx(0.5 * 0.2 + 0.2)


def test_detailed_report(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    analyzer.record_typing_start("hi")
    clock.now = 400.0
    analyzer.record_speech_start("hi")
    analyzer.record_prediction(True, True)

    report = analyzer.detailed_report()

    assert report.startswith("Conversation Analysis Report")
    assert "Total Words: 1" in report
    assert "Average Typing to Speech Delay: 400ms" in report
    assert "Predictions Accepted: 1" in report


def test_interaction_speed_counts_distinct_words(clock):
    analyzer = ConversationAnalyzer(clock=clock)
    analyzer.record_typing_start("the")
    analyzer.record_speech_start("the")
    analyzer.record_typing_start("cat")
    analyzer.record_typing_start("the")
    analyzer.record_correction()
    clock.now = 30000.0

    metrics = analyzer.calculate_metrics()

    assert len(analyzer.samples) == 3
    assert analyzer.total_words == 2
    assert metrics.interaction_speed == pytest.approx(4.0)
    assert metrics.correction_rate == pytest.approx(0.5)
