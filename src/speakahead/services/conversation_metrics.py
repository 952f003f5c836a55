"""Conversation-flow metrics for predictive speaking sessions."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Fixed weights of the composite scores
LATENCY_NORMALIZER_MS = 2000.0
FLOW_OVERLAP_WEIGHT = 0.5
FLOW_ACCEPTANCE_WEIGHT = 0.3
FLOW_CORRECTION_WEIGHT = 0.2
EFFICIENCY_KEYSTROKE_WEIGHT = 0.5
EFFICIENCY_OVERLAP_WEIGHT = 0.3
EFFICIENCY_CORRECTION_WEIGHT = 0.2

# Used when keystrokes are not recorded explicitly
AVERAGE_WORD_LENGTH = 7
KEYSTROKES_SAVED_PER_PREDICTION = 5


def wall_clock_ms() -> float:
    return time.time() * 1000.0


@dataclass(frozen=True)
class TimingSample:
    """Typing and speech timestamps (ms) for one word occurrence."""

    word: str
    typing_start: float
    speech_start: Optional[float] = None

    @property
    def completed(self) -> bool:
        return self.speech_start is not None


@dataclass(frozen=True)
class AnalyzerCounters:
    predictions_offered: int = 0
    predictions_accepted: int = 0
    correct_predictions: int = 0
    corrections: int = 0
    keystrokes_total: Optional[int] = None
    keystrokes_saved: Optional[int] = None


@dataclass(frozen=True)
class MetricsSnapshot:
    typing_to_speech_latency: float = 0.0
    average_word_delay: float = 0.0
    conversation_flow_score: float = 0.0
    typing_speech_overlap_rate: float = 0.0
    predictive_accuracy: float = 0.0
    interaction_speed: float = 0.0
    prediction_acceptance_rate: float = 0.0
    correction_rate: float = 0.0
    completion_efficiency: float = 0.0


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def distinct_words(samples: Sequence[TimingSample]) -> int:
    """Number of different word texts in the log."""
    return len({s.word for s in samples})


def compute_metrics(
    samples: Sequence[TimingSample],
    counters: AnalyzerCounters,
    elapsed_ms: float,
) -> MetricsSnapshot:
    """Reduce a timing log to a metrics snapshot. Pure; never divides by zero."""
    if not samples and counters == AnalyzerCounters():
        return MetricsSnapshot()

    completed = [s for s in samples if s.completed]
    latency = _mean([s.speech_start - s.typing_start for s in completed])

    by_typing = sorted(samples, key=lambda s: s.typing_start)
    delays = [
        current.speech_start - previous.speech_start
        for previous, current in zip(by_typing, by_typing[1:])
        if previous.speech_start is not None and current.speech_start is not None
    ]
    average_delay = _mean(delays)

    overlapping = 0
    for sample in completed:
        if any(
            other is not sample
            and sample.typing_start < other.typing_start < sample.speech_start
            for other in samples
        ):
            overlapping += 1
    overlap_rate = _ratio(overlapping, len(completed))

    word_count = distinct_words(samples)
    interaction_speed = _ratio(word_count, elapsed_ms / 60000.0)

    acceptance = _ratio(counters.predictions_accepted, counters.predictions_offered)
    accuracy = _ratio(counters.correct_predictions, counters.predictions_accepted)
    correction_rate = _ratio(counters.corrections, word_count)

    flow = _clamp(
        1
        - latency / LATENCY_NORMALIZER_MS
        + FLOW_OVERLAP_WEIGHT * overlap_rate
        + FLOW_ACCEPTANCE_WEIGHT * acceptance
        - FLOW_CORRECTION_WEIGHT * correction_rate
    )

    if counters.keystrokes_total is not None:
        possible = counters.keystrokes_total
        saved = counters.keystrokes_saved or 0
    else:
        possible = word_count * AVERAGE_WORD_LENGTH
        saved = counters.predictions_accepted * KEYSTROKES_SAVED_PER_PREDICTION
    efficiency = _clamp(
        EFFICIENCY_KEYSTROKE_WEIGHT * _ratio(saved, possible)
        + EFFICIENCY_OVERLAP_WEIGHT * overlap_rate
        + EFFICIENCY_CORRECTION_WEIGHT * (1 - correction_rate)
    )

    return MetricsSnapshot(
        typing_to_speech_latency=latency,
        average_word_delay=average_delay,
        conversation_flow_score=flow,
        typing_speech_overlap_rate=overlap_rate,
        predictive_accuracy=accuracy,
        interaction_speed=interaction_speed,
        prediction_acceptance_rate=acceptance,
        correction_rate=correction_rate,
        completion_efficiency=efficiency,
    )


class ConversationAnalyzer:
    """Append-only log of word timings plus prediction/correction counters.

    Every word occurrence gets its own sample. A typing start for text that
    already has an unspoken sample is ignored; a speech start completes the
    oldest unspoken sample for that text, or adds a sample that starts and is
    spoken at the same moment.
    """

    def __init__(self, clock: Callable[[], float] = wall_clock_ms) -> None:
        self._clock = clock
        self._start_time = clock()
        self._samples: List[TimingSample] = []
        self._open: Dict[str, List[int]] = {}
        self._counters = AnalyzerCounters()

    @property
    def samples(self) -> tuple[TimingSample, ...]:
        return tuple(self._samples)

    @property
    def counters(self) -> AnalyzerCounters:
        return self._counters

    @property
    def total_words(self) -> int:
        return distinct_words(self._samples)

    @property
    def elapsed_ms(self) -> float:
        return self._clock() - self._start_time

    def record_typing_start(self, word: str) -> None:
        if self._open.get(word):
            return
        self._open.setdefault(word, []).append(len(self._samples))
        self._samples.append(TimingSample(word=word, typing_start=self._clock()))

    def record_speech_start(self, word: str) -> None:
        now = self._clock()
        pending = self._open.get(word)
        if pending:
            index = pending.pop(0)
            self._samples[index] = replace(self._samples[index], speech_start=now)
            return
        logger.debug(f"Speech started for '{word}' without a typing record")
        self._samples.append(TimingSample(word=word, typing_start=now, speech_start=now))

    def record_prediction(self, was_accepted: bool, was_correct: bool) -> None:
        counters = self._counters
        self._counters = replace(
            counters,
            predictions_offered=counters.predictions_offered + 1,
            predictions_accepted=counters.predictions_accepted + int(was_accepted),
            correct_predictions=counters.correct_predictions
            + int(was_accepted and was_correct),
        )

    def record_correction(self) -> None:
        self._counters = replace(self._counters, corrections=self._counters.corrections + 1)

    def record_keystrokes(self, total: int, saved: int) -> None:
        """Add explicitly tracked keystroke counts (replaces the word-length estimate)."""
        counters = self._counters
        self._counters = replace(
            counters,
            keystrokes_total=(counters.keystrokes_total or 0) + total,
            keystrokes_saved=(counters.keystrokes_saved or 0) + saved,
        )

    def calculate_metrics(self) -> MetricsSnapshot:
        return compute_metrics(self._samples, self._counters, self.elapsed_ms)

    def detailed_report(self) -> str:
        """Human-readable breakdown of the current metrics."""
        metrics = self.calculate_metrics()
        counters = self._counters
        lines = [
            "Conversation Analysis Report",
            "----------------------------",
            f"Total Words: {self.total_words}",
            f"Elapsed Time: {self.elapsed_ms / 1000:.1f}s",
            "",
            "Timing Metrics:",
            f"- Average Typing to Speech Delay: {metrics.typing_to_speech_latency:.0f}ms",
            f"- Average Delay Between Words: {metrics.average_word_delay:.0f}ms",
            f"- Speech-Typing Overlap Rate: {metrics.typing_speech_overlap_rate * 100:.1f}%",
            "",
            "Prediction Performance:",
            f"- Predictions Offered: {counters.predictions_offered}",
            f"- Predictions Accepted: {counters.predictions_accepted}",
            f"- Prediction Accuracy: {metrics.predictive_accuracy * 100:.1f}%",
            f"- Acceptance Rate: {metrics.prediction_acceptance_rate * 100:.1f}%",
            "",
            "Efficiency Metrics:",
            f"- Interaction Speed: {metrics.interaction_speed:.1f} WPM",
            f"- Error Rate: {metrics.correction_rate * 100:.1f}%",
            f"- Completion Efficiency: {metrics.completion_efficiency * 100:.1f}%",
            "",
            f"Overall Flow Score: {metrics.conversation_flow_score * 100:.1f}%",
        ]
        return "\n".join(lines)


__all__ = [
    "AnalyzerCounters",
    "ConversationAnalyzer",
    "MetricsSnapshot",
    "TimingSample",
    "compute_metrics",
    "distinct_words",
]
