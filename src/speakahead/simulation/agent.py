"""Simulated AAC typist used to compare prediction conditions."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..services.conversation_metrics import ConversationAnalyzer

logger = logging.getLogger(__name__)

# Probability that a typo is noticed and fixed straight away
CORRECTION_PROBABILITY = 0.7
# Backspace plus retype
CORRECTION_KEYSTROKES = 2
CHARACTERS_PER_WORD = 5
# Prediction is offered from this word index on
PREDICTION_START_INDEX = 3

NEARBY_KEYS: Dict[str, List[str]] = {
    "a": ["q", "w", "s", "z"],
    "s": ["a", "w", "d", "x"],
    "d": ["s", "e", "f", "c"],
    "f": ["d", "r", "g", "v"],
    "g": ["f", "t", "h", "b"],
    "h": ["g", "y", "j", "n"],
    "i": ["u", "o", "k", "l"],
    "j": ["h", "u", "k", "m"],
    "k": ["j", "i", "l"],
    "l": ["k", "o", "p"],
    "m": ["n", "j", "k"],
    "n": ["b", "h", "j", "m"],
    "o": ["i", "p", "l"],
    "p": ["o", "l"],
    "q": ["w", "a", "1"],
    "r": ["e", "f", "t"],
    "t": ["r", "g", "y"],
    "u": ["y", "j", "i"],
    "v": ["c", "f", "g"],
    "w": ["q", "s", "e"],
    "x": ["z", "s", "d"],
    "y": ["t", "h", "u"],
    "z": ["a", "s", "x"],
}


@dataclass(frozen=True)
class TypingConfig:
    typing_speed: float = 20.0
    error_rate: float = 0.1
    prediction_acceptance_rate: float = 0.0


@dataclass(frozen=True)
class TypingError:
    intended: str
    actual: str
    position: int


@dataclass
class TypingMetrics:
    wpm: float = 0.0
    accuracy: float = 0.0
    prediction_acceptance_rate: float = 0.0
    time_to_complete: float = 0.0
    keystrokes: float = 0.0
    keystrokes_saved: float = 0.0
    predictions_offered: float = 0.0
    predictions_accepted: float = 0.0
    error_rate: float = 0.0
    corrections: float = 0.0


@dataclass
class _RunState:
    keystrokes: int = 0
    keystrokes_saved: int = 0
    predictions_offered: int = 0
    predictions_accepted: int = 0
    corrections: int = 0
    errors: List[TypingError] = field(default_factory=list)


class TypingAgent:
    """Types a text character by character on a virtual clock.

    Nothing sleeps: each keystroke advances ``now_ms`` by the time a typist at
    ``typing_speed`` wpm would take, so a run is instant and, with a seeded
    ``rng``, reproducible.
    """

    def __init__(
        self,
        config: TypingConfig,
        rng: Optional[random.Random] = None,
        analyzer: Optional[ConversationAnalyzer] = None,
    ) -> None:
        if config.typing_speed <= 0:
            raise ValueError("typing_speed must be positive")
        self.config = config
        self.rng = rng or random.Random()
        self.analyzer = analyzer
        self.now_ms = 0.0
        self.typing_errors: List[TypingError] = []

    @property
    def ms_per_char(self) -> float:
        return 60000.0 / (self.config.typing_speed * CHARACTERS_PER_WORD)

    def _typing_mistake(self, intended: str) -> str:
        nearby = NEARBY_KEYS.get(intended.lower())
        if not nearby:
            return intended
        return self.rng.choice(nearby)

    def _type_word(self, word: str, state: _RunState, position: int) -> int:
        for intended in word:
            position += 1
            state.keystrokes += 1

            if self.rng.random() < self.config.error_rate:
                actual = self._typing_mistake(intended)
                if actual != intended:
                    state.errors.append(TypingError(intended, actual, position - 1))
                    if self.rng.random() < CORRECTION_PROBABILITY:
                        state.corrections += 1
                        state.keystrokes += CORRECTION_KEYSTROKES
                        self.now_ms += self.ms_per_char * CORRECTION_KEYSTROKES
                        if self.analyzer is not None:
                            self.analyzer.record_correction()

            self.now_ms += self.ms_per_char

        # Trailing space
        state.keystrokes += 1
        self.now_ms += self.ms_per_char
        return position + 1

    def simulate_typing(self, text: str) -> TypingMetrics:
        words = text.split()
        if not words:
            return TypingMetrics()

        start_ms = self.now_ms
        state = _RunState()
        position = 0

        for index, word in enumerate(words):
            if self.analyzer is not None:
                self.analyzer.record_typing_start(word)
            position = self._type_word(word, state, position)

            if index >= PREDICTION_START_INDEX:
                state.predictions_offered += 1
                accepted = self.rng.random() < self.config.prediction_acceptance_rate
                if accepted:
                    state.predictions_accepted += 1
                    state.keystrokes_saved += len(word)
                if self.analyzer is not None:
                    self.analyzer.record_prediction(accepted, accepted)

        if self.analyzer is not None:
            self.analyzer.record_keystrokes(state.keystrokes, state.keystrokes_saved)

        self.typing_errors = state.errors
        elapsed_ms = self.now_ms - start_ms
        error_count = len(state.errors)
        metrics = TypingMetrics(
            wpm=len(words) / (elapsed_ms / 60000.0),
            accuracy=max(0.0, (position - error_count) / position),
            prediction_acceptance_rate=(
                state.predictions_accepted / state.predictions_offered
                if state.predictions_offered
                else 0.0
            ),
            time_to_complete=elapsed_ms,
            keystrokes=state.keystrokes,
            keystrokes_saved=state.keystrokes_saved,
            predictions_offered=state.predictions_offered,
            predictions_accepted=state.predictions_accepted,
            error_rate=error_count / position,
            corrections=state.corrections,
        )
        logger.debug(
            f"Typed {len(words)} words in {elapsed_ms:.0f}ms "
            f"({metrics.wpm:.1f} wpm, {error_count} errors)"
        )
        return metrics


__all__ = ["NEARBY_KEYS", "TypingAgent", "TypingConfig", "TypingError", "TypingMetrics"]
