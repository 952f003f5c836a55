"""Drive one predictive speaking session from text-change events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from .conversation_metrics import ConversationAnalyzer, MetricsSnapshot, wall_clock_ms
from .timing_predictor import (
    DEFAULT_GATE_CONFIG,
    GateConfig,
    GateState,
    Speaking,
    Waiting,
    advance_gate,
    is_misconfigured,
)
from .tts.speech_queue import SpeechQueue
from .tts.word_segmenter import Word, segment
from .tts_service import VoiceParams

logger = logging.getLogger(__name__)

EventListener = Callable[[dict], Awaitable[None]]


@dataclass(frozen=True)
class SessionConfig:
    total_words_assumed: int
    typing_rate_wpm: int
    voice: VoiceParams = field(default_factory=VoiceParams)


@dataclass
class SentenceSession:
    """State of one predictive speaking attempt. Replaced wholesale on reset."""

    config: SessionConfig
    generation: int
    started_at: float
    gate: GateState = field(default_factory=Waiting)
    last_spoken_index: int = -1
    last_observed_index: int = -1
    finished: bool = False
    completed_words: List[str] = field(default_factory=list)

    @property
    def speaking_started(self) -> bool:
        return isinstance(self.gate, Speaking)

    @property
    def gate_enabled(self) -> bool:
        return not is_misconfigured(
            self.config.total_words_assumed, self.config.typing_rate_wpm
        )


@dataclass(frozen=True)
class TextChangeResult:
    new_words: List[str]
    dispatched: List[str]
    gate_opened: bool
    finished: bool


class SessionController:
    """
    Coordinates segmentation, the speaking gate, the speech queue and the
    analyzer for a single session.

    The controller is the only owner of cross-component state. The session,
    its duration cache and its analyzer are always replaced together by
    start_session().
    """

    def __init__(
        self,
        queue: SpeechQueue,
        config: SessionConfig,
        gate_config: GateConfig = DEFAULT_GATE_CONFIG,
        clock: Callable[[], float] = wall_clock_ms,
        listener: Optional[EventListener] = None,
    ) -> None:
        self.queue = queue
        self.gate_config = gate_config
        self.listener = listener
        self._clock = clock
        self._generation = 0
        self.queue.event_handler = self._on_queue_event

        self.session: SentenceSession
        self.durations: Dict[str, float]
        self.analyzer: ConversationAnalyzer
        self.start_session(config)

    @property
    def state(self) -> str:
        return "speaking" if self.queue.is_playing or self.queue.pending else "waiting"

    def start_session(self, config: SessionConfig) -> SentenceSession:
        """Stop playback and reset session, duration cache and analyzer together."""
        self.queue.stop()
        self.queue.voice = config.voice
        self._generation += 1
        self.session = SentenceSession(
            config=config,
            generation=self._generation,
            started_at=self._clock(),
        )
        self.durations = {}
        self.analyzer = ConversationAnalyzer(clock=self._clock)

        if not self.session.gate_enabled:
            logger.warning(
                f"Session {self._generation}: speaking gate disabled "
                f"(total_words_assumed={config.total_words_assumed}, "
                f"typing_rate_wpm={config.typing_rate_wpm})"
            )
        else:
            logger.info(
                f"Session {self._generation} started: {config.total_words_assumed} words "
                f"at {config.typing_rate_wpm} wpm"
            )
        return self.session

    def stop(self) -> None:
        """Interrupt playback; the session itself keeps its progress."""
        self.queue.stop()

    def handle_text_change(self, text: str) -> TextChangeResult:
        session = self.session
        words = segment(text)
        session.completed_words = [w.text for w in words]

        if len(words) - 1 < session.last_observed_index:
            # Completed words were deleted: spoken words stay spoken
            self.analyzer.record_correction()
            session.last_observed_index = max(len(words) - 1, session.last_spoken_index)

        new_words: List[Word] = words[session.last_observed_index + 1:]
        gate_opened = False

        for offset, word in enumerate(new_words):
            position = session.last_observed_index + 1 + offset
            self.analyzer.record_typing_start(word.text)

            if session.speaking_started or session.finished:
                continue

            self.queue.prefetch(word.text)
            if not session.gate_enabled:
                continue

            typed = position + 1
            session.gate = advance_gate(
                session.gate,
                typed,
                session.config.total_words_assumed,
                session.config.typing_rate_wpm,
                [self.durations.get(w.text) for w in words[:typed]],
                self.gate_config,
            )
            gate_opened = session.speaking_started
            if typed >= session.config.total_words_assumed:
                # Words past the target never reach the gate, however they arrive
                self._finish(session, typed)

        if new_words:
            session.last_observed_index = len(words) - 1

        dispatched: List[str] = []
        if session.speaking_started:
            fragment_words = words[session.last_spoken_index + 1:]
            if fragment_words:
                fragment = " ".join(w.text for w in fragment_words)
                self.queue.enqueue(fragment)
                for word in fragment_words:
                    self.analyzer.record_speech_start(word.text)
                session.last_spoken_index = len(words) - 1
                dispatched.append(fragment)

        if session.gate_enabled and len(words) >= session.config.total_words_assumed:
            self._finish(session, len(words))

        return TextChangeResult(
            new_words=[w.text for w in new_words],
            dispatched=dispatched,
            gate_opened=gate_opened,
            finished=session.finished,
        )

    @staticmethod
    def _finish(session: SentenceSession, word_count: int) -> None:
        if session.finished:
            return
        session.finished = True
        logger.info(f"Session {session.generation} reached {word_count} words")

    def record_prediction(self, accepted: bool, correct: bool) -> None:
        self.analyzer.record_prediction(accepted, correct)

    def record_correction(self) -> None:
        self.analyzer.record_correction()

    def metrics(self) -> MetricsSnapshot:
        return self.analyzer.calculate_metrics()

    def report(self) -> str:
        return self.analyzer.detailed_report()

    async def _on_queue_event(self, event: dict) -> None:
        event_type = event.get("type")
        if event_type == "duration_measured":
            self.durations[event["text"]] = float(event["duration"])
        elif event_type == "idle":
            logger.debug(f"Session {self.session.generation}: playback idle")
        elif event_type == "fragment_failed":
            logger.warning(f"Fragment dropped: {event.get('error')}")

        if self.listener is not None:
            await self.listener(event)


__all__ = [
    "SentenceSession",
    "SessionConfig",
    "SessionController",
    "TextChangeResult",
]
