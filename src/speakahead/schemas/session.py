"""Request and response schemas for predictive speaking sessions."""

from typing import Literal

from pydantic import BaseModel, Field


class VoiceParamsPayload(BaseModel):
    """Voice parameters forwarded to the synthesis backend."""

    voice: str | None = Field(
        default=None,
        description="Backend voice name. Defaults to the configured voice.",
    )
    pitch: float = Field(default=0.0, ge=-20.0, le=20.0)
    rate: float = Field(default=1.0, ge=0.25, le=4.0)


class SessionConfigPayload(BaseModel):
    """Configuration for one predictive speaking attempt.

    Non-positive word counts or typing rates are accepted: the session is
    created but its speaking gate stays closed.
    """

    total_words_assumed: int = Field(
        ...,
        description="Assumed final sentence length in words.",
    )
    typing_rate_wpm: int | None = Field(
        default=None,
        description="Assumed typing rate. Defaults to the configured rate.",
    )
    voice: VoiceParamsPayload = Field(default_factory=VoiceParamsPayload)


class TextChangePayload(BaseModel):
    """The full current contents of the text input."""

    text: str = ""


class PredictionPayload(BaseModel):
    accepted: bool
    correct: bool = False


class SessionStateResponse(BaseModel):
    """Snapshot of a session as seen by clients."""

    session_id: str
    state: Literal["waiting", "speaking"]
    gate: Literal["waiting", "speaking"]
    finished: bool
    gate_enabled: bool
    completed_words: list[str]
    spoken_words: int
    pending_fragments: int
    dispatched: list[str] = Field(
        default_factory=list,
        description="Fragments queued by the last text change.",
    )


class MetricsResponse(BaseModel):
    """Conversation-flow metrics for a session."""

    typing_to_speech_latency: float
    average_word_delay: float
    conversation_flow_score: float
    typing_speech_overlap_rate: float
    predictive_accuracy: float
    interaction_speed: float
    prediction_acceptance_rate: float
    correction_rate: float
    completion_efficiency: float


__all__ = [
    "MetricsResponse",
    "PredictionPayload",
    "SessionConfigPayload",
    "SessionStateResponse",
    "TextChangePayload",
    "VoiceParamsPayload",
]
