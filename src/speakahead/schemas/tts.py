"""Schemas for one-shot text-to-speech requests."""

from pydantic import BaseModel, Field


class SynthesisRequest(BaseModel):
    """Payload accepted by the text-to-speech endpoint."""

    text: str = Field(default="", description="Text to synthesize.")
    voice: str | None = Field(default=None, description="Backend voice name.")
    pitch: float = Field(default=0.0, ge=-20.0, le=20.0)
    speaking_rate: float = Field(default=1.0, ge=0.25, le=4.0)


__all__ = ["SynthesisRequest"]
