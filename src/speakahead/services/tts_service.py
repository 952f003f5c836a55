import base64
import io
import logging
import wave
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from speakahead.config import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAI `pcm` responses are fixed at 24 kHz, 16-bit mono
OPENAI_PCM_SAMPLE_RATE = 24000

OPENAI_VOICES = [
    "alloy",
    "ash",
    "ballad",
    "coral",
    "echo",
    "fable",
    "nova",
    "onyx",
    "sage",
    "shimmer",
]


class SynthesisError(RuntimeError):
    """The synthesis backend failed or returned no audio."""


@dataclass(frozen=True)
class VoiceParams:
    voice: Optional[str] = None
    pitch: float = 0.0
    rate: float = 1.0


@dataclass(frozen=True)
class SynthesizedAudio:
    """Audio returned by the backend. ``audio`` is opaque to the timing core."""

    audio: bytes
    duration_seconds: float
    sample_rate: int
    mime_type: str = "audio/wav"


class SynthesisBackend(Protocol):
    async def synthesize(self, text: str, params: VoiceParams) -> SynthesizedAudio: ...


def pcm_duration(data: bytes, sample_rate: int, sample_width: int = 2) -> float:
    """Duration in seconds of raw mono PCM, or of a WAV file."""
    if data[:4] == b"RIFF":
        with wave.open(io.BytesIO(data), "rb") as wav:
            frames = wav.getnframes()
            rate = wav.getframerate()
            return frames / rate if rate else 0.0
    if sample_rate <= 0:
        return 0.0
    return len(data) / (sample_rate * sample_width)


class TTSService:
    """
    Synthesis backend for the speaking queue and the one-shot endpoint.

    Supports Google Cloud Text-to-Speech (API key) and OpenAI speech.
    Both are requested as 16-bit PCM so the clip duration can be computed
    locally. Uses a singleton httpx.AsyncClient for connection pooling across
    requests.
    """

    # Singleton HTTP client for connection pooling
    _http_client: Optional[httpx.AsyncClient] = None

    google_base_url = "https://texttospeech.googleapis.com/v1/text:synthesize"
    openai_base_url = "https://api.openai.com/v1/audio/speech"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.provider = self.settings.tts_provider

        self.google_api_key = (
            self.settings.google_tts_api_key.get_secret_value()
            if self.settings.google_tts_api_key else None
        )
        self.openai_api_key = (
            self.settings.openai_api_key.get_secret_value()
            if self.settings.openai_api_key else None
        )

        providers = []
        if self.google_api_key:
            providers.append("google")
        if self.openai_api_key:
            providers.append("openai")

        if not providers:
            logger.warning("No TTS API keys configured. Synthesis will fail.")
        else:
            logger.info(f"TTS providers available: {', '.join(providers)} (active: {self.provider})")

    @classmethod
    def get_http_client(cls) -> httpx.AsyncClient:
        """Get singleton HTTP client for connection pooling.

        Creation has no await point, so concurrent first callers on the event
        loop share one client.
        """
        if cls._http_client is None:
            cls._http_client = httpx.AsyncClient(timeout=30.0)
            logger.info("Created singleton httpx.AsyncClient for TTS")
        return cls._http_client

    @classmethod
    async def close_http_client(cls) -> None:
        """Close the singleton HTTP client. Call on app shutdown."""
        if cls._http_client is not None:
            await cls._http_client.aclose()
            cls._http_client = None
            logger.info("Closed TTS HTTP client")

    async def synthesize(self, text: str, params: VoiceParams) -> SynthesizedAudio:
        """
        Synthesize text with the configured provider.

        Raises:
            SynthesisError: on a non-success response, a transport error, or
                an empty audio payload. No retry is attempted.
        """
        text = text.strip()
        if not text:
            raise SynthesisError("Text is required")

        if self.provider == "openai":
            return await self._synthesize_openai(text, params)
        return await self._synthesize_google(text, params)

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        client = self.get_http_client()
        try:
            response = await client.post(
                url, timeout=self.settings.tts_request_timeout, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SynthesisError(
                f"TTS request failed ({exc.response.status_code})"
            ) from exc
        except httpx.RequestError as exc:
            raise SynthesisError(f"Network error contacting TTS provider: {exc}") from exc
        return response

    async def _synthesize_google(self, text: str, params: VoiceParams) -> SynthesizedAudio:
        """Synthesize using Google Cloud Text-to-Speech."""
        if not self.google_api_key:
            logger.error("Google TTS API key not configured")
            raise SynthesisError("Google TTS is not configured")

        sample_rate = self.settings.tts_sample_rate
        payload = {
            "input": {"text": text},
            "voice": {
                "name": params.voice or self.settings.tts_default_voice,
                "languageCode": self.settings.tts_language_code,
            },
            "audioConfig": {
                "audioEncoding": "LINEAR16",
                "pitch": params.pitch,
                "speakingRate": params.rate,
                "sampleRateHertz": sample_rate,
            },
        }

        response = await self._post(
            self.google_base_url,
            params={"key": self.google_api_key},
            json=payload,
        )
        try:
            content = response.json().get("audioContent")
        except ValueError as exc:
            raise SynthesisError("Google TTS returned an invalid response") from exc
        if not content:
            logger.error("Google TTS returned no audio content")
            raise SynthesisError("No audio content generated")

        audio = base64.b64decode(content)
        duration = pcm_duration(audio, sample_rate)
        logger.info(f"Google TTS synthesized {len(audio)} bytes ({duration:.2f}s) for text: {text[:50]}")
        return SynthesizedAudio(
            audio=audio,
            duration_seconds=duration,
            sample_rate=sample_rate,
            mime_type="audio/wav",
        )

    async def _synthesize_openai(self, text: str, params: VoiceParams) -> SynthesizedAudio:
        """Synthesize using OpenAI TTS. Pitch is not supported and is ignored."""
        if not self.openai_api_key:
            logger.error("OpenAI API key not configured")
            raise SynthesisError("OpenAI TTS is not configured")

        voice = params.voice if params.voice in OPENAI_VOICES else "alloy"
        headers = {
            "Authorization": f"Bearer {self.openai_api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": "tts-1",
            "input": text,
            "voice": voice,
            "response_format": "pcm",
            "speed": params.rate,
        }

        response = await self._post(self.openai_base_url, headers=headers, json=payload)
        audio = response.content
        if not audio:
            logger.error("OpenAI TTS returned no audio content")
            raise SynthesisError("No audio content generated")

        duration = pcm_duration(audio, OPENAI_PCM_SAMPLE_RATE)
        logger.info(f"OpenAI TTS synthesized {len(audio)} bytes ({duration:.2f}s) for text: {text[:50]}")
        return SynthesizedAudio(
            audio=audio,
            duration_seconds=duration,
            sample_rate=OPENAI_PCM_SAMPLE_RATE,
            mime_type="audio/L16;rate=24000",
        )


__all__ = [
    "SynthesisBackend",
    "SynthesisError",
    "SynthesizedAudio",
    "TTSService",
    "VoiceParams",
    "pcm_duration",
]
