"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Synthesis backend
    tts_provider: Literal["google", "openai"] = Field(
        default="google",
        validation_alias=AliasChoices("TTS_PROVIDER", "tts_provider"),
    )
    google_tts_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_TTS_API_KEY", "GOOGLE_API_KEY"),
    )
    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
    )
    tts_language_code: str = Field(
        default="en-US",
        validation_alias=AliasChoices("TTS_LANGUAGE_CODE", "tts_language_code"),
    )
    tts_default_voice: str = Field(
        default="en-US-Standard-A",
        validation_alias=AliasChoices("TTS_DEFAULT_VOICE", "tts_default_voice"),
    )
    tts_sample_rate: int = Field(
        default=24000,
        ge=8000,
        le=48000,
        validation_alias=AliasChoices("TTS_SAMPLE_RATE", "tts_sample_rate"),
    )
    tts_request_timeout: float = Field(
        default=30.0,
        ge=1,
        validation_alias=AliasChoices("TTS_REQUEST_TIMEOUT", "tts_request_timeout"),
    )

    # Speech timing gate
    gate_policy: Literal["rate", "fraction"] = Field(
        default="rate",
        validation_alias=AliasChoices("GATE_POLICY", "gate_policy"),
    )
    assumed_speaking_wpm: float = Field(
        default=150.0,
        gt=0,
        validation_alias=AliasChoices("ASSUMED_SPEAKING_WPM", "assumed_speaking_wpm"),
    )
    gate_tolerance_seconds: float = Field(
        default=4.0,
        ge=0,
        validation_alias=AliasChoices(
            "GATE_TOLERANCE_SECONDS", "gate_tolerance_seconds"
        ),
    )
    gate_fallback_fraction: float = Field(
        default=0.8,
        gt=0,
        le=1,
        validation_alias=AliasChoices(
            "GATE_FALLBACK_FRACTION", "gate_fallback_fraction"
        ),
    )
    gate_start_fraction: float = Field(
        default=0.25,
        gt=0,
        le=1,
        validation_alias=AliasChoices("GATE_START_FRACTION", "gate_start_fraction"),
    )
    gate_min_words: int = Field(
        default=2,
        ge=1,
        validation_alias=AliasChoices("GATE_MIN_WORDS", "gate_min_words"),
    )
    default_typing_rate_wpm: int = Field(
        default=30,
        ge=1,
        validation_alias=AliasChoices(
            "DEFAULT_TYPING_RATE_WPM", "default_typing_rate_wpm"
        ),
    )

    # Extra time a connected client gets to report the end of a clip
    playback_grace_seconds: float = Field(
        default=2.0,
        ge=0,
        validation_alias=AliasChoices(
            "PLAYBACK_GRACE_SECONDS", "playback_grace_seconds"
        ),
    )

    phrase_bank_path: Path = Field(
        default_factory=lambda: Path("data/phrase_bank.json"),
        validation_alias=AliasChoices("PHRASE_BANK_PATH", "phrase_bank_path"),
    )

    logging_settings_path: Path = Field(
        default_factory=lambda: Path("logging_settings.conf"),
        validation_alias=AliasChoices(
            "LOGGING_SETTINGS_PATH", "logging_settings_path"
        ),
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PORT", "port"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
