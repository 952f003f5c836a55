"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import PROJECT_ROOT, Settings, get_settings
from .logging_settings import apply_area_levels, parse_logging_settings
from .routers.sessions import router as sessions_router
from .routers.suggestions import router as suggestions_router
from .routers.tts import router as tts_router
from .services.session_manager import SessionManager
from .services.suggestions import PhraseBankService
from .services.tts_service import SynthesisBackend, TTSService


def _configure_logging(settings: Settings) -> None:
    """Configure logging based on LOG_LEVEL and the logging settings file."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    area_settings = parse_logging_settings(
        _resolve_under(PROJECT_ROOT, settings.logging_settings_path)
    )
    if area_settings.terminal_level is not None:
        log_level = area_settings.terminal_level

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if area_settings.terminal_level is not None:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers or [logging.NullHandler()],
        force=True,  # Override any existing configuration
    )

    logging.getLogger("speakahead").setLevel(log_level)
    apply_area_levels(area_settings)

    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Quiet the HTTP client unless debugging
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _resolve_under(base: Path, p: Path) -> Path:
    # Allow absolute paths as-is (useful for tests and external mounts).
    if p.is_absolute():
        return p.resolve()
    resolved = (base / p).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(f"Configured path {resolved} escapes project root {base}")
    return resolved


def create_app(
    settings: Optional[Settings] = None,
    tts_service: Optional[SynthesisBackend] = None,
) -> FastAPI:
    settings = settings or get_settings()

    # Configure logging first thing
    _configure_logging(settings)

    tts_service = tts_service or TTSService(settings)
    session_manager = SessionManager(tts_service, settings)
    phrase_bank_service = PhraseBankService(
        _resolve_under(PROJECT_ROOT, settings.phrase_bank_path)
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            session_manager.shutdown()
            try:
                await TTSService.close_http_client()
            except Exception as exc:
                logging.warning("Error closing TTS HTTP client: %s", exc)

    app = FastAPI(
        title="Speakahead",
        version="0.1.0",
        description="Predictive speech timing for AAC typing.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.tts_service = tts_service
    app.state.session_manager = session_manager
    app.state.phrase_bank_service = phrase_bank_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sessions_router)
    app.include_router(tts_router)
    app.include_router(suggestions_router)

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str | int]:
        return {
            "status": "ok",
            "tts_provider": settings.tts_provider,
            "gate_policy": settings.gate_policy,
            "active_sessions": len(session_manager.sessions),
        }

    return app


__all__ = ["create_app"]
