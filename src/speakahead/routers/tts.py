from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from ..schemas.tts import SynthesisRequest
from ..services.tts_service import SynthesisBackend, SynthesisError, VoiceParams

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["tts"])


def get_tts_service(request: Request) -> SynthesisBackend:
    service = getattr(request.app.state, "tts_service", None)
    if service is None:  # pragma: no cover - defensive
        raise RuntimeError("TTS service is not configured")
    return service


@router.post("/text-to-speech")
async def text_to_speech(
    payload: SynthesisRequest,
    service: SynthesisBackend = Depends(get_tts_service),
) -> Response:
    """Synthesize a whole message at once (phrase bank, manual speak button)."""
    if not payload.text.strip():
        logger.error("Text-to-speech request without text")
        raise HTTPException(status_code=400, detail="Text is required")

    params = VoiceParams(
        voice=payload.voice,
        pitch=payload.pitch,
        rate=payload.speaking_rate,
    )
    try:
        clip = await service.synthesize(payload.text, params)
    except SynthesisError as exc:
        logger.error(f"Text-to-speech failed: {exc}")
        raise HTTPException(status_code=502, detail=f"Failed to generate speech: {exc}")

    return Response(
        content=clip.audio,
        media_type=clip.mime_type,
        headers={"X-Audio-Duration": f"{clip.duration_seconds:.3f}"},
    )


__all__ = ["router"]
