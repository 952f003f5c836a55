"""REST and WebSocket endpoints for predictive speaking sessions."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Request,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.responses import PlainTextResponse

from ..schemas.session import (
    MetricsResponse,
    PredictionPayload,
    SessionConfigPayload,
    SessionStateResponse,
    TextChangePayload,
)
from ..services.session_controller import SessionConfig
from ..services.session_manager import PredictiveSession, SessionManager
from ..services.tts_service import VoiceParams

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def get_session_manager(request: Request) -> SessionManager:
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:  # pragma: no cover - defensive
        raise RuntimeError("Session manager is not configured")
    return manager


def _to_config(payload: SessionConfigPayload, manager: SessionManager) -> SessionConfig:
    settings = manager.settings
    typing_rate = payload.typing_rate_wpm
    if typing_rate is None:
        typing_rate = settings.default_typing_rate_wpm
    return SessionConfig(
        total_words_assumed=payload.total_words_assumed,
        typing_rate_wpm=typing_rate,
        voice=VoiceParams(
            voice=payload.voice.voice or settings.tts_default_voice,
            pitch=payload.voice.pitch,
            rate=payload.voice.rate,
        ),
    )


def _lookup(manager: SessionManager, session_id: str) -> PredictiveSession:
    try:
        return manager.get_session(session_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc


def _state_response(
    session: PredictiveSession, dispatched: Optional[list[str]] = None
) -> SessionStateResponse:
    controller = session.controller
    current = controller.session
    return SessionStateResponse(
        session_id=session.session_id,
        state=controller.state,
        gate=current.gate.name,
        finished=current.finished,
        gate_enabled=current.gate_enabled,
        completed_words=list(current.completed_words),
        spoken_words=current.last_spoken_index + 1,
        pending_fragments=controller.queue.pending,
        dispatched=dispatched or [],
    )


@router.post(
    "", response_model=SessionStateResponse, status_code=status.HTTP_201_CREATED
)
async def create_session(
    payload: SessionConfigPayload,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionStateResponse:
    session = manager.create_session(_to_config(payload, manager))
    return _state_response(session)


@router.get("/{session_id}", response_model=SessionStateResponse)
async def read_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionStateResponse:
    return _state_response(_lookup(manager, session_id))


@router.post("/{session_id}/text", response_model=SessionStateResponse)
async def change_text(
    session_id: str,
    payload: TextChangePayload,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionStateResponse:
    session = _lookup(manager, session_id)
    session.update_activity()
    result = session.controller.handle_text_change(payload.text)
    if result.dispatched or result.gate_opened:
        await manager.broadcast_state(session_id)
    return _state_response(session, result.dispatched)


@router.post("/{session_id}/restart", response_model=SessionStateResponse)
async def restart_session(
    session_id: str,
    payload: Optional[SessionConfigPayload] = None,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionStateResponse:
    session = _lookup(manager, session_id)
    config = (
        _to_config(payload, manager)
        if payload is not None
        else session.controller.session.config
    )
    session.controller.start_session(config)
    await manager.broadcast_state(session_id)
    return _state_response(session)


@router.post("/{session_id}/stop", response_model=SessionStateResponse)
async def stop_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionStateResponse:
    session = _lookup(manager, session_id)
    session.controller.stop()
    await manager.broadcast(session_id, {"type": "interrupt_playback"})
    await manager.broadcast_state(session_id)
    return _state_response(session)


@router.post("/{session_id}/predictions", status_code=status.HTTP_204_NO_CONTENT)
async def record_prediction(
    session_id: str,
    payload: PredictionPayload,
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    session = _lookup(manager, session_id)
    session.controller.record_prediction(payload.accepted, payload.correct)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{session_id}/corrections", status_code=status.HTTP_204_NO_CONTENT)
async def record_correction(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    session = _lookup(manager, session_id)
    session.controller.record_correction()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{session_id}/metrics", response_model=MetricsResponse)
async def read_metrics(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> MetricsResponse:
    session = _lookup(manager, session_id)
    return MetricsResponse(**asdict(session.controller.metrics()))


@router.get("/{session_id}/report", response_class=PlainTextResponse)
async def read_report(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> str:
    return _lookup(manager, session_id).controller.report()


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    try:
        manager.remove_session(session_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/{session_id}/ws")
async def session_socket(websocket: WebSocket, session_id: str):
    """
    Live channel for a session.

    Client messages: text_change {text}, playback_complete, stop, heartbeat.
    Server messages: state, audio, interrupt_playback, queue_event.
    """
    manager: Optional[SessionManager] = getattr(
        websocket.app.state, "session_manager", None
    )
    if manager is None or session_id not in manager.sessions:
        await websocket.close(code=1008, reason="Unknown session")
        return

    session = await manager.connect(websocket, session_id)
    await manager.broadcast_state(session_id)

    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                logger.warning(f"Ignoring non-object message from session {session_id}")
                continue
            event_type = data.get("type")
            session.update_activity()

            if event_type == "heartbeat":
                pass

            elif event_type == "text_change":
                result = session.controller.handle_text_change(str(data.get("text", "")))
                if result.new_words:
                    await websocket.send_json({
                        "type": "words",
                        "new_words": result.new_words,
                        "dispatched": result.dispatched,
                        "finished": result.finished,
                    })
                if result.dispatched or result.gate_opened:
                    await manager.broadcast_state(session_id)

            elif event_type == "playback_complete":
                session.player.playback_complete()

            elif event_type == "stop":
                session.controller.stop()
                await manager.broadcast(session_id, {"type": "interrupt_playback"})
                await manager.broadcast_state(session_id)

            else:
                logger.warning(f"Unknown message type from session {session_id}: {event_type}")

    except WebSocketDisconnect:
        logger.info(f"Client disconnected from session {session_id}")
        manager.disconnect(websocket, session_id)
    except Exception as e:
        logger.error(f"Unexpected error for session {session_id}: {e}")
        manager.disconnect(websocket, session_id)


__all__ = ["router"]
