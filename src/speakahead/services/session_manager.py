import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from fastapi import WebSocket

from speakahead.config import Settings
from speakahead.services.session_controller import SessionConfig, SessionController
from speakahead.services.timing_predictor import GateConfig
from speakahead.services.tts import ClientPlayer, SpeechQueue
from speakahead.services.tts_service import SynthesisBackend

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PredictiveSession:
    """A live session together with the clients listening to it."""

    session_id: str
    controller: SessionController
    player: ClientPlayer
    websockets: List[WebSocket] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    last_activity: datetime = field(default_factory=_utcnow)

    def update_activity(self):
        """Update the last activity timestamp."""
        self.last_activity = _utcnow()


class SessionManager:
    """Manages live sessions and their WebSocket connections.

    Each session owns its own controller, queue and player; nothing is shared
    between sessions except the synthesis backend.
    """

    def __init__(
        self,
        backend: SynthesisBackend,
        settings: Settings,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.backend = backend
        self.settings = settings
        self.gate_config = GateConfig.from_settings(settings)
        self._clock = clock
        self.sessions: Dict[str, PredictiveSession] = {}

    def create_session(self, config: SessionConfig) -> PredictiveSession:
        session_id = uuid.uuid4().hex

        async def send(message: dict) -> bool:
            return await self.broadcast(session_id, message)

        player = ClientPlayer(send, grace_seconds=self.settings.playback_grace_seconds)
        queue = SpeechQueue(self.backend, player, voice=config.voice)

        async def forward(event: dict) -> None:
            await self.broadcast(session_id, {"type": "queue_event", "event": event})
            if event.get("type") in ("fragment_started", "idle"):
                await self.broadcast_state(session_id)

        controller_kwargs = {"clock": self._clock} if self._clock else {}
        controller = SessionController(
            queue,
            config,
            gate_config=self.gate_config,
            listener=forward,
            **controller_kwargs,
        )
        session = PredictiveSession(session_id=session_id, controller=controller, player=player)
        self.sessions[session_id] = session
        logger.info(f"Session created: {session_id}")
        return session

    def get_session(self, session_id: str) -> PredictiveSession:
        """Retrieve a session by ID. Raises KeyError if unknown."""
        try:
            return self.sessions[session_id]
        except KeyError:
            raise KeyError(f"Unknown session: {session_id}") from None

    def remove_session(self, session_id: str) -> None:
        session = self.sessions.pop(session_id, None)
        if session is None:
            raise KeyError(f"Unknown session: {session_id}")
        session.controller.stop()
        logger.info(f"Session removed: {session_id}")

    def shutdown(self) -> None:
        """Stop every session's playback. Called on app shutdown."""
        for session in self.sessions.values():
            session.controller.stop()
        self.sessions.clear()

    async def connect(self, websocket: WebSocket, session_id: str) -> PredictiveSession:
        """Accept a WebSocket connection for an existing session."""
        session = self.get_session(session_id)
        await websocket.accept()
        session.websockets.append(websocket)
        logger.info(f"Client connected to session {session_id}")
        return session

    def disconnect(self, websocket: WebSocket, session_id: str):
        session = self.sessions.get(session_id)
        if session and websocket in session.websockets:
            session.websockets.remove(websocket)
            logger.info(f"Client disconnected from session {session_id}")

    async def broadcast(self, session_id: str, message: dict) -> bool:
        """Send a JSON message to every client of a session.

        Returns True if at least one client received it.
        """
        session = self.sessions.get(session_id)
        if session is None:
            return False
        delivered = False
        for websocket in list(session.websockets):
            try:
                await websocket.send_json(message)
                delivered = True
            except Exception as e:
                logger.error(f"Error sending to session {session_id}: {e}")
                self.disconnect(websocket, session_id)
        return delivered

    async def broadcast_state(self, session_id: str) -> None:
        session = self.sessions.get(session_id)
        if session is None:
            return
        controller = session.controller
        await self.broadcast(session_id, {
            "type": "state",
            "state": controller.state,
            "gate": controller.session.gate.name,
            "finished": controller.session.finished,
        })


__all__ = ["PredictiveSession", "SessionManager"]
