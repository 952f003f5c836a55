"""Tests for the session REST and WebSocket endpoints."""

from fastapi import FastAPI, WebSocketDisconnect
from fastapi.testclient import TestClient

from speakahead.config import Settings
from speakahead.routers import sessions as sessions_router
from speakahead.services.session_manager import SessionManager


def make_app(backend) -> FastAPI:
    """Build an app with an isolated session manager."""
    settings = Settings(_env_file=None, gate_tolerance_seconds=0.0)
    app = FastAPI()
    app.state.session_manager = SessionManager(backend, settings)
    app.include_router(sessions_router.router)
    return app


def _create(client: TestClient, **payload) -> dict:
    body = {"total_words_assumed": 3, "typing_rate_wpm": 30}
    body.update(payload)
    response = client.post("/api/sessions", json=body)
    assert response.status_code == 201
    return response.json()


def test_create_and_read_session(backend) -> None:
    with TestClient(make_app(backend)) as client:
        created = _create(client)

        assert created["state"] == "waiting"
        assert created["gate"] == "waiting"
        assert created["gate_enabled"] is True
        assert created["completed_words"] == []

        response = client.get(f"/api/sessions/{created['session_id']}")
        assert response.status_code == 200
        assert response.json()["session_id"] == created["session_id"]


def test_default_typing_rate_is_applied(backend) -> None:
    with TestClient(make_app(backend)) as client:
        created = client.post("/api/sessions", json={"total_words_assumed": 5}).json()
        manager = client.app.state.session_manager
        config = manager.get_session(created["session_id"]).controller.session.config

        assert config.typing_rate_wpm == 30
        assert config.voice.voice == "en-US-Standard-A"


def test_text_changes_open_the_gate(backend) -> None:
    with TestClient(make_app(backend)) as client:
        session_id = _create(client)["session_id"]
        url = f"/api/sessions/{session_id}/text"

        first = client.post(url, json={"text": "Hello there "}).json()
        assert first["completed_words"] == ["Hello", "there"]
        assert first["dispatched"] == []
        assert first["gate"] == "waiting"

        last = client.post(url, json={"text": "Hello there friend "}).json()
        assert last["dispatched"] == ["Hello there friend"]
        assert last["gate"] == "speaking"
        assert last["finished"] is True
        assert last["spoken_words"] == 3


def test_misconfigured_session_is_created_with_gate_disabled(backend) -> None:
    with TestClient(make_app(backend)) as client:
        created = _create(client, total_words_assumed=0)
        assert created["gate_enabled"] is False

        result = client.post(
            f"/api/sessions/{created['session_id']}/text",
            json={"text": "one two three four "},
        ).json()
        assert result["dispatched"] == []
        assert result["gate"] == "waiting"


def test_restart_resets_session(backend) -> None:
    with TestClient(make_app(backend)) as client:
        session_id = _create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/text", json={"text": "Hello there friend "})

        response = client.post(f"/api/sessions/{session_id}/restart")
        assert response.status_code == 200
        body = response.json()
        assert body["gate"] == "waiting"
        assert body["spoken_words"] == 0
        assert body["finished"] is False

        response = client.post(
            f"/api/sessions/{session_id}/restart",
            json={"total_words_assumed": 8, "typing_rate_wpm": 40},
        )
        manager = client.app.state.session_manager
        config = manager.get_session(session_id).controller.session.config
        assert config.total_words_assumed == 8
        assert config.typing_rate_wpm == 40


def test_stop_interrupts_playback(backend) -> None:
    with TestClient(make_app(backend)) as client:
        session_id = _create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/text", json={"text": "Hello there friend "})

        response = client.post(f"/api/sessions/{session_id}/stop")

        assert response.status_code == 200
        assert response.json()["state"] == "waiting"
        assert response.json()["pending_fragments"] == 0


def test_metrics_and_report(backend) -> None:
    with TestClient(make_app(backend)) as client:
        session_id = _create(client)["session_id"]

        metrics = client.get(f"/api/sessions/{session_id}/metrics").json()
        assert set(metrics) == {
            "typing_to_speech_latency",
            "average_word_delay",
            "conversation_flow_score",
            "typing_speech_overlap_rate",
            "predictive_accuracy",
            "interaction_speed",
            "prediction_acceptance_rate",
            "correction_rate",
            "completion_efficiency",
        }
        assert all(value == 0 for value in metrics.values())

        assert (
            client.post(
                f"/api/sessions/{session_id}/predictions",
                json={"accepted": True, "correct": True},
            ).status_code
            == 204
        )
        assert client.post(f"/api/sessions/{session_id}/corrections").status_code == 204

        metrics = client.get(f"/api/sessions/{session_id}/metrics").json()
        assert metrics["prediction_acceptance_rate"] == 1.0
        assert metrics["predictive_accuracy"] == 1.0

        report = client.get(f"/api/sessions/{session_id}/report")
        assert report.status_code == 200
        assert report.text.startswith("Conversation Analysis Report")


def test_unknown_session_returns_404(backend) -> None:
    with TestClient(make_app(backend)) as client:
        assert client.get("/api/sessions/missing").status_code == 404
        assert (
            client.post("/api/sessions/missing/text", json={"text": "hi "}).status_code
            == 404
        )
        assert client.get("/api/sessions/missing/metrics").status_code == 404
        assert client.delete("/api/sessions/missing").status_code == 404


def test_delete_session(backend) -> None:
    with TestClient(make_app(backend)) as client:
        session_id = _create(client)["session_id"]

        assert client.delete(f"/api/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/sessions/{session_id}").status_code == 404


def test_websocket_text_change(backend) -> None:
    with TestClient(make_app(backend)) as client:
        session_id = _create(client, total_words_assumed=10)["session_id"]

        with client.websocket_connect(f"/api/sessions/{session_id}/ws") as websocket:
            state = websocket.receive_json()
            assert state == {
                "type": "state",
                "state": "waiting",
                "gate": "waiting",
                "finished": False,
            }

            websocket.send_json({"type": "heartbeat"})
            websocket.send_json({"type": "text_change", "text": "Hello "})

            message = websocket.receive_json()
            for _ in range(5):
                if message["type"] == "words":
                    break
                message = websocket.receive_json()

            assert message["type"] == "words"
            assert message["new_words"] == ["Hello"]
            assert message["dispatched"] == []


def test_websocket_unknown_session_is_rejected(backend) -> None:
    with TestClient(make_app(backend)) as client:
        try:
            with client.websocket_connect("/api/sessions/missing/ws") as websocket:
                websocket.receive_json()
        except WebSocketDisconnect as exc:
            assert exc.code == 1008
        else:
            raise AssertionError("connection to an unknown session was accepted")


def test_websocket_ignores_non_object_messages(backend) -> None:
    with TestClient(make_app(backend)) as client:
        session_id = _create(client, total_words_assumed=10)["session_id"]

        with client.websocket_connect(f"/api/sessions/{session_id}/ws") as websocket:
            assert websocket.receive_json()["type"] == "state"

            websocket.send_json([])
            websocket.send_json("text_change")
            websocket.send_json({"type": "text_change", "text": "Still here "})

            message = websocket.receive_json()
            for _ in range(5):
                if message["type"] == "words":
                    break
                message = websocket.receive_json()

            assert message["type"] == "words"
            assert message["new_words"] == ["Still", "here"]

        session = client.app.state.session_manager.get_session(session_id)
        assert session.controller.session.completed_words == ["Still", "here"]
