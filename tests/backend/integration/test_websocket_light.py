"""
Lightweight WebSocket integration tests.
Tests connection establishment and the authentication handshake.
Does NOT test live room or message streaming (covered by the service tests).
"""
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from chatconnect.core.security import create_access_token
from chatconnect.main import app


class TestWebSocketAuth:
    """Connections without a usable token are told why and closed."""

    @pytest.mark.parametrize("path", ["/ws/rooms", "/ws/messages/X7K2QT"])
    def test_missing_token(self, path):
        client = TestClient(app)
        with client.websocket_connect(path) as websocket:
            msg = websocket.receive_json()
            assert msg == {"type": "error", "code": "AUTH_REQUIRED"}
            with pytest.raises(WebSocketDisconnect) as exc:
                websocket.receive_json()
            assert exc.value.code == 4401

    @pytest.mark.parametrize("path", ["/ws/rooms", "/ws/messages/X7K2QT"])
    def test_invalid_token(self, path):
        client = TestClient(app)
        with client.websocket_connect(f"{path}?token=not-a-jwt") as websocket:
            msg = websocket.receive_json()
            assert msg == {"type": "error", "code": "AUTH_INVALID_TOKEN"}
            with pytest.raises(WebSocketDisconnect) as exc:
                websocket.receive_json()
            assert exc.value.code == 4401

    def test_token_without_subject_is_rejected(self):
        token = create_access_token("", "nobody")
        client = TestClient(app)
        with client.websocket_connect(f"/ws/rooms?token={token}") as websocket:
            assert websocket.receive_json()["code"] == "AUTH_INVALID_TOKEN"
