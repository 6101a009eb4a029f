"""
Server Tests — REST state, WebSocket init/frames, commands, parameter editing.
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from fastapi.testclient import TestClient

import server
from server import app, PHYSICS_PARAMS, PARAM_DEFAULTS


@pytest.fixture(autouse=True)
def fresh_match():
    """Server state is module-global; start every test from a clean match."""
    server.match.reset()
    server.match.set_config(server.DEFAULT_CONFIG)
    yield
    server.match.reset()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def receive_until(ws, msg_type: str, limit: int = 500) -> dict:
    """Skip broadcast frames until a message of msg_type arrives."""
    for _ in range(limit):
        msg = ws.receive_json()
        if msg.get("type") == msg_type:
            return msg
    raise AssertionError(f"no {msg_type!r} message within {limit} messages")


class TestRest:

    def test_state_endpoint(self):
        resp = TestClient(app).get("/state")
        assert resp.status_code == 200
        data = resp.json()
        assert data["ball"]["x"] == 100.0
        assert data["hoop"]["width"] == 80.0
        assert data["mode"] == "idle"
        assert data["game"]["active"] is False

    def test_params_endpoint(self):
        data = TestClient(app).get("/params").json()
        assert [p["attr"] for p in data] == [attr for attr, *_ in PHYSICS_PARAMS]
        gravity = next(p for p in data if p["attr"] == "gravity")
        assert gravity["value"] == 0.5


class TestWebSocket:

    def test_init_message(self, client):
        with client.websocket_connect("/ws") as ws:
            init = ws.receive_json()
            assert init["type"] == "init"
            assert init["canvas_width"] == 500.0
            assert init["canvas_height"] == 600.0
            assert init["hoop"] == {"x": 350.0, "y": 150.0, "width": 80.0, "height": 10.0}

    def test_frames_are_broadcast(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            frame = receive_until(ws, "frame")
            assert set(frame) >= {"ball", "hoop", "events", "sounds", "mode", "game"}

    def test_start_then_drag_launch(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"cmd": "start"})
            # ball is already falling; grab a little below its start spot
            ws.send_json({"cmd": "pointer_down", "x": 100.0, "y": 410.0})
            ws.send_json({"cmd": "pointer_move", "x": 60.0, "y": 460.0})
            ws.send_json({"cmd": "pointer_up", "x": 60.0, "y": 460.0})
            ws.send_json({"cmd": "get_state"})
            state = receive_until(ws, "state")
            assert state["data"]["game"]["active"] is True
            assert state["data"]["game"]["attempts"] == 1
            assert state["data"]["ball"]["dragging"] is False

    def test_malformed_messages_are_skipped(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("not json")
            ws.send_text("[1, 2, 3]")
            ws.send_json({"cmd": "pointer_down", "x": "abc", "y": 1})
            ws.send_json({"cmd": "pointer_down"})
            ws.send_json({"cmd": "get_state"})
            state = receive_until(ws, "state")
            assert state["data"]["ball"]["dragging"] is False

    def test_adjust_and_reset_params(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"cmd": "adjust_param", "index": 0, "direction": 1})
            update = receive_until(ws, "param_update")
            assert update["index"] == 0
            assert update["value"] == pytest.approx(0.55)
            assert server.match.config.gravity == pytest.approx(0.55)

            ws.send_json({"cmd": "reset_params"})
            params = receive_until(ws, "params")
            values = {p["attr"]: p["value"] for p in params["data"]}
            assert values == pytest.approx(PARAM_DEFAULTS)

    def test_param_clamped_to_range(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            bounce_idx = [attr for attr, *_ in PHYSICS_PARAMS].index("bounce")
            for _ in range(10):
                ws.send_json({"cmd": "adjust_param", "index": bounce_idx, "direction": 1})
                update = receive_until(ws, "param_update")
            assert update["value"] == 1.0

    def test_reset_command(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"cmd": "start"})
            ws.send_json({"cmd": "reset"})
            ws.send_json({"cmd": "get_state"})
            state = receive_until(ws, "state")
            assert state["data"]["game"]["started"] is False
            assert state["data"]["game"]["score"] == 0
