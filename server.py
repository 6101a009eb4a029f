"""
Hoop Shot Web Server — FastAPI + WebSocket host

Runs the match/physics loop and streams snapshots to browser renderers.
Clients send pointer events in canvas coordinates and lifecycle commands.
"""

import dataclasses
import json
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from controller import HoopController
from match import MatchController
from physics import DEFAULT_CONFIG, CANVAS_WIDTH, CANVAS_HEIGHT, BALL_RADIUS
from scheduler import FrameScheduler

# ── Physics params (live-editable) ──────────────────────────────────────────

PHYSICS_PARAMS = [
    ("gravity",         "Gravity",        0.0,   2.0,  0.05),
    ("friction",        "Air Friction",   0.9,   1.0,  0.005),
    ("bounce",          "Bounce",         0.0,   1.0,  0.05),
    ("launch_scale",    "Launch Scale",   0.05,  1.0,  0.05),
    ("rest_threshold",  "Rest Threshold", 0.0,   5.0,  0.1),
    ("score_tolerance", "Rim Tolerance",  5.0,  60.0,  1.0),
    ("score_band",      "Rim Band",       2.0,  30.0,  1.0),
]

PARAM_DEFAULTS = {attr: getattr(DEFAULT_CONFIG, attr) for attr, *_ in PHYSICS_PARAMS}

# ── Match + clients ─────────────────────────────────────────────────────────

match = MatchController()
clients: list[WebSocket] = []


async def on_frame(dt: float) -> None:
    """One display frame: advance the match, then broadcast."""
    match.update(dt)
    if not clients:
        match.sim.drain_events()
        return

    frame_msg = _build_frame_message()
    dead: list[WebSocket] = []
    for ws in clients:
        try:
            await ws.send_text(frame_msg)
        except Exception as exc:
            print(f"[SERVER] dropping client: {exc!r}")
            dead.append(ws)
    for ws in dead:
        if ws in clients:
            clients.remove(ws)


scheduler = FrameScheduler(on_frame)


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler.start()
    yield
    scheduler.stop()
    match.sim.close()


app = FastAPI(lifespan=lifespan)


def _build_frame_message() -> str:
    """Serialize current state into a JSON frame message."""
    pending, physics = match.sim.drain_events()
    sounds = [{"type": ev.get("type", ""), "speed": round(float(ev.get("speed", 0.0)), 3)}
              for ev in physics]
    frame = {
        "type": "frame",
        **match.sim.last_snapshot.to_dict(),
        "events": pending,
        "sounds": sounds,
        "mode": match.sim.mode,
        "game": match.to_dict(),
    }
    return json.dumps(frame, separators=(',', ':'))


def _init_message() -> str:
    hoop = match.sim.hoop
    return json.dumps({
        "type": "init",
        "canvas_width": CANVAS_WIDTH,
        "canvas_height": CANVAS_HEIGHT,
        "ball_radius": BALL_RADIUS,
        "hoop": {"x": hoop.x, "y": hoop.y, "width": hoop.width, "height": hoop.height},
        "tick_dt": HoopController.TICK_DT,
    })


# ── Physics params helpers ──────────────────────────────────────────────────

def _get_params_data() -> list:
    """Return all physics params with current values."""
    result = []
    for attr, label, mn, mx, step in PHYSICS_PARAMS:
        result.append({
            "attr": attr, "label": label,
            "value": round(getattr(match.config, attr), 6),
            "min": mn, "max": mx, "step": step,
        })
    return result


def _adjust_param(idx: int, direction: int, fine: bool) -> float:
    attr, label, mn, mx, step = PHYSICS_PARAMS[idx]
    s = step / 10.0 if fine else step
    cur = getattr(match.config, attr)
    new_val = max(mn, min(mx, cur + direction * s))
    match.set_config(dataclasses.replace(match.config, **{attr: new_val}))
    print(f"[PARAMS] {attr}: {cur} -> {new_val}")
    return new_val


def _pointer_coords(msg: dict):
    """(x, y) floats from a client message, or None if malformed."""
    try:
        return float(msg["x"]), float(msg["y"])
    except (KeyError, TypeError, ValueError):
        return None


# ── REST ────────────────────────────────────────────────────────────────────

@app.get("/state")
async def get_state():
    return {**match.sim.snapshot().to_dict(), "mode": match.sim.mode, "game": match.to_dict()}


@app.get("/params")
async def get_params():
    return _get_params_data()


# ── WebSocket endpoint ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    # init goes out before the client joins the frame broadcast
    await ws.send_text(_init_message())
    clients.append(ws)

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            cmd = msg.get("cmd", "")
            if cmd in ("pointer_down", "pointer_move", "pointer_up"):
                coords = _pointer_coords(msg)
                if coords is None:
                    continue
                getattr(match, cmd)(*coords)
            elif cmd == "pointer_leave":
                match.pointer_leave()
            elif cmd == "start":
                match.start()
            elif cmd == "reset":
                match.reset()
            elif cmd == "get_state":
                await ws.send_text(json.dumps({
                    "type": "state",
                    "data": {**match.sim.snapshot().to_dict(), "game": match.to_dict()},
                }))
            elif cmd == "get_params":
                await ws.send_text(json.dumps({
                    "type": "params",
                    "data": _get_params_data(),
                }))
            elif cmd == "adjust_param":
                try:
                    idx = int(msg.get("index", 0))
                    direction = int(msg.get("direction", 0))
                except (TypeError, ValueError):
                    continue
                if 0 <= idx < len(PHYSICS_PARAMS):
                    new_val = _adjust_param(idx, direction, bool(msg.get("fine", False)))
                    await ws.send_text(json.dumps({
                        "type": "param_update",
                        "index": idx,
                        "value": round(new_val, 6),
                    }))
            elif cmd == "reset_params":
                match.set_config(dataclasses.replace(match.config, **PARAM_DEFAULTS))
                await ws.send_text(json.dumps({
                    "type": "params",
                    "data": _get_params_data(),
                }))
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
