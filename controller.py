"""
HoopController — Layer 2 (Simulation Logic)

Owns the ball, the drag state machine and the fixed-timestep tick sequence.
Hosts (server.py / match.py) talk to it through a narrow surface:

  ctrl.pointer_down(x, y)     — grab the ball if the pointer hits it
  ctrl.pointer_move(x, y)     — ball follows the pointer while dragging
  ctrl.pointer_up(x, y)       — release: slingshot launch
  ctrl.pointer_leave()        — release at the last known pointer position
  ctrl.step(dt)               — advance by wall-clock dt in fixed ticks
  ctrl.snapshot()             — immutable view for the renderer
  ctrl.pending_events         — list of dicts (launch, score, ...) to consume
  ctrl.physics_events         — collision dicts from the last ticks (sounds)
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from physics import (
    Ball, Hoop, PhysicsConfig, PhysicsEngine, ScoreDetector,
    DEFAULT_CONFIG, CANVAS_WIDTH, CANVAS_HEIGHT, BALL_RADIUS, BALL_START,
)


@dataclass(frozen=True)
class Snapshot:
    """Read-only state published to the renderer after each tick."""
    ball_x: float
    ball_y: float
    ball_radius: float
    dragging: bool
    hoop: Hoop = field(default_factory=Hoop)

    def to_dict(self) -> dict:
        return {
            "ball": {"x": round(self.ball_x, 3), "y": round(self.ball_y, 3),
                     "radius": self.ball_radius, "dragging": self.dragging},
            "hoop": {"x": self.hoop.x, "y": self.hoop.y,
                     "width": self.hoop.width, "height": self.hoop.height},
        }


def _finite(*values) -> bool:
    return all(math.isfinite(v) for v in values)


class HoopController:
    """Layer 2: drag state machine + physics orchestration."""

    # ── Class-level constants ─────────────────────────────────────────────────
    TICK_DT            = 1.0 / 60.0   # one physics tick per 60 Hz frame
    MAX_TICKS_PER_STEP = 5

    # ── Constructor ───────────────────────────────────────────────────────────

    def __init__(self,
                 on_score: Optional[Callable[[], None]] = None,
                 config: PhysicsConfig = DEFAULT_CONFIG,
                 width: float = CANVAS_WIDTH,
                 height: float = CANVAS_HEIGHT,
                 hoop: Optional[Hoop] = None,
                 ball: Optional[Ball] = None,
                 active: bool = True):
        # Physics
        self.engine   = PhysicsEngine(width, height, config)
        self.hoop     = hoop if hoop is not None else Hoop()
        self.detector = ScoreDetector(self.hoop, config)
        self._ball    = ball if ball is not None else Ball(position=BALL_START, radius=BALL_RADIUS)

        # Match hooks
        self.on_score = on_score
        self.active   = active
        self.closed   = False

        # Drag state
        self.mode = "dragging" if self._ball.dragging else "idle"   # "idle"|"dragging"
        self._drag_start: Optional[tuple] = (self._ball.x, self._ball.y) if self._ball.dragging else None
        self._last_pointer: Optional[tuple] = None

        # Fixed-timestep bookkeeping
        self._accumulator = 0.0
        self.tick_count   = 0
        self._not_ready_logged = False

        # Event queues
        self.pending_events: list[dict] = []   # host-facing (launch, score, rejected)
        self.physics_events: list[dict] = []   # collisions (wall, floor)

        self.last_snapshot = self.snapshot()

    # ──────────────────────────────────────────────────────────────────────────
    # Configuration
    # ──────────────────────────────────────────────────────────────────────────

    @property
    def config(self) -> PhysicsConfig:
        return self.engine.config

    @config.setter
    def config(self, cfg: PhysicsConfig) -> None:
        self.engine.config   = cfg
        self.detector.config = cfg

    @property
    def dragging(self) -> bool:
        return self._ball.dragging

    def set_active(self, active: bool) -> None:
        """Gate physics and grabbing. Deactivating drops any accumulated time."""
        self.active = bool(active)
        if not self.active:
            self._accumulator = 0.0

    def close(self) -> None:
        """Tear down: every later tick and pointer call becomes a no-op."""
        self.closed = True
        self.active = False
        self._accumulator = 0.0
        self._drag_start = None

    # ──────────────────────────────────────────────────────────────────────────
    # Pointer input (drag state machine)
    # ──────────────────────────────────────────────────────────────────────────

    def pointer_down(self, x: float, y: float) -> bool:
        """Start a drag if (x, y) hits the ball. Returns True on grab."""
        if self.closed or not self.active or self.mode == "dragging":
            return False
        if not _finite(x, y):
            print(f"[INPUT] pointer_down rejected: non-finite ({x}, {y})")
            return False
        if not self._ball.contains(x, y):
            return False

        self._ball.velocity[:] = 0.0
        self._ball.dragging = True
        self._drag_start   = (float(x), float(y))
        self._last_pointer = (float(x), float(y))
        self.mode = "dragging"
        return True

    def pointer_move(self, x: float, y: float) -> None:
        if self.closed or self.mode != "dragging":
            return
        if not _finite(x, y):
            print(f"[INPUT] pointer_move rejected: non-finite ({x}, {y})")
            return
        # Pointer position is not clamped to the canvas
        self._ball.position = np.array([x, y], dtype=float)
        self._last_pointer  = (float(x), float(y))

    def pointer_up(self, x: float, y: float) -> Optional[tuple]:
        """Release the drag. Returns the launch velocity (vx, vy), or None."""
        if self.closed or self.mode != "dragging":
            return None
        if not _finite(x, y):
            print(f"[INPUT] pointer_up rejected: non-finite ({x}, {y})")
            return None
        return self._release(float(x), float(y))

    def pointer_leave(self) -> Optional[tuple]:
        """Pointer left the surface: release where it was last seen."""
        if self.closed or self.mode != "dragging":
            return None
        px, py = self._last_pointer if self._last_pointer is not None else self._drag_start
        return self._release(px, py)

    def _release(self, x: float, y: float) -> tuple:
        sx, sy = self._drag_start
        scale = self.config.launch_scale
        vx = (sx - x) * scale
        vy = (sy - y) * scale

        self._ball.velocity = np.array([vx, vy])
        self._ball.dragging = False
        self._drag_start    = None
        self._last_pointer  = None
        self.mode = "idle"
        # A launch starts a new pass through the rim
        self.detector.reset()
        self.pending_events.append({"type": "launch", "vx": vx, "vy": vy})
        return vx, vy

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def step(self, dt_frame: float) -> int:
        """
        Advance by wall-clock dt. Called every frame by the scheduler.

        Time is accumulated and consumed in whole TICK_DT ticks so results do
        not depend on the host's refresh rate. Returns the number of ticks run.
        """
        if self.closed or not self.active:
            return 0
        if not math.isfinite(dt_frame) or dt_frame < 0:
            return 0

        self.physics_events.clear()
        self._accumulator += dt_frame
        ticks = 0
        while self._accumulator >= self.TICK_DT and ticks < self.MAX_TICKS_PER_STEP:
            self._accumulator -= self.TICK_DT
            self.tick()
            ticks += 1
        if ticks == self.MAX_TICKS_PER_STEP:
            # Host fell behind; drop the backlog instead of spiralling
            self._accumulator = min(self._accumulator, self.TICK_DT)
        return ticks

    def tick(self) -> None:
        """Run exactly one physics tick and publish the snapshot."""
        if self.closed or not self.active:
            return
        if not self.engine.is_ready(self._ball.radius):
            if not self._not_ready_logged:
                print(f"[TICK] surface not ready ({self.engine.width}x{self.engine.height}); skipping")
                self._not_ready_logged = True
            return
        self._not_ready_logged = False

        ball = self._ball
        if not ball.dragging:
            prev_vy = ball.vy
            committed = self.engine.update(ball)
            self.physics_events.extend(self.engine.events)
            if not committed:
                print("[TICK] non-finite state discarded; keeping previous state")
                self.pending_events.append({"type": "rejected", "tick": self.tick_count})
            elif self.detector.check(ball.position, prev_vy):
                self.pending_events.append({"type": "score", "tick": self.tick_count})
                if self.on_score is not None:
                    self.on_score()

        self.tick_count += 1
        self.last_snapshot = self.snapshot()

    # ──────────────────────────────────────────────────────────────────────────
    # Renderer view
    # ──────────────────────────────────────────────────────────────────────────

    def snapshot(self) -> Snapshot:
        b = self._ball
        return Snapshot(ball_x=b.x, ball_y=b.y, ball_radius=b.radius,
                        dragging=b.dragging, hoop=self.hoop)

    def ball_state(self) -> dict:
        """Full ball state including velocity (tests, presets, debugging)."""
        b = self._ball
        return {"x": b.x, "y": b.y, "vx": b.vx, "vy": b.vy,
                "radius": b.radius, "dragging": b.dragging}

    def drain_events(self) -> tuple:
        """Return and clear (pending_events, physics_events)."""
        pending, physics = list(self.pending_events), list(self.physics_events)
        self.pending_events.clear()
        self.physics_events.clear()
        return pending, physics
