"""
MatchController — owns score, attempts, countdown and start/reset.

The simulation has no reset of its own: start() and reset() throw the old
HoopController away and build a fresh one.
"""

import math
from typing import Optional

from controller import HoopController
from physics import PhysicsConfig, DEFAULT_CONFIG


class MatchController:
    """Timed single-player session around one HoopController."""

    MATCH_SECONDS = 60.0

    def __init__(self, config: PhysicsConfig = DEFAULT_CONFIG,
                 match_seconds: Optional[float] = None):
        self.config = config
        self.match_seconds = self.MATCH_SECONDS if match_seconds is None else float(match_seconds)
        if not math.isfinite(self.match_seconds) or self.match_seconds <= 0:
            raise ValueError(f"match_seconds must be positive, got {match_seconds!r}")

        self.score     = 0
        self.attempts  = 0
        self.time_left = self.match_seconds
        self.active    = False
        self.started   = False
        self.sim       = self._new_sim()

    def _new_sim(self) -> HoopController:
        return HoopController(on_score=self.on_score, config=self.config, active=False)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        self.sim.close()
        self.score     = 0
        self.attempts  = 0
        self.time_left = self.match_seconds
        self.active    = True
        self.started   = True
        self.sim       = self._new_sim()
        self.sim.set_active(True)
        print(f"[MATCH] Started: {self.match_seconds:.0f}s on the clock")

    def reset(self) -> None:
        self.sim.close()
        self.score     = 0
        self.attempts  = 0
        self.time_left = self.match_seconds
        self.active    = False
        self.started   = False
        self.sim       = self._new_sim()
        print("[MATCH] Reset")

    def _end(self) -> None:
        self.time_left = 0.0
        self.active = False
        self.sim.set_active(False)
        print(f"[MATCH] Time up! Final score: {self.score}  attempts: {self.attempts}")

    @property
    def game_over(self) -> bool:
        return self.started and not self.active and self.time_left <= 0.0

    # ── Per-frame ─────────────────────────────────────────────────────────────

    def update(self, dt: float) -> None:
        """Advance the countdown and the simulation by one frame."""
        if not self.active or not math.isfinite(dt) or dt < 0:
            return
        self.time_left -= dt
        if self.time_left <= 0.0:
            self._end()
            return
        self.sim.step(dt)

    # ── Pointer forwarding (attempts = launches) ──────────────────────────────

    def pointer_down(self, x: float, y: float) -> bool:
        return self.sim.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> None:
        self.sim.pointer_move(x, y)

    def pointer_up(self, x: float, y: float) -> Optional[tuple]:
        launch = self.sim.pointer_up(x, y)
        if launch is not None and self.active:
            self.attempts += 1
        return launch

    def pointer_leave(self) -> Optional[tuple]:
        launch = self.sim.pointer_leave()
        if launch is not None and self.active:
            self.attempts += 1
        return launch

    def on_score(self) -> None:
        self.score += 1
        print(f"[MATCH] Score! {self.score}")

    def set_config(self, config: PhysicsConfig) -> None:
        """Apply new physics constants to the running simulation and future ones."""
        self.config = config
        self.sim.config = config

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "attempts": self.attempts,
            "time_left": math.ceil(self.time_left),
            "active": self.active,
            "started": self.started,
            "game_over": self.game_over,
        }
