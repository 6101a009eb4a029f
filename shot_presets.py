"""
Shot Preset System
Scripted, headless scenarios (drop-in, bank, floor settle, slingshot) that
set up a HoopController, optionally run it tick by tick, and return a result
dict for inspection.
"""

from controller import HoopController
from physics import Ball, Hoop, PhysicsConfig, DEFAULT_CONFIG

MAX_TICKS = 2000


def _make_controller(ball: Ball, config: PhysicsConfig = DEFAULT_CONFIG):
    """Active controller plus a score counter list the callback appends to."""
    scores: list = []
    ctrl = HoopController(on_score=lambda: scores.append(ctrl.tick_count),
                          config=config, ball=ball, active=True)
    return ctrl, scores


def _is_settled(ctrl: HoopController) -> bool:
    s = ctrl.ball_state()
    return s["vy"] == 0.0 and s["y"] == ctrl.engine.height - s["radius"]


def _run(ctrl: HoopController, max_ticks: int = MAX_TICKS, stop_when_settled: bool = True) -> dict:
    trajectory = []
    collisions = []
    settled_tick = None
    for _ in range(max_ticks):
        ctrl.tick()
        collisions.extend(ctrl.physics_events)
        ctrl.physics_events.clear()
        s = ctrl.ball_state()
        trajectory.append((s["x"], s["y"]))
        if settled_tick is None and _is_settled(ctrl):
            settled_tick = ctrl.tick_count
            if stop_when_settled:
                break
    return {"trajectory": trajectory, "collisions": collisions,
            "settled_tick": settled_tick}


def _result(ctrl, scores, run_data=None) -> dict:
    run_data = run_data or {"trajectory": [], "collisions": [], "settled_tick": None}
    return {"controller": ctrl, "scores": scores, "ticks": ctrl.tick_count, **run_data}


class ShotPreset:
    """Each preset places the ball, optionally runs, and returns a result dict."""

    @staticmethod
    def drop_in(run=True) -> dict:
        """Ball released at rest straight above the rim: one clean score."""
        hoop = Hoop()
        ctrl, scores = _make_controller(Ball(position=[hoop.center_x, 100.0]))
        if not run:
            return _result(ctrl, scores)
        return _result(ctrl, scores, _run(ctrl))

    @staticmethod
    def bank_off_wall(run=True, ticks: int = 120) -> dict:
        """Fast ball toward the right wall: reflects and keeps flying."""
        ctrl, scores = _make_controller(Ball(position=[400.0, 300.0], velocity=[12.0, -6.0]))
        if not run:
            return _result(ctrl, scores)
        data = _run(ctrl, max_ticks=ticks, stop_when_settled=False)
        data["wall_hits"] = sum(1 for ev in data["collisions"] if ev["type"] == "wall")
        return _result(ctrl, scores, data)

    @staticmethod
    def settle_on_floor(run=True) -> dict:
        """Ball dropped mid-court with a little drift: bounces down to rest."""
        ctrl, scores = _make_controller(Ball(position=[250.0, 300.0], velocity=[3.0, 0.0]))
        if not run:
            return _result(ctrl, scores)
        return _result(ctrl, scores, _run(ctrl))

    @staticmethod
    def slingshot(pull_to=(60.0, 460.0), run=True, ticks: int = 240) -> dict:
        """Grab the ball at its start spot, pull back, release.

        Args:
            pull_to: Release point. Pulling down-left launches up-right.
        """
        ctrl, scores = _make_controller(Ball())
        start = ctrl.ball_state()
        ctrl.pointer_down(start["x"], start["y"])
        ctrl.pointer_move(*pull_to)
        launch = ctrl.pointer_up(*pull_to)
        if not run:
            return {**_result(ctrl, scores), "launch": launch}
        data = _run(ctrl, max_ticks=ticks, stop_when_settled=False)
        data["peak_y"] = min(y for _, y in data["trajectory"])
        return {**_result(ctrl, scores, data), "launch": launch}
