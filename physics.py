"""
2D Hoop Shot Physics Engine
Point-mass ball: per-tick gravity, horizontal friction, wall/floor bounce,
hoop scoring detection.
"""

import math
import numpy as np
from dataclasses import dataclass, field

# ──────────────────────────────────────────────
# Constants (canvas pixels, per-tick units)
# ──────────────────────────────────────────────
GRAVITY: float = 0.5  # px/tick^2, added to vy every tick
FRICTION: float = 0.98  # horizontal velocity decay per tick
BOUNCE: float = 0.7  # wall/floor restitution
LAUNCH_SCALE: float = 0.3  # drag displacement (px) -> launch velocity (px/tick)
REST_THRESHOLD: float = 1.0  # post-bounce |vy| below this snaps to 0

# Scoring window around the rim
SCORE_TOLERANCE: float = 25.0  # max horizontal distance from hoop center
SCORE_BAND: float = 10.0  # half-height of the vertical band around hoop.y

# Court
CANVAS_WIDTH: float = 500.0
CANVAS_HEIGHT: float = 600.0
BALL_RADIUS: float = 20.0
BALL_START: tuple = (100.0, 400.0)

HOOP_X: float = 350.0
HOOP_Y: float = 150.0
HOOP_WIDTH: float = 80.0
HOOP_HEIGHT: float = 10.0


@dataclass(frozen=True)
class PhysicsConfig:
    """Tunable constants for one simulation. Immutable; use dataclasses.replace."""
    gravity: float = GRAVITY
    friction: float = FRICTION
    bounce: float = BOUNCE
    launch_scale: float = LAUNCH_SCALE
    rest_threshold: float = REST_THRESHOLD
    score_tolerance: float = SCORE_TOLERANCE
    score_band: float = SCORE_BAND

    def __post_init__(self):
        for name in ("gravity", "friction", "bounce", "launch_scale",
                     "rest_threshold", "score_tolerance", "score_band"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")
        if not 0.0 <= self.friction <= 1.0:
            raise ValueError(f"friction must be in [0, 1], got {self.friction}")
        if not 0.0 <= self.bounce <= 1.0:
            raise ValueError(f"bounce must be in [0, 1], got {self.bounce}")
        if self.rest_threshold < 0.0:
            raise ValueError(f"rest_threshold must be >= 0, got {self.rest_threshold}")
        if self.score_tolerance <= 0.0 or self.score_band <= 0.0:
            raise ValueError("score_tolerance and score_band must be positive")


DEFAULT_CONFIG = PhysicsConfig()


@dataclass
class Ball:
    """Basketball as a point mass with a collision radius."""
    position: np.ndarray = field(default_factory=lambda: np.array(BALL_START, dtype=float))
    velocity: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    radius: float = BALL_RADIUS
    dragging: bool = False

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)
        self.velocity = np.array(self.velocity, dtype=float)
        if self.position.shape != (2,) or self.velocity.shape != (2,):
            raise ValueError("position and velocity must be 2D vectors")
        if not (np.all(np.isfinite(self.position)) and np.all(np.isfinite(self.velocity))):
            raise ValueError("ball position and velocity must be finite")
        if not (math.isfinite(self.radius) and self.radius > 0):
            raise ValueError(f"ball radius must be positive, got {self.radius!r}")

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])

    @property
    def vx(self) -> float:
        return float(self.velocity[0])

    @property
    def vy(self) -> float:
        return float(self.velocity[1])

    def contains(self, px: float, py: float) -> bool:
        """Hit test: pointer strictly inside the ball's circle."""
        return float(np.hypot(px - self.position[0], py - self.position[1])) < self.radius


@dataclass(frozen=True)
class Hoop:
    """Rim geometry; fixed for the lifetime of a match."""
    x: float = HOOP_X
    y: float = HOOP_Y
    width: float = HOOP_WIDTH
    height: float = HOOP_HEIGHT

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2


class PhysicsEngine:
    """Per-tick integrator and boundary resolver for a single ball."""

    def __init__(self, width: float = CANVAS_WIDTH, height: float = CANVAS_HEIGHT,
                 config: PhysicsConfig = DEFAULT_CONFIG):
        if not (math.isfinite(width) and math.isfinite(height)) or width < 0 or height < 0:
            raise ValueError(f"canvas size must be finite and non-negative, got {width}x{height}")
        self.width = float(width)
        self.height = float(height)
        self.config = config
        self.events: list = []

    def is_ready(self, radius: float = 0.0) -> bool:
        """A surface smaller than the ball (or zero-sized) has no usable boundaries."""
        return (self.width > 0 and self.height > 0
                and self.width >= 2 * radius and self.height >= 2 * radius)

    # ──────────────────────────────────────────
    # Integration (semi-implicit Euler)
    # ──────────────────────────────────────────
    def integrate(self, ball: Ball) -> tuple:
        """
        Compute the tentative state one tick ahead.

        Velocity is updated before position on the vertical axis, so the
        new y already includes this tick's gravity. Horizontal position uses
        the pre-friction vx.

        Returns:
            (position, velocity) as new arrays; the ball is not modified.
        """
        cfg = self.config
        vy_new = ball.velocity[1] + cfg.gravity
        position = np.array([ball.position[0] + ball.velocity[0],
                             ball.position[1] + vy_new])
        velocity = np.array([ball.velocity[0] * cfg.friction, vy_new])
        return position, velocity

    # ──────────────────────────────────────────
    # Wall / floor collision
    # ──────────────────────────────────────────
    def resolve_collisions(self, radius: float, position: np.ndarray,
                           velocity: np.ndarray) -> None:
        """Clamp and reflect tentative values in place. There is no ceiling."""
        cfg = self.config

        left_hit = position[0] - radius < 0
        right_hit = position[0] + radius > self.width
        if left_hit or right_hit:
            impact_speed = abs(float(velocity[0]))
            velocity[0] = -velocity[0] * cfg.bounce
            position[0] = radius if left_hit else self.width - radius
            self.events.append({"type": "wall", "side": "left" if left_hit else "right",
                                "speed": impact_speed})

        if position[1] + radius > self.height:
            impact_speed = abs(float(velocity[1]))
            velocity[1] = -velocity[1] * cfg.bounce
            position[1] = self.height - radius
            # Settle instead of micro-bouncing forever; a settle is not a bounce
            if abs(velocity[1]) < cfg.rest_threshold:
                velocity[1] = 0.0
            else:
                self.events.append({"type": "floor", "speed": impact_speed})

    # ──────────────────────────────────────────
    # Main update
    # ──────────────────────────────────────────
    def update(self, ball: Ball) -> bool:
        """
        Advance a free-flying ball by one tick and commit the result.

        Returns:
            True when the ball state was committed; False when the tick was
            skipped (dragging, surface not ready, or a non-finite result).
        """
        self.events.clear()
        if ball.dragging or not self.is_ready(ball.radius):
            return False

        # Overflow is caught by the finite check below
        with np.errstate(over="ignore", invalid="ignore"):
            position, velocity = self.integrate(ball)
            self.resolve_collisions(ball.radius, position, velocity)

        if not (np.all(np.isfinite(position)) and np.all(np.isfinite(velocity))):
            self.events.append({"type": "rejected"})
            return False

        ball.position = position
        ball.velocity = velocity
        return True


class ScoreDetector:
    """
    Fires at most once per descent through the scoring window.

    The latch is set when a score fires and cleared once the ball's y leaves
    the vertical band (or by reset() when the ball is launched again), so a
    slow ball that samples inside the window on several consecutive ticks
    still counts once. Balls moving up through the band (pre-tick vy <= 0)
    never score.
    """

    def __init__(self, hoop: Hoop, config: PhysicsConfig = DEFAULT_CONFIG):
        self.hoop = hoop
        self.config = config
        self.latched = False

    def in_vertical_band(self, y: float) -> bool:
        band = self.config.score_band
        return self.hoop.y - band < y < self.hoop.y + band

    def check(self, position, prev_vy: float) -> bool:
        """
        Args:
            position: Resolved tentative (x, y) for this tick.
            prev_vy: Vertical velocity before this tick's integration.

        Returns:
            True exactly when a new score should be reported.
        """
        x, y = float(position[0]), float(position[1])
        if not self.in_vertical_band(y):
            self.latched = False
            return False
        if self.latched:
            return False
        if abs(x - self.hoop.center_x) < self.config.score_tolerance and prev_vy > 0:
            self.latched = True
            return True
        return False

    def reset(self) -> None:
        self.latched = False
