"""Ball physics: integration, wall and rim collisions, basket scoring, finger hits.

All quantities are in surface pixels and physics ticks: velocities are pixels per
tick and gravity is pixels per tick squared.
"""

import math
import random
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, NamedTuple, Optional, Tuple

from fingerplay.config import (
    DFLT_AIR_FRICTION,
    DFLT_BALL_RADIUS,
    DFLT_BALL_START,
    DFLT_BASKET_HEIGHT,
    DFLT_BASKET_WIDTH,
    DFLT_BASKET_X,
    DFLT_BASKET_Y,
    DFLT_BOUNCE_EFFICIENCY,
    DFLT_GRAVITY,
    DFLT_MAX_SPEED,
    DFLT_NET_HEIGHT,
    DFLT_NET_MESH_SIZE,
    DFLT_RIM_THICKNESS,
    DFLT_RIM_WIDTH,
    DFLT_SURFACE_HEIGHT,
    DFLT_SURFACE_WIDTH,
    SCORE_COOLDOWN,
)
from fingerplay.hand_features import N_CHANNELS, FingertipKey

Position = Tuple[float, float]

RIM_BOUNCE_FACTOR = 0.7
RIM_NUDGE = 2.0
FINGER_REACH = 10  # added to the ball radius
FINGER_MOVE_THRESHOLD = 3  # per axis
FINGER_IMPULSE_FACTOR = 0.8
FINGER_JITTER = 1.0


# -------------------------------------------------------------------------------
# Ball and basket
# -------------------------------------------------------------------------------


class BallState(Enum):
    FREE = 'free'
    IN_BASKET = 'in_basket'


@dataclass
class Ball:
    x: float = DFLT_BALL_START[0]
    y: float = DFLT_BALL_START[1]
    vx: float = 0.0
    vy: float = 0.0
    radius: float = DFLT_BALL_RADIUS
    gravity: float = DFLT_GRAVITY
    air_friction: float = DFLT_AIR_FRICTION
    bounce_efficiency: float = DFLT_BOUNCE_EFFICIENCY
    max_speed: float = DFLT_MAX_SPEED
    state: BallState = BallState.FREE
    last_score_time: Optional[float] = None

    def __post_init__(self):
        if not 0 < self.air_friction < 1:
            raise ValueError(f"air_friction should be in (0, 1), was {self.air_friction}")
        if not 0 < self.bounce_efficiency < 1:
            raise ValueError(
                f"bounce_efficiency should be in (0, 1), was {self.bounce_efficiency}"
            )

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)

    @property
    def in_basket(self) -> bool:
        return self.state is BallState.IN_BASKET

    @property
    def top(self) -> float:
        return self.y - self.radius

    @property
    def bottom(self) -> float:
        return self.y + self.radius

    @property
    def left(self) -> float:
        return self.x - self.radius

    @property
    def right(self) -> float:
        return self.x + self.radius


def limit_speed(ball: Ball) -> bool:
    """
    Uniformly rescale the ball's velocity so its magnitude is at most `max_speed`.

    Returns True if the velocity had to be rescaled.

    >>> ball = Ball(vx=30.0, vy=40.0, max_speed=25)
    >>> limit_speed(ball), ball.vx, ball.vy
    (True, 15.0, 20.0)
    """
    speed = ball.speed
    if speed <= ball.max_speed:
        return False
    scale = ball.max_speed / speed
    ball.vx *= scale
    ball.vy *= scale
    return True


@dataclass(frozen=True)
class Basket:
    """
    Static basket geometry.

    `(x, y)` is the top-left corner of the backboard. The rim hangs, centered, from
    the bottom edge of the backboard and the net hangs from the rim.
    """

    x: float = DFLT_BASKET_X
    y: float = DFLT_BASKET_Y
    width: float = DFLT_BASKET_WIDTH
    height: float = DFLT_BASKET_HEIGHT
    rim_width: float = DFLT_RIM_WIDTH
    rim_thickness: float = DFLT_RIM_THICKNESS
    net_height: float = DFLT_NET_HEIGHT
    net_mesh_size: float = DFLT_NET_MESH_SIZE

    @property
    def rim_left(self) -> float:
        return self.x + (self.width - self.rim_width) / 2

    @property
    def rim_right(self) -> float:
        return self.rim_left + self.rim_width

    @property
    def rim_y(self) -> float:
        return self.y + self.height

    @property
    def net_bottom(self) -> float:
        return self.rim_y + self.net_height

    @property
    def net_center_x(self) -> float:
        return (self.rim_left + self.rim_right) / 2

    @property
    def net_mid_y(self) -> float:
        return self.rim_y + self.net_height / 2


# -------------------------------------------------------------------------------
# Fingertip history
# -------------------------------------------------------------------------------


class FingertipHistory:
    """
    Last known surface position of each fingertip, at most `capacity` of them.

    When a new key arrives at full capacity, the least recently recorded one goes.

    >>> history = FingertipHistory(capacity=2)
    >>> history.record(FingertipKey(0, 4), (1.0, 2.0))
    >>> history.displacement(FingertipKey(0, 4), (4.0, 6.0))
    (3.0, 4.0)
    >>> history.displacement(FingertipKey(1, 4), (4.0, 6.0))  # never seen
    (0.0, 0.0)
    """

    def __init__(self, capacity: int = N_CHANNELS):
        self.capacity = capacity
        self._positions: 'OrderedDict[FingertipKey, Position]' = OrderedDict()

    def __len__(self):
        return len(self._positions)

    def __contains__(self, key):
        return key in self._positions

    def __getitem__(self, key: FingertipKey) -> Position:
        return self._positions[key]

    def get(self, key: FingertipKey, default=None):
        return self._positions.get(key, default)

    def keys(self):
        return self._positions.keys()

    def record(self, key: FingertipKey, position: Position):
        if key in self._positions:
            self._positions.move_to_end(key)
        elif len(self._positions) >= self.capacity:
            self._positions.popitem(last=False)
        self._positions[key] = position

    def displacement(self, key: FingertipKey, position: Position) -> Position:
        previous = self._positions.get(key)
        if previous is None:
            return (0.0, 0.0)
        return (position[0] - previous[0], position[1] - previous[1])

    def clear(self):
        self._positions.clear()


# -------------------------------------------------------------------------------
# Collisions
# -------------------------------------------------------------------------------


class Wall(Enum):
    LEFT = 'left'
    RIGHT = 'right'
    TOP = 'top'
    BOTTOM = 'bottom'


class Bounce(NamedTuple):
    wall: Wall
    impact_speed: float


def resolve_wall_collisions(ball: Ball, width: float, height: float) -> List[Bounce]:
    """
    Clamp the ball inside the surface, reflecting (and damping) the velocity
    component normal to every wall it crossed.

    >>> ball = Ball(x=-5.0, y=100.0, vx=-5.0, radius=10, bounce_efficiency=0.5)
    >>> resolve_wall_collisions(ball, 200, 200)
    [Bounce(wall=<Wall.LEFT: 'left'>, impact_speed=5.0)]
    >>> ball.x, ball.vx
    (10, 2.5)
    """
    bounces = []
    r = ball.radius
    if ball.x - r < 0:
        bounces.append(Bounce(Wall.LEFT, abs(ball.vx)))
        ball.x = r
        ball.vx = -ball.vx * ball.bounce_efficiency
    elif ball.x + r > width:
        bounces.append(Bounce(Wall.RIGHT, abs(ball.vx)))
        ball.x = width - r
        ball.vx = -ball.vx * ball.bounce_efficiency
    if ball.y - r < 0:
        bounces.append(Bounce(Wall.TOP, abs(ball.vy)))
        ball.y = r
        ball.vy = -ball.vy * ball.bounce_efficiency
    elif ball.y + r > height:
        bounces.append(Bounce(Wall.BOTTOM, abs(ball.vy)))
        ball.y = height - r
        ball.vy = -ball.vy * ball.bounce_efficiency
    return bounces


class RimContact(Enum):
    ENTERED = 'entered'
    STRUCK = 'struck'


def resolve_rim_collision(ball: Ball, basket: Basket) -> Optional[RimContact]:
    """
    Check a descending ball against the rim band.

    A ball whose center is well inside the rim span drops into the basket; one
    that catches the rim near an edge bounces back up and is pushed off that edge.
    """
    if ball.vy <= 0:
        return None
    overlaps_band = (
        ball.bottom >= basket.rim_y and ball.top <= basket.rim_y + basket.rim_thickness
    )
    overlaps_rim = ball.right >= basket.rim_left and ball.left <= basket.rim_right
    if not (overlaps_band and overlaps_rim):
        return None

    half_radius = ball.radius / 2
    if basket.rim_left + half_radius < ball.x < basket.rim_right - half_radius:
        ball.state = BallState.IN_BASKET
        return RimContact.ENTERED

    ball.vy = -ball.vy * RIM_BOUNCE_FACTOR
    if abs(ball.x - basket.rim_left) <= abs(ball.x - basket.rim_right):
        edge = basket.rim_left
    else:
        edge = basket.rim_right
    ball.vx += RIM_NUDGE if ball.x >= edge else -RIM_NUDGE
    return RimContact.STRUCK


# -------------------------------------------------------------------------------
# Simulator
# -------------------------------------------------------------------------------


@dataclass
class PhysicsEvents:
    """What happened during one physics tick."""

    bounces: List[Bounce] = field(default_factory=list)
    rim_hits: int = 0
    entered_basket: bool = False
    left_basket: bool = False
    scored: bool = False
    score_rejected: bool = False

    def __bool__(self):
        return bool(
            self.bounces
            or self.rim_hits
            or self.entered_basket
            or self.left_basket
            or self.scored
        )


class PhysicsSimulator:
    """
    Owns the ball, the basket, the score and the fingertip history.

    `step` advances one physics tick; `apply_fingertips` applies the finger hits
    of one detection frame.
    """

    def __init__(
        self,
        ball: Optional[Ball] = None,
        basket: Optional[Basket] = None,
        *,
        width: float = DFLT_SURFACE_WIDTH,
        height: float = DFLT_SURFACE_HEIGHT,
        score_cooldown: float = SCORE_COOLDOWN,
        rng: Optional[random.Random] = None,
    ):
        self._initial_ball = ball or Ball()
        self.ball = _copy_ball(self._initial_ball)
        self.basket = basket or Basket()
        self.width = width
        self.height = height
        self.score_cooldown = score_cooldown
        self.rng = rng or random.Random()
        self.score = 0
        self.history = FingertipHistory()

    def reset(self):
        self.ball = _copy_ball(self._initial_ball)
        self.score = 0
        self.history.clear()

    def step(self, now: float) -> PhysicsEvents:
        """Advance one tick. `now` (seconds) is only used for the score cooldown."""
        ball = self.ball
        events = PhysicsEvents()

        ball.vy += ball.gravity
        ball.x += ball.vx
        ball.y += ball.vy

        events.bounces = resolve_wall_collisions(ball, self.width, self.height)

        if ball.state is BallState.FREE:
            contact = resolve_rim_collision(ball, self.basket)
            if contact is RimContact.ENTERED:
                events.entered_basket = True
            elif contact is RimContact.STRUCK:
                events.rim_hits += 1
        elif ball.bottom > self.basket.net_bottom:
            ball.state = BallState.FREE
            events.left_basket = True
            if self._accept_score(now):
                events.scored = True
            else:
                events.score_rejected = True

        ball.vx *= ball.air_friction
        ball.vy *= ball.air_friction
        limit_speed(ball)
        return events

    def _accept_score(self, now: float) -> bool:
        last = self.ball.last_score_time
        if last is not None and now - last < self.score_cooldown:
            return False
        self.score += 1
        self.ball.last_score_time = now
        return True

    def apply_fingertips(self, positions: Mapping[FingertipKey, Position]) -> int:
        """
        Kick the ball with every fingertip that touches it while moving.

        A fingertip seen for the first time has no displacement, so it cannot kick.
        Every position is recorded for the next frame, touching or not.

        Returns the number of kicks.
        """
        ball = self.ball
        reach = ball.radius + FINGER_REACH
        kicks = 0
        for key, (x, y) in positions.items():
            if math.hypot(x - ball.x, y - ball.y) < reach:
                dx, dy = self.history.displacement(key, (x, y))
                if abs(dx) > FINGER_MOVE_THRESHOLD or abs(dy) > FINGER_MOVE_THRESHOLD:
                    ball.vx += dx * FINGER_IMPULSE_FACTOR + self._jitter()
                    ball.vy += dy * FINGER_IMPULSE_FACTOR + self._jitter()
                    limit_speed(ball)
                    kicks += 1
            self.history.record(key, (x, y))
        return kicks

    def _jitter(self) -> float:
        return self.rng.uniform(-FINGER_JITTER, FINGER_JITTER)


def _copy_ball(ball: Ball) -> Ball:
    return Ball(**{k: getattr(ball, k) for k in ball.__dataclass_fields__})
