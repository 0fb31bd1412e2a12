"""The game session: one explicit context composing extraction, smoothing, physics
and confetti, advanced by a single tick function.

Scheduling policy: detection results are queued by `submit_detection` as they
arrive and applied at the start of the next `tick`, in arrival order (channel
targets first, then fingertip kicks). Only then is the smoothing advanced by the
elapsed time, and only then does physics step. A finger kick received during a
frame interval therefore always acts before the gravity and collision step of
the same tick.

Timestep policy: by default physics steps exactly once per tick, so the game
runs at the pace of the display, like a browser animation loop. Passing a
`physics_timestep` switches to a fixed-timestep accumulator, which makes the
pace independent of the tick rate.
"""

import random
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, NamedTuple, Optional, Sequence, Tuple

from fingerplay.config import (
    DFLT_SURFACE_HEIGHT,
    DFLT_SURFACE_WIDTH,
    SCORE_COOLDOWN,
    SessionConfig,
)
from fingerplay.hand_features import (
    HandObservation,
    fingertip_positions,
    make_hand_observation,
    many_finger_signals,
)
from fingerplay.particles import ParticleSystem
from fingerplay.physics import Ball, Basket, PhysicsEvents, PhysicsSimulator
from fingerplay.smoothing import ChannelBank, ChannelControl
from fingerplay.util import return_none

MAX_STEPS_PER_TICK = 5
MIN_BOUNCE_CUE_SPEED = 1.0

# -------------------------------------------------------------------------------
# Sound cues
# -------------------------------------------------------------------------------


class SoundCue(NamedTuple):
    """A one-shot sound for the audio engine: a pitch, a length and an envelope."""

    name: str
    frequency: float
    duration: float  # seconds
    attack: float = 0.005
    release: float = 0.1
    volume: float = 0.3


BOUNCE_CUE = SoundCue('bounce', frequency=150.0, duration=0.1, release=0.08)
SCORE_CUE = SoundCue('score', frequency=880.0, duration=0.5, attack=0.01, release=0.4)


# -------------------------------------------------------------------------------
# Frame output
# -------------------------------------------------------------------------------


@dataclass
class FrameOutput:
    """Everything a tick produces for the audio engine and the renderer."""

    controls: List[ChannelControl] = field(default_factory=list)
    cues: List[SoundCue] = field(default_factory=list)
    events: List[PhysicsEvents] = field(default_factory=list)
    observations: Tuple[HandObservation, ...] = ()
    score: int = 0
    kicks: int = 0
    draw_hand_marks: bool = False

    @property
    def scored(self) -> bool:
        return any(e.scored for e in self.events)


# -------------------------------------------------------------------------------
# Session
# -------------------------------------------------------------------------------


class GameSession:
    """
    The one owner of all simulation state.

    Args:
        config: The session toggles (validated here, read-only afterwards)
        width, height: Surface size, in pixels
        ball, basket: Initial ball and basket geometry
        physics_timestep: None to step physics once per tick, or a duration in
            seconds to step it at that fixed rate
        rng: Random source for finger-kick jitter and confetti
        log_events: Called with a dict describing every tick that had physics events
    """

    def __init__(
        self,
        config: SessionConfig = SessionConfig(),
        *,
        width: float = DFLT_SURFACE_WIDTH,
        height: float = DFLT_SURFACE_HEIGHT,
        ball: Optional[Ball] = None,
        basket: Optional[Basket] = None,
        score_cooldown: float = SCORE_COOLDOWN,
        physics_timestep: Optional[float] = None,
        rng: Optional[random.Random] = None,
        log_events: Callable = return_none,
    ):
        self.config = config.validate()
        if physics_timestep is not None and physics_timestep <= 0:
            raise ValueError(f"physics_timestep should be positive, was {physics_timestep}")
        self.width = width
        self.height = height
        self.physics_timestep = physics_timestep
        self.log_events = log_events or return_none

        rng = rng or random.Random()
        self.channels = ChannelBank()
        self.physics = PhysicsSimulator(
            ball,
            basket,
            width=width,
            height=height,
            score_cooldown=score_cooldown,
            rng=rng,
        )
        self.particles = ParticleSystem(height, rng=rng)

        self.running = False
        self._pending: Deque[Tuple[Tuple[HandObservation, ...], float]] = deque()
        self._last_observations: Tuple[HandObservation, ...] = ()
        self._last_tick_time: Optional[float] = None
        self._accumulator = 0.0

    # Read-only views, for rendering

    @property
    def ball(self) -> Ball:
        return self.physics.ball

    @property
    def basket(self) -> Basket:
        return self.physics.basket

    @property
    def score(self) -> int:
        return self.physics.score

    # Lifecycle

    def start(self, now: Optional[float] = None):
        self.channels.reset()
        self.physics.reset()
        self.particles.clear()
        self._pending.clear()
        self._last_observations = ()
        self._last_tick_time = now
        self._accumulator = 0.0
        self.running = True

    def stop(self):
        self.running = False
        self.channels.reset()
        self.physics.history.clear()
        self._pending.clear()
        self._last_observations = ()

    def reset_game(self):
        """Put the ball back, clear the score and the confetti; keep running."""
        self.physics.reset()
        self.particles.clear()

    # Frame processing

    def submit_detection(self, observations: Sequence[HandObservation], now: float):
        """
        Queue one detection result, to be applied at the start of the next tick.

        Every observation is validated first, so a malformed detection is rejected
        here (and nothing of it is queued) rather than failing inside `tick`.

        Raises:
            IncompleteSkeletonError: If a hand does not have its 21 landmarks
            ValueError: If a hand has an unknown handedness
        """
        observations = tuple(
            make_hand_observation(obs.handedness, obs.landmarks) for obs in observations
        )
        if not self.running:
            return
        if self.config.mirror_video:
            observations = tuple(obs.mirrored() for obs in observations)
        self._pending.append((observations, now))

    def tick(self, now: float) -> FrameOutput:
        out = FrameOutput(score=self.score)
        if not self.running:
            return out

        while self._pending:
            observations, _ = self._pending.popleft()
            out.kicks += self._apply_detection(observations)

        dt = 0.0 if self._last_tick_time is None else now - self._last_tick_time
        self._last_tick_time = now
        self.channels.advance(dt)

        for _ in range(self._n_physics_steps(dt)):
            events = self.physics.step(now)
            self.particles.update()
            if events.scored:
                self.particles.spawn_burst(self.basket.net_center_x, self.basket.net_mid_y)
            if events:
                out.events.append(events)
                self.log_events(_events_log_record(events, now, self.score))

        out.score = self.score
        out.observations = self._last_observations
        out.draw_hand_marks = self.config.show_hand_marks
        if self.config.sound_enabled:
            out.controls = self.channels.controls()
            out.cues = list(_cues_for(out.events))
        return out

    def _apply_detection(self, observations: Tuple[HandObservation, ...]) -> int:
        self._last_observations = observations
        self.channels.apply_signals(many_finger_signals(observations))
        positions = fingertip_positions(observations, self.width, self.height)
        return self.physics.apply_fingertips(positions)

    def _n_physics_steps(self, dt: float) -> int:
        if self.physics_timestep is None:
            return 1
        self._accumulator += max(dt, 0.0)
        n_steps = int(self._accumulator // self.physics_timestep)
        self._accumulator -= n_steps * self.physics_timestep
        if n_steps > MAX_STEPS_PER_TICK:
            # Drop the backlog rather than spiral
            n_steps = MAX_STEPS_PER_TICK
            self._accumulator = 0.0
        return n_steps


def _cues_for(events_list: Sequence[PhysicsEvents]):
    for events in events_list:
        if any(b.impact_speed > MIN_BOUNCE_CUE_SPEED for b in events.bounces):
            yield BOUNCE_CUE
        if events.scored:
            yield SCORE_CUE


def _events_log_record(events: PhysicsEvents, now: float, score: int) -> dict:
    return {
        'time': now,
        'bounces': [b.wall.value for b in events.bounces],
        'rim_hits': events.rim_hits,
        'entered_basket': events.entered_basket,
        'left_basket': events.left_basket,
        'scored': events.scored,
        'score_rejected': events.score_rejected,
        'score': score,
    }
