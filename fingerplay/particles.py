"""Confetti bursts shown when a basket is scored."""

import colorsys
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from fingerplay.config import CONFETTI_BATCH_SIZE, DFLT_SURFACE_HEIGHT

Color = Tuple[int, int, int]  # BGR

SIZE_RANGE = (5, 10)
VX_RANGE = (-4, 4)
VY_RANGE = (-15, -5)  # upward bias
ROTATION_SPEED_RANGE = (-5, 5)  # degrees per tick
PARTICLE_GRAVITY = 0.1


def hue_to_bgr(hue: float, *, lightness=0.5, saturation=1.0) -> Color:
    """
    Fully saturated color of the given hue (in degrees), as a BGR tuple.

    >>> hue_to_bgr(0)
    (0, 0, 255)
    >>> hue_to_bgr(120)
    (0, 255, 0)
    """
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360, lightness, saturation)
    return (round(b * 255), round(g * 255), round(r * 255))


@dataclass
class ConfettiParticle:
    x: float
    y: float
    vx: float
    vy: float
    size: float
    color: Color
    rotation: float = 0.0
    rotation_speed: float = 0.0
    gravity: float = PARTICLE_GRAVITY

    def update(self):
        self.x += self.vx
        self.y += self.vy
        self.vy += self.gravity
        self.rotation += self.rotation_speed


class ParticleSystem:
    """
    The confetti currently in flight.

    Particles are dropped once they fall below the bottom of the surface; the
    system is idle when none are left.
    """

    def __init__(
        self, height: float = DFLT_SURFACE_HEIGHT, *, rng: Optional[random.Random] = None
    ):
        self.height = height
        self.rng = rng or random.Random()
        self.particles: List[ConfettiParticle] = []

    def __len__(self):
        return len(self.particles)

    def __iter__(self):
        return iter(self.particles)

    @property
    def is_idle(self) -> bool:
        return not self.particles

    def make_particle(self, x: float, y: float) -> ConfettiParticle:
        uniform = self.rng.uniform
        return ConfettiParticle(
            x=x,
            y=y,
            vx=uniform(*VX_RANGE),
            vy=uniform(*VY_RANGE),
            size=uniform(*SIZE_RANGE),
            color=hue_to_bgr(uniform(0, 360)),
            rotation=uniform(0, 360),
            rotation_speed=uniform(*ROTATION_SPEED_RANGE),
        )

    def spawn_burst(self, x: float, y: float, count: int = CONFETTI_BATCH_SIZE):
        self.particles.extend(self.make_particle(x, y) for _ in range(count))

    def update(self):
        if self.is_idle:
            return
        for particle in self.particles:
            particle.update()
        self.particles = [p for p in self.particles if p.y <= self.height]

    def clear(self):
        self.particles.clear()
