"""Tests for fingerplay.particles"""

from fingerplay.particles import (
    SIZE_RANGE,
    VX_RANGE,
    VY_RANGE,
    ConfettiParticle,
    ParticleSystem,
)


def test_burst_spawns_a_batch_of_particles_at_the_given_point(rng):
    system = ParticleSystem(720, rng=rng)
    system.spawn_burst(1080, 285)

    assert len(system) == 100
    assert all((p.x, p.y) == (1080, 285) for p in system)
    assert all(VX_RANGE[0] <= p.vx <= VX_RANGE[1] for p in system)
    assert all(VY_RANGE[0] <= p.vy <= VY_RANGE[1] < 0 for p in system)
    assert all(SIZE_RANGE[0] <= p.size <= SIZE_RANGE[1] for p in system)
    assert len({p.color for p in system}) > 1


def test_particles_fall_off_the_bottom_and_system_goes_idle(rng):
    system = ParticleSystem(720, rng=rng)
    system.spawn_burst(640, 285)
    assert len(system) == 100
    for _ in range(1000):
        system.update()
        assert all(p.y <= 720 for p in system)
        if system.is_idle:
            break
    assert system.is_idle


def test_particle_update_applies_gravity_after_moving():
    p = ConfettiParticle(x=0.0, y=0.0, vx=1.0, vy=-2.0, size=5, color=(0, 0, 0),
                         rotation_speed=3.0)
    p.update()
    assert (p.x, p.y, p.rotation) == (1.0, -2.0, 3.0)
    assert p.vy == -2.0 + p.gravity


def test_idle_update_is_a_no_op(rng):
    system = ParticleSystem(rng=rng)
    system.update()
    assert system.is_idle
    system.spawn_burst(10, 10, count=3)
    system.clear()
    assert len(system) == 0
