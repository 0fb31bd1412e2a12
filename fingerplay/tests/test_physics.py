"""Tests for fingerplay.physics"""

import pytest

from fingerplay.hand_features import FingertipKey
from fingerplay.physics import (
    Ball,
    BallState,
    Basket,
    FingertipHistory,
    PhysicsSimulator,
    RimContact,
    Wall,
    resolve_rim_collision,
    resolve_wall_collisions,
)

WIDTH, HEIGHT = 1280, 720


@pytest.fixture
def basket():
    return Basket()


def make_simulator(ball, basket, rng):
    return PhysicsSimulator(ball, basket, width=WIDTH, height=HEIGHT, rng=rng)


# Walls


def test_wall_reflection_clamps_and_scales():
    ball = Ball(x=29.0, y=300.0, vx=-5.0, radius=30)
    bounces = resolve_wall_collisions(ball, WIDTH, HEIGHT)
    assert [b.wall for b in bounces] == [Wall.LEFT]
    assert ball.x == 30
    assert ball.vx == pytest.approx(5 * ball.bounce_efficiency)


def test_wall_reflection_over_one_tick(basket, rng):
    ball = Ball(x=29.0, y=300.0, vx=-5.0, radius=30)
    sim = make_simulator(ball, basket, rng)
    events = sim.step(now=0.0)

    assert [b.wall for b in events.bounces] == [Wall.LEFT]
    assert sim.ball.x == 30
    # The reflected velocity then goes through the tick's air friction
    expected = 5 * ball.bounce_efficiency * ball.air_friction
    assert sim.ball.vx == pytest.approx(expected)


def test_floor_bounce_reports_impact_speed():
    ball = Ball(x=640.0, y=HEIGHT - 20.0, vy=12.0, radius=30)
    bounces = resolve_wall_collisions(ball, WIDTH, HEIGHT)
    assert bounces[0].wall is Wall.BOTTOM
    assert bounces[0].impact_speed == 12.0
    assert ball.y == HEIGHT - 30
    assert ball.vy < 0


def test_ball_parameters_are_validated():
    with pytest.raises(ValueError):
        Ball(air_friction=1.0)
    with pytest.raises(ValueError):
        Ball(bounce_efficiency=0.0)


# Rim and basket


def ball_on_rim(basket, x, vy):
    return Ball(x=x, y=basket.rim_y - 30 + 1, vy=vy, radius=30)


def test_descending_ball_inside_rim_enters_basket(basket):
    ball = ball_on_rim(basket, basket.net_center_x, vy=5.0)
    assert resolve_rim_collision(ball, basket) is RimContact.ENTERED
    assert ball.state is BallState.IN_BASKET
    assert ball.vy == 5.0


def test_ascending_ball_passes_the_rim_band(basket):
    ball = ball_on_rim(basket, basket.net_center_x, vy=-5.0)
    assert resolve_rim_collision(ball, basket) is None
    assert ball.state is BallState.FREE


def test_ball_catching_the_left_edge_bounces_off_it(basket):
    ball = ball_on_rim(basket, basket.rim_left + 2, vy=5.0)
    assert resolve_rim_collision(ball, basket) is RimContact.STRUCK
    assert ball.state is BallState.FREE
    assert ball.vy == pytest.approx(-3.5)
    assert ball.vx == 2.0


def test_ball_catching_the_right_edge_from_outside(basket):
    ball = ball_on_rim(basket, basket.rim_right + 10, vy=5.0)
    assert resolve_rim_collision(ball, basket) is RimContact.STRUCK
    assert ball.vx == 2.0
    ball = ball_on_rim(basket, basket.rim_right - 5, vy=5.0)
    assert resolve_rim_collision(ball, basket) is RimContact.STRUCK
    assert ball.vx == -2.0


def test_ball_away_from_rim_is_untouched(basket):
    ball = ball_on_rim(basket, basket.rim_left - 100, vy=5.0)
    assert resolve_rim_collision(ball, basket) is None


def drop_through_basket(sim, now, max_ticks=300):
    """Put the ball just above the rim, let it fall through, return the exit events."""
    basket = sim.basket
    ball = sim.ball
    ball.x, ball.y = basket.net_center_x, basket.rim_y - ball.radius - 5
    ball.vx, ball.vy = 0.0, 2.0
    ball.state = BallState.FREE
    entered = False
    for _ in range(max_ticks):
        events = sim.step(now)
        entered = entered or events.entered_basket
        if events.left_basket:
            assert entered
            return events
    raise AssertionError("The ball never left the basket")


def test_ball_leaves_basket_only_below_the_net(basket, rng):
    sim = make_simulator(Ball(), basket, rng)
    ball = sim.ball
    ball.x, ball.y = basket.net_center_x, basket.rim_y
    ball.vx, ball.vy = 0.0, 1.0
    ball.state = BallState.IN_BASKET
    while ball.state is BallState.IN_BASKET:
        assert ball.bottom <= basket.net_bottom
        sim.step(now=0.0)
    assert ball.bottom > basket.net_bottom


def test_scores_within_cooldown_are_counted_once(basket, rng):
    sim = make_simulator(Ball(), basket, rng)

    assert drop_through_basket(sim, now=0.0).scored
    second = drop_through_basket(sim, now=0.8)
    assert not second.scored and second.score_rejected
    assert sim.score == 1

    assert drop_through_basket(sim, now=1.6).scored
    assert sim.score == 2
    assert sim.ball.last_score_time == 1.6


# Speed


def test_speed_never_exceeds_max_after_a_tick(basket, rng):
    ball = Ball(x=640.0, y=360.0, radius=30, max_speed=20)
    sim = make_simulator(ball, basket, rng)
    key = FingertipKey(0, 8)
    for i in range(10):
        ball = sim.ball
        # Each kick alone would be far beyond max_speed
        sim.history.record(key, (ball.x - 200, ball.y + (-1) ** i * 150))
        assert sim.apply_fingertips({key: (ball.x, ball.y)}) == 1
        sim.step(now=i / 60)
        assert sim.ball.speed <= sim.ball.max_speed + 1e-9


def test_free_fall_is_capped_at_max_speed(basket, rng):
    ball = Ball(x=100.0, y=40.0, radius=10, gravity=5.0, max_speed=8)
    sim = PhysicsSimulator(ball, basket, width=WIDTH, height=10_000, rng=rng)
    for _ in range(100):
        sim.step(now=0.0)
        assert sim.ball.speed <= 8 + 1e-9


# Fingertips


def test_new_fingertip_does_not_kick_but_is_recorded(basket, rng):
    sim = make_simulator(Ball(x=640.0, y=360.0), basket, rng)
    key = FingertipKey(0, 4)
    assert sim.apply_fingertips({key: (640.0, 360.0)}) == 0
    assert sim.ball.vx == 0.0 and sim.ball.vy == 0.0
    assert sim.history[key] == (640.0, 360.0)


def test_moving_fingertip_kicks_with_jittered_displacement(basket, rng):
    sim = make_simulator(Ball(x=640.0, y=360.0, max_speed=100), basket, rng)
    key = FingertipKey(1, 12)
    sim.history.record(key, (630.0, 360.0))
    assert sim.apply_fingertips({key: (640.0, 360.0)}) == 1
    assert sim.ball.vx == pytest.approx(8.0, abs=1.0)
    assert sim.ball.vy == pytest.approx(0.0, abs=1.0)


def test_slow_or_distant_fingertips_do_not_kick(basket, rng):
    sim = make_simulator(Ball(x=640.0, y=360.0), basket, rng)
    slow, far = FingertipKey(0, 8), FingertipKey(0, 12)
    sim.history.record(slow, (638.0, 358.0))
    sim.history.record(far, (500.0, 100.0))
    assert sim.apply_fingertips({slow: (640.0, 360.0), far: (600.0, 100.0)}) == 0
    assert sim.history[far] == (600.0, 100.0)


def test_fingertip_history_is_bounded_and_clearable():
    history = FingertipHistory()
    for hand in range(3):
        for tip in (4, 8, 12, 16, 20):
            history.record(FingertipKey(hand, tip), (hand, tip))
    assert len(history) == 10
    assert FingertipKey(0, 4) not in history
    assert FingertipKey(2, 20) in history
    history.clear()
    assert len(history) == 0


def test_reset_restores_initial_ball(basket, rng):
    sim = make_simulator(Ball(x=100.0, y=100.0), basket, rng)
    for _ in range(10):
        sim.step(now=0.0)
    sim.history.record(FingertipKey(0, 4), (1.0, 1.0))
    sim.score = 3
    sim.reset()
    assert (sim.ball.x, sim.ball.y, sim.ball.vy) == (100.0, 100.0, 0.0)
    assert sim.score == 0
    assert len(sim.history) == 0
