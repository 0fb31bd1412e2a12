"""Tests for fingerplay.smoothing"""

import math
import random

import pytest

from fingerplay.hand_features import FingerSignal
from fingerplay.smoothing import (
    ACTIVE_GAIN,
    FREQUENCY_TAU,
    GAIN_TAU,
    ChannelBank,
    ExponentialSmoother,
    approach,
    base_pitch,
)


def extended(channel, depth):
    return FingerSignal(channel, channel % 5, True, depth)


def test_approach_matches_closed_form():
    value = approach(2.0, 5.0, 0.03, 0.1)
    assert value == pytest.approx(5.0 + (2.0 - 5.0) * math.exp(-0.3))


def test_smoother_converges_to_target():
    s = ExponentialSmoother(0.0, tau=GAIN_TAU)
    for _ in range(100):
        s.update(ACTIVE_GAIN, dt=1 / 60)
    assert s.value == pytest.approx(ACTIVE_GAIN)


def test_smoother_rejects_non_positive_tau():
    with pytest.raises(ValueError):
        ExponentialSmoother(0.0, tau=0)


def test_gain_decays_monotonically_once_inactive():
    bank = ChannelBank()
    bank.apply_signals([extended(2, 0.3)])
    for _ in range(10):
        bank.advance(1 / 30)
    bank.apply_signals([])

    gains = []
    for _ in range(50):
        bank.advance(1 / 30)
        gains.append(bank.channels[2].gain)
    assert all(later <= earlier for earlier, later in zip(gains, gains[1:]))
    assert gains[-1] == pytest.approx(0.0, abs=1e-9)


def test_gain_never_exceeds_active_level_under_random_flips():
    r = random.Random(7)
    bank = ChannelBank()
    for _ in range(500):
        signals = [extended(c, r.uniform(0.06, 0.5)) for c in range(10) if r.random() < 0.5]
        bank.apply_signals(signals)
        bank.advance(r.uniform(0.0, 0.2))
        for channel in bank:
            assert 0.0 <= channel.gain <= ACTIVE_GAIN


def test_frequency_tracks_depth_while_active():
    bank = ChannelBank()
    bank.apply_signals([extended(7, 0.25)])
    for _ in range(200):
        bank.advance(1 / 60)
    assert bank.channels[7].frequency == pytest.approx(base_pitch(7) * 1.5)


def test_frequency_holds_when_inactive():
    bank = ChannelBank()
    bank.apply_signals([extended(0, 0.5)])
    bank.advance(FREQUENCY_TAU)
    held = bank.channels[0].frequency
    assert base_pitch(0) < held < base_pitch(0) * 2

    bank.apply_signals([])
    for _ in range(20):
        bank.advance(1 / 30)
    assert bank.channels[0].frequency == held


def test_absent_fingers_fall_inactive_each_frame():
    bank = ChannelBank()
    bank.apply_signals([extended(1, 0.2), extended(6, 0.2)])
    assert bank.active_channels() == [1, 6]
    bank.apply_signals([extended(6, 0.1)])
    assert bank.active_channels() == [6]
    assert bank.channels[1].control_value == pytest.approx(0.2)  # not updated


def test_reset_silences_and_restores_base_pitch():
    bank = ChannelBank()
    bank.apply_signals([extended(3, 0.4)])
    bank.advance(0.5)
    bank.reset()
    channel = bank.channels[3]
    assert not channel.is_active
    assert channel.gain == 0.0
    assert channel.frequency == base_pitch(3)


def test_controls_carry_time_constants():
    controls = ChannelBank().controls()
    assert len(controls) == 10
    assert controls[4].channel == 4
    assert controls[4].frequency_tau == FREQUENCY_TAU
    assert controls[4].gain_tau == GAIN_TAU
