"""Tests for fingerplay.hand_features"""

import pytest

from fingerplay.hand_features import (
    FingertipKey,
    IncompleteSkeletonError,
    finger_signals,
    fingertip_positions,
    is_finger_extended,
    make_hand_observation,
    many_finger_signals,
)
from fingerplay.tests.conftest import make_hand


@pytest.mark.parametrize('palm_y', [0.3, 0.5, 0.9])
def test_extension_threshold_boundary(palm_y):
    assert is_finger_extended(palm_y - 0.051, palm_y)
    assert not is_finger_extended(palm_y - 0.049, palm_y)


def test_extended_fingers_give_positive_depth_on_their_channel():
    hand = make_hand('Right', palm=(0.5, 0.8), tips={1: (0.5, 0.5), 4: (0.6, 0.7)})
    signals = finger_signals(hand)

    assert [s.channel for s in signals] == [0, 1, 2, 3, 4]
    extended = {s.channel: s.control_value for s in signals if s.is_extended}
    assert set(extended) == {1, 4}
    assert extended[1] == pytest.approx(0.3)
    assert extended[4] == pytest.approx(0.1)
    assert all(s.control_value is None for s in signals if not s.is_extended)


def test_left_hand_feeds_upper_channels():
    hand = make_hand('Left', tips={0: (0.5, 0.2)})
    signals = finger_signals(hand)
    assert [s.channel for s in signals] == [5, 6, 7, 8, 9]
    assert [s.channel for s in signals if s.is_extended] == [5]


def test_many_finger_signals_concatenates_hands():
    signals = many_finger_signals([make_hand('Right'), make_hand('Left')])
    assert sorted(s.channel for s in signals) == list(range(10))


def test_finger_signals_do_not_depend_on_previous_calls():
    up = make_hand('Right', tips={2: (0.5, 0.1)})
    down = make_hand('Right')
    first = finger_signals(up)
    finger_signals(down)
    assert finger_signals(up) == first


def test_partial_skeleton_is_rejected():
    with pytest.raises(IncompleteSkeletonError):
        make_hand_observation('Right', [(0.5, 0.5)] * 12)
    points = [(0.5, 0.5)] * 21
    points[8] = None
    with pytest.raises(IncompleteSkeletonError):
        make_hand_observation('Right', points)


def test_unknown_handedness_is_rejected():
    with pytest.raises(ValueError):
        make_hand_observation('Both', [(0.5, 0.5)] * 21)


def test_extra_coordinates_are_dropped():
    obs = make_hand_observation('Left', [(0.1, 0.2, -0.03)] * 21)
    assert obs.landmarks[0] == (0.1, 0.2)


def test_mirrored_flips_x_only():
    hand = make_hand('Right', palm=(0.3, 0.8), tips={0: (0.2, 0.4)})
    mirrored = hand.mirrored()
    assert mirrored.handedness == 'Right'
    assert mirrored.palm.x == pytest.approx(0.7)
    assert mirrored.landmarks[4] == (pytest.approx(0.8), 0.4)


def test_fingertip_positions_are_keyed_by_hand_and_tip():
    hands = [make_hand('Right', tips={1: (0.25, 0.5)}), make_hand('Left')]
    positions = fingertip_positions(hands, 1280, 720)

    assert len(positions) == 10
    assert positions[FingertipKey(0, 8)] == (320.0, 360.0)
    assert positions[FingertipKey(1, 20)] == (640.0, pytest.approx(576.0))
