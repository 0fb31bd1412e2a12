"""Shared builders for the fingerplay tests."""

import random

import pytest

from fingerplay.hand_features import make_hand_observation
from fingerplay.util import FINGERTIP_LANDMARKS, N_HAND_LANDMARKS


def make_hand(handedness='Right', *, palm=(0.5, 0.8), tips=None):
    """
    A hand whose landmarks all sit on the palm, except for the fingertips given in
    `tips` (a {finger_rank: (x, y)} dict).
    """
    points = [palm] * N_HAND_LANDMARKS
    for rank, xy in (tips or {}).items():
        points[FINGERTIP_LANDMARKS[rank]] = xy
    return make_hand_observation(handedness, points)


@pytest.fixture
def rng():
    return random.Random(42)
