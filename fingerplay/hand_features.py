"""Hand observations and the finger signals extracted from them."""

from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from fingerplay.util import (
    FINGERTIP_LANDMARKS,
    N_HAND_LANDMARKS,
    HandLandmark,
)

# -------------------------------------------------------------------------------
# Hand observations
# -------------------------------------------------------------------------------

HANDEDNESS_LABELS = ('Left', 'Right')

# Channels 0-4 belong to the right hand, 5-9 to the left (thumb to pinky)
CHANNEL_OFFSETS = {'Right': 0, 'Left': 5}
N_FINGERS = len(FINGERTIP_LANDMARKS)
N_CHANNELS = N_FINGERS * len(HANDEDNESS_LABELS)

# Tracking noise near the neutral pose stays under this margin
DFLT_EXTENSION_MARGIN = 0.05


class IncompleteSkeletonError(ValueError):
    """Raised when a hand observation does not carry all 21 landmarks."""


class Landmark(NamedTuple):
    """A normalized image point (origin top-left, y increasing downward)."""

    x: float
    y: float


class HandObservation(NamedTuple):
    """
    One detected hand: its handedness label and its 21 landmarks.

    Use `make_hand_observation` to build validated instances.
    """

    handedness: str
    landmarks: Tuple[Landmark, ...]

    @property
    def palm(self) -> Landmark:
        return self.landmarks[HandLandmark.WRIST]

    @property
    def is_right(self) -> bool:
        return self.handedness == 'Right'

    def mirrored(self) -> 'HandObservation':
        """A copy with x coordinates flipped around the vertical center line."""
        return HandObservation(
            self.handedness, tuple(Landmark(1 - lm.x, lm.y) for lm in self.landmarks)
        )


def make_hand_observation(
    handedness: str, landmarks: Iterable[Sequence[float]]
) -> HandObservation:
    """
    Validate and pack a detector output into a `HandObservation`.

    Landmarks can be any (x, y[, ...]) sequences; extra coordinates are dropped.

    >>> obs = make_hand_observation('Right', [(0.5, 0.5)] * 21)
    >>> obs.palm
    Landmark(x=0.5, y=0.5)
    >>> make_hand_observation('Right', [(0.5, 0.5)] * 20)
    Traceback (most recent call last):
      ...
    fingerplay.hand_features.IncompleteSkeletonError: Expected 21 landmarks, got 20
    """
    if handedness not in HANDEDNESS_LABELS:
        raise ValueError(
            f"Unknown handedness: {handedness!r} (should be one of {HANDEDNESS_LABELS})"
        )
    points = []
    for point in landmarks:
        if point is None or len(point) < 2:
            raise IncompleteSkeletonError(f"Malformed landmark: {point!r}")
        points.append(Landmark(float(point[0]), float(point[1])))
    if len(points) != N_HAND_LANDMARKS:
        raise IncompleteSkeletonError(
            f"Expected {N_HAND_LANDMARKS} landmarks, got {len(points)}"
        )
    return HandObservation(handedness, tuple(points))


# -------------------------------------------------------------------------------
# Finger signal extraction
# -------------------------------------------------------------------------------


class FingerSignal(NamedTuple):
    channel: int
    finger_rank: int
    is_extended: bool
    control_value: Optional[float]


def is_finger_extended(tip_y, palm_y, margin=DFLT_EXTENSION_MARGIN):
    """
    A finger is extended when its tip is clearly above the palm.

    >>> is_finger_extended(0.5 - 0.051, 0.5)
    True
    >>> is_finger_extended(0.5 - 0.049, 0.5)
    False
    """
    return tip_y < palm_y - margin


def channel_index(finger_rank: int, handedness: str) -> int:
    """
    The channel fed by a finger.

    >>> channel_index(0, 'Right'), channel_index(4, 'Right')
    (0, 4)
    >>> channel_index(0, 'Left'), channel_index(4, 'Left')
    (5, 9)
    """
    return finger_rank + CHANNEL_OFFSETS[handedness]


def finger_signals(
    observation: HandObservation, *, margin=DFLT_EXTENSION_MARGIN
) -> List[FingerSignal]:
    """
    Extension state and depth of the five fingers of one hand.

    The depth (`control_value`) is how far above the palm the tip is, and is only
    given for extended fingers.
    """
    palm_y = observation.palm.y
    signals = []
    for finger_rank, tip_index in enumerate(FINGERTIP_LANDMARKS):
        tip_y = observation.landmarks[tip_index].y
        channel = channel_index(finger_rank, observation.handedness)
        if is_finger_extended(tip_y, palm_y, margin):
            signals.append(FingerSignal(channel, finger_rank, True, palm_y - tip_y))
        else:
            signals.append(FingerSignal(channel, finger_rank, False, None))
    return signals


def many_finger_signals(
    observations: Iterable[HandObservation], *, margin=DFLT_EXTENSION_MARGIN
) -> List[FingerSignal]:
    """Calls `finger_signals` for each hand, concatenating the results."""
    return [
        signal
        for observation in observations
        for signal in finger_signals(observation, margin=margin)
    ]


# -------------------------------------------------------------------------------
# Fingertip positions
# -------------------------------------------------------------------------------


class FingertipKey(NamedTuple):
    hand_index: int
    tip_landmark: int


def fingertip_positions(
    observations: Sequence[HandObservation], width: float, height: float
) -> Dict[FingertipKey, Tuple[float, float]]:
    """
    Surface coordinates of every fingertip of every observed hand.

    >>> obs = make_hand_observation('Left', [(0.25, 0.5)] * 21)
    >>> positions = fingertip_positions([obs], 100, 200)
    >>> positions[FingertipKey(0, 8)]
    (25.0, 100.0)
    >>> len(positions)
    5
    """
    positions = {}
    for hand_index, observation in enumerate(observations):
        for tip_index in FINGERTIP_LANDMARKS:
            tip = observation.landmarks[tip_index]
            key = FingertipKey(hand_index, tip_index)
            positions[key] = (tip.x * width, tip.y * height)
    return positions
