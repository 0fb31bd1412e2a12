"""Exponential smoothing of the finger channel controls.

Per-frame detection is noisy: fingers flicker across the extension threshold from
one frame to the next. Each channel's gain and frequency therefore approach their
targets exponentially, with a faster time constant for gain than for frequency,
so the audio fades in and out and glides instead of clicking and stepping.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional

from fingerplay.hand_features import N_CHANNELS, FingerSignal

# -------------------------------------------------------------------------------
# Constants
# -------------------------------------------------------------------------------

GAIN_TAU = 0.05  # seconds
FREQUENCY_TAU = 0.1  # seconds
ACTIVE_GAIN = 0.1
SILENT_GAIN = 0.0

# Thumb to pinky, right hand then left hand
FINGER_NOTES = ('C4', 'D4', 'E4', 'F4', 'G4', 'A4', 'B4', 'C5', 'D5', 'E5')
NOTE_FREQUENCIES = {
    'C4': 261.63,
    'D4': 293.66,
    'E4': 329.63,
    'F4': 349.23,
    'G4': 392.00,
    'A4': 440.00,
    'B4': 493.88,
    'C5': 523.25,
    'D5': 587.33,
    'E5': 659.25,
}


def base_pitch(channel: int) -> float:
    """
    The frequency a channel sounds at when its finger is barely extended.

    >>> base_pitch(0), base_pitch(5), base_pitch(9)
    (261.63, 440.0, 659.25)
    """
    return NOTE_FREQUENCIES[FINGER_NOTES[channel]]


def frequency_target(pitch: float, control_value: float) -> float:
    """
    Map extension depth to a frequency above the base pitch.

    >>> frequency_target(440.0, 0.0)
    440.0
    >>> frequency_target(440.0, 0.5)
    880.0
    """
    return pitch * (1 + 2 * control_value)


# -------------------------------------------------------------------------------
# Exponential target approach
# -------------------------------------------------------------------------------


def approach(value: float, target: float, dt: float, tau: float) -> float:
    """
    Move `value` toward `target` as a first-order low-pass with time constant `tau`.

    >>> round(approach(0.0, 1.0, 0.1, 0.1), 4)  # one time constant: ~63% of the way
    0.6321
    >>> approach(0.3, 1.0, 0.0, 0.1)  # no time elapsed
    0.3
    >>> approach(0.5, 0.5, 10.0, 0.1)
    0.5
    """
    if dt <= 0:
        return value
    return target + (value - target) * math.exp(-dt / tau)


class ExponentialSmoother:
    """
    Holds a value that approaches targets exponentially.

    >>> s = ExponentialSmoother(0.0, tau=0.05)
    >>> s.update(0.1, dt=0.05) < 0.1
    True
    >>> s.value == s.update(0.1, dt=0)
    True
    """

    def __init__(self, value: float = 0.0, tau: float = GAIN_TAU):
        if tau <= 0:
            raise ValueError(f"tau should be positive, was {tau}")
        self.value = value
        self.tau = tau

    def update(self, target: float, dt: float) -> float:
        self.value = approach(self.value, target, dt, self.tau)
        return self.value

    def __repr__(self):
        return f"{type(self).__name__}(value={self.value!r}, tau={self.tau!r})"


# -------------------------------------------------------------------------------
# Channels
# -------------------------------------------------------------------------------


class ChannelControl(NamedTuple):
    """What the audio engine needs to know about one channel."""

    channel: int
    frequency: float
    gain: float
    frequency_tau: float = FREQUENCY_TAU
    gain_tau: float = GAIN_TAU


@dataclass
class Channel:
    index: int
    base_pitch: float
    is_active: bool = False
    control_value: float = 0.0
    frequency_target: Optional[float] = None
    _frequency: ExponentialSmoother = field(init=False, repr=False)
    _gain: ExponentialSmoother = field(init=False, repr=False)

    def __post_init__(self):
        if self.frequency_target is None:
            self.frequency_target = self.base_pitch
        self._frequency = ExponentialSmoother(self.base_pitch, tau=FREQUENCY_TAU)
        self._gain = ExponentialSmoother(SILENT_GAIN, tau=GAIN_TAU)

    @property
    def frequency(self) -> float:
        return self._frequency.value

    @property
    def gain(self) -> float:
        return self._gain.value

    @property
    def gain_target(self) -> float:
        return ACTIVE_GAIN if self.is_active else SILENT_GAIN

    def advance(self, dt: float):
        self._gain.update(self.gain_target, dt)
        # An inactive channel keeps its pitch: only the gain goes to silence
        if self.is_active:
            self._frequency.update(self.frequency_target, dt)

    def reset(self):
        self.is_active = False
        self.control_value = 0.0
        self.frequency_target = self.base_pitch
        self._frequency.value = self.base_pitch
        self._gain.value = SILENT_GAIN

    def control(self) -> ChannelControl:
        return ChannelControl(self.index, self.frequency, self.gain)


class ChannelBank:
    """
    The ten finger channels.

    `apply_signals` sets targets from one detection frame; `advance` moves the
    smoothed values toward those targets.

    >>> bank = ChannelBank()
    >>> bank.apply_signals([FingerSignal(3, 3, True, 0.25)])
    >>> bank.active_channels()
    [3]
    >>> bank.channels[3].frequency_target == base_pitch(3) * 1.5
    True
    """

    def __init__(self, n_channels: int = N_CHANNELS):
        self.channels = [Channel(i, base_pitch(i)) for i in range(n_channels)]

    def __len__(self):
        return len(self.channels)

    def __iter__(self):
        return iter(self.channels)

    def apply_signals(self, signals: Iterable[FingerSignal]):
        """
        Update activity and targets from the signals of one detection frame.

        Every channel starts the frame inactive, so the fingers of a hand that is
        absent from the frame fall silent.
        """
        for channel in self.channels:
            channel.is_active = False
        for signal in signals:
            if not signal.is_extended:
                continue
            channel = self.channels[signal.channel]
            channel.is_active = True
            channel.control_value = signal.control_value
            channel.frequency_target = frequency_target(
                channel.base_pitch, signal.control_value
            )

    def advance(self, dt: float):
        for channel in self.channels:
            channel.advance(dt)

    def reset(self):
        for channel in self.channels:
            channel.reset()

    def active_channels(self) -> List[int]:
        return [channel.index for channel in self.channels if channel.is_active]

    def controls(self) -> List[ChannelControl]:
        return [channel.control() for channel in self.channels]
