"""Audio engine for fingerplay: ten sine voices and one-shot cues, with hum and pyo."""

from contextlib import ExitStack
from typing import Dict, Iterable

from hum import Synth
from hum.pyo_util import add_default_dials
from pyo import Adsr, Compress, Sine

from fingerplay.hand_features import N_CHANNELS
from fingerplay.session import SoundCue
from fingerplay.smoothing import SILENT_GAIN, ChannelControl, base_pitch

# Compressor settings, to avoid clipping when many fingers sound at once
COMPRESSOR_THRESHOLD = -24  # dB
COMPRESSOR_RATIO = 12
COMPRESSOR_ATTACK = 0.003  # seconds
COMPRESSOR_RELEASE = 0.25  # seconds
COMPRESSOR_KNEE = 0.5  # 0 (hard) to 1 (soft)


def freq_knob(channel: int) -> str:
    return f'freq{channel}'


def gain_knob(channel: int) -> str:
    return f'gain{channel}'


CHANNEL_KNOBS = tuple(freq_knob(i) for i in range(N_CHANNELS)) + tuple(
    gain_knob(i) for i in range(N_CHANNELS)
)


# -------------------------------------------------------------------------------
# Synthesizer function
# -------------------------------------------------------------------------------


@add_default_dials(' '.join(CHANNEL_KNOBS))
def finger_channels_synth(
    freq0=base_pitch(0),
    freq1=base_pitch(1),
    freq2=base_pitch(2),
    freq3=base_pitch(3),
    freq4=base_pitch(4),
    freq5=base_pitch(5),
    freq6=base_pitch(6),
    freq7=base_pitch(7),
    freq8=base_pitch(8),
    freq9=base_pitch(9),
    gain0=SILENT_GAIN,
    gain1=SILENT_GAIN,
    gain2=SILENT_GAIN,
    gain3=SILENT_GAIN,
    gain4=SILENT_GAIN,
    gain5=SILENT_GAIN,
    gain6=SILENT_GAIN,
    gain7=SILENT_GAIN,
    gain8=SILENT_GAIN,
    gain9=SILENT_GAIN,
):
    """
    One sine voice per finger channel (right thumb to left pinky), summed through
    a compressor.
    """
    freqs = [freq0, freq1, freq2, freq3, freq4, freq5, freq6, freq7, freq8, freq9]
    gains = [gain0, gain1, gain2, gain3, gain4, gain5, gain6, gain7, gain8, gain9]
    voices = [Sine(freq=freq, mul=gain) for freq, gain in zip(freqs, gains)]
    return Compress(
        sum(voices),
        thresh=COMPRESSOR_THRESHOLD,
        ratio=COMPRESSOR_RATIO,
        risetime=COMPRESSOR_ATTACK,
        falltime=COMPRESSOR_RELEASE,
        knee=COMPRESSOR_KNEE,
    )


def channel_knobs(controls: Iterable[ChannelControl]) -> Dict[str, float]:
    """
    The synth knob values for the given channel controls.

    >>> channel_knobs([ChannelControl(7, 523.25, 0.1)])
    {'freq7': 523.25, 'gain7': 0.1}
    """
    knobs = {}
    for control in controls:
        knobs[freq_knob(control.channel)] = float(control.frequency)
        knobs[gain_knob(control.channel)] = float(control.gain)
    return knobs


# -------------------------------------------------------------------------------
# Engine
# -------------------------------------------------------------------------------


class PyoAudioEngine:
    """
    Plays the finger channels and the sound cues of a session.

    Channel frequencies and gains arrive already smoothed (see
    `fingerplay.smoothing`), so they are written to the synth knobs as they are.
    Cues (bounce, score) are short enveloped sines played on top.

    Use as a context manager to start and stop the synth:

        with PyoAudioEngine() as engine:
            engine.set_controls(frame_output.controls)
            engine.play_cues(frame_output.cues)
    """

    def __init__(self, synth_func=finger_channels_synth, *, nchnls: int = 2):
        self.nchnls = nchnls
        self.synth = Synth(synth_func, nchnls=nchnls)
        self._stack = None
        self._cue_voices = []

    def start(self):
        if self._stack is None:
            self._stack = ExitStack()
            self._stack.enter_context(self.synth)
        return self

    def stop(self):
        if self._stack is None:
            return
        self.mute()
        self._cue_voices.clear()
        self._stack.close()
        self._stack = None

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc_info):
        self.stop()

    def set_controls(self, controls: Iterable[ChannelControl]):
        knobs = channel_knobs(controls)
        if knobs:
            self.synth(**knobs)

    def mute(self):
        self.synth(**{gain_knob(i): SILENT_GAIN for i in range(N_CHANNELS)})

    def play_cue(self, cue: SoundCue):
        env = Adsr(
            attack=cue.attack,
            decay=0.0,
            sustain=1.0,
            release=cue.release,
            dur=cue.duration,
            mul=cue.volume,
        )
        voice = Sine(freq=cue.frequency, mul=env).mix(self.nchnls).out()
        env.play()
        # pyo stops a voice once nothing references it
        self._cue_voices = self._cue_voices[-7:] + [(env, voice)]

    def play_cues(self, cues: Iterable[SoundCue]):
        for cue in cues:
            self.play_cue(cue)
