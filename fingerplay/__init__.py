"""

Play music with your fingers, and a game of basketball with your fingertips.

A webcam sees your hands. Each of your ten fingers is a "channel": raise a finger
above your palm and its note sounds, raise it higher and the note goes up (by up
to about an octave). The thumbs to the pinkies of the right hand play
C4 D4 E4 F4 G4, those of the left hand A4 B4 C5 D5 E5.

At the same time, a basketball falls, bounces off the edges of the screen and can
be flicked by your fingertips. Drop it through the hoop to score (and get some
confetti).

Here's a bit about what's in here:

* hand_features.py: Hand observations (21 landmarks and a handedness) and the
    finger signals extracted from them: which fingers are extended, and how far.
* smoothing.py: Exponential smoothing of the channel frequencies and gains, so
    that the sound glides instead of clicking every frame.
* physics.py: The ball: gravity, walls, rim, basket, scoring and fingertip kicks.
* particles.py: Confetti.
* session.py: `GameSession`, which composes all the above in a single `tick`.
* detection.py, audio.py, display.py: MediaPipe, pyo and OpenCV wrappers.
* script_utils.py: The main loop (`run_fingerplay`) and its command line interface.

Try it with:

    python bin/fingerplay_cli.py

"""

from fingerplay.config import SessionConfig
from fingerplay.hand_features import (
    HandObservation,
    IncompleteSkeletonError,
    Landmark,
    finger_signals,
    make_hand_observation,
)
from fingerplay.particles import ParticleSystem
from fingerplay.physics import Ball, Basket, BallState, PhysicsSimulator
from fingerplay.session import FrameOutput, GameSession
from fingerplay.smoothing import ChannelBank, ExponentialSmoother
