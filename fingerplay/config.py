"""Default settings and the session configuration record."""

from dataclasses import dataclass, fields

# -------------------------------------------------------------------------------
# Surface
# -------------------------------------------------------------------------------

DFLT_SURFACE_WIDTH = 1280
DFLT_SURFACE_HEIGHT = 720

# -------------------------------------------------------------------------------
# Detector
# -------------------------------------------------------------------------------

DFLT_CAMERA_INDEX = 0
DFLT_MAX_HANDS = 2
DFLT_MODEL_COMPLEXITY = 1
DFLT_DETECTION_CONFIDENCE = 0.5
DFLT_TRACKING_CONFIDENCE = 0.5

# -------------------------------------------------------------------------------
# Ball (units are pixels and render ticks)
# -------------------------------------------------------------------------------

DFLT_BALL_RADIUS = 30
DFLT_GRAVITY = 0.5
DFLT_AIR_FRICTION = 0.99
DFLT_BOUNCE_EFFICIENCY = 0.7
DFLT_MAX_SPEED = 20
DFLT_BALL_START = (DFLT_SURFACE_WIDTH / 2, DFLT_SURFACE_HEIGHT / 3)

# -------------------------------------------------------------------------------
# Basket
# -------------------------------------------------------------------------------

DFLT_BASKET_X = 1000
DFLT_BASKET_Y = 150
DFLT_BASKET_WIDTH = 160
DFLT_BASKET_HEIGHT = 100
DFLT_RIM_WIDTH = 110
DFLT_RIM_THICKNESS = 8
DFLT_NET_HEIGHT = 70
DFLT_NET_MESH_SIZE = 10

# -------------------------------------------------------------------------------
# Game rules
# -------------------------------------------------------------------------------

SCORE_COOLDOWN = 1.5  # seconds between two accepted scores
DFLT_PHYSICS_TIMESTEP = 1 / 60  # seconds, for the command line
CONFETTI_BATCH_SIZE = 100


# -------------------------------------------------------------------------------
# Session configuration
# -------------------------------------------------------------------------------


@dataclass(frozen=True)
class SessionConfig:
    """
    The three toggles of a session. They gate outputs, never the algorithms.

    Args:
        sound_enabled: Whether channel controls and sound cues are produced
        show_hand_marks: Whether the hand skeletons are drawn
        mirror_video: Whether landmark x coordinates (and the video) are mirrored

    >>> SessionConfig().validate()
    SessionConfig(sound_enabled=True, show_hand_marks=True, mirror_video=True)
    >>> SessionConfig(sound_enabled='yes').validate()
    Traceback (most recent call last):
      ...
    TypeError: sound_enabled should be a bool, was 'yes'
    """

    sound_enabled: bool = True
    show_hand_marks: bool = True
    mirror_video: bool = True

    def validate(self) -> 'SessionConfig':
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, bool):
                raise TypeError(f"{f.name} should be a bool, was {value!r}")
        return self
