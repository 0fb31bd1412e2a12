"""Display utilities: draws hands, basket, ball, confetti and readouts with OpenCV."""

from functools import lru_cache
from typing import Iterable, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from fingerplay.hand_features import HandObservation
from fingerplay.particles import ConfettiParticle
from fingerplay.physics import Ball, Basket
from fingerplay.smoothing import ChannelControl
from fingerplay.util import FINGER_NAMES, HAND_CONNECTIONS, data_files

# -------------------------------------------------------------------------------
# Types
# -------------------------------------------------------------------------------

Color = Union[Tuple[int, int, int], Tuple[int, int, int, int]]  # BGR or BGRA

RIGHT_HAND_COLORS = ((0, 255, 0), (0, 204, 0))  # connections, landmarks
LEFT_HAND_COLORS = ((0, 0, 255), (0, 0, 204))
BALL_COLOR = (0, 140, 255)
BALL_SEAM_COLOR = (20, 40, 80)
BACKBOARD_COLOR = (255, 255, 255)
RIM_COLOR = (0, 69, 255)
NET_COLOR = (230, 230, 230)
SCORE_COLOR = (255, 255, 255)

DFLT_BALL_TEXTURE_PATH = str(data_files / 'ball.png')


def _pt(x, y):
    return (int(round(x)), int(round(y)))


# -------------------------------------------------------------------------------
# Hands
# -------------------------------------------------------------------------------


def draw_hand_marks(
    img: np.ndarray,
    observations: Iterable[HandObservation],
    *,
    line_width: int = 3,
    landmark_radius: int = 2,
):
    """Draw the skeleton of every hand: green for the right hand, red for the left."""
    h, w = img.shape[:2]
    for obs in observations:
        line_color, point_color = RIGHT_HAND_COLORS if obs.is_right else LEFT_HAND_COLORS
        points = [_pt(lm.x * w, lm.y * h) for lm in obs.landmarks]
        for start, end in HAND_CONNECTIONS:
            cv2.line(img, points[start], points[end], line_color, line_width)
        for point in points:
            cv2.circle(img, point, landmark_radius * 2, point_color, -1)
    return img


# -------------------------------------------------------------------------------
# Game objects
# -------------------------------------------------------------------------------


def draw_basket(img: np.ndarray, basket: Basket, *, in_front: bool = False):
    """
    Draw the backboard, the net and the rim.

    With `in_front=True`, only the front of the rim is drawn, so the ball looks
    like it is inside the basket when drawn before it.
    """
    rim_y = basket.rim_y
    rim_left, rim_right = basket.rim_left, basket.rim_right
    if not in_front:
        cv2.rectangle(
            img,
            _pt(basket.x, basket.y),
            _pt(basket.x + basket.width, basket.y + basket.height),
            BACKBOARD_COLOR,
            3,
        )
        # Net: lines converging toward a narrower bottom, crossed by mesh rows
        bottom_inset = basket.rim_width / 4
        bottom_left, bottom_right = rim_left + bottom_inset, rim_right - bottom_inset
        mesh = max(int(basket.net_mesh_size), 1)
        n_strings = max(int(basket.rim_width // mesh), 1)
        for i in range(n_strings + 1):
            frac = i / n_strings
            top = _pt(rim_left + frac * (rim_right - rim_left), rim_y)
            bottom = _pt(
                bottom_left + frac * (bottom_right - bottom_left), basket.net_bottom
            )
            cv2.line(img, top, bottom, NET_COLOR, 1)
        n_rows = max(int(basket.net_height // mesh), 1)
        for j in range(1, n_rows + 1):
            frac = j / n_rows
            y = rim_y + frac * basket.net_height
            left = rim_left + frac * bottom_inset
            right = rim_right - frac * bottom_inset
            path = np.array([_pt(left, y), _pt(right, y)], dtype=np.int32)
            cv2.polylines(img, [path], False, NET_COLOR, 1)
    cv2.rectangle(
        img,
        _pt(rim_left, rim_y),
        _pt(rim_right, rim_y + basket.rim_thickness),
        RIM_COLOR,
        -1,
    )
    return img


@lru_cache(maxsize=4)
def load_ball_texture(path: str = DFLT_BALL_TEXTURE_PATH) -> Optional[np.ndarray]:
    """The ball image (with its alpha channel, if any), or None if it can't be read."""
    return cv2.imread(path, cv2.IMREAD_UNCHANGED)


def _blit(img: np.ndarray, texture: np.ndarray, center, size: int):
    """Paste `texture`, resized to `size` x `size`, centered on `center`, clipped."""
    sprite = cv2.resize(texture, (size, size))
    h, w = img.shape[:2]
    x0, y0 = int(center[0]) - size // 2, int(center[1]) - size // 2
    x1, y1 = x0 + size, y0 + size
    cx0, cy0, cx1, cy1 = max(x0, 0), max(y0, 0), min(x1, w), min(y1, h)
    if cx0 >= cx1 or cy0 >= cy1:
        return img
    sprite = sprite[cy0 - y0 : cy1 - y0, cx0 - x0 : cx1 - x0]
    region = img[cy0:cy1, cx0:cx1]
    if sprite.ndim == 3 and sprite.shape[2] == 4:
        alpha = sprite[:, :, 3:4].astype(np.float32) / 255.0
        blended = alpha * sprite[:, :, :3] + (1 - alpha) * region
        region[:] = blended.astype(img.dtype)
    else:
        if sprite.ndim == 2:
            sprite = cv2.cvtColor(sprite, cv2.COLOR_GRAY2BGR)
        region[:] = sprite[:, :, :3]
    return img


def draw_ball(img: np.ndarray, ball: Ball, *, texture: Optional[np.ndarray] = None):
    """Draw the ball from its texture, or as a vector basketball if there is none."""
    size = int(2 * ball.radius)
    if texture is not None and size > 0:
        return _blit(img, texture, (ball.x, ball.y), size)

    center, r = _pt(ball.x, ball.y), int(ball.radius)
    cv2.circle(img, center, r, BALL_COLOR, -1)
    cv2.circle(img, center, r, BALL_SEAM_COLOR, 2)
    cv2.line(img, (center[0] - r, center[1]), (center[0] + r, center[1]), BALL_SEAM_COLOR, 2)
    cv2.line(img, (center[0], center[1] - r), (center[0], center[1] + r), BALL_SEAM_COLOR, 2)
    cv2.ellipse(img, center, (r // 2, r), 0, 0, 360, BALL_SEAM_COLOR, 2)
    return img


def draw_confetti(img: np.ndarray, particles: Iterable[ConfettiParticle]):
    """Draw each particle as a rotated, filled square."""
    for p in particles:
        box = cv2.boxPoints(((p.x, p.y), (p.size, p.size), p.rotation))
        cv2.fillPoly(img, [box.astype(np.int32)], p.color)
    return img


def draw_score(img: np.ndarray, score: int, *, x_pos=30, y_pos=60):
    cv2.putText(
        img,
        f"Score: {score}",
        (x_pos, y_pos),
        cv2.FONT_HERSHEY_SIMPLEX,
        1.5,
        SCORE_COLOR,
        3,
    )
    return img


# -------------------------------------------------------------------------------
# Channel readout
# -------------------------------------------------------------------------------


def display_channel_controls(
    img: np.ndarray,
    controls: Sequence[ChannelControl],
    *,
    font=cv2.FONT_HERSHEY_SIMPLEX,
    font_scale: float = 0.5,
    color: Color = (0, 255, 0),
    thickness: int = 1,
    x_pos=10,
    y_pos=100,
    y_increment=20,
    min_gain: float = 1e-3,
    bg_color: Color = (
        150,
        150,
        150,
        128,
    ),  # Light grey, semi-transparent (BGR + alpha)
):
    """
    Display the audible channels (frequency and gain) with a semi-transparent
    background.
    """
    lines = []
    for control in controls:
        if control.gain < min_gain:
            continue
        hand = 'R' if control.channel < 5 else 'L'
        finger = FINGER_NAMES[control.channel % 5]
        lines.append(
            f"{hand} {finger:<6} {control.frequency:7.1f} Hz  gain {control.gain:.3f}"
        )
    if not lines:
        return img

    if len(bg_color) == 4:
        bg_rgb = bg_color[:3]
        alpha = bg_color[3] / 255.0
    else:
        bg_rgb = bg_color
        alpha = 0.5

    overlay = img.copy()
    padding = 5
    for idx, text in enumerate(lines):
        (text_width, text_height), _ = cv2.getTextSize(text, font, font_scale, thickness)
        cv2.rectangle(
            overlay,
            (x_pos - padding, y_pos + idx * y_increment - text_height - padding),
            (x_pos + text_width + padding, y_pos + idx * y_increment + padding),
            bg_rgb,
            -1,
        )
    cv2.addWeighted(overlay, alpha, img, 1 - alpha, 0, img)

    for idx, text in enumerate(lines):
        cv2.putText(
            img, text, (x_pos, y_pos + idx * y_increment), font, font_scale, color, thickness
        )
    return img


# -------------------------------------------------------------------------------
# Whole frame
# -------------------------------------------------------------------------------


def draw_on_screen(
    img: np.ndarray,
    session,
    frame_output,
    *,
    ball_texture: Optional[np.ndarray] = None,
    draw_controls: bool = True,
):
    """
    Draw the whole game over the (already sized) camera image.

    Args:
        img: The camera image, the size of the game surface
        session: The `GameSession` (read only)
        frame_output: The `FrameOutput` of the latest tick
        ball_texture: Image of the ball, or None for the vector placeholder
        draw_controls: Whether to display the channel readout
    """
    if frame_output.draw_hand_marks:
        img = draw_hand_marks(img, frame_output.observations)

    ball = session.ball
    img = draw_basket(img, session.basket)
    img = draw_ball(img, ball, texture=ball_texture)
    if ball.in_basket:
        img = draw_basket(img, session.basket, in_front=True)
    if not session.particles.is_idle:
        img = draw_confetti(img, session.particles)
    img = draw_score(img, frame_output.score)
    if draw_controls and frame_output.controls:
        img = display_channel_controls(img, frame_output.controls)
    return img
