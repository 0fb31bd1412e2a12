"""Utility functions for running the fingerplay scripts."""

import time
from typing import Any, Callable, Dict, Optional

import cv2

from fingerplay.config import (
    DFLT_CAMERA_INDEX,
    DFLT_PHYSICS_TIMESTEP,
    DFLT_SURFACE_HEIGHT,
    DFLT_SURFACE_WIDTH,
    SessionConfig,
)
from fingerplay.detection import (
    CameraReadError,
    CameraUnavailableError,
    HandDetector,
    open_camera,
    read_camera,
)
from fingerplay.display import draw_on_screen, load_ball_texture
from fingerplay.session import GameSession
from fingerplay.util import print_json_if_possible, return_none as do_nothing

# -------------------------------------------------------------------------------
# Keyboard handling functions
# -------------------------------------------------------------------------------

ESCAPE_KEY_ASCII = 27
BREAK_KEYS = {ESCAPE_KEY_ASCII, ord('q')}
RESET_KEYS = {ord('r')}


class KeyboardBreakSignal(Exception):
    """Exception raised when a break key is pressed."""


def read_keyboard(wait_time: int = 1) -> int:
    """
    Read keyboard input with the specified wait time.

    Args:
        wait_time: Time to wait for keyboard input in milliseconds

    Returns:
        The key code or 255 if no key was pressed
    """
    return cv2.waitKey(wait_time) & 0xFF


def keyboard_feature_vector(key_code: int) -> Dict[str, Any]:
    """
    Convert a key code into a feature vector with keyboard information.

    Args:
        key_code: The key code from cv2.waitKey

    Returns:
        Dictionary containing keyboard features

    Raises:
        KeyboardBreakSignal: If a key that signals program termination is pressed

    >>> fv = keyboard_feature_vector(ord('r'))
    >>> fv['is_reset'], fv['key_pressed']
    (True, True)
    >>> keyboard_feature_vector(27)
    Traceback (most recent call last):
      ...
    fingerplay.script_utils.KeyboardBreakSignal: Break key pressed: 27
    """
    keyboard_fv = {
        'key_code': key_code,
        'key_pressed': 0 < key_code < 255,
        'is_escape': key_code == ESCAPE_KEY_ASCII,
        'is_reset': key_code in RESET_KEYS,
        'timestamp': time.time(),
    }

    if keyboard_fv['key_code'] in BREAK_KEYS:
        raise KeyboardBreakSignal(f"Break key pressed: {key_code}")

    return keyboard_fv


# -------------------------------------------------------------------------------
# Main run function
# -------------------------------------------------------------------------------


def _channels_log_record(frame_output) -> Dict[str, Any]:
    return {
        str(c.channel): {'frequency': round(c.frequency, 2), 'gain': round(c.gain, 4)}
        for c in frame_output.controls
        if c.gain > 1e-3
    }


def run_fingerplay(
    *,
    config: SessionConfig = SessionConfig(),
    camera_index: int = DFLT_CAMERA_INDEX,
    width: int = DFLT_SURFACE_WIDTH,
    height: int = DFLT_SURFACE_HEIGHT,
    physics_timestep: Optional[float] = None,
    window_name: str = 'fingerplay',
    log_channels: Optional[Callable] = None,
    log_events: Optional[Callable] = None,
    audio_engine_factory: Optional[Callable] = None,
):
    """
    Run the hand-tracking music and basketball application.

    Args:
        config: The three session toggles (sound, hand marks, mirroring)
        camera_index: Index of the camera to capture from
        width, height: Size of the game surface (and requested camera frame size)
        physics_timestep: None to step physics once per frame, or a fixed step in seconds
        window_name: Title for the display window
        log_channels: Function to log the audible channels (or None to disable)
        log_events: Function to log physics events (or None to disable)
        audio_engine_factory: Makes the audio engine (defaults to the pyo engine)
    """
    config = config.validate()
    log_channels = log_channels or do_nothing

    try:
        cap = open_camera(camera_index, width=width, height=height)
    except CameraUnavailableError as e:
        print(f"Error: {e}")
        return

    session = GameSession(
        config,
        width=width,
        height=height,
        physics_timestep=physics_timestep,
        log_events=log_events or do_nothing,
    )
    detector = None
    audio = None
    try:
        detector = HandDetector()
        ball_texture = load_ball_texture()
        if ball_texture is None:
            print("Ball texture not found: drawing a vector ball instead")

        if config.sound_enabled:
            if audio_engine_factory is None:
                from fingerplay.audio import PyoAudioEngine as audio_engine_factory
            audio = audio_engine_factory().start()

        session.start(time.perf_counter())
        print(f"\nSession started: {config}\n")
        while cap.isOpened() and session.running:
            try:
                keyboard_fv = keyboard_feature_vector(read_keyboard())
                if keyboard_fv['is_reset']:
                    session.reset_game()

                img = read_camera(cap, width=width, height=height)
                session.submit_detection(detector.detect(img), time.perf_counter())
                frame_output = session.tick(time.perf_counter())

                if audio is not None:
                    audio.set_controls(frame_output.controls)
                    audio.play_cues(frame_output.cues)
                if frame_output.controls:
                    log_channels(_channels_log_record(frame_output))

                if config.mirror_video:
                    img = cv2.flip(img, 1)
                img = draw_on_screen(img, session, frame_output, ball_texture=ball_texture)
                cv2.imshow(window_name, img)

            except (CameraReadError, KeyboardBreakSignal):
                break
    finally:
        session.stop()
        print(f"\n---> Final score: {session.score}\n")
        if audio is not None:
            audio.stop()
        if detector is not None:
            detector.close()
        cap.release()
        cv2.destroyAllWindows()


def fingerplay_cli(
    # Toggles
    no_sound: bool = False,
    hide_hand_marks: bool = False,
    no_mirror: bool = False,
    # Capture and simulation
    camera_index: int = DFLT_CAMERA_INDEX,
    physics_timestep: float = DFLT_PHYSICS_TIMESTEP,
    # Display options
    window_name: str = "fingerplay",
    # Logging options
    log_channels: bool = False,
    log_events: bool = False,
):
    """
    Play music with your fingers and bounce a basketball with them.

    Args:
        no_sound: Don't produce any audio
        hide_hand_marks: Don't draw the hand skeletons
        no_mirror: Don't mirror the video (and landmark x coordinates)
        camera_index: Index of the camera to capture from
        physics_timestep: Fixed physics step in seconds. Ball speeds are per step,
            so this sets the pace of the game whatever the camera frame rate.
            0 steps once per camera frame (often 30 fps, so a slower game)
        window_name: Title for the display window
        log_channels: Whether to print the audible channels every frame
        log_events: Whether to print physics events (bounces, rim hits, scores)
    """
    config = SessionConfig(
        sound_enabled=not no_sound,
        show_hand_marks=not hide_hand_marks,
        mirror_video=not no_mirror,
    )
    run_fingerplay(
        config=config,
        camera_index=camera_index,
        physics_timestep=physics_timestep or None,
        window_name=window_name,
        log_channels=print_json_if_possible if log_channels else None,
        log_events=print_json_if_possible if log_events else None,
    )
