"""Camera capture and hand detection (MediaPipe), producing `HandObservation`s."""

from typing import List

import cv2
import mediapipe as mp

from fingerplay.config import (
    DFLT_CAMERA_INDEX,
    DFLT_DETECTION_CONFIDENCE,
    DFLT_MAX_HANDS,
    DFLT_MODEL_COMPLEXITY,
    DFLT_SURFACE_HEIGHT,
    DFLT_SURFACE_WIDTH,
    DFLT_TRACKING_CONFIDENCE,
)
from fingerplay.hand_features import HandObservation, make_hand_observation

# -------------------------------------------------------------------------------
# Camera
# -------------------------------------------------------------------------------


class CameraUnavailableError(RuntimeError):
    """Raised when the camera cannot be opened."""


class CameraReadError(Exception):
    """Exception raised when camera read fails."""


def open_camera(
    camera_index: int = DFLT_CAMERA_INDEX,
    *,
    width: int = DFLT_SURFACE_WIDTH,
    height: int = DFLT_SURFACE_HEIGHT,
) -> cv2.VideoCapture:
    """
    Open the camera and ask it for the given frame size.

    Raises:
        CameraUnavailableError: If the device cannot be opened
    """
    cap = cv2.VideoCapture(camera_index)
    if not cap.isOpened():
        cap.release()
        raise CameraUnavailableError(
            f"Unable to access camera {camera_index}. "
            "Please make sure it is connected and permissions are granted."
        )
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    return cap


def read_camera(cap: cv2.VideoCapture, *, width=None, height=None):
    """
    Read a frame from the camera, resized to (width, height) if given.

    Raises:
        CameraReadError: If the camera read operation fails
    """
    success, img = cap.read()
    if not success:
        raise CameraReadError("Failed to read from camera")
    if width and height and (img.shape[1], img.shape[0]) != (width, height):
        img = cv2.resize(img, (width, height))
    return img


# -------------------------------------------------------------------------------
# Hand detector
# -------------------------------------------------------------------------------


def hand_observations(hand_detection) -> List[HandObservation]:
    """
    Convert MediaPipe hand detection results into `HandObservation`s.

    Raises:
        IncompleteSkeletonError: If a detected hand does not have its 21 landmarks
    """
    if not hand_detection.multi_hand_landmarks:
        return []
    observations = []
    for hand_landmarks, handedness in zip(
        hand_detection.multi_hand_landmarks, hand_detection.multi_handedness
    ):
        label = handedness.classification[0].label
        points = [(lm.x, lm.y) for lm in hand_landmarks.landmark]
        observations.append(make_hand_observation(label, points))
    return observations


class HandDetector:
    """
    Detects up to `max_hands` hands with MediaPipe Hands.

    Attributes:
        max_hands (int): Maximum number of hands to detect.
        model_complexity (int): Complexity of the landmark model (0 or 1).
        detection_con (float): Minimum detection confidence threshold.
        track_con (float): Minimum tracking confidence threshold.
    """

    def __init__(
        self,
        *,
        max_hands=DFLT_MAX_HANDS,
        model_complexity=DFLT_MODEL_COMPLEXITY,
        detection_con=DFLT_DETECTION_CONFIDENCE,
        track_con=DFLT_TRACKING_CONFIDENCE,
    ):
        self.max_hands = max_hands
        self.model_complexity = model_complexity
        self.detection_con = detection_con
        self.track_con = track_con

        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=self.max_hands,
            model_complexity=self.model_complexity,
            min_detection_confidence=self.detection_con,
            min_tracking_confidence=self.track_con,
        )

    def find_hands(self, img):
        """
        Runs MediaPipe on the provided (BGR) image.

        Returns:
            The raw MediaPipe results
        """
        img_rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
        return self.hands.process(img_rgb)

    def detect(self, img) -> List[HandObservation]:
        """The hands found in the image, as `HandObservation`s."""
        return hand_observations(self.find_hands(img))

    def close(self):
        self.hands.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
