"""
Coaching tip for a just-captured frame.

Rules are checked in priority order and the first match wins:
scene objects, lighting, pose framing, missing subject, compliment.
"""
from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional

from .config import AdviceConfig
from .types import (
    LEFT_EYE,
    LEFT_SHOULDER,
    NOSE,
    RIGHT_EYE,
    RIGHT_SHOULDER,
    DetectedObject,
    LandmarkSet,
    has_subject,
    landmark_at,
)

logger = logging.getLogger(__name__)


DRINK_LABELS = frozenset({"bottle", "cup", "wine glass"})
BAG_LABELS = frozenset({"backpack", "handbag", "suitcase"})
DEVICE_LABELS = frozenset({"laptop", "tv", "cell phone", "keyboard", "mouse", "remote"})
SEATING_LABELS = frozenset({"chair", "couch", "bench"})

MSG_DRINK = "Clean up the frame: I see a drink/bottle stealing focus."
MSG_BAG = "There's a bag in the shot. Maybe move it?"
MSG_DEVICE = "Screens are distracting. Can you angle away from the tech?"
MSG_MESSY = "The background is busy. Try moving that furniture out of the shot."
MSG_TOO_DARK = "It's way too dark. Face a window or turn on a light."
MSG_TOO_BRIGHT = "Too bright! You're washed out. Step away from the light source."
MSG_TOO_LEFT = "You're too far left. Center yourself."
MSG_TOO_RIGHT = "You're too far right. Step to the middle."
MSG_TOO_FAR = "You're too far away. Come closer to the camera."
MSG_TOO_CLOSE = "Too close! Back up a bit to show more context."
MSG_HEAD_TILT = "Your head is tilted. Try leveling your chin."
MSG_NOT_IN_FRAME = "I can't see you clearly. Step into the frame!"

COMPLIMENTS = (
    "Lighting is perfect here, don't move!",
    "Okay, that framing is actually really good.",
    "Love this angle for you.",
    "No notes. You look ready.",
    "Clean shot. Let's take another just in case.",
)


class AdviceEngine:
    """Stateless apart from the random source used for compliments."""

    def __init__(self, config: Optional[AdviceConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or AdviceConfig()
        self._rng = rng or random.Random()

    def generate(
        self,
        landmarks: LandmarkSet,
        objects: Iterable[DetectedObject],
        brightness: Optional[float],
    ) -> str:
        tip = (
            self._object_tip(objects)
            or self._lighting_tip(brightness)
            or self._pose_tip(landmarks)
        )
        if tip is None:
            if not has_subject(landmarks):
                tip = MSG_NOT_IN_FRAME
            else:
                tip = self._rng.choice(COMPLIMENTS)
        logger.debug(f"Advice: {tip}")
        return tip

    def _object_tip(self, objects: Iterable[DetectedObject]) -> Optional[str]:
        names = [(o.label or "").strip().lower() for o in (objects or [])]
        clutter: List[str] = [n for n in names if n and n != "person"]
        labels = set(clutter)
        if labels & DRINK_LABELS:
            return MSG_DRINK
        if labels & BAG_LABELS:
            return MSG_BAG
        if labels & DEVICE_LABELS:
            return MSG_DEVICE
        if labels & SEATING_LABELS and len(clutter) > self.config.clutter_object_count:
            return MSG_MESSY
        return None

    def _lighting_tip(self, brightness: Optional[float]) -> Optional[str]:
        if brightness is None:
            return None
        if brightness < self.config.dark_below:
            return MSG_TOO_DARK
        if brightness > self.config.bright_above:
            return MSG_TOO_BRIGHT
        return None

    def _pose_tip(self, landmarks: LandmarkSet) -> Optional[str]:
        if not has_subject(landmarks):
            return None
        cfg = self.config

        nose = landmark_at(landmarks, NOSE)
        if nose is not None:
            if nose.x < cfg.left_of_center:
                return MSG_TOO_LEFT
            if nose.x > cfg.right_of_center:
                return MSG_TOO_RIGHT

        left_shoulder = landmark_at(landmarks, LEFT_SHOULDER)
        right_shoulder = landmark_at(landmarks, RIGHT_SHOULDER)
        if left_shoulder is not None and right_shoulder is not None:
            width = abs(left_shoulder.x - right_shoulder.x)
            if width < cfg.min_shoulder_width:
                return MSG_TOO_FAR
            if width > cfg.max_shoulder_width:
                return MSG_TOO_CLOSE

        left_eye = landmark_at(landmarks, LEFT_EYE)
        right_eye = landmark_at(landmarks, RIGHT_EYE)
        if left_eye is not None and right_eye is not None:
            if abs(left_eye.y - right_eye.y) > cfg.max_eye_tilt:
                return MSG_HEAD_TILT

        return None
