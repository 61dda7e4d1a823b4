from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Sequence


# MediaPipe Pose landmark indices used by the core.
NOSE = 0
LEFT_EYE = 2
RIGHT_EYE = 5
LEFT_SHOULDER = 11
RIGHT_SHOULDER = 12
LEFT_HIP = 23
RIGHT_HIP = 24

POSE_LANDMARK_COUNT = 33


@dataclass(frozen=True)
class Landmark:
    """A single body joint in normalized [0, 1] image coordinates."""

    idx: int
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0


# Indexed by MediaPipe pose index; entries may be None for joints the model
# did not report. An empty sequence means no subject was found.
LandmarkSet = Sequence[Optional[Landmark]]


def landmark_at(landmarks: LandmarkSet, idx: int) -> Optional[Landmark]:
    if landmarks is None or idx < 0 or idx >= len(landmarks):
        return None
    return landmarks[idx]


def has_subject(landmarks: LandmarkSet) -> bool:
    if not landmarks:
        return False
    return any(lm is not None for lm in landmarks)


@dataclass(frozen=True)
class DetectedObject:
    """A scene object reported by the object-detection model."""

    label: str
    score: float = 1.0


@dataclass(frozen=True)
class MovementReport:
    score: float
    is_still: bool
    just_became_still: bool
    still_frames: int = 0


class CaptureMode(str, enum.Enum):
    MANUAL = "manual"
    AUTO = "auto"


class CaptureState(str, enum.Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    COUNTING_DOWN = "counting_down"
    FIRED = "fired"
