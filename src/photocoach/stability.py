"""
Stillness detection over consecutive pose landmark sets.
"""
from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from .config import StabilityConfig
from .types import (
    LEFT_HIP,
    LEFT_SHOULDER,
    NOSE,
    RIGHT_HIP,
    RIGHT_SHOULDER,
    LandmarkSet,
    MovementReport,
    landmark_at,
)
from .utils import distance

logger = logging.getLogger(__name__)

# Joints that move with the whole body rather than with a gesture.
KEYPOINTS = (NOSE, LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP)

MAX_MOVEMENT = math.inf


def movement_score(
    current: LandmarkSet,
    previous: Optional[LandmarkSet],
    keypoints: Sequence[int] = KEYPOINTS,
    min_shared: int = 2,
) -> float:
    """
    Mean per-joint travel between two frames in normalized units.

    Only joints present in both sets count. With fewer than `min_shared`
    shared joints the frame is indeterminate and MAX_MOVEMENT is returned.
    """
    if previous is None:
        return MAX_MOVEMENT
    total = 0.0
    shared = 0
    for idx in keypoints:
        a = landmark_at(current, idx)
        b = landmark_at(previous, idx)
        if a is None or b is None:
            continue
        total += distance((a.x, a.y), (b.x, b.y))
        shared += 1
    if shared < max(1, min_shared):
        return MAX_MOVEMENT
    return total / shared


class StabilityTracker:
    """
    Counts consecutive still frames and reports the still edge once.

    One instance per capture session; it keeps exactly one previous
    landmark set for the frame-to-frame delta.
    """

    def __init__(self, config: Optional[StabilityConfig] = None) -> None:
        self.config = config or StabilityConfig()
        self._previous: Optional[LandmarkSet] = None
        self._still_frames = 0
        self._is_still = False

    @property
    def still_frames(self) -> int:
        return self._still_frames

    @property
    def is_still(self) -> bool:
        return self._is_still

    @property
    def previous_landmarks(self) -> Optional[LandmarkSet]:
        return self._previous

    def update(self, current: LandmarkSet) -> MovementReport:
        current = list(current or [])

        if self._previous is None:
            self._previous = current
            return MovementReport(
                score=MAX_MOVEMENT,
                is_still=self._is_still,
                just_became_still=False,
                still_frames=self._still_frames,
            )

        score = movement_score(
            current,
            self._previous,
            min_shared=self.config.min_shared_keypoints,
        )
        # Stored before deciding so a missed detection never compounds drift.
        self._previous = current

        just_became_still = False
        if score < self.config.still_threshold:
            self._still_frames += 1
            if not self._is_still and self._still_frames > self.config.required_still_frames:
                self._is_still = True
                just_became_still = True
                logger.debug(f"Subject still for {self._still_frames} frames")
        else:
            if self._is_still:
                logger.debug(f"Subject moved (score={score:.4f})")
            self._still_frames = 0
            self._is_still = False

        return MovementReport(
            score=score,
            is_still=self._is_still,
            just_became_still=just_became_still,
            still_frames=self._still_frames,
        )

    def reset_still_counter(self) -> None:
        """Start a new stillness episode; the previous landmark set is kept."""
        self._still_frames = 0
        self._is_still = False

    def reset(self) -> None:
        self._previous = None
        self.reset_still_counter()
