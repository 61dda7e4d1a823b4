from __future__ import annotations

from typing import List, Optional, Tuple

import cv2

from .types import LandmarkSet, landmark_at
from .utils import to_pixel


# Subset of MediaPipe POSE_CONNECTIONS: face outline, torso, arms, legs.
POSE_CONNECTIONS: List[Tuple[int, int]] = [
    # face
    (0, 2),
    (0, 5),
    (2, 7),
    (5, 8),
    # torso
    (11, 12),
    (11, 23),
    (12, 24),
    (23, 24),
    # arms
    (11, 13),
    (13, 15),
    (12, 14),
    (14, 16),
    # legs
    (23, 25),
    (25, 27),
    (24, 26),
    (26, 28),
]

SKELETON_COLOR = (136, 255, 0)   # BGR for #00ff88
STILL_COLOR = (0, 255, 255)


def draw_text(frame, text: str, org: Tuple[int, int], color=(255, 255, 255), scale=0.6, thickness=2):
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    return frame


def draw_skeleton(frame_bgr, landmarks: LandmarkSet, is_still: bool = False):
    if not landmarks:
        return frame_bgr
    h, w = frame_bgr.shape[:2]
    color = STILL_COLOR if is_still else SKELETON_COLOR

    for a, b in POSE_CONNECTIONS:
        la = landmark_at(landmarks, a)
        lb = landmark_at(landmarks, b)
        if la is None or lb is None:
            continue
        cv2.line(frame_bgr, to_pixel(la.x, la.y, w, h), to_pixel(lb.x, lb.y, w, h), color, 2, cv2.LINE_AA)

    for lm in landmarks:
        if lm is None:
            continue
        cv2.circle(frame_bgr, to_pixel(lm.x, lm.y, w, h), 3, color, -1, lineType=cv2.LINE_AA)
    return frame_bgr


def draw_countdown(frame_bgr, value: Optional[int]):
    if value is None:
        return frame_bgr
    h, w = frame_bgr.shape[:2]
    text = str(value)
    scale = max(2.0, h / 160.0)
    thickness = max(3, int(scale * 2))
    (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness)
    org = ((w - tw) // 2, (h + th) // 2)
    return draw_text(frame_bgr, text, org, color=(255, 255, 255), scale=scale, thickness=thickness)


def draw_tip(frame_bgr, tip: Optional[str]):
    if not tip:
        return frame_bgr
    h = frame_bgr.shape[0]
    return draw_text(frame_bgr, tip, (12, h - 20), color=SKELETON_COLOR, scale=0.7, thickness=2)
