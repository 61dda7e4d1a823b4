"""
Snapshot framing: center crop to a print format, optional selfie mirror.
"""
from __future__ import annotations

from typing import Dict, Tuple

import cv2

# width:height
FORMATS: Dict[str, Tuple[int, int]] = {
    "vertical": (9, 16),
    "square": (1, 1),
    "album": (4, 3),
}


def crop_size(width: int, height: int, fmt: str) -> Tuple[int, int]:
    """Largest (w, h) with the format's aspect ratio that fits in width x height."""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format '{fmt}'. Available: {list(FORMATS.keys())}")
    rw, rh = FORMATS[fmt]
    # Full height first, then fall back to full width.
    target_h = height
    target_w = height * rw // rh
    if target_w > width:
        target_w = width
        target_h = width * rh // rw
    return max(1, target_w), max(1, target_h)


def take_snapshot(frame_bgr, fmt: str = "vertical", mirrored: bool = True):
    """Return a new image cropped around the frame center to `fmt`."""
    h, w = frame_bgr.shape[:2]
    tw, th = crop_size(w, h, fmt)
    x0 = (w - tw) // 2
    y0 = (h - th) // 2
    out = frame_bgr[y0 : y0 + th, x0 : x0 + tw].copy()
    if mirrored:
        out = cv2.flip(out, 1)
    return out
