from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def distance(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def to_pixel(x_norm: float, y_norm: float, w: int, h: int) -> Tuple[int, int]:
    x_px = clamp_int(int(round(float(x_norm) * w)), 0, max(0, w - 1))
    y_px = clamp_int(int(round(float(y_norm) * h)), 0, max(0, h - 1))
    return (x_px, y_px)


def sample_brightness(rgba, stride: int = 40) -> Optional[float]:
    """
    Mean brightness (0-255) of a flat RGBA byte buffer.

    Every `stride`-th byte starts a sampled pixel (40 bytes = one pixel in
    ten); each sample contributes the mean of its R, G and B bytes.
    Returns None when the buffer holds no complete pixel.
    """
    if rgba is None or stride < 4 or stride % 4:
        return None
    if isinstance(rgba, (bytes, bytearray, memoryview)):
        buf = np.frombuffer(rgba, dtype=np.uint8)
    else:
        buf = np.asarray(rgba, dtype=np.uint8).reshape(-1)
    usable = buf.size - buf.size % 4
    if usable <= 0:
        return None
    pixels = buf[:usable].reshape(-1, 4)[:: stride // 4, :3]
    return float(pixels.astype(np.float64).mean())


def frame_brightness(frame, pixel_stride: int = 10) -> Optional[float]:
    """Same estimate as `sample_brightness` for an H x W x C image (BGR, RGB or RGBA)."""
    if frame is None:
        return None
    arr = np.asarray(frame)
    if arr.size == 0:
        return None
    if arr.ndim == 2:
        samples = arr.reshape(-1)[::pixel_stride]
        return float(samples.astype(np.float64).mean())
    if arr.ndim != 3 or arr.shape[2] < 3:
        return None
    pixels = arr.reshape(-1, arr.shape[2])[::pixel_stride, :3]
    return float(pixels.astype(np.float64).mean())
