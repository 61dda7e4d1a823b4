"""
Tunable constants for the capture pipeline.

The defaults are the reference values of the auto-capture path. Two earlier
detectors used 45 frames / 0.015 instead; both are plain knobs here.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from .types import CaptureMode


@dataclass
class StabilityConfig:
    """Stillness detection settings."""
    still_threshold: float = 0.008     # Mean key-joint travel per frame (normalized units)
    required_still_frames: int = 30    # ~1 s at 30 fps
    min_shared_keypoints: int = 2      # Below this a frame is indeterminate


@dataclass
class CaptureConfig:
    """Countdown / trigger settings."""
    mode: CaptureMode = CaptureMode.AUTO
    delay_seconds: int = 3             # 0 = capture instantly
    tick_seconds: float = 1.0
    session_active: bool = False       # Auto mode starts disarmed


@dataclass
class AdviceConfig:
    """Thresholds for the coaching tip rules."""
    dark_below: float = 50.0
    bright_above: float = 200.0
    left_of_center: float = 0.4
    right_of_center: float = 0.6
    min_shoulder_width: float = 0.2
    max_shoulder_width: float = 0.8
    max_eye_tilt: float = 0.08
    clutter_object_count: int = 2      # Furniture + more than this many objects = messy
    brightness_stride: int = 40        # Bytes between samples in an RGBA buffer (4 per pixel)


@dataclass
class CoachConfig:
    stability: StabilityConfig = field(default_factory=StabilityConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    advice: AdviceConfig = field(default_factory=AdviceConfig)
