"""Pytest configuration for photocoach (src layout)."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from photocoach.scheduler import FrameScheduler  # noqa: E402
from photocoach.types import POSE_LANDMARK_COUNT, Landmark  # noqa: E402


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_pose(
    dx: float = 0.0,
    dy: float = 0.0,
    nose_x: float = 0.5,
    shoulder_width: float = 0.3,
    eye_tilt: float = 0.0,
    missing=(),
):
    """
    A full 33-joint, centered, front-facing pose shifted by (dx, dy).

    Joints listed in `missing` are None.
    """
    base = {}
    for idx in range(POSE_LANDMARK_COUNT):
        base[idx] = (0.5, 0.5 + idx * 0.01)
    base[0] = (nose_x, 0.25)
    base[2] = (nose_x - 0.03, 0.22)
    base[5] = (nose_x + 0.03, 0.22 + eye_tilt)
    base[11] = (0.5 - shoulder_width / 2, 0.4)
    base[12] = (0.5 + shoulder_width / 2, 0.4)
    base[23] = (0.45, 0.7)
    base[24] = (0.55, 0.7)

    pose = []
    for idx in range(POSE_LANDMARK_COUNT):
        if idx in missing:
            pose.append(None)
            continue
        x, y = base[idx]
        pose.append(Landmark(idx=idx, x=x + dx, y=y + dy))
    return pose


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return FrameScheduler(clock=clock)
