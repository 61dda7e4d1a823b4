from __future__ import annotations

import argparse
import logging
import os
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from photocoach.advice import AdviceEngine  # noqa: E402
from photocoach.config import AdviceConfig  # noqa: E402
from photocoach.detector import PoseLandmarkDetector, SceneObjectDetector  # noqa: E402
from photocoach.drawing import draw_skeleton, draw_tip  # noqa: E402
from photocoach.errors import FrameSourceError  # noqa: E402
from photocoach.utils import frame_brightness  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser(description="Coaching tip for a single photo.")
    ap.add_argument("--image", required=True, help="Path to input image")
    ap.add_argument("--out", help="Optional path for the annotated image")
    ap.add_argument("--no-objects", action="store_true", help="Skip the object detector")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    frame = cv2.imread(args.image)
    if frame is None:
        raise FrameSourceError(args.image, reason="cv2.imread returned nothing")

    with PoseLandmarkDetector(static_image_mode=True) as pose:
        landmarks = pose.detect(frame)

    objects = []
    if not args.no_objects:
        with SceneObjectDetector() as detector:
            objects = detector.detect(frame)

    config = AdviceConfig()
    brightness = frame_brightness(frame, pixel_stride=max(1, config.brightness_stride // 4))
    tip = AdviceEngine(config).generate(landmarks, objects, brightness)

    print(f"landmarks: {sum(1 for lm in landmarks if lm is not None)}")
    print(f"objects: {', '.join(o.label for o in objects) or '-'}")
    print(f"brightness: {brightness:.1f}" if brightness is not None else "brightness: n/a")
    print(f"tip: {tip}")

    if args.out:
        out = draw_tip(draw_skeleton(frame, landmarks), tip)
        if not cv2.imwrite(args.out, out):
            raise FrameSourceError(args.out, reason="could not write output image")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
