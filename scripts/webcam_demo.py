from __future__ import annotations

import argparse
import logging
import os
import platform
import sys
import time
from typing import Optional

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from photocoach.audio import CountdownBeeper  # noqa: E402
from photocoach.config import CaptureConfig, CoachConfig, StabilityConfig  # noqa: E402
from photocoach.detector import PoseLandmarkDetector, SceneObjectDetector  # noqa: E402
from photocoach.drawing import draw_countdown, draw_skeleton, draw_text, draw_tip  # noqa: E402
from photocoach.errors import ModelUnavailableError, FrameSourceError  # noqa: E402
from photocoach.pipeline import CoachSession  # noqa: E402
from photocoach.snapshot import FORMATS, take_snapshot  # noqa: E402
from photocoach.types import CaptureMode  # noqa: E402

logger = logging.getLogger("webcam_demo")


class HudState(CountdownBeeper):
    """Keeps the latest display values for the overlay and beeps if audio is on."""

    def __init__(self, audio: bool, **kwargs) -> None:
        super().__init__(**kwargs)
        self.audio = audio
        self.countdown: Optional[int] = None
        self.is_still = False
        self.tip: Optional[str] = None

    def show_countdown(self, value: Optional[int]) -> None:
        self.countdown = value
        if self.audio:
            super().show_countdown(value)

    def show_stillness(self, is_still: bool) -> None:
        self.is_still = is_still

    def show_tip(self, tip: Optional[str]) -> None:
        self.tip = tip
        if self.audio:
            super().show_tip(tip)


def main() -> int:
    ap = argparse.ArgumentParser(description="Webcam photo coach: hold still and the camera shoots.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=1280, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=720, help="Capture height (best effort)")
    ap.add_argument("--mode", choices=[m.value for m in CaptureMode], default=CaptureMode.AUTO.value)
    ap.add_argument("--delay", type=int, default=3, help="Countdown seconds (0 = instant)")
    ap.add_argument("--still-frames", type=int, default=30, help="Still frames required to arm")
    ap.add_argument("--threshold", type=float, default=0.008, help="Still movement threshold")
    ap.add_argument("--format", choices=list(FORMATS.keys()), default="vertical")
    ap.add_argument("--out-dir", default="captures", help="Where snapshots are written")
    ap.add_argument("--no-objects", action="store_true", help="Skip the object detector")
    ap.add_argument("--no-audio", action="store_true", help="Disable countdown beeps")
    ap.add_argument(
        "--no-mirror",
        action="store_true",
        help="Disable horizontal mirroring (default is mirrored/selfie mode)",
    )
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if platform.system() == "Darwin":
        cap = cv2.VideoCapture(args.camera, cv2.CAP_AVFOUNDATION)
    else:
        cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        raise FrameSourceError(
            f"camera {args.camera}",
            reason="On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal.",
        )

    cap.set(cv2.CAP_PROP_FRAME_WIDTH, args.width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, args.height)
    os.makedirs(args.out_dir, exist_ok=True)

    object_detector = None
    if not args.no_objects:
        try:
            object_detector = SceneObjectDetector()
        except ModelUnavailableError as e:
            logger.warning(f"Object detector unavailable, tips will ignore the scene: {e.message}")

    config = CoachConfig(
        stability=StabilityConfig(still_threshold=args.threshold, required_still_frames=args.still_frames),
        capture=CaptureConfig(mode=CaptureMode(args.mode), delay_seconds=args.delay),
    )
    hud = HudState(audio=not args.no_audio)
    if hud.audio:
        try:
            hud.start()
        except Exception as e:
            logger.warning(f"Audio disabled: {e}")
            hud.audio = False

    current = {"frame": None}

    def save_snapshot() -> None:
        frame = current["frame"]
        if frame is None:
            return
        shot = take_snapshot(frame, args.format, mirrored=False)
        path = os.path.join(args.out_dir, f"photo_{time.strftime('%Y%m%d_%H%M%S')}.jpg")
        if not cv2.imwrite(path, shot):
            logger.error(f"Could not write snapshot: {path}")
            return
        logger.info(f"Saved {path}")

    session = CoachSession(
        config=config,
        on_capture=save_snapshot,
        display=hud,
        pose_detector=PoseLandmarkDetector(),
        object_detector=object_detector,
    )

    with session:
        while True:
            ok, frame = cap.read()
            if not ok:
                logger.error("Camera stopped delivering frames")
                break

            if not args.no_mirror:
                frame = cv2.flip(frame, 1)
            current["frame"] = frame

            result = session.process_frame(frame)
            view = frame.copy()
            if result.ready:
                draw_skeleton(view, result.landmarks, is_still=hud.is_still)
            draw_countdown(view, hud.countdown)
            draw_tip(view, hud.tip)

            mode = session.machine.mode.value
            armed = "on" if session.machine.session_active else "off"
            status = "not ready" if not result.ready else session.state.value
            draw_text(
                view,
                f"{mode} | auto session: {armed} | {status} | a: auto  m: mode  space: shoot  q: quit",
                (12, 28),
            )

            cv2.imshow("photocoach", view)
            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):
                break
            if key == ord("a"):
                session.set_session_active(not session.machine.session_active)
            elif key == ord("m"):
                other = CaptureMode.MANUAL if session.machine.mode == CaptureMode.AUTO else CaptureMode.AUTO
                session.configure(mode=other)
            elif key == ord(" "):
                if result.ready:
                    session.trigger()
                else:
                    session.mark_ready()

    hud.stop()
    cap.release()
    cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
