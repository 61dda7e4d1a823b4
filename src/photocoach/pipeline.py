"""
Per-frame capture pipeline.

One CoachSession owns one tracker, one scheduler and one state machine for
as long as a capture session lasts. Per frame: poll timers, update the
stillness tracker, feed the still edge to the state machine, push display
state. After a capture the advice engine runs once on the captured frame.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .advice import AdviceEngine
from .capture import CaptureStateMachine
from .config import CoachConfig
from .errors import NotReadyError, handle_error
from .scheduler import FrameScheduler
from .stability import StabilityTracker
from .types import CaptureMode, CaptureState, DetectedObject, LandmarkSet, MovementReport
from .utils import frame_brightness

logger = logging.getLogger(__name__)


class DisplaySink:
    """Receives presentation state. Subclass and override what you need."""

    def show_countdown(self, value: Optional[int]) -> None:
        pass

    def show_stillness(self, is_still: bool) -> None:
        pass

    def show_tip(self, tip: Optional[str]) -> None:
        pass


@dataclass
class FrameResult:
    """Outcome of one pipeline tick."""
    ready: bool
    state: CaptureState
    movement: Optional[MovementReport] = None
    countdown: Optional[int] = None
    captured: bool = False
    tip: Optional[str] = None
    landmarks: LandmarkSet = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None


class CoachSession:
    """
    Capture session wiring.

    Args:
        config: Pipeline configuration
        on_capture: Capture sink (no arguments); reads the frame itself
        display: Display sink for countdown, stillness and tips
        pose_detector: Object with detect(frame) -> LandmarkSet
        object_detector: Object with detect(frame) -> list of DetectedObject
        scheduler: Frame-polled scheduler (one is created when omitted)
        advice: Advice engine (one is created when omitted)
    """

    def __init__(
        self,
        config: Optional[CoachConfig] = None,
        on_capture: Optional[Callable[[], None]] = None,
        display: Optional[DisplaySink] = None,
        pose_detector=None,
        object_detector=None,
        scheduler: Optional[FrameScheduler] = None,
        advice: Optional[AdviceEngine] = None,
    ) -> None:
        self.config = config or CoachConfig()
        self.display = display or DisplaySink()
        self.pose_detector = pose_detector
        self.object_detector = object_detector
        self.scheduler = scheduler or FrameScheduler()
        self.tracker = StabilityTracker(self.config.stability)
        self.advice = advice or AdviceEngine(self.config.advice)
        self.machine = CaptureStateMachine(
            self.scheduler,
            self.config.capture,
            on_capture=self._on_capture,
            on_countdown=self.display.show_countdown,
            on_stillness_reset=self.tracker.reset_still_counter,
        )

        self._capture_sink = on_capture
        self._ready = True
        self._not_ready_reason: Optional[Dict[str, Any]] = None
        self._last_frame = None
        self._last_landmarks: LandmarkSet = []
        self._captured_this_tick = False
        self._last_tip: Optional[str] = None
        self._closed = False

        self.machine.start()

    # --- state ---

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def state(self) -> CaptureState:
        return self.machine.state

    @property
    def last_tip(self) -> Optional[str]:
        return self._last_tip

    def set_capture_callback(self, callback: Optional[Callable[[], None]]) -> None:
        """Replace the capture sink; the latest one is used when a capture fires."""
        self._capture_sink = callback

    def configure(self, mode: Optional[CaptureMode] = None, delay_seconds: Optional[int] = None) -> None:
        self.machine.configure(mode=mode, delay_seconds=delay_seconds)

    def set_session_active(self, active: bool) -> None:
        self.machine.set_session_active(active)

    def trigger(self) -> bool:
        """Manual shutter."""
        if not self._ready:
            raise NotReadyError(reason=(self._not_ready_reason or {}).get("error"))
        return self.machine.on_manual_trigger()

    # --- readiness ---

    def mark_not_ready(self, error: Optional[Dict[str, Any]] = None) -> None:
        if self._ready:
            logger.warning(f"Capture pipeline not ready: {(error or {}).get('error')}")
        self._ready = False
        self._not_ready_reason = error
        self.machine.stop()
        self.tracker.reset()
        self.display.show_stillness(False)

    def mark_ready(self) -> None:
        if self._closed:
            raise NotReadyError(reason="session closed")
        if not self._ready:
            logger.info("Capture pipeline ready")
        self._ready = True
        self._not_ready_reason = None
        self.machine.start()

    # --- per-frame path ---

    def process_frame(self, frame) -> FrameResult:
        """Run the pose model on `frame` and advance the pipeline by one tick."""
        if self.pose_detector is None:
            raise NotReadyError(reason="no pose detector configured")
        if not self._ready:
            return self._not_ready_result()
        try:
            landmarks = self.pose_detector.detect(frame)
        except Exception as e:
            self.mark_not_ready(handle_error(e))
            return self._not_ready_result()
        return self.process_landmarks(landmarks, frame=frame)

    def process_landmarks(self, landmarks: LandmarkSet, frame=None) -> FrameResult:
        """Advance the pipeline with landmarks produced for `frame`."""
        if not self._ready:
            return self._not_ready_result()

        self._last_frame = frame
        self._last_landmarks = list(landmarks or [])
        self._captured_this_tick = False

        self.scheduler.poll()

        movement = self.tracker.update(self._last_landmarks)
        self.machine.on_stability_signal(movement.just_became_still)
        self.display.show_stillness(self.tracker.is_still)

        return FrameResult(
            ready=True,
            state=self.machine.state,
            movement=movement,
            countdown=self.machine.countdown,
            captured=self._captured_this_tick,
            tip=self._last_tip if self._captured_this_tick else None,
            landmarks=self._last_landmarks,
        )

    def _not_ready_result(self) -> FrameResult:
        return FrameResult(
            ready=False,
            state=self.machine.state,
            error=self._not_ready_reason,
        )

    # --- capture / advice ---

    def _on_capture(self) -> None:
        self._captured_this_tick = True
        sink = self._capture_sink
        if sink is not None:
            sink()
        self._last_tip = self.advise(self._last_frame, self._last_landmarks)
        self.display.show_tip(self._last_tip)

    def advise(self, frame, landmarks: Optional[LandmarkSet] = None) -> str:
        """Coaching tip for `frame`. Missing inputs fall back instead of failing."""
        if landmarks is None:
            landmarks = self._detect_landmarks(frame)
        objects = self._detect_objects(frame)
        stride = max(1, self.config.advice.brightness_stride // 4)
        brightness = frame_brightness(frame, pixel_stride=stride) if frame is not None else None
        return self.advice.generate(landmarks, objects, brightness)

    def _detect_landmarks(self, frame) -> LandmarkSet:
        if frame is None or self.pose_detector is None:
            return []
        try:
            return self.pose_detector.detect(frame)
        except Exception as e:
            logger.error(f"Pose detection for advice failed: {e}")
            return []

    def _detect_objects(self, frame) -> List[DetectedObject]:
        if frame is None or self.object_detector is None:
            return []
        try:
            return list(self.object_detector.detect(frame))
        except Exception as e:
            logger.error(f"Object detection failed, advising without objects: {e}")
            return []

    # --- teardown ---

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.machine.stop()
        self.scheduler.cancel_all()
        self.tracker.reset()
        for detector in (self.pose_detector, self.object_detector):
            close = getattr(detector, "close", None)
            if close is not None:
                close()
        logger.info("Capture session closed")

    def __enter__(self) -> "CoachSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
