"""
End-to-end tests for the per-frame capture pipeline.
"""
import random

import numpy as np
import pytest

from photocoach import advice as adv
from photocoach.advice import AdviceEngine
from photocoach.config import AdviceConfig, CaptureConfig, CoachConfig, StabilityConfig
from photocoach.errors import NotReadyError
from photocoach.pipeline import CoachSession, DisplaySink
from photocoach.types import CaptureMode, CaptureState, DetectedObject

from conftest import make_pose

REQUIRED = 30


class RecordingDisplay(DisplaySink):

    def __init__(self):
        self.countdowns = []
        self.stillness = []
        self.tips = []

    def show_countdown(self, value):
        self.countdowns.append(value)

    def show_stillness(self, is_still):
        self.stillness.append(is_still)

    def show_tip(self, tip):
        self.tips.append(tip)


class FakePoseDetector:

    def __init__(self, landmarks=None, error=None):
        self.landmarks = landmarks if landmarks is not None else make_pose()
        self.error = error
        self.closed = False

    def detect(self, frame):
        if self.error is not None:
            raise self.error
        return self.landmarks

    def close(self):
        self.closed = True


class FakeObjectDetector:

    def __init__(self, labels=(), error=None):
        self.labels = labels
        self.error = error
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [DetectedObject(label=label) for label in self.labels]


def _frame(value=128):
    return np.full((48, 64, 3), value, dtype=np.uint8)


def _session(scheduler, mode=CaptureMode.AUTO, delay=3, active=True, **kwargs):
    captures = []
    display = RecordingDisplay()
    config = CoachConfig(
        stability=StabilityConfig(required_still_frames=REQUIRED),
        capture=CaptureConfig(mode=mode, delay_seconds=delay, session_active=active),
    )
    session = CoachSession(
        config=config,
        on_capture=lambda: captures.append(1),
        display=display,
        scheduler=scheduler,
        advice=AdviceEngine(config.advice, rng=random.Random(1)),
        **kwargs,
    )
    return session, captures, display


def _hold_still(session, frames, frame=None):
    results = []
    for _ in range(frames):
        results.append(session.process_landmarks(make_pose(), frame=frame))
    return results


class TestAutoCaptureEndToEnd:

    def test_still_subject_captured_once_after_countdown(self, scheduler, clock):
        session, captures, display = _session(scheduler, delay=3)

        # First frame has no previous; the edge comes when the counter exceeds REQUIRED.
        results = _hold_still(session, REQUIRED + 2)
        assert results[-1].state == CaptureState.COUNTING_DOWN
        assert display.countdowns == [3]
        assert sum(r.movement.just_became_still for r in results) == 1

        for _ in range(3):
            clock.advance(1.0)
            result = session.process_landmarks(make_pose(), frame=_frame())

        assert captures == [1]
        assert result.captured
        assert display.countdowns == [3, 2, 1, None]
        assert result.countdown is None
        assert result.tip is not None
        assert display.tips == [result.tip]

    def test_keeps_still_after_capture_rearms_only_after_new_streak(self, scheduler, clock):
        session, captures, display = _session(scheduler, delay=1)
        _hold_still(session, REQUIRED + 2)
        clock.advance(1.0)
        session.process_landmarks(make_pose())
        assert captures == [1]

        # Counter was reset on capture; it must climb past REQUIRED again.
        _hold_still(session, REQUIRED - 1)
        assert session.state == CaptureState.TRACKING
        _hold_still(session, 2)
        assert session.state == CaptureState.COUNTING_DOWN

    def test_deactivating_at_two_cancels(self, scheduler, clock):
        session, captures, display = _session(scheduler, delay=3)
        _hold_still(session, REQUIRED + 2)
        clock.advance(1.0)
        result = session.process_landmarks(make_pose())
        assert result.countdown == 2

        session.set_session_active(False)
        assert display.countdowns == [3, 2, None]
        assert session.state == CaptureState.TRACKING

        for _ in range(5):
            clock.advance(1.0)
            session.process_landmarks(make_pose())
        assert captures == []
        assert display.tips == []

    def test_moving_subject_never_arms(self, scheduler):
        session, captures, display = _session(scheduler)
        for i in range(200):
            session.process_landmarks(make_pose(dx=0.02 * (i % 2)))
        assert session.state == CaptureState.TRACKING
        assert display.countdowns == []

    def test_no_subject_degrades_gracefully(self, scheduler):
        session, captures, display = _session(scheduler)
        for _ in range(100):
            result = session.process_landmarks([])
            assert result.ready
            assert result.movement.score == float("inf")
        assert captures == []
        assert not any(display.stillness)

    def test_stillness_pushed_to_display(self, scheduler):
        session, _, display = _session(scheduler, active=False)
        _hold_still(session, REQUIRED + 2)
        assert display.stillness[-1] is True
        assert display.stillness[0] is False


class TestManualCapture:

    def test_zero_delay_trigger_captures_and_advises(self, scheduler):
        session, captures, display = _session(
            scheduler,
            mode=CaptureMode.MANUAL,
            delay=0,
            object_detector=FakeObjectDetector(labels=("person", "bottle")),
        )
        session.process_landmarks(make_pose(), frame=_frame())
        assert session.trigger() is True
        assert captures == [1]
        assert session.last_tip == adv.MSG_DRINK

    def test_advice_uses_frame_brightness(self, scheduler):
        session, _, display = _session(scheduler, mode=CaptureMode.MANUAL, delay=0)
        session.process_landmarks(make_pose(), frame=_frame(10))
        session.trigger()
        assert display.tips == [adv.MSG_TOO_DARK]

    def test_advice_brightness_follows_configured_stride(self, scheduler):
        # Every 10th pixel is dark, the rest are blown out.
        pixels = np.full((48 * 64, 3), 255, dtype=np.uint8)
        pixels[::10] = 10
        frame = pixels.reshape(48, 64, 3)

        for stride, expected in ((40, adv.MSG_TOO_DARK), (4, adv.MSG_TOO_BRIGHT)):
            config = CoachConfig(
                capture=CaptureConfig(mode=CaptureMode.MANUAL, delay_seconds=0),
                advice=AdviceConfig(brightness_stride=stride),
            )
            session = CoachSession(config=config, scheduler=scheduler)
            assert session.advise(frame, make_pose()) == expected

    def test_object_detector_failure_falls_back(self, scheduler):
        session, _, display = _session(
            scheduler,
            mode=CaptureMode.MANUAL,
            delay=0,
            object_detector=FakeObjectDetector(error=RuntimeError("model crashed")),
        )
        session.process_landmarks([], frame=_frame())
        session.trigger()
        assert display.tips == [adv.MSG_NOT_IN_FRAME]

    def test_object_detector_runs_only_at_capture(self, scheduler):
        objects = FakeObjectDetector()
        session, _, _ = _session(scheduler, mode=CaptureMode.MANUAL, delay=0, object_detector=objects)
        _hold_still(session, 50, frame=_frame())
        assert objects.calls == 0
        session.trigger()
        assert objects.calls == 1

    def test_capture_callback_replaced_between_arming_and_firing(self, scheduler, clock):
        session, captures, _ = _session(scheduler, mode=CaptureMode.MANUAL, delay=2)
        session.process_landmarks(make_pose())
        session.trigger()
        latest = []
        session.set_capture_callback(lambda: latest.append("latest"))
        for _ in range(2):
            clock.advance(1.0)
            session.process_landmarks(make_pose())
        assert captures == []
        assert latest == ["latest"]


class TestReadiness:

    def test_pose_model_failure_marks_not_ready(self, scheduler, clock):
        pose = FakePoseDetector(error=RuntimeError("GPU lost"))
        session, captures, _ = _session(scheduler, pose_detector=pose)

        result = session.process_frame(_frame())
        assert not result.ready
        assert result.error["error_code"] == "UNEXPECTED_ERROR"
        assert session.state == CaptureState.IDLE

        pose.error = None
        for _ in range(REQUIRED + 5):
            assert not session.process_frame(_frame()).ready
        assert captures == []

    def test_mark_ready_restores_tracking(self, scheduler, clock):
        pose = FakePoseDetector(error=RuntimeError("GPU lost"))
        session, captures, _ = _session(scheduler, delay=1, pose_detector=pose)
        session.process_frame(_frame())

        pose.error = None
        session.mark_ready()
        assert session.ready
        for _ in range(REQUIRED + 2):
            session.process_frame(_frame())
        clock.advance(1.0)
        session.process_frame(_frame())
        assert captures == [1]

    def test_not_ready_mid_countdown_cancels(self, scheduler, clock):
        session, captures, display = _session(scheduler, delay=3)
        _hold_still(session, REQUIRED + 2)
        session.mark_not_ready({"error": "camera unplugged"})
        assert display.countdowns[-1] is None
        for _ in range(5):
            clock.advance(1.0)
            scheduler.poll()
        assert captures == []

    def test_trigger_while_not_ready_raises(self, scheduler):
        session, _, _ = _session(scheduler, mode=CaptureMode.MANUAL, delay=0)
        session.mark_not_ready({"error": "loading"})
        with pytest.raises(NotReadyError):
            session.trigger()

    def test_process_frame_without_detector(self, scheduler):
        session, _, _ = _session(scheduler)
        with pytest.raises(NotReadyError):
            session.process_frame(_frame())


class TestLifecycle:

    def test_close_cancels_and_closes_detectors(self, scheduler, clock):
        pose = FakePoseDetector()
        session, captures, _ = _session(scheduler, pose_detector=pose)
        for _ in range(REQUIRED + 2):
            session.process_frame(_frame())
        session.close()
        assert pose.closed
        assert scheduler.pending() == 0
        clock.advance(10)
        scheduler.poll()
        assert captures == []

    def test_context_manager(self, scheduler):
        pose = FakePoseDetector()
        with _session(scheduler, pose_detector=pose)[0] as session:
            session.process_frame(_frame())
        assert pose.closed
        with pytest.raises(NotReadyError):
            session.mark_ready()

    def test_sessions_do_not_share_state(self, scheduler):
        a, _, _ = _session(scheduler)
        b, _, _ = _session(scheduler)
        _hold_still(a, 10)
        assert a.tracker.still_frames == 9
        assert b.tracker.still_frames == 0
