"""
Capture arming state machine.

IDLE -> TRACKING -> COUNTING_DOWN -> FIRED -> TRACKING

Auto mode arms on the stillness edge while the session is active; manual
mode arms on a shutter request. Either way the countdown is one cancellable
scheduled task and the capture callback runs once per completed countdown.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config import CaptureConfig
from .scheduler import FrameScheduler, ScheduledTask
from .types import CaptureMode, CaptureState

logger = logging.getLogger(__name__)

CaptureCallback = Callable[[], None]
CountdownListener = Callable[[Optional[int]], None]


@dataclass
class CaptureSession:
    """Mutable arming state owned by one CaptureStateMachine."""
    mode: CaptureMode = CaptureMode.AUTO
    delay_seconds: int = 3
    session_active: bool = False
    armed: bool = False
    countdown_remaining: Optional[int] = None
    timer: Optional[ScheduledTask] = None
    captures: int = 0


class CaptureStateMachine:
    """
    Owns the only path that may invoke the capture trigger.

    Args:
        scheduler: Frame-polled scheduler used for countdown ticks
        config: Initial mode, delay and session gate
        on_capture: Capture sink, called with no arguments
        on_countdown: Receives the displayed countdown value (None = cleared)
        on_stillness_reset: Called when a new stillness episode must begin
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        config: Optional[CaptureConfig] = None,
        on_capture: Optional[CaptureCallback] = None,
        on_countdown: Optional[CountdownListener] = None,
        on_stillness_reset: Optional[Callable[[], None]] = None,
    ) -> None:
        cfg = config or CaptureConfig()
        if cfg.delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {cfg.delay_seconds}")
        self._scheduler = scheduler
        self._tick_seconds = float(cfg.tick_seconds)
        self.session = CaptureSession(
            mode=CaptureMode(cfg.mode),
            delay_seconds=int(cfg.delay_seconds),
            session_active=bool(cfg.session_active),
        )
        self._state = CaptureState.IDLE
        self._capture_callback = on_capture
        self._countdown_listener = on_countdown
        self._stillness_reset = on_stillness_reset

    # --- read-only views ---

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def mode(self) -> CaptureMode:
        return self.session.mode

    @property
    def delay_seconds(self) -> int:
        return self.session.delay_seconds

    @property
    def session_active(self) -> bool:
        return self.session.session_active

    @property
    def countdown(self) -> Optional[int]:
        return self.session.countdown_remaining

    @property
    def counting_down(self) -> bool:
        return self.session.armed

    @property
    def captures(self) -> int:
        return self.session.captures

    # --- wiring ---

    def set_capture_callback(self, callback: Optional[CaptureCallback]) -> None:
        """Replace the capture sink; the one registered at fire time is used."""
        self._capture_callback = callback

    def set_countdown_listener(self, listener: Optional[CountdownListener]) -> None:
        self._countdown_listener = listener

    # --- lifecycle ---

    def start(self) -> None:
        if self._state == CaptureState.IDLE:
            self._state = CaptureState.TRACKING
            logger.info(f"Capture tracking started ({self.session.mode.value}, {self.session.delay_seconds}s)")

    def stop(self) -> None:
        self.cancel()
        if self._state != CaptureState.IDLE:
            self._state = CaptureState.IDLE
            logger.info("Capture tracking stopped")

    def configure(self, mode: Optional[CaptureMode] = None, delay_seconds: Optional[int] = None) -> None:
        if delay_seconds is not None and delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")

        if mode is not None:
            mode = CaptureMode(mode)
            if mode != self.session.mode:
                self.cancel()
                self._reset_stillness()
                self.session.mode = mode
                logger.info(f"Capture mode set to {mode.value}")

        if delay_seconds is not None:
            # A running countdown keeps its length; the new delay applies next time.
            self.session.delay_seconds = int(delay_seconds)

    def set_session_active(self, active: bool) -> None:
        active = bool(active)
        was_active = self.session.session_active
        self.session.session_active = active
        if active == was_active:
            return
        if active:
            # Require a fresh stillness episode after arming is switched on.
            self._reset_stillness()
            logger.info("Auto capture session activated")
        else:
            if self.session.mode == CaptureMode.AUTO:
                self.cancel()
            logger.info("Auto capture session deactivated")

    # --- inputs ---

    def on_stability_signal(self, just_became_still: bool) -> bool:
        """Feed the stillness edge. Returns True if a countdown (or capture) started."""
        if self.session.mode != CaptureMode.AUTO:
            return False
        if not (just_became_still and self.session.session_active):
            return False
        return self._arm()

    def on_manual_trigger(self) -> bool:
        """Shutter request. Returns True if a countdown (or capture) started."""
        if self.session.mode != CaptureMode.MANUAL:
            logger.debug("Manual trigger ignored in auto mode")
            return False
        return self._arm()

    def cancel(self) -> bool:
        """Abort a live countdown. Safe to call when nothing is running."""
        if not self.session.armed and self.session.timer is None:
            return False
        self._clear_countdown()
        if self._state == CaptureState.COUNTING_DOWN:
            self._state = CaptureState.TRACKING
        logger.info("Countdown cancelled")
        return True

    # --- internals ---

    def _arm(self) -> bool:
        if self._state != CaptureState.TRACKING:
            return False
        if self.session.armed:
            return False

        delay = self.session.delay_seconds
        if delay <= 0:
            self._fire()
            return True

        self.session.armed = True
        self.session.countdown_remaining = delay
        self._state = CaptureState.COUNTING_DOWN
        logger.info(f"Countdown armed: {delay}s")
        self._emit(delay)
        self._schedule_tick()
        return True

    def _schedule_tick(self, after: Optional[float] = None) -> None:
        # Each tick is due one interval after the previous tick was due, not after it ran.
        task: Optional[ScheduledTask] = None

        def tick() -> None:
            self._on_tick(task)

        start = self._scheduler.now() if after is None else after
        task = self._scheduler.call_at(start + self._tick_seconds, tick)
        self.session.timer = task

    def _on_tick(self, task: Optional[ScheduledTask]) -> None:
        # Ticks from a superseded or cancelled timer are dropped.
        if task is None or task is not self.session.timer or not self.session.armed:
            return
        self.session.timer = None

        remaining = (self.session.countdown_remaining or 0) - 1
        if remaining > 0:
            self.session.countdown_remaining = remaining
            self._emit(remaining)
            self._schedule_tick(task.due)
            return

        self._clear_countdown()
        self._fire()

    def _fire(self) -> None:
        self._state = CaptureState.FIRED
        self.session.captures += 1
        self._reset_stillness()
        callback = self._capture_callback
        logger.info(f"Capture fired (#{self.session.captures})")
        try:
            if callback is not None:
                callback()
            else:
                logger.warning("Capture fired with no capture callback registered")
        except Exception as e:
            logger.exception(f"Capture callback failed: {e}")
        finally:
            # The callback may have stopped the machine.
            if self._state == CaptureState.FIRED:
                self._state = CaptureState.TRACKING

    def _clear_countdown(self) -> None:
        timer = self.session.timer
        self.session.timer = None
        if timer is not None:
            timer.cancel()
        shown = self.session.countdown_remaining is not None
        self.session.armed = False
        self.session.countdown_remaining = None
        if shown:
            self._emit(None)

    def _reset_stillness(self) -> None:
        if self._stillness_reset is not None:
            self._stillness_reset()

    def _emit(self, value: Optional[int]) -> None:
        listener = self._countdown_listener
        if listener is None:
            return
        try:
            listener(value)
        except Exception as e:
            logger.error(f"Countdown listener failed: {e}")
