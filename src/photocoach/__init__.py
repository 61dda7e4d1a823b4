from .advice import AdviceEngine
from .capture import CaptureSession, CaptureStateMachine
from .config import AdviceConfig, CaptureConfig, CoachConfig, StabilityConfig
from .pipeline import CoachSession, DisplaySink, FrameResult
from .scheduler import FrameScheduler, ScheduledTask
from .stability import StabilityTracker, movement_score
from .types import CaptureMode, CaptureState, DetectedObject, Landmark, MovementReport

__all__ = [
    "AdviceEngine",
    "AdviceConfig",
    "CaptureConfig",
    "CaptureMode",
    "CaptureSession",
    "CaptureState",
    "CaptureStateMachine",
    "CoachConfig",
    "CoachSession",
    "DetectedObject",
    "DisplaySink",
    "FrameResult",
    "FrameScheduler",
    "Landmark",
    "MovementReport",
    "ScheduledTask",
    "StabilityConfig",
    "StabilityTracker",
    "movement_score",
]
