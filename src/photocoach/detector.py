from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import cv2

from .errors import ModelUnavailableError
from .model_assets import (
    DEFAULT_OBJECT_MODEL_PATH,
    DEFAULT_POSE_MODEL_PATH,
    ensure_object_detector_model,
    ensure_pose_landmarker_task,
)
from .types import DetectedObject, Landmark, LandmarkSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _SolutionsBackend:
    mp: object
    pose: object


@dataclass(frozen=True)
class _TasksBackend:
    mp: object
    landmarker: object


def _import_tasks_vision():
    # Import locations can differ slightly across builds.
    try:
        from mediapipe.tasks.python import BaseOptions  # type: ignore
        from mediapipe.tasks.python import vision  # type: ignore
    except ImportError:  # pragma: no cover
        from mediapipe.tasks import python as mp_python  # type: ignore

        BaseOptions = mp_python.BaseOptions
        vision = mp_python.vision
    return BaseOptions, vision


def landmarks_from_mediapipe(landmarks: Optional[Iterable]) -> List[Optional[Landmark]]:
    """Convert MediaPipe normalized landmarks into a LandmarkSet (empty when None)."""
    out: List[Optional[Landmark]] = []
    if landmarks is None:
        return out
    for idx, lm in enumerate(landmarks):
        if lm is None:
            out.append(None)
            continue
        out.append(
            Landmark(
                idx=idx,
                x=float(lm.x),
                y=float(lm.y),
                z=float(getattr(lm, "z", 0.0) or 0.0),
                visibility=float(getattr(lm, "visibility", 1.0) or 0.0),
            )
        )
    return out


def _try_create_solutions_backend(
    static_image_mode: bool,
    model_complexity: int,
    min_detection_confidence: float,
    min_tracking_confidence: float,
) -> Optional[_SolutionsBackend]:
    import mediapipe as mp  # type: ignore

    if not hasattr(mp, "solutions"):
        return None
    pose = mp.solutions.pose.Pose(
        static_image_mode=static_image_mode,
        model_complexity=model_complexity,
        enable_segmentation=False,
        smooth_landmarks=True,
        min_detection_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    return _SolutionsBackend(mp=mp, pose=pose)


def _try_create_tasks_backend(
    model_path: str,
    min_detection_confidence: float,
    min_tracking_confidence: float,
) -> _TasksBackend:
    """
    Fallback for MediaPipe distributions that do not include `mp.solutions`.

    Uses the MediaPipe Tasks PoseLandmarker API with a `.task` asset on disk.
    """

    import mediapipe as mp  # type: ignore

    BaseOptions, vision = _import_tasks_vision()
    model_path = ensure_pose_landmarker_task(model_path)

    options = vision.PoseLandmarkerOptions(
        base_options=BaseOptions(model_asset_path=model_path),
        running_mode=vision.RunningMode.VIDEO,
        num_poses=1,
        min_pose_detection_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    landmarker = vision.PoseLandmarker.create_from_options(options)
    return _TasksBackend(mp=mp, landmarker=landmarker)


class PoseLandmarkDetector:
    """
    Single-subject body landmark detector using MediaPipe Pose.

    Input frames are expected as **BGR** images (OpenCV default). Returns a
    LandmarkSet indexed by MediaPipe pose index; empty when nobody is found.
    """

    def __init__(
        self,
        static_image_mode: bool = False,
        model_complexity: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        tasks_model_path: str = DEFAULT_POSE_MODEL_PATH,
    ) -> None:
        try:
            self._solutions = _try_create_solutions_backend(
                static_image_mode=static_image_mode,
                model_complexity=model_complexity,
                min_detection_confidence=min_detection_confidence,
                min_tracking_confidence=min_tracking_confidence,
            )
        except ImportError as e:
            raise ModelUnavailableError("mediapipe pose", reason=f"mediapipe is not installed: {e}") from e

        self._tasks: Optional[_TasksBackend] = None
        self._tasks_timestamp_ms = 0

        if self._solutions is None:
            try:
                self._tasks = _try_create_tasks_backend(
                    model_path=tasks_model_path,
                    min_detection_confidence=min_detection_confidence,
                    min_tracking_confidence=min_tracking_confidence,
                )
            except ModelUnavailableError:
                raise
            except Exception as e:  # pragma: no cover
                raise ModelUnavailableError(tasks_model_path, reason=f"PoseLandmarker init failed: {e}") from e
            logger.info(f"Pose detector using MediaPipe Tasks ({tasks_model_path})")
        else:
            logger.info("Pose detector using MediaPipe solutions")

    def close(self) -> None:
        if self._solutions is not None:
            self._solutions.pose.close()
        if self._tasks is not None:
            try:
                self._tasks.landmarker.close()
            except Exception as e:
                logger.debug(f"PoseLandmarker close failed: {e}")

    def __enter__(self) -> "PoseLandmarkDetector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def detect(self, frame_bgr) -> LandmarkSet:
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        if self._solutions is not None:
            results = self._solutions.pose.process(frame_rgb)
            pose_landmarks = getattr(results, "pose_landmarks", None)
            if not pose_landmarks:
                return []
            return landmarks_from_mediapipe(pose_landmarks.landmark)

        if self._tasks is None:
            return []

        mp = self._tasks.mp
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)

        # Tasks VIDEO mode requires monotonically increasing timestamps.
        self._tasks_timestamp_ms += 33
        result = self._tasks.landmarker.detect_for_video(mp_image, self._tasks_timestamp_ms)

        poses = getattr(result, "pose_landmarks", None) or []
        if not poses:
            return []
        return landmarks_from_mediapipe(poses[0])


def objects_from_detections(detections: Optional[Iterable]) -> List[DetectedObject]:
    """Convert MediaPipe Tasks detections into DetectedObjects (top category each)."""
    out: List[DetectedObject] = []
    for det in detections or []:
        categories = getattr(det, "categories", None) or []
        if not categories:
            continue
        cat0 = categories[0]
        label = getattr(cat0, "category_name", None) or getattr(cat0, "display_name", None)
        if not label:
            continue
        out.append(DetectedObject(label=str(label), score=float(getattr(cat0, "score", 0.0) or 0.0)))
    return out


class SceneObjectDetector:
    """
    COCO object detector (MediaPipe Tasks ObjectDetector, EfficientDet-Lite).

    Meant to run once per capture, not every frame.
    """

    def __init__(
        self,
        model_path: str = DEFAULT_OBJECT_MODEL_PATH,
        score_threshold: float = 0.4,
        max_results: int = 10,
    ) -> None:
        try:
            import mediapipe as mp  # type: ignore

            BaseOptions, vision = _import_tasks_vision()
        except ImportError as e:
            raise ModelUnavailableError("mediapipe object detector", reason=f"mediapipe is not installed: {e}") from e

        model_path = ensure_object_detector_model(model_path)
        options = vision.ObjectDetectorOptions(
            base_options=BaseOptions(model_asset_path=model_path),
            running_mode=vision.RunningMode.IMAGE,
            max_results=max_results,
            score_threshold=score_threshold,
        )
        try:
            self._detector = vision.ObjectDetector.create_from_options(options)
        except Exception as e:  # pragma: no cover
            raise ModelUnavailableError(model_path, reason=f"ObjectDetector init failed: {e}") from e
        self._mp = mp
        logger.info(f"Object detector loaded ({model_path})")

    def close(self) -> None:
        try:
            self._detector.close()
        except Exception as e:
            logger.debug(f"ObjectDetector close failed: {e}")

    def __enter__(self) -> "SceneObjectDetector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def detect(self, frame_bgr) -> List[DetectedObject]:
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=frame_rgb)
        result = self._detector.detect(mp_image)
        return objects_from_detections(getattr(result, "detections", None))
