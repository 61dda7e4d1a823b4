from __future__ import annotations

import logging
import os
import ssl
import subprocess
import urllib.request

from .errors import ModelUnavailableError

logger = logging.getLogger(__name__)


POSE_LANDMARKER_TASK_URL = (
    "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_full/float16/latest/pose_landmarker_full.task"
)
OBJECT_DETECTOR_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/object_detector/efficientdet_lite0/int8/latest/efficientdet_lite0.tflite"
)

DEFAULT_POSE_MODEL_PATH = "models/pose_landmarker_full.task"
DEFAULT_OBJECT_MODEL_PATH = "models/efficientdet_lite0.tflite"


def _remove_partial(model_path: str) -> None:
    try:
        if os.path.exists(model_path):
            os.remove(model_path)
    except OSError:
        pass


def ensure_model_asset(model_path: str, url: str, *, timeout_s: int = 30) -> str:
    """
    Ensure a MediaPipe Tasks model asset exists at `model_path`.

    If missing, downloads it from the official MediaPipe model bucket, first
    with urllib and then with curl.
    """

    if os.path.exists(model_path):
        return model_path

    os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
    logger.info(f"Downloading model asset {url} -> {model_path}")

    try:
        # python.org builds on macOS can miss root certificates; prefer certifi.
        try:
            import certifi  # type: ignore

            ctx = ssl.create_default_context(cafile=certifi.where())
        except ImportError:
            ctx = ssl.create_default_context()

        with urllib.request.urlopen(url, context=ctx, timeout=timeout_s) as r, open(model_path, "wb") as f:
            f.write(r.read())
    except Exception as e:
        _remove_partial(model_path)
        logger.warning(f"urllib download failed ({e}); retrying with curl")

        proc = None
        try:
            proc = subprocess.run(
                ["curl", "-L", "-o", model_path, url],
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
            if proc.returncode == 0 and os.path.exists(model_path) and os.path.getsize(model_path) > 0:
                return model_path
        except OSError:
            proc = None

        _remove_partial(model_path)

        curl_err = ""
        if proc is not None:
            curl_err = f" curl stderr: {proc.stderr.strip()}"

        raise ModelUnavailableError(
            model_path,
            reason=(
                f"Missing model file and auto-download failed. Download manually with: "
                f'mkdir -p "{os.path.dirname(model_path) or "."}" && curl -L -o "{model_path}" "{url}".'
                f"{curl_err}"
            ),
        ) from e

    return model_path


def ensure_pose_landmarker_task(model_path: str = DEFAULT_POSE_MODEL_PATH) -> str:
    return ensure_model_asset(model_path, POSE_LANDMARKER_TASK_URL)


def ensure_object_detector_model(model_path: str = DEFAULT_OBJECT_MODEL_PATH) -> str:
    return ensure_model_asset(model_path, OBJECT_DETECTOR_MODEL_URL)
