from __future__ import annotations

import logging
import os
import ssl
import subprocess
import urllib.request


logger = logging.getLogger(__name__)

HAND_LANDMARKER_TASK_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/latest/hand_landmarker.task"
)
FACE_DETECTOR_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_detector/blaze_face_short_range/float16/latest/"
    "blaze_face_short_range.tflite"
)


def _remove_partial(model_path: str) -> None:
    try:
        if os.path.exists(model_path):
            os.remove(model_path)
    except OSError:
        logger.warning("Could not remove partial download %s", model_path)


def ensure_model_asset(model_path: str, url: str, *, timeout_s: int = 30) -> str:
    """
    Ensure a MediaPipe Tasks model asset exists at `model_path`.

    If missing, downloads it from `url` (Python first, then `curl`).
    """

    if os.path.exists(model_path):
        return model_path

    os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
    logger.info("Downloading model asset %s -> %s", url, model_path)

    try:
        # python.org builds on macOS can lack root certificates; certifi ships its own bundle.
        try:
            import certifi  # type: ignore

            ctx = ssl.create_default_context(cafile=certifi.where())
        except ImportError:
            ctx = ssl.create_default_context()

        with urllib.request.urlopen(url, context=ctx, timeout=timeout_s) as r, open(model_path, "wb") as f:
            f.write(r.read())
    except Exception as e:
        logger.warning("Python download of %s failed (%s), trying curl", url, e)
        _remove_partial(model_path)

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
            curl_err = f"\n\ncurl stderr:\n{proc.stderr.strip()}\n"

        raise RuntimeError(
            "Missing MediaPipe model file and auto-download failed.\n\n"
            f"Expected model at: {model_path}\n"
            f"URL: {url}\n\n"
            "Download it manually:\n"
            f'  mkdir -p "{os.path.dirname(model_path) or "."}"\n'
            f'  curl -L -o "{model_path}" "{url}"\n'
            f"{curl_err}"
        ) from e

    return model_path


def ensure_hand_landmarker_task(model_path: str, *, url: str = HAND_LANDMARKER_TASK_URL, timeout_s: int = 30) -> str:
    return ensure_model_asset(model_path, url, timeout_s=timeout_s)


def ensure_face_detector_model(model_path: str, *, url: str = FACE_DETECTOR_MODEL_URL, timeout_s: int = 30) -> str:
    return ensure_model_asset(model_path, url, timeout_s=timeout_s)
