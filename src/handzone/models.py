from __future__ import annotations

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

import cv2

from .config import FaceModelConfig, HandModelConfig, HandZoneConfig
from .errors import ModelLoadError
from .model_assets import ensure_face_detector_model, ensure_hand_landmarker_task
from .types import BoundingRegion, HandLandmarks


logger = logging.getLogger(__name__)

# Tasks VIDEO mode requires monotonically increasing timestamps.
_FRAME_STEP_MS = 33  # ~30fps


class FaceModel(ABC):
    """
    Face detector handle.

    Implementations take a BGR image (H,W,3 uint8) and return face boxes in pixel space,
    best first. An empty list means no face was found.
    """

    @abstractmethod
    def estimate_faces(self, frame_bgr) -> List[BoundingRegion]: ...

    @abstractmethod
    def close(self) -> None: ...


class HandModel(ABC):
    """
    Hand landmark detector handle.

    Implementations take a BGR image (H,W,3 uint8) and return 21-point hands in pixel space.
    """

    @abstractmethod
    def estimate_hands(self, frame_bgr) -> List[HandLandmarks]: ...

    @abstractmethod
    def close(self) -> None: ...


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


@dataclass(frozen=True)
class _SolutionsBackend:
    mp: object
    graph: object


@dataclass(frozen=True)
class _TasksBackend:
    mp: object
    task: object


def _to_mp_image(mp, frame_rgb):
    if not hasattr(mp, "Image") or not hasattr(mp, "ImageFormat"):
        raise RuntimeError("Your MediaPipe build does not expose `mp.Image` required for the Tasks API.")
    return mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)


class _MediaPipeGraph:
    """Shared Tasks invocation and teardown for the MediaPipe-backed handles."""

    _solutions: Optional[_SolutionsBackend]
    _tasks: Optional[_TasksBackend]
    _static_image_mode: bool
    _timestamp_ms: int

    def _run_tasks(self, frame_rgb):
        mp_image = _to_mp_image(self._tasks.mp, frame_rgb)
        if self._static_image_mode:
            return self._tasks.task.detect(mp_image)
        self._timestamp_ms += _FRAME_STEP_MS
        return self._tasks.task.detect_for_video(mp_image, self._timestamp_ms)

    def close(self) -> None:
        if self._solutions is not None:
            self._solutions.graph.close()
        if self._tasks is not None:
            self._tasks.task.close()


class MediaPipeFaceModel(_MediaPipeGraph, FaceModel):
    """
    Face detector using MediaPipe Face Detection (BlazeFace).

    Falls back to the Tasks FaceDetector when `mp.solutions` is unavailable.
    """

    def __init__(self, config: Optional[FaceModelConfig] = None) -> None:
        import mediapipe as mp  # type: ignore

        config = config or FaceModelConfig()
        self._lock = threading.Lock()
        self._timestamp_ms = 0
        self._static_image_mode = config.static_image_mode
        self._solutions: Optional[_SolutionsBackend] = None
        self._tasks: Optional[_TasksBackend] = None

        if hasattr(mp, "solutions"):
            graph = mp.solutions.face_detection.FaceDetection(
                model_selection=config.model_selection,
                min_detection_confidence=config.min_detection_confidence,
            )
            self._solutions = _SolutionsBackend(mp=mp, graph=graph)
        else:
            BaseOptions, vision = _import_tasks_vision()
            model_path = ensure_face_detector_model(config.tasks_model_path)
            options = vision.FaceDetectorOptions(
                base_options=BaseOptions(model_asset_path=model_path),
                running_mode=vision.RunningMode.IMAGE if self._static_image_mode else vision.RunningMode.VIDEO,
                min_detection_confidence=config.min_detection_confidence,
            )
            self._tasks = _TasksBackend(mp=mp, task=vision.FaceDetector.create_from_options(options))
        logger.info("Face model ready (%s)", "solutions" if self._solutions is not None else "tasks")

    def estimate_faces(self, frame_bgr) -> List[BoundingRegion]:
        h, w = frame_bgr.shape[:2]
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        with self._lock:
            if self._solutions is not None:
                results = self._solutions.graph.process(frame_rgb)
                faces: List[BoundingRegion] = []
                for det in getattr(results, "detections", None) or []:
                    rb = det.location_data.relative_bounding_box
                    # Not clamped: a face cut off by the frame edge keeps its true top and height.
                    score = float(det.score[0]) if getattr(det, "score", None) else None
                    faces.append(
                        BoundingRegion.from_xywh(
                            float(rb.xmin) * w, float(rb.ymin) * h, float(rb.width) * w, float(rb.height) * h, score=score
                        )
                    )
                return faces

            if self._tasks is None:
                return []

            result = self._run_tasks(frame_rgb)

        faces = []
        for det in getattr(result, "detections", None) or []:
            bb = det.bounding_box
            score = float(det.categories[0].score) if getattr(det, "categories", None) else None
            faces.append(BoundingRegion.from_xywh(bb.origin_x, bb.origin_y, bb.width, bb.height, score=score))
        return faces


class MediaPipeHandModel(_MediaPipeGraph, HandModel):
    """
    Hand landmark detector using MediaPipe Hands.

    Falls back to the Tasks HandLandmarker when `mp.solutions` is unavailable.
    """

    def __init__(self, config: Optional[HandModelConfig] = None) -> None:
        import mediapipe as mp  # type: ignore

        config = config or HandModelConfig()
        self._lock = threading.Lock()
        self._timestamp_ms = 0
        self._static_image_mode = config.static_image_mode
        self._solutions: Optional[_SolutionsBackend] = None
        self._tasks: Optional[_TasksBackend] = None

        if hasattr(mp, "solutions"):
            graph = mp.solutions.hands.Hands(
                static_image_mode=config.static_image_mode,
                max_num_hands=config.max_num_hands,
                model_complexity=config.model_complexity,
                min_detection_confidence=config.min_detection_confidence,
                min_tracking_confidence=config.min_tracking_confidence,
            )
            self._solutions = _SolutionsBackend(mp=mp, graph=graph)
        else:
            BaseOptions, vision = _import_tasks_vision()
            model_path = ensure_hand_landmarker_task(config.tasks_model_path)
            options = vision.HandLandmarkerOptions(
                base_options=BaseOptions(model_asset_path=model_path),
                running_mode=vision.RunningMode.IMAGE if self._static_image_mode else vision.RunningMode.VIDEO,
                num_hands=config.max_num_hands,
                min_hand_detection_confidence=config.min_detection_confidence,
                min_tracking_confidence=config.min_tracking_confidence,
            )
            self._tasks = _TasksBackend(mp=mp, task=vision.HandLandmarker.create_from_options(options))
        logger.info("Hand model ready (%s)", "solutions" if self._solutions is not None else "tasks")

    def estimate_hands(self, frame_bgr) -> List[HandLandmarks]:
        h, w = frame_bgr.shape[:2]
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        with self._lock:
            if self._solutions is not None:
                results = self._solutions.graph.process(frame_rgb)
                handedness_list = results.multi_handedness or []
                hands: List[HandLandmarks] = []
                for i, hand_landmarks in enumerate(results.multi_hand_landmarks or []):
                    label: Optional[str] = None
                    score: Optional[float] = None
                    if i < len(handedness_list) and handedness_list[i].classification:
                        c = handedness_list[i].classification[0]
                        label = getattr(c, "label", None)
                        score = float(getattr(c, "score", 0.0))
                    hands.append(self._to_pixels(hand_landmarks.landmark, label, score, w, h))
                return hands

            if self._tasks is None:
                return []

            result = self._run_tasks(frame_rgb)

        hand_landmarks_list = getattr(result, "hand_landmarks", None) or []
        handedness_list = getattr(result, "handedness", None) or []
        hands = []
        for i, landmarks in enumerate(hand_landmarks_list):
            label = None
            score = None
            if i < len(handedness_list) and handedness_list[i]:
                cat0 = handedness_list[i][0]
                label = getattr(cat0, "category_name", None) or getattr(cat0, "display_name", None)
                score = float(getattr(cat0, "score", 0.0))
            hands.append(self._to_pixels(landmarks, label, score, w, h))
        return hands

    @staticmethod
    def _to_pixels(landmarks, label: Optional[str], score: Optional[float], w: int, h: int) -> HandLandmarks:
        # Not clamped: a hand partly outside the frame still has a meaningful position.
        points = [(float(lm.x) * w, float(lm.y) * h) for lm in landmarks]
        return HandLandmarks.from_points(points, handedness_label=label, handedness_score=score)


def _close_quietly(model) -> None:
    try:
        model.close()
    except Exception:
        logger.warning("Error while closing %s", type(model).__name__, exc_info=True)


class DetectionSession:
    """
    Caller-owned pair of model handles for one detection session.

    Handles are shared read-only by every frame's detection; `close()` releases both.
    """

    def __init__(self, face_model: FaceModel, hand_model: HandModel) -> None:
        self.face_model = face_model
        self.hand_model = hand_model
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        _close_quietly(self.face_model)
        _close_quietly(self.hand_model)
        logger.info("Detection session closed")

    def __enter__(self) -> "DetectionSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def __aenter__(self) -> "DetectionSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


async def acquire_models(
    config: Optional[HandZoneConfig] = None,
    *,
    face_loader: Optional[Callable[[], FaceModel]] = None,
    hand_loader: Optional[Callable[[], HandModel]] = None,
) -> DetectionSession:
    """
    Load the face and hand models concurrently and return them as a session.

    Either both handles are returned or `ModelLoadError` is raised; a handle that
    did load is closed before raising.
    """
    config = config or HandZoneConfig()
    if face_loader is None:
        face_loader = lambda: MediaPipeFaceModel(config.face)  # noqa: E731
    if hand_loader is None:
        hand_loader = lambda: MediaPipeHandModel(config.hand)  # noqa: E731

    logger.info("Loading face and hand models")
    results = await asyncio.gather(
        asyncio.to_thread(face_loader),
        asyncio.to_thread(hand_loader),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        for r in results:
            if not isinstance(r, BaseException):
                _close_quietly(r)
        for f in failures:
            if not isinstance(f, Exception):
                raise f
        names = [name for name, r in zip(("face", "hand"), results) if isinstance(r, BaseException)]
        logger.error("Model loading failed: %s", ", ".join(names))
        raise ModelLoadError(f"could not load {' and '.join(names)} model: {failures[0]}") from failures[0]

    face_model, hand_model = results
    logger.info("Models loaded")
    return DetectionSession(face_model, hand_model)
