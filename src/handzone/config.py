from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .types import MIDDLE_FINGER_TIP, NUM_HAND_LANDMARKS, WRIST


logger = logging.getLogger(__name__)

# Empirical zone boundaries on the face-relative vertical coordinate.
DEFAULT_BOUNDS: Tuple[float, ...] = (0.2, 0.4, 0.6, 0.9)
DEFAULT_ANCHOR_INDICES: Tuple[int, ...] = (WRIST, MIDDLE_FINGER_TIP)


@dataclass(frozen=True)
class FaceModelConfig:
    min_detection_confidence: float = 0.5
    model_selection: int = 0  # 0 = short range (~2m), 1 = full range (~5m)
    tasks_model_path: str = "models/blaze_face_short_range.tflite"
    # Single still images: Tasks IMAGE mode instead of VIDEO tracking.
    static_image_mode: bool = False


@dataclass(frozen=True)
class HandModelConfig:
    # Single signer; only the first hand is ever classified.
    max_num_hands: int = 1
    model_complexity: int = 1
    min_detection_confidence: float = 0.7
    min_tracking_confidence: float = 0.5
    tasks_model_path: str = "models/hand_landmarker.task"
    static_image_mode: bool = False


@dataclass(frozen=True)
class ClassifierConfig:
    # Upper bounds for zones 1..4; anything at or above the last bound is zone 5.
    bounds: Tuple[float, ...] = DEFAULT_BOUNDS
    # Landmarks averaged to get the hand's vertical position.
    anchor_indices: Tuple[int, ...] = DEFAULT_ANCHOR_INDICES


@dataclass(frozen=True)
class SamplerConfig:
    # Minimum seconds between detections in live loops (0 = every frame).
    min_interval_s: float = 0.1


@dataclass(frozen=True)
class OverlayConfig:
    # Labels are pre-flipped so they read correctly on a selfie (mirrored) feed.
    mirrored: bool = True
    face_color: Tuple[int, int, int] = (0, 255, 0)  # BGR
    guide_color: Tuple[int, int, int] = (0, 160, 0)


@dataclass(frozen=True)
class HandZoneConfig:
    face: FaceModelConfig = field(default_factory=FaceModelConfig)
    hand: HandModelConfig = field(default_factory=HandModelConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)


def _deep_get(d: Dict[str, Any], keys: List[str], default: Any = None) -> Any:
    cur: Any = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
    return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_float(v: Any, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return float(default)


def _as_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(default)


def _as_str(v: Any, default: str = "") -> str:
    return str(v) if v is not None else str(default)


def _as_color(v: Any, default: Tuple[int, int, int]) -> Tuple[int, int, int]:
    if isinstance(v, (list, tuple)) and len(v) == 3:
        try:
            return (int(v[0]), int(v[1]), int(v[2]))
        except (TypeError, ValueError):
            pass
    return default


def _parse_bounds(v: Any) -> Tuple[float, ...]:
    if not isinstance(v, (list, tuple)) or not v:
        return DEFAULT_BOUNDS
    try:
        bounds = tuple(float(b) for b in v)
    except (TypeError, ValueError):
        logger.warning("Non-numeric zone bounds %r; using defaults", v)
        return DEFAULT_BOUNDS
    if len(bounds) != len(DEFAULT_BOUNDS) or any(b >= n for b, n in zip(bounds, bounds[1:])):
        logger.warning("Zone bounds must be %d strictly ascending values, got %r; using defaults", len(DEFAULT_BOUNDS), v)
        return DEFAULT_BOUNDS
    return bounds


def valid_anchor_indices(indices: Sequence[int]) -> bool:
    """True for a non-empty sequence of hand landmark indices in [0, 21)."""
    try:
        return len(indices) > 0 and all(0 <= int(i) < NUM_HAND_LANDMARKS for i in indices)
    except (TypeError, ValueError):
        return False


def _parse_anchor_indices(v: Any) -> Tuple[int, ...]:
    if not isinstance(v, (list, tuple)) or not v:
        return DEFAULT_ANCHOR_INDICES
    try:
        indices = tuple(int(i) for i in v)
    except (TypeError, ValueError):
        return DEFAULT_ANCHOR_INDICES
    if not valid_anchor_indices(indices):
        logger.warning("Anchor landmark indices out of range: %r; using defaults", v)
        return DEFAULT_ANCHOR_INDICES
    return indices


def load_config(path: Optional[Union[str, Path]] = None) -> HandZoneConfig:
    """
    Load configuration from a JSON file.

    A missing path, a missing file or malformed JSON yields the defaults.
    """
    if not path:
        return HandZoneConfig()
    p = Path(path).expanduser().resolve()
    if not p.exists():
        return HandZoneConfig()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Could not read config %s (%s); using defaults", p, e)
        return HandZoneConfig()

    if not isinstance(raw, dict):
        return HandZoneConfig()

    d_face = FaceModelConfig()
    d_hand = HandModelConfig()
    d_sampler = SamplerConfig()
    d_overlay = OverlayConfig()

    face = FaceModelConfig(
        min_detection_confidence=_as_float(
            _deep_get(raw, ["face", "min_detection_confidence"]), d_face.min_detection_confidence
        ),
        model_selection=1 if _as_int(_deep_get(raw, ["face", "model_selection"]), 0) == 1 else 0,
        tasks_model_path=_as_str(_deep_get(raw, ["face", "tasks_model_path"]), d_face.tasks_model_path),
        static_image_mode=_as_bool(_deep_get(raw, ["face", "static_image_mode"]), d_face.static_image_mode),
    )
    hand = HandModelConfig(
        max_num_hands=max(1, _as_int(_deep_get(raw, ["hand", "max_num_hands"]), d_hand.max_num_hands)),
        model_complexity=_as_int(_deep_get(raw, ["hand", "model_complexity"]), d_hand.model_complexity),
        min_detection_confidence=_as_float(
            _deep_get(raw, ["hand", "min_detection_confidence"]), d_hand.min_detection_confidence
        ),
        min_tracking_confidence=_as_float(
            _deep_get(raw, ["hand", "min_tracking_confidence"]), d_hand.min_tracking_confidence
        ),
        tasks_model_path=_as_str(_deep_get(raw, ["hand", "tasks_model_path"]), d_hand.tasks_model_path),
        static_image_mode=_as_bool(_deep_get(raw, ["hand", "static_image_mode"]), d_hand.static_image_mode),
    )
    classifier = ClassifierConfig(
        bounds=_parse_bounds(_deep_get(raw, ["classifier", "bounds"])),
        anchor_indices=_parse_anchor_indices(_deep_get(raw, ["classifier", "anchor_indices"])),
    )
    sampler = SamplerConfig(
        min_interval_s=max(0.0, _as_float(_deep_get(raw, ["sampler", "min_interval_s"]), d_sampler.min_interval_s)),
    )
    overlay = OverlayConfig(
        mirrored=_as_bool(_deep_get(raw, ["overlay", "mirrored"]), d_overlay.mirrored),
        face_color=_as_color(_deep_get(raw, ["overlay", "face_color"]), d_overlay.face_color),
        guide_color=_as_color(_deep_get(raw, ["overlay", "guide_color"]), d_overlay.guide_color),
    )

    return HandZoneConfig(face=face, hand=hand, classifier=classifier, sampler=sampler, overlay=overlay)
