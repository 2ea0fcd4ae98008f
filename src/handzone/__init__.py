from .classifier import DEFAULT_THRESHOLDS, PositionClassifier, ZoneThresholds, classify, classify_observation, relative_y
from .config import HandZoneConfig, load_config
from .errors import HandZoneError, InvalidInputError, ModelLoadError
from .models import DetectionSession, FaceModel, HandModel, acquire_models
from .sampler import FrameSampler, detect
from .types import BoundingRegion, FrameObservation, HandLandmarks, Zone

__all__ = [
    "BoundingRegion",
    "DEFAULT_THRESHOLDS",
    "DetectionSession",
    "FaceModel",
    "FrameObservation",
    "FrameSampler",
    "HandLandmarks",
    "HandModel",
    "HandZoneConfig",
    "HandZoneError",
    "InvalidInputError",
    "ModelLoadError",
    "PositionClassifier",
    "Zone",
    "ZoneThresholds",
    "acquire_models",
    "classify",
    "classify_observation",
    "detect",
    "load_config",
    "relative_y",
]
