"""Shared fixtures for handzone tests."""

import sys
from pathlib import Path
from typing import List, Optional

# Allow running the tests without installing the package.
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from handzone.models import FaceModel, HandModel  # noqa: E402
from handzone.types import MIDDLE_FINGER_TIP, WRIST, BoundingRegion, HandLandmarks  # noqa: E402


def make_face(top: float = 100.0, bottom: float = 300.0, left: float = 0.0, right: float = 100.0) -> BoundingRegion:
    return BoundingRegion(top_left=(left, top), bottom_right=(right, bottom))


def make_hand(wrist_y: float, tip_y: float, x: float = 50.0) -> HandLandmarks:
    points = [(x, (wrist_y + tip_y) / 2.0)] * 21
    points[WRIST] = (x, wrist_y)
    points[MIDDLE_FINGER_TIP] = (x, tip_y)
    return HandLandmarks.from_points(points)


class FakeFaceModel(FaceModel):
    def __init__(self, faces: Optional[List[BoundingRegion]] = None, error: Optional[Exception] = None, hook=None):
        self.faces = faces if faces is not None else []
        self.error = error
        self.hook = hook
        self.calls = 0
        self.closed = False

    def estimate_faces(self, frame_bgr):
        self.calls += 1
        if self.hook is not None:
            self.hook(self.calls)
        if self.error is not None:
            raise self.error
        return list(self.faces)

    def close(self):
        self.closed = True


class FakeHandModel(HandModel):
    def __init__(self, hands: Optional[List[HandLandmarks]] = None, error: Optional[Exception] = None, hook=None):
        self.hands = hands if hands is not None else []
        self.error = error
        self.hook = hook
        self.calls = 0
        self.closed = False

    def estimate_hands(self, frame_bgr):
        self.calls += 1
        if self.hook is not None:
            self.hook(self.calls)
        if self.error is not None:
            raise self.error
        return list(self.hands)

    def close(self):
        self.closed = True
