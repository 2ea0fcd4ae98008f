from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Optional, Sequence, Tuple


Point2 = Tuple[float, float]  # (x, y) in source-frame pixels

NUM_HAND_LANDMARKS = 21

# MediaPipe / TF.js handpose landmark indices.
WRIST = 0
THUMB_TIP = 4
INDEX_FINGER_TIP = 8
MIDDLE_FINGER_TIP = 12
RING_FINGER_TIP = 16
PINKY_TIP = 20

FINGERTIPS = {
    "thumb": THUMB_TIP,
    "index": INDEX_FINGER_TIP,
    "middle": MIDDLE_FINGER_TIP,
    "ring": RING_FINGER_TIP,
    "pinky": PINKY_TIP,
}


class Zone(IntEnum):
    """Cued-speech hand position relative to the face."""

    UNDER_EYE = 1
    SIDE = 2
    MOUTH = 3
    CHIN = 4
    THROAT = 5

    @property
    def label(self) -> str:
        return f"{int(self)}: {_ZONE_NAMES[self]}"


_ZONE_NAMES = {
    Zone.UNDER_EYE: "Eye",
    Zone.SIDE: "Side",
    Zone.MOUTH: "Mouth",
    Zone.CHIN: "Chin",
    Zone.THROAT: "Throat",
}


@dataclass(frozen=True)
class BoundingRegion:
    """Face bounding box in pixel coordinates of the source frame."""

    top_left: Point2
    bottom_right: Point2
    score: Optional[float] = None

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float, score: Optional[float] = None) -> "BoundingRegion":
        return cls(top_left=(float(x), float(y)), bottom_right=(float(x + w), float(y + h)), score=score)

    @property
    def left(self) -> float:
        return self.top_left[0]

    @property
    def top(self) -> float:
        return self.top_left[1]

    @property
    def right(self) -> float:
        return self.bottom_right[0]

    @property
    def bottom(self) -> float:
        return self.bottom_right[1]

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def is_degenerate(self) -> bool:
        return self.height <= 0


@dataclass(frozen=True)
class HandLandmarks:
    """The 21 keypoints of a single hand, in pixel coordinates."""

    points: Tuple[Point2, ...]  # length 21
    handedness_label: Optional[str] = None  # "Left" / "Right" (may be None)
    handedness_score: Optional[float] = None

    def __post_init__(self) -> None:
        if len(self.points) != NUM_HAND_LANDMARKS:
            raise ValueError(f"expected {NUM_HAND_LANDMARKS} hand landmarks, got {len(self.points)}")

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]], **kwargs) -> "HandLandmarks":
        return cls(points=tuple((float(p[0]), float(p[1])) for p in points), **kwargs)

    def __getitem__(self, idx: int) -> Point2:
        return self.points[idx]

    def __len__(self) -> int:
        return len(self.points)

    @property
    def wrist(self) -> Point2:
        return self.points[WRIST]

    @property
    def middle_tip(self) -> Point2:
        return self.points[MIDDLE_FINGER_TIP]


@dataclass(frozen=True)
class FrameObservation:
    """Face and hand detected in the same video frame. Either may be absent."""

    face: Optional[BoundingRegion] = None
    hand: Optional[HandLandmarks] = None
    frame_id: Optional[int] = None

    EMPTY: ClassVar["FrameObservation"]

    @property
    def is_complete(self) -> bool:
        return self.face is not None and self.hand is not None


FrameObservation.EMPTY = FrameObservation()
