"""
Face-relative hand position classifier.

The hand's vertical position (mean y of the wrist and middle fingertip) is
expressed as a fraction of the face height, measured from the top of the face
box, then mapped to a zone through an ordered table of upper bounds:

    relative_y < 0.2 -> 1 (eye)
    relative_y < 0.4 -> 2 (side)
    relative_y < 0.6 -> 3 (mouth)
    relative_y < 0.9 -> 4 (chin)
    otherwise        -> 5 (throat)

Bounds are strict: a value equal to a bound belongs to the next zone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

from .config import DEFAULT_ANCHOR_INDICES, DEFAULT_BOUNDS, ClassifierConfig, valid_anchor_indices
from .types import BoundingRegion, FrameObservation, HandLandmarks, Zone


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneThresholds:
    """Ordered (upper_bound, zone) pairs; first match wins, `fallback` otherwise."""

    table: Tuple[Tuple[float, Zone], ...]
    fallback: Zone = Zone.THROAT

    def __post_init__(self) -> None:
        bounds = [b for b, _ in self.table]
        if any(a >= b for a, b in zip(bounds, bounds[1:])):
            raise ValueError(f"zone bounds must be strictly ascending, got {bounds}")

    @classmethod
    def from_bounds(cls, bounds: Sequence[float]) -> "ZoneThresholds":
        """Build a table assigning zones 1..N to `bounds` and zone N+1 above the last one."""
        if len(bounds) != len(Zone) - 1:
            raise ValueError(f"expected {len(Zone) - 1} bounds, got {len(bounds)}")
        zones = list(Zone)
        return cls(table=tuple((float(b), zones[i]) for i, b in enumerate(bounds)), fallback=zones[-1])

    def zone_for(self, relative_y: float) -> Zone:
        for upper, zone in self.table:
            if relative_y < upper:
                return zone
        return self.fallback

    def boundaries(self) -> Iterator[Tuple[float, Zone]]:
        return iter(self.table)


DEFAULT_THRESHOLDS = ZoneThresholds.from_bounds(DEFAULT_BOUNDS)


def hand_anchor_y(hand: HandLandmarks, indices: Sequence[int] = DEFAULT_ANCHOR_INDICES) -> float:
    """Mean y of the anchor landmarks; wrist + middle fingertip stays stable when fingers curl."""
    return sum(hand[i][1] for i in indices) / len(indices)


def relative_y(
    face: Optional[BoundingRegion],
    hand: Optional[HandLandmarks],
    anchor_indices: Sequence[int] = DEFAULT_ANCHOR_INDICES,
) -> Optional[float]:
    if face is None or hand is None:
        return None
    if not valid_anchor_indices(anchor_indices):
        logger.warning("Invalid anchor landmark indices %r; zone indeterminate", anchor_indices)
        return None
    height = face.height
    if height <= 0:
        return None
    return (hand_anchor_y(hand, anchor_indices) - face.top) / height


def classify(
    face: Optional[BoundingRegion],
    hand: Optional[HandLandmarks],
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
    anchor_indices: Sequence[int] = DEFAULT_ANCHOR_INDICES,
) -> Optional[Zone]:
    """
    Classify the hand position relative to the face.

    Returns None (indeterminate) when the face or the hand is missing, or when
    the face box has no height, or when the anchor indices are invalid.
    """
    rel = relative_y(face, hand, anchor_indices)
    if rel is None:
        if face is not None and hand is not None and face.is_degenerate:
            logger.debug("Degenerate face box %s; zone indeterminate", face)
        return None

    zone = thresholds.zone_for(rel)
    logger.debug(
        "face top=%.0f bottom=%.0f height=%.0f | hand_y=%.0f relative_y=%.2f -> zone %d",
        face.top,
        face.bottom,
        face.height,
        hand_anchor_y(hand, anchor_indices),
        rel,
        zone,
    )
    return zone


def classify_observation(
    observation: FrameObservation,
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
    anchor_indices: Sequence[int] = DEFAULT_ANCHOR_INDICES,
) -> Optional[Zone]:
    return classify(observation.face, observation.hand, thresholds, anchor_indices)


class PositionClassifier:
    """Classifier bound to configured thresholds and anchor landmarks."""

    def __init__(self, config: Optional[ClassifierConfig] = None) -> None:
        config = config or ClassifierConfig()
        self.thresholds = ZoneThresholds.from_bounds(config.bounds)
        if not valid_anchor_indices(config.anchor_indices):
            raise ValueError(f"anchor_indices must be non-empty landmark indices in [0, 21), got {config.anchor_indices!r}")
        self.anchor_indices: Tuple[int, ...] = tuple(config.anchor_indices)

    def classify(self, face: Optional[BoundingRegion], hand: Optional[HandLandmarks]) -> Optional[Zone]:
        return classify(face, hand, self.thresholds, self.anchor_indices)

    def __call__(self, observation: FrameObservation) -> Optional[Zone]:
        return classify_observation(observation, self.thresholds, self.anchor_indices)
