from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Callable, Optional

from .errors import InvalidInputError
from .models import DetectionSession
from .types import FrameObservation


logger = logging.getLogger(__name__)


def _check_inputs(frame, models: Optional[DetectionSession]) -> None:
    if frame is None:
        raise InvalidInputError("no frame")
    if models is None:
        raise InvalidInputError("no detection session")
    if getattr(models, "closed", False):
        raise InvalidInputError("detection session is closed")
    if getattr(models, "face_model", None) is None or getattr(models, "hand_model", None) is None:
        raise InvalidInputError("detection session is missing a model handle")


async def detect(frame, models: Optional[DetectionSession], *, frame_id: Optional[int] = None) -> FrameObservation:
    """
    Run face and hand detection on one frame.

    Both models run concurrently on the same frame and are joined before returning,
    so the face and the hand belong to the same instant. Only the first face and
    the first hand are kept.

    Never raises for missing inputs or model failures: the result is then an
    observation with neither face nor hand.
    """
    try:
        _check_inputs(frame, models)
    except InvalidInputError as e:
        logger.debug("Skipping detection: %s", e)
        return FrameObservation(frame_id=frame_id)

    try:
        faces, hands = await asyncio.gather(
            asyncio.to_thread(models.face_model.estimate_faces, frame),
            asyncio.to_thread(models.hand_model.estimate_hands, frame),
        )
    except Exception:
        logger.exception("Face/hand detection failed for frame %s", frame_id)
        return FrameObservation(frame_id=frame_id)

    face = faces[0] if faces else None
    hand = hands[0] if hands else None
    if face is None:
        logger.debug("No face detected in frame %s", frame_id)
    return FrameObservation(face=face, hand=hand, frame_id=frame_id)


class FrameSampler:
    """
    Live-loop helper around `detect` for one session.

    Each sample is tagged with a frame id. A result whose frame was superseded by a
    newer sample while it was in flight is discarded rather than returned late.
    """

    def __init__(
        self,
        session: DetectionSession,
        *,
        min_interval_s: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session
        self.min_interval_s = max(0.0, float(min_interval_s))
        self._clock = clock
        self._ids = itertools.count(1)
        self._latest_id = 0
        self._last_issued_at: Optional[float] = None

    @property
    def latest_frame_id(self) -> int:
        return self._latest_id

    def next_frame_id(self) -> int:
        self._latest_id = next(self._ids)
        return self._latest_id

    def due(self) -> bool:
        """True when enough time has passed since the last sample to run detection again."""
        if self._last_issued_at is None:
            return True
        return self._clock() - self._last_issued_at >= self.min_interval_s

    async def sample(self, frame) -> Optional[FrameObservation]:
        """Detect on `frame`; None if a newer frame was sampled before this one finished."""
        frame_id = self.next_frame_id()
        self._last_issued_at = self._clock()
        observation = await detect(frame, self.session, frame_id=frame_id)
        if frame_id != self._latest_id:
            logger.debug("Dropping stale result for frame %d (latest %d)", frame_id, self._latest_id)
            return None
        return observation
