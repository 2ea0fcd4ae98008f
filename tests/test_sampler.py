"""
Frame Sampler Tests
===================
Concurrent face/hand detection, error suppression and stale-result handling.
"""

import asyncio
import threading
import time
import unittest

import numpy as np

from tests.helpers import FakeFaceModel, FakeHandModel, make_face, make_hand

from handzone.models import DetectionSession
from handzone.sampler import FrameSampler, detect
from handzone.types import FrameObservation


FRAME = np.zeros((480, 640, 3), dtype=np.uint8)


def session_with(face_model=None, hand_model=None) -> DetectionSession:
    return DetectionSession(face_model or FakeFaceModel(), hand_model or FakeHandModel())


class TestDetect(unittest.IsolatedAsyncioTestCase):

    async def test_returns_first_face_and_hand(self):
        faces = [make_face(), make_face(top=0, bottom=50)]
        hands = [make_hand(130, 150), make_hand(280, 300)]
        obs = await detect(FRAME, session_with(FakeFaceModel(faces), FakeHandModel(hands)), frame_id=7)
        self.assertIs(obs.face, faces[0])
        self.assertIs(obs.hand, hands[0])
        self.assertEqual(obs.frame_id, 7)
        self.assertTrue(obs.is_complete)

    async def test_nothing_found(self):
        obs = await detect(FRAME, session_with())
        self.assertIsNone(obs.face)
        self.assertIsNone(obs.hand)

    async def test_only_face_found(self):
        obs = await detect(FRAME, session_with(FakeFaceModel([make_face()])))
        self.assertIsNotNone(obs.face)
        self.assertIsNone(obs.hand)
        self.assertFalse(obs.is_complete)

    async def test_models_run_concurrently(self):
        # Each call waits for the other one; sequential execution would break the barrier.
        barrier = threading.Barrier(2, timeout=5)
        face_model = FakeFaceModel([make_face()], hook=lambda n: barrier.wait())
        hand_model = FakeHandModel([make_hand(130, 150)], hook=lambda n: barrier.wait())
        obs = await detect(FRAME, session_with(face_model, hand_model))
        self.assertTrue(obs.is_complete)

    async def test_hand_model_error_suppresses_both(self):
        face_model = FakeFaceModel([make_face()])
        hand_model = FakeHandModel(error=RuntimeError("inference failed"))
        with self.assertLogs("handzone.sampler", level="ERROR"):
            obs = await detect(FRAME, session_with(face_model, hand_model), frame_id=3)
        self.assertIsNone(obs.face)
        self.assertIsNone(obs.hand)
        self.assertEqual(obs.frame_id, 3)

    async def test_face_model_error_suppresses_both(self):
        face_model = FakeFaceModel(error=ValueError("bad tensor"))
        hand_model = FakeHandModel([make_hand(130, 150)])
        with self.assertLogs("handzone.sampler", level="ERROR"):
            obs = await detect(FRAME, session_with(face_model, hand_model))
        self.assertEqual(obs, FrameObservation.EMPTY)

    async def test_missing_frame(self):
        face_model = FakeFaceModel([make_face()])
        obs = await detect(None, session_with(face_model))
        self.assertEqual(obs, FrameObservation.EMPTY)
        self.assertEqual(face_model.calls, 0)

    async def test_missing_models(self):
        self.assertEqual(await detect(FRAME, None), FrameObservation.EMPTY)
        self.assertEqual(await detect(FRAME, DetectionSession(None, FakeHandModel())), FrameObservation.EMPTY)
        self.assertEqual(await detect(FRAME, DetectionSession(FakeFaceModel(), None)), FrameObservation.EMPTY)

    async def test_closed_session(self):
        session = session_with(FakeFaceModel([make_face()]))
        session.close()
        self.assertEqual(await detect(FRAME, session), FrameObservation.EMPTY)


class TestFrameSampler(unittest.IsolatedAsyncioTestCase):

    async def test_frame_ids_increase(self):
        sampler = FrameSampler(session_with())
        first = await sampler.sample(FRAME)
        second = await sampler.sample(FRAME)
        self.assertEqual((first.frame_id, second.frame_id), (1, 2))
        self.assertEqual(sampler.latest_frame_id, 2)

    async def test_superseded_result_is_dropped(self):
        def slow_first_call(n):
            if n == 1:
                time.sleep(0.2)

        session = session_with(FakeFaceModel([make_face()], hook=slow_first_call), FakeHandModel())
        sampler = FrameSampler(session)

        first = asyncio.ensure_future(sampler.sample(FRAME))
        await asyncio.sleep(0)  # let the first sample issue its detection
        second = await sampler.sample(FRAME)

        self.assertIsNotNone(second)
        self.assertEqual(second.frame_id, 2)
        self.assertIsNone(await first)

    async def test_throttling(self):
        now = [100.0]
        sampler = FrameSampler(session_with(), min_interval_s=0.1, clock=lambda: now[0])
        self.assertTrue(sampler.due())
        await sampler.sample(FRAME)
        self.assertFalse(sampler.due())
        now[0] += 0.05
        self.assertFalse(sampler.due())
        now[0] += 0.05
        self.assertTrue(sampler.due())

    async def test_zero_interval_always_due(self):
        sampler = FrameSampler(session_with())
        await sampler.sample(FRAME)
        self.assertTrue(sampler.due())

    async def test_errors_still_yield_observation(self):
        sampler = FrameSampler(session_with(FakeFaceModel(error=RuntimeError("boom"))))
        with self.assertLogs("handzone.sampler", level="ERROR"):
            obs = await sampler.sample(FRAME)
        self.assertIsNotNone(obs)
        self.assertIsNone(obs.face)


if __name__ == "__main__":
    unittest.main()
