"""
Overlay Tests
=============
Face box, zone guide lines and hand skeleton drawn on numpy frames.
"""

import unittest

import numpy as np

from tests.helpers import make_face, make_hand

from handzone.classifier import ZoneThresholds
from handzone.drawing import draw_dashed_hline, draw_face_zones, draw_hand, draw_mirrored_text, draw_zone_hud
from handzone.types import Zone


def blank(h=400, w=400):
    return np.zeros((h, w, 3), dtype=np.uint8)


class TestFaceZones(unittest.TestCase):

    def test_no_face_is_noop(self):
        frame = blank()
        out = draw_face_zones(frame, None)
        self.assertIs(out, frame)
        self.assertEqual(int(frame.sum()), 0)

    def test_missing_frame_is_an_error(self):
        with self.assertRaises(ValueError):
            draw_face_zones(None, make_face())

    def test_draws_box_and_guides(self):
        frame = blank()
        face = make_face(top=100, bottom=300, left=100, right=300)
        draw_face_zones(frame, face, mirrored=False, color=(0, 255, 0), guide_color=(0, 160, 0))
        # box edges
        self.assertTrue(frame[100, 200].any())
        self.assertTrue(frame[300, 200].any())
        # guide lines at 0.2 / 0.4 / 0.6 / 0.9 of the height (start of a dash at the left edge)
        for bound in (0.2, 0.4, 0.6, 0.9):
            y = int(round(100 + 200 * bound))
            with self.subTest(bound=bound):
                self.assertEqual(tuple(frame[y, 103]), (0, 160, 0))
        # nothing outside the face box
        self.assertEqual(int(frame[:90].sum()), 0)

    def test_custom_thresholds(self):
        frame = blank()
        face = make_face(top=100, bottom=300, left=100, right=300)
        draw_face_zones(frame, face, ZoneThresholds.from_bounds((0.1, 0.3, 0.5, 0.7)), mirrored=False)
        self.assertTrue(frame[120, 103].any())
        self.assertFalse(frame[140, 103].any())

    def test_mirrored_labels_are_flipped(self):
        face = make_face(top=100, bottom=300, left=100, right=300)
        plain = draw_face_zones(blank(), face, mirrored=False)
        mirrored = draw_face_zones(blank(), face, mirrored=True)
        self.assertFalse(np.array_equal(plain, mirrored))
        # mirrored labels end at the right edge of the box
        y = int(round(100 + 200 * 0.2))
        self.assertTrue(mirrored[y - 15 : y - 3, 240:295].any())


class TestHelpers(unittest.TestCase):

    def test_dashed_line_has_gaps(self):
        frame = blank(20, 40)
        draw_dashed_hline(frame, 0, 39, 10, color=(255, 255, 255))
        row = frame[10, :, 0]
        self.assertTrue(row[0:5].all())
        self.assertFalse(row[5:10].any())
        self.assertTrue(row[10:15].all())

    def test_dashed_line_accepts_reversed_ends(self):
        frame = blank(20, 40)
        draw_dashed_hline(frame, 39, 0, 10)
        self.assertTrue(frame[10].any())

    def test_mirrored_text_ends_at_anchor(self):
        frame = blank(60, 200)
        draw_mirrored_text(frame, "1: Eye", 150, 40, color=(255, 255, 255))
        drawn = np.nonzero(frame[..., 0])
        self.assertGreater(len(drawn[1]), 0)
        self.assertLessEqual(drawn[1].max(), 150)

    def test_mirrored_text_clipped_at_frame_edge(self):
        frame = blank(30, 30)
        draw_mirrored_text(frame, "5: Throat", 10, 5)
        draw_mirrored_text(frame, "5: Throat", -50, 5)

    def test_hand_skeleton(self):
        frame = blank()
        hand = make_hand(200, 100, x=150)
        draw_hand(frame, hand, draw_bbox_px=True)
        self.assertTrue(frame[200, 150].any())
        self.assertTrue(frame[100, 150].any())

    def test_no_hand_is_noop(self):
        frame = blank()
        draw_hand(frame, None)
        self.assertEqual(int(frame.sum()), 0)

    def test_hud(self):
        frame = blank(60, 300)
        draw_zone_hud(frame, Zone.CHIN)
        self.assertTrue(frame.any())
        empty = blank(60, 300)
        draw_zone_hud(empty, None)
        self.assertTrue(empty.any())


if __name__ == "__main__":
    unittest.main()
