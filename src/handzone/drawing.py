from __future__ import annotations

from typing import List, Optional, Tuple

import cv2
import numpy as np

from .classifier import DEFAULT_THRESHOLDS, ZoneThresholds
from .types import FINGERTIPS, WRIST, BoundingRegion, HandLandmarks, Zone
from .utils import bbox_from_points, to_px


Color = Tuple[int, int, int]  # BGR

FONT = cv2.FONT_HERSHEY_SIMPLEX

HAND_CONNECTIONS: List[Tuple[int, int]] = [
    # thumb
    (0, 1),
    (1, 2),
    (2, 3),
    (3, 4),
    # index
    (0, 5),
    (5, 6),
    (6, 7),
    (7, 8),
    # middle
    (5, 9),
    (9, 10),
    (10, 11),
    (11, 12),
    # ring
    (9, 13),
    (13, 14),
    (14, 15),
    (15, 16),
    # pinky
    (13, 17),
    (17, 18),
    (18, 19),
    (19, 20),
    # palm base
    (0, 17),
]

_KEY_POINTS = {WRIST, *FINGERTIPS.values()}


def _require_frame(frame) -> None:
    if frame is None:
        raise ValueError("no frame to draw on")


def draw_bbox(frame, bbox_px: Tuple[int, int, int, int], color=(0, 255, 0), thickness=2):
    x0, y0, x1, y1 = bbox_px
    cv2.rectangle(frame, (x0, y0), (x1, y1), color, thickness)
    return frame


def draw_point(frame, pt: Tuple[int, int], color=(0, 0, 255), radius=5):
    cv2.circle(frame, pt, radius, color, -1, lineType=cv2.LINE_AA)
    return frame


def draw_text(frame, text: str, org: Tuple[int, int], color=(255, 255, 255), scale=0.6, thickness=2):
    cv2.putText(frame, text, org, FONT, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, FONT, scale, color, thickness, cv2.LINE_AA)
    return frame


def draw_dashed_hline(frame, x0: int, x1: int, y: int, color=(0, 255, 0), thickness=1, dash=5, gap=5):
    if x1 < x0:
        x0, x1 = x1, x0
    x = x0
    while x <= x1:
        cv2.line(frame, (x, y), (min(x + dash - 1, x1), y), color, thickness)
        x += dash + gap
    return frame


def draw_mirrored_text(frame, text: str, right_x: int, baseline_y: int, color=(0, 255, 0), scale=0.4, thickness=1):
    """
    Draw `text` flipped left-to-right, ending at `right_x`.

    Once the whole frame is flipped for display, the text reads normally.
    """
    (tw, th), base = cv2.getTextSize(text, FONT, scale, thickness)
    pw, ph = tw + 2, th + base + 2
    mask = np.zeros((ph, pw), dtype=np.uint8)
    cv2.putText(mask, text, (1, th + 1), FONT, scale, 255, thickness, cv2.LINE_AA)
    mask = cv2.flip(mask, 1)

    # Patch placement in frame coordinates, clipped to the frame.
    fh, fw = frame.shape[:2]
    px0, py0 = right_x - pw, baseline_y - th - 1
    fx0, fy0 = max(0, px0), max(0, py0)
    fx1, fy1 = min(fw, px0 + pw), min(fh, py0 + ph)
    if fx0 >= fx1 or fy0 >= fy1:
        return frame

    alpha = mask[fy0 - py0 : fy1 - py0, fx0 - px0 : fx1 - px0].astype(np.float32)[..., None] / 255.0
    roi = frame[fy0:fy1, fx0:fx1].astype(np.float32)
    blended = roi * (1.0 - alpha) + np.array(color, dtype=np.float32) * alpha
    frame[fy0:fy1, fx0:fx1] = blended.astype(frame.dtype)
    return frame


def draw_face_zones(
    frame,
    face: Optional[BoundingRegion],
    thresholds: ZoneThresholds = DEFAULT_THRESHOLDS,
    *,
    mirrored: bool = True,
    color: Color = (0, 255, 0),
    guide_color: Color = (0, 160, 0),
    thickness: int = 2,
):
    """
    Draw the face box and one dashed guide line per zone boundary.

    Each line at `top + height * bound` is labeled with the zone that ends there.
    With `mirrored`, labels are pre-flipped for a display that mirrors the frame.
    """
    _require_frame(frame)
    if face is None:
        return frame

    x0, y0 = to_px(face.top_left)
    x1, y1 = to_px(face.bottom_right)
    draw_bbox(frame, (x0, y0, x1, y1), color=color, thickness=thickness)

    for bound, zone in thresholds.boundaries():
        zy = int(round(face.top + face.height * bound))
        draw_dashed_hline(frame, x0, x1, zy, color=guide_color, thickness=1)
        if mirrored:
            draw_mirrored_text(frame, zone.label, x1 - 5, zy - 5, color=color)
        else:
            cv2.putText(frame, zone.label, (x0 + 5, zy - 5), FONT, 0.4, color, 1, cv2.LINE_AA)
    return frame


def draw_hand(frame, hand: Optional[HandLandmarks], *, draw_bbox_px: bool = False):
    _require_frame(frame)
    if hand is None:
        return frame

    pts = [to_px(p) for p in hand.points]
    for a, b in HAND_CONNECTIONS:
        cv2.line(frame, pts[a], pts[b], (0, 255, 0), 2, cv2.LINE_AA)
    for idx, pt in enumerate(pts):
        if idx in _KEY_POINTS:
            draw_point(frame, pt, color=(0, 0, 255), radius=6)
        else:
            draw_point(frame, pt, color=(0, 255, 0), radius=4)

    if draw_bbox_px:
        bx0, by0, bx1, by1 = bbox_from_points(hand.points)
        draw_bbox(frame, (*to_px((bx0, by0)), *to_px((bx1, by1))), color=(0, 255, 255), thickness=1)
    return frame


def draw_zone_hud(frame, zone: Optional[Zone], org: Tuple[int, int] = (12, 28)):
    _require_frame(frame)
    text = f"zone: {zone.label}" if zone is not None else "zone: -"
    return draw_text(frame, text, org, scale=0.8)
