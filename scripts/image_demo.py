from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from handzone.classifier import PositionClassifier, relative_y  # noqa: E402
from handzone.config import load_config  # noqa: E402
from handzone.drawing import draw_face_zones, draw_hand, draw_zone_hud  # noqa: E402
from handzone.models import acquire_models  # noqa: E402
from handzone.sampler import detect  # noqa: E402


async def run(args) -> int:
    config = load_config(args.config)
    # One still image: no tracking between frames.
    config = dataclasses.replace(
        config,
        face=dataclasses.replace(config.face, static_image_mode=True),
        hand=dataclasses.replace(config.hand, static_image_mode=True),
    )

    frame = cv2.imread(args.image)
    if frame is None:
        raise RuntimeError(f"Could not read image: {args.image}")

    classifier = PositionClassifier(config.classifier)
    async with await acquire_models(config) as session:
        observation = await detect(frame, session)

    zone = classifier(observation)

    draw_face_zones(frame, observation.face, classifier.thresholds, mirrored=False)
    draw_hand(frame, observation.hand, draw_bbox_px=True)
    draw_zone_hud(frame, zone)

    ok = cv2.imwrite(args.out, frame)
    if not ok:
        raise RuntimeError(f"Could not write output image: {args.out}")

    rel = relative_y(observation.face, observation.hand, classifier.anchor_indices)
    print(f"face: {observation.face}")
    print(f"hand: {'yes' if observation.hand is not None else 'no'}")
    print(f"relative_y: {rel if rel is None else round(rel, 3)}")
    print(f"zone: {zone.label if zone is not None else 'indeterminate'}")
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Classify the hand position in a single image.")
    ap.add_argument("--image", required=True, help="Path to input image")
    ap.add_argument("--out", required=True, help="Path to output image (annotated)")
    ap.add_argument("--config", default=None, help="Path to a JSON config file")
    ap.add_argument("--log-level", default="WARNING", help="Logging level")
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
