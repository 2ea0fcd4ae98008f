from __future__ import annotations

import argparse
import asyncio
import logging
import os
import platform
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from handzone.classifier import PositionClassifier  # noqa: E402
from handzone.config import load_config  # noqa: E402
from handzone.drawing import draw_face_zones, draw_hand, draw_text, draw_zone_hud  # noqa: E402
from handzone.errors import ModelLoadError  # noqa: E402
from handzone.models import acquire_models  # noqa: E402
from handzone.sampler import FrameSampler  # noqa: E402
from handzone.types import FrameObservation  # noqa: E402


async def run(args) -> int:
    config = load_config(args.config)
    mirrored = config.overlay.mirrored and not args.no_mirror

    if platform.system() == "Darwin":
        cap = cv2.VideoCapture(args.camera, cv2.CAP_AVFOUNDATION)
    else:
        cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        raise RuntimeError(
            f"Could not open camera index {args.camera}. "
            "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal."
        )

    cap.set(cv2.CAP_PROP_FRAME_WIDTH, args.width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, args.height)

    try:
        session = await acquire_models(config)
    except ModelLoadError as e:
        cap.release()
        print(f"error: {e}", file=sys.stderr)
        return 1

    classifier = PositionClassifier(config.classifier)
    last = FrameObservation.EMPTY
    zone = None

    async with session:
        sampler = FrameSampler(session, min_interval_s=config.sampler.min_interval_s)
        while True:
            ok, frame = cap.read()
            if not ok:
                break

            if sampler.due():
                observation = await sampler.sample(frame)
                if observation is not None:
                    last = observation
                    zone = classifier(observation)

            # Overlay is drawn on the raw frame; labels are pre-flipped when the display is mirrored.
            draw_face_zones(
                frame,
                last.face,
                classifier.thresholds,
                mirrored=mirrored,
                color=config.overlay.face_color,
                guide_color=config.overlay.guide_color,
            )
            draw_hand(frame, last.hand)

            if mirrored:
                frame = cv2.flip(frame, 1)

            draw_zone_hud(frame, zone)
            draw_text(frame, "press q to quit", (12, 56), scale=0.5, thickness=1)

            cv2.imshow("handzone - hand position", frame)
            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):
                break

    cap.release()
    cv2.destroyAllWindows()
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Webcam face-relative hand zone demo.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=640, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=480, help="Capture height (best effort)")
    ap.add_argument("--config", default=None, help="Path to a JSON config file")
    ap.add_argument(
        "--no-mirror",
        action="store_true",
        help="Disable horizontal mirroring (default is mirrored/selfie mode)",
    )
    ap.add_argument("--log-level", default="INFO", help="Logging level (DEBUG shows per-frame classification)")
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
