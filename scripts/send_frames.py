#!/usr/bin/env python3
"""
Frame Sender Script
===================

Standalone script to exercise a running CanvasVideo server end to end.

This script:
    1. Loads PNG frames from a directory, or renders synthetic ones
    2. Sends them over the capture WebSocket (optionally shuffled, to check
       that the server restores the order)
    3. Ends the session with the done message, or by disconnecting

Prerequisites:
    - CanvasVideo must be running at the configured URL
    - Install the package: pip install -e .

Usage:
    python scripts/send_frames.py --count 120
    python scripts/send_frames.py --frames-dir ./frames --shuffle
    python scripts/send_frames.py --url ws://localhost:7000/ws/frames --close-only
"""

import argparse
import asyncio
import logging
import os
import random
import sys
import time
from pathlib import Path
from typing import List, Tuple

import cv2
import numpy as np

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from canvas_video.stream import FrameSender


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def load_frames(frames_dir: Path) -> List[Tuple[int, bytes]]:
    """Read *.png from a directory in filename order, keyed by position."""
    paths = sorted(frames_dir.glob("*.png"))
    return [(index, path.read_bytes()) for index, path in enumerate(paths)]


def render_frames(count: int, width: int, height: int) -> List[Tuple[int, bytes]]:
    """Render frames of a square moving left to right."""
    frames = []
    size = max(4, min(width, height) // 4)
    for index in range(count):
        image = np.zeros((height, width, 3), dtype=np.uint8)
        x = int((width - size) * index / max(1, count - 1))
        y = (height - size) // 2
        cv2.rectangle(image, (x, y), (x + size, y + size), (0, 200, 255), -1)
        ok, encoded = cv2.imencode(".png", image)
        if not ok:
            raise RuntimeError(f"Failed to encode frame {index}")
        frames.append((index, encoded.tobytes()))
    return frames


async def run(
    url: str,
    frames: List[Tuple[int, bytes]],
    shuffle: bool,
    fps: float,
    close_only: bool,
) -> int:
    """
    Send frames to the server.

    Returns:
        Number of frames sent
    """
    logger.info("=" * 60)
    logger.info(f"Capture URL: {url}")
    logger.info(f"Frames: {len(frames)} (shuffled: {shuffle})")
    logger.info("=" * 60)

    if shuffle:
        frames = frames[:]
        random.shuffle(frames)

    delay = 1.0 / fps if fps > 0 else 0.0
    start_time = time.time()

    async with FrameSender(url) as sender:
        for key, png_bytes in frames:
            await sender.send_frame(key, png_bytes)
            if delay:
                await asyncio.sleep(delay)

        if not close_only:
            await sender.finish()
        sent = sender.frames_sent

    elapsed = time.time() - start_time
    logger.info(f"Sent {sent} frames in {elapsed:.1f}s")
    return sent


def main():
    parser = argparse.ArgumentParser(
        description="Send PNG frames to a CanvasVideo server"
    )
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("CANVAS_VIDEO_URL", "ws://localhost:7000/ws/frames"),
        help="WebSocket URL of the capture endpoint",
    )
    parser.add_argument(
        "--frames-dir",
        type=Path,
        default=None,
        help="Directory of PNG frames (default: render synthetic frames)",
    )
    parser.add_argument("--count", type=int, default=60, help="Synthetic frame count")
    parser.add_argument("--width", type=int, default=320, help="Synthetic frame width")
    parser.add_argument("--height", type=int, default=240, help="Synthetic frame height")
    parser.add_argument(
        "--fps",
        type=float,
        default=0,
        help="Send rate in frames per second (default: as fast as possible)",
    )
    parser.add_argument(
        "--shuffle",
        action="store_true",
        help="Send frames in random order",
    )
    parser.add_argument(
        "--close-only",
        action="store_true",
        help="End the session by disconnecting instead of sending 'done'",
    )

    args = parser.parse_args()

    if args.frames_dir is not None:
        frames = load_frames(args.frames_dir)
    else:
        frames = render_frames(args.count, args.width, args.height)

    if not frames:
        logger.error("No frames to send")
        sys.exit(1)

    sent = asyncio.run(run(
        url=args.url,
        frames=frames,
        shuffle=args.shuffle,
        fps=args.fps,
        close_only=args.close_only,
    ))

    sys.exit(0 if sent > 0 else 1)


if __name__ == "__main__":
    main()
