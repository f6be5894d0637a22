"""
Frame Dimension Probes
======================

Determine the pixel size of a frame before encoding.

The size is passed to ffmpeg as ``-s WxH``. Two backends are available:

    - FileCommandProbe: runs file(1) and parses "<w> x <h>" from its output
      ("0.png: PNG image data, 640 x 480, 8-bit/color RGBA, non-interlaced")
    - OpenCVProbe: decodes the image in-process with OpenCV

Both raise ProbeError when the size cannot be determined.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Protocol, Tuple

import cv2
import numpy as np

from canvas_video.errors import ProbeError, ProcessError
from canvas_video.video.process import run_process


logger = logging.getLogger(__name__)


_DIMENSIONS_PATTERN = re.compile(r"(\d+)\s*x\s*(\d+)")


class DimensionProbe(Protocol):
    """
    Protocol for dimension probes.

    Implementations return (width, height) for an image file.
    """

    async def probe(self, path: Path) -> Tuple[int, int]:
        ...


def parse_file_output(output: str) -> Tuple[int, int]:
    """
    Extract (width, height) from file(1) output.

    Raises:
        ProbeError: If no "<w> x <h>" group is present
    """
    match = _DIMENSIONS_PATTERN.search(output or "")
    if not match:
        raise ProbeError(f"Could not get image dimensions from: {output.strip()!r}")
    return int(match.group(1)), int(match.group(2))


class FileCommandProbe:
    """
    Probe dimensions with the file(1) utility.

    Attributes:
        executable: Path or name of the file binary
    """

    def __init__(self, executable: str = "file") -> None:
        self.executable = executable

    async def probe(self, path: Path) -> Tuple[int, int]:
        try:
            result = await run_process([self.executable, "-b", str(path)])
        except ProcessError as e:
            raise ProbeError(f"Could not get image dimensions: {e}")
        return parse_file_output(result.stdout)


def _decode_dimensions(path: Path) -> Tuple[int, int]:
    """Read and decode an image, return (width, height). Blocking."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise ProbeError(f"Could not read {path}: {e}")

    image = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ProbeError(f"Could not decode {path.name}: cv2.imdecode returned None")

    height, width = image.shape[:2]
    return width, height


class OpenCVProbe:
    """Probe dimensions by decoding the image with OpenCV off the event loop."""

    async def probe(self, path: Path) -> Tuple[int, int]:
        return await asyncio.to_thread(_decode_dimensions, Path(path))


def create_probe(backend: str, file_executable: str = "file") -> DimensionProbe:
    """
    Create a dimension probe by backend name.

    Raises:
        ValueError: For an unknown backend
    """
    if backend == "file":
        return FileCommandProbe(executable=file_executable)
    elif backend == "opencv":
        return OpenCVProbe()
    else:
        raise ValueError(f"Unknown probe backend: {backend}")
