"""
Frame Sequencer
===============

Renames stored frames into the contiguous sequence ffmpeg expects.

Frames are stored as ``<key>.png`` where keys are arbitrary increasing
numbers (``3.png, 5.png, 10.png``). The image2 demuxer reads ``%d.png``
starting from 0, so the files are sorted by numeric key and renamed to
``0.png, 1.png, 2.png``.

Renaming goes through a temporary ``.seq-<index>.png`` name first, so no
rename ever targets a name still held by another frame.
"""

import logging
from pathlib import Path
from typing import List, Tuple, Union

from canvas_video.errors import FrameParseError
from canvas_video.stream.frame import parse_key


logger = logging.getLogger(__name__)


_TEMP_PREFIX = ".seq-"


def frame_key(path: Path) -> int:
    """
    Numeric ordering key of a stored frame file.

    Uses the same rule as incoming frame keys: ASCII digits only.

    Raises:
        FrameParseError: If the filename stem is not a valid key
    """
    return parse_key(path.stem)


def list_frames(session_dir: Union[str, Path]) -> List[Tuple[int, Path]]:
    """
    List stored frames sorted by numeric key.

    Files whose name is not ``<integer>.png`` are skipped with a warning.

    Returns:
        (key, path) pairs in ascending key order
    """
    frames = []
    for path in Path(session_dir).glob("*.png"):
        if path.name.startswith(_TEMP_PREFIX):
            continue
        try:
            frames.append((frame_key(path), path))
        except FrameParseError:
            logger.warning(f"Skipping frame with non-numeric name: {path.name}")

    frames.sort(key=lambda item: item[0])
    return frames


def sort_frame_files(session_dir: Union[str, Path]) -> int:
    """
    Rename frames to a zero-based contiguous sequence in key order.

    The i-th smallest key becomes ``<i>.png``. An empty directory is not an
    error.

    Args:
        session_dir: Session directory holding ``<key>.png`` files

    Returns:
        Number of frames in the sequence
    """
    session_dir = Path(session_dir)
    frames = list_frames(session_dir)

    staged = []
    for index, (_, path) in enumerate(frames):
        temp_path = session_dir / f"{_TEMP_PREFIX}{index}.png"
        path.rename(temp_path)
        staged.append(temp_path)

    for index, temp_path in enumerate(staged):
        temp_path.rename(session_dir / f"{index}.png")

    return len(staged)
