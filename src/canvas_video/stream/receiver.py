"""
Frame Receiver
==============

Writes incoming frame messages to a session directory.

Each call parses one message and writes the decoded PNG to
``<session_dir>/<key>.png``. A frame arriving with a key that was already
stored replaces the earlier file.

Design Rules:
    - One file write per call, no retries
    - Parse failures raise FrameParseError, I/O failures raise OSError
    - Blocking; callers on the event loop should use asyncio.to_thread
"""

import logging
from pathlib import Path
from typing import Union

from canvas_video.stream.frame import Frame, parse_frame_message


logger = logging.getLogger(__name__)


def write_frame(frame: Frame, session_dir: Path) -> Path:
    """
    Write a decoded frame to the session directory.

    Args:
        frame: Parsed frame
        session_dir: Session storage directory (must exist)

    Returns:
        Path of the written file
    """
    path = Path(session_dir) / frame.filename
    if path.exists():
        logger.warning(f"Duplicate frame key {frame.key}, overwriting {path.name}")
    path.write_bytes(frame.data)
    return path


def store_frame(message: Union[str, bytes], session_dir: Path) -> Path:
    """
    Parse a frame message and write it to the session directory.

    Args:
        message: Raw ``<key>data:image/png;base64,<payload>`` message
        session_dir: Session storage directory (must exist)

    Returns:
        Path of the written file

    Raises:
        FrameParseError: If the message is malformed
        OSError: If the file cannot be written
    """
    return write_frame(parse_frame_message(message), session_dir)
