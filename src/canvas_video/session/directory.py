"""
Session Directories
===================

Storage namespace management for capture sessions.

Filesystem layout:
    <output_root>/<session_id>/<key>.png     while receiving
    <output_root>/<session_id>/<index>.png   after sequencing
    <output_root>/<session_id>.mp4           final video (outlives the session)
"""

import logging
import shutil
from pathlib import Path
from typing import Union


logger = logging.getLogger(__name__)


def create_session_dir(output_root: Union[str, Path], session_id: str) -> Path:
    """
    Create the frame directory for a session.

    Parent directories are created as needed; an existing directory is
    reused.

    Returns:
        Path of the session directory
    """
    session_dir = Path(output_root) / session_id
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def video_path_for(output_root: Union[str, Path], session_id: str) -> Path:
    """Path of the video produced for a session."""
    return Path(output_root) / f"{session_id}.mp4"


def delete_frames(session_dir: Union[str, Path]) -> bool:
    """
    Recursively remove a session directory.

    Never raises: a failure is logged and reported through the return
    value so that the session can still finish.

    Returns:
        True if the directory is gone, False if removal failed
    """
    session_dir = Path(session_dir)
    try:
        shutil.rmtree(session_dir)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.error(f"Failed to delete frames in {session_dir}: {e}")
        return False
    return True
