"""
Session Module
==============

Capture session lifecycle.

Components:
    - CaptureSession: per-connection state machine and task queue
    - SessionRegistry: live sessions, metrics and graceful shutdown
    - create_session_dir / delete_frames: session storage namespace
"""

from canvas_video.session.directory import (
    create_session_dir,
    delete_frames,
    video_path_for,
)
from canvas_video.session.capture import (
    Assembler,
    CaptureSession,
    CaptureSessionMetrics,
)
from canvas_video.session.registry import RegistryMetrics, SessionRegistry


__all__ = [
    "create_session_dir",
    "delete_frames",
    "video_path_for",
    "Assembler",
    "CaptureSession",
    "CaptureSessionMetrics",
    "RegistryMetrics",
    "SessionRegistry",
]
