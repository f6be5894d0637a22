"""
Models Module
=============

Pydantic models and enums shared across CanvasVideo.
"""

from canvas_video.models.session import SessionResult, SessionState


__all__ = [
    "SessionResult",
    "SessionState",
]
