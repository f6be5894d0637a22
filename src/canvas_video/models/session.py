"""
Session Models
==============

State and outcome of a capture session.

Lifecycle:
    RECEIVING  -> frames are accepted and written to disk
    ASSEMBLING -> terminated; sequencing, encoding and cleanup in progress
    DONE       -> pipeline finished (successfully or not)

A session leaves RECEIVING exactly once, either on the client's explicit
end-of-session message or on connection close, whichever comes first.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """
    Discrete lifecycle states of a capture session.

    Attributes:
        RECEIVING: Accepting frames
        ASSEMBLING: Terminated, assembly pipeline running
        DONE: Pipeline finished, session directory removed
    """

    RECEIVING = "RECEIVING"
    ASSEMBLING = "ASSEMBLING"
    DONE = "DONE"


class SessionResult(BaseModel):
    """
    Outcome of a finished capture session.

    Attributes:
        session_id: Unique session identifier
        frames_stored: Frame messages written to disk
        frames_rejected: Malformed or unwritable frame messages
        frames_sequenced: Frames renamed into the encoder sequence
        video_path: Path of the produced video (None on failure)
        success: Whether a video was produced
        error: Error description if assembly failed
        cleaned_up: Whether the frame directory was removed
        terminated_by: What ended the session ("done" or "close")
        duration_seconds: Time from session start to pipeline end
    """

    session_id: str
    frames_stored: int = Field(default=0, ge=0)
    frames_rejected: int = Field(default=0, ge=0)
    frames_sequenced: int = Field(default=0, ge=0)
    video_path: Optional[str] = None
    success: bool = False
    error: Optional[str] = None
    cleaned_up: bool = False
    terminated_by: Optional[str] = None
    duration_seconds: float = Field(default=0.0, ge=0)
