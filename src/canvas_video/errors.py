"""
Errors
======

Exception hierarchy shared by the capture and assembly pipeline.

    CanvasVideoError
    ├── FrameParseError      malformed frame message (also a ValueError)
    ├── ProcessError         external process failed to spawn, exit or finish
    └── AssemblyError        video could not be produced for a session
        ├── NoFramesError
        ├── ProbeError
        └── EncodingError
"""

from typing import Optional


class CanvasVideoError(Exception):
    """Base class for all CanvasVideo errors."""
    pass


class FrameParseError(CanvasVideoError, ValueError):
    """Raised when a frame message cannot be parsed or decoded."""
    pass


class ProcessError(CanvasVideoError):
    """
    Raised when an external process fails.

    Attributes:
        returncode: Exit code, or None if the process never ran to completion
        stderr: Captured standard error (may be empty)
    """

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class AssemblyError(CanvasVideoError):
    """Raised when frames cannot be assembled into a video."""
    pass


class NoFramesError(AssemblyError):
    """Raised when a session has no frames to encode."""
    pass


class ProbeError(AssemblyError):
    """Raised when frame dimensions cannot be determined."""
    pass


class EncodingError(AssemblyError):
    """Raised when the video encoder fails."""
    pass
