"""
Session Registry
================

Tracks live capture sessions for one server process.

Sessions never share state beyond the output root, where each one uses its
own subdirectory. The registry exists for observability (metrics, recent
results) and for graceful shutdown, where every live session is terminated
and its pipeline awaited.
"""

import asyncio
import logging
from collections import deque
from pathlib import Path
from typing import Deque, Dict, List, Optional

from canvas_video.config import Settings
from canvas_video.models.session import SessionResult
from canvas_video.session.capture import Assembler, CaptureSession
from canvas_video.video.assembler import VideoAssembler


logger = logging.getLogger(__name__)


class RegistryMetrics:
    """Process-wide session counters."""

    __slots__ = (
        "sessions_opened",
        "sessions_finished",
        "videos_created",
        "assembly_failures",
        "cleanup_failures",
        "frames_stored",
        "frames_rejected",
    )

    def __init__(self) -> None:
        self.sessions_opened: int = 0
        self.sessions_finished: int = 0
        self.videos_created: int = 0
        self.assembly_failures: int = 0
        self.cleanup_failures: int = 0
        self.frames_stored: int = 0
        self.frames_rejected: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {name: getattr(self, name) for name in self.__slots__}


class SessionRegistry:
    """
    Creates and tracks capture sessions.

    Attributes:
        output_root: Absolute root directory for frames and videos
        assembler: Assembler shared by all sessions (stateless)
        metrics: Process-wide counters
    """

    def __init__(
        self,
        settings: Settings,
        assembler: Optional[Assembler] = None,
        history_size: int = 100,
    ) -> None:
        """
        Initialize session registry.

        Args:
            settings: Loaded settings
            assembler: Assembler to use (built from settings.video if None)
            history_size: Number of finished session results to keep
        """
        self.output_root = Path(settings.capture.output_dir).resolve()
        self.output_root.mkdir(parents=True, exist_ok=True)
        self.assembler = assembler or VideoAssembler(settings.video)
        self.metrics = RegistryMetrics()

        self._sessions: Dict[str, CaptureSession] = {}
        self._results: Deque[SessionResult] = deque(maxlen=history_size)

    @property
    def active_count(self) -> int:
        """Number of sessions not yet DONE."""
        return len(self._sessions)

    def recent_results(self) -> List[SessionResult]:
        """Finished session results, oldest first."""
        return list(self._results)

    def open_session(self) -> CaptureSession:
        """Create, register and start a new session."""
        session = CaptureSession(
            self.output_root,
            self.assembler,
            on_finished=self._on_session_finished,
        )
        self._sessions[session.session_id] = session
        self.metrics.sessions_opened += 1
        session.start()
        return session

    def _on_session_finished(self, session: CaptureSession) -> None:
        self._sessions.pop(session.session_id, None)
        self.metrics.sessions_finished += 1

        result = session.result
        if result is None:
            self.metrics.assembly_failures += 1
            return

        self._results.append(result)
        self.metrics.frames_stored += result.frames_stored
        self.metrics.frames_rejected += result.frames_rejected
        if result.success:
            self.metrics.videos_created += 1
        else:
            self.metrics.assembly_failures += 1
        if not result.cleaned_up:
            self.metrics.cleanup_failures += 1

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        Terminate every live session and wait for its pipeline.

        Args:
            timeout: Seconds to wait before giving up (None = wait forever)
        """
        sessions = list(self._sessions.values())
        if not sessions:
            return

        logger.info(f"Finishing {len(sessions)} active session(s)...")
        for session in sessions:
            session.on_terminate("shutdown")

        waiters = asyncio.gather(
            *(session.wait_finished() for session in sessions),
            return_exceptions=True,
        )
        try:
            await asyncio.wait_for(waiters, timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Timed out waiting for {self.active_count} session(s)")
