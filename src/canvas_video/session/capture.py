"""
Capture Session
===============

Per-connection state machine for receiving frames and assembling a video.

Each connection owns one CaptureSession. Events from the connection are
turned into jobs on a per-session queue and executed in order by a single
worker task:

    on_frame(msg)      -> write frame to <output_root>/<id>/<key>.png
    on_terminate(why)  -> sequence -> encode -> cleanup (once)

Because the terminal job is queued behind every frame received before it,
assembly always sees all of those frames on disk.

Design Rules:
    - RECEIVING -> ASSEMBLING -> DONE, never backwards
    - on_terminate is idempotent; only the first call queues assembly
    - Frames arriving after termination are dropped and counted
    - Frame failures are per message and never end the session
    - Cleanup runs whether or not encoding succeeded
"""

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from canvas_video.errors import AssemblyError, FrameParseError
from canvas_video.models.session import SessionResult, SessionState
from canvas_video.session.directory import (
    create_session_dir,
    delete_frames,
    video_path_for,
)
from canvas_video.stream.receiver import store_frame
from canvas_video.video.sequencer import sort_frame_files


logger = logging.getLogger(__name__)


_TERMINATE = object()


class Assembler(Protocol):
    """Anything that can turn a sequenced frame directory into a video."""

    async def convert_frames_to_video(self, session_dir: Path, output_path: Path) -> Path:
        ...


class CaptureSessionMetrics:
    """Per-session counters."""

    __slots__ = (
        "frames_received",
        "frames_stored",
        "frames_rejected",
        "frames_dropped",
        "duplicate_keys",
    )

    def __init__(self) -> None:
        self.frames_received: int = 0
        self.frames_stored: int = 0
        self.frames_rejected: int = 0
        self.frames_dropped: int = 0
        self.duplicate_keys: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_received": self.frames_received,
            "frames_stored": self.frames_stored,
            "frames_rejected": self.frames_rejected,
            "frames_dropped": self.frames_dropped,
            "duplicate_keys": self.duplicate_keys,
        }


class CaptureSession:
    """
    One client's capture session.

    Attributes:
        session_id: Unique identifier (UUID4 unless given)
        session_dir: Directory holding this session's frames
        video_path: Where the video is written
        state: Current lifecycle state
        metrics: Frame counters
        result: Outcome once the session is DONE, else None

    Example:
        session = CaptureSession(output_root, assembler)
        session.start()

        session.on_frame("0data:image/png;base64,...")
        session.on_terminate("done")

        result = await session.wait_finished()
    """

    def __init__(
        self,
        output_root: Union[str, Path],
        assembler: Assembler,
        session_id: Optional[str] = None,
        on_finished: Optional[Callable[["CaptureSession"], None]] = None,
    ) -> None:
        """
        Initialize a capture session and create its directory.

        Args:
            output_root: Root directory for frames and videos
            assembler: Video assembler used at termination
            session_id: Identifier to use (generated if None)
            on_finished: Called with this session once it reaches DONE
        """
        self.session_id = session_id or str(uuid.uuid4())
        self.assembler = assembler
        self.session_dir = create_session_dir(output_root, self.session_id)
        self.video_path = video_path_for(output_root, self.session_id)

        self.state = SessionState.RECEIVING
        self.metrics = CaptureSessionMetrics()
        self.result: Optional[SessionResult] = None
        self.terminated_by: Optional[str] = None

        self._on_finished = on_finished
        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._stored_keys: set = set()
        self._started_at = time.monotonic()

    def __repr__(self) -> str:
        return f"CaptureSession(id={self.session_id}, state={self.state.value})"

    @property
    def is_receiving(self) -> bool:
        """Whether frames are still accepted."""
        return self.state == SessionState.RECEIVING

    def start(self) -> None:
        """Start the worker task. Must be called from a running event loop."""
        if self._worker is None:
            self._worker = asyncio.create_task(
                self._run(),
                name=f"capture_session_{self.session_id}",
            )

    def on_frame(self, message: Union[str, bytes]) -> bool:
        """
        Queue a frame message for writing.

        Returns:
            True if queued, False if the session is no longer receiving
        """
        if not self.is_receiving:
            self.metrics.frames_dropped += 1
            logger.debug(f"{self.session_id}: Dropped frame received after termination")
            return False

        self.metrics.frames_received += 1
        self._queue.put_nowait(message)
        return True

    def on_terminate(self, reason: str = "close") -> bool:
        """
        End the session and queue the assembly pipeline.

        Only the first call has an effect.

        Args:
            reason: What ended the session ("done", "close", "shutdown")

        Returns:
            True if this call terminated the session
        """
        if not self.is_receiving:
            return False

        self.state = SessionState.ASSEMBLING
        self.terminated_by = reason
        self._queue.put_nowait(_TERMINATE)
        logger.info(
            f"{self.session_id}: Session ended by {reason} "
            f"({self.metrics.frames_received} frames received)"
        )
        return True

    async def wait_finished(self) -> Optional[SessionResult]:
        """
        Wait until the session is DONE.

        Returns:
            SessionResult, or None if the worker was never started
        """
        if self._worker is None:
            return None
        await self._worker
        return self.result

    # -------------------------------------------------------------------------
    # Worker
    # -------------------------------------------------------------------------

    async def _run(self) -> None:
        """Execute queued jobs in order until the terminal job."""
        try:
            while True:
                job = await self._queue.get()
                if job is _TERMINATE:
                    self.result = await self._assemble()
                    break
                await self._store(job)
        finally:
            if self._on_finished is not None:
                self._on_finished(self)

    async def _store(self, message: Union[str, bytes]) -> None:
        """Write a single frame, recording failures without raising."""
        try:
            path = await asyncio.to_thread(store_frame, message, self.session_dir)
        except FrameParseError as e:
            self.metrics.frames_rejected += 1
            logger.warning(f"{self.session_id}: Rejected frame: {e}")
            return
        except OSError as e:
            self.metrics.frames_rejected += 1
            logger.error(f"{self.session_id}: Failed to write frame: {e}")
            return
        except Exception:
            self.metrics.frames_rejected += 1
            logger.exception(f"{self.session_id}: Unexpected error storing frame")
            return

        if path.name in self._stored_keys:
            self.metrics.duplicate_keys += 1
        else:
            self._stored_keys.add(path.name)
        self.metrics.frames_stored += 1

    async def _assemble(self) -> SessionResult:
        """Sequence, encode and clean up. Never raises AssemblyError."""
        frames_sequenced = 0
        video_path: Optional[Path] = None
        error: Optional[str] = None

        try:
            frames_sequenced = await asyncio.to_thread(sort_frame_files, self.session_dir)
            logger.info(f"{self.session_id}: Finished renaming {frames_sequenced} files")

            logger.info(f"{self.session_id}: Converting frames to video...")
            video_path = await self.assembler.convert_frames_to_video(
                self.session_dir,
                self.video_path,
            )
            logger.info(f"{self.session_id}: Created video from frames: {video_path}")

        except AssemblyError as e:
            error = str(e)
            logger.error(f"{self.session_id}: Assembly failed: {e}")
        except OSError as e:
            error = f"Sequencing failed: {e}"
            logger.error(f"{self.session_id}: {error}")
        except Exception as e:
            error = f"Unexpected error: {e}"
            logger.exception(f"{self.session_id}: Assembly pipeline error")
        finally:
            cleaned_up = await asyncio.to_thread(delete_frames, self.session_dir)
            if cleaned_up:
                logger.info(f"{self.session_id}: Deleted frames")
            self.state = SessionState.DONE

        return SessionResult(
            session_id=self.session_id,
            frames_stored=self.metrics.frames_stored,
            frames_rejected=self.metrics.frames_rejected,
            frames_sequenced=frames_sequenced,
            video_path=str(video_path) if video_path else None,
            success=video_path is not None,
            error=error,
            cleaned_up=cleaned_up,
            terminated_by=self.terminated_by,
            duration_seconds=round(time.monotonic() - self._started_at, 3),
        )
