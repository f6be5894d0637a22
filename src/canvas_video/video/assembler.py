"""
Video Assembler
===============

Encodes a sequenced frame directory into a video with ffmpeg.

Expects frames named ``0.png .. (n-1).png`` (see sequencer). The encoder is
invoked as:

    ffmpeg -y -r <fps> -f image2 [-s WxH] -i <dir>/%d.png
           -vcodec <codec> -crf <crf> [-pix_fmt <fmt>]
           -progress pipe:1 <output>

The arguments are order sensitive: everything before ``-i`` applies to the
input, everything after it to the output.

Design Rules:
    - One encoder process per session (plus one probe process)
    - Blocking from the session's point of view, no retries
    - A partial output file may remain after a failure
"""

import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Tuple

from canvas_video.config import VideoConfig
from canvas_video.errors import EncodingError, NoFramesError, ProcessError
from canvas_video.video.probe import DimensionProbe, create_probe
from canvas_video.video.process import ProcessResult, run_process


logger = logging.getLogger(__name__)


ProcessRunner = Callable[..., Awaitable[ProcessResult]]

INPUT_PATTERN = "%d.png"


def build_ffmpeg_args(
    config: VideoConfig,
    session_dir: Path,
    output_path: Path,
    dimensions: Optional[Tuple[int, int]] = None,
) -> List[str]:
    """
    Build the ffmpeg command line.

    Args:
        config: Video settings
        session_dir: Directory holding the sequenced frames
        output_path: Video file to produce
        dimensions: (width, height) to pass as -s, or None to let ffmpeg
            read it from the frames

    Returns:
        Full argument list including the executable
    """
    args = [
        config.ffmpeg_path,
        "-y",
        "-r", str(config.fps),
        "-f", "image2",
    ]
    if dimensions is not None:
        width, height = dimensions
        args += ["-s", f"{width}x{height}"]
    args += [
        "-i", str(Path(session_dir) / INPUT_PATTERN),
        "-vcodec", config.codec,
        "-crf", str(config.crf),
    ]
    if config.pixel_format:
        args += ["-pix_fmt", config.pixel_format]
    args += [
        "-progress", "pipe:1",
        str(output_path),
    ]
    return args


def _stderr_tail(stderr: str, lines: int = 5) -> str:
    """Last few lines of encoder stderr for log messages."""
    return "\n".join(stderr.strip().splitlines()[-lines:])


class VideoAssembler:
    """
    Turns a directory of sequenced frames into a video.

    Attributes:
        config: Video settings
        probe: Dimension probe, or None when probing is disabled
    """

    def __init__(
        self,
        config: VideoConfig,
        probe: Optional[DimensionProbe] = None,
        runner: ProcessRunner = run_process,
    ) -> None:
        """
        Initialize video assembler.

        Args:
            config: Video settings
            probe: Dimension probe. If None and config.probe_dimensions is
                set, one is created from config.probe_backend.
            runner: Coroutine used to run ffmpeg (replaceable in tests)
        """
        self.config = config
        if probe is None and config.probe_dimensions:
            probe = create_probe(config.probe_backend, config.file_path)
        self.probe = probe if config.probe_dimensions else None
        self._runner = runner

    async def get_frame_dimensions(self, session_dir: Path) -> Optional[Tuple[int, int]]:
        """
        Probe the first frame for (width, height).

        Returns:
            Dimensions, or None when probing is disabled

        Raises:
            ProbeError: If the dimensions cannot be determined
        """
        if self.probe is None:
            return None
        return await self.probe.probe(Path(session_dir) / "0.png")

    async def convert_frames_to_video(
        self,
        session_dir: Path,
        output_path: Path,
    ) -> Path:
        """
        Encode ``<session_dir>/%d.png`` into ``output_path``.

        Args:
            session_dir: Directory holding sequenced frames
            output_path: Video file to produce

        Returns:
            output_path on success

        Raises:
            NoFramesError: If there is no ``0.png`` to start from
            ProbeError: If dimension probing fails
            EncodingError: If ffmpeg cannot be run or exits with an error
        """
        session_dir = Path(session_dir)
        output_path = Path(output_path)

        if not (session_dir / "0.png").is_file():
            raise NoFramesError(f"No frames to encode in {session_dir}")

        dimensions = await self.get_frame_dimensions(session_dir)

        args = build_ffmpeg_args(self.config, session_dir, output_path, dimensions)
        timeout = self.config.encode_timeout_seconds or None

        started = time.monotonic()
        try:
            await self._runner(args, timeout=timeout)
        except ProcessError as e:
            if e.stderr:
                logger.error(f"ffmpeg output:\n{_stderr_tail(e.stderr)}")
            raise EncodingError(f"Error converting frames: {e}")

        logger.debug(f"Encoded {output_path.name} in {time.monotonic() - started:.1f}s")
        return output_path
