"""
Test Configuration
==================

Pytest fixtures and test configuration for CanvasVideo.
"""

import struct
import zlib
from pathlib import Path
from typing import List, Optional

import pytest

from canvas_video.config import CaptureConfig, Settings, VideoConfig
from canvas_video.errors import ProcessError
from canvas_video.video.process import ProcessResult


def make_png(width: int = 1, height: int = 1, color=(255, 0, 0)) -> bytes:
    """Build a valid RGB PNG of a single solid color."""

    def chunk(tag: bytes, data: bytes) -> bytes:
        crc = zlib.crc32(tag + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", crc)

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    rows = b"".join(b"\x00" + bytes(color) * width for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", header)
        + chunk(b"IDAT", zlib.compress(rows))
        + chunk(b"IEND", b"")
    )


class RecordingAssembler:
    """
    Assembler double that snapshots the frame directory it is given.

    Writes a small placeholder video unless ``fail`` is set, in which case
    that exception is raised.
    """

    def __init__(self, fail: Optional[Exception] = None) -> None:
        self.fail = fail
        self.calls: List[tuple] = []
        self.snapshots: List[dict] = []

    async def convert_frames_to_video(self, session_dir: Path, output_path: Path) -> Path:
        session_dir = Path(session_dir)
        self.calls.append((session_dir, Path(output_path)))
        self.snapshots.append({
            path.name: path.read_bytes() for path in session_dir.iterdir()
        })
        if self.fail is not None:
            raise self.fail
        Path(output_path).write_bytes(b"fake-mp4")
        return Path(output_path)


class FakeRunner:
    """Stands in for run_process when the encoder must not really run."""

    def __init__(self, returncode: int = 0, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.calls: List[list] = []
        self.inputs: List[List[str]] = []

    async def __call__(self, args, timeout=None) -> ProcessResult:
        args = list(args)
        self.calls.append(args)

        input_dir = Path(args[args.index("-i") + 1]).parent
        self.inputs.append(sorted(path.name for path in input_dir.iterdir()))

        if self.returncode != 0:
            raise ProcessError(
                f"{args[0]} exited with code {self.returncode}",
                returncode=self.returncode,
                stderr=self.stderr,
            )

        Path(args[-1]).write_bytes(b"fake-mp4")
        return ProcessResult(
            args=tuple(args),
            returncode=0,
            stdout="progress=end\n",
            stderr="",
        )


@pytest.fixture
def png_factory():
    """Provide the PNG builder."""
    return make_png


@pytest.fixture
def output_root(tmp_path):
    """Provide an empty output root directory."""
    root = tmp_path / "output"
    root.mkdir()
    return root


@pytest.fixture
def settings(output_root):
    """Provide settings writing into the temporary output root."""
    return Settings(
        capture=CaptureConfig(output_dir=str(output_root)),
        video=VideoConfig(probe_dimensions=False),
    )


@pytest.fixture
def recording_assembler():
    """Provide an assembler double that succeeds."""
    return RecordingAssembler()


@pytest.fixture
def fake_runner():
    """Provide a process runner double that succeeds."""
    return FakeRunner()
