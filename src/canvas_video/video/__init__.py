"""
Video Module
============

Frame sequencing and video assembly.

Components:
    - sort_frame_files: rename ``<key>.png`` frames to ``0.png .. (n-1).png``
    - VideoAssembler: probe dimensions and run ffmpeg over the sequence
    - FileCommandProbe / OpenCVProbe: frame dimension backends
    - run_process: run an external program to completion
"""

from canvas_video.video.sequencer import list_frames, sort_frame_files
from canvas_video.video.process import ProcessResult, run_process
from canvas_video.video.probe import (
    DimensionProbe,
    FileCommandProbe,
    OpenCVProbe,
    create_probe,
)
from canvas_video.video.assembler import VideoAssembler, build_ffmpeg_args


__all__ = [
    "list_frames",
    "sort_frame_files",
    "ProcessResult",
    "run_process",
    "DimensionProbe",
    "FileCommandProbe",
    "OpenCVProbe",
    "create_probe",
    "VideoAssembler",
    "build_ffmpeg_args",
]
