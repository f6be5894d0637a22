"""
Stream Module
=============

Frame message handling on both ends of the WebSocket.

This module provides the ingestion layer for CanvasVideo:
    - Frame: Typed frame data model (key + decoded PNG bytes)
    - parse_frame_message / encode_frame_message: wire format
    - store_frame: parse a message and write it to a session directory
    - FrameSender: WebSocket client that sends frames

Example:
    from canvas_video.stream import store_frame

    path = store_frame("3data:image/png;base64,iVBORw0KGgo...", session_dir)
"""

from canvas_video.stream.frame import (
    PNG_DATA_URL_MARKER,
    Frame,
    encode_frame_message,
    parse_frame_message,
)
from canvas_video.stream.receiver import store_frame, write_frame
from canvas_video.stream.sender import FrameSender


__all__ = [
    "PNG_DATA_URL_MARKER",
    "Frame",
    "encode_frame_message",
    "parse_frame_message",
    "store_frame",
    "write_frame",
    "FrameSender",
]
