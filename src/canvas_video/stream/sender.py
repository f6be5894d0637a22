"""
Frame Sender
============

WebSocket client for sending frames to a CanvasVideo server.

This is the Python counterpart of the browser capture loop:

    let frameIndex = 0
    function render () {
      websocketClient.send((frameIndex++) + canvas.toDataURL('image/png'))
    }

Used by scripts/send_frames.py and by integration tests.

Example:
    async with FrameSender("ws://localhost:7000/ws/frames") as sender:
        for index, png in enumerate(frames):
            await sender.send_frame(index, png)
        await sender.finish()
"""

import logging
from typing import Iterable, Optional, Tuple

import websockets

from canvas_video.stream.frame import encode_frame_message


logger = logging.getLogger(__name__)


class FrameSender:
    """
    Async WebSocket client that sends PNG frames.

    Attributes:
        url: WebSocket URL of the capture endpoint
        done_message: Reserved message that ends the session
        frames_sent: Number of frames sent on this connection
    """

    def __init__(self, url: str, done_message: str = "done") -> None:
        """
        Initialize frame sender.

        Args:
            url: WebSocket URL of the capture endpoint
            done_message: Reserved end-of-session message
        """
        self.url = url
        self.done_message = done_message
        self.frames_sent: int = 0

        self._websocket: Optional[object] = None

    @property
    def connected(self) -> bool:
        """Whether a connection is open."""
        return self._websocket is not None

    async def connect(self) -> None:
        """Open the WebSocket connection."""
        self._websocket = await websockets.connect(self.url, close_timeout=5)
        logger.info(f"Connected to capture server: {self.url}")

    async def send_frame(self, key: int, png_bytes: bytes) -> None:
        """
        Send one frame.

        Args:
            key: Ordering key for the frame
            png_bytes: Raw PNG image data
        """
        if self._websocket is None:
            raise RuntimeError("FrameSender is not connected")
        await self._websocket.send(encode_frame_message(key, png_bytes))
        self.frames_sent += 1

    async def send_frames(self, frames: Iterable[Tuple[int, bytes]]) -> int:
        """
        Send (key, png_bytes) pairs in the given order.

        Returns:
            Number of frames sent by this call
        """
        count = 0
        for key, png_bytes in frames:
            await self.send_frame(key, png_bytes)
            count += 1
        return count

    async def finish(self) -> None:
        """Send the end-of-session message."""
        if self._websocket is None:
            raise RuntimeError("FrameSender is not connected")
        await self._websocket.send(self.done_message)
        logger.info(f"Sent end of session after {self.frames_sent} frames")

    async def close(self) -> None:
        """Close the connection (also ends the session server-side)."""
        if self._websocket is not None:
            await self._websocket.close()
            self._websocket = None
            logger.info("Disconnected from capture server")

    async def __aenter__(self) -> "FrameSender":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        """Async context manager exit."""
        await self.close()
