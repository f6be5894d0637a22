"""
Frame Data Model
=================

Internal frame representation for the capture pipeline.

A frame message on the wire is a numeric ordering key immediately followed
by a PNG data-URL:

    42data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAA...

This module defines the typed Frame class and the parser that turns such a
message into one.

Design Rules:
    - Split happens on the FIRST occurrence of the data-URL marker
    - Keys must be non-negative integers; anything else is rejected
    - Payload is strictly base64-decoded; image content is NOT inspected
"""

import base64
import re
from dataclasses import dataclass
from typing import Union

from canvas_video.errors import FrameParseError


PNG_DATA_URL_MARKER = "data:image/png;base64,"

_KEY_PATTERN = re.compile(r"[0-9]+")
_MAX_KEY_DIGITS = 64


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Decoded frame received from a client.

    Attributes:
        key: Client-supplied ordering key (frame index, timestamp, ...)
        data: Raw PNG bytes
    """

    key: int
    data: bytes

    @property
    def filename(self) -> str:
        """Storage filename, using the canonical decimal form of the key."""
        return f"{self.key}.png"

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        return f"Frame(key={self.key}, size={len(self.data)})"


def parse_key(raw_key: str) -> int:
    """
    Parse an ordering key.

    Keys are non-negative integers written with ASCII digits only. The same
    rule applies to stored frame filenames.

    Raises:
        FrameParseError: If the key is empty, has other characters, or is
            longer than _MAX_KEY_DIGITS
    """
    if len(raw_key) > _MAX_KEY_DIGITS:
        raise FrameParseError(
            f"Invalid ordering key: {len(raw_key)} characters, at most {_MAX_KEY_DIGITS} allowed"
        )
    if not _KEY_PATTERN.fullmatch(raw_key):
        raise FrameParseError(f"Invalid ordering key: {raw_key!r}")
    return int(raw_key)


def parse_frame_message(message: Union[str, bytes]) -> Frame:
    """
    Parse a raw frame message into a Frame.

    Args:
        message: ``<key>data:image/png;base64,<payload>`` as text or
            UTF-8 bytes

    Returns:
        Frame with the integer key and decoded image bytes

    Raises:
        FrameParseError: If the marker is missing, the key is not a
            non-negative integer, or the payload is not valid base64
    """
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrameParseError(f"Frame message is not valid UTF-8: {e}")

    raw_key, marker, payload = message.partition(PNG_DATA_URL_MARKER)
    if not marker:
        raise FrameParseError("Frame message is missing the PNG data-URL marker")

    raw_key = raw_key.strip()
    key = parse_key(raw_key)

    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except ValueError as e:
        raise FrameParseError(f"Base64 decode failed for frame {raw_key}: {e}")

    if not data:
        raise FrameParseError(f"Empty image payload for frame {raw_key}")

    return Frame(key=key, data=data)


def encode_frame_message(key: int, png_bytes: bytes) -> str:
    """
    Build a frame message the way a browser client would.

    Equivalent to ``key + canvas.toDataURL('image/png')`` in JavaScript.
    """
    return f"{key}{PNG_DATA_URL_MARKER}{base64.b64encode(png_bytes).decode('ascii')}"
