"""
CanvasVideo
===========

Turn a stream of PNG frames sent over a WebSocket into a single video file.

A client connects, sends frames as ``<key>data:image/png;base64,<payload>``
messages (the key being any increasing number, like a frame index or a
timestamp), and disconnects or sends ``done``. The server stores each frame
on disk, reorders the frames by key, encodes them with ffmpeg and removes
the intermediate images.

Components:
    - stream: frame message parsing, storage and the WebSocket sender
    - session: per-connection capture sessions and their directories
    - video: frame sequencing, dimension probing and ffmpeg assembly

Example:
    from canvas_video.config import load_config
    from canvas_video.main import create_app

    app = create_app(load_config())
"""

__version__ = "0.1.0"
__author__ = "CanvasVideo Project"

__all__ = [
    "__version__",
]
