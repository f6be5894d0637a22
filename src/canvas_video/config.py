"""
CanvasVideo Configuration
=========================

This module handles configuration loading for the frame capture server.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    CANVAS_VIDEO_HOST          -> server.host
    CANVAS_VIDEO_PORT          -> server.port
    PORT                       -> server.port (takes precedence)
    CANVAS_VIDEO_OUTPUT_DIR    -> capture.output_dir
    CANVAS_VIDEO_FPS           -> video.fps
    CANVAS_VIDEO_CRF           -> video.crf
    CANVAS_VIDEO_PROBE_BACKEND -> video.probe_backend
    CANVAS_VIDEO_FFMPEG        -> video.ffmpeg_path
    CANVAS_VIDEO_LOG_LEVEL     -> logging.level

Configuration is read once at startup and passed explicitly to the
application factory; nothing is reloaded while the server runs.

Example:
    from canvas_video.config import load_config

    settings = load_config()
    print(settings.server.port)
    print(settings.capture.output_dir)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=7000, ge=1, le=65535, description="Bind port")


class CaptureConfig(BaseModel):
    """Frame capture configuration."""

    output_dir: str = Field(
        default="output",
        description="Root directory for session frames and produced videos",
    )
    done_message: str = Field(
        default="done",
        min_length=1,
        description="Reserved message that ends a session without disconnecting",
    )


class VideoConfig(BaseModel):
    """Video assembly configuration."""

    fps: int = Field(default=60, ge=1, le=240, description="Output frame rate")
    codec: str = Field(default="libx264", description="ffmpeg video codec")
    crf: int = Field(
        default=18,
        ge=0,
        le=51,
        description="Constant rate factor (lower is higher quality)",
    )
    pixel_format: Optional[str] = Field(
        default=None,
        description="Output pixel format, e.g. 'yuv420p' (None = encoder default)",
    )
    probe_dimensions: bool = Field(
        default=True,
        description="Probe the first frame and pass its size to the encoder",
    )
    probe_backend: Literal["file", "opencv"] = Field(
        default="file",
        description="Dimension probe: 'file' utility or in-process 'opencv'",
    )
    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable")
    file_path: str = Field(default="file", description="file(1) executable")
    encode_timeout_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Kill the encoder after this many seconds (0 = no timeout)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for CanvasVideo.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    video: VideoConfig = Field(default_factory=VideoConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Server settings (PORT wins for container platforms)
    if env_host := os.environ.get("CANVAS_VIDEO_HOST"):
        config_data.setdefault("server", {})["host"] = env_host
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("CANVAS_VIDEO_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Capture settings
    if env_out := os.environ.get("CANVAS_VIDEO_OUTPUT_DIR"):
        config_data.setdefault("capture", {})["output_dir"] = env_out

    # Video settings
    if env_fps := os.environ.get("CANVAS_VIDEO_FPS"):
        config_data.setdefault("video", {})["fps"] = int(env_fps)
    if env_crf := os.environ.get("CANVAS_VIDEO_CRF"):
        config_data.setdefault("video", {})["crf"] = int(env_crf)
    if env_probe := os.environ.get("CANVAS_VIDEO_PROBE_BACKEND"):
        config_data.setdefault("video", {})["probe_backend"] = env_probe
    if env_ffmpeg := os.environ.get("CANVAS_VIDEO_FFMPEG"):
        config_data.setdefault("video", {})["ffmpeg_path"] = env_ffmpeg

    # Logging settings
    if env_log := os.environ.get("CANVAS_VIDEO_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
