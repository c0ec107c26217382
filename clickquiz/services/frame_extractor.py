"""
Point-in-time frame extraction backends.

Each backend writes one still image for a timestamp and reports success.
Failures are returned as False, never raised: the sampler skips the
event and moves on.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Protocol

import cv2

from clickquiz.services.video_processor import VideoProcessor

LOGGER = logging.getLogger(__name__)


class FrameExtractor(Protocol):
    """Protocol for frame extraction backends."""

    def extract(self, video_path: Path, timestamp: float, output_path: Path) -> bool:
        """Write the frame at ``timestamp`` to ``output_path``; True on success."""
        ...


class FFmpegFrameExtractor:
    """Extracts frames with one ffmpeg process per timestamp."""

    def __init__(self, ffmpeg_binary: str = "ffmpeg", timeout: Optional[float] = 30.0):
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout = timeout

    def extract(self, video_path: Path, timestamp: float, output_path: Path) -> bool:
        cmd = [
            self.ffmpeg_binary,
            "-hide_banner", "-loglevel", "error",
            "-ss", f"{max(timestamp, 0.0):.3f}",
            "-i", str(video_path),
            "-frames:v", "1",
            "-q:v", "2",
            "-y",
            str(output_path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=self.timeout)
        except FileNotFoundError:
            LOGGER.error("ffmpeg binary not found: %s", self.ffmpeg_binary)
            return False
        except subprocess.TimeoutExpired:
            LOGGER.warning("Frame extraction at %.2fs timed out after %ss", timestamp, self.timeout)
            return False

        if result.returncode != 0:
            return False
        return output_path.exists() and output_path.stat().st_size > 0


class OpenCVFrameExtractor:
    """
    Extracts frames by seeking with OpenCV.

    The capture is reopened per call so a single extractor can be shared
    between uploads.
    """

    def extract(self, video_path: Path, timestamp: float, output_path: Path) -> bool:
        with VideoProcessor() as processor:
            try:
                processor.load_video(str(video_path))
            except (FileNotFoundError, ValueError) as exc:
                LOGGER.warning("Cannot open %s: %s", video_path.name, exc)
                return False

            frame = processor.get_frame_at_time(timestamp)
            if frame is None:
                return False
            return bool(cv2.imwrite(str(output_path), frame))


def build_frame_extractor(
    backend: str,
    ffmpeg_binary: str = "ffmpeg",
    timeout: Optional[float] = 30.0
) -> FrameExtractor:
    """
    Create the frame extraction backend named in settings.

    Args:
        backend: "ffmpeg" or "opencv"
        ffmpeg_binary: ffmpeg executable (ffmpeg backend only)
        timeout: Per-call timeout in seconds (ffmpeg backend only)
    """
    if backend == "ffmpeg":
        return FFmpegFrameExtractor(ffmpeg_binary=ffmpeg_binary, timeout=timeout)
    if backend == "opencv":
        return OpenCVFrameExtractor()
    raise ValueError(f"Unknown frame backend: {backend}")
