"""
Video access using OpenCV.

Probes upload metadata (duration bounds the fallback and quick-mode
grids) and reads single frames for the OpenCV frame backend.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

LOGGER = logging.getLogger(__name__)


@dataclass
class VideoMetadata:
    """Metadata extracted from video file."""
    width: int
    height: int
    fps: float
    total_frames: int
    duration_seconds: float
    file_path: str


class VideoProcessor:
    """
    Thin wrapper over ``cv2.VideoCapture`` with metadata and seeking.

    Frames are returned at full resolution; hotspot coordinates are
    defined in full-resolution space.
    """

    def __init__(self):
        self._capture: Optional[cv2.VideoCapture] = None
        self._metadata: Optional[VideoMetadata] = None

    def load_video(self, video_path: str) -> VideoMetadata:
        """
        Open a video file and extract metadata.

        Args:
            video_path: Path to the video file

        Returns:
            VideoMetadata object with video properties

        Raises:
            FileNotFoundError: If video file doesn't exist
            ValueError: If video cannot be opened
        """
        path = Path(video_path)
        if not path.exists():
            raise FileNotFoundError(f"Video file not found: {video_path}")

        self._capture = cv2.VideoCapture(str(path))

        if not self._capture.isOpened():
            self._capture = None
            raise ValueError(f"Cannot open video file: {video_path}")

        width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = self._capture.get(cv2.CAP_PROP_FPS)
        total_frames = int(self._capture.get(cv2.CAP_PROP_FRAME_COUNT))
        duration = total_frames / fps if fps > 0 else 0.0

        self._metadata = VideoMetadata(
            width=width,
            height=height,
            fps=fps,
            total_frames=total_frames,
            duration_seconds=duration,
            file_path=str(path)
        )
        return self._metadata

    def get_frame_at(self, frame_number: int) -> Optional[np.ndarray]:
        """
        Get a specific frame by number.

        Args:
            frame_number: The frame number to retrieve

        Returns:
            Frame as numpy array, or None if frame cannot be read
        """
        if self._capture is None:
            raise RuntimeError("Video not loaded. Call load_video() first.")

        self._capture.set(cv2.CAP_PROP_POS_FRAMES, frame_number)
        ret, frame = self._capture.read()

        if not ret:
            return None
        return frame

    def get_frame_at_time(self, seconds: float) -> Optional[np.ndarray]:
        """
        Get frame at a specific timestamp.

        Args:
            seconds: Time in seconds

        Returns:
            Frame as numpy array, or None if frame cannot be read
        """
        if self._metadata is None:
            raise RuntimeError("Video not loaded. Call load_video() first.")

        frame_number = int(max(seconds, 0.0) * self._metadata.fps)
        if self._metadata.total_frames and frame_number >= self._metadata.total_frames:
            return None
        return self.get_frame_at(frame_number)

    def release(self):
        """Release video capture resources."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            self._metadata = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


def probe_metadata(video_path: Path) -> Optional[VideoMetadata]:
    """
    Read metadata for a video, or None when OpenCV cannot open it.
    """
    with VideoProcessor() as processor:
        try:
            return processor.load_video(str(video_path))
        except (FileNotFoundError, ValueError) as exc:
            LOGGER.warning("Could not probe video metadata: %s", exc)
            return None
