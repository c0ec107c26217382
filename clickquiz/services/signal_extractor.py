"""
Signal extraction using ffmpeg analysis filters.

Runs two ffmpeg passes over an uploaded video and parses their log
output into raw observation streams:

- ``silencedetect`` on the audio track -> silence boundary markers
- ``select='gt(scene,T)',metadata=print`` on the video track -> scene changes

Any failure of the external process degrades to an empty stream. The
pipeline falls back to a fixed sampling grid when no speech is found.
"""

import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from clickquiz.config import PipelineConfig
from clickquiz.services.events import SceneChange, SilenceKind, SilenceMarker

LOGGER = logging.getLogger(__name__)

_SILENCE_RE = re.compile(r"(silence_start|silence_end):\s*(-?[\d.]+)")
_PTS_TIME_RE = re.compile(r"pts_time:\s*(-?[\d.]+)")
_SCENE_INLINE_RE = re.compile(r"\bscene:\s*([\d.]+)")
_SCENE_METADATA_RE = re.compile(r"lavfi\.scene_score=([\d.]+)")


@dataclass
class SignalStreams:
    """Raw observation streams for one video."""
    # None means the audio analysis produced no usable data at all
    silence_markers: Optional[list[SilenceMarker]] = None
    scene_changes: list[SceneChange] = field(default_factory=list)


def parse_silence_log(lines: Iterable[str]) -> list[SilenceMarker]:
    """
    Parse silencedetect output into silence markers, in log order.

    Args:
        lines: ffmpeg stderr lines

    Returns:
        List of silence start/end markers
    """
    markers = []
    for line in lines:
        match = _SILENCE_RE.search(line)
        if not match:
            continue
        try:
            timestamp = float(match.group(2))
        except ValueError:
            continue
        markers.append(SilenceMarker(kind=SilenceKind(match.group(1)), timestamp=timestamp))
    return markers


def parse_scene_log(lines: Iterable[str]) -> list[SceneChange]:
    """
    Parse scene-change output into (timestamp, score) observations.

    Accepts both the single-line form (``pts_time:T ... scene:S``) and the
    two-line ``metadata=print`` form where a ``pts_time`` line precedes
    ``lavfi.scene_score=S``.

    Args:
        lines: ffmpeg stderr lines

    Returns:
        List of scene changes, in log order
    """
    changes = []
    pending_time: Optional[float] = None

    for line in lines:
        time_match = _PTS_TIME_RE.search(line)
        inline_match = _SCENE_INLINE_RE.search(line)

        if time_match and inline_match:
            changes.append(SceneChange(
                timestamp=float(time_match.group(1)),
                scene_score=float(inline_match.group(1)),
            ))
            pending_time = None
            continue

        if time_match:
            pending_time = float(time_match.group(1))
            continue

        score_match = _SCENE_METADATA_RE.search(line)
        if score_match and pending_time is not None:
            changes.append(SceneChange(
                timestamp=pending_time,
                scene_score=float(score_match.group(1)),
            ))
            pending_time = None

    return changes


class SignalExtractor:
    """
    Produces silence and scene-change streams for a video via ffmpeg.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        ffmpeg_binary: str = "ffmpeg"
    ):
        """
        Initialize the extractor.

        Args:
            config: Pipeline configuration (filters, timeout)
            ffmpeg_binary: ffmpeg executable name or path
        """
        self.config = config or PipelineConfig()
        self.ffmpeg_binary = ffmpeg_binary

    def extract(self, video_path: Path) -> SignalStreams:
        """
        Run both analysis passes over a video.

        Args:
            video_path: Path to the uploaded video

        Returns:
            SignalStreams; a failed pass leaves its stream empty
        """
        silence_log = self._run_analysis(video_path, [
            "-vn",
            "-af",
            f"silencedetect=noise={self.config.silence_noise_db}dB"
            f":d={self.config.silence_min_duration}",
        ])
        scene_log = self._run_analysis(video_path, [
            "-vf",
            f"select='gt(scene,{self.config.scene_detect_threshold})',metadata=print",
            "-fps_mode", "vfr",
        ])

        streams = SignalStreams()

        if silence_log is not None:
            markers = parse_silence_log(silence_log)
            streams.silence_markers = markers
            LOGGER.info("Parsed %d silence markers from %s", len(markers), video_path.name)
        else:
            LOGGER.warning("Audio analysis unavailable for %s", video_path.name)

        if scene_log is not None:
            streams.scene_changes = parse_scene_log(scene_log)
            LOGGER.info(
                "Parsed %d scene changes from %s",
                len(streams.scene_changes), video_path.name
            )
        else:
            LOGGER.warning("Scene analysis unavailable for %s", video_path.name)

        return streams

    def _run_analysis(self, video_path: Path, filter_args: list[str]) -> Optional[list[str]]:
        cmd = [
            self.ffmpeg_binary,
            "-hide_banner",
            "-i", str(video_path),
            *filter_args,
            "-f", "null", "-",
        ]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.config.analysis_timeout,
            )
        except FileNotFoundError:
            LOGGER.error("ffmpeg binary not found: %s", self.ffmpeg_binary)
            return None
        except subprocess.TimeoutExpired:
            LOGGER.warning(
                "ffmpeg analysis timed out after %ss: %s",
                self.config.analysis_timeout, " ".join(filter_args)
            )
            return None

        if result.returncode != 0:
            LOGGER.warning(
                "ffmpeg analysis exited with %d for %s", result.returncode, video_path.name
            )
            return None

        # ffmpeg writes filter logs to stderr
        return (result.stderr or "").splitlines()
