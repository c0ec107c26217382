"""
Configuration for the extraction pipeline and API.

Algorithm tuning lives in dataclasses with sensible defaults (same
pattern as the tracker/analyzer configs); deployment settings are read
from ``CLICKQUIZ_*`` environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class PipelineConfig:
    """Configuration for signal extraction and event synthesis."""
    # ffmpeg analysis filters
    silence_noise_db: int = -25
    silence_min_duration: float = 1.0  # seconds
    scene_detect_threshold: float = 0.3

    # Speech segmentation
    min_speech_gap: float = 3.0  # seconds

    # Fallback grid when no speech segments are found
    fallback_step: float = 15.0  # seconds
    fallback_length: float = 2.0  # seconds
    assumed_max_duration: float = 300.0  # seconds

    # Click candidates
    click_scene_threshold: float = 0.4
    speech_confidence: float = 0.7

    # External process timeout (per call)
    analysis_timeout: Optional[float] = 120.0


@dataclass
class SamplerConfig:
    """Configuration for frame sampling."""
    max_frames: int = 20
    auto_select_confidence: float = 0.8
    quick_interval: float = 10.0  # seconds
    quick_confidence: float = 0.7
    assumed_max_duration: float = 300.0  # seconds


@dataclass
class Settings:
    """Deployment settings for the API service."""
    data_dir: Path = field(default_factory=lambda: Path("data"))
    max_upload_mb: int = 100
    allowed_content_types: tuple[str, ...] = ("video/mp4", "video/mov", "video/quicktime")
    allowed_extensions: tuple[str, ...] = (".mp4", ".mov")
    frame_backend: str = "ffmpeg"  # ffmpeg | opencv
    ffmpeg_binary: str = "ffmpeg"
    extraction_timeout: Optional[float] = 30.0
    analysis_timeout: Optional[float] = 120.0
    click_tolerance: int = 25
    log_level: str = "INFO"
    json_logs: bool = False

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def uploads_dir(self) -> Path:
        return self.data_dir / "uploads"

    @property
    def frames_dir(self) -> Path:
        return self.data_dir / "frames"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Settings with every unset variable left at its default
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        backend = env.get("CLICKQUIZ_FRAME_BACKEND", defaults.frame_backend).lower()
        if backend not in ("ffmpeg", "opencv"):
            raise ValueError(f"Unknown frame backend: {backend}")

        return cls(
            data_dir=Path(env.get("CLICKQUIZ_DATA_DIR", str(defaults.data_dir))),
            max_upload_mb=int(env.get("CLICKQUIZ_MAX_UPLOAD_MB", defaults.max_upload_mb)),
            frame_backend=backend,
            ffmpeg_binary=env.get("CLICKQUIZ_FFMPEG", defaults.ffmpeg_binary),
            extraction_timeout=_optional_float(
                env.get("CLICKQUIZ_EXTRACTION_TIMEOUT"), defaults.extraction_timeout
            ),
            analysis_timeout=_optional_float(
                env.get("CLICKQUIZ_ANALYSIS_TIMEOUT"), defaults.analysis_timeout
            ),
            click_tolerance=int(env.get("CLICKQUIZ_CLICK_TOLERANCE", defaults.click_tolerance)),
            log_level=env.get("CLICKQUIZ_LOG_LEVEL", defaults.log_level),
            json_logs=env.get("CLICKQUIZ_JSON_LOGS", "").lower() in ("1", "true", "yes"),
        )

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(analysis_timeout=self.analysis_timeout)


def _optional_float(raw: Optional[str], default: Optional[float]) -> Optional[float]:
    # "0" or "none" disables the timeout
    if raw is None:
        return default
    if raw.strip().lower() in ("", "0", "none"):
        return None
    return float(raw)
