"""
Extraction pipeline: uploaded video bytes in, frame descriptors out.

Orchestrates the signal extractor, event synthesizer and frame sampler
inside a per-upload workspace. The source video and scratch files are
always removed; frames survive only if the run succeeds.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from clickquiz.config import SamplerConfig, Settings
from clickquiz.errors import InvalidUploadError
from clickquiz.models.schemas import ExtractionMode
from clickquiz.services.event_synthesizer import EventSynthesizer
from clickquiz.services.frame_extractor import FrameExtractor, build_frame_extractor
from clickquiz.services.frame_sampler import FrameDescriptor, FrameSampler
from clickquiz.services.signal_extractor import SignalExtractor
from clickquiz.services.video_processor import probe_metadata
from clickquiz.storage import UploadStorage

LOGGER = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Outcome of one pipeline run."""
    batch_id: str
    mode: ExtractionMode
    descriptors: list[FrameDescriptor] = field(default_factory=list)
    candidate_events: int = 0
    speech_segments: int = 0
    click_events: int = 0
    message: str = ""

    @property
    def frame_urls(self) -> list[str]:
        return [d.image.url for d in self.descriptors]


def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    settings: Settings
) -> str:
    """
    Reject uploads that must not enter the pipeline.

    Args:
        filename: Client-supplied file name
        content_type: Client-supplied MIME type
        size: Payload size in bytes
        settings: Upload limits

    Returns:
        The file suffix to store the video under

    Raises:
        InvalidUploadError: Missing file, wrong type, empty or too large
    """
    if not filename:
        raise InvalidUploadError("No video file provided")

    suffix = Path(filename).suffix.lower()
    type_ok = content_type in settings.allowed_content_types
    if suffix not in settings.allowed_extensions or not type_ok:
        raise InvalidUploadError("Only MP4 and MOV files are allowed")

    if size == 0:
        raise InvalidUploadError("Uploaded video is empty")
    check_upload_size(size, settings)
    return suffix


def check_upload_size(size: Optional[int], settings: Settings) -> None:
    """Reject an upload over the size limit; an unknown size passes."""
    if size is not None and size > settings.max_upload_bytes:
        raise InvalidUploadError(
            f"Video exceeds the {settings.max_upload_mb}MB upload limit"
        )


class ExtractionPipeline:
    """
    Runs quick or smart frame extraction for one upload at a time.
    """

    def __init__(
        self,
        storage: UploadStorage,
        settings: Optional[Settings] = None,
        signal_extractor: Optional[SignalExtractor] = None,
        synthesizer: Optional[EventSynthesizer] = None,
        frame_extractor: Optional[FrameExtractor] = None,
        sampler_config: Optional[SamplerConfig] = None
    ):
        self.storage = storage
        self.settings = settings or Settings()
        pipeline_config = self.settings.pipeline_config()

        self.signal_extractor = signal_extractor or SignalExtractor(
            pipeline_config, ffmpeg_binary=self.settings.ffmpeg_binary
        )
        self.synthesizer = synthesizer or EventSynthesizer(pipeline_config)
        self.sampler = FrameSampler(
            frame_extractor or build_frame_extractor(
                self.settings.frame_backend,
                ffmpeg_binary=self.settings.ffmpeg_binary,
                timeout=self.settings.extraction_timeout,
            ),
            sampler_config,
        )

    def run(
        self,
        content: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        mode: ExtractionMode = ExtractionMode.SMART
    ) -> ExtractionResult:
        """
        Validate an upload and extract its candidate frames.

        Args:
            content: Raw video bytes
            filename: Client-supplied file name
            content_type: Client-supplied MIME type
            mode: Quick (fixed grid) or smart (heuristic) extraction

        Returns:
            ExtractionResult with the surviving frame descriptors

        Raises:
            InvalidUploadError: Upload rejected before processing
        """
        suffix = validate_upload(filename, content_type, len(content), self.settings)

        with self.storage.workspace() as workspace:
            video_path = workspace.video_path(suffix)
            video_path.write_bytes(content)
            LOGGER.info(
                "Processing upload %s (%d bytes) in %s mode",
                workspace.batch_id, len(content), mode.value
            )

            metadata = probe_metadata(video_path)
            duration = metadata.duration_seconds if metadata else 0.0

            if mode is ExtractionMode.QUICK:
                return self._run_quick(video_path, duration, workspace.frames_dir, workspace.batch_id)
            return self._run_smart(video_path, duration, workspace.frames_dir, workspace.batch_id)

    def _run_quick(
        self,
        video_path: Path,
        duration: float,
        frames_dir: Path,
        batch_id: str
    ) -> ExtractionResult:
        report = self.sampler.sample_quick(video_path, duration, frames_dir, batch_id)
        return ExtractionResult(
            batch_id=batch_id,
            mode=ExtractionMode.QUICK,
            descriptors=report.descriptors,
            candidate_events=report.candidate_count,
            message=(
                f"Quick extraction completed. Extracted {report.extracted} frames "
                f"at {self.sampler.config.quick_interval:g}-second intervals."
            ),
        )

    def _run_smart(
        self,
        video_path: Path,
        duration: float,
        frames_dir: Path,
        batch_id: str
    ) -> ExtractionResult:
        streams = self.signal_extractor.extract(video_path)
        events, segments, clicks = self.synthesizer.synthesize(
            streams.silence_markers, streams.scene_changes, duration
        )
        report = self.sampler.sample_smart(video_path, events, frames_dir, batch_id)

        return ExtractionResult(
            batch_id=batch_id,
            mode=ExtractionMode.SMART,
            descriptors=report.descriptors,
            candidate_events=report.candidate_count,
            speech_segments=len(segments),
            click_events=len(clicks),
            message=(
                f"Smart extraction completed. Found {len(segments)} speech segments "
                f"and {len(clicks)} potential click events. Extracted {report.extracted} "
                f"of {report.candidate_count} candidate frames."
            ),
        )
