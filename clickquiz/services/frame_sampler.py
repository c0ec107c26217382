"""
Frame sampling: realizes candidate events as still images.

Smart mode extracts one frame per candidate event, capped at the
earliest 20 events. Quick mode skips event synthesis and samples on a
fixed 10-second grid with no cap. A failed extraction skips that event;
it never aborts the batch.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from clickquiz.config import SamplerConfig
from clickquiz.services.events import CandidateEvent, EventType
from clickquiz.services.frame_extractor import FrameExtractor
from clickquiz.services.position_estimator import GridPositionEstimator, PositionEstimator

LOGGER = logging.getLogger(__name__)

QUICK_REASON = "Regular interval extraction"


@dataclass(frozen=True)
class ImageHandle:
    """Reference to an extracted still image."""
    batch_id: str
    filename: str
    path: str

    @property
    def url(self) -> str:
        return f"/api/frames/{self.batch_id}/{self.filename}"


@dataclass(frozen=True)
class FrameHotspot:
    """Estimated click target attached to a frame."""
    x: int
    y: int
    confidence: float
    reason: str


@dataclass(frozen=True)
class FrameDescriptor:
    """One extracted frame and the event it was sampled for."""
    sequence_index: int
    source_event: CandidateEvent
    image: ImageHandle
    selected: bool
    hotspot: FrameHotspot

    def to_dict(self) -> dict:
        return {
            'sequence_index': self.sequence_index,
            'url': self.image.url,
            'filename': self.image.filename,
            'type': self.source_event.type.value,
            'timestamp': self.source_event.timestamp,
            'selected': self.selected,
            'click_data': {
                'x': self.hotspot.x,
                'y': self.hotspot.y,
                'confidence': self.hotspot.confidence,
                'reason': self.hotspot.reason,
            },
        }


@dataclass
class SamplingReport:
    """Result of one sampling run."""
    descriptors: list[FrameDescriptor] = field(default_factory=list)
    candidate_count: int = 0
    attempted: int = 0
    failed: int = 0

    @property
    def extracted(self) -> int:
        return len(self.descriptors)


def is_auto_selected(event: CandidateEvent, threshold: float = 0.8) -> bool:
    """
    Decide whether a frame is pre-selected for the quiz.

    Click and quick-interval frames are always selected; speech frames
    only when their confidence exceeds the threshold.
    """
    if event.type is EventType.CLICK:
        return True
    if event.type is EventType.QUICK_INTERVAL:
        return True
    if event.type is EventType.SPEECH:
        return event.confidence > threshold
    raise ValueError(f"Unhandled event type: {event.type}")


class FrameSampler:
    """
    Extracts frames for candidate events and builds frame descriptors.
    """

    def __init__(
        self,
        extractor: FrameExtractor,
        config: Optional[SamplerConfig] = None,
        quick_estimator: Optional[PositionEstimator] = None
    ):
        """
        Initialize the sampler.

        Args:
            extractor: Frame extraction backend
            config: Sampling limits and quick-mode settings
            quick_estimator: Placeholder positions for quick-mode frames
        """
        self.extractor = extractor
        self.config = config or SamplerConfig()
        self.quick_estimator = quick_estimator or GridPositionEstimator()

    def sample_smart(
        self,
        video_path: Path,
        events: list[CandidateEvent],
        output_dir: Path,
        batch_id: str
    ) -> SamplingReport:
        """
        Extract one frame per candidate event, earliest events first.

        Args:
            video_path: Source video
            events: Candidate events sorted by timestamp
            output_dir: Directory receiving the images
            batch_id: Identifier of the upload batch

        Returns:
            SamplingReport with the surviving descriptors
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        report = SamplingReport(candidate_count=len(events))

        capped = events[:self.config.max_frames]
        if len(events) > len(capped):
            LOGGER.info(
                "Capping %d candidate events to the first %d",
                len(events), self.config.max_frames
            )

        for i, event in enumerate(capped):
            filename = f"{event.type.value}_{i:03d}.png"
            self._extract_into(report, video_path, event, output_dir, filename, batch_id)

        LOGGER.info(
            "Extracted %d of %d candidate frames (%d failed)",
            report.extracted, report.candidate_count, report.failed
        )
        return report

    def sample_quick(
        self,
        video_path: Path,
        duration: float,
        output_dir: Path,
        batch_id: str
    ) -> SamplingReport:
        """
        Sample the video on a fixed interval grid.

        Args:
            video_path: Source video
            duration: Video duration in seconds (0 if unknown)
            output_dir: Directory receiving the images
            batch_id: Identifier of the upload batch

        Returns:
            SamplingReport; every descriptor is selected
        """
        output_dir.mkdir(parents=True, exist_ok=True)

        if duration <= 0:
            LOGGER.warning(
                "Unknown video duration, sampling up to %ss",
                self.config.assumed_max_duration
            )
            duration = self.config.assumed_max_duration

        events = []
        index = 0
        while index * self.config.quick_interval < duration:
            x, y = self.quick_estimator.estimate(EventType.QUICK_INTERVAL, index)
            events.append(CandidateEvent(
                timestamp=index * self.config.quick_interval,
                type=EventType.QUICK_INTERVAL,
                confidence=self.config.quick_confidence,
                estimated_x=x,
                estimated_y=y,
                reason=QUICK_REASON,
            ))
            index += 1

        report = SamplingReport(candidate_count=len(events))
        for i, event in enumerate(events):
            filename = f"quick_{i + 1:03d}.png"
            self._extract_into(report, video_path, event, output_dir, filename, batch_id)

        LOGGER.info(
            "Quick extraction: %d frames at %ss intervals",
            report.extracted, self.config.quick_interval
        )
        return report

    def _extract_into(
        self,
        report: SamplingReport,
        video_path: Path,
        event: CandidateEvent,
        output_dir: Path,
        filename: str,
        batch_id: str
    ) -> None:
        output_path = output_dir / filename
        report.attempted += 1

        if not self.extractor.extract(video_path, event.timestamp, output_path):
            report.failed += 1
            output_path.unlink(missing_ok=True)
            LOGGER.warning(
                "Failed to extract frame for %s event at %.2fs (skipped)",
                event.type.value, event.timestamp
            )
            return

        report.descriptors.append(FrameDescriptor(
            sequence_index=len(report.descriptors),
            source_event=event,
            image=ImageHandle(batch_id=batch_id, filename=filename, path=str(output_path)),
            selected=is_auto_selected(event, self.config.auto_select_confidence),
            hotspot=FrameHotspot(
                x=event.estimated_x,
                y=event.estimated_y,
                confidence=event.confidence,
                reason=event.reason,
            ),
        ))
