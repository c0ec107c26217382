"""
Event synthesis from raw observation streams.

Merges speech and scene-change observations into one time-ordered list
of candidate events:

- Speech: sustained (>3s) speech intervals derived from silence markers
- Fallback: a 15-second grid when no speech segments are available
- Click: scene changes with a score above 0.4

The merge is a stable sort by timestamp, so for equal timestamps the
speech-derived event precedes the click-derived one.
"""

import logging
import math
from typing import Iterable, Optional

from clickquiz.config import PipelineConfig
from clickquiz.services.events import (
    CandidateEvent,
    EventType,
    SceneChange,
    SilenceKind,
    SilenceMarker,
    SpeechSegment,
)
from clickquiz.services.position_estimator import PositionEstimator, RegionPositionEstimator

LOGGER = logging.getLogger(__name__)

SPEECH_REASON = "Speech detected"
CLICK_REASON = "Visual change detected (potential click)"


class EventSynthesizer:
    """
    Converts silence/scene observations into candidate events.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        estimator: Optional[PositionEstimator] = None
    ):
        """
        Initialize the synthesizer.

        Args:
            config: Pipeline thresholds
            estimator: Placeholder position strategy for candidate events
        """
        self.config = config or PipelineConfig()
        self.estimator = estimator or RegionPositionEstimator()

    def segment_speech(self, markers: Iterable[SilenceMarker]) -> list[SpeechSegment]:
        """
        Derive sustained speech segments from silence markers.

        A segment ``[last_speech_end, silence_start]`` is emitted only when
        the speech before a silence lasted longer than ``min_speech_gap``.
        Markers arriving out of state (an end with no open silence, or a
        second start) are ignored.

        Args:
            markers: Silence markers in time order

        Returns:
            Speech segments in time order
        """
        segments = []
        last_speech_end = 0.0
        silence_start: Optional[float] = None

        for marker in markers:
            if marker.kind is SilenceKind.START:
                if silence_start is not None:
                    continue
                if marker.timestamp - last_speech_end > self.config.min_speech_gap:
                    segments.append(SpeechSegment(start=last_speech_end, end=marker.timestamp))
                silence_start = marker.timestamp
            elif marker.kind is SilenceKind.END:
                if silence_start is None:
                    continue
                last_speech_end = marker.timestamp
                silence_start = None

        return segments

    def build_fallback_segments(self, duration: float = 0.0) -> list[SpeechSegment]:
        """
        Generate evenly spaced pseudo-segments when no speech was found.

        Args:
            duration: Probed video duration in seconds (0 if unknown)

        Returns:
            One segment of ``fallback_length`` every ``fallback_step`` seconds
        """
        bound = self.config.assumed_max_duration
        if 0 < duration < bound:
            bound = duration

        count = math.ceil(bound / self.config.fallback_step)
        return [
            SpeechSegment(
                start=i * self.config.fallback_step,
                end=i * self.config.fallback_step + self.config.fallback_length,
            )
            for i in range(count)
        ]

    def click_candidates(self, scene_changes: Iterable[SceneChange]) -> list[CandidateEvent]:
        """
        Turn significant scene changes into click candidates.

        Args:
            scene_changes: Scene-change observations

        Returns:
            Click events for every observation above the click threshold
        """
        events = []
        for change in scene_changes:
            if change.scene_score <= self.config.click_scene_threshold:
                continue
            x, y = self.estimator.estimate(EventType.CLICK, len(events))
            events.append(CandidateEvent(
                timestamp=change.timestamp,
                type=EventType.CLICK,
                confidence=min(change.scene_score, 1.0),
                estimated_x=x,
                estimated_y=y,
                reason=CLICK_REASON,
            ))
        return events

    def speech_events(self, segments: Iterable[SpeechSegment]) -> list[CandidateEvent]:
        events = []
        for index, segment in enumerate(segments):
            x, y = self.estimator.estimate(EventType.SPEECH, index)
            events.append(CandidateEvent(
                timestamp=segment.midpoint,
                type=EventType.SPEECH,
                confidence=self.config.speech_confidence,
                estimated_x=x,
                estimated_y=y,
                reason=SPEECH_REASON,
            ))
        return events

    def merge(
        self,
        segments: list[SpeechSegment],
        clicks: list[CandidateEvent]
    ) -> list[CandidateEvent]:
        """
        Merge speech segments and click candidates into one sequence.

        Speech events are listed first so that the stable sort keeps them
        ahead of click events sharing a timestamp.
        """
        combined = self.speech_events(segments) + list(clicks)
        return sorted(combined, key=lambda event: event.timestamp)

    def synthesize(
        self,
        silence_markers: Optional[list[SilenceMarker]],
        scene_changes: list[SceneChange],
        duration: float = 0.0
    ) -> tuple[list[CandidateEvent], list[SpeechSegment], list[CandidateEvent]]:
        """
        Run the full synthesis: segment, fall back, extract clicks, merge.

        Args:
            silence_markers: Parsed silence markers, or None if the audio
                analysis failed
            scene_changes: Parsed scene changes
            duration: Probed video duration in seconds (0 if unknown)

        Returns:
            Tuple of (merged events, speech segments used, click events)
        """
        segments = self.segment_speech(silence_markers or [])
        if not segments:
            segments = self.build_fallback_segments(duration)
            LOGGER.info(
                "No speech segments found, using %d fallback samples every %ss",
                len(segments), self.config.fallback_step
            )

        clicks = self.click_candidates(scene_changes)
        events = self.merge(segments, clicks)

        LOGGER.info(
            "Synthesized %d candidate events (%d speech, %d click)",
            len(events), len(segments), len(clicks)
        )
        return events, segments, clicks
