"""Tests for smart and quick frame sampling."""

from pathlib import Path

import pytest

from clickquiz.services.events import CandidateEvent, EventType
from clickquiz.services.frame_sampler import FrameSampler, is_auto_selected
from tests.conftest import FakeFrameExtractor

VIDEO = Path("/videos/source.mp4")


def _event(t: float, kind: EventType = EventType.CLICK, confidence: float = 0.5) -> CandidateEvent:
    return CandidateEvent(
        timestamp=t,
        type=kind,
        confidence=confidence,
        estimated_x=450,
        estimated_y=250,
        reason="test",
    )


class TestSmartSampling:

    def test_caps_at_twenty_earliest_events(self, tmp_path):
        extractor = FakeFrameExtractor()
        events = [_event(float(t)) for t in range(35)]

        report = FrameSampler(extractor).sample_smart(VIDEO, events, tmp_path, "batch")

        assert report.candidate_count == 35
        assert report.extracted == 20
        assert [d.source_event.timestamp for d in report.descriptors] == [float(t) for t in range(20)]
        assert extractor.calls == [float(t) for t in range(20)]

    def test_failed_extraction_is_skipped(self, tmp_path):
        extractor = FakeFrameExtractor(fail_at={1.0}, partial_on_failure=True)
        events = [_event(0.0), _event(1.0), _event(2.0)]

        report = FrameSampler(extractor).sample_smart(VIDEO, events, tmp_path, "batch")

        assert report.failed == 1
        assert [d.source_event.timestamp for d in report.descriptors] == [0.0, 2.0]
        assert [d.sequence_index for d in report.descriptors] == [0, 1]
        assert not (tmp_path / "click_001.png").exists()
        assert (tmp_path / "click_002.png").exists()

    def test_descriptor_carries_image_and_hotspot(self, tmp_path):
        report = FrameSampler(FakeFrameExtractor()).sample_smart(
            VIDEO, [_event(4.5, EventType.SPEECH, 0.7)], tmp_path, "abc123"
        )

        descriptor = report.descriptors[0]
        assert descriptor.image.filename == "speech_000.png"
        assert descriptor.image.url == "/api/frames/abc123/speech_000.png"
        assert (descriptor.hotspot.x, descriptor.hotspot.y) == (450, 250)
        assert descriptor.hotspot.confidence == 0.7

    def test_selection_rule(self, tmp_path):
        events = [
            _event(0.0, EventType.SPEECH, 0.7),
            _event(1.0, EventType.SPEECH, 0.81),
            _event(2.0, EventType.CLICK, 0.45),
            _event(3.0, EventType.SPEECH, 0.8),
        ]

        report = FrameSampler(FakeFrameExtractor()).sample_smart(VIDEO, events, tmp_path, "batch")

        assert [d.selected for d in report.descriptors] == [False, True, True, False]

    def test_empty_event_list(self, tmp_path):
        report = FrameSampler(FakeFrameExtractor()).sample_smart(VIDEO, [], tmp_path, "batch")

        assert report.descriptors == []
        assert report.candidate_count == 0


class TestQuickSampling:

    def test_fixed_grid_without_cap(self, tmp_path):
        extractor = FakeFrameExtractor()

        report = FrameSampler(extractor).sample_quick(VIDEO, 305.0, tmp_path, "batch")

        assert report.extracted == 31
        assert extractor.calls == [i * 10.0 for i in range(31)]
        assert all(d.selected for d in report.descriptors)
        assert all(d.source_event.type is EventType.QUICK_INTERVAL for d in report.descriptors)

    def test_placeholder_positions_and_names(self, tmp_path):
        report = FrameSampler(FakeFrameExtractor()).sample_quick(VIDEO, 25.0, tmp_path, "batch")

        assert [d.image.filename for d in report.descriptors] == [
            "quick_001.png", "quick_002.png", "quick_003.png"
        ]
        assert [(d.hotspot.x, d.hotspot.y) for d in report.descriptors] == [
            (400, 300), (450, 330), (500, 360)
        ]
        assert all(d.hotspot.reason == "Regular interval extraction" for d in report.descriptors)

    def test_unknown_duration_uses_assumed_maximum(self, tmp_path):
        # frames past the real end just fail and are skipped
        extractor = FakeFrameExtractor(fail_at={i * 10.0 for i in range(4, 30)})

        report = FrameSampler(extractor).sample_quick(VIDEO, 0.0, tmp_path, "batch")

        assert len(extractor.calls) == 30
        assert report.extracted == 4
        assert report.failed == 26


@pytest.mark.parametrize(
    "kind, confidence, expected",
    [
        (EventType.CLICK, 0.41, True),
        (EventType.QUICK_INTERVAL, 0.7, True),
        (EventType.SPEECH, 0.7, False),
        (EventType.SPEECH, 0.9, True),
    ],
)
def test_is_auto_selected(kind, confidence, expected):
    assert is_auto_selected(_event(0.0, kind, confidence)) is expected
