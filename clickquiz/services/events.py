"""
Observation and candidate-event types shared by the extraction services.
"""

from dataclasses import dataclass
from enum import Enum

from clickquiz.models.schemas import EventType

__all__ = [
    "EventType",
    "SilenceKind",
    "SilenceMarker",
    "SceneChange",
    "SpeechSegment",
    "CandidateEvent",
]


class SilenceKind(str, Enum):
    START = "silence_start"
    END = "silence_end"


@dataclass(frozen=True)
class SilenceMarker:
    """A silence boundary reported by the audio analysis."""
    kind: SilenceKind
    timestamp: float


@dataclass(frozen=True)
class SceneChange:
    """A point of significant visual change."""
    timestamp: float
    scene_score: float


@dataclass(frozen=True)
class SpeechSegment:
    """An interval of sustained speech, in seconds."""
    start: float
    end: float

    @property
    def midpoint(self) -> float:
        return self.start + (self.end - self.start) / 2


@dataclass(frozen=True)
class CandidateEvent:
    """A timestamped hypothesis that something interesting happens on screen."""
    timestamp: float
    type: EventType
    confidence: float
    estimated_x: int
    estimated_y: int
    reason: str
