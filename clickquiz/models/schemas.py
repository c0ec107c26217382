"""
Pydantic models for quiz records and API payloads.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ExtractionMode(str, Enum):
    """Frame extraction strategy."""
    QUICK = "quick"
    SMART = "smart"


class EventType(str, Enum):
    """Source of a candidate event."""
    SPEECH = "speech"
    CLICK = "click"
    QUICK_INTERVAL = "quick_interval"


class Hotspot(BaseModel):
    """A click target in original, full-resolution image coordinates."""
    id: str
    x: float
    y: float
    label: str = ""


class ClickData(BaseModel):
    """Estimated click position attached to an extracted frame."""
    x: int
    y: int
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str


class FrameAnalysis(BaseModel):
    """One extracted frame as returned by the upload endpoint."""
    sequence_index: int
    url: str
    filename: str
    type: EventType
    timestamp: float
    selected: bool
    click_data: ClickData


class UploadResponse(BaseModel):
    """Result of a video upload."""
    batch_id: str
    mode: ExtractionMode
    frames: list[str]
    frame_analysis: list[FrameAnalysis]
    speech_segments: int = 0
    click_events: int = 0
    candidate_events: int = 0
    message: str


class FrameSelectionUpdate(BaseModel):
    batch_id: str
    frame_updates: list[dict] = Field(default_factory=list)


class TestSessionCreate(BaseModel):
    """Fields supplied when creating a session."""
    test_name: str
    user_id: Optional[int] = None
    extracted_frames: list[str]
    hotspot_data: list[list[Hotspot]]
    total_steps: int = Field(ge=0)


class TestSession(TestSessionCreate):
    """A quiz run over an ordered list of frames."""
    id: int
    current_step: int = 1
    is_completed: bool = False
    start_time: datetime
    completed_time: Optional[datetime] = None


class SessionFromFrames(BaseModel):
    """Create a session straight from upload output; only selected frames are kept."""
    test_name: str = "Interface Test"
    user_id: Optional[int] = None
    frames: list[FrameAnalysis]


class ClickRequest(BaseModel):
    """A user click in original-image pixel space."""
    hotspot_id: str
    click_x: float
    click_y: float
    time_spent_ms: int = Field(ge=0)


class TestAttemptCreate(BaseModel):
    session_id: int
    step_number: int = Field(ge=1)
    hotspot_id: str
    click_x: int
    click_y: int
    expected_x: int
    expected_y: int
    is_correct: bool
    time_spent: int = Field(ge=0)  # milliseconds


class TestAttempt(TestAttemptCreate):
    """Immutable record of one click."""
    id: int
    attempt_time: datetime


class ClickResponse(BaseModel):
    is_correct: bool
    attempt: TestAttempt
    session: TestSession


class TestResultCreate(BaseModel):
    session_id: int
    total_correct: int = Field(ge=0)
    total_incorrect: int = Field(ge=0)
    total_time: int = Field(ge=0)  # milliseconds
    average_step_time: int = Field(ge=0)  # milliseconds
    accuracy: int = Field(ge=0, le=100)  # percentage


class TestResult(TestResultCreate):
    id: int
    completed_at: datetime


class StepHistory(BaseModel):
    """Outcome of one finished step."""
    step_number: int
    label: str
    is_correct: bool
    time_spent: float  # seconds
    attempts: int


class SessionSummary(BaseModel):
    session: TestSession
    result: TestResultCreate
    step_history: list[StepHistory]
