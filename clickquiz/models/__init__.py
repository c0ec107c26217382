"""
Data models for the click quiz.
"""

from .schemas import (
    ClickRequest,
    ClickResponse,
    EventType,
    ExtractionMode,
    FrameAnalysis,
    Hotspot,
    SessionSummary,
    StepHistory,
    TestAttempt,
    TestResult,
    TestSession,
    UploadResponse,
)

__all__ = [
    "ClickRequest",
    "ClickResponse",
    "EventType",
    "ExtractionMode",
    "FrameAnalysis",
    "Hotspot",
    "SessionSummary",
    "StepHistory",
    "TestAttempt",
    "TestResult",
    "TestSession",
    "UploadResponse",
]
