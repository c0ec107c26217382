"""
Core services for frame extraction and quiz scoring.
"""

from .event_synthesizer import EventSynthesizer
from .frame_sampler import FrameSampler
from .pipeline import ExtractionPipeline
from .scorer import AttemptScorer, score_click
from .session_machine import TestSessionMachine
from .signal_extractor import SignalExtractor

__all__ = [
    "EventSynthesizer",
    "FrameSampler",
    "ExtractionPipeline",
    "AttemptScorer",
    "score_click",
    "TestSessionMachine",
    "SignalExtractor",
]
