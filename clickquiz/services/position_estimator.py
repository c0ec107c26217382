"""
Placeholder click-position estimators.

True cursor position is not observable from scene-change or silence
analysis, so candidate events get a heuristic position from one of
these strategies. Anything implementing ``PositionEstimator`` can be
swapped in (e.g. a real cursor detector).
"""

import random
from typing import Optional, Protocol

from clickquiz.services.events import EventType


class PositionEstimator(Protocol):
    """Protocol for click-position estimators (enables easy swapping)."""

    def estimate(self, kind: EventType, index: int) -> tuple[int, int]:
        """Estimate an (x, y) click position for the index-th event of a kind."""
        ...


class RegionPositionEstimator:
    """
    Heuristic estimator used by smart mode.

    Click candidates are drawn uniformly from a centre-right region where
    buttons typically sit; speech candidates get one fixed anchor point.
    """

    def __init__(
        self,
        click_region: tuple[int, int, int, int] = (400, 200, 200, 200),
        speech_anchor: tuple[int, int] = (500, 400),
        seed: Optional[int] = None
    ):
        """
        Args:
            click_region: (x, y, width, height) of the click sampling region
            speech_anchor: Fixed position for speech-derived events
            seed: Seed for reproducible click positions
        """
        self.click_region = click_region
        self.speech_anchor = speech_anchor
        self._rng = random.Random(seed)

    def estimate(self, kind: EventType, index: int) -> tuple[int, int]:
        if kind is EventType.CLICK:
            x, y, width, height = self.click_region
            return (
                int(x + self._rng.random() * width),
                int(y + self._rng.random() * height),
            )
        if kind is EventType.SPEECH:
            return self.speech_anchor
        if kind is EventType.QUICK_INTERVAL:
            return GridPositionEstimator().estimate(kind, index)
        raise ValueError(f"Unhandled event type: {kind}")


class GridPositionEstimator:
    """Deterministic, index-varying positions used by quick mode."""

    def __init__(
        self,
        origin: tuple[int, int] = (400, 300),
        step: tuple[int, int] = (50, 30),
        span: tuple[int, int] = (400, 300)
    ):
        self.origin = origin
        self.step = step
        self.span = span

    def estimate(self, kind: EventType, index: int) -> tuple[int, int]:
        return (
            self.origin[0] + (index * self.step[0]) % self.span[0],
            self.origin[1] + (index * self.step[1]) % self.span[1],
        )
