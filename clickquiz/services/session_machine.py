"""
Test session state machine.

A session is Active while ``current_step <= total_steps`` and Completed
afterwards. Every click appends an attempt record; only a correct click
on the current step's hotspot advances the step.
"""

import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from clickquiz.errors import HotspotNotFoundError, SessionCompletedError, SessionNotFoundError
from clickquiz.models.schemas import (
    ClickRequest,
    FrameAnalysis,
    Hotspot,
    TestAttempt,
    TestAttemptCreate,
    TestSession,
    TestSessionCreate,
)
from clickquiz.services.frame_sampler import FrameDescriptor
from clickquiz.services.scorer import AttemptScorer
from clickquiz.storage import RecordStore

LOGGER = logging.getLogger(__name__)


def hotspots_from_descriptors(descriptors: Iterable[FrameDescriptor]) -> list[tuple[str, list[Hotspot]]]:
    """Build (frame url, [hotspot]) steps from the selected descriptors."""
    steps = []
    for descriptor in descriptors:
        if not descriptor.selected:
            continue
        step = len(steps) + 1
        steps.append((descriptor.image.url, [Hotspot(
            id=f"hotspot-{descriptor.sequence_index}",
            x=descriptor.hotspot.x,
            y=descriptor.hotspot.y,
            label=f"Click {step}",
        )]))
    return steps


def hotspots_from_analysis(frames: Iterable[FrameAnalysis]) -> list[tuple[str, list[Hotspot]]]:
    """Same as ``hotspots_from_descriptors`` for frames echoed back by a client."""
    steps = []
    for frame in frames:
        if not frame.selected:
            continue
        step = len(steps) + 1
        steps.append((frame.url, [Hotspot(
            id=f"hotspot-{frame.sequence_index}",
            x=frame.click_data.x,
            y=frame.click_data.y,
            label=f"Click {step}",
        )]))
    return steps


class TestSessionMachine:
    """
    Owns session lifecycle transitions on top of a record store.

    Transitions for one session are serialized with a per-session lock,
    so two concurrent clicks cannot double-advance a step.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, store: RecordStore, scorer: Optional[AttemptScorer] = None):
        """
        Args:
            store: Persistence collaborator for sessions and attempts
            scorer: Click scorer (per-axis tolerance)
        """
        self.store = store
        self.scorer = scorer or AttemptScorer()
        self._locks: dict[int, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def create_session(
        self,
        test_name: str,
        steps: list[tuple[str, list[Hotspot]]],
        user_id: Optional[int] = None
    ) -> TestSession:
        """
        Create an Active session at step 1.

        Args:
            test_name: Display name of the test
            steps: Ordered (frame url, hotspots) pairs, one per step
            user_id: Optional owner

        Returns:
            The stored session
        """
        if not steps:
            LOGGER.warning("Creating session '%s' with zero steps; it starts completed", test_name)

        return self.store.create_session(TestSessionCreate(
            test_name=test_name,
            user_id=user_id,
            extracted_frames=[url for url, _ in steps],
            hotspot_data=[hotspots for _, hotspots in steps],
            total_steps=len(steps),
        ))

    def create_from_descriptors(
        self,
        test_name: str,
        descriptors: Iterable[FrameDescriptor],
        user_id: Optional[int] = None
    ) -> TestSession:
        return self.create_session(test_name, hotspots_from_descriptors(descriptors), user_id)

    def get_session(self, session_id: int) -> TestSession:
        """Read a session without mutating it."""
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def submit_click(
        self,
        session_id: int,
        click: ClickRequest
    ) -> tuple[bool, TestAttempt, TestSession]:
        """
        Score a click for the current step and apply the transition.

        Args:
            session_id: Target session
            click: Click in original-image coordinates

        Returns:
            Tuple of (is_correct, recorded attempt, updated session)

        Raises:
            SessionNotFoundError: Unknown session id
            SessionCompletedError: Session already finished
            HotspotNotFoundError: Hotspot not part of the current step
        """
        with self._lock_for(session_id):
            session = self.store.get_session(session_id)
            if session is None or session.is_completed:
                self._drop_lock(session_id)
                if session is None:
                    raise SessionNotFoundError(session_id)
                raise SessionCompletedError(session_id)

            hotspot = next(
                (h for h in current_hotspots(session) if h.id == click.hotspot_id),
                None
            )
            if hotspot is None:
                raise HotspotNotFoundError(click.hotspot_id, session.current_step)

            is_correct = self.scorer.score(click.click_x, click.click_y, hotspot)

            attempt = self.store.create_attempt(TestAttemptCreate(
                session_id=session.id,
                step_number=session.current_step,
                hotspot_id=hotspot.id,
                click_x=round(click.click_x),
                click_y=round(click.click_y),
                expected_x=round(hotspot.x),
                expected_y=round(hotspot.y),
                is_correct=is_correct,
                time_spent=click.time_spent_ms,
            ))

            if is_correct:
                session = self._advance(session)
                if session.is_completed:
                    self._drop_lock(session_id)

            LOGGER.info(
                "Session %d step %d: click (%.0f, %.0f) %s",
                session.id, attempt.step_number, click.click_x, click.click_y,
                "correct" if is_correct else "incorrect"
            )
            return is_correct, attempt, session

    def _advance(self, session: TestSession) -> TestSession:
        next_step = session.current_step + 1
        updates = {'current_step': next_step}
        if next_step > session.total_steps:
            updates['is_completed'] = True
            updates['completed_time'] = datetime.now(tz=timezone.utc)
            LOGGER.info("Session %d completed", session.id)

        updated = self.store.update_session(session.id, **updates)
        if updated is None:
            raise SessionNotFoundError(session.id)
        return updated

    def _lock_for(self, session_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks[session_id]

    def _drop_lock(self, session_id: int) -> None:
        # finished and unknown sessions never transition again
        with self._locks_guard:
            self._locks.pop(session_id, None)


def current_frame(session: TestSession) -> Optional[str]:
    """Frame url of the current step, or None once completed."""
    if session.is_completed or session.current_step > len(session.extracted_frames):
        return None
    return session.extracted_frames[session.current_step - 1]


def current_hotspots(session: TestSession) -> list[Hotspot]:
    """Hotspots of the current step (empty once completed)."""
    if session.is_completed or session.current_step > len(session.hotspot_data):
        return []
    return session.hotspot_data[session.current_step - 1]
