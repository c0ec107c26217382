"""
Storage for uploads, extracted frames and quiz records.

``UploadStorage`` owns the on-disk layout: each upload gets a private
scratch directory that is always removed, and a frames directory that
survives only when the pipeline succeeds.

``MemoryRecordStore`` is the in-process persistence collaborator for
sessions, attempts and results. Ids come from injected allocators.
"""

import logging
import re
import shutil
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Protocol

from clickquiz.models.schemas import (
    TestAttempt,
    TestAttemptCreate,
    TestResult,
    TestResultCreate,
    TestSession,
    TestSessionCreate,
)

LOGGER = logging.getLogger(__name__)

_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass
class UploadWorkspace:
    """Paths belonging to one upload."""
    batch_id: str
    work_dir: Path
    frames_dir: Path

    def video_path(self, suffix: str = ".mp4") -> Path:
        return self.work_dir / f"source{suffix}"


class UploadStorage:
    """
    Local filesystem storage for uploaded videos and extracted frames.
    """

    def __init__(self, root: Path):
        """
        Args:
            root: Base data directory; ``uploads/`` and ``frames/`` live under it
        """
        self.uploads_dir = Path(root) / "uploads"
        self.frames_dir = Path(root) / "frames"

    @contextmanager
    def workspace(self, batch_id: Optional[str] = None) -> Iterator[UploadWorkspace]:
        """
        Allocate a uniquely named workspace for one upload.

        The scratch directory (uploaded video, analysis output) is removed
        on every exit path. The frames directory is removed too when the
        body raises, so a failed upload leaves nothing behind.
        """
        batch_id = batch_id or uuid.uuid4().hex
        workspace = UploadWorkspace(
            batch_id=batch_id,
            work_dir=self.uploads_dir / batch_id,
            frames_dir=self.frames_dir / batch_id,
        )
        workspace.work_dir.mkdir(parents=True)

        try:
            yield workspace
        except BaseException:
            shutil.rmtree(workspace.frames_dir, ignore_errors=True)
            raise
        finally:
            shutil.rmtree(workspace.work_dir, ignore_errors=True)
            LOGGER.debug("Removed scratch directory %s", workspace.work_dir)

    def frame_path(self, batch_id: str, filename: str) -> Optional[Path]:
        """
        Resolve a stored frame, or None if it does not exist.

        Only plain names are accepted for both parts, so requests cannot
        escape the frames directory.
        """
        if not _SAFE_NAME_RE.match(batch_id) or not _SAFE_NAME_RE.match(filename):
            return None
        if batch_id in (".", "..") or filename in (".", ".."):
            return None

        path = self.frames_dir / batch_id / filename
        return path if path.is_file() else None


class IdAllocator:
    """Thread-safe monotonically increasing id source."""

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    def allocate(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value


class RecordStore(Protocol):
    """Create/read/update-by-id contract for quiz records."""

    def create_session(self, data: TestSessionCreate) -> TestSession: ...

    def get_session(self, session_id: int) -> Optional[TestSession]: ...

    def update_session(self, session_id: int, **updates) -> Optional[TestSession]: ...

    def create_attempt(self, data: TestAttemptCreate) -> TestAttempt: ...

    def list_attempts(self, session_id: int) -> list[TestAttempt]: ...

    def create_result(self, data: TestResultCreate) -> TestResult: ...

    def get_result(self, session_id: int) -> Optional[TestResult]: ...


class MemoryRecordStore:
    """
    In-memory record store.

    Records are copied on the way in and out so callers never hold a
    reference to stored state.
    """

    def __init__(
        self,
        session_ids: Optional[IdAllocator] = None,
        attempt_ids: Optional[IdAllocator] = None,
        result_ids: Optional[IdAllocator] = None
    ):
        self._session_ids = session_ids or IdAllocator()
        self._attempt_ids = attempt_ids or IdAllocator()
        self._result_ids = result_ids or IdAllocator()
        self._sessions: dict[int, TestSession] = {}
        self._attempts: dict[int, TestAttempt] = {}
        self._results: dict[int, TestResult] = {}
        self._lock = threading.Lock()

    def create_session(self, data: TestSessionCreate) -> TestSession:
        session = TestSession(
            id=self._session_ids.allocate(),
            current_step=1,
            is_completed=data.total_steps < 1,
            start_time=_utc_now(),
            completed_time=None,
            **data.model_dump(),
        )
        if session.is_completed:
            session.completed_time = session.start_time
        with self._lock:
            self._sessions[session.id] = session
        return session.model_copy(deep=True)

    def get_session(self, session_id: int) -> Optional[TestSession]:
        with self._lock:
            session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    def update_session(self, session_id: int, **updates) -> Optional[TestSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            updated = session.model_copy(update=updates, deep=True)
            self._sessions[session_id] = updated
        return updated.model_copy(deep=True)

    def create_attempt(self, data: TestAttemptCreate) -> TestAttempt:
        attempt = TestAttempt(
            id=self._attempt_ids.allocate(),
            attempt_time=_utc_now(),
            **data.model_dump(),
        )
        with self._lock:
            self._attempts[attempt.id] = attempt
        return attempt.model_copy()

    def list_attempts(self, session_id: int) -> list[TestAttempt]:
        with self._lock:
            attempts = [a for a in self._attempts.values() if a.session_id == session_id]
        return [a.model_copy() for a in sorted(attempts, key=lambda a: a.id)]

    def create_result(self, data: TestResultCreate) -> TestResult:
        result = TestResult(
            id=self._result_ids.allocate(),
            completed_at=_utc_now(),
            **data.model_dump(),
        )
        with self._lock:
            self._results[result.id] = result
        return result.model_copy()

    def get_result(self, session_id: int) -> Optional[TestResult]:
        with self._lock:
            matches = [r for r in self._results.values() if r.session_id == session_id]
        if not matches:
            return None
        return max(matches, key=lambda r: r.id).model_copy()


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)
