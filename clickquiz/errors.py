"""
Exception types raised by the quiz services.

Pipeline-internal failures (analysis output, single frame extraction)
are recovered inside the services and never surface here.
"""


class ClickQuizError(Exception):
    """Base class for request-level failures."""


class InvalidUploadError(ClickQuizError):
    """Upload rejected before entering the extraction pipeline."""


class SessionNotFoundError(ClickQuizError):
    """No test session exists for the given id."""

    def __init__(self, session_id: int):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class SessionCompletedError(ClickQuizError):
    """Click submitted to a session that already finished."""

    def __init__(self, session_id: int):
        super().__init__(f"Session {session_id} is already completed")
        self.session_id = session_id


class HotspotNotFoundError(ClickQuizError):
    """Hotspot id does not belong to the session's current step."""

    def __init__(self, hotspot_id: str, step_number: int):
        super().__init__(f"Hotspot '{hotspot_id}' not found in step {step_number}")
        self.hotspot_id = hotspot_id
        self.step_number = step_number


class ResultNotFoundError(ClickQuizError):
    """No stored test result for the given session."""

    def __init__(self, session_id: int):
        super().__init__(f"Result not found for session {session_id}")
        self.session_id = session_id
