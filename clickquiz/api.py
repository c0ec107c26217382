"""
FastAPI backend for the click quiz.

Provides REST endpoints for video upload/frame extraction, frame
serving, test sessions, click attempts and results.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel

from clickquiz import __version__
from clickquiz.config import Settings
from clickquiz.errors import (
    HotspotNotFoundError,
    InvalidUploadError,
    ResultNotFoundError,
    SessionCompletedError,
    SessionNotFoundError,
)
from clickquiz.logging_setup import configure_logging
from clickquiz.models.schemas import (
    ClickRequest,
    ClickResponse,
    ExtractionMode,
    FrameAnalysis,
    FrameSelectionUpdate,
    SessionFromFrames,
    SessionSummary,
    TestAttempt,
    TestAttemptCreate,
    TestResult,
    TestResultCreate,
    TestSession,
    TestSessionCreate,
    UploadResponse,
)
from clickquiz.services.pipeline import ExtractionPipeline, ExtractionResult, check_upload_size
from clickquiz.services.results import latest_result, step_history, summarize_attempts
from clickquiz.services.scorer import AttemptScorer
from clickquiz.services.session_machine import TestSessionMachine, hotspots_from_analysis
from clickquiz.storage import MemoryRecordStore, RecordStore, UploadStorage

LOGGER = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    frame_backend: str


@dataclass
class AppServices:
    """Service instances shared by all requests of one app."""
    settings: Settings
    uploads: UploadStorage
    records: RecordStore
    pipeline: ExtractionPipeline
    sessions: TestSessionMachine


def build_services(settings: Settings) -> AppServices:
    uploads = UploadStorage(settings.data_dir)
    records = MemoryRecordStore()
    return AppServices(
        settings=settings,
        uploads=uploads,
        records=records,
        pipeline=ExtractionPipeline(uploads, settings),
        sessions=TestSessionMachine(records, AttemptScorer(settings.click_tolerance)),
    )


def _services(request: Request) -> AppServices:
    return request.app.state.services


def to_upload_response(result: ExtractionResult) -> UploadResponse:
    analysis = [FrameAnalysis.model_validate(d.to_dict()) for d in result.descriptors]
    return UploadResponse(
        batch_id=result.batch_id,
        mode=result.mode,
        frames=result.frame_urls,
        frame_analysis=analysis,
        speech_segments=result.speech_segments,
        click_events=result.click_events,
        candidate_events=result.candidate_events,
        message=result.message,
    )


# ============================================================================
# API Endpoints
# ============================================================================

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request):
    """Service status and configured frame backend."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        frame_backend=_services(request).settings.frame_backend,
    )


@router.get("/")
def root():
    """Root endpoint with API information."""
    return {
        "name": "Click Quiz API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "upload": "POST /api/upload-video - Upload video and extract frames",
            "sessions": "POST /api/test-sessions - Create a test session",
            "clicks": "POST /api/test-sessions/{id}/clicks - Submit a click",
        }
    }


@router.post("/api/upload-video", response_model=UploadResponse)
def upload_video(
    request: Request,
    video: Optional[UploadFile] = File(None),
    quick_mode: bool = Form(False, alias="quickMode")
):
    """
    Upload a screen recording and extract candidate frames.

    **Input**: MP4/MOV video file, optional ``quickMode`` flag

    **Modes**:
    - `quick`: one frame every 10 seconds, all pre-selected
    - `smart`: speech segments and scene changes, capped at 20 frames
    """
    services = _services(request)
    if video is None:
        raise HTTPException(status_code=400, detail="No video file provided")

    mode = ExtractionMode.QUICK if quick_mode else ExtractionMode.SMART
    try:
        # reject oversized uploads before buffering them
        check_upload_size(video.size, services.settings)
        content = video.file.read()
        result = services.pipeline.run(content, video.filename, video.content_type, mode)
    except InvalidUploadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        LOGGER.exception("Video processing failed for %s", video.filename)
        raise HTTPException(status_code=500, detail="Failed to process video")
    finally:
        video.file.close()

    return to_upload_response(result)


@router.get("/api/frames/{batch_id}/{filename}")
def get_frame(request: Request, batch_id: str, filename: str):
    """Serve an extracted frame image."""
    path = _services(request).uploads.frame_path(batch_id, filename)
    if path is None:
        raise HTTPException(status_code=404, detail="Frame not found")
    return FileResponse(path)


@router.post("/api/frames/update-selection")
def update_frame_selection(update: FrameSelectionUpdate):
    """Acknowledge a frame selection edit; selection is applied on session creation."""
    return {
        "message": "Frame selection updated",
        "batch_id": update.batch_id,
        "frame_updates": update.frame_updates,
    }


@router.post("/api/test-sessions", response_model=TestSession)
def create_test_session(request: Request, data: TestSessionCreate):
    """Create a session from explicit frames and per-step hotspots."""
    if len(data.extracted_frames) != data.total_steps or len(data.hotspot_data) != data.total_steps:
        raise HTTPException(
            status_code=400,
            detail="total_steps must match the number of frames and hotspot lists"
        )
    return _services(request).sessions.create_session(
        data.test_name,
        list(zip(data.extracted_frames, data.hotspot_data)),
        user_id=data.user_id,
    )


@router.post("/api/test-sessions/from-frames", response_model=TestSession)
def create_session_from_frames(request: Request, data: SessionFromFrames):
    """Create a session from upload output, keeping only selected frames."""
    steps = hotspots_from_analysis(data.frames)
    if not steps:
        raise HTTPException(status_code=400, detail="No frames selected")
    return _services(request).sessions.create_session(data.test_name, steps, user_id=data.user_id)


@router.get("/api/test-sessions/{session_id}", response_model=TestSession)
def get_test_session(request: Request, session_id: int):
    try:
        return _services(request).sessions.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/api/test-sessions/{session_id}/clicks", response_model=ClickResponse)
def submit_click(request: Request, session_id: int, click: ClickRequest):
    """
    Score a click for the session's current step.

    Coordinates must be in original image pixels. A correct click
    advances the session; an incorrect one is recorded and the step is
    retried.
    """
    try:
        is_correct, attempt, session = _services(request).sessions.submit_click(session_id, click)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except HotspotNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionCompletedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ClickResponse(is_correct=is_correct, attempt=attempt, session=session)


@router.get("/api/test-sessions/{session_id}/summary", response_model=SessionSummary)
def get_session_summary(request: Request, session_id: int):
    """Computed result and step history for a session."""
    services = _services(request)
    try:
        session = services.sessions.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    attempts = services.records.list_attempts(session_id)
    return SessionSummary(
        session=session,
        result=summarize_attempts(session, attempts),
        step_history=step_history(session, attempts),
    )


@router.post("/api/test-attempts", response_model=TestAttempt)
def record_test_attempt(request: Request, data: TestAttemptCreate):
    """Record a raw attempt without applying a session transition."""
    services = _services(request)
    if services.records.get_session(data.session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return services.records.create_attempt(data)


@router.get("/api/test-attempts/session/{session_id}", response_model=list[TestAttempt])
def get_test_attempts(request: Request, session_id: int):
    return _services(request).records.list_attempts(session_id)


@router.post("/api/test-results", response_model=TestResult)
def create_test_result(request: Request, data: TestResultCreate):
    services = _services(request)
    if services.records.get_session(data.session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return services.records.create_result(data)


@router.get("/api/test-results/session/{session_id}", response_model=TestResult)
def get_test_result(request: Request, session_id: int):
    try:
        return latest_result(_services(request).records, session_id)
    except ResultNotFoundError:
        raise HTTPException(status_code=404, detail="Result not found")


# ============================================================================
# FastAPI Application
# ============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Service settings (read from the environment if omitted)
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, settings.json_logs)
        LOGGER.info("Click Quiz API starting up (data dir %s)", settings.data_dir)
        yield
        LOGGER.info("Click Quiz API shutting down")

    app = FastAPI(
        title="Click Quiz API",
        description="Turns screen recordings into click-target quizzes",
        version=__version__,
        lifespan=lifespan
    )
    app.state.services = build_services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clickquiz.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
