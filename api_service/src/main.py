"""
FastAPI backend for the meeting insights service.

Endpoints:
    GET  /api/health            : Static capability probe
    POST /api/process-audio     : Transcribe + analyse an uploaded recording
    POST /api/chat              : Ask a question, optionally about a meeting
    GET  /api/meetings          : List processed meetings, most recent first
    GET  /api/meeting/{id}      : Full record of one meeting
"""

from pathlib import Path
from typing import Optional
import time
import uuid

from fastapi import APIRouter, FastAPI, File, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
import uvicorn

from services.analysis_service import resolve_audio_mime_type
from shared_utils.config_loader import get_settings
from shared_utils.constants import APIEndpoints, Features, LogScope
from shared_utils.di_container import DIContainer
from shared_utils.error_handler import (
    InvalidUploadError, MeetingNotFoundError, ValidationError, handle_error
)
from shared_utils.logging_utils import (
    ContextualLogger, bind_request_context, clear_request_context, configure_logging
)
from shared_utils.validation import InputValidator


# ---------------------------------------------------------------------------
# Application bootstrap
# ---------------------------------------------------------------------------

settings = get_settings()
logger = ContextualLogger(scope=LogScope.API)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
router = APIRouter()


def _container(request: Request) -> DIContainer:
    return request.app.state.container


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@router.get(APIEndpoints.HEALTH)
def health_check(request: Request) -> dict:
    """Static capability probe; no side effects."""
    container_settings = _container(request).settings
    logger.debug("health_check_requested")
    return {
        "status": "OK",
        "gemini_configured": container_settings.gemini_configured,
        "version": container_settings.app_version,
        "features": list(Features.ADVERTISED),
    }


# ---------------------------------------------------------------------------
# Audio processing
# ---------------------------------------------------------------------------

@router.post(APIEndpoints.PROCESS_AUDIO)
@limiter.limit(settings.process_audio_rate_limit)
async def process_audio(
    request: Request,
    audio: Optional[UploadFile] = File(None),
) -> JSONResponse:
    """Transcribe and analyse one uploaded recording.

    The upload is staged to a temporary file for the duration of the
    request and discarded afterwards, on success and on failure.
    """
    if audio is None or not audio.filename:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "No audio file uploaded"},
        )

    container = _container(request)
    app_settings = container.settings
    upload_store = container.get_upload_store()
    staged_path: Optional[Path] = None

    try:
        content_type = InputValidator.validate_audio_type(
            audio.content_type, app_settings.allowed_audio_types
        )
        content = await audio.read(app_settings.max_upload_bytes + 1)
        InputValidator.validate_upload_size(len(content), app_settings.max_upload_bytes)

        logger.info(
            "process_audio_started",
            filename=audio.filename,
            size_mb=round(len(content) / (1024 * 1024), 2),
        )

        staged_path = await run_in_threadpool(upload_store.stage, audio.filename, content)
        audio_bytes = await run_in_threadpool(upload_store.read, staged_path)
        mime_type = resolve_audio_mime_type(audio.filename, content_type)

        meeting = await container.get_analysis_service().process_audio(
            audio_bytes, mime_type, audio.filename
        )

        return JSONResponse(
            content={
                "success": True,
                "meetingId": meeting.id,
                "transcription": meeting.transcription,
                "summary": meeting.summary.to_response(),
                "tasks": meeting.tasks.to_response(),
                "improvements": meeting.improvements.to_response(),
                "factCheck": meeting.fact_check.to_response(),
                "filename": meeting.filename,
                "filesize": len(content),
                "timestamp": meeting.timestamp,
            }
        )

    except InvalidUploadError as e:
        logger.warning("process_audio_rejected", error_code=e.error_code, error=e.message)
        return JSONResponse(status_code=e.http_status, content=e.to_dict())
    except Exception as e:
        error_response = handle_error(e, "Failed to process audio file", scope=LogScope.API)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )
    finally:
        if staged_path is not None:
            await run_in_threadpool(upload_store.discard, staged_path)
        await audio.close()


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

@router.post(APIEndpoints.CHAT)
@limiter.limit(settings.chat_rate_limit)
async def chat(request: Request, body: dict) -> JSONResponse:
    """Answer a question, using a stored meeting as context when given.

    Body JSON:
        message (str): The user question.
        meetingId (str, optional): Meeting to use as context.
    """
    message = body.get("message")
    if not isinstance(message, str) or not message.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "No message provided"},
        )

    try:
        reply = await _container(request).get_chat_service().answer(
            message, meeting_id=body.get("meetingId") or None
        )
        return JSONResponse(content={"success": True, "response": reply})

    except ValidationError as e:
        logger.warning("chat_rejected", error_code=e.error_code)
        return JSONResponse(status_code=e.http_status, content=e.to_dict())
    except Exception as e:
        error_response = handle_error(e, "Failed to process chat message", scope=LogScope.API)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )


# ---------------------------------------------------------------------------
# Meetings
# ---------------------------------------------------------------------------

@router.get(APIEndpoints.MEETINGS)
def list_meetings(request: Request) -> JSONResponse:
    """List processed meetings, most recent first."""
    store = _container(request).get_meeting_store()
    return JSONResponse(
        content={
            "success": True,
            "meetings": [view.to_response() for view in store.list()],
        }
    )


@router.get(APIEndpoints.MEETING)
def get_meeting(request: Request, meeting_id: str) -> JSONResponse:
    """Return the full record of one meeting."""
    meeting = _container(request).get_meeting_store().get(meeting_id)
    if meeting is None:
        e = MeetingNotFoundError(meeting_id)
        logger.info("meeting_not_found", meeting_id=meeting_id)
        return JSONResponse(status_code=e.http_status, content=e.to_dict())

    return JSONResponse(content={"success": True, "meeting": meeting.to_response()})


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------

async def request_context(request: Request, call_next):
    """Tag every log line of a request with its id and route; time the request."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    bind_request_context(request_id=request_id, method=request.method, path=request.url.path)
    started_at = time.perf_counter()
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started_at) * 1000, 2),
        )
        return response
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_app(container: Optional[DIContainer] = None) -> FastAPI:
    """Build the FastAPI app around *container* (a fresh one by default)."""
    container = container or DIContainer(settings)
    configure_logging(
        container.settings.log_level,
        json_output=container.settings.environment != "development",
    )

    application = FastAPI(
        title=container.settings.app_name,
        version=container.settings.app_version,
        description=container.settings.app_description,
    )
    application.state.container = container
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=container.settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.middleware("http")(request_context)
    application.include_router(router)

    container.check_configuration()
    logger.info(
        "api_initialized",
        environment=container.settings.environment,
        model=container.settings.gemini_model,
    )
    return application


app = create_app()


def main() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.port,
        log_level="info"
    )


if __name__ == "__main__":
    main()
