"""
Lesson API Routes.

Endpoints:
    GET  /v1/catalog        - Categories, sidebar labels and topics
    POST /v1/lessons        - Generate a lesson (camelCase JSON)
    POST /v1/lessons/view   - View model of a reading lesson in one mode
    POST /v1/lessons/grade  - Check answers for a TOEIC lesson
    GET  /health            - Health check for load balancers and probes
    GET  /metrics           - Prometheus metrics

Error Handling:
    All errors are returned as JSON with standardized format:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>"
    }

    HTTP status codes are mapped from LessonError codes (STATUS_MAP).
"""
from __future__ import annotations

import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from eigo_ms.api.dependencies import get_lesson_service, get_settings
from eigo_ms.api.schemas import GradeRequest, LessonRequest, ViewRequest
from eigo_ms.core.errors import ErrorCode, InvalidInputError, LessonError
from eigo_ms.core.logging import fail, get_logger, set_request_id
from eigo_ms.core.metrics import metrics
from eigo_ms.lessons.catalog import catalog_dict
from eigo_ms.lessons.models import dump_lesson, parse_lesson
from eigo_ms.services.grading import grade
from eigo_ms.services.lesson_service import LessonService
from eigo_ms.services.views import render_view

router = APIRouter()

_LOG = get_logger("eigo-ms.api")

STATUS_MAP = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.TIMEOUT: 408,
    ErrorCode.NO_VOICES: 422,
    ErrorCode.GENERATION_FAILED: 502,
    ErrorCode.SPEECH_FAILED: 502,
    ErrorCode.PROVIDER_NOT_READY: 503,
    ErrorCode.QUEUE_FULL: 503,
    ErrorCode.SPEECH_UNAVAILABLE: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}


def new_request_id() -> str:
    """Short unique request ID, bound to the logging context."""
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)
    return rid


def error_response(error: LessonError, request_id: str) -> JSONResponse:
    """Standardized JSON error response from a LessonError."""
    body = error.to_dict()
    body["request_id"] = request_id
    return JSONResponse(
        status_code=STATUS_MAP.get(error.code, 500),
        content=body,
        headers={"X-Request-Id": request_id},
    )


def internal_error_response(exc: Exception, request_id: str) -> JSONResponse:
    """Unexpected failure: logged in full, reported without details."""
    fail(_LOG, "unhandled_error", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": ErrorCode.INTERNAL_ERROR,
            "message": "Internal server error",
            "request_id": request_id,
        },
        headers={"X-Request-Id": request_id},
    )


def parse_client_lesson(data: Dict[str, Any]) -> BaseModel:
    """
    Validate a lesson posted back by a client.

    Raises:
        InvalidInputError: If it is not a valid lesson.
    """
    try:
        return parse_lesson(data)
    except ValidationError as e:
        raise InvalidInputError("Invalid lesson payload", details={"errors": e.error_count()}) from e


@router.get("/v1/catalog")
def catalog():
    """All categories in sidebar order, each with its topics."""
    rates = get_settings().get_service_config().speech.rates
    return {"categories": catalog_dict(), "rates": rates}


@router.post("/v1/lessons")
def create_lesson(
    req: LessonRequest,
    service: LessonService = Depends(get_lesson_service),
):
    """
    Generate a lesson.

    Returns the lesson as camelCase JSON, discriminated by "category".

    Raises:
        400: Unknown category, index out of range
        408: Waited too long for a generation slot
        502: Provider failed or returned unusable content
        503: Provider not configured, or queue full

    Example:
        curl -X POST http://localhost:8000/v1/lessons \\
            -H "Content-Type: application/json" \\
            -d '{"category": "daily", "topic": "Ordering at a Restaurant"}'
    """
    rid = new_request_id()
    try:
        if req.topic and req.topic.strip():
            lesson = service.generate(req.category, req.topic)
        else:
            lesson = service.generate_by_index(req.category, req.index)
        return JSONResponse(content=dump_lesson(lesson), headers={"X-Request-Id": rid})
    except LessonError as e:
        return error_response(e, rid)
    except Exception as e:
        return internal_error_response(e, rid)


@router.post("/v1/lessons/view")
def lesson_view(req: ViewRequest):
    """Render a reading lesson in english, japanese, vocabulary, grammar or shadowing mode."""
    rid = new_request_id()
    try:
        rates = get_settings().get_service_config().speech.rates
        return render_view(parse_client_lesson(req.lesson), req.mode, rates=rates)
    except LessonError as e:
        return error_response(e, rid)


@router.post("/v1/lessons/grade")
def lesson_grade(req: GradeRequest):
    """Check a complete set of answers for a TOEIC lesson."""
    rid = new_request_id()
    try:
        return grade(parse_client_lesson(req.lesson), req.answers).to_dict()
    except LessonError as e:
        return error_response(e, rid)


@router.get("/health")
def health(service: LessonService = Depends(get_lesson_service)):
    """Provider readiness and generation slot usage."""
    return service.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus text format metrics."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
