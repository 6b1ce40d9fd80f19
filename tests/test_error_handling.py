"""Tests for error codes and exceptions."""
from __future__ import annotations

import pytest

from eigo_ms.api.routes import STATUS_MAP
from eigo_ms.core.errors import (
    GENERATION_FAILED_MESSAGE,
    NO_VOICES_MESSAGE,
    SPEECH_UNAVAILABLE_MESSAGE,
    ErrorCode,
    GenerationError,
    InvalidInputError,
    LessonError,
    NoVoicesError,
    ProviderNotReadyError,
    QueueFullError,
    SpeechError,
    SpeechUnavailableError,
    TimeoutError,
    playback_error_message,
)


class TestLessonError:

    def test_base_error_defaults(self):
        err = LessonError("Something broke")
        assert err.code == ErrorCode.INTERNAL_ERROR
        assert err.details == {}
        assert str(err) == "Something broke"

    def test_to_dict_without_details(self):
        assert LessonError("x", ErrorCode.TIMEOUT).to_dict() == {
            "ok": False,
            "error": "TIMEOUT",
            "message": "x",
        }

    def test_to_dict_with_details(self):
        data = InvalidInputError("Bad index", details={"count": 8}).to_dict()
        assert data["error"] == "INVALID_INPUT"
        assert data["details"] == {"count": 8}


class TestSubclasses:

    @pytest.mark.parametrize("cls,code", [
        (InvalidInputError, ErrorCode.INVALID_INPUT),
        (ProviderNotReadyError, ErrorCode.PROVIDER_NOT_READY),
        (QueueFullError, ErrorCode.QUEUE_FULL),
        (TimeoutError, ErrorCode.TIMEOUT),
    ])
    def test_codes(self, cls, code):
        err = cls("message")
        assert err.code == code
        assert isinstance(err, LessonError)

    def test_generation_error_default_message(self):
        err = GenerationError(details={"reason": "validation"})
        assert err.message == GENERATION_FAILED_MESSAGE
        assert err.code == ErrorCode.GENERATION_FAILED

    def test_speech_errors(self):
        assert SpeechError("engine crashed").code == ErrorCode.SPEECH_FAILED
        assert NoVoicesError().message == NO_VOICES_MESSAGE
        assert NoVoicesError().code == ErrorCode.NO_VOICES
        assert SpeechUnavailableError().message == SPEECH_UNAVAILABLE_MESSAGE
        assert isinstance(NoVoicesError(), SpeechError)

    def test_timeout_error_is_not_builtin(self):
        import builtins

        assert TimeoutError is not builtins.TimeoutError
        assert not issubclass(TimeoutError, builtins.TimeoutError)


def test_playback_error_message():
    assert playback_error_message("interrupted") == (
        "Audio playback error: interrupted. Please try another browser if the issue persists."
    )


class TestStatusMap:

    @pytest.mark.parametrize("code,status", [
        (ErrorCode.INVALID_INPUT, 400),
        (ErrorCode.TIMEOUT, 408),
        (ErrorCode.NO_VOICES, 422),
        (ErrorCode.GENERATION_FAILED, 502),
        (ErrorCode.SPEECH_FAILED, 502),
        (ErrorCode.PROVIDER_NOT_READY, 503),
        (ErrorCode.QUEUE_FULL, 503),
        (ErrorCode.SPEECH_UNAVAILABLE, 503),
        (ErrorCode.INTERNAL_ERROR, 500),
    ])
    def test_status(self, code, status):
        assert STATUS_MAP[code] == status


class TestErrorResponses:

    def test_internal_error_hides_details(self, reset_singletons, monkeypatch):
        from fastapi.testclient import TestClient

        from eigo_ms.main import create_app
        from eigo_ms.services.lesson_service import LessonService

        def explode(self, category, index):
            raise ZeroDivisionError("secret internals")

        monkeypatch.setattr(LessonService, "generate_by_index", explode)
        with TestClient(create_app()) as client:
            r = client.post("/v1/lessons", json={"category": "daily", "index": 0})

        assert r.status_code == 500
        body = r.json()
        assert body["error"] == "INTERNAL_ERROR"
        assert body["message"] == "Internal server error"
        assert "secret" not in r.text
