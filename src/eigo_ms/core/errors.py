"""
Error codes and exceptions shared by the lesson service, speech layer and API.

Every error carries a stable code so HTTP clients and the CLI can react
without parsing messages. The messages themselves are learner-facing:
they are shown verbatim in the UI.

Hierarchy:
    LessonError
    ├── InvalidInputError       INVALID_INPUT
    ├── GenerationError         GENERATION_FAILED
    ├── ProviderNotReadyError   PROVIDER_NOT_READY
    ├── QueueFullError          QUEUE_FULL
    ├── TimeoutError            TIMEOUT
    └── SpeechError             SPEECH_FAILED
        ├── NoVoicesError           NO_VOICES
        └── SpeechUnavailableError  SPEECH_UNAVAILABLE
"""
from __future__ import annotations

from typing import Any, Dict, Optional


GENERATION_FAILED_MESSAGE = "Received invalid data from the AI. Please try again."
NO_VOICES_MESSAGE = "No English voices found for audio playback."
SPEECH_UNAVAILABLE_MESSAGE = "Audio playback is not available on this browser."


def playback_error_message(detail: str) -> str:
    """Learner-facing message for an utterance that failed mid-playback."""
    return f"Audio playback error: {detail}. Please try another browser if the issue persists."


class ErrorCode:
    """Standardized error codes for API responses."""
    INVALID_INPUT = "INVALID_INPUT"             # Bad request data
    GENERATION_FAILED = "GENERATION_FAILED"     # Provider returned unusable content
    PROVIDER_NOT_READY = "PROVIDER_NOT_READY"   # Provider misconfigured / unreachable
    QUEUE_FULL = "QUEUE_FULL"                   # Generation queue at capacity
    TIMEOUT = "TIMEOUT"                         # Waited too long for a slot
    SPEECH_FAILED = "SPEECH_FAILED"             # Backend failed while speaking
    NO_VOICES = "NO_VOICES"                     # No English voice installed
    SPEECH_UNAVAILABLE = "SPEECH_UNAVAILABLE"   # No speech backend at all
    INTERNAL_ERROR = "INTERNAL_ERROR"           # Unexpected error


class LessonError(Exception):
    """
    Base exception with a code, a message and optional details.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode.
        details: Optional dictionary with additional context.
    """
    def __init__(self, message: str, code: str = ErrorCode.INTERNAL_ERROR, details: Optional[Dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Standardized error response body."""
        result: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class InvalidInputError(LessonError):
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.INVALID_INPUT, details)


class GenerationError(LessonError):
    """The provider failed or returned content that does not fit the lesson schema."""
    def __init__(self, message: str = GENERATION_FAILED_MESSAGE, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.GENERATION_FAILED, details)


class ProviderNotReadyError(LessonError):
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.PROVIDER_NOT_READY, details)


class QueueFullError(LessonError):
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.QUEUE_FULL, details)


class TimeoutError(LessonError):
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.TIMEOUT, details)


class SpeechError(LessonError):
    def __init__(self, message: str, code: str = ErrorCode.SPEECH_FAILED, details: Optional[Dict] = None):
        super().__init__(message, code, details)


class NoVoicesError(SpeechError):
    def __init__(self, message: str = NO_VOICES_MESSAGE, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.NO_VOICES, details)


class SpeechUnavailableError(SpeechError):
    def __init__(self, message: str = SPEECH_UNAVAILABLE_MESSAGE, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.SPEECH_UNAVAILABLE, details)
