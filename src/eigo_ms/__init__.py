"""
eigo-ms: English lessons for TOEIC learners, generated and read aloud.

Generates reading passages, business and daily dialogues and TOEIC Part 1-7
practice items from a language model, and plans read-aloud playback with
the best available English voices: one voice for passages, one voice per
speaker for dialogues, at 0.75x/1.0x/1.25x.

Key Features:
    - Lesson API (/v1/lessons) with per-category structured output
    - Speech plans and MP3 streaming (/v1/speech/plan, /v1/speech/stream)
    - Local read-aloud through pyttsx3 from the CLI
    - Prometheus metrics and structured logging

Example Usage:
    >>> from eigo_ms.core.config import Settings
    >>> from eigo_ms.services import LessonService
    >>>
    >>> service = LessonService(Settings(raw={"generation": {"provider": "fallback"}}))
    >>> lesson = service.generate("daily", "Asking for Directions")
    >>> print(lesson.english_text)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
