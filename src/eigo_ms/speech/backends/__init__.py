"""
Speech backends and the backend factory.

Backends:
    - edge: Microsoft Edge neural voices via edge-tts (network, can render MP3)
    - pyttsx3: Local OS voices via pyttsx3 (offline, speaks aloud)
    - null: No speech; playback reports "not available"

The backend is selected by settings.speech.backend or EIGO_MS_SPEECH_BACKEND.
"""
from __future__ import annotations

import threading
from typing import Optional

from eigo_ms.core.config import Settings
from eigo_ms.core.logging import get_logger, info
from eigo_ms.speech.backends.base import BackendCapabilities, BaseSpeechBackend, UtteranceCallbacks

_LOG = get_logger("eigo-ms.backend")

_BACKEND: Optional[BaseSpeechBackend] = None
_BACKEND_NAME: Optional[str] = None
_BACKEND_LOCK = threading.Lock()

_ALIASES = {
    "edge": "edge",
    "edge-tts": "edge",
    "edge_tts": "edge",
    "pyttsx3": "pyttsx3",
    "local": "pyttsx3",
    "system": "pyttsx3",
    "null": "null",
    "none": "null",
    "off": "null",
}


def normalize_backend_name(name: str) -> str:
    """Map aliases to canonical backend names; unknown names pass through."""
    key = (name or "").strip().lower()
    return _ALIASES.get(key, key)


def create_backend(name: str, settings: Settings) -> BaseSpeechBackend:
    """
    Instantiate a backend by canonical name.

    Imports are lazy so an unused backend's dependency is never required.

    Raises:
        ValueError: If the name is unknown.
    """
    if name == "edge":
        from eigo_ms.speech.backends.edge_backend import EdgeBackend
        return EdgeBackend(settings)
    if name == "pyttsx3":
        from eigo_ms.speech.backends.pyttsx3_backend import Pyttsx3Backend
        return Pyttsx3Backend(settings)
    if name == "null":
        from eigo_ms.speech.backends.null_backend import NullBackend
        return NullBackend(settings)
    raise ValueError(f"Unknown speech backend: {name}")


def get_backend(settings: Settings) -> BaseSpeechBackend:
    """
    Get or create the process-wide speech backend.

    A different configured backend name replaces the existing instance.
    """
    global _BACKEND
    global _BACKEND_NAME

    name = normalize_backend_name(settings.speech_backend)

    if _BACKEND is None or _BACKEND_NAME != name:
        with _BACKEND_LOCK:
            if _BACKEND is None or _BACKEND_NAME != name:
                if _BACKEND is not None:
                    _BACKEND.close()
                _BACKEND = create_backend(name, settings)
                _BACKEND_NAME = name
                info(_LOG, "backend_selected", backend=name)

    return _BACKEND


def reset_backend() -> None:
    """Drop the cached backend (tests)."""
    global _BACKEND
    global _BACKEND_NAME
    with _BACKEND_LOCK:
        if _BACKEND is not None:
            _BACKEND.close()
        _BACKEND = None
        _BACKEND_NAME = None


__all__ = [
    "BackendCapabilities",
    "BaseSpeechBackend",
    "UtteranceCallbacks",
    "create_backend",
    "get_backend",
    "normalize_backend_name",
    "reset_backend",
]
