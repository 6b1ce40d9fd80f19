"""Shared fixtures: offline provider/backend, singleton resets, a scriptable speech backend."""
from __future__ import annotations

import threading
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from eigo_ms.core.config import Settings
from eigo_ms.speech.backends.base import BackendCapabilities, BaseSpeechBackend
from eigo_ms.speech.plan import Utterance
from eigo_ms.speech.voices import Voice

ROOT = Path(__file__).resolve().parent.parent
SETTINGS_PATH = ROOT / "config" / "settings.yaml"


@pytest.fixture(autouse=True)
def offline_env(monkeypatch):
    """Never reach OpenAI or a sound card from the test suite."""
    monkeypatch.setenv("EIGO_MS_SETTINGS", str(SETTINGS_PATH))
    monkeypatch.setenv("EIGO_MS_PROVIDER", "fallback")
    monkeypatch.setenv("EIGO_MS_SPEECH_BACKEND", "null")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    yield


@pytest.fixture
def reset_singletons():
    """Drop every process-wide singleton before and after the test."""
    from eigo_ms.api.dependencies import get_settings
    from eigo_ms.lessons.provider import reset_provider
    from eigo_ms.services.concurrency import reset_controller
    from eigo_ms.services.lesson_service import reset_service
    from eigo_ms.speech.backends import reset_backend

    def _reset():
        get_settings.cache_clear()
        reset_service()
        reset_controller()
        reset_provider()
        reset_backend()

    _reset()
    yield
    _reset()


# Voices as a browser on Windows or macOS would report them
ARIA = Voice(name="Microsoft Aria Online (Natural) - English (United States)", lang="en-US",
             local_service=False, voice_uri="aria")
GUY = Voice(name="Microsoft Guy Online (Natural) - English (United States)", lang="en-US",
            local_service=False, voice_uri="guy")
DAVID = Voice(name="Microsoft David - English (United States)", lang="en-US", voice_uri="david")
KYOKO = Voice(name="Kyoko", lang="ja-JP", voice_uri="kyoko")


class FakeBackend(BaseSpeechBackend):
    """
    In-memory backend.

    Utterances containing ``fail_on`` raise inside _say. With ``hold`` set,
    each utterance blocks until the event is set (or interrupted).
    """

    name = "fake"
    capabilities = BackendCapabilities(playback=True, render=True, network_voices=False)

    def __init__(self, voices: Sequence[Voice] = (ARIA, GUY, DAVID),
                 fail_on: Optional[str] = None, hold: Optional[threading.Event] = None):
        super().__init__(Settings(raw={}))
        self._voice_list = list(voices)
        self.fail_on = fail_on
        self.hold = hold
        self.spoken: List[Utterance] = []
        self.interrupts = 0

    def load(self) -> None:
        self._loaded = True

    def list_voices(self) -> List[Voice]:
        return list(self._voice_list)

    def render(self, utterance: Utterance) -> bytes:
        return f"ID3:{utterance.text}".encode("utf-8")

    def _say(self, utterance: Utterance) -> None:
        if self.hold is not None:
            self.hold.wait(2.0)
        if self.fail_on and self.fail_on in utterance.text:
            raise RuntimeError("synthesis-failed")
        self.spoken.append(utterance)

    def _interrupt(self) -> None:
        self.interrupts += 1
        if self.hold is not None:
            self.hold.set()


@pytest.fixture
def fake_backend():
    backend = FakeBackend()
    yield backend
    backend.close()


@pytest.fixture
def make_backend():
    """Factory for FakeBackend with custom voices or failures; closes them afterwards."""
    created: List[FakeBackend] = []

    def _make(**kwargs) -> FakeBackend:
        backend = FakeBackend(**kwargs)
        created.append(backend)
        return backend

    yield _make
    for backend in created:
        backend.close()
