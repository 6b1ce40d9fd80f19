"""Backend used when no speech engine is available (headless servers, CI)."""
from __future__ import annotations

from typing import List

from eigo_ms.core.errors import SPEECH_UNAVAILABLE_MESSAGE
from eigo_ms.speech.backends.base import BaseSpeechBackend
from eigo_ms.speech.plan import Utterance
from eigo_ms.speech.voices import Voice


class NullBackend(BaseSpeechBackend):
    name = "null"
    available = False

    def load(self) -> None:
        self._loaded = True

    def list_voices(self) -> List[Voice]:
        return []

    def _say(self, utterance: Utterance) -> None:
        raise RuntimeError(SPEECH_UNAVAILABLE_MESSAGE)
