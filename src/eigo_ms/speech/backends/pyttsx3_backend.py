"""
Local OS voice backend (SAPI5 / NSSpeechSynthesizer / eSpeak) via pyttsx3.

Installed with the ``local`` extra:
    pip install eigo-ms[local]

pyttsx3 reports languages inconsistently: eSpeak gives bytes such as
b"\\x05en-us", SAPI5 usually gives nothing at all. When no language is
reported it is guessed from the voice name ("... - English (United
Kingdom)").
"""
from __future__ import annotations

from typing import Any, List, Optional

from eigo_ms.core.config import Settings
from eigo_ms.core.logging import success, verbose
from eigo_ms.speech.backends.base import BackendCapabilities, BaseSpeechBackend
from eigo_ms.speech.plan import Utterance
from eigo_ms.speech.voices import Voice, normalize_lang

_REGION_HINTS = (
    ("united states", "en-US"),
    ("united kingdom", "en-GB"),
    ("great britain", "en-GB"),
    ("australia", "en-AU"),
    ("canada", "en-CA"),
    ("india", "en-IN"),
    ("ireland", "en-IE"),
)


def _decode_lang(raw: Any) -> str:
    if isinstance(raw, bytes):
        # eSpeak prefixes the tag with a priority byte
        raw = raw.decode("latin-1").lstrip("\x00\x01\x02\x03\x04\x05\x06\x07\x08\x09")
    return normalize_lang(str(raw))


def _guess_lang(name: str) -> str:
    lowered = name.lower()
    if "english" not in lowered:
        return ""
    for hint, tag in _REGION_HINTS:
        if hint in lowered:
            return tag
    return "en-US"


class Pyttsx3Backend(BaseSpeechBackend):
    """Offline system voices; every voice is local."""

    name = "pyttsx3"
    capabilities = BackendCapabilities(
        playback=True,
        render=False,
        network_voices=False,
    )

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self._engine: Optional[Any] = None

    def load(self) -> None:
        try:
            import pyttsx3
        except ImportError as e:
            raise RuntimeError(
                "pyttsx3 is not installed. Install with: pip install eigo-ms[local]"
            ) from e
        self._engine = pyttsx3.init()
        self._loaded = True
        success(self.logger, "engine_loaded", backend=self.name)

    def list_voices(self) -> List[Voice]:
        self.ensure_loaded()
        voices: List[Voice] = []
        for v in self._engine.getProperty("voices") or []:
            languages = list(getattr(v, "languages", None) or [])
            lang = _decode_lang(languages[0]) if languages else ""
            if not lang:
                lang = _guess_lang(v.name or "")
            voices.append(Voice(
                name=v.name or v.id,
                lang=lang,
                local_service=True,
                voice_uri=v.id,
                gender=getattr(v, "gender", None),
            ))
        return voices

    def _say(self, utterance: Utterance) -> None:
        engine = self._engine
        if utterance.voice is not None and utterance.voice.voice_uri:
            engine.setProperty("voice", utterance.voice.voice_uri)
        engine.setProperty("rate", int(self.speech_config.base_wpm * utterance.rate))
        verbose(self.logger, "say", index=utterance.index, speaker=utterance.speaker,
                chars=len(utterance.text))
        engine.say(utterance.text)
        engine.runAndWait()

    def _interrupt(self) -> None:
        if self._engine is not None:
            self._engine.stop()
