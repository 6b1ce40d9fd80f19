"""
Edge neural voice backend.

Uses the edge-tts package (Microsoft Edge "Read aloud" voices). All voices
are network voices, so they all carry the network bonus when ranked; among
them the "(Natural)" and "Aria" names still float to the top.

render() returns MP3 bytes and is what the streaming API uses. speak()
renders and hands the bytes to an audio sink, a callable taking the
utterance and its MP3 bytes. The CLI uses a sink that writes numbered
files.
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Any, Callable, Coroutine, List, Optional

from eigo_ms.core.config import Settings
from eigo_ms.core.logging import fail, success, verbose
from eigo_ms.speech.backends.base import BackendCapabilities, BaseSpeechBackend
from eigo_ms.speech.plan import Utterance
from eigo_ms.speech.voices import Voice, normalize_lang
from eigo_ms.utils.timeit import timeit

AudioSink = Callable[[Utterance, bytes], None]

DEFAULT_VOICE = "en-US-AriaNeural"


def rate_to_percent(rate: float) -> str:
    """Map a rate multiplier to edge-tts syntax: 1.25 -> "+25%", 0.75 -> "-25%"."""
    pct = int(round((rate - 1.0) * 100))
    return f"{pct:+d}%"


def _run_coro(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a coroutine to completion from sync code, even inside a running loop."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


class EdgeBackend(BaseSpeechBackend):
    """Network neural voices through edge-tts."""

    name = "edge"
    capabilities = BackendCapabilities(
        playback=True,
        render=True,
        network_voices=True,
    )

    def __init__(self, settings: Settings, sink: Optional[AudioSink] = None):
        super().__init__(settings)
        self._edge_tts: Any = None
        self._voices: Optional[List[Voice]] = None
        self._voices_lock = threading.Lock()
        self.sink = sink

    def load(self) -> None:
        try:
            import edge_tts
        except ImportError as e:
            raise RuntimeError(
                "edge-tts is not installed. Install with: pip install edge-tts"
            ) from e
        self._edge_tts = edge_tts
        self._loaded = True

    def list_voices(self) -> List[Voice]:
        """Voice catalog from the Edge service, fetched once per process."""
        self.ensure_loaded()
        with self._voices_lock:
            if self._voices is None:
                with timeit("edge_list_voices") as t:
                    raw = _run_coro(self._edge_tts.list_voices())
                self._voices = [self._to_voice(v) for v in raw]
                success(self.logger, "voices_loaded", count=len(self._voices), seconds=round(t.seconds, 3))
            return list(self._voices)

    @staticmethod
    def _to_voice(raw: dict) -> Voice:
        short_name = raw.get("ShortName") or raw.get("Name", "")
        return Voice(
            name=raw.get("FriendlyName") or short_name,
            lang=normalize_lang(raw.get("Locale", "")),
            local_service=False,
            voice_uri=short_name,
            gender=raw.get("Gender"),
        )

    def render(self, utterance: Utterance) -> bytes:
        """Synthesize one utterance to MP3 bytes."""
        self.ensure_loaded()
        voice = utterance.voice.voice_uri if utterance.voice and utterance.voice.voice_uri else DEFAULT_VOICE
        communicate = self._edge_tts.Communicate(
            utterance.text,
            voice,
            rate=rate_to_percent(utterance.rate),
        )

        async def _collect() -> bytes:
            buf = bytearray()
            async for chunk in communicate.stream():
                if chunk.get("type") == "audio":
                    buf.extend(chunk["data"])
            return bytes(buf)

        with timeit("edge_render") as t:
            try:
                audio = _run_coro(_collect())
            except Exception as exc:
                fail(self.logger, "render_failed", voice=voice, error=str(exc))
                raise
        verbose(self.logger, "rendered", index=utterance.index, voice=voice,
                bytes=len(audio), seconds=round(t.seconds, 3))
        if not audio:
            raise RuntimeError(f"no audio received for voice {voice}")
        return audio

    def _say(self, utterance: Utterance) -> None:
        if self.sink is None:
            raise RuntimeError("edge backend has no audio sink configured")
        audio = self.render(utterance)
        self.sink(utterance, audio)
