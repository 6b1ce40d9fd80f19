"""
Speech Backend Base Class.

A backend owns the platform speech engine: it lists voices, and it speaks
utterances one after another from a queue, reporting start/end/error per
utterance through callbacks.

Threading model:
    speak() only enqueues. A single daemon worker thread drains the queue
    and calls _say() for each item, which blocks until that utterance has
    been spoken. Callbacks therefore run on the worker thread.

    cancel() bumps the backend's epoch, drops everything queued and asks
    the engine to stop the current utterance via _interrupt(). Items from
    an older epoch are discarded by the worker without any callback.

Implementing a New Backend:
    1. Create backends/<name>_backend.py
    2. Inherit from BaseSpeechBackend
    3. Implement load(), list_voices(), _say() and _interrupt()
    4. Register it in backends/__init__.py
"""
from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from eigo_ms.core.config import Settings, SpeechConfig
from eigo_ms.core.logging import debug, get_logger
from eigo_ms.speech.plan import Utterance
from eigo_ms.speech.voices import Voice


@dataclass(frozen=True)
class BackendCapabilities:
    """
    What a backend can do.

    Attributes:
        playback: Can speak aloud (or hand audio to a sink) via speak().
        render: Can return encoded audio bytes via render().
        network_voices: Voices are synthesized remotely.
    """
    playback: bool
    render: bool
    network_voices: bool


@dataclass
class UtteranceCallbacks:
    """Per-utterance event hooks, invoked from the backend worker thread."""
    on_start: Callable[[], None]
    on_end: Callable[[], None]
    on_error: Callable[[str], None]


_QueueItem = Tuple[int, Utterance, UtteranceCallbacks]


class BaseSpeechBackend:
    """
    Base class for speech backends.

    Attributes:
        name: Backend identifier ("edge", "pyttsx3", "null").
        capabilities: BackendCapabilities for this backend.
        available: False when the backend cannot speak at all.
    """

    name: str = "base"
    capabilities: BackendCapabilities = BackendCapabilities(
        playback=False,
        render=False,
        network_voices=False,
    )
    available: bool = True

    def __init__(self, settings: Settings):
        self.settings = settings
        self.speech_config: SpeechConfig = settings.get_service_config().speech
        self.logger = get_logger(f"eigo-ms.backend.{self.name}")
        self._loaded = False
        self._epoch = 0
        self._speaking = False
        self._lock = threading.Lock()
        self._queue: "queue.Queue[Optional[_QueueItem]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None

    # ─────────────────────────────────────────────────────────────────────────
    # Subclass API
    # ─────────────────────────────────────────────────────────────────────────

    def load(self) -> None:
        """Initialize the platform engine. Must set self._loaded."""
        raise NotImplementedError

    def list_voices(self) -> List[Voice]:
        """All voices the engine offers, in platform order."""
        raise NotImplementedError

    def render(self, utterance: Utterance) -> bytes:
        """Encoded audio for one utterance (render-capable backends only)."""
        raise NotImplementedError(f"{self.name} backend cannot render audio")

    def _say(self, utterance: Utterance) -> None:
        """Speak one utterance, blocking until it finishes or is interrupted."""
        raise NotImplementedError

    def _interrupt(self) -> None:
        """Stop the utterance currently being spoken, if any."""

    # ─────────────────────────────────────────────────────────────────────────
    # Queue management
    # ─────────────────────────────────────────────────────────────────────────

    def is_loaded(self) -> bool:
        return bool(self._loaded)

    def ensure_loaded(self) -> None:
        if not self.is_loaded():
            self.load()

    @property
    def speaking(self) -> bool:
        """True while an utterance is being spoken or is waiting in the queue."""
        with self._lock:
            return self._speaking or not self._queue.empty()

    def speak(self, utterance: Utterance, callbacks: UtteranceCallbacks) -> None:
        """Queue an utterance behind everything already queued."""
        self.ensure_loaded()
        self._ensure_worker()
        with self._lock:
            epoch = self._epoch
        self._queue.put((epoch, utterance, callbacks))

    def cancel(self) -> None:
        """Drop queued utterances and stop the current one."""
        with self._lock:
            self._epoch += 1
            dropped = 0
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
                dropped += 1
            speaking = self._speaking
        if speaking:
            self._interrupt()
        debug(self.logger, "backend_cancel", dropped=dropped, interrupted=speaking)

    def close(self) -> None:
        """Stop the worker thread."""
        self.cancel()
        if self._worker is not None:
            self._queue.put(None)
            self._worker.join(timeout=2.0)
            self._worker = None

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is not None and self._worker.is_alive():
                return
            self._worker = threading.Thread(
                target=self._run, name=f"eigo-ms-{self.name}-speech", daemon=True,
            )
            self._worker.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                return
            epoch, utterance, callbacks = item
            with self._lock:
                if epoch != self._epoch:
                    continue
                self._speaking = True

            callbacks.on_start()
            try:
                self._say(utterance)
            except Exception as exc:  # reported through on_error
                with self._lock:
                    self._speaking = False
                    current = epoch == self._epoch
                if current:
                    callbacks.on_error(str(exc) or exc.__class__.__name__)
                continue

            with self._lock:
                self._speaking = False
                current = epoch == self._epoch
            if current:
                callbacks.on_end()
