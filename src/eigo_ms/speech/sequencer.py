"""
Playback Sequencer.

Feeds a SpeechPlan to a backend so the utterances play back-to-back, and
turns per-utterance backend events into playback-level state:

    IDLE ──play()──> PENDING ──first utterance starts──> SPEAKING
      ^                 │                                   │
      └──── cancel() / last utterance ends / any error ─────┘

Every play() and cancel() starts a new generation. Callbacks carry the
generation they were issued under and are ignored once it is stale, so a
late "end" from a cancelled playback can never mark a newer playback as
finished. This is what makes cancel-then-restart (rate changes, replay)
safe.

play() waits start_delay_s before queueing. Some engines drop the first
utterance when it arrives in the same tick as a cancel; the short gap
avoids that. PENDING counts as speaking, so toggling during the gap
cancels instead of queueing a second playback.
"""
from __future__ import annotations

import threading
from enum import Enum
from functools import partial
from typing import Callable, List, Optional

from eigo_ms.core.config import Defaults
from eigo_ms.core.logging import debug, get_logger, info, verbose, warn
from eigo_ms.core.metrics import metrics
from eigo_ms.speech.backends.base import BaseSpeechBackend, UtteranceCallbacks
from eigo_ms.speech.plan import SpeechPlan, Utterance

_LOG = get_logger("eigo-ms.sequencer")

TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


class PlaybackState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SPEAKING = "speaking"


def _default_timer(delay: float, fn: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    return timer


class PlaybackSequencer:
    """
    Sequences utterances on a backend and exposes start/end/error events.

    Args:
        backend: Speech backend that receives the utterances.
        start_delay_s: Gap between play() and queueing the first utterance.
        on_start: Called when the first utterance begins.
        on_end: Called when the last utterance finishes.
        on_error: Called with (message, utterance) when an utterance fails.
        timer_factory: Creates the start-delay timer (injectable for tests).
    """

    def __init__(
        self,
        backend: BaseSpeechBackend,
        start_delay_s: float = Defaults.SPEECH_START_DELAY_S,
        on_start: Optional[Callable[[], None]] = None,
        on_end: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[str, Optional[Utterance]], None]] = None,
        timer_factory: TimerFactory = _default_timer,
    ):
        self.backend = backend
        self.start_delay_s = start_delay_s
        self.on_start = on_start
        self.on_end = on_end
        self.on_error = on_error
        self._timer_factory = timer_factory

        self._lock = threading.Lock()
        self._generation = 0
        self._state = PlaybackState.IDLE
        self._plan: Optional[SpeechPlan] = None
        self._timer: Optional[threading.Timer] = None
        self._idle = threading.Event()
        self._idle.set()

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> PlaybackState:
        with self._lock:
            return self._state

    @property
    def is_speaking(self) -> bool:
        return self.state is not PlaybackState.IDLE

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def current_plan(self) -> Optional[SpeechPlan]:
        with self._lock:
            return self._plan

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until playback finishes; False on timeout."""
        return self._idle.wait(timeout)

    # ─────────────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────────────

    def play(self, plan: SpeechPlan) -> int:
        """
        Cancel whatever is playing and start a new playback.

        Returns:
            The generation number of the new playback.
        """
        with self._lock:
            self._stop_timer_locked()
            self._generation += 1
            generation = self._generation
            self._plan = plan
            self._set_state_locked(PlaybackState.IDLE if plan.empty else PlaybackState.PENDING)
        # After the bump, so no older dispatch can enqueue behind the flush
        self._cancel_backend()

        if plan.empty:
            debug(_LOG, "play_empty", generation=generation)
            return generation

        info(_LOG, "play", generation=generation, utterances=len(plan),
             rate=plan.rate, multi_speaker=plan.multi_speaker)
        if self.start_delay_s <= 0:
            self._dispatch(generation)
            return generation

        with self._lock:
            if generation == self._generation:
                self._timer = self._timer_factory(self.start_delay_s, partial(self._dispatch, generation))
                self._timer.start()
        return generation

    def cancel(self) -> None:
        """Stop playback; pending events from it are ignored afterwards."""
        with self._lock:
            self._stop_timer_locked()
            was_active = self._state is not PlaybackState.IDLE
            self._generation += 1
            self._set_state_locked(PlaybackState.IDLE)
        self._cancel_backend()
        if was_active:
            metrics.record_playback("cancel")
            verbose(_LOG, "cancelled")

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _cancel_backend(self) -> None:
        self.backend.cancel()

    def _stop_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_state_locked(self, state: PlaybackState) -> None:
        self._state = state
        if state is PlaybackState.IDLE:
            self._idle.set()
        else:
            self._idle.clear()

    def _dispatch(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._plan is None:
                return
            self._timer = None
            utterances: List[Utterance] = list(self._plan.utterances)

        last_index = len(utterances) - 1
        for position, utterance in enumerate(utterances):
            callbacks = UtteranceCallbacks(
                on_start=partial(self._handle_start, generation, position),
                on_end=partial(self._handle_end, generation, position == last_index),
                on_error=partial(self._handle_error, generation, utterance),
            )
            failure: Optional[str] = None
            # Enqueue under the lock: a concurrent error or cancel either sees
            # this utterance in the backend queue or stops us before it
            with self._lock:
                if generation != self._generation:
                    return
                try:
                    self.backend.speak(utterance, callbacks)
                except Exception as exc:  # backend refused the utterance (not loaded, no device)
                    failure = str(exc) or exc.__class__.__name__
            if failure is not None:
                self._handle_error(generation, utterance, failure)
                return

    def _handle_start(self, generation: int, position: int) -> None:
        if position != 0:
            return
        with self._lock:
            if generation != self._generation:
                return
            self._set_state_locked(PlaybackState.SPEAKING)
        metrics.record_playback("start")
        verbose(_LOG, "speaking", generation=generation)
        if self.on_start is not None:
            self.on_start()

    def _handle_end(self, generation: int, is_last: bool) -> None:
        if not is_last:
            return
        with self._lock:
            if generation != self._generation:
                return
            self._set_state_locked(PlaybackState.IDLE)
        metrics.record_playback("end")
        verbose(_LOG, "finished", generation=generation)
        if self.on_end is not None:
            self.on_end()

    def _handle_error(self, generation: int, utterance: Optional[Utterance], message: str) -> None:
        with self._lock:
            if generation != self._generation:
                return
            # The rest of this playback is abandoned
            self._generation += 1
            self._stop_timer_locked()
            self._set_state_locked(PlaybackState.IDLE)
        self._cancel_backend()
        metrics.record_playback("error")
        warn(_LOG, "utterance_error", generation=generation,
             index=utterance.index if utterance else None, error=message)
        if self.on_error is not None:
            self.on_error(message, utterance)
