"""
Playback controller.

The app-level "read aloud" control for one lesson view: the play/stop
toggle, the speed buttons and the speaker icons next to TOEIC choices all
go through a PlaybackController. It owns a PlaybackSequencer, remembers the
learner's rate across lessons and keeps a user-facing error string instead
of raising, the same way the lesson page shows a banner.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from eigo_ms.core.config import SpeechConfig
from eigo_ms.core.errors import (
    SPEECH_UNAVAILABLE_MESSAGE,
    InvalidInputError,
    NoVoicesError,
    playback_error_message,
)
from eigo_ms.core.logging import get_logger, info, verbose, warn
from eigo_ms.lessons.models import LessonCategory, lesson_category
from eigo_ms.speech.backends.base import BaseSpeechBackend
from eigo_ms.speech.plan import SpeechPlan, Utterance, build_dialogue_plan, build_snippet_plan
from eigo_ms.speech.sequencer import PlaybackSequencer
from eigo_ms.speech.voices import Voice

_LOG = get_logger("eigo-ms.player")

MULTI_SPEAKER_CATEGORIES = frozenset({
    LessonCategory.BUSINESS,
    LessonCategory.DAILY,
    LessonCategory.TOEIC_PART3,
    LessonCategory.TOEIC_PART4,
})


def speech_text(lesson: Optional[BaseModel]) -> str:
    """The text the play button reads for a lesson ("" when there is none)."""
    if lesson is None:
        return ""
    category = lesson_category(lesson)
    if category.is_reading:
        return lesson.english_text
    if category is LessonCategory.TOEIC_PART3:
        return lesson.conversation_script
    if category is LessonCategory.TOEIC_PART4:
        return lesson.talk_script
    return ""


def is_multi_speaker(lesson: Optional[BaseModel]) -> bool:
    return lesson is not None and lesson_category(lesson) in MULTI_SPEAKER_CATEGORIES


class PlaybackController:
    """
    Play, stop, re-rate and restart lesson audio.

    Args:
        backend: Speech backend to speak through.
        speech_config: Rates and start delay; defaults apply when omitted.
        max_chars: Optional chunk size cap passed to the plan builders.
    """

    def __init__(
        self,
        backend: BaseSpeechBackend,
        speech_config: Optional[SpeechConfig] = None,
        max_chars: Optional[int] = None,
    ):
        config = speech_config or SpeechConfig()
        self.backend = backend
        self.config = config
        self.max_chars = max_chars or None
        self.playback_rate = config.default_rate
        self.lesson: Optional[BaseModel] = None
        self.error: Optional[str] = None
        self._voices: Optional[List[Voice]] = None
        self.sequencer = PlaybackSequencer(
            backend,
            start_delay_s=config.start_delay_s,
            on_error=self._on_utterance_error,
        )

    @property
    def is_speaking(self) -> bool:
        return self.sequencer.is_speaking

    @property
    def voices(self) -> List[Voice]:
        """Backend voices, loaded on first use."""
        if self._voices is None:
            self._voices = self.backend.list_voices() if self.backend.available else []
            verbose(_LOG, "voices_loaded", backend=self.backend.name, count=len(self._voices))
        return self._voices

    # ─────────────────────────────────────────────────────────────────────────
    # Lesson controls
    # ─────────────────────────────────────────────────────────────────────────

    def select_lesson(self, lesson: Optional[BaseModel]) -> None:
        """Switch lessons: stop speaking and clear any error banner."""
        self.cancel()
        self.lesson = lesson
        self.error = None

    def toggle(self) -> bool:
        """
        Stop if speaking, otherwise read the current lesson aloud.

        Returns:
            True when playback was started.
        """
        if self.is_speaking:
            self.cancel()
            return False
        plan = self._play_lesson()
        return plan is not None and not plan.empty

    def set_rate(self, rate: float) -> None:
        """
        Change the playback rate; an ongoing playback restarts at the new rate.

        "Ongoing" follows the sequencer, so a playback still waiting out its
        start delay (PENDING) restarts too. A lesson with no main script
        leaves a playing choice snippet alone.

        Raises:
            InvalidInputError: If rate is not positive.
        """
        if rate <= 0:
            raise InvalidInputError(f"Playback rate must be positive, got {rate}")
        self.playback_rate = float(rate)
        info(_LOG, "rate_changed", rate=self.playback_rate)
        if self.is_speaking:
            self.restart()

    def restart(self) -> Optional[SpeechPlan]:
        """Play the lesson text again from the beginning; None when there is none."""
        return self._play_lesson()

    def cancel(self) -> None:
        self.sequencer.cancel()

    # ─────────────────────────────────────────────────────────────────────────
    # Ad-hoc text (TOEIC choices, questions)
    # ─────────────────────────────────────────────────────────────────────────

    def play_snippet(self, text: str) -> Optional[SpeechPlan]:
        return self._play(text, multi_speaker=False)

    def play_dialogue(self, text: str) -> Optional[SpeechPlan]:
        return self._play(text, multi_speaker=True)

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _play_lesson(self) -> Optional[SpeechPlan]:
        text = speech_text(self.lesson)
        if not text:
            # Parts 1, 2 and 5-7 have no main script; leave any choice snippet playing
            return None
        return self._play(text, multi_speaker=is_multi_speaker(self.lesson))

    def _play(self, text: str, multi_speaker: bool) -> Optional[SpeechPlan]:
        if not self.backend.available:
            self.error = SPEECH_UNAVAILABLE_MESSAGE
            warn(_LOG, "speech_unavailable", backend=self.backend.name)
            return None

        self.error = None
        voices = self.voices
        if not voices:
            warn(_LOG, "no_voices_loaded", backend=self.backend.name)

        builder = build_dialogue_plan if multi_speaker else build_snippet_plan
        try:
            plan = builder(
                text,
                voices,
                rate=self.playback_rate,
                max_chars=self.max_chars,
                fallback_lang=self.config.fallback_lang,
            )
        except NoVoicesError as exc:
            self.sequencer.cancel()
            self.error = exc.message
            warn(_LOG, "no_english_voices", backend=self.backend.name)
            return None

        self.sequencer.play(plan)
        return plan

    def _on_utterance_error(self, message: str, utterance: Optional[Utterance]) -> None:
        self.error = playback_error_message(message)
