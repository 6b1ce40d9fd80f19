"""
View models for reading lessons.

A reading lesson is shown in one of five modes (english, japanese,
vocabulary, grammar, shadowing). render_view() returns a JSON-ready dict
per mode; the English mode carries the passage pre-split into highlighted
segments so clients only have to style them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel

from eigo_ms.core.config import Defaults
from eigo_ms.core.errors import InvalidInputError
from eigo_ms.lessons.models import GrammarPoint, ReadingLesson, ViewMode, VocabularyItem, dump_lesson, lesson_category
from eigo_ms.speech.player import is_multi_speaker


@dataclass(frozen=True)
class Segment:
    """A run of passage text; kind is "vocabulary", "grammar" or None."""
    text: str
    kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "kind": self.kind}


def highlight_segments(
    text: str,
    vocabulary: Sequence[VocabularyItem],
    grammar: Sequence[GrammarPoint],
) -> List[Segment]:
    """
    Split text into plain and highlighted segments.

    Grammar example sentences and vocabulary words are matched longest
    first, so a sentence wins over a word inside it. When the same string
    is both, the grammar entry (listed first) wins.
    """
    terms = [(g.example_sentence, "grammar") for g in grammar]
    terms += [(v.word, "vocabulary") for v in vocabulary]
    terms = sorted((t for t in terms if t[0] and t[0].strip()), key=lambda t: len(t[0]), reverse=True)
    if not terms:
        return [Segment(text)] if text else []

    kinds: Dict[str, str] = {}
    for term, kind in terms:
        kinds.setdefault(term, kind)

    pattern = re.compile("(" + "|".join(re.escape(term) for term in kinds) + ")")
    return [Segment(part, kinds.get(part)) for part in pattern.split(text) if part]


def _require_reading(lesson: BaseModel) -> ReadingLesson:
    if not isinstance(lesson, ReadingLesson):
        raise InvalidInputError(
            f"View modes apply to reading lessons only, not {lesson_category(lesson).value}",
        )
    return lesson


def render_view(
    lesson: BaseModel,
    mode: Union[ViewMode, str],
    rates: Sequence[float] = Defaults.SPEECH_RATES,
) -> Dict[str, Any]:
    """
    Build the view model for a reading lesson in the given mode.

    Raises:
        InvalidInputError: Unknown mode, or the lesson is a TOEIC lesson.
    """
    try:
        mode = ViewMode(mode)
    except ValueError:
        raise InvalidInputError(f"Unsupported view mode: {mode}") from None
    reading = _require_reading(lesson)

    view: Dict[str, Any] = {"category": reading.category, "mode": mode.value}
    if mode is ViewMode.ENGLISH:
        view["segments"] = [
            s.to_dict() for s in highlight_segments(reading.english_text, reading.vocabulary, reading.grammar)
        ]
        view["japaneseText"] = reading.japanese_text
    elif mode is ViewMode.JAPANESE:
        view["japaneseText"] = reading.japanese_text
    elif mode is ViewMode.VOCABULARY:
        view["vocabulary"] = dump_lesson(reading)["vocabulary"]
    elif mode is ViewMode.GRAMMAR:
        view["grammar"] = dump_lesson(reading)["grammar"]
    else:
        view["englishText"] = reading.english_text
        view["rates"] = list(rates)
        view["plan"] = "dialogue" if is_multi_speaker(reading) else "snippet"
    return view
