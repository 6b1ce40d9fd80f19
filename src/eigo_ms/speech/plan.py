"""
Speech plans.

A plan is the fully resolved list of utterances for one playback: chunk
text, chosen voice, language and rate. Building it is pure, so the same
plan can be handed to a local backend, rendered to audio by the API, or
returned as JSON for a browser to speak with its own engine.

Two builders:
    build_snippet_plan   one voice (the best English voice) for all chunks
    build_dialogue_plan  one voice per speaker label, round-robin over
                         the ranked English voices
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from eigo_ms.core.config import Defaults
from eigo_ms.core.errors import NoVoicesError
from eigo_ms.core.logging import get_logger, verbose
from eigo_ms.core.metrics import metrics
from eigo_ms.speech.chunker import chunk_text
from eigo_ms.speech.speakers import NARRATOR, VoiceAssigner, parse_turn, split_dialogue, strip_speaker_labels
from eigo_ms.speech.voices import Voice, rank_english_voices

_LOG = get_logger("eigo-ms.plan")


@dataclass
class Utterance:
    """
    One chunk of speech.

    Attributes:
        index: Position in the plan (0-based).
        text: Trimmed chunk text.
        voice: Voice to speak with; None lets the backend choose.
        lang: Language tag sent along with the text.
        rate: Playback rate multiplier.
        speaker: Speaker label ("Speaker A:", "W:", "Narrator") or None.
    """
    index: int
    text: str
    voice: Optional[Voice]
    lang: str
    rate: float
    speaker: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "text": self.text,
            "voice": self.voice.name if self.voice else None,
            "voice_uri": self.voice.voice_uri if self.voice else None,
            "lang": self.lang,
            "rate": self.rate,
            "speaker": self.speaker,
        }


@dataclass
class SpeechPlan:
    """Ordered utterances for one playback."""
    utterances: List[Utterance] = field(default_factory=list)
    rate: float = Defaults.SPEECH_DEFAULT_RATE
    multi_speaker: bool = False
    voices: Dict[str, str] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not self.utterances

    def __len__(self) -> int:
        return len(self.utterances)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rate": self.rate,
            "multi_speaker": self.multi_speaker,
            "voices": dict(self.voices),
            "utterances": [u.to_dict() for u in self.utterances],
        }


def build_snippet_plan(
    text: str,
    voices: Sequence[Voice],
    rate: float = Defaults.SPEECH_DEFAULT_RATE,
    max_chars: Optional[int] = None,
    fallback_lang: str = Defaults.SPEECH_FALLBACK_LANG,
) -> SpeechPlan:
    """
    Plan a single-voice playback of text.

    Every chunk uses the best English voice. Without any English voice the
    backend default voice is used with ``fallback_lang``.
    """
    ranked = rank_english_voices(voices)
    voice = ranked[0] if ranked else None
    lang = voice.lang if voice else fallback_lang

    chunks = chunk_text(text, max_chars=max_chars).chunks
    utterances = [
        Utterance(index=i, text=c, voice=voice, lang=lang, rate=rate)
        for i, c in enumerate(chunks)
    ]
    plan = SpeechPlan(
        utterances=utterances,
        rate=rate,
        multi_speaker=False,
        voices={NARRATOR: voice.name} if voice else {},
    )
    metrics.record_plan("snippet", len(plan))
    verbose(_LOG, "plan_built", kind="snippet", utterances=len(plan), rate=rate,
            voice=voice.name if voice else None)
    return plan


def build_dialogue_plan(
    text: str,
    voices: Sequence[Voice],
    rate: float = Defaults.SPEECH_DEFAULT_RATE,
    max_chars: Optional[int] = None,
    fallback_lang: str = Defaults.SPEECH_FALLBACK_LANG,
) -> SpeechPlan:
    """
    Plan a multi-speaker playback of a formatted transcript.

    A transcript with at most one turn is not really a dialogue: its labels
    are stripped and it is spoken as a snippet.

    Raises:
        NoVoicesError: The transcript has several turns but no English
            voice is available to voice them.
    """
    parts = split_dialogue(text)
    if len(parts) <= 1:
        return build_snippet_plan(strip_speaker_labels(text), voices, rate=rate,
                                  max_chars=max_chars, fallback_lang=fallback_lang)

    ranked = rank_english_voices(voices)
    if not ranked:
        raise NoVoicesError()

    assigner = VoiceAssigner(ranked)
    utterances: List[Utterance] = []
    for part in parts:
        turn = parse_turn(part)
        if not turn.line:
            continue
        voice = assigner.voice_for(turn.speaker)
        for chunk in chunk_text(turn.line, max_chars=max_chars).chunks:
            utterances.append(Utterance(
                index=len(utterances),
                text=chunk,
                voice=voice,
                lang=voice.lang,
                rate=rate,
                speaker=turn.speaker,
            ))

    plan = SpeechPlan(
        utterances=utterances,
        rate=rate,
        multi_speaker=True,
        voices={speaker: v.name for speaker, v in assigner.assignments.items()},
    )
    metrics.record_plan("dialogue", len(plan))
    verbose(_LOG, "plan_built", kind="dialogue", utterances=len(plan), rate=rate,
            speakers=len(plan.voices))
    return plan

