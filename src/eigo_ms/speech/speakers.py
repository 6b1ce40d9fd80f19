"""
Speaker segmentation for dialogue transcripts.

Generated dialogues label each turn with "Speaker A:" .. "Speaker Z:" or
the TOEIC listening labels "M:", "W:" and "M2:". The provider does not
reliably put turns on separate lines, so transcripts are first normalized
with format_dialogue(), which puts a blank line before every label. That
blank line is what split_dialogue() cuts on.

A voice is assigned per label in order of first appearance and stays with
that label for the whole playback, so "Speaker A" keeps one voice even
when the turns interleave.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from eigo_ms.speech.voices import Voice

NARRATOR = "Narrator"

_LABEL = r"Speaker [A-Z]:|M:|W:|M2:"

# Labels not at the very start of the text get a paragraph break before them
_DIALOGUE_BREAK = re.compile(rf"(?<!^)({_LABEL})")

# TOEIC Part 3/4 scripts only use the listening labels
_LISTENING_BREAK = re.compile(r"(?<!^)(M:|W:|M2:)")

_TURN_SPLIT = re.compile(r"(?=\n\n(?:Speaker [A-Z]|M:|W:|M2:))")
_LEADING_LABEL = re.compile(r"^(?:Speaker [A-Z]|M|W|M2):")
_ANY_LABEL = re.compile(rf"(?:{_LABEL})\s*")


@dataclass(frozen=True)
class DialogueTurn:
    """One speaker turn; speaker includes the trailing colon ("W:")."""
    speaker: str
    line: str


def format_dialogue(text: str, listening: bool = False) -> str:
    """
    Put a blank line before every speaker label that does not open the text.

    Args:
        text: Raw transcript from the provider.
        listening: Restrict to M:/W:/M2: labels (TOEIC Part 3 and 4 scripts).
    """
    if not text:
        return ""
    pattern = _LISTENING_BREAK if listening else _DIALOGUE_BREAK
    return pattern.sub(r"\n\n\1", text).strip()


def split_dialogue(text: str) -> List[str]:
    """Split a formatted transcript into trimmed, non-empty turns."""
    return [p.strip() for p in _TURN_SPLIT.split(text or "") if p.strip()]


def parse_turn(part: str) -> DialogueTurn:
    """Separate the speaker label from the spoken line."""
    m = _LEADING_LABEL.match(part)
    if m is None:
        return DialogueTurn(speaker=NARRATOR, line=part.strip())
    return DialogueTurn(speaker=m.group(0), line=part[m.end():].strip())


def strip_speaker_labels(text: str) -> str:
    """Replace every speaker label (and the spaces after it) with one space."""
    return _ANY_LABEL.sub(" ", text or "").strip()


class VoiceAssigner:
    """
    Round-robin voice assignment keyed by speaker label.

    The n-th distinct speaker gets ``voices[n % len(voices)]``. With two
    voices and three speakers, the third speaker shares the first voice.
    """

    def __init__(self, voices: Sequence[Voice]):
        if not voices:
            raise ValueError("VoiceAssigner needs at least one voice")
        self._voices = list(voices)
        self._assigned: Dict[str, Voice] = {}

    def voice_for(self, speaker: str) -> Voice:
        voice = self._assigned.get(speaker)
        if voice is None:
            voice = self._voices[len(self._assigned) % len(self._voices)]
            self._assigned[speaker] = voice
        return voice

    @property
    def assignments(self) -> Dict[str, Voice]:
        return dict(self._assigned)

    def get(self, speaker: str) -> Optional[Voice]:
        return self._assigned.get(speaker)
