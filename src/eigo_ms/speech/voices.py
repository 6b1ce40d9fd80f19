"""
Voice ranking.

Backends expose whatever voices the platform has installed, and their
quality varies wildly: robotic eSpeak voices sit next to neural cloud
voices. Ranking picks the best English voice by name heuristics plus a
bonus for network (cloud) voices, which are neural on every platform
we have seen.

Scoring:
    score = 15 if the voice is a network voice else 0
          + score of the FIRST tier whose key appears in the lower-cased name

Tier order matters: "Microsoft Aria Online (Natural)" matches "natural"
(8) before "aria" (8), and "Google UK English Female" matches "google"
(10) and never reaches "english" (1).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from eigo_ms.core.logging import debug, get_logger

_LOG = get_logger("eigo-ms.voices")

NETWORK_BONUS = 15

QUALITY_TIERS: Tuple[Tuple[str, int], ...] = (
    ("google", 10),
    ("siri", 10),
    ("microsoft david", 9),
    ("microsoft zira", 9),
    ("microsoft mark", 9),
    ("natural", 8),
    ("aria", 8),
    ("alex", 7),
    ("daniel", 6),
    ("samantha", 5),
    ("english", 1),
)


@dataclass(frozen=True)
class Voice:
    """
    A synthetic voice as reported by a speech backend.

    Attributes:
        name: Display name ("Microsoft Aria Online (Natural) - English (United States)").
        lang: BCP-47 tag, normalized to "en-US" form.
        local_service: False for network/cloud voices.
        voice_uri: Backend-specific identifier used to select the voice.
        default: Whether the platform marks it as its default voice.
        gender: Free-form gender hint, when the backend reports one.
    """
    name: str
    lang: str
    local_service: bool = True
    voice_uri: str = ""
    default: bool = False
    gender: Optional[str] = None

    @property
    def id(self) -> str:
        return self.voice_uri or self.name

    @property
    def is_english(self) -> bool:
        return self.lang.lower().startswith("en-")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "lang": self.lang,
            "local_service": self.local_service,
            "voice_uri": self.voice_uri,
            "default": self.default,
            "gender": self.gender,
        }


def normalize_lang(lang: str) -> str:
    """
    Normalize a language tag to "ll-RR" form.

    pyttsx3 reports "en_US" (or bytes like b"\\x05en-us" from eSpeak) where
    browsers report "en-US".
    """
    tag = (lang or "").strip().replace("_", "-")
    if not tag:
        return ""
    parts = tag.split("-")
    head = parts[0].lower()
    rest = [p.upper() if len(p) == 2 else p for p in parts[1:]]
    return "-".join([head] + rest)


def score_voice(voice: Voice) -> int:
    """Quality score for a voice; higher is better."""
    score = NETWORK_BONUS if not voice.local_service else 0
    name = voice.name.lower()
    for key, tier_score in QUALITY_TIERS:
        if key in name:
            score += tier_score
            break
    return score


def rank_english_voices(voices: Iterable[Voice]) -> List[Voice]:
    """
    English voices ordered best first.

    Non-English voices are dropped. The sort is stable, so voices with equal
    scores keep the order the backend reported them in.
    """
    english = [v for v in voices if v.is_english]
    ranked = sorted(english, key=score_voice, reverse=True)
    for v in ranked:
        debug(_LOG, "voice_ranked", voice=v.name, lang=v.lang, score=score_voice(v))
    return ranked


def best_english_voice(voices: Iterable[Voice]) -> Optional[Voice]:
    """The top-ranked English voice, or None when there is none."""
    ranked = rank_english_voices(voices)
    return ranked[0] if ranked else None
