"""Tests for voice scoring and English voice ranking."""
from __future__ import annotations

import pytest

from eigo_ms.speech.voices import (
    NETWORK_BONUS,
    Voice,
    best_english_voice,
    normalize_lang,
    rank_english_voices,
    score_voice,
)


class TestScoreVoice:

    @pytest.mark.parametrize("name,expected", [
        ("Google US English", 10),
        ("Siri Voice 2", 10),
        ("Microsoft David - English (United States)", 9),
        ("Microsoft Zira Desktop", 9),
        ("Alex", 7),
        ("Daniel", 6),
        ("Samantha", 5),
        ("eSpeak English", 1),
        ("Fred", 0),
    ])
    def test_local_voice_tiers(self, name, expected):
        assert score_voice(Voice(name=name, lang="en-US")) == expected

    def test_network_bonus(self):
        voice = Voice(name="Fred", lang="en-US", local_service=False)
        assert score_voice(voice) == NETWORK_BONUS == 15

    def test_first_matching_tier_wins(self):
        # "natural" is checked before "aria", "google" before "english"
        aria = Voice(name="Microsoft Aria Online (Natural) - English (United States)", lang="en-US",
                     local_service=False)
        google = Voice(name="Google UK English Female", lang="en-GB")
        assert score_voice(aria) == 15 + 8
        assert score_voice(google) == 10

    def test_case_insensitive(self):
        assert score_voice(Voice(name="GOOGLE", lang="en-US")) == 10


class TestRanking:

    def test_non_english_dropped(self):
        voices = [Voice("Kyoko", "ja-JP"), Voice("Thomas", "fr-FR"), Voice("Fred", "en-US")]
        assert [v.name for v in rank_english_voices(voices)] == ["Fred"]

    def test_best_first(self):
        voices = [
            Voice("eSpeak English", "en-GB"),
            Voice("Samantha", "en-US"),
            Voice("Google US English", "en-US", local_service=False),
        ]
        assert [v.name for v in rank_english_voices(voices)] == [
            "Google US English", "Samantha", "eSpeak English",
        ]

    def test_ties_keep_platform_order(self):
        voices = [Voice("Fred", "en-US"), Voice("Ralph", "en-US"), Voice("Kathy", "en-US")]
        assert [v.name for v in rank_english_voices(voices)] == ["Fred", "Ralph", "Kathy"]

    def test_lang_prefix_must_be_en_dash(self):
        # "en" alone or "eng" are not accepted as English tags
        voices = [Voice("Plain", "en"), Voice("Odd", "eng-US"), Voice("Ok", "en-AU")]
        assert [v.name for v in rank_english_voices(voices)] == ["Ok"]

    def test_best_english_voice(self):
        assert best_english_voice([]) is None
        assert best_english_voice([Voice("Kyoko", "ja-JP")]) is None
        assert best_english_voice([Voice("Fred", "en-US"), Voice("Alex", "en-US")]).name == "Alex"


class TestNormalizeLang:

    @pytest.mark.parametrize("raw,expected", [
        ("en_US", "en-US"),
        ("en-us", "en-US"),
        ("EN-gb", "en-GB"),
        ("ja", "ja"),
        ("", ""),
        ("zh-Hant-TW", "zh-Hant-TW"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_lang(raw) == expected


class TestVoice:

    def test_id_prefers_uri(self):
        assert Voice("Aria", "en-US", voice_uri="uri-1").id == "uri-1"
        assert Voice("Aria", "en-US").id == "Aria"

    def test_to_dict(self):
        d = Voice("Aria", "en-US", local_service=False, voice_uri="x", gender="Female").to_dict()
        assert d == {
            "name": "Aria",
            "lang": "en-US",
            "local_service": False,
            "voice_uri": "x",
            "default": False,
            "gender": "Female",
        }
