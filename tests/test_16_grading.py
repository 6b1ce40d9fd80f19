"""Tests for TOEIC answer checking."""
from __future__ import annotations

import pytest

from eigo_ms.core.errors import InvalidInputError
from eigo_ms.lessons import samples
from eigo_ms.lessons.models import LessonCategory
from eigo_ms.services.grading import choice_id, grade
from eigo_ms.services.lesson_service import LessonService


def _lesson(category: LessonCategory):
    payload = samples.sample_payload(category, "Topic")
    if category is LessonCategory.TOEIC_PART1:
        payload["imageUrl"] = payload.pop("imagePrompt")
    return LessonService._to_lesson(category, payload)


def test_choice_ids():
    assert [choice_id(i) for i in range(4)] == ["A", "B", "C", "D"]


class TestSingleQuestionParts:

    def test_part1_correct_with_transcript(self):
        report = grade(_lesson(LessonCategory.TOEIC_PART1), {"1": "a"})
        assert report.correct == 1 and report.total == 1
        assert report.transcript[0] == "(A) The woman is typing on a laptop."
        assert len(report.transcript) == 4

    def test_part2_incorrect(self):
        report = grade(_lesson(LessonCategory.TOEIC_PART2), {1: "A"})
        data = report.to_dict()
        assert data["correct"] == 0
        assert data["results"] == [{"number": 1, "selected": "A", "correctAnswer": "B", "isCorrect": False}]
        assert data["transcript"].startswith("When does the next training session start?")

    def test_part2_letter_outside_choices(self):
        with pytest.raises(InvalidInputError) as exc_info:
            grade(_lesson(LessonCategory.TOEIC_PART2), {"1": "D"})
        assert exc_info.value.details == {"question": 1}

    def test_part5_has_no_transcript(self):
        data = grade(_lesson(LessonCategory.TOEIC_PART5), {"1": "A"}).to_dict()
        assert data["correct"] == 1
        assert "transcript" not in data


class TestMultiQuestionParts:

    def test_part3_score(self):
        report = grade(_lesson(LessonCategory.TOEIC_PART3), {"1": "B", "2": "C", "3": "A"})
        assert report.correct == 2
        assert report.total == 3
        assert [r.is_correct for r in report.results] == [True, True, False]
        assert report.transcript.startswith("W:")

    def test_part4_transcript_is_talk(self):
        report = grade(_lesson(LessonCategory.TOEIC_PART4), {"1": "B", "2": "C", "3": "B"})
        assert report.correct == 3
        assert "Riverside Museum" in report.transcript

    def test_part6_uses_question_numbers(self):
        report = grade(_lesson(LessonCategory.TOEIC_PART6), {"1": "A", "2": "C", "3": "D", "4": "B"})
        assert [r.number for r in report.results] == [1, 2, 3, 4]
        assert report.correct == 3

    def test_part6_reveals_filled_text(self):
        data = grade(_lesson(LessonCategory.TOEIC_PART6), {"1": "A", "2": "A", "3": "A", "4": "A"}).to_dict()
        filled = data["transcript"]
        assert "closed for renovation" in filled
        assert "will be moved to temporary desks" in filled
        assert "to be completed by the end" in filled
        assert filled.endswith("Thank you for your patience during this time.")
        assert "[" not in filled

    def test_part7_all_correct(self):
        data = grade(_lesson(LessonCategory.TOEIC_PART7), {"1": "A", "2": "B"}).to_dict()
        assert data["correct"] == data["total"] == 2
        assert data["explanation"].startswith("テーマ「Topic」")


class TestIncompleteAnswers:

    def test_missing_answer(self):
        with pytest.raises(InvalidInputError, match="Answer every question before checking") as exc_info:
            grade(_lesson(LessonCategory.TOEIC_PART3), {"1": "B", "3": "C"})
        assert exc_info.value.details == {"missing": [2]}

    def test_blank_answer_counts_as_missing(self):
        with pytest.raises(InvalidInputError):
            grade(_lesson(LessonCategory.TOEIC_PART5), {"1": " "})

    def test_reading_lesson_rejected(self):
        with pytest.raises(InvalidInputError, match="no questions"):
            grade(_lesson(LessonCategory.GENERAL), {"1": "A"})
