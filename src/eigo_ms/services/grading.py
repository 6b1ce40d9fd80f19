"""
Answer checking for TOEIC lessons.

Answers are keyed by question number as a string ("1", "2", ...). Parts 1,
2 and 5 have a single question "1"; Parts 3, 4 and 7 number their
questions from 1 in order; Part 6 uses each question's own
question_number (the blank it fills).

Choice ids are letters by position: the first choice is "A".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel

from eigo_ms.core.errors import InvalidInputError
from eigo_ms.core.logging import get_logger, info
from eigo_ms.core.metrics import metrics
from eigo_ms.lessons.models import (
    ReadingLesson,
    ToeicPart1,
    ToeicPart2,
    ToeicPart3,
    ToeicPart4,
    ToeicPart5,
    ToeicPart6,
    ToeicPart7,
    lesson_category,
)

_LOG = get_logger("eigo-ms.grading")


def choice_id(index: int) -> str:
    return chr(65 + index)


@dataclass
class QuestionResult:
    number: int
    selected: str
    correct_answer: str
    is_correct: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "selected": self.selected,
            "correctAnswer": self.correct_answer,
            "isCorrect": self.is_correct,
        }


@dataclass
class GradeReport:
    category: str
    results: List[QuestionResult]
    explanation: str
    transcript: Optional[Any] = None

    @property
    def correct(self) -> int:
        return sum(1 for r in self.results if r.is_correct)

    @property
    def total(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "category": self.category,
            "correct": self.correct,
            "total": self.total,
            "results": [r.to_dict() for r in self.results],
            "explanation": self.explanation,
        }
        if self.transcript is not None:
            out["transcript"] = self.transcript
        return out


# (number, choices, correct answer)
_Question = Tuple[int, Sequence[str], str]


def _questions(lesson: BaseModel) -> List[_Question]:
    if isinstance(lesson, ToeicPart1):
        return [(1, lesson.audio_scripts, lesson.correct_answer)]
    if isinstance(lesson, (ToeicPart2, ToeicPart5)):
        return [(1, lesson.choices, lesson.correct_answer)]
    if isinstance(lesson, (ToeicPart3, ToeicPart4, ToeicPart7)):
        return [(i + 1, q.choices, q.correct_answer) for i, q in enumerate(lesson.questions)]
    if isinstance(lesson, ToeicPart6):
        return [(q.question_number, q.choices, q.correct_answer) for q in lesson.questions]
    raise InvalidInputError(f"Lessons of category {lesson_category(lesson).value} have no questions to grade")


def _filled_text(lesson: ToeicPart6) -> str:
    """The Part 6 passage with each blank [n] replaced by its correct choice."""
    text = lesson.text
    for q in lesson.questions:
        index = ord(q.correct_answer) - 65
        if index < len(q.choices):
            text = text.replace(f"[{q.question_number}]", q.choices[index])
    return text


def _transcript(lesson: BaseModel) -> Optional[Any]:
    if isinstance(lesson, ToeicPart1):
        return [f"({choice_id(i)}) {s}" for i, s in enumerate(lesson.audio_scripts)]
    if isinstance(lesson, ToeicPart2):
        return lesson.transcript
    if isinstance(lesson, ToeicPart3):
        return lesson.conversation_script
    if isinstance(lesson, ToeicPart4):
        return lesson.talk_script
    if isinstance(lesson, ToeicPart6):
        return _filled_text(lesson)
    return None


def grade(lesson: BaseModel, answers: Mapping[Any, str]) -> GradeReport:
    """
    Check a complete set of answers.

    Args:
        lesson: A validated TOEIC lesson model.
        answers: Question number (int or str) -> choice letter.

    Raises:
        InvalidInputError: Reading lesson, a question left unanswered, or a
            letter outside the question's choices.
    """
    if isinstance(lesson, ReadingLesson):
        raise InvalidInputError("Reading lessons have no questions to grade")

    given = {str(k).strip(): str(v).strip().upper() for k, v in answers.items() if v is not None}
    questions = _questions(lesson)

    missing = [n for n, _, _ in questions if not given.get(str(n))]
    if missing:
        raise InvalidInputError(
            "Answer every question before checking",
            details={"missing": missing},
        )

    results: List[QuestionResult] = []
    for number, choices, correct in questions:
        selected = given[str(number)]
        valid = [choice_id(i) for i in range(len(choices))]
        if selected not in valid:
            raise InvalidInputError(
                f"Answer {selected!r} for question {number} is not one of {', '.join(valid)}",
                details={"question": number},
            )
        results.append(QuestionResult(number, selected, correct, selected == correct))

    category = lesson_category(lesson).value
    report = GradeReport(
        category=category,
        results=results,
        explanation=lesson.explanation,
        transcript=_transcript(lesson),
    )
    metrics.record_grade(category, report.correct, report.total)
    info(_LOG, "graded", category=category, score=report.correct, total=report.total)
    return report
