"""
Lesson data model.

Lessons travel as JSON with camelCase keys ("englishText", "correctAnswer")
because that is what the provider is asked to produce and what the web
client renders. The models accept either casing on input and are dumped
with ``by_alias=True`` on output.

LessonContent is a union discriminated on ``category``:

    general | business | daily   -> ReadingLesson
    toeic_part1 .. toeic_part7   -> ToeicPart1 .. ToeicPart7
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field, field_validator
from pydantic.alias_generators import to_camel


class LessonCategory(str, Enum):
    GENERAL = "general"
    BUSINESS = "business"
    DAILY = "daily"
    TOEIC_PART1 = "toeic_part1"
    TOEIC_PART2 = "toeic_part2"
    TOEIC_PART3 = "toeic_part3"
    TOEIC_PART4 = "toeic_part4"
    TOEIC_PART5 = "toeic_part5"
    TOEIC_PART6 = "toeic_part6"
    TOEIC_PART7 = "toeic_part7"

    @property
    def is_reading(self) -> bool:
        return self in READING_CATEGORIES

    @property
    def is_toeic(self) -> bool:
        return not self.is_reading


READING_CATEGORIES = frozenset({LessonCategory.GENERAL, LessonCategory.BUSINESS, LessonCategory.DAILY})


class ViewMode(str, Enum):
    ENGLISH = "english"
    JAPANESE = "japanese"
    VOCABULARY = "vocabulary"
    GRAMMAR = "grammar"
    SHADOWING = "shadowing"


_ANSWER = re.compile(r"\b([A-D])\b")


def _normalize_answer(value: object) -> object:
    # Models answer "A", "(A)", "A." or "Answer: B"; keep the standalone letter.
    if not isinstance(value, str):
        return value
    m = _ANSWER.search(value.strip().upper())
    return m.group(1) if m else value


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LessonTopic(_CamelModel):
    english: str
    japanese: str


class VocabularyItem(_CamelModel):
    word: str
    meaning: str
    example: str


class GrammarPoint(_CamelModel):
    point: str
    explanation: str
    example_sentence: str


class ReadingLesson(_CamelModel):
    """Reading passage (general) or dialogue (business, daily) with study notes."""
    category: Literal["general", "business", "daily"]
    english_text: str
    japanese_text: str
    vocabulary: List[VocabularyItem] = Field(default_factory=list)
    grammar: List[GrammarPoint] = Field(default_factory=list)


class _AnsweredModel(_CamelModel):
    @field_validator("correct_answer", mode="before", check_fields=False)
    @classmethod
    def _clean_answer(cls, value: object) -> object:
        return _normalize_answer(value)


class ToeicPart1(_AnsweredModel):
    """Photograph description: four spoken statements, one matches the image."""
    category: Literal["toeic_part1"]
    image_url: str
    audio_scripts: List[str] = Field(min_length=2)
    correct_answer: Literal["A", "B", "C", "D"]
    explanation: str


class ToeicPart2(_AnsweredModel):
    """Question-response: one prompt, three spoken responses."""
    category: Literal["toeic_part2"]
    question_script: str
    choices: List[str] = Field(min_length=2)
    correct_answer: Literal["A", "B", "C"]
    explanation: str
    transcript: str


class ToeicQuestion(_AnsweredModel):
    question: str
    choices: List[str] = Field(min_length=2)
    correct_answer: Literal["A", "B", "C", "D"]


class ToeicPart3(_CamelModel):
    """Conversation between two or three speakers (M:, W:, M2:)."""
    category: Literal["toeic_part3"]
    conversation_script: str
    questions: List[ToeicQuestion] = Field(min_length=1)
    explanation: str


class ToeicPart4(_CamelModel):
    """Short talk by a single speaker."""
    category: Literal["toeic_part4"]
    talk_script: str
    questions: List[ToeicQuestion] = Field(min_length=1)
    explanation: str


class ToeicPart5(_AnsweredModel):
    """Incomplete sentence with a blank."""
    category: Literal["toeic_part5"]
    question: str
    choices: List[str] = Field(min_length=2)
    correct_answer: Literal["A", "B", "C", "D"]
    explanation: str


class ToeicPart6Question(_AnsweredModel):
    question_number: int = Field(ge=1)
    choices: List[str] = Field(min_length=2)
    correct_answer: Literal["A", "B", "C", "D"]


class ToeicPart6(_CamelModel):
    """Text completion: a passage with blanks [1]..[4]."""
    category: Literal["toeic_part6"]
    text: str
    questions: List[ToeicPart6Question] = Field(min_length=1)
    explanation: str


PASSAGE_SEPARATOR = "---PASSAGE 2---"


class ToeicPart7(_CamelModel):
    """Reading comprehension over one passage or two joined by PASSAGE_SEPARATOR."""
    category: Literal["toeic_part7"]
    passage: str
    passage_type: Literal["single", "double"]
    questions: List[ToeicQuestion] = Field(min_length=1)
    explanation: str

    @field_validator("passage_type", mode="before")
    @classmethod
    def _lower_type(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @computed_field
    @property
    def passages(self) -> List[str]:
        """The passage split at PASSAGE_SEPARATOR; included in the lesson JSON."""
        return [p.strip() for p in self.passage.split(PASSAGE_SEPARATOR) if p.strip()]


LessonContent = Annotated[
    Union[ReadingLesson, ToeicPart1, ToeicPart2, ToeicPart3, ToeicPart4, ToeicPart5, ToeicPart6, ToeicPart7],
    Field(discriminator="category"),
]

_LESSON_ADAPTER: TypeAdapter = TypeAdapter(LessonContent)


def parse_lesson(data: dict) -> BaseModel:
    """
    Validate a lesson dict (either key casing) into its model.

    Raises:
        pydantic.ValidationError: If the payload does not match its category.
    """
    return _LESSON_ADAPTER.validate_python(data)


def dump_lesson(lesson: BaseModel) -> dict:
    """Serialize a lesson with camelCase keys."""
    return lesson.model_dump(by_alias=True, mode="json")


def lesson_category(lesson: BaseModel) -> LessonCategory:
    return LessonCategory(getattr(lesson, "category"))
