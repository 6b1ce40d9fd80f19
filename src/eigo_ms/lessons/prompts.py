"""
Prompts and structured-output schemas per lesson category.

Schemas are JSON Schema objects in the strict form OpenAI structured output
accepts: every object lists all of its properties as required and forbids
additional properties. Field descriptions carry the real instructions
(word counts, item counts, label conventions), the prompt only names the
task and topic.

The provider never sees ``category``; it is added by the lesson service.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from eigo_ms.core.config import GenerationConfig
from eigo_ms.lessons.models import LessonCategory

TARGET_LEVEL = "TOEIC 700"


def _string(description: str = "") -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "string"}
    if description:
        schema["description"] = description
    return schema


def _array(items: Dict[str, Any], description: str) -> Dict[str, Any]:
    return {"type": "array", "description": description, "items": items}


def _object(properties: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


_ANSWER_ABCD = "The correct choice: 'A', 'B', 'C', or 'D'."

_READING_DESCRIPTIONS = {
    LessonCategory.GENERAL: (
        "An English passage of about 150-200 words on the given topic, suitable for a "
        f"{TARGET_LEVEL} level learner. It must include some common English expressions or idioms."
    ),
    LessonCategory.BUSINESS: (
        "An English dialogue of about 150-200 words on the given topic, between two or more people "
        f"(e.g., using 'Speaker A:', 'Speaker B:'). Suitable for a {TARGET_LEVEL} level learner. "
        "It must include some common business English expressions."
    ),
    LessonCategory.DAILY: (
        "An English dialogue of about 150-200 words on the given topic, between two or more people "
        f"(e.g., using 'Speaker A:', 'Speaker B:'). Suitable for a {TARGET_LEVEL} level learner. "
        "It must include some common daily conversational expressions."
    ),
}


def reading_schema(category: LessonCategory) -> Dict[str, Any]:
    return _object({
        "englishText": _string(_READING_DESCRIPTIONS[category]),
        "japaneseText": _string("A full and natural-sounding Japanese translation."),
        "vocabulary": _array(
            _object({
                "word": _string(),
                "meaning": _string("Japanese meaning."),
                "example": _string("An English example sentence."),
            }),
            "A list of exactly 10 important vocabulary words or idioms.",
        ),
        "grammar": _array(
            _object({
                "point": _string(),
                "explanation": _string("Japanese explanation."),
                "exampleSentence": _string("The exact sentence from the English passage."),
            }),
            "A list of exactly 10 grammar points.",
        ),
    })


_QUESTION = _object({
    "question": _string("The question about the audio or passage."),
    "choices": _array(_string(), "Exactly 4 answer choices (A, B, C, D)."),
    "correctAnswer": _string(_ANSWER_ABCD),
})

TOEIC_SCHEMAS: Dict[LessonCategory, Dict[str, Any]] = {
    LessonCategory.TOEIC_PART1: _object({
        "imagePrompt": _string(
            "A detailed, realistic prompt for an AI image generator to create a photograph for a "
            "TOEIC Part 1 question. Describe a clear scene with people and objects."
        ),
        "audioScripts": _array(
            _string(),
            "Exactly 4 short, descriptive English sentences (A, B, C, D) about the image. "
            "One is correct, three are incorrect.",
        ),
        "correctAnswer": _string(_ANSWER_ABCD),
        "explanation": _string("A brief Japanese explanation of why the answer is correct and others are not."),
    }),
    LessonCategory.TOEIC_PART2: _object({
        "questionScript": _string("A short English question or statement for TOEIC Part 2."),
        "choices": _array(_string(), "Exactly 3 short English sentences (A, B, C) as possible responses."),
        "correctAnswer": _string("The correct choice: 'A', 'B', or 'C'."),
        "explanation": _string("A brief Japanese explanation of why the answer is correct."),
        "transcript": _string(
            "The full transcript including the question and all three choices, each on a new line."
        ),
    }),
    LessonCategory.TOEIC_PART3: _object({
        "conversationScript": _string(
            "A conversation transcript between 2 or 3 people for TOEIC Part 3. "
            "Use 'M:', 'W:', 'M2:' to denote speakers."
        ),
        "questions": _array(_QUESTION, "Exactly 3 questions about the conversation."),
        "explanation": _string("A brief Japanese explanation for all questions."),
    }),
    LessonCategory.TOEIC_PART4: _object({
        "talkScript": _string(
            "A short talk/monologue transcript for TOEIC Part 4. Use 'M:' or 'W:' to denote the speaker."
        ),
        "questions": _array(_QUESTION, "Exactly 3 questions about the talk."),
        "explanation": _string("A brief Japanese explanation for all questions."),
    }),
    LessonCategory.TOEIC_PART5: _object({
        "question": _string("A sentence with a blank (e.g., '-------') for a TOEIC Part 5 question."),
        "choices": _array(_string(), "Exactly 4 word or phrase choices (A, B, C, D) to fill the blank."),
        "correctAnswer": _string(_ANSWER_ABCD),
        "explanation": _string(
            "A detailed Japanese explanation of why the answer is correct, focusing on the grammar point."
        ),
    }),
    LessonCategory.TOEIC_PART6: _object({
        "text": _string(
            "A text passage for TOEIC Part 6 (e.g., an email, memo) with 4 blanks, marked as [1], [2], [3], [4]."
        ),
        "questions": _array(
            _object({
                "questionNumber": {
                    "type": "integer",
                    "description": "The number of the question in the text, starting from 1.",
                },
                "choices": _array(_string(), "Exactly 4 word/phrase choices (A, B, C, D)."),
                "correctAnswer": _string(_ANSWER_ABCD),
            }),
            "Exactly 4 questions corresponding to the blanks.",
        ),
        "explanation": _string("A comprehensive Japanese explanation covering all questions."),
    }),
    LessonCategory.TOEIC_PART7: _object({
        "passage": _string(
            "A text passage for TOEIC Part 7 (e.g., email, article, ad). "
            "For double passages, separate them with '---PASSAGE 2---'."
        ),
        "passageType": _string("'single' or 'double'."),
        "questions": _array(_QUESTION, "Between 2 and 5 questions about the passage(s)."),
        "explanation": _string("A comprehensive Japanese explanation for all questions."),
    }),
}


_PROMPTS = {
    LessonCategory.GENERAL: 'Generate an English reading passage on "{topic}". Target: {level}.',
    LessonCategory.BUSINESS: (
        'Generate a business English conversation lesson on "{topic}". Format as a dialogue. Target: {level}.'
    ),
    LessonCategory.DAILY: (
        'Generate a daily English conversation lesson on "{topic}". Format as a dialogue. Target: {level}.'
    ),
    LessonCategory.TOEIC_PART1: (
        'Create a TOEIC Part 1 style question based on the theme: "{topic}". Provide a detailed image '
        "prompt for an AI image generator, 4 descriptive statements (A, B, C, D), the correct answer, "
        "and a Japanese explanation."
    ),
    LessonCategory.TOEIC_PART2: (
        'Create a TOEIC Part 2 style question-response item based on the theme: "{topic}". Provide the '
        "question/statement, 3 responses (A, B, C), the correct answer, a Japanese explanation, and a "
        "full transcript."
    ),
    LessonCategory.TOEIC_PART3: (
        'Create a TOEIC Part 3 style conversation and 3 related questions. The theme is "{topic}". '
        "Provide a full transcript, 3 questions with 4 choices each, correct answers, and a Japanese "
        "explanation."
    ),
    LessonCategory.TOEIC_PART4: (
        'Create a TOEIC Part 4 style short talk and 3 related questions. The theme is "{topic}". '
        "Provide a full transcript, 3 questions with 4 choices each, correct answers, and a Japanese "
        "explanation."
    ),
    LessonCategory.TOEIC_PART5: (
        'Create a TOEIC Part 5 style sentence completion question. The theme is "{topic}". Provide the '
        "sentence with a blank, 4 choices, the correct answer, and a detailed Japanese explanation."
    ),
    LessonCategory.TOEIC_PART6: (
        'Create a TOEIC Part 6 style text completion exercise. The theme is "{topic}". Provide a text '
        "with 4 numbered blanks like [1], [2], etc., and 4 corresponding questions with choices, correct "
        "answers, and a comprehensive Japanese explanation for all."
    ),
    LessonCategory.TOEIC_PART7: (
        'Create a TOEIC Part 7 style reading comprehension exercise. The theme is "{topic}". Provide one '
        "or two passages, a set of 2-5 questions with choices, correct answers, and a comprehensive "
        "Japanese explanation."
    ),
}


@dataclass(frozen=True)
class PromptSpec:
    """Everything the provider needs for one lesson request."""
    category: LessonCategory
    topic: str
    prompt: str
    schema: Dict[str, Any]
    schema_name: str
    temperature: float


def build_prompt(category: LessonCategory, topic: str, config: GenerationConfig) -> PromptSpec:
    if category.is_reading:
        schema = reading_schema(category)
        temperature = config.reading_temperature
    else:
        schema = TOEIC_SCHEMAS[category]
        temperature = config.toeic_temperature
    return PromptSpec(
        category=category,
        topic=topic,
        prompt=_PROMPTS[category].format(topic=topic, level=TARGET_LEVEL),
        schema=schema,
        schema_name=f"{category.value}_lesson",
        temperature=temperature,
    )


def schema_fields(category: LessonCategory) -> List[str]:
    """Top-level keys the provider must return for a category."""
    schema = reading_schema(category) if category.is_reading else TOEIC_SCHEMAS[category]
    return list(schema["required"])
