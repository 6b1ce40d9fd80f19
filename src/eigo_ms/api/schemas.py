"""
API Request Schemas.

Request bodies use snake_case. Lessons inside requests are passed through
as the camelCase JSON the lesson endpoints return, and are validated by
the lesson models, not here.

Models:
    LessonRequest: POST /v1/lessons
    ViewRequest: POST /v1/lessons/view
    GradeRequest: POST /v1/lessons/grade
    PlanRequest: POST /v1/speech/plan and POST /v1/speech/stream
    VoiceIn: A client-reported voice (browser speechSynthesis voice)

Example Request:
    {
        "category": "business",
        "index": 0
    }
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

MAX_SPEECH_TEXT_CHARS = 20000


class LessonRequest(BaseModel):
    """
    Lesson generation request.

    Either a free topic or the index of a catalog topic in the category;
    topic wins when both are given.
    """
    category: str = Field(..., min_length=1, description="Lesson category, e.g. 'daily' or 'toeic_part3'")
    topic: Optional[str] = Field(default=None, max_length=200, description="English topic title")
    index: Optional[int] = Field(default=None, ge=0, description="Catalog topic index within the category")

    @model_validator(mode="after")
    def _topic_or_index(self) -> "LessonRequest":
        if not (self.topic and self.topic.strip()) and self.index is None:
            raise ValueError("either topic or index is required")
        return self


class ViewRequest(BaseModel):
    lesson: Dict[str, Any]
    mode: str = Field(default="english", description="english | japanese | vocabulary | grammar | shadowing")


class GradeRequest(BaseModel):
    lesson: Dict[str, Any]
    answers: Dict[str, str] = Field(default_factory=dict, description="Question number -> choice letter")


class VoiceIn(BaseModel):
    """Mirrors the browser SpeechSynthesisVoice fields."""
    name: str
    lang: str
    local_service: bool = True
    voice_uri: str = ""
    default: bool = False


class PlanRequest(BaseModel):
    """
    Speech plan request.

    Attributes:
        text: Ad-hoc text to speak (TOEIC choices, questions).
        lesson: A lesson to read aloud; its speakable text is used.
        rate: Playback rate multiplier.
        multi_speaker: Force dialogue (True) or snippet (False) planning.
            Defaults to the lesson's category, or snippet for plain text.
        voices: Voices to rank; the server backend's voices when omitted.
    """
    text: Optional[str] = Field(default=None, max_length=MAX_SPEECH_TEXT_CHARS)
    lesson: Optional[Dict[str, Any]] = None
    rate: float = Field(default=1.0, gt=0, le=4.0)
    multi_speaker: Optional[bool] = None
    voices: Optional[List[VoiceIn]] = None

    @model_validator(mode="after")
    def _text_or_lesson(self) -> "PlanRequest":
        if self.text is None and self.lesson is None:
            raise ValueError("either text or lesson is required")
        return self
