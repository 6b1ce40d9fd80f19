"""
eigo-ms Services Layer.

Components:
    - lesson_service.py: LessonService (prompt, provider, validation)
    - concurrency.py: Generation slot limiting
    - views.py: Reading lesson view modes and highlighting
    - grading.py: TOEIC answer checking
"""
from .grading import GradeReport, QuestionResult, grade
from .lesson_service import LessonService, get_service, reset_service
from .views import highlight_segments, render_view

__all__ = [
    "LessonService",
    "get_service",
    "reset_service",
    "GradeReport",
    "QuestionResult",
    "grade",
    "highlight_segments",
    "render_view",
]
