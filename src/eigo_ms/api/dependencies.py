"""
FastAPI Dependency Injection Providers.

Architecture:
    The dependency system follows this hierarchy:
        1. get_settings() - Loads and caches application configuration
        2. get_lesson_service() - Singleton LessonService (provider + slots)
        3. get_speech_backend() - Singleton speech backend

Usage in Route Handlers:
    from fastapi import Depends
    from eigo_ms.api.dependencies import get_lesson_service

    @router.post("/v1/lessons")
    def create_lesson(req: LessonRequest, service: LessonService = Depends(get_lesson_service)):
        return dump_lesson(service.generate(req.category, req.topic))
"""
from __future__ import annotations

from functools import lru_cache

from eigo_ms.core.config import Settings, load_settings
from eigo_ms.services.lesson_service import LessonService, get_service
from eigo_ms.speech.backends import BaseSpeechBackend, get_backend


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    The path comes from EIGO_MS_SETTINGS, falling back to
    config/settings.yaml. Restart the app to pick up changes.
    """
    return load_settings()


def get_lesson_service() -> LessonService:
    return get_service(get_settings())


def get_speech_backend() -> BaseSpeechBackend:
    return get_backend(get_settings())
