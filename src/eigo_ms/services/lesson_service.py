"""
LessonService - Lesson Generation Pipeline.

Single entry point for producing a lesson; the HTTP routes and the CLI
both go through it.

Architecture:
    Request → Prompt → Slot → Provider (JSON [+ image]) → Validate → Format → Lesson

Stages:
    - Prompt: per-category prompt, schema and temperature (lessons.prompts)
    - Slot: ConcurrencyController bounds simultaneous provider calls
    - Provider: OpenAI or the canned fallback (lessons.provider)
    - Validate: pydantic models, discriminated on category
    - Format: blank line before each speaker label in dialogue scripts

Error Handling:
    Anything that goes wrong between the provider call and a validated
    lesson surfaces as GenerationError ("Received invalid data from the AI.
    Please try again."). Backpressure errors (QueueFullError, TimeoutError),
    ProviderNotReadyError and InvalidInputError pass through unchanged.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ValidationError

from eigo_ms.core.config import Settings
from eigo_ms.core.errors import GenerationError, InvalidInputError, LessonError
from eigo_ms.core.logging import debug, fail, get_logger, info, success, verbose
from eigo_ms.core.metrics import metrics
from eigo_ms.lessons.catalog import get_topic, parse_category
from eigo_ms.lessons.models import LessonCategory, parse_lesson
from eigo_ms.lessons.prompts import PromptSpec, build_prompt
from eigo_ms.lessons.provider import BaseContentProvider, get_provider
from eigo_ms.services.concurrency import ConcurrencyController, get_controller
from eigo_ms.speech.speakers import format_dialogue
from eigo_ms.utils.timeit import timeit

_LOG = get_logger("eigo-ms.service")

# camelCase field holding the spoken script, and whether only M:/W:/M2: labels apply
_DIALOGUE_FIELDS = {
    LessonCategory.BUSINESS: ("englishText", False),
    LessonCategory.DAILY: ("englishText", False),
    LessonCategory.TOEIC_PART3: ("conversationScript", True),
    LessonCategory.TOEIC_PART4: ("talkScript", True),
}


class LessonService:
    """
    Generates validated lessons with backpressure and metrics.

    Usage:
        service = LessonService(load_settings())
        lesson = service.generate("business", "Scheduling a Meeting")
        print(lesson.english_text)
    """

    def __init__(
        self,
        settings: Settings,
        provider: Optional[BaseContentProvider] = None,
        controller: Optional[ConcurrencyController] = None,
    ):
        self._settings = settings
        self._config = settings.get_service_config()
        self._provider = provider or get_provider(settings)

        # ─────────────────────────────────────────────────────────────────────
        # Concurrency Control
        # ─────────────────────────────────────────────────────────────────────
        self._controller: Optional[ConcurrencyController] = controller
        if self._controller is None and self._config.concurrency.enabled:
            self._controller = get_controller(
                max_concurrent=self._config.concurrency.max_concurrent,
                max_queue=self._config.concurrency.max_queue,
            )
        self._concurrency_timeout = self._config.concurrency.timeout_s
        self._text_preview_chars = self._config.logging.text_preview_chars

    @property
    def provider(self) -> BaseContentProvider:
        return self._provider

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def controller(self) -> Optional[ConcurrencyController]:
        return self._controller

    def is_ready(self) -> bool:
        return self._provider.is_ready()

    # =========================================================================
    # Public API
    # =========================================================================

    def generate(self, category: Union[LessonCategory, str], topic: str) -> BaseModel:
        """
        Generate one lesson.

        Args:
            category: LessonCategory or its string value.
            topic: English topic title.

        Returns:
            The validated lesson model for the category.

        Raises:
            InvalidInputError: Unknown category or blank topic.
            GenerationError: Provider failure or unusable content.
            QueueFullError, TimeoutError: No generation slot.
            ProviderNotReadyError: Provider is not configured.
        """
        if not isinstance(category, LessonCategory):
            category = parse_category(category)
        topic = (topic or "").strip()
        if not topic:
            raise InvalidInputError("Topic must not be empty")

        preview = topic[:self._text_preview_chars] if self._text_preview_chars > 0 else ""
        info(_LOG, "lesson_request", category=category.value, topic=preview, provider=self._provider.name)

        try:
            with timeit("lesson_total") as total_t:
                spec = build_prompt(category, topic, self._config.generation)
                payload = self._call_provider(category, spec)
                with timeit("validate") as t_validate:
                    lesson = self._to_lesson(category, payload)
                verbose(_LOG, "stage", event="validate", seconds=round(t_validate.seconds, 4))
        except LessonError as e:
            fail(_LOG, "lesson_failed", category=category.value, error=e.code)
            metrics.record_lesson(category.value, "error", -1)
            raise
        except Exception as e:
            fail(_LOG, "lesson_failed", category=category.value, error=str(e), error_type=type(e).__name__)
            metrics.record_lesson(category.value, "error", -1)
            raise GenerationError(details={"error_type": type(e).__name__}) from e

        total_s = total_t.seconds
        metrics.record_lesson(category.value, "success", total_s)
        success(_LOG, "lesson_ready", category=category.value, seconds=round(total_s, 3))
        return lesson

    def generate_by_index(self, category: Union[LessonCategory, str], index: int) -> BaseModel:
        """Generate the catalog topic at index within category."""
        if not isinstance(category, LessonCategory):
            category = parse_category(category)
        return self.generate(category, get_topic(category, index).english)

    # =========================================================================
    # Internals
    # =========================================================================

    def _call_provider(self, category: LessonCategory, spec: PromptSpec) -> Dict[str, Any]:
        if self._controller is None:
            return self._provider_round_trip(category, spec)
        with self._controller.acquire_sync(timeout=self._concurrency_timeout):
            debug(_LOG, "concurrency_acquired",
                  active=self._controller.active_count,
                  queue=self._controller.queue_depth)
            return self._provider_round_trip(category, spec)

    def _provider_round_trip(self, category: LessonCategory, spec: PromptSpec) -> Dict[str, Any]:
        with timeit("provider_json") as t_json:
            payload = self._provider.generate_json(spec)
        verbose(_LOG, "stage", event="provider_json", seconds=round(t_json.seconds, 4))

        if category is LessonCategory.TOEIC_PART1:
            image_prompt = str(payload.pop("imagePrompt", "") or "").strip()
            if not image_prompt:
                raise GenerationError(details={"reason": "image_prompt_missing"})
            with timeit("provider_image") as t_image:
                payload["imageUrl"] = self._provider.generate_image(image_prompt)
            verbose(_LOG, "stage", event="provider_image", seconds=round(t_image.seconds, 4))
        return payload

    @staticmethod
    def _to_lesson(category: LessonCategory, payload: Dict[str, Any]) -> BaseModel:
        data = dict(payload)
        data["category"] = category.value

        field = _DIALOGUE_FIELDS.get(category)
        if field is not None:
            key, listening = field
            if isinstance(data.get(key), str):
                data[key] = format_dialogue(data[key], listening=listening)

        try:
            return parse_lesson(data)
        except ValidationError as e:
            debug(_LOG, "validation_errors", errors=e.error_count(), first=str(e.errors()[0]["loc"]))
            raise GenerationError(details={"reason": "validation", "errors": e.error_count()}) from e

    # =========================================================================
    # Health Check
    # =========================================================================

    def get_health_info(self) -> Dict[str, Any]:
        gen = self._config.generation
        result: Dict[str, Any] = {
            "ok": True,
            "provider": self._provider.name,
            "ready": self._provider.is_ready(),
            "model": gen.model if self._provider.name == "openai" else None,
            "speech_backend": self._settings.speech_backend,
        }
        if self._controller is not None:
            stats = self._controller.stats()
            result["concurrency"] = {
                "max_concurrent": stats.max_concurrent,
                "active": stats.current_active,
                "waiting": stats.current_waiting,
                "total_processed": stats.total_processed,
                "total_rejected": stats.total_rejected,
            }
        return result


# =============================================================================
# Global Service Singleton
# =============================================================================

_service: Optional[LessonService] = None
_service_lock = threading.Lock()


def get_service(settings: Settings) -> LessonService:
    """Get or create the global LessonService (thread-safe lazy singleton)."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = LessonService(settings)
    return _service


def reset_service() -> None:
    """Reset the global service instance (tests)."""
    global _service
    with _service_lock:
        _service = None
