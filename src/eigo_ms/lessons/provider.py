"""
Content providers.

A provider turns a PromptSpec into a JSON dict and an image prompt into a
data URL. It knows nothing about lesson models; validation happens in the
lesson service.

Providers:
    - OpenAIContentProvider: chat completions with strict JSON schema output,
      images via the Images API as base64
    - FallbackContentProvider: deterministic canned lessons, used when no
      API key is configured (local development, tests, demos)

Selection (settings.generation.provider / EIGO_MS_PROVIDER):
    auto      OpenAI when OPENAI_API_KEY is set, fallback otherwise
    openai    OpenAI, PROVIDER_NOT_READY if the key is missing
    fallback  canned content
"""
from __future__ import annotations

import base64
import json
import os
import threading
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from openai import OpenAI, OpenAIError

from eigo_ms.core.config import GenerationConfig, Settings
from eigo_ms.core.errors import GenerationError, ProviderNotReadyError
from eigo_ms.core.logging import debug, fail, get_logger, info, verbose, warn
from eigo_ms.lessons import samples
from eigo_ms.lessons.prompts import PromptSpec
from eigo_ms.utils.timeit import timeit

_LOG = get_logger("eigo-ms.provider")

SYSTEM_PROMPT = (
    "You write English study material for Japanese learners preparing for the TOEIC test. "
    "Reply with a single JSON object that matches the requested schema."
)

SAFE_IMAGE_PROMPT = "a simple, realistic photograph of people working in a bright modern office"


class BaseContentProvider:
    """Abstract content provider."""

    name: str = "base"

    def __init__(self, config: GenerationConfig):
        self.config = config

    def is_ready(self) -> bool:
        return True

    def generate_json(self, spec: PromptSpec) -> Dict[str, Any]:
        """
        Generate a JSON object for a prompt.

        Raises:
            GenerationError: The provider failed or returned non-JSON content.
        """
        raise NotImplementedError

    def generate_image(self, prompt: str) -> str:
        """
        Generate an image and return it as a data URL.

        Raises:
            GenerationError: No image could be produced.
        """
        raise NotImplementedError


class OpenAIContentProvider(BaseContentProvider):
    """Lesson JSON and Part 1 photographs from the OpenAI API."""

    name = "openai"

    def __init__(self, config: GenerationConfig, api_key: Optional[str] = None, client: Any = None):
        super().__init__(config)
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        if client is not None:
            self._client = client
        elif self._api_key:
            self._client = OpenAI(api_key=self._api_key, timeout=config.timeout_s)
            masked = f"{self._api_key[:8]}...{self._api_key[-4:]}" if len(self._api_key) > 12 else "***"
            info(_LOG, "openai_client_ready", model=config.model, key=masked)
        else:
            self._client = None

    def is_ready(self) -> bool:
        return self._client is not None

    def _require_client(self) -> Any:
        if self._client is None:
            raise ProviderNotReadyError("OPENAI_API_KEY is not set; cannot generate lessons.")
        return self._client

    def generate_json(self, spec: PromptSpec) -> Dict[str, Any]:
        client = self._require_client()
        verbose(_LOG, "chat_request", model=self.config.model, category=spec.category.value,
                temperature=spec.temperature)
        with timeit("chat") as t:
            try:
                response = client.chat.completions.create(
                    model=self.config.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": spec.prompt},
                    ],
                    response_format={
                        "type": "json_schema",
                        "json_schema": {"name": spec.schema_name, "schema": spec.schema, "strict": True},
                    },
                    temperature=spec.temperature,
                )
            except OpenAIError as exc:
                fail(_LOG, "chat_failed", category=spec.category.value, error=str(exc))
                raise GenerationError(details={"reason": exc.__class__.__name__}) from exc

        content = (response.choices[0].message.content or "").strip()
        debug(_LOG, "chat_response", chars=len(content), seconds=round(t.seconds, 3))
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            fail(_LOG, "chat_invalid_json", category=spec.category.value, chars=len(content))
            raise GenerationError(details={"reason": "invalid_json"}) from exc
        if not isinstance(payload, dict):
            raise GenerationError(details={"reason": "not_an_object"})
        return payload

    def generate_image(self, prompt: str) -> str:
        client = self._require_client()
        try:
            return self._image(client, prompt)
        except OpenAIError as exc:
            # Safety filters reject some scene descriptions; retry once with a neutral scene
            if "content_policy" not in str(exc) and "safety" not in str(exc).lower():
                fail(_LOG, "image_failed", error=str(exc))
                raise GenerationError(details={"reason": exc.__class__.__name__}) from exc
            warn(_LOG, "image_prompt_rejected", prompt=prompt[:80])
        try:
            return self._image(client, SAFE_IMAGE_PROMPT)
        except OpenAIError as exc:
            fail(_LOG, "image_failed", error=str(exc))
            raise GenerationError(details={"reason": exc.__class__.__name__}) from exc

    def _image(self, client: Any, prompt: str) -> str:
        with timeit("image") as t:
            result = client.images.generate(
                model=self.config.image_model,
                prompt=prompt,
                size=self.config.image_size,
                quality="standard",
                response_format="b64_json",
                n=1,
            )
        b64 = getattr(result.data[0], "b64_json", None) if result.data else None
        if not b64:
            raise GenerationError(details={"reason": "image_missing"})
        verbose(_LOG, "image_generated", bytes=len(b64) * 3 // 4, seconds=round(t.seconds, 3))
        return f"data:image/png;base64,{b64}"


class FallbackContentProvider(BaseContentProvider):
    """Canned lessons with the topic filled in; never calls the network."""

    name = "fallback"

    def generate_json(self, spec: PromptSpec) -> Dict[str, Any]:
        return samples.sample_payload(spec.category, spec.topic)

    def generate_image(self, prompt: str) -> str:
        svg = samples.placeholder_svg(prompt)
        return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


# =============================================================================
# Provider Factory (Singleton Pattern)
# =============================================================================

_PROVIDER: Optional[BaseContentProvider] = None
_PROVIDER_NAME: Optional[str] = None
_PROVIDER_LOCK = threading.Lock()


def _resolve_provider_name(config: GenerationConfig) -> str:
    name = config.provider
    if name == "auto":
        return "openai" if os.getenv("OPENAI_API_KEY") else "fallback"
    return name


def create_provider(name: str, config: GenerationConfig) -> BaseContentProvider:
    if name == "openai":
        return OpenAIContentProvider(config)
    if name == "fallback":
        return FallbackContentProvider(config)
    raise ValueError(f"Unknown content provider: {name}")


def get_provider(settings: Settings) -> BaseContentProvider:
    """
    Get or create the process-wide content provider.

    A .env file in the working directory is loaded first, so OPENAI_API_KEY
    can live there instead of the shell environment.
    """
    global _PROVIDER
    global _PROVIDER_NAME

    load_dotenv()
    config = settings.get_service_config().generation
    name = _resolve_provider_name(config)

    if _PROVIDER is None or _PROVIDER_NAME != name:
        with _PROVIDER_LOCK:
            if _PROVIDER is None or _PROVIDER_NAME != name:
                _PROVIDER = create_provider(name, config)
                _PROVIDER_NAME = name
                info(_LOG, "provider_selected", provider=name)
                if name == "fallback":
                    warn(_LOG, "using_fallback_content", hint="set OPENAI_API_KEY for generated lessons")

    return _PROVIDER


def reset_provider() -> None:
    """Drop the cached provider (tests)."""
    global _PROVIDER
    global _PROVIDER_NAME
    with _PROVIDER_LOCK:
        _PROVIDER = None
        _PROVIDER_NAME = None


__all__ = [
    "BaseContentProvider",
    "OpenAIContentProvider",
    "FallbackContentProvider",
    "create_provider",
    "get_provider",
    "reset_provider",
]
