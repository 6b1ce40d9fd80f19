"""
Configuration Management for eigo-ms.

Configuration Hierarchy (highest priority first):
    1. Environment variables (EIGO_MS_PROVIDER, EIGO_MS_SPEECH_BACKEND, ...)
    2. YAML config file (config/settings.yaml, or EIGO_MS_SETTINGS)
    3. Defaults class values

Example settings.yaml:
    generation:
      provider: openai
      model: gpt-4o-mini

    speech:
      backend: edge
      default_rate: 1.0
      rates: [0.75, 1.0, 1.25]

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import os
import yaml


class ConfigValidationError(Exception):
    """Raised when a configuration value is out of bounds or malformed."""
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Generation: content provider and model parameters
        - Speech: backend selection and playback parameters
        - Chunking: speakable chunk size limit
        - Concurrency: generation slot limiting
        - Logging: level and preview length
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Content Generation
    # ─────────────────────────────────────────────────────────────────────────
    GENERATION_PROVIDER = "auto"          # auto | openai | fallback
    GENERATION_MODEL = "gpt-4o-mini"      # Chat model for lesson JSON
    GENERATION_IMAGE_MODEL = "dall-e-3"   # Image model for TOEIC Part 1
    GENERATION_IMAGE_SIZE = "1024x1024"
    GENERATION_READING_TEMPERATURE = 0.8  # general / business / daily
    GENERATION_TOEIC_TEMPERATURE = 0.9    # toeic_part1 .. toeic_part7
    GENERATION_TIMEOUT_S = 60.0           # Provider request timeout

    # ─────────────────────────────────────────────────────────────────────────
    # Speech Playback
    # ─────────────────────────────────────────────────────────────────────────
    SPEECH_BACKEND = "edge"               # edge | pyttsx3 | null
    SPEECH_DEFAULT_RATE = 1.0             # Playback rate multiplier
    SPEECH_RATES = (0.75, 1.0, 1.25)      # Rates offered to learners
    SPEECH_START_DELAY_S = 0.05           # Gap between cancel and first utterance
    SPEECH_FALLBACK_LANG = "en-US"        # Used when no English voice exists
    SPEECH_BASE_WPM = 175                 # pyttsx3 words-per-minute at rate 1.0

    # ─────────────────────────────────────────────────────────────────────────
    # Text Chunking
    # ─────────────────────────────────────────────────────────────────────────
    CHUNKING_MAX_CHARS = 0                # 0 = sentence chunks only, no size cap

    # ─────────────────────────────────────────────────────────────────────────
    # Concurrency Control
    # ─────────────────────────────────────────────────────────────────────────
    CONCURRENCY_ENABLED = True
    CONCURRENCY_MAX_CONCURRENT = 4        # Simultaneous provider calls
    CONCURRENCY_MAX_QUEUE = 16            # Waiting requests before rejection
    CONCURRENCY_TIMEOUT_S = 90.0          # Wait for a generation slot

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 60
    LOGGING_LEVEL = 2                     # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


@dataclass
class GenerationConfig:
    """
    Content provider configuration.

    provider "auto" picks OpenAI when OPENAI_API_KEY is present and the
    canned fallback provider otherwise.
    """
    provider: str = Defaults.GENERATION_PROVIDER
    model: str = Defaults.GENERATION_MODEL
    image_model: str = Defaults.GENERATION_IMAGE_MODEL
    image_size: str = Defaults.GENERATION_IMAGE_SIZE
    reading_temperature: float = Defaults.GENERATION_READING_TEMPERATURE
    toeic_temperature: float = Defaults.GENERATION_TOEIC_TEMPERATURE
    timeout_s: float = Defaults.GENERATION_TIMEOUT_S


@dataclass
class SpeechConfig:
    """Speech backend and playback configuration."""
    backend: str = Defaults.SPEECH_BACKEND
    default_rate: float = Defaults.SPEECH_DEFAULT_RATE
    rates: List[float] = field(default_factory=lambda: list(Defaults.SPEECH_RATES))
    start_delay_s: float = Defaults.SPEECH_START_DELAY_S
    fallback_lang: str = Defaults.SPEECH_FALLBACK_LANG
    base_wpm: int = Defaults.SPEECH_BASE_WPM


@dataclass
class ChunkingConfig:
    """
    Text chunking configuration.

    Chunks are always sentence or line sized; max_chars additionally caps
    them for engines that reject long input.
    """
    max_chars: int = Defaults.CHUNKING_MAX_CHARS


@dataclass
class ConcurrencyConfig:
    """Limits simultaneous provider calls so a burst cannot exhaust quota."""
    enabled: bool = Defaults.CONCURRENCY_ENABLED
    max_concurrent: int = Defaults.CONCURRENCY_MAX_CONCURRENT
    max_queue: int = Defaults.CONCURRENCY_MAX_QUEUE
    timeout_s: float = Defaults.CONCURRENCY_TIMEOUT_S


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, failures only
        2 = NORMAL: Lesson requests, playback lifecycle (default)
        3 = VERBOSE: Per-utterance events, timings
        4 = DEBUG: Voice scoring, internal state
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ServiceConfig:
    """
    Validated configuration for the lesson service and speech layer.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = ServiceConfig.from_settings(settings)
        print(config.speech.rates)
    """
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    concurrency: ConcurrencyConfig = field(default_factory=ConcurrencyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ServiceConfig":
        """
        Create ServiceConfig from Settings with validation.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Generation configuration
        # ─────────────────────────────────────────────────────────────────────
        gen_raw = raw.get("generation", {}) or {}
        generation = GenerationConfig(
            provider=str(gen_raw.get("provider", Defaults.GENERATION_PROVIDER)).lower(),
            model=str(gen_raw.get("model", Defaults.GENERATION_MODEL)),
            image_model=str(gen_raw.get("image_model", Defaults.GENERATION_IMAGE_MODEL)),
            image_size=str(gen_raw.get("image_size", Defaults.GENERATION_IMAGE_SIZE)),
            reading_temperature=float(gen_raw.get("reading_temperature", Defaults.GENERATION_READING_TEMPERATURE)),
            toeic_temperature=float(gen_raw.get("toeic_temperature", Defaults.GENERATION_TOEIC_TEMPERATURE)),
            timeout_s=float(gen_raw.get("timeout_s", Defaults.GENERATION_TIMEOUT_S)),
        )
        cls._validate_choice("generation.provider", generation.provider, ("auto", "openai", "fallback"))
        cls._validate_range("generation.reading_temperature", generation.reading_temperature, 0.0, 2.0)
        cls._validate_range("generation.toeic_temperature", generation.toeic_temperature, 0.0, 2.0)
        cls._validate_positive("generation.timeout_s", generation.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Speech configuration
        # ─────────────────────────────────────────────────────────────────────
        speech_raw = raw.get("speech", {}) or {}
        rates_raw = speech_raw.get("rates", list(Defaults.SPEECH_RATES))
        if not isinstance(rates_raw, (list, tuple)) or not rates_raw:
            raise ConfigValidationError(f"speech.rates must be a non-empty list, got {rates_raw!r}")
        speech = SpeechConfig(
            backend=str(speech_raw.get("backend", Defaults.SPEECH_BACKEND)).lower(),
            default_rate=float(speech_raw.get("default_rate", Defaults.SPEECH_DEFAULT_RATE)),
            rates=[float(r) for r in rates_raw],
            start_delay_s=float(speech_raw.get("start_delay_s", Defaults.SPEECH_START_DELAY_S)),
            fallback_lang=str(speech_raw.get("fallback_lang", Defaults.SPEECH_FALLBACK_LANG)),
            base_wpm=int(speech_raw.get("base_wpm", Defaults.SPEECH_BASE_WPM)),
        )
        cls._validate_positive("speech.default_rate", speech.default_rate)
        for rate in speech.rates:
            cls._validate_range("speech.rates", rate, 0.1, 10.0)
        cls._validate_non_negative("speech.start_delay_s", speech.start_delay_s)
        cls._validate_positive("speech.base_wpm", speech.base_wpm)

        # ─────────────────────────────────────────────────────────────────────
        # Chunking configuration
        # ─────────────────────────────────────────────────────────────────────
        chunking_raw = raw.get("chunking", {}) or {}
        chunking = ChunkingConfig(
            max_chars=int(chunking_raw.get("max_chars", Defaults.CHUNKING_MAX_CHARS)),
        )
        cls._validate_non_negative("chunking.max_chars", chunking.max_chars)

        # ─────────────────────────────────────────────────────────────────────
        # Concurrency configuration
        # ─────────────────────────────────────────────────────────────────────
        concurrency_raw = raw.get("concurrency", {}) or {}
        concurrency = ConcurrencyConfig(
            enabled=bool(concurrency_raw.get("enabled", Defaults.CONCURRENCY_ENABLED)),
            max_concurrent=int(concurrency_raw.get("max_concurrent", Defaults.CONCURRENCY_MAX_CONCURRENT)),
            max_queue=int(concurrency_raw.get("max_queue", Defaults.CONCURRENCY_MAX_QUEUE)),
            timeout_s=float(concurrency_raw.get("timeout_s", Defaults.CONCURRENCY_TIMEOUT_S)),
        )
        cls._validate_positive("concurrency.max_concurrent", concurrency.max_concurrent)
        cls._validate_non_negative("concurrency.max_queue", concurrency.max_queue)
        cls._validate_positive("concurrency.timeout_s", concurrency.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Logging configuration
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # String levels ("INFO", "VERBOSE") are accepted too
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            generation=generation,
            speech=speech,
            chunking=chunking,
            concurrency=concurrency,
            logging=logging_cfg,
        )

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")

    @staticmethod
    def _validate_choice(name: str, value: str, choices: tuple) -> None:
        """Validate that a value is one of a fixed set of options."""
        if value not in choices:
            raise ConfigValidationError(f"{name} must be one of {', '.join(choices)}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_service_config() for the validated ServiceConfig.
    """
    raw: Dict[str, Any]

    @property
    def provider(self) -> str:
        """Content provider name (auto, openai, fallback)."""
        return str((self.raw.get("generation", {}) or {}).get("provider", Defaults.GENERATION_PROVIDER)).lower()

    @property
    def speech_backend(self) -> str:
        """Speech backend name (edge, pyttsx3, null)."""
        return str((self.raw.get("speech", {}) or {}).get("backend", Defaults.SPEECH_BACKEND)).lower()

    def get_service_config(self) -> ServiceConfig:
        """
        Get validated ServiceConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return ServiceConfig.from_settings(self)


DEFAULT_SETTINGS_PATH = "config/settings.yaml"


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from a YAML configuration file.

    The path defaults to EIGO_MS_SETTINGS, then config/settings.yaml.

    Environment variable overrides:
        - EIGO_MS_PROVIDER: Override generation.provider
        - EIGO_MS_SPEECH_BACKEND: Override speech.backend

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
    """
    p = Path(path or os.getenv("EIGO_MS_SETTINGS") or DEFAULT_SETTINGS_PATH)
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    provider = os.getenv("EIGO_MS_PROVIDER")
    if provider:
        raw.setdefault("generation", {})["provider"] = provider
    backend = os.getenv("EIGO_MS_SPEECH_BACKEND")
    if backend:
        raw.setdefault("speech", {})["backend"] = backend

    return Settings(raw=raw)
