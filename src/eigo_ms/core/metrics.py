"""
Prometheus Metrics for eigo-ms.

Metrics Exposed:
    eigo_lessons_total                  - Lessons generated, by category and status
    eigo_lesson_generation_seconds      - Provider round-trip per lesson
    eigo_generation_queue_depth         - Requests waiting for a generation slot
    eigo_generation_in_flight           - Provider calls in progress
    eigo_speech_plans_total             - Speech plans built, by kind
    eigo_speech_plan_utterances         - Utterances per plan
    eigo_playback_events_total          - Playback events (start/end/error/cancel)
    eigo_rendered_audio_bytes_total     - MP3 bytes streamed to clients
    eigo_answers_graded_total           - Graded TOEIC questions, by correctness

Usage:
    from eigo_ms.core.metrics import metrics

    metrics.record_lesson("business", "success", duration=2.4)
    metrics.record_plan("dialogue", utterances=18)
    content, content_type = metrics.get_metrics_response()

Every instance owns its own CollectorRegistry, so tests can build fresh
collectors without "Duplicated timeseries" errors.
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class LessonMetrics:
    """
    Metrics collector for lesson generation and speech playback.

    Thread Safety:
        All Prometheus metric operations are thread-safe.
    """

    def __init__(self):
        self._registry = CollectorRegistry()
        self._setup_metrics()

    def _setup_metrics(self) -> None:
        self._lessons_total = Counter(
            "eigo_lessons_total",
            "Total lesson generation requests",
            ["category", "status"],
            registry=self._registry,
        )

        # Generation is slow: text models take seconds, Part 1 adds an image
        self._generation_duration = Histogram(
            "eigo_lesson_generation_seconds",
            "Lesson generation duration in seconds",
            ["category"],
            buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0, 90.0),
            registry=self._registry,
        )

        self._queue_depth = Gauge(
            "eigo_generation_queue_depth",
            "Requests waiting for a generation slot",
            registry=self._registry,
        )

        self._in_flight = Gauge(
            "eigo_generation_in_flight",
            "Provider calls currently in progress",
            registry=self._registry,
        )

        self._plans_total = Counter(
            "eigo_speech_plans_total",
            "Speech plans built",
            ["kind"],
            registry=self._registry,
        )

        self._plan_utterances = Histogram(
            "eigo_speech_plan_utterances",
            "Utterances per speech plan",
            buckets=(1, 2, 5, 10, 20, 40, 80),
            registry=self._registry,
        )

        self._playback_events = Counter(
            "eigo_playback_events_total",
            "Playback lifecycle events",
            ["event"],
            registry=self._registry,
        )

        self._rendered_bytes = Counter(
            "eigo_rendered_audio_bytes_total",
            "Encoded audio bytes streamed to clients",
            registry=self._registry,
        )

        self._answers_graded = Counter(
            "eigo_answers_graded_total",
            "Graded questions",
            ["category", "result"],
            registry=self._registry,
        )

    def record_lesson(self, category: str, status: str, duration: float) -> None:
        """
        Record a finished generation request.

        Args:
            category: Lesson category ("business", "toeic_part3", ...).
            status: "success" or an error code.
            duration: Wall-clock seconds including slot wait; negative for
                failures, which are counted but not timed.
        """
        self._lessons_total.labels(category=category, status=status).inc()
        if duration >= 0:
            self._generation_duration.labels(category=category).observe(duration)

    def set_queue_depth(self, depth: int) -> None:
        self._queue_depth.set(depth)

    def set_in_flight(self, count: int) -> None:
        self._in_flight.set(count)

    def record_plan(self, kind: str, utterances: int) -> None:
        """Record a built speech plan ("snippet" or "dialogue")."""
        self._plans_total.labels(kind=kind).inc()
        self._plan_utterances.observe(utterances)

    def record_playback(self, event: str) -> None:
        """Record a playback event: start, end, error or cancel."""
        self._playback_events.labels(event=event).inc()

    def add_rendered_bytes(self, count: int) -> None:
        if count > 0:
            self._rendered_bytes.inc(count)

    def record_grade(self, category: str, correct: int, total: int) -> None:
        if correct:
            self._answers_graded.labels(category=category, result="correct").inc(correct)
        if total - correct:
            self._answers_graded.labels(category=category, result="incorrect").inc(total - correct)

    def get_metrics_response(self) -> tuple[bytes, str]:
        """Metrics in Prometheus text format: (content_bytes, content_type)."""
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global singleton: from eigo_ms.core.metrics import metrics
metrics = LessonMetrics()
