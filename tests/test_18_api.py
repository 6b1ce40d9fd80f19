"""Tests for the lesson HTTP API."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from eigo_ms.lessons import samples
from eigo_ms.lessons.models import LessonCategory


@pytest.fixture
def client(reset_singletons):
    from eigo_ms.main import create_app

    with TestClient(create_app()) as c:
        yield c


def _lesson_json(client, category: str, index: int = 0) -> dict:
    r = client.post("/v1/lessons", json={"category": category, "index": index})
    assert r.status_code == 200
    return r.json()


class TestCatalog:

    def test_catalog(self, client):
        r = client.get("/v1/catalog")
        assert r.status_code == 200
        data = r.json()
        assert [c["label"] for c in data["categories"]][:3] == ["General", "Business", "Daily"]
        assert data["rates"] == [0.75, 1.0, 1.25]


class TestLessons:

    def test_lesson_by_topic(self, client):
        r = client.post("/v1/lessons", json={"category": "general", "topic": "Coffee Culture"})
        assert r.status_code == 200
        data = r.json()
        assert data["category"] == "general"
        assert "Coffee Culture" in data["englishText"]
        assert r.headers["X-Request-Id"]

    def test_lesson_by_index(self, client):
        data = _lesson_json(client, "business", 0)
        assert "Scheduling a Meeting" in data["englishText"]

    def test_part1_has_image(self, client):
        data = _lesson_json(client, "toeic_part1")
        assert data["imageUrl"].startswith("data:image/")
        assert "imagePrompt" not in data

    def test_unknown_category(self, client):
        r = client.post("/v1/lessons", json={"category": "poetry", "index": 0})
        assert r.status_code == 400
        body = r.json()
        assert body["ok"] is False
        assert body["error"] == "INVALID_INPUT"
        assert body["request_id"] == r.headers["X-Request-Id"]

    def test_index_out_of_range(self, client):
        r = client.post("/v1/lessons", json={"category": "daily", "index": 50})
        assert r.status_code == 400

    def test_topic_or_index_required(self, client):
        r = client.post("/v1/lessons", json={"category": "daily"})
        assert r.status_code == 422

    def test_provider_not_ready(self, client, monkeypatch):
        monkeypatch.setenv("EIGO_MS_PROVIDER", "openai")
        from eigo_ms.api.dependencies import get_settings
        from eigo_ms.lessons.provider import reset_provider
        from eigo_ms.services.lesson_service import reset_service

        get_settings.cache_clear()
        reset_provider()
        reset_service()

        r = client.post("/v1/lessons", json={"category": "daily", "index": 0})
        assert r.status_code == 503
        assert r.json()["error"] == "PROVIDER_NOT_READY"


class TestViewAndGrade:

    def test_view(self, client):
        lesson = _lesson_json(client, "general")
        r = client.post("/v1/lessons/view", json={"lesson": lesson, "mode": "vocabulary"})
        assert r.status_code == 200
        assert r.json()["vocabulary"][0]["word"] == "take a closer look"

    def test_view_of_toeic_lesson(self, client):
        lesson = _lesson_json(client, "toeic_part5")
        r = client.post("/v1/lessons/view", json={"lesson": lesson, "mode": "english"})
        assert r.status_code == 400

    def test_view_invalid_lesson_payload(self, client):
        r = client.post("/v1/lessons/view", json={"lesson": {"category": "general"}, "mode": "english"})
        assert r.status_code == 400
        assert r.json()["message"] == "Invalid lesson payload"

    def test_grade(self, client):
        lesson = _lesson_json(client, "toeic_part3")
        r = client.post("/v1/lessons/grade", json={"lesson": lesson, "answers": {"1": "B", "2": "C", "3": "C"}})
        assert r.status_code == 200
        data = r.json()
        assert data["correct"] == 3
        assert data["results"][0]["isCorrect"] is True

    def test_grade_incomplete(self, client):
        payload = samples.sample_payload(LessonCategory.TOEIC_PART5, "Prepositions")
        payload["category"] = "toeic_part5"
        r = client.post("/v1/lessons/grade", json={"lesson": payload, "answers": {}})
        assert r.status_code == 400
        assert r.json()["details"] == {"missing": [1]}


class TestHealth:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["ok"] is True
        assert data["provider"] == "fallback"
        assert data["concurrency"]["max_concurrent"] == 4
