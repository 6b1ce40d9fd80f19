"""Tests for the speech HTTP API (voices, plan, SSE stream)."""
from __future__ import annotations

import base64
import json
from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from conftest import ARIA, DAVID, GUY, KYOKO, FakeBackend
from eigo_ms.api.dependencies import get_speech_backend
from eigo_ms.lessons import samples
from eigo_ms.lessons.models import LessonCategory, dump_lesson
from eigo_ms.services.lesson_service import LessonService

DIALOGUE = "Speaker A: Hello there.\n\nSpeaker B: Hi, how are you?\n\nSpeaker A: Fine, thanks."


def _voice_in(voice) -> dict:
    return {"name": voice.name, "lang": voice.lang, "local_service": voice.local_service,
            "voice_uri": voice.voice_uri}


def _parse_sse(body: str) -> List[Tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        lines = block.splitlines()
        event = lines[0].split(": ", 1)[1]
        data = json.loads(lines[1].split(": ", 1)[1])
        events.append((event, data))
    return events


@pytest.fixture
def app(reset_singletons):
    from eigo_ms.main import create_app

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def fake_client(app, fake_backend):
    app.dependency_overrides[get_speech_backend] = lambda: fake_backend
    with TestClient(app) as c:
        yield c


class TestVoices:

    def test_null_backend_has_no_voices(self, client):
        r = client.get("/v1/speech/voices")
        assert r.status_code == 200
        assert r.json() == {"backend": "null", "available": False, "voices": []}

    def test_ranked_voices(self, app, make_backend):
        backend = make_backend(voices=[DAVID, KYOKO, ARIA])
        app.dependency_overrides[get_speech_backend] = lambda: backend
        with TestClient(app) as c:
            data = c.get("/v1/speech/voices").json()
        assert [v["voice_uri"] for v in data["voices"]] == ["aria", "david"]
        assert data["voices"][0]["score"] == 23


class TestPlan:

    def test_snippet_plan_from_text(self, client):
        r = client.post("/v1/speech/plan", json={
            "text": "First sentence. Second one!",
            "rate": 1.25,
            "voices": [_voice_in(DAVID), _voice_in(ARIA)],
        })
        assert r.status_code == 200
        plan = r.json()
        assert plan["multi_speaker"] is False
        assert plan["rate"] == 1.25
        assert [u["text"] for u in plan["utterances"]] == ["First sentence.", "Second one!"]
        assert {u["voice_uri"] for u in plan["utterances"]} == {"aria"}

    def test_snippet_without_voices_uses_fallback_lang(self, client):
        plan = client.post("/v1/speech/plan", json={"text": "Hello."}).json()
        assert plan["utterances"] == [{
            "index": 0, "text": "Hello.", "voice": None, "voice_uri": None,
            "lang": "en-US", "rate": 1.0, "speaker": None,
        }]

    def test_dialogue_plan_from_text(self, client):
        plan = client.post("/v1/speech/plan", json={
            "text": DIALOGUE,
            "multi_speaker": True,
            "voices": [_voice_in(ARIA), _voice_in(GUY)],
        }).json()
        assert plan["multi_speaker"] is True
        assert plan["voices"] == {"Speaker A:": ARIA.name, "Speaker B:": GUY.name}
        assert [u["speaker"] for u in plan["utterances"]][:2] == ["Speaker A:", "Speaker B:"]

    def test_lesson_plan_uses_category(self, client):
        lesson = LessonService._to_lesson(
            LessonCategory.TOEIC_PART3, samples.sample_payload(LessonCategory.TOEIC_PART3, "Orders"),
        )
        plan = client.post("/v1/speech/plan", json={
            "lesson": dump_lesson(lesson),
            "voices": [_voice_in(ARIA), _voice_in(GUY)],
        }).json()
        assert plan["multi_speaker"] is True
        assert plan["voices"] == {"W:": ARIA.name, "M:": GUY.name}

    def test_single_speaker_talk_is_spoken_as_snippet(self, client):
        lesson = LessonService._to_lesson(
            LessonCategory.TOEIC_PART4, samples.sample_payload(LessonCategory.TOEIC_PART4, "Tours"),
        )
        plan = client.post("/v1/speech/plan", json={
            "lesson": dump_lesson(lesson),
            "voices": [_voice_in(ARIA)],
        }).json()
        assert plan["multi_speaker"] is False
        assert plan["utterances"][0]["text"].startswith("Good morning, everyone")

    def test_dialogue_without_english_voice(self, client):
        r = client.post("/v1/speech/plan", json={
            "text": DIALOGUE,
            "multi_speaker": True,
            "voices": [_voice_in(KYOKO)],
        })
        assert r.status_code == 422
        assert r.json()["error"] == "NO_VOICES"
        assert r.json()["message"] == "No English voices found for audio playback."

    def test_text_or_lesson_required(self, client):
        assert client.post("/v1/speech/plan", json={"rate": 1.0}).status_code == 422

    def test_invalid_rate(self, client):
        assert client.post("/v1/speech/plan", json={"text": "Hi.", "rate": 0}).status_code == 422

    def test_backend_voices_when_client_sends_none(self, fake_client):
        plan = fake_client.post("/v1/speech/plan", json={"text": DIALOGUE, "multi_speaker": True}).json()
        assert plan["voices"] == {"Speaker A:": ARIA.name, "Speaker B:": GUY.name}


class TestStream:

    def test_null_backend_cannot_render(self, client):
        r = client.post("/v1/speech/stream", json={"text": "Hello."})
        assert r.status_code == 503
        assert r.json()["error"] == "SPEECH_UNAVAILABLE"

    def test_stream_events(self, fake_client):
        r = fake_client.post("/v1/speech/stream", json={"text": DIALOGUE, "multi_speaker": True, "rate": 0.75})
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/event-stream")

        events = _parse_sse(r.text)
        kinds = [e for e, _ in events]
        assert kinds[0] == "meta"
        assert kinds[-1] == "done"
        assert kinds.count("utterance") == 3

        meta = events[0][1]
        assert meta["utterances"] == 3
        assert meta["rate"] == 0.75
        assert meta["format"] == "mp3"
        assert meta["request_id"] == r.headers["X-Request-Id"]

        first = events[1][1]
        assert first["i"] == 0 and first["n"] == 3
        assert first["speaker"] == "Speaker A:"
        assert base64.b64decode(first["audio_mp3_b64"]) == b"ID3:Hello there."

        done = events[-1][1]
        assert done["utterances"] == 3
        assert done["bytes"] == sum(len(f"ID3:{d['text']}".encode()) for e, d in events if e == "utterance")

    def test_render_failure_becomes_error_event(self, app):
        class Broken(FakeBackend):
            def render(self, utterance):
                raise RuntimeError("tts service unreachable")

        backend = Broken()
        app.dependency_overrides[get_speech_backend] = lambda: backend
        try:
            with TestClient(app) as c:
                r = c.post("/v1/speech/stream", json={"text": "Hello."})
        finally:
            backend.close()

        events = _parse_sse(r.text)
        assert [e for e, _ in events] == ["meta", "error"]
        assert events[1][1] == {"code": "SPEECH_FAILED", "message": "tts service unreachable"}
