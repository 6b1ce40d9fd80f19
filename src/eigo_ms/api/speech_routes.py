"""
Speech API Routes.

Endpoints:
    GET  /v1/speech/voices  - Ranked English voices of the server backend
    POST /v1/speech/plan    - Speech plan for text or a lesson (JSON)
    POST /v1/speech/stream  - Server-Sent Events, one MP3 per utterance

A browser client can post its own speechSynthesis voices to /plan and
speak the plan itself; the stream endpoint renders the plan server-side
with a render-capable backend (edge).

Stream events:
    meta       request_id, utterances, rate, multi_speaker, voices, format
    utterance  i, n, text, speaker, voice, audio_mp3_b64
    done       utterances, bytes, seconds_total
    error      code, message
"""
from __future__ import annotations

import base64
import json
import time
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from eigo_ms.api.dependencies import get_settings, get_speech_backend
from eigo_ms.api.routes import error_response, internal_error_response, new_request_id, parse_client_lesson
from eigo_ms.api.schemas import PlanRequest
from eigo_ms.core.errors import ErrorCode, LessonError, SpeechError, SpeechUnavailableError
from eigo_ms.core.logging import fail, get_logger, info, success
from eigo_ms.core.metrics import metrics
from eigo_ms.speech.backends import BaseSpeechBackend
from eigo_ms.speech.plan import SpeechPlan, build_dialogue_plan, build_snippet_plan
from eigo_ms.speech.player import is_multi_speaker, speech_text
from eigo_ms.speech.voices import Voice, normalize_lang, rank_english_voices, score_voice

router = APIRouter()

_LOG = get_logger("eigo-ms.api.speech")


def _backend_voices(backend: BaseSpeechBackend) -> List[Voice]:
    if not backend.available:
        return []
    try:
        return backend.list_voices()
    except LessonError:
        raise
    except Exception as e:
        raise SpeechError(f"Could not list voices: {e}", details={"backend": backend.name}) from e


def _resolve(req: PlanRequest) -> Tuple[str, bool]:
    """Text to speak and whether to plan it as a dialogue."""
    if req.lesson is not None:
        lesson = parse_client_lesson(req.lesson)
        text = speech_text(lesson)
        multi = is_multi_speaker(lesson)
    else:
        text = req.text or ""
        multi = False
    if req.multi_speaker is not None:
        multi = req.multi_speaker
    return text, multi


def _build_plan(req: PlanRequest, backend: BaseSpeechBackend) -> SpeechPlan:
    config = get_settings().get_service_config()
    text, multi = _resolve(req)
    if req.voices is not None:
        voices = [
            Voice(name=v.name, lang=normalize_lang(v.lang), local_service=v.local_service,
                  voice_uri=v.voice_uri, default=v.default)
            for v in req.voices
        ]
    else:
        voices = _backend_voices(backend)
    builder = build_dialogue_plan if multi else build_snippet_plan
    return builder(
        text,
        voices,
        rate=req.rate,
        max_chars=config.chunking.max_chars or None,
        fallback_lang=config.speech.fallback_lang,
    )


@router.get("/v1/speech/voices")
def speech_voices(backend: BaseSpeechBackend = Depends(get_speech_backend)):
    """English voices of the configured backend, best first, with scores."""
    rid = new_request_id()
    try:
        ranked = rank_english_voices(_backend_voices(backend))
    except LessonError as e:
        return error_response(e, rid)
    return {
        "backend": backend.name,
        "available": backend.available,
        "voices": [dict(v.to_dict(), score=score_voice(v)) for v in ranked],
    }


@router.post("/v1/speech/plan")
def speech_plan(
    req: PlanRequest,
    backend: BaseSpeechBackend = Depends(get_speech_backend),
):
    """
    Build a speech plan without speaking it.

    Raises:
        400: Invalid lesson payload
        422: Dialogue with no English voice to voice it
    """
    rid = new_request_id()
    try:
        plan = _build_plan(req, backend)
    except LessonError as e:
        return error_response(e, rid)
    except Exception as e:
        return internal_error_response(e, rid)
    return JSONResponse(content=plan.to_dict(), headers={"X-Request-Id": rid})


@router.post("/v1/speech/stream")
def speech_stream(
    req: PlanRequest,
    backend: BaseSpeechBackend = Depends(get_speech_backend),
):
    """
    Render a speech plan to MP3, one SSE event per utterance.

    Plan errors (no voices, bad lesson) are returned as JSON before the
    stream starts; rendering errors arrive as an "error" event.
    """
    rid = new_request_id()
    try:
        if not backend.capabilities.render:
            raise SpeechUnavailableError(
                f"Speech backend '{backend.name}' cannot render audio",
                details={"backend": backend.name},
            )
        plan = _build_plan(req, backend)
    except LessonError as e:
        return error_response(e, rid)

    def sse(event: str, payload: dict) -> str:
        return f"event: {event}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"

    def gen():
        t0 = time.perf_counter()
        total_bytes = 0
        info(_LOG, "stream_start", utterances=len(plan), rate=plan.rate)
        yield sse("meta", {
            "request_id": rid,
            "utterances": len(plan),
            "rate": plan.rate,
            "multi_speaker": plan.multi_speaker,
            "voices": plan.voices,
            "format": "mp3",
        })
        try:
            for utterance in plan.utterances:
                audio = backend.render(utterance)
                total_bytes += len(audio)
                metrics.add_rendered_bytes(len(audio))
                yield sse("utterance", {
                    "i": utterance.index,
                    "n": len(plan),
                    "text": utterance.text,
                    "speaker": utterance.speaker,
                    "voice": utterance.voice.name if utterance.voice else None,
                    "audio_mp3_b64": base64.b64encode(audio).decode("ascii"),
                })
        except LessonError as e:
            yield sse("error", {"code": e.code, "message": e.message})
            return
        except Exception as e:
            fail(_LOG, "stream_failed", error=str(e), error_type=type(e).__name__)
            yield sse("error", {"code": ErrorCode.SPEECH_FAILED, "message": str(e)})
            return

        seconds = time.perf_counter() - t0
        success(_LOG, "stream_done", utterances=len(plan), bytes=total_bytes, seconds=round(seconds, 3))
        yield sse("done", {"utterances": len(plan), "bytes": total_bytes, "seconds_total": round(seconds, 3)})

    return StreamingResponse(gen(), media_type="text/event-stream", headers={"X-Request-Id": rid})
