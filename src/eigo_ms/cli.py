"""
Command-Line Interface for eigo-ms.

Generate lessons, inspect speech plans and read text aloud without running
the HTTP server.

Usage Examples:
    # List categories and topics
    eigo-ms --catalog

    # Generate the first business lesson as JSON
    eigo-ms --category business --index 0 --json

    # Generate a lesson on a free topic
    eigo-ms --category toeic_part3 --topic "Booking a Meeting Room"

    # Dry run: show how a lesson would be spoken at 0.75x
    eigo-ms --category daily --index 2 --plan --rate 0.75

    # Plan or speak ad-hoc text
    eigo-ms --text "Speaker A: Hi. Speaker B: Hello!" --plan --dialogue
    eigo-ms --text "The woman is typing on a laptop." --speak --backend pyttsx3

    # Ranked English voices of the configured backend
    eigo-ms --voices

Environment Variables:
    EIGO_MS_PROVIDER: Content provider (auto, openai, fallback)
    EIGO_MS_SPEECH_BACKEND: Speech backend (edge, pyttsx3, null)
    OPENAI_API_KEY: Enables generated lessons (also read from .env)
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Callable, List, Optional
from uuid import uuid4

from pydantic import BaseModel

from eigo_ms.core.config import Settings, load_settings
from eigo_ms.core.errors import LessonError
from eigo_ms.core.logging import configure_logging, get_logger, info, set_request_id
from eigo_ms.lessons.catalog import catalog_dict
from eigo_ms.lessons.models import dump_lesson
from eigo_ms.services.lesson_service import LessonService
from eigo_ms.speech.backends import BaseSpeechBackend, create_backend, normalize_backend_name
from eigo_ms.speech.backends.edge_backend import EdgeBackend
from eigo_ms.speech.plan import SpeechPlan, Utterance, build_dialogue_plan, build_snippet_plan
from eigo_ms.speech.player import PlaybackController, is_multi_speaker, speech_text
from eigo_ms.speech.voices import rank_english_voices, score_voice

_LOG = get_logger("eigo-ms.cli")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="eigo-ms CLI (lessons and read-aloud)")

    # Catalog and lesson selection
    parser.add_argument("--catalog", action="store_true", help="List categories and topics")
    parser.add_argument("--category", help="Lesson category (general, business, daily, toeic_part1..7)")
    parser.add_argument("--index", type=int, help="Catalog topic index within the category")
    parser.add_argument("--topic", help="Free topic instead of a catalog index")

    # Speech
    parser.add_argument("--text", help="Ad-hoc text to plan or speak instead of a lesson")
    parser.add_argument("--dialogue", action="store_true", help="Treat --text as a multi-speaker dialogue")
    parser.add_argument("--plan", action="store_true", help="Print the speech plan (dry run, no audio)")
    parser.add_argument("--speak", action="store_true", help="Read aloud and wait until playback ends")
    parser.add_argument("--rate", type=float, help="Playback rate (e.g. 0.75, 1.0, 1.25)")
    parser.add_argument("--voices", action="store_true", help="List ranked English voices")
    parser.add_argument("--backend", help="Speech backend override (edge, pyttsx3, null)")
    parser.add_argument("--out", default="speech_out",
                        help="Directory for MP3 files when speaking through the edge backend")

    # Output
    parser.add_argument("--json", action="store_true", help="Print JSON")

    return parser.parse_args(argv)


def _with_backend(settings: Settings, backend: Optional[str]) -> Settings:
    if not backend:
        return settings
    raw = dict(settings.raw)
    raw["speech"] = dict(raw.get("speech", {}) or {}, backend=normalize_backend_name(backend))
    return Settings(raw=raw)


def _file_sink(out_dir: Path) -> Callable[[Utterance, bytes], None]:
    """Edge audio sink writing one numbered MP3 per utterance."""
    out_dir.mkdir(parents=True, exist_ok=True)

    def sink(utterance: Utterance, audio: bytes) -> None:
        path = out_dir / f"utterance_{utterance.index:03d}.mp3"
        path.write_bytes(audio)
        label = f" {utterance.speaker}" if utterance.speaker else ""
        print(f"[{utterance.index}]{label} {utterance.text} -> {path}")

    return sink


def _print(payload: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(payload)


def _print_catalog(as_json: bool) -> None:
    categories = catalog_dict()
    if as_json:
        print(json.dumps({"categories": categories}, ensure_ascii=False, indent=2))
        return
    for entry in categories:
        print(f"{entry['label']} ({entry['category']})")
        for i, topic in enumerate(entry["topics"]):
            print(f"  [{i}] {topic['english']} / {topic['japanese']}")


def _print_voices(backend: BaseSpeechBackend, as_json: bool) -> None:
    ranked = rank_english_voices(backend.list_voices() if backend.available else [])
    if as_json:
        print(json.dumps({
            "backend": backend.name,
            "voices": [dict(v.to_dict(), score=score_voice(v)) for v in ranked],
        }, ensure_ascii=False, indent=2))
        return
    if not ranked:
        print(f"No English voices found ({backend.name} backend).")
    for v in ranked:
        print(f"{score_voice(v):>3}  {v.lang:<6} {v.name}")


def _build_plan(text: str, multi: bool, backend: BaseSpeechBackend, rate: float,
                settings: Settings) -> SpeechPlan:
    config = settings.get_service_config()
    voices = backend.list_voices() if backend.available else []
    builder = build_dialogue_plan if multi else build_snippet_plan
    return builder(
        text,
        voices,
        rate=rate,
        max_chars=config.chunking.max_chars or None,
        fallback_lang=config.speech.fallback_lang,
    )


def _speak(lesson: Optional[BaseModel], text: Optional[str], multi: bool,
           backend: BaseSpeechBackend, rate: float, settings: Settings) -> Optional[str]:
    """Play through the backend and block until done; returns the error, if any."""
    config = settings.get_service_config()
    controller = PlaybackController(
        backend,
        speech_config=config.speech,
        max_chars=config.chunking.max_chars or None,
    )
    controller.set_rate(rate)
    if lesson is not None:
        controller.select_lesson(lesson)
        controller.toggle()
    elif multi:
        controller.play_dialogue(text or "")
    else:
        controller.play_snippet(text or "")
    controller.sequencer.wait_idle()
    return controller.error


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for lesson or speech errors, 2 for usage).
    """
    args = _parse_args(argv)

    configure_logging()
    set_request_id(str(uuid4())[:12])

    if args.catalog:
        _print_catalog(args.json)
        return 0

    if args.category is None and args.text is None and not args.voices:
        print("Provide --catalog, --voices, --category (with --index or --topic) or --text.")
        return 2

    settings = _with_backend(load_settings(), args.backend)
    config = settings.get_service_config()
    rate = args.rate if args.rate is not None else config.speech.default_rate

    try:
        backend: Optional[BaseSpeechBackend] = None
        if args.voices or args.plan or args.speak:
            backend = create_backend(normalize_backend_name(settings.speech_backend), settings)
            if isinstance(backend, EdgeBackend) and args.speak:
                backend.sink = _file_sink(Path(args.out))

        if args.voices:
            _print_voices(backend, args.json)
            if args.category is None and args.text is None:
                return 0

        lesson: Optional[BaseModel] = None
        if args.category is not None:
            if args.index is None and not args.topic:
                print("Provide --index or --topic with --category.")
                return 2
            service = LessonService(settings)
            if args.topic:
                lesson = service.generate(args.category, args.topic)
            else:
                lesson = service.generate_by_index(args.category, args.index)
            text = speech_text(lesson)
            multi = is_multi_speaker(lesson)
        else:
            text = args.text
            multi = args.dialogue

        if args.plan:
            plan = _build_plan(text, multi, backend, rate, settings)
            _print({"ok": True, "dry_run": True, "plan": plan.to_dict()}, args.json)
            print("PLAN_OK")
        elif lesson is not None and not args.speak:
            _print(dump_lesson(lesson), args.json)

        if args.speak:
            info(_LOG, "speak_start", backend=backend.name, rate=rate, multi_speaker=multi)
            err = _speak(lesson, text, multi, backend, rate, settings)
            backend.close()
            if err:
                print(err)
                return 1
            print("SPEAK_OK")

    except LessonError as e:
        _print(e.to_dict(), args.json)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
