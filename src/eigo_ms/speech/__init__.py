"""
Read-aloud pipeline.

    text ──chunker──> chunks ──plan──> utterances (voice, lang, rate)
                                          │
                          sequencer ──> backend (edge / pyttsx3 / null)

Components:
    - chunker.py: Sentence and line chunks
    - voices.py: Voice model and English voice ranking
    - speakers.py: Dialogue formatting, turns and voice assignment
    - plan.py: Snippet and dialogue speech plans
    - sequencer.py: Back-to-back playback with cancel and restart
    - player.py: Lesson-level play/stop/rate controls
    - backends/: Speech engines
"""
