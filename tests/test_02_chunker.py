"""Tests for sentence chunking of spoken text."""
from __future__ import annotations

import pytest

from eigo_ms.speech.chunker import chunk_text


class TestSentenceChunks:

    def test_sentences_split_on_terminators(self):
        result = chunk_text("Hello there. How are you? I'm fine!")
        assert result.chunks == ["Hello there.", "How are you?", "I'm fine!"]

    def test_closing_quote_stays_with_sentence(self):
        result = chunk_text('He said "Stop!" Then he left.')
        assert result.chunks == ['He said "Stop!"', "Then he left."]

    def test_tail_without_terminator_is_kept(self):
        assert chunk_text("First one. and then the rest").chunks == ["First one.", "and then the rest"]

    def test_ellipsis_is_one_terminator(self):
        assert chunk_text("Wait... what?").chunks == ["Wait...", "what?"]

    def test_newline_inside_sentence_does_not_split(self):
        text = "Dear team,\nthe meeting moved to Friday. Thanks."
        assert chunk_text(text).chunks == ["Dear team,\nthe meeting moved to Friday.", "Thanks."]

    def test_speaker_turns_after_blank_lines(self):
        text = "Speaker A: Hi.\n\nSpeaker B: Hello! Nice to meet you."
        assert chunk_text(text).chunks == ["Speaker A: Hi.", "Speaker B: Hello!", "Nice to meet you."]

    @pytest.mark.parametrize("text", ["", "   ", "\n\n", None])
    def test_blank_text_has_no_chunks(self, text):
        assert chunk_text(text).chunks == []

    def test_chunks_are_trimmed_and_non_empty(self):
        for chunk in chunk_text("  One.   Two.  \n  Three?  ").chunks:
            assert chunk == chunk.strip()
            assert chunk

    def test_timings_reported(self):
        result = chunk_text("One. Two.")
        assert "chunk" in result.timings_s
        assert result.timings_s["chunk"] >= 0


class TestSizeCap:

    def test_short_chunks_untouched(self):
        assert chunk_text("Short one. Another.", max_chars=50).chunks == ["Short one.", "Another."]

    def test_long_sentence_split_at_clauses(self):
        text = "When the train arrives, please board quickly, and find your reserved seat."
        chunks = chunk_text(text, max_chars=30).chunks
        assert chunks == ["When the train arrives,", "please board quickly,", "and find your reserved seat."]
        assert all(len(c) <= 30 for c in chunks)

    def test_clause_too_long_split_at_words(self):
        text = "This sentence has no commas but it goes on for quite a while."
        chunks = chunk_text(text, max_chars=20).chunks
        assert all(len(c) <= 20 for c in chunks)
        assert " ".join(chunks) == text

    def test_single_huge_word_hard_split(self):
        chunks = chunk_text("a" * 25, max_chars=10).chunks
        assert chunks == ["a" * 10, "a" * 10, "a" * 5]

    def test_zero_means_no_cap(self):
        text = "x " * 200 + "end."
        assert len(chunk_text(text, max_chars=0).chunks) == 1
