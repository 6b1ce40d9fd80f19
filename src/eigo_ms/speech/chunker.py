"""
Text Chunking for Speech Playback.

Speech engines stall or truncate on long input, and a single long
utterance cannot be interrupted cleanly at a sentence boundary. Text is
therefore spoken as a queue of sentence-or-line sized chunks.

Sentence rule:
    A chunk is a run of characters up to and including a terminator
    (. ! ?) plus an optional closing quote, or up to the end of the text.
    The run is greedy, so a newline inside a sentence does not end it;
    chunks are trimmed, which drops the line breaks between sentences.
    Any other non-space run (stray punctuation after a terminator, for
    example) becomes its own chunk.

Size cap (optional):
    With max_chars set, oversized chunks are split again at clause
    punctuation (, ; :), then at spaces, then hard at max_chars.

Example:
    >>> chunk_text('He said "Stop!" Then he left.\\nM: Okay').chunks
    ['He said "Stop!"', 'Then he left.', 'M: Okay']
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from eigo_ms.core.logging import get_logger, verbose
from eigo_ms.utils.timeit import timeit

_LOG = get_logger("eigo-ms.chunker")


# Sentence, line, or tail of text; otherwise any single non-space run
_SENTENCE = re.compile(r"""[^.!?]+(?:[.!?]+["']?|\n|$)|\S+""")

# Clause pieces keep their trailing punctuation
_CLAUSE = re.compile(r"[^,;:]+[,;:]+|[^,;:]+$")


@dataclass
class ChunkResult:
    """
    Result of a chunking pass.

    Attributes:
        chunks: Trimmed, non-empty pieces in reading order.
        timings_s: Timing measurements in seconds.
    """
    chunks: List[str]
    timings_s: Dict[str, float]


def chunk_text(text: str, max_chars: Optional[int] = None) -> ChunkResult:
    """
    Split text into speakable chunks.

    Args:
        text: Text to split. Empty or blank text yields no chunks.
        max_chars: Optional size cap; None or 0 keeps sentence chunks whole.

    Returns:
        ChunkResult with the chunks in order.
    """
    if not text or not text.strip():
        return ChunkResult(chunks=[], timings_s={"chunk": 0.0})

    with timeit("chunk") as t:
        out = [m.group(0).strip() for m in _SENTENCE.finditer(text)]
        out = [c for c in out if c]

        if max_chars:
            capped: List[str] = []
            for chunk in out:
                capped.extend(_cap(chunk, max_chars))
            out = capped

    timings = {"chunk": t.seconds}
    verbose(_LOG, "chunked", chunks=len(out), chars=len(text), max_chars=max_chars or 0,
            seconds=round(timings["chunk"], 4))
    return ChunkResult(chunks=out, timings_s=timings)


def _cap(chunk: str, max_chars: int) -> List[str]:
    if len(chunk) <= max_chars:
        return [chunk]

    result: List[str] = []
    current = ""
    for clause in (m.group(0).strip() for m in _CLAUSE.finditer(chunk)):
        if not clause:
            continue
        if current and len(current) + 1 + len(clause) <= max_chars:
            current = f"{current} {clause}"
            continue
        if current:
            result.append(current)
        if len(clause) <= max_chars:
            current = clause
        else:
            result.extend(_split_words(clause, max_chars))
            current = ""
    if current:
        result.append(current)
    return result


def _split_words(text: str, max_chars: int) -> List[str]:
    result: List[str] = []
    current = ""
    for word in text.split():
        if len(word) > max_chars:
            if current:
                result.append(current)
                current = ""
            result.extend(word[i:i + max_chars] for i in range(0, len(word), max_chars))
            continue
        if current and len(current) + 1 + len(word) > max_chars:
            result.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    if current:
        result.append(current)
    return result
