"""Split long replies into platform-sized messages."""

from __future__ import annotations

import re
from typing import Iterator

_CODE_BLOCK_RE = re.compile(r"(```[\s\S]*?```)")
_PARAGRAPH_RE = re.compile(r"\n{2,}")
_SENTENCE_RE = re.compile(r"(?<=[.!?…])\s+")


def chunk_message(text: str, limit: int = 1900, min_chunk_size: int = 100) -> list[str]:
    """Split text into pieces of at most ``limit`` characters.

    Fenced code blocks stay fenced; prose breaks at paragraphs, then
    sentences, then words. Trailing fragments shorter than
    ``min_chunk_size`` are folded into their neighbour when they fit.
    """
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    current = ""
    for piece, separator in _pieces(text, limit):
        candidate = f"{current}{separator}{piece}" if current else piece
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        current = piece
    if current:
        chunks.append(current)
    return _fold_short(chunks, limit, min_chunk_size)


def _pieces(text: str, limit: int) -> Iterator[tuple[str, str]]:
    """Yield (piece, separator-before-it) pairs, each piece within limit."""
    for segment in _CODE_BLOCK_RE.split(text):
        if not segment.strip():
            continue
        if segment.startswith("```"):
            for block in _split_code(segment, limit):
                yield block, "\n"
            continue
        for paragraph in _PARAGRAPH_RE.split(segment.strip()):
            if not paragraph.strip():
                continue
            if len(paragraph) <= limit:
                yield paragraph, "\n\n"
                continue
            first = True
            for sentence in _SENTENCE_RE.split(paragraph):
                for part in _split_words(sentence, limit):
                    yield part, "\n\n" if first else " "
                    first = False


def _split_code(block: str, limit: int) -> list[str]:
    if len(block) <= limit:
        return [block]
    lines = block.split("\n")
    opener, body = lines[0], lines[1:-1]
    room = limit - len(opener) - len("\n\n```")

    blocks: list[str] = []
    current: list[str] = []
    size = 0
    for line in body:
        line = line[:room]
        if current and size + len(line) + 1 > room:
            blocks.append("\n".join([opener, *current, "```"]))
            current, size = [], 0
        current.append(line)
        size += len(line) + 1
    if current:
        blocks.append("\n".join([opener, *current, "```"]))
    return blocks or [block[:limit]]


def _split_words(text: str, limit: int) -> list[str]:
    if len(text) <= limit:
        return [text]
    parts: list[str] = []
    current = ""
    for word in text.split():
        while len(word) > limit:
            if current:
                parts.append(current)
                current = ""
            parts.append(word[:limit])
            word = word[limit:]
        if not word:
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= limit:
            current = candidate
        else:
            parts.append(current)
            current = word
    if current:
        parts.append(current)
    return parts


def _fold_short(chunks: list[str], limit: int, min_size: int) -> list[str]:
    if len(chunks) < 2:
        return chunks
    folded = [chunks[0]]
    for chunk in chunks[1:]:
        if len(chunk) < min_size and len(folded[-1]) + len(chunk) + 1 <= limit:
            folded[-1] = f"{folded[-1]}\n{chunk}"
        else:
            folded.append(chunk)
    return folded
