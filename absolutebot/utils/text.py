"""Text cleanup helpers shared by the censorship and reply paths."""

from __future__ import annotations

import re

_HTML_TAG_RE = re.compile(r"<[^>]+>|&nbsp;")
_UNWANTED_RE = re.compile(r"[\\^]")
_HTML_ENTITY_RE = re.compile(r"&[#a-zA-Z0-9]*;")
_EXTRA_SPACES_RE = re.compile(r"\s{2,}")
_SENTENCE_END = ".!?"


def clean_text(text: str) -> str:
    """Strip HTML tags, entities and stray control characters, collapse spaces."""
    if not text or not text.strip():
        return ""
    text = _HTML_TAG_RE.sub("", text).strip()
    text = _UNWANTED_RE.sub("", text)
    text = _HTML_ENTITY_RE.sub(" ", text)
    return _EXTRA_SPACES_RE.sub(" ", text).strip()


def cut_sentence(text: str, max_length: int) -> str:
    """Shorten text to max_length, preferring a sentence end, then a word break."""
    if not text or not text.strip() or max_length <= 0:
        return ""
    if len(text) <= max_length:
        return text

    last_end = max(text.rfind(ch, 0, max_length + 1) for ch in _SENTENCE_END)
    if last_end != -1:
        return text[: last_end + 1]

    last_space = text.rfind(" ", 0, max_length + 1)
    if last_space != -1:
        return text[:last_space] + "..."

    return text[:max_length]
