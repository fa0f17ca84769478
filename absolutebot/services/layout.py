"""Fix text typed on an English keyboard layout while meaning Russian."""

from __future__ import annotations

import re
from pathlib import Path

from absolutebot.utils.logging import get_logger

log = get_logger(__name__)

_EN_TO_RU = dict(zip(
    "qwertyuiop[]asdfghjkl;'zxcvbnm,./`?&{>:\"",
    "йцукенгшщзхъфывапролджэячсмитьбю.ё,?хюжэ",
))
_ENGLISH_RE = re.compile(r"[A-Za-z]")
_NON_LETTER_RE = re.compile(r"[^\w\s]|\d|_")
_MIN_WORD_LENGTH = 4


def load_word_set(path: Path) -> set[str]:
    """One word per line; hunspell ``word/FLAGS`` suffixes are dropped."""
    words: set[str] = set()
    with path.open(encoding="utf-8") as f:
        for line in f:
            word = line.split("/", 1)[0].strip().lower()
            if word and not word.isdigit():
                words.add(word)
    log.info("word_set_loaded", path=str(path), words=len(words))
    return words


def to_russian_layout(text: str) -> str:
    """Map every character through the keyboard layout, keeping case."""
    out = []
    for ch in text:
        mapped = _EN_TO_RU.get(ch.lower())
        if mapped is None:
            out.append(ch)
        else:
            out.append(mapped.upper() if ch.isupper() else mapped)
    return "".join(out)


def _count_known(text: str, words: set[str]) -> int:
    cleaned = _NON_LETTER_RE.sub("", text.lower())
    return sum(1 for w in cleaned.split() if len(w) >= _MIN_WORD_LENGTH and w in words)


class LayoutCorrector:
    def __init__(self, russian_words: set[str], english_words: set[str]) -> None:
        self._russian = russian_words
        self._english = english_words

    def correct(self, text: str) -> str:
        """Converted text if it reads as Russian at least as well as the original reads as English."""
        if not self._russian or not _ENGLISH_RE.search(text):
            return text

        converted = to_russian_layout(text)
        known_ru = _count_known(converted, self._russian)
        known_en = _count_known(text, self._english)
        if known_ru > 0 and known_ru >= known_en:
            log.debug("layout_corrected", known_ru=known_ru, known_en=known_en)
            return converted
        return text
