"""Utility modules for AbsoluteBot."""

from absolutebot.utils.logging import get_logger, setup_logging
from absolutebot.utils.text import clean_text, cut_sentence

__all__ = [
    "get_logger",
    "setup_logging",
    "clean_text",
    "cut_sentence",
]
