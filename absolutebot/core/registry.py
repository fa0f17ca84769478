"""Command registry with exact and typo-tolerant lookup."""

from __future__ import annotations

from difflib import SequenceMatcher
from typing import TYPE_CHECKING, TypeVar

from absolutebot.utils.logging import get_logger

if TYPE_CHECKING:
    from absolutebot.commands.base import ChatCommand

log = get_logger(__name__)

FUZZY_THRESHOLD = 70

C = TypeVar("C", bound="ChatCommand")


def similarity(a: str, b: str) -> float:
    """0-100 similarity of two names; argument order does not matter.

    This is difflib's matching-blocks ratio, 2 * matches / (len(a) + len(b)).
    It is more lenient than edit distance over the longer name when the
    lengths differ: a 6-character prefix of a 10-character name scores 75
    here and 60 by edit distance, so short abbreviations reach the
    threshold sooner.
    """
    if not a and not b:
        return 100.0
    first, second = sorted((a, b))
    return SequenceMatcher(None, first, second, autojunk=False).ratio() * 100


class CommandRegistry:
    def __init__(self, threshold: int = FUZZY_THRESHOLD) -> None:
        self._commands: dict[str, ChatCommand] = {}
        self._threshold = threshold

    def register(self, command: ChatCommand) -> None:
        key = command.name.lower()
        if key in self._commands:
            log.info("command_replaced", name=key)
        self._commands[key] = command

    def find(self, name: str) -> ChatCommand | None:
        key = name.lower()
        command = self._commands.get(key)
        if command is not None:
            return command

        best_key: str | None = None
        best_ratio = -1.0
        # ties go to the shorter key, then the alphabetically first one
        for candidate in sorted(self._commands, key=lambda k: (len(k), k)):
            ratio = similarity(key, candidate)
            if ratio > best_ratio:
                best_key, best_ratio = candidate, ratio

        if best_key is None or best_ratio < self._threshold:
            return None
        log.debug("command_fuzzy_match", query=key, match=best_key, ratio=round(best_ratio, 1))
        return self._commands[best_key]

    def find_by_type(self, command_type: type[C]) -> C | None:
        for command in self._commands.values():
            if isinstance(command, command_type):
                return command
        return None

    def all(self) -> list[ChatCommand]:
        return list(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)
