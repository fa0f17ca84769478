"""Narrow interfaces for external services the bot talks to.

Implementations (LLM clients, translators, image search) live outside this
package and are injected into ``BotApp``.
"""

from __future__ import annotations

from typing import Protocol


class Responder(Protocol):
    async def ask(
        self, prompt: str, max_length: int, history: list[str] | None = None
    ) -> str | None: ...


class Translator(Protocol):
    async def translate(self, username: str, text: str) -> str | None:
        """Translated text, or None if no translation is needed."""
        ...


class ImageSearch(Protocol):
    async def search(self, query: str) -> str | None:
        """URL of a matching image, or None."""
        ...
