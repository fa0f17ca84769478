"""Prefix command parser: ``!token rest of line`` or ``@name rest of line``."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from absolutebot.core.auth import UserRole
from absolutebot.core.context import ChatContext
from absolutebot.errors import ResponseAlreadySet

_COMMAND_RE = re.compile(r"^\s*[!@]\S+", re.IGNORECASE)


@dataclass
class ParsedCommand:
    command: str
    parameters: str
    context: ChatContext
    role: UserRole
    _response: str | None = field(default=None, repr=False)

    @property
    def response(self) -> str | None:
        return self._response

    @response.setter
    def response(self, value: str) -> None:
        if self._response is not None:
            raise ResponseAlreadySet(f"response for {self.command} is already set")
        self._response = value


class CommandParser:
    """Splits raw chat text into a command token and its argument string.

    Argument grammar beyond trimming belongs to the individual commands.
    """

    def parse(
        self, text: str, context: ChatContext, role: UserRole
    ) -> ParsedCommand | None:
        match = _COMMAND_RE.match(text)
        if match is None:
            return None
        command = match.group(0).strip().lower()
        parameters = text[match.end():].strip()
        return ParsedCommand(command, parameters, context, role)
