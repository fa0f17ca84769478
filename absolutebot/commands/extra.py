"""Text commands managed from chat."""

from __future__ import annotations

from absolutebot.commands.base import BaseCommand, ChatCommand
from absolutebot.core.auth import UserRole, has_role, is_official_channel
from absolutebot.core.parser import ParsedCommand
from absolutebot.services.stores import ExtraCommandsStore


class ExecuteExtraCommand(ChatCommand):
    """Answers any stored text command.

    The dispatcher reaches it by type when normal lookup fails.
    """

    def __init__(self, store: ExtraCommandsStore) -> None:
        self._store = store

    @property
    def name(self) -> str:
        return "Динамические команды"

    @property
    def description(self) -> str:
        return "добавляются динамически из чата модераторами бота, вот их список:"

    @property
    def priority(self) -> int:
        return 1200

    @property
    def store(self) -> ExtraCommandsStore:
        return self._store

    def can_execute(self, command: ParsedCommand) -> bool:
        return (
            command.role is not UserRole.IGNORED
            and is_official_channel(command)
            and self._store.get(command.command) is not None
        )

    async def execute(self, command: ParsedCommand) -> str | None:
        command.response = self._store.get(command.command) or "Команда не найдена"
        await command.context.send(command.response)
        return command.response


class AddExtraCommand(BaseCommand):
    def __init__(self, store: ExtraCommandsStore) -> None:
        self._store = store

    @property
    def name(self) -> str:
        return "!добавитькоманду"

    @property
    def description(self) -> str:
        return "добавить команду, которая отвечает заданным ответом."

    @property
    def priority(self) -> int:
        return 501

    @property
    def usage(self) -> str:
        return "команда и ответ"

    def can_execute(self, command: ParsedCommand) -> bool:
        return has_role(command, UserRole.ADMINISTRATOR, UserRole.MODERATOR)

    async def execute_logic(self, command: ParsedCommand) -> str:
        parts = command.parameters.split(maxsplit=1)
        if len(parts) < 2:
            return f"Неверный формат. Используйте: {self.name} {self.usage}"
        name = await self._store.add_or_update(parts[0], parts[1])
        return f"Команда {name} добавлена/обновлена."


class RemoveExtraCommand(BaseCommand):
    def __init__(self, store: ExtraCommandsStore) -> None:
        self._store = store

    @property
    def name(self) -> str:
        return "!удалитькоманду"

    @property
    def description(self) -> str:
        return "удаляет дополнительную команду."

    @property
    def priority(self) -> int:
        return 500

    @property
    def usage(self) -> str:
        return "команда"

    def can_execute(self, command: ParsedCommand) -> bool:
        return has_role(command, UserRole.ADMINISTRATOR, UserRole.MODERATOR)

    async def execute_logic(self, command: ParsedCommand) -> str:
        if await self._store.remove(command.parameters):
            return f"Команда {command.parameters} удалена."
        return f"Команда {command.parameters} не найдена."
