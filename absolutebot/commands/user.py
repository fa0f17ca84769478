"""Commands available to regular chat users."""

from __future__ import annotations

from absolutebot.commands.base import BaseCommand, MediaCommand
from absolutebot.commands.extra import ExecuteExtraCommand
from absolutebot.core.auth import UserRole, is_official_channel
from absolutebot.core.parser import ParsedCommand
from absolutebot.core.registry import CommandRegistry
from absolutebot.core.service import Capability
from absolutebot.services.birthdays import BirthdayStore
from absolutebot.services.collaborators import ImageSearch, Responder
from absolutebot.utils.logging import get_logger

log = get_logger(__name__)

# Gap in priority that starts a new group in the command list
_PRIORITY_GROUP_GAP = 5

_MONTHS_GENITIVE = (
    "января", "февраля", "марта", "апреля", "мая", "июня",
    "июля", "августа", "сентября", "октября", "ноября", "декабря",
)

FALLBACK_REPLY = "Прости, не могу сейчас говорить, давай позже."


def _regular_user(command: ParsedCommand) -> bool:
    return command.role is not UserRole.IGNORED and is_official_channel(command)


class CommandsListCommand(BaseCommand):
    """Lists every command the caller may run, by priority then name."""

    def __init__(self, registry: CommandRegistry) -> None:
        self._registry = registry

    @property
    def name(self) -> str:
        return "!команды"

    @property
    def description(self) -> str:
        return "выводит все доступные для пользователя команды."

    def render(self, command: ParsedCommand) -> str:
        fmt = command.context.formatter
        available = sorted(
            (
                c for c in self._registry.all()
                if not isinstance(c, ExecuteExtraCommand) and c.can_execute(command)
            ),
            key=lambda c: (c.priority, c.name),
        )

        lines = ["Список доступных команд:", ""]
        last_priority: int | None = None
        for cmd in available:
            if last_priority is not None and abs(cmd.priority - last_priority) > _PRIORITY_GROUP_GAP:
                lines.append("")
            entry = fmt.bold(cmd.name)
            if cmd.usage:
                entry += " " + fmt.italic(cmd.usage)
            lines.append(f"{entry} — {cmd.description}")
            last_priority = cmd.priority

        extra = self._registry.find_by_type(ExecuteExtraCommand)
        names = extra.store.names() if extra is not None and _regular_user(command) else []
        if names:
            lines.append("")
            lines.append(f"{extra.name} {extra.description}")
            lines.extend(fmt.bold(name) for name in names)
        return "\n".join(lines)

    async def execute_logic(self, command: ParsedCommand) -> str:
        return self.render(command)

    async def send_response(self, command: ParsedCommand) -> None:
        assert command.response is not None
        context = command.context
        if context.supports(Capability.MARKDOWN):
            await context.service.send_markdown(command.response, context)
        else:
            await context.send(command.response)


class MentionCommand(BaseCommand):
    """Conversation with the bot through ``@<bot name>``."""

    def __init__(self, bot_name: str, responder: Responder) -> None:
        self._bot_name = bot_name
        self._responder = responder

    @property
    def name(self) -> str:
        return f"@{self._bot_name}"

    @property
    def description(self) -> str:
        return "поговорить с ботом."

    @property
    def priority(self) -> int:
        return 0

    def can_execute(self, command: ParsedCommand) -> bool:
        return command.role not in (UserRole.IGNORED, UserRole.BOT) and is_official_channel(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        context = command.context
        if context.last_messages:
            # the bot joined on its own: answer the conversation, not a question
            reply = await self._responder.ask("", context.max_message_length, list(context.last_messages))
        else:
            history = None
            if context.reply is not None:
                history = [f"{context.reply.username}: {context.reply.message}"]
            prompt = f"{context.username}: {command.parameters}"
            reply = await self._responder.ask(prompt, context.max_message_length, history)
        if not reply:
            log.warning("responder_empty_reply", platform=context.platform.value)
            return FALLBACK_REPLY
        return reply


class ImageCommand(MediaCommand):
    def __init__(self, search: ImageSearch) -> None:
        self._search = search

    @property
    def name(self) -> str:
        return "!картинка"

    @property
    def description(self) -> str:
        return "выдаёт картинку по тексту запроса."

    @property
    def priority(self) -> int:
        return 5

    @property
    def usage(self) -> str:
        return "текст запроса"

    async def execute_logic(self, command: ParsedCommand) -> str:
        url = await self._search.search(command.parameters)
        return url or "Картинка не найдена."

    async def send_response(self, command: ParsedCommand) -> None:
        assert command.response is not None
        if command.response.startswith(("http://", "https://", "data:image/")):
            await super().send_response(command)
        else:
            await command.context.send(command.response)


# ----------------------------------------------------------------------
# Birthdays
# ----------------------------------------------------------------------

class AddBirthdayCommand(BaseCommand):
    def __init__(self, birthdays: BirthdayStore) -> None:
        self._birthdays = birthdays

    @property
    def name(self) -> str:
        return "!добавитьдр"

    @property
    def description(self) -> str:
        return "добавляет информацию о вашем дне рождения."

    @property
    def priority(self) -> int:
        return 304

    @property
    def usage(self) -> str:
        return "день и месяц"

    def can_execute(self, command: ParsedCommand) -> bool:
        return _regular_user(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        context = command.context
        parts = command.parameters.split()
        if len(parts) < 2 or not (parts[0].isdigit() and parts[1].isdigit()):
            return f"Неверный формат даты. Используйте: {self.name} {self.usage}"
        day, month = int(parts[0]), int(parts[1])
        try:
            await self._birthdays.add_or_update(context.username, context.platform.value, day, month)
        except ValueError:
            return f"Неверный формат даты. Используйте: {self.name} {self.usage}"
        return (
            f"День рождения успешно добавлен: {day} {_MONTHS_GENITIVE[month - 1]}. "
            f"Уведомления включены на платформе {context.platform.value}."
        )


class BirthdayCommand(BaseCommand):
    def __init__(self, birthdays: BirthdayStore) -> None:
        self._birthdays = birthdays

    @property
    def name(self) -> str:
        return "!др"

    @property
    def description(self) -> str:
        return "сколько дней осталось до дня рождения пользователя или до ближайшего дня рождения."

    @property
    def priority(self) -> int:
        return 303

    def can_execute(self, command: ParsedCommand) -> bool:
        return _regular_user(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        platform = command.context.platform.value
        if command.parameters:
            username = command.parameters.lstrip("@")
            days = self._birthdays.days_until(username, platform)
            if days is None:
                return f"День рождения {username} не найден."
            if days == 0:
                return f"У {username} сегодня день рождения!"
            return f"До дня рождения {username} осталось {days} дн."

        upcoming = self._birthdays.next_birthday(platform)
        if upcoming is None:
            return "Дни рождения не найдены."
        days, username = upcoming
        if days == 0:
            return f"Сегодня день рождения у {username}!"
        return f"Ближайший день рождения у {username}, осталось {days} дн."


class RemoveBirthdayCommand(BaseCommand):
    def __init__(self, birthdays: BirthdayStore) -> None:
        self._birthdays = birthdays

    @property
    def name(self) -> str:
        return "!удалитьдр"

    @property
    def description(self) -> str:
        return "удаляет оповещение о вашем дне рождения на текущей платформе."

    @property
    def priority(self) -> int:
        return 305

    def can_execute(self, command: ParsedCommand) -> bool:
        return _regular_user(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        platform = command.context.platform.value
        if await self._birthdays.disable(command.context.username, platform):
            return f"Уведомления о дне рождения на платформе {platform} отключены."
        return "Не удалось отключить уведомления о вашем дне рождения."
