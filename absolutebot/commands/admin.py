"""Moderation and bot-management commands."""

from __future__ import annotations

import asyncio

from absolutebot.commands.base import BaseCommand
from absolutebot.core.auth import (
    CooldownService,
    RoleStore,
    UserRole,
    has_role,
    is_administrative_channel,
)
from absolutebot.core.parser import ParsedCommand
from absolutebot.core.service import Capability, Platform
from absolutebot.services.birthdays import BirthdayStore
from absolutebot.services.stores import CensorWordStore, CommandStatusStore, SqliteConfigStore
from absolutebot.utils.logging import get_logger

log = get_logger(__name__)

MAX_DELETE_COUNT = 15


def _platform_by_name(name: str) -> Platform | None:
    key = name.strip().lower()
    for platform in Platform:
        if platform.value.lower() == key or platform.name.lower() == key:
            return platform
    return None


# ----------------------------------------------------------------------
# Censorship
# ----------------------------------------------------------------------

class AddCensorWordCommand(BaseCommand):
    def __init__(self, words: CensorWordStore) -> None:
        self._words = words

    @property
    def name(self) -> str:
        return "!добавитьцензуру"

    @property
    def description(self) -> str:
        return "добавить цензурное слово для его замены в тексте."

    @property
    def priority(self) -> int:
        return 600

    @property
    def usage(self) -> str:
        return "цензурное слово"

    def can_execute(self, command: ParsedCommand) -> bool:
        return is_administrative_channel(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        word = command.parameters
        if await self._words.add(word):
            return f"Слово '{word}' было добавлено в список для цензуры."
        return f"Не получилось добавить слово '{word}' в список для цензуры."


class RemoveCensorWordCommand(BaseCommand):
    def __init__(self, words: CensorWordStore) -> None:
        self._words = words

    @property
    def name(self) -> str:
        return "!удалитьцензуру"

    @property
    def description(self) -> str:
        return "удаляет слово из списка цензурируемых слов."

    @property
    def priority(self) -> int:
        return 601

    @property
    def usage(self) -> str:
        return "слово"

    def can_execute(self, command: ParsedCommand) -> bool:
        return is_administrative_channel(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        if await self._words.remove(command.parameters):
            return f"Слово '{command.parameters}' было удалено из списка цензуры."
        return "Слово не было удалено из списка цензуры."


class ShowCensorWordsCommand(BaseCommand):
    def __init__(self, words: CensorWordStore) -> None:
        self._words = words

    @property
    def name(self) -> str:
        return "!цензура"

    @property
    def description(self) -> str:
        return "выводит список всех цензурируемых слов."

    @property
    def priority(self) -> int:
        return 602

    def can_execute(self, command: ParsedCommand) -> bool:
        return is_administrative_channel(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        words = self._words.words()
        return ", ".join(words) if words else "Список цензурируемых слов пуст."


# ----------------------------------------------------------------------
# Users and rate limiting
# ----------------------------------------------------------------------

class IgnoreCommand(BaseCommand):
    """Toggles a user between IGNORED and DEFAULT."""

    def __init__(self, roles: RoleStore) -> None:
        self._roles = roles

    @property
    def name(self) -> str:
        return "!игнор"

    @property
    def description(self) -> str:
        return "добавляет пользователя в игнор лист бота."

    @property
    def priority(self) -> int:
        return 700

    @property
    def usage(self) -> str:
        return "никнейм"

    def can_execute(self, command: ParsedCommand) -> bool:
        return has_role(command, UserRole.ADMINISTRATOR, UserRole.MODERATOR, UserRole.BOT)

    async def execute_logic(self, command: ParsedCommand) -> str:
        username = command.parameters.lstrip("@")
        current = await self._roles.get_role(username)
        if current is UserRole.IGNORED:
            await self._roles.set_role(username, UserRole.DEFAULT)
            return f"{username} больше не игнорируется."
        if not await self._roles.set_role(username, UserRole.IGNORED):
            return f"{username} нельзя игнорировать."
        return f"{username} добавлен в список игнорируемых."


class CooldownCommand(BaseCommand):
    def __init__(self, cooldown: CooldownService) -> None:
        self._cooldown = cooldown

    @property
    def name(self) -> str:
        return "!перезарядка"

    @property
    def description(self) -> str:
        return "выставляет перезарядку команд бота на текущей платформе."

    @property
    def priority(self) -> int:
        return 701

    @property
    def usage(self) -> str:
        return "секунды"

    def can_execute(self, command: ParsedCommand) -> bool:
        return has_role(command, UserRole.ADMINISTRATOR, UserRole.MODERATOR)

    async def execute_logic(self, command: ParsedCommand) -> str:
        platform = command.context.platform
        seconds = command.parameters
        if await self._cooldown.set_cooldown(platform, seconds):
            return f"Перезарядка установлена на {seconds} сек. для {platform.value}."
        return "Не получилось установить перезарядку."


# ----------------------------------------------------------------------
# Command switches
# ----------------------------------------------------------------------

class ToggleCommandStatusCommand(BaseCommand):
    def __init__(self, status: CommandStatusStore) -> None:
        self._status = status

    @property
    def name(self) -> str:
        return "!статускоманды"

    @property
    def description(self) -> str:
        return "переключает статус работы команды на данной платформе (включает или выключает)."

    @property
    def priority(self) -> int:
        return 504

    @property
    def usage(self) -> str:
        return "команда и платформа"

    def can_execute(self, command: ParsedCommand) -> bool:
        return is_administrative_channel(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        parts = command.parameters.split()
        if len(parts) < 2:
            return self.usage_hint()
        name, platform_name = parts[0], parts[1]
        platform = _platform_by_name(platform_name)
        if platform is None:
            known = ", ".join(p.value for p in Platform)
            return f"Неизвестная платформа {platform_name}. Доступные: {known}."

        enabled = not await self._status.is_enabled(name, platform.value)
        await self._status.set_enabled(name, platform.value, enabled)
        state = "включена" if enabled else "отключена"
        return f"Команда {name} теперь {state} для сервиса {platform.value}."


class ShowCommandStatusesCommand(BaseCommand):
    def __init__(self, status: CommandStatusStore) -> None:
        self._status = status

    @property
    def name(self) -> str:
        return "!статускоманд"

    @property
    def description(self) -> str:
        return "выводит список всех статусов команд на каждой из платформ (включены или нет)."

    @property
    def priority(self) -> int:
        return 502

    def can_execute(self, command: ParsedCommand) -> bool:
        return is_administrative_channel(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        statuses = await self._status.all()
        if not statuses:
            return "Все команды включены на всех платформах."
        lines = ["Статус команд:"]
        for name, platforms in statuses.items():
            lines.append(f"\nКоманда: {name}")
            for platform, enabled in platforms.items():
                state = "Включена" if enabled else "Отключена"
                lines.append(f"- Платформа: {platform}, Статус: {state}")
        return "\n".join(lines)


# ----------------------------------------------------------------------
# Chat management
# ----------------------------------------------------------------------

class DeleteMessagesCommand(BaseCommand):
    @property
    def name(self) -> str:
        return "!удалить"

    @property
    def description(self) -> str:
        return f"удаляет до {MAX_DELETE_COUNT} последних сообщений в чате."

    @property
    def priority(self) -> int:
        return 100

    @property
    def usage(self) -> str:
        return "число"

    def can_execute(self, command: ParsedCommand) -> bool:
        return has_role(command, UserRole.ADMINISTRATOR)

    async def execute_logic(self, command: ParsedCommand) -> str:
        context = command.context
        if not context.supports(Capability.DELETE):
            return "Эта платформа не поддерживает удаление сообщений."
        try:
            count = int(command.parameters)
        except ValueError:
            return self.usage_hint()
        count = min(count, MAX_DELETE_COUNT)
        if count <= 0:
            return "Число должно быть положительным."
        await context.service.delete_messages(context, count)
        return f"Удалено {count} последних сообщений."


class RemindCommand(BaseCommand):
    """Acknowledges at once and answers with the reminder after N minutes."""

    def __init__(self, sleep=asyncio.sleep) -> None:
        self._sleep = sleep

    @property
    def name(self) -> str:
        return "!напомнить"

    @property
    def description(self) -> str:
        return "присылает через заданное количество минут указанное сообщение."

    @property
    def priority(self) -> int:
        return 702

    @property
    def usage(self) -> str:
        return "время в минутах и сообщение"

    def can_execute(self, command: ParsedCommand) -> bool:
        return has_role(command, UserRole.ADMINISTRATOR, UserRole.MODERATOR)

    async def execute_logic(self, command: ParsedCommand) -> str:
        parts = command.parameters.split(maxsplit=1)
        if len(parts) < 2 or not parts[0].isdigit():
            return self.usage_hint()
        minutes, text = int(parts[0]), parts[1]

        await command.context.send(f"Напоминание будет отправлено через {minutes} минут(ы).")
        log.info("reminder_scheduled", minutes=minutes, user=command.context.username)
        await self._sleep(minutes * 60)
        return f"Напоминание: {text}"


class SetConfigValueCommand(BaseCommand):
    def __init__(self, config: SqliteConfigStore) -> None:
        self._config = config

    @property
    def name(self) -> str:
        return "!setconfig"

    @property
    def description(self) -> str:
        return "изменяет значение поля в конфиге."

    @property
    def priority(self) -> int:
        return 704

    @property
    def usage(self) -> str:
        return "ключ и значение"

    def can_execute(self, command: ParsedCommand) -> bool:
        return is_administrative_channel(command) and has_role(command, UserRole.ADMINISTRATOR)

    async def execute_logic(self, command: ParsedCommand) -> str:
        parts = command.parameters.split(maxsplit=1)
        if len(parts) < 2:
            return "Ошибка: необходимо указать ключ и значение, через пробел."
        key, value = parts
        await self._config.set(key, value)
        log.info("config_value_set", key=key)
        return (
            f"Значение для ключа '{key}' было установлено в '{value}'. "
            "Для вступления в силу, перезагрузите приложение."
        )


class ListBirthdaysCommand(BaseCommand):
    def __init__(self, birthdays: BirthdayStore) -> None:
        self._birthdays = birthdays

    @property
    def name(self) -> str:
        return "!списокдр"

    @property
    def description(self) -> str:
        return "выдаёт дни рождения пользователей и на каких платформах включены поздравления."

    @property
    def priority(self) -> int:
        return 703

    def can_execute(self, command: ParsedCommand) -> bool:
        return is_administrative_channel(command)

    async def execute_logic(self, command: ParsedCommand) -> str:
        birthdays = self._birthdays.all()
        if not birthdays:
            return "Дни рождения не найдены."
        lines = ["Дни рождения пользователей:"]
        for info in birthdays:
            lines.append(f"{info.username} - {info.birth_date:%d.%m}")
            for platform, enabled in info.notify_on.items():
                lines.append(f"  {platform}: {'Включены' if enabled else 'Отключены'}")
        return "\n".join(lines)
