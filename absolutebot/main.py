"""AbsoluteBot entry point: wires everything together and runs the bot."""

from __future__ import annotations

import asyncio
import random
import signal
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Coroutine

import click

from absolutebot import __version__
from absolutebot.commands.admin import (
    AddCensorWordCommand,
    CooldownCommand,
    DeleteMessagesCommand,
    IgnoreCommand,
    ListBirthdaysCommand,
    RemindCommand,
    RemoveCensorWordCommand,
    SetConfigValueCommand,
    ShowCensorWordsCommand,
    ShowCommandStatusesCommand,
    ToggleCommandStatusCommand,
)
from absolutebot.commands.extra import AddExtraCommand, ExecuteExtraCommand, RemoveExtraCommand
from absolutebot.commands.user import (
    AddBirthdayCommand,
    BirthdayCommand,
    CommandsListCommand,
    ImageCommand,
    MentionCommand,
    RemoveBirthdayCommand,
)
from absolutebot.config import Settings, load_settings
from absolutebot.core.auth import CooldownService
from absolutebot.core.bus import Event, EventBus, EventType, MessageIncoming
from absolutebot.core.context import ChatContext
from absolutebot.core.dispatcher import CommandDispatcher
from absolutebot.core.parser import CommandParser
from absolutebot.core.pipeline import BaseMessageHandler, CensorshipService, MessageProcessingService
from absolutebot.core.registry import CommandRegistry
from absolutebot.core.scheduler import TaskScheduler
from absolutebot.core.service import Platform
from absolutebot.handlers import (
    DiscordMessageHandler,
    TelegramMessageHandler,
    TwitchMessageHandler,
    VkPlayMessageHandler,
)
from absolutebot.services.birthdays import BirthdayStore
from absolutebot.services.collaborators import ImageSearch, Responder, Translator
from absolutebot.services.layout import LayoutCorrector, load_word_set
from absolutebot.services.stores import (
    CensorWordStore,
    CommandStatusStore,
    ExtraCommandsStore,
    SqliteConfigStore,
    SqliteRoleStore,
)
from absolutebot.transports.base import Transport
from absolutebot.transports.discord_transport import DiscordTransport
from absolutebot.utils.logging import get_logger, setup_logging

log = get_logger(__name__)

Announcer = Callable[[str], Awaitable[None]]

# Time given to running commands before stores close on shutdown
_SHUTDOWN_GRACE = 5.0


class BotApp:
    """Main application orchestrator.

    External collaborators (LLM responder, translator, image search,
    birthday announcer, extra transports) are optional; commands that need
    a missing one are simply not registered.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        responder: Responder | None = None,
        translator: Translator | None = None,
        image_search: ImageSearch | None = None,
        announcer: Announcer | None = None,
        transports: list[Transport] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self._announcer = announcer
        data_dir = settings.get_data_dir()

        # Stores
        self.roles = SqliteRoleStore(data_dir / "roles.db")
        self.config_store = SqliteConfigStore(data_dir / "config.db")
        self.command_status = CommandStatusStore(data_dir / "command_status.db")
        self.extra_commands = ExtraCommandsStore(data_dir / "extra_commands.db")
        self.censor_words = CensorWordStore(data_dir / "censor_words.db")
        self.birthdays = BirthdayStore(data_dir / "birthdays.db", responder=responder)
        self._stores = [
            self.roles,
            self.config_store,
            self.command_status,
            self.extra_commands,
            self.censor_words,
            self.birthdays,
        ]

        # Command engine
        self.cooldown = CooldownService(self.config_store, settings.cooldown.default_seconds)
        self.registry = CommandRegistry()
        self._register_commands(responder, image_search)
        self.dispatcher = CommandDispatcher(
            CommandParser(), self.registry, self.roles, self.cooldown, self.command_status
        )

        # Message pipeline
        bot = settings.bot
        self.censorship = CensorshipService(self.censor_words, bot.censor_replacement)
        self.processing = MessageProcessingService(self._build_layout(), translator)
        common: dict[str, Any] = {
            "rng": rng,
            "history_size": bot.history_size,
            "system_log_marker": bot.system_log_marker,
        }
        self.handlers: dict[Platform, BaseMessageHandler] = {
            Platform.TELEGRAM: TelegramMessageHandler(
                bot.bot_name, self.roles, self.processing,
                mention_probability=bot.telegram_mention_probability,
                sticker_id=bot.telegram_sticker_id,
                winter_sticker_id=bot.telegram_winter_sticker_id,
                sticker_probability=bot.sticker_probability,
                **common,
            ),
            Platform.DISCORD: DiscordMessageHandler(
                bot.bot_name, self.roles, self.birthdays, self.processing,
                mention_probability=bot.mention_probability, **common,
            ),
            Platform.TWITCH: TwitchMessageHandler(
                bot.bot_name, self.roles, self.birthdays, self.processing,
                censorship=self.censorship, mention_probability=bot.mention_probability,
                emote=bot.twitch_emote, emote_probability=bot.emote_probability, **common,
            ),
            Platform.VKPLAY: VkPlayMessageHandler(
                bot.bot_name, self.roles, self.birthdays, self.processing,
                censorship=self.censorship, mention_probability=bot.mention_probability, **common,
            ),
        }

        self.bus = EventBus()
        self.scheduler = TaskScheduler()
        self.transports: list[Transport] = list(transports or [])
        self._running: set[asyncio.Task[Any]] = set()

    def _register_commands(
        self, responder: Responder | None, image_search: ImageSearch | None
    ) -> None:
        commands = [
            CommandsListCommand(self.registry),
            ExecuteExtraCommand(self.extra_commands),
            AddExtraCommand(self.extra_commands),
            RemoveExtraCommand(self.extra_commands),
            AddCensorWordCommand(self.censor_words),
            RemoveCensorWordCommand(self.censor_words),
            ShowCensorWordsCommand(self.censor_words),
            IgnoreCommand(self.roles),
            CooldownCommand(self.cooldown),
            ToggleCommandStatusCommand(self.command_status),
            ShowCommandStatusesCommand(self.command_status),
            DeleteMessagesCommand(),
            RemindCommand(),
            SetConfigValueCommand(self.config_store),
            ListBirthdaysCommand(self.birthdays),
            AddBirthdayCommand(self.birthdays),
            BirthdayCommand(self.birthdays),
            RemoveBirthdayCommand(self.birthdays),
        ]
        if responder is not None:
            commands.append(MentionCommand(self.settings.bot.bot_name, responder))
        if image_search is not None:
            commands.append(ImageCommand(image_search))
        for command in commands:
            self.registry.register(command)
        log.info("commands_registered", count=len(self.registry))

    def _build_layout(self) -> LayoutCorrector | None:
        bot = self.settings.bot
        if not (bot.russian_words_path and bot.english_words_path):
            return None
        try:
            return LayoutCorrector(
                load_word_set(Path(bot.russian_words_path)),
                load_word_set(Path(bot.english_words_path)),
            )
        except OSError:
            log.exception("layout_words_unavailable")
            return None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        log.info("absolutebot_starting", version=__version__)

        for store in self._stores:
            await store.start()
        await self.cooldown.load(list(Platform))

        self.bus.subscribe(EventType.MESSAGE_INCOMING, self._handle_event)

        if self.settings.scheduler.enabled and self._announcer is not None:
            self.scheduler.add_daily(
                "birthday_announcement",
                self.settings.scheduler.birthday_hour,
                self.announce_birthdays,
            )
        await self.scheduler.start()

        if self.settings.discord.token:
            self.transports.append(
                DiscordTransport(self.settings.discord, self.bus, self.settings.chunker)
            )
        for transport in self.transports:
            await transport.start()

        await self.bus.start()
        log.info("absolutebot_ready", transports=[t.platform.value for t in self.transports])

    async def stop(self) -> None:
        log.info("absolutebot_stopping")
        await self.scheduler.stop()
        await self.bus.stop()
        for transport in self.transports:
            await transport.stop()
        if self._running:
            # commands are never cancelled, only given time to finish
            _, pending = await asyncio.wait(set(self._running), timeout=_SHUTDOWN_GRACE)
            if pending:
                log.warning("commands_abandoned", count=len(pending), grace=_SHUTDOWN_GRACE)
        for store in self._stores:
            await store.stop()
        log.info("absolutebot_stopped")

    # ------------------------------------------------------------------
    # Message flow
    # ------------------------------------------------------------------

    async def _handle_event(self, event: Event) -> None:
        assert isinstance(event, MessageIncoming)
        if event.context is None:
            return
        await self.on_message(event.text, event.context, edited=event.edited, wait=False)

    async def on_message(
        self,
        text: str,
        context: ChatContext,
        *,
        edited: bool = False,
        wait: bool = True,
    ) -> str | None:
        """Run the platform handler, then the dispatcher.

        With ``wait=False`` the command runs as a background task so a slow
        command does not hold up the next message.
        """
        handler = self.handlers.get(context.platform)
        if handler is None:
            log.warning("no_handler_for_platform", platform=context.platform.value)
            return None

        processed = await handler.handle_message(text, context, edited)
        if processed is None:
            return None

        if wait:
            return await self.execute_command(processed, context)
        self._spawn(self.execute_command(processed, context))
        return None

    async def execute_command(self, text: str, context: ChatContext) -> str | None:
        try:
            return await self.dispatcher.execute(text, context)
        except Exception:
            log.exception(
                "command_failed",
                platform=context.platform.value,
                user=context.username,
                text=text,
            )
            return None

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    # ------------------------------------------------------------------
    # Scheduled jobs
    # ------------------------------------------------------------------

    async def announce_birthdays(self) -> None:
        if self._announcer is None:
            return
        groups = self.birthdays.today_nicknames()
        if not groups:
            return
        names = ", ".join(" / ".join(nicknames) for nicknames in groups)
        await self._announcer(f"Сегодня день рождения у: {names}! Поздравляем! 🎉")
        log.info("birthdays_announced", count=len(groups))


async def run(settings: Settings) -> None:
    app = BotApp(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
def cli(config_path: str | None, log_level: str | None) -> None:
    """Start AbsoluteBot."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
