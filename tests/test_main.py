"""Tests for the wired-up application."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest
from structlog.testing import capture_logs

from absolutebot.config import Settings
from absolutebot.core.auth import UserRole
from absolutebot.core.bus import MessageIncoming
from absolutebot.core.context import ChannelType
from absolutebot import main
from absolutebot.main import BotApp
from helpers import FakeService, telegram


@pytest.fixture
async def app(tmp_path):
    app = BotApp(Settings(data_dir=str(tmp_path)))
    await app.start()
    yield app
    await app.stop()


class TestBotApp:
    async def test_commands_list(self, app):
        service = FakeService()
        result = await app.on_message("!команды", telegram(service))
        assert result.startswith("Список доступных команд:")
        assert service.texts == [result]

    async def test_optional_commands_not_registered(self, app):
        assert app.registry.find("!картинка") is None

    async def test_ignore_flow(self, app):
        await app.roles.set_role("boss", UserRole.ADMINISTRATOR)
        admin = telegram(FakeService(), username="boss", channel_type=ChannelType.ADMINISTRATIVE)
        assert await app.on_message("!игнор вася", admin) == "вася добавлен в список игнорируемых."

        service = FakeService()
        assert await app.on_message("!команды", telegram(service, username="вася")) is None
        assert service.sent == []

    async def test_extra_command_roundtrip(self, app):
        await app.roles.set_role("mod", UserRole.MODERATOR)
        moderator = telegram(FakeService(), username="mod", channel_type=ChannelType.PREMIUM)
        await app.on_message("!добавитькоманду !правила Не ругаться", moderator)

        service = FakeService()
        result = await app.on_message("!правила", telegram(service, channel_type=ChannelType.PREMIUM))
        assert result == "Не ругаться"
        assert service.texts == ["Не ругаться"]

    async def test_bus_delivery(self, app):
        service = FakeService()
        await app.bus.publish(MessageIncoming(context=telegram(service), text="!команды"))
        await app.bus.drain()
        if app._running:
            await asyncio.gather(*app._running)
        assert len(service.texts) == 1
        assert service.texts[0].startswith("Список доступных команд:")

    async def test_command_failure_is_logged_not_raised(self, app, monkeypatch):
        monkeypatch.setattr(app.dispatcher, "execute", AsyncMock(side_effect=RuntimeError("boom")))
        assert await app.on_message("!команды", telegram()) is None


class TestShutdown:
    async def test_slow_command_reported_when_abandoned(self, tmp_path, monkeypatch):
        monkeypatch.setattr(main, "_SHUTDOWN_GRACE", 0.01)
        app = BotApp(Settings(data_dir=str(tmp_path)))
        await app.start()
        slow = asyncio.Event()
        app._spawn(slow.wait())
        with capture_logs() as logs:
            await app.stop()
        abandoned = [e for e in logs if e["event"] == "commands_abandoned"]
        assert len(abandoned) == 1
        assert abandoned[0]["count"] == 1
        # still running, not cancelled
        assert len(app._running) == 1
        slow.set()
        await asyncio.gather(*app._running)

    async def test_quick_commands_finish_quietly(self, tmp_path):
        app = BotApp(Settings(data_dir=str(tmp_path)))
        await app.start()
        app._spawn(asyncio.sleep(0))
        with capture_logs() as logs:
            await app.stop()
        assert not app._running
        assert all(e["event"] != "commands_abandoned" for e in logs)


class TestBirthdayAnnouncement:
    async def test_announces_today(self, tmp_path):
        announcer = AsyncMock()
        app = BotApp(Settings(data_dir=str(tmp_path)), announcer=announcer)
        app.birthdays._today = lambda: date(2024, 3, 15)
        await app.start()
        try:
            assert [job.name for job in app.scheduler.jobs] == ["birthday_announcement"]
            await app.birthdays.add_or_update("Вася", "Twitch", 15, 3)
            await app.announce_birthdays()
        finally:
            await app.stop()
        announcer.assert_awaited_once_with("Сегодня день рождения у: Вася! Поздравляем! 🎉")

    async def test_nothing_to_announce(self, tmp_path):
        announcer = AsyncMock()
        app = BotApp(Settings(data_dir=str(tmp_path)), announcer=announcer)
        await app.start()
        try:
            await app.announce_birthdays()
        finally:
            await app.stop()
        announcer.assert_not_awaited()
