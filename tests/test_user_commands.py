"""Tests for the conversation, image and birthday commands."""

from datetime import date

import pytest

from absolutebot.commands.user import (
    FALLBACK_REPLY,
    AddBirthdayCommand,
    BirthdayCommand,
    ImageCommand,
    MentionCommand,
    RemoveBirthdayCommand,
)
from absolutebot.core.auth import UserRole
from absolutebot.core.context import ChannelType
from absolutebot.core.service import Capability, Platform
from absolutebot.models import ReplyInfo
from absolutebot.services.birthdays import BirthdayStore
from helpers import FakeService, parsed, telegram, twitch


class FakeResponder:
    def __init__(self, reply="Привет!"):
        self.reply = reply
        self.calls = []

    async def ask(self, prompt, max_length, history=None):
        self.calls.append((prompt, max_length, history))
        return self.reply


class FakeSearch:
    def __init__(self, result):
        self.result = result

    async def search(self, query):
        return self.result


class TestMentionCommand:
    async def test_direct_question(self):
        responder = FakeResponder()
        command = MentionCommand("Абсолют", responder)
        context = telegram(FakeService(), username="вася", channel_type=ChannelType.PREMIUM)
        result = await command.execute(parsed(context, command="@абсолют", parameters="как дела?"))
        assert result == "Привет!"
        assert responder.calls == [("вася: как дела?", 4096, None)]

    async def test_reply_becomes_history(self):
        responder = FakeResponder()
        context = telegram(reply=ReplyInfo("петя", "тут был текст"))
        await MentionCommand("Абсолют", responder).execute(parsed(context, parameters="что скажешь?"))
        assert responder.calls[0][2] == ["петя: тут был текст"]

    async def test_joins_conversation_from_history(self):
        responder = FakeResponder()
        context = telegram()
        context.last_messages = ["а: раз", "б: два"]
        await MentionCommand("Абсолют", responder).execute(parsed(context))
        assert responder.calls == [("", 4096, ["а: раз", "б: два"])]

    async def test_empty_reply_falls_back(self):
        service = FakeService()
        result = await MentionCommand("Абсолют", FakeResponder(None)).execute(parsed(telegram(service)))
        assert result == FALLBACK_REPLY
        assert service.texts == [FALLBACK_REPLY]

    def test_scope(self):
        command = MentionCommand("Абсолют", FakeResponder())
        assert command.name == "@Абсолют"
        official = telegram(channel_type=ChannelType.PREMIUM)
        assert command.can_execute(parsed(official))
        assert not command.can_execute(parsed(official, role=UserRole.BOT))
        assert not command.can_execute(parsed(telegram()))


class TestImageCommand:
    async def test_found_image_sent_as_photo(self):
        service = FakeService(capabilities=Capability.PHOTO)
        url = "https://example.com/cat"
        await ImageCommand(FakeSearch(url)).execute(parsed(telegram(service), parameters="кот"))
        assert service.sent == [("photo", url)]

    async def test_nothing_found(self):
        service = FakeService(capabilities=Capability.PHOTO)
        result = await ImageCommand(FakeSearch(None)).execute(parsed(telegram(service), parameters="кот"))
        assert result == "Картинка не найдена."
        assert service.sent == [("text", result)]


@pytest.fixture
async def birthdays(tmp_path):
    store = BirthdayStore(tmp_path / "birthdays.db", today=lambda: date(2024, 3, 15))
    await store.start()
    yield store
    await store.stop()


class TestBirthdayCommands:
    async def test_add(self, birthdays):
        context = twitch(FakeService(Platform.TWITCH), username="вася")
        result = await AddBirthdayCommand(birthdays).execute(parsed(context, parameters="20 3"))
        assert result == (
            "День рождения успешно добавлен: 20 марта. "
            "Уведомления включены на платформе Twitch."
        )
        assert birthdays.days_until("вася", "Twitch") == 5

    @pytest.mark.parametrize("parameters", ["31 2", "завтра", "12"])
    async def test_add_rejects_bad_dates(self, birthdays, parameters):
        context = twitch(username="вася")
        result = await AddBirthdayCommand(birthdays).execute(parsed(context, parameters=parameters))
        assert result == "Неверный формат даты. Используйте: !добавитьдр день и месяц"
        assert birthdays.all() == []

    async def test_days_until(self, birthdays):
        await birthdays.add_or_update("вася", "Twitch", 20, 3)
        command = BirthdayCommand(birthdays)
        assert await command.execute(parsed(twitch(), parameters="@Вася")) == (
            "До дня рождения Вася осталось 5 дн."
        )
        assert await BirthdayCommand(birthdays).execute(parsed(twitch(), parameters="петя")) == (
            "День рождения петя не найден."
        )

    async def test_nearest(self, birthdays):
        command = BirthdayCommand(birthdays)
        assert await command.execute(parsed(twitch())) == "Дни рождения не найдены."
        await birthdays.add_or_update("вася", "Twitch", 20, 3)
        await birthdays.add_or_update("петя", "Twitch", 15, 3)
        assert await BirthdayCommand(birthdays).execute(parsed(twitch())) == "Сегодня день рождения у петя!"

    async def test_remove(self, birthdays):
        await birthdays.add_or_update("вася", "Twitch", 20, 3)
        context = twitch(username="вася")
        result = await RemoveBirthdayCommand(birthdays).execute(parsed(context))
        assert result == "Уведомления о дне рождения на платформе Twitch отключены."
        assert birthdays.days_until("вася", "Twitch") is None
