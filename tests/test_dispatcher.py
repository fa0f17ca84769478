"""End-to-end dispatch: parsing, permission gates, cooldown and fallbacks."""

import pytest

from absolutebot.commands.admin import AddCensorWordCommand
from absolutebot.commands.extra import ExecuteExtraCommand
from absolutebot.commands.user import CommandsListCommand
from absolutebot.core.auth import CooldownService, UserRole
from absolutebot.core.context import ChannelType
from absolutebot.core.dispatcher import COOLDOWN_MESSAGE, CommandDispatcher
from absolutebot.core.parser import CommandParser
from absolutebot.core.registry import CommandRegistry
from absolutebot.services.stores import CensorWordStore
from helpers import EchoCommand, FakeService, MemoryRoleStore, telegram


class FakeExtras:
    def __init__(self, commands):
        self.commands = commands

    def get(self, name):
        return self.commands.get(name.lower())

    def names(self):
        return sorted(self.commands)


class FakeStatus:
    def __init__(self, disabled=()):
        self.disabled = set(disabled)

    async def is_enabled(self, command, platform):
        return (command, platform) not in self.disabled


class FakeClock:
    now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
async def censor_words(tmp_path):
    store = CensorWordStore(tmp_path / "censor.db")
    await store.start()
    yield store
    await store.stop()


@pytest.fixture
def roles():
    return MemoryRoleStore({
        "boss": UserRole.ADMINISTRATOR,
        "тролль": UserRole.IGNORED,
        "вип": UserRole.PREMIUM,
    })


@pytest.fixture
def echo():
    return EchoCommand("!эхо")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def status():
    return FakeStatus()


@pytest.fixture
def dispatcher(roles, echo, censor_words, clock, status):
    registry = CommandRegistry()
    registry.register(CommandsListCommand(registry))
    registry.register(AddCensorWordCommand(censor_words))
    registry.register(ExecuteExtraCommand(FakeExtras({"!привет": "Привет всем!"})))
    registry.register(echo)
    cooldown = CooldownService(defaults={"Telegram": 60}, clock=clock)
    return CommandDispatcher(CommandParser(), registry, roles, cooldown, status)


class TestDispatcher:
    async def test_ignored_user_is_silent(self, dispatcher):
        service = FakeService()
        assert await dispatcher.execute("!команды", telegram(service, username="тролль")) is None
        assert service.sent == []

    async def test_admin_adds_censor_word(self, dispatcher, censor_words):
        service = FakeService()
        context = telegram(service, username="boss", channel_type=ChannelType.ADMINISTRATIVE)
        result = await dispatcher.execute("!добавитьцензуру слово", context)
        assert result == "Слово 'слово' было добавлено в список для цензуры."
        assert service.texts == [result]
        assert censor_words.words() == ["слово"]

    async def test_scoped_command_outside_its_channel(self, dispatcher):
        service = FakeService()
        context = telegram(service, username="boss", channel_type=ChannelType.PREMIUM)
        assert await dispatcher.execute("!добавитьцензуру слово", context) is None
        assert service.sent == []

    async def test_fuzzy_command_name(self, dispatcher, echo):
        assert await dispatcher.execute("!ЭХОО тест", telegram(username="вип")) == "тест"
        assert echo.calls == 1

    async def test_not_a_command(self, dispatcher):
        service = FakeService()
        assert await dispatcher.execute("просто болтаю", telegram(service)) is None
        assert service.sent == []

    async def test_unknown_command_is_silent(self, dispatcher):
        service = FakeService()
        assert await dispatcher.execute("!неизвестная", telegram(service)) is None
        assert service.sent == []

    async def test_cooldown_throttles_regular_users(self, dispatcher, echo, clock):
        service = FakeService()
        assert await dispatcher.execute("!эхо раз", telegram(service)) == "раз"
        clock.now = 30
        assert await dispatcher.execute("!эхо два", telegram(service)) == COOLDOWN_MESSAGE
        assert service.texts == ["раз", COOLDOWN_MESSAGE]
        assert echo.calls == 1

        clock.now = 61
        assert await dispatcher.execute("!эхо три", telegram(service)) == "три"

    async def test_cooldown_exempt_roles(self, dispatcher, clock):
        await dispatcher.execute("!эхо раз", telegram())
        clock.now = 1
        assert await dispatcher.execute("!эхо два", telegram(username="вип")) == "два"
        assert await dispatcher.execute("!эхо три", telegram(username="boss")) == "три"

    async def test_disabled_command_is_silent(self, dispatcher, echo, status):
        status.disabled.add(("!эхо", "Telegram"))
        service = FakeService()
        assert await dispatcher.execute("!эхо привет", telegram(service)) is None
        assert service.sent == []
        assert echo.calls == 0

    async def test_extra_command_fallback(self, dispatcher):
        service = FakeService()
        context = telegram(service, channel_type=ChannelType.PREMIUM)
        assert await dispatcher.execute("!привет", context) == "Привет всем!"
        assert service.texts == ["Привет всем!"]

    async def test_extra_command_needs_official_channel(self, dispatcher):
        service = FakeService()
        assert await dispatcher.execute("!привет", telegram(service)) is None
        assert service.sent == []

    async def test_command_errors_propagate(self, roles, clock):
        registry = CommandRegistry()
        registry.register(EchoCommand("!сломано", error=ValueError("boom")))
        dispatcher = CommandDispatcher(CommandParser(), registry, roles, CooldownService(clock=clock))
        with pytest.raises(ValueError):
            await dispatcher.execute("!сломано", telegram())
