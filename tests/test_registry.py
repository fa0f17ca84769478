"""Tests for command registration and lookup."""

import pytest

from absolutebot.commands.extra import ExecuteExtraCommand
from absolutebot.core.registry import CommandRegistry, similarity
from helpers import EchoCommand


class FakeExtras:
    def get(self, name):
        return None

    def names(self):
        return []


@pytest.fixture
def registry():
    registry = CommandRegistry()
    registry.register(EchoCommand("!команды"))
    registry.register(EchoCommand("!картинка"))
    return registry


class TestSimilarity:
    def test_identical(self):
        assert similarity("!команды", "!команды") == 100

    def test_symmetric(self):
        assert similarity("!комнады", "!команды") == similarity("!команды", "!комнады")

    def test_prefix_scores_on_total_length(self):
        assert similarity("!абвгд", "!абвгдежзи") == 75


class TestCommandRegistry:
    def test_exact_lookup(self, registry):
        assert registry.find("!команды").name == "!команды"

    def test_case_insensitive(self, registry):
        assert registry.find("!КОМАНДЫ").name == "!команды"

    def test_fuzzy_lookup(self, registry):
        assert registry.find("!комнады").name == "!команды"

    def test_nothing_close_enough(self, registry):
        assert registry.find("!погода") is None

    def test_empty_registry(self):
        assert CommandRegistry().find("!команды") is None

    def test_fuzzy_tie_prefers_alphabetical(self):
        registry = CommandRegistry()
        registry.register(EchoCommand("!абвгж"))
        registry.register(EchoCommand("!абвгд"))
        assert registry.find("!абвгз").name == "!абвгд"

    def test_last_registration_wins(self, registry):
        replacement = EchoCommand("!Команды")
        registry.register(replacement)
        assert registry.find("!команды") is replacement
        assert len(registry) == 2

    def test_find_by_type(self, registry):
        assert registry.find_by_type(ExecuteExtraCommand) is None
        extra = ExecuteExtraCommand(FakeExtras())
        registry.register(extra)
        assert registry.find_by_type(ExecuteExtraCommand) is extra

    def test_all(self, registry):
        assert sorted(c.name for c in registry.all()) == ["!картинка", "!команды"]
