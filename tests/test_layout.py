"""Tests for keyboard layout correction."""

import pytest

from absolutebot.services.layout import LayoutCorrector, load_word_set, to_russian_layout


@pytest.fixture
def corrector():
    return LayoutCorrector({"привет", "мир", "сегодня", "погода"}, {"hello", "world", "today"})


class TestLayout:
    def test_to_russian_layout(self):
        assert to_russian_layout("ghbdtn") == "привет"
        assert to_russian_layout("Ghbdtn vbh 42") == "Привет мир 42"

    def test_corrects_mistyped_russian(self, corrector):
        assert corrector.correct("ghbdtn vbh") == "привет мир"

    def test_keeps_real_english(self, corrector):
        assert corrector.correct("hello world") == "hello world"

    def test_keeps_russian(self, corrector):
        assert corrector.correct("привет мир") == "привет мир"

    def test_short_words_do_not_count(self, corrector):
        assert corrector.correct("vbh") == "vbh"

    def test_no_dictionary(self):
        assert LayoutCorrector(set(), set()).correct("ghbdtn") == "ghbdtn"

    def test_load_word_set(self, tmp_path):
        path = tmp_path / "ru.dic"
        path.write_text("3\nПривет/ABC\nмир\n\n12345\n", encoding="utf-8")
        assert load_word_set(path) == {"привет", "мир"}
