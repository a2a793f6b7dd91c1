"""Tests for tlmode.macros.MacroTable."""

from __future__ import annotations

import pytest

from tlmode.macros import MacroTable
from tlmode.settings import DEFAULT_MACROS


@pytest.fixture
def table() -> MacroTable:
    return MacroTable(DEFAULT_MACROS)


class TestGetMacro:
    def test_exact_name(self, table: MacroTable) -> None:
        assert table.get_macro("peko") == "pekora"

    def test_unambiguous_prefix(self) -> None:
        table = MacroTable()
        table.add_macro("peko", "pekora")
        assert table.get_macro("pek") == "pekora"

    def test_ambiguous_prefix_returns_none(self) -> None:
        table = MacroTable()
        table.add_macro("peko", "pekora")
        table.add_macro("pekora2", "x")
        assert table.get_macro("pek") is None

    def test_exact_name_wins_over_ambiguity(self) -> None:
        table = MacroTable({"peko": "pekora", "pekora2": "x"})
        assert table.get_macro("peko") == "pekora"

    def test_unknown_returns_none(self, table: MacroTable) -> None:
        assert table.get_macro("unknown") is None

    def test_overwrite_keeps_single_name(self, table: MacroTable) -> None:
        table.add_macro("peko", "PEKO")
        assert table.get_macro("peko") == "PEKO"
        assert table.names.count("peko") == 1
        assert len(table) == 3


class TestReplaceText:
    def test_replaces_known_macro(self, table: MacroTable) -> None:
        assert table.replace_text("hello /peko world") == "hello pekora world"

    def test_unknown_macro_left_unchanged(self, table: MacroTable) -> None:
        assert table.replace_text("hello /unknown world") == "hello /unknown world"

    def test_prefix_resolves(self, table: MacroTable) -> None:
        assert table.replace_text("/pe and /er") == "pekora and erofi"

    def test_words_without_trigger_untouched(self, table: MacroTable) -> None:
        assert table.replace_text("peko en ero") == "peko en ero"

    def test_replacing_twice_is_stable(self, table: MacroTable) -> None:
        once = table.replace_text("/en hi /peko, /ero!")
        assert table.replace_text(once) == once

    def test_custom_trigger(self) -> None:
        table = MacroTable({"peko": "pekora"}, trigger="!")
        assert table.replace_text("!peko /peko") == "pekora /peko"

    def test_unicode_macro_name(self) -> None:
        table = MacroTable({"ぺこ": "pekora"})
        assert table.replace_text("/ぺこ!") == "pekora!"


class TestCompleteEnd:
    def test_replaces_trailing_token(self, table: MacroTable) -> None:
        assert table.complete_end("typing /pek", "pekora") == "typing pekora"

    def test_no_trigger_unchanged(self, table: MacroTable) -> None:
        assert table.complete_end("typing pek", "pekora") == "typing pek"

    def test_none_replacement_unchanged(self, table: MacroTable) -> None:
        assert table.complete_end("typing /zz", None) == "typing /zz"

    def test_token_before_line_break_unchanged(self, table: MacroTable) -> None:
        assert table.complete_end("typing /pek\n", "pekora") == "typing /pek\n"


class TestComplete:
    def test_candidates_for_trailing_token(self, table: MacroTable) -> None:
        assert table.complete("say /e") == ["en", "ero"]

    def test_bare_trigger_yields_nothing(self, table: MacroTable) -> None:
        assert table.complete("say /") == []

    def test_finished_line_yields_nothing(self, table: MacroTable) -> None:
        assert table.complete("say /e\n") == []

    def test_no_token_yields_empty(self, table: MacroTable) -> None:
        assert table.complete("say e") == []
        assert table.complete("") == []

    def test_new_macro_becomes_candidate(self, table: MacroTable) -> None:
        table.add_macro("miko", "sakura")
        assert table.complete("/mi") == ["miko"]
