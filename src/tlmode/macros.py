"""Macro table: short names mapped to expansion text."""

from __future__ import annotations

import asyncio
from typing import Mapping

from tlmode.substitution import (
    DEFAULT_TRIGGER,
    replace_trailing,
    substitute,
    trailing_token,
)
from tlmode.word_index import WordIndex


class MacroTable:
    """Maps macro names to expansions.

    Names double as a completion vocabulary, so a macro can be reached by
    any prefix that matches exactly one name.
    """

    def __init__(
        self,
        macros: Mapping[str, str] | None = None,
        *,
        trigger: str = DEFAULT_TRIGGER,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._macros: dict[str, str] = dict(macros or {})
        self.trigger = trigger
        self.index = WordIndex(self._macros, loop=loop)

    def add_macro(self, name: str, expansion: str) -> None:
        self._macros[name] = expansion
        self.index.add_word(name)

    def get_macro(self, name: str) -> str | None:
        """Resolve ``name`` exactly, or by a single unambiguous prefix.

        Returns None when nothing matches or the prefix is shared by
        several macro names.
        """
        if name in self._macros:
            return self._macros[name]
        candidates = self.index.complete(name)
        if len(candidates) == 1:
            return self._macros.get(candidates[0])
        return None

    def replace_text(self, text: str) -> str:
        return substitute(text, self.get_macro, self.trigger)

    def complete_end(self, text: str, replacement: str | None) -> str:
        """Replace a trailing trigger token with ``replacement``."""
        if replacement is None:
            return text
        return replace_trailing(text, replacement, self.trigger)

    def complete(self, text: str) -> list[str]:
        """Completion candidates for the trigger token ending ``text``."""
        token = trailing_token(text, self.trigger)
        if token is None:
            return []
        return self.index.complete(token.name)

    @property
    def macros(self) -> dict[str, str]:
        return dict(self._macros)

    @property
    def names(self) -> list[str]:
        return self.index.get_words()

    def __contains__(self, name: object) -> bool:
        return name in self._macros

    def __len__(self) -> int:
        return len(self._macros)
