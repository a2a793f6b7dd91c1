"""Trigger-token scanning and substitution over plain text.

A trigger token is the trigger character followed by a run of word or
slash characters, e.g. ``/peko``. Everything here is pure: functions take
the text and return new text, leaving literal spans untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterator

DEFAULT_TRIGGER = "/"

Resolver = Callable[[str], str | None]


@dataclass(frozen=True)
class TriggerToken:
    """A trigger token found in text."""

    offset: int
    text: str

    @property
    def name(self) -> str:
        """Token text without its leading trigger character."""
        return self.text[1:]

    @property
    def end(self) -> int:
        return self.offset + len(self.text)


@lru_cache(maxsize=8)
def _token_pattern(trigger: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(trigger)}[\w/]+")


@lru_cache(maxsize=8)
def _trailing_pattern(trigger: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(trigger)}(\w+)\Z")


class TriggerScan:
    """Restartable iterable over the trigger tokens of ``text``.

    Every ``iter()`` starts a fresh lazy scan from the beginning.
    """

    def __init__(self, text: str, trigger: str = DEFAULT_TRIGGER) -> None:
        self.text = text
        self.trigger = trigger

    def __iter__(self) -> Iterator[TriggerToken]:
        for match in _token_pattern(self.trigger).finditer(self.text):
            yield TriggerToken(offset=match.start(), text=match.group(0))


def scan_triggers(text: str, trigger: str = DEFAULT_TRIGGER) -> TriggerScan:
    return TriggerScan(text, trigger)


def substitute(
    text: str,
    resolve: Resolver,
    trigger: str = DEFAULT_TRIGGER,
) -> str:
    """Replace each trigger token whose name ``resolve`` maps to a string.

    Tokens that resolve to ``None`` are kept as typed, trigger included.
    """
    parts: list[str] = []
    last = 0
    for token in scan_triggers(text, trigger):
        replacement = resolve(token.name)
        parts.append(text[last : token.offset])
        parts.append(token.text if replacement is None else replacement)
        last = token.end
    parts.append(text[last:])
    return "".join(parts)


def trailing_token(text: str, trigger: str = DEFAULT_TRIGGER) -> TriggerToken | None:
    """Return the trigger token that ends ``text``, if any."""
    match = _trailing_pattern(trigger).search(text)
    if match is None:
        return None
    return TriggerToken(offset=match.start(), text=match.group(0))


def replace_trailing(
    text: str,
    replacement: str,
    trigger: str = DEFAULT_TRIGGER,
) -> str:
    """Swap the trailing trigger token for ``replacement`` taken literally."""
    token = trailing_token(text, trigger)
    if token is None:
        return text
    return text[: token.offset] + replacement
