"""Editable surface protocol and an in-memory implementation.

The bridge only needs to read and replace the full text, move the caret,
hear key-down events, and hear every content change regardless of source.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Protocol, runtime_checkable

from tlmode.reactive import Subscription

KeyId = str


class Key:
    """Named key identifiers."""

    tab = "tab"
    space = "space"
    enter = "enter"
    escape = "escape"
    backspace = "backspace"

    # Characters inserted by keys that have a name
    CHARS = {"space": " ", "tab": "\t", "enter": "\n"}

    @staticmethod
    def for_char(char: str) -> KeyId:
        for key_id, key_char in Key.CHARS.items():
            if key_char == char:
                return key_id
        return char


@dataclass
class KeyEvent:
    """A key-down notification."""

    key: KeyId
    default_prevented: bool = field(default=False, compare=False)

    def prevent_default(self) -> None:
        self.default_prevented = True


def matches_key(event: KeyEvent | None, key_id: KeyId) -> bool:
    return event is not None and event.key.lower() == key_id.lower()


KeyListener = Callable[[KeyEvent], None]
MutationListener = Callable[[str], None]


@runtime_checkable
class EditableSurface(Protocol):
    """Interface the editor bridge drives."""

    # Teardown of whichever bridge currently owns the surface
    teardown_hook: Callable[[], None] | None

    def get_text(self) -> str:
        """Get the full text content."""
        ...

    def set_text(self, text: str) -> None:
        """Replace the full text content."""
        ...

    def set_caret(self, offset: int) -> None:
        """Place the caret at a character offset."""
        ...

    def caret_to_end(self) -> None:
        """Place the caret after the last character."""
        ...

    def on_key_down(self, callback: KeyListener) -> Subscription:
        """Register a key-down listener."""
        ...

    def observe(self, callback: MutationListener) -> Subscription:
        """Register a listener for every text change."""
        ...


class TextSurface:
    """Single-buffer editable surface held in memory.

    ``press`` plays a key through the usual order: key-down listeners
    first, then the character insertion (unless a listener prevented it),
    then mutation listeners.
    """

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._caret = len(text)
        self._key_listeners: list[KeyListener] = []
        self._mutation_listeners: list[MutationListener] = []
        self.teardown_hook: Callable[[], None] | None = None

    def get_text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        if text == self._text:
            return
        self._text = text
        self._caret = min(self._caret, len(text))
        self._notify_mutation()

    @property
    def caret(self) -> int:
        return self._caret

    def set_caret(self, offset: int) -> None:
        self._caret = max(0, min(offset, len(self._text)))

    def caret_to_end(self) -> None:
        self._caret = len(self._text)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_key_down(self, callback: KeyListener) -> Subscription:
        self._key_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._key_listeners:
                self._key_listeners.remove(callback)

        return Subscription(unsubscribe)

    def observe(self, callback: MutationListener) -> Subscription:
        self._mutation_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._mutation_listeners:
                self._mutation_listeners.remove(callback)

        return Subscription(unsubscribe)

    @property
    def listener_count(self) -> int:
        return len(self._key_listeners) + len(self._mutation_listeners)

    def _notify_mutation(self) -> None:
        for listener in list(self._mutation_listeners):
            listener(self._text)

    # ------------------------------------------------------------------
    # Simulated typing
    # ------------------------------------------------------------------

    def press(self, key: KeyId, char: str | None = None) -> KeyEvent:
        """Dispatch ``key`` and insert ``char`` at the caret."""
        event = KeyEvent(key=key)
        for listener in list(self._key_listeners):
            listener(event)
        if char and not event.default_prevented:
            self.insert(char)
        return event

    def type_text(self, text: str) -> None:
        """Press one key per character of ``text``."""
        for char in text:
            self.press(Key.for_char(char), char)

    def insert(self, text: str) -> None:
        self._text = self._text[: self._caret] + text + self._text[self._caret :]
        self._caret += len(text)
        self._notify_mutation()
