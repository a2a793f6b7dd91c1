"""Deduplicated vocabulary with prefix completion and batched notifications.

Mutations are not announced immediately. Each one bumps a pending-change
counter and arms a single zero-delay tick on the asyncio loop; when the tick
fires, every subscriber is called once with a snapshot of the vocabulary.
All mutations made within one synchronous turn are therefore delivered as a
single notification.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Callable, Iterable

from tlmode.reactive import Observable, Subscription, as_subscription

logger = logging.getLogger(__name__)

_NON_WORD_RE = re.compile(r"\W+")

WordsListener = Callable[[list[str]], None]


class WordIndex:
    """Ordered, duplicate-free word list answering prefix queries.

    The flush loop is bound to ``start``/``stop``. The index starts out
    running; a stopped index keeps counting changes but never arms a tick,
    so pending changes are only delivered by an explicit ``flush`` or
    after ``start``.
    """

    def __init__(
        self,
        words: Iterable[str] | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._words: list[str] = []
        self._word_set: set[str] = set()
        self._replace(words or ())
        self._changes = 0
        self._listeners: list[WordsListener] = []
        self._loop = loop
        self._handle: asyncio.Handle | None = None
        self._stopped = False

    # ------------------------------------------------------------------
    # Vocabulary
    # ------------------------------------------------------------------

    def add_word(self, word: str) -> None:
        if word in self._word_set:
            return
        self._words.append(word)
        self._word_set.add(word)
        self._changes += 1
        self._schedule_flush()

    def add_sentence(self, text: str) -> None:
        """Add every word of ``text``.

        Leading or trailing separators yield an empty piece, which is added
        like any other word.
        """
        for word in _NON_WORD_RE.split(text):
            self.add_word(word)

    def complete(self, prefix: str) -> list[str]:
        """Return the words starting with ``prefix``, sorted ascending."""
        # Linear scan; vocabularies here are a few hundred entries at most
        return sorted(word for word in self._words if word.startswith(prefix))

    def get_words(self) -> list[str]:
        return list(self._words)

    def __contains__(self, word: object) -> bool:
        return word in self._word_set

    def __len__(self) -> int:
        return len(self._words)

    @property
    def pending_changes(self) -> int:
        return self._changes

    def _replace(self, words: Iterable[str]) -> None:
        self._words = list(dict.fromkeys(words))
        self._word_set = set(self._words)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, callback: WordsListener) -> Subscription:
        """Call ``callback(words)`` after every flush."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return Subscription(unsubscribe)

    def sync_with(self, store: Observable[list[str]]) -> Subscription:
        """Mirror the vocabulary to and from ``store``.

        Store updates replace the vocabulary wholesale; flushes overwrite
        the store with the full word list. An external update that lands
        between a flush snapshot and its store write is lost.
        """
        inbound = as_subscription(store.subscribe(self._replace))
        outbound = self.subscribe(store.set)
        return Subscription.combine(inbound, outbound)

    def flush(self) -> bool:
        """Deliver pending changes now. Returns whether anything was sent."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if not self._changes:
            return False
        logger.debug("Flushing %d vocabulary change(s)", self._changes)
        self._changes = 0
        for listener in list(self._listeners):
            listener(self.get_words())
        return True

    @property
    def running(self) -> bool:
        return not self._stopped

    def start(self) -> None:
        """Resume the flush loop, arming it if changes are waiting."""
        self._stopped = False
        if self._changes:
            self._schedule_flush()

    def stop(self) -> None:
        """Stop the flush loop and drop any armed tick."""
        self._stopped = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule_flush(self) -> None:
        if self._stopped or self._handle is not None:
            return
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No event loop; changes wait for flush() or the next tick
                return
        self._handle = loop.call_soon(self._flush_tick)

    def _flush_tick(self) -> None:
        self._handle = None
        if self._stopped:
            return
        self.flush()
