"""Translator-mode session: everything one chat input needs, wired together.

Lifecycle (start, close) mirrors how the surrounding page uses the engine:
load persisted state, attach to the surface, and on close detach and stop
every background loop.
"""

from __future__ import annotations

import asyncio
import logging

from tlmode.bridge import EditorBridge
from tlmode.macros import MacroTable
from tlmode.reactive import Observable, Subscription, Writable
from tlmode.settings import TranslatorSettings
from tlmode.storage import Storage, SyncStore
from tlmode.surface import EditableSurface
from tlmode.word_index import WordIndex

logger = logging.getLogger(__name__)


class TranslatorSession:
    """Owns the macro table, the chat vocabulary and the editor bridge.

    The recommendation list, content mirror and focused candidate are
    observable containers; pass the UI's own to share them, otherwise
    in-memory ones are created.
    """

    def __init__(
        self,
        surface: EditableSurface,
        storage: Storage,
        *,
        settings: TranslatorSettings | None = None,
        recommendations: Observable[list[str]] | None = None,
        content: Observable[str] | None = None,
        focused: Observable[str | None] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.settings = settings or TranslatorSettings()
        self.storage = storage
        self.recommendations = recommendations if recommendations is not None else Writable([])
        self.content = content if content is not None else Writable("")
        self.focused = focused if focused is not None else Writable(None)

        self.macros_store: SyncStore[dict[str, str]] = SyncStore(
            "macros", dict(self.settings.macros), storage
        )
        self.words_store: SyncStore[list[str]] = SyncStore("words", [], storage)

        self.table = MacroTable(self.settings.macros, trigger=self.settings.trigger, loop=loop)
        self.vocabulary = WordIndex(loop=loop)
        self.bridge = EditorBridge(
            surface,
            self.table,
            self.recommendations,
            self.content,
            self.focused,
            settings=self.settings,
            loop=loop,
        )
        self._vocabulary_sync: Subscription | None = None

    async def start(self) -> None:
        """Load persisted macros and words, then attach to the surface."""
        stored = await self.macros_store.load()
        for name, expansion in stored.items():
            self.table.add_macro(name, expansion)
        await self.words_store.load()
        self._vocabulary_sync = self.vocabulary.sync_with(self.words_store)
        self.table.index.start()
        self.vocabulary.start()
        self.bridge.attach()
        logger.debug(
            "Session started with %d macro(s) and %d word(s)",
            len(self.table),
            len(self.vocabulary),
        )

    async def close(self) -> None:
        """Detach, stop background loops and wait for pending writes."""
        self.bridge.detach()
        # Deliver what is still pending so it reaches storage
        self.vocabulary.flush()
        if self._vocabulary_sync is not None:
            self._vocabulary_sync.cancel()
            self._vocabulary_sync = None
        self.vocabulary.stop()
        self.table.index.stop()
        await self.macros_store.save()
        await self.words_store.save()

    async def __aenter__(self) -> TranslatorSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def add_macro(self, name: str, expansion: str) -> None:
        """Register a macro and persist it."""
        self.table.add_macro(name, expansion)
        self.macros_store.update(lambda macros: {**macros, name: expansion})

    def learn(self, text: str) -> None:
        """Add the words of a sent message to the chat vocabulary."""
        self.vocabulary.add_sentence(text)

    def expand(self, text: str) -> str:
        return self.table.replace_text(text)
