"""Editor bridge: drives macro substitution and completion from an editor.

Key-down and content-mutation events of one editable surface decide when to
substitute macros and when to refresh the completion candidates. Results are
written back on a later event-loop tick so the write never happens inside
the mutation notification that caused it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from tlmode.macros import MacroTable
from tlmode.reactive import Observable, ReactiveSync, Subscription
from tlmode.settings import TranslatorSettings
from tlmode.surface import EditableSurface, KeyEvent, matches_key

logger = logging.getLogger(__name__)


class EditorBridge:
    """Connects a ``MacroTable`` to one editable surface.

    Published state lives in three observable containers owned by the
    caller: the candidate list, a mirror of the surface text, and the
    candidate currently focused in the UI (``None`` when nothing is).
    """

    def __init__(
        self,
        surface: EditableSurface,
        table: MacroTable,
        recommendations: Observable[list[str]],
        content: Observable[str],
        focused: Observable[str | None],
        *,
        settings: TranslatorSettings | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.surface = surface
        self.table = table
        self.settings = settings or TranslatorSettings()
        self._recommendations = ReactiveSync(recommendations)
        self._content = ReactiveSync(content)
        self._focused = ReactiveSync(focused)
        self._loop = loop

        self._last_key: KeyEvent | None = None
        self._subscriptions: list[Subscription] = []
        self._pending: set[asyncio.Handle] = set()

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @property
    def attached(self) -> bool:
        return bool(self._subscriptions)

    def attach(self) -> None:
        """Start listening to the surface.

        Whatever wiring the surface already carries, ours included, is
        torn down first.
        """
        hook = self.surface.teardown_hook
        if hook is not None:
            hook()
        self._subscriptions = [
            self.surface.on_key_down(self._on_key_down),
            self.surface.observe(self._on_mutation),
        ]
        self.surface.teardown_hook = self.detach
        logger.debug("Editor bridge attached")

    def detach(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for sub in subscriptions:
            sub.cancel()
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()
        self._last_key = None
        if self.surface.teardown_hook == self.detach:
            self.surface.teardown_hook = None
        if subscriptions:
            logger.debug("Editor bridge detached")

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_key_down(self, event: KeyEvent) -> None:
        self._last_key = event
        if not matches_key(event, self.settings.confirm_key):
            return
        if len(self._recommendations.get()) == 1:
            self.substitute()
        # Confirming may change the text length; fix the caret once the
        # editor has applied its own handling of the key
        self._defer(lambda: self._defer(self.surface.caret_to_end))

    def _on_mutation(self, _text: str) -> None:
        if matches_key(self._last_key, self.settings.boundary_key):
            # One substitution per boundary key press
            self._last_key = None
            self.substitute()
        self.update_recommendations()
        self.update_content()

    # ------------------------------------------------------------------
    # Substitution
    # ------------------------------------------------------------------

    def resolve(self, text: str) -> str:
        """Expand ``text`` the way a confirmation would right now."""
        focused = self._focused.get()
        if focused:
            return self.table.complete_end(text, self.table.get_macro(focused))
        return self.table.replace_text(text)

    def substitute(self) -> None:
        """Expand the surface text and schedule the write-back."""
        boundary = self.settings.boundary_char
        source = self.surface.get_text()
        stripped = source[: -len(boundary)] if source.endswith(boundary) else source
        new_text = self.resolve(stripped) + boundary
        self._defer(lambda: self._write_back(source, new_text))

    def _write_back(self, source: str, new_text: str) -> None:
        current = self.surface.get_text()
        if new_text == source or new_text == current:
            return
        if not current.startswith(source):
            logger.debug("Dropping stale substitution for %r", source)
            return
        # Keep whatever was typed after the substitution was computed
        tail = current[len(source) :]
        self.surface.set_text(new_text + self.settings.marker + tail)
        self.surface.caret_to_end()
        self.update_recommendations()

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def update_recommendations(self) -> None:
        self._recommendations.set(self.table.complete(self.surface.get_text()))

    def update_content(self) -> None:
        self._content.set(self.surface.get_text())

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _defer(self, fn: Callable[[], None]) -> None:
        """Run ``fn`` on the next loop tick, or right away without a loop."""
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                fn()
                return

        def run() -> None:
            self._pending.discard(handle)
            fn()

        handle = loop.call_soon(run)
        self._pending.add(handle)

    @property
    def pending_tasks(self) -> int:
        return len(self._pending)
