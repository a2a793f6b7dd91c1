"""Observable value containers and the subscription handles they return.

``Writable`` follows store semantics: ``subscribe`` delivers the current
value immediately, and ``set`` notifies every subscriber in registration
order unless an equal immutable value is set again.
"""

from __future__ import annotations

from typing import Callable, Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


class Subscription:
    """Handle returned by ``subscribe``; ``cancel`` stops further delivery."""

    __slots__ = ("_cancel",)

    def __init__(self, cancel: Callable[[], None] | None = None) -> None:
        self._cancel = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def cancel(self) -> None:
        """Stop delivery. Calling it more than once is a no-op."""
        cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()

    # Usable anywhere a plain unsubscribe callable is expected
    __call__ = cancel

    @classmethod
    def combine(cls, *subscriptions: Subscription) -> Subscription:
        """Bundle several subscriptions under one handle."""

        def cancel_all() -> None:
            for sub in subscriptions:
                sub.cancel()

        return cls(cancel_all)


def as_subscription(result: object) -> Subscription:
    """Normalize whatever a container's ``subscribe`` returned.

    Containers may hand back a ``Subscription``, a bare unsubscribe
    callable, or nothing at all.
    """
    if isinstance(result, Subscription):
        return result
    if callable(result):
        return Subscription(result)
    return Subscription()


@runtime_checkable
class Observable(Protocol[T]):
    """Externally-owned value container."""

    def get(self) -> T: ...

    def set(self, value: T) -> None: ...

    def subscribe(self, callback: Callable[[T], None]) -> Subscription | Callable[[], None] | None: ...


def _safe_not_equal(old: object, new: object) -> bool:
    if isinstance(old, (list, dict, set)) or callable(old):
        return True
    return old != new


class Writable(Generic[T]):
    """In-memory observable container."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._subscribers: list[Callable[[T], None]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if not _safe_not_equal(self._value, value):
            return
        self._value = value
        # Snapshot so callbacks may subscribe/cancel while we iterate
        for callback in list(self._subscribers):
            callback(value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        callback(self._value)
        return Subscription(unsubscribe)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class ReactiveSync(Generic[T]):
    """Marshals reads and writes to one observable container.

    Subscriptions made through the bridge are remembered so ``dispose``
    can release them together.
    """

    def __init__(self, container: Observable[T]) -> None:
        self._container = container
        self._subscriptions: list[Subscription] = []

    @property
    def container(self) -> Observable[T]:
        return self._container

    def get(self) -> T:
        return self._container.get()

    def set(self, value: T) -> None:
        self._container.set(value)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        sub = as_subscription(self._container.subscribe(callback))
        self._subscriptions.append(sub)
        return sub

    def dispose(self) -> None:
        subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            sub.cancel()
