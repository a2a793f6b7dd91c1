"""Versioned key-value persistence and stores that mirror it.

A ``PersistenceBackend`` is chosen once at startup and handed to
``Storage``, which namespaces every key by a version tag. ``SyncStore``
is an observable container whose writes are persisted through a
``Storage``.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from pathlib import Path
from typing import Any, Callable, Protocol, TypeVar

import aiosqlite

from tlmode.reactive import Writable

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS storage (
    key TEXT PRIMARY KEY,
    value_json TEXT NOT NULL
);
"""


class PersistenceBackend(Protocol):
    """Raw async key-value access."""

    async def raw_get(self, key: str) -> Any:
        """Return the stored value, or None if absent."""
        ...

    async def raw_set(self, key: str, value: Any) -> None: ...


class MemoryBackend:
    """Process-local backend; values are deep-copied in and out."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    async def raw_get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def raw_set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileBackend:
    """All keys kept in one JSON document on disk.

    File access runs in a worker thread. Writes go to a sibling ``.tmp``
    file that then replaces the document, so readers never see a partial
    file; writes from one backend are serialized. A file that cannot be
    parsed is left untouched: reads treat it as empty and writes are
    skipped.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._load_error: Exception | None = None
        self._write_lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read storage file %s: %s", self.path, e)
            self._load_error = e
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring storage file %s: not a JSON object", self.path)
            self._load_error = ValueError("storage file is not a JSON object")
            return {}
        self._load_error = None
        return data

    def _write_key(self, key: str, value: Any) -> None:
        # Re-read to pick up writes made by other processes
        data = self._read()
        if self._load_error:
            return
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        tmp_path.replace(self.path)

    async def raw_get(self, key: str) -> Any:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def raw_set(self, key: str, value: Any) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self._write_key, key, value)


class SqliteBackend:
    """Key-value table in SQLite via aiosqlite."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the connection and ensure the table exists."""
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Storage database not connected. Call connect() first.")
        return self._conn

    async def raw_get(self, key: str) -> Any:
        cursor = await self.conn.execute(
            "SELECT value_json FROM storage WHERE key = ?", (key,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return json.loads(row["value_json"])

    async def raw_set(self, key: str, value: Any) -> None:
        await self.conn.execute(
            """INSERT INTO storage (key, value_json) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET value_json=excluded.value_json""",
            (key, json.dumps(value)),
        )
        await self.conn.commit()


_BACKENDS: dict[str, Callable[..., PersistenceBackend]] = {
    "memory": MemoryBackend,
    "json": JsonFileBackend,
    "sqlite": SqliteBackend,
}


def create_backend(kind: str, *args: Any, **kwargs: Any) -> PersistenceBackend:
    """Build the backend registered under ``kind``."""
    try:
        factory = _BACKENDS[kind]
    except KeyError:
        raise ValueError(
            f"Unknown storage backend {kind!r}; expected one of {sorted(_BACKENDS)}"
        ) from None
    return factory(*args, **kwargs)


def versioned_key(version: str, key: str) -> str:
    return f"{version}$${key}"


class Storage:
    """Version-namespaced view over a backend."""

    def __init__(self, version: str, backend: PersistenceBackend) -> None:
        self.version = version
        self.backend = backend

    async def get(self, key: str, version: str = "") -> Any:
        return await self.backend.raw_get(versioned_key(version or self.version, key))

    async def set(self, key: str, value: Any, version: str = "") -> None:
        await self.backend.raw_set(versioned_key(version or self.version, key), value)


class SyncStore(Writable[T]):
    """Observable value persisted under ``name``.

    Every ``set``, ``update`` and ``reset`` is written through. Inside a
    running event loop the write is started as a task; outside one it is
    held until ``save()``. ``load()`` pulls the stored value, if any.
    """

    def __init__(self, name: str, default: T, storage: Storage) -> None:
        super().__init__(default)
        self.name = name
        self.default = default
        self._storage = storage
        self._saves: set[asyncio.Task[None]] = set()
        self._dirty = False

    async def load(self) -> T:
        value = await self._storage.get(self.name)
        if value is not None:
            super().set(value)
        return self.get()

    def set(self, value: T) -> None:
        super().set(value)
        self._persist()

    def reset(self) -> None:
        self.set(copy.deepcopy(self.default))

    async def save(self) -> None:
        """Wait for started writes and flush any held one."""
        if self._saves:
            await asyncio.gather(*self._saves)
        if self._dirty:
            self._dirty = False
            await self._storage.set(self.name, self.get())

    def _persist(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._dirty = True
            return
        task = loop.create_task(self._storage.set(self.name, self.get()))
        self._saves.add(task)
        task.add_done_callback(self._saves.discard)
