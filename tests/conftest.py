import pytest

from tlmode.storage import MemoryBackend, SqliteBackend, Storage


@pytest.fixture
def memory_storage() -> Storage:
    return Storage("test", MemoryBackend())


@pytest.fixture
async def sqlite_backend():
    """Connected in-memory SQLite backend."""
    backend = SqliteBackend(":memory:")
    await backend.connect()
    yield backend
    await backend.close()
