"""tlmode: live macro expansion and word completion for chat inputs."""

# Editor bridge
from tlmode.bridge import EditorBridge

# Macro table
from tlmode.macros import MacroTable

# Observable containers
from tlmode.reactive import Observable, ReactiveSync, Subscription, Writable

# Session wiring
from tlmode.session import TranslatorSession

# Settings
from tlmode.settings import DEFAULT_MACROS, STORAGE_VERSION, ZERO_WIDTH_MARKER, TranslatorSettings

# Persistence
from tlmode.storage import (
    JsonFileBackend,
    MemoryBackend,
    PersistenceBackend,
    SqliteBackend,
    Storage,
    SyncStore,
    create_backend,
)

# Token scanning and substitution
from tlmode.substitution import (
    TriggerScan,
    TriggerToken,
    replace_trailing,
    scan_triggers,
    substitute,
    trailing_token,
)

# Editable surfaces
from tlmode.surface import EditableSurface, Key, KeyEvent, TextSurface, matches_key

# Vocabulary
from tlmode.word_index import WordIndex

__all__ = [
    "DEFAULT_MACROS",
    "STORAGE_VERSION",
    "ZERO_WIDTH_MARKER",
    "EditableSurface",
    "EditorBridge",
    "JsonFileBackend",
    "Key",
    "KeyEvent",
    "MacroTable",
    "MemoryBackend",
    "Observable",
    "PersistenceBackend",
    "ReactiveSync",
    "SqliteBackend",
    "Storage",
    "Subscription",
    "SyncStore",
    "TextSurface",
    "TranslatorSession",
    "TranslatorSettings",
    "TriggerScan",
    "TriggerToken",
    "WordIndex",
    "Writable",
    "create_backend",
    "matches_key",
    "replace_trailing",
    "scan_triggers",
    "substitute",
    "trailing_token",
]
