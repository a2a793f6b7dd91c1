"""Translator-mode settings.

Persisted with camelCase keys; Python code uses the snake_case names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

STORAGE_VERSION = "0.0.1"

# Zero-width joiner appended after a substitution so the editor leaves the
# trailing boundary character alone
ZERO_WIDTH_MARKER = "\u200d"

DEFAULT_MACROS: dict[str, str] = {
    "en": "[en]",
    "peko": "pekora",
    "ero": "erofi",
}


class TranslatorSettings(BaseModel):
    """Keys, characters and default macros for one editor session."""

    model_config = ConfigDict(populate_by_name=True)

    trigger: str = Field(default="/", alias="triggerChar")
    confirm_key: str = Field(default="tab", alias="confirmKey")
    boundary_key: str = Field(default="space", alias="boundaryKey")
    boundary_char: str = Field(default=" ", alias="boundaryChar")
    marker: str = ZERO_WIDTH_MARKER
    storage_version: str = Field(default=STORAGE_VERSION, alias="storageVersion")
    macros: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_MACROS))

    @field_validator("trigger", "boundary_char")
    @classmethod
    def _single_char(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("must be a single character")
        return value

    @field_validator("trigger")
    @classmethod
    def _not_word_char(cls, value: str) -> str:
        if value.isalnum() or value == "_":
            raise ValueError("trigger must not be a word character")
        return value
