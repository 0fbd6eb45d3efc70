"""Library settings sourced from the environment.

Settings only affect presentation (logging and how documents are written);
they never change how a configuration is decoded or how signing policy is
resolved.

Environment variables use the ``REGISTRYKIT_`` prefix, for example
``REGISTRYKIT_LOG_LEVEL=debug`` or ``REGISTRYKIT_DOCUMENT_FORMAT=yaml``.
"""

from __future__ import annotations

import logging
import threading
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "RegistryKitSettings",
    "get_settings",
    "invalidate_settings_cache",
]

DocumentFormat = Literal["json", "yaml"]


class RegistryKitSettings(BaseSettings):
    """Environment-derived settings for registry configuration tooling."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    emit_json_logs: bool = Field(
        default=False,
        description="Emit JSON-formatted console logs",
    )
    document_format: DocumentFormat = Field(
        default="json",
        description="Format used when writing a document without a recognised suffix",
    )
    indent: int = Field(default=2, ge=0, le=8, description="Indentation of written documents")
    sort_keys: bool = Field(
        default=False,
        description="Sort mapping keys when writing documents",
    )

    model_config = SettingsConfigDict(
        env_prefix="REGISTRYKIT_", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Normalize and validate logging level."""
        upper = str(v).upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}, got '{v}'")
        return upper

    @field_validator("document_format", mode="before")
    @classmethod
    def normalize_format(cls, v: str) -> str:
        return str(v).lower()

    def level_int(self) -> int:
        """Convert level string to logging module integer."""
        return getattr(logging, self.log_level, logging.INFO)


_SETTINGS_CACHE: Optional[RegistryKitSettings] = None
_SETTINGS_LOCK = threading.Lock()


def get_settings() -> RegistryKitSettings:
    """Return memoised settings read from the current environment."""

    global _SETTINGS_CACHE  # noqa: PLW0603

    with _SETTINGS_LOCK:
        if _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = RegistryKitSettings()
        return _SETTINGS_CACHE


def invalidate_settings_cache() -> None:
    """Drop memoised settings so the next call re-reads the environment."""

    global _SETTINGS_CACHE  # noqa: PLW0603

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None
