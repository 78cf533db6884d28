"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, listsync.toml only contains
overrides. A workspace without a config file runs on defaults alone.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# --- listsync.toml sections ---


class ListsConfig(BaseModel):
    """[lists] section — how list ids are classified."""

    model_config = {"frozen": True}

    topic_marker: str = "_"
    domain_separator: str = "."


class SessionConfig(BaseModel):
    """[session] section — drag session behavior."""

    model_config = {"frozen": True}

    stale_after_seconds: float = 10.0
    container_insert: Literal["start", "end"] = "end"


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    path: str = ".listsync/listsync.db"


class DispatchConfig(BaseModel):
    """[dispatch] section — outbound command and event delivery."""

    model_config = {"frozen": True}

    sync: bool = False
    max_retries: int = 3


class ListsyncConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    lists: ListsConfig = Field(default_factory=ListsConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
