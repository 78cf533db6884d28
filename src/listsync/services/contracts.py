"""Typed payload contracts for drag transitions and board operations.

These models validate payload shapes before they leave the service layer
so key regressions fail fast in tests.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class DragStartData(BaseModel):
    """Payload contract for ``DragSession.start``."""

    started: bool
    item_id: str
    source_list_id: str | None = None
    reason: str | None = None
    abandoned_item_id: str | None = None


class DragOverData(BaseModel):
    """Payload contract for ``DragSession.over``."""

    moved: bool
    item_id: str | None = None
    source_list_id: str | None = None
    target_list_id: str | None = None
    index: int | None = None
    denied: str | None = None
    removed_from_source: bool = False
    reason: str | None = None
    commands: list[dict[str, Any]] = Field(default_factory=list)


class DragEndData(BaseModel):
    """Payload contract for ``DragSession.end``."""

    item_id: str | None = None
    list_id: str | None = None
    reordered: bool = False
    membership_cleared: bool = False
    old_index: int | None = None
    new_index: int | None = None
    reason: str | None = None
    commands: list[dict[str, Any]] = Field(default_factory=list)


class DragResetData(BaseModel):
    """Payload contract for ``DragSession.reset``."""

    reset: bool
    item_id: str | None = None
    reason: str


class BoardItem(BaseModel):
    """One item row in a board listing."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    url: str
    topic_id: str | None = None
    is_queued: bool
    is_favorite: bool


class ShowListsData(BaseModel):
    """Payload contract for ``BoardService.show``."""

    count: int
    lists: dict[str, list[BoardItem]]


class ReplayData(BaseModel):
    """Payload contract for ``BoardService.replay``."""

    events: int
    failed: int
    commands_sent: int
    commands_delivered: int
    transitions: list[dict[str, Any]]
    lists: dict[str, list[str]]
