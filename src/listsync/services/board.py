"""BoardService — store-backed list operations and drag replay.

``replay`` drives a :class:`DragSession` over a recorded event stream the
way a drag surface would: the snapshot is loaded from the store, every
event runs against it, commands flow to the store through the workspace
channel, and the converged store state is read back at the end.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, ValidationError, model_validator

from listsync.domain.items import Item, ListCollection, TargetRef, collection_ids
from listsync.domain.lists import ListResolutionError
from listsync.services._helpers import item_id_for
from listsync.services.base import BaseService
from listsync.services.contracts import ReplayData, ShowListsData, dump_validated
from listsync.services.result import ServiceResult
from listsync.services.session import DragSession
from listsync.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

DEFAULT_LISTS: tuple[str, ...] = ("queue", "list")


class DragEvent(BaseModel):
    """One recorded input event.

    JSON shape: ``{"event": "over", "item": "itm_1", "target": {"list": "queue"}}``
    or ``{"target": {"item": "itm_2"}}``.
    """

    event: Literal["start", "over", "end", "reset"]
    item: str | None = None
    target: TargetRef | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_target(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        target = data.get("target")
        if isinstance(target, dict) and "kind" not in target:
            if "list" in target:
                data = {**data, "target": {"kind": "list", "id": target["list"]}}
            elif "item" in target:
                data = {**data, "target": {"kind": "item", "id": target["item"]}}
        return data

    @model_validator(mode="after")
    def _require_item(self) -> DragEvent:
        if self.event != "reset" and not self.item:
            msg = f"'{self.event}' event requires an item"
            raise ValueError(msg)
        return self


def parse_events(lines: Iterable[str]) -> list[DragEvent]:
    """Parse JSON-lines drag events, skipping blank lines and ``#`` comments.

    Raises:
        ValueError: On the first malformed line, naming its line number.
    """
    events: list[DragEvent] = []
    for lineno, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            events.append(DragEvent.model_validate(json.loads(stripped)))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"line {lineno}: {exc}"
            raise ValueError(msg) from exc
    return events


class BoardService(BaseService):
    """Items and lists held by the workspace store."""

    @traced
    def add_item(
        self,
        title: str,
        *,
        url: str = "",
        topic_id: str | None = None,
        queued: bool = False,
        favorite: bool = False,
    ) -> ServiceResult:
        op = "add_item"
        item_id = item_id_for(url, title)
        store = self._workspace.store

        if store.get_item(item_id) is not None:
            return ServiceResult.failure(
                op, "DUPLICATE", f"Item already exists: {item_id}", item_id=item_id
            )

        item = store.add_item(
            Item(
                id=item_id,
                title=title,
                url=url,
                topic_id=topic_id,
                is_queued=queued,
                is_favorite=favorite,
            )
        )
        return ServiceResult(ok=True, op=op, data=item.model_dump(mode="json"))

    @traced
    def show(self, list_ids: Iterable[str] = DEFAULT_LISTS) -> ServiceResult:
        op = "show_lists"
        try:
            lists = self._workspace.store.load_lists(list_ids)
        except ListResolutionError as exc:
            return ServiceResult.failure(op, "UNRESOLVED_LIST", str(exc), list_id=exc.raw)

        data = {
            "count": sum(len(items) for items in lists.values()),
            "lists": {
                list_id: [item.model_dump(mode="json") for item in items]
                for list_id, items in lists.items()
            },
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(ShowListsData, data))

    @traced
    def replay(
        self,
        events: list[DragEvent],
        list_ids: Iterable[str] = DEFAULT_LISTS,
    ) -> ServiceResult:
        """Run *events* through a drag session against the store's lists."""
        op = "replay"
        list_ids = list(list_ids)
        warnings: list[str] = []

        try:
            lists: ListCollection = self._workspace.store.load_lists(list_ids)
        except ListResolutionError as exc:
            return ServiceResult.failure(op, "UNRESOLVED_LIST", str(exc), list_id=exc.raw)

        session = DragSession(self._workspace, lists)
        sent_before = self._delivered()
        transitions: list[dict[str, Any]] = []
        commands_sent = 0

        with trace_span("events") as span:
            for event in events:
                result = self._run(session, event)
                commands_sent += len(result.data.get("commands", []))
                warnings.extend(result.warnings)
                transitions.append(
                    {
                        "event": event.event,
                        "ok": result.ok,
                        "data": result.data,
                        "error": result.error.model_dump() if result.error else None,
                    }
                )
            if span:
                span.annotate("events", len(events))

        if session.phase != "idle":
            warnings.append("Event stream ended mid-drag; session reset")
            session.reset("stream_ended")

        self._workspace.drain()
        converged = self._workspace.store.load_lists(list_ids)
        if collection_ids(converged) != collection_ids(session.lists):
            warnings.append("Store order differs from the local snapshot")

        data = {
            "events": len(events),
            "failed": sum(1 for t in transitions if not t["ok"]),
            "commands_sent": commands_sent,
            "commands_delivered": self._delivered() - sent_before,
            "transitions": transitions,
            "lists": collection_ids(converged),
        }
        return ServiceResult(
            ok=True, op=op, data=dump_validated(ReplayData, data), warnings=warnings
        )

    @staticmethod
    def _run(session: DragSession, event: DragEvent) -> ServiceResult:
        if event.event == "reset":
            return session.reset()
        if event.item is None:
            return ServiceResult.failure(
                f"drag_{event.event}", "INVALID_EVENT", f"{event.event} event without an item"
            )
        if event.event == "start":
            return session.start(event.item)
        if event.event == "over":
            return session.over(event.item, event.target)
        return session.end(event.item, event.target)

    def _delivered(self) -> int:
        return int(getattr(self._workspace.channel, "delivered", 0))
