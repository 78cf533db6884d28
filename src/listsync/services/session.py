"""DragSession — per-gesture state machine for moving items between lists.

States: ``idle -> dragging(item, source list) -> idle``.

Each transition mutates the local snapshot first (optimistic update),
writes store commands to the workspace channel without waiting for them,
and publishes the snapshot to display plugins. Transitions return a
ServiceResult and never raise: a failed event must not stop the input
source from delivering the next one.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from listsync.domain.items import (
    Item,
    ListCollection,
    TargetRef,
    find_containing_list,
    find_item,
    get_domain,
    index_of,
)
from listsync.domain.lists import ListId, ListResolutionError, parse_list_id
from listsync.domain.positions import (
    StoreCommand,
    cross_list_commands,
    membership_clear,
    reorder_command,
)
from listsync.domain.rules import validate_move
from listsync.domain.snapshot import (
    apply_cross_list_move,
    apply_intra_list_reorder,
    remove_item,
)
from listsync.domain.types import (
    EVENT_ADD_TO_QUEUE,
    EVENT_REORDER,
    DenialReason,
    DragPhase,
)
from listsync.services._helpers import now_ms
from listsync.services.base import BaseService
from listsync.services.contracts import (
    DragEndData,
    DragOverData,
    DragResetData,
    DragStartData,
    dump_validated,
)
from listsync.services.result import ServiceResult
from listsync.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from listsync.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class DragState:
    """Transient state of one gesture. Never persisted."""

    phase: DragPhase = DragPhase.IDLE
    active_item: Item | None = None
    source_list_id: str | None = None
    started_at: float | None = None

    def begin(self, item: Item, source_list_id: str, started_at: float) -> None:
        self.phase = DragPhase.DRAGGING
        self.active_item = item
        self.source_list_id = source_list_id
        self.started_at = started_at

    def clear(self) -> None:
        self.phase = DragPhase.IDLE
        self.active_item = None
        self.source_list_id = None
        self.started_at = None


class DragSession(BaseService):
    """Coordinates classification, validation, snapshot mutation and commands.

    Parameters:
        workspace: Provides the command channel, event bus and settings.
        lists: The local snapshot. Mutated in place; the same object is
            republished after each change.
        domain_of: Derives an item's domain grouping key from its URL.
        clock: Monotonic clock used for stale-session detection.
    """

    def __init__(
        self,
        workspace: Workspace,
        lists: ListCollection,
        *,
        domain_of: Callable[[str], str] = get_domain,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(workspace)
        self.lists = lists
        self.state = DragState()
        self._domain_of = domain_of
        self._clock = clock
        self._lists_cfg = workspace.settings.lists
        self._session_cfg = workspace.settings.session

    # ------------------------------------------------------------------
    # Read-only views for the display layer
    # ------------------------------------------------------------------

    @property
    def phase(self) -> DragPhase:
        return self.state.phase

    @property
    def active_item(self) -> Item | None:
        return self.state.active_item

    @property
    def active_list_id(self) -> str | None:
        return self.state.source_list_id

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @traced
    def start(self, item_id: str) -> ServiceResult:
        """Begin dragging *item_id* from whichever list holds it.

        Starting while another gesture is still open abandons that gesture.
        """
        op = "drag_start"
        warnings: list[str] = []
        abandoned: str | None = None

        if self.state.phase == DragPhase.DRAGGING:
            abandoned = self.state.active_item.id if self.state.active_item else None
            logger.warning("Abandoning unfinished drag of %s", abandoned)
            warnings.append(f"Abandoned unfinished drag of {abandoned}")
            self.state.clear()

        data: dict[str, Any] = {"item_id": item_id, "abandoned_item_id": abandoned}
        if not self.lists:
            data.update(started=False, reason="empty_collection")
            return self._ok(op, DragStartData, data, warnings)

        source = find_containing_list(self.lists, item_id)
        item = find_item(self.lists, item_id) if source is not None else None
        if source is None or item is None:
            logger.debug("Drag start ignored: %s is in no tracked list", item_id)
            data.update(started=False, reason="not_in_any_list")
            return self._ok(op, DragStartData, data, warnings)

        self.state.begin(item, source, self._clock())
        data.update(started=True, source_list_id=source)
        return self._ok(op, DragStartData, data, warnings)

    @traced
    def over(self, active_id: str, target: TargetRef | None) -> ServiceResult:
        """Hover *target*: move the active item across lists when allowed."""
        op = "drag_over"
        warnings: list[str] = []
        try:
            return self._over(op, active_id, target, warnings)
        except Exception as exc:
            logger.exception("drag_over failed for %s", active_id)
            return ServiceResult.failure(op, "TRANSITION_FAILED", str(exc), warnings=warnings)

    @traced
    def end(self, active_id: str, target: TargetRef | None) -> ServiceResult:
        """Drop the active item: reorder within its list, or settle membership.

        Always returns the session to idle and emits the session-complete
        telemetry event.
        """
        op = "drag_end"
        warnings: list[str] = []
        try:
            result = self._end(op, active_id, target, warnings)
        except Exception as exc:
            logger.exception("drag_end failed for %s", active_id)
            result = ServiceResult.failure(op, "TRANSITION_FAILED", str(exc))

        self.state.clear()
        self._publish(warnings)
        self._report(EVENT_REORDER, warnings)
        return result.model_copy(update={"warnings": list(warnings)})

    def reset(self, reason: str = "cancelled") -> ServiceResult:
        """Abandon the current gesture without issuing any command.

        Entry point for hosts whose input source can lose the end event.
        """
        op = "drag_reset"
        warnings: list[str] = []
        if self.state.phase == DragPhase.IDLE:
            return self._ok(op, DragResetData, {"reset": False, "reason": reason}, warnings)

        item_id = self.state.active_item.id if self.state.active_item else None
        logger.info("Drag of %s reset: %s", item_id, reason)
        self.state.clear()
        self._publish(warnings)
        return self._ok(
            op, DragResetData, {"reset": True, "item_id": item_id, "reason": reason}, warnings
        )

    def is_stale(self, now: float | None = None) -> bool:
        """Whether the open gesture has outlived ``session.stale_after_seconds``."""
        if self.state.phase == DragPhase.IDLE or self.state.started_at is None:
            return False
        elapsed = (self._clock() if now is None else now) - self.state.started_at
        return elapsed > self._session_cfg.stale_after_seconds

    def expire_stale(self, now: float | None = None) -> ServiceResult | None:
        """Reset the session if it is stale. Hosts call this from a timer."""
        if not self.is_stale(now):
            return None
        return self.reset("stale")

    # ------------------------------------------------------------------
    # Transition bodies
    # ------------------------------------------------------------------

    def _over(
        self,
        op: str,
        active_id: str,
        target: TargetRef | None,
        warnings: list[str],
    ) -> ServiceResult:
        item = self.state.active_item
        if self.state.phase == DragPhase.IDLE or item is None:
            return self._noop_over(op, "idle", warnings)
        if item.id != active_id:
            logger.warning("Hover for %s while dragging %s", active_id, item.id)
            return self._noop_over(op, "inactive_item", warnings)
        if target is None:
            return self._noop_over(op, "no_target", warnings)

        target_list = self._resolve_target(target)
        source = self.state.source_list_id
        if target_list is None:
            return self._noop_over(op, "unresolved_target", warnings)
        if target_list == source:
            return self._noop_over(op, "same_list", warnings)

        with trace_span("validate") as span:
            decision = validate_move(
                source,
                target_list,
                item,
                domain_of=self._domain_of,
                topic_marker=self._lists_cfg.topic_marker,
                domain_separator=self._lists_cfg.domain_separator,
            )
            if span:
                span.annotate("allowed", decision.allowed)

        base = {"item_id": item.id, "source_list_id": source, "target_list_id": target_list}

        if decision.reason == DenialReason.UNRESOLVED_TARGET or decision.target is None:
            return ServiceResult.failure(
                op,
                "UNRESOLVED_LIST",
                f"Could not resolve list {target_list!r}",
                warnings=warnings,
                **base,
            )

        if not decision.allowed:
            removed = False
            if decision.removes_from_source:
                if source is not None:
                    remove_item(self.lists, source, item.id)
                    removed = True
                self.state.source_list_id = None
                if removed:
                    self._publish(warnings)
            data = {
                **base,
                "moved": False,
                "denied": decision.reason,
                "removed_from_source": removed,
            }
            return self._ok(op, DragOverData, data, warnings)

        target_items = list(self.lists.get(target_list, []))
        index = self._target_index(target, target_items)

        try:
            commands = cross_list_commands(
                item, decision.target, target_items, index, now_ms=now_ms()
            )
        except ListResolutionError as exc:
            logger.error("Cross-list move of %s aborted: %s", item.id, exc)
            return ServiceResult.failure(op, "UNRESOLVED_LIST", str(exc), warnings=warnings, **base)

        with trace_span("apply_cross_list_move"):
            apply_cross_list_move(self.lists, item, source, target_list, index)
        self.state.source_list_id = target_list

        self._send(commands, warnings)
        self._publish(warnings)
        if decision.target.is_queue:
            self._report(EVENT_ADD_TO_QUEUE, warnings)

        data = {
            **base,
            "moved": True,
            "index": index,
            "commands": [c.model_dump(mode="json") for c in commands],
        }
        return self._ok(op, DragOverData, data, warnings)

    def _end(
        self,
        op: str,
        active_id: str,
        target: TargetRef | None,
        warnings: list[str],
    ) -> ServiceResult:
        item = self.state.active_item
        source = self.state.source_list_id
        if item is not None and item.id != active_id:
            logger.warning("Drop for %s while dragging %s", active_id, item.id)
            data = {"item_id": item.id, "list_id": source, "reason": "inactive_item"}
            return self._ok(op, DragEndData, data, warnings)

        base: dict[str, Any] = {"item_id": active_id, "list_id": source}
        if source is None:
            # Never started, or the item fell out of every tracked list.
            command = membership_clear(active_id)
            self._send([command], warnings)
            data = {
                **base,
                "membership_cleared": True,
                "commands": [command.model_dump(mode="json")],
            }
            return self._ok(op, DragEndData, data, warnings)

        if target is None:
            return self._ok(op, DragEndData, {**base, "reason": "no_target"}, warnings)
        if target.kind == "item" and target.id == active_id:
            return self._ok(op, DragEndData, {**base, "reason": "same_position"}, warnings)

        items = self.lists.get(source, [])
        old_index = index_of(items, active_id)
        if old_index is None:
            logger.warning("Active item %s missing from its list %s", active_id, source)
            return self._ok(op, DragEndData, {**base, "reason": "item_missing"}, warnings)

        new_index = self._drop_index(target, source, items)
        if new_index is None:
            return self._ok(op, DragEndData, {**base, "reason": "outside_list"}, warnings)
        if new_index == old_index:
            return self._ok(op, DragEndData, {**base, "reason": "same_position"}, warnings)

        try:
            list_id = self._parse(source)
            command = reorder_command(active_id, list_id, items, old_index, new_index)
        except ListResolutionError as exc:
            logger.error("Could not determine sort position to reorder list %s: %s", source, exc)
            return ServiceResult.failure(op, "UNRESOLVED_LIST", str(exc), warnings=warnings, **base)

        # Neighbors above come from the pre-move sequence; only now move locally.
        with trace_span("apply_intra_list_reorder"):
            apply_intra_list_reorder(self.lists, source, old_index, new_index)
        self._send([command], warnings)

        data = {
            **base,
            "reordered": True,
            "old_index": old_index,
            "new_index": new_index,
            "commands": [command.model_dump(mode="json")],
        }
        return self._ok(op, DragEndData, data, warnings)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parse(self, raw: str) -> ListId:
        return parse_list_id(
            raw,
            topic_marker=self._lists_cfg.topic_marker,
            domain_separator=self._lists_cfg.domain_separator,
        )

    def _resolve_target(self, target: TargetRef) -> str | None:
        """List id for a hovered container or for the list holding a hovered item."""
        if target.kind == "list":
            return target.id
        return find_containing_list(self.lists, target.id)

    def _target_index(self, target: TargetRef, target_items: list[Item]) -> int:
        if target.kind == "item":
            index = index_of(target_items, target.id)
            if index is not None:
                return index
        if self._session_cfg.container_insert == "start":
            return 0
        return len(target_items)

    def _drop_index(self, target: TargetRef, source: str, items: list[Item]) -> int | None:
        """Final index inside *source*, or None for a drop on another list."""
        if target.kind == "item":
            return index_of(items, target.id)
        if target.id != source:
            return None
        if self._session_cfg.container_insert == "start":
            return 0
        return len(items) - 1

    def _send(self, commands: list[StoreCommand], warnings: list[str]) -> None:
        """Hand commands to the channel. Delivery is the channel's concern."""
        channel = self._workspace.channel
        for command in commands:
            try:
                channel.send(command)
            except Exception:
                logger.warning(
                    "Channel refused %s for %s", command.kind, command.item_id, exc_info=True
                )
                warnings.append(f"Command {command.kind} for {command.item_id} was not sent")

    def _publish(self, warnings: list[str]) -> None:
        self._dispatch_event(
            "post_snapshot",
            {
                "lists": {list_id: list(items) for list_id, items in self.lists.items()},
                "active_item_id": self.state.active_item.id if self.state.active_item else None,
                "active_list_id": self.state.source_list_id,
            },
            warnings,
        )

    def _report(self, event_name: str, warnings: list[str]) -> None:
        self._dispatch_event("report_event", {"event_name": event_name}, warnings)

    def _noop_over(self, op: str, reason: str, warnings: list[str]) -> ServiceResult:
        data = {
            "moved": False,
            "item_id": self.state.active_item.id if self.state.active_item else None,
            "source_list_id": self.state.source_list_id,
            "reason": reason,
        }
        return self._ok(op, DragOverData, data, warnings)

    @staticmethod
    def _ok(
        op: str,
        contract: type[Any],
        data: dict[str, Any],
        warnings: list[str],
    ) -> ServiceResult:
        return ServiceResult(ok=True, op=op, data=dump_validated(contract, data), warnings=warnings)
