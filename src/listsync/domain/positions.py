"""Store commands for membership and relative position updates.

A positional command names the two neighbors that should bound the item
after the move; either may be None, meaning the list boundary. Commands
are idempotent: the same neighbor pair always yields the same order.

INVARIANT: Neighbors are computed from the sequence *before* the local
snapshot is mutated. Computing them afterwards yields wrong boundaries.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from listsync.domain.items import Item
from listsync.domain.lists import ListId, resolve_sort_key
from listsync.domain.types import OrderingAttribute


class MembershipUpdate(BaseModel):
    """Set or clear queue membership of an item."""

    model_config = {"frozen": True}

    kind: Literal["membership"] = "membership"
    item_id: str
    is_queued: bool
    queue_sort_position: float | None = None


class PositionUpdate(BaseModel):
    """Place an item between two neighbors in the order of one attribute."""

    model_config = {"frozen": True}

    kind: Literal["position"] = "position"
    item_id: str
    before_id: str | None = None
    after_id: str | None = None
    sort_position: OrderingAttribute


StoreCommand = MembershipUpdate | PositionUpdate


def neighbors_at(items: list[Item], index: int) -> tuple[str | None, str | None]:
    """Return ``(before, after)`` ids for an insertion at *index*.

    The item currently at *index* becomes the "after" neighbor and the one
    preceding it the "before" neighbor.

    Examples:
        >>> neighbors_at([], 0)
        (None, None)
    """
    before = items[index - 1].id if 0 < index <= len(items) else None
    after = items[index].id if 0 <= index < len(items) else None
    return before, after


def shifted_index(old_index: int, new_index: int) -> int:
    """Boundary index for an intra-list move, evaluated on the pre-move sequence.

    Moving forward removes the item first, shifting every later item one
    slot to the left, so the boundary sits one past *new_index*.
    """
    return new_index + 1 if old_index < new_index else new_index


def membership_clear(item_id: str) -> MembershipUpdate:
    """Command for an item that left every tracked list."""
    return MembershipUpdate(item_id=item_id, is_queued=False)


def cross_list_commands(
    item: Item,
    target: ListId,
    target_items: list[Item],
    target_index: int,
    *,
    now_ms: float,
) -> list[StoreCommand]:
    """Membership update followed by a positional update for a cross-list move.

    *target_items* must be the target sequence before insertion.

    Raises:
        ListResolutionError: If the target's ordering attribute cannot be
            resolved.
    """
    sort_position = resolve_sort_key(target)
    before, after = neighbors_at(target_items, target_index)
    return [
        MembershipUpdate(
            item_id=item.id,
            is_queued=target.is_queue,
            queue_sort_position=now_ms if target.is_queue else None,
        ),
        PositionUpdate(
            item_id=item.id,
            before_id=before,
            after_id=after,
            sort_position=sort_position,
        ),
    ]


def reorder_command(
    item_id: str,
    list_id: str | ListId,
    items: list[Item],
    old_index: int,
    new_index: int,
) -> PositionUpdate:
    """Positional update for moving *item_id* within one list.

    Raises:
        ListResolutionError: If the list's ordering attribute cannot be
            resolved.
    """
    sort_position = resolve_sort_key(list_id)
    before, after = neighbors_at(items, shifted_index(old_index, new_index))
    return PositionUpdate(
        item_id=item_id,
        before_id=before,
        after_id=after,
        sort_position=sort_position,
    )
