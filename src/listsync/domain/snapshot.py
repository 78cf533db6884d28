"""In-place mutation of the local list snapshot.

All operations mutate *collection* in place and return the same object
so the caller can republish it. They are synchronous and never wait on
the store. Relative order of untouched items is always preserved.
"""

from __future__ import annotations

from typing import TypeVar

from listsync.domain.items import Item, ListCollection

T = TypeVar("T")


def array_move(items: list[T], old_index: int, new_index: int) -> list[T]:
    """Return a copy of *items* with the element at *old_index* moved to *new_index*.

    Examples:
        >>> array_move(["A", "B", "C", "D"], 0, 2)
        ['B', 'C', 'A', 'D']
        >>> array_move(["A", "B", "C", "D"], 3, 1)
        ['A', 'D', 'B', 'C']
    """
    moved = list(items)
    if not moved:
        return moved
    old_index = _clamp(old_index, len(moved) - 1)
    new_index = _clamp(new_index, len(moved) - 1)
    moved.insert(new_index, moved.pop(old_index))
    return moved


def remove_item(collection: ListCollection, list_id: str, item_id: str) -> ListCollection:
    """Drop *item_id* from *list_id* (no-op when either is absent)."""
    if list_id in collection:
        collection[list_id] = [item for item in collection[list_id] if item.id != item_id]
    return collection


def apply_cross_list_move(
    collection: ListCollection,
    item: Item,
    source_list_id: str | None,
    target_list_id: str,
    target_index: int,
) -> ListCollection:
    """Move *item* out of its source list and into the target at *target_index*.

    The index is clamped to the target's bounds; a missing target list is
    created.
    """
    if source_list_id is not None:
        remove_item(collection, source_list_id, item.id)

    target = [existing for existing in collection.get(target_list_id, []) if existing.id != item.id]
    index = _clamp(target_index, len(target))
    collection[target_list_id] = [*target[:index], item, *target[index:]]
    return collection


def apply_intra_list_reorder(
    collection: ListCollection,
    list_id: str,
    old_index: int,
    new_index: int,
) -> ListCollection:
    """Move the item at *old_index* to *new_index* within one list."""
    if list_id in collection and old_index != new_index:
        collection[list_id] = array_move(collection[list_id], old_index, new_index)
    return collection


def _clamp(index: int, upper: int) -> int:
    return max(0, min(index, upper))
