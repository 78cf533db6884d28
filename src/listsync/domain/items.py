"""Items, the list collection snapshot, and list classification.

INVARIANT: An item id appears in at most one list of a ListCollection.
Classification helpers are total: an item may legitimately belong to no
tracked list, so lookups return None instead of raising.
"""

from __future__ import annotations

from typing import Literal
from urllib.parse import urlsplit

from pydantic import BaseModel

from listsync.domain.types import OrderingAttribute


class Item(BaseModel):
    """A single entry that can appear in lists. Owned by the store."""

    model_config = {"frozen": True}

    id: str
    title: str = ""
    url: str = ""
    topic_id: str | None = None
    is_queued: bool = False
    is_favorite: bool = False
    recency_sort_position: float | None = None
    queue_sort_position: float | None = None
    favorites_sort_position: float | None = None
    topic_sort_position: float | None = None
    domain_sort_position: float | None = None

    def sort_position(self, attribute: OrderingAttribute) -> float | None:
        """Value of the given ordering attribute."""
        return getattr(self, attribute.value)


# list id -> ordered items; insertion order is display order
ListCollection = dict[str, list[Item]]


class TargetRef(BaseModel):
    """What the pointer is over: a list container or another item."""

    model_config = {"frozen": True}

    kind: Literal["list", "item"]
    id: str

    @classmethod
    def of_list(cls, list_id: str) -> TargetRef:
        return cls(kind="list", id=list_id)

    @classmethod
    def of_item(cls, item_id: str) -> TargetRef:
        return cls(kind="item", id=item_id)


def get_domain(url: str) -> str:
    """Derive the domain grouping key of a URL.

    Examples:
        >>> get_domain("https://www.example.com/post/1")
        'example.com'
        >>> get_domain("blog.example.org/feed")
        'blog.example.org'
        >>> get_domain("")
        ''
    """
    if not url:
        return ""
    netloc = urlsplit(url if "://" in url else f"//{url}").hostname or ""
    if netloc.startswith("www."):
        netloc = netloc[4:]
    return netloc


def find_containing_list(collection: ListCollection, item_id: str) -> str | None:
    """Return the id of the first list containing *item_id*, or None."""
    for list_id, items in collection.items():
        if any(item.id == item_id for item in items):
            return list_id
    return None


def find_item(collection: ListCollection, item_id: str) -> Item | None:
    """Return the item with *item_id* from whichever list holds it."""
    for items in collection.values():
        for item in items:
            if item.id == item_id:
                return item
    return None


def index_of(items: list[Item], item_id: str) -> int | None:
    """Position of *item_id* within one list sequence, or None."""
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None


def collection_ids(collection: ListCollection) -> dict[str, list[str]]:
    """Project a collection onto item ids (for display and payloads)."""
    return {list_id: [item.id for item in items] for list_id, items in collection.items()}
