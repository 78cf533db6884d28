"""List ids as a tagged variant, and the sort key each list orders by.

``parse_list_id`` decides the variant once from the raw key:

- ``"list"``, ``"queue"``, ``"favorites"`` -> ``Fixed(name)``
- trailing topic marker (``"sports_"``) -> ``Topic(key)``
- contains the domain separator (``"example.com"``) -> ``Domain(key)``

Anything else is a :class:`ListResolutionError`.
"""

from __future__ import annotations

from pydantic import BaseModel

from listsync.domain.types import (
    DOMAIN_SEPARATOR,
    FIXED_ORDERING,
    KIND_ORDERING,
    TOPIC_MARKER,
    FixedList,
    ListKind,
    OrderingAttribute,
)


class ListResolutionError(ValueError):
    """A list id could not be resolved to a list kind or ordering attribute."""

    def __init__(self, raw: str, reason: str = "unrecognized list id") -> None:
        super().__init__(f"Could not resolve list {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class ListId(BaseModel):
    """A parsed list identifier: ``Fixed(name) | Topic(key) | Domain(key)``."""

    model_config = {"frozen": True}

    kind: ListKind
    key: str

    def __str__(self) -> str:
        return self.key

    @property
    def is_queue(self) -> bool:
        return self.kind == ListKind.FIXED and self.key == FixedList.QUEUE

    @property
    def is_grouping(self) -> bool:
        """Topic and domain lists only accept matching items."""
        return self.kind in (ListKind.TOPIC, ListKind.DOMAIN)

    @classmethod
    def fixed(cls, name: str) -> ListId:
        if name not in set(FixedList):
            raise ListResolutionError(name, "not a fixed list name")
        return cls(kind=ListKind.FIXED, key=name)

    @classmethod
    def topic(cls, key: str) -> ListId:
        return cls(kind=ListKind.TOPIC, key=key)

    @classmethod
    def domain(cls, key: str) -> ListId:
        return cls(kind=ListKind.DOMAIN, key=key)


def parse_list_id(
    raw: str | ListId,
    *,
    topic_marker: str = TOPIC_MARKER,
    domain_separator: str = DOMAIN_SEPARATOR,
) -> ListId:
    """Classify a raw list key into its tagged variant.

    Raises:
        ListResolutionError: If *raw* matches none of the recognized shapes.
    """
    if isinstance(raw, ListId):
        return raw
    if not raw:
        raise ListResolutionError(raw, "empty list id")
    if raw in set(FixedList):
        return ListId(kind=ListKind.FIXED, key=raw)
    if raw.endswith(topic_marker):
        return ListId(kind=ListKind.TOPIC, key=raw)
    if domain_separator in raw:
        return ListId(kind=ListKind.DOMAIN, key=raw)
    raise ListResolutionError(raw)


def resolve_sort_key(list_id: str | ListId) -> OrderingAttribute:
    """Return the ordering attribute used to sort *list_id*.

    Raises:
        ListResolutionError: If the list id is not recognized.
    """
    parsed = parse_list_id(list_id)
    if parsed.kind == ListKind.FIXED:
        return FIXED_ORDERING[parsed.key]
    return KIND_ORDERING[parsed.kind]
