"""List kinds, ordering attributes, and fixed list names.

A list id takes one of three shapes: a fixed name, a topic key (trailing
marker) or a URL domain (contains a separator). Each shape maps to
exactly one ordering attribute on the item.
"""

from __future__ import annotations

from enum import StrEnum


class ListKind(StrEnum):
    """Shape of a list id."""

    FIXED = "fixed"
    TOPIC = "topic"
    DOMAIN = "domain"


class FixedList(StrEnum):
    """Lists identified by a fixed name."""

    LIST = "list"
    QUEUE = "queue"
    FAVORITES = "favorites"


class OrderingAttribute(StrEnum):
    """Per-item sort position field, one per list type."""

    RECENCY = "recency_sort_position"
    QUEUE = "queue_sort_position"
    FAVORITES = "favorites_sort_position"
    TOPIC = "topic_sort_position"
    DOMAIN = "domain_sort_position"


class DenialReason(StrEnum):
    """Why a cross-list move was declined."""

    NOT_QUEUE_ADJACENT = "not_queue_adjacent"
    TOPIC_MISMATCH = "topic_mismatch"
    DOMAIN_MISMATCH = "domain_mismatch"
    UNRESOLVED_TARGET = "unresolved_target"


class DragPhase(StrEnum):
    """Drag session states."""

    IDLE = "idle"
    DRAGGING = "dragging"


TOPIC_MARKER = "_"
DOMAIN_SEPARATOR = "."

FIXED_ORDERING: dict[str, OrderingAttribute] = {
    FixedList.LIST: OrderingAttribute.RECENCY,
    FixedList.QUEUE: OrderingAttribute.QUEUE,
    FixedList.FAVORITES: OrderingAttribute.FAVORITES,
}

KIND_ORDERING: dict[str, OrderingAttribute] = {
    ListKind.TOPIC: OrderingAttribute.TOPIC,
    ListKind.DOMAIN: OrderingAttribute.DOMAIN,
}

# Denials that still drop the item out of its source list.
GROUPING_DENIALS: frozenset[str] = frozenset(
    {DenialReason.TOPIC_MISMATCH, DenialReason.DOMAIN_MISMATCH}
)

# Telemetry event names.
EVENT_ADD_TO_QUEUE = "addItemToQueue"
EVENT_REORDER = "reorderItems"
