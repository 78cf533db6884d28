"""Cross-list move rules.

Rules are evaluated in order:

1. Same source and target: an intra-list reorder, always allowed.
2. One side must be the queue. Other combinations are a product
   restriction, not a technical one.
3. A topic target only accepts items of that topic.
4. A domain target only accepts items whose URL domain matches.

Denials from rules 3-4 still drop the item out of its source list
while it hovers the non-matching group (``removes_from_source``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel

from listsync.domain.items import Item, get_domain
from listsync.domain.lists import ListId, ListResolutionError, parse_list_id
from listsync.domain.types import (
    DOMAIN_SEPARATOR,
    GROUPING_DENIALS,
    TOPIC_MARKER,
    DenialReason,
    FixedList,
    ListKind,
)

logger = logging.getLogger(__name__)


class MoveDecision(BaseModel):
    """Outcome of validating a proposed move."""

    model_config = {"frozen": True}

    allowed: bool
    intra_list: bool = False
    reason: DenialReason | None = None
    target: ListId | None = None

    @property
    def removes_from_source(self) -> bool:
        return self.reason is not None and self.reason in GROUPING_DENIALS

    @classmethod
    def deny(cls, reason: DenialReason, target: ListId | None = None) -> MoveDecision:
        return cls(allowed=False, reason=reason, target=target)


def validate_move(
    source: str | None,
    target: str,
    item: Item,
    *,
    domain_of: Callable[[str], str] = get_domain,
    topic_marker: str = TOPIC_MARKER,
    domain_separator: str = DOMAIN_SEPARATOR,
) -> MoveDecision:
    """Decide whether *item* may move from *source* to *target*.

    *source* is None when the item currently sits in no tracked list.
    """
    try:
        target_id = parse_list_id(
            target, topic_marker=topic_marker, domain_separator=domain_separator
        )
    except ListResolutionError as exc:
        logger.warning("Move target rejected: %s", exc)
        return MoveDecision.deny(DenialReason.UNRESOLVED_TARGET)

    if source == target:
        return MoveDecision(allowed=True, intra_list=True, target=target_id)

    if source != FixedList.QUEUE and not target_id.is_queue:
        return MoveDecision.deny(DenialReason.NOT_QUEUE_ADJACENT, target_id)

    if target_id.kind == ListKind.TOPIC and item.topic_id != target_id.key:
        return MoveDecision.deny(DenialReason.TOPIC_MISMATCH, target_id)

    if target_id.kind == ListKind.DOMAIN and domain_of(item.url) != target_id.key:
        return MoveDecision.deny(DenialReason.DOMAIN_MISMATCH, target_id)

    return MoveDecision(allowed=True, target=target_id)
