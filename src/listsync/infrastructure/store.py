"""SqlStore — reference implementation of the external store.

Applies membership and position commands to the ``items`` table and
rebuilds list snapshots from it.

Position updates place the item at the midpoint of its neighbors' keys
(one unit past the last key at a list boundary), so repeating a command
with the same neighbor pair leaves the same order. Lists are displayed in
ascending key order; items without a key sort last, by id.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update

from listsync.domain.items import Item, ListCollection, get_domain
from listsync.domain.lists import ListId, parse_list_id, resolve_sort_key
from listsync.domain.positions import MembershipUpdate, PositionUpdate, StoreCommand
from listsync.domain.types import FixedList, ListKind, OrderingAttribute
from listsync.infrastructure.database.schema import items
from listsync.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class StoreError(LookupError):
    """A command referenced an item the store does not hold."""


class SqlStore:
    """Store backed by SQLite via SQLAlchemy Core.

    Parameters:
        engine: Engine with the ``items`` table created.
        domain_of: Derives the domain grouping key from an item URL.
        topic_marker: Trailing marker of topic list ids.
        domain_separator: Separator that marks domain list ids.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        domain_of: Callable[[str], str] = get_domain,
        topic_marker: str = "_",
        domain_separator: str = ".",
    ) -> None:
        self._engine = engine
        self._domain_of = domain_of
        self._topic_marker = topic_marker
        self._domain_separator = domain_separator

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def add_item(self, item: Item) -> Item:
        """Insert *item*, appending it to every list it belongs to.

        Ordering keys left unset are assigned one past the current maximum.
        """
        values = item.model_dump()
        with self._engine.begin() as conn:
            for attribute in OrderingAttribute:
                if values[attribute.value] is None:
                    values[attribute.value] = self._max_key(conn, attribute) + 1.0
            conn.execute(
                insert(items).values(
                    **{
                        **values,
                        "is_queued": int(item.is_queued),
                        "is_favorite": int(item.is_favorite),
                        "modified": now_iso(),
                    }
                )
            )
        return Item.model_validate(values)

    def get_item(self, item_id: str) -> Item | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(items).where(items.c.id == item_id)).first()
        return _row_to_item(row) if row is not None else None

    def all_items(self) -> list[Item]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(items).order_by(items.c.id)).fetchall()
        return [_row_to_item(row) for row in rows]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def apply(self, command: StoreCommand) -> dict[str, Any]:
        """Apply one command. Returns the changed fields.

        Raises:
            StoreError: If the command's item is unknown.
        """
        if isinstance(command, MembershipUpdate):
            return self._apply_membership(command)
        return self._apply_position(command)

    def _apply_membership(self, command: MembershipUpdate) -> dict[str, Any]:
        changes: dict[str, Any] = {"is_queued": int(command.is_queued)}
        if command.queue_sort_position is not None:
            changes["queue_sort_position"] = command.queue_sort_position

        with self._engine.begin() as conn:
            self._require(conn, command.item_id)
            conn.execute(
                update(items)
                .where(items.c.id == command.item_id)
                .values(**changes, modified=now_iso())
            )
        logger.debug("Membership of %s set to %s", command.item_id, command.is_queued)
        return {"item_id": command.item_id, **changes}

    def _apply_position(self, command: PositionUpdate) -> dict[str, Any]:
        column = items.c[command.sort_position.value]

        with self._engine.begin() as conn:
            current = self._require(conn, command.item_id)
            before = self._key_of(conn, command.before_id, column)
            after = self._key_of(conn, command.after_id, column)

            if before is not None and after is not None:
                key = (before + after) / 2
            elif before is not None:
                key = before + 1.0
            elif after is not None:
                key = after - 1.0
            else:
                existing = current._mapping[column.name]
                key = existing if existing is not None else 0.0

            conn.execute(
                update(items)
                .where(items.c.id == command.item_id)
                .values({column.name: key, "modified": now_iso()})
            )
        logger.debug(
            "Positioned %s between %s and %s on %s = %s",
            command.item_id,
            command.before_id,
            command.after_id,
            column.name,
            key,
        )
        return {"item_id": command.item_id, column.name: key}

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def load_lists(self, list_ids: Iterable[str]) -> ListCollection:
        """Build a ListCollection for *list_ids*, in the given order.

        An item is placed in the first requested list it belongs to, so the
        snapshot never holds the same item twice (e.g. ``["queue", "list"]``
        shows queued items once, in the queue).
        """
        all_items = self.all_items()
        placed: set[str] = set()
        collection: ListCollection = {}

        for raw in list_ids:
            list_id = parse_list_id(
                raw,
                topic_marker=self._topic_marker,
                domain_separator=self._domain_separator,
            )
            attribute = resolve_sort_key(list_id)
            members = [
                item
                for item in all_items
                if item.id not in placed and self._belongs(item, list_id)
            ]
            members.sort(key=lambda item, a=attribute: _sort_key(item, a))
            placed.update(item.id for item in members)
            collection[str(list_id)] = members
        return collection

    def _belongs(self, item: Item, list_id: ListId) -> bool:
        if list_id.kind == ListKind.TOPIC:
            return item.topic_id == list_id.key
        if list_id.kind == ListKind.DOMAIN:
            return self._domain_of(item.url) == list_id.key
        if list_id.key == FixedList.QUEUE:
            return item.is_queued
        if list_id.key == FixedList.FAVORITES:
            return item.is_favorite
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require(conn: Connection, item_id: str) -> Any:
        row = conn.execute(select(items).where(items.c.id == item_id)).first()
        if row is None:
            msg = f"Unknown item: {item_id}"
            raise StoreError(msg)
        return row

    @staticmethod
    def _key_of(conn: Connection, item_id: str | None, column: Any) -> float | None:
        if item_id is None:
            return None
        return conn.execute(select(column).where(items.c.id == item_id)).scalar_one_or_none()

    @staticmethod
    def _max_key(conn: Connection, attribute: OrderingAttribute) -> float:
        value = conn.execute(select(func.max(items.c[attribute.value]))).scalar()
        return float(value) if value is not None else -1.0


def _row_to_item(row: Any) -> Item:
    data = dict(row._mapping)
    data.pop("modified", None)
    data["is_queued"] = bool(data["is_queued"])
    data["is_favorite"] = bool(data["is_favorite"])
    return Item.model_validate(data)


def _sort_key(item: Item, attribute: OrderingAttribute) -> tuple[int, float, str]:
    value = item.sort_position(attribute)
    if value is None:
        return (1, 0.0, item.id)
    return (0, value, item.id)
