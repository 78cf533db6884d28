"""SQLAlchemy Core table definitions for the reference store."""

from __future__ import annotations

from sqlalchemy import REAL, Column, Index, Integer, MetaData, Table, Text

metadata = MetaData()

items = Table(
    "items",
    metadata,
    Column("id", Text, primary_key=True),
    Column("title", Text, nullable=False, default="", server_default=""),
    Column("url", Text, nullable=False, default="", server_default=""),
    Column("topic_id", Text),
    Column("is_queued", Integer, nullable=False, default=0, server_default="0"),
    Column("is_favorite", Integer, nullable=False, default=0, server_default="0"),
    # One ordering key per list type
    Column("recency_sort_position", REAL),
    Column("queue_sort_position", REAL),
    Column("favorites_sort_position", REAL),
    Column("topic_sort_position", REAL),
    Column("domain_sort_position", REAL),
    Column("modified", Text, nullable=False),
)

Index("ix_items_queued", items.c.is_queued)
Index("ix_items_topic", items.c.topic_id)
