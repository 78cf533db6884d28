"""Shared service-layer helper functions."""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as ISO 8601 (store audit column)."""
    return datetime.now(UTC).isoformat()


def now_ms() -> float:
    """Current UTC time in epoch milliseconds (queue activation key)."""
    return float(int(datetime.now(UTC).timestamp() * 1000))


def item_id_for(url: str, title: str) -> str:
    """Stable item id derived from its URL (or title when there is no URL).

    Examples:
        >>> item_id_for("https://example.com/a", "A") == item_id_for("https://example.com/a", "B")
        True
    """
    source = url.strip() or title.strip().lower()
    digest = hashlib.sha256(source.encode("utf-8")).hexdigest()[:8]
    return f"itm_{digest}"
