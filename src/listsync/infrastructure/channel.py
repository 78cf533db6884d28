"""Outbound command channels — the one-way link from the drag core to a store.

The core writes commands and moves on; delivery, ordering and retry are
the channel's and the store's business.

- :class:`RecordingChannel` keeps every command (tests, dry runs).
- :class:`DispatchChannel` hands commands to a store callable on a
  single worker thread, so commands are delivered in the order they were
  sent, or inline when ``sync=True``.

INVARIANT: ``send`` never raises for delivery failures; they are logged
and kept in ``failures``.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Protocol

from listsync.domain.positions import StoreCommand

logger = logging.getLogger(__name__)


class CommandChannel(Protocol):
    """Anything that accepts store commands without blocking the caller."""

    def send(self, command: StoreCommand) -> None: ...


class RecordingChannel:
    """Channel that records commands instead of delivering them."""

    def __init__(self) -> None:
        self.commands: list[StoreCommand] = []

    def send(self, command: StoreCommand) -> None:
        self.commands.append(command)

    def clear(self) -> None:
        self.commands.clear()


class DispatchChannel:
    """Deliver commands to *handler* asynchronously (or inline).

    Parameters:
        handler: Store entry point, e.g. ``SqlStore.apply``.
        sync: Deliver inline on ``send`` (useful for testing / ``--sync``).
        on_applied: Called with the command and the handler's result after
            each successful delivery.
        max_failures: How many delivery failures ``failures`` keeps; the
            oldest are dropped first.
    """

    def __init__(
        self,
        handler: Callable[[StoreCommand], Any],
        *,
        sync: bool = False,
        on_applied: Callable[[StoreCommand, Any], None] | None = None,
        max_failures: int = 1000,
    ) -> None:
        self._handler = handler
        self._sync = sync
        self._on_applied = on_applied
        # One worker keeps delivery FIFO: a membership update always lands
        # before the positional update that follows it.
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=1, thread_name_prefix="listsync-cmd")
        )
        self._pending: set[Future[None]] = set()
        self._lock = threading.Lock()
        self.delivered: int = 0
        self.failures: deque[tuple[StoreCommand, str]] = deque(maxlen=max_failures)

    @property
    def pending(self) -> int:
        """Commands sent but not yet delivered or rejected."""
        with self._lock:
            return len(self._pending)

    def send(self, command: StoreCommand) -> None:
        if self._executor is None:
            self._deliver(command)
            return
        future = self._executor.submit(self._deliver, command)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def drain(self) -> int:
        """Block until every sent command was delivered. Returns the delivered count."""
        with self._lock:
            futures = list(self._pending)
        for future in futures:
            try:
                future.result(timeout=30)
            except Exception:
                logger.debug("Command future raised", exc_info=True)
        return self.delivered

    def shutdown(self) -> None:
        self.drain()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _forget(self, future: Future[None]) -> None:
        with self._lock:
            self._pending.discard(future)

    def _deliver(self, command: StoreCommand) -> None:
        try:
            result = self._handler(command)
        except Exception as exc:
            logger.warning("Store rejected %s for %s: %s", command.kind, command.item_id, exc)
            with self._lock:
                self.failures.append((command, str(exc)))
            return

        with self._lock:
            self.delivered += 1
        if self._on_applied is not None:
            try:
                self._on_applied(command, result)
            except Exception:
                logger.debug("on_applied callback failed", exc_info=True)
