"""Fire-and-forget hook dispatch via pluggy + ThreadPoolExecutor.

Failed hook calls are kept in memory and retried by ``drain()`` until
``max_retries`` is reached, then marked ``dead_letter``.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from listsync.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


@dataclass
class _PendingEvent:
    """A hook call that failed and awaits retry."""

    event_id: int
    hook_name: str
    payload: dict[str, Any]
    retries: int = 0
    error: str | None = None


class EventBus:
    """Async hook dispatch for display and telemetry plugins.

    Parameters:
        plugin_manager: Loaded PluginManager for hook dispatch.
        sync: Force synchronous dispatch (useful for testing / ``--sync``).
        max_retries: Attempts before an event is marked ``dead_letter``.
        max_workers: ThreadPoolExecutor worker count.
    """

    def __init__(
        self,
        plugin_manager: PluginManager,
        *,
        sync: bool = False,
        max_retries: int = 3,
        max_workers: int = 1,
    ) -> None:
        self._pm = plugin_manager
        self._sync = sync
        self._max_retries = max_retries
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )
        self._pending: set[Future[None]] = set()
        self._failed: dict[int, _PendingEvent] = {}
        self._lock = threading.Lock()
        self._next_id = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> int:
        """Dispatch a hook async (or sync). Returns the event id."""
        with self._lock:
            self._next_id += 1
            event_id = self._next_id

        if self._sync or self._executor is None:
            self._execute_hook(event_id, hook_name, payload)
        else:
            future = self._executor.submit(self._execute_hook, event_id, hook_name, payload)
            with self._lock:
                self._pending.add(future)
            future.add_done_callback(self._forget)
        return event_id

    def drain(self) -> list[dict[str, Any]]:
        """Wait for in-flight events, then retry failed ones synchronously.

        Returns ``{id, hook_name, status}`` for each retried event.
        """
        self._wait_futures()

        with self._lock:
            pending = sorted(self._failed.values(), key=lambda e: e.event_id)

        results: list[dict[str, Any]] = []
        for event in pending:
            if event.retries >= self._max_retries:
                status = "dead_letter"
            else:
                self._execute_hook(event.event_id, event.hook_name, event.payload)
                status = self._status(event.event_id)
            results.append({"id": event.event_id, "hook_name": event.hook_name, "status": status})
        return results

    def shutdown(self) -> None:
        """Shutdown the executor, waiting for pending tasks."""
        self._wait_futures()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    @property
    def failed_count(self) -> int:
        with self._lock:
            return len(self._failed)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _execute_hook(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> None:
        """Call the hook; record a failure for later retry."""
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return

        try:
            hook_fn(**payload)
        except Exception as exc:
            logger.warning("Hook %s failed: %s", hook_name, exc)
            self._mark_failed(event_id, hook_name, payload, str(exc))
        else:
            with self._lock:
                self._failed.pop(event_id, None)

    def _mark_failed(
        self,
        event_id: int,
        hook_name: str,
        payload: dict[str, Any],
        error: str,
    ) -> None:
        with self._lock:
            event = self._failed.get(event_id)
            if event is None:
                event = _PendingEvent(event_id=event_id, hook_name=hook_name, payload=payload)
                self._failed[event_id] = event
            event.retries += 1
            event.error = error

    def _status(self, event_id: int) -> str:
        with self._lock:
            event = self._failed.get(event_id)
        if event is None:
            return "completed"
        return "dead_letter" if event.retries >= self._max_retries else "failed"

    def _forget(self, future: Future[None]) -> None:
        with self._lock:
            self._pending.discard(future)

    def _wait_futures(self) -> None:
        with self._lock:
            futures = list(self._pending)
        for future in futures:
            try:
                future.result(timeout=30)
            except Exception:
                logger.debug("Event future raised", exc_info=True)
