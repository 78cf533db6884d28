"""BaseService — foundation for listsync services.

Every service receives a :class:`Workspace` at construction time. The
workspace provides the command channel, the reference store and the
plugin event bus.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from listsync.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class BoardService(BaseService):
            def show(self, list_ids: list[str]) -> ServiceResult:
                lists = self._workspace.store.load_lists(list_ids)
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a plugin hook. No-op if the event bus is not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._workspace.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
