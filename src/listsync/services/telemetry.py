"""Timing spans for drag transitions — Span, @traced, trace_span.

Collection is off unless :func:`enable_telemetry` was called (the CLI does
so for ``--verbose``); while off, a traced call costs one ContextVar read.
When on, every traced transition builds a span tree and returns it in
``ServiceResult.meta["telemetry"]``.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from listsync.services.result import ServiceResult

log = structlog.get_logger("listsync.telemetry")

_enabled: ContextVar[bool] = ContextVar("listsync_telemetry", default=False)
_active: ContextVar[Span | None] = ContextVar("listsync_active_span", default=None)


@dataclass
class Span:
    """One timed step. ``children`` nest in call order."""

    name: str
    parent: Span | None = field(default=None, repr=False)
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started_ns: int = field(default_factory=time.perf_counter_ns)
    ended_ns: int | None = None

    @property
    def duration_ms(self) -> float:
        if self.ended_ns is None:
            return 0.0
        return (self.ended_ns - self.started_ns) / 1_000_000

    def end(self) -> None:
        if self.ended_ns is None:
            self.ended_ns = time.perf_counter_ns()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        node: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 3)}
        if self.annotations:
            node["annotations"] = dict(self.annotations)
        if self.children:
            node["children"] = [child.to_dict() for child in self.children]
        return node


def _open(span: Span) -> Token[Span | None]:
    if span.parent is not None:
        span.parent.children.append(span)
    return _active.set(span)


def _close(span: Span, token: Token[Span | None]) -> None:
    span.end()
    _active.reset(token)


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Time a sub-step of the current traced call.

    Yields None outside a traced call or while telemetry is off, so callers
    guard annotations with ``if span:``.
    """
    parent = get_current_span()
    if parent is None:
        yield None
        return

    span = Span(name=name, parent=parent)
    token = _open(span)
    try:
        yield span
    finally:
        _close(span, token)


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Record a root span for *func* and attach it to its ServiceResult."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__, parent=_active.get())
        token = _open(root)
        try:
            outcome = func(*args, **kwargs)
        finally:
            _close(root, token)

        if not isinstance(outcome, ServiceResult):
            return outcome

        log.debug(
            "transition.timed",
            op=outcome.op,
            span=root.name,
            ok=outcome.ok,
            duration_ms=round(root.duration_ms, 3),
        )
        meta = dict(outcome.meta or {})
        meta["telemetry"] = root.to_dict()
        return outcome.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    """Turn on span collection for the current context."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost open span, or None while telemetry is off."""
    return _active.get() if _enabled.get() else None
