"""Tests for timing spans and the @traced decorator."""

from collections.abc import Callable

from listsync.domain.items import ListCollection, TargetRef
from listsync.infrastructure.workspace import Workspace
from listsync.services.result import ServiceResult
from listsync.services.session import DragSession
from listsync.services.telemetry import (
    Span,
    disable_telemetry,
    enable_telemetry,
    get_current_span,
    trace_span,
    traced,
)


@traced
def _op() -> ServiceResult:
    with trace_span("inner") as span:
        if span:
            span.annotate("n", 3)
    return ServiceResult(ok=True, op="op")


class TestSpan:
    def test_duration_zero_until_ended(self) -> None:
        span = Span(name="s")
        assert span.duration_ms == 0.0
        span.end()
        assert span.duration_ms >= 0.0

    def test_to_dict(self) -> None:
        parent = Span(name="p")
        child = Span(name="c", parent=parent)
        parent.children.append(child)
        child.annotate("allowed", True)
        data = parent.to_dict()
        assert data["name"] == "p"
        assert data["children"][0]["annotations"] == {"allowed": True}


class TestTraced:
    def test_disabled_leaves_meta_empty(self) -> None:
        assert _op().meta is None

    def test_trace_span_without_parent(self) -> None:
        enable_telemetry()
        with trace_span("orphan") as span:
            assert span is None

    def test_enabled_attaches_span_tree(self) -> None:
        enable_telemetry()
        result = _op()
        telemetry = (result.meta or {})["telemetry"]
        assert telemetry["name"] == "_op"
        assert telemetry["children"][0]["name"] == "inner"
        assert telemetry["children"][0]["annotations"] == {"n": 3}

    def test_disable(self) -> None:
        enable_telemetry()
        disable_telemetry()
        assert _op().meta is None
        assert get_current_span() is None

    def test_drag_transition_spans(
        self, workspace: Workspace, make_lists: Callable[..., ListCollection]
    ) -> None:
        enable_telemetry()
        session = DragSession(workspace, make_lists(queue=[], list=["a"]))
        session.start("a")
        result = session.over("a", TargetRef.of_list("queue"))
        telemetry = (result.meta or {})["telemetry"]
        assert telemetry["name"] == "DragSession.over"
        children = [c["name"] for c in telemetry["children"]]
        assert children == ["validate", "apply_cross_list_move"]
