"""Tests for Rich renderers and output mode selection."""

import json

from listsync.output.formatters import OutputSettings, format_result
from listsync.output.renderers import render_quiet, render_result
from listsync.services.result import ServiceResult

SHOW = ServiceResult(
    ok=True,
    op="show_lists",
    data={
        "count": 2,
        "lists": {
            "queue": [
                {
                    "id": "itm_q",
                    "title": "Queued",
                    "url": "https://example.com/q",
                    "topic_id": None,
                    "is_queued": True,
                    "is_favorite": False,
                }
            ],
            "list": [
                {
                    "id": "itm_a",
                    "title": "Alpha",
                    "url": "https://example.com/a",
                    "topic_id": "sports_",
                    "is_queued": False,
                    "is_favorite": True,
                }
            ],
            "favorites": [],
        },
    },
)

REPLAY = ServiceResult(
    ok=True,
    op="replay",
    data={
        "events": 2,
        "failed": 1,
        "commands_sent": 2,
        "commands_delivered": 2,
        "transitions": [
            {"event": "start", "ok": True, "data": {}, "error": None},
            {"event": "over", "ok": False, "data": {}, "error": {"code": "UNRESOLVED_LIST"}},
        ],
        "lists": {"queue": ["itm_a", "itm_q"]},
    },
    warnings=["Store order differs from the local snapshot"],
)


class TestRenderLists:
    def test_tables_per_list(self) -> None:
        output = render_result(SHOW)
        assert "OK" in output
        assert "show_lists" in output
        assert "itm_q" in output
        assert "Alpha" in output
        assert "sports_" in output
        assert "(empty)" in output

    def test_verbose_adds_urls(self) -> None:
        assert "https://example.com/a" in render_result(SHOW, verbose=True)
        assert "https://example.com/a" not in render_result(SHOW)


class TestRenderReplay:
    def test_summary(self) -> None:
        output = render_result(REPLAY)
        assert "commands_delivered: 2" in output
        assert "queue: itm_a itm_q" in output
        assert "Store order differs" in output

    def test_verbose_transitions(self) -> None:
        output = render_result(REPLAY, verbose=True)
        assert "transitions:" in output
        assert "over" in output


class TestRenderError:
    def test_error_with_detail(self) -> None:
        result = ServiceResult.failure("show_lists", "UNRESOLVED_LIST", "bad list", list_id="x")
        assert "bad list" in render_result(result)
        assert "list_id" in render_result(result, verbose=True)

    def test_generic(self) -> None:
        result = ServiceResult(ok=True, op="add_item", data={"id": "itm_a", "title": "Alpha"})
        output = render_result(result)
        assert "id: itm_a" in output
        assert "title: Alpha" in output

    def test_telemetry_meta(self) -> None:
        result = ServiceResult(
            ok=True,
            op="add_item",
            meta={"telemetry": {"name": "BoardService.add_item", "duration_ms": 1.5}},
        )
        assert "BoardService.add_item" in render_result(result, verbose=True)


class TestQuiet:
    def test_lists(self) -> None:
        assert render_quiet(SHOW) == "queue: itm_q\nlist: itm_a\nfavorites:"

    def test_replay_lists(self) -> None:
        assert render_quiet(REPLAY) == "queue: itm_a itm_q"

    def test_status(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="add_item")) == "OK: add_item"

    def test_error(self) -> None:
        result = ServiceResult.failure("replay", "INVALID_EVENTS", "line 1: bad")
        assert render_quiet(result).startswith("ERROR: replay")


class TestFormatResult:
    def test_json(self) -> None:
        output = format_result(SHOW, settings=OutputSettings(json_output=True))
        assert json.loads(output)["data"]["count"] == 2

    def test_quiet(self) -> None:
        output = format_result(SHOW, settings=OutputSettings(quiet=True))
        assert output.startswith("queue:")

    def test_default_is_rich(self) -> None:
        assert "show_lists" in format_result(SHOW)
