"""Tests for the DragSession state machine."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from listsync.config.settings import ListsyncSettings
from listsync.domain.items import Item, ListCollection, TargetRef, collection_ids
from listsync.domain.positions import MembershipUpdate, PositionUpdate
from listsync.domain.types import DragPhase, OrderingAttribute
from listsync.infrastructure.channel import RecordingChannel
from listsync.infrastructure.workspace import Workspace
from listsync.services.session import DragSession


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class _RefusingChannel:
    def send(self, command: Any) -> None:
        raise ConnectionError("store offline")


@pytest.fixture
def board(make_lists: Callable[..., ListCollection]) -> ListCollection:
    return make_lists(queue=["q1", "q2"], list=["a", "b", "c", "d"], favorites=["f1"])


@pytest.fixture
def session(workspace: Workspace, board: ListCollection) -> DragSession:
    return DragSession(workspace, board)


class TestStart:
    def test_start_records_source(self, session: DragSession) -> None:
        result = session.start("b")
        assert result.ok
        assert result.data["started"] is True
        assert result.data["source_list_id"] == "list"
        assert session.phase == DragPhase.DRAGGING
        assert session.active_item is not None
        assert session.active_item.id == "b"
        assert session.active_list_id == "list"

    def test_unknown_item_stays_idle(self, session: DragSession) -> None:
        result = session.start("zzz")
        assert result.ok
        assert result.data["started"] is False
        assert result.data["reason"] == "not_in_any_list"
        assert session.phase == DragPhase.IDLE

    def test_empty_collection(self, workspace: Workspace) -> None:
        session = DragSession(workspace, {})
        result = session.start("a")
        assert result.data == {
            "started": False,
            "item_id": "a",
            "source_list_id": None,
            "reason": "empty_collection",
            "abandoned_item_id": None,
        }
        assert session.phase == DragPhase.IDLE

    def test_start_abandons_open_gesture(self, session: DragSession) -> None:
        session.start("a")
        result = session.start("q1")
        assert result.data["abandoned_item_id"] == "a"
        assert any("Abandoned" in w for w in result.warnings)
        assert session.active_list_id == "queue"

    def test_start_sends_nothing(self, session: DragSession, channel: RecordingChannel) -> None:
        session.start("a")
        assert channel.commands == []


class TestOverNoops:
    def test_idle(self, session: DragSession) -> None:
        result = session.over("a", TargetRef.of_list("queue"))
        assert result.data["moved"] is False
        assert result.data["reason"] == "idle"

    def test_other_item(self, session: DragSession) -> None:
        session.start("a")
        result = session.over("b", TargetRef.of_list("queue"))
        assert result.data["reason"] == "inactive_item"

    def test_no_target(self, session: DragSession) -> None:
        session.start("a")
        assert session.over("a", None).data["reason"] == "no_target"

    def test_same_list(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("a")
        result = session.over("a", TargetRef.of_item("c"))
        assert result.data["reason"] == "same_list"
        assert collection_ids(board)["list"] == ["a", "b", "c", "d"]
        assert channel.commands == []

    def test_hovered_item_in_no_list(self, session: DragSession) -> None:
        session.start("a")
        result = session.over("a", TargetRef.of_item("ghost"))
        assert result.ok
        assert result.data["reason"] == "unresolved_target"


class TestOverCrossList:
    def test_hover_queue_item_inserts_before_it(
        self,
        session: DragSession,
        board: ListCollection,
        channel: RecordingChannel,
    ) -> None:
        session.start("b")
        result = session.over("b", TargetRef.of_item("q2"))

        assert result.ok
        assert result.data["moved"] is True
        assert result.data["index"] == 1
        assert collection_ids(board)["queue"] == ["q1", "b", "q2"]
        assert collection_ids(board)["list"] == ["a", "c", "d"]
        assert session.active_list_id == "queue"

        membership, position = channel.commands
        assert isinstance(membership, MembershipUpdate)
        assert membership.is_queued is True
        assert membership.queue_sort_position is not None
        assert position == PositionUpdate(
            item_id="b",
            before_id="q1",
            after_id="q2",
            sort_position=OrderingAttribute.QUEUE,
        )

    def test_container_drop_appends(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("a")
        session.over("a", TargetRef.of_list("queue"))
        assert collection_ids(board)["queue"] == ["q1", "q2", "a"]
        position = channel.commands[1]
        assert isinstance(position, PositionUpdate)
        assert (position.before_id, position.after_id) == ("q2", None)

    def test_container_insert_start(
        self,
        tmp_path: Path,
        channel: RecordingChannel,
        make_lists: Callable[..., ListCollection],
    ) -> None:
        settings = ListsyncSettings.from_cli(
            workspace_root=tmp_path, sync=True, session={"container_insert": "start"}
        )
        ws = Workspace(settings, channel=channel, db_path=":memory:")
        lists = make_lists(queue=["q1"], list=["a"])
        session = DragSession(ws, lists)
        session.start("a")
        session.over("a", TargetRef.of_list("queue"))
        assert collection_ids(lists)["queue"] == ["a", "q1"]
        ws.close()

    def test_into_empty_queue_has_no_neighbors(
        self,
        workspace: Workspace,
        channel: RecordingChannel,
        make_lists: Callable[..., ListCollection],
    ) -> None:
        session = DragSession(workspace, make_lists(queue=[], list=["a"]))
        session.start("a")
        session.over("a", TargetRef.of_list("queue"))
        position = channel.commands[1]
        assert isinstance(position, PositionUpdate)
        assert (position.before_id, position.after_id) == (None, None)

    def test_queue_to_favorites_allowed(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("q1")
        result = session.over("q1", TargetRef.of_list("favorites"))
        assert result.data["moved"] is True
        assert collection_ids(board)["favorites"] == ["f1", "q1"]
        membership, position = channel.commands
        assert isinstance(membership, MembershipUpdate)
        assert membership.is_queued is False
        assert isinstance(position, PositionUpdate)
        assert position.sort_position == OrderingAttribute.FAVORITES

    def test_list_to_favorites_denied_without_mutation(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        snapshot = collection_ids(board)
        session.start("a")
        result = session.over("a", TargetRef.of_list("favorites"))
        assert result.ok
        assert result.data["moved"] is False
        assert result.data["denied"] == "not_queue_adjacent"
        assert result.data["removed_from_source"] is False
        assert collection_ids(board) == snapshot
        assert session.active_list_id == "list"
        assert channel.commands == []

    def test_denied_hover_then_drop_leaves_list_alone(
        self,
        session: DragSession,
        board: ListCollection,
        channel: RecordingChannel,
        recorder: Any,
    ) -> None:
        snapshot = collection_ids(board)
        session.start("a")
        session.over("a", TargetRef.of_list("favorites"))
        result = session.end("a", TargetRef.of_list("favorites"))

        assert result.data["reason"] == "outside_list"
        assert collection_ids(board) == snapshot
        assert channel.commands == []
        assert session.phase == DragPhase.IDLE
        assert recorder.events == ["reorderItems"]


    def test_round_trip(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("d")
        session.over("d", TargetRef.of_list("queue"))
        session.over("d", TargetRef.of_list("list"))
        assert collection_ids(board)["list"] == ["a", "b", "c", "d"]
        assert collection_ids(board)["queue"] == ["q1", "q2"]
        final_membership = channel.commands[2]
        assert isinstance(final_membership, MembershipUpdate)
        assert final_membership.is_queued is False

    def test_unresolvable_list_fails(
        self, session: DragSession, channel: RecordingChannel
    ) -> None:
        session.start("a")
        result = session.over("a", TargetRef.of_list("archive"))
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "UNRESOLVED_LIST"
        assert session.phase == DragPhase.DRAGGING
        assert channel.commands == []

    def test_unexpected_error_is_a_failed_result(
        self,
        workspace: Workspace,
        make_lists: Callable[..., ListCollection],
    ) -> None:
        def broken_domain(_url: str) -> str:
            raise RuntimeError("boom")

        session = DragSession(
            workspace, make_lists(queue=["q1"], **{"example.com": []}), domain_of=broken_domain
        )
        session.start("q1")
        result = session.over("q1", TargetRef.of_list("example.com"))
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "TRANSITION_FAILED"

    def test_reports_add_to_queue(self, session: DragSession, recorder: Any) -> None:
        session.start("a")
        session.over("a", TargetRef.of_list("queue"))
        assert recorder.events == ["addItemToQueue"]
        assert recorder.snapshots[-1]["active_list_id"] == "queue"
        assert recorder.snapshots[-1]["lists"]["queue"] == ["q1", "q2", "a"]

    def test_channel_failure_is_a_warning(
        self,
        settings: ListsyncSettings,
        make_lists: Callable[..., ListCollection],
    ) -> None:
        ws = Workspace(settings, channel=_RefusingChannel(), db_path=":memory:")
        lists = make_lists(queue=[], list=["a"])
        session = DragSession(ws, lists)
        session.start("a")
        result = session.over("a", TargetRef.of_list("queue"))
        assert result.ok
        assert collection_ids(lists)["queue"] == ["a"]
        assert len(result.warnings) == 2
        assert "was not sent" in result.warnings[0]
        ws.close()


class TestGroupingDenial:
    @pytest.fixture
    def grouped(self, make_lists: Callable[..., ListCollection]) -> ListCollection:
        return make_lists(
            items={"s1": {"topic_id": "sports_"}, "n1": {"topic_id": "news_"}},
            queue=["s1", "q1"],
            news_=["n1"],
        )

    def test_topic_mismatch_drops_from_source(
        self,
        workspace: Workspace,
        grouped: ListCollection,
        channel: RecordingChannel,
    ) -> None:
        session = DragSession(workspace, grouped)
        session.start("s1")
        result = session.over("s1", TargetRef.of_list("news_"))

        assert result.ok
        assert result.data["denied"] == "topic_mismatch"
        assert result.data["removed_from_source"] is True
        assert collection_ids(grouped) == {"queue": ["q1"], "news_": ["n1"]}
        assert session.active_list_id is None
        assert session.phase == DragPhase.DRAGGING
        assert channel.commands == []

    def test_end_after_drop_clears_membership(
        self,
        workspace: Workspace,
        grouped: ListCollection,
        channel: RecordingChannel,
        recorder: Any,
    ) -> None:
        session = DragSession(workspace, grouped)
        session.start("s1")
        session.over("s1", TargetRef.of_list("news_"))
        result = session.end("s1", TargetRef.of_list("news_"))

        assert result.data["membership_cleared"] is True
        assert channel.commands == [MembershipUpdate(item_id="s1", is_queued=False)]
        assert session.phase == DragPhase.IDLE
        assert recorder.events[-1] == "reorderItems"

    def test_domain_mismatch_drops_from_source(
        self,
        workspace: Workspace,
        make_lists: Callable[..., ListCollection],
        channel: RecordingChannel,
    ) -> None:
        lists = make_lists(
            items={"w1": {"url": "https://www.sports.com/match"}, "n1": {"url": "news.org/a"}},
            queue=["w1"],
            **{"news.org": ["n1"]},
        )
        session = DragSession(workspace, lists)
        session.start("w1")
        result = session.over("w1", TargetRef.of_item("n1"))

        assert result.data["denied"] == "domain_mismatch"
        assert result.data["removed_from_source"] is True
        assert collection_ids(lists) == {"queue": [], "news.org": ["n1"]}
        assert session.active_list_id is None
        assert channel.commands == []

    def test_denied_drag_settles_on_drop(
        self,
        workspace: Workspace,
        make_lists: Callable[..., ListCollection],
        channel: RecordingChannel,
        recorder: Any,
    ) -> None:
        lists = make_lists(
            items={"w1": {"url": "https://sports.com/match"}},
            queue=["w1", "q1"],
            **{"news.org": []},
        )
        session = DragSession(workspace, lists)
        session.start("w1")
        session.over("w1", TargetRef.of_list("news.org"))
        result = session.end("w1", TargetRef.of_list("news.org"))

        assert result.ok
        assert result.data["membership_cleared"] is True
        assert channel.commands == [MembershipUpdate(item_id="w1", is_queued=False)]
        assert collection_ids(lists) == {"queue": ["q1"], "news.org": []}
        assert session.phase == DragPhase.IDLE
        assert session.active_item is None
        assert recorder.events == ["reorderItems"]
        assert recorder.snapshots[-1]["active_list_id"] is None


    def test_hovering_back_into_queue_restores(
        self,
        workspace: Workspace,
        grouped: ListCollection,
    ) -> None:
        session = DragSession(workspace, grouped)
        session.start("s1")
        session.over("s1", TargetRef.of_list("news_"))
        result = session.over("s1", TargetRef.of_item("q1"))
        assert result.data["moved"] is True
        assert collection_ids(grouped)["queue"] == ["s1", "q1"]
        assert session.active_list_id == "queue"


class TestEnd:
    def test_reorder_within_list(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("a")
        result = session.end("a", TargetRef.of_item("c"))

        assert result.ok
        assert result.data["reordered"] is True
        assert (result.data["old_index"], result.data["new_index"]) == (0, 2)
        assert collection_ids(board)["list"] == ["b", "c", "a", "d"]
        assert channel.commands == [
            PositionUpdate(
                item_id="a",
                before_id="c",
                after_id="d",
                sort_position=OrderingAttribute.RECENCY,
            )
        ]
        assert session.phase == DragPhase.IDLE

    def test_reorder_backward(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("d")
        session.end("d", TargetRef.of_item("b"))
        assert collection_ids(board)["list"] == ["a", "d", "b", "c"]
        command = channel.commands[0]
        assert isinstance(command, PositionUpdate)
        assert (command.before_id, command.after_id) == ("a", "b")

    def test_drop_on_itself(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("b")
        result = session.end("b", TargetRef.of_item("b"))
        assert result.data["reason"] == "same_position"
        assert collection_ids(board)["list"] == ["a", "b", "c", "d"]
        assert channel.commands == []
        assert session.phase == DragPhase.IDLE

    def test_no_target(self, session: DragSession, channel: RecordingChannel) -> None:
        session.start("b")
        result = session.end("b", None)
        assert result.data["reason"] == "no_target"
        assert channel.commands == []
        assert session.phase == DragPhase.IDLE

    def test_drop_on_own_container_moves_to_end(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("q1")
        session.over("q1", TargetRef.of_list("queue"))
        result = session.end("q1", TargetRef.of_list("queue"))

        assert result.data["reordered"] is True
        assert result.data["membership_cleared"] is False
        assert collection_ids(board)["queue"] == ["q2", "q1"]
        assert channel.commands == [
            PositionUpdate(
                item_id="q1",
                before_id="q2",
                after_id=None,
                sort_position=OrderingAttribute.QUEUE,
            )
        ]

    def test_drop_on_own_container_insert_start(
        self,
        tmp_path: Path,
        channel: RecordingChannel,
        make_lists: Callable[..., ListCollection],
    ) -> None:
        settings = ListsyncSettings.from_cli(
            workspace_root=tmp_path, sync=True, session={"container_insert": "start"}
        )
        ws = Workspace(settings, channel=channel, db_path=":memory:")
        lists = make_lists(list=["a", "b", "c"])
        session = DragSession(ws, lists)
        session.start("c")
        session.end("c", TargetRef.of_list("list"))
        assert collection_ids(lists)["list"] == ["c", "a", "b"]
        command = channel.commands[0]
        assert isinstance(command, PositionUpdate)
        assert (command.before_id, command.after_id) == (None, "a")
        ws.close()

    def test_last_item_on_own_container_stays(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("d")
        result = session.end("d", TargetRef.of_list("list"))
        assert result.data["reason"] == "same_position"
        assert collection_ids(board)["list"] == ["a", "b", "c", "d"]
        assert channel.commands == []

    def test_queue_item_dropped_on_other_list_stays_queued(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("q2")
        result = session.end("q2", TargetRef.of_list("list"))
        assert result.data["reason"] == "outside_list"
        assert collection_ids(board)["queue"] == ["q1", "q2"]
        assert channel.commands == []
        assert session.phase == DragPhase.IDLE

    def test_other_item_dropped_outside_stays(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("a")
        result = session.end("a", TargetRef.of_item("f1"))
        assert result.data["reason"] == "outside_list"
        assert collection_ids(board)["list"] == ["a", "b", "c", "d"]
        assert channel.commands == []

    def test_drop_for_other_item_is_ignored(
        self,
        session: DragSession,
        board: ListCollection,
        channel: RecordingChannel,
        recorder: Any,
    ) -> None:
        session.start("a")
        result = session.end("b", TargetRef.of_item("d"))
        assert result.ok
        assert result.data["reason"] == "inactive_item"
        assert result.data["item_id"] == "a"
        assert collection_ids(board)["list"] == ["a", "b", "c", "d"]
        assert channel.commands == []
        assert session.phase == DragPhase.IDLE
        assert recorder.events == ["reorderItems"]


    def test_end_after_cross_list_move_reorders_in_target(
        self, session: DragSession, board: ListCollection, channel: RecordingChannel
    ) -> None:
        session.start("a")
        session.over("a", TargetRef.of_list("queue"))
        result = session.end("a", TargetRef.of_item("q1"))
        assert result.data["list_id"] == "queue"
        assert collection_ids(board)["queue"] == ["a", "q1", "q2"]
        command = channel.commands[-1]
        assert isinstance(command, PositionUpdate)
        assert command.sort_position == OrderingAttribute.QUEUE
        assert (command.before_id, command.after_id) == (None, "q1")

    def test_end_without_start_clears_membership(
        self, session: DragSession, channel: RecordingChannel, recorder: Any
    ) -> None:
        session.start("ghost")
        result = session.end("ghost", TargetRef.of_list("queue"))
        assert result.ok
        assert result.data["membership_cleared"] is True
        assert channel.commands == [MembershipUpdate(item_id="ghost", is_queued=False)]
        assert session.phase == DragPhase.IDLE
        assert recorder.events == ["reorderItems"]


    def test_end_publishes_and_reports(self, session: DragSession, recorder: Any) -> None:
        session.start("a")
        session.end("a", TargetRef.of_item("b"))
        assert recorder.events == ["reorderItems"]
        assert recorder.snapshots[-1]["active_item_id"] is None
        assert recorder.snapshots[-1]["lists"]["list"] == ["b", "a", "c", "d"]


class TestReset:
    def test_reset_open_gesture(self, session: DragSession, channel: RecordingChannel) -> None:
        session.start("a")
        result = session.reset()
        assert result.data == {"reset": True, "item_id": "a", "reason": "cancelled"}
        assert session.phase == DragPhase.IDLE
        assert channel.commands == []

    def test_reset_idle(self, session: DragSession) -> None:
        assert session.reset("timeout").data["reset"] is False

    def test_stale_detection(self, workspace: Workspace, board: ListCollection) -> None:
        clock = _Clock()
        session = DragSession(workspace, board, clock=clock)
        assert not session.is_stale()

        session.start("a")
        clock.now += 5
        assert not session.is_stale()
        assert session.expire_stale() is None

        clock.now += 10
        assert session.is_stale()
        result = session.expire_stale()
        assert result is not None
        assert result.data["reason"] == "stale"
        assert session.phase == DragPhase.IDLE

    def test_explicit_now(self, workspace: Workspace, board: ListCollection) -> None:
        session = DragSession(workspace, board, clock=lambda: 0.0)
        session.start("a")
        assert session.is_stale(now=60.0)
        assert not session.is_stale(now=1.0)

    def test_new_start_after_reset(self, session: DragSession) -> None:
        session.start("a")
        session.reset()
        result = session.start("b")
        assert result.data["abandoned_item_id"] is None
        assert session.active_list_id == "list"


class TestItemIdentity:
    def test_active_item_is_snapshot_item(
        self, session: DragSession, board: ListCollection
    ) -> None:
        session.start("c")
        assert session.active_item is board["list"][2]
        assert isinstance(session.active_item, Item)
