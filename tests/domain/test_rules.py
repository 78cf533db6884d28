"""Tests for cross-list move validation."""

import pytest

from listsync.domain.items import Item
from listsync.domain.rules import MoveDecision, validate_move
from listsync.domain.types import DenialReason, ListKind

SPORTS = Item(id="s1", topic_id="sports_", url="https://www.example.com/match")


class TestValidateMove:
    def test_same_list_is_intra(self) -> None:
        decision = validate_move("list", "list", SPORTS)
        assert decision.allowed
        assert decision.intra_list

    def test_same_grouping_list_skips_grouping_rules(self) -> None:
        decision = validate_move("news_", "news_", SPORTS)
        assert decision.allowed
        assert decision.intra_list

    @pytest.mark.parametrize(
        ("source", "target"),
        [("list", "queue"), ("queue", "list"), ("queue", "favorites"), ("favorites", "queue")],
    )
    def test_queue_adjacent_fixed_moves_allowed(self, source: str, target: str) -> None:
        decision = validate_move(source, target, SPORTS)
        assert decision.allowed
        assert not decision.intra_list
        assert decision.target is not None
        assert decision.target.key == target

    @pytest.mark.parametrize(
        ("source", "target"),
        [("list", "favorites"), ("favorites", "list"), ("list", "sports_"), (None, "list")],
    )
    def test_moves_not_touching_queue_denied(self, source: str | None, target: str) -> None:
        decision = validate_move(source, target, SPORTS)
        assert not decision.allowed
        assert decision.reason == DenialReason.NOT_QUEUE_ADJACENT
        assert not decision.removes_from_source

    def test_source_none_into_queue_allowed(self) -> None:
        assert validate_move(None, "queue", SPORTS).allowed

    def test_matching_topic_allowed(self) -> None:
        decision = validate_move("queue", "sports_", SPORTS)
        assert decision.allowed
        assert decision.target is not None
        assert decision.target.kind == ListKind.TOPIC

    def test_topic_mismatch_removes_from_source(self) -> None:
        decision = validate_move("queue", "news_", SPORTS)
        assert not decision.allowed
        assert decision.reason == DenialReason.TOPIC_MISMATCH
        assert decision.removes_from_source

    def test_item_without_topic_never_matches(self) -> None:
        decision = validate_move("queue", "sports_", Item(id="x"))
        assert decision.reason == DenialReason.TOPIC_MISMATCH

    def test_matching_domain_allowed(self) -> None:
        assert validate_move("queue", "example.com", SPORTS).allowed

    def test_domain_mismatch(self) -> None:
        decision = validate_move("queue", "other.org", SPORTS)
        assert decision.reason == DenialReason.DOMAIN_MISMATCH
        assert decision.removes_from_source

    def test_domain_of_injected(self) -> None:
        decision = validate_move("queue", "other.org", SPORTS, domain_of=lambda _url: "other.org")
        assert decision.allowed

    def test_unresolvable_target(self) -> None:
        decision = validate_move("queue", "archive", SPORTS)
        assert not decision.allowed
        assert decision.reason == DenialReason.UNRESOLVED_TARGET
        assert decision.target is None
        assert not decision.removes_from_source


class TestMoveDecision:
    def test_deny(self) -> None:
        decision = MoveDecision.deny(DenialReason.DOMAIN_MISMATCH)
        assert not decision.allowed
        assert not decision.intra_list
        assert decision.removes_from_source
