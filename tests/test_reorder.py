"""Tests for the two-level drag reorder engine."""

from __future__ import annotations

import logging

import pytest

from upsell.errors import ErrorKind
from upsell.reorder import DragDomain, DragEnd, DragRef, DragStart, ReorderEngine
from upsell.selection_list import SelectionList


def group_ref(key: str) -> DragRef:
    return DragRef(DragDomain.GROUP, key)


def sub_ref(key: str) -> DragRef:
    return DragRef(DragDomain.SUB_ITEM, key)


@pytest.fixture
def selection_list(make_group):
    return SelectionList(
        [
            make_group("A", ["a1", "a2"]),
            make_group("B"),
            make_group("C", ["x", "y", "z"]),
            make_group("D"),
        ]
    )


def drag(engine: ReorderEngine, active: DragRef, over: DragRef | None):
    engine.drag_start(DragStart(active))
    assert engine.is_dragging
    result = engine.drag_end(DragEnd(active=active, over=over))
    assert not engine.is_dragging
    return result


def test_group_move_is_positional(selection_list):
    """Dragging A onto C yields [B, C, A, D]."""
    engine = ReorderEngine(selection_list)
    result = drag(engine, group_ref("A"), group_ref("C"))
    assert result.applied
    assert selection_list.keys() == ["B", "C", "A", "D"]


def test_group_move_upwards(selection_list):
    engine = ReorderEngine(selection_list)
    drag(engine, group_ref("D"), group_ref("B"))
    assert selection_list.keys() == ["A", "D", "B", "C"]


def test_sub_item_move_within_group(selection_list):
    """Dragging z onto x yields [z, x, y]."""
    engine = ReorderEngine(selection_list)
    result = drag(engine, sub_ref("z"), sub_ref("x"))
    assert result.applied
    owner = selection_list.find_group("C")
    assert [s.key for s in owner.sub_items] == ["z", "x", "y"]


def test_cross_group_sub_item_move_is_rejected(selection_list, caplog):
    engine = ReorderEngine(selection_list)
    with caplog.at_level(logging.WARNING, logger="upsell.reorder"):
        result = drag(engine, sub_ref("a1"), sub_ref("y"))
    assert not result.applied
    assert result.error is ErrorKind.UNSUPPORTED_MOVE
    assert [s.key for s in selection_list.find_group("A").sub_items] == ["a1", "a2"]
    assert [s.key for s in selection_list.find_group("C").sub_items] == ["x", "y", "z"]
    assert "unsupported_move" in caplog.text


def test_drop_without_target_or_on_itself_is_noop(selection_list):
    engine = ReorderEngine(selection_list)
    assert drag(engine, group_ref("A"), None).applied is False
    assert drag(engine, group_ref("A"), group_ref("A")).error is None
    assert selection_list.keys() == ["A", "B", "C", "D"]


def test_mixed_domains_are_rejected(selection_list):
    engine = ReorderEngine(selection_list)
    result = drag(engine, group_ref("A"), sub_ref("x"))
    assert result.error is ErrorKind.UNSUPPORTED_MOVE
    result = drag(engine, sub_ref("x"), group_ref("A"))
    assert result.error is ErrorKind.UNSUPPORTED_MOVE
    assert selection_list.keys() == ["A", "B", "C", "D"]


def test_stale_group_key_is_abandoned(selection_list):
    engine = ReorderEngine(selection_list)
    engine.drag_start(DragStart(group_ref("B")))
    selection_list.remove("B")
    result = engine.drag_end(DragEnd(active=group_ref("B"), over=group_ref("D")))
    assert result.error is ErrorKind.KEY_RESOLUTION_FAILURE
    assert selection_list.keys() == ["A", "C", "D"]
    assert engine.last_result is result


def test_stale_sub_item_keys_are_abandoned(selection_list):
    engine = ReorderEngine(selection_list)
    assert drag(engine, sub_ref("gone"), sub_ref("x")).error is ErrorKind.KEY_RESOLUTION_FAILURE
    assert drag(engine, sub_ref("x"), sub_ref("gone")).error is ErrorKind.KEY_RESOLUTION_FAILURE
    assert [s.key for s in selection_list.find_group("C").sub_items] == ["x", "y", "z"]


def test_metadata_follows_entities_across_moves(selection_list):
    c = selection_list.find_group("C")
    c.sub_items[2].title = "Zed"
    engine = ReorderEngine(selection_list)
    drag(engine, sub_ref("z"), sub_ref("x"))
    drag(engine, group_ref("C"), group_ref("A"))
    assert selection_list.groups[0] is c
    assert c.sub_items[0].title == "Zed"


def test_cancel_resets_state(selection_list):
    engine = ReorderEngine(selection_list)
    engine.drag_start(DragStart(group_ref("A")))
    assert engine.active == group_ref("A")
    engine.cancel()
    assert engine.active is None


def test_drag_end_while_idle_is_ignored(selection_list, caplog):
    engine = ReorderEngine(selection_list)
    with caplog.at_level(logging.WARNING, logger="upsell.reorder"):
        result = engine.drag_end(DragEnd(active=group_ref("A"), over=group_ref("C")))
    assert result.applied is False
    assert result.error is None
    assert selection_list.keys() == ["A", "B", "C", "D"]
    assert not engine.is_dragging
    assert "without a drag in progress" in caplog.text

    engine.drag_start(DragStart(group_ref("A")))
    engine.cancel()
    assert engine.drag_end(DragEnd(active=group_ref("A"), over=group_ref("C"))).applied is False
    assert selection_list.keys() == ["A", "B", "C", "D"]
