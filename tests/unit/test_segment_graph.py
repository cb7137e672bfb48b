"""Unit tests for segment graph mutations and display-order invariants."""

from __future__ import annotations

import itertools

import pytest

from zenstudio.errors import SegmentNotFoundError, SegmentOrderError
from zenstudio.models.datatypes import (
    AssetsUpdate,
    Branch,
    SegmentKind,
    SegmentUpdate,
    SourceMetaUpdate,
)
from zenstudio.story.graph import SegmentGraph, estimate_duration, word_count


def _sequential_ids(prefix: str = "seg"):  # type: ignore[no-untyped-def]
    """Return a deterministic id factory yielding `seg1`, `seg2`, ..."""

    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


def _graph_with(count: int) -> SegmentGraph:
    graph = SegmentGraph(id_factory=_sequential_ids())
    for index in range(count):
        graph.create(text=f"Segment number {index + 1}.")
    return graph


def _assert_consistent(graph: SegmentGraph) -> None:
    assert graph.check_consistency() == []
    assert sorted(graph.display_order) == sorted(graph.story.segments)


def test_create_appends_to_display_order_and_selects_new_segment() -> None:
    graph = _graph_with(2)

    new_id = graph.create(kind=SegmentKind.CHOICE, text="Left or right?")

    assert new_id == "seg3"
    assert graph.display_order == ("seg1", "seg2", "seg3")
    assert graph.active_segment_id == "seg3"
    created = graph.require("seg3")
    assert created.id == "seg3"
    assert created.kind is SegmentKind.CHOICE
    assert created.source_meta.mood == "Neutral"
    assert created.source_meta.estimated_duration == "0s"
    _assert_consistent(graph)


def test_create_skips_colliding_generated_ids() -> None:
    ids = iter(["dup", "dup", "fresh"])
    graph = SegmentGraph(id_factory=lambda: next(ids))

    first = graph.create(text="one")
    second = graph.create(text="two")

    assert (first, second) == ("dup", "fresh")


def test_create_blank_uses_placeholder_image() -> None:
    graph = SegmentGraph(id_factory=_sequential_ids(), blank_image_uri="https://img/blank.png")

    segment = graph.require(graph.create_blank())

    assert segment.text == ""
    assert segment.kind is SegmentKind.NARRATION
    assert segment.assets.image == "https://img/blank.png"
    assert segment.assets.audio is None


def test_create_from_ingested_derives_duration_once() -> None:
    """Five words at 2.5 words per second should yield a `2s` display duration."""

    graph = SegmentGraph(id_factory=_sequential_ids())

    segment_id = graph.create_from_ingested("one two three four five", "Calm", "https://img/p1")
    graph.update(segment_id, SegmentUpdate(text="a much longer replacement text " * 10))

    segment = graph.require(segment_id)
    assert segment.source_meta.mood == "Calm"
    assert segment.assets.image == "https://img/p1"
    assert segment.source_meta.estimated_duration == "2s"


@pytest.mark.parametrize(
    ("text", "expected_words", "expected_duration"),
    [("", 0, "0s"), ("one", 1, "1s"), ("one two three", 3, "2s"), ("  a\tb\nc d e f ", 6, "3s")],
)
def test_word_count_and_estimate_duration(
    text: str, expected_words: int, expected_duration: str
) -> None:
    assert word_count(text) == expected_words
    assert estimate_duration(text) == expected_duration


def test_update_merges_fields_and_never_changes_id() -> None:
    graph = _graph_with(1)

    applied = graph.update(
        "seg1",
        SegmentUpdate(
            text="Rewritten.",
            assets=AssetsUpdate(audio="file:///tmp/a.wav"),
            source_meta=SourceMetaUpdate(mood="Dark"),
        ),
    )

    segment = graph.require("seg1")
    assert applied is True
    assert segment.id == "seg1"
    assert segment.text == "Rewritten."
    assert segment.assets.audio == "file:///tmp/a.wav"
    assert segment.assets.image is None
    assert segment.source_meta.mood == "Dark"
    assert segment.source_meta.estimated_duration == "0s"


def test_update_of_unknown_id_is_a_silent_no_op() -> None:
    graph = _graph_with(2)
    before = graph.story

    assert graph.update("missing", SegmentUpdate(text="x")) is False
    assert graph.story is before


def test_delete_active_segment_reassigns_selection_to_first() -> None:
    graph = _graph_with(3)
    graph.select("seg2")

    assert graph.delete("seg2") is True

    assert graph.display_order == ("seg1", "seg3")
    assert graph.active_segment_id == "seg1"
    _assert_consistent(graph)


def test_delete_inactive_segment_keeps_selection() -> None:
    graph = _graph_with(3)

    graph.delete("seg1")

    assert graph.active_segment_id == "seg3"
    assert graph.display_order == ("seg2", "seg3")


def test_delete_last_segment_clears_selection() -> None:
    graph = _graph_with(1)

    graph.delete("seg1")

    assert graph.active_segment_id is None
    assert graph.display_order == ()
    assert len(graph) == 0


def test_delete_unknown_id_returns_false() -> None:
    graph = _graph_with(2)

    assert graph.delete("nope") is False
    assert graph.display_order == ("seg1", "seg2")


def test_reorder_moves_item_and_inverse_restores_order() -> None:
    graph = _graph_with(4)

    graph.reorder(0, 2)
    assert graph.display_order == ("seg2", "seg3", "seg1", "seg4")

    graph.reorder(2, 0)
    assert graph.display_order == ("seg1", "seg2", "seg3", "seg4")
    _assert_consistent(graph)


@pytest.mark.parametrize(("from_index", "to_index"), [(4, 0), (0, 4), (-1, 0), (0, -2)])
def test_reorder_rejects_out_of_range_indices(from_index: int, to_index: int) -> None:
    graph = _graph_with(4)

    with pytest.raises(SegmentOrderError):
        graph.reorder(from_index, to_index)

    assert graph.display_order == ("seg1", "seg2", "seg3", "seg4")


def test_mixed_mutation_sequence_keeps_order_a_permutation_of_ids() -> None:
    graph = _graph_with(5)

    graph.reorder(4, 1)
    graph.delete("seg3")
    graph.create(text="late arrival")
    graph.reorder(0, 4)
    graph.delete("seg1")
    graph.create_blank()

    _assert_consistent(graph)
    assert len(graph.display_order) == 5


def test_select_unknown_segment_raises_and_none_clears() -> None:
    graph = _graph_with(2)

    with pytest.raises(SegmentNotFoundError) as exc_info:
        graph.select("ghost")
    assert "ghost" in str(exc_info.value)

    graph.select(None)
    assert graph.active_segment is None


def test_branch_edges_can_be_added_and_removed() -> None:
    graph = _graph_with(3)

    graph.add_branch("seg1", "seg3", "has_basket")
    graph.add_branch("seg1", "missing-target")

    assert graph.require("seg1").branches == (
        Branch("seg3", "has_basket"),
        Branch("missing-target", None),
    )

    removed = graph.remove_branch("seg1", 0)

    assert removed == Branch("seg3", "has_basket")
    assert graph.require("seg1").branches == (Branch("missing-target", None),)
    with pytest.raises(IndexError):
        graph.remove_branch("seg1", 3)
    with pytest.raises(SegmentNotFoundError):
        graph.add_branch("ghost", "seg1")


def test_variables_are_set_validated_and_removed() -> None:
    graph = SegmentGraph()

    graph.set_variable("met_wolf", False)
    graph.set_variable("coins", 3)

    assert dict(graph.story.variables) == {"met_wolf": False, "coins": 3}
    with pytest.raises(ValueError):
        graph.set_variable("  ", True)
    with pytest.raises(TypeError):
        graph.set_variable("items", ["basket"])  # type: ignore[arg-type]
    assert graph.remove_variable("coins") is True
    assert graph.remove_variable("coins") is False


def test_listeners_receive_every_mutation() -> None:
    events: list[tuple[str, str | None]] = []
    graph = SegmentGraph(id_factory=_sequential_ids())
    graph.add_listener(lambda operation, segment_id: events.append((operation, segment_id)))

    graph.create(text="a")
    graph.create(text="b")
    graph.update("seg1", SegmentUpdate(text="c"))
    graph.reorder(0, 1)
    graph.select("seg2")
    graph.delete("seg2")
    graph.update("ghost", SegmentUpdate(text="ignored"))

    assert events == [
        ("create", "seg1"),
        ("create", "seg2"),
        ("update", "seg1"),
        ("reorder", "seg1"),
        ("select", "seg2"),
        ("delete", "seg2"),
    ]


def test_check_consistency_reports_broken_records() -> None:
    from zenstudio.models.datatypes import Segment, Story

    story = Story(
        segments={"a": Segment(id="a"), "b": Segment(id="x")},
        display_order=("a", "a", "c"),
    )
    graph = SegmentGraph(story, active_segment_id="zzz")

    problems = graph.check_consistency()

    assert any("duplicate" in problem for problem in problems)
    assert any("unknown ids: c" in problem for problem in problems)
    assert any("missing from display order: b" in problem for problem in problems)
    assert any("holds id `x`" in problem for problem in problems)
    assert any("active selection" in problem for problem in problems)
