"""Tests for extent tracking."""

import pytest
from hypothesis import given, strategies as st

from suppositions.data import Discard, ReplaySource
from suppositions.extents import ROOT, ExtentKind, ExtentTracker, ExtentTree
from suppositions.generators import (
    booleans,
    composite,
    lists,
    one_of,
    optional,
    tuples,
    u8s,
    u16s,
)
from tests.helpers import generate


@composite
def three_raw_bytes(source):
    return [source.draw_u8() for _ in range(3)]


@composite
def raw_then_drawn_then_raw(source):
    a = source.draw_u8()
    b = source.draw(u8s())
    c = source.draw_u8()
    return (a, b, c)


def test_empty_tree_is_a_single_root():
    tree = ExtentTree()
    assert len(tree) == 1
    assert tree.root.kind is ExtentKind.branch
    assert tree.render() == "[]"


def test_each_draw_opens_a_branch():
    value, tracker = generate(tuples(u8s(), u8s()), b"\x01\x02")
    assert value == (1, 2)
    assert tracker.tree.render() == "[[[1], [1]]]"


def test_raw_reads_are_coalesced_into_one_leaf():
    value, tracker = generate(three_raw_bytes, b"\x01\x02\x03")
    assert value == [1, 2, 3]
    assert tracker.tree.render() == "[[3]]"


def test_leaves_are_split_by_branches():
    value, tracker = generate(raw_then_drawn_then_raw, b"\x01\x02\x03")
    assert value == (1, 2, 3)
    assert tracker.tree.render() == "[[1, [1], 1]]"


def test_branches_are_labelled_with_their_generator():
    _, tracker = generate(tuples(u8s(), three_raw_bytes), b"")
    labels = [tracker.tree[i].label for i in tracker.tree.branches()]
    assert labels == ["TupleGenerator", "UnsignedIntegers", "three_raw_bytes"]


def test_labels_of_mapped_generators_are_inherited():
    _, tracker = generate(u8s().map(str), b"\x01")
    assert [tracker.tree[i].label for i in tracker.tree.branches()] == [
        "UnsignedIntegers"
    ]


def test_spans_cover_consumed_bytes():
    _, tracker = generate(tuples(u16s(), u8s()), b"\x01\x02\x03")
    tree = tracker.tree
    outer, first, second = tree.branches()
    assert (tree[outer].start, tree[outer].end) == (0, 3)
    assert (tree[first].start, tree[first].end) == (0, 2)
    assert (tree[second].start, tree[second].end) == (2, 3)
    assert tree.root.end == tracker.position == 3


def test_depths_increase_with_nesting():
    _, tracker = generate(tuples(tuples(u8s())), b"\x01")
    tree = tracker.tree
    assert [tree[i].depth for i in tree.branches()] == [1, 2, 3]
    assert tracker.depth == 0


def test_tracker_buffer_includes_zeros_read_past_end():
    _, tracker = generate(u16s(), b"\x01")
    assert tracker.buffer == b"\x01\x00"


def test_following_siblings_of_collection_elements():
    # Three elements, then a false coin that ends the list.
    value, tracker = generate(lists(u8s()), bytes([255, 1, 255, 2, 255, 3]))
    assert value == [1, 2, 3]
    tree = tracker.tree
    (collection,) = tree.children(ROOT)
    elements = tree.children(collection)
    assert len(elements) == 4
    assert tree.following_siblings(elements[0]) == elements[1:]
    assert tree.following_siblings(elements[-1]) == []
    assert tree.following_siblings(ROOT) == []


def test_discard_leaves_the_tracker_at_the_top_level():
    tracker = ExtentTracker(ReplaySource(b"\x07"))
    with pytest.raises(Discard):
        tracker.draw(u8s().filter(lambda x: False))
    assert tracker.depth == 0
    assert tracker.position == 1


def test_copy_is_independent():
    _, tracker = generate(tuples(u8s(), u8s()), b"\x01\x02")
    tree = tracker.tree
    copied = tree.copy()
    copied[ROOT].children.clear()
    copied[1].end = 100
    assert tree.render() == "[[[1], [1]]]"
    assert tree[1].end == 2


def test_leaves_are_in_consumption_order():
    _, tracker = generate(raw_then_drawn_then_raw, b"\x01\x02\x03")
    tree = tracker.tree
    assert [tree[i].start for i in tree.leaves()] == [0, 1, 2]


nested = lists(one_of(tuples(u8s(), booleans()), optional(u16s()), lists(u8s())))


@given(st.binary())
def test_tree_invariants_hold_for_any_buffer(buffer):
    _, tracker = generate(nested, buffer)
    tracker.tree.check_invariants()
    assert tracker.tree.root.end == tracker.position


@given(st.binary())
def test_tracking_does_not_change_values(buffer):
    value, _ = generate(nested, buffer)
    assert value == nested.generate_from(buffer)
