"""Unit tests for problem module utilities and classes."""

import pytest

from suppositions.generators import lists, tuples, u8s
from suppositions.problem import (
    InvalidInitialExample,
    ShrinkProblem,
    ShrinkStats,
    canonical_buffer,
    default_cache_key,
    shortlex,
)
from tests.helpers import failing_runner


# =============================================================================
# shortlex function tests
# =============================================================================


def test_shortlex_shorter_wins():
    assert shortlex(b"\xff") < shortlex(b"\x00\x00")


def test_shortlex_same_length_lexicographic():
    assert shortlex(b"ab") < shortlex(b"ba")


def test_shortlex_equal():
    assert shortlex(b"ab") == shortlex(b"ab")


def test_shortlex_empty():
    assert shortlex(b"") < shortlex(b"\x00")


# =============================================================================
# canonical_buffer and cache key tests
# =============================================================================


@pytest.mark.parametrize(
    "consumed,expected",
    [
        (b"", b""),
        (b"\x00\x00", b""),
        (b"\x01\x00", b"\x01"),
        (b"\x00\x01", b"\x00\x01"),
        (b"\x01\x00\x02\x00", b"\x01\x00\x02"),
    ],
)
def test_canonical_buffer_strips_trailing_zeros(consumed, expected):
    assert canonical_buffer(consumed) == expected


def test_default_cache_key_includes_length():
    assert default_cache_key(b"abc").startswith("3:")


def test_default_cache_key_distinguishes_buffers():
    assert default_cache_key(b"abc") != default_cache_key(b"abd")


# =============================================================================
# ShrinkProblem tests
# =============================================================================


async def make_problem(generator, fails, initial, **kwargs):
    runner = failing_runner(generator, fails)
    candidate = await runner.replay(initial)
    assert candidate is not None
    return ShrinkProblem(candidate, runner.replay, runner.work, **kwargs)


async def test_setup_canonicalises_initial():
    problem = await make_problem(
        tuples(u8s(), u8s()), lambda t: t[0] > 0, b"\x05\x00\x00\x00"
    )
    await problem.setup()
    assert problem.current.buffer == b"\x05"
    assert problem.current.value == (5, 0)
    assert problem.stats.current_size == 1


async def test_setup_rejects_passing_initial():
    runner = failing_runner(u8s(), lambda x: x > 10)
    candidate = await runner.replay(b"\x20")
    problem = ShrinkProblem(candidate, runner.replay, runner.work)

    # The test changes its mind, as flaky tests do.
    runner.predicate = lambda x: True
    with pytest.raises(InvalidInitialExample):
        await problem.setup()


async def test_setup_is_idempotent():
    problem = await make_problem(u8s(), lambda x: x > 0, b"\x05")
    await problem.setup()
    await problem.setup()
    assert problem.stats.calls == 0


async def test_is_interesting_adopts_smaller_failures():
    problem = await make_problem(u8s(), lambda x: x > 0, b"\x05")
    await problem.setup()
    assert await problem.is_interesting(b"\x03")
    assert problem.current.buffer == b"\x03"
    assert problem.current.value == 3
    assert problem.stats.reductions == 1


async def test_is_interesting_does_not_adopt_larger_failures():
    problem = await make_problem(u8s(), lambda x: x > 0, b"\x05")
    await problem.setup()
    assert await problem.is_interesting(b"\x07")
    assert problem.current.buffer == b"\x05"
    assert problem.stats.failed_reductions == 1


async def test_is_interesting_caches_results():
    problem = await make_problem(u8s(), lambda x: x > 4, b"\x05")
    await problem.setup()
    assert not await problem.is_interesting(b"\x03")
    assert not await problem.is_interesting(b"\x03")
    assert problem.stats.calls == 1
    assert problem.stats.cache_hits == 1


async def test_current_buffer_is_interesting_without_a_call():
    problem = await make_problem(u8s(), lambda x: x > 4, b"\x05")
    await problem.setup()
    assert await problem.is_interesting(b"\x05")
    assert problem.stats.calls == 0


async def test_is_reduction_skips_larger_buffers():
    problem = await make_problem(u8s(), lambda x: x > 0, b"\x05")
    await problem.setup()
    assert not await problem.is_reduction(b"\x05\x01")
    assert not await problem.is_reduction(b"\x06")
    assert problem.stats.calls == 0


async def test_is_reduction_reports_adoption():
    problem = await make_problem(u8s(), lambda x: x > 0, b"\x05")
    await problem.setup()
    assert not await problem.is_reduction(b"")
    assert await problem.is_reduction(b"\x01")
    assert problem.current.buffer == b"\x01"


async def test_adopted_candidates_are_canonical():
    problem = await make_problem(
        tuples(u8s(), u8s()), lambda t: t[0] > 0, b"\x05\x07"
    )
    await problem.setup()
    assert await problem.is_reduction(b"\x01\x00")
    assert problem.current.buffer == b"\x01"


async def test_max_shrinks_limits_reductions():
    problem = await make_problem(u8s(), lambda x: x > 0, b"\x05", max_shrinks=1)
    await problem.setup()
    assert not problem.exhausted
    assert await problem.is_reduction(b"\x04")
    assert problem.exhausted
    assert not await problem.is_reduction(b"\x01")
    assert problem.current.buffer == b"\x04"


async def test_on_reduce_callbacks():
    problem = await make_problem(lists(u8s()), lambda xs: len(xs) > 0, b"\xff\x05")
    await problem.setup()
    seen = []

    async def record(candidate):
        seen.append(candidate.value)

    problem.on_reduce(record)
    await problem.is_reduction(b"\xff")
    assert seen == [[0]]


async def test_discards_are_not_failures():
    problem = await make_problem(
        u8s().filter(lambda x: x != 3), lambda x: x > 0, b"\x05"
    )
    await problem.setup()
    assert not await problem.is_interesting(b"\x03")
    assert problem.current.buffer == b"\x05"


def test_stats_display():
    stats = ShrinkStats(initial_size=100, current_size=10, reductions=3)
    text = stats.display_stats()
    assert "Shrunk from 100 Bytes to 10 Bytes in 3 steps" in text
    assert "Replays" in text


def test_stats_display_without_reductions():
    stats = ShrinkStats(initial_size=10, current_size=10)
    assert "Could not shrink below 10 Bytes" in stats.display_stats()
