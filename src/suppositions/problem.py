"""Core abstractions for shrinking a failing test case.

- Candidate: a byte buffer together with what it generates (value, extent
  tree, failure message)
- ShrinkProblem: the current best failing candidate, plus a cached way of
  asking whether some other buffer also fails

Shrinking is about finding the smallest buffer that still makes the test
fail. Buffers are compared in shortlex order: shorter buffers are always
smaller, and among equal length buffers the lexicographically smaller one
wins. Shortlex is a total order that refines "no larger in length and in
every byte", so every buffer the shrinker adopts is no larger than the one
it replaced by that measure too.
"""

import hashlib
import time
from collections.abc import Awaitable, Callable, Sized
from datetime import timedelta
from typing import Any

import attrs
import trio
from attrs import define
from humanize import naturalsize, precisedelta

from suppositions.extents import ExtentTree
from suppositions.work import WorkContext


def shortlex[SizedT: Sized](value: SizedT) -> tuple[int, SizedT]:
    """Return a comparison key for shortlex ordering.

    Shortlex ordering compares first by length, then lexicographically.
    This ensures shorter buffers are always preferred, and among
    equal-length buffers, lexicographically smaller ones win.

    Example:
        >>> shortlex(b"aa") < shortlex(b"aaa")  # shorter wins
        True
        >>> shortlex(b"ab") < shortlex(b"ba")   # same length, lex order
        True
    """
    return (len(value), value)


def canonical_buffer(consumed: bytes) -> bytes:
    """The shortest buffer that replays to the same reads as `consumed`.

    Replay sources read zero past their end, so trailing zero bytes never
    need to be stored.
    """
    return consumed.rstrip(b"\x00")


@define(frozen=True)
class Candidate:
    """A failing buffer and everything it generated."""

    buffer: bytes
    tree: ExtentTree = attrs.field(eq=False, repr=False)
    value: Any = attrs.field(eq=False)
    message: str = attrs.field(default="", eq=False)

    @property
    def sort_key(self) -> tuple[int, bytes]:
        return shortlex(self.buffer)

    @property
    def size(self) -> int:
        return len(self.buffer)


@define
class ShrinkStats:
    calls: int = 0
    cache_hits: int = 0
    reductions: int = 0
    failed_reductions: int = 0
    discards: int = 0
    generation_errors: int = 0

    start_time: float = attrs.Factory(time.time)
    time_of_last_reduction: float = 0.0

    initial_size: int = 0
    current_size: int = 0

    def display_stats(self) -> str:
        runtime = time.time() - self.start_time
        if self.reductions > 0:
            reduction_msg = (
                f"Shrunk from {naturalsize(self.initial_size, binary=True)} to "
                f"{naturalsize(self.current_size, binary=True)} in {self.reductions} steps"
            )
        else:
            reduction_msg = (
                f"Could not shrink below {naturalsize(self.current_size, binary=True)}"
            )
        return "\n".join(
            [
                reduction_msg,
                f"Shrinking time: {precisedelta(timedelta(seconds=runtime))}",
                (
                    f"Replays: {self.calls} ({self.cache_hits} cached, "
                    f"{self.discards} discarded, {self.generation_errors} errored)"
                ),
            ]
        )


class InvalidInitialExample(ValueError):
    pass


def default_cache_key(buffer: bytes) -> str:
    hex = hashlib.sha1(buffer).hexdigest()[:8]
    return f"{len(buffer)}:{hex}"


# Replays a buffer through the generator and the test. Returns the
# resulting candidate if the test failed, or None if it passed or the
# generator discarded the buffer.
Replay = Callable[[bytes], Awaitable[Candidate | None]]


class ShrinkProblem:
    """The state of one shrink: the current best candidate and a cached
    test for other buffers.

    Shrink passes work by calling is_reduction() with proposal buffers.
    Whenever a proposal fails the test and is smaller than the current
    candidate, `current` is automatically updated, and cached results are
    dropped (proposals derived from the old candidate rarely recur).
    """

    def __init__(
        self,
        initial: Candidate,
        replay: Replay,
        work: WorkContext,
        max_shrinks: int | None = None,
        stats: ShrinkStats | None = None,
    ):
        self.work = work
        self.max_shrinks = max_shrinks
        self.__replay = replay
        self.__initial = initial
        self.__current = initial
        self.__cache: dict[str, bool] = {}
        self.__on_reduce_callbacks: list[Callable[[Candidate], Awaitable[None]]] = []
        self.__has_set_up = False
        if stats is None:
            stats = ShrinkStats(initial_size=initial.size, current_size=initial.size)
        self._stats = stats

    @property
    def current(self) -> Candidate:
        return self.__current

    @property
    def initial(self) -> Candidate:
        return self.__initial

    @property
    def stats(self) -> ShrinkStats:
        return self._stats

    @property
    def exhausted(self) -> bool:
        """True once we have made as many reductions as we are allowed to."""
        return self.max_shrinks is not None and self.stats.reductions >= self.max_shrinks

    def on_reduce(self, callback: Callable[[Candidate], Awaitable[None]]) -> None:
        """Call `callback` with every newly adopted candidate."""
        self.__on_reduce_callbacks.append(callback)

    async def setup(self) -> None:
        """Replay the initial buffer to check it fails and to put it into
        canonical form."""
        if self.__has_set_up:
            return
        self.__has_set_up = True
        replayed = await self.__replay(self.__current.buffer)
        if replayed is None:
            raise InvalidInitialExample(
                f"Initial buffer of {self.__current.size} bytes does not fail when replayed."
            )
        self.__current = replayed
        self.stats.current_size = replayed.size

    async def is_interesting(self, buffer: bytes) -> bool:
        """Returns True if replaying `buffer` fails the test."""
        await trio.lowlevel.checkpoint()
        if buffer == self.current.buffer:
            return True
        key = default_cache_key(buffer)
        try:
            result = self.__cache[key]
        except KeyError:
            pass
        else:
            self.stats.cache_hits += 1
            return result

        self.stats.calls += 1
        candidate = await self.__replay(buffer)
        result = candidate is not None
        self.__cache[key] = result
        self.work.debug(f"Replayed {len(buffer)} bytes: {'fails' if result else 'passes'}")

        if candidate is not None:
            if candidate.sort_key < self.current.sort_key and not self.exhausted:
                await self.__adopt(candidate)
            else:
                self.stats.failed_reductions += 1
        return result

    async def is_reduction(self, buffer: bytes) -> bool:
        """Returns True if `buffer` was adopted as a smaller failing candidate.

        Buffers that are not smaller than the current one are rejected
        without being replayed.
        """
        if self.exhausted or shortlex(buffer) >= self.current.sort_key:
            return False
        before = self.current
        await self.is_interesting(buffer)
        return self.current is not before

    async def __adopt(self, candidate: Candidate) -> None:
        self.__cache.clear()
        self.stats.reductions += 1
        self.stats.current_size = candidate.size
        self.stats.time_of_last_reduction = time.time()
        self.work.verbose(
            f"Shrunk to {candidate.size} bytes: {candidate.value!r} ({candidate.tree.render()})"
        )
        self.__current = candidate
        for f in self.__on_reduce_callbacks:
            await f(candidate)
