"""Work coordination and reporting.

This module provides WorkContext, which decides how shrink proposals
are evaluated and where diagnostics go. Proposals are tried in order and
the first success wins; with parallelism enabled several proposals may be
evaluated speculatively, but results always come back in input order so
that shrinking is reproducible.

Key concepts:
- Lazy evaluation: Don't test a proposal until we need its result
- Backpressure: Limit in-flight work to avoid memory exhaustion
- Order preservation: Results come out in input order for reproducibility
"""

import heapq
import sys
from collections.abc import Awaitable, Callable, Iterable, Sequence
from contextlib import aclosing, asynccontextmanager
from enum import IntEnum
from itertools import islice
from random import Random
from typing import TypeVar

import trio


class Volume(IntEnum):
    """Logging verbosity levels."""

    quiet = 0
    normal = 1
    verbose = 2
    debug = 3


S = TypeVar("S")
T = TypeVar("T")


def print_to_stderr(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


class WorkContext:
    """Coordinates evaluation of candidates and reporting.

    WorkContext provides methods for map, filter, and search operations
    that are tailored for shrinking:

    - map(): Lazy map with backpressure
    - filter(): Filter, yielding matching items
    - find_first_value(): Find first item satisfying a predicate
    - find_large_integer(): Exponential probe for largest valid integer

    It also owns the random number generator that seeds each trial's
    byte pool, so that a whole run is determined by a single seed.
    """

    def __init__(
        self,
        random: Random | None = None,
        parallelism: int = 1,
        volume: Volume = Volume.normal,
        printer: Callable[[str], None] | None = None,
    ):
        self.random = random or Random(0)
        self.parallelism = parallelism
        self.volume = volume
        self.printer = printer or print_to_stderr

    @asynccontextmanager
    async def map(self, ls: Iterable[T], f: Callable[[T], Awaitable[S]]):
        """Lazy map.

        Doesn't race ahead of the current point of iteration and will
        generally have prefetched at most as many values as you've already
        read. This matters for `find_first_value`, where we want to avoid
        testing proposals after one has already succeeded.
        """

        async with trio.open_nursery() as nursery:
            send, receive = trio.open_memory_channel(self.parallelism + 1)

            @nursery.start_soon
            async def do_map():
                if self.parallelism > 1:
                    it = iter(ls)

                    for x in it:
                        await send.send(await f(x))
                        break
                    else:
                        send.close()
                        return

                    n = 2
                    while True:
                        values = list(islice(it, n))
                        if not values:
                            send.close()
                            return

                        async with parallel_map(
                            values, f, parallelism=min(self.parallelism, n)
                        ) as result:
                            async with aclosing(result) as aiter:
                                async for v in aiter:
                                    await send.send(v)

                        n *= 2
                else:
                    for x in ls:
                        await send.send(await f(x))
                    send.close()

            yield receive
            nursery.cancel_scope.cancel()

    @asynccontextmanager
    async def filter(self, ls: Iterable[T], f: Callable[[T], Awaitable[bool]]):
        async def apply(x: T) -> tuple[T, bool]:
            return (x, await f(x))

        async with trio.open_nursery() as nursery:
            send, receive = trio.open_memory_channel(float("inf"))

            @nursery.start_soon
            async def _():
                async with self.map(ls, apply) as results:
                    async with aclosing(results) as aiter:
                        async for x, v in aiter:
                            if v:
                                await send.send(x)
                    send.close()

            yield receive
            nursery.cancel_scope.cancel()

    async def find_first_value(
        self, ls: Iterable[T], f: Callable[[T], Awaitable[bool]]
    ) -> T:
        """Returns the first element of `ls` that satisfies `f`, or
        raises `NotFound` if no such element exists.

        Will run in parallel if parallelism is enabled.
        """
        if self.parallelism <= 1:
            for x in ls:
                if await f(x):
                    return x
            raise NotFound()
        async with self.filter(ls, f) as filtered:
            async with aclosing(filtered) as aiter:
                async for x in aiter:
                    return x
        raise NotFound()

    async def find_large_integer(self, f: Callable[[int], Awaitable[bool]]) -> int:
        """Finds a (hopefully large) integer n such that f(n) is True and f(n + 1)
        is False. Runs in O(log(n)).

        f(0) is assumed to be True and will not be checked. May not terminate unless
        f(n) is False for all sufficiently large n.
        """
        # Linear scan over the small numbers first: when the answer is small,
        # jumping ahead only wastes calls.
        for i in range(1, 5):
            if not await f(i):
                return i - 1

        # lo is the largest number for which we know that f(lo) is true.
        lo = 4

        # Exponential probe upwards until f(hi) fails. From then on hi is the
        # smallest number for which we know that f(hi) is not true.
        hi = 5
        while await f(hi):
            lo = hi
            hi *= 2

        while lo + 1 < hi:
            mid = (lo + hi) // 2
            if await f(mid):
                lo = mid
            else:
                hi = mid
        return lo

    def note(self, msg: str) -> None:
        self.report(msg, Volume.normal)

    def verbose(self, msg: str) -> None:
        self.report(msg, Volume.verbose)

    def debug(self, msg: str) -> None:
        self.report(msg, Volume.debug)

    def report(self, msg: str, level: Volume) -> None:
        if self.volume >= level:
            self.printer(msg)


class NotFound(Exception):
    pass


@asynccontextmanager
async def parallel_map(
    ls: Sequence[T],
    f: Callable[[T], Awaitable[S]],
    parallelism: int,
):
    send_out_values, receive_out_values = trio.open_memory_channel(parallelism)

    work = list(enumerate(ls))
    work.reverse()

    result_heap = []

    async with trio.open_nursery() as nursery:
        results_ready = trio.Event()

        for _ in range(parallelism):

            @nursery.start_soon
            async def do_work():
                while work:
                    i, x = work.pop()
                    result = await f(x)
                    heapq.heappush(result_heap, (i, result))
                    results_ready.set()

        @nursery.start_soon
        async def consolidate() -> None:
            nonlocal results_ready
            i = 0

            while work or result_heap:
                while not result_heap:
                    await results_ready.wait()
                    results_ready = trio.Event()
                j, x = result_heap[0]
                if j == i:
                    await send_out_values.send(x)
                    i = j + 1
                    heapq.heappop(result_heap)
                else:
                    await results_ready.wait()
                    results_ready = trio.Event()
            send_out_values.close()

        yield receive_out_values
        nursery.cancel_scope.cancel()
