"""Running trials: generate, test, and shrink on failure.

The Runner owns everything about one property check. For each trial it
hands a fresh live byte source (wrapped in an ExtentTracker) to the
generator, runs the predicate on the result, and classifies the outcome:

- passed: the predicate returned normally with anything other than False
  or an exception instance
- failed: the predicate returned False, returned an exception instance, or
  raised an exception. The exception is captured as data and never
  escapes the runner.
- discarded: the generator or the predicate raised Discard

On the first failure no further random trials are run. The failing
buffer and its extent tree are handed to the Shrinker, which replays
smaller buffers through exactly the same generate-and-test step.
"""

import inspect
import time
import traceback
from collections.abc import Callable
from datetime import timedelta
from enum import Enum, auto
from random import Random
from typing import Any

import attrs
import trio
from attrs import define, field, validators
from humanize import intcomma, naturalsize, precisedelta

from suppositions.data import ByteSource, Discard, Pool, ReplaySource
from suppositions.extents import ExtentTracker
from suppositions.generators.core import Generator
from suppositions.problem import (
    Candidate,
    InvalidInitialExample,
    ShrinkProblem,
    ShrinkStats,
    canonical_buffer,
)
from suppositions.shrinker import Shrinker
from suppositions.work import Volume, WorkContext


class Status(Enum):
    """The outcome of a single trial."""

    passed = auto()
    failed = auto()
    discarded = auto()


@define(frozen=True)
class Outcome:
    status: Status
    message: str = ""
    exception: BaseException | None = field(default=None, eq=False)


def describe_exception(e: BaseException) -> str:
    return "".join(traceback.format_exception_only(e)).strip()


async def run_predicate(predicate: Callable[[Any], Any], value: Any) -> Outcome:
    """Run `predicate` on `value`, capturing any failure as an Outcome.

    Async predicates are awaited. Exceptions that do not derive from
    Exception (KeyboardInterrupt, trio.Cancelled, ...) propagate.
    """
    try:
        result = predicate(value)
        if inspect.isawaitable(result):
            result = await result
    except Discard:
        return Outcome(Status.discarded)
    except Exception as e:
        return Outcome(Status.failed, describe_exception(e), e)
    if result is False:
        return Outcome(Status.failed, "Predicate returned False")
    if isinstance(result, BaseException):
        return Outcome(Status.failed, describe_exception(result), result)
    return Outcome(Status.passed)


@define(frozen=True)
class CheckConfig:
    runs: int = field(default=100, validator=validators.ge(1))
    max_discards: int = field(default=1000, validator=validators.ge(1))
    pool_size_hint: int = field(default=1024, validator=validators.ge(1))
    seed: int | None = None
    parallelism: int = field(default=1, validator=validators.ge(1))
    volume: Volume = Volume.quiet
    max_shrinks: int | None = field(
        default=None, validator=validators.optional(validators.ge(0))
    )


class CheckStatus(Enum):
    passed = auto()
    failed = auto()
    discards_exhausted = auto()


@define
class RunStats:
    passed: int = 0
    discarded: int = 0
    consecutive_discards: int = 0
    bytes_drawn: int = 0
    start_time: float = attrs.Factory(time.time)

    @property
    def trials(self) -> int:
        return self.passed + self.discarded

    def display_stats(self) -> str:
        runtime = time.time() - self.start_time
        return "\n".join(
            [
                f"Trials: {intcomma(self.trials)} ({intcomma(self.passed)} passed, "
                f"{intcomma(self.discarded)} discarded)",
                f"Bytes drawn: {naturalsize(self.bytes_drawn, binary=True)}",
                f"Total runtime: {precisedelta(timedelta(seconds=runtime))}",
            ]
        )


@define
class CheckResult:
    status: CheckStatus
    stats: RunStats
    value: Any = None
    buffer: bytes | None = None
    message: str = ""
    original_value: Any = None
    original_buffer: bytes | None = None
    shrink_stats: ShrinkStats | None = None

    @property
    def passed(self) -> bool:
        return self.status is CheckStatus.passed

    @property
    def failed(self) -> bool:
        return self.status is CheckStatus.failed

    def display(self) -> str:
        if self.status is CheckStatus.passed:
            return f"Passed {self.stats.passed} trials"
        if self.status is CheckStatus.discards_exhausted:
            return (
                f"Gave up after {self.stats.consecutive_discards} consecutive discards "
                f"({self.stats.passed} trials passed): generators are too restrictive"
            )
        lines = [
            f"Predicate failed for argument {self.value!r}",
            f"  {self.message}",
        ]
        if self.buffer is not None:
            lines.append(f"  from buffer {self.buffer.hex() or '(empty)'}")
        if self.original_buffer is not None and self.original_buffer != self.buffer:
            lines.append(
                f"  (shrunk from {self.original_value!r}, "
                f"{len(self.original_buffer)} bytes)"
            )
        return "\n".join(lines)


@define
class Runner[T]:
    generator: Generator[T]
    predicate: Callable[[T], Any]
    config: CheckConfig = attrs.Factory(CheckConfig)
    printer: Callable[[str], None] | None = None

    stats: RunStats = attrs.field(init=False, factory=RunStats)
    shrink_stats: ShrinkStats | None = attrs.field(init=False, default=None)
    work: WorkContext = attrs.field(init=False)

    def __attrs_post_init__(self) -> None:
        self.work = WorkContext(
            random=Random(self.config.seed),
            parallelism=self.config.parallelism,
            volume=self.config.volume,
            printer=self.printer,
        )

    async def trial(self, source: ByteSource) -> tuple[Outcome, T | None, ExtentTracker]:
        """Generate a value from `source` and test it."""
        tracker = ExtentTracker(source)
        try:
            value = tracker.draw(self.generator)
        except Discard:
            return Outcome(Status.discarded), None, tracker
        await trio.lowlevel.checkpoint()
        return await run_predicate(self.predicate, value), value, tracker

    async def replay(self, buffer: bytes) -> Candidate | None:
        """Replay `buffer`, returning a candidate if the test still fails.

        A buffer that now gets discarded is simply not a failure, and neither
        is one whose generation raises: shrinking reaches values such as zero
        that random trials rarely do, and those must not lose the failure we
        already have.
        """
        try:
            outcome, value, tracker = await self.trial(ReplaySource(buffer))
        except Exception as e:
            if self.shrink_stats is not None:
                self.shrink_stats.generation_errors += 1
            self.work.debug(f"Generating from {buffer.hex()} raised {describe_exception(e)}")
            return None
        if outcome.status is Status.discarded and self.shrink_stats is not None:
            self.shrink_stats.discards += 1
        if outcome.status is not Status.failed:
            return None
        return Candidate(
            buffer=canonical_buffer(tracker.buffer),
            tree=tracker.tree,
            value=value,
            message=outcome.message,
        )

    async def run(self) -> CheckResult:
        pool_random = self.work.random
        while self.stats.passed < self.config.runs:
            pool = Pool(pool_random, self.config.pool_size_hint)
            outcome, value, tracker = await self.trial(pool.source())
            self.stats.bytes_drawn += tracker.position

            if outcome.status is Status.discarded:
                self.stats.discarded += 1
                self.stats.consecutive_discards += 1
                self.work.debug(f"Trial {self.stats.trials} discarded")
                if self.stats.consecutive_discards >= self.config.max_discards:
                    self.work.note(
                        f"Giving up after {self.stats.consecutive_discards} consecutive discards"
                    )
                    return CheckResult(CheckStatus.discards_exhausted, self.stats)
                continue

            self.stats.consecutive_discards = 0
            if outcome.status is Status.passed:
                self.stats.passed += 1
                continue

            self.work.note(
                f"Trial {self.stats.trials + 1} failed ({outcome.message}); "
                f"shrinking {tracker.position} bytes"
            )
            failing = Candidate(
                buffer=tracker.buffer,
                tree=tracker.tree,
                value=value,
                message=outcome.message,
            )
            return await self.shrink(failing)

        self.work.note(f"Passed {self.stats.passed} trials")
        return CheckResult(CheckStatus.passed, self.stats)

    async def shrink(self, failing: Candidate) -> CheckResult:
        self.shrink_stats = ShrinkStats(
            initial_size=failing.size, current_size=failing.size
        )
        problem = ShrinkProblem(
            initial=failing,
            replay=self.replay,
            work=self.work,
            max_shrinks=self.config.max_shrinks,
            stats=self.shrink_stats,
        )
        try:
            best = await Shrinker(problem).run()
        except InvalidInitialExample as e:
            self.work.note(f"Not shrinking a flaky failure: {e}")
            best = failing
        self.work.verbose(self.shrink_stats.display_stats())
        return CheckResult(
            CheckStatus.failed,
            self.stats,
            value=best.value,
            buffer=best.buffer,
            message=best.message,
            original_value=failing.value,
            original_buffer=failing.buffer,
            shrink_stats=self.shrink_stats,
        )


def check[T](
    generator: Generator[T],
    predicate: Callable[[T], Any],
    config: CheckConfig | None = None,
    **overrides: Any,
) -> CheckResult:
    """Check that `predicate` holds for values from `generator`.

    Keyword arguments override fields of `config`. Must not be called from
    inside a running trio loop; await `Runner(...).run()` there instead.
    """
    config = attrs.evolve(config or CheckConfig(), **overrides)
    return trio.run(Runner(generator, predicate, config).run)
