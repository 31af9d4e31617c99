from collections.abc import Callable, Iterable
from typing import Any, TypeVar

import trio

from suppositions.data import ReplaySource
from suppositions.extents import ExtentTracker
from suppositions.generators.core import Generator
from suppositions.passes.definitions import ShrinkPass
from suppositions.problem import Candidate, ShrinkProblem
from suppositions.runner import CheckConfig, Runner, check
from suppositions.shrinker import Shrinker


T = TypeVar("T")


def generate(generator: Generator[T], buffer: bytes) -> tuple[T, ExtentTracker]:
    """Replay `buffer` through `generator`, returning the value and the
    tracker that recorded it."""
    tracker = ExtentTracker(ReplaySource(buffer))
    value = tracker.draw(generator)
    return value, tracker


def failing_runner(
    generator: Generator[T], fails: Callable[[T], bool], **config: Any
) -> Runner[T]:
    """A runner whose predicate fails exactly when `fails` is true."""
    return Runner(generator, lambda value: not fails(value), CheckConfig(**config))


def shrink(
    generator: Generator[T],
    fails: Callable[[T], bool],
    initial: bytes,
    shrink_passes: Iterable[ShrinkPass] | None = None,
    parallelism: int = 1,
    max_shrinks: int | None = None,
) -> ShrinkProblem:
    """Shrink `initial`, which must fail, and return the finished problem."""
    runner = failing_runner(generator, fails, parallelism=parallelism)

    async def calc_result() -> ShrinkProblem:
        candidate = await runner.replay(initial)
        assert candidate is not None, f"{initial!r} does not fail"
        problem = ShrinkProblem(
            initial=candidate,
            replay=runner.replay,
            work=runner.work,
            max_shrinks=max_shrinks,
        )
        if shrink_passes is None:
            shrinker = Shrinker(problem)
        else:
            shrinker = Shrinker(problem, shrink_passes)
        await shrinker.run()
        return problem

    return trio.run(calc_result)


def minimal(
    generator: Generator[T],
    condition: Callable[[T], bool] = lambda x: True,
    runs: int = 1000,
    seed: int = 0,
) -> T:
    """The shrunk value of the first generated value satisfying `condition`."""
    result = check(generator, lambda value: not condition(value), runs=runs, seed=seed)
    assert result.failed, f"No value satisfying the condition in {runs} runs"
    return result.value


def replays_to(generator: Generator[Any], candidate: Candidate) -> Any:
    return generator.generate_from(candidate.buffer)
