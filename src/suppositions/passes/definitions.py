"""Type definitions and utilities for shrink passes.

- ShrinkPass: an async function that tries to shrink the current
  candidate of a ShrinkProblem, and returns True if it did
- Proposals: a function from a candidate to smaller buffers worth trying
- proposal_pass(): turns a Proposals function into a ShrinkPass

Most passes are just a list of proposals derived from the extent tree of
the current candidate. The shrinker tries them in order and stops at the
first that is adopted, after which proposals are generated afresh from
the new candidate.
"""

from collections.abc import Awaitable, Callable, Iterable, Iterator
from functools import wraps

from suppositions.problem import Candidate, ShrinkProblem, shortlex
from suppositions.work import NotFound


__all__ = [
    "Proposals",
    "ShrinkPass",
    "proposal_pass",
    "smaller_proposals",
]


# A shrink pass takes a problem and attempts to shrink it, returning True
# if the problem's current candidate changed.
ShrinkPass = Callable[[ShrinkProblem], Awaitable[bool]]

# Proposes buffers derived from a candidate. They need not all be smaller
# or distinct: proposal_pass filters and deduplicates them.
Proposals = Callable[[Candidate], Iterable[bytes]]


def smaller_proposals(candidate: Candidate, proposals: Iterable[bytes]) -> Iterator[bytes]:
    """The distinct proposals that are smaller than `candidate`, in order."""
    seen: set[bytes] = set()
    key = candidate.sort_key
    for buffer in proposals:
        if buffer in seen or shortlex(buffer) >= key:
            continue
        seen.add(buffer)
        yield buffer


def proposal_pass(proposals: Proposals) -> ShrinkPass:
    """Wrap a proposal function as a shrink pass.

    Example:
        @proposal_pass
        def delete_first_byte(candidate):
            yield candidate.buffer[1:]
    """

    @wraps(proposals)
    async def run(problem: ShrinkProblem) -> bool:
        candidate = problem.current
        try:
            await problem.work.find_first_value(
                smaller_proposals(candidate, proposals(candidate)),
                problem.is_reduction,
            )
        except NotFound:
            return False
        return True

    return run
