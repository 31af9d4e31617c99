"""Shrink passes that remove regions of the buffer.

These all work from the extent tree of the current candidate, so that the
bytes they remove correspond to whole generated values: a list element, the
tail of a list, one component of a tuple, and so on. Because every read is
sequential, removing a region shifts the bytes after it without changing
how they are read.
"""

from suppositions.passes.definitions import proposal_pass
from suppositions.problem import Candidate, ShrinkProblem


@proposal_pass
def truncate_at_branches(candidate: Candidate):
    """Drop a branch and every later sibling in the same parent.

    For a collection element this removes that element and all the ones
    after it. We try both a plain cut and one that leaves a single zero
    byte in place of the removed region: a zero byte ends a collection, so
    the second form keeps whatever was generated after the parent aligned.
    """
    buffer = candidate.buffer
    tree = candidate.tree
    for i in tree.branches():
        node = tree[i]
        assert node.parent is not None
        end = tree[node.parent].end
        yield buffer[: node.start] + buffer[end:]
        yield buffer[: node.start] + bytes(1) + buffer[end:]


@proposal_pass
def delete_branches(candidate: Candidate):
    """Delete a single branch, e.g. one element from the middle of a list."""
    buffer = candidate.buffer
    tree = candidate.tree
    for i in tree.branches():
        node = tree[i]
        yield buffer[: node.start] + buffer[node.end :]


@proposal_pass
def remove_power_of_two_blocks(candidate: Candidate):
    """Remove aligned blocks whose size is a power of two.

    If the buffer has n bytes and 2 ** (k - 1) < n <= 2 ** k, we remove
    the whole buffer, then each half, then each quarter, and so on down
    to single bytes. This ignores the extent tree entirely, which makes it
    a useful fallback when the structure is unhelpful.
    """
    buffer = candidate.buffer
    n = len(buffer)
    if n == 0:
        return
    log2 = (n - 1).bit_length()
    for level in range(log2 + 1):
        width = 1 << (log2 - level)
        for start in range(0, n, width):
            yield buffer[:start] + buffer[start + width :]


async def delete_sibling_runs(problem: ShrinkProblem) -> bool:
    """Delete as many consecutive siblings as possible in one go.

    For long collections deleting elements one at a time takes a call per
    element. Here we find a large run of deletable siblings starting at
    each branch by exponential probing, which takes a logarithmic number of
    calls instead.
    """
    initial = problem.current
    buffer = initial.buffer
    tree = initial.tree

    for i in tree.branches():
        siblings = [i, *tree.following_siblings(i)]
        if len(siblings) < 2:
            continue
        start = tree[i].start

        def without(k: int) -> bytes:
            return buffer[:start] + buffer[tree[siblings[k - 1]].end :]

        async def can_delete(k: int) -> bool:
            if k > len(siblings) or problem.exhausted:
                return False
            return await problem.is_interesting(without(k))

        await problem.work.find_large_integer(can_delete)
        if problem.current is not initial:
            return True
    return False
