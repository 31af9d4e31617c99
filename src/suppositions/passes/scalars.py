"""Shrink passes that make individual leaf values smaller.

These keep the buffer the same length and lower byte values. Generators
map smaller bytes to simpler values, so this turns large numbers into
small ones, later choices into earlier ones, and so on.
"""

from suppositions.passes.definitions import proposal_pass
from suppositions.problem import Candidate


@proposal_pass
def zero_leaves(candidate: Candidate):
    """Replace every byte of a leaf with zero."""
    buffer = candidate.buffer
    tree = candidate.tree
    for i in tree.leaves():
        node = tree[i]
        region = buffer[node.start : node.end]
        if any(region):
            yield buffer[: node.start] + bytes(len(region)) + buffer[node.end :]


@proposal_pass
def lower_bytes(candidate: Candidate):
    """Lower individual bytes within each leaf.

    For a byte with value v we try v - (v >> k) for each bit offset k
    (zero, then half, then three quarters, ...), v >> k, and v - 1, smallest
    first. The shifts keep the top bits of v, so they can reach small values
    that share a property (such as oddness) with v. Where a byte is zero and
    the one before it is not, we also try borrowing: decrementing the
    earlier byte and setting this one to 255, which lowers a multi-byte
    number that sits just above a byte boundary.
    """
    buffer = candidate.buffer
    tree = candidate.tree
    for i in tree.leaves():
        node = tree[i]
        for j in range(node.start, min(node.end, len(buffer))):
            v = buffer[j]
            options = {v - (v >> k) for k in range(8)} | {v >> k for k in range(1, 8)}
            for r in sorted(options | {v - 1}):
                if 0 <= r < v:
                    yield buffer[:j] + bytes([r]) + buffer[j + 1 :]
            if j > node.start and v == 0 and buffer[j - 1] > 0:
                yield buffer[: j - 1] + bytes([buffer[j - 1] - 1, 255]) + buffer[j + 1 :]
