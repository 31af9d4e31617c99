from suppositions.passes.definitions import ShrinkPass
from suppositions.passes.scalars import lower_bytes, zero_leaves
from suppositions.passes.structural import (
    delete_branches,
    delete_sibling_runs,
    remove_power_of_two_blocks,
    truncate_at_branches,
)


def default_passes() -> list[ShrinkPass]:
    """The passes the shrinker runs, cheapest and most effective first."""
    return [
        truncate_at_branches,
        remove_power_of_two_blocks,
        delete_branches,
        delete_sibling_runs,
        zero_leaves,
        lower_bytes,
    ]
