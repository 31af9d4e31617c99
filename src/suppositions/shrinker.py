from collections.abc import Iterable

import attrs
from attrs import define

from suppositions.passes import default_passes
from suppositions.passes.definitions import ShrinkPass
from suppositions.problem import Candidate, ShrinkProblem


@define
class Shrinker:
    """Runs shrink passes over a problem until none of them make progress.

    Whenever a pass adopts a smaller candidate we start again from the first
    pass, because the cheap structural passes are the most likely to succeed
    on a freshly shrunk buffer. We stop after a full sweep in which no pass
    changed anything, which is a fixed point: running the shrinker again on
    its own output does nothing.
    """

    target: ShrinkProblem
    shrink_passes: Iterable[ShrinkPass] = attrs.Factory(default_passes)
    _status: str = "Starting up"

    def __attrs_post_init__(self) -> None:
        self.shrink_passes = list(self.shrink_passes)

    @property
    def status(self) -> str:
        return self._status

    @status.setter
    def status(self, value: str) -> None:
        self._status = value

    async def run_pass(self, sp: ShrinkPass) -> bool:
        self.status = f"Running shrink pass {sp.__name__}"
        return await sp(self.target)

    async def run(self) -> Candidate:
        await self.target.setup()

        while not self.target.exhausted:
            for sp in self.shrink_passes:
                if await self.run_pass(sp):
                    break
            else:
                break
        self.status = "Finished"
        return self.target.current
