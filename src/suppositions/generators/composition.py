from collections.abc import Callable

from attrs import define

from suppositions.data import ByteSource
from suppositions.generators.core import Generator


@define(frozen=True)
class GeneratorFunction[T](Generator[T]):
    function: Callable[[ByteSource], T]

    @property
    def label(self) -> str:
        return getattr(self.function, "__name__", type(self).__name__)

    def generate(self, source: ByteSource) -> T:
        return self.function(source)


def composite[T](function: Callable[[ByteSource], T]) -> Generator[T]:
    """Build a generator from a function that draws from a source directly.

    The function should draw sub-values with `source.draw(generator)` so
    that each one gets its own extent, and may raise Discard to reject
    the input. For example:

        @composite
        def ordered_pairs(source):
            a = source.draw(integers(0, 100))
            b = source.draw(integers(a, 100))
            return (a, b)
    """
    return GeneratorFunction(function)
