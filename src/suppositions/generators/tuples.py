from typing import Any

from attrs import define, field

from suppositions.data import ByteSource
from suppositions.generators.core import Generator


@define(frozen=True)
class TupleGenerator(Generator[tuple[Any, ...]]):
    """Generates each component in order, each as its own region.

    This is also how a test takes several arguments: a tuple of generators
    is itself a generator of tuples.
    """

    generators: tuple[Generator[Any], ...] = field(converter=tuple)

    def generate(self, source: ByteSource) -> tuple[Any, ...]:
        return tuple(source.draw(g) for g in self.generators)


def tuples(*generators: Generator[Any]) -> Generator[tuple[Any, ...]]:
    return TupleGenerator(generators)
