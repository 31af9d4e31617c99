"""The Generator abstraction and its core combinators.

A Generator turns bytes drawn from a ByteSource into a value, or raises
Discard to reject the current input. Generators are immutable: all of
their configuration is fixed when they are built, so the same generator
can be shared freely between trials.

Every combinator here respects two rules:

1. Bytes are consumed in exactly the declared order of the sub-generators.
2. Smaller bytes give smaller values. A zero byte is always the "simplest"
   reading: false for a coin, the first option for a choice, and so on.

These are what make shrinking work without any type-specific code: the
shrinker only ever makes byte buffers smaller, and the generators turn
that into smaller values.

Combinators that have sub-generators with their own byte regions draw them
with `source.draw(sub_generator)`, so that an ExtentTracker can record
each region as a separate branch. Pure value transformations (map, filter)
generate directly and add no structure of their own.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from attrs import define, field, validators

from suppositions.data import ByteSource, Discard, ReplaySource


class Generator[T](ABC):
    @abstractmethod
    def generate(self, source: ByteSource) -> T: ...

    @property
    def label(self) -> str:
        """Human-readable name, recorded on the extents this generator opens."""
        return type(self).__name__

    def generate_from(self, buffer: bytes) -> T:
        """Replay `buffer` through this generator. Reads past its end are zero."""
        return ReplaySource(buffer).draw(self)

    def map[S](self, function: Callable[[T], S]) -> "Generator[S]":
        return Mapped(self, function)

    def filter(self, predicate: Callable[[T], Any]) -> "Generator[T]":
        return Filtered(self, predicate)

    def filter_map[S](self, function: Callable[[T], S | None]) -> "Generator[S]":
        """Transform values with a partial function.

        `function` returns None for values it rejects, which are discarded.
        Use `map` if None is a legitimate output.
        """
        return FilterMapped(self, function)

    def flat_map[S](self, function: "Callable[[T], Generator[S]]") -> "Generator[S]":
        return FlatMapped(self, function)


@define(frozen=True)
class Const[T](Generator[T]):
    value: T

    def generate(self, source: ByteSource) -> T:
        return self.value


@define(frozen=True)
class Mapped[T, S](Generator[S]):
    generator: Generator[T]
    function: Callable[[T], S]

    @property
    def label(self) -> str:
        return self.generator.label

    def generate(self, source: ByteSource) -> S:
        return self.function(self.generator.generate(source))


@define(frozen=True)
class Filtered[T](Generator[T]):
    generator: Generator[T]
    predicate: Callable[[T], Any]

    @property
    def label(self) -> str:
        return self.generator.label

    def generate(self, source: ByteSource) -> T:
        # The bytes are consumed either way, so replaying a discarded
        # trial reads exactly the same stream.
        value = self.generator.generate(source)
        if not self.predicate(value):
            raise Discard()
        return value


@define(frozen=True)
class FilterMapped[T, S](Generator[S]):
    generator: Generator[T]
    function: Callable[[T], S | None]

    @property
    def label(self) -> str:
        return self.generator.label

    def generate(self, source: ByteSource) -> S:
        result = self.function(self.generator.generate(source))
        if result is None:
            raise Discard()
        return result


@define(frozen=True)
class FlatMapped[T, S](Generator[S]):
    generator: Generator[T]
    function: Callable[[T], Generator[S]]

    def generate(self, source: ByteSource) -> S:
        value = source.draw(self.generator)
        return source.draw(self.function(value))


@define(frozen=True)
class Lazy[T](Generator[T]):
    thunk: Callable[[], Generator[T]]

    def generate(self, source: ByteSource) -> T:
        return self.thunk().generate(source)


@define(frozen=True)
class WeightedCoin(Generator[bool]):
    """One byte in, True with probability `probability`.

    A byte reads as True when it is at least `threshold`, so zero is always
    False unless the coin is certain to come up True.
    """

    probability: float = field(validator=[validators.ge(0.0), validators.le(1.0)])

    @property
    def threshold(self) -> int:
        return 256 - round(self.probability * 256)

    def generate(self, source: ByteSource) -> bool:
        return source.draw_u8() >= self.threshold


@define(frozen=True)
class Selector(Generator[int]):
    """An index in range(n), read from as few bytes as will hold it.

    The index is the drawn integer scaled into range(n), so smaller bytes
    always select earlier options. A choice between one option consumes
    nothing.
    """

    n: int = field(validator=validators.ge(1))

    def generate(self, source: ByteSource) -> int:
        if self.n == 1:
            return 0
        nbytes = ((self.n - 1).bit_length() + 7) // 8
        value = int.from_bytes(source.draw_bytes(nbytes), "big")
        return (value * self.n) >> (8 * nbytes)


@define(frozen=True)
class OneOf[T](Generator[T]):
    generators: tuple[Generator[T], ...] = field(converter=tuple)

    def __attrs_post_init__(self) -> None:
        if not self.generators:
            raise ValueError("one_of requires at least one generator")

    def generate(self, source: ByteSource) -> T:
        i = Selector(len(self.generators)).generate(source)
        return source.draw(self.generators[i])


@define(frozen=True)
class OptionalGenerator[T](Generator[T | None]):
    generator: Generator[T]
    coin: WeightedCoin = WeightedCoin(0.5)

    def generate(self, source: ByteSource) -> T | None:
        if self.coin.generate(source):
            return source.draw(self.generator)
        return None


def consts[T](value: T) -> Generator[T]:
    return Const(value)


def lazy[T](thunk: Callable[[], Generator[T]]) -> Generator[T]:
    """Defer building a generator until it is needed.

    This is how recursive data is described: the thunk may refer to the
    generator being defined, because it is only called at generation time.
    """
    return Lazy(thunk)


def weighted_coin(probability: float) -> Generator[bool]:
    return WeightedCoin(probability)


def booleans() -> Generator[bool]:
    return WeightedCoin(0.5)


def one_of[T](*generators: Generator[T] | Sequence[Generator[T]]) -> Generator[T]:
    """Pick one of `generators` and generate from it.

    Accepts either the generators as arguments or a single sequence of
    them. Shrinking prefers earlier options.
    """
    if len(generators) == 1 and not isinstance(generators[0], Generator):
        return OneOf(generators[0])
    return OneOf(generators)


def optional[T](generator: Generator[T], probability: float = 0.5) -> Generator[T | None]:
    """Either None, or a value from `generator` with the given probability."""
    return OptionalGenerator(generator, WeightedCoin(probability))
