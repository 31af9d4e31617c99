"""Variable-sized collections and choices.

A collection never decides its length up front. Instead each element is
preceded by a "continue?" coin, and the collection ends the first time the
coin comes up false. The coin's bias sets the average length, and because
a zero byte reads as false, an exhausted replay source always ends the
collection. Shrinking can therefore shorten a collection just by deleting
the bytes of an element, or everything after one.

Each element (its coin and its value) is drawn as one region, so the
extent tree has one branch per element.
"""

from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import Any

from attrs import define, field, validators

from suppositions.data import ByteSource, Discard
from suppositions.generators.core import Generator, Selector, WeightedCoin
from suppositions.generators.tuples import tuples


@define(frozen=True)
class Element[T](Generator[tuple[bool, T | None]]):
    """One step of a collection: a coin, then a value if the coin was True."""

    coin: WeightedCoin
    generator: Generator[T]

    def generate(self, source: ByteSource) -> tuple[bool, T | None]:
        if not self.coin.generate(source):
            return (False, None)
        return (True, source.draw(self.generator))


@define(frozen=True)
class Collection[T, C](Generator[C]):
    generator: Generator[T]
    mean_length: int = field(default=16, validator=validators.ge(0))
    max_length: int | None = field(
        default=None, validator=validators.optional(validators.ge(0))
    )
    factory: Callable[[list[T]], C] = list  # type: ignore[assignment]

    @property
    def continue_probability(self) -> float:
        return 1.0 - 1.0 / (1.0 + self.mean_length)

    def generate(self, source: ByteSource) -> C:
        element = Element(WeightedCoin(self.continue_probability), self.generator)
        items: list[T] = []
        while self.max_length is None or len(items) < self.max_length:
            more, item = source.draw(element)
            if not more:
                break
            items.append(item)  # type: ignore[arg-type]
        return self.factory(items)


@define(frozen=True)
class Choice[T](Generator[T]):
    options: tuple[T, ...] = field(converter=tuple)

    def generate(self, source: ByteSource) -> T:
        if not self.options:
            raise Discard()
        return self.options[Selector(len(self.options)).generate(source)]


@define(frozen=True)
class Binary(Generator[bytes]):
    """Exactly `size` raw bytes."""

    size: int = field(validator=validators.ge(0))

    def generate(self, source: ByteSource) -> bytes:
        return source.draw_bytes(self.size)


def collection[T](
    generator: Generator[T],
    mean_length: int = 16,
    max_length: int | None = None,
    factory: Callable[[list[T]], Any] = list,
) -> Generator[Any]:
    """Generate a collection of values from `generator`.

    `factory` builds the result from the list of generated items; use it to
    produce any container that can be built from a list.
    """
    return Collection(generator, mean_length, max_length, factory)


def lists[T](
    generator: Generator[T], mean_length: int = 10, max_length: int | None = None
) -> Generator[list[T]]:
    return Collection(generator, mean_length, max_length, list)


def sets[T: Hashable](
    generator: Generator[T], mean_length: int = 10, max_length: int | None = None
) -> Generator[set[T]]:
    return Collection(generator, mean_length, max_length, set)


def dicts[K: Hashable, V](
    keys: Generator[K],
    values: Generator[V],
    mean_length: int = 10,
    max_length: int | None = None,
) -> Generator[dict[K, V]]:
    return Collection(tuples(keys, values), mean_length, max_length, dict)


def choice[T](options: Iterable[T] | Sequence[T]) -> Generator[T]:
    """Pick one of a fixed set of values. Shrinks towards the first."""
    return Choice(options)


def binary(size: int) -> Generator[bytes]:
    return Binary(size)
