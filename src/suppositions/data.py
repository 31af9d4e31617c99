"""Byte sources: the only entropy a generator ever sees.

Every generator draws its randomness from a ByteSource, one byte at a
time. There are two kinds of source:

- PoolSource: reads from a Pool, which lazily fills itself from a random
  number generator. Reading position i the first time draws a fresh byte;
  reading it again returns the cached byte, so a prefix can always be
  replayed.
- ReplaySource: reads from a fixed buffer and returns zero once that
  buffer is exhausted. This lets the shrinker cut arbitrary suffixes off a
  failing buffer and still get a well defined (and usually minimal) value
  out of any generator that runs past the cut.

Sources are strictly sequential. Nothing ever reads by absolute offset,
which is what keeps values generated after a shrunk region deterministic.
"""

from abc import ABC, abstractmethod
from random import Random
from typing import TYPE_CHECKING, TypeVar


if TYPE_CHECKING:
    from suppositions.generators.core import Generator

T = TypeVar("T")


class Discard(Exception):
    """Raised when the current input should not be tested.

    Filters raise this when they reject a value. It is not a test failure:
    the runner simply moves on to a fresh trial and counts the discard
    against its budget.
    """


def assume(condition: object) -> None:
    """Discard the current trial unless `condition` is truthy."""
    if not condition:
        raise Discard()


class ByteSource(ABC):
    @abstractmethod
    def draw_u8(self) -> int: ...

    def draw_bytes(self, n: int) -> bytes:
        return bytes(self.draw_u8() for _ in range(n))

    def draw(self, generator: "Generator[T]") -> T:
        """Generate a value from `generator`, drawing bytes from this source.

        Combinators call this, rather than `generator.generate(self)`, for
        every sub-generator whose bytes form a region of their own. Plain
        sources just delegate; ExtentTracker uses it to open a new extent.
        """
        return generator.generate(self)


class Pool:
    """A growable buffer of random bytes.

    The pool only materialises bytes when they are first read, in chunks of
    `size_hint` at a time, so it can be as long as any generator needs.
    """

    def __init__(self, random: Random, size_hint: int = 1024):
        self.__random = random
        self.__size_hint = max(1, size_hint)
        self.__data = bytearray()

    def __len__(self) -> int:
        return len(self.__data)

    def __repr__(self) -> str:
        return f"Pool(size={len(self.__data)})"

    @property
    def buffer(self) -> bytes:
        return bytes(self.__data)

    def byte_at(self, i: int) -> int:
        if i >= len(self.__data):
            needed = i + 1 - len(self.__data)
            self.__data.extend(self.__random.randbytes(max(needed, self.__size_hint)))
        return self.__data[i]

    def source(self) -> "PoolSource":
        return PoolSource(self)


class PoolSource(ByteSource):
    """A live source that reads from a Pool, starting at position zero."""

    def __init__(self, pool: Pool):
        self.pool = pool
        self.position = 0

    def draw_u8(self) -> int:
        result = self.pool.byte_at(self.position)
        self.position += 1
        return result


class ReplaySource(ByteSource):
    """A source over a fixed buffer that reads as zero once exhausted."""

    def __init__(self, buffer: bytes):
        self.buffer = bytes(buffer)
        self.position = 0

    def __repr__(self) -> str:
        return f"ReplaySource({self.buffer!r}, position={self.position})"

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.buffer)

    def draw_u8(self) -> int:
        if self.exhausted:
            return 0
        result = self.buffer[self.position]
        self.position += 1
        return result
