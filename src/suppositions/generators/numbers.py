"""Primitive numeric generators.

These are thin deterministic mappings from bytes to numbers. Each one maps
all-zero bytes to zero (or to the lower bound of a range) and maps smaller
byte strings to numbers that are no further from zero.
"""

import struct

from attrs import define, field, validators

from suppositions.data import ByteSource
from suppositions.generators.core import Generator


@define(frozen=True)
class UnsignedIntegers(Generator[int]):
    """Big-endian unsigned integers of a fixed width."""

    bits: int = field(validator=validators.in_((8, 16, 32, 64)))

    def generate(self, source: ByteSource) -> int:
        return int.from_bytes(source.draw_bytes(self.bits // 8), "big")


@define(frozen=True)
class SignedIntegers(Generator[int]):
    """Signed integers where the low bit of the drawn word is the sign.

    The remaining bits are the magnitude, so shrinking the word shrinks the
    magnitude towards zero whichever sign it has.
    """

    bits: int = field(validator=validators.in_((8, 16, 32, 64)))

    def generate(self, source: ByteSource) -> int:
        word = UnsignedIntegers(self.bits).generate(source)
        magnitude = word >> 1
        if word & 1 == 0:
            return -magnitude
        return magnitude


_FLOAT_FORMATS = {32: (">f", ">I"), 64: (">d", ">Q")}


@define(frozen=True)
class Floats(Generator[float]):
    """Any float of the given width, including infinities and NaN.

    As with SignedIntegers the low bit of the drawn word is the sign and the
    rest is reinterpreted as the bit pattern of the float.
    """

    bits: int = field(validator=validators.in_((32, 64)))

    def generate(self, source: ByteSource) -> float:
        word = UnsignedIntegers(self.bits).generate(source)
        float_format, int_format = _FLOAT_FORMATS[self.bits]
        (value,) = struct.unpack(float_format, struct.pack(int_format, word >> 1))
        if word & 1 == 0:
            return -value
        return value


@define(frozen=True)
class UniformFloats(Generator[float]):
    """Floats spread evenly over [0, 1]."""

    def generate(self, source: ByteSource) -> float:
        word = UnsignedIntegers(64).generate(source)
        return word / (2**64 - 1)


@define(frozen=True)
class IntegerRange(Generator[int]):
    """Integers in the closed range [lower, upper].

    Draws just enough bytes to hold `upper - lower`, masked to the bit
    length of that gap, and retries while the result is out of range. Every
    attempt accepts with probability at least one half, and all-zero bytes
    are always accepted, so replaying a short buffer terminates.
    """

    lower: int
    upper: int

    def __attrs_post_init__(self) -> None:
        if self.lower > self.upper:
            raise ValueError(
                f"Empty range: lower={self.lower} is greater than upper={self.upper}"
            )

    def generate(self, source: ByteSource) -> int:
        gap = self.upper - self.lower
        if gap == 0:
            return self.lower
        bits = gap.bit_length()
        nbytes = (bits + 7) // 8
        mask = (1 << bits) - 1
        while True:
            probe = int.from_bytes(source.draw_bytes(nbytes), "big") & mask
            if probe <= gap:
                return self.lower + probe


def u8s() -> Generator[int]:
    return UnsignedIntegers(8)


def u16s() -> Generator[int]:
    return UnsignedIntegers(16)


def u32s() -> Generator[int]:
    return UnsignedIntegers(32)


def u64s() -> Generator[int]:
    return UnsignedIntegers(64)


def i8s() -> Generator[int]:
    return SignedIntegers(8)


def i16s() -> Generator[int]:
    return SignedIntegers(16)


def i32s() -> Generator[int]:
    return SignedIntegers(32)


def i64s() -> Generator[int]:
    return SignedIntegers(64)


def f32s() -> Generator[float]:
    return Floats(32)


def f64s() -> Generator[float]:
    return Floats(64)


def uniform_floats() -> Generator[float]:
    return UniformFloats()


def integers(lower: int, upper: int) -> Generator[int]:
    return IntegerRange(lower, upper)
