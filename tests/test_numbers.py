import math

import pytest
from hypothesis import given, strategies as st

from suppositions.generators import (
    f32s,
    f64s,
    i8s,
    i16s,
    i64s,
    integers,
    u8s,
    u16s,
    u32s,
    u64s,
    uniform_floats,
)
from suppositions.generators.numbers import UnsignedIntegers
from tests.helpers import generate


@pytest.mark.parametrize(
    "generator,width",
    [(u8s(), 1), (u16s(), 2), (u32s(), 4), (u64s(), 8)],
)
def test_unsigned_widths(generator, width):
    value, tracker = generate(generator, b"\xff" * 10)
    assert value == 2 ** (8 * width) - 1
    assert tracker.position == width


def test_unsigned_is_big_endian():
    assert u16s().generate_from(b"\x01\x02") == 0x0102


def test_unsupported_width():
    with pytest.raises(ValueError):
        UnsignedIntegers(12)


@pytest.mark.parametrize(
    "buffer,expected",
    [(b"\x00", 0), (b"\x01", 0), (b"\x02", -1), (b"\x03", 1), (b"\xff", 127)],
)
def test_signed_low_bit_is_sign(buffer, expected):
    assert i8s().generate_from(buffer) == expected


@given(st.binary())
def test_signed_in_range(buffer):
    assert -(2**15) <= i16s().generate_from(buffer) < 2**15
    assert -(2**63) <= i64s().generate_from(buffer) < 2**63


def test_zero_floats():
    assert f32s().generate_from(b"") == 0.0
    assert f64s().generate_from(b"") == 0.0


def test_floats_can_be_infinite():
    # Exponent all ones, mantissa zero, then the sign bit.
    word = (0x7FF0000000000000 << 1) | 1
    assert f64s().generate_from(word.to_bytes(8, "big")) == math.inf
    word = 0x7F800000 << 1
    assert f32s().generate_from(word.to_bytes(4, "big")) == -math.inf


def test_uniform_floats_bounds():
    assert uniform_floats().generate_from(b"") == 0.0
    assert uniform_floats().generate_from(b"\xff" * 8) == 1.0


@given(st.binary())
def test_uniform_floats_in_unit_interval(buffer):
    assert 0.0 <= uniform_floats().generate_from(buffer) <= 1.0


# =============================================================================
# Integer ranges
# =============================================================================


def test_integers_from_small_byte():
    assert integers(0, 100).generate_from(b"\x05") == 5


def test_integers_zero_is_lower_bound():
    assert integers(-10, 10).generate_from(b"") == -10


def test_integers_retries_out_of_range_draws():
    # 0xff masked to seven bits is 127, which is more than 100.
    value, tracker = generate(integers(0, 100), b"\xff\x05")
    assert value == 5
    assert tracker.position == 2


def test_single_value_range_consumes_nothing():
    value, tracker = generate(integers(5, 5), b"\x01")
    assert value == 5
    assert tracker.position == 0


def test_empty_range():
    with pytest.raises(ValueError):
        integers(10, 3)


@given(st.integers(-1000, 1000), st.integers(0, 2**70), st.binary())
def test_integers_in_range(lower, gap, buffer):
    assert lower <= integers(lower, lower + gap).generate_from(buffer) <= lower + gap
