from suppositions.generators.collections import (
    binary,
    choice,
    collection,
    dicts,
    lists,
    sets,
)
from suppositions.generators.composition import composite
from suppositions.generators.core import (
    Generator,
    booleans,
    consts,
    lazy,
    one_of,
    optional,
    weighted_coin,
)
from suppositions.generators.numbers import (
    f32s,
    f64s,
    i8s,
    i16s,
    i32s,
    i64s,
    integers,
    u8s,
    u16s,
    u32s,
    u64s,
    uniform_floats,
)
from suppositions.generators.tuples import tuples


__all__ = [
    "Generator",
    "binary",
    "booleans",
    "choice",
    "collection",
    "composite",
    "consts",
    "dicts",
    "f32s",
    "f64s",
    "i8s",
    "i16s",
    "i32s",
    "i64s",
    "integers",
    "lazy",
    "lists",
    "one_of",
    "optional",
    "sets",
    "tuples",
    "u8s",
    "u16s",
    "u32s",
    "u64s",
    "uniform_floats",
    "weighted_coin",
]
