from suppositions.data import Discard, assume
from suppositions.generators import (
    Generator,
    binary,
    booleans,
    choice,
    collection,
    composite,
    consts,
    dicts,
    f32s,
    f64s,
    i8s,
    i16s,
    i32s,
    i64s,
    integers,
    lazy,
    lists,
    one_of,
    optional,
    sets,
    tuples,
    u8s,
    u16s,
    u32s,
    u64s,
    uniform_floats,
    weighted_coin,
)
from suppositions.properties import (
    DiscardsExhausted,
    Property,
    PropertyFailed,
    PropertyTest,
    forall,
)
from suppositions.runner import CheckConfig, CheckResult, CheckStatus, Runner, check
from suppositions.work import Volume


__all__ = [
    "CheckConfig",
    "CheckResult",
    "CheckStatus",
    "Discard",
    "DiscardsExhausted",
    "Generator",
    "Property",
    "PropertyFailed",
    "PropertyTest",
    "Runner",
    "Volume",
    "assume",
    "binary",
    "booleans",
    "check",
    "choice",
    "collection",
    "composite",
    "consts",
    "dicts",
    "f32s",
    "f64s",
    "forall",
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
