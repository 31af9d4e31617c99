"""Properties: a generator plus the configuration used to check it.

`forall` turns a function into a test that pytest (or anything else that
calls plain functions) can run directly:

    @forall(lists(u8s()), runs=500)
    def test_reversing_twice_is_identity(xs):
        assert list(reversed(list(reversed(xs)))) == xs

With several generators the function receives one argument per generator.
"""

from collections.abc import Callable
from typing import Any

import attrs
from attrs import define

from suppositions.generators.core import Generator
from suppositions.generators.tuples import tuples
from suppositions.runner import CheckConfig, CheckResult, CheckStatus, check


class PropertyFailed(AssertionError):
    def __init__(self, result: CheckResult):
        super().__init__(result.display())
        self.result = result


class DiscardsExhausted(Exception):
    def __init__(self, result: CheckResult):
        super().__init__(result.display())
        self.result = result


def raise_for_result(result: CheckResult) -> None:
    if result.status is CheckStatus.failed:
        raise PropertyFailed(result)
    if result.status is CheckStatus.discards_exhausted:
        raise DiscardsExhausted(result)


@define(frozen=True)
class Property[T]:
    generator: Generator[T]
    config: CheckConfig = attrs.Factory(CheckConfig)

    def with_config(self, **changes: Any) -> "Property[T]":
        return attrs.evolve(self, config=attrs.evolve(self.config, **changes))

    def check(self, predicate: Callable[[T], Any]) -> CheckResult:
        return check(self.generator, predicate, self.config)

    def assert_holds(self, predicate: Callable[[T], Any]) -> None:
        """Raise PropertyFailed (or DiscardsExhausted) unless `predicate`
        holds for every generated value."""
        raise_for_result(self.check(predicate))


@define(frozen=True)
class PropertyTest:
    prop: Property[Any]
    function: Callable[..., Any]
    unpack: bool = False

    def predicate(self, value: Any) -> Any:
        if self.unpack:
            return self.function(*value)
        return self.function(value)

    def check(self, **overrides: Any) -> CheckResult:
        return self.prop.with_config(**overrides).check(self.predicate)


def forall(*generators: Generator[Any], **config: Any) -> Callable[[Callable[..., Any]], Callable[[], None]]:
    """Decorate a test function to run it against generated arguments.

    Keyword arguments are CheckConfig fields. The decorated function takes
    no arguments and raises PropertyFailed with the shrunk counterexample if
    the test ever fails. The underlying PropertyTest is available as its
    `property_test` attribute.
    """
    if not generators:
        raise TypeError("forall requires at least one generator")

    if len(generators) == 1:
        generator = generators[0]
    else:
        generator = tuples(*generators)
    prop = Property(generator, CheckConfig(**config))

    def accept(function: Callable[..., Any]) -> Callable[[], None]:
        test = PropertyTest(prop, function, unpack=len(generators) > 1)

        def run_property() -> None:
            raise_for_result(test.check())

        run_property.__name__ = function.__name__
        run_property.__qualname__ = function.__qualname__
        run_property.__module__ = function.__module__
        run_property.__doc__ = function.__doc__
        run_property.property_test = test  # type: ignore[attr-defined]
        return run_property

    return accept
