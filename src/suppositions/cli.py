"""CLI utilities and types for suppositions."""

import importlib
import importlib.util
import os
import sys
from enum import Enum
from typing import Any, Generic, TypeVar

import click

from suppositions.properties import PropertyTest


def load_object(target: str) -> Any:
    """Load `module:attribute`, where module is a dotted name or a path to a
    Python file."""
    module_name, sep, attribute = target.rpartition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"{target}: expected MODULE:ATTRIBUTE")

    if module_name.endswith(".py") or os.sep in module_name:
        path = os.path.abspath(module_name)
        if not os.path.exists(path):
            raise ValueError(f"{module_name}: file not found")
        name = os.path.splitext(os.path.basename(path))[0]
        spec = importlib.util.spec_from_file_location(name, path)
        assert spec is not None and spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
    else:
        if os.getcwd() not in sys.path:
            sys.path.insert(0, os.getcwd())
        module = importlib.import_module(module_name)

    obj = module
    for part in attribute.split("."):
        obj = getattr(obj, part)
    return obj


def validate_target(ctx: Any, param: Any, value: str) -> PropertyTest:
    """Resolve a target string to the property test it names."""
    try:
        obj = load_object(value)
    except (ImportError, AttributeError, ValueError) as e:
        raise click.BadParameter(str(e)) from e
    test = getattr(obj, "property_test", obj)
    if not isinstance(test, PropertyTest):
        raise click.BadParameter(
            f"{value}: not a property test (decorate it with @forall)"
        )
    return test


EnumType = TypeVar("EnumType", bound=Enum)


class EnumChoice(click.Choice, Generic[EnumType]):
    """A click Choice that works with Enums."""

    def __init__(self, enum: type[EnumType]) -> None:
        self.enum = enum
        choices = [str(e.name) for e in enum]
        self.__values = {e.name: e for e in enum}
        super().__init__(choices)

    def convert(self, value: Any, param: Any, ctx: Any) -> EnumType:
        if isinstance(value, self.enum):
            return value
        if value not in self.__values:
            self.fail(f"{value!r} is not one of {', '.join(self.choices)}", param, ctx)
        return self.__values[value]
