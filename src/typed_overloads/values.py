"""Runtime arguments: values tagged with a concrete type descriptor."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from typed_overloads.types import (
    BOXES,
    DEFAULT_REGISTRY,
    PrimitiveType,
    TypeDefinition,
    TypeRegistry,
    array_type,
    kind_of,
    type_range,
)


class _Null:
    """The explicit, type-less null argument."""

    _instance: _Null | None = None

    def __new__(cls) -> _Null:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NULL"

    def __bool__(self) -> bool:
        return False


NULL = _Null()


@dataclass(frozen=True)
class TypedValue:
    """A runtime value carrying its concrete type.

    Primitive and boxed values hold plain Python scalars (``char`` holds a
    one-character string); arrays hold a list of element values.
    """

    type_def: TypeDefinition
    value: Any

    def __repr__(self) -> str:
        return f"TypedValue({self.type_def.name}, {self.value!r})"


Argument = TypedValue | _Null


def _normalize(value: Any, type_def: TypeDefinition) -> Any:
    """Check a scalar against its kind and return its canonical representation."""
    kind = kind_of(type_def)
    if kind is None:
        if type_def.is_array:
            if not isinstance(value, (list, tuple)):
                raise TypeError(f"Array value for {type_def.name} must be a list, got {type(value).__name__}")
            return list(value)
        return value

    if kind is PrimitiveType.VOID:
        raise ValueError("void has no values")
    if kind is PrimitiveType.BOOLEAN:
        if not isinstance(value, bool):
            raise TypeError(f"boolean value must be a bool, got {value!r}")
        return value
    if kind is PrimitiveType.CHAR:
        if isinstance(value, str) and len(value) == 1:
            code = ord(value)
        elif isinstance(value, int) and not isinstance(value, bool):
            code = value
        else:
            raise TypeError(f"char value must be a single character or code point, got {value!r}")
        low, high = type_range(kind)
        if not low <= code <= high:
            raise ValueError(f"{code} is out of range for char")
        return chr(code)
    if kind in (PrimitiveType.FLOAT, PrimitiveType.DOUBLE):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"{kind.value} value must be a number, got {value!r}")
        value = float(value)
        low, high = type_range(kind)
        if math.isfinite(value) and not low <= value <= high:
            raise ValueError(f"{value} is out of range for {kind.value}")
        return value

    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{kind.value} value must be an int, got {value!r}")
    low, high = type_range(kind)
    if not low <= value <= high:
        raise ValueError(f"{value} is out of range for {kind.value}")
    return value


def typed(value: Any, type_spec: str | TypeDefinition, registry: TypeRegistry = DEFAULT_REGISTRY) -> Argument:
    """Tag a value with an explicit type.

    ``typed(3, "short")`` yields a short, ``typed("a", "char")`` a char.
    ``None`` always yields the type-less ``NULL``.

    Raises:
        TypeError: If the value has the wrong Python type for the kind.
        ValueError: If the value is out of the kind's range.
    """
    if value is None or value is NULL:
        return NULL
    type_def = registry.type_for_name(type_spec) if isinstance(type_spec, str) else type_spec
    return TypedValue(type_def, _normalize(value, type_def))


def typed_array(
    component: str | TypeDefinition,
    items: Sequence[Any],
    registry: TypeRegistry = DEFAULT_REGISTRY,
) -> TypedValue:
    """Build a one-dimensional array value over the given component type."""
    component_def = registry.type_for_name(component) if isinstance(component, str) else component
    kind = kind_of(component_def)
    values: list[Any] = []
    for item in items:
        if item is None and not component_def.is_primitive:
            values.append(None)
        elif kind is not None:
            values.append(_normalize(item, component_def))
        else:
            values.append(item)
    return TypedValue(array_type(component_def, 1), values)


def argument_of(value: Any, registry: TypeRegistry = DEFAULT_REGISTRY) -> Argument:
    """Infer the runtime argument for a plain Python value.

    ``None`` becomes ``NULL``, ``bool`` a Boolean, ``int`` an Integer (or a
    Long when it does not fit), ``float`` a Double and ``str`` a String.
    Instances of registered classes get their registered type; anything else
    is an ``Object``.
    """
    if isinstance(value, TypedValue) or value is NULL:
        return value
    if value is None:
        return NULL
    if isinstance(value, bool):
        return TypedValue(BOXES[PrimitiveType.BOOLEAN], value)
    if isinstance(value, int):
        for kind in (PrimitiveType.INT, PrimitiveType.LONG):
            low, high = type_range(kind)
            if low <= value <= high:
                return TypedValue(BOXES[kind], value)
        raise ValueError(f"{value} does not fit in a long")
    if isinstance(value, float):
        return TypedValue(BOXES[PrimitiveType.DOUBLE], value)
    if isinstance(value, (list, tuple)):
        raise TypeError("Arrays need an element type; wrap them with typed_array()")
    type_def = registry.type_of_instance(value)
    return TypedValue(type_def if type_def is not None else registry.root, value)


def type_name_of(argument: Argument) -> str:
    """Return the display name of an argument's type, ``null`` for NULL."""
    if isinstance(argument, TypedValue):
        return argument.type_def.name
    return "null"
