"""Type compatibility model: boxing, widening and narrowing between kinds.

These predicates are stateless and usable on their own, e.g. by numeric or
array helpers that never resolve a constructor.
"""

from __future__ import annotations

import math
from typing import Any

from typed_overloads.errors import ConversionError
from typed_overloads.types import (
    BOXED_KINDS,
    BOXES,
    PRIMITIVES,
    PrimitiveType,
    PrimitiveTypeDefinition,
    ReferenceTypeDefinition,
    TypeDefinition,
    array_type,
    assignable_distance,
    dimension,
    element_type,
    kind_of,
    type_range,
)
from typed_overloads.values import NULL, Argument, TypedValue

P = PrimitiveType

# Source kind -> kinds it widens to. byte does not widen to char and short
# does not widen to byte.
WIDENING: dict[PrimitiveType, frozenset[PrimitiveType]] = {
    P.FLOAT: frozenset({P.DOUBLE}),
    P.LONG: frozenset({P.DOUBLE, P.FLOAT}),
    P.INT: frozenset({P.DOUBLE, P.FLOAT, P.LONG}),
    P.CHAR: frozenset({P.DOUBLE, P.FLOAT, P.LONG, P.INT}),
    P.SHORT: frozenset({P.DOUBLE, P.FLOAT, P.LONG, P.INT}),
    P.BYTE: frozenset({P.DOUBLE, P.FLOAT, P.LONG, P.INT, P.SHORT}),
}

# Source kind -> kinds it narrows to, provided the value is in range
NARROWING: dict[PrimitiveType, frozenset[PrimitiveType]] = {
    P.SHORT: frozenset({P.BYTE, P.CHAR}),
    P.CHAR: frozenset({P.BYTE, P.SHORT}),
    P.INT: frozenset({P.BYTE, P.SHORT, P.CHAR}),
    P.LONG: frozenset({P.BYTE, P.SHORT, P.CHAR, P.INT}),
    P.FLOAT: frozenset({P.BYTE, P.SHORT, P.CHAR, P.INT, P.LONG}),
    P.DOUBLE: frozenset({P.BYTE, P.SHORT, P.CHAR, P.INT, P.LONG, P.FLOAT}),
}


def boxed_of(type_def: TypeDefinition) -> TypeDefinition:
    """Return the boxed counterpart of a primitive kind, else the type itself."""
    if isinstance(type_def, PrimitiveTypeDefinition):
        return BOXES[type_def.primitive]
    return type_def


def unboxed_of(type_def: TypeDefinition) -> TypeDefinition:
    """Return the primitive counterpart of a boxed type, else the type itself."""
    if isinstance(type_def, ReferenceTypeDefinition) and type_def in BOXED_KINDS:
        return PRIMITIVES[BOXED_KINDS[type_def]]
    return type_def


def _numeric_value(value: TypedValue) -> int | float | None:
    """Return the number a primitive-like value stands for (code point for chars)."""
    raw = value.value
    if isinstance(raw, str) and len(raw) == 1:
        return ord(raw)
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    return raw


def _kinds(target: TypeDefinition | None, value: Argument | None) -> tuple[PrimitiveType | None, PrimitiveType | None]:
    if target is None or not isinstance(value, TypedValue):
        return None, None
    return kind_of(target), kind_of(value.type_def)


def can_widen(target: TypeDefinition | None, value: Argument | None) -> bool:
    """Check whether a value's kind automatically widens to the target's kind.

    Widening has no range restriction.
    """
    dest, source = _kinds(target, value)
    if dest is None or source is None:
        return False
    return dest in WIDENING.get(source, ())


def can_narrow(target: TypeDefinition | None, value: Argument | None) -> bool:
    """Check whether a value can be narrowed to the target's kind.

    Narrowing requires the concrete value to lie within the target's inclusive
    range; out-of-range values are rejected rather than truncated.
    """
    dest, source = _kinds(target, value)
    if dest is None or source is None or dest not in NARROWING.get(source, ()):
        return False
    assert isinstance(value, TypedValue)
    number = _numeric_value(value)
    if number is None or (isinstance(number, float) and math.isnan(number)):
        return False
    low, high = type_range(dest)
    return low <= number <= high


def is_compatible(target: TypeDefinition | None, value: Argument | None) -> bool:
    """Check whether a value can be supplied for the target type.

    True for identical boxed types, for lattice assignability of the boxed
    types, and for widening or in-range narrowing.
    """
    if target is None or not isinstance(value, TypedValue):
        return False
    boxed_target = boxed_of(target)
    boxed_value = boxed_of(value.type_def)
    if boxed_target == boxed_value:
        return True
    if assignable_distance(boxed_target, boxed_value) is not None:
        return True
    return can_widen(target, value) or can_narrow(target, value)


def convert(value: Argument, target: TypeDefinition) -> Any:
    """Convert a compatible argument to the Python representation of the target.

    Raises:
        ConversionError: If the value cannot be represented as the target.
    """
    if value is NULL:
        if target.is_primitive:
            raise ConversionError(f"null cannot be converted to {target.name}")
        return None
    assert isinstance(value, TypedValue)

    dest = kind_of(target)
    source = kind_of(value.type_def)
    if dest is None:
        return value.value
    if source is None:
        raise ConversionError(f"{value.type_def.name} cannot be converted to {target.name}")
    if source is dest:
        return value.value
    if not (source.is_numeric and dest.is_numeric):
        raise ConversionError(f"{source.value} cannot be converted to {dest.value}")

    number = _numeric_value(value)
    if number is None:
        raise ConversionError(f"{value.value!r} is not a {source.value}")
    if dest in (P.FLOAT, P.DOUBLE):
        return float(number)

    try:
        result = math.trunc(number)
    except (ValueError, OverflowError) as exc:
        raise ConversionError(f"{number} cannot be converted to {dest.value}") from exc
    low, high = type_range(dest)
    if not low <= result <= high:
        raise ConversionError(f"{number} is out of range for {dest.value}")
    return chr(result) if dest is P.CHAR else result


def _copy_nested(items: list[Any], depth: int, allow_null: bool) -> list[Any]:
    if depth > 1:
        return [None if sub is None and allow_null else _copy_nested(sub, depth - 1, allow_null) for sub in items]
    if not allow_null and any(item is None for item in items):
        raise ConversionError("null elements cannot be unboxed")
    return list(items)


def box(value: TypedValue) -> TypedValue:
    """Box a primitive array of any dimension, e.g. int[][] to Integer[][].

    Non-arrays and arrays of reference types are returned unchanged.
    """
    element = element_type(value.type_def)
    if not value.type_def.is_array or not element.is_primitive:
        return value
    dims = dimension(value.type_def)
    return TypedValue(array_type(boxed_of(element), dims), _copy_nested(value.value, dims, True))


def unbox(value: TypedValue) -> TypedValue:
    """Unbox an array of boxed elements, e.g. Double[] to double[].

    Non-arrays and arrays whose elements have no primitive counterpart are
    returned unchanged.

    Raises:
        ConversionError: If the array holds null elements.
    """
    element = element_type(value.type_def)
    unboxed = unboxed_of(element)
    if not value.type_def.is_array or unboxed is element:
        return value
    dims = dimension(value.type_def)
    return TypedValue(array_type(unboxed, dims), _copy_nested(value.value, dims, False))
