"""Type descriptors for the typed_overloads library."""

from __future__ import annotations

import inspect
import re
import sys
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class PrimitiveType(Enum):
    """Built-in primitive kinds, each with exactly one boxed counterpart."""

    BOOLEAN = "boolean"
    BYTE = "byte"
    SHORT = "short"
    CHAR = "char"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    VOID = "void"

    @property
    def width_rank(self) -> int:
        """Rank from narrowest (boolean/byte) to widest (double)."""
        ranks = {
            PrimitiveType.BOOLEAN: 0,
            PrimitiveType.BYTE: 0,
            PrimitiveType.SHORT: 1,
            PrimitiveType.CHAR: 1,
            PrimitiveType.INT: 2,
            PrimitiveType.LONG: 3,
            PrimitiveType.FLOAT: 4,
            PrimitiveType.DOUBLE: 5,
            PrimitiveType.VOID: 0,
        }
        return ranks[self]

    @property
    def boxed_name(self) -> str:
        """Return the name of the boxed reference counterpart."""
        names = {
            PrimitiveType.BOOLEAN: "Boolean",
            PrimitiveType.BYTE: "Byte",
            PrimitiveType.SHORT: "Short",
            PrimitiveType.CHAR: "Character",
            PrimitiveType.INT: "Integer",
            PrimitiveType.LONG: "Long",
            PrimitiveType.FLOAT: "Float",
            PrimitiveType.DOUBLE: "Double",
            PrimitiveType.VOID: "Void",
        }
        return names[self]

    @property
    def is_numeric(self) -> bool:
        """Return whether values of this kind take part in widening and narrowing."""
        return self not in (PrimitiveType.BOOLEAN, PrimitiveType.VOID)


# Widest rank a primitive kind can have
MAX_WIDTH_RANK = max(pt.width_rank for pt in PrimitiveType)

_FLOAT32_MAX = 3.4028234663852886e38

_RANGES: dict[PrimitiveType, tuple[int | float, int | float]] = {
    PrimitiveType.BYTE: (-(2**7), 2**7 - 1),
    PrimitiveType.SHORT: (-(2**15), 2**15 - 1),
    PrimitiveType.CHAR: (0, 2**16 - 1),
    PrimitiveType.INT: (-(2**31), 2**31 - 1),
    PrimitiveType.LONG: (-(2**63), 2**63 - 1),
    PrimitiveType.FLOAT: (-_FLOAT32_MAX, _FLOAT32_MAX),
    PrimitiveType.DOUBLE: (-sys.float_info.max, sys.float_info.max),
}


def type_range(primitive: PrimitiveType) -> tuple[int | float, int | float]:
    """Return the inclusive (min, max) bounds of a numeric primitive kind.

    Raises:
        ValueError: If the kind has no numeric range (boolean, void).
    """
    try:
        return _RANGES[primitive]
    except KeyError:
        raise ValueError(f"Type '{primitive.value}' has no numeric range") from None


@dataclass(eq=False, repr=False)
class TypeDefinition:
    """Base class for all type descriptors.

    Descriptors compare by identity, except arrays, which compare by element.
    """

    name: str

    @property
    def is_array(self) -> bool:
        """Return whether this type is an array type."""
        return False

    @property
    def is_primitive(self) -> bool:
        """Return whether this type is a primitive kind."""
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False, repr=False)
class PrimitiveTypeDefinition(TypeDefinition):
    """Type descriptor wrapping a primitive kind."""

    primitive: PrimitiveType

    @property
    def is_primitive(self) -> bool:
        return True


@dataclass(eq=False, repr=False)
class ReferenceTypeDefinition(TypeDefinition):
    """A named reference type placed in the assignability lattice.

    The lattice is single-rooted: the only type without supertypes is
    ``Object``. A type may name several direct supertypes.
    """

    supertypes: list[ReferenceTypeDefinition] = field(default_factory=list)
    is_abstract: bool = False
    python_class: type | None = None

    @property
    def is_root(self) -> bool:
        return not self.supertypes

    def ancestors(self) -> Iterator[tuple[ReferenceTypeDefinition, int]]:
        """Yield (ancestor, steps) pairs breadth-first, starting with self at 0."""
        seen: set[int] = {id(self)}
        queue: deque[tuple[ReferenceTypeDefinition, int]] = deque([(self, 0)])
        while queue:
            current, steps = queue.popleft()
            yield current, steps
            for parent in current.supertypes:
                if id(parent) not in seen:
                    seen.add(id(parent))
                    queue.append((parent, steps + 1))


@dataclass(eq=False, repr=False)
class ArrayTypeDefinition(TypeDefinition):
    """Type descriptor for array types (e.g., int[], String[][])."""

    element_type: TypeDefinition

    @property
    def is_array(self) -> bool:
        return True

    @property
    def component_type(self) -> TypeDefinition:
        """Return the type one dimension down."""
        return self.element_type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArrayTypeDefinition):
            return NotImplemented
        return self.element_type == other.element_type

    def __hash__(self) -> int:
        return hash(("[]", self.element_type))


def element_type(type_def: TypeDefinition) -> TypeDefinition:
    """Return the innermost element type of an array type, or the type itself.

    ``element_type(double[][])`` is ``double``; ``element_type(String)`` is
    ``String``.
    """
    while isinstance(type_def, ArrayTypeDefinition):
        type_def = type_def.component_type
    return type_def


def dimension(type_def: TypeDefinition) -> int:
    """Return the array dimension of a type, 0 for non-arrays."""
    dims = 0
    while isinstance(type_def, ArrayTypeDefinition):
        type_def = type_def.component_type
        dims += 1
    return dims


def array_type(element: TypeDefinition, dims: int) -> TypeDefinition:
    """Return the array type of the given dimension over an element type.

    A dimension of 0 yields the element type itself. The element may already
    be an array, in which case dimensions add up.
    """
    if dims < 0:
        raise ValueError(f"Array dimension must be >= 0, got {dims}")
    result = element
    for _ in range(dims):
        result = ArrayTypeDefinition(name=f"{result.name}[]", element_type=result)
    return result


def assignable_distance(target: TypeDefinition | None, source: TypeDefinition | None) -> int | None:
    """Return how many lattice steps lead from source up to target.

    Returns 0 for identical types and None when a value of ``source`` cannot
    be assigned to ``target`` without a conversion. Arrays of reference types
    are covariant; every array is one step below the root.
    """
    if target is None or source is None:
        return None
    if target == source:
        return 0
    if isinstance(source, ArrayTypeDefinition):
        if isinstance(target, ArrayTypeDefinition):
            src, dst = source.component_type, target.component_type
            if src.is_primitive or dst.is_primitive:
                return None
            return assignable_distance(dst, src)
        if isinstance(target, ReferenceTypeDefinition) and target.is_root:
            return 1
        return None
    if isinstance(source, ReferenceTypeDefinition) and isinstance(target, ReferenceTypeDefinition):
        for ancestor, steps in source.ancestors():
            if ancestor is target:
                return steps
    return None


def root_distance(type_def: TypeDefinition) -> int:
    """Return the number of steps from a type up to the lattice root.

    Primitive kinds are not part of the lattice and report 0.
    """
    if isinstance(type_def, ArrayTypeDefinition):
        return 1
    if isinstance(type_def, ReferenceTypeDefinition):
        return next(steps for ancestor, steps in type_def.ancestors() if ancestor.is_root)
    return 0


def _reference(name: str, *supertypes: ReferenceTypeDefinition, is_abstract: bool = False) -> ReferenceTypeDefinition:
    return ReferenceTypeDefinition(name=name, supertypes=list(supertypes), is_abstract=is_abstract)


# Built-in lattice, shared by every registry and never mutated after import
OBJECT = _reference("Object")
NUMBER = _reference("Number", OBJECT, is_abstract=True)
CHAR_SEQUENCE = _reference("CharSequence", OBJECT, is_abstract=True)
STRING = _reference("String", OBJECT, CHAR_SEQUENCE)

PRIMITIVES: dict[PrimitiveType, PrimitiveTypeDefinition] = {
    pt: PrimitiveTypeDefinition(name=pt.value, primitive=pt) for pt in PrimitiveType
}

BOXES: dict[PrimitiveType, ReferenceTypeDefinition] = {
    pt: _reference(pt.boxed_name, NUMBER if pt.is_numeric and pt is not PrimitiveType.CHAR else OBJECT)
    for pt in PrimitiveType
}

BOXED_KINDS: dict[ReferenceTypeDefinition, PrimitiveType] = {box: pt for pt, box in BOXES.items()}


def kind_of(type_def: TypeDefinition | None) -> PrimitiveType | None:
    """Return the primitive kind of a primitive or boxed type, else None."""
    if isinstance(type_def, PrimitiveTypeDefinition):
        return type_def.primitive
    if isinstance(type_def, ReferenceTypeDefinition):
        return BOXED_KINDS.get(type_def)
    return None


_TYPE_NAME = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_.$]*)\s*((?:\[\s*\]\s*)*)$")


class TypeRegistry:
    """Registry of all known type descriptors.

    Every registry starts out with the same built-in lattice: the primitive
    kinds, their boxes, ``Object``, ``Number``, ``CharSequence`` and
    ``String``.
    """

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}
        self._by_class: dict[type, ReferenceTypeDefinition] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register all primitive kinds and the built-in reference types."""
        for pt in PrimitiveType:
            self._types[pt.value] = PRIMITIVES[pt]
            self._types[pt.boxed_name] = BOXES[pt]
        for ref in (OBJECT, NUMBER, CHAR_SEQUENCE, STRING):
            self._types[ref.name] = ref
        self._by_class[object] = OBJECT
        self._by_class[str] = STRING

    @property
    def root(self) -> ReferenceTypeDefinition:
        """Return the root of the reference lattice."""
        return OBJECT

    def register(self, type_def: TypeDefinition) -> None:
        """Register a type definition."""
        if type_def.name in self._types:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        self._types[type_def.name] = type_def

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def get_array_type(self, element_type_name: str, dims: int = 1) -> TypeDefinition:
        """Get the array type of the given dimension for a named element type."""
        return array_type(self.get_or_raise(element_type_name), dims)

    def type_for_name(self, name: str) -> TypeDefinition:
        """Look up a type by its written name, including array suffixes.

        Accepts names such as ``int``, ``Double[]`` or ``float[][]``.

        Raises:
            KeyError: If the base type is unknown.
            ValueError: If the name is not a well-formed type name.
        """
        match = _TYPE_NAME.match(name)
        if match is None:
            raise ValueError(f"Malformed type name '{name}'")
        base, suffix = match.groups()
        return self.get_array_type(base, suffix.count("["))

    def register_class(self, cls: type, name: str | None = None) -> ReferenceTypeDefinition:
        """Register a Python class as a reference type.

        Base classes are registered first and become the direct supertypes;
        a class deriving only from ``object`` sits directly below the root.
        Registering the same class twice returns the existing descriptor.
        """
        existing = self._by_class.get(cls)
        if existing is not None:
            return existing
        supertypes = [self.register_class(base) for base in cls.__bases__ if base is not object]
        type_def = ReferenceTypeDefinition(
            name=name or cls.__qualname__,
            supertypes=supertypes or [OBJECT],
            is_abstract=inspect.isabstract(cls),
            python_class=cls,
        )
        self.register(type_def)
        self._by_class[cls] = type_def
        return type_def

    def type_of_class(self, cls: type) -> ReferenceTypeDefinition | None:
        """Return the descriptor registered for a Python class, if any."""
        return self._by_class.get(cls)

    def type_of_instance(self, value: Any) -> ReferenceTypeDefinition | None:
        """Return the descriptor of the nearest registered class in a value's MRO."""
        for klass in type(value).__mro__:
            type_def = self._by_class.get(klass)
            if type_def is not None:
                return type_def
        return None

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._types


DEFAULT_REGISTRY = TypeRegistry()
