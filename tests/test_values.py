"""Tests for runtime argument values."""

import pytest

from typed_overloads.types import BOXES, OBJECT, STRING, PrimitiveType, TypeRegistry
from typed_overloads.values import NULL, TypedValue, argument_of, type_name_of, typed, typed_array


class TestTyped:
    """Tests for typed()."""

    def test_primitive(self):
        """Test tagging a value with a primitive kind."""
        value = typed(3, "short")
        assert value.type_def.name == "short"
        assert value.value == 3

    def test_char(self):
        """Test chars accept characters and code points."""
        assert typed("a", "char").value == "a"
        assert typed(98, "char").value == "b"
        with pytest.raises(TypeError):
            typed("ab", "char")

    def test_out_of_range(self):
        """Test range checks on construction."""
        with pytest.raises(ValueError, match="out of range"):
            typed(128, "byte")

    def test_wrong_python_type(self):
        """Test bools are not ints."""
        with pytest.raises(TypeError):
            typed(True, "int")
        with pytest.raises(TypeError):
            typed(1, "boolean")

    def test_float_normalized(self):
        """Test floating kinds hold floats."""
        assert isinstance(typed(2, "double").value, float)

    def test_none_is_null(self):
        """Test None always becomes NULL."""
        assert typed(None, "String") is NULL

    def test_array(self):
        """Test array values are stored as lists."""
        value = typed((1, 2), "int[]")
        assert value.value == [1, 2]
        with pytest.raises(TypeError):
            typed(1, "int[]")


class TestTypedArray:
    """Tests for typed_array()."""

    def test_components_checked(self):
        """Test primitive components are range checked."""
        with pytest.raises(ValueError):
            typed_array("byte", [1, 1000])

    def test_reference_nulls(self):
        """Test reference arrays may hold nulls."""
        value = typed_array("String", ["a", None])
        assert value.type_def.name == "String[]"
        assert value.value == ["a", None]


class TestArgumentOf:
    """Tests for inference of plain Python values."""

    def test_scalars(self):
        """Test inferred boxes for Python scalars."""
        assert argument_of(True).type_def is BOXES[PrimitiveType.BOOLEAN]
        assert argument_of(5).type_def is BOXES[PrimitiveType.INT]
        assert argument_of(2**40).type_def is BOXES[PrimitiveType.LONG]
        assert argument_of(1.5).type_def is BOXES[PrimitiveType.DOUBLE]
        assert argument_of("s").type_def is STRING

    def test_too_large(self):
        """Test ints outside the long range are rejected."""
        with pytest.raises(ValueError):
            argument_of(2**64)

    def test_null_and_passthrough(self):
        """Test None, NULL and typed values."""
        assert argument_of(None) is NULL
        assert argument_of(NULL) is NULL
        value = typed(1, "byte")
        assert argument_of(value) is value

    def test_lists_need_a_type(self):
        """Test raw lists are rejected."""
        with pytest.raises(TypeError, match="typed_array"):
            argument_of([1, 2])

    def test_unregistered_object(self):
        """Test unknown objects are Objects."""
        assert argument_of(object()).type_def is OBJECT

    def test_registered_class(self):
        """Test instances of registered classes get their type."""
        registry = TypeRegistry()

        class Point:
            pass

        point_type = registry.register_class(Point)
        assert argument_of(Point(), registry).type_def is point_type


class TestNull:
    """Tests for the NULL marker."""

    def test_singleton(self):
        """Test NULL is a falsy singleton."""
        assert type(NULL)() is NULL
        assert not NULL
        assert repr(NULL) == "NULL"

    def test_type_name(self):
        """Test display names."""
        assert type_name_of(NULL) == "null"
        assert type_name_of(TypedValue(STRING, "x")) == "String"
