"""Tests for the type system."""

import pytest

from typed_overloads.types import (
    BOXES,
    NUMBER,
    OBJECT,
    PRIMITIVES,
    STRING,
    ArrayTypeDefinition,
    PrimitiveType,
    PrimitiveTypeDefinition,
    ReferenceTypeDefinition,
    TypeRegistry,
    array_type,
    assignable_distance,
    dimension,
    element_type,
    kind_of,
    root_distance,
    type_range,
)


class TestPrimitiveType:
    """Tests for PrimitiveType enum."""

    def test_width_rank_order(self):
        """Test that ranks grow from byte to double."""
        order = [
            PrimitiveType.BYTE,
            PrimitiveType.SHORT,
            PrimitiveType.INT,
            PrimitiveType.LONG,
            PrimitiveType.FLOAT,
            PrimitiveType.DOUBLE,
        ]
        ranks = [pt.width_rank for pt in order]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == len(ranks)
        assert PrimitiveType.CHAR.width_rank == PrimitiveType.SHORT.width_rank

    def test_boxed_names(self):
        """Test every kind has exactly one box."""
        assert PrimitiveType.CHAR.boxed_name == "Character"
        assert PrimitiveType.INT.boxed_name == "Integer"
        names = {pt.boxed_name for pt in PrimitiveType}
        assert len(names) == len(PrimitiveType)

    def test_type_range(self):
        """Test inclusive ranges of the numeric kinds."""
        assert type_range(PrimitiveType.BYTE) == (-128, 127)
        assert type_range(PrimitiveType.SHORT) == (-32768, 32767)
        assert type_range(PrimitiveType.CHAR) == (0, 65535)
        assert type_range(PrimitiveType.LONG) == (-(2**63), 2**63 - 1)

    def test_type_range_non_numeric(self):
        """Test that boolean has no range."""
        with pytest.raises(ValueError, match="no numeric range"):
            type_range(PrimitiveType.BOOLEAN)


class TestLattice:
    """Tests for the built-in reference lattice."""

    def test_single_root(self):
        """Test that Object is the only root."""
        assert OBJECT.is_root
        assert not STRING.is_root
        assert root_distance(OBJECT) == 0
        assert root_distance(STRING) == 1

    def test_numeric_boxes_extend_number(self):
        """Test where the boxes sit in the lattice."""
        integer = BOXES[PrimitiveType.INT]
        assert assignable_distance(NUMBER, integer) == 1
        assert assignable_distance(OBJECT, integer) == 2
        assert assignable_distance(NUMBER, BOXES[PrimitiveType.CHAR]) is None
        assert assignable_distance(NUMBER, BOXES[PrimitiveType.BOOLEAN]) is None

    def test_not_assignable_downwards(self):
        """Test that a supertype is not assignable to a subtype."""
        assert assignable_distance(STRING, OBJECT) is None
        assert assignable_distance(STRING, STRING) == 0

    def test_kind_of(self):
        """Test kind lookup for primitives and boxes."""
        assert kind_of(PRIMITIVES[PrimitiveType.LONG]) is PrimitiveType.LONG
        assert kind_of(BOXES[PrimitiveType.LONG]) is PrimitiveType.LONG
        assert kind_of(STRING) is None

    def test_multiple_supertypes(self):
        """Test the shortest path wins with several supertypes."""
        base = ReferenceTypeDefinition(name="Base", supertypes=[OBJECT])
        middle = ReferenceTypeDefinition(name="Middle", supertypes=[base])
        leaf = ReferenceTypeDefinition(name="Leaf", supertypes=[middle, base])
        assert assignable_distance(base, leaf) == 1
        assert assignable_distance(middle, leaf) == 1
        assert root_distance(leaf) == 2


class TestArrayTypes:
    """Tests for array type helpers."""

    def test_array_type(self):
        """Test building nested arrays."""
        double = PRIMITIVES[PrimitiveType.DOUBLE]
        matrix = array_type(double, 2)
        assert isinstance(matrix, ArrayTypeDefinition)
        assert matrix.name == "double[][]"
        assert dimension(matrix) == 2
        assert element_type(matrix) is double

    def test_dimension_zero_is_element(self):
        """Test that a zero-dimension array is its element type."""
        assert array_type(STRING, 0) is STRING
        assert dimension(STRING) == 0
        assert element_type(STRING) is STRING

    def test_negative_dimension(self):
        """Test that negative dimensions are rejected."""
        with pytest.raises(ValueError):
            array_type(STRING, -1)

    def test_structural_equality(self):
        """Test arrays compare by element."""
        assert array_type(STRING, 1) == array_type(STRING, 1)
        assert hash(array_type(STRING, 2)) == hash(array_type(STRING, 2))
        assert array_type(STRING, 1) != array_type(STRING, 2)

    def test_covariance(self):
        """Test reference arrays are covariant, primitive arrays are not."""
        assert assignable_distance(array_type(OBJECT, 1), array_type(STRING, 1)) == 1
        int_array = array_type(PRIMITIVES[PrimitiveType.INT], 1)
        long_array = array_type(PRIMITIVES[PrimitiveType.LONG], 1)
        assert assignable_distance(long_array, int_array) is None
        assert assignable_distance(OBJECT, int_array) == 1
        assert root_distance(int_array) == 1


class TestTypeRegistry:
    """Tests for TypeRegistry."""

    def test_builtins_registered(self):
        """Test that the built-in lattice is pre-registered."""
        registry = TypeRegistry()
        for name in ["int", "Integer", "Object", "Number", "String", "CharSequence", "void"]:
            assert name in registry
        assert isinstance(registry.get("int"), PrimitiveTypeDefinition)

    def test_builtins_shared(self):
        """Test that registries share the built-in descriptors."""
        assert TypeRegistry().get("String") is TypeRegistry().get("String")

    def test_register_duplicate(self):
        """Test registering a duplicate type raises."""
        registry = TypeRegistry()
        with pytest.raises(ValueError, match="already defined"):
            registry.register(ReferenceTypeDefinition(name="String"))

    def test_get_or_raise(self):
        """Test get_or_raise on an unknown name."""
        with pytest.raises(KeyError, match="not found"):
            TypeRegistry().get_or_raise("Missing")

    def test_type_for_name(self):
        """Test resolving written type names."""
        registry = TypeRegistry()
        assert registry.type_for_name("int") is PRIMITIVES[PrimitiveType.INT]
        floats = registry.type_for_name("float[][]")
        assert dimension(floats) == 2
        assert element_type(floats) is PRIMITIVES[PrimitiveType.FLOAT]
        assert registry.type_for_name("Double[ ]") == array_type(BOXES[PrimitiveType.DOUBLE], 1)

    def test_type_for_name_malformed(self):
        """Test malformed names raise ValueError."""
        with pytest.raises(ValueError, match="Malformed"):
            TypeRegistry().type_for_name("int[")

    def test_register_class(self):
        """Test Python classes map onto the lattice."""
        registry = TypeRegistry()

        class Animal:
            pass

        class Dog(Animal):
            pass

        dog = registry.register_class(Dog)
        animal = registry.type_of_class(Animal)
        assert animal is not None
        assert dog.supertypes == [animal]
        assert animal.supertypes == [OBJECT]
        assert registry.register_class(Dog) is dog
        assert registry.type_of_instance(Dog()) is dog
        assert registry.type_of_instance(3.5) is OBJECT
        assert registry.type_of_instance("text") is STRING
