"""Tests for the Catalog interface."""

import logging

import pytest

from typed_overloads import (
    Catalog,
    InvocationFailedError,
    MalformedRequestError,
    NoMatchingSignatureError,
    Resolution,
    SignatureType,
    typed,
)

SHAPES = """
# Shapes with overloaded constructors
abstract class Shape { Shape() }
class Circle extends Shape {
    Circle(double)
    Circle(Circle)
    private Circle(String...)
}
class Square extends Shape {
    Square(double)
    Square(int, int)
}
"""


class Circle:
    def __init__(self, radius):
        self.radius = radius


@pytest.fixture
def catalog():
    """Create a catalog with bound circle constructors."""
    catalog = Catalog.parse(SHAPES)

    @catalog.implements("Circle", "double")
    def circle(radius):
        return Circle(radius)

    catalog.bind("Circle", lambda other: Circle(other.radius), ["Circle"])
    return catalog


class TestCatalog:
    """Tests for Catalog."""

    def test_list_types(self, catalog):
        """Test declared types join the built-in ones."""
        types = catalog.list_types()
        assert {"Shape", "Circle", "Square", "Object", "int"} <= set(types)

    def test_get_type(self, catalog):
        """Test looking up types."""
        assert catalog.get_type("Circle").supertypes == [catalog.get_type("Shape")]
        with pytest.raises(KeyError):
            catalog.get_type("Triangle")

    def test_constructors(self, catalog):
        """Test listing the constructors of a type."""
        assert [str(c) for c in catalog.constructors("Square")] == ["Square(double)", "Square(int, int)"]

    def test_new_instance(self, catalog):
        """Test creating an instance by type name."""
        circle = catalog.new_instance("Circle", 2)
        assert isinstance(circle, Circle)
        assert circle.radius == 2.0

    def test_new_instance_copy(self, catalog):
        """Test passing a bound Python object as a declared type."""
        original = catalog.new_instance("Circle", 1.5)
        copy = catalog.new_instance("Circle", typed(original, catalog.get_type("Circle")))
        assert copy is not original
        assert copy.radius == 1.5

    def test_new_instance_by_descriptor(self, catalog):
        """Test the target may be a type descriptor."""
        assert catalog.new_instance(catalog.get_type("Circle"), 3.0).radius == 3.0

    def test_resolve_does_not_invoke(self, catalog):
        """Test resolve returns the chosen signature only."""
        resolution = catalog.resolve("Square", 1, 2)
        assert isinstance(resolution, Resolution)
        assert str(resolution.signature) == "Square(int, int)"
        assert resolution.reshaped_arguments() == (1, 2)

    def test_matching(self, catalog):
        """Test the ordered list of matching constructors."""
        matching = catalog.matching("Circle", "a")
        assert [str(s) for s in matching] == ["Circle(String...)"]

    def test_private_constructor(self, catalog):
        """Test private constructors are resolved but not invoked."""
        with pytest.raises(InvocationFailedError, match="inaccessible"):
            catalog.new_instance("Circle", "a", "b")

    def test_abstract_type(self, catalog):
        """Test abstract types cannot be instantiated."""
        catalog.bind("Shape", object)
        with pytest.raises(InvocationFailedError, match="abstract"):
            catalog.new_instance("Shape")

    def test_unbound_constructor(self, catalog):
        """Test constructors without implementation fail at invocation."""
        with pytest.raises(InvocationFailedError, match="no implementation"):
            catalog.new_instance("Square", 1.0)

    def test_mode(self, catalog):
        """Test selection modes through the catalog."""
        catalog.bind("Square", lambda *sides: sides)
        assert catalog.new_instance("Square", 1, 2) == (1, 2)
        assert str(catalog.resolve("Circle", 1, mode=SignatureType.MOST_GENERIC).signature) == "Circle(double)"

    def test_no_match(self, catalog):
        """Test no matching constructor."""
        with pytest.raises(NoMatchingSignatureError):
            catalog.new_instance("Square", "x")

    def test_unknown_target(self, catalog):
        """Test unknown and missing targets are malformed."""
        with pytest.raises(MalformedRequestError, match="Triangle"):
            catalog.new_instance("Triangle")
        with pytest.raises(MalformedRequestError):
            catalog.resolve(None)

    def test_bind_unknown(self, catalog):
        """Test binding to unknown types or signatures."""
        with pytest.raises(KeyError):
            catalog.bind("Triangle", object)
        with pytest.raises(KeyError):
            catalog.bind("Square", object, ["String"])

    def test_resolution_logged_by_catalog(self, catalog, caplog):
        """Test that the catalog logs resolutions and the resolver core does not."""
        with caplog.at_level(logging.DEBUG, logger="typed_overloads"):
            catalog.resolve("Circle", 1.0)

        loggers = {record.name for record in caplog.records}
        assert "typed_overloads.catalog" in loggers
        assert "typed_overloads.resolver" not in loggers
