"""Example usage of the typed_overloads library."""

from typed_overloads import Catalog, InvocationFailedError, SignatureType, typed, typed_array

# Declare a small type hierarchy with overloaded constructors using the DSL
declarations = """
abstract class Shape
class Circle extends Shape {
    Circle(double)
    Circle(int, int)
    private Circle(String...)
}
class Polygon extends Shape {
    Polygon(double...)
    Polygon(int)
}
"""

catalog = Catalog.parse(declarations)

# Bind implementations to the declared constructors
catalog.bind("Circle", lambda radius: {"shape": "circle", "radius": radius}, ["double"])
catalog.bind("Circle", lambda x, y: {"shape": "circle", "center": (x, y)}, ["int", "int"])
catalog.bind("Polygon", lambda sides: {"shape": "polygon", "sides": sides}, ["double..."])
catalog.bind("Polygon", lambda count: {"shape": "polygon", "sides": [1.0] * count}, ["int"])

print("Resolving constructors...")
for type_name, arguments in [
    ("Circle", (2.5,)),
    ("Circle", (2,)),
    ("Circle", (1, 2)),
    ("Polygon", (3,)),
    ("Polygon", (1.0, 2.0, 3.0)),
    ("Polygon", (typed_array("double", [4.0, 4.0]),)),
    ("Polygon", (typed(3, "short"),)),
]:
    resolution = catalog.resolve(type_name, *arguments)
    print(f"  {type_name}{arguments} -> {resolution.signature}: {resolution.invoke()}")

print("\nMost generic choice for Polygon(3):")
print(f"  {catalog.resolve('Polygon', 3, mode=SignatureType.MOST_GENERIC).signature}")

print("\nPrivate constructors are found but not invoked:")
try:
    catalog.new_instance("Circle", "a", "b")
except InvocationFailedError as exc:
    print(f"  {exc} (caused by {exc.__cause__!r})")
