"""Typed Overloads - Runtime constructor overload resolution over a typed lattice."""

from typed_overloads.catalog import Catalog
from typed_overloads.conversions import (
    box,
    boxed_of,
    can_narrow,
    can_widen,
    convert,
    is_compatible,
    unbox,
    unboxed_of,
)
from typed_overloads.errors import (
    AmbiguousResolutionError,
    ConversionError,
    InvocationFailedError,
    MalformedRequestError,
    NoMatchingSignatureError,
    ResolutionError,
)
from typed_overloads.parsing import DeclarationParser
from typed_overloads.provider import (
    ClassConstructorProvider,
    ConstructorProvider,
    DeclaredConstructorProvider,
    constructor,
    overloaded,
)
from typed_overloads.resolver import (
    MAX_LATTICE_DEPTH,
    Resolution,
    SignatureType,
    find_matching,
    new_instance,
    resolve,
)
from typed_overloads.signatures import (
    MAX_NUM_EXECUTABLE_PARAMETERS,
    ExecutableSignature,
    ParameterDescriptor,
)
from typed_overloads.types import (
    DEFAULT_REGISTRY,
    ArrayTypeDefinition,
    PrimitiveType,
    PrimitiveTypeDefinition,
    ReferenceTypeDefinition,
    TypeDefinition,
    TypeRegistry,
    array_type,
    dimension,
    element_type,
    type_range,
)
from typed_overloads.values import NULL, TypedValue, typed, typed_array

__all__ = [
    # Main API
    "Catalog",
    "DeclarationParser",
    "SignatureType",
    "Resolution",
    "resolve",
    "find_matching",
    "new_instance",
    # Providers
    "ConstructorProvider",
    "DeclaredConstructorProvider",
    "ClassConstructorProvider",
    "constructor",
    "overloaded",
    # Values
    "NULL",
    "TypedValue",
    "typed",
    "typed_array",
    # Type definitions
    "TypeDefinition",
    "PrimitiveType",
    "PrimitiveTypeDefinition",
    "ReferenceTypeDefinition",
    "ArrayTypeDefinition",
    "TypeRegistry",
    "DEFAULT_REGISTRY",
    "array_type",
    "dimension",
    "element_type",
    "type_range",
    # Signatures
    "ExecutableSignature",
    "ParameterDescriptor",
    "MAX_NUM_EXECUTABLE_PARAMETERS",
    "MAX_LATTICE_DEPTH",
    # Conversions
    "box",
    "unbox",
    "boxed_of",
    "unboxed_of",
    "can_widen",
    "can_narrow",
    "is_compatible",
    "convert",
    # Errors
    "ResolutionError",
    "NoMatchingSignatureError",
    "AmbiguousResolutionError",
    "MalformedRequestError",
    "InvocationFailedError",
    "ConversionError",
]

__version__ = "0.1.0"
