"""Parameter descriptors and executable signatures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from typed_overloads.errors import MalformedRequestError
from typed_overloads.types import (
    ArrayTypeDefinition,
    TypeDefinition,
    TypeRegistry,
    array_type,
)

# The maximum number of parameters in a signature.
MAX_NUM_EXECUTABLE_PARAMETERS = 255

VARARGS_SUFFIX = "..."


@dataclass(frozen=True)
class ParameterDescriptor:
    """A formal parameter: its type plus the variable-arity flag.

    For a variable-arity parameter ``type_def`` is the array type and
    ``component_type`` its element type.
    """

    type_def: TypeDefinition
    is_varargs: bool = False

    @property
    def component_type(self) -> TypeDefinition:
        if self.is_varargs and isinstance(self.type_def, ArrayTypeDefinition):
            return self.type_def.component_type
        return self.type_def

    def __str__(self) -> str:
        if self.is_varargs:
            return f"{self.component_type.name}{VARARGS_SUFFIX}"
        return self.type_def.name


@dataclass(frozen=True)
class ExecutableSignature:
    """One declared constructor of a type."""

    declaring_type: TypeDefinition
    parameters: tuple[ParameterDescriptor, ...] = ()
    accessible: bool = True
    invoker: Callable[..., Any] | None = field(default=None, compare=False)

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)

    @property
    def is_varargs(self) -> bool:
        return bool(self.parameters) and self.parameters[-1].is_varargs

    def validate(self) -> None:
        """Check the declared shape.

        Raises:
            MalformedRequestError: If a variable-arity parameter is not last,
                is not an array, or there are too many parameters.
        """
        if len(self.parameters) > MAX_NUM_EXECUTABLE_PARAMETERS:
            raise MalformedRequestError(
                f"{self} declares {len(self.parameters)} parameters, "
                f"at most {MAX_NUM_EXECUTABLE_PARAMETERS} are supported"
            )
        for index, param in enumerate(self.parameters):
            if not param.is_varargs:
                continue
            if index != len(self.parameters) - 1:
                raise MalformedRequestError(f"{self}: only the last parameter may be variable-arity")
            if not isinstance(param.type_def, ArrayTypeDefinition):
                raise MalformedRequestError(f"{self}: variable-arity parameter must have an array type")

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"{self.declaring_type.name}({params})"


def parameter_from_name(name: str, registry: TypeRegistry) -> ParameterDescriptor:
    """Build a parameter from its written form, e.g. ``int``, ``String[]`` or ``double...``.

    Raises:
        KeyError: If the type is unknown.
        ValueError: If the name is malformed.
    """
    text = name.strip()
    if text.endswith(VARARGS_SUFFIX):
        component = registry.type_for_name(text[: -len(VARARGS_SUFFIX)])
        return ParameterDescriptor(array_type(component, 1), is_varargs=True)
    return ParameterDescriptor(registry.type_for_name(text))
