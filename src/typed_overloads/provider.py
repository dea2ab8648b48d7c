"""Constructor providers: where the candidate set of a type comes from.

The resolver never inspects types itself; it asks a ``ConstructorProvider``
for the declared signatures of a type on every request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import partial
from typing import Any, Callable, Iterable, Protocol, Sequence, TypeVar

from typed_overloads.errors import MalformedRequestError
from typed_overloads.resolver import SignatureType, new_instance
from typed_overloads.signatures import ExecutableSignature, ParameterDescriptor, parameter_from_name
from typed_overloads.types import ReferenceTypeDefinition, TypeDefinition, TypeRegistry

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type)
F = TypeVar("F", bound=Callable[..., Any])

# Attribute set by @constructor on the decorated function
CONSTRUCTOR_ATTRIBUTE = "__constructor_spec__"


class ConstructorProvider(Protocol):
    """Lists the declared constructors of a type."""

    registry: TypeRegistry

    def list_constructors(self, type_def: TypeDefinition) -> list[ExecutableSignature]: ...


class DeclaredConstructorProvider:
    """Constructors declared up front, typically by the declaration parser.

    Signatures are kept per type name in declaration order. Implementations
    are attached later with ``bind``.
    """

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self.registry = registry if registry is not None else TypeRegistry()
        self._signatures: dict[str, list[ExecutableSignature]] = {}

    def declare(self, signature: ExecutableSignature) -> None:
        """Add a signature to its declaring type."""
        signature.validate()
        self._signatures.setdefault(signature.declaring_type.name, []).append(signature)

    def bind(
        self,
        type_name: str,
        invoker: Callable[..., Any],
        parameters: Sequence[str] | None = None,
    ) -> int:
        """Attach an implementation to the constructors of a type.

        Args:
            type_name: Name of the declaring type.
            invoker: Callable receiving the converted arguments.
            parameters: Written parameter types selecting one constructor,
                e.g. ``["int", "String..."]``. None binds every constructor.

        Returns:
            The number of constructors bound.

        Raises:
            KeyError: If nothing matches.
        """
        wanted = None
        if parameters is not None:
            wanted = tuple(parameter_from_name(p, self.registry) for p in parameters)
        signatures = self._signatures.get(type_name, [])
        bound = 0
        for index, signature in enumerate(signatures):
            if wanted is None or signature.parameters == wanted:
                signatures[index] = replace(signature, invoker=invoker)
                bound += 1
        if not bound:
            raise KeyError(f"No constructor of '{type_name}' matches {list(parameters or [])}")
        return bound

    def list_constructors(self, type_def: TypeDefinition) -> list[ExecutableSignature]:
        return list(self._signatures.get(type_def.name, []))


@dataclass(frozen=True)
class ConstructorSpec:
    """Parameter types recorded by @constructor before resolution."""

    parameter_types: tuple[str | type, ...]
    private: bool = False


def constructor(*parameter_types: str | type, private: bool = False) -> Callable[[F], F]:
    """Declare a method as one constructor of its class.

    Parameter types are written names (``"int"``, ``"String[]"``,
    ``"double..."``) or registered Python classes. The method runs on a fresh,
    uninitialised instance and receives the converted arguments::

        class Vector:
            @constructor("double...")
            def _from_components(self, components):
                self.components = list(components)
    """

    def decorate(func: F) -> F:
        setattr(func, CONSTRUCTOR_ATTRIBUTE, ConstructorSpec(tuple(parameter_types), private))
        return func

    return decorate


def _initialize(cls: type, method_name: str, *values: Any) -> Any:
    instance = cls.__new__(cls)
    getattr(instance, method_name)(*values)
    return instance


class ClassConstructorProvider:
    """Constructors declared on Python classes with @constructor.

    Only methods defined on the class itself count; constructors are not
    inherited from base classes.
    """

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self.registry = registry if registry is not None else TypeRegistry()

    def type_for(self, cls: type) -> ReferenceTypeDefinition:
        """Return the type of a Python class, registering it on first use."""
        return self.registry.register_class(cls)

    def _parameter(self, spec: str | type) -> ParameterDescriptor:
        if isinstance(spec, type):
            return ParameterDescriptor(self.type_for(spec))
        return parameter_from_name(spec, self.registry)

    def _declared(self, cls: type) -> Iterable[tuple[str, ConstructorSpec]]:
        for name, member in vars(cls).items():
            spec = getattr(member, CONSTRUCTOR_ATTRIBUTE, None)
            if isinstance(spec, ConstructorSpec):
                yield name, spec

    def list_constructors(self, type_def: TypeDefinition) -> list[ExecutableSignature]:
        cls = getattr(type_def, "python_class", None)
        if cls is None:
            return []
        signatures = []
        for name, spec in self._declared(cls):
            try:
                parameters = tuple(self._parameter(p) for p in spec.parameter_types)
            except (KeyError, ValueError) as exc:
                raise MalformedRequestError(f"{cls.__qualname__}.{name}: {exc}") from exc
            signatures.append(
                ExecutableSignature(
                    declaring_type=type_def,
                    parameters=parameters,
                    accessible=not spec.private,
                    invoker=partial(_initialize, cls, name),
                )
            )
        logger.debug("%s declares %d constructors", type_def.name, len(signatures))
        return signatures

    def new_instance(self, cls: type, *arguments: Any, mode: SignatureType = SignatureType.MOST_SPECIFIC) -> Any:
        """Create an instance of ``cls`` through its most fitting constructor."""
        return new_instance(self.type_for(cls), *arguments, provider=self, mode=mode)


_CLASS_PROVIDER = ClassConstructorProvider()


def overloaded(cls: C) -> C:
    """Class decorator adding a ``create`` classmethod that resolves constructors.

    ``Vector.create(1.0, 2.0)`` picks the most specific ``@constructor`` of
    ``Vector`` for the arguments; ``create(..., mode=SignatureType.MOST_GENERIC)``
    picks the least specific one.
    """
    _CLASS_PROVIDER.type_for(cls)

    def create(klass: type, *arguments: Any, mode: SignatureType = SignatureType.MOST_SPECIFIC) -> Any:
        return _CLASS_PROVIDER.new_instance(klass, *arguments, mode=mode)

    setattr(cls, "create", classmethod(create))
    return cls


def class_provider() -> ClassConstructorProvider:
    """Return the provider shared by all @overloaded classes."""
    return _CLASS_PROVIDER
