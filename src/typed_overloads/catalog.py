"""Catalog class tying declared types to their implementations."""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence, TypeVar

from typed_overloads.errors import MalformedRequestError
from typed_overloads.parsing import DeclarationParser
from typed_overloads.provider import DeclaredConstructorProvider
from typed_overloads.resolver import Resolution, SignatureType, find_matching, resolve
from typed_overloads.signatures import ExecutableSignature
from typed_overloads.types import TypeDefinition, TypeRegistry

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Catalog:
    """Parsed type declarations with bound constructor implementations."""

    def __init__(self, provider: DeclaredConstructorProvider) -> None:
        """Initialize a catalog.

        Args:
            provider: Provider holding the declared constructors.
        """
        self.provider = provider

    @classmethod
    def parse(cls, declarations: str) -> Catalog:
        """Parse type declarations and create a catalog.

        Args:
            declarations: DSL string declaring types and constructors.

        Returns:
            A new Catalog instance with its own registry.
        """
        parser = DeclarationParser()
        return cls(parser.parse(declarations))

    @property
    def registry(self) -> TypeRegistry:
        return self.provider.registry

    def get_type(self, name: str) -> TypeDefinition:
        """Get a type definition by name.

        Raises:
            KeyError: If the type is not found.
        """
        return self.registry.get_or_raise(name)

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return self.registry.list_types()

    def constructors(self, type_name: str) -> list[ExecutableSignature]:
        """List the declared constructors of a type in declaration order."""
        return self.provider.list_constructors(self.get_type(type_name))

    def bind(
        self,
        type_name: str,
        factory: Callable[..., Any],
        parameters: Sequence[str] | None = None,
    ) -> int:
        """Bind an implementation to the constructors of a type.

        Args:
            type_name: Name of the declared type.
            factory: Callable receiving the converted arguments.
            parameters: Written parameter types selecting one constructor;
                None binds every constructor of the type.

        Returns:
            The number of constructors bound.

        Raises:
            KeyError: If the type is unknown or no constructor matches.
        """
        self.get_type(type_name)
        return self.provider.bind(type_name, factory, parameters)

    def implements(self, type_name: str, *parameters: str) -> Callable[[F], F]:
        """Decorator form of ``bind``.

        ``@catalog.implements("Circle", "double")`` binds one constructor;
        without parameter types every constructor of the type is bound.
        """

        def decorate(factory: F) -> F:
            self.bind(type_name, factory, list(parameters) if parameters else None)
            return factory

        return decorate

    def _target(self, target: str | TypeDefinition | None) -> TypeDefinition | None:
        if not isinstance(target, str):
            return target
        type_def = self.registry.get(target)
        if type_def is None:
            raise MalformedRequestError(f"Unknown target type '{target}'")
        return type_def

    def matching(self, target: str | TypeDefinition | None, *arguments: Any) -> list[ExecutableSignature]:
        """Return the constructors accepting the arguments, most specific first."""
        return find_matching(self._target(target), arguments, self.provider)

    def resolve(
        self,
        target: str | TypeDefinition | None,
        *arguments: Any,
        mode: SignatureType = SignatureType.MOST_SPECIFIC,
    ) -> Resolution:
        """Resolve the constructor to call without invoking it."""
        resolution = resolve(self._target(target), arguments, self.provider, mode)
        logger.debug("%s: resolved %s (%s)", resolution.target.name, resolution.signature, mode.name)
        return resolution

    def new_instance(
        self,
        target: str | TypeDefinition | None,
        *arguments: Any,
        mode: SignatureType = SignatureType.MOST_SPECIFIC,
    ) -> Any:
        """Resolve the constructor for the arguments and invoke it.

        Raises:
            NoMatchingSignatureError: If no constructor accepts the arguments.
            AmbiguousResolutionError: If several constructors tie.
            MalformedRequestError: If the target is missing or unknown.
            InvocationFailedError: If the chosen constructor cannot run.
        """
        return self.resolve(target, *arguments, mode=mode).invoke()
