"""Exceptions raised while resolving and invoking constructors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from typed_overloads.signatures import ExecutableSignature


class ResolutionError(ValueError):
    """Raised when a request cannot be resolved to a single signature.

    Resolution errors are always detected before anything is invoked.
    """


class NoMatchingSignatureError(ResolutionError):
    """No declared signature accepts the supplied arguments."""

    def __init__(self, target_name: str, argument_types: Sequence[str]) -> None:
        self.target_name = target_name
        self.argument_types = list(argument_types)
        super().__init__(
            f"Found no matching constructor for {target_name} "
            f"with arguments of type {self.argument_types}"
        )


class AmbiguousResolutionError(ResolutionError):
    """Two or more signatures stay tied after every refinement."""

    def __init__(
        self,
        target_name: str,
        candidates: Sequence[ExecutableSignature],
        argument_types: Sequence[str] = (),
    ) -> None:
        self.target_name = target_name
        self.candidates = list(candidates)
        self.argument_types = list(argument_types)
        names = ", ".join(str(c) for c in self.candidates)
        super().__init__(
            f"Cannot pick the most specific constructor of {target_name} "
            f"for arguments {self.argument_types}: {names} are equally specific"
        )


class MalformedRequestError(ResolutionError):
    """The request or a declared signature is not well-formed."""


class InvocationFailedError(RuntimeError):
    """The chosen signature was found but could not be invoked.

    The original exception is chained as ``__cause__`` and kept on ``cause``.
    """

    def __init__(
        self,
        message: str,
        signature: ExecutableSignature | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.signature = signature
        self.cause = cause
        super().__init__(message)


class ConversionError(TypeError):
    """A value cannot be converted to the representation of a parameter type."""
