"""Constructor resolution: pick the most specific signature for runtime arguments.

Resolution runs in four steps over the candidate set of the target type:

1. Filtering keeps the signatures whose parameters accept the arguments,
   honouring boxing, widening, in-range narrowing, nulls and variable arity.
2. Specificity scoring orders the survivors. Primitive parameters beat
   reference parameters, and reference parameters closer to the argument's
   concrete type beat those further up the lattice.
3. Ties are refined by narrowness: a signature with a wider primitive slot
   always loses to one without, however many narrower slots it has.
4. Remaining ties put fixed arity before variable arity, then the single
   exact match of the boxed argument types first. Anything still tied is
   reported as ambiguous.

Every key is a tuple compared lexicographically, so no weighting can overflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from itertools import groupby
from typing import TYPE_CHECKING, Any, Sequence

from typed_overloads.conversions import boxed_of, convert, is_compatible
from typed_overloads.errors import (
    AmbiguousResolutionError,
    ConversionError,
    InvocationFailedError,
    MalformedRequestError,
    NoMatchingSignatureError,
)
from typed_overloads.signatures import ExecutableSignature
from typed_overloads.types import (
    MAX_WIDTH_RANK,
    PrimitiveTypeDefinition,
    ReferenceTypeDefinition,
    TypeDefinition,
    assignable_distance,
    element_type,
    root_distance,
)
from typed_overloads.values import NULL, Argument, TypedValue, argument_of, type_name_of

if TYPE_CHECKING:
    from typed_overloads.provider import ConstructorProvider

# Deepest supported position of a type below the lattice root.
MAX_LATTICE_DEPTH = 50


class SignatureType(Enum):
    """Which of the matching signatures to pick."""

    # The most specific, narrow signature that matches.
    MOST_SPECIFIC = auto()
    # The most generic, wide signature that matches.
    MOST_GENERIC = auto()
    # The first matching signature in declaration order.
    ANY = auto()


@dataclass(frozen=True)
class Resolution:
    """The signature chosen for a request, ready to be invoked."""

    target: TypeDefinition
    signature: ExecutableSignature
    arguments: tuple[Argument, ...]
    passthrough: bool = False

    def reshaped_arguments(self) -> tuple[Any, ...]:
        """Convert the arguments to the values the invoker receives.

        Trailing variable-arity arguments are collected into a fresh list,
        unless a single matching array was supplied, which is passed as is.

        Raises:
            ConversionError: If an argument cannot be converted.
        """
        values: list[Any] = []
        for index, param in enumerate(self.signature.parameters):
            if not param.is_varargs:
                values.append(convert(self.arguments[index], param.type_def))
            elif self.passthrough:
                argument = self.arguments[index]
                assert isinstance(argument, TypedValue)
                values.append(argument.value)
            else:
                values.append([convert(a, param.component_type) for a in self.arguments[index:]])
        return tuple(values)

    def invoke(self) -> Any:
        """Invoke the chosen signature.

        Raises:
            InvocationFailedError: If the target is abstract, the constructor
                is inaccessible or unbound, an argument fails to convert, or
                the invoked body raises.
        """
        return invoke(self)


def _accepts(param_type: TypeDefinition, argument: Argument) -> bool:
    """Null fits any non-primitive parameter; anything else must be compatible."""
    if argument is NULL:
        return not param_type.is_primitive
    return is_compatible(param_type, argument)


def is_passthrough(signature: ExecutableSignature, arguments: Sequence[Argument]) -> bool:
    """Check whether a single trailing array can stand in for the variable-arity parameter."""
    if not signature.is_varargs or len(arguments) != signature.parameter_count:
        return False
    argument = arguments[-1]
    return isinstance(argument, TypedValue) and argument.type_def == signature.parameters[-1].type_def


def has_compatible_signature(signature: ExecutableSignature, arguments: Sequence[Argument]) -> bool:
    """Check whether a signature accepts the arguments, with conversions."""
    params = signature.parameters
    if not params:
        return not arguments
    fixed = params[:-1]
    if len(arguments) < len(fixed):
        return False
    if not all(_accepts(p.type_def, a) for p, a in zip(fixed, arguments)):
        return False

    last = params[-1]
    if last.is_varargs:
        if is_passthrough(signature, arguments):
            return True
        return all(_accepts(last.component_type, a) for a in arguments[len(fixed):])
    if len(arguments) != len(params):
        return False
    return _accepts(last.type_def, arguments[-1])


def has_same_parameter_signature(signature: ExecutableSignature, arguments: Sequence[Argument]) -> bool:
    """Check whether the boxed parameter types equal the boxed argument types."""

    def same(param_type: TypeDefinition, argument: Argument) -> bool:
        return isinstance(argument, TypedValue) and boxed_of(param_type) == boxed_of(argument.type_def)

    params = signature.parameters
    if not params:
        return not arguments
    fixed = params[:-1]
    if len(arguments) < len(fixed) or not all(same(p.type_def, a) for p, a in zip(fixed, arguments)):
        return False

    last = params[-1]
    if last.is_varargs:
        if is_passthrough(signature, arguments):
            return True
        return all(same(last.component_type, a) for a in arguments[len(fixed):])
    return len(arguments) == len(params) and same(last.type_def, arguments[-1])


def _checked_depth(type_def: TypeDefinition) -> int:
    depth = root_distance(type_def)
    if depth > MAX_LATTICE_DEPTH:
        raise MalformedRequestError(
            f"{type_def.name} is nested {depth} levels below the root, "
            f"at most {MAX_LATTICE_DEPTH} are supported"
        )
    return depth


def _reference_distance(param_type: TypeDefinition, argument: Argument) -> int:
    """Lattice steps from the argument up to the parameter, capped at the depth limit."""
    depth = _checked_depth(param_type)
    if argument is NULL:
        # Null is closest to the deepest parameter type.
        return MAX_LATTICE_DEPTH - depth
    assert isinstance(argument, TypedValue)
    steps = assignable_distance(param_type, boxed_of(argument.type_def))
    if steps is None:
        return MAX_LATTICE_DEPTH
    return min(steps, MAX_LATTICE_DEPTH)


def specificity_score(
    signature: ExecutableSignature, arguments: Sequence[Argument], passthrough: bool = False
) -> tuple[int, ...]:
    """Score a compatible signature; lower tuples are more specific.

    The first entry counts primitive parameters, the rest count reference
    parameters by their distance to the argument, closest first. Counts are
    negated so that more primitive or closer parameters sort first. A
    variable-arity parameter counts once, against its first trailing argument,
    and not at all when no trailing argument is supplied.
    """
    primitives = 0
    by_distance = [0] * (MAX_LATTICE_DEPTH + 1)
    for index, param in enumerate(signature.parameters):
        if index >= len(arguments):
            continue
        measured = param.type_def if passthrough or not param.is_varargs else param.component_type
        if element_type(measured).is_primitive:
            primitives += 1
            continue
        by_distance[_reference_distance(measured, arguments[index])] += 1
    return (-primitives, *(-count for count in by_distance))


def narrowness_score(signature: ExecutableSignature) -> tuple[int, ...]:
    """Count primitive parameters per width rank, widest first; lower is narrower.

    Array parameters count by their element type. Reference parameters do
    not contribute.
    """
    counts = [0] * (MAX_WIDTH_RANK + 1)
    for param in signature.parameters:
        element = element_type(param.type_def)
        if isinstance(element, PrimitiveTypeDefinition):
            counts[MAX_WIDTH_RANK - element.primitive.width_rank] += 1
    return tuple(counts)


def order_candidates(
    target: TypeDefinition,
    candidates: Sequence[ExecutableSignature],
    arguments: Sequence[Argument],
    mode: SignatureType = SignatureType.MOST_SPECIFIC,
) -> list[ExecutableSignature]:
    """Sort compatible candidates from most to least specific.

    Fixed-arity signatures sort before variable-arity ones with the same
    scores. In a tie group with exactly one exact match, that match goes
    first and the rest keep declaration order.

    Raises:
        AmbiguousResolutionError: If a tie survives both refinements, or if
            MOST_GENERIC would have to pick among the unordered rest of the
            last tie group.
    """

    def key(signature: ExecutableSignature) -> tuple[tuple[int, ...], tuple[int, ...], bool]:
        passthrough = is_passthrough(signature, arguments)
        return (
            specificity_score(signature, arguments, passthrough),
            narrowness_score(signature),
            signature.is_varargs and not passthrough,
        )

    def ambiguous(tied: list[ExecutableSignature]) -> AmbiguousResolutionError:
        return AmbiguousResolutionError(target.name, tied, [type_name_of(a) for a in arguments])

    ordered: list[ExecutableSignature] = []
    unordered_tail: list[ExecutableSignature] = []
    for _, group in groupby(sorted(candidates, key=key), key=key):
        tied = list(group)
        unordered_tail = []
        if len(tied) == 1:
            ordered.extend(tied)
            continue
        exact = [s for s in tied if has_same_parameter_signature(s, arguments)]
        if len(exact) != 1:
            raise ambiguous(tied)
        rest = [s for s in tied if s is not exact[0]]
        ordered.append(exact[0])
        ordered.extend(rest)
        if len(rest) > 1:
            unordered_tail = rest
    if mode is SignatureType.MOST_GENERIC and unordered_tail:
        raise ambiguous(unordered_tail)
    return ordered


def _matching(
    target: TypeDefinition | None, arguments: Sequence[Any], provider: ConstructorProvider
) -> tuple[tuple[Argument, ...], list[ExecutableSignature]]:
    """Type the arguments and filter the target's candidate set, in declaration order."""
    if target is None:
        raise MalformedRequestError("Cannot resolve a constructor without a target type")
    candidates = list(provider.list_constructors(target))
    for signature in candidates:
        signature.validate()
    typed_args = tuple(argument_of(a, provider.registry) for a in arguments)
    matching = [s for s in candidates if has_compatible_signature(s, typed_args)]
    return typed_args, matching


def find_matching(
    target: TypeDefinition | None,
    arguments: Sequence[Any],
    provider: ConstructorProvider,
) -> list[ExecutableSignature]:
    """Return every signature of the target accepting the arguments, most specific first.

    Raises:
        MalformedRequestError: If the target is missing or a signature is malformed.
        AmbiguousResolutionError: If the candidates cannot be totally ordered.
    """
    typed_args, matching = _matching(target, arguments, provider)
    assert target is not None
    return order_candidates(target, matching, typed_args)


def resolve(
    target: TypeDefinition | None,
    arguments: Sequence[Any],
    provider: ConstructorProvider,
    mode: SignatureType = SignatureType.MOST_SPECIFIC,
) -> Resolution:
    """Select the constructor of ``target`` to call with ``arguments``.

    Arguments may be plain Python values or ``TypedValue``/``NULL``. The ANY
    mode returns the first match in declaration order, so it is stable
    across calls.

    Raises:
        NoMatchingSignatureError: If no signature accepts the arguments.
        AmbiguousResolutionError: If the candidates cannot be totally ordered.
        MalformedRequestError: If the target is missing or a signature is malformed.
    """
    typed_args, matching = _matching(target, arguments, provider)
    assert target is not None
    if not matching:
        raise NoMatchingSignatureError(target.name, [type_name_of(a) for a in typed_args])

    ordered = order_candidates(target, matching, typed_args, mode)
    if mode is SignatureType.MOST_SPECIFIC:
        chosen = ordered[0]
    elif mode is SignatureType.MOST_GENERIC:
        chosen = ordered[-1]
    else:
        chosen = matching[0]
    return Resolution(target, chosen, typed_args, is_passthrough(chosen, typed_args))


def invoke(resolution: Resolution) -> Any:
    """Invoke a resolved signature, wrapping every failure in InvocationFailedError."""
    target = resolution.target
    signature = resolution.signature
    if isinstance(target, ReferenceTypeDefinition) and target.is_abstract:
        cause: Exception = TypeError(f"{target.name} is abstract")
        raise InvocationFailedError(
            f"{target.name} seems to be an abstract type, which cannot be instantiated", signature, cause
        ) from cause
    if not signature.accessible:
        cause = PermissionError(f"{signature} is not accessible")
        raise InvocationFailedError(f"The found constructor {signature} is inaccessible", signature, cause) from cause
    if signature.invoker is None:
        cause = LookupError(f"{signature} has no implementation bound")
        raise InvocationFailedError(f"The found constructor {signature} has no implementation", signature, cause) from cause

    try:
        values = resolution.reshaped_arguments()
    except ConversionError as exc:
        raise InvocationFailedError(
            f"An argument cannot be converted to the parameters of {signature}", signature, exc
        ) from exc
    try:
        return signature.invoker(*values)
    except Exception as exc:
        raise InvocationFailedError(f"The found constructor {signature} threw an exception", signature, exc) from exc


def new_instance(
    target: TypeDefinition | None,
    *arguments: Any,
    provider: ConstructorProvider,
    mode: SignatureType = SignatureType.MOST_SPECIFIC,
) -> Any:
    """Resolve the constructor of ``target`` for ``arguments`` and invoke it."""
    return resolve(target, arguments, provider, mode).invoke()
