"""Parser for the type declaration DSL.

The DSL declares reference types, their supertypes and their constructors::

    abstract class Shape
    class Circle extends Shape {
        Circle(double)
        Circle(int, int)
        private Circle(String...)
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from typed_overloads.parsing.declaration_lexer import DeclarationLexer
from typed_overloads.provider import DeclaredConstructorProvider
from typed_overloads.signatures import ExecutableSignature, ParameterDescriptor
from typed_overloads.types import (
    ReferenceTypeDefinition,
    TypeDefinition,
    TypeRegistry,
    array_type,
)


@dataclass
class TypeRef:
    """Reference to a parameter type, possibly an array or variable-arity."""

    name: str
    dimensions: int = 0
    is_varargs: bool = False


@dataclass
class ConstructorDecl:
    """Parsed constructor declaration before resolution."""

    name: str
    parameters: list[TypeRef] = field(default_factory=list)
    private: bool = False


@dataclass
class ClassSpec:
    """Parsed class declaration before resolution."""

    name: str
    supertypes: list[str] = field(default_factory=list)
    is_abstract: bool = False
    constructors: list[ConstructorDecl] = field(default_factory=list)


class DeclarationParser:
    """Parser for the type declaration DSL."""

    tokens = DeclarationLexer.tokens

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self.lexer = DeclarationLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self._base_registry = registry
        self.provider = DeclaredConstructorProvider(registry)
        self._specs: list[ClassSpec] = []
        self._pending: dict[str, ReferenceTypeDefinition] = {}

    def p_declarations(self, p: yacc.YaccProduction) -> None:
        """declarations : declaration_list
                        | empty"""
        p[0] = p[1] or []

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_declaration_list_single(self, p: yacc.YaccProduction) -> None:
        """declaration_list : declaration"""
        p[0] = [p[1]]

    def p_declaration_list_multiple(self, p: yacc.YaccProduction) -> None:
        """declaration_list : declaration_list declaration"""
        p[0] = p[1]
        p[0].append(p[2])

    def p_declaration_bare(self, p: yacc.YaccProduction) -> None:
        """declaration : class_header
                       | class_header LBRACE RBRACE"""
        p[0] = p[1]

    def p_declaration_body(self, p: yacc.YaccProduction) -> None:
        """declaration : class_header LBRACE constructor_list RBRACE"""
        p[0] = p[1]
        p[0].constructors = p[3]

    def p_class_header(self, p: yacc.YaccProduction) -> None:
        """class_header : CLASS IDENTIFIER
                        | CLASS IDENTIFIER EXTENDS name_list"""
        p[0] = ClassSpec(name=p[2], supertypes=p[4] if len(p) > 3 else [])

    def p_class_header_abstract(self, p: yacc.YaccProduction) -> None:
        """class_header : ABSTRACT CLASS IDENTIFIER
                        | ABSTRACT CLASS IDENTIFIER EXTENDS name_list"""
        p[0] = ClassSpec(name=p[3], supertypes=p[5] if len(p) > 4 else [], is_abstract=True)

    def p_name_list_single(self, p: yacc.YaccProduction) -> None:
        """name_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_name_list_multiple(self, p: yacc.YaccProduction) -> None:
        """name_list : name_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_constructor_list_single(self, p: yacc.YaccProduction) -> None:
        """constructor_list : constructor"""
        p[0] = [p[1]]

    def p_constructor_list_multiple(self, p: yacc.YaccProduction) -> None:
        """constructor_list : constructor_list constructor"""
        p[0] = p[1] + [p[2]]

    def p_constructor(self, p: yacc.YaccProduction) -> None:
        """constructor : IDENTIFIER LPAREN parameter_list RPAREN
                       | IDENTIFIER LPAREN RPAREN"""
        p[0] = ConstructorDecl(name=p[1], parameters=p[3] if len(p) == 5 else [])

    def p_constructor_access(self, p: yacc.YaccProduction) -> None:
        """constructor : access IDENTIFIER LPAREN parameter_list RPAREN
                       | access IDENTIFIER LPAREN RPAREN"""
        p[0] = ConstructorDecl(
            name=p[2], parameters=p[4] if len(p) == 6 else [], private=p[1] == "private"
        )

    def p_access(self, p: yacc.YaccProduction) -> None:
        """access : PRIVATE
                  | PUBLIC"""
        p[0] = p[1]

    def p_parameter_list_single(self, p: yacc.YaccProduction) -> None:
        """parameter_list : type_ref"""
        p[0] = [p[1]]

    def p_parameter_list_multiple(self, p: yacc.YaccProduction) -> None:
        """parameter_list : parameter_list COMMA type_ref"""
        p[0] = p[1] + [p[3]]

    def p_type_ref(self, p: yacc.YaccProduction) -> None:
        """type_ref : array_ref"""
        p[0] = p[1]

    def p_type_ref_varargs(self, p: yacc.YaccProduction) -> None:
        """type_ref : array_ref ELLIPSIS"""
        p[0] = p[1]
        p[0].is_varargs = True

    def p_array_ref_simple(self, p: yacc.YaccProduction) -> None:
        """array_ref : IDENTIFIER"""
        p[0] = TypeRef(name=p[1])

    def p_array_ref_dimension(self, p: yacc.YaccProduction) -> None:
        """array_ref : array_ref LBRACKET RBRACKET"""
        p[0] = p[1]
        p[0].dimensions += 1

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> DeclaredConstructorProvider:
        """Parse declarations and return a provider holding the declared constructors.

        The provider's registry holds the built-in lattice plus every declared
        type.

        Raises:
            SyntaxError: If the text is not well-formed.
            ValueError: For duplicate or unknown types and inheritance cycles.
            MalformedRequestError: If a constructor declares a variable-arity
                parameter anywhere but last.
        """
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.provider = DeclaredConstructorProvider(self._base_registry)
        self.lexer.lexer.lineno = 1

        # Parse into declarations
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        if specs is None:
            specs = []
        self._specs = specs

        # Resolve declarations into types and signatures
        self._resolve_specs()

        return self.provider

    @property
    def registry(self) -> TypeRegistry:
        return self.provider.registry

    def _lookup(self, name: str, context: str) -> TypeDefinition:
        type_def = self._pending.get(name) or self.registry.get(name)
        if type_def is None:
            raise ValueError(f"{context} refers to unknown type '{name}'")
        return type_def

    def _resolve_type_ref(self, type_ref: TypeRef, context: str) -> ParameterDescriptor:
        """Resolve a type reference to a parameter descriptor."""
        resolved = array_type(self._lookup(type_ref.name, context), type_ref.dimensions)
        if type_ref.is_varargs:
            return ParameterDescriptor(array_type(resolved, 1), is_varargs=True)
        return ParameterDescriptor(resolved)

    def _check_acyclic(self, declared: list[ReferenceTypeDefinition]) -> None:
        """Reject inheritance cycles among the declared types."""
        done: set[int] = set()

        def visit(type_def: ReferenceTypeDefinition, path: list[str]) -> None:
            if id(type_def) in done:
                return
            if type_def.name in path:
                cycle = " -> ".join(path[path.index(type_def.name):] + [type_def.name])
                raise ValueError(f"Inheritance cycle: {cycle}")
            for parent in type_def.supertypes:
                visit(parent, path + [type_def.name])
            done.add(id(type_def))

        for type_def in declared:
            visit(type_def, [])

    def _resolve_specs(self) -> None:
        """Resolve all parsed declarations into types and signatures.

        Phase 1: Create a stub for every declared class so that declaration
        order does not matter.
        Phase 2: Link supertypes and check for cycles.
        Phase 3: Resolve constructor signatures.

        Nothing reaches the registry or the provider until every phase has
        succeeded.
        """
        # Phase 1: Create stubs
        self._pending = {}
        for spec in self._specs:
            if spec.name in self._pending or spec.name in self.registry:
                raise ValueError(f"Type '{spec.name}' is already defined")
            self._pending[spec.name] = ReferenceTypeDefinition(name=spec.name, is_abstract=spec.is_abstract)
        declared = list(self._pending.values())

        try:
            # Phase 2: Supertypes
            for spec, stub in zip(self._specs, declared):
                supertypes: list[ReferenceTypeDefinition] = []
                for name in spec.supertypes:
                    parent = self._lookup(name, f"Class '{spec.name}'")
                    if not isinstance(parent, ReferenceTypeDefinition):
                        raise ValueError(f"Class '{spec.name}' cannot extend non-class type '{name}'")
                    supertypes.append(parent)
                stub.supertypes = supertypes or [self.registry.root]
            self._check_acyclic(declared)

            # Phase 3: Constructors
            signatures: list[ExecutableSignature] = []
            for spec, stub in zip(self._specs, declared):
                for ctor in spec.constructors:
                    if ctor.name != spec.name:
                        raise ValueError(f"Constructor '{ctor.name}' declared in class '{spec.name}'")
                    context = f"Constructor of '{spec.name}'"
                    signature = ExecutableSignature(
                        declaring_type=stub,
                        parameters=tuple(self._resolve_type_ref(t, context) for t in ctor.parameters),
                        accessible=not ctor.private,
                    )
                    signature.validate()
                    signatures.append(signature)
        finally:
            self._pending = {}

        # Commit
        for stub in declared:
            self.registry.register(stub)
        for signature in signatures:
            self.provider.declare(signature)
