"""Parsing module for the type declaration DSL."""

from typed_overloads.parsing.declaration_parser import DeclarationParser

__all__ = [
    "DeclarationParser",
]
