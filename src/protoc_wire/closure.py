"""Expand a set of root types to everything they transitively depend on."""

from __future__ import annotations

from typing import FrozenSet, Iterable, Set

from protoc_wire.models import MessageType, SchemaFile, walk_types
from protoc_wire.qualified_name import QualifiedName
from protoc_wire.resolver import NameResolver
from protoc_wire.scalars import is_scalar
from protoc_wire.symbols import SymbolTable


def find_dependencies(
    schema_files: Iterable[SchemaFile],
    symbols: SymbolTable,
    roots: Iterable[str],
) -> FrozenSet[str]:
    """Return the smallest superset of roots closed under field and extension references.

    Iterates over all files until a pass adds nothing new.
    """
    files = list(schema_files)
    resolver = NameResolver(symbols.java_symbols)
    types_to_emit: Set[str] = set(roots)
    count = len(types_to_emit)
    while True:
        for schema_file in files:
            _add_extension_dependencies(schema_file, resolver, types_to_emit)
            _add_field_dependencies(schema_file, resolver, types_to_emit)
        if len(types_to_emit) == count:
            break
        count = len(types_to_emit)
    return frozenset(types_to_emit)


def _add_extension_dependencies(
    schema_file: SchemaFile, resolver: NameResolver, types_to_emit: Set[str]
) -> None:
    """Extended types and extension field types are always emitted."""
    for extend in schema_file.extend_declarations:
        target = resolver.resolve(extend.fully_qualified_name, schema_file)
        types_to_emit.add(target)
        add_dependency_branch(target, resolver, types_to_emit)
        for field in extend.fields:
            if is_scalar(field.type_name):
                continue
            fq_type = resolver.resolve_extension_type(field.type_name, schema_file)
            add_dependency_branch(fq_type, resolver, types_to_emit)


def _add_field_dependencies(
    schema_file: SchemaFile, resolver: NameResolver, types_to_emit: Set[str]
) -> None:
    """Add the field types of every message already marked for emission."""
    for schema_type, _ in walk_types(schema_file.types):
        if not isinstance(schema_type, MessageType):
            continue
        if schema_type.fully_qualified_name not in types_to_emit:
            continue
        for field in schema_type.fields:
            if is_scalar(field.type_name):
                continue
            fq_type = resolver.resolve(field.type_name, schema_file, schema_type)
            add_dependency_branch(fq_type, resolver, types_to_emit)


def add_dependency_branch(name: str, resolver: NameResolver, types_to_emit: Set[str]) -> None:
    """Add a type and every enclosing type; nested types are emitted inside their parents."""
    for scope in QualifiedName.parse(name).scopes():
        if not resolver.is_complete(str(scope)):
            break
        types_to_emit.add(str(scope))
