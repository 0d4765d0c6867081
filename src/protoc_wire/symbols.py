"""Symbol table, field index and extension index construction."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Callable, Dict, FrozenSet, Mapping, Optional, Set

from protoc_wire.models import EnumType, Label, MessageType, SchemaFile, walk_types
from protoc_wire.resolver import GenerationContext, NameResolver, prefix_with_package
from protoc_wire.scalars import is_scalar

FIELD_KEY_SEPARATOR = "$"


def field_key(message_name: str, field_name: str) -> str:
    return message_name + FIELD_KEY_SEPARATOR + field_name


def holder_class_name(schema_file: SchemaFile) -> str:
    return "Ext_" + schema_file.stem


@dataclass(frozen=True)
class FieldInfo:
    type_name: str
    label: Label

    @property
    def is_repeated(self) -> bool:
        return self.label == Label.REPEATED


@dataclass(frozen=True)
class ExtensionInfo:
    """A resolved extension field.

    type_name is the scalar keyword, the fully-qualified enum name, or the
    message's Java class path without its package.
    """

    type_name: str
    fq_type: str
    location: str
    fq_location: str
    label: Label


@dataclass(frozen=True)
class SymbolTable:
    """Read-only view of everything learned while loading schema files."""

    java_symbols: Mapping[str, str]
    enum_types: FrozenSet[str]
    enum_defaults: Mapping[str, str]
    fields: Mapping[str, FieldInfo]
    extensions: Mapping[str, ExtensionInfo]

    def is_enum(self, fq_name: str) -> bool:
        return fq_name in self.enum_types

    def enum_default(self, fq_name: str) -> Optional[str]:
        return self.enum_defaults.get(fq_name)

    def field(self, message_name: str, field_name: str) -> Optional[FieldInfo]:
        return self.fields.get(field_key(message_name, field_name))

    def extension(self, fq_name: str) -> Optional[ExtensionInfo]:
        return self.extensions.get(fq_name)


class LoadPass(Enum):
    LOAD_TYPES = auto()
    LOAD_FIELDS = auto()


class SymbolLoader:
    """Populates the symbol table from schema files and their imports."""

    def __init__(self, proto_path: str, parse: Callable[[str], SchemaFile]):
        self._proto_path = proto_path
        self._parse = parse
        self._java_symbols: Dict[str, str] = {}
        self._enum_types: Set[str] = set()
        self._enum_defaults: Dict[str, str] = {}
        self._fields: Dict[str, FieldInfo] = {}
        self._extensions: Dict[str, ExtensionInfo] = {}
        self.loaded_files: Dict[str, SchemaFile] = {}
        self.resolver = NameResolver(self._java_symbols)

    def load(self, schema_file: SchemaFile) -> None:
        """Load schema_file and its transitive imports in two passes.

        Every type must be known before any field is resolved, because a field
        may name a type declared later or in an imported file.
        """
        self._load(schema_file, set(), LoadPass.LOAD_TYPES)
        self._load(schema_file, set(), LoadPass.LOAD_FIELDS)

    def snapshot(self) -> SymbolTable:
        return SymbolTable(
            java_symbols=MappingProxyType(dict(self._java_symbols)),
            enum_types=frozenset(self._enum_types),
            enum_defaults=MappingProxyType(dict(self._enum_defaults)),
            fields=MappingProxyType(dict(self._fields)),
            extensions=MappingProxyType(dict(self._extensions)),
        )

    def dependency_path(self, dependency: str) -> str:
        return os.path.join(self._proto_path, dependency)

    def _load(self, schema_file: SchemaFile, loaded: Set[str], load_pass: LoadPass) -> None:
        for dependency in schema_file.dependencies:
            if dependency in loaded:
                continue
            loaded.add(dependency)
            path = self.dependency_path(dependency)
            dependency_file = self._parse(path)
            self.loaded_files[path] = dependency_file
            self._load(dependency_file, loaded, load_pass)

        if load_pass == LoadPass.LOAD_TYPES:
            self._add_types(schema_file)
        else:
            self._add_fields(schema_file)
            self._add_extensions(schema_file)

    def _add_types(self, schema_file: SchemaFile) -> None:
        java_package = schema_file.java_package
        for schema_type, path in walk_types(schema_file.types):
            java_prefix = f"{java_package}.{path}" if java_package else path
            fq_name = schema_type.fully_qualified_name
            self._java_symbols[fq_name] = java_prefix + schema_type.name
            if isinstance(schema_type, EnumType):
                self._enum_types.add(fq_name)
                self._enum_defaults[fq_name] = schema_type.values[0].name

    def _add_fields(self, schema_file: SchemaFile) -> None:
        for schema_type, _ in walk_types(schema_file.types):
            if not isinstance(schema_type, MessageType):
                continue
            for field in schema_type.fields:
                if is_scalar(field.type_name):
                    type_name = field.type_name
                else:
                    type_name = self.resolver.resolve(field.type_name, schema_file, schema_type)
                key = field_key(schema_type.fully_qualified_name, field.name)
                self._fields[key] = FieldInfo(type_name, field.label)

    def _add_extensions(self, schema_file: SchemaFile) -> None:
        context = GenerationContext(schema_file.java_package)
        location = holder_class_name(schema_file)
        fq_location = prefix_with_package_name(schema_file.java_package, location)
        for extend in schema_file.extend_declarations:
            for field in extend.fields:
                fq_name = prefix_with_package(schema_file, field.name)
                if is_scalar(field.type_name):
                    type_name = fq_type = field.type_name
                else:
                    fq_type = self.resolver.resolve_extension_type(field.type_name, schema_file)
                    if fq_type in self._enum_types:
                        type_name = fq_type
                    else:
                        type_name = self.resolver.shorten(
                            self._java_symbols[fq_type], context
                        )
                self._extensions[fq_name] = ExtensionInfo(
                    type_name, fq_type, location, fq_location, field.label
                )


def prefix_with_package_name(java_package: str, name: str) -> str:
    return f"{java_package}.{name}" if java_package else name
