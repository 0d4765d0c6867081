"""AST node definitions for parsed schema files."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class Label(Enum):
    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"


@dataclass
class Option:
    """A single `name = value` option; custom option names keep their parentheses."""

    name: str
    value: str

    @property
    def is_custom(self) -> bool:
        return self.name.startswith("(")

    @property
    def extension_name(self) -> str:
        """The extension field named by a custom option: (foo.bar).baz -> foo.bar"""
        return self.name[1 : self.name.index(")")]


def find_option(options: List[Option], name: str) -> Optional[str]:
    for opt in options:
        if opt.name == name:
            return opt.value
    return None


@dataclass
class Field:
    """A field declaration: label type name = tag [options];"""

    label: Label
    type_name: str
    name: str
    tag: int
    options: List[Option] = field(default_factory=list)

    @property
    def is_repeated(self) -> bool:
        return self.label == Label.REPEATED

    @property
    def default(self) -> Optional[str]:
        return find_option(self.options, "default")

    @property
    def is_packed(self) -> bool:
        return find_option(self.options, "packed") == "true"

    @property
    def is_deprecated(self) -> bool:
        return find_option(self.options, "deprecated") == "true"


@dataclass
class ExtensionRange:
    start: int
    end: int


@dataclass
class EnumValue:
    name: str
    tag: int
    options: List[Option] = field(default_factory=list)


@dataclass
class EnumType:
    name: str
    fully_qualified_name: str
    values: List[EnumValue] = field(default_factory=list)
    options: List[Option] = field(default_factory=list)

    @property
    def nested_types(self) -> List[SchemaType]:
        return []


@dataclass
class MessageType:
    name: str
    fully_qualified_name: str
    fields: List[Field] = field(default_factory=list)
    nested_types: List[SchemaType] = field(default_factory=list)
    extensions: List[ExtensionRange] = field(default_factory=list)
    options: List[Option] = field(default_factory=list)

    @property
    def custom_options(self) -> List[Option]:
        return [opt for opt in self.options if opt.is_custom]


SchemaType = Union[MessageType, EnumType]


@dataclass
class ExtendDeclaration:
    """An `extend Target { fields }` block."""

    name: str
    fully_qualified_name: str
    fields: List[Field] = field(default_factory=list)


@dataclass
class SchemaFile:
    """Top-level parsed representation of a schema file."""

    file_name: str
    package_name: str = ""
    dependencies: List[str] = field(default_factory=list)
    types: List[SchemaType] = field(default_factory=list)
    extend_declarations: List[ExtendDeclaration] = field(default_factory=list)
    options: List[Option] = field(default_factory=list)

    @property
    def java_package(self) -> str:
        return find_option(self.options, "java_package") or self.package_name

    @property
    def stem(self) -> str:
        """File name without directories and the .proto suffix."""
        name = self.file_name.rsplit("/", 1)[-1]
        if name.endswith(".proto"):
            name = name[: -len(".proto")]
        return name


def walk_types(types: List[SchemaType], java_prefix: str = ""):
    """Yield (type, java_prefix) for every type and nested type, parents first.

    java_prefix is the dotted path of enclosing type names, ending in '.' when
    non-empty.
    """
    stack = [(t, java_prefix) for t in reversed(types)]
    while stack:
        schema_type, prefix = stack.pop()
        yield schema_type, prefix
        child_prefix = prefix + schema_type.name + "."
        for nested in reversed(schema_type.nested_types):
            stack.append((nested, child_prefix))
