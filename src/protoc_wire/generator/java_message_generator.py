from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from protoc_wire.models import EnumType, MessageType, Option, SchemaFile, SchemaType
from protoc_wire.resolver import GenerationContext, NameResolver, UnresolvedSymbolError, prefix_with_package
from protoc_wire.scalars import (
    Datatype,
    WireLabel,
    initializer_for_type,
    is_scalar,
    scalar_type,
    wire_label,
)
from protoc_wire.symbols import ExtensionInfo, SymbolTable

CODE_GENERATED_BY_WIRE = "Code generated by Wire protocol buffer compiler, do not edit."


@dataclass
class FileHeader:
    """Everything emitted above the type body of a generated file."""

    source_file: str
    java_package: str
    imports: List[str] = field(default_factory=list)
    datatypes: List[Datatype] = field(default_factory=list)
    labels: List[WireLabel] = field(default_factory=list)


def get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def message_options(
    message: MessageType,
    schema_file: SchemaFile,
    symbols: SymbolTable,
) -> List[Tuple[Option, ExtensionInfo]]:
    """Custom message options with a renderable (scalar or enum) extension type."""
    result = []
    for option in message.custom_options:
        name = option.extension_name
        info = symbols.extension(name) or symbols.extension(prefix_with_package(schema_file, name))
        if info is None:
            raise UnresolvedSymbolError(name, message.name)
        if is_scalar(info.fq_type) or symbols.is_enum(info.fq_type):
            result.append((option, info))
    return result


def _option_entries(
    message: MessageType,
    schema_file: SchemaFile,
    symbols: SymbolTable,
    resolver: NameResolver,
    context: GenerationContext,
) -> List[Dict]:
    entries = []
    for option, info in message_options(message, schema_file, symbols):
        if is_scalar(info.fq_type):
            value = initializer_for_type(option.value, scalar_type(info.fq_type))
        else:
            enum_name = resolver.shorten(resolver.java_name(info.fq_type), context)
            value = f"{enum_name}.{option.value}"
        holder = info.fq_location if info.fq_location in context.blocked else info.location
        entries.append({
            "extension": f"{holder}.{option.extension_name.rsplit('.', 1)[-1]}",
            "value": value,
        })
    return entries


def _field_entries(
    message: MessageType,
    schema_file: SchemaFile,
    symbols: SymbolTable,
    resolver: NameResolver,
    context: GenerationContext,
) -> List[Dict]:
    entries = []
    for f in message.fields:
        scalar = scalar_type(f.type_name)
        fq_type = None
        if scalar is not None:
            base_type = scalar
            is_enum = False
            datatype = Datatype.of(f.type_name)
        else:
            fq_type = resolver.resolve(f.type_name, schema_file, message)
            base_type = resolver.shorten(resolver.java_name(fq_type), context)
            is_enum = symbols.is_enum(fq_type)
            datatype = Datatype.ENUM if is_enum else None

        label = wire_label(f, is_enum)
        annotation = [f"tag = {f.tag}"]
        if datatype is not None:
            annotation.append(f"type = {datatype.name}")
        if label != WireLabel.OPTIONAL:
            annotation.append(f"label = {label.name}")
        if f.is_deprecated:
            annotation.append("deprecated = true")

        default: Optional[str] = None
        if f.is_repeated:
            default = "Collections.emptyList()"
        elif scalar is not None:
            default = initializer_for_type(f.default, scalar)
        elif is_enum:
            default = f"{base_type}.{f.default or symbols.enum_default(fq_type)}"

        entries.append({
            "name": f.name,
            "java_type": f"List<{base_type}>" if f.is_repeated else base_type,
            "default_name": "DEFAULT_" + f.name.upper(),
            "default": default,
            "annotation": ", ".join(annotation),
            "deprecated": f.is_deprecated,
            "repeated": f.is_repeated,
            "required": label == WireLabel.REQUIRED,
        })
    return entries


def _hash_lines(fields: List[Dict], extendable: bool) -> List[str]:
    lines = []
    if extendable:
        lines.append("result = extensionsHashCode();")
    for f in fields:
        empty = "1" if f["repeated"] else "0"
        term = f"{f['name']} != null ? {f['name']}.hashCode() : {empty}"
        if lines:
            lines.append(f"result = result * 37 + ({term});")
        else:
            lines.append(f"result = {term};")
    return lines


def _render_enum(env: Environment, enum_type: EnumType) -> str:
    template = env.get_template("enum.java.j2")
    return template.render(name=enum_type.name, values=enum_type.values)


def _render_message(
    env: Environment,
    message: MessageType,
    schema_file: SchemaFile,
    symbols: SymbolTable,
    resolver: NameResolver,
    context: GenerationContext,
    should_emit: Callable[[str], bool],
    top_level: bool,
) -> str:
    template = env.get_template("message.java.j2")
    extendable = bool(message.extensions)
    fields = _field_entries(message, schema_file, symbols, resolver, context)
    nested_bodies = [
        render_type(env, nested, schema_file, symbols, resolver, context, should_emit, False)
        for nested in message.nested_types
        if should_emit(nested.fully_qualified_name)
    ]
    return template.render(
        name=message.name,
        top_level=top_level,
        extendable=extendable,
        options=_option_entries(message, schema_file, symbols, resolver, context),
        fields=fields,
        defaults=[f for f in fields if f["default"] is not None],
        equals_expr="\n        && ".join(
            f"equals({f['name']}, o.{f['name']})" for f in fields
        ),
        hash_lines=_hash_lines(fields, extendable),
        has_required=any(f["required"] for f in fields),
        nested_bodies=[body.rstrip("\n") for body in nested_bodies],
    )


def render_type(
    env: Environment,
    schema_type: SchemaType,
    schema_file: SchemaFile,
    symbols: SymbolTable,
    resolver: NameResolver,
    context: GenerationContext,
    should_emit: Callable[[str], bool],
    top_level: bool = True,
) -> str:
    """Render the class body of a type; context is the scope enclosing it."""
    if isinstance(schema_type, EnumType):
        return _render_enum(env, schema_type)
    return _render_message(
        env, schema_type, schema_file, symbols, resolver,
        context.nested(schema_type.name), should_emit, top_level,
    )


def generate_type(
    schema_type: SchemaType,
    schema_file: SchemaFile,
    header: FileHeader,
    symbols: SymbolTable,
    resolver: NameResolver,
    context: GenerationContext,
    should_emit: Callable[[str], bool],
) -> str:
    """Generate the Java source file for one top-level type."""
    env = get_template_env()
    body = render_type(env, schema_type, schema_file, symbols, resolver, context, should_emit)
    return env.get_template("message_file.java.j2").render(
        generated_comment=CODE_GENERATED_BY_WIRE,
        source_file=header.source_file,
        java_package=header.java_package,
        imports=header.imports,
        datatypes=[d.name for d in header.datatypes],
        labels=[label.name for label in header.labels],
        body=body.rstrip("\n"),
    )
