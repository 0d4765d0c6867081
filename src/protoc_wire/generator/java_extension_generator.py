from __future__ import annotations

from typing import Dict, List

from protoc_wire.generator.java_message_generator import CODE_GENERATED_BY_WIRE, get_template_env
from protoc_wire.models import ExtendDeclaration, SchemaFile
from protoc_wire.resolver import GenerationContext, NameResolver, prefix_with_package
from protoc_wire.scalars import scalar_type, wire_label
from protoc_wire.symbols import SymbolTable, holder_class_name


def _extension_entries(
    extend: ExtendDeclaration,
    schema_file: SchemaFile,
    symbols: SymbolTable,
    resolver: NameResolver,
    context: GenerationContext,
) -> List[Dict]:
    target_fq = resolver.resolve(extend.fully_qualified_name, schema_file)
    target = resolver.shorten(resolver.java_name(target_fq), context)

    entries = []
    for field in extend.fields:
        scalar = scalar_type(field.type_name)
        is_enum = False
        if scalar is not None:
            base_type = scalar
            builder_call = f"{field.type_name}Extending({target}.class)"
        else:
            fq_type = resolver.resolve_extension_type(field.type_name, schema_file)
            base_type = resolver.shorten(resolver.java_name(fq_type), context)
            is_enum = symbols.is_enum(fq_type)
            kind = "enum" if is_enum else "message"
            builder_call = f"{kind}Extending({base_type}.class, {target}.class)"

        entries.append({
            "name": field.name,
            "target": target,
            "java_type": f"List<{base_type}>" if field.is_repeated else base_type,
            "builder_call": builder_call,
            "fq_name": prefix_with_package(schema_file, field.name),
            "tag": field.tag,
            "label": wire_label(field, is_enum).value.capitalize(),
        })
    return entries


def generate_extension_class(
    schema_file: SchemaFile,
    source_file: str,
    imports: List[str],
    symbols: SymbolTable,
    resolver: NameResolver,
    context: GenerationContext,
) -> str:
    """Generate the Ext_<file> holder class for a file's extend declarations."""
    env = get_template_env()
    template = env.get_template("extension.java.j2")

    extensions: List[Dict] = []
    for extend in schema_file.extend_declarations:
        extensions.extend(_extension_entries(extend, schema_file, symbols, resolver, context))

    return template.render(
        generated_comment=CODE_GENERATED_BY_WIRE,
        source_file=source_file,
        java_package=schema_file.java_package,
        imports=imports,
        class_name=holder_class_name(schema_file),
        extensions=extensions,
    )
