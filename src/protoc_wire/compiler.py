"""Generation orchestrator: load symbols, prune to roots, emit one class per type."""

from __future__ import annotations

import os
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from protoc_wire.closure import find_dependencies
from protoc_wire.generator.java_extension_generator import generate_extension_class
from protoc_wire.generator.java_message_generator import FileHeader, generate_type, message_options
from protoc_wire.generator.java_registry_generator import generate_registry, split_class_name
from protoc_wire.models import EnumType, MessageType, SchemaFile, SchemaType
from protoc_wire.qualified_name import trailing_segment
from protoc_wire.resolver import GenerationContext, NameResolver
from protoc_wire.scalars import Datatype, WireLabel, is_scalar, wire_label
from protoc_wire.source_io import SourceIO
from protoc_wire.symbols import SymbolLoader, SymbolTable, holder_class_name, prefix_with_package_name

MESSAGE = "com.squareup.wire.Message"
PROTO_FIELD = "com.squareup.wire.ProtoField"
BYTE_STRING = "com.squareup.wire.ByteString"
PROTO_ENUM = "com.squareup.wire.ProtoEnum"
EXTENDABLE_MESSAGE = "com.squareup.wire.ExtendableMessage"
EXTENSION = "com.squareup.wire.Extension"
MESSAGE_OPTIONS = "com.google.protobuf.MessageOptions"
COLLECTIONS = "java.util.Collections"
LIST = "java.util.List"


class WireCompiler:
    """Compiles schema files into Java sources.

    roots, when non-empty, limits output to those fully-qualified types and
    everything they depend on. registry_class, when set, names a class listing
    every extension holder generated.
    """

    def __init__(
        self,
        proto_path: str,
        source_file_names: Iterable[str],
        roots: Iterable[str],
        output_directory: str,
        registry_class: Optional[str] = None,
        io: Optional[SourceIO] = None,
    ):
        self.proto_path = proto_path
        self.source_file_names = list(source_file_names)
        self.roots = [root for root in roots if root]
        self.output_directory = output_directory
        self.registry_class = registry_class
        self.io = io or SourceIO()
        self.types_to_emit: FrozenSet[str] = frozenset()
        self.extension_classes: List[str] = []
        self.symbols: Optional[SymbolTable] = None
        self.resolver: Optional[NameResolver] = None

    def compile(self) -> List[str]:
        """Run every phase; returns the paths of all generated files."""
        loader = SymbolLoader(self.proto_path, self.io.parse)
        parsed_files: Dict[str, SchemaFile] = {}

        for source_file_name in self.source_file_names:
            source_path = os.path.join(self.proto_path, source_file_name)
            schema_file = self.io.parse(source_path)
            parsed_files[source_path] = schema_file
            loader.load(schema_file)

        self.symbols = loader.snapshot()
        self.resolver = NameResolver(self.symbols.java_symbols)

        if self.roots:
            print("Analyzing dependencies of root types.")
            loaded_files = {**loader.loaded_files, **parsed_files}
            self.types_to_emit = find_dependencies(
                loaded_files.values(), self.symbols, self.roots
            )

        generated: List[str] = []
        for source_path, schema_file in parsed_files.items():
            print(f"Compiling proto source file {source_path}")
            generated.extend(self._compile_one(source_path, schema_file))

        if self.registry_class is not None:
            generated.append(self._emit_registry())

        return generated

    def should_emit(self, fq_name: str) -> bool:
        return not self.types_to_emit or fq_name in self.types_to_emit

    # -- per file --

    def _compile_one(self, source_path: str, schema_file: SchemaFile) -> List[str]:
        generated: List[str] = []
        if schema_file.extend_declarations:
            generated.append(self._emit_extension_class(source_path, schema_file))

        for schema_type in schema_file.types:
            if self.should_emit(schema_type.fully_qualified_name):
                generated.append(self._emit_type(source_path, schema_file, schema_type))
        return generated

    def _emit_extension_class(self, source_path: str, schema_file: SchemaFile) -> str:
        java_package = schema_file.java_package
        class_name = holder_class_name(schema_file)
        fields = [f for extend in schema_file.extend_declarations for f in extend.fields]

        runtime: List[str] = []
        if any(f.type_name == "bytes" for f in fields):
            runtime.append(BYTE_STRING)
        runtime.append(EXTENSION)
        if any(f.is_repeated for f in fields):
            runtime.append(LIST)

        imports, blocked = self.plan_imports(
            runtime, self._extension_types(schema_file), java_package, []
        )
        context = GenerationContext(java_package, (), blocked)

        with self.io.open_java_writer(self.output_directory, java_package, class_name) as writer:
            writer.write(generate_extension_class(
                schema_file, source_path, imports, self.symbols, self.resolver, context
            ))

        extension_class = prefix_with_package_name(java_package, class_name)
        print(f"wrote extension class {extension_class}")
        self.extension_classes.append(extension_class)
        return str(writer.path)

    def _emit_type(self, source_path: str, schema_file: SchemaFile, schema_type: SchemaType) -> str:
        java_package = schema_file.java_package
        emitted = self.emitted_types(schema_type)
        messages = [t for t in emitted if isinstance(t, MessageType)]

        imports, blocked = self.plan_imports(
            self.runtime_imports(emitted, schema_file),
            self._external_types(messages, schema_file),
            java_package,
            emitted,
        )
        datatypes, labels = self.datatypes_and_labels(messages, schema_file)
        header = FileHeader(source_path, java_package, imports, datatypes, labels)
        context = GenerationContext(java_package, (), blocked)

        with self.io.open_java_writer(self.output_directory, java_package, schema_type.name) as writer:
            writer.write(generate_type(
                schema_type, schema_file, header, self.symbols, self.resolver,
                context, self.should_emit,
            ))
        return str(writer.path)

    def _emit_registry(self) -> str:
        java_package, class_name = split_class_name(self.registry_class)
        with self.io.open_java_writer(self.output_directory, java_package, class_name) as writer:
            writer.write(generate_registry(self.registry_class, self.extension_classes))
        return str(writer.path)

    # -- import and header decisions --

    def emitted_types(self, schema_type: SchemaType) -> List[SchemaType]:
        """schema_type plus every nested type that will be emitted inside it."""
        result: List[SchemaType] = []
        stack = [schema_type]
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(
                nested for nested in reversed(current.nested_types)
                if self.should_emit(nested.fully_qualified_name)
            )
        return result

    def runtime_imports(self, emitted: List[SchemaType], schema_file: SchemaFile) -> List[str]:
        messages = [t for t in emitted if isinstance(t, MessageType)]
        fields = [f for m in messages for f in m.fields]
        options = [info for m in messages for _, info in message_options(m, schema_file, self.symbols)]

        imports: List[str] = []
        if any(not m.extensions for m in messages):
            imports.append(MESSAGE)
        if fields:
            imports.append(PROTO_FIELD)
        if any(f.type_name == "bytes" for f in fields) or any(i.fq_type == "bytes" for i in options):
            imports.append(BYTE_STRING)
        if any(isinstance(t, EnumType) for t in emitted):
            imports.append(PROTO_ENUM)
        if any(f.is_repeated for f in fields):
            imports.extend([COLLECTIONS, LIST])
        if any(m.extensions for m in messages):
            imports.extend([EXTENDABLE_MESSAGE, EXTENSION])
        if options:
            imports.append(MESSAGE_OPTIONS)
        return imports

    def _outside_package(self, java_name: str, java_package: str) -> bool:
        return self.resolver.package_of(java_name) != java_package

    def _external_types(self, messages: List[MessageType], schema_file: SchemaFile) -> List[str]:
        """Outer classes from other Java packages referenced by these messages."""
        java_package = schema_file.java_package
        external: List[str] = []
        for message in messages:
            for field in message.fields:
                if is_scalar(field.type_name):
                    continue
                fq_type = self.resolver.resolve(field.type_name, schema_file, message)
                java_name = self.resolver.java_name(fq_type)
                if self._outside_package(java_name, java_package):
                    external.append(self.resolver.outer_class(java_name))
            for _, info in message_options(message, schema_file, self.symbols):
                if split_class_name(info.fq_location)[0] != java_package:
                    external.append(info.fq_location)
                if self.symbols.is_enum(info.fq_type):
                    java_name = self.resolver.java_name(info.fq_type)
                    if self._outside_package(java_name, java_package):
                        external.append(self.resolver.outer_class(java_name))
        return external

    def _extension_types(self, schema_file: SchemaFile) -> List[str]:
        java_package = schema_file.java_package
        external: List[str] = []
        for extend in schema_file.extend_declarations:
            names = [self.resolver.resolve(extend.fully_qualified_name, schema_file)]
            names.extend(
                self.resolver.resolve_extension_type(f.type_name, schema_file)
                for f in extend.fields
                if not is_scalar(f.type_name)
            )
            for fq_name in names:
                java_name = self.resolver.java_name(fq_name)
                if self._outside_package(java_name, java_package):
                    external.append(self.resolver.outer_class(java_name))
        return external

    def plan_imports(
        self,
        runtime: List[str],
        external: List[str],
        java_package: str,
        emitted: List[SchemaType],
    ) -> Tuple[List[str], FrozenSet[str]]:
        """Sorted import list plus the external classes that must stay fully qualified.

        An external class is left unimported when its simple name is already
        taken by a runtime import, a top-level type of this package, a type
        emitted in this file, or an earlier external class.
        """
        taken: Dict[str, str] = {trailing_segment(name): name for name in runtime}
        for schema_type in emitted:
            taken.setdefault(schema_type.name, self.resolver.java_name(schema_type.fully_qualified_name))
        for java_name in self.symbols.java_symbols.values():
            if self.resolver.outer_class(java_name) == java_name and not self._outside_package(java_name, java_package):
                taken.setdefault(trailing_segment(java_name), java_name)

        imports = list(runtime)
        blocked = set()
        for name in dict.fromkeys(external):
            simple = trailing_segment(name)
            owner = taken.get(simple)
            if owner is not None and owner != name:
                blocked.add(name)
                continue
            taken[simple] = name
            if name not in imports:
                imports.append(name)
        return sorted(imports), frozenset(blocked)

    def datatypes_and_labels(
        self, messages: List[MessageType], schema_file: SchemaFile
    ) -> Tuple[List[Datatype], List[WireLabel]]:
        """Wire datatypes and labels used by these messages' fields, sorted by name.

        OPTIONAL is left out since it is the default label.
        """
        datatypes = set()
        labels = set()
        for message in messages:
            for field in message.fields:
                datatype = Datatype.of(field.type_name)
                is_enum = False
                if datatype is None:
                    fq_type = self.resolver.resolve(field.type_name, schema_file, message)
                    is_enum = self.symbols.is_enum(fq_type)
                    if is_enum:
                        datatype = Datatype.ENUM
                if datatype is not None:
                    datatypes.add(datatype)
                labels.add(wire_label(field, is_enum))
        labels.discard(WireLabel.OPTIONAL)
        return (
            sorted(datatypes, key=lambda d: d.name),
            sorted(labels, key=lambda label: label.name),
        )
