"""Name resolution between schema names, Java names and shortened references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Mapping, Optional, Tuple

from protoc_wire.models import MessageType, SchemaFile
from protoc_wire.qualified_name import QualifiedName, remove_trailing_segment


class UnresolvedSymbolError(Exception):
    """Raised when a type reference matches no declared type."""

    def __init__(self, type_name: str, message_name: Optional[str] = None):
        self.type_name = type_name
        self.message_name = message_name
        super().__init__(f"Unknown type {type_name} in message {message_name or '<unknown>'}")


@dataclass(frozen=True)
class GenerationContext:
    """Where a reference is being written.

    type_path holds the names of the types enclosing the reference, outermost
    first; blocked holds outer classes that must stay fully qualified.
    """

    java_package: str
    type_path: Tuple[str, ...] = ()
    blocked: FrozenSet[str] = frozenset()

    def nested(self, type_name: str) -> GenerationContext:
        return GenerationContext(self.java_package, self.type_path + (type_name,), self.blocked)

    @property
    def type_prefix(self) -> str:
        parts = [self.java_package] if self.java_package else []
        return ".".join(parts + list(self.type_path)) + "."


class NameResolver:
    """Resolves type tokens against a schema-name -> Java-name symbol map.

    The map may still be growing while symbols load; every lookup reads it live.
    """

    def __init__(self, java_symbols: Mapping[str, str]):
        self._java_symbols = java_symbols
        self._java_names: FrozenSet[str] = frozenset()
        self._cached_size = -1

    def is_complete(self, name: str) -> bool:
        return name in self._java_symbols

    def java_name(self, fq_name: str) -> Optional[str]:
        return self._java_symbols.get(fq_name)

    def is_java_symbol(self, java_name: str) -> bool:
        # The map only grows, so a size change means the cache is stale
        if self._cached_size != len(self._java_symbols):
            self._java_names = frozenset(self._java_symbols.values())
            self._cached_size = len(self._java_symbols)
        return java_name in self._java_names

    def resolve(
        self,
        type_name: str,
        schema_file: SchemaFile,
        message: Optional[MessageType] = None,
    ) -> str:
        """Return the fully-qualified schema name for type_name.

        Scopes are searched innermost first, from the enclosing message (or the
        file's package) outwards.
        """
        if self.is_complete(type_name):
            return type_name
        scope = QualifiedName.parse(
            message.fully_qualified_name if message is not None else schema_file.package_name
        )
        for prefix in scope.scopes():
            candidate = str(prefix.child(type_name))
            if self.is_complete(candidate):
                return candidate
        raise UnresolvedSymbolError(type_name, message.name if message is not None else None)

    def resolve_extension_type(self, type_name: str, schema_file: SchemaFile) -> str:
        """Resolve an extension field type: as written first, then package-prefixed."""
        try:
            return self.resolve(type_name, schema_file)
        except UnresolvedSymbolError:
            return self.resolve(prefix_with_package(schema_file, type_name), schema_file)

    def package_of(self, java_name: str) -> str:
        """Strip nested class segments until only the Java package is left."""
        while self.is_java_symbol(java_name):
            java_name = remove_trailing_segment(java_name)
        return java_name

    def outer_class(self, java_name: str) -> str:
        """The top-level class enclosing java_name (java_name itself when top-level)."""
        package = self.package_of(java_name)
        start = len(package) + 1 if package else 0
        first = java_name[start:].split(".", 1)[0]
        return f"{package}.{first}" if package else first

    def shorten(self, java_name: str, context: GenerationContext) -> str:
        """Shortest reference to java_name usable inside context."""
        if java_name.startswith(context.type_prefix):
            return java_name[len(context.type_prefix):]
        if self.is_java_symbol(java_name):
            if self.outer_class(java_name) in context.blocked:
                return java_name
            package = self.package_of(java_name)
            return java_name[len(package) + 1:] if package else java_name
        return java_name


def prefix_with_package(schema_file: SchemaFile, name: str) -> str:
    return f"{schema_file.package_name}.{name}" if schema_file.package_name else name
