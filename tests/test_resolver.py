import pytest

from protoc_wire.models import SchemaFile
from protoc_wire.parser.schema_parser import parse_schema_text
from protoc_wire.qualified_name import QualifiedName
from protoc_wire.resolver import GenerationContext, NameResolver, UnresolvedSymbolError

SYMBOLS = {
    "p.Outer": "com.example.Outer",
    "p.Outer.Inner": "com.example.Outer.Inner",
    "p.Outer.Inner.Leaf": "com.example.Outer.Inner.Leaf",
    "p.Inner": "com.example.Inner",
    "p.Color": "com.example.Color",
    "q.Remote": "org.remote.Remote",
    "q.Remote.Part": "org.remote.Remote.Part",
}


def _message(schema: SchemaFile, fq_name: str):
    for t in schema.types:
        if t.fully_qualified_name == fq_name:
            return t
        for nested in t.nested_types:
            if nested.fully_qualified_name == fq_name:
                return nested
    raise KeyError(fq_name)


@pytest.fixture
def schema():
    return parse_schema_text(
        "package p;\nmessage Outer { message Inner { message Leaf {} } }\nmessage Inner {}\n",
        "p.proto",
    )


@pytest.fixture
def resolver():
    return NameResolver(SYMBOLS)


class TestResolve:
    def test_complete_names_resolve_to_themselves(self, resolver, schema):
        assert resolver.resolve("q.Remote", schema) == "q.Remote"

    def test_inner_scope_shadows_outer(self, resolver, schema):
        outer = _message(schema, "p.Outer")
        assert resolver.resolve("Inner", schema, outer) == "p.Outer.Inner"

    def test_package_scope(self, resolver, schema):
        assert resolver.resolve("Inner", schema) == "p.Inner"

    def test_partially_qualified_name(self, resolver, schema):
        inner = _message(schema, "p.Outer.Inner")
        assert resolver.resolve("Inner.Leaf", schema, inner) == "p.Outer.Inner.Leaf"

    def test_unknown_type(self, resolver, schema):
        outer = _message(schema, "p.Outer")
        with pytest.raises(UnresolvedSymbolError) as exc:
            resolver.resolve("Nope", schema, outer)
        assert exc.value.type_name == "Nope"
        assert str(exc.value) == "Unknown type Nope in message Outer"

    def test_extension_types_try_package_prefix(self, resolver, schema):
        assert resolver.resolve_extension_type("q.Remote", schema) == "q.Remote"
        assert resolver.resolve_extension_type("Color", schema) == "p.Color"

    def test_sees_symbols_added_later(self, schema):
        symbols = {}
        resolver = NameResolver(symbols)
        assert not resolver.is_java_symbol("com.example.Inner")
        symbols["p.Inner"] = "com.example.Inner"
        assert resolver.resolve("Inner", schema) == "p.Inner"
        assert resolver.is_java_symbol("com.example.Inner")


class TestJavaNames:
    def test_package_of(self, resolver):
        assert resolver.package_of("com.example.Outer.Inner.Leaf") == "com.example"
        assert resolver.package_of("org.remote.Remote") == "org.remote"

    def test_outer_class(self, resolver):
        assert resolver.outer_class("com.example.Outer.Inner.Leaf") == "com.example.Outer"
        assert resolver.outer_class("org.remote.Remote") == "org.remote.Remote"


class TestShorten:
    def test_enclosing_type_prefix_is_stripped(self, resolver):
        context = GenerationContext("com.example", ("Outer",))
        assert resolver.shorten("com.example.Outer.Inner.Leaf", context) == "Inner.Leaf"

    def test_same_package_symbol(self, resolver):
        context = GenerationContext("com.example", ("Inner",))
        assert resolver.shorten("com.example.Outer.Inner", context) == "Outer.Inner"

    def test_other_package_symbol(self, resolver):
        context = GenerationContext("com.example", ("Outer",))
        assert resolver.shorten("org.remote.Remote.Part", context) == "Remote.Part"

    def test_blocked_outer_class_stays_qualified(self, resolver):
        context = GenerationContext("com.example", ("Outer",), frozenset({"org.remote.Remote"}))
        assert resolver.shorten("org.remote.Remote.Part", context) == "org.remote.Remote.Part"

    def test_unknown_names_unchanged(self, resolver):
        context = GenerationContext("com.example")
        assert resolver.shorten("java.util.List", context) == "java.util.List"

    def test_shortened_name_is_suffix_of_package_relative_name(self, resolver):
        for java_name in SYMBOLS.values():
            package = resolver.package_of(java_name)
            for type_path in [(), ("Outer",), ("Outer", "Inner"), ("Remote",)]:
                short = resolver.shorten(java_name, GenerationContext("com.example", type_path))
                assert java_name[len(package) + 1:].endswith(short)


class TestQualifiedName:
    def test_scopes_are_innermost_first(self):
        scopes = [str(s) for s in QualifiedName.parse("a.b.c").scopes()]
        assert scopes == ["a.b.c", "a.b", "a"]

    def test_empty_name_has_no_scopes(self):
        assert list(QualifiedName.parse("").scopes()) == []
