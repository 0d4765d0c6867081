from protoc_wire.closure import add_dependency_branch, find_dependencies
from protoc_wire.parser.schema_parser import parse_schema_file, parse_schema_text
from protoc_wire.resolver import NameResolver
from protoc_wire.symbols import SymbolLoader


def _closure(text: str, roots, file_name="main.proto"):
    schema = parse_schema_text(text, file_name)
    loader = SymbolLoader("", parse_schema_file)
    loader.load(schema)
    return find_dependencies([schema], loader.snapshot(), roots)


NESTED_DEPENDENCY = """\
package p;
message Foo {
  optional Other.Nested n = 1;
}
message Other {
  message Nested {
    optional Leaf leaf = 1;
  }
  optional int32 unused = 1;
}
message Leaf {}
message Unrelated {
  optional Foo foo = 1;
}
"""


class TestFieldClosure:
    def test_nested_dependency_adds_enclosing_type(self):
        result = _closure(NESTED_DEPENDENCY, ["p.Foo"])
        assert "p.Other.Nested" in result
        assert "p.Other" in result

    def test_transitive_dependencies(self):
        result = _closure(NESTED_DEPENDENCY, ["p.Foo"])
        assert result == {"p.Foo", "p.Other", "p.Other.Nested", "p.Leaf"}

    def test_unreferenced_types_are_left_out(self):
        result = _closure(NESTED_DEPENDENCY, ["p.Leaf"])
        assert result == {"p.Leaf"}

    def test_roots_are_always_kept(self):
        result = _closure(NESTED_DEPENDENCY, ["p.Unrelated", "p.Missing"])
        assert {"p.Unrelated", "p.Missing", "p.Foo"} <= result

    def test_closure_is_a_fixed_point(self):
        first = _closure(NESTED_DEPENDENCY, ["p.Foo"])
        assert _closure(NESTED_DEPENDENCY, sorted(first)) == first


EXTENSIONS = """\
package p;
enum Color { RED = 1; }
message Base { extensions 100 to 200; }
message Payload { optional Leaf leaf = 1; }
message Leaf {}
message Unrelated {}
extend Base {
  optional Color color = 100;
  optional Payload payload = 101;
}
"""


NESTED_EXTENSION = """\
package p;
message Root {}
message Outer {
  message Inner { extensions 100 to 200; }
  message Payload {}
}
message Unrelated {}
extend Outer.Inner {
  optional int32 count = 100;
  optional Outer.Payload payload = 101;
}
"""


class TestExtensionClosure:
    def test_extension_targets_and_types_are_included(self):
        result = _closure(EXTENSIONS, ["p.Unrelated"])
        assert result == {"p.Unrelated", "p.Base", "p.Color", "p.Payload", "p.Leaf"}

    def test_relative_nested_target_and_type_are_resolved(self):
        result = _closure(NESTED_EXTENSION, ["p.Root"])
        assert result == {"p.Root", "p.Outer", "p.Outer.Inner", "p.Outer.Payload"}


class TestDependencyBranch:
    def test_adds_every_known_enclosing_scope(self):
        resolver = NameResolver({"p.A": "p.A", "p.A.B": "p.A.B", "p.A.B.C": "p.A.B.C"})
        types = set()
        add_dependency_branch("p.A.B.C", resolver, types)
        assert types == {"p.A.B.C", "p.A.B", "p.A"}

    def test_stops_at_first_unknown_scope(self):
        resolver = NameResolver({"p.A": "p.A"})
        types = set()
        add_dependency_branch("p.A.B", resolver, types)
        assert types == set()
