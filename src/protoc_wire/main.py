from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from protoc_wire.compiler import WireCompiler
from protoc_wire.parser.schema_ast_parser import ParseError
from protoc_wire.resolver import UnresolvedSymbolError
from protoc_wire.scalars import UnsupportedScalarError


def _read_file_list(list_path: str) -> List[str]:
    """Read a newline-delimited list of schema files, ignoring blank lines."""
    lines = Path(list_path).read_text(encoding="utf-8").split("\n")
    return [line.strip() for line in lines if line.strip()]


def run(
    proto_path: str,
    source_files: List[str],
    roots: List[str],
    java_out: str,
    registry_class: Optional[str] = None,
) -> List[str]:
    """Compile the given schema files; exits the process on a fatal error."""
    compiler = WireCompiler(proto_path, source_files, roots, java_out, registry_class)
    try:
        generated = compiler.compile()
    except (ParseError, UnresolvedSymbolError, UnsupportedScalarError) as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Generated {len(generated)} file(s)")
    return generated


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Protocol buffer to Java compiler for the Wire runtime",
    )
    parser.add_argument(
        "--proto-path",
        help="Root directory that schema files and their imports are relative to",
    )
    parser.add_argument(
        "--java-out",
        required=True,
        help="Directory to write generated Java sources into",
    )
    parser.add_argument(
        "--files",
        help="File containing a newline-separated list of schema files to compile",
    )
    parser.add_argument(
        "--roots",
        help="Comma-separated fully-qualified type names; only they and their dependencies are emitted",
    )
    parser.add_argument(
        "--registry-class",
        help="Fully-qualified name of a class listing every generated extension class",
    )
    parser.add_argument("sources", nargs="*", help="Schema files to compile")

    args = parser.parse_args(argv)

    proto_path = args.proto_path
    if proto_path is None:
        proto_path = os.getcwd()
        print(f"--proto-path flag not specified, using current dir {proto_path}", file=sys.stderr)

    source_files: List[str] = []
    if args.files:
        source_files.extend(_read_file_list(args.files))
    source_files.extend(args.sources)

    roots = args.roots.split(",") if args.roots else []
    run(proto_path, source_files, roots, args.java_out, args.registry_class)
