from __future__ import annotations

from pathlib import Path

from protoc_wire.models import SchemaFile

from .schema_ast_parser import ParseError, SchemaParser
from .schema_tokenizer import tokenize_schema


def parse_schema_text(text: str, file_name: str) -> SchemaFile:
    """Parse schema source text; file_name is recorded on the result."""
    return SchemaParser(tokenize_schema(text), file_name).parse()


def parse_schema_file(file_path: str) -> SchemaFile:
    """Parse a .proto file from disk."""
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(f"Cannot read {file_path}: {e.strerror}") from e
    except UnicodeDecodeError as e:
        raise ParseError(f"Cannot decode {file_path}: {e.reason} at byte {e.start}") from e
    try:
        return parse_schema_text(text, file_path)
    except ParseError as e:
        raise ParseError(f"{file_path}: {e}") from e
