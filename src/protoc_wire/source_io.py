"""Reading schema files and writing generated Java sources."""

from __future__ import annotations

import os
from pathlib import Path

from protoc_wire.models import SchemaFile
from protoc_wire.parser.schema_parser import parse_schema_file


class JavaSourceWriter:
    """One generated .java file, open until close() is called."""

    def __init__(self, path: Path):
        path.parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        self._file = open(path, "w", encoding="utf-8")

    def write(self, source: str) -> None:
        self._file.write(source)

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    @property
    def closed(self) -> bool:
        return self._file.closed

    def __enter__(self) -> JavaSourceWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SourceIO:
    """File-system access used by the compiler; tests may substitute their own."""

    def parse(self, path: str) -> SchemaFile:
        return parse_schema_file(path)

    def open_java_writer(
        self, output_dir: str, java_package: str, class_name: str
    ) -> JavaSourceWriter:
        directory = os.path.join(output_dir, *java_package.split(".")) if java_package else output_dir
        return JavaSourceWriter(Path(directory) / f"{class_name}.java")
