"""Scalar type catalog: schema primitives, wire datatypes and Java defaults."""

from __future__ import annotations

import base64
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from protoc_wire.models import Field, Label

# Schema scalar type -> Java boxed type
SCALAR_TYPE_MAP: Dict[str, str] = {
    "bool": "Boolean",
    "bytes": "ByteString",
    "double": "Double",
    "float": "Float",
    "fixed32": "Integer",
    "fixed64": "Long",
    "int32": "Integer",
    "int64": "Long",
    "sfixed32": "Integer",
    "sfixed64": "Long",
    "sint32": "Integer",
    "sint64": "Long",
    "string": "String",
    "uint32": "Integer",
    "uint64": "Long",
}

# Length-delimited scalars can never use the packed encoding.
_UNPACKABLE = {"string", "bytes"}


class UnsupportedScalarError(ValueError):
    """Raised when a default value is requested for an unknown Java scalar type."""


class Datatype(Enum):
    BOOL = "bool"
    BYTES = "bytes"
    DOUBLE = "double"
    ENUM = "enum"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    MESSAGE = "message"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    STRING = "string"
    UINT32 = "uint32"
    UINT64 = "uint64"

    @classmethod
    def of(cls, type_name: str) -> Optional[Datatype]:
        """Datatype for a scalar keyword, None for message and enum references."""
        if type_name not in SCALAR_TYPE_MAP:
            return None
        return cls(type_name)


class WireLabel(Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"
    PACKED = "packed"


def is_scalar(type_name: str) -> bool:
    return type_name in SCALAR_TYPE_MAP


def scalar_type(type_name: str) -> Optional[str]:
    return SCALAR_TYPE_MAP.get(type_name)


def is_packable(type_name: str) -> bool:
    return is_scalar(type_name) and type_name not in _UNPACKABLE


def is_packed(field: Field, is_enum: bool) -> bool:
    return field.is_packed and (is_enum or is_packable(field.type_name))


def wire_label(field: Field, is_enum: bool) -> WireLabel:
    if field.label == Label.REPEATED:
        return WireLabel.PACKED if is_packed(field, is_enum) else WireLabel.REPEATED
    if field.label == Label.REQUIRED:
        return WireLabel.REQUIRED
    return WireLabel.OPTIONAL


def _to_int(value: str, bits: int) -> int:
    number = int(value, 16) if value.lower().startswith(("0x", "-0x")) else int(Decimal(value))
    # Wrap unsigned values into the signed Java range
    number &= (1 << bits) - 1
    if number >= 1 << (bits - 1):
        number -= 1 << bits
    return number


def java_string_literal(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\t", "\\t")
        .replace("\b", "\\b")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\f", "\\f")
    )
    return f'"{escaped}"'


def initializer_for_type(initial_value: Optional[str], java_type: str) -> str:
    """Render the Java initializer for a scalar default value."""
    if java_type == "Boolean":
        return "false" if initial_value is None else initial_value
    if java_type == "Integer":
        return "0" if initial_value is None else str(_to_int(initial_value, 32))
    if java_type == "Long":
        return "0L" if initial_value is None else f"{_to_int(initial_value, 64)}L"
    if java_type == "Float":
        return "0F" if initial_value is None else f"{initial_value}F"
    if java_type == "Double":
        return "0D" if initial_value is None else f"{initial_value}D"
    if java_type == "String":
        return java_string_literal(initial_value or "")
    if java_type == "ByteString":
        if initial_value is None:
            return "ByteString.EMPTY"
        encoded = base64.b64encode(initial_value.encode("latin-1")).decode("ascii")
        return f'ByteString.of("{encoded}")'
    raise UnsupportedScalarError(f"{java_type} is not an allowed scalar type")
