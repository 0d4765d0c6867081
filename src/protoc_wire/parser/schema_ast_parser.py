"""Recursive descent parser for schema (.proto) files.

Consumes a token stream from schema_tokenizer and produces the SchemaFile model.
"""

from __future__ import annotations

from typing import List, Optional

from protoc_wire.models import (
    EnumType,
    EnumValue,
    ExtendDeclaration,
    ExtensionRange,
    Field,
    Label,
    MessageType,
    Option,
    SchemaFile,
    SchemaType,
    walk_types,
)

from .schema_tokenizer import ParseError, SchemaToken, SchemaTokenType

# Highest legal field tag, used for `extensions N to max`.
MAX_TAG = (1 << 29) - 1

_LABELS = {
    SchemaTokenType.OPTIONAL: Label.OPTIONAL,
    SchemaTokenType.REQUIRED: Label.REQUIRED,
    SchemaTokenType.REPEATED: Label.REPEATED,
}

_KEYWORD_TYPES = {
    SchemaTokenType.SYNTAX,
    SchemaTokenType.PACKAGE,
    SchemaTokenType.IMPORT,
    SchemaTokenType.OPTION,
    SchemaTokenType.MESSAGE,
    SchemaTokenType.ENUM,
    SchemaTokenType.EXTEND,
    SchemaTokenType.EXTENSIONS,
    SchemaTokenType.SERVICE,
    SchemaTokenType.ONEOF,
    SchemaTokenType.RESERVED,
    SchemaTokenType.OPTIONAL,
    SchemaTokenType.REQUIRED,
    SchemaTokenType.REPEATED,
}


class SchemaParser:
    """Recursive descent parser for .proto files."""

    def __init__(self, tokens: List[SchemaToken], file_name: str):
        self._tokens = tokens
        self._pos = 0
        self._file_name = file_name

    # -- public API --

    def parse(self) -> SchemaFile:
        """Parse the full token stream into a SchemaFile."""
        schema = SchemaFile(file_name=self._file_name)

        while not self._at_end():
            tt = self._peek().type

            if tt == SchemaTokenType.PACKAGE:
                self._advance()
                schema.package_name = self._expect(SchemaTokenType.IDENT).value.lstrip(".")
                self._expect(SchemaTokenType.SEMICOLON)
            elif tt == SchemaTokenType.IMPORT:
                schema.dependencies.append(self._parse_import())
            elif tt == SchemaTokenType.OPTION:
                schema.options.append(self._parse_option_statement())
            elif tt == SchemaTokenType.MESSAGE:
                schema.types.append(self._parse_message(schema))
            elif tt == SchemaTokenType.ENUM:
                schema.types.append(self._parse_enum())
            elif tt == SchemaTokenType.EXTEND:
                schema.extend_declarations.append(self._parse_extend())
            elif tt == SchemaTokenType.SYNTAX:
                self._skip_statement()
            elif tt == SchemaTokenType.SERVICE:
                self._skip_block()
            elif tt == SchemaTokenType.SEMICOLON:
                self._advance()
            else:
                tok = self._peek()
                raise ParseError(f"Unexpected {tok.type.name} ({tok.value!r})", tok)

        _qualify(schema)
        return schema

    # -- declarations --

    def _parse_import(self) -> str:
        """Parse: IMPORT ["public" | "weak"] STRING_LIT SEMICOLON"""
        self._expect(SchemaTokenType.IMPORT)
        if self._peek().type == SchemaTokenType.IDENT and self._peek().value in ("public", "weak"):
            self._advance()
        path = self._expect(SchemaTokenType.STRING_LIT).value
        self._expect(SchemaTokenType.SEMICOLON)
        return path

    def _parse_message(self, schema: SchemaFile) -> MessageType:
        """Parse: MESSAGE IDENT LBRACE body RBRACE"""
        self._expect(SchemaTokenType.MESSAGE)
        name_tok = self._expect(SchemaTokenType.IDENT)
        message = MessageType(name=name_tok.value, fully_qualified_name="")
        self._expect(SchemaTokenType.LBRACE)

        while not self._at_end() and self._peek().type != SchemaTokenType.RBRACE:
            tt = self._peek().type

            if tt == SchemaTokenType.MESSAGE:
                message.nested_types.append(self._parse_message(schema))
            elif tt == SchemaTokenType.ENUM:
                message.nested_types.append(self._parse_enum())
            elif tt == SchemaTokenType.EXTEND:
                schema.extend_declarations.append(self._parse_extend())
            elif tt == SchemaTokenType.EXTENSIONS:
                message.extensions.extend(self._parse_extension_ranges())
            elif tt == SchemaTokenType.OPTION:
                message.options.append(self._parse_option_statement())
            elif tt == SchemaTokenType.ONEOF:
                message.fields.extend(self._parse_oneof())
            elif tt == SchemaTokenType.RESERVED:
                self._skip_statement()
            elif tt == SchemaTokenType.SEMICOLON:
                self._advance()
            elif tt in _LABELS or tt == SchemaTokenType.IDENT:
                message.fields.append(self._parse_field())
            else:
                tok = self._peek()
                raise ParseError(
                    f"Unexpected {tok.type.name} ({tok.value!r}) in message {message.name}", tok
                )

        self._expect(SchemaTokenType.RBRACE)
        return message

    def _parse_enum(self) -> EnumType:
        """Parse: ENUM IDENT LBRACE (IDENT EQUALS NUMBER [options] SEMICOLON)* RBRACE"""
        self._expect(SchemaTokenType.ENUM)
        name_tok = self._expect(SchemaTokenType.IDENT)
        enum_type = EnumType(name=name_tok.value, fully_qualified_name="")
        self._expect(SchemaTokenType.LBRACE)

        while not self._at_end() and self._peek().type != SchemaTokenType.RBRACE:
            tt = self._peek().type
            if tt == SchemaTokenType.OPTION:
                enum_type.options.append(self._parse_option_statement())
            elif tt == SchemaTokenType.RESERVED:
                self._skip_statement()
            elif tt == SchemaTokenType.SEMICOLON:
                self._advance()
            else:
                value_name = self._expect_name().value
                self._expect(SchemaTokenType.EQUALS)
                tag = _parse_int(self._expect(SchemaTokenType.NUMBER))
                options = self._parse_field_options()
                self._expect(SchemaTokenType.SEMICOLON)
                enum_type.values.append(EnumValue(name=value_name, tag=tag, options=options))

        self._expect(SchemaTokenType.RBRACE)
        if not enum_type.values:
            raise ParseError(f"Enum {enum_type.name} declares no values", name_tok)
        return enum_type

    def _parse_extend(self) -> ExtendDeclaration:
        """Parse: EXTEND IDENT LBRACE field* RBRACE"""
        self._expect(SchemaTokenType.EXTEND)
        target = self._expect(SchemaTokenType.IDENT).value
        extend = ExtendDeclaration(name=target, fully_qualified_name="")
        self._expect(SchemaTokenType.LBRACE)
        while not self._at_end() and self._peek().type != SchemaTokenType.RBRACE:
            if self._peek().type == SchemaTokenType.SEMICOLON:
                self._advance()
                continue
            extend.fields.append(self._parse_field())
        self._expect(SchemaTokenType.RBRACE)
        return extend

    def _parse_oneof(self) -> List[Field]:
        """Parse: ONEOF IDENT LBRACE field* RBRACE; members become optional fields."""
        self._expect(SchemaTokenType.ONEOF)
        self._expect_name()
        self._expect(SchemaTokenType.LBRACE)
        fields: List[Field] = []
        while not self._at_end() and self._peek().type != SchemaTokenType.RBRACE:
            tt = self._peek().type
            if tt == SchemaTokenType.OPTION:
                self._skip_statement()
            elif tt == SchemaTokenType.SEMICOLON:
                self._advance()
            else:
                fields.append(self._parse_field())
        self._expect(SchemaTokenType.RBRACE)
        return fields

    def _parse_extension_ranges(self) -> List[ExtensionRange]:
        """Parse: EXTENSIONS NUMBER [to (NUMBER | max)] (, ...)* SEMICOLON"""
        self._expect(SchemaTokenType.EXTENSIONS)
        ranges: List[ExtensionRange] = []
        while True:
            start = _parse_int(self._expect(SchemaTokenType.NUMBER))
            end = start
            if self._peek().type == SchemaTokenType.IDENT and self._peek().value == "to":
                self._advance()
                end_tok = self._advance()
                if end_tok.type == SchemaTokenType.IDENT and end_tok.value == "max":
                    end = MAX_TAG
                elif end_tok.type == SchemaTokenType.NUMBER:
                    end = _parse_int(end_tok)
                else:
                    raise ParseError(f"Expected range end, got {end_tok.value!r}", end_tok)
            ranges.append(ExtensionRange(start=start, end=end))
            if self._peek().type != SchemaTokenType.COMMA:
                break
            self._advance()
        self._parse_field_options()
        self._expect(SchemaTokenType.SEMICOLON)
        return ranges

    # -- fields and options --

    def _parse_field(self) -> Field:
        """Parse: [LABEL] IDENT(type) IDENT(name) EQUALS NUMBER [options] SEMICOLON"""
        label = Label.OPTIONAL
        if self._peek().type in _LABELS:
            label = _LABELS[self._advance().type]

        type_tok = self._expect(SchemaTokenType.IDENT)
        if type_tok.value == "map" and self._peek().type == SchemaTokenType.LANGLE:
            raise ParseError("map fields are not supported", type_tok)
        if type_tok.value == "group":
            raise ParseError("group fields are not supported", type_tok)

        name_tok = self._expect_name()
        self._expect(SchemaTokenType.EQUALS)
        tag = _parse_int(self._expect(SchemaTokenType.NUMBER))
        options = self._parse_field_options()
        self._expect(SchemaTokenType.SEMICOLON)

        return Field(
            label=label,
            type_name=type_tok.value.lstrip("."),
            name=name_tok.value,
            tag=tag,
            options=options,
        )

    def _parse_field_options(self) -> List[Option]:
        """Parse an optional `[name = value, ...]` list."""
        options: List[Option] = []
        if self._peek().type != SchemaTokenType.LBRACKET:
            return options
        self._advance()
        while True:
            options.append(self._parse_option())
            if self._peek().type != SchemaTokenType.COMMA:
                break
            self._advance()
        self._expect(SchemaTokenType.RBRACKET)
        return options

    def _parse_option_statement(self) -> Option:
        """Parse: OPTION name EQUALS value SEMICOLON"""
        self._expect(SchemaTokenType.OPTION)
        option = self._parse_option()
        self._expect(SchemaTokenType.SEMICOLON)
        return option

    def _parse_option(self) -> Option:
        """Parse: (IDENT | LPAREN IDENT RPAREN [.IDENT]) EQUALS value"""
        if self._peek().type == SchemaTokenType.LPAREN:
            self._advance()
            inner = self._expect(SchemaTokenType.IDENT).value.lstrip(".")
            self._expect(SchemaTokenType.RPAREN)
            name = f"({inner})"
            if self._peek().type == SchemaTokenType.IDENT and self._peek().value.startswith("."):
                name += self._advance().value
        else:
            name = self._expect_name().value
        self._expect(SchemaTokenType.EQUALS)
        return Option(name=name, value=self._parse_option_value())

    def _parse_option_value(self) -> str:
        tok = self._peek()
        if tok.type in (SchemaTokenType.STRING_LIT, SchemaTokenType.NUMBER, SchemaTokenType.IDENT):
            self._advance()
            value = tok.value
            # Adjacent string literals concatenate
            while tok.type == SchemaTokenType.STRING_LIT and self._peek().type == SchemaTokenType.STRING_LIT:
                value += self._advance().value
            return value
        if tok.type == SchemaTokenType.LBRACE:
            return self._read_aggregate()
        raise ParseError(f"Expected option value, got {tok.type.name} ({tok.value!r})", tok)

    def _read_aggregate(self) -> str:
        """Consume a braced aggregate value and return its raw token text."""
        parts: List[str] = []
        depth = 0
        while not self._at_end():
            tok = self._advance()
            if tok.type == SchemaTokenType.LBRACE:
                depth += 1
            elif tok.type == SchemaTokenType.RBRACE:
                depth -= 1
            parts.append(tok.value)
            if depth == 0:
                break
        return " ".join(parts)

    # -- skip helpers --

    def _skip_statement(self) -> None:
        """Skip tokens until (and including) the next semicolon."""
        while not self._at_end():
            tok = self._advance()
            if tok.type == SchemaTokenType.SEMICOLON:
                return

    def _skip_block(self) -> None:
        """Skip a keyword + IDENT + braced block (e.g. service)."""
        self._advance()  # keyword
        while not self._at_end() and self._peek().type != SchemaTokenType.LBRACE:
            self._advance()
        if not self._at_end():
            self._advance()  # consume LBRACE
        depth = 1
        while not self._at_end() and depth > 0:
            tok = self._advance()
            if tok.type == SchemaTokenType.LBRACE:
                depth += 1
            elif tok.type == SchemaTokenType.RBRACE:
                depth -= 1

    # -- token helpers --

    def _peek(self) -> SchemaToken:
        return self._tokens[self._pos]

    def _advance(self) -> SchemaToken:
        tok = self._tokens[self._pos]
        if tok.type != SchemaTokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, expected: SchemaTokenType) -> SchemaToken:
        tok = self._peek()
        if tok.type != expected:
            raise ParseError(
                f"Expected {expected.name}, got {tok.type.name} ({tok.value!r})",
                tok,
            )
        return self._advance()

    def _expect_name(self) -> SchemaToken:
        """Expect an identifier; keywords are legal field and value names."""
        tok = self._peek()
        if tok.type != SchemaTokenType.IDENT and tok.type not in _KEYWORD_TYPES:
            raise ParseError(f"Expected name, got {tok.type.name} ({tok.value!r})", tok)
        return self._advance()

    def _at_end(self) -> bool:
        return self._tokens[self._pos].type == SchemaTokenType.EOF


def _parse_int(tok: SchemaToken) -> int:
    digits = tok.value.lstrip("-")
    try:
        if len(digits) > 1 and digits.startswith("0") and digits.isdigit():
            return int(tok.value, 8)
        return int(tok.value, 0)
    except ValueError:
        raise ParseError(f"Expected integer, got {tok.value!r}", tok) from None


def _qualify(schema: SchemaFile) -> None:
    """Fill in fully-qualified names once the package is known."""
    prefix = schema.package_name + "." if schema.package_name else ""
    for schema_type, path in walk_types(schema.types):
        schema_type.fully_qualified_name = prefix + path + schema_type.name
    for extend in schema.extend_declarations:
        target = extend.name.lstrip(".")
        extend.fully_qualified_name = target if "." in target else prefix + target
