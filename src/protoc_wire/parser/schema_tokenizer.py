"""Tokenizer for schema (.proto) files."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import List


class SchemaTokenType(Enum):
    # Keywords
    SYNTAX = auto()
    PACKAGE = auto()
    IMPORT = auto()
    OPTION = auto()
    MESSAGE = auto()
    ENUM = auto()
    EXTEND = auto()
    EXTENSIONS = auto()
    SERVICE = auto()
    ONEOF = auto()
    RESERVED = auto()
    OPTIONAL = auto()
    REQUIRED = auto()
    REPEATED = auto()

    # Delimiters
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LPAREN = auto()
    RPAREN = auto()
    LANGLE = auto()
    RANGLE = auto()
    SEMICOLON = auto()
    EQUALS = auto()
    COMMA = auto()
    COLON = auto()

    # Literals
    IDENT = auto()
    NUMBER = auto()
    STRING_LIT = auto()

    # Special
    EOF = auto()


_KEYWORDS = {
    "syntax": SchemaTokenType.SYNTAX,
    "package": SchemaTokenType.PACKAGE,
    "import": SchemaTokenType.IMPORT,
    "option": SchemaTokenType.OPTION,
    "message": SchemaTokenType.MESSAGE,
    "enum": SchemaTokenType.ENUM,
    "extend": SchemaTokenType.EXTEND,
    "extensions": SchemaTokenType.EXTENSIONS,
    "service": SchemaTokenType.SERVICE,
    "oneof": SchemaTokenType.ONEOF,
    "reserved": SchemaTokenType.RESERVED,
    "optional": SchemaTokenType.OPTIONAL,
    "required": SchemaTokenType.REQUIRED,
    "repeated": SchemaTokenType.REPEATED,
}

_PUNCTUATION = {
    "{": SchemaTokenType.LBRACE,
    "}": SchemaTokenType.RBRACE,
    "[": SchemaTokenType.LBRACKET,
    "]": SchemaTokenType.RBRACKET,
    "(": SchemaTokenType.LPAREN,
    ")": SchemaTokenType.RPAREN,
    "<": SchemaTokenType.LANGLE,
    ">": SchemaTokenType.RANGLE,
    ";": SchemaTokenType.SEMICOLON,
    "=": SchemaTokenType.EQUALS,
    ",": SchemaTokenType.COMMA,
    ":": SchemaTokenType.COLON,
}

_NUMBER_RE = re.compile(
    r"-?(?:0[xX][0-9a-fA-F]+|\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)"
)
_IDENT_RE = re.compile(r"\.?[A-Za-z_][\w]*(?:\.[A-Za-z_][\w]*)*")

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "a": "\a",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


@dataclass
class SchemaToken:
    type: SchemaTokenType
    value: str
    line: int
    col: int


class ParseError(Exception):
    """Raised when a schema cannot be read or contains unexpected input."""

    def __init__(self, message: str, token: SchemaToken | None = None):
        if token:
            super().__init__(f"Line {token.line}:{token.col}: {message}")
        else:
            super().__init__(message)


def _read_string(text: str, i: int, quote: str):
    """Read a quoted string starting after the opening quote.

    Returns (value, index after closing quote, newlines consumed).
    """
    chars: List[str] = []
    n = len(text)
    newlines = 0
    while i < n and text[i] != quote:
        ch = text[i]
        if ch == "\n":
            newlines += 1
        if ch == "\\" and i + 1 < n:
            nxt = text[i + 1]
            if nxt in _ESCAPES:
                chars.append(_ESCAPES[nxt])
                i += 2
                continue
            octal = re.match(r"[0-7]{1,3}", text[i + 1:])
            if octal:
                chars.append(chr(int(octal.group(0), 8)))
                i += 1 + len(octal.group(0))
                continue
            hexa = re.match(r"[xX]([0-9a-fA-F]{1,2})", text[i + 1:])
            if hexa:
                chars.append(chr(int(hexa.group(1), 16)))
                i += 1 + len(hexa.group(0))
                continue
        chars.append(ch)
        i += 1
    return "".join(chars), i + 1, newlines


def tokenize_schema(text: str) -> List[SchemaToken]:
    """Tokenize a schema source string into a list of tokens."""
    tokens: List[SchemaToken] = []
    i = 0
    line = 1
    col = 1
    n = len(text)

    while i < n:
        ch = text[i]

        # Whitespace
        if ch in (" ", "\t", "\r", "\f", "\v"):
            i += 1
            col += 1
            continue

        if ch == "\n":
            i += 1
            line += 1
            col = 1
            continue

        # Single-line comment
        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                i += 1
            continue

        # Multi-line comment
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            i += 2
            col += 2
            while i < n:
                if text[i] == "\n":
                    line += 1
                    col = 1
                elif text[i] == "*" and i + 1 < n and text[i + 1] == "/":
                    i += 2
                    col += 2
                    break
                else:
                    col += 1
                i += 1
            continue

        if ch in _PUNCTUATION:
            tokens.append(SchemaToken(_PUNCTUATION[ch], ch, line, col))
            i += 1
            col += 1
            continue

        # String literal
        if ch in ('"', "'"):
            value, end, newlines = _read_string(text, i + 1, ch)
            token = SchemaToken(SchemaTokenType.STRING_LIT, value, line, col)
            if end > n:
                raise ParseError("Unterminated string literal", token)
            tokens.append(token)
            col += end - i
            line += newlines
            i = end
            continue

        if ch == "-" and text.startswith("inf", i + 1):
            tokens.append(SchemaToken(SchemaTokenType.NUMBER, "-inf", line, col))
            i += 4
            col += 4
            continue

        # Number
        if ch.isdigit() or (ch in "-." and i + 1 < n and text[i + 1].isdigit()):
            match = _NUMBER_RE.match(text, i)
            if match:
                tokens.append(SchemaToken(SchemaTokenType.NUMBER, match.group(0), line, col))
                col += match.end() - i
                i = match.end()
                continue

        # Identifier / keyword (possibly dotted, possibly absolute)
        match = _IDENT_RE.match(text, i)
        if match:
            word = match.group(0)
            tok_type = _KEYWORDS.get(word, SchemaTokenType.IDENT)
            tokens.append(SchemaToken(tok_type, word, line, col))
            col += match.end() - i
            i = match.end()
            continue

        # Skip any other character
        i += 1
        col += 1

    tokens.append(SchemaToken(SchemaTokenType.EOF, "", line, col))
    return tokens
