"""
Reads the users block back into records.

The block is source code, not a data format, so this module understands a small
literal subset of it: an array of object literals whose values are strings, numbers
or `new Date(...)`. Anything else is rejected instead of being executed.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from support_function.dates import parse_date
from usergate.errors import ParseError
from usergate.records import UserRecord

log = logging.getLogger(__name__)

REQUIRED_FIELDS = ("username", "password", "expiresAt")

TOKEN_RE = re.compile(
    r"""
    (?P<skip>\s+|//[^\n]*|/\*.*?\*/)
    |(?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
    |(?P<number>-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<name>[A-Za-z_$][\w$]*)
    |(?P<punct>[\[\]{}(),:])
    """,
    re.VERBOSE | re.DOTALL,
)

ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)
SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


@dataclass
class Token:
    kind: str
    value: str
    pos: int


def _unescape(match: re.Match[str]) -> str:
    seq = match.group(1)
    if seq[0] in "ux" and len(seq) > 1:
        return chr(int(seq[1:], 16))
    return SIMPLE_ESCAPES.get(seq, seq)


def _unquote(literal: str) -> str:
    return ESCAPE_RE.sub(_unescape, literal[1:-1])


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        match = TOKEN_RE.match(text, pos)
        if not match:
            raise ParseError(f"Unexpected character {text[pos]!r} at offset {pos}")
        kind = match.lastgroup
        if kind != "skip":
            tokens.append(Token(kind=kind, value=match.group(), pos=pos))
        pos = match.end()
    return tokens


class _LiteralParser:
    def __init__(self, text: str) -> None:
        self.tokens = tokenize(text)
        self.index = 0

    def peek(self) -> Token | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def next(self) -> Token:
        token = self.peek()
        if token is None:
            raise ParseError("Unexpected end of users block")
        self.index += 1
        return token

    def expect(self, value: str) -> Token:
        token = self.next()
        if token.value != value:
            raise ParseError(f"Expected {value!r} at offset {token.pos}, got {token.value!r}")
        return token

    def at(self, value: str) -> bool:
        token = self.peek()
        return token is not None and token.value == value

    def parse(self) -> list[dict[str, Any]]:
        if not self.at("["):
            token = self.peek()
            found = token.value if token else "nothing"
            raise ParseError(f"Users block does not hold an array literal (found {found!r})")
        items = self.parse_array()
        if self.peek() is not None:
            token = self.peek()
            raise ParseError(f"Unexpected {token.value!r} after the array at offset {token.pos}")
        return items

    def parse_array(self) -> list[dict[str, Any]]:
        self.expect("[")
        items = []
        while not self.at("]"):
            if not self.at("{"):
                token = self.next()
                raise ParseError(f"Expected an object literal at offset {token.pos}, got {token.value!r}")
            items.append(self.parse_object())
            if not self.at("]"):
                self.expect(",")
        self.expect("]")
        return items

    def parse_object(self) -> dict[str, Any]:
        self.expect("{")
        obj: dict[str, Any] = {}
        while not self.at("}"):
            key_token = self.next()
            if key_token.kind == "name":
                key = key_token.value
            elif key_token.kind == "string":
                key = _unquote(key_token.value)
            else:
                raise ParseError(f"Invalid property name {key_token.value!r} at offset {key_token.pos}")
            self.expect(":")
            obj[key] = self.parse_value()
            if not self.at("}"):
                self.expect(",")
        self.expect("}")
        return obj

    def parse_value(self) -> Any:
        token = self.next()
        if token.kind == "string":
            return _unquote(token.value)
        if token.kind == "number":
            number = float(token.value)
            return int(number) if number.is_integer() and "." not in token.value else number
        if token.kind == "name" and token.value == "new":
            return self.parse_date_call()
        raise ParseError(f"Unsupported value {token.value!r} at offset {token.pos}")

    def parse_date_call(self) -> datetime | None:
        callee = self.next()
        if callee.value != "Date":
            raise ParseError(f"Only `new Date(...)` is supported, got `new {callee.value}` at offset {callee.pos}")
        self.expect("(")
        if self.at(")"):
            self.next()
            return datetime.now(timezone.utc)
        arg = self.next()
        if arg.kind not in ("string", "number"):
            raise ParseError(f"Unsupported Date argument {arg.value!r} at offset {arg.pos}")
        self.expect(")")
        value = _unquote(arg.value) if arg.kind == "string" else float(arg.value)
        return parse_date(value)


def array_expression(block_text: str) -> str:
    """The text after the first `=` with the trailing `;` removed."""
    if "=" not in block_text:
        raise ParseError("Users block has no '=' assignment")
    expr = block_text.split("=", 1)[1].strip()
    if expr.endswith(";"):
        expr = expr[:-1].rstrip()
    return expr


def parse_literal(expr: str) -> list[dict[str, Any]]:
    """Parses an array-of-objects literal into plain Python values."""
    return _LiteralParser(expr).parse()


def _text_field(item: dict[str, Any], name: str, index: int) -> str:
    value = item[name]
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    raise ParseError(f"Record #{index} has a non-text {name}: {value!r}")


def evaluate_block(block_text: str) -> list[UserRecord]:
    items = parse_literal(array_expression(block_text))

    records = []
    for i, item in enumerate(items):
        missing = [f for f in REQUIRED_FIELDS if f not in item]
        if missing:
            raise ParseError(f"Record #{i} is missing {', '.join(missing)}")
        try:
            records.append(
                UserRecord(
                    username=_text_field(item, "username", i),
                    password=_text_field(item, "password", i),
                    expires_at=item["expiresAt"],
                )
            )
        except PydanticValidationError as e:
            raise ParseError(f"Record #{i} is invalid: {e}") from e

    log.debug("Evaluated %d records from users block.", len(records))
    return records
