"""Recursive-descent parser for text-format protobuf messages.

The parser knows nothing about the schema of the message. It builds a generic
tree of fields and values from the lexical structure of the input alone:

    message   := (field separator?)*
    field     := (NAME | TYPENAME) (":" value | group)
    group     := "<" message ">" | "{" message "}"
    value     := NAME | TRUE | FALSE | STRING+ | NUMBER | TYPENAME | group
    separator := "," | ";"
"""

from __future__ import annotations

import io
import logging
from typing import TextIO

from pson.errors import ParseError
from pson.message import Field, Message, Value, ValueKind
from pson.scanner import Scanner, Token

log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100

CLOSERS = {Token.LEFT_ANGLE: Token.RIGHT_ANGLE, Token.LEFT_CURLY: Token.RIGHT_CURLY}

VALUE_KINDS = {
    Token.NAME: ValueKind.NAME,
    Token.TRUE: ValueKind.BOOL,
    Token.FALSE: ValueKind.BOOL,
    Token.STRING: ValueKind.STRING,
    Token.NUMBER: ValueKind.NUMBER,
    Token.TYPE_NAME: ValueKind.TYPE_REF,
}


class Parser:
    """Parser state: the scanner, its current token, and the nesting depth."""

    def __init__(self, scanner: Scanner, max_depth: int = DEFAULT_MAX_DEPTH):
        self._scanner = scanner
        self._max_depth = max_depth
        self._depth = 0

    @property
    def token(self) -> Token:
        return self._scanner.token

    def parse(self) -> Message | None:
        if not self._scanner.next():
            return None
        msg = self._parse_message(Token.NONE)
        log.debug("Parsed %d top-level fields (%d lines)", len(msg), self._scanner.line)
        return msg

    def _next(self) -> bool:
        return self._scanner.next()

    def _fail(self, message: str) -> ParseError:
        return ParseError(self._scanner.line, message)

    def _found(self) -> str:
        if self.token is Token.NONE:
            return "end of input"
        return str(self.token)

    def _parse_message(self, until: Token) -> Message:
        msg = Message()
        while True:
            key = self.token
            if key is until:
                return msg
            if key is not Token.NAME and key is not Token.TYPE_NAME:
                if until is not Token.NONE:
                    raise self._fail(f"found {self._found()}, wanted name, type or {until}")
                raise self._fail(f"found {self._found()}, wanted name or type")
            name = self._scanner.text

            if not self._next():
                raise self._fail(f"found end of input, wanted {Token.COLON} or message")
            if self.token in CLOSERS:
                item = self._parse_message_field(name, CLOSERS[self.token])
            elif self.token is Token.COLON:
                item = self._parse_value_or_message(name)
            else:
                raise self._fail(f"found {self._found()}, wanted {Token.COLON} or message")

            if key is Token.TYPE_NAME:
                if not item.values[0].is_message:
                    raise self._fail(f"type name {name!r} requires a message value")
                item.type_name = True
            msg.append(item)

            if self.token in (Token.COMMA, Token.SEMI):
                self._next()

    def _parse_message_field(self, name: str, until: Token) -> Field:
        if self._depth >= self._max_depth:
            raise self._fail(f"message nesting exceeds {self._max_depth} levels")
        if not self._next():
            raise self._fail(f"found end of input, wanted field or {until}")

        self._depth += 1
        msg = self._parse_message(until)
        self._depth -= 1

        if self.token is not until:
            raise self._fail(f"found {self._found()}, wanted {until}")
        self._next()
        return Field(name, [Value.message(msg)])

    def _parse_value_or_message(self, name: str) -> Field:
        if not self._next():
            raise self._fail(f"found end of input, wanted value or message for {name!r}")
        tok = self.token
        if tok in CLOSERS:
            return self._parse_message_field(name, CLOSERS[tok])
        if not tok.is_value:
            raise self._fail(f"unexpected {tok}, wanted a value")

        text = self._scanner.text
        # Consecutive string literals are concatenated.
        while self._next():
            if tok is Token.STRING and self.token is Token.STRING:
                text += self._scanner.text
                continue
            break
        return Field(name, [Value(VALUE_KINDS[tok], text)])


def parse(stream: TextIO, max_depth: int = DEFAULT_MAX_DEPTH) -> Message | None:
    """Parse one text-format message from stream.

    Returns None when the input holds no tokens at all.
    """
    return Parser(Scanner(stream), max_depth=max_depth).parse()


def parse_string(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Message | None:
    return parse(io.StringIO(text), max_depth=max_depth)


def parse_bytes(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> Message | None:
    return parse_string(data.decode("utf-8"), max_depth=max_depth)
