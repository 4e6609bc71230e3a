"""Lexical scanner for text-format protobuf messages."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, TextIO

from pson.errors import ScanError

WHITESPACE = " \t\r\n"

# Delimiters for a name-like token.
NAME_DELIMITERS = WHITESPACE + "<>{}:'\",;"

NUMBER_RE = re.compile(r"-?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?[fF]?")
NAME_RE = re.compile(r"[_a-z][_a-z0-9]*", re.IGNORECASE)

ESCAPES = {"r": "\r", "n": "\n", "t": "\t", "\\": "\\"}


class Token(Enum):
    NONE = "<none>"
    NAME = "NAME"
    TRUE = "true"
    FALSE = "false"
    TYPE_NAME = "TYPE"
    COLON = '":"'
    STRING = "STRING"
    NUMBER = "NUMBER"
    LEFT_ANGLE = '"<"'
    RIGHT_ANGLE = '">"'
    LEFT_CURLY = '"{"'
    RIGHT_CURLY = '"}"'
    COMMA = '","'
    SEMI = '";"'

    def __str__(self) -> str:
        return self.value

    @property
    def is_value(self) -> bool:
        return self in VALUE_TOKENS


VALUE_TOKENS = frozenset(
    {Token.NAME, Token.TRUE, Token.FALSE, Token.TYPE_NAME, Token.STRING, Token.NUMBER}
)

SELF_TOKENS = {
    ":": Token.COLON,
    "<": Token.LEFT_ANGLE,
    ">": Token.RIGHT_ANGLE,
    "{": Token.LEFT_CURLY,
    "}": Token.RIGHT_CURLY,
    ",": Token.COMMA,
    ";": Token.SEMI,
}


@dataclass(frozen=True)
class Lexeme:
    token: Token
    text: str
    pos: int
    end: int
    line: int


class Scanner:
    """Returns tokens from a text-format protobuf message, one per next() call.

    next() reports False once the input is exhausted. A lexical error raises
    ScanError, and every later call raises the same error again.
    """

    def __init__(self, stream: TextIO):
        self._stream = stream
        self._pushback = ""
        self._error: ScanError | None = None
        self._line = 0  # 0-based
        self._offset = 0  # UTF-8 bytes consumed
        self.token = Token.NONE
        self.text = ""
        self.pos = 0
        self.end = 0

    @classmethod
    def from_string(cls, text: str) -> Scanner:
        return cls(io.StringIO(text))

    @classmethod
    def from_bytes(cls, data: bytes) -> Scanner:
        return cls(io.StringIO(data.decode("utf-8")))

    @property
    def line(self) -> int:
        """The 1-based line number of the current token."""
        return self._line + 1

    def lexeme(self) -> Lexeme:
        return Lexeme(self.token, self.text, self.pos, self.end, self.line)

    def __iter__(self) -> Iterator[Lexeme]:
        while self.next():
            yield self.lexeme()

    def next(self) -> bool:
        if self._error is not None:
            raise self._error
        self.token = Token.NONE
        self.text = ""

        c = self._skip_space()
        if not c:
            self.pos = self.end = self._offset
            return False
        self.pos = self._offset - _width(c)

        if c in "\"'":
            text = self._quoted_string(c)
            return self._ok(Token.STRING, text)
        if c == "[":
            return self._ok(Token.TYPE_NAME, self._type_name())
        if c in SELF_TOKENS:
            return self._ok(SELF_TOKENS[c], c)
        return self._name_like(c)

    def _ok(self, token: Token, text: str) -> bool:
        self.token = token
        self.text = text
        self.end = self._offset
        return True

    def _fail(self, message: str) -> ScanError:
        self._error = ScanError(self.line, message)
        return self._error

    def _read(self) -> str:
        if self._pushback:
            c, self._pushback = self._pushback, ""
        else:
            c = self._stream.read(1)
        self._offset += _width(c)
        return c

    def _unread(self, c: str) -> None:
        self._pushback = c
        self._offset -= _width(c)

    def _skip_space(self) -> str:
        while True:
            c = self._read()
            if not c:
                return ""
            if c == "\n":
                self._line += 1
            elif c == "#":
                while c != "\n":
                    c = self._read()
                    if not c:
                        return ""
                self._line += 1
            elif c not in WHITESPACE:
                return c

    def _name_like(self, first: str) -> bool:
        chars = [first]
        while True:
            c = self._read()
            if not c:
                break
            if c in NAME_DELIMITERS:
                self._unread(c)
                break
            chars.append(c)

        text = "".join(chars)
        if text == "true":
            return self._ok(Token.TRUE, text)
        if text == "false":
            return self._ok(Token.FALSE, text)
        if NUMBER_RE.fullmatch(text):
            return self._ok(Token.NUMBER, text)
        if NAME_RE.fullmatch(text):
            return self._ok(Token.NAME, text)
        raise self._fail(f"invalid token {text!r}")

    def _type_name(self) -> str:
        chars = []
        while True:
            c = self._read()
            if not c:
                raise self._fail("missing ']' in type name")
            if c == "]":
                return "".join(chars)
            if c in NAME_DELIMITERS:
                raise self._fail(f"unexpected {c!r} in type name")
            chars.append(c)

    def _quoted_string(self, quote: str) -> str:
        chars = []
        escaped = False
        while True:
            c = self._read()
            if not c:
                raise self._fail(f"missing {quote!r} in string")
            if c in "\r\n":
                raise self._fail(f"unexpected {c!r} in string")
            if escaped:
                escaped = False
                if c in ESCAPES:
                    chars.append(ESCAPES[c])
                    continue
                if c != quote:
                    chars.append("\\")
            elif c == "\\":
                escaped = True
                continue
            elif c == quote:
                return "".join(chars)
            chars.append(c)


def _width(c: str) -> int:
    if not c or c < "\x80":
        return len(c)
    return len(c.encode("utf-8", "surrogatepass"))
