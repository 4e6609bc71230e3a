"""Render messages back to protobuf text format."""

from __future__ import annotations

from dataclasses import dataclass

from pson.message import Field, Message, Value, ValueKind

STRING_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


@dataclass(frozen=True)
class TextFormat:
    """Settings for rendering messages in text format.

    compact omits vertical whitespace, curly groups with {} rather than <>,
    and indent is repeated once per nesting level (two spaces if empty).
    """

    compact: bool = False
    curly: bool = False
    indent: str = ""

    def text(self, msg: Message) -> str:
        out: list[str] = []
        self._message(out, msg, 0)
        return "".join(out)

    @property
    def _left(self) -> str:
        return "{" if self.curly else "<"

    @property
    def _right(self) -> str:
        return "}" if self.curly else ">"

    @property
    def _space(self) -> str:
        return "" if self.compact else " "

    @property
    def _break(self) -> str:
        return "" if self.compact else "\n"

    def _next(self, out: list[str], sep: bool) -> None:
        if sep:
            out.append(" " if self.compact else "\n")

    def _indent(self, level: int) -> str:
        if self.compact:
            return ""
        return (self.indent or "  ") * level

    def _message(self, out: list[str], msg: Message, level: int) -> None:
        for i, item in enumerate(msg):
            self._field(out, item, level, i < len(msg) - 1)

    def _field(self, out: list[str], item: Field, level: int, sep: bool) -> None:
        if not item.values:
            out.append(f"{self._indent(level)}{item.key}{self._space}{self._left}{self._right}")
            self._next(out, sep)
            return
        for i, value in enumerate(item.values):
            self._value(out, item.key, value, level, i < len(item.values) - 1)
        self._next(out, sep)

    def _value(self, out: list[str], key: str, value: Value, level: int, sep: bool) -> None:
        out.append(self._indent(level) + key)
        if not value.is_message:
            out.append(f":{self._space}{token_text(value)}")
        elif not value.msg:
            out.append(f" {self._left}{self._right}")
        else:
            out.append(f" {self._left}{self._break}")
            self._message(out, value.msg, level + 1)
            out.append(f"{self._break}{self._indent(level)}{self._right}")
        self._next(out, sep)


def token_text(value: Value) -> str:
    if value.kind is ValueKind.STRING:
        return '"' + "".join(STRING_ESCAPES.get(c, c) for c in value.text) + '"'
    if value.kind is ValueKind.TYPE_REF:
        return f"[{value.text}]"
    return value.text
