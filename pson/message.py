"""Generic field tree for schema-less text-format protobuf messages."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from pson.errors import ValueCoercionError

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

DECIMAL_RE = re.compile(r"[-+]?\d+")
PREFIXED_INT_RE = re.compile(r"([-+]?)(0[xX][0-9a-fA-F_]+|0[oO][0-7_]+|0[bB][01_]+|0[0-7_]*|[1-9][0-9_]*)")


class ValueKind(Enum):
    NAME = "name"
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    TYPE_REF = "type_ref"
    MESSAGE = "message"


@dataclass(frozen=True, eq=True, unsafe_hash=False)
class Value:
    """One value of a field: a nested message or a scalar literal.

    Scalars keep the literal text exactly as written (string escapes folded).
    Message values carry an empty text and a Message that may itself be empty.
    Values cannot be reassigned, but a message value shares its mutable
    Message and so is not hashable.
    """

    kind: ValueKind
    text: str = ""
    msg: Message | None = None

    @classmethod
    def message(cls, msg: Message) -> Value:
        return cls(ValueKind.MESSAGE, "", msg)

    @property
    def is_message(self) -> bool:
        return self.kind is ValueKind.MESSAGE

    def as_int(self) -> int:
        """Return the value as a decimal integer."""
        if self.is_message or not DECIMAL_RE.fullmatch(self.text):
            raise ValueCoercionError(f"invalid integer value {self.text!r}")
        return int(self.text)

    def as_fixed(self) -> int:
        """Return the value as a signed 64-bit integer, honoring 0x/0o/0b prefixes."""
        match = None if self.is_message else PREFIXED_INT_RE.fullmatch(self.text)
        if match is None:
            raise ValueCoercionError(f"invalid fixed-point value {self.text!r}")
        sign, body = match.groups()
        prefix = body[:2].lower()
        try:
            if prefix in ("0x", "0o", "0b"):
                value = int(body, 0)
            elif len(body) > 1 and body[0] == "0":
                value = int(body[1:].replace("_", "") or "0", 8)
            else:
                value = int(body)
        except ValueError:
            raise ValueCoercionError(f"invalid fixed-point value {self.text!r}") from None
        if sign == "-":
            value = -value
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueCoercionError(f"fixed-point value {self.text!r} out of range")
        return value

    def as_float(self) -> float:
        """Return the value as a float; a trailing f/F suffix is ignored."""
        text = self.text.lower()
        if text.endswith("f") and not text.endswith("inf"):
            text = text[:-1]
        try:
            if self.is_message:
                raise ValueError
            return float(text)
        except ValueError:
            raise ValueCoercionError(f"invalid float value {self.text!r}") from None

    def as_bool(self) -> bool:
        if self.text == "true" and not self.is_message:
            return True
        if self.text == "false" and not self.is_message:
            return False
        raise ValueCoercionError(f"invalid bool value {self.text!r}")

    def to_value(self) -> Any:
        """Convert to a native value: dict, str, bool, int or float."""
        if self.is_message:
            return self.msg.to_value()
        if self.kind in (ValueKind.NAME, ValueKind.STRING):
            return self.text
        if self.kind is ValueKind.TYPE_REF:
            return f"[{self.text}]"
        if self.kind is ValueKind.BOOL:
            return self.as_bool()
        try:
            return self.as_fixed()
        except ValueCoercionError:
            pass
        try:
            value = self.as_float()
        except ValueCoercionError:
            raise ValueCoercionError(f"inconvertible number: {self.text!r}") from None
        if not math.isfinite(value):
            raise ValueCoercionError(f"number out of range: {self.text!r}")
        return value


@dataclass
class Field:
    name: str
    values: list[Value] = field(default_factory=list)
    type_name: bool = False

    @property
    def key(self) -> str:
        """The field name as written in text format; type names keep their brackets."""
        return f"[{self.name}]" if self.type_name else self.name

    def __str__(self) -> str:
        return f"#<field name={self.key!r} values={self.values!r}>"


@dataclass
class Message:
    """An ordered collection of named fields."""

    fields: list[Field] = field(default_factory=list)

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, index: int) -> Field:
        return self.fields[index]

    def append(self, item: Field) -> None:
        self.fields.append(item)

    def get(self, name: str) -> Field | None:
        """Return the first field whose name (or bracketed key) is name."""
        for item in self.fields:
            if item.name == name or item.key == name:
                return item
        return None

    def lookup(self, path: str) -> Value | None:
        """Follow a dotted path of field names, taking the first value at each step."""
        current: Message | None = self
        value = None
        for name in path.split("."):
            if current is None:
                return None
            item = current.get(name)
            if item is None or not item.values:
                return None
            value = item.values[0]
            current = value.msg
        return value

    def to_value(self) -> dict[str, Any]:
        """Convert to a dict keyed by field name.

        A field with exactly one value maps to that value; any other count maps
        to a list. Repeated occurrences of a name are gathered in order.
        """
        grouped: dict[str, list[Value]] = {}
        for item in self.fields:
            grouped.setdefault(item.key, []).extend(item.values)
        out: dict[str, Any] = {}
        for key, values in grouped.items():
            if len(values) == 1:
                out[key] = values[0].to_value()
            else:
                out[key] = [value.to_value() for value in values]
        return out


def snake_to_camel(name: str) -> str:
    """Convert a name in snake_case to camelCase."""
    words: list[str] = []
    for word in name.split("_"):
        if not word:
            continue
        if not words:
            words.append(word.lower())
        else:
            words.append(word.lower().capitalize())
    return "".join(words)


def to_camel(msg: Message) -> None:
    """Rename every field of msg in place, recursively, to camelCase.

    Extension and Any type-name keys are left as written.
    """
    for item in msg:
        if not item.type_name:
            item.name = snake_to_camel(item.name)
        for value in item.values:
            if value.is_message:
                to_camel(value.msg)
