"""Lexical conversion of a parsed message to JSON.

The conversion knows nothing about the original schema:

- a field with exactly one value maps to that value, any other count to a list;
- names, enumerators and strings become JSON strings;
- type names become strings in brackets, e.g. "[foo.Bar]";
- booleans stay booleans, and numbers become JSON numbers.
"""

from __future__ import annotations

import json

from pson.message import Message


def render_json(msg: Message, indent: str = "", prefix: str = "") -> str:
    value = msg.to_value()
    if not indent and not prefix:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    text = json.dumps(value, indent=indent, ensure_ascii=False)
    first, *rest = text.split("\n")
    return "\n".join([first] + [prefix + line for line in rest])
