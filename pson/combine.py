"""Combine repeated fields, and split multi-valued messages into single-valued ones."""

from __future__ import annotations

import copy

from pson.message import Field, Message, Value
from pson.product import product_indices


def combine(msg: Message) -> Message:
    """Return a copy of msg in which each field name occurs exactly once.

    Each combined field carries every value originally assigned to its name,
    in first-seen order, and nested messages are combined recursively. The
    fields of the result are sorted by name.
    """
    by_key: dict[tuple[str, bool], Field] = {}
    for item in msg:
        merged = by_key.get((item.name, item.type_name))
        if merged is None:
            merged = Field(item.name, type_name=item.type_name)
            by_key[(item.name, item.type_name)] = merged
        merged.values.extend(_combine_value(value) for value in item.values)
    return Message(sorted(by_key.values(), key=lambda f: (f.name, f.type_name)))


def split(msg: Message) -> list[Message]:
    """Partition msg into messages whose top-level fields have at most one value.

    Message values are kept whole, so nested repeated fields survive.
    """
    return _split(combine(msg), recursive=False)


def rsplit(msg: Message) -> list[Message]:
    """Like split, but nested messages are split recursively as well."""
    return _split(combine(msg), recursive=True)


def _combine_value(value: Value) -> Value:
    if not value.is_message:
        return value
    return Value.message(combine(value.msg))


def _split(msg: Message, recursive: bool) -> list[Message]:
    variants = [fs for fs in (_split_field(item, recursive) for item in msg) if fs]
    result = []
    for idx in product_indices([len(fs) for fs in variants]):
        result.append(Message([_copy_field(variants[i][x]) for i, x in enumerate(idx)]))
    return result


def _split_field(item: Field, recursive: bool) -> list[Field]:
    fields = []
    for value in item.values:
        for variant in _split_value(value, recursive):
            fields.append(Field(item.name, [variant], type_name=item.type_name))
    return fields


def _split_value(value: Value, recursive: bool) -> list[Value]:
    if not value.is_message or not recursive:
        return [value]
    return [Value.message(sub) for sub in _split(value.msg, recursive)]


def _copy_field(item: Field) -> Field:
    # Nested messages are not shared between split outputs; scalar values are frozen.
    values = [Value.message(copy.deepcopy(v.msg)) if v.is_message else v for v in item.values]
    return Field(item.name, values, type_name=item.type_name)
