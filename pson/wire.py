"""Raw wire-format protobuf fields, decoded and encoded without a schema.

A decoded field keeps its payload as encoded. Varint payloads are stored as
the minimal big-endian bytes of the unsigned value; every other payload is
kept exactly as it appeared on the wire. Interpreting the bytes is the
caller's job.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO, Iterable, Iterator

from pson.errors import TruncatedFieldError, UnknownWireTypeError, WireFormatError

log = logging.getLogger(__name__)

MASK64 = (1 << 64) - 1
MAX_VARINT_LEN = 10
READ_CHUNK = 1 << 16


class WireType(IntEnum):
    VARINT = 0  # varint-encoded value
    FIXED64 = 1  # fixed-width 64-bit value (LSB first)
    DELIMITED = 2  # length-prefixed value (varint + bytes)
    START_GROUP = 3  # deprecated, unused
    END_GROUP = 4  # deprecated, unused
    FIXED32 = 5  # fixed-width 32-bit value (LSB first)


SUPPORTED_TYPES = {WireType.VARINT, WireType.FIXED64, WireType.DELIMITED, WireType.FIXED32}
FIXED_WIDTH = {WireType.FIXED64: 8, WireType.FIXED32: 4}


@dataclass
class WireField:
    id: int
    wire: WireType
    data: bytes = b""

    def key(self) -> int:
        return (self.id << 3) | int(self.wire)

    def size(self) -> int:
        """Number of bytes needed to encode the field.

        For varint fields this is derived from the stored bytes re-expressed
        in 7-bit groups, so it is an upper bound on what pack() emits.
        """
        n = varint_size(self.key())
        wire = self._checked_wire()
        if wire is WireType.VARINT:
            return n + max(1, (8 * len(self.data) + 6) // 7)
        if wire is WireType.DELIMITED:
            return n + varint_size(len(self.data)) + len(self.data)
        return n + FIXED_WIDTH[wire]

    def pack(self) -> bytes:
        """Encode the key and value in wire format."""
        self._checked_wire()
        return encode_varint(self.key()) + self.pack_value()

    def pack_value(self) -> bytes:
        """Encode just the value.

        Fixed-width payloads are zero-padded or truncated to the field width.
        """
        wire = self._checked_wire()
        if wire is WireType.VARINT:
            return encode_varint(uint64(self.data))
        if wire is WireType.DELIMITED:
            return encode_varint(len(self.data)) + bytes(self.data)
        width = FIXED_WIDTH[wire]
        return bytes(self.data[:width]).ljust(width, b"\x00")

    def _checked_wire(self) -> WireType:
        if self.wire not in SUPPORTED_TYPES:
            raise UnknownWireTypeError(0, int(self.wire))
        return WireType(self.wire)


class Decoder:
    """Reads successive fields from a binary stream holding a wire-format message."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._offset = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> Decoder:
        return cls(io.BytesIO(data))

    @property
    def offset(self) -> int:
        """Number of bytes consumed so far."""
        return self._offset

    def __iter__(self) -> Iterator[WireField]:
        while True:
            item = self.next_field()
            if item is None:
                return
            yield item

    def next_field(self) -> WireField | None:
        """Return the next field, or None if the input ends cleanly before it."""
        start = self._offset
        key = self._read_varint("field key", at_boundary=True)
        if key is None:
            return None

        wire_type = key & 7
        if wire_type not in SUPPORTED_TYPES:
            raise UnknownWireTypeError(start, wire_type)
        item = WireField(id=key >> 3, wire=WireType(wire_type))

        if item.wire is WireType.VARINT:
            item.data = put_uint64(self._read_varint("varint value"))
        elif item.wire is WireType.DELIMITED:
            length = self._read_varint("length prefix")
            item.data = self._read_exact(length, "length-delimited value")
        else:
            item.data = self._read_exact(FIXED_WIDTH[item.wire], f"{item.wire.name.lower()} value")

        log.debug("Decoded field id=%d wire=%s len=%d at offset %d", item.id, item.wire.name, len(item.data), start)
        return item

    def _read_varint(self, what: str, at_boundary: bool = False) -> int | None:
        value = 0
        for i in range(MAX_VARINT_LEN):
            b = self._stream.read(1)
            if not b:
                if i == 0 and at_boundary:
                    return None
                raise TruncatedFieldError(self._offset, what)
            self._offset += 1
            byte = b[0]
            if i == MAX_VARINT_LEN - 1 and byte > 1:
                break
            value |= (byte & 0x7F) << (7 * i)
            if byte < 0x80:
                return value
        raise WireFormatError(self._offset, f"{what} overflows a 64-bit integer")

    def _read_exact(self, n: int, what: str) -> bytes:
        # n may come off the wire; never ask the stream for more than READ_CHUNK.
        data = bytearray()
        while len(data) < n:
            chunk = self._stream.read(min(n - len(data), READ_CHUNK))
            self._offset += len(chunk)
            if not chunk:
                raise TruncatedFieldError(self._offset, what)
            data += chunk
        return bytes(data)


def decode_all(data: bytes) -> list[WireField]:
    return list(Decoder.from_bytes(data))


def encode_fields(fields: Iterable[WireField]) -> bytes:
    return b"".join(item.pack() for item in fields)


def encode_varint(value: int) -> bytes:
    value &= MASK64
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def varint_size(value: int) -> int:
    n = 1
    value >>= 7
    while value:
        n += 1
        value >>= 7
    return n


def put_uint64(value: int) -> bytes:
    """Pack value big-endian without leading zero bytes (b"\\x00" for zero)."""
    value &= MASK64
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


def uint64(data: bytes) -> int:
    """Unpack big-endian bytes, keeping the low 64 bits."""
    return int.from_bytes(data, "big") & MASK64


def zigzag_encode(value: int) -> int:
    return ((value << 1) ^ (value >> 63)) & MASK64


def zigzag_decode(value: int) -> int:
    return (value >> 1) ^ -(value & 1)


def put_int64(value: int) -> bytes:
    """Pack a signed 64-bit value with the zig-zag encoding."""
    return put_uint64(zigzag_encode(value))


def int64(data: bytes) -> int:
    """Unpack zig-zag encoded bytes into a signed value."""
    return zigzag_decode(uint64(data))
