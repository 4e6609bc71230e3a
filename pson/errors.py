"""Exception types raised by the text and wire codecs."""

from __future__ import annotations


class PsonError(Exception):
    pass


class TextFormatError(PsonError):
    """A lexical or syntactic error in text-format input, tagged with its line."""

    def __init__(self, line: int, message: str):
        super().__init__(f"line {line}: {message}")
        self.line = line
        self.reason = message


class ScanError(TextFormatError):
    pass


class ParseError(TextFormatError):
    pass


class ValueCoercionError(PsonError, ValueError):
    pass


class WireFormatError(PsonError):
    """A malformed wire-format field, tagged with the stream offset."""

    def __init__(self, offset: int, message: str):
        super().__init__(f"offset {offset}: {message}")
        self.offset = offset
        self.reason = message


class UnknownWireTypeError(WireFormatError):
    def __init__(self, offset: int, wire_type: int):
        super().__init__(offset, f"unknown wire type {wire_type}")
        self.wire_type = wire_type


class TruncatedFieldError(WireFormatError):
    def __init__(self, offset: int, what: str):
        super().__init__(offset, f"unexpected end of input in {what}")


class ConfigValidationError(PsonError):
    pass
