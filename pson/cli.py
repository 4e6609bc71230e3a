#!/usr/bin/env python3
"""pson: convert text-format protobuf messages to JSON, without a schema.

Reads each named file (or stdin if none are named) as a text-format protobuf
message and writes one JSON value per message to stdout. The translation is
purely lexical. With --wire, the inputs are binary wire-format messages and
each raw field is written as a JSON object on its own line.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import BinaryIO, TextIO

from pson.combine import combine, rsplit, split
from pson.config import PsonConfig, load_config
from pson.errors import PsonError
from pson.message import Message, to_camel
from pson.parser import parse
from pson.render_json import render_json
from pson.text_format import TextFormat
from pson.wire import Decoder, WireType, uint64

log = logging.getLogger("pson")

CONFIG_ENV = "PSON_CONFIG"


def expand(msg: Message | None, cfg: PsonConfig) -> list[Message]:
    """Combine msg, or split it into single-valued messages, per cfg.split."""
    msg = msg if msg is not None else Message()
    if cfg.split == "rsplit":
        out = rsplit(msg)
    elif cfg.split == "split":
        out = split(msg)
    else:
        out = [combine(msg)]
    if cfg.camel:
        for item in out:
            to_camel(item)
    return out


def render(messages: list[Message], cfg: PsonConfig) -> str:
    if cfg.output == "json":
        return "".join(render_json(m, indent=cfg.indent, prefix=cfg.prefix) + "\n" for m in messages)
    fmt = TextFormat(compact=cfg.indent == "", curly=cfg.output == "proto2", indent=cfg.indent)
    return "".join(fmt.text(m) + "\n" for m in messages)


def convert_text(stream: TextIO, cfg: PsonConfig) -> str:
    return render(expand(parse(stream, max_depth=cfg.max_depth), cfg), cfg)


def dump_wire(stream: BinaryIO) -> str:
    lines = []
    for item in Decoder(stream):
        record = {"id": item.id, "wire": item.wire.name.lower(), "data": item.data.hex()}
        if item.wire is WireType.VARINT:
            record["value"] = uint64(item.data)
        lines.append(json.dumps(record) + "\n")
    return "".join(lines)


def _convert_path(path: str, cfg: PsonConfig, wire: bool) -> str:
    if path == "-":
        return dump_wire(sys.stdin.buffer) if wire else convert_text(sys.stdin, cfg)
    if wire:
        with open(path, "rb") as f:
            return dump_wire(f)
    with open(path, "r", encoding="utf-8") as f:
        return convert_text(f, cfg)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pson",
        description="Convert text-format protobuf messages to JSON or text format, without a schema.",
    )
    parser.add_argument("files", nargs="*", default=["-"], help="Input files ('-' for stdin)")
    parser.add_argument(
        "--config",
        type=Path,
        default=os.environ.get(CONFIG_ENV),
        help=f"YAML settings file (default: ${CONFIG_ENV})",
    )
    parser.add_argument("--prefix", help="Line prefix (enables indentation)")
    parser.add_argument("--indent", help="Indentation marker (enables indentation)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--split", dest="split", action="store_const", const="split", help="Split into single-valued messages")
    mode.add_argument("--rsplit", dest="split", action="store_const", const="rsplit", help="Split recursively")
    parser.add_argument("--camel", action="store_true", default=None, help="Convert names to camel-case")
    fmt = parser.add_mutually_exclusive_group()
    fmt.add_argument("--proto1", dest="output", action="store_const", const="proto1", help="Render as text format with <>")
    fmt.add_argument("--proto2", dest="output", action="store_const", const="proto2", help="Render as text format with {}")
    parser.add_argument("--wire", action="store_true", help="Inputs are binary wire format; dump raw fields")
    parser.add_argument("--max-depth", type=int, help="Maximum message nesting depth")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    try:
        cfg = load_config(Path(args.config) if args.config else None).merged(
            indent=args.indent,
            prefix=args.prefix,
            split=args.split,
            camel=args.camel,
            output=args.output,
            max_depth=args.max_depth,
        )
    except (PsonError, OSError) as err:
        log.error("Invalid configuration: %s", err)
        return 1

    for path in args.files:
        try:
            sys.stdout.write(_convert_path(path, cfg, args.wire))
        except (PsonError, OSError, UnicodeDecodeError) as err:
            log.error("Converting %r failed: %s", "stdin" if path == "-" else path, err)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
