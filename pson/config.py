from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from pson.errors import ConfigValidationError
from pson.parser import DEFAULT_MAX_DEPTH

log = logging.getLogger(__name__)

SPLIT_MODES = ("none", "split", "rsplit")
OUTPUT_FORMATS = ("json", "proto1", "proto2")


@dataclass(frozen=True)
class PsonConfig:
    indent: str = ""
    prefix: str = ""
    split: str = "none"
    camel: bool = False
    output: str = "json"
    max_depth: int = DEFAULT_MAX_DEPTH

    def merged(self, **overrides) -> PsonConfig:
        """Return a copy with every override that is not None applied."""
        return validate(replace(self, **{k: v for k, v in overrides.items() if v is not None}))


def validate(cfg: PsonConfig) -> PsonConfig:
    if cfg.split not in SPLIT_MODES:
        raise ConfigValidationError(f"split must be one of {', '.join(SPLIT_MODES)}, not {cfg.split!r}")
    if cfg.output not in OUTPUT_FORMATS:
        raise ConfigValidationError(f"output must be one of {', '.join(OUTPUT_FORMATS)}, not {cfg.output!r}")
    if not isinstance(cfg.indent, str) or not isinstance(cfg.prefix, str):
        raise ConfigValidationError("indent and prefix must be strings")
    if not isinstance(cfg.camel, bool):
        raise ConfigValidationError("camel must be true or false")
    if isinstance(cfg.max_depth, bool) or not isinstance(cfg.max_depth, int) or cfg.max_depth < 1:
        raise ConfigValidationError(f"max_depth must be a positive integer, not {cfg.max_depth!r}")
    return cfg


def load_config(path: Path | None) -> PsonConfig:
    """Load settings from the "pson" section of a YAML file.

    A missing path or section gives the defaults.
    """
    if path is None:
        return PsonConfig()
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected a mapping at top level")

    section = data.get("pson", {}) or {}
    if not isinstance(section, dict):
        raise ConfigValidationError(f"{path}: 'pson' must be a mapping")
    known = {f.name for f in fields(PsonConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigValidationError(f"{path}: unknown settings: {', '.join(unknown)}")

    log.debug("Loaded config from %s: %s", path, section)
    return validate(PsonConfig(**section))
