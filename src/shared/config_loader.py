"""YAML configuration loading."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML file and return its content as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the top level of the file is not a mapping.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Config {p} must be a mapping, got {type(data).__name__}")
    log.debug("Loaded config %s (%d top-level keys)", p.name, len(data or {}))
    return data or {}


def merge_config(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay *overrides* on a copy of *defaults*.

    Nested dicts are merged key by key; any other value (lists included)
    replaces the default wholesale.
    """
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(
    path: str | Path | None,
    defaults: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load *path* on top of *defaults*; ``path=None`` returns the defaults."""
    base = defaults or {}
    if path is None:
        return copy.deepcopy(base)
    cfg = merge_config(base, load_yaml(path))
    log.info("Config loaded from %s", path)
    return cfg
