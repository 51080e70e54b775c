"""
Configuration Loader (``warehouse_config.loader``).

Responsibility
--------------
Read YAML settings files, deep-merge them over the packaged defaults, and
apply ``WAREHOUSE_*`` environment overrides.  Produces a plain mapping; the
typed ``WarehouseSettings`` is built by ``get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top-level YAML that is not a mapping  -> ``ValueError``.
"""

from __future__ import annotations

import copy
import hashlib
import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

# env var -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "WAREHOUSE_DATABASE_URL": ("database", "url"),
    "WAREHOUSE_LOG_LEVEL": ("logging", "level"),
    "WAREHOUSE_ISSUE_METHOD": ("inventory", "issue_method"),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML must be a mapping")
    return data


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` merged in; nested mappings merge recursively."""
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def apply_env_overrides(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    result = copy.deepcopy(dict(data))
    for var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            result.setdefault(section, {})[key] = value
    return result


def load_settings_mapping(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Defaults, then ``path`` (if given), then environment."""
    data = load_yaml_file(DEFAULTS_PATH)
    if path is not None:
        data = deep_merge(data, load_yaml_file(Path(path)))
    return apply_env_overrides(data, environ)


def compute_checksum(data: Mapping[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; identical input -> identical checksum."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
