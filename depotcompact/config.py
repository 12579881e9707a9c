"""Load and validate depotcompact.yaml."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_NAME = "depotcompact.yaml"

# Default config values
DEFAULTS: dict[str, Any] = {
    "depots": {
        "destination": None,
        "sources": [],
        "references": [],
    },
    "lock": {
        "filename": "compacting.lock",
        "timeout": None,
        "poll_interval": 0.1,
    },
}


class ConfigError(Exception):
    """Raised when config is invalid or missing."""


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively. Override wins on conflicts."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _is_number(val: Any) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def _validate(config: dict) -> None:
    """Validate field types in config."""
    depots = config.get("depots")
    if not isinstance(depots, dict):
        raise ConfigError("'depots' must be a mapping")
    dest = depots.get("destination")
    if dest is not None and not isinstance(dest, str):
        raise ConfigError("'depots.destination' must be a path string")
    for key in ("sources", "references"):
        val = depots.get(key)
        if not isinstance(val, list) or not all(isinstance(p, str) for p in val):
            raise ConfigError(f"'depots.{key}' must be a list of path strings")

    lock = config.get("lock")
    if not isinstance(lock, dict):
        raise ConfigError("'lock' must be a mapping")
    filename = lock.get("filename")
    if not isinstance(filename, str) or not filename or "/" in filename:
        raise ConfigError("'lock.filename' must be a plain file name")
    timeout = lock.get("timeout")
    if timeout is not None and (not _is_number(timeout) or timeout < 0):
        raise ConfigError(f"'lock.timeout' must be null or a non-negative number, got {timeout!r}")
    poll = lock.get("poll_interval")
    if not _is_number(poll) or poll <= 0:
        raise ConfigError(f"'lock.poll_interval' must be a positive number, got {poll!r}")


def _resolve_depot_paths(config: dict, base_dir: Path) -> None:
    """Make relative depot paths absolute against the config file's directory."""
    depots = config["depots"]

    def resolve(p: str) -> str:
        path = Path(p).expanduser()
        return str(path if path.is_absolute() else base_dir / path)

    if depots["destination"] is not None:
        depots["destination"] = resolve(depots["destination"])
    depots["sources"] = [resolve(p) for p in depots["sources"]]
    depots["references"] = [resolve(p) for p in depots["references"]]


def load_config(config_path: Path | None = None) -> dict:
    """Load config from *config_path*, merged over DEFAULTS.

    With no explicit path, ``depotcompact.yaml`` in the cwd is used if it
    exists and DEFAULTS otherwise. An explicit path that does not exist is
    an error.
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_NAME
        if not config_path.exists():
            return copy.deepcopy(DEFAULTS)
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    config = _deep_merge(copy.deepcopy(DEFAULTS), raw)
    _validate(config)
    _resolve_depot_paths(config, config_path.absolute().parent)
    return config
