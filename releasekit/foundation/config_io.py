from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from releasekit.plugins.definitions import SLOT_DEFINITIONS, SlotDefinition, slot_names
from releasekit.plugins.resolver import is_path_specifier, load_module, resolve_reference

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (".releaserc.yaml", ".releaserc.yml", "releasekit.yaml")
EXTENDS_KEY = "extends"
_YAML_SUFFIXES = (".yaml", ".yml")


def find_config_file(start: str | os.PathLike[str] | None = None) -> str | None:
    start_path = Path(start or os.getcwd()).resolve()
    if start_path.is_file():
        start_path = start_path.parent

    for candidate in (start_path, *start_path.parents):
        for name in CONFIG_FILENAMES:
            path = candidate / name
            if path.is_file():
                return str(path)
    return None


def _load_yaml_mapping(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def _extends_entries(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"'{EXTENDS_KEY}' must be a string or a list of strings (type={type(raw).__name__})")

    entries: list[str] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, str) or not entry.strip():
            raise ValueError(f"'{EXTENDS_KEY}[{idx}]' must be a non-empty string")
        entries.append(entry.strip())
    return entries


def _yaml_file(entry: str, base: Path) -> Path | None:
    candidate = Path(os.path.expanduser(entry))
    if not candidate.is_absolute():
        candidate = base / candidate
    if candidate.suffix in _YAML_SUFFIXES:
        return candidate
    for suffix in _YAML_SUFFIXES:
        path = Path(str(candidate) + suffix)
        if path.is_file():
            return path
    return None


def _module_config(loaded: Any, entry: str) -> dict[str, Any]:
    if isinstance(loaded, Mapping):
        return dict(loaded)
    for attribute in ("config", "default"):
        value = getattr(loaded, attribute, None)
        if isinstance(value, Mapping):
            return dict(value)
    raise ValueError(f"Shareable config must define a 'config' mapping: {entry}")


def load_shareable_config(entry: str, *, cwd: str | os.PathLike[str] | None = None) -> dict[str, Any]:
    """Load one `extends` entry: a YAML file, a Python file or an importable module."""

    base = Path(cwd).absolute() if cwd else Path.cwd()
    if is_path_specifier(entry) or entry.endswith(_YAML_SUFFIXES):
        yaml_path = _yaml_file(entry, base)
        if yaml_path is not None:
            if not yaml_path.is_file():
                raise FileNotFoundError(f"Missing shareable config file: {yaml_path}")
            return _load_yaml_mapping(str(yaml_path))

    loaded = load_module(resolve_reference(entry), cwd=base)
    return _module_config(loaded, entry)


def _declared_specifiers(value: Any) -> list[str]:
    items = value if isinstance(value, (list, tuple)) else [value]
    specifiers: list[str] = []
    for item in items:
        if isinstance(item, str):
            specifiers.append(item)
        elif isinstance(item, Mapping) and isinstance(item.get("path"), str):
            specifiers.append(item["path"])
    return specifiers


def load_config(
    config_path: str | os.PathLike[str] | None = None,
    *,
    cwd: str | os.PathLike[str] | None = None,
    env_var: str | None = "RELEASEKIT_CONFIG",
    overrides: Mapping[str, Any] | None = None,
    definitions: Iterable[SlotDefinition] = SLOT_DEFINITIONS,
) -> tuple[dict[str, Any], dict[str, str]]:
    """
    Load release options and the shareable config map.

    Returns `(options, shareable_config_map)`, ready for `get_plugins`. The map
    records, for every plugin specifier declared by an `extends` entry, the entry
    it came from.
    """

    base = Path(cwd).absolute() if cwd else Path.cwd()

    explicit_path = None
    if config_path is not None:
        explicit_path = str(config_path).strip() or None
    elif env_var:
        explicit_path = os.environ.get(env_var, "").strip() or None

    file_options: dict[str, Any] = {}
    if explicit_path:
        path = Path(os.path.expandvars(os.path.expanduser(explicit_path)))
        if not path.is_absolute():
            path = base / path
        if not path.is_file():
            raise FileNotFoundError(f"Missing release config file: {path}")
        file_options = _load_yaml_mapping(str(path))
        logger.debug("Loaded release config: %s", path)
    else:
        found = find_config_file(base)
        if found is not None:
            file_options = _load_yaml_mapping(found)
            logger.debug("Loaded release config: %s", found)
        else:
            logger.debug("No release config file found from %s", base)

    options = dict(file_options)
    for key, value in (overrides or {}).items():
        if value is not None:
            options[key] = value

    slots = set(slot_names(definitions))
    merged: dict[str, Any] = {}
    shareable_config_map: dict[str, str] = {}
    for entry in _extends_entries(options.pop(EXTENDS_KEY, None)):
        shared = load_shareable_config(entry, cwd=base)
        shared.pop(EXTENDS_KEY, None)
        for key in slots.intersection(shared):
            for specifier in _declared_specifiers(shared[key]):
                shareable_config_map[specifier] = entry
        merged.update(shared)
        logger.debug("Applied shareable config: %s", entry)

    merged.update(options)
    return merged, shareable_config_map
