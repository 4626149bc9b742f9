"""Build the full set of pipeline slots from a release configuration."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Callable

from releasekit.errors import PluginConfigError
from releasekit.plugins.definitions import SLOT_DEFINITIONS, SlotDefinition, slot_index
from releasekit.plugins.normalize import (
    INVALID_DEFINITION_MESSAGE,
    PATH_KEY,
    is_plugin_definition,
    normalize,
)
from releasekit.plugins.pipeline import PluginPipeline


class PluginSet(Mapping[str, Callable[..., Any]]):
    """Read-only slot -> plugin mapping; slots are also reachable as attributes."""

    def __init__(self, plugins: Mapping[str, Callable[..., Any]]):
        self._plugins = dict(plugins)

    def __getitem__(self, slot: str) -> Callable[..., Any]:
        return self._plugins[slot]

    def __iter__(self) -> Iterator[str]:
        return iter(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "_plugins" and "_plugins" not in self.__dict__:
            object.__setattr__(self, name, value)
            return
        raise AttributeError(f"PluginSet is read-only (cannot set {name})")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"PluginSet is read-only (cannot delete {name})")

    def __getattr__(self, name: str) -> Callable[..., Any]:
        plugins = self.__dict__.get("_plugins", {})
        try:
            return plugins[name]
        except KeyError:
            raise AttributeError(name) from None

    def __repr__(self) -> str:
        return f"PluginSet({', '.join(self._plugins)})"


def _plan_slot(slot: SlotDefinition, raw: Any) -> Any:
    if raw is None:
        return list(slot.default) if isinstance(slot.default, tuple) else slot.default

    if isinstance(raw, Mapping) and PATH_KEY not in raw and slot.has_single_default:
        if isinstance(slot.default, Mapping):
            return {**slot.default, **raw}
        return {**raw, PATH_KEY: slot.default}

    message = INVALID_DEFINITION_MESSAGE.format(slot=slot.name)
    if isinstance(raw, (list, tuple)):
        for idx, item in enumerate(raw):
            if not is_plugin_definition(item):
                raise PluginConfigError(message, slot=slot.name, details=f"{slot.name}[{idx}]: {item!r}")
        return list(raw)
    if not is_plugin_definition(raw):
        raise PluginConfigError(message, slot=slot.name, details=f"{slot.name}: {raw!r}")
    return raw


def get_plugins(
    config: Mapping[str, Any] | None,
    shareable_config_map: Mapping[str, str] | None = None,
    logger: logging.Logger | None = None,
    *,
    definitions: Iterable[SlotDefinition] = SLOT_DEFINITIONS,
    cwd: str | os.PathLike[str] | None = None,
) -> PluginSet:
    """Validate every slot of `config`, then normalize each into a callable.

    Options that are not slot names form the global config shared by every
    plugin. Validation covers all slots before any plugin is loaded.
    """

    if config is None:
        config = {}
    if not isinstance(config, Mapping):
        raise TypeError(f"Release config must be a mapping (type={type(config).__name__})")

    slots = slot_index(definitions)
    global_config = {key: value for key, value in config.items() if key not in slots}
    planned = {name: _plan_slot(slot, config.get(name)) for name, slot in slots.items()}

    plugins: dict[str, Callable[..., Any]] = {}
    for name, definition in planned.items():
        validation = slots[name].output
        if isinstance(definition, list):
            plugins[name] = PluginPipeline(
                slot=name,
                steps=tuple(
                    normalize(
                        name, shareable_config_map, global_config, item, logger, validation, cwd=cwd
                    )
                    for item in definition
                ),
            )
        else:
            plugins[name] = normalize(
                name, shareable_config_map, global_config, definition, logger, validation, cwd=cwd
            )
    return PluginSet(plugins)
