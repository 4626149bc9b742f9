"""Turn a plugin definition into a uniform, guarded async callable."""

from __future__ import annotations

import copy
import inspect
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from releasekit.errors import PluginConfigError, PluginOutputError
from releasekit.plugins.resolver import load_module, resolve_reference
from releasekit.plugins.selector import select_capability

PATH_KEY = "path"

INVALID_DEFINITION_MESSAGE = (
    'The "{slot}" plugin, if defined, must be a single or an array of plugins definition. '
    "A plugin definition is either a string or an object with a path property."
)


@dataclass(frozen=True)
class PluginValidation:
    validator: Callable[[Any], bool]
    message: str

    def __post_init__(self) -> None:
        if not callable(self.validator):
            raise TypeError(
                f"PluginValidation.validator must be callable (type={type(self.validator).__name__})"
            )
        if not isinstance(self.message, str) or not self.message.strip():
            raise TypeError("PluginValidation.message must be a non-empty string")

    def check(self, output: Any) -> Any:
        if not self.validator(output):
            raise PluginOutputError(self.message, output)
        return output


def guarded_copy(value: Any, memo: dict[int, Any] | None = None) -> Any:
    """Deep copy `value`, keeping references to leaves that cannot be copied.

    Containers (dict, list, tuple, set) are rebuilt element by element, so a
    lock or an open stream nested in a config keeps its identity while
    everything around it is still copied.
    """

    if memo is None:
        memo = {}
    key = id(value)
    if key in memo:
        return memo[key]

    kind = type(value)
    if kind is dict:
        copied_dict: dict[Any, Any] = {}
        memo[key] = copied_dict
        for item_key, item in value.items():
            copied_dict[guarded_copy(item_key, memo)] = guarded_copy(item, memo)
        return copied_dict
    if kind is list:
        copied_list: list[Any] = []
        memo[key] = copied_list
        copied_list.extend(guarded_copy(item, memo) for item in value)
        return copied_list
    if kind is tuple:
        return tuple(guarded_copy(item, memo) for item in value)
    if kind is set:
        return {guarded_copy(item, memo) for item in value}

    try:
        return copy.deepcopy(value, memo)
    except (TypeError, copy.Error):
        memo[key] = value
        return value


async def noop(*_args: Any, **_kwargs: Any) -> None:
    return None


def merge_plugin_config(
    global_config: Mapping[str, Any] | None, local_config: Mapping[str, Any] | None
) -> dict[str, Any]:
    merged = dict(global_config or {})
    merged.update(local_config or {})
    merged.pop(PATH_KEY, None)
    return merged


@dataclass(frozen=True)
class NormalizedPlugin:
    """A resolved slot implementation bound to its configuration.

    Configs are snapshotted when the plugin is built. Every call hands the target
    fresh deep copies of the merged config and of the caller's input, so nothing a
    plugin mutates is visible to the caller or to later calls.
    """

    slot: str
    target: Callable[..., Any]
    plugin_config: Mapping[str, Any] = field(default_factory=dict)
    global_config: Mapping[str, Any] = field(default_factory=dict)
    validation: PluginValidation | None = None
    source: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.target):
            raise TypeError(
                f"NormalizedPlugin.target must be callable (slot={self.slot}, type={type(self.target).__name__})"
            )

    async def __call__(self, context: Any = None) -> Any:
        config = guarded_copy(merge_plugin_config(self.global_config, self.plugin_config))
        result = self.target(config, guarded_copy(context))
        if inspect.isawaitable(result):
            result = await result
        if self.validation is not None:
            self.validation.check(result)
        return result


def is_plugin_definition(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, Mapping):
        path = value.get(PATH_KEY)
        return callable(path) or (isinstance(path, str) and bool(path.strip()))
    return callable(value)


def _split_definition(slot: str, definition: Any) -> tuple[Any, dict[str, Any]]:
    if not is_plugin_definition(definition):
        raise PluginConfigError(
            INVALID_DEFINITION_MESSAGE.format(slot=slot),
            slot=slot,
            details=f"{slot}: {definition!r}",
        )
    if isinstance(definition, Mapping):
        local = {key: value for key, value in definition.items() if key != PATH_KEY}
        return definition[PATH_KEY], local
    return definition, {}


def normalize(
    slot: str = "",
    shareable_config_map: Mapping[str, str] | None = None,
    global_config: Mapping[str, Any] | None = None,
    definition: Any = None,
    logger: logging.Logger | None = None,
    validation: PluginValidation | None = None,
    *,
    cwd: str | os.PathLike[str] | None = None,
) -> Callable[..., Any]:
    """Build the callable for one plugin definition of `slot`.

    An absent definition yields `noop`. Strings and mappings with a string `path`
    are resolved, loaded and logged here, so load failures surface during
    normalization rather than at call time.
    """

    if definition is None:
        return noop

    log = logger if logger is not None else logging.getLogger(__name__)
    path, local_config = _split_definition(slot, definition)

    source: str | None = None
    if callable(path):
        target = path
    else:
        reference = resolve_reference(path, shareable_config_map, cwd=cwd)
        if reference.origin is not None:
            log.info("Load plugin %s from %s in shareable config %s", slot, path, reference.origin)
        else:
            log.info("Load plugin %s from %s", slot, path)
        loaded = load_module(reference, cwd=cwd)
        target = select_capability(loaded, slot, specifier=path)
        source = path

    return NormalizedPlugin(
        slot=slot,
        target=target,
        plugin_config=guarded_copy(local_config),
        global_config=guarded_copy(dict(global_config or {})),
        validation=validation,
        source=source,
    )
