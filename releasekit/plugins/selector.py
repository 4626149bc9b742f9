"""Pick the callable implementing a slot out of a loaded plugin."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from releasekit.errors import PluginExportError

_DEFAULT_EXPORT = "default"


def _member(container: Any, name: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(name)
    return getattr(container, name, None)


def select_capability(loaded: Any, slot: str, *, specifier: str | None = None) -> Callable[..., Any]:
    """Return the slot implementation exposed by `loaded`.

    Order: `loaded` itself when callable, then its `default` export when
    callable, then the member named after the slot (looked up on `default` when
    that export is a container).
    """

    if callable(loaded):
        return loaded

    container = loaded
    default = _member(loaded, _DEFAULT_EXPORT)
    if default is not None:
        if callable(default):
            return default
        container = default

    candidate = _member(container, slot) if slot else None
    if callable(candidate):
        return candidate
    raise PluginExportError(slot, specifier)
