"""Plugin specifier resolution and module loading.

A specifier is either a filesystem path (`./plugins/notify`, `/abs/notify.py`), a
dotted module name (`release_plugins.npm`) or an entry-point style reference
(`release_plugins.npm:plugin`). Specifiers declared by a shareable config resolve
from that config's directory first and fall back to the working directory.
"""

from __future__ import annotations

import contextlib
import hashlib
import importlib
import importlib.machinery
import importlib.util
import os
import sys
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any

from releasekit.errors import PluginNotFoundError

_PATH_PREFIXES = ("./", "../", ".\\", "..\\", "~")
_SOURCE_SUFFIX = ".py"
_ORIGIN_SUFFIXES = (".py", ".yaml", ".yml")
_FILE_MODULE_PREFIX = "releasekit_plugin"


@dataclass(frozen=True)
class PluginReference:
    specifier: str
    effective_specifier: str
    base_dir: str | None = None
    origin: str | None = None


def is_path_specifier(specifier: str) -> bool:
    if specifier in (".", "..") or specifier.startswith(_PATH_PREFIXES):
        return True
    if os.path.isabs(specifier):
        return True
    return specifier.endswith(_SOURCE_SUFFIX) or "/" in specifier or os.sep in specifier


def _working_dir(cwd: str | os.PathLike[str] | None) -> Path:
    if cwd is None:
        return Path.cwd()
    return Path(cwd).absolute()


def _expand(path: str, base: Path) -> Path:
    expanded = Path(os.path.expanduser(path))
    if expanded.is_absolute():
        return expanded
    return base / expanded


@contextlib.contextmanager
def _prepended_sys_path(*entries: str) -> Iterator[None]:
    added = [entry for entry in dict.fromkeys(entries) if entry and entry not in sys.path]
    sys.path[:0] = added
    try:
        yield
    finally:
        for entry in added:
            with contextlib.suppress(ValueError):
                sys.path.remove(entry)


def _module_dir(name: str, base: Path) -> str | None:
    with _prepended_sys_path(str(base)):
        try:
            spec = importlib.util.find_spec(name)
        except (ImportError, ValueError):
            return None
    if spec is None:
        return None
    if spec.submodule_search_locations:
        locations = list(spec.submodule_search_locations)
        if locations:
            return str(locations[0])
    if spec.origin and os.path.isfile(spec.origin):
        return os.path.dirname(spec.origin)
    return None


def resolve_origin_dir(origin: str, *, cwd: str | os.PathLike[str] | None = None) -> str:
    """Return the directory a shareable config lives in.

    Module-name origins use the module's own directory. Anything else is treated
    as a path relative to `cwd`: directories are used as is and files contribute
    their parent. Missing paths still produce a directory so that the loader,
    not the resolver, reports the failure.
    """

    base = _working_dir(cwd)
    if not is_path_specifier(origin):
        module_dir = _module_dir(origin, base)
        if module_dir is not None:
            return module_dir

    candidate = _expand(origin, base)
    if candidate.is_dir():
        return str(candidate.resolve())
    for path in (candidate, *(Path(str(candidate) + suffix) for suffix in _ORIGIN_SUFFIXES)):
        if path.is_file():
            return str(path.resolve().parent)
    if candidate.suffix:
        return str(candidate.parent)
    return str(candidate)


def resolve_reference(
    specifier: str,
    shareable_config_map: Mapping[str, str] | None = None,
    *,
    cwd: str | os.PathLike[str] | None = None,
) -> PluginReference:
    origin = (shareable_config_map or {}).get(specifier)
    if origin is None:
        return PluginReference(specifier=specifier, effective_specifier=specifier)

    base_dir = resolve_origin_dir(origin, cwd=cwd)
    effective = specifier
    if is_path_specifier(specifier):
        effective = str(_expand(specifier, Path(base_dir)))
    return PluginReference(
        specifier=specifier,
        effective_specifier=effective,
        base_dir=base_dir,
        origin=origin,
    )


def _module_file(candidate: Path) -> Path | None:
    for path in (candidate, Path(str(candidate) + _SOURCE_SUFFIX), candidate / "__init__.py"):
        if path.is_file():
            return path.resolve()
    return None


def _file_module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    stem = path.parent.name if path.name == "__init__.py" else path.stem
    safe = "".join(ch if ch.isalnum() else "_" for ch in stem)
    return f"{_FILE_MODULE_PREFIX}_{safe}_{digest}"


def _exec_file_module(path: Path) -> ModuleType:
    name = _file_module_name(path)
    cached = sys.modules.get(name)
    if cached is not None:
        return cached

    locations = [str(path.parent)] if path.name == "__init__.py" else None
    spec = importlib.util.spec_from_file_location(name, path, submodule_search_locations=locations)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load plugin module from {path}", path=str(path))

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


def _load_file_module(reference: PluginReference, cwd: Path) -> ModuleType:
    candidates = [_expand(reference.effective_specifier, cwd)]
    if reference.base_dir is not None and reference.effective_specifier != reference.specifier:
        candidates.append(_expand(reference.specifier, cwd))

    for candidate in candidates:
        path = _module_file(candidate)
        if path is not None:
            return _exec_file_module(path)
    raise PluginNotFoundError(reference.specifier)


def _is_missing(exc: ModuleNotFoundError, module_name: str) -> bool:
    missing = exc.name or ""
    return bool(missing) and (module_name == missing or module_name.startswith(missing + "."))


def _load_from_base_dir(reference: PluginReference, module_name: str) -> ModuleType | None:
    if not reference.base_dir:
        return None
    top, _, rest = module_name.partition(".")
    spec = importlib.machinery.PathFinder.find_spec(top, [reference.base_dir])
    if spec is None or not spec.origin or not os.path.isfile(spec.origin):
        return None

    with _prepended_sys_path(reference.base_dir):
        module = _exec_file_module(Path(spec.origin).resolve())
        if not rest:
            return module
        qualified = f"{module.__name__}.{rest}"
        try:
            return importlib.import_module(qualified)
        except ModuleNotFoundError as exc:
            if _is_missing(exc, qualified):
                raise PluginNotFoundError(reference.specifier) from exc
            raise


def _import_named_module(reference: PluginReference, module_name: str, cwd: Path) -> ModuleType:
    scoped = _load_from_base_dir(reference, module_name)
    if scoped is not None:
        return scoped

    with _prepended_sys_path(str(cwd)):
        try:
            return importlib.import_module(module_name)
        except ModuleNotFoundError as exc:
            if _is_missing(exc, module_name):
                raise PluginNotFoundError(reference.specifier) from exc
            raise


def load_module(reference: PluginReference, *, cwd: str | os.PathLike[str] | None = None) -> Any:
    """Load the value a reference points at.

    Import errors raised while executing an existing plugin module propagate
    unchanged; only a specifier that matches nothing becomes PluginNotFoundError.
    """

    base = _working_dir(cwd)
    specifier = reference.effective_specifier
    if is_path_specifier(specifier):
        return _load_file_module(reference, base)

    module_name, _, attribute = specifier.partition(":")
    if not module_name.strip():
        raise PluginNotFoundError(reference.specifier)
    loaded: Any = _import_named_module(reference, module_name.strip(), base)
    if not attribute:
        return loaded

    for part in attribute.strip().split("."):
        try:
            loaded = getattr(loaded, part)
        except AttributeError:
            raise PluginNotFoundError(reference.specifier) from None
    return loaded
