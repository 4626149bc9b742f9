"""Plugin resolution, invocation wrapping and pipeline assembly.

This package does not read configuration files. Callers hand it an already
parsed options mapping plus the shareable config map (see
`releasekit.foundation.config_io`).
"""

from releasekit.plugins.assembly import PluginSet, get_plugins
from releasekit.plugins.definitions import (
    RELEASE_TYPES,
    SLOT_DEFINITIONS,
    SlotDefinition,
    get_slot,
    is_valid_semver,
    slot_index,
    slot_names,
    suggest_slots,
    with_defaults,
)
from releasekit.plugins.normalize import (
    NormalizedPlugin,
    PluginValidation,
    guarded_copy,
    is_plugin_definition,
    merge_plugin_config,
    noop,
    normalize,
)
from releasekit.plugins.pipeline import PluginPipeline
from releasekit.plugins.resolver import (
    PluginReference,
    is_path_specifier,
    load_module,
    resolve_origin_dir,
    resolve_reference,
)
from releasekit.plugins.selector import select_capability

__all__ = [
    "NormalizedPlugin",
    "PluginPipeline",
    "PluginReference",
    "PluginSet",
    "PluginValidation",
    "RELEASE_TYPES",
    "SLOT_DEFINITIONS",
    "SlotDefinition",
    "get_plugins",
    "get_slot",
    "guarded_copy",
    "is_path_specifier",
    "is_plugin_definition",
    "is_valid_semver",
    "load_module",
    "merge_plugin_config",
    "noop",
    "normalize",
    "resolve_origin_dir",
    "resolve_reference",
    "select_capability",
    "slot_index",
    "slot_names",
    "suggest_slots",
    "with_defaults",
]
