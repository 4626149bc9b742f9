"""Release automation plugin layer.

`releasekit.plugins` turns plugin definitions into callables and assembles the
release pipeline; `releasekit.foundation.config_io` loads release configuration
files.
"""

from releasekit.errors import (
    PluginConfigError,
    PluginExportError,
    PluginNotFoundError,
    PluginOutputError,
    ReleaseError,
)
from releasekit.plugins import PluginSet, get_plugins, normalize

__version__ = "0.1.0"

__all__ = [
    "PluginConfigError",
    "PluginExportError",
    "PluginNotFoundError",
    "PluginOutputError",
    "PluginSet",
    "ReleaseError",
    "__version__",
    "get_plugins",
    "normalize",
]
