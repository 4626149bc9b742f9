"""Error types surfaced by plugin resolution and invocation."""

from __future__ import annotations

from typing import Any


class ReleaseError(Exception):
    """Base error for release configuration problems.

    `name` is fixed across subclasses so callers can recognise domain errors
    without depending on the concrete class.
    """

    name = "ReleaseError"

    def __init__(self, message: str, code: str | None = None, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class PluginConfigError(ReleaseError, ValueError):
    """Raised when a plugin definition or slot configuration has the wrong shape."""

    def __init__(self, message: str, *, slot: str | None = None, details: str | None = None):
        super().__init__(message, "EPLUGINCONF", details)
        self.slot = slot


class PluginExportError(PluginConfigError):
    """Raised when a loaded plugin has no callable for the requested slot."""

    def __init__(self, slot: str, specifier: str | None = None):
        super().__init__(
            f"The {slot} plugin must be a function, or an object with a function in the property {slot}.",
            slot=slot,
        )
        self.specifier = specifier


class PluginNotFoundError(ModuleNotFoundError):
    """Raised when a plugin specifier does not resolve to any module."""

    code = "MODULE_NOT_FOUND"

    def __init__(self, specifier: str):
        super().__init__(f"Cannot find module '{specifier}'", name=specifier)
        self.specifier = specifier

    @property
    def message(self) -> str:
        return str(self)


class PluginOutputError(ValueError):
    """Raised at call time when a plugin result fails its output validator."""

    code = "EPLUGINOUTPUT"

    def __init__(self, message: str, output: Any):
        super().__init__(f"{message} Received: {output}")
        self.output = output

    @property
    def message(self) -> str:
        return str(self)
