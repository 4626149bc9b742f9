"""Closed table of release pipeline slots and their output contracts."""

from __future__ import annotations

import difflib
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from releasekit.plugins.normalize import PluginValidation, is_plugin_definition

RELEASE_TYPES = ("major", "premajor", "minor", "preminor", "patch", "prepatch", "prerelease")

_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def is_valid_semver(version: Any) -> bool:
    if not isinstance(version, str):
        return False
    cleaned = version.strip().lstrip("=v").strip()
    return bool(_SEMVER_RE.match(cleaned))


def _valid_last_release(output: Any) -> bool:
    if not output:
        return True
    if not isinstance(output, Mapping):
        return False
    if not output.get("version"):
        return True
    git_head = output.get("git_head")
    return is_valid_semver(output["version"]) and isinstance(git_head, str) and bool(git_head.strip())


def _valid_release_type(output: Any) -> bool:
    return not output or (isinstance(output, str) and output in RELEASE_TYPES)


def _valid_notes(output: Any) -> bool:
    return not output or isinstance(output, str)


@dataclass(frozen=True)
class SlotDefinition:
    name: str
    default: Any = None
    output: PluginValidation | None = None
    doc: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise TypeError("SlotDefinition.name must be a non-empty string")
        object.__setattr__(self, "name", self.name.strip())

        if self.doc is not None and (not isinstance(self.doc, str) or not self.doc.strip()):
            raise TypeError("SlotDefinition.doc must be a non-empty string or None")
        if self.output is not None and not isinstance(self.output, PluginValidation):
            raise TypeError(
                f"SlotDefinition.output must be a PluginValidation or None (slot={self.name}, "
                f"type={type(self.output).__name__})"
            )

        if self.default is None:
            return
        if isinstance(self.default, (list, tuple)):
            for idx, item in enumerate(self.default):
                if not is_plugin_definition(item):
                    raise ValueError(
                        f"SlotDefinition.default[{idx}] is not a plugin definition (slot={self.name})"
                    )
            object.__setattr__(self, "default", tuple(self.default))
        elif not is_plugin_definition(self.default):
            raise ValueError(f"SlotDefinition.default is not a plugin definition (slot={self.name})")

    @property
    def has_single_default(self) -> bool:
        return self.default is not None and not isinstance(self.default, tuple)


SLOT_DEFINITIONS: tuple[SlotDefinition, ...] = (
    SlotDefinition(
        "verify_conditions",
        doc="Check that the environment allows a release (credentials, branch, tooling).",
    ),
    SlotDefinition(
        "get_last_release",
        output=PluginValidation(
            _valid_last_release,
            'The "get_last_release" plugin output, if defined, must be a mapping with a valid '
            'semver version in the "version" key and the corresponding git reference in the '
            '"git_head" key.',
        ),
        doc="Find the last released version and the commit it points at.",
    ),
    SlotDefinition(
        "analyze_commits",
        output=PluginValidation(
            _valid_release_type,
            'The "analyze_commits" plugin output must be either None or a valid semver release '
            f"type. Valid values are: {', '.join(RELEASE_TYPES)}.",
        ),
        doc="Decide the type of the next release from the commits since the last one.",
    ),
    SlotDefinition(
        "verify_release",
        doc="Check that the computed release is acceptable before it is published.",
    ),
    SlotDefinition(
        "generate_notes",
        output=PluginValidation(
            _valid_notes,
            'The "generate_notes" plugin output, if defined, must be a string.',
        ),
        doc="Render the release notes.",
    ),
    SlotDefinition(
        "publish",
        doc="Publish the release.",
    ),
)


def slot_index(definitions: Iterable[SlotDefinition] = SLOT_DEFINITIONS) -> dict[str, SlotDefinition]:
    index: dict[str, SlotDefinition] = {}
    for definition in definitions:
        if not isinstance(definition, SlotDefinition):
            raise TypeError(f"Expected SlotDefinition (type={type(definition).__name__})")
        if definition.name in index:
            raise ValueError(f"Duplicate slot name: {definition.name}")
        index[definition.name] = definition
    return index


def slot_names(definitions: Iterable[SlotDefinition] = SLOT_DEFINITIONS) -> tuple[str, ...]:
    return tuple(slot_index(definitions))


def suggest_slots(
    name: str, definitions: Iterable[SlotDefinition] = SLOT_DEFINITIONS, *, limit: int = 3
) -> tuple[str, ...]:
    key = (name or "").strip()
    if not key:
        return ()
    return tuple(difflib.get_close_matches(key, list(slot_names(definitions)), n=limit))


def get_slot(name: str, definitions: Iterable[SlotDefinition] = SLOT_DEFINITIONS) -> SlotDefinition:
    definitions = tuple(definitions)
    found = slot_index(definitions).get((name or "").strip())
    if found is not None:
        return found

    suggestions = suggest_slots(name, definitions)
    if suggestions:
        raise ValueError(f"Unknown slot: {name} (did you mean: {', '.join(suggestions)})")
    available = ", ".join(slot_names(definitions)) or "<none>"
    raise ValueError(f"Unknown slot: {name} (available: {available})")


def with_defaults(
    defaults: Mapping[str, Any], definitions: Iterable[SlotDefinition] = SLOT_DEFINITIONS
) -> tuple[SlotDefinition, ...]:
    """Return a copy of `definitions` with default plugin definitions attached.

    Example: `with_defaults({"analyze_commits": "release_plugins.commit_analyzer"})`.
    """

    definitions = tuple(definitions)
    for name in defaults:
        get_slot(name, definitions)
    return tuple(
        replace(definition, default=defaults[definition.name]) if definition.name in defaults else definition
        for definition in definitions
    )
