"""Sequential execution of the plugins configured for one slot."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PluginPipeline(Sequence):
    slot: str
    steps: tuple[Callable[..., Any], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        for idx, step in enumerate(self.steps):
            if not callable(step):
                raise TypeError(
                    f"PluginPipeline step must be callable (slot={self.slot}, index={idx}, type={type(step).__name__})"
                )

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Callable[..., Any]]:
        return iter(self.steps)

    def __getitem__(self, index):  # type: ignore[override]
        return self.steps[index]

    async def __call__(self, context: Any = None) -> list[Any]:
        results: list[Any] = []
        total = len(self.steps)
        for idx, step in enumerate(self.steps):
            logger.debug("Run plugin %s (%d/%d)", self.slot, idx + 1, total)
            try:
                results.append(await step(context))
            except Exception as exc:
                _attach_plugin_error(exc, slot=self.slot, index=idx)
                raise
        return results


def _attach_plugin_error(exc: Exception, *, slot: str, index: int) -> None:
    for attr, value in (("plugin_slot", slot), ("plugin_index", index)):
        if hasattr(exc, attr):
            continue
        try:
            setattr(exc, attr, value)
        except AttributeError:
            logger.debug("Cannot annotate %s with %s", type(exc).__name__, attr)
