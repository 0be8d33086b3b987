from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping

from hoard.effects.patches import PatchOperation
from hoard.effects.results import Reason, RegisterResult
from hoard.events.bus import EVENT_EFFECT_REGISTERED, EventBus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EffectDefinition:
    """Static description of a named bundle of patch operations.

    Definitions are immutable once registered. Active instances keep their
    own copy of the patches they applied, so a definition changing later
    never affects how an existing instance is removed.
    """

    effect_id: str
    name: str
    patches: tuple[PatchOperation, ...] = ()
    source: str = ""
    description: str = ""
    tags: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def copy(self) -> EffectDefinition:
        return replace(
            self,
            patches=tuple(patch.copy() for patch in self.patches),
            tags=tuple(self.tags),
            metadata=dict(self.metadata),
        )


def normalize_effect_id(effect_id: Any) -> str:
    if effect_id is None:
        return ""
    return str(effect_id).strip().lower()


class EffectRegistry:
    """In-memory collection of effect definitions."""

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._definitions: dict[str, EffectDefinition] = {}
        self._event_bus = event_bus

    def register(self, definition: EffectDefinition) -> RegisterResult:
        key = normalize_effect_id(definition.effect_id if definition is not None else None)
        if not key:
            logger.warning("Rejected effect definition without an id")
            return RegisterResult(ok=False, reason=Reason.EMPTY_ID)
        if key in self._definitions:
            logger.warning("Effect '%s' already registered; keeping the first definition", key)
            return RegisterResult(ok=False, reason=Reason.DUPLICATE_ID)
        self._definitions[key] = definition.copy()
        logger.info("Registered effect '%s' (%d patches)", key, len(definition.patches))
        if self._event_bus is not None:
            self._event_bus.emit(EVENT_EFFECT_REGISTERED, effect_id=key, effect_name=definition.name)
        return RegisterResult(ok=True)

    def register_many(self, definitions: Iterable[EffectDefinition]) -> int:
        registered = 0
        for definition in definitions:
            if self.register(definition).ok:
                registered += 1
        return registered

    def get(self, effect_id: str) -> EffectDefinition | None:
        definition = self._definitions.get(normalize_effect_id(effect_id))
        return definition.copy() if definition is not None else None

    def has(self, effect_id: str) -> bool:
        return normalize_effect_id(effect_id) in self._definitions

    def list(self) -> list[EffectDefinition]:
        return [definition.copy() for definition in self._definitions.values()]

    def __len__(self) -> int:
        return len(self._definitions)
