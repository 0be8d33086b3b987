from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import List

from hoard.adapters.base import EffectAdapter
from hoard.adapters.registry import AdapterRegistry
from hoard.components.character_sheet import CharacterSheet
from hoard.constants import INSTANCE_ID_PREFIX
from hoard.effects.patches import PatchOperation, resolve_ledger_key
from hoard.effects.registry import EffectDefinition, EffectRegistry, normalize_effect_id
from hoard.effects.results import ApplyResult, PatchResult, Reason, RemoveResult
from hoard.events.bus import (
    EVENT_CHARACTER_EFFECTS_WIPED,
    EVENT_EFFECT_APPLIED,
    EVENT_EFFECT_APPLY_FAILED,
    EVENT_EFFECT_GRANT,
    EVENT_EFFECT_REMOVE_FAILED,
    EVENT_EFFECT_REMOVED,
    EVENT_EFFECT_REVOKE,
    EventBus,
)
from hoard.state.effect_state import EffectInstance, EffectState, EffectStateStore
from hoard.utils.characters import find_character_sheet

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_instance_id() -> str:
    return INSTANCE_ID_PREFIX + uuid.uuid4().hex


class EffectEngine:
    """Applies registered effects to character sheets and undoes them by instance id.

    Every successful apply produces an :class:`EffectInstance` holding the
    exact patches that were attempted, ledger keys included. Removal replays
    those stored patches through the adapter that applied them, so it never
    depends on the current registry contents.
    """

    def __init__(
        self,
        registry: EffectRegistry,
        adapters: AdapterRegistry,
        event_bus: EventBus,
        state: EffectState | None = None,
        *,
        character_lookup: Callable[[str], CharacterSheet | None] | None = None,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], str] | None = None,
        store: EffectStateStore | None = None,
    ) -> None:
        self.registry = registry
        self.adapters = adapters
        self.event_bus = event_bus
        self.state = state if state is not None else EffectState()
        self._character_lookup = character_lookup or find_character_sheet
        self._id_factory = id_factory or _new_instance_id
        self._clock = clock or _utc_now
        self._store = store
        self.event_bus.subscribe(EVENT_EFFECT_GRANT, self._on_effect_grant)
        self.event_bus.subscribe(EVENT_EFFECT_REVOKE, self._on_effect_revoke)

    # Apply / remove -----------------------------------------------------

    def apply(
        self,
        effect_id: str,
        target_id: str | None,
        *,
        adapter: EffectAdapter | str | None = None,
        definition: EffectDefinition | None = None,
        persist: bool = True,
        source: str | None = None,
    ) -> ApplyResult:
        if not target_id:
            return self._apply_failed(effect_id, target_id, Reason.NO_TARGET)
        sheet = self._character_lookup(target_id)
        if sheet is None:
            return self._apply_failed(effect_id, target_id, Reason.NO_CHARACTER)

        effect = definition.copy() if definition is not None else self.registry.get(effect_id)
        if effect is None:
            return self._apply_failed(effect_id, target_id, Reason.MISSING_EFFECT)

        chosen = self._resolve_adapter(adapter, sheet)
        if chosen is None:
            return self._apply_failed(effect.effect_id, target_id, Reason.NO_ADAPTER)

        patches = [patch for patch in effect.patches if patch is not None]
        if not patches:
            return self._apply_failed(effect.effect_id, target_id, Reason.NO_OPERATIONS)

        attempted: List[PatchOperation] = []
        outcomes: List[PatchResult] = []
        for index, patch in enumerate(patches):
            resolved = patch.with_ledger_key(resolve_ledger_key(patch, effect))
            ok = self._call_adapter(chosen.apply, sheet, resolved, effect, "apply")
            attempted.append(resolved)
            outcomes.append(PatchResult(index=index, kind=resolved.kind.value, target_field=resolved.target_field, ok=ok))

        applied = sum(1 for outcome in outcomes if outcome.ok)
        if applied == 0:
            return self._apply_failed(effect.effect_id, target_id, Reason.NO_SUCCESS, tuple(outcomes))

        instance_id: str | None = None
        if persist:
            instance = EffectInstance(
                instance_id=self._unique_instance_id(),
                effect_id=normalize_effect_id(effect.effect_id),
                effect_name=effect.name,
                target_id=target_id,
                adapter=chosen.adapter_name,
                patches=tuple(patch.copy() for patch in attempted),
                results=tuple(outcome.ok for outcome in outcomes),
                created_at=self._clock(),
                source=source if source is not None else effect.source,
            )
            self.state.add(instance)
            instance_id = instance.instance_id
            self.save()

        logger.info(
            "Applied '%s' to '%s' via '%s' (%d/%d patches)",
            effect.effect_id,
            target_id,
            chosen.adapter_name,
            applied,
            len(outcomes),
        )
        self.event_bus.emit(
            EVENT_EFFECT_APPLIED,
            instance_id=instance_id,
            effect_id=normalize_effect_id(effect.effect_id),
            target_id=target_id,
            adapter=chosen.adapter_name,
            applied=applied,
            results=[outcome.ok for outcome in outcomes],
        )
        return ApplyResult(ok=True, instance_id=instance_id, applied=applied, results=tuple(outcomes))

    def remove(self, instance_id: str | None) -> RemoveResult:
        instance = self.state.get(instance_id) if instance_id else None
        if instance is None:
            return self._remove_failed(instance_id, Reason.MISSING_INSTANCE)

        adapter = self.adapters.get_adapter_by_name(instance.adapter)
        if adapter is None or not adapter.supports_remove:
            self._drop(instance.instance_id)
            return self._remove_failed(instance.instance_id, Reason.NO_ADAPTER_REMOVE)

        sheet = self._character_lookup(instance.target_id)
        if sheet is None:
            self._drop(instance.instance_id)
            return self._remove_failed(instance.instance_id, Reason.NO_CHARACTER)

        effect = instance.as_definition()
        outcomes: List[PatchResult] = []
        for index, patch in enumerate(instance.patches):
            # Patches that never applied left nothing behind to undo.
            if index < len(instance.results) and not instance.results[index]:
                continue
            ok = self._call_adapter(adapter.remove, sheet, patch, effect, "remove")
            outcomes.append(PatchResult(index=index, kind=patch.kind.value, target_field=patch.target_field, ok=ok))

        self._drop(instance.instance_id)
        removed = sum(1 for outcome in outcomes if outcome.ok)
        logger.info("Removed instance '%s' of '%s' from '%s'", instance.instance_id, instance.effect_id, instance.target_id)
        self.event_bus.emit(
            EVENT_EFFECT_REMOVED,
            instance_id=instance.instance_id,
            effect_id=instance.effect_id,
            target_id=instance.target_id,
            removed=removed,
        )
        return RemoveResult(ok=True, removed=removed, results=tuple(outcomes))

    def wipe_character(self, target_id: str | None) -> int:
        """Remove every instance indexed under ``target_id``; returns how many were dropped."""

        if not target_id:
            return 0
        removed = 0
        for instance in list(self.state.for_target(target_id)):
            self.remove(instance.instance_id)
            removed += 1
        if removed:
            logger.info("Wiped %d effect(s) from '%s'", removed, target_id)
        self.event_bus.emit(EVENT_CHARACTER_EFFECTS_WIPED, target_id=target_id, removed=removed)
        return removed

    # Reads --------------------------------------------------------------

    def get_active_effects_for_character(self, target_id: str | None) -> list[EffectInstance]:
        if not target_id:
            return []
        return [instance.copy() for instance in self.state.for_target(target_id)]

    def list_active_effects(self) -> list[EffectInstance]:
        return [instance.copy() for instance in self.state.ordered()]

    def get_instance(self, instance_id: str | None) -> EffectInstance | None:
        instance = self.state.get(instance_id) if instance_id else None
        return instance.copy() if instance is not None else None

    def save(self) -> None:
        if self._store is None:
            return
        self._store.save(self.state)

    # Event handlers -----------------------------------------------------

    def _on_effect_grant(self, sender, **payload) -> None:
        effect_id = payload.get("effect_id")
        if not effect_id:
            return
        self.apply(
            effect_id,
            payload.get("target_id"),
            adapter=payload.get("adapter"),
            source=payload.get("source"),
        )

    def _on_effect_revoke(self, sender, **payload) -> None:
        instance_id = payload.get("instance_id")
        if not instance_id:
            return
        self.remove(instance_id)

    # Internals ----------------------------------------------------------

    def _resolve_adapter(self, override: EffectAdapter | str | None, sheet: CharacterSheet) -> EffectAdapter | None:
        if isinstance(override, EffectAdapter):
            return override
        if override:
            return self.adapters.get_adapter_by_name(override)
        return self.adapters.find_adapter_for_character(sheet)

    @staticmethod
    def _call_adapter(handler, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition, action: str) -> bool:
        try:
            return handler(sheet, patch, effect) is True
        except Exception:
            logger.exception(
                "Adapter %s failed for '%s' patch on '%s' (effect '%s')",
                action,
                patch.kind.value,
                patch.target_field,
                effect.effect_id,
            )
            return False

    def _unique_instance_id(self) -> str:
        instance_id = self._id_factory()
        while instance_id in self.state:
            instance_id = self._id_factory()
        return instance_id

    def _drop(self, instance_id: str) -> None:
        self.state.pop(instance_id)
        self.save()

    def _apply_failed(
        self,
        effect_id: str | None,
        target_id: str | None,
        reason: Reason,
        results: tuple[PatchResult, ...] = (),
    ) -> ApplyResult:
        logger.warning("Could not apply '%s' to '%s': %s", effect_id, target_id, reason)
        self.event_bus.emit(EVENT_EFFECT_APPLY_FAILED, effect_id=effect_id, target_id=target_id, reason=reason)
        return ApplyResult.failed(reason, results)

    def _remove_failed(self, instance_id: str | None, reason: Reason) -> RemoveResult:
        logger.warning("Could not remove instance '%s': %s", instance_id, reason)
        self.event_bus.emit(EVENT_EFFECT_REMOVE_FAILED, instance_id=instance_id, reason=reason)
        return RemoveResult.failed(reason)
