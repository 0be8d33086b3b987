from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping

from hoard.effects.patches import PatchOperation
from hoard.effects.registry import EffectDefinition
from hoard.utils.json_safe import to_json_safe

logger = logging.getLogger(__name__)


class EffectStateError(RuntimeError):
    """Raised by a strict store when the saved document cannot be read."""


@dataclass(frozen=True, slots=True)
class EffectInstance:
    """Record of one successful apply, kept so the effect can be undone."""

    instance_id: str
    effect_id: str
    effect_name: str
    target_id: str
    adapter: str
    patches: tuple[PatchOperation, ...] = ()
    results: tuple[bool, ...] = ()
    created_at: str = ""
    source: str = ""

    def copy(self) -> EffectInstance:
        return replace(
            self,
            patches=tuple(patch.copy() for patch in self.patches),
            results=tuple(self.results),
        )

    def as_definition(self) -> EffectDefinition:
        """Rebuild the definition removal runs against, from the stored patches."""

        return EffectDefinition(
            effect_id=self.effect_id,
            name=self.effect_name,
            patches=tuple(patch.copy() for patch in self.patches),
            source=self.source,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "effect_id": self.effect_id,
            "effect_name": self.effect_name,
            "target_id": self.target_id,
            "adapter": self.adapter,
            "patches": [patch.to_dict() for patch in self.patches],
            "results": [bool(ok) for ok in self.results],
            "created_at": self.created_at,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EffectInstance:
        return cls(
            instance_id=str(data["instance_id"]),
            effect_id=str(data.get("effect_id") or ""),
            effect_name=str(data.get("effect_name") or ""),
            target_id=str(data.get("target_id") or ""),
            adapter=str(data.get("adapter") or ""),
            patches=tuple(PatchOperation.from_dict(item) for item in data.get("patches") or ()),
            results=tuple(bool(ok) for ok in data.get("results") or ()),
            created_at=str(data.get("created_at") or ""),
            source=str(data.get("source") or ""),
        )


@dataclass
class EffectState:
    """Instance table, application order and per-target index."""

    instances: Dict[str, EffectInstance] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    index: Dict[str, List[str]] = field(default_factory=dict)

    def add(self, instance: EffectInstance) -> None:
        self.instances[instance.instance_id] = instance
        if instance.instance_id not in self.order:
            self.order.append(instance.instance_id)
        indexed = self.index.setdefault(instance.target_id, [])
        if instance.instance_id not in indexed:
            indexed.append(instance.instance_id)

    def get(self, instance_id: str) -> EffectInstance | None:
        return self.instances.get(instance_id)

    def pop(self, instance_id: str) -> EffectInstance | None:
        instance = self.instances.pop(instance_id, None)
        if instance_id in self.order:
            self.order.remove(instance_id)
        for target_id in list(self.index):
            ids = self.index[target_id]
            if instance_id in ids:
                ids.remove(instance_id)
            if not ids:
                del self.index[target_id]
        return instance

    def for_target(self, target_id: str) -> list[EffectInstance]:
        return [
            self.instances[instance_id]
            for instance_id in self.index.get(target_id, [])
            if instance_id in self.instances
        ]

    def ordered(self) -> list[EffectInstance]:
        return [self.instances[instance_id] for instance_id in self.order if instance_id in self.instances]

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self.instances

    def __len__(self) -> int:
        return len(self.instances)

    def to_dict(self) -> dict[str, Any]:
        return to_json_safe({
            "instances": {instance_id: instance.to_dict() for instance_id, instance in self.instances.items()},
            "order": list(self.order),
            "index": {target_id: list(ids) for target_id, ids in self.index.items()},
        })

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> EffectState:
        state = cls()
        if not data:
            return state
        raw_instances = data.get("instances") or {}
        for instance_id, raw in raw_instances.items():
            try:
                instance = EffectInstance.from_dict({"instance_id": instance_id, **raw})
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping unreadable effect instance '%s'", instance_id)
                continue
            state.instances[instance.instance_id] = instance
        state.order = [instance_id for instance_id in data.get("order") or () if instance_id in state.instances]
        for instance_id in state.instances:
            if instance_id not in state.order:
                state.order.append(instance_id)
        for target_id, ids in (data.get("index") or {}).items():
            kept = [instance_id for instance_id in ids if instance_id in state.instances]
            if kept:
                state.index[str(target_id)] = kept
        # Instances missing from the saved index are re-indexed by their own target.
        for instance in state.ordered():
            indexed = state.index.setdefault(instance.target_id, [])
            if instance.instance_id not in indexed:
                indexed.append(instance.instance_id)
        return state


class EffectStateStore:
    """Loads and saves the engine document as JSON on disk."""

    def __init__(self, path: Path | str, *, strict: bool = False) -> None:
        self.path = Path(path)
        self.strict = strict

    def load(self) -> EffectState:
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return EffectState()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            if self.strict:
                raise EffectStateError(f"Unreadable effect state at {self.path}") from exc
            logger.warning("Effect state at %s is unreadable; starting empty", self.path)
            return EffectState()
        if not isinstance(payload, dict):
            if self.strict:
                raise EffectStateError(f"Effect state at {self.path} is not an object")
            logger.warning("Effect state at %s is not an object; starting empty", self.path)
            return EffectState()
        return EffectState.from_dict(payload)

    def save(self, state: EffectState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(state.to_dict(), handle, indent=2)
