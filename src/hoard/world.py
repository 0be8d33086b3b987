from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import esper

from hoard.adapters.ledger_adapter import LedgerAdapter
from hoard.adapters.registry import AdapterRegistry
from hoard.constants import WORLD_NAME
from hoard.effects.factory import ensure_default_effects_registered
from hoard.effects.registry import EffectRegistry
from hoard.events.bus import EventBus
from hoard.state.effect_state import EffectState, EffectStateStore
from hoard.systems.effect_engine_system import EffectEngine


@dataclass
class HoardWorld:
    """Handles to the registries and engine wired up by :func:`create_world`."""

    name: str
    event_bus: EventBus
    registry: EffectRegistry
    adapters: AdapterRegistry
    engine: EffectEngine


def create_world(
    event_bus: EventBus,
    *,
    world_name: str = WORLD_NAME,
    strict_adapters: bool = False,
    state_document: Mapping[str, Any] | None = None,
    state_path: Path | str | None = None,
    register_defaults: bool = True,
    rng: random.Random | None = None,
    reset: bool = True,
) -> HoardWorld:
    esper.switch_world(world_name)
    if reset:
        esper.clear_database()

    registry = EffectRegistry(event_bus)
    if register_defaults:
        ensure_default_effects_registered(registry)

    adapters = AdapterRegistry(event_bus, strict=strict_adapters)
    adapters.register_adapter(LedgerAdapter(rng=rng or random.Random()))

    store = EffectStateStore(state_path) if state_path is not None else None
    if state_document is not None:
        state = EffectState.from_dict(state_document)
    elif store is not None:
        state = store.load()
    else:
        state = EffectState()

    engine = EffectEngine(registry, adapters, event_bus, state, store=store)
    return HoardWorld(
        name=world_name,
        event_bus=event_bus,
        registry=registry,
        adapters=adapters,
        engine=engine,
    )
