from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hoard.adapters.base import EffectAdapter
from hoard.effects.results import Reason, RegisterResult
from hoard.events.bus import EVENT_ADAPTER_REGISTERED, EventBus

if TYPE_CHECKING:
    from hoard.components.character_sheet import CharacterSheet

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Ordered collection of sheet adapters.

    Lookup walks adapters in registration order. When no adapter accepts a
    sheet the first registered adapter is used as the default, unless the
    registry is ``strict``.
    """

    def __init__(self, event_bus: EventBus | None = None, *, strict: bool = False) -> None:
        self._adapters: list[EffectAdapter] = []
        self._event_bus = event_bus
        self.strict = strict

    def register_adapter(self, adapter: EffectAdapter) -> RegisterResult:
        if not isinstance(adapter, EffectAdapter) or not callable(getattr(adapter, "apply", None)):
            logger.warning("Attempted to register invalid adapter %r", adapter)
            return RegisterResult(ok=False, reason=Reason.INVALID_ADAPTER)
        name = adapter.adapter_name
        if self.get_adapter_by_name(name) is not None:
            logger.warning("Adapter '%s' already registered", name)
            return RegisterResult(ok=False, reason=Reason.DUPLICATE_NAME)
        self._adapters.append(adapter)
        logger.info("Registered adapter '%s'", name)
        if self._event_bus is not None:
            self._event_bus.emit(EVENT_ADAPTER_REGISTERED, adapter_name=name)
        return RegisterResult(ok=True)

    def find_adapter_for_character(self, sheet: CharacterSheet | None) -> EffectAdapter | None:
        if sheet is None or not self._adapters:
            return None
        for adapter in self._adapters:
            if not adapter.has_detector:
                return adapter
            try:
                matched = bool(adapter.detect(sheet))
            except Exception:
                logger.warning("Adapter '%s' detect failed", adapter.adapter_name, exc_info=True)
                continue
            if matched:
                return adapter
        if self.strict:
            return None
        fallback = self._adapters[0]
        logger.info("No adapter detected the sheet; defaulting to '%s'", fallback.adapter_name)
        return fallback

    def get_adapter_by_name(self, name: str | None) -> EffectAdapter | None:
        if not name:
            return None
        for adapter in self._adapters:
            if adapter.adapter_name == name:
                return adapter
        return None

    def list_adapters(self) -> list[str]:
        return [adapter.adapter_name for adapter in self._adapters]

    def __len__(self) -> int:
        return len(self._adapters)
