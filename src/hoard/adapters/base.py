from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from hoard.components.character_sheet import CharacterSheet
    from hoard.effects.patches import PatchOperation
    from hoard.effects.registry import EffectDefinition


class EffectAdapter(ABC):
    """Translates patch operations into concrete sheet mutations.

    ``detect`` and ``remove`` are optional capabilities. An adapter that
    leaves ``detect`` as ``None`` is compatible with every sheet; one that
    leaves ``remove`` as ``None`` cannot undo what it applied.
    """

    name: str = ""

    detect: Callable[[CharacterSheet], bool] | None = None
    remove: Callable[[CharacterSheet, PatchOperation, EffectDefinition], bool] | None = None

    @abstractmethod
    def apply(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        """Apply one patch; return ``True`` only when the sheet was changed as asked."""

    @property
    def adapter_name(self) -> str:
        return self.name or type(self).__name__

    @property
    def has_detector(self) -> bool:
        return callable(self.detect)

    @property
    def supports_remove(self) -> bool:
        return callable(self.remove)


class FunctionAdapter(EffectAdapter):
    """Adapter assembled from plain callables, for hosts with custom sheets."""

    def __init__(
        self,
        name: str,
        apply: Callable[[CharacterSheet, PatchOperation, EffectDefinition], bool],
        *,
        detect: Callable[[CharacterSheet], bool] | None = None,
        remove: Callable[[CharacterSheet, PatchOperation, EffectDefinition], bool] | None = None,
    ) -> None:
        self.name = name
        self._apply = apply
        self.detect = detect
        self.remove = remove

    def apply(self, sheet: CharacterSheet, patch: PatchOperation, effect: EffectDefinition) -> bool:
        return self._apply(sheet, patch, effect) is True
