from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator


@dataclass(slots=True)
class CharacterSheet:
    """Named attribute store for a character.

    Attribute values are kept JSON-compatible (strings, numbers, lists and
    dicts) so the whole sheet, ledgers included, can be saved as a document.
    A missing attribute reads as ``""`` which matches how the sheet reports
    blank fields.
    """

    attributes: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = "") -> Any:
        value = self.attributes.get(name)
        if value is None:
            return default
        return value

    def set(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def has(self, name: str) -> bool:
        return name in self.attributes

    def delete(self, name: str) -> bool:
        if name not in self.attributes:
            return False
        del self.attributes[name]
        return True

    def names_with_prefix(self, prefix: str) -> list[str]:
        return [name for name in self.attributes if name.startswith(prefix)]

    def snapshot(self) -> Dict[str, Any]:
        return {name: _copy_value(value) for name, value in self.attributes.items()}

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.attributes))


def _copy_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _copy_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copy_value(item) for item in value]
    return value
