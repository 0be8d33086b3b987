from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Reason(str, Enum):
    """Failure reasons reported by registries and the engine."""

    EMPTY_ID = "empty-id"
    DUPLICATE_ID = "duplicate-id"
    INVALID_ADAPTER = "invalid-adapter"
    DUPLICATE_NAME = "duplicate-name"
    MISSING_EFFECT = "missing-effect"
    NO_TARGET = "no-target"
    NO_CHARACTER = "no-character"
    NO_ADAPTER = "no-adapter"
    NO_OPERATIONS = "no-operations"
    NO_SUCCESS = "no-success"
    MISSING_INSTANCE = "missing-instance"
    NO_ADAPTER_REMOVE = "no-adapter-remove"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class RegisterResult:
    ok: bool
    reason: Reason | None = None


@dataclass(frozen=True, slots=True)
class PatchResult:
    """Outcome of a single patch inside an apply or remove call."""

    index: int
    kind: str
    target_field: str
    ok: bool


@dataclass(frozen=True, slots=True)
class ApplyResult:
    ok: bool
    instance_id: str | None = None
    applied: int = 0
    results: tuple[PatchResult, ...] = field(default_factory=tuple)
    reason: Reason | None = None

    @classmethod
    def failed(cls, reason: Reason, results: tuple[PatchResult, ...] = ()) -> ApplyResult:
        return cls(ok=False, results=results, reason=reason)


@dataclass(frozen=True, slots=True)
class RemoveResult:
    ok: bool
    removed: int = 0
    results: tuple[PatchResult, ...] = field(default_factory=tuple)
    reason: Reason | None = None

    @classmethod
    def failed(cls, reason: Reason) -> RemoveResult:
        return cls(ok=False, reason=reason)
