from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems nobody else references alive.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# EFFECT REQUESTS
# ============================================================================
EVENT_EFFECT_GRANT = "effect_grant"    # payload: effect_id=str, target_id=str, source=str|None, adapter=str|None
EVENT_EFFECT_REVOKE = "effect_revoke"  # payload: instance_id=str


# ============================================================================
# EFFECT LIFECYCLE
# ============================================================================
EVENT_EFFECT_APPLIED = "effect_applied"            # payload: instance_id=str|None, effect_id=str, target_id=str, adapter=str, applied=int, results=list[bool]
EVENT_EFFECT_APPLY_FAILED = "effect_apply_failed"  # payload: effect_id=str, target_id=str|None, reason=Reason
EVENT_EFFECT_REMOVED = "effect_removed"            # payload: instance_id=str, effect_id=str, target_id=str, removed=int
EVENT_EFFECT_REMOVE_FAILED = "effect_remove_failed"  # payload: instance_id=str, reason=Reason
EVENT_CHARACTER_EFFECTS_WIPED = "character_effects_wiped"  # payload: target_id=str, removed=int


# ============================================================================
# REGISTRATION
# ============================================================================
EVENT_EFFECT_REGISTERED = "effect_registered"    # payload: effect_id=str, effect_name=str
EVENT_ADAPTER_REGISTERED = "adapter_registered"  # payload: adapter_name=str
