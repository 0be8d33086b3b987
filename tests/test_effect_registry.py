from hoard.effects.patches import add_number, append_segment
from hoard.effects.registry import EffectDefinition, EffectRegistry
from hoard.effects.results import Reason
from hoard.events.bus import EVENT_EFFECT_REGISTERED, EventBus

from tests.helpers import make_definition


def test_register_and_get_returns_copy():
    registry = EffectRegistry()
    result = registry.register(make_definition("fire_boon", append_segment("global_damage_mod", "+1d6")))

    assert result.ok is True
    first = registry.get("fire_boon")
    second = registry.get("fire_boon")
    assert first is not None and second is not None
    assert first == second
    assert first is not second
    assert first.patches[0] is not second.patches[0]


def test_register_rejects_empty_id():
    registry = EffectRegistry()
    result = registry.register(EffectDefinition(effect_id="  ", name="Nameless"))

    assert result.ok is False
    assert result.reason is Reason.EMPTY_ID
    assert len(registry) == 0


def test_register_duplicate_keeps_first_definition():
    registry = EffectRegistry()
    registry.register(make_definition("whetstone", add_number("global_skill_mod", 1), name="First"))
    result = registry.register(make_definition("WHETSTONE", add_number("global_skill_mod", 5), name="Second"))

    assert result.ok is False
    assert result.reason is Reason.DUPLICATE_ID
    stored = registry.get("whetstone")
    assert stored is not None
    assert stored.name == "First"


def test_lookup_is_case_insensitive():
    registry = EffectRegistry()
    registry.register(make_definition("Frost_Boon", append_segment("global_damage_mod", 2)))

    assert registry.has("frost_boon")
    assert registry.get(" FROST_BOON ") is not None
    assert registry.get("unknown") is None


def test_list_preserves_registration_order():
    registry = EffectRegistry()
    registered = registry.register_many([
        make_definition("b_effect", add_number("a", 1)),
        make_definition("a_effect", add_number("a", 1)),
        make_definition("b_effect", add_number("a", 2)),
    ])

    assert registered == 2
    assert [definition.effect_id for definition in registry.list()] == ["b_effect", "a_effect"]


def test_register_emits_event():
    bus = EventBus()
    seen = []
    bus.subscribe(EVENT_EFFECT_REGISTERED, lambda sender, **payload: seen.append(payload))
    registry = EffectRegistry(bus)

    registry.register(make_definition("fire_boon", append_segment("global_damage_mod", "+1d6"), name="Fire Boon"))
    registry.register(make_definition("fire_boon", append_segment("global_damage_mod", "+1d6")))

    assert seen == [{"effect_id": "fire_boon", "effect_name": "Fire Boon"}]
