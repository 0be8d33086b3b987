"""Entry point for a small Hoard effects walkthrough.

Sets up the world, event bus and engine, then grants and revokes a couple of
boons on a sample character so the sheet changes can be followed in the log.
"""
from __future__ import annotations

import logging
import sys

from hoard.events.bus import EVENT_EFFECT_APPLIED, EVENT_EFFECT_REMOVED, EventBus
from hoard.utils.characters import create_character, find_character_sheet
from hoard.world import create_world

logger = logging.getLogger(__name__)


def configure_logging(level: int | str = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main() -> None:
    configure_logging()
    bus = EventBus()
    hoard = create_world(bus)
    bus.subscribe(EVENT_EFFECT_APPLIED, lambda sender, **payload: logger.info("applied: %s", payload))
    bus.subscribe(EVENT_EFFECT_REMOVED, lambda sender, **payload: logger.info("removed: %s", payload))

    create_character("pc_fiora", "Fiora", {"pb": 2, "global_damage_mod": ""})
    fire = hoard.engine.apply("fire_boon", "pc_fiora")
    frost = hoard.engine.apply("frost_boon", "pc_fiora")
    sheet = find_character_sheet("pc_fiora")
    logger.info("damage mod after both boons: %r", sheet.get("global_damage_mod"))

    hoard.engine.remove(fire.instance_id)
    logger.info("damage mod after removing fire: %r", sheet.get("global_damage_mod"))
    hoard.engine.remove(frost.instance_id)
    logger.info("damage mod after removing frost: %r", sheet.get("global_damage_mod"))


if __name__ == "__main__":
    main()
