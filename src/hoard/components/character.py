from dataclasses import dataclass


@dataclass
class Character:
    """Identifies a character record that effects can target."""
    character_id: str
    name: str
    description: str = ""
