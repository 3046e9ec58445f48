"""Combat resolution: damage, HP recovery and starting HP."""

from typing import Any, Dict, Iterable, Optional

from .config import EngineConfig
from .enums import TurnEventType
from .match_state import Modifiers, Participant


def starting_hp(modifiers: Modifiers, config: EngineConfig) -> int:
    """Starting HP including the health modifier, capped at ``max_hp``."""
    bonus = modifiers.health // config.modifier_scale
    return min(config.starting_hp + bonus, config.max_hp)


def compute_damage(
    attacker: Participant,
    defender: Participant,
    defending: bool,
    config: EngineConfig,
) -> int:
    """Damage a single attack deals, never less than 1.

    Every ``modifier_scale`` attack points on the attacker add one damage and
    every ``modifier_scale`` armor points on the defender remove one.
    """
    base = config.defended_damage if defending else config.attack_damage
    base += attacker.modifiers.attack // config.modifier_scale
    reduction = defender.modifiers.armor // config.modifier_scale
    return max(1, base - reduction)


def resolve_attack(
    attacker: Optional[Participant],
    defender: Optional[Participant],
    defending: bool,
    config: EngineConfig,
) -> Optional[Dict[str, Any]]:
    """Apply one attack and return its turn event.

    Returns None (and changes nothing) when either side is missing or dead.
    HP may go negative here; death marking floors it later in the turn.
    """
    if attacker is None or defender is None:
        return None
    if not attacker.alive or not defender.alive:
        return None

    damage = compute_damage(attacker, defender, defending, config)
    defender.hp -= damage

    return {
        "type": TurnEventType.ATTACK.value,
        "attacker_id": attacker.id,
        "defender_id": defender.id,
        "damage": damage,
        "defended": defending,
        "remaining_hp": defender.hp,
    }


def apply_recovery(participants: Iterable[Participant], config: EngineConfig) -> None:
    """Restore HP to every living participant with HP left, capped at ``max_hp``."""
    for participant in participants:
        if participant.alive and participant.hp > 0:
            participant.hp = max(0, min(participant.hp + config.hp_recovery, config.max_hp))
