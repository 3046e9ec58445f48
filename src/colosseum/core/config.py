"""Engine and arena configuration dataclasses.

Defaults follow the live Colosseum deployment: 100 starting HP with a soft
cap of 105, 20 damage per clean hit (10 against a defending target) and
+5 HP recovered at the end of every turn.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


@dataclass
class EngineConfig:
    """Configuration for combat rules and the turn pipeline."""

    # ===========================================
    # HIT POINTS
    # ===========================================
    starting_hp: int = 100
    max_hp: int = 105  # Recovery never pushes HP above this ceiling
    hp_recovery: int = 5  # Applied to every living agent after combat

    # ===========================================
    # COMBAT
    # ===========================================
    attack_damage: int = 20  # Clean hit (target not defending) and betrayal strike
    defended_damage: int = 10  # Hit against a defending target
    # Modifier points per point of HP / damage / armor
    # e.g. attack modifier 100 -> +10 damage
    modifier_scale: int = 10

    # ===========================================
    # DECISIONS
    # ===========================================
    decision_timeout: float = 30.0  # Seconds, enforced per agent
    history_window: int = 5  # Turn records exposed to strategies

    # ===========================================
    # MATCH SIZE
    # ===========================================
    min_agents: int = 2
    max_agents: int = 16

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from ``COLOSSEUM_*`` environment variables."""
        defaults = cls()
        return cls(
            starting_hp=_env_int("COLOSSEUM_STARTING_HP", defaults.starting_hp),
            max_hp=_env_int("COLOSSEUM_MAX_HP", defaults.max_hp),
            hp_recovery=_env_int("COLOSSEUM_HP_RECOVERY", defaults.hp_recovery),
            attack_damage=_env_int("COLOSSEUM_ATTACK_DAMAGE", defaults.attack_damage),
            defended_damage=_env_int("COLOSSEUM_DEFENDED_DAMAGE", defaults.defended_damage),
            modifier_scale=_env_int("COLOSSEUM_MODIFIER_SCALE", defaults.modifier_scale),
            decision_timeout=_env_float("COLOSSEUM_DECISION_TIMEOUT", defaults.decision_timeout),
            history_window=_env_int("COLOSSEUM_HISTORY_WINDOW", defaults.history_window),
            min_agents=_env_int("COLOSSEUM_MIN_AGENTS", defaults.min_agents),
            max_agents=_env_int("COLOSSEUM_MAX_AGENTS", defaults.max_agents),
        )


@dataclass
class ArenaConfig:
    """Fallback values for arenas created without a tier."""

    min_agents: int = 2
    max_agents: int = 8
    entry_fee: int = 100
    countdown_seconds: float = 15.0  # Lobby countdown once quorum is reached
    max_turns: int = 100  # Force-end cutoff

    @classmethod
    def from_env(cls) -> "ArenaConfig":
        """Build a config from ``COLOSSEUM_ARENA_*`` environment variables."""
        defaults = cls()
        return cls(
            min_agents=_env_int("COLOSSEUM_ARENA_MIN_AGENTS", defaults.min_agents),
            max_agents=_env_int("COLOSSEUM_ARENA_MAX_AGENTS", defaults.max_agents),
            entry_fee=_env_int("COLOSSEUM_ARENA_ENTRY_FEE", defaults.entry_fee),
            countdown_seconds=_env_float(
                "COLOSSEUM_ARENA_COUNTDOWN_SECONDS", defaults.countdown_seconds
            ),
            max_turns=_env_int("COLOSSEUM_ARENA_MAX_TURNS", defaults.max_turns),
        )


@dataclass(frozen=True)
class TierConfig:
    """Static definition of an arena tier."""

    name: str
    entry_fee: int
    min_agents: int
    max_agents: int


# One open arena per tier is kept available at all times
TIER_CONFIG: Dict[str, TierConfig] = {
    "bronze": TierConfig(name="Bronze Arena", entry_fee=1, min_agents=2, max_agents=8),
    "silver": TierConfig(name="Silver Arena", entry_fee=10, min_agents=2, max_agents=6),
    "gold": TierConfig(name="Gold Arena", entry_fee=100, min_agents=2, max_agents=4),
    "platinum": TierConfig(name="Platinum Arena", entry_fee=50, min_agents=2, max_agents=4),
    "diamond": TierConfig(name="Diamond Arena", entry_fee=250, min_agents=2, max_agents=2),
}


def get_tier(tier: Optional[str]) -> Optional[TierConfig]:
    """Look up a tier definition, returning None for unknown or missing tiers."""
    if not tier:
        return None
    return TIER_CONFIG.get(tier)
