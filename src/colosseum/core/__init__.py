"""Match orchestration engine and arena lifecycle."""

from .arena_manager import ArenaManager
from .config import ArenaConfig, EngineConfig, TierConfig, TIER_CONFIG
from .decisions import (
    AcceptAllianceDecision,
    AllianceTerms,
    AttackDecision,
    BetrayAllianceDecision,
    Decision,
    DefendDecision,
    ProposeAllianceDecision,
    parse_decision,
)
from .enums import Action, ArenaStatus, EndReason, EngineEvent, MatchStatus, TurnEventType
from .events import EventBus
from .game_engine import MatchEngine
from .match_state import (
    AgentDescriptor,
    Alliance,
    Arena,
    Match,
    MatchResult,
    Modifiers,
    Participant,
    PrizeDistribution,
    TurnRecord,
)
from .store import ColosseumStore

__all__ = [
    "ArenaManager",
    "ArenaConfig",
    "EngineConfig",
    "TierConfig",
    "TIER_CONFIG",
    "AcceptAllianceDecision",
    "AllianceTerms",
    "AttackDecision",
    "BetrayAllianceDecision",
    "Decision",
    "DefendDecision",
    "ProposeAllianceDecision",
    "parse_decision",
    "Action",
    "ArenaStatus",
    "EndReason",
    "EngineEvent",
    "MatchStatus",
    "TurnEventType",
    "EventBus",
    "MatchEngine",
    "AgentDescriptor",
    "Alliance",
    "Arena",
    "Match",
    "MatchResult",
    "Modifiers",
    "Participant",
    "PrizeDistribution",
    "TurnRecord",
    "ColosseumStore",
]
