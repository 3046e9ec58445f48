"""Enumerations for match, arena and event states."""

from enum import Enum


class MatchStatus(str, Enum):
    """Lifecycle states of a single match."""

    ACTIVE = "active"
    COMPLETED = "completed"


class ArenaStatus(str, Enum):
    """Lifecycle states of an arena between and during matches."""

    OPEN = "open"
    LOBBY = "lobby"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class Action(str, Enum):
    """Decision kinds a participant can submit for a turn."""

    DEFEND = "defend"
    ATTACK = "attack"
    PROPOSE_ALLIANCE = "propose_alliance"
    ACCEPT_ALLIANCE = "accept_alliance"
    BETRAY_ALLIANCE = "betray_alliance"


class TurnEventType(str, Enum):
    """Entries recorded in a turn's combat log."""

    DEFEND = "defend"
    PROPOSE_ALLIANCE = "propose_alliance"
    ALLIANCE_FORMED = "alliance_formed"
    ATTACK = "attack"
    BETRAYAL = "betrayal"
    RECOVERY = "recovery"
    DEATH = "death"
    MATCH_END = "match_end"


class EngineEvent(str, Enum):
    """Notifications published to event bus subscribers."""

    MATCH_STARTED = "match_started"
    MATCH_ENDED = "match_ended"
    AGENT_DIED = "agent_died"
    ALLIANCE_FORMED = "alliance_formed"
    BETRAYAL = "betrayal"
    PRIZE_DISTRIBUTED = "prize_distributed"
    ARENA_CREATED = "arena_created"
    AGENT_JOINED = "agent_joined"
    AGENT_LEFT = "agent_left"
    COUNTDOWN_STARTED = "countdown_started"
    COUNTDOWN_CANCELLED = "countdown_cancelled"
    MATCH_LAUNCHING = "match_launching"
    MATCH_COMPLETED = "match_completed"
    MATCH_ERROR = "match_error"
    TURN_COMPLETED = "turn_completed"


class EndReason(str, Enum):
    """How a match reached its terminal state."""

    ELIMINATION = "elimination"
    DRAW = "draw"
    TURN_LIMIT = "turn_limit"
