"""Core match and arena state data structures."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from .decisions import AllianceTerms, Decision
from .enums import ArenaStatus, EndReason, MatchStatus

EXTERNAL_ID_PREFIX = "ext_"


def new_id(prefix: str = "") -> str:
    """Generate a short random identifier, e.g. ``match_3f9c0a1b2d4e5f60``."""
    return f"{prefix}{uuid4().hex[:16]}"


@dataclass
class Modifiers:
    """Static stat bonuses resolved once when a match starts.

    Values are raw modifier points; the engine converts them at
    ``EngineConfig.modifier_scale`` points per HP or damage.
    """

    health: int = 0
    armor: int = 0
    attack: int = 0
    speed: int = 0

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "Modifiers":
        if not data:
            return cls()
        return cls(
            health=int(data.get("health") or 0),
            armor=int(data.get("armor") or 0),
            attack=int(data.get("attack") or 0),
            speed=int(data.get("speed") or 0),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "health": self.health,
            "armor": self.armor,
            "attack": self.attack,
            "speed": self.speed,
        }


@dataclass
class AgentDescriptor:
    """An agent as handed to an arena or to ``MatchEngine.start_match``.

    ``strategy`` is the agent's strategy provider: a callable taking the game
    view, or an object with a ``decide(view)`` method. Either may return the
    decision directly or an awaitable resolving to it.
    """

    strategy: Any
    id: str = field(default_factory=lambda: new_id("agent_"))
    owner: Optional[str] = None
    wallet: Optional[str] = None
    is_external: bool = False
    modifiers: Modifiers = field(default_factory=Modifiers)

    def __post_init__(self):
        # Accept a plain {"health": .., "attack": ..} bundle
        if not isinstance(self.modifiers, Modifiers):
            self.modifiers = Modifiers.from_mapping(self.modifiers)

    @property
    def external(self) -> bool:
        """External agents play fee-free and take a reduced payout."""
        return self.is_external or self.id.startswith(EXTERNAL_ID_PREFIX)


@dataclass
class Participant:
    """Represents an agent inside a running match."""

    id: str
    strategy: Any
    hp: int
    owner: Optional[str] = None
    wallet: Optional[str] = None
    is_external: bool = False
    modifiers: Modifiers = field(default_factory=Modifiers)
    alive: bool = True
    turns_alive: int = 0
    last_action: Optional[Decision] = None

    def to_public_dict(self) -> Dict[str, Any]:
        """Stats any participant may see about any other."""
        return {
            "id": self.id,
            "hp": self.hp,
            "alive": self.alive,
            "turns_alive": self.turns_alive,
            "last_action": self.last_action.to_dict() if self.last_action else None,
        }


@dataclass
class Proposal:
    """Alliance offer waiting for the target to accept."""

    proposer_id: str
    target_id: str
    terms: AllianceTerms = field(default_factory=AllianceTerms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.proposer_id,
            "to": self.target_id,
            "terms": self.terms.to_dict(),
        }


@dataclass
class Alliance:
    """Two-party pact; ``prize_share`` maps member id to percent and sums to 100."""

    id: str
    members: Tuple[str, str]
    prize_share: Dict[str, int]

    def has_member(self, agent_id: str) -> bool:
        return agent_id in self.members

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "members": list(self.members),
            "prize_share": dict(self.prize_share),
        }


@dataclass
class TurnRecord:
    """Append-only log entry for one turn: decisions plus resulting events."""

    turn: int
    decisions: Dict[str, Decision] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def events_of(self, event_type: Any) -> List[Dict[str, Any]]:
        value = getattr(event_type, "value", event_type)
        return [e for e in self.events if e["type"] == value]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "decisions": {aid: d.to_dict() for aid, d in self.decisions.items()},
            "events": [dict(e) for e in self.events],
        }


@dataclass
class PrizeAllocation:
    agent_id: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"agent_id": self.agent_id, "amount": self.amount}


@dataclass
class PrizeDistribution:
    """Settlement computed at match completion."""

    allocations: List[PrizeAllocation] = field(default_factory=list)
    redistribution_pool: int = 0

    @property
    def total_paid(self) -> int:
        return sum(a.amount for a in self.allocations)

    def amount_for(self, agent_id: str) -> int:
        return sum(a.amount for a in self.allocations if a.agent_id == agent_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distributions": [a.to_dict() for a in self.allocations],
            "redistribution_pool": self.redistribution_pool,
        }


@dataclass
class Match:
    """Complete state of one match."""

    match_id: str
    arena_id: str
    participants: List[Participant] = field(default_factory=list)
    prize_pool: int = 0
    current_turn: int = 1
    status: MatchStatus = MatchStatus.ACTIVE

    active_alliances: List[Alliance] = field(default_factory=list)
    pending_proposals: List[Proposal] = field(default_factory=list)
    history: List[TurnRecord] = field(default_factory=list)

    created_at: datetime = field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None

    # Set once the match completes
    winner_id: Optional[str] = None
    end_reason: Optional[EndReason] = None
    prize_distribution: Optional[PrizeDistribution] = None

    @property
    def alive_participants(self) -> List[Participant]:
        """Get list of alive participants, in join order."""
        return [p for p in self.participants if p.alive]

    @property
    def is_active(self) -> bool:
        return self.status == MatchStatus.ACTIVE

    def get_participant(self, agent_id: str) -> Optional[Participant]:
        """Get participant by ID."""
        for participant in self.participants:
            if participant.id == agent_id:
                return participant
        return None

    def find_alliance(self, alliance_id: str) -> Optional[Alliance]:
        for alliance in self.active_alliances:
            if alliance.id == alliance_id:
                return alliance
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "arena_id": self.arena_id,
            "status": self.status.value,
            "current_turn": self.current_turn,
            "prize_pool": self.prize_pool,
            "participants": [p.to_public_dict() for p in self.participants],
            "alliances": [a.to_dict() for a in self.active_alliances],
            "history": [t.to_dict() for t in self.history],
            "winner_id": self.winner_id,
            "end_reason": self.end_reason.value if self.end_reason else None,
            "created_at": self.created_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }


@dataclass
class MatchResult:
    """Observable outcome of a completed match, kept for audit and replay."""

    match_id: str
    arena_id: str
    total_turns: int
    winner_id: Optional[str]
    status: MatchStatus
    end_reason: Optional[EndReason]
    prize_distribution: Optional[PrizeDistribution] = None
    history: List[TurnRecord] = field(default_factory=list)

    @classmethod
    def from_match(cls, match: Match) -> "MatchResult":
        return cls(
            match_id=match.match_id,
            arena_id=match.arena_id,
            total_turns=len(match.history),
            winner_id=match.winner_id,
            status=match.status,
            end_reason=match.end_reason,
            prize_distribution=match.prize_distribution,
            history=list(match.history),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "arena_id": self.arena_id,
            "total_turns": self.total_turns,
            "winner_id": self.winner_id,
            "status": self.status.value,
            "end_reason": self.end_reason.value if self.end_reason else None,
            "prize": self.prize_distribution.to_dict() if self.prize_distribution else None,
            "history": [t.to_dict() for t in self.history],
        }


@dataclass
class Arena:
    """Tier-scoped matchmaking pool."""

    arena_id: str
    name: str
    entry_fee: int
    min_agents: int
    max_agents: int
    tier: Optional[str] = None
    prize_pool: int = 0
    status: ArenaStatus = ArenaStatus.OPEN
    match_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_accepting(self) -> bool:
        return self.status in (ArenaStatus.OPEN, ArenaStatus.LOBBY)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "arena_id": self.arena_id,
            "name": self.name,
            "tier": self.tier,
            "entry_fee": self.entry_fee,
            "min_agents": self.min_agents,
            "max_agents": self.max_agents,
            "prize_pool": self.prize_pool,
            "status": self.status.value,
            "match_id": self.match_id,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Lobby:
    """Agents queued for an arena plus its countdown handle."""

    arena_id: str
    agents: List[AgentDescriptor] = field(default_factory=list)
    timer: Optional[asyncio.TimerHandle] = None
    launch_task: Optional["asyncio.Task[Any]"] = None

    def has_agent(self, agent_id: str) -> bool:
        return any(a.id == agent_id for a in self.agents)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "arena_id": self.arena_id,
            "agents": [{"id": a.id, "owner": a.owner} for a in self.agents],
            "count": len(self.agents),
        }
