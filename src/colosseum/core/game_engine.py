"""Match engine: match setup, the turn pipeline and match termination.

Each turn runs the collected decisions through eight ordered stages:

1. Mark defences
2. Queue alliance proposals
3. Accept alliances
4. Apply attacks
5. Process betrayals
6. HP recovery
7. Mark dead agents
8. Check match end
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set

from .alliances import AllianceLedger
from .combat import apply_recovery, resolve_attack, starting_hp
from .config import EngineConfig
from .decision_collector import DecisionCollector, build_game_view
from .decisions import (
    AcceptAllianceDecision,
    AttackDecision,
    BetrayAllianceDecision,
    Decision,
    DefendDecision,
    ProposeAllianceDecision,
)
from .enums import EndReason, EngineEvent, MatchStatus, TurnEventType
from .errors import MatchNotActiveError, MatchSetupError
from .events import EventBus
from .match_state import (
    AgentDescriptor,
    Match,
    Participant,
    PrizeDistribution,
    TurnRecord,
    new_id,
)
from .prizes import PrizeDistributor
from .store import ColosseumStore


logger = logging.getLogger(__name__)


class MatchEngine:
    """Runs matches turn by turn.

    The engine owns no arena logic; ``ArenaManager`` decides when to start a
    match and how many turns to drive.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        store: Optional[ColosseumStore] = None,
        events: Optional[EventBus] = None,
    ):
        """Initialize the match engine.

        Args:
            config: Engine configuration (uses defaults if None)
            store: Shared registry for matches (a private one if None)
            events: Event bus for notifications (a private one if None)
        """
        self.config = config or EngineConfig()
        self.store = store if store is not None else ColosseumStore()
        self.events = events if events is not None else EventBus()

        self.collector = DecisionCollector(self.config)
        self.ledger = AllianceLedger(self.config)
        self.distributor = PrizeDistributor(self.ledger)

    # ------------------------------------------------------------------
    # Match lifecycle
    # ------------------------------------------------------------------

    def start_match(
        self,
        agents: Sequence[AgentDescriptor],
        arena_id: Optional[str] = None,
        prize_pool: int = 0,
    ) -> Match:
        """Create and register a new match from a lobby snapshot.

        Raises:
            MatchSetupError: If the agent count is outside the configured range
        """
        agents = list(agents or [])
        if len(agents) < self.config.min_agents or len(agents) > self.config.max_agents:
            raise MatchSetupError(len(agents), self.config.min_agents, self.config.max_agents)

        participants = [
            Participant(
                id=agent.id,
                strategy=agent.strategy,
                hp=starting_hp(agent.modifiers, self.config),
                owner=agent.owner,
                wallet=agent.wallet,
                is_external=agent.external,
                modifiers=agent.modifiers,
            )
            for agent in agents
        ]

        match = Match(
            match_id=new_id("match_"),
            arena_id=arena_id or new_id("arena_"),
            participants=participants,
            prize_pool=prize_pool,
        )
        self.store.add_match(match)

        logger.info(
            f"Match {match.match_id} started in {match.arena_id}: "
            f"{len(participants)} agents, prize pool {prize_pool}"
        )
        self.events.emit(
            EngineEvent.MATCH_STARTED,
            {"match_id": match.match_id, "agent_count": len(participants)},
        )
        return match

    async def execute_turn(self, match: Match) -> TurnRecord:
        """Execute a single turn for the given match.

        Returns:
            The turn record, already appended to ``match.history``

        Raises:
            MatchNotActiveError: If the match has already completed
        """
        if not match.is_active:
            raise MatchNotActiveError(match.match_id, match.status)

        decisions = await self.collector.collect(match)
        record = TurnRecord(turn=match.current_turn, decisions=dict(decisions))

        defending = self._mark_defences(decisions, record)
        self._queue_proposals(match, decisions, record)
        self._accept_alliances(match, decisions, record)
        self._apply_attacks(match, decisions, defending, record)
        self._process_betrayals(match, decisions, record)

        apply_recovery(match.participants, self.config)
        record.events.append(
            {"type": TurnEventType.RECOVERY.value, "amount": self.config.hp_recovery}
        )

        self._mark_dead(match, record)

        for participant in match.alive_participants:
            participant.turns_alive += 1

        match.history.append(record)

        self._check_match_end(match, record)

        logger.debug(
            f"Match {match.match_id} turn {record.turn}: {len(record.events)} events, "
            f"{len(match.alive_participants)} alive"
        )
        return record

    # ------------------------------------------------------------------
    # Turn stages
    # ------------------------------------------------------------------

    def _mark_defences(self, decisions: Dict[str, Decision], record: TurnRecord) -> Set[str]:
        defending = set()
        for agent_id, decision in decisions.items():
            if isinstance(decision, DefendDecision):
                defending.add(agent_id)
                record.events.append({"type": TurnEventType.DEFEND.value, "agent_id": agent_id})
        return defending

    def _queue_proposals(
        self, match: Match, decisions: Dict[str, Decision], record: TurnRecord
    ) -> None:
        for agent_id, decision in decisions.items():
            if isinstance(decision, ProposeAllianceDecision):
                proposal = self.ledger.queue_proposal(match, agent_id, decision)
                if proposal:
                    record.events.append({
                        "type": TurnEventType.PROPOSE_ALLIANCE.value,
                        **proposal.to_dict(),
                    })

    def _accept_alliances(
        self, match: Match, decisions: Dict[str, Decision], record: TurnRecord
    ) -> None:
        for agent_id, decision in decisions.items():
            if isinstance(decision, AcceptAllianceDecision):
                alliance = self.ledger.accept(match, agent_id, decision)
                if alliance:
                    record.events.append({
                        "type": TurnEventType.ALLIANCE_FORMED.value,
                        "alliance": alliance.to_dict(),
                    })
                    self.events.emit(
                        EngineEvent.ALLIANCE_FORMED,
                        {"match_id": match.match_id, "alliance": alliance.to_dict()},
                    )

    def _apply_attacks(
        self,
        match: Match,
        decisions: Dict[str, Decision],
        defending: Set[str],
        record: TurnRecord,
    ) -> None:
        # Attacks are independent: mutual attacks in one turn both land
        for agent_id, decision in decisions.items():
            if isinstance(decision, AttackDecision):
                event = resolve_attack(
                    match.get_participant(agent_id),
                    match.get_participant(decision.target),
                    decision.target in defending,
                    self.config,
                )
                if event:
                    record.events.append(event)

    def _process_betrayals(
        self, match: Match, decisions: Dict[str, Decision], record: TurnRecord
    ) -> None:
        for agent_id, decision in decisions.items():
            if isinstance(decision, BetrayAllianceDecision):
                event = self.ledger.betray(match, agent_id, decision)
                if event:
                    record.events.append(event)
                    self.events.emit(
                        EngineEvent.BETRAYAL,
                        {
                            "match_id": match.match_id,
                            "betrayer": event["betrayer_id"],
                            "victim": event["victim_id"],
                            "alliance_id": event["alliance_id"],
                        },
                    )

    def _mark_dead(self, match: Match, record: TurnRecord) -> None:
        for participant in match.participants:
            if participant.alive and participant.hp <= 0:
                participant.alive = False
                participant.hp = 0
                record.events.append(
                    {"type": TurnEventType.DEATH.value, "agent_id": participant.id}
                )
                logger.info(f"Agent {participant.id} died in match {match.match_id} "
                            f"on turn {match.current_turn}")
                self.events.emit(
                    EngineEvent.AGENT_DIED,
                    {
                        "match_id": match.match_id,
                        "agent_id": participant.id,
                        "turn": match.current_turn,
                    },
                )

    def _check_match_end(self, match: Match, record: TurnRecord) -> None:
        ended, winner = self.check_match_end(match)
        if not ended:
            match.current_turn += 1
            return

        reason = EndReason.ELIMINATION if winner else EndReason.DRAW
        distribution = self.complete_match(match, winner, reason)
        if winner:
            record.events.append({
                "type": TurnEventType.MATCH_END.value,
                "winner_id": winner.id,
                "prize": distribution.to_dict(),
            })
        else:
            record.events.append({
                "type": TurnEventType.MATCH_END.value,
                "winner_id": None,
                "reason": EndReason.DRAW.value,
            })

    # ------------------------------------------------------------------
    # Termination
    # ------------------------------------------------------------------

    def check_match_end(self, match: Match):
        """Determine if the match should end.

        Returns:
            Tuple of (ended, winner) where winner is None for a draw
        """
        alive = match.alive_participants
        if len(alive) == 1:
            return True, alive[0]
        if not alive:
            return True, None
        return False, None

    def complete_match(
        self,
        match: Match,
        winner: Optional[Participant],
        reason: EndReason,
    ) -> PrizeDistribution:
        """Move a match to ``completed`` and settle the prize pool."""
        match.status = MatchStatus.COMPLETED
        match.ended_at = datetime.now()
        match.winner_id = winner.id if winner else None
        match.end_reason = reason
        self.ledger.clear(match)

        distribution = self.distributor.distribute(match, winner)
        match.prize_distribution = distribution
        if distribution.allocations:
            self.events.emit(
                EngineEvent.PRIZE_DISTRIBUTED,
                {
                    "match_id": match.match_id,
                    "distributions": [a.to_dict() for a in distribution.allocations],
                    "redistribution_pool": distribution.redistribution_pool,
                },
            )

        logger.info(
            f"Match {match.match_id} ended ({reason.value}) on turn {match.current_turn}: "
            f"winner={match.winner_id}"
        )
        self.events.emit(
            EngineEvent.MATCH_ENDED,
            {
                "match_id": match.match_id,
                "winner_id": match.winner_id,
                "turn": match.current_turn,
                "reason": reason.value,
            },
        )
        return distribution

    def force_end(self, match: Match) -> PrizeDistribution:
        """End an active match at the turn cap; the healthiest survivor wins.

        Ties go to the participant listed first. Unlike an elimination or a
        draw, the match may complete with several participants still alive.
        """
        winner = None
        for participant in match.alive_participants:
            if winner is None or participant.hp > winner.hp:
                winner = participant
        return self.complete_match(match, winner, EndReason.TURN_LIMIT)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_match(self, match_id: str) -> Optional[Match]:
        return self.store.get_match(match_id)

    def get_alive_agents(self, match: Match) -> List[Participant]:
        return match.alive_participants

    def build_game_view(self, match: Match, participant: Participant) -> Dict[str, Any]:
        return build_game_view(match, participant, self.config.history_window)

    def get_match_status(self, match: Match) -> Dict[str, Any]:
        return {
            "match_id": match.match_id,
            "status": match.status.value,
            "current_turn": match.current_turn,
            "alive_count": len(match.alive_participants),
            "total_agents": len(match.participants),
            "prize_pool": match.prize_pool,
            "alliances": len(match.active_alliances),
        }
