"""Alliance ledger: proposals, formation and betrayal within a match."""

import logging
from typing import Any, Dict, Optional

from .config import EngineConfig
from .decisions import (
    AcceptAllianceDecision,
    BetrayAllianceDecision,
    ProposeAllianceDecision,
)
from .enums import TurnEventType
from .match_state import Alliance, Match, Proposal, new_id


logger = logging.getLogger(__name__)


class AllianceLedger:
    """Tracks pending proposals and active alliances on a match.

    Proposals are keyed by (proposer, target); proposing again to the same
    target replaces the earlier terms. A participant may sit in several
    alliances at once.
    """

    def __init__(self, config: EngineConfig):
        self.config = config

    def queue_proposal(
        self, match: Match, proposer_id: str, decision: ProposeAllianceDecision
    ) -> Optional[Proposal]:
        """Add a proposal to the match's pending set.

        Returns None for proposals to oneself or to an agent outside the match.
        """
        if decision.target == proposer_id or match.get_participant(decision.target) is None:
            return None

        for proposal in match.pending_proposals:
            if proposal.proposer_id == proposer_id and proposal.target_id == decision.target:
                proposal.terms = decision.terms
                return proposal

        proposal = Proposal(
            proposer_id=proposer_id,
            target_id=decision.target,
            terms=decision.terms,
        )
        match.pending_proposals.append(proposal)
        return proposal

    def accept(
        self, match: Match, accepter_id: str, decision: AcceptAllianceDecision
    ) -> Optional[Alliance]:
        """Consume a matching proposal and form the alliance.

        Returns None when no proposal from ``decision.proposer`` to the
        accepter is pending.
        """
        for idx, proposal in enumerate(match.pending_proposals):
            if proposal.proposer_id == decision.proposer and proposal.target_id == accepter_id:
                break
        else:
            return None

        proposal = match.pending_proposals.pop(idx)
        share = proposal.terms.prize_share
        alliance = Alliance(
            id=new_id("alliance_"),
            members=(proposal.proposer_id, accepter_id),
            prize_share={proposal.proposer_id: share, accepter_id: 100 - share},
        )
        match.active_alliances.append(alliance)
        logger.debug(
            f"Alliance {alliance.id} formed: {proposal.proposer_id} ({share}%) + "
            f"{accepter_id} ({100 - share}%)"
        )
        return alliance

    def betray(
        self, match: Match, betrayer_id: str, decision: BetrayAllianceDecision
    ) -> Optional[Dict[str, Any]]:
        """Dissolve an alliance and strike the chosen target at full damage.

        The alliance is removed before the strike, so betraying it again is a
        no-op. The strike ignores defend and all modifiers. Returns the
        betrayal event, or None when nothing was struck.
        """
        alliance = match.find_alliance(decision.alliance_id)
        if alliance is None or not alliance.has_member(betrayer_id):
            return None

        match.active_alliances.remove(alliance)

        target = match.get_participant(decision.attack_target)
        if target is None or not target.alive:
            logger.debug(f"Alliance {alliance.id} dissolved by {betrayer_id} without a strike")
            return None

        damage = self.config.attack_damage
        target.hp -= damage
        return {
            "type": TurnEventType.BETRAYAL.value,
            "betrayer_id": betrayer_id,
            "victim_id": target.id,
            "alliance_id": alliance.id,
            "damage": damage,
            "remaining_hp": target.hp,
        }

    def alliance_of(self, match: Match, agent_id: str) -> Optional[Alliance]:
        """First active alliance the agent belongs to, if any."""
        for alliance in match.active_alliances:
            if alliance.has_member(agent_id):
                return alliance
        return None

    def clear(self, match: Match) -> None:
        """Drop all pending proposals; called when the match ends."""
        match.pending_proposals.clear()
