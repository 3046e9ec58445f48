"""Prize settlement at match completion.

Reward rules:
- Solo winner: 100% of the pool
- Alliance winner: pool split by the alliance's stored shares (floored)
- External recipient: half of its allocation is cut and pooled, and that
  fund is split evenly among the normal agents other than the winner

Floor-division remainders are not paid to anyone.
"""

import logging
from typing import Dict, List, Optional

from .alliances import AllianceLedger
from .config import EngineConfig
from .match_state import Match, Participant, PrizeAllocation, PrizeDistribution


logger = logging.getLogger(__name__)

EXTERNAL_CUT_PERCENT = 50


class PrizeDistributor:
    """Computes final payouts from a match's prize pool."""

    def __init__(
        self,
        ledger: Optional[AllianceLedger] = None,
        external_cut_percent: int = EXTERNAL_CUT_PERCENT,
    ):
        self.ledger = ledger or AllianceLedger(EngineConfig())
        self.external_cut_percent = external_cut_percent

    def distribute(self, match: Match, winner: Optional[Participant]) -> PrizeDistribution:
        """Compute the settlement for a completed match.

        Args:
            match: The match being settled
            winner: Winning participant, or None for a draw

        Returns:
            Allocations per agent plus the size of the redistributed fund
        """
        pool = match.prize_pool
        if winner is None or pool <= 0:
            return PrizeDistribution()

        raw = self._raw_allocations(match, winner, pool)

        allocations: List[PrizeAllocation] = []
        redistribution_pool = 0
        for agent_id, amount, is_external in raw:
            if is_external:
                cut = amount * self.external_cut_percent // 100
                redistribution_pool += cut
                amount -= cut
            allocations.append(PrizeAllocation(agent_id=agent_id, amount=amount))

        if redistribution_pool > 0:
            normal_agents = [
                p for p in match.participants if not p.is_external and p.id != winner.id
            ]
            if normal_agents:
                share = redistribution_pool // len(normal_agents)
                by_agent: Dict[str, PrizeAllocation] = {a.agent_id: a for a in allocations}
                for participant in normal_agents:
                    existing = by_agent.get(participant.id)
                    if existing is not None:
                        existing.amount += share
                    else:
                        allocations.append(PrizeAllocation(agent_id=participant.id, amount=share))
            else:
                logger.info(
                    f"No normal agents in {match.match_id}; "
                    f"{redistribution_pool} retained by platform"
                )

        return PrizeDistribution(
            allocations=allocations,
            redistribution_pool=redistribution_pool,
        )

    def _raw_allocations(self, match: Match, winner: Participant, pool: int):
        alliance = self.ledger.alliance_of(match, winner.id)
        if alliance is None:
            return [(winner.id, pool, winner.is_external)]

        raw = []
        for member_id in alliance.members:
            percent = alliance.prize_share.get(member_id, 0)
            member = match.get_participant(member_id)
            raw.append((
                member_id,
                pool * percent // 100,
                member.is_external if member else False,
            ))
        return raw
