"""Concurrent decision collection with per-agent timeouts."""

import asyncio
import inspect
import logging
from typing import Any, Dict, List, Tuple

from .config import EngineConfig
from .decisions import Decision, default_decision, parse_decision
from .errors import DecisionError
from .match_state import Match, Participant


logger = logging.getLogger(__name__)


def build_game_view(match: Match, participant: Participant, history_window: int = 5) -> Dict[str, Any]:
    """Build the sanitized game state a strategy sees.

    Every value is a fresh copy, so a strategy mutating its view cannot touch
    the match.
    """
    return {
        "match_id": match.match_id,
        "current_turn": match.current_turn,
        "you": {
            **participant.to_public_dict(),
            "modifiers": participant.modifiers.to_dict(),
        },
        "opponents": [
            p.to_public_dict() for p in match.participants if p.id != participant.id
        ],
        "alliances": [a.to_dict() for a in match.active_alliances],
        "prize_pool": match.prize_pool,
        "history": [t.to_dict() for t in match.history[-history_window:]] if history_window else [],
    }


async def _invoke_strategy(strategy: Any, view: Dict[str, Any]) -> Any:
    """Call a strategy provider, awaiting its result if it suspends."""
    if strategy is None:
        return default_decision()
    decide = getattr(strategy, "decide", None)
    if decide is None:
        if not callable(strategy):
            raise TypeError(f"Strategy {strategy!r} is neither callable nor has decide()")
        decide = strategy

    result = decide(view)
    if inspect.isawaitable(result):
        result = await result
    return result


class DecisionCollector:
    """Gathers one decision per living participant.

    Each strategy runs in its own task under ``decision_timeout``. A timeout,
    an exception or a malformed decision becomes a defend. Collection returns
    only once every task has settled.
    """

    def __init__(self, config: EngineConfig):
        self.config = config

    async def collect(self, match: Match) -> Dict[str, Decision]:
        """Collect decisions from all alive participants in parallel.

        Returns:
            Dict mapping agent_id -> decision, in participant order
        """
        alive = match.alive_participants
        decision_tasks = [self._decide_with_fallback(match, p) for p in alive]
        results: List[Tuple[str, Decision]] = await asyncio.gather(*decision_tasks)
        return {agent_id: decision for agent_id, decision in results}

    async def _decide_with_fallback(
        self, match: Match, participant: Participant
    ) -> Tuple[str, Decision]:
        view = build_game_view(match, participant, self.config.history_window)
        try:
            raw = await asyncio.wait_for(
                _invoke_strategy(participant.strategy, view),
                timeout=self.config.decision_timeout,
            )
            decision = parse_decision(participant.id, raw)
        except asyncio.TimeoutError:
            logger.warning(
                f"Agent {participant.id} decision timeout after "
                f"{self.config.decision_timeout}s; defending"
            )
            decision = default_decision()
        except DecisionError as e:
            logger.warning(f"{e}; defending")
            decision = default_decision()
        except Exception as e:
            logger.warning(f"Error getting decision from {participant.id}: {e}; defending")
            decision = default_decision()

        participant.last_action = decision
        return participant.id, decision
