"""Exception hierarchy for the match engine and arena lifecycle.

Validation errors are raised before any state is touched, so a caller that
catches one can assume the arena or match is exactly as it was.
"""

from typing import Any


class ColosseumError(Exception):
    """Base exception for all Colosseum engine errors."""
    pass


class ColosseumValidationError(ColosseumError, ValueError):
    """Base for requests rejected up front."""
    pass


class MatchSetupError(ColosseumValidationError):
    """Raised when a match is started with too few or too many agents."""

    def __init__(self, agent_count: int, min_agents: int, max_agents: int):
        self.agent_count = agent_count
        self.min_agents = min_agents
        self.max_agents = max_agents
        if agent_count < min_agents:
            message = f"At least {min_agents} agents are required to start a match"
        else:
            message = f"Maximum {max_agents} agents allowed per match"
        super().__init__(message)


class MatchNotActiveError(ColosseumValidationError):
    """Raised when a turn is requested on a match that is no longer active."""

    def __init__(self, match_id: str, status: Any):
        self.match_id = match_id
        self.status = status
        super().__init__(
            f"Match {match_id} is not active (status: {getattr(status, 'value', status)})"
        )


class ArenaNotFoundError(ColosseumValidationError):
    def __init__(self, arena_id: str):
        self.arena_id = arena_id
        super().__init__(f"Arena {arena_id} not found")


class ArenaNotAcceptingError(ColosseumValidationError):
    def __init__(self, arena_id: str, status: Any):
        self.arena_id = arena_id
        self.status = status
        super().__init__(
            f"Arena {arena_id} is not accepting agents "
            f"(status: {getattr(status, 'value', status)})"
        )


class ArenaFullError(ColosseumValidationError):
    def __init__(self, arena_id: str):
        self.arena_id = arena_id
        super().__init__(f"Arena {arena_id} is full")


class DuplicateAgentError(ColosseumValidationError):
    def __init__(self, arena_id: str, agent_id: str):
        self.arena_id = arena_id
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} already in arena {arena_id}")


class AgentNotInArenaError(ColosseumValidationError):
    def __init__(self, arena_id: str, agent_id: str):
        self.arena_id = arena_id
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} not in arena {arena_id}")


class LeaveDuringMatchError(ColosseumValidationError):
    def __init__(self, arena_id: str):
        self.arena_id = arena_id
        super().__init__(f"Cannot leave arena {arena_id} during a match")


class DecisionError(ColosseumError):
    """Raised when a strategy returns something that is not a valid decision.

    Only ever seen inside the decision collector, which converts it into a
    default defend.
    """

    def __init__(self, agent_id: str, raw_output: Any, reason: str):
        self.agent_id = agent_id
        self.raw_output = raw_output
        self.reason = reason
        super().__init__(f"Invalid decision from {agent_id}: {reason}")
