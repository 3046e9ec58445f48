"""Arena lifecycle: lobbies, countdowns, match launch and pool replenishment.

Arena states::

    open -> lobby        minimum quorum reached, countdown starts
    lobby -> open        an agent leaves below quorum, countdown cancelled
    open/lobby -> in_progress   lobby full, or countdown expired
    in_progress -> completed    match finished or hit the turn cap
    in_progress -> error        starting or running the match raised

Joining and leaving are synchronous and must be called from inside a running
event loop, since reaching quorum arms a timer and a full lobby launches a
match task immediately.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .config import ArenaConfig, TIER_CONFIG, get_tier
from .enums import ArenaStatus, EngineEvent
from .errors import (
    AgentNotInArenaError,
    ArenaFullError,
    ArenaNotAcceptingError,
    ArenaNotFoundError,
    DuplicateAgentError,
    LeaveDuringMatchError,
)
from .events import EventBus
from .game_engine import MatchEngine
from .match_state import AgentDescriptor, Arena, Lobby, Match, MatchResult, new_id
from .store import ColosseumStore


logger = logging.getLogger(__name__)


class ArenaManager:
    """Owns arenas and their lobbies and drives matches to completion."""

    def __init__(
        self,
        engine: Optional[MatchEngine] = None,
        config: Optional[ArenaConfig] = None,
        store: Optional[ColosseumStore] = None,
        events: Optional[EventBus] = None,
        init_tier_pools: bool = True,
    ):
        """Initialize the arena manager.

        Args:
            engine: Match engine to run launched matches (a default one if None)
            config: Arena defaults (uses defaults if None)
            store: Shared registry; defaults to the engine's store
            events: Event bus; defaults to the engine's bus
            init_tier_pools: Create one open arena per tier on startup
        """
        self.engine = engine or MatchEngine(store=store, events=events)
        self.config = config or ArenaConfig()
        self.store = store if store is not None else self.engine.store
        self.events = events if events is not None else self.engine.events

        if init_tier_pools:
            self._init_tier_pools()

    def _init_tier_pools(self) -> None:
        """Create one open arena per tier so there is always something to join."""
        for tier in TIER_CONFIG:
            existing = [
                a for a in self.store.list_arenas(ArenaStatus.OPEN) if a.tier == tier
            ]
            if not existing:
                self.create_arena(tier=tier)

    # ------------------------------------------------------------------
    # Arena CRUD
    # ------------------------------------------------------------------

    def create_arena(
        self,
        tier: Optional[str] = None,
        arena_id: Optional[str] = None,
        name: Optional[str] = None,
        entry_fee: Optional[int] = None,
        min_agents: Optional[int] = None,
        max_agents: Optional[int] = None,
    ) -> Arena:
        """Create an arena, filling unset values from its tier then the config."""
        tier_cfg = get_tier(tier)

        def pick(value, tier_attr, default):
            if value is not None:
                return value
            if tier_cfg is not None:
                return getattr(tier_cfg, tier_attr)
            return default

        arena = Arena(
            arena_id=arena_id or new_id("arena_")[:14],
            name=pick(name, "name", "Unnamed Arena"),
            tier=tier,
            entry_fee=pick(entry_fee, "entry_fee", self.config.entry_fee),
            min_agents=pick(min_agents, "min_agents", self.config.min_agents),
            max_agents=pick(max_agents, "max_agents", self.config.max_agents),
        )
        self.store.add_arena(arena)

        logger.info(f"Arena {arena.arena_id} created ({arena.name}, tier={arena.tier})")
        self.events.emit(EngineEvent.ARENA_CREATED, arena.to_dict())
        return arena

    def get_arena(self, arena_id: str) -> Optional[Arena]:
        return self.store.get_arena(arena_id)

    def list_arenas(self, status: Optional[ArenaStatus] = None) -> List[Arena]:
        return self.store.list_arenas(status)

    # ------------------------------------------------------------------
    # Agent queueing
    # ------------------------------------------------------------------

    def join_arena(self, arena_id: str, agent: AgentDescriptor) -> Dict[str, Any]:
        """Queue an agent in an arena's lobby.

        Normal agents add the entry fee to the prize pool; external agents
        join free. Reaching quorum starts the countdown and filling the lobby
        launches the match at once.

        Raises:
            ArenaNotFoundError, ArenaNotAcceptingError, DuplicateAgentError,
            ArenaFullError
        """
        arena, lobby = self._require(arena_id)
        if not arena.is_accepting:
            raise ArenaNotAcceptingError(arena_id, arena.status)
        if lobby.has_agent(agent.id):
            raise DuplicateAgentError(arena_id, agent.id)
        if len(lobby.agents) >= arena.max_agents:
            raise ArenaFullError(arena_id)

        lobby.agents.append(agent)
        if not agent.external:
            arena.prize_pool += arena.entry_fee

        logger.info(
            f"Agent {agent.id} joined {arena_id} ({len(lobby.agents)}/{arena.max_agents})"
        )
        self.events.emit(
            EngineEvent.AGENT_JOINED,
            {
                "arena_id": arena_id,
                "agent_id": agent.id,
                "lobby_size": len(lobby.agents),
                "is_external": agent.external,
            },
        )

        if len(lobby.agents) >= arena.min_agents and arena.status == ArenaStatus.OPEN:
            arena.status = ArenaStatus.LOBBY
            self._start_countdown(arena_id)

        if len(lobby.agents) >= arena.max_agents:
            self._launch_match(arena_id)

        return {"arena_id": arena_id, "lobby_size": len(lobby.agents), "status": arena.status}

    def leave_arena(self, arena_id: str, agent_id: str) -> Dict[str, Any]:
        """Remove a queued agent, refunding its entry fee from the pool.

        Raises:
            ArenaNotFoundError, LeaveDuringMatchError, ArenaNotAcceptingError,
            AgentNotInArenaError
        """
        arena, lobby = self._require(arena_id)
        if arena.status == ArenaStatus.IN_PROGRESS:
            raise LeaveDuringMatchError(arena_id)
        # Completed and errored lobbies are frozen; their pool is settled
        if not arena.is_accepting:
            raise ArenaNotAcceptingError(arena_id, arena.status)

        agent = next((a for a in lobby.agents if a.id == agent_id), None)
        if agent is None:
            raise AgentNotInArenaError(arena_id, agent_id)

        lobby.agents.remove(agent)
        if not agent.external:
            arena.prize_pool = max(0, arena.prize_pool - arena.entry_fee)

        if len(lobby.agents) < arena.min_agents and arena.status == ArenaStatus.LOBBY:
            arena.status = ArenaStatus.OPEN
            self.cancel_countdown(arena_id)

        logger.info(f"Agent {agent_id} left {arena_id} ({len(lobby.agents)} queued)")
        self.events.emit(
            EngineEvent.AGENT_LEFT,
            {"arena_id": arena_id, "agent_id": agent_id, "lobby_size": len(lobby.agents)},
        )
        return {"arena_id": arena_id, "lobby_size": len(lobby.agents)}

    # ------------------------------------------------------------------
    # Countdown timer
    # ------------------------------------------------------------------

    def _start_countdown(self, arena_id: str) -> None:
        lobby = self.store.get_lobby(arena_id)
        if lobby is None or lobby.timer is not None:
            return

        loop = asyncio.get_running_loop()
        lobby.timer = loop.call_later(
            self.config.countdown_seconds, self._on_countdown_expired, arena_id
        )
        logger.info(f"Countdown started for {arena_id} ({self.config.countdown_seconds}s)")
        self.events.emit(
            EngineEvent.COUNTDOWN_STARTED,
            {"arena_id": arena_id, "duration": self.config.countdown_seconds},
        )

    def _on_countdown_expired(self, arena_id: str) -> None:
        lobby = self.store.get_lobby(arena_id)
        if lobby is None:
            return
        lobby.timer = None
        self._launch_match(arena_id)

    def cancel_countdown(self, arena_id: str) -> bool:
        """Cancel a pending countdown.

        Safe to call repeatedly and after the timer has fired; returns
        whether a countdown was actually cancelled.
        """
        lobby = self.store.get_lobby(arena_id)
        if lobby is None or lobby.timer is None:
            return False

        lobby.timer.cancel()
        lobby.timer = None
        self.events.emit(EngineEvent.COUNTDOWN_CANCELLED, {"arena_id": arena_id})
        return True

    # ------------------------------------------------------------------
    # Match launching
    # ------------------------------------------------------------------

    def _launch_match(self, arena_id: str) -> Optional["asyncio.Task[MatchResult]"]:
        """Flip the arena to in_progress and run its match in a task.

        A second launch for the same arena is ignored.
        """
        arena = self.store.get_arena(arena_id)
        lobby = self.store.get_lobby(arena_id)
        if arena is None or lobby is None or not arena.is_accepting:
            return None

        self.cancel_countdown(arena_id)
        arena.status = ArenaStatus.IN_PROGRESS

        logger.info(f"Launching match in {arena_id} with {len(lobby.agents)} agents")
        self.events.emit(
            EngineEvent.MATCH_LAUNCHING,
            {"arena_id": arena_id, "agent_count": len(lobby.agents)},
        )

        task = asyncio.get_running_loop().create_task(self._run_arena(arena, lobby))
        task.add_done_callback(_consume_task_exception)
        lobby.launch_task = task
        return task

    async def _run_arena(self, arena: Arena, lobby: Lobby) -> MatchResult:
        try:
            match = self.engine.start_match(
                list(lobby.agents),
                arena_id=arena.arena_id,
                prize_pool=arena.prize_pool,
            )
            arena.match_id = match.match_id
            result = await self._run_match(match)
        except Exception as e:
            arena.status = ArenaStatus.ERROR
            logger.error(f"Match in {arena.arena_id} failed: {e}", exc_info=True)
            self.events.emit(
                EngineEvent.MATCH_ERROR, {"arena_id": arena.arena_id, "error": str(e)}
            )
            raise

        arena.status = ArenaStatus.COMPLETED
        self.store.add_result(result)
        logger.info(
            f"Match {result.match_id} in {arena.arena_id} completed after "
            f"{result.total_turns} turns: winner={result.winner_id}"
        )
        self.events.emit(
            EngineEvent.MATCH_COMPLETED,
            {"arena_id": arena.arena_id, "match_id": result.match_id, "result": result.to_dict()},
        )

        # Replenish: keep an open arena available for this tier
        if get_tier(arena.tier) is not None:
            self.create_arena(tier=arena.tier)

        return result

    async def _run_match(self, match: Match) -> MatchResult:
        """Run turns until the match completes or the turn cap is hit."""
        turn_count = 0
        while match.is_active and turn_count < self.config.max_turns:
            record = await self.engine.execute_turn(match)
            self.events.emit(
                EngineEvent.TURN_COMPLETED,
                {
                    "match_id": match.match_id,
                    "turn": record.turn,
                    "events": [dict(e) for e in record.events],
                },
            )
            turn_count += 1

        if match.is_active:
            logger.warning(
                f"Match {match.match_id} hit the {self.config.max_turns}-turn cap; force-ending"
            )
            self.engine.force_end(match)

        return MatchResult.from_match(match)

    async def wait_for_match(self, arena_id: str) -> Optional[MatchResult]:
        """Wait for an arena's launched match and return its result.

        Re-raises whatever made the launch fail. Returns None if the arena
        has not launched a match.
        """
        _, lobby = self._require(arena_id)
        if lobby.launch_task is None:
            return None
        return await lobby.launch_task

    def shutdown(self) -> None:
        """Cancel every pending countdown."""
        for arena_id in list(self.store.lobbies):
            self.cancel_countdown(arena_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_lobby(self, arena_id: str) -> Optional[Dict[str, Any]]:
        lobby = self.store.get_lobby(arena_id)
        return lobby.to_dict() if lobby else None

    def get_result(self, match_id: str) -> Optional[MatchResult]:
        return self.store.get_result(match_id)

    def _require(self, arena_id: str):
        arena = self.store.get_arena(arena_id)
        lobby = self.store.get_lobby(arena_id)
        if arena is None or lobby is None:
            raise ArenaNotFoundError(arena_id)
        return arena, lobby


def _consume_task_exception(task: "asyncio.Task[Any]") -> None:
    # Failures are already logged and emitted by _run_arena
    if not task.cancelled():
        task.exception()
