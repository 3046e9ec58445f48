"""Process-wide registry of arenas, lobbies, matches and results.

Created once at startup and injected into ``MatchEngine`` and
``ArenaManager``. Each entry is written only by the lifecycle operation that
owns it.
"""

from typing import Dict, List, Optional

from .enums import ArenaStatus
from .match_state import Arena, Lobby, Match, MatchResult


class ColosseumStore:
    """In-memory store keyed by identifier."""

    def __init__(self):
        self.arenas: Dict[str, Arena] = {}
        self.lobbies: Dict[str, Lobby] = {}
        self.matches: Dict[str, Match] = {}
        self.results: Dict[str, MatchResult] = {}

    # Arenas

    def add_arena(self, arena: Arena) -> Lobby:
        """Register an arena along with its empty lobby."""
        self.arenas[arena.arena_id] = arena
        lobby = Lobby(arena_id=arena.arena_id)
        self.lobbies[arena.arena_id] = lobby
        return lobby

    def get_arena(self, arena_id: str) -> Optional[Arena]:
        return self.arenas.get(arena_id)

    def get_lobby(self, arena_id: str) -> Optional[Lobby]:
        return self.lobbies.get(arena_id)

    def list_arenas(self, status: Optional[ArenaStatus] = None) -> List[Arena]:
        arenas = list(self.arenas.values())
        if status is None:
            return arenas
        return [a for a in arenas if a.status == ArenaStatus(status)]

    # Matches

    def add_match(self, match: Match) -> None:
        self.matches[match.match_id] = match

    def get_match(self, match_id: str) -> Optional[Match]:
        return self.matches.get(match_id)

    def add_result(self, result: MatchResult) -> None:
        self.results[result.match_id] = result

    def get_result(self, match_id: str) -> Optional[MatchResult]:
        return self.results.get(match_id)
