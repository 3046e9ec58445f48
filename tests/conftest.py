"""Pytest configuration and fixtures."""

import asyncio
import itertools

import pytest
from colosseum.core.arena_manager import ArenaManager
from colosseum.core.config import ArenaConfig, EngineConfig
from colosseum.core.events import EventBus
from colosseum.core.game_engine import MatchEngine
from colosseum.core.match_state import AgentDescriptor, Match, Modifiers, Participant
from colosseum.core.store import ColosseumStore


def always(decision):
    """Strategy that returns the same decision every turn."""
    return lambda view: decision


def scripted(*decisions):
    """Strategy that plays the given decisions in order, then defends."""
    moves = itertools.chain(decisions, itertools.repeat({"action": "defend"}))
    return lambda view: next(moves)


async def never_decides(view):
    """Strategy that suspends forever."""
    await asyncio.Event().wait()


@pytest.fixture
def engine_config():
    """Create a test engine configuration with a short decision timeout."""
    return EngineConfig(decision_timeout=0.05)


@pytest.fixture
def arena_config():
    """Create a test arena configuration with a short countdown."""
    return ArenaConfig(countdown_seconds=0.05, max_turns=100)


@pytest.fixture
def store():
    return ColosseumStore()


@pytest.fixture
def recorded_events():
    """Event bus that records every emitted event."""
    bus = EventBus()
    received = []
    bus.subscribe_all(lambda event, data: received.append((event, data)))
    bus.received = received
    return bus


@pytest.fixture
def engine(engine_config, store, recorded_events):
    return MatchEngine(engine_config, store=store, events=recorded_events)


@pytest.fixture
def manager(engine, arena_config):
    return ArenaManager(engine, arena_config, init_tier_pools=False)


@pytest.fixture
def make_agent():
    """Factory for agent descriptors."""

    def _make(agent_id, strategy=None, external=False, **modifiers):
        return AgentDescriptor(
            id=agent_id,
            owner=f"owner_{agent_id}",
            strategy=strategy if strategy is not None else always({"action": "defend"}),
            is_external=external,
            modifiers=Modifiers(**modifiers),
        )

    return _make


@pytest.fixture
def make_match():
    """Factory for bare matches without going through the engine."""

    def _make(*participants, prize_pool=0):
        return Match(
            match_id="match_test",
            arena_id="arena_test",
            participants=list(participants),
            prize_pool=prize_pool,
        )

    return _make


@pytest.fixture
def make_participant():
    """Factory for participants."""

    def _make(agent_id, hp=100, external=False, alive=True, **modifiers):
        return Participant(
            id=agent_id,
            strategy=None,
            hp=hp,
            is_external=external,
            alive=alive,
            modifiers=Modifiers(**modifiers),
        )

    return _make
