"""Tests for the match engine turn pipeline."""

import pytest
from colosseum.core.config import EngineConfig
from colosseum.core.enums import EndReason, EngineEvent, MatchStatus
from colosseum.core.errors import MatchNotActiveError, MatchSetupError
from colosseum.core.game_engine import MatchEngine
from colosseum.core.match_state import AgentDescriptor, Modifiers

from conftest import always, scripted

ATTACK_B = {"action": "attack", "target": "b"}
ATTACK_A = {"action": "attack", "target": "a"}
DEFEND = {"action": "defend"}


async def run_to_completion(engine, match, limit=200):
    for _ in range(limit):
        if not match.is_active:
            break
        await engine.execute_turn(match)
    return match


class TestStartMatch:
    def test_start_match_creates_participants(self, engine, make_agent):
        match = engine.start_match(
            [make_agent("a", health=30), make_agent("ext_b")],
            arena_id="arena_1",
            prize_pool=200,
        )

        assert match.status == MatchStatus.ACTIVE
        assert match.current_turn == 1
        assert match.arena_id == "arena_1"
        assert match.prize_pool == 200
        assert [p.id for p in match.participants] == ["a", "ext_b"]
        assert match.get_participant("a").hp == 103
        assert match.get_participant("ext_b").is_external
        assert engine.get_match(match.match_id) is match

    def test_modifier_bundle_from_mapping(self, engine, make_agent):
        agent = AgentDescriptor(
            id="a",
            strategy=always(DEFEND),
            modifiers={"health": 20, "armor": None, "attack": "10"},
        )
        assert agent.modifiers == Modifiers(health=20, attack=10)
        assert AgentDescriptor(strategy=None, modifiers=None).modifiers == Modifiers()

        match = engine.start_match([agent, make_agent("b")])
        assert match.get_participant("a").hp == 102

    def test_too_few_agents_rejected(self, engine, make_agent, store):
        with pytest.raises(MatchSetupError):
            engine.start_match([make_agent("a")])
        with pytest.raises(MatchSetupError):
            engine.start_match([])
        assert store.matches == {}

    def test_too_many_agents_rejected(self, make_agent):
        engine = MatchEngine(EngineConfig(max_agents=3))
        with pytest.raises(MatchSetupError) as exc_info:
            engine.start_match([make_agent(f"a{i}") for i in range(4)])
        assert exc_info.value.agent_count == 4

    def test_match_started_event(self, engine, make_agent, recorded_events):
        match = engine.start_match([make_agent("a"), make_agent("b")])
        assert (EngineEvent.MATCH_STARTED, {"match_id": match.match_id, "agent_count": 2}) in (
            recorded_events.received
        )


class TestTurnPipeline:
    @pytest.mark.asyncio
    async def test_attacker_vs_defender_until_death(self, engine, make_agent, recorded_events):
        match = engine.start_match([
            make_agent("a", always(ATTACK_B)),
            make_agent("b", always(DEFEND)),
        ])

        first = await engine.execute_turn(match)
        # 10 damage against a defender, then +5 recovery
        assert match.get_participant("b").hp == 95
        assert match.get_participant("a").hp == 105
        assert first.events_of("defend") == [{"type": "defend", "agent_id": "b"}]
        assert first.events_of("attack")[0]["damage"] == 10

        await run_to_completion(engine, match)

        assert match.status == MatchStatus.COMPLETED
        assert match.winner_id == "a"
        assert match.end_reason == EndReason.ELIMINATION
        assert len(match.history) == 19
        loser = match.get_participant("b")
        assert loser.hp == 0 and not loser.alive
        assert loser.turns_alive == 18
        # Zero pool: nothing to distribute
        assert match.prize_distribution.allocations == []
        end = match.history[-1].events_of("match_end")[0]
        assert end["winner_id"] == "a"

        emitted = [event for event, _ in recorded_events.received]
        assert EngineEvent.AGENT_DIED in emitted
        assert EngineEvent.MATCH_ENDED in emitted
        assert EngineEvent.PRIZE_DISTRIBUTED not in emitted

    @pytest.mark.asyncio
    async def test_alliance_then_betrayal(self, engine, make_agent, recorded_events):
        def betrayer(view):
            turn = view["current_turn"]
            if turn == 2:
                return {"action": "accept_alliance", "proposer": "a"}
            if turn == 3 and view["alliances"]:
                return {
                    "action": "betray_alliance",
                    "allianceId": view["alliances"][0]["id"],
                    "attackTarget": "a",
                }
            return DEFEND

        match = engine.start_match([
            make_agent("a", scripted(
                {"action": "propose_alliance", "target": "b", "terms": {"prizeShare": 70}},
            )),
            make_agent("b", betrayer),
        ])

        turn_one = await engine.execute_turn(match)
        assert turn_one.events_of("propose_alliance")[0]["to"] == "b"
        assert len(match.pending_proposals) == 1

        turn_two = await engine.execute_turn(match)
        formed = turn_two.events_of("alliance_formed")[0]["alliance"]
        assert formed["prize_share"] == {"a": 70, "b": 30}
        assert len(match.active_alliances) == 1
        assert match.pending_proposals == []

        turn_three = await engine.execute_turn(match)
        betrayal = turn_three.events_of("betrayal")[0]
        assert betrayal["victim_id"] == "a"
        # Full damage even though a chose to defend this turn
        assert betrayal["damage"] == 20
        assert match.get_participant("a").hp == 90
        assert match.active_alliances == []
        assert any(event == EngineEvent.BETRAYAL for event, _ in recorded_events.received)

    @pytest.mark.asyncio
    async def test_mutual_attacks_both_land(self, engine, make_agent):
        match = engine.start_match([
            make_agent("a", always(ATTACK_B)),
            make_agent("b", always(ATTACK_A)),
        ])

        record = await engine.execute_turn(match)

        assert len(record.events_of("attack")) == 2
        assert match.get_participant("a").hp == 85
        assert match.get_participant("b").hp == 85

    @pytest.mark.asyncio
    async def test_simultaneous_death_is_draw(self, engine, make_agent):
        match = engine.start_match([
            make_agent("a", always(ATTACK_B)),
            make_agent("b", always(ATTACK_A)),
        ], prize_pool=500)

        await run_to_completion(engine, match)

        assert match.status == MatchStatus.COMPLETED
        assert match.winner_id is None
        assert match.end_reason == EndReason.DRAW
        assert not any(p.alive for p in match.participants)
        assert all(p.hp == 0 for p in match.participants)
        assert match.prize_distribution.allocations == []
        end = match.history[-1].events_of("match_end")[0]
        assert end == {"type": "match_end", "winner_id": None, "reason": "draw"}

    @pytest.mark.asyncio
    async def test_attack_on_ally_formed_same_turn_still_lands(self, engine, make_agent):
        match = engine.start_match([
            make_agent("a", scripted(
                {"action": "propose_alliance", "target": "b"},
                ATTACK_B,
            )),
            make_agent("b", scripted(DEFEND, {"action": "accept_alliance", "proposer": "a"})),
        ])

        await engine.execute_turn(match)
        record = await engine.execute_turn(match)

        assert record.events_of("alliance_formed")
        assert record.events_of("attack")[0]["damage"] == 20

    @pytest.mark.asyncio
    async def test_noop_resolutions_record_nothing(self, engine, make_agent):
        match = engine.start_match([
            make_agent("a", always({"action": "accept_alliance", "proposer": "b"})),
            make_agent("b", always(
                {"action": "betray_alliance", "allianceId": "alliance_x", "attackTarget": "a"}
            )),
            make_agent("c", always({"action": "attack", "target": "nobody"})),
        ])

        record = await engine.execute_turn(match)

        assert [e["type"] for e in record.events] == ["recovery"]
        # Only recovery touched anyone
        assert all(p.hp == 105 for p in match.participants)

    @pytest.mark.asyncio
    async def test_turn_numbers_follow_history(self, engine, make_agent):
        match = engine.start_match([
            make_agent("a", always(ATTACK_B)),
            make_agent("b", always(DEFEND)),
            make_agent("c", always(DEFEND)),
        ])

        for _ in range(5):
            await engine.execute_turn(match)

        assert [r.turn for r in match.history] == [1, 2, 3, 4, 5]
        assert match.current_turn == 6
        for participant in match.participants:
            assert 0 <= participant.hp <= engine.config.max_hp

    @pytest.mark.asyncio
    async def test_dead_attacker_cannot_act(self, engine, make_agent):
        match = engine.start_match([
            make_agent("a", always(ATTACK_B)),
            make_agent("b", always(DEFEND)),
            make_agent("c", always(DEFEND)),
        ])
        a = match.get_participant("a")
        a.alive = False
        a.hp = 0

        record = await engine.execute_turn(match)

        assert "a" not in record.decisions
        assert record.events_of("attack") == []
        assert match.get_participant("b").hp == 105

    @pytest.mark.asyncio
    async def test_completed_match_rejects_turns(self, engine, make_agent):
        match = engine.start_match([
            make_agent("a", always(ATTACK_B)),
            make_agent("b", always(DEFEND)),
        ])
        await run_to_completion(engine, match)
        turns = len(match.history)

        with pytest.raises(MatchNotActiveError):
            await engine.execute_turn(match)
        assert len(match.history) == turns

    @pytest.mark.asyncio
    async def test_winner_takes_pool(self, engine, make_agent, recorded_events):
        match = engine.start_match([
            make_agent("a", always(ATTACK_B), attack=200),
            make_agent("b", always(DEFEND)),
        ], prize_pool=400)

        await run_to_completion(engine, match)

        assert match.winner_id == "a"
        assert match.prize_distribution.amount_for("a") == 400
        prize = match.history[-1].events_of("match_end")[0]["prize"]
        assert prize["distributions"] == [{"agent_id": "a", "amount": 400}]
        assert any(e == EngineEvent.PRIZE_DISTRIBUTED for e, _ in recorded_events.received)


class TestForceEnd:
    def test_healthiest_survivor_wins(self, engine, make_agent):
        match = engine.start_match(
            [make_agent("a"), make_agent("b"), make_agent("c")], prize_pool=300
        )
        match.get_participant("a").hp = 40
        match.get_participant("b").hp = 90
        match.get_participant("c").hp = 90

        engine.force_end(match)

        assert match.status == MatchStatus.COMPLETED
        assert match.end_reason == EndReason.TURN_LIMIT
        # Tie between b and c goes to the first listed
        assert match.winner_id == "b"
        assert len(match.alive_participants) == 3
        assert match.prize_distribution.amount_for("b") == 300


def test_match_status_summary(engine, make_agent):
    match = engine.start_match([make_agent("a"), make_agent("b")], prize_pool=20)
    status = engine.get_match_status(match)
    assert status == {
        "match_id": match.match_id,
        "status": "active",
        "current_turn": 1,
        "alive_count": 2,
        "total_agents": 2,
        "prize_pool": 20,
        "alliances": 0,
    }
