"""Tests for decision parsing and validation."""

import pytest
from colosseum.core.decisions import (
    AcceptAllianceDecision,
    AttackDecision,
    BetrayAllianceDecision,
    DefendDecision,
    ProposeAllianceDecision,
    default_decision,
    parse_decision,
)
from colosseum.core.enums import Action
from colosseum.core.errors import DecisionError


class TestParseDecision:
    """Tests for turning strategy output into decision models."""

    def test_defend(self):
        decision = parse_decision("a1", {"action": "defend"})
        assert isinstance(decision, DefendDecision)
        assert decision.action == Action.DEFEND

    def test_attack(self):
        decision = parse_decision("a1", {"action": "attack", "target": "a2"})
        assert isinstance(decision, AttackDecision)
        assert decision.target == "a2"

    def test_propose_defaults_to_even_split(self):
        decision = parse_decision("a1", {"action": "propose_alliance", "target": "a2"})
        assert isinstance(decision, ProposeAllianceDecision)
        assert decision.terms.prize_share == 50

    def test_propose_null_terms_is_even_split(self):
        decision = parse_decision(
            "a1", {"action": "propose_alliance", "target": "a2", "terms": None}
        )
        assert isinstance(decision, ProposeAllianceDecision)
        assert decision.terms.prize_share == 50

    def test_propose_accepts_camel_case_terms(self):
        decision = parse_decision(
            "a1", {"action": "propose_alliance", "target": "a2", "terms": {"prizeShare": 70}}
        )
        assert decision.terms.prize_share == 70

    def test_accept(self):
        decision = parse_decision("a2", {"action": "accept_alliance", "proposer": "a1"})
        assert isinstance(decision, AcceptAllianceDecision)
        assert decision.proposer == "a1"

    def test_betray_accepts_wire_and_python_names(self):
        wire = parse_decision(
            "a1", {"action": "betray_alliance", "allianceId": "al_1", "attackTarget": "a2"}
        )
        python = parse_decision(
            "a1", {"action": "betray_alliance", "alliance_id": "al_1", "attack_target": "a2"}
        )
        assert isinstance(wire, BetrayAllianceDecision)
        assert wire == python
        assert wire.alliance_id == "al_1"
        assert wire.attack_target == "a2"

    def test_model_instance_passes_through(self):
        decision = AttackDecision(target="a2")
        assert parse_decision("a1", decision) is decision

    def test_extra_keys_ignored(self):
        decision = parse_decision("a1", {"action": "defend", "taunt": "come at me"})
        assert isinstance(decision, DefendDecision)

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "attack",
            42,
            {},
            {"action": "flee"},
            {"action": "attack"},
            {"action": "accept_alliance"},
            {"action": "propose_alliance", "target": "a2", "terms": {"prizeShare": 150}},
            {"action": "propose_alliance", "target": "a2", "terms": {"prizeShare": -1}},
            {"action": "betray_alliance", "allianceId": "al_1"},
        ],
    )
    def test_malformed_output_rejected(self, raw):
        with pytest.raises(DecisionError) as exc_info:
            parse_decision("a1", raw)
        assert exc_info.value.agent_id == "a1"

    def test_default_decision_is_defend(self):
        assert isinstance(default_decision(), DefendDecision)

    def test_to_dict(self):
        decision = parse_decision(
            "a1", {"action": "propose_alliance", "target": "a2", "terms": {"prizeShare": 60}}
        )
        assert decision.to_dict() == {
            "action": "propose_alliance",
            "target": "a2",
            "terms": {"prize_share": 60},
        }
