"""Reference strategy templates.

Each strategy is a plain function of the read-only game view returning a
decision mapping in the wire format. They exist for demos and tests; real
agents bring their own strategy providers.
"""

import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

View = Dict[str, Any]
StrategyFn = Callable[[View], Dict[str, Any]]

DEFEND = {"action": "defend"}


def _alive_opponents(view: View) -> List[Dict[str, Any]]:
    return [o for o in view["opponents"] if o["alive"]]


def _my_alliances(view: View) -> List[Dict[str, Any]]:
    me = view["you"]["id"]
    return [a for a in view["alliances"] if me in a["members"]]


def _weakest(opponents: List[Dict[str, Any]]) -> Dict[str, Any]:
    return min(opponents, key=lambda o: o["hp"])


def _strongest(opponents: List[Dict[str, Any]]) -> Dict[str, Any]:
    return max(opponents, key=lambda o: o["hp"])


def berserker(view: View) -> Dict[str, Any]:
    """Always attack the weakest opponent."""
    alive = _alive_opponents(view)
    if not alive:
        return DEFEND
    return {"action": "attack", "target": _weakest(alive)["id"]}


def diplomat(view: View) -> Dict[str, Any]:
    """Court the strongest opponent early, accept offers, then hold."""
    alive = _alive_opponents(view)
    if not alive:
        return DEFEND
    if _my_alliances(view):
        return DEFEND

    me = view["you"]["id"]
    for record in view["history"]:
        for event in record["events"]:
            if event["type"] == "propose_alliance" and event["to"] == me:
                return {"action": "accept_alliance", "proposer": event["from"]}

    if view["current_turn"] <= 3:
        return {
            "action": "propose_alliance",
            "target": _strongest(alive)["id"],
            "terms": {"prizeShare": 50},
        }
    return DEFEND


def trickster(view: View) -> Dict[str, Any]:
    """Ally early, then betray the partner after turn three."""
    alive = _alive_opponents(view)
    if not alive:
        return DEFEND
    alliances = _my_alliances(view)
    me = view["you"]["id"]

    if view["current_turn"] <= 3:
        if not alliances:
            return {
                "action": "propose_alliance",
                "target": _strongest(alive)["id"],
                "terms": {"prizeShare": 60},
            }
        return DEFEND

    if alliances:
        alliance = alliances[0]
        victim = next(m for m in alliance["members"] if m != me)
        return {"action": "betray_alliance", "allianceId": alliance["id"], "attackTarget": victim}

    return {"action": "attack", "target": _weakest(alive)["id"]}


def turtle(view: View) -> Dict[str, Any]:
    """Defend until a single weaker opponent remains."""
    alive = _alive_opponents(view)
    if len(alive) == 1 and view["you"]["hp"] > alive[0]["hp"]:
        return {"action": "attack", "target": alive[0]["id"]}
    return DEFEND


def make_opportunist(rng: Optional[random.Random] = None) -> StrategyFn:
    """Attack when ahead, seek protection when behind, otherwise coin-flip."""
    rng = rng or random.Random()

    def opportunist(view: View) -> Dict[str, Any]:
        alive = _alive_opponents(view)
        if not alive:
            return DEFEND
        my_hp = view["you"]["hp"]
        avg_hp = sum(o["hp"] for o in alive) / len(alive)
        if my_hp > avg_hp * 1.2:
            return {"action": "attack", "target": _weakest(alive)["id"]}
        if my_hp < avg_hp * 0.7 and len(alive) > 1:
            return {
                "action": "propose_alliance",
                "target": _strongest(alive)["id"],
                "terms": {"prizeShare": 40},
            }
        if rng.random() > 0.5:
            return {"action": "attack", "target": _weakest(alive)["id"]}
        return DEFEND

    return opportunist


@dataclass
class StrategyTemplate:
    """A named reference strategy."""

    id: str
    name: str
    description: str
    factory: Callable[[], StrategyFn]
    traits: List[str] = field(default_factory=list)

    def build(self) -> StrategyFn:
        return self.factory()


STRATEGY_REGISTRY: Dict[str, StrategyTemplate] = {
    "berserker": StrategyTemplate(
        id="berserker",
        name="Berserker",
        description="Always attack. Target the weakest opponent. No defence, no mercy.",
        factory=lambda: berserker,
        traits=["aggressive", "ruthless"],
    ),
    "diplomat": StrategyTemplate(
        id="diplomat",
        name="Diplomat",
        description="Form alliances and stay loyal. Win through diplomacy.",
        factory=lambda: diplomat,
        traits=["loyal", "diplomatic"],
    ),
    "trickster": StrategyTemplate(
        id="trickster",
        name="Trickster",
        description="Build trust through an alliance, then strike from ambush.",
        factory=lambda: trickster,
        traits=["deceptive", "cunning"],
    ),
    "turtle": StrategyTemplate(
        id="turtle",
        name="Turtle",
        description="Stay defensive and preserve HP. Attack only the last rival.",
        factory=lambda: turtle,
        traits=["defensive", "patient"],
    ),
    "opportunist": StrategyTemplate(
        id="opportunist",
        name="Opportunist",
        description="Adapt to the situation: attack when strong, defend when weak.",
        factory=make_opportunist,
        traits=["adaptive", "balanced"],
    ),
}


def get_strategy(strategy_id: str) -> Optional[StrategyTemplate]:
    """Get strategy template by ID."""
    return STRATEGY_REGISTRY.get(strategy_id)


def list_strategies() -> List[str]:
    """List all strategy template IDs."""
    return list(STRATEGY_REGISTRY.keys())
