"""Decision models submitted by strategies each turn.

Strategies return either one of the models below or a plain mapping in the
wire format used by agent scripts::

    {"action": "attack", "target": "agent_02"}
    {"action": "propose_alliance", "target": "agent_03", "terms": {"prizeShare": 70}}
    {"action": "betray_alliance", "allianceId": "alliance_1f", "attackTarget": "agent_03"}

Anything that fails validation is rejected with ``DecisionError`` and the
collector substitutes a defend.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .errors import DecisionError


class _DecisionModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json")


class AllianceTerms(_DecisionModel):
    """Proposed prize split; ``prize_share`` is the proposer's percentage."""

    prize_share: int = Field(default=50, ge=0, le=100, alias="prizeShare")


class DefendDecision(_DecisionModel):
    action: Literal["defend"] = "defend"


class AttackDecision(_DecisionModel):
    action: Literal["attack"] = "attack"
    target: str


class ProposeAllianceDecision(_DecisionModel):
    action: Literal["propose_alliance"] = "propose_alliance"
    target: str
    terms: AllianceTerms = Field(default_factory=AllianceTerms)

    @field_validator("terms", mode="before")
    @classmethod
    def _null_terms_mean_even_split(cls, value: Any) -> Any:
        return AllianceTerms() if value is None else value


class AcceptAllianceDecision(_DecisionModel):
    action: Literal["accept_alliance"] = "accept_alliance"
    proposer: str


class BetrayAllianceDecision(_DecisionModel):
    action: Literal["betray_alliance"] = "betray_alliance"
    alliance_id: str = Field(alias="allianceId")
    attack_target: str = Field(alias="attackTarget")


Decision = Annotated[
    Union[
        DefendDecision,
        AttackDecision,
        ProposeAllianceDecision,
        AcceptAllianceDecision,
        BetrayAllianceDecision,
    ],
    Field(discriminator="action"),
]

_decision_adapter = TypeAdapter(Decision)


def default_decision() -> DefendDecision:
    """Decision used whenever a strategy fails to produce one."""
    return DefendDecision()


def parse_decision(agent_id: str, raw: Any) -> Decision:
    """Validate a strategy's raw output into a decision model.

    Args:
        agent_id: Agent that produced the output (for error context)
        raw: Model instance or mapping returned by the strategy

    Returns:
        The validated decision

    Raises:
        DecisionError: If the output is missing or malformed
    """
    if isinstance(raw, _DecisionModel) and not isinstance(raw, AllianceTerms):
        return raw
    if raw is None:
        raise DecisionError(agent_id, raw, "no decision returned")
    if not isinstance(raw, Mapping):
        raise DecisionError(agent_id, raw, f"expected dict, got {type(raw).__name__}")

    try:
        return _decision_adapter.validate_python(dict(raw))
    except ValidationError as e:
        reasons = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'decision'}: {err['msg']}"
            for err in e.errors()
        )
        raise DecisionError(agent_id, raw, reasons) from e
