"""Reference strategy templates for demo agents."""

from .templates import (
    STRATEGY_REGISTRY,
    StrategyTemplate,
    berserker,
    diplomat,
    get_strategy,
    list_strategies,
    make_opportunist,
    trickster,
    turtle,
)

__all__ = [
    "STRATEGY_REGISTRY",
    "StrategyTemplate",
    "berserker",
    "diplomat",
    "get_strategy",
    "list_strategies",
    "make_opportunist",
    "trickster",
    "turtle",
]
