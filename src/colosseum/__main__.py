"""Main entry point for Colosseum.

Runs a demo match: fills one tier arena with template strategies and drives
it to completion through the arena manager.
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from .core.arena_manager import ArenaManager
from .core.config import ArenaConfig, EngineConfig, TIER_CONFIG
from .core.enums import EngineEvent
from .core.game_engine import MatchEngine
from .core.match_state import AgentDescriptor
from .strategies import STRATEGY_REGISTRY
from .utils.logger import attach_match_log, detach_match_log, setup_logger


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a Colosseum demo match")
    parser.add_argument("--tier", default="silver", choices=sorted(TIER_CONFIG))
    parser.add_argument(
        "--strategies",
        default="berserker,diplomat,trickster,turtle",
        help="Comma-separated strategy template IDs, one agent each",
    )
    parser.add_argument("--quiet", action="store_true", help="Log at INFO instead of DEBUG")
    parser.add_argument("--no-log-file", action="store_true")
    return parser.parse_args(argv)


async def run_demo(args: argparse.Namespace) -> int:
    logger = logging.getLogger("colosseum.demo")

    engine = MatchEngine(EngineConfig.from_env())
    manager = ArenaManager(engine, ArenaConfig.from_env())
    manager.events.subscribe(
        EngineEvent.AGENT_DIED,
        lambda event, data: logger.info(f"  {data['agent_id']} fell on turn {data['turn']}"),
    )
    if not args.no_log_file:
        manager.events.subscribe(
            EngineEvent.MATCH_STARTED,
            lambda event, data: attach_match_log(data["match_id"]),
        )
        manager.events.subscribe(
            EngineEvent.MATCH_ENDED,
            lambda event, data: detach_match_log(data["match_id"]),
        )

    arena = next(a for a in manager.list_arenas() if a.tier == args.tier)
    strategy_ids = [s.strip() for s in args.strategies.split(",") if s.strip()]
    unknown = [s for s in strategy_ids if s not in STRATEGY_REGISTRY]
    if unknown:
        logger.error(f"Unknown strategies: {unknown}")
        return 2

    logger.info(f"Filling {arena.name} ({arena.arena_id}) with {len(strategy_ids)} agents")
    for i, strategy_id in enumerate(strategy_ids[: arena.max_agents]):
        template = STRATEGY_REGISTRY[strategy_id]
        manager.join_arena(
            arena.arena_id,
            AgentDescriptor(
                id=f"agent_{i + 1:02d}_{strategy_id}",
                owner="demo",
                strategy=template.build(),
            ),
        )

    try:
        result = await manager.wait_for_match(arena.arena_id)
        if result is None:
            # Below max capacity: the countdown launches the match
            await asyncio.sleep(manager.config.countdown_seconds + 0.1)
            result = await manager.wait_for_match(arena.arena_id)
    finally:
        manager.shutdown()

    if result is None:
        logger.error("Match never launched; check the arena's minimum agent count")
        return 1

    logger.info(f"\n{'=' * 60}")
    logger.info(
        f"Match {result.match_id}: {result.total_turns} turns, "
        f"winner={result.winner_id or 'none (draw)'} ({result.end_reason.value})"
    )
    if result.prize_distribution:
        for allocation in result.prize_distribution.allocations:
            logger.info(f"  {allocation.agent_id}: {allocation.amount}")
    logger.info(f"{'=' * 60}\n")
    return 0


def main(argv=None):
    """Main entry point for Colosseum."""
    load_dotenv()
    args = _parse_args(argv)

    setup_logger(verbose=not args.quiet, save_to_file=not args.no_log_file)
    logger = logging.getLogger("colosseum")

    try:
        exit_code = asyncio.run(run_demo(args))
    except KeyboardInterrupt:
        logger.info("\nMatch interrupted by user")
        exit_code = 130
    except Exception as e:
        logger.error(f"Match error: {e}", exc_info=True)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
