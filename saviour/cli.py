"""Command-line interface for the position-rescue engine."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import load_config
from .errors import SafetyRatioNotMet
from .fixed_point import format_wad, to_ray, to_wad
from .logging_setup import configure_logging
from .models import MarketSnapshot, NotManaged, PositionSnapshot, Rejected, Rescued
from .services import compute_required_collateral, run_scenario
from .services.scenario import load_scenario


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="safe-saviour",
        description="Position-rescue engine for undercollateralized vaults",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    quote = sub.add_parser("quote", help="Compute the top-up for a position")
    quote.add_argument("--locked", required=True, help="Locked collateral")
    quote.add_argument("--debt", required=True, help="Generated debt")
    quote.add_argument("--rate", default="1", help="Accumulated rate (default: 1)")
    quote.add_argument("--liquidation-price", required=True, help="Liquidation price")
    quote.add_argument("--safety-price", required=True, help="Safety price")

    simulate = sub.add_parser("simulate", help="Run a rescue scenario in memory")
    simulate.add_argument("scenario", help="Path to a scenario YAML file")

    sub.add_parser("check-config", help="Load and validate config.yaml")

    return parser


def _quote(args: argparse.Namespace) -> int:
    position = PositionSnapshot(
        locked_collateral=to_wad(args.locked), generated_debt=to_wad(args.debt)
    )
    market = MarketSnapshot(
        accumulated_rate=to_ray(args.rate),
        liquidation_price=to_ray(args.liquidation_price),
        safety_price=to_ray(args.safety_price),
        oracle_price=0,
    )
    try:
        required = compute_required_collateral(position, market)
    except SafetyRatioNotMet as e:
        print(f"No rescue: {e}")
        return 0
    print(f"Required collateral: {format_wad(required, 18)}")
    return 0


async def _simulate(args: argparse.Namespace) -> int:
    result = await run_scenario(load_scenario(args.scenario))
    for handler, outcome in result.outcomes:
        if isinstance(outcome, Rescued):
            print(
                f"{handler}: rescued vault {outcome.vault_id} "
                f"+{format_wad(outcome.collateral_added)} "
                f"(reward {format_wad(outcome.reward)})"
            )
        elif isinstance(outcome, NotManaged):
            print(f"{handler}: not managed")
        elif isinstance(outcome, Rejected):
            print(f"{handler}: rejected ({type(outcome.reason).__name__}: {outcome.reason})")
    return 0


def _check_config(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    print(f"Engine: {config.engine.address}")
    print(f"Treasury: {config.engine.treasury}")
    print(f"Protocol caller: {config.engine.protocol_caller}")
    print(f"Liquidator reward: {format_wad(config.engine.liquidator_reward)}")
    for collateral_type, token in sorted(config.collateral_types.items()):
        print(f"  {collateral_type} -> {token}")
    print(f"Eligible vaults: {', '.join(map(str, config.eligible_vaults)) or '—'}")
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)

    if args.command == "quote":
        code = _quote(args)
    elif args.command == "simulate":
        code = asyncio.run(_simulate(args))
    else:
        code = _check_config(args)
    sys.exit(code)
