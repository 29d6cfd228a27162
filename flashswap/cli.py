"""Command-line interface for the flash liquidation executor."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .chains.evm import EvmClient, fetch_pool_snapshot
from .config import AppConfig, load_config
from .errors import FlashSwapError
from .logging_setup import configure_logging
from .pricing import read_reserves, repayment_amount
from .services import SettlementReporter, Simulation


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="flashswap",
        description="Flash-swap funded liquidation executor",
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

    quote_parser = sub.add_parser("quote", help="Repayment owed for a borrow, from given reserves")
    quote_parser.add_argument("base_reserve", type=int)
    quote_parser.add_argument("quote_reserve", type=int)
    quote_parser.add_argument("amount", type=int, help="Quote amount to borrow")

    reserves_parser = sub.add_parser("reserves", help="Read live reserves of the configured pool")
    reserves_parser.add_argument(
        "amount",
        nargs="?",
        type=int,
        default=None,
        help="Also quote the repayment for borrowing this quote amount",
    )
    reserves_parser.add_argument(
        "--pair",
        default=None,
        help="Registered pool id to read instead of the active pool",
    )

    sub.add_parser("simulate", help="Run one liquidation against in-memory collaborators")

    return parser


async def _reserves(config: AppConfig, pair_id: str | None, amount: int | None) -> int:
    ex = config.executor
    if pair_id is not None and pair_id not in ex.pairs:
        known = ", ".join(sorted(ex.pairs)) or "none"
        print(f"Unknown pair '{pair_id}' (registered: {known})", file=sys.stderr)
        return 1
    if ex.chain not in config.chains:
        print("executor.chain does not name a configured chain", file=sys.stderr)
        return 1

    pool_address = ex.pairs[pair_id] if pair_id else ex.pool
    client = EvmClient(config.chains[ex.chain])
    snapshot = await fetch_pool_snapshot(client, pool_address)
    reserves = read_reserves(snapshot, ex.base_token)
    print(f"Pool {snapshot.address}")
    print(f"  base reserve:  {reserves.base}")
    print(f"  quote reserve: {reserves.quote}")
    if amount is not None:
        print(f"  repayment for {amount}: {repayment_amount(reserves.base, reserves.quote, amount)}")
    return 0


async def _simulate(config: AppConfig) -> int:
    reporter = SettlementReporter.from_config(config.notifications)
    simulation = Simulation(config)
    try:
        result = simulation.run()
    except FlashSwapError as e:
        print(f"Settlement aborted: {type(e).__name__}: {e}", file=sys.stderr)
        await reporter.report_failure(e)
        return 1
    print(reporter.format_result(result))
    await reporter.report(result)
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)

    if args.command == "quote":
        try:
            owed = repayment_amount(args.base_reserve, args.quote_reserve, args.amount)
        except (ArithmeticError, ValueError) as e:
            print(f"Cannot quote: {e}", file=sys.stderr)
            return 1
        print(owed)
        return 0

    config = load_config(args.config)
    if args.command == "reserves":
        return await _reserves(config, args.pair, args.amount)
    if args.command == "simulate":
        return await _simulate(config)

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
