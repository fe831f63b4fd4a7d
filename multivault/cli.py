"""Command-line interface for the multivault engine."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .bootstrap import build_engine
from .config import load_config
from .constants import ACCOUNTING_SCALE
from .logging_setup import configure_logging
from .notifications import TelegramNotifier, describe_event
from .services import PositionMonitor
from .services.replay import load_script, parse_amount, replay


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="multivault",
        description="Multi-collateral debt-position engine",
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

    sub.add_parser("assets", help="List supported assets with normalized prices")

    value_parser = sub.add_parser("value", help="Accounting value of a raw asset amount")
    value_parser.add_argument("symbol", help="Asset symbol, e.g. WETH")
    value_parser.add_argument("amount", help="Amount in native units, e.g. 1e18")

    replay_parser = sub.add_parser("replay", help="Replay a YAML script of operations")
    replay_parser.add_argument("script", help="Path to the replay script")

    return parser


def _fmt_scaled(value: int) -> str:
    whole, frac = divmod(value, ACCOUNTING_SCALE)
    return f"{whole:,}.{frac:018d}"


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    ctx = await build_engine(config)
    engine = ctx.engine

    if args.command == "assets":
        for address in engine.registry.assets():
            asset = engine.registry.asset(address)
            price = await engine.registry.price(address)
            print(f"{asset.symbol:<8} {asset.decimals:>2} decimals  ${_fmt_scaled(price)}")
        return 0

    if args.command == "value":
        asset = engine.registry.find(args.symbol)
        value = await engine.asset_value(asset.address, parse_amount(args.amount))
        print(f"{args.amount} {asset.symbol} = ${_fmt_scaled(value)}")
        return 0

    if args.command == "replay":
        outcomes = await replay(ctx, load_script(args.script))
        for outcome in outcomes:
            mark = "ok " if outcome.ok else "ERR"
            print(f"[{mark}] #{outcome.index} {outcome.op}: {outcome.detail}")
        print()
        for event in ctx.event_log.events:
            print(describe_event(event))
        print()
        notifiers = []
        if config.notifications.telegram.enabled:
            notifiers.append(TelegramNotifier(config.notifications.telegram))
        monitor = PositionMonitor(
            engine, notifiers, health_warning=config.monitor.health_warning
        )
        for snapshot in await monitor.check_and_alert():
            print(
                f"{snapshot.user:<12} {snapshot.symbol:<8} debt {snapshot.debt}  "
                f"health {monitor.format_health(snapshot.health_ratio)}  {snapshot.status}"
            )
        return 0 if all(o.ok for o in outcomes) else 1

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
