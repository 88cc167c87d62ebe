"""asset-alerts entrypoint -- checks prices once, sends alerts, saves state.

Meant to be triggered by cron; every invocation is independent.

Usage:
    python main.py
    python main.py --config /path/to/config.yaml --state /path/to/state.json
    python main.py -v --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from alerts.runner import RunReport, run_once
from core.config import load_config
from core.data.store import StateStore
from core.errors import AlertsError
from plugins.integrations.ntfy import NtfySender
from plugins.market_data.yahoo_finance import YahooFinanceProvider

logger = logging.getLogger("asset_alerts")


def setup_logging(level: str) -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Price alerts for stocks and crypto via ntfy")
    parser.add_argument(
        "--config", "-c",
        type=str,
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "--state",
        type=str,
        default=None,
        help="Path to state file (default: state.json next to the config file)",
    )
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help="Path to .env file (default: .env next to the config file)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check prices but don't send notifications",
    )
    return parser.parse_args(argv)


def _print_report(report: RunReport) -> None:
    if report.dry_run and report.triggered:
        print("Dry run - would send the following alerts:")
        for alert in report.triggered:
            print(f"  • {alert.display_name}: {alert.message} (price: ${alert.price:.2f})")
        return

    for alert in report.triggered:
        print(f"✓ Alert: {alert.display_name} - {alert.message}")
    if report.failed:
        print(f"✗ {report.failed} alert(s) could not be delivered", file=sys.stderr)


async def run(args: argparse.Namespace) -> RunReport:
    """Load config and state, then run one alert cycle."""
    config = load_config(args.config, env_path=args.env)
    if not args.verbose:
        setup_logging(config.logging.level)

    state_path = args.state or config.state_path(args.config)
    store = StateStore.load(state_path, retention=config.state.retention_window)
    logger.info("Loaded state from %s", state_path)

    quote_source = YahooFinanceProvider()
    sink = None if args.dry_run else NtfySender(config.ntfy)
    try:
        report = await run_once(config, store, quote_source, sink, dry_run=args.dry_run)
    finally:
        await quote_source.close()
        if sink is not None:
            await sink.close()

    logger.info("State saved to %s", state_path)
    return report


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")
    try:
        report = asyncio.run(run(args))
    except AlertsError as exc:
        logger.error("%s (%s)", exc.message, exc.code)
        return 1
    except KeyboardInterrupt:
        return 130

    _print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
