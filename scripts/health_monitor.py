#!/usr/bin/env python3
"""
Headless Smart Health Monitor.

Runs the simulated wearable monitor loop with logging sinks: vitals,
banners, SMS notifications and device cues all go to the log.

Usage:
    python scripts/health_monitor.py --ticks 40 --interval 0.5
    python scripts/health_monitor.py --scenario critical --ticks 5 --seed 7
    python scripts/health_monitor.py --scenario low_oxygen --export export.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from vitals_monitor import SCENARIOS, HealthMonitor
from vitals_monitor.config import MonitorSettings

# Load environment variables
load_dotenv()

logger = logging.getLogger("health_monitor")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Simulated wearable health monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Scenarios: {', '.join(SCENARIOS)}",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between ticks (default: VITALS_TICK_INTERVAL or 1.5)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        help="Number of ticks to run (default: unlimited)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for a reproducible simulation",
    )
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        help="Inject a named scenario before the first tick",
    )
    parser.add_argument(
        "--history-file",
        help="Where the alert history is persisted",
    )
    parser.add_argument(
        "--export",
        type=Path,
        help="Write the exported health data to this JSON file on exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> MonitorSettings:
    """Environment settings overridden by the command line."""
    overrides = {}
    if args.interval is not None:
        overrides["tick_interval"] = args.interval
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if args.history_file:
        overrides["history_file"] = args.history_file
    return MonitorSettings(**overrides)


async def run(monitor: HealthMonitor, ticks: int = None, scenario: str = None) -> int:
    """
    Drive the monitor.

    With a tick count the ticks run back to back at the configured
    interval; without one the background loops run until cancelled.

    Returns:
        Number of ticks executed
    """
    if ticks is None:
        await monitor.start()
        if scenario:
            monitor.run_scenario(scenario)
        try:
            await asyncio.Event().wait()
        finally:
            await monitor.stop()
        return monitor.tick_count

    monitor.load_history()
    if scenario:
        monitor.run_scenario(scenario)
    try:
        for _ in range(ticks):
            await asyncio.sleep(monitor.settings.tick_interval)
            monitor.tick()
        await monitor.dispatcher.wait_delivered()
    finally:
        await monitor.stop()
    return monitor.tick_count


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("Smart Health Monitor")
    print("=" * 60)

    try:
        settings = settings_from_args(args)
    except ValueError as e:
        print(f"[ERROR] Invalid configuration: {e}")
        return 2

    monitor = HealthMonitor(settings=settings)

    try:
        asyncio.run(run(monitor, ticks=args.ticks, scenario=args.scenario))
        print("\n[INFO] Monitoring complete")
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    finally:
        status = monitor.get_status()
        print(
            f"[INFO] Ticks: {status['tick_count']}, alerts in history: {status['history_length']}, "
            f"device status: {status['device_status']}"
        )
        if args.export:
            args.export.write_text(
                json.dumps(monitor.export_data(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            print(f"[INFO] Health data exported to {args.export}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
