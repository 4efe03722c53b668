# LERM ATIS - Main Orchestrator
# Collect -> fuse -> rotate -> render, plus a one-shot / scheduled CLI.

# Load environment variables FIRST (before any other imports)
from dotenv import load_dotenv
load_dotenv()

import argparse
import asyncio
import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Optional

import schedule

from config import Settings
from collector import collect_all_data
from synthesizer import fuse_snapshots
from broadcast import RotationState, advance_rotation, render_reports
from core.errors import ConfigurationError
from core.models import ReportResult

logger = logging.getLogger("main")

SERVER_ERROR_PREFIX = "Server Error fetching weather data"


async def generate_report(
    rotation_state: RotationState,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> ReportResult:
    """
    Produce one ATIS broadcast.

    Args:
        rotation_state: Rotation state from the previous report
        settings: Secrets and HTTP settings (default: read from the environment)
        now: Reference instant (default: now UTC)

    Returns:
        ReportResult carrying both report strings and the next rotation state.
        On failure the result is error-shaped and the rotation state is the
        one passed in.

    Raises:
        ConfigurationError: a required secret is missing.
    """
    settings = settings or Settings.from_env()
    now = now or datetime.now(timezone.utc)

    try:
        outcomes = await collect_all_data(settings, now=now)
        by_name = {o.name: o for o in outcomes}

        snapshot = fuse_snapshots(
            by_name["forecast"].snapshot,
            by_name["agency"].snapshot,
            by_name["station"].snapshot,
        )
        next_state = advance_rotation(rotation_state, snapshot.observation_time)
        full_report, datis_report = render_reports(snapshot, next_state.identifier)
    except Exception as e:
        logger.exception("ATIS generation failed")
        message = f"{SERVER_ERROR_PREFIX}: {e}"
        return ReportResult(
            ok=False,
            full_report=message,
            datis_report=message,
            rotation_state=rotation_state,
            error=str(e),
        )

    logger.info(
        "Information %s at %s (%d/3 providers)",
        next_state.identifier, snapshot.observation_time,
        sum(1 for o in outcomes if o.ok),
    )
    return ReportResult(
        ok=True,
        full_report=full_report,
        datis_report=datis_report,
        identifier=next_state.identifier,
        snapshot=snapshot,
        providers={o.name: o.to_dict() for o in outcomes},
        rotation_state=next_state,
    )


def _render(result: ReportResult, output_format: str) -> str:
    if output_format == "json":
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    if output_format == "datis":
        return result.datis_report
    return result.full_report


def main():
    parser = argparse.ArgumentParser(
        description="LERM ATIS generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Spoken-style report
  python main.py

  # Data-link report, refreshed every 10 minutes
  python main.py --format datis --every 10
        """
    )
    parser.add_argument(
        "--format", choices=["full", "datis", "json"], default="full",
        help="Output format (default: full)",
    )
    parser.add_argument(
        "--every", type=int, default=0, metavar="MINUTES",
        help="Regenerate on a schedule instead of once",
    )
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        sys.exit(2)

    state = {"rotation": RotationState()}

    def run_once() -> bool:
        result = asyncio.run(generate_report(state["rotation"], settings))
        state["rotation"] = result.rotation_state
        print(_render(result, args.format))
        sys.stdout.flush()
        return result.ok

    if args.every <= 0:
        sys.exit(0 if run_once() else 1)

    run_once()
    schedule.every(args.every).minutes.do(run_once)
    logger.info("Regenerating every %d minutes. Ctrl+C to stop.", args.every)
    try:
        while True:
            schedule.run_pending()
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nInterrupted by user")


if __name__ == "__main__":
    main()
