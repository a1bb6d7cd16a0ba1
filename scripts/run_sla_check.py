#!/usr/bin/env python3
"""
Run a single SLA check from the command line.

Usage:
    python scripts/run_sla_check.py
    python scripts/run_sla_check.py --now 2024-01-15T12:00:00Z --timeout 60

Prints the run summary as JSON. Exit code is 0 for a completed run, 1 when
the run failed before evaluation and 2 when it completed with per-ticket
failures.
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import settings
from src.infrastructure.database import close_database, init_database
from src.sla.infrastructure.external import SLAConfigManager
from src.sla.services import build_email_client, build_evaluation_service, run_sla_check
from src.shared.infrastructure.logging import setup_logging


def parse_now(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO timestamp: {value}") from e


async def main(now, timeout):
    setup_logging(settings.log_level, settings.environment)
    init_database()

    config_manager = SLAConfigManager()
    config_manager.load(settings.sla_config_path)
    email_client = build_email_client(settings)

    try:
        service = build_evaluation_service(config_manager, email_client, settings)
        summary = await run_sla_check(service, now=now, timeout_seconds=timeout)
    finally:
        await email_client.close()
        await close_database()

    print(summary.model_dump_json(indent=2))

    if summary.status == "failed":
        return 1
    return 2 if summary.failures else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run one SLA breach check")
    parser.add_argument(
        "--now",
        type=parse_now,
        default=None,
        help="Evaluate as of this ISO timestamp (default: current time)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Stop starting new tickets after this many seconds"
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.now, args.timeout)))
