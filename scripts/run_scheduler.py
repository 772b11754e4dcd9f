#!/usr/bin/env python3
"""
Run the customer report job on its fixed-rate schedule.

The scheduler fires every ``schedule.period_ms`` milliseconds until the
duration elapses or the process is interrupted (Ctrl-C).  On shutdown
every known job is logged with its instance count.

Usage:
    python3 scripts/run_scheduler.py [--config PATH] [--duration SECONDS] [--once] [--seed]

Examples:
    # Seed 100 customers, then run every 5 seconds until Ctrl-C
    python3 scripts/run_scheduler.py --seed

    # Run the scheduler for 30 seconds
    python3 scripts/run_scheduler.py --duration 30

    # One synchronous run; exit status 1 if it failed
    python3 scripts/run_scheduler.py --once
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the customer report job on a fixed-rate schedule.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: packaged customer_report.yaml).",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Seconds to keep the scheduler running (default: until interrupted).",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Launch one run synchronously instead of scheduling.",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Regenerate the input file (seed.record_count customers) first.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    import yaml

    from batch_config import load_configuration
    from batch_engine.domain.types import BatchStatus
    from batch_engine.orchestrator import BatchOrchestrator
    from batch_kernel.exceptions import ConfigurationError, InvalidScheduleError
    from batch_kernel.logging_config import configure_logging
    from batch_modules.customer_report import seed_customers

    try:
        config = load_configuration(args.config)
    except (ConfigurationError, FileNotFoundError, yaml.YAMLError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    configure_logging(level=getattr(logging, config.logging.level))

    if args.seed:
        seed_customers(Path(config.job.input_file), amount=config.seed.record_count)

    with BatchOrchestrator.from_config(config) as orchestrator:
        if args.once:
            run = orchestrator.launcher.start_next_instance(orchestrator.definition)
            print(f"Run {run.run_id} finished: {run.status.value}")
            return 0 if run.status == BatchStatus.COMPLETED else 1

        try:
            orchestrator.start()
        except InvalidScheduleError as exc:
            print(f"Schedule error: {exc}", file=sys.stderr)
            return 2

        try:
            threading.Event().wait(timeout=args.duration)
        except KeyboardInterrupt:
            pass

    return 0


if __name__ == "__main__":
    sys.exit(main())
