#!/usr/bin/env python3
"""
Seed the customer report input file with random customers.

Writes ``--count`` customers (default: ``seed.record_count`` from the
configuration) to the job's input file, replacing its contents.

Usage:
    python3 scripts/seed_data.py [--count N] [--output PATH] [--config PATH]

Examples:
    # 100 customers into the configured input file (database.yaml)
    python3 scripts/seed_data.py

    # 1000 customers into a scratch file
    python3 scripts/seed_data.py --count 1000 --output /tmp/customers.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate random customers for the customer report job.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Number of customers (default: seed.record_count from the config).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Target file (default: job.input_file from the config).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: packaged customer_report.yaml).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    import yaml

    from batch_config import load_configuration
    from batch_kernel.exceptions import ConfigurationError
    from batch_kernel.logging_config import configure_logging
    from batch_modules.customer_report import seed_customers

    try:
        config = load_configuration(args.config)
    except (ConfigurationError, FileNotFoundError, yaml.YAMLError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    configure_logging(level=getattr(logging, config.logging.level))

    count = args.count if args.count is not None else config.seed.record_count
    if count < 0:
        print(f"--count must be >= 0, got {count}", file=sys.stderr)
        return 2
    output = args.output or Path(config.job.input_file)

    customers = seed_customers(output, amount=count)
    print(f"Wrote {len(customers)} customers to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
