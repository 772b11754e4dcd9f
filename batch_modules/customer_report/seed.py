"""
batch_modules.customer_report.seed
===================================

Responsibility:
    Generates synthetic customers and persists them to the YAML file the
    job's reader consumes.  This is the seed-data collaborator that runs
    before the first job run.

Invariants enforced:
    - Birthdays fall within the 100 years before ``as_of``'s year.
    - ``transactions`` is in ``[0, 100)``.
    - Names contain only the lowercase letters of a random UUID.
    - Ids are ``0..amount-1`` in file order.

Failure modes:
    - Unwritable target path -> ``OSError`` propagates.
"""

from __future__ import annotations

import calendar
import random
import re
from datetime import date, timedelta
from pathlib import Path
from uuid import UUID

import yaml

from batch_kernel.domain.clock import Clock, SystemClock
from batch_kernel.logging_config import get_logger

from batch_modules.customer_report.models import Customer

logger = get_logger("modules.customer_report.seed")

_NON_LETTERS = re.compile(r"[^a-z]")


def generate_customers(
    amount: int,
    as_of: date,
    rng: random.Random | None = None,
) -> list[Customer]:
    """
    Build ``amount`` random customers.

    Args:
        amount: Number of customers; must be >= 0.
        as_of: Reference date; birth years are drawn from
            ``[as_of.year - 100, as_of.year)``.
        rng: Random source.  Defaults to ``random.SystemRandom``.

    Raises:
        ValueError: If ``amount`` is negative.
    """
    if amount < 0:
        raise ValueError(f"amount must be >= 0, got {amount}")
    rng = rng or random.SystemRandom()

    customers: list[Customer] = []
    for i in range(amount):
        year = rng.randrange(as_of.year - 100, as_of.year)
        days_in_year = 366 if calendar.isleap(year) else 365
        birthday = date(year, 1, 1) + timedelta(days=rng.randrange(days_in_year))
        name = _NON_LETTERS.sub("", str(UUID(int=rng.getrandbits(128))))
        customers.append(
            Customer(
                id=i,
                name=name,
                birthday=birthday,
                transactions=rng.randrange(100),
            )
        )
    return customers


def write_customers(path: Path | str, customers: list[Customer]) -> None:
    """Serialize ``customers`` to ``path`` as a YAML list, replacing the file."""
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(
            [customer.to_dict() for customer in customers],
            f,
            sort_keys=False,
        )


def load_customers(path: Path | str) -> list[Customer]:
    """
    Read customers written by ``write_customers``.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a list.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of customers")
    return [Customer.from_dict(entry) for entry in data]


def seed_customers(
    path: Path | str,
    amount: int = 100,
    clock: Clock | None = None,
    rng: random.Random | None = None,
) -> list[Customer]:
    """Generate ``amount`` customers and write them to ``path``."""
    clock = clock or SystemClock()
    customers = generate_customers(amount, clock.today(), rng=rng)
    write_customers(path, customers)
    logger.info(
        "customers_seeded",
        extra={"path": str(path), "record_count": len(customers)},
    )
    return customers
