"""
batch_modules.customer_report.reader
=====================================

Responsibility:
    ``CustomerFileReader`` -- record source over the seed-data file.

Invariants enforced:
    - The file is loaded lazily on the first ``read()``.
    - Records come back in file order; after the last one every
      ``read()`` returns ``None``.

Failure modes:
    - Missing or unreadable file -> ``ResourceUnavailableError`` on the
      first ``read()``.
    - Malformed YAML -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from batch_kernel.exceptions import ResourceUnavailableError
from batch_kernel.logging_config import get_logger

from batch_modules.customer_report.models import Customer
from batch_modules.customer_report.seed import load_customers

logger = get_logger("modules.customer_report.reader")


class CustomerFileReader:
    """Stateful, single-pass reader of customers from a YAML file."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._iterator: Iterator[Customer] | None = None
        self._exhausted = False
        self.counter = 0

    def open(self) -> None:
        """Loading is deferred to the first ``read()``."""

    def read(self) -> Customer | None:
        if self._exhausted:
            return None
        if self._iterator is None:
            logger.info("customer_reader_opened", extra={"path": str(self._path)})
            try:
                customers = load_customers(self._path)
            except OSError as exc:
                raise ResourceUnavailableError(str(self._path), str(exc)) from exc
            self._iterator = iter(customers)

        customer = next(self._iterator, None)
        if customer is None:
            self._exhausted = True
            return None
        logger.debug("reading_next_customer", extra={"counter": self.counter})
        self.counter += 1
        return customer

    def close(self) -> None:
        self._iterator = None
        self._exhausted = True
