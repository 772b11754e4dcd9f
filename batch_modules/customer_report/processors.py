"""
batch_modules.customer_report.processors
=========================================

Responsibility:
    The two item transforms of the customer report chunk step.

    ``BirthdayFilter``       -- keeps customers born in the current month.
    ``TransactionValidator`` -- rejects customers with ``limit`` or more
                                transactions (filter mode: dropped).

Invariants enforced:
    - The current month is read from the injected clock at process time,
      so a run in another month selects other customers.  Within one
      month the verdict for a customer never changes.
"""

from __future__ import annotations

from batch_kernel.domain.clock import Clock
from batch_kernel.exceptions import ValidationError

from batch_engine.domain.types import Dropped, ItemOutcome, Kept
from batch_engine.items.base import ValidatingTransform

from batch_modules.customer_report.models import Customer

DEFAULT_TRANSACTION_LIMIT = 5


class BirthdayFilter:
    """Keeps a customer iff their birthday month is the current month."""

    def __init__(self, clock: Clock) -> None:
        self._clock = clock

    def process(self, item: Customer) -> ItemOutcome:
        current_month = self._clock.now().month
        if item.birthday.month == current_month:
            return Kept(item)
        return Dropped(
            reason=f"birthday month {item.birthday.month} is not {current_month}"
        )


class TransactionValidator(ValidatingTransform):
    """A customer must have fewer than ``limit`` completed transactions."""

    def __init__(
        self,
        limit: int = DEFAULT_TRANSACTION_LIMIT,
        filter_mode: bool = True,
    ) -> None:
        super().__init__(self._validate, filter_mode=filter_mode)
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def _validate(self, item: Customer) -> None:
        if item.transactions >= self._limit:
            raise ValidationError(
                f"Customer {item.id} has {item.transactions} transactions; "
                f"must have fewer than {self._limit}"
            )
