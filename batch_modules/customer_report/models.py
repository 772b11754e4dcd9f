"""
batch_modules.customer_report.models
=====================================

Responsibility:
    The ``Customer`` record processed by the customer report job and its
    mapping form used by the seed-data file.

Invariants enforced:
    - ``id`` identifies the customer; transforms never change it.
    - ``str(customer)`` is the line written to the report.

Failure modes:
    - ``from_dict`` with missing keys -> ``KeyError``; with a bad date
      string -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


@dataclass
class Customer:
    """A customer with a birthday and a count of completed transactions."""

    id: int
    name: str
    birthday: date
    transactions: int

    def __str__(self) -> str:
        return (
            f"Customer(id={self.id}, name={self.name}, "
            f"birthday={self.birthday.isoformat()}, transactions={self.transactions})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "birthday": self.birthday,
            "transactions": self.transactions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Customer:
        birthday = data["birthday"]
        if isinstance(birthday, datetime):
            birthday = birthday.date()
        elif isinstance(birthday, str):
            birthday = date.fromisoformat(birthday)
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            birthday=birthday,
            transactions=int(data["transactions"]),
        )
