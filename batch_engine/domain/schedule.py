"""
Pure schedule evaluation functions.

Contract:
    ``compute_next_fire()``, ``should_fire()`` and the parameter builders
    are PURE -- no I/O, no clock reads, no side effects.  The scheduler
    passes in the monotonic time and the number of in-flight runs.

Architecture: batch_engine/domain.  ZERO I/O.

Invariants enforced:
    - Fixed-rate timing: fire times are ``anchor + k * period``; a late
      tick never shifts later fire times.
    - Every run request built here differs from all earlier ones in at
      least one parameter, so a completed instance is never re-launched.
"""

from __future__ import annotations

import math
from enum import Enum

from batch_engine.domain.types import JobParameters, OverlapPolicy

RUN_ID_KEY = "run.id"
NONCE_KEY = "uniqueness"


class ParametersStrategy(str, Enum):
    """How the scheduler makes each tick's parameters unique."""

    NONCE = "nonce"  # Add a fresh nanosecond nonce
    INCREMENT = "increment"  # Bump run.id from the last instance


# =============================================================================
# Fire-time evaluation (pure)
# =============================================================================


def compute_next_fire(anchor: float, period: float, now: float) -> float:
    """Return the first fixed-rate fire time strictly after ``now``.

    Args:
        anchor: Monotonic time of the first fire.
        period: Seconds between fires; must be positive.
        now: Current monotonic time.

    Raises:
        ValueError: If ``period`` is not positive.
    """
    if period <= 0:
        raise ValueError(f"Period must be positive: {period}")
    if now < anchor:
        return anchor
    elapsed_periods = math.floor((now - anchor) / period) + 1
    return anchor + elapsed_periods * period


def should_fire(policy: OverlapPolicy, in_flight: int) -> bool:
    """Decide whether a tick may launch a run.

    Rules:
        - ALLOW and QUEUE always launch (QUEUE defers execution to a
          single worker, it never drops the tick).
        - SKIP_IF_RUNNING launches only when nothing is in flight.
    """
    if policy == OverlapPolicy.SKIP_IF_RUNNING:
        return in_flight == 0
    return True


# =============================================================================
# Run parameters (pure)
# =============================================================================


class RunIdIncrementer:
    """Produces the next instance's parameters by bumping ``run.id``."""

    def __init__(self, key: str = RUN_ID_KEY):
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def get_next(self, previous: JobParameters | None) -> JobParameters:
        if previous is None:
            return JobParameters.from_mapping({self._key: 1})
        last = previous.get(self._key, 0)
        return previous.with_values(**{self._key: int(last) + 1})


def nonce_parameters(base: JobParameters, nonce: int) -> JobParameters:
    """Return ``base`` plus a run-unique nonce."""
    return base.with_values(**{NONCE_KEY: nonce})
