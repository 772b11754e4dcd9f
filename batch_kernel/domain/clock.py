"""
Clock -- Injectable time abstraction.

Responsibility:
    Lets the engine, the scheduler and time-dependent item transforms read
    "now" from an injected object instead of calling ``datetime.now()``.
    The birthday filter decides on the month of ``clock.now()``, so tests
    pin the month with a ``DeterministicClock``.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the one sanctioned I/O boundary
    for time.

Failure modes:
    - None.  ``DeterministicClock`` never raises.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        Services that need the current time receive a Clock via
        constructor injection.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def today(self):
        """Get the current date according to ``now()``."""
        return self.now().date()


class SystemClock(Clock):
    """Production clock returning the local wall-clock time, timezone-aware."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone()


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )
        self._advance_seconds = 0.0

    def now(self) -> datetime:
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0.0

    def advance(self, seconds: float = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds
