"""batch_kernel.domain -- Pure kernel value objects (clock)."""

from batch_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
]
