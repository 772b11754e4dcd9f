"""
Item protocols, validating transform, and TransformChain.

Contract:
    ``RecordSource`` yields records one ``read()`` at a time.
    ``RecordSink`` receives whole chunks through ``write()``.
    ``ItemTransform`` maps one record to ``Kept`` or ``Dropped``.
    ``TransformChain`` applies transforms in declared order.

Architecture:
    batch_engine/items.  Imports only batch_engine.domain and the kernel
    exception types.  Concrete sources/sinks/transforms live in the job
    modules (batch_modules).

Invariants enforced:
    - ``read()`` returns ``None`` (end of stream) on every call once the
      input is exhausted.
    - A filter-mode validator never lets ``ValidationError`` escape; the
      failure becomes ``Dropped(reason)``.
    - The chain stops at the first ``Dropped``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any, Protocol, runtime_checkable

from batch_kernel.exceptions import ValidationError
from batch_kernel.logging_config import get_logger

from batch_engine.domain.types import Dropped, ItemOutcome, Kept

logger = get_logger("batch.items")


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class ItemStream(Protocol):
    """Optional open/close hooks for sources and sinks.

    The chunk step calls ``open()`` before the first read or write and
    ``close()`` on every exit path, including failures.
    """

    def open(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class RecordSource(Protocol):
    """Stateful, single-pass producer of records.

    Non-goals:
        - Not safe for concurrent calls from several threads.
    """

    def read(self) -> Any | None:
        """Return the next record, or ``None`` once the input is exhausted."""
        ...


@runtime_checkable
class RecordSink(Protocol):
    """Consumer of finished chunks.

    ``write()`` receives 1..chunk_size records and must flush its buffers
    before returning; one call is one commit boundary.  A sink used with
    write retries must be all-or-nothing: if ``write()`` raises, none of
    the chunk may have been emitted, since the retry resends all of it.
    """

    def write(self, items: Sequence[Any]) -> None: ...


@runtime_checkable
class ItemTransform(Protocol):
    """Single-record transform returning a tagged outcome."""

    def process(self, item: Any) -> ItemOutcome: ...


# =============================================================================
# Validation
# =============================================================================


class ValidatingTransform:
    """Runs a validator against each item.

    The validator raises ``ValidationError`` for an invalid item.  In
    filter mode the error is converted to ``Dropped``; otherwise it
    propagates and fails the step.
    """

    def __init__(
        self,
        validator: Callable[[Any], None],
        filter_mode: bool = True,
    ) -> None:
        self._validator = validator
        self._filter_mode = filter_mode

    @property
    def filter_mode(self) -> bool:
        return self._filter_mode

    def process(self, item: Any) -> ItemOutcome:
        try:
            self._validator(item)
        except ValidationError as exc:
            if not self._filter_mode:
                raise
            return Dropped(reason=exc.reason)
        return Kept(item)


# =============================================================================
# TransformChain
# =============================================================================


class TransformChain:
    """Ordered composition of item transforms.

    Contract:
        - Each transform receives the item kept by the previous one.
        - The first ``Dropped`` ends the chain for that item.
        - An empty chain keeps every item unchanged.
    """

    def __init__(self, transforms: Iterable[ItemTransform] = ()) -> None:
        self._transforms: tuple[ItemTransform, ...] = tuple(transforms)

    def apply(self, item: Any) -> ItemOutcome:
        current = item
        for transform in self._transforms:
            outcome = transform.process(current)
            if isinstance(outcome, Dropped):
                logger.debug(
                    "item_dropped",
                    extra={
                        "transform": type(transform).__name__,
                        "reason": outcome.reason,
                    },
                )
                return outcome
            current = outcome.item
        return Kept(current)

    def __len__(self) -> int:
        return len(self._transforms)

    def __iter__(self):
        return iter(self._transforms)
