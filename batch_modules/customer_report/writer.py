"""
batch_modules.customer_report.writer
=====================================

Responsibility:
    ``CustomerReportWriter`` -- record sink appending one line per
    customer to the report file.

Invariants enforced:
    - Every ``write()`` emits its chunk in one stream write, then flushes.
    - The report file is closed by ``close()``; a fallback stream is
      flushed but never closed.

Failure modes:
    - The report file cannot be opened -> the writer logs a warning and
      falls back to ``sys.stdout`` (or the given fallback stream).
    - ``write()`` before ``open()`` -> ``RuntimeError``.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from batch_kernel.logging_config import get_logger

from batch_modules.customer_report.models import Customer

logger = get_logger("modules.customer_report.writer")


class CustomerReportWriter:
    """Appends ``str(customer)`` lines to a file, or to a fallback stream."""

    def __init__(self, path: Path | str, fallback: TextIO | None = None) -> None:
        self._path = Path(path)
        self._fallback = fallback
        self._stream: TextIO | None = None
        self._owns_stream = False
        self.counter = 0

    def open(self) -> None:
        try:
            self._stream = open(self._path, "a", encoding="utf-8")
            self._owns_stream = True
        except OSError as exc:
            logger.warning(
                "report_file_unavailable",
                extra={"path": str(self._path), "error": str(exc)},
            )
            self._stream = self._fallback or sys.stdout
            self._owns_stream = False

    def write(self, items: Sequence[Customer]) -> None:
        """Append the whole chunk with a single ``write()`` and flush.

        A stream that rejects the write holds none of the chunk.
        """
        if self._stream is None:
            raise RuntimeError("CustomerReportWriter.write() called before open()")
        text = "".join(f"{item}\n" for item in items)
        self._stream.write(text)
        self._stream.flush()
        self.counter += len(items)
        logger.debug("customers_written", extra={"count": len(items), "counter": self.counter})

    def close(self) -> None:
        if self._stream is None:
            return
        self._stream.flush()
        if self._owns_stream:
            self._stream.close()
        self._stream = None
        self._owns_stream = False

    @property
    def using_fallback(self) -> bool:
        return self._stream is not None and not self._owns_stream
