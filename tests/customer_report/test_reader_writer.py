"""
Tests for CustomerFileReader and CustomerReportWriter.

Validates lazy loading, end-of-stream behaviour, missing-file errors,
append-mode output and the fallback stream.
"""

import random
from datetime import date
from io import StringIO
from uuid import uuid4

import pytest

from batch_kernel.domain.clock import DeterministicClock
from batch_kernel.exceptions import ResourceUnavailableError

from batch_engine.domain.types import JobParameters
from batch_engine.items.base import ItemStream, RecordSink, RecordSource
from batch_engine.steps.base import StepContext, StepContribution
from batch_engine.steps.chunk import ChunkStep

from batch_modules.customer_report import (
    Customer,
    CustomerFileReader,
    CustomerReportWriter,
    generate_customers,
    write_customers,
)

from conftest import ListSource


def _customers(n: int) -> list[Customer]:
    return generate_customers(n, date(2024, 6, 15), rng=random.Random(11))


def _context() -> StepContext:
    return StepContext(
        run_id=uuid4(),
        instance_id=1,
        job_name="customerReportJob",
        step_name="chunkStep",
        parameters=JobParameters(),
        clock=DeterministicClock(),
    )


# =============================================================================
# Reader
# =============================================================================


class TestCustomerFileReader:
    def test_conforms_to_protocols(self, tmp_path):
        reader = CustomerFileReader(tmp_path / "x.yaml")
        assert isinstance(reader, RecordSource)
        assert isinstance(reader, ItemStream)

    def test_reads_in_file_order(self, tmp_path):
        path = tmp_path / "database.yaml"
        customers = _customers(5)
        write_customers(path, customers)

        reader = CustomerFileReader(path)
        reader.open()
        read = []
        while (customer := reader.read()) is not None:
            read.append(customer)
        assert read == customers
        assert reader.counter == 5

    def test_none_repeats_after_exhaustion(self, tmp_path):
        path = tmp_path / "database.yaml"
        write_customers(path, _customers(1))
        reader = CustomerFileReader(path)
        assert reader.read() is not None
        assert reader.read() is None
        assert reader.read() is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "database.yaml"
        path.write_text("")
        assert CustomerFileReader(path).read() is None

    def test_construction_is_lazy(self, tmp_path):
        reader = CustomerFileReader(tmp_path / "missing.yaml")
        reader.open()  # no error until the first read

    def test_missing_file_raises_resource_unavailable(self, tmp_path):
        reader = CustomerFileReader(tmp_path / "missing.yaml")
        with pytest.raises(ResourceUnavailableError) as exc_info:
            reader.read()
        assert "missing.yaml" in exc_info.value.resource
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_close_ends_stream(self, tmp_path):
        path = tmp_path / "database.yaml"
        write_customers(path, _customers(3))
        reader = CustomerFileReader(path)
        reader.read()
        reader.close()
        assert reader.read() is None


# =============================================================================
# Writer
# =============================================================================


class TestCustomerReportWriter:
    def test_conforms_to_protocols(self, tmp_path):
        writer = CustomerReportWriter(tmp_path / "output.txt")
        assert isinstance(writer, RecordSink)
        assert isinstance(writer, ItemStream)

    def test_writes_one_line_per_customer(self, tmp_path):
        path = tmp_path / "output.txt"
        customers = _customers(3)
        writer = CustomerReportWriter(path)
        writer.open()
        writer.write(customers)
        writer.close()

        assert path.read_text().splitlines() == [str(c) for c in customers]
        assert writer.counter == 3

    def test_flushes_every_write(self, tmp_path):
        path = tmp_path / "output.txt"
        writer = CustomerReportWriter(path)
        writer.open()
        writer.write(_customers(2))
        assert len(path.read_text().splitlines()) == 2
        writer.close()

    def test_appends_across_runs(self, tmp_path):
        path = tmp_path / "output.txt"
        for _ in range(2):
            writer = CustomerReportWriter(path)
            writer.open()
            writer.write(_customers(1))
            writer.close()
        assert len(path.read_text().splitlines()) == 2

    def test_write_before_open(self, tmp_path):
        with pytest.raises(RuntimeError, match="open"):
            CustomerReportWriter(tmp_path / "output.txt").write(_customers(1))

    def test_fallback_when_file_unavailable(self, tmp_path, captured_logs):
        fallback = StringIO()
        writer = CustomerReportWriter(tmp_path / "no_such_dir" / "output.txt", fallback=fallback)
        writer.open()
        assert writer.using_fallback
        writer.write(_customers(2))
        writer.close()

        assert len(fallback.getvalue().splitlines()) == 2
        assert not fallback.closed
        warnings = [r for r in captured_logs() if r["message"] == "report_file_unavailable"]
        assert len(warnings) == 1

    def test_close_without_open(self, tmp_path):
        CustomerReportWriter(tmp_path / "output.txt").close()

    def test_one_stream_write_per_chunk(self, tmp_path):
        class CountingStream(StringIO):
            writes = 0

            def write(self, text):
                self.writes += 1
                return super().write(text)

        stream = CountingStream()
        writer = CustomerReportWriter(tmp_path / "no_such_dir" / "output.txt", fallback=stream)
        writer.open()
        writer.write(_customers(4))
        assert stream.writes == 1
        assert writer.counter == 4


class TestWriterUnderChunkRetry:
    def test_failed_chunk_not_duplicated_on_retry(self, tmp_path):
        customers = _customers(5)

        class RejectOnceStream(StringIO):
            """Raises once, on the first write carrying the third customer."""

            rejected = False

            def write(self, text):
                if not self.rejected and str(customers[2]) in text:
                    self.rejected = True
                    raise OSError("disk full")
                return super().write(text)

        stream = RejectOnceStream()
        writer = CustomerReportWriter(tmp_path / "no_such_dir" / "output.txt", fallback=stream)
        step = ChunkStep(
            "chunkStep",
            source_factory=lambda ctx: ListSource(customers),
            sink_factory=lambda ctx: writer,
            chunk_size=5,
            write_retry_limit=1,
        )
        contribution = StepContribution()
        step.execute(_context(), contribution)

        assert stream.rejected
        assert stream.getvalue().splitlines() == [str(c) for c in customers]
        assert contribution.commit_count == 1
        assert writer.counter == 5
