"""
batch_modules.customer_report -- Monthly customer report job.

Reports customers born in the current month with fewer than five
completed transactions.
"""

from batch_modules.customer_report.job import build_job_definition
from batch_modules.customer_report.models import Customer
from batch_modules.customer_report.processors import (
    DEFAULT_TRANSACTION_LIMIT,
    BirthdayFilter,
    TransactionValidator,
)
from batch_modules.customer_report.reader import CustomerFileReader
from batch_modules.customer_report.seed import (
    generate_customers,
    load_customers,
    seed_customers,
    write_customers,
)
from batch_modules.customer_report.writer import CustomerReportWriter

__all__ = [
    "DEFAULT_TRANSACTION_LIMIT",
    "BirthdayFilter",
    "Customer",
    "CustomerFileReader",
    "CustomerReportWriter",
    "TransactionValidator",
    "build_job_definition",
    "generate_customers",
    "load_customers",
    "seed_customers",
    "write_customers",
]
