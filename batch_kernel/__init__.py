"""
Batch Kernel - shared infrastructure for the batch engine.

- Typed exceptions with machine-readable codes
- Structured JSON logging with run-scoped context
- Injectable clock
"""

__version__ = "0.1.0"
