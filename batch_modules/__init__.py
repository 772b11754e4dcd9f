"""
batch_modules -- Concrete batch jobs built on batch_engine.

Each subpackage supplies the records, sources, sinks, transforms and the
job definition of one job.  Nothing in batch_engine or batch_kernel
imports from here except batch_engine.orchestrator.
"""
