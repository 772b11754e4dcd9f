"""
batch_engine -- Chunk-oriented batch processing and job scheduling.

Provides a chunk engine (read -> transform -> write in bounded chunks),
a job launcher that owns the job/step state machines and rejects
re-launching completed instances, and an in-process fixed-rate scheduler.

Architecture:
    batch_engine/ depends on batch_kernel only.  Job modules in
    batch_modules/ plug concrete sources, sinks and transforms into it;
    batch_engine.orchestrator is the one place that wires them together.

Invariants:
    - Every chunk handed to a sink holds 1..chunk_size records
    - A record is written iff every transform kept it
    - A completed job instance is never launched again
    - Step and run state machines are owned by the launcher
    - Clock injection (no datetime.now() calls in engine code)
    - Streams are closed on every exit path
"""
