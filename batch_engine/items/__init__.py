"""
batch_engine.items -- Source/sink/transform protocols and the transform chain.

Concrete readers, writers and processors live in batch_modules.
"""

from batch_engine.items.base import (
    ItemStream,
    ItemTransform,
    RecordSink,
    RecordSource,
    TransformChain,
    ValidatingTransform,
)

__all__ = [
    "ItemStream",
    "ItemTransform",
    "RecordSink",
    "RecordSource",
    "TransformChain",
    "ValidatingTransform",
]
