"""Generic encoding and decoding algorithms.

This module provides the format-independent traversal of values: the
Encoder drives an Emitter, the Decoder drives a Parser, and record schemas
describe how records map to wire maps.
"""

from __future__ import annotations

from .decoder import Decoder, StreamDecoder
from .encoder import Encoder, StreamEncoder
from .schema import FieldDescriptor, RecordSchema, StructCache

__all__ = [
    "Encoder",
    "Decoder",
    "StreamEncoder",
    "StreamDecoder",
    "RecordSchema",
    "FieldDescriptor",
    "StructCache",
]
