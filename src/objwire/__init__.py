"""objwire: Generic object serialization engine

A format-agnostic serialization engine. Values are classified into a small
closed set of kinds and traversed by a generic encoder and decoder, which
talk to concrete wire formats through the Emitter and Parser interfaces.
The RESP (REdis Serialization Protocol) format ships in ``objwire.resp``.

Key Features:
- Records from dataclasses and pydantic models, with per-field wire options
- Streaming encoder/decoder for pipelined messages
- Explicit codec registry and per-type adapters (no global registration)
- Pure Python implementation

Quick Start:
    >>> from dataclasses import dataclass
    >>> from objwire import resp
    >>>
    >>> @dataclass
    ... class Entry:
    ...     key: str
    ...     hits: int
    >>>
    >>> data = resp.marshal(Entry(key="k-0", hits=3))
    >>> data
    b'*4\\r\\n+key\\r\\n+k-0\\r\\n+hits\\r\\n:3\\r\\n'
    >>> resp.unmarshal(data)
    ['key', 'k-0', 'hits', 3]
"""

from __future__ import annotations

from .adapters import Adapter, AdapterRegistry
from .codec import (
    Decoder,
    Encoder,
    FieldDescriptor,
    RecordSchema,
    StreamDecoder,
    StreamEncoder,
    StructCache,
)
from .config import DecoderConfig, EncoderConfig
from .emitter import Emitter
from .exceptions import (
    CapacityError,
    End,
    ObjwireError,
    ProtocolError,
    SchemaError,
    Shadow,
    StreamClosedError,
    TypeConversionError,
    UnknownCodecError,
    UnsupportedTypeError,
)
from .kinds import Kind, TextMarshaler, TextUnmarshaler, ValueDecoder, ValueEncoder, classify
from .models import BaseRecord, WireField, WireOptions, wire_field
from .parser import Parser
from .pool import ObjectPool
from .registry import Codec, CodecRegistry
from .value import ValueEmitter, ValueParser, convert

__version__ = "0.1.0"

__all__ = [
    # Core API
    "Kind",
    "classify",
    "Emitter",
    "Parser",
    "Encoder",
    "Decoder",
    "StreamEncoder",
    "StreamDecoder",
    "convert",
    # Records
    "BaseRecord",
    "WireField",
    "WireOptions",
    "wire_field",
    "RecordSchema",
    "FieldDescriptor",
    "StructCache",
    # Capabilities
    "ValueEncoder",
    "ValueDecoder",
    "TextMarshaler",
    "TextUnmarshaler",
    "Adapter",
    "AdapterRegistry",
    # Configuration
    "EncoderConfig",
    "DecoderConfig",
    # Codecs
    "Codec",
    "CodecRegistry",
    "ValueEmitter",
    "ValueParser",
    "ObjectPool",
    # Exceptions
    "ObjwireError",
    "TypeConversionError",
    "UnsupportedTypeError",
    "ProtocolError",
    "CapacityError",
    "StreamClosedError",
    "SchemaError",
    "UnknownCodecError",
    # Control signals
    "End",
    "Shadow",
]
