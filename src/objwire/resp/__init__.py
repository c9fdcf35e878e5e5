"""RESP (REdis Serialization Protocol) codec.

This module implements version 2 of the protocol used by Redis clients and
servers. RESP2 has no map type: maps are written as flat arrays of
alternating keys and values, and decode back as arrays.

Example:
    >>> from objwire import resp
    >>> resp.marshal(["GET", "k-0"])
    b'*2\\r\\n+GET\\r\\n+k-0\\r\\n'
    >>> resp.unmarshal(b"$3\\r\\nbar\\r\\n", str)
    'bar'
"""

from __future__ import annotations

from .codec import (
    CODEC,
    NAMES,
    install,
    marshal,
    new_decoder,
    new_encoder,
    new_stream_decoder,
    new_stream_encoder,
    unmarshal,
)
from .config import ParserConfig
from .emitter import Emitter
from .error import Error
from .parser import Parser

__all__ = [
    "Emitter",
    "Parser",
    "ParserConfig",
    "Error",
    "marshal",
    "unmarshal",
    "new_encoder",
    "new_decoder",
    "new_stream_encoder",
    "new_stream_decoder",
    "install",
    "CODEC",
    "NAMES",
]
