"""Value classification.

Every value handled by the engine is mapped to one :class:`Kind` before it
is traversed. The Kind decides which emitter and parser calls are legal for
the value.

Classification order:

1. Built-in scalars (bool, int, float, str, byte sequences), then the
   well-known structured scalars (``datetime`` and ``timedelta``).
2. Capabilities: explicit adapters, :class:`ValueEncoder`,
   :class:`TextMarshaler`, exceptions. A record that also implements a
   capability is serialized through the capability.
3. Structural kinds: records (dataclasses and pydantic models), mappings,
   sequences and iterators.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterator, Mapping
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel

from .exceptions import UnsupportedTypeError

if TYPE_CHECKING:
    from .adapters import AdapterRegistry
    from .codec.decoder import Decoder
    from .codec.encoder import Encoder

INT64_MAX = (1 << 63) - 1
INT64_MIN = -(1 << 63)

BYTES_TYPES = (bytes, bytearray, memoryview)
ARRAY_TYPES = (list, tuple, set, frozenset, range)


class Kind(enum.Enum):
    """Closed classification of a value's wire-level shape."""

    NIL = "nil"
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    STRING = "string"
    BYTES = "bytes"
    TIME = "time"
    DURATION = "duration"
    ERROR = "error"
    ARRAY = "array"
    MAP = "map"

    def __str__(self) -> str:
        return self.value


@runtime_checkable
class ValueEncoder(Protocol):
    """Types that provide their own encoding algorithm."""

    def encode_value(self, encoder: Encoder) -> None: ...


@runtime_checkable
class ValueDecoder(Protocol):
    """Types that provide their own decoding algorithm.

    ``decode_value`` is looked up on the target class and must be a
    classmethod or staticmethod returning the decoded instance.
    """

    def decode_value(self, decoder: Decoder) -> Any: ...


@runtime_checkable
class TextMarshaler(Protocol):
    """Types that serialize themselves to a text representation."""

    def marshal_text(self) -> bytes | str: ...


@runtime_checkable
class TextUnmarshaler(Protocol):
    """Types that can be rebuilt from the output of ``marshal_text``.

    Like ``decode_value``, ``unmarshal_text`` is a classmethod.
    """

    def unmarshal_text(self, data: bytes) -> Any: ...


def is_record_type(tp: Any) -> bool:
    """Return True if ``tp`` is a record class (dataclass or pydantic model)."""
    if not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def scalar_kind(value: Any) -> Kind | None:
    """Return the Kind of a built-in scalar value, or None for anything else.

    ``bool`` is tested before ``int`` because it is an ``int`` subclass.
    Integers outside the signed 64-bit range are reported as UINT when
    positive.
    """
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, int):
        return Kind.UINT if value > INT64_MAX else Kind.INT
    if isinstance(value, float):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, BYTES_TYPES):
        return Kind.BYTES
    if isinstance(value, datetime):
        return Kind.TIME
    if isinstance(value, timedelta):
        return Kind.DURATION
    return None


def classify(value: Any, adapters: AdapterRegistry | None = None) -> Kind:
    """Return the Kind of ``value``.

    Values whose encoding is delegated to an adapter or to ``encode_value``
    are classified by the first token their encoder produces.

    Raises:
        UnsupportedTypeError: If no Kind applies (functions, modules...)
    """
    if value is None:
        return Kind.NIL

    kind = scalar_kind(value)
    if kind is not None:
        return kind

    if (adapters is not None and adapters.lookup(type(value)) is not None) or isinstance(
        value, ValueEncoder
    ):
        return _classify_encoded(value, adapters)

    if isinstance(value, TextMarshaler):
        return Kind.STRING

    if isinstance(value, BaseException):
        return Kind.ERROR

    if isinstance(value, enum.Enum):
        return classify(value.value, adapters)

    if is_record_type(type(value)) or isinstance(value, Mapping):
        return Kind.MAP

    if isinstance(value, ARRAY_TYPES) or isinstance(value, Iterator):
        return Kind.ARRAY

    raise UnsupportedTypeError(type(value))


def _classify_encoded(value: Any, adapters: AdapterRegistry | None) -> Kind:
    # Imported here to avoid a circular dependency with the codec package
    from .codec.encoder import Encoder
    from .config import EncoderConfig
    from .value import ValueEmitter

    emitter = ValueEmitter()
    Encoder(emitter, EncoderConfig(adapters=adapters)).encode(value)
    return emitter.first_kind()
