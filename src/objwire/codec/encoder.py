"""Generic encoder.

This module provides the Encoder, which walks a value top-down and drives an
:class:`objwire.emitter.Emitter`, and the StreamEncoder, which frames a
sequence of independent values as one array.

Instances of Encoder and StreamEncoder are not safe for use by multiple
threads.
"""

from __future__ import annotations

import enum
import itertools
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from ..config import EncoderConfig
from ..emitter import Emitter
from ..exceptions import CapacityError, End, StreamClosedError, UnsupportedTypeError
from ..kinds import ARRAY_TYPES, BYTES_TYPES, INT64_MAX, TextMarshaler, ValueEncoder, is_record_type

ArrayProducer = Callable[["Encoder"], None]
MapProducer = Callable[["Encoder", "Encoder"], None]


class Encoder:
    """Encodes values by driving an Emitter.

    Every public ``encode*`` method emits exactly one complete value, so
    they can be freely composed from custom encoders.

    Example:
        >>> from io import BytesIO
        >>> from objwire.resp import Emitter
        >>> out = BytesIO()
        >>> Encoder(Emitter(out)).encode(["GET", "key"])
        >>> out.getvalue()
        b'*2\\r\\n+GET\\r\\n+key\\r\\n'
    """

    def __init__(self, emitter: Emitter, config: Optional[EncoderConfig] = None) -> None:
        if emitter is None:
            raise ValueError("objwire: the emitter is None")
        self.emitter = emitter
        self.config = config if config is not None else EncoderConfig()
        # Set on the value encoder handed to map producers: the next value
        # encoded must be preceded by emit_map_value.
        self._key = False

    @property
    def sort_keys(self) -> bool:
        return self.config.sort_keys

    def encode(self, value: Any) -> None:
        """Encode any supported value.

        Raises:
            UnsupportedTypeError: If the value, or a value nested in it, has no Kind
        """
        self._encode_map_value_maybe()
        self.encode_value(value)

    def encode_bool(self, value: bool) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_bool(value)

    def encode_int(self, value: int) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_int(value, 64)

    def encode_uint(self, value: int) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_uint(value, 64)

    def encode_float(self, value: float) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_float(value, 64)

    def encode_string(self, value: str) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_string(value)

    def encode_bytes(self, value: bytes) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_bytes(value)

    def encode_time(self, value: datetime) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_time(value)

    def encode_duration(self, value: timedelta) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_duration(value)

    def encode_error(self, value: BaseException) -> None:
        self._encode_map_value_maybe()
        self.emitter.emit_error(value)

    def encode_array(self, n: int, producer: ArrayProducer) -> None:
        """Encode an array whose elements are produced by a callback.

        ``producer`` is called once per element with this encoder and must
        encode exactly one value. It may raise :class:`End` to terminate the
        array early, which is not an error.

        Args:
            n: Number of elements, negative if unknown (the producer is then
                called until it raises End). Not every format supports
                arrays of unknown length.
            producer: Element producer
        """
        self._encode_map_value_maybe()
        self.emitter.emit_array_begin(n)

        i = 0
        while n < 0 or i < n:
            if i != 0:
                self.emitter.emit_array_next()
            try:
                producer(self)
            except End:
                break
            i += 1

        self.emitter.emit_array_end()

    def encode_map(self, n: int, producer: MapProducer) -> None:
        """Encode a map whose entries are produced by a callback.

        ``producer`` is called once per entry with two encoders: the first
        must be used to encode the key, the second to encode the value. The
        separator between key and value is emitted automatically. The
        producer may raise :class:`End` to terminate the map early.

        Args:
            n: Number of entries, negative if unknown
            producer: Entry producer
        """
        self._encode_map_value_maybe()
        self.emitter.emit_map_begin(n)

        i = 0
        while n < 0 or i < n:
            if i != 0:
                self.emitter.emit_map_next()
            key_encoder = Encoder(self.emitter, self.config)
            value_encoder = Encoder(self.emitter, self.config)
            value_encoder._key = True
            try:
                producer(key_encoder, value_encoder)
            except End:
                break
            i += 1

        self.emitter.emit_map_end()

    def encode_iter(self, iterable: Iterable[Any], n: int = -1) -> None:
        """Encode the values of an iterable as an array.

        Unlike :meth:`encode_array`, the next element is fetched before the
        separator is emitted, so exhausting the iterator never leaves a
        dangling separator. With ``n >= 0``, at most ``n`` elements are
        consumed from the iterator.
        """
        self._encode_map_value_maybe()
        self.emitter.emit_array_begin(n)

        if n >= 0:
            iterable = itertools.islice(iterable, n)
        for i, item in enumerate(iterable):
            if i != 0:
                self.emitter.emit_array_next()
            self.encode_value(item)

        self.emitter.emit_array_end()

    def encode_value(self, value: Any) -> None:
        """Encode ``value`` without checking for a pending map value separator.

        This is the dispatch used for nested values; callers outside of the
        encoding algorithm should use :meth:`encode`.
        """
        if value is None:
            self.emitter.emit_nil()
            return

        routine = _SCALAR_ROUTINES.get(type(value))
        if routine is None:
            routine = self._routine_for(value)
        routine(self, value)

    def _encode_map_value_maybe(self) -> None:
        if self._key:
            self._key = False
            self.emitter.emit_map_value()

    def _routine_for(self, value: Any) -> Callable[[Encoder, Any], None]:
        tp = type(value)

        # Scalar subclasses, except enums which go through their value
        if not isinstance(value, enum.Enum) or isinstance(value, (int, float, str, bytes)):
            for base, routine in _SCALAR_ROUTINES.items():
                if isinstance(value, base):
                    return routine

        adapters = self.config.adapters
        if adapters is not None:
            adapter = adapters.lookup(tp)
            if adapter is not None and adapter.encode is not None:
                return adapter.encode

        if not isinstance(value, type):
            if isinstance(value, ValueEncoder):
                return Encoder._encode_encoder
            if isinstance(value, TextMarshaler):
                return Encoder._encode_text_marshaler

        if isinstance(value, BaseException):
            return Encoder._encode_error

        if isinstance(value, enum.Enum):
            return Encoder._encode_enum

        if is_record_type(tp):
            return Encoder._encode_record

        if isinstance(value, Mapping):
            return Encoder._encode_map

        if isinstance(value, ARRAY_TYPES):
            return Encoder._encode_array

        if isinstance(value, Iterator):
            return Encoder._encode_iterator

        return Encoder._encode_unsupported

    def _encode_bool(self, value: bool) -> None:
        self.emitter.emit_bool(value)

    def _encode_int(self, value: int) -> None:
        if value > INT64_MAX:
            self.emitter.emit_uint(value, 0)
        else:
            self.emitter.emit_int(value, 0)

    def _encode_float(self, value: float) -> None:
        self.emitter.emit_float(value, 64)

    def _encode_string(self, value: str) -> None:
        self.emitter.emit_string(value)

    def _encode_bytes(self, value: Any) -> None:
        self.emitter.emit_bytes(bytes(value))

    def _encode_time(self, value: datetime) -> None:
        self.emitter.emit_time(value)

    def _encode_duration(self, value: timedelta) -> None:
        self.emitter.emit_duration(value)

    def _encode_error(self, value: BaseException) -> None:
        self.emitter.emit_error(value)

    def _encode_enum(self, value: enum.Enum) -> None:
        self.encode_value(value.value)

    def _encode_encoder(self, value: Any) -> None:
        value.encode_value(self)

    def _encode_text_marshaler(self, value: Any) -> None:
        text = value.marshal_text()
        if self.emitter.is_text():
            self.emitter.emit_string(text.decode("utf-8") if isinstance(text, BYTES_TYPES) else text)
        else:
            self.emitter.emit_bytes(text.encode("utf-8") if isinstance(text, str) else bytes(text))

    def _encode_array(self, value: Any) -> None:
        if isinstance(value, (set, frozenset)) and self.sort_keys:
            value = _sorted(value)

        self.emitter.emit_array_begin(len(value))
        for i, item in enumerate(value):
            if i != 0:
                self.emitter.emit_array_next()
            self.encode_value(item)
        self.emitter.emit_array_end()

    def _encode_iterator(self, value: Iterator[Any]) -> None:
        self.encode_iter(value)

    def _encode_map(self, value: Mapping[Any, Any]) -> None:
        items = list(value.items())
        if self.sort_keys:
            items = _sorted(items, key=lambda item: item[0])

        self.emitter.emit_map_begin(len(items))
        for i, (k, v) in enumerate(items):
            if i != 0:
                self.emitter.emit_map_next()
            self.encode_value(k)
            self.emitter.emit_map_value()
            self.encode_value(v)
        self.emitter.emit_map_end()

    def _encode_record(self, value: Any) -> None:
        schema = self.config.cache.lookup(type(value))

        # The count must be exact before map-begin is emitted
        entries = []
        for field in schema.fields:
            field_value = field.get(value)
            if not field.omit(field_value):
                entries.append((field, field_value))

        self.emitter.emit_map_begin(len(entries))
        for i, (field, field_value) in enumerate(entries):
            if i != 0:
                self.emitter.emit_map_next()
            self.emitter.emit_string(field.name)
            self.emitter.emit_map_value()
            field.encode(self, field_value)
        self.emitter.emit_map_end()

    def _encode_unsupported(self, value: Any) -> None:
        raise UnsupportedTypeError(type(value))


_SCALAR_ROUTINES: Dict[type, Callable[[Encoder, Any], None]] = {
    bool: Encoder._encode_bool,
    int: Encoder._encode_int,
    float: Encoder._encode_float,
    str: Encoder._encode_string,
    bytes: Encoder._encode_bytes,
    bytearray: Encoder._encode_bytes,
    memoryview: Encoder._encode_bytes,
    datetime: Encoder._encode_time,
    timedelta: Encoder._encode_duration,
}


def _sorted(values: Iterable[Any], key: Optional[Callable[[Any], Any]] = None) -> List[Any]:
    """Sort by natural order, falling back to (type name, repr) for mixed types."""
    values = list(values)
    try:
        return sorted(values, key=key)
    except TypeError:
        pick = key if key is not None else (lambda v: v)
        return sorted(values, key=lambda v: (type(pick(v)).__name__, repr(pick(v))))


class StreamEncoder:
    """Encodes a stream of values as one array.

    The stream goes through three states: unopened, opened and closed. It
    is opened explicitly with :meth:`open` or implicitly by the first call
    to :meth:`encode` (with an unknown count), and closed explicitly with
    :meth:`close` or implicitly once the declared count is reached.

    When the emitter is one-shot, no array framing is emitted and every
    value is written as an independent top-level message.

    Errors raised by the emitter are sticky: once one occurred, every
    later call raises it again.

    Example:
        >>> with StreamEncoder(emitter) as stream:
        ...     stream.encode(1)
        ...     stream.encode(2)
    """

    def __init__(self, emitter: Emitter, config: Optional[EncoderConfig] = None) -> None:
        if emitter is None:
            raise ValueError("objwire: the emitter is None")
        self.emitter = emitter
        self.config = config if config is not None else EncoderConfig()
        self._err: Optional[BaseException] = None
        self._max = -1
        self._cnt = 0
        self._opened = False
        self._closed = False
        self._one_shot = bool(getattr(emitter, "one_shot", False))

    @property
    def opened(self) -> bool:
        return self._opened

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        """Number of values encoded so far."""
        return self._cnt

    def open(self, n: int = -1) -> None:
        """Start the stream, declaring that ``n`` values will be written.

        Depending on the format, ``n`` may have to be accurate; a negative
        value means the count is unknown. Opening an opened stream is a
        no-op.

        Raises:
            StreamClosedError: If the stream was already closed
        """
        if self._err is not None:
            raise self._err
        if self._closed:
            raise StreamClosedError("objwire: the stream encoder is closed")
        if self._opened:
            return

        self._max = n
        self._opened = True
        if not self._one_shot:
            self._emit(self.emitter.emit_array_begin, n)

    def close(self) -> None:
        """Terminate the stream. Closing a closed stream is a no-op."""
        if self._closed:
            return
        if not self._opened:
            self.open(0)
        if self._err is not None:
            raise self._err

        self._closed = True
        if not self._one_shot:
            self._emit(self.emitter.emit_array_end)

    def encode(self, value: Any) -> None:
        """Write ``value`` to the stream.

        Raises:
            CapacityError: If the declared count of values was already reached
            StreamClosedError: If the stream was closed
        """
        if self._err is not None:
            raise self._err
        if self._opened and 0 <= self._max <= self._cnt:
            raise CapacityError(self._max)

        self.open(-1)

        if not self._one_shot and self._cnt != 0:
            self._emit(self.emitter.emit_array_next)

        self._emit(Encoder(self.emitter, self.config).encode, value)

        self._cnt += 1
        if 0 <= self._max <= self._cnt:
            self.close()

    def _emit(self, method: Callable[..., None], *args: Any) -> None:
        try:
            method(*args)
        except Exception as err:
            self._err = err
            raise

    def __enter__(self) -> StreamEncoder:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is None:
            self.close()
