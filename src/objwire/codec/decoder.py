"""Generic decoder.

This module provides the Decoder, which reads tokens from an
:class:`objwire.parser.Parser` and builds values of a requested target type,
and the StreamDecoder, which consumes a sequence of values framed as one
array and can move on to the next pipelined frame.

Instances of Decoder and StreamDecoder are not safe for use by multiple
threads.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping, MutableMapping, MutableSequence, MutableSet
from collections.abc import Sequence, Set
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import DecoderConfig
from ..exceptions import End, ProtocolError, TypeConversionError, UnsupportedTypeError
from ..kinds import Kind, is_record_type
from ..parser import Parser
from .hints import NoneType, is_union, optional_argument, split
from .text import parse_duration_text, parse_time_text

ArrayConsumer = Callable[["Decoder"], None]
MapConsumer = Callable[["Decoder", "Decoder"], None]

_SEQUENCE_ORIGINS = (list, MutableSequence, Sequence)
_SET_ORIGINS = (set, frozenset, MutableSet, Set)
_MAPPING_ORIGINS = (dict, Mapping, MutableMapping)
_TEXT_KINDS = (Kind.STRING, Kind.BYTES)


class Decoder:
    """Decodes values by reading tokens from a Parser.

    Decoded values are returned; the ``target`` argument of the decode
    methods is a type hint describing the expected value. When the wire Kind
    differs from the target, the value is converted where a conversion
    exists (integer into float, bytes into str...).

    Example:
        >>> from io import BytesIO
        >>> from objwire.resp import Parser
        >>> Decoder(Parser(BytesIO(b"*2\\r\\n:1\\r\\n:2\\r\\n"))).decode(list[float])
        [1.0, 2.0]
    """

    def __init__(self, parser: Parser, config: Optional[DecoderConfig] = None) -> None:
        if parser is None:
            raise ValueError("objwire: the parser is None")
        self.parser = parser
        self.config = config if config is not None else DecoderConfig()
        # Set on the value decoder handed to map consumers: the next value
        # decoded must be preceded by parse_map_value.
        self._key = False

    def decode(self, target: Any = Any) -> Any:
        """Decode the next value as ``target``.

        Args:
            target: Type hint of the expected value; ``Any`` picks the natural
                Python representation of the wire Kind (dict for maps, list
                for arrays, the native type for scalars)

        Raises:
            TypeConversionError: If the wire value cannot be converted to target
            ProtocolError: If the input is malformed or ends prematurely
        """
        try:
            self._decode_map_value_maybe()
            return self.decode_value(target)
        except End as err:
            raise ProtocolError("objwire: unexpected end of input") from err

    def decode_array(self, consumer: ArrayConsumer) -> int:
        """Decode an array element by element.

        ``consumer`` is called once per element with this decoder and must
        decode exactly one value.

        Returns:
            Number of elements decoded

        Raises:
            TypeConversionError: If the next value is not an array
        """
        self._decode_map_value_maybe()
        kind = self.parser.parse_type()
        if kind is not Kind.ARRAY:
            raise TypeConversionError(kind, Kind.ARRAY)
        return self._decode_array_with(consumer)

    def decode_map(self, consumer: MapConsumer) -> int:
        """Decode a map entry by entry.

        ``consumer`` is called once per entry with two decoders: the first
        must be used to decode the key, the second to decode the value.

        Returns:
            Number of entries decoded

        Raises:
            TypeConversionError: If the next value is not a map
        """
        self._decode_map_value_maybe()
        kind = self.parser.parse_type()
        if kind is not Kind.MAP:
            raise TypeConversionError(kind, Kind.MAP)

        def entry(decoder: Decoder) -> None:
            value_decoder = Decoder(self.parser, self.config)
            value_decoder._key = True
            consumer(Decoder(self.parser, self.config), value_decoder)
            if value_decoder._key:
                # The consumer never read the value
                self.parser.parse_map_value()
                self.skip()

        return self._decode_map_entries(entry)

    def skip(self) -> None:
        """Parse and discard the next value."""
        self.decode_value(Any)

    def decode_value(self, target: Any) -> Any:
        """Decode the next value without checking for a pending map value separator."""
        if target is Any or target is object:
            return self._decode_any()

        if target is None or target is NoneType:
            kind = self.parser.parse_type()
            if kind is not Kind.NIL:
                raise TypeConversionError(kind, NoneType)
            self.parser.parse_nil()
            return None

        if is_union(target):
            return self._decode_union(target)

        origin, args = split(target)

        adapters = self.config.adapters
        if adapters is not None and isinstance(origin, type):
            adapter = adapters.lookup(origin)
            if adapter is not None and adapter.decode is not None:
                return adapter.decode(self)

        routine = _SCALAR_ROUTINES.get(origin)
        if routine is not None:
            return routine(self, origin)

        if isinstance(origin, type):
            if hasattr(origin, "decode_value"):
                return origin.decode_value(self)
            if hasattr(origin, "unmarshal_text"):
                return self._decode_text_unmarshaler(origin)
            if issubclass(origin, enum.Enum):
                return self._decode_enum(origin)
            if issubclass(origin, BaseException):
                return self._decode_error(origin)
            if is_record_type(origin):
                return self._decode_record(origin)
            if issubclass(origin, tuple):
                return self._decode_tuple(origin, args)
            if issubclass(origin, _SET_ORIGINS):
                return self._decode_set(origin, args)
            if issubclass(origin, _MAPPING_ORIGINS):
                return self._decode_mapping(origin, args)
            if issubclass(origin, _SEQUENCE_ORIGINS) and not issubclass(origin, (str, bytes)):
                return self._decode_list(args)
            for base, base_routine in _SCALAR_ROUTINES.items():
                if issubclass(origin, base):
                    return origin(base_routine(self, base))

        raise UnsupportedTypeError(target)

    def _decode_map_value_maybe(self) -> None:
        if self._key:
            self._key = False
            self.parser.parse_map_value()

    def _decode_any(self) -> Any:
        kind = self.parser.parse_type()
        if kind is Kind.ARRAY:
            return self._decode_list(())
        if kind is Kind.MAP:
            return self._decode_mapping(dict, ())
        return getattr(self.parser, _NATIVE[kind])()

    def _decode_union(self, target: Any) -> Any:
        inner = optional_argument(target)
        if inner is not None:
            if self.parser.parse_type() is Kind.NIL:
                self.parser.parse_nil()
                return None
            return self.decode_value(inner)

        # Arbitrary unions: decode naturally and accept any member type
        kind = self.parser.parse_type()
        value = self._decode_any()
        for member in split(target)[1]:
            origin = split(member)[0]
            if member is Any or (isinstance(origin, type) and isinstance(value, origin)):
                return value
        raise TypeConversionError(kind, target)

    def _decode_bool(self, target: type) -> bool:
        kind = self.parser.parse_type()
        if kind is Kind.BOOL:
            return self.parser.parse_bool()
        if kind in (Kind.INT, Kind.UINT):
            # Formats without a boolean type write 0 and 1
            value = self.parser.parse_int() if kind is Kind.INT else self.parser.parse_uint()
            if value in (0, 1):
                return bool(value)
            raise TypeConversionError(kind, target, f"{value} is not 0 or 1")
        raise TypeConversionError(kind, target)

    def _decode_int(self, target: type) -> int:
        kind = self.parser.parse_type()
        if kind is Kind.INT:
            return self.parser.parse_int()
        if kind is Kind.UINT:
            return self.parser.parse_uint()
        if kind is Kind.FLOAT:
            value = self.parser.parse_float()
            try:
                return int(value)
            except (OverflowError, ValueError) as err:
                # inf and nan have no integer value
                raise TypeConversionError(kind, target, str(err)) from err
        if kind in _TEXT_KINDS:
            text = self._parse_text()
            try:
                return int(text)
            except ValueError as err:
                raise TypeConversionError(kind, target, str(err)) from err
        raise TypeConversionError(kind, target)

    def _decode_float(self, target: type) -> float:
        kind = self.parser.parse_type()
        if kind is Kind.FLOAT:
            return self.parser.parse_float()
        if kind is Kind.INT:
            return float(self.parser.parse_int())
        if kind is Kind.UINT:
            return float(self.parser.parse_uint())
        if kind in _TEXT_KINDS:
            text = self._parse_text()
            try:
                return float(text)
            except ValueError as err:
                raise TypeConversionError(kind, target, str(err)) from err
        raise TypeConversionError(kind, target)

    def _decode_string(self, target: type) -> str:
        kind = self.parser.parse_type()
        if kind not in _TEXT_KINDS:
            raise TypeConversionError(kind, target)
        return self._parse_text()

    def _decode_bytes(self, target: type) -> Any:
        kind = self.parser.parse_type()
        if kind is Kind.BYTES:
            data = self.parser.parse_bytes()
        elif kind is Kind.STRING:
            data = self.parser.parse_string().encode("utf-8")
        else:
            raise TypeConversionError(kind, target)
        return data if target is bytes else target(data)

    def _decode_time(self, target: type) -> datetime:
        kind = self.parser.parse_type()
        if kind is Kind.TIME:
            return self.parser.parse_time()
        if kind in _TEXT_KINDS:
            text = self._parse_text()
            try:
                return parse_time_text(text)
            except ValueError as err:
                raise TypeConversionError(kind, target, str(err)) from err
        raise TypeConversionError(kind, target)

    def _decode_duration(self, target: type) -> timedelta:
        kind = self.parser.parse_type()
        if kind is Kind.DURATION:
            return self.parser.parse_duration()
        if kind in _TEXT_KINDS:
            text = self._parse_text()
            try:
                return parse_duration_text(text)
            except ValueError as err:
                raise TypeConversionError(kind, target, str(err)) from err
        raise TypeConversionError(kind, target)

    def _decode_error(self, target: type) -> BaseException:
        kind = self.parser.parse_type()
        if kind is Kind.ERROR:
            err = self.parser.parse_error()
            return err if isinstance(err, target) else target(str(err))
        if kind in _TEXT_KINDS:
            return target(self._parse_text())
        raise TypeConversionError(kind, target)

    def _decode_enum(self, target: type) -> enum.Enum:
        kind = self.parser.parse_type()
        raw = self._decode_any()
        try:
            return target(raw)
        except ValueError as err:
            raise TypeConversionError(kind, target, str(err)) from err

    def _decode_text_unmarshaler(self, target: type) -> Any:
        kind = self.parser.parse_type()
        if kind is Kind.BYTES:
            data = self.parser.parse_bytes()
        elif kind is Kind.STRING:
            data = self.parser.parse_string().encode("utf-8")
        else:
            raise TypeConversionError(kind, target)
        return target.unmarshal_text(data)

    def _parse_text(self) -> str:
        if self.parser.parse_type() is Kind.STRING:
            return self.parser.parse_string()
        data = self.parser.parse_bytes()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise TypeConversionError(Kind.BYTES, str, str(err)) from err

    def _decode_list(self, args: Tuple[Any, ...]) -> List[Any]:
        item_type = args[0] if args else Any
        items: List[Any] = []
        if self._nil_or_expect(Kind.ARRAY, list):
            return items
        self._decode_array_with(lambda d: items.append(d.decode_value(item_type)))
        return items

    def _decode_tuple(self, origin: type, args: Tuple[Any, ...]) -> Tuple[Any, ...]:
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            if self._nil_or_expect(Kind.ARRAY, origin):
                return origin()
            return origin(self._decode_list(args[:1]))

        # Fixed-size tuple: one hint per position
        if self._nil_or_expect(Kind.ARRAY, origin):
            raise TypeConversionError(Kind.NIL, origin)
        n = self.parser.parse_array_begin()
        if n >= 0 and n != len(args):
            raise TypeConversionError(
                Kind.ARRAY, origin, f"expected {len(args)} elements, got {n}"
            )
        items: List[Any] = []

        def element(decoder: Decoder) -> None:
            if len(items) >= len(args):
                raise TypeConversionError(Kind.ARRAY, origin, f"more than {len(args)} elements")
            items.append(decoder.decode_value(args[len(items)]))

        self._decode_array_items(n, element)
        if len(items) != len(args):
            raise TypeConversionError(
                Kind.ARRAY, origin, f"expected {len(args)} elements, got {len(items)}"
            )
        return origin(items)

    def _decode_set(self, origin: type, args: Tuple[Any, ...]) -> Any:
        item_type = args[0] if args else Any
        items: List[Any] = []
        if not self._nil_or_expect(Kind.ARRAY, origin):
            self._decode_array_with(lambda d: items.append(d.decode_value(item_type)))
        if origin is Set or issubclass(origin, frozenset):
            return frozenset(items) if origin in (Set, frozenset) else origin(items)
        return set(items) if origin in (set, MutableSet) else origin(items)

    def _decode_mapping(self, origin: type, args: Tuple[Any, ...]) -> Any:
        key_type, value_type = args if len(args) == 2 else (Any, Any)
        result: Dict[Any, Any] = {}
        if self._nil_or_expect(Kind.MAP, origin):
            return result if origin in _MAPPING_ORIGINS else origin()

        def entry(decoder: Decoder) -> None:
            key = decoder.decode_value(key_type)
            decoder.parser.parse_map_value()
            value = decoder.decode_value(value_type)
            try:
                result[key] = value
            except TypeError:
                # Unhashable keys (arrays) are stored as tuples
                result[_freeze(key)] = value

        self._decode_map_entries(entry)
        return result if origin in _MAPPING_ORIGINS else origin(result)

    def _decode_record(self, target: type) -> Any:
        kind = self.parser.parse_type()
        if kind is not Kind.MAP:
            raise TypeConversionError(kind, target)

        schema = self.config.cache.lookup(target)
        values: Dict[str, Any] = {}

        def entry(decoder: Decoder) -> None:
            name = decoder.decode_value(str)
            decoder.parser.parse_map_value()
            field = schema.by_name.get(name)
            if field is None:
                # Unknown keys are consumed, never left in the stream
                decoder.skip()
                return
            slot = values
            for attr in field.path[:-1]:
                slot = slot.setdefault(attr, {})
            slot[field.path[-1]] = field.decode(decoder)

        self._decode_map_entries(entry)
        return schema.build(values)

    def _nil_or_expect(self, expected: Kind, target: Any) -> bool:
        """Consume a nil token and return True, or check that the next token is ``expected``."""
        kind = self.parser.parse_type()
        if kind is Kind.NIL:
            self.parser.parse_nil()
            return True
        if kind is not expected:
            raise TypeConversionError(kind, target)
        return False

    def _decode_array_with(self, consumer: ArrayConsumer) -> int:
        n = self.parser.parse_array_begin()
        return self._decode_array_items(n, consumer)

    def _decode_array_items(self, n: int, consumer: ArrayConsumer) -> int:
        i = 0
        while n < 0 or i < n:
            if i != 0 or n < 0:
                try:
                    self.parser.parse_array_next(i)
                except End:
                    break
            consumer(self)
            i += 1
        self.parser.parse_array_end(i)
        return i

    def _decode_map_entries(self, consumer: ArrayConsumer) -> int:
        n = self.parser.parse_map_begin()
        i = 0
        while n < 0 or i < n:
            if i != 0 or n < 0:
                try:
                    self.parser.parse_map_next(i)
                except End:
                    break
            consumer(self)
            i += 1
        self.parser.parse_map_end(i)
        return i


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, dict):
        return tuple((k, _freeze(v)) for k, v in value.items())
    return value


_SCALAR_ROUTINES: Dict[Any, Callable[[Decoder, Any], Any]] = {
    bool: Decoder._decode_bool,
    int: Decoder._decode_int,
    float: Decoder._decode_float,
    str: Decoder._decode_string,
    bytes: Decoder._decode_bytes,
    bytearray: Decoder._decode_bytes,
    datetime: Decoder._decode_time,
    timedelta: Decoder._decode_duration,
}

_NATIVE: Dict[Kind, str] = {
    Kind.NIL: "parse_nil",
    Kind.BOOL: "parse_bool",
    Kind.INT: "parse_int",
    Kind.UINT: "parse_uint",
    Kind.FLOAT: "parse_float",
    Kind.STRING: "parse_string",
    Kind.BYTES: "parse_bytes",
    Kind.TIME: "parse_time",
    Kind.DURATION: "parse_duration",
    Kind.ERROR: "parse_error",
}


class StreamDecoder:
    """Decodes a stream of values framed as one array.

    If the first value of a frame is an array, its elements are the values
    of the stream; any other value is a stream of one value. Once the frame
    is exhausted, :meth:`decode` raises :class:`End`. When several frames
    are pipelined back-to-back on the same input, :meth:`next_frame` moves
    on to the next one.

    Errors are sticky: once decoding failed, every later call raises the
    same error until :meth:`next_frame` is called.

    Example:
        >>> stream = StreamDecoder(Parser(BytesIO(b"*3\\r\\n:1\\r\\n:2\\r\\n:3\\r\\n")))
        >>> list(stream)
        [1, 2, 3]
    """

    def __init__(self, parser: Parser, config: Optional[DecoderConfig] = None) -> None:
        if parser is None:
            raise ValueError("objwire: the parser is None")
        self.parser = parser
        self.config = config if config is not None else DecoderConfig()
        self._reset()

    def _reset(self) -> None:
        self._err: Optional[BaseException] = None
        self._kind: Optional[Kind] = None
        self._max = 0
        self._cnt = 0

    def __len__(self) -> int:
        """Number of values remaining in the current frame, 0 if unknown."""
        return max(self.remaining(), 0)

    def remaining(self) -> int:
        """Number of values remaining in the current frame.

        Reads the beginning of the frame if needed. Returns 0 if the frame
        could not be read and -1 if the frame has an unknown length.
        """
        if self._err is not None:
            return 0
        if self._kind is None:
            try:
                self._init()
            except Exception as err:
                self._err = err
                return 0
        if self._max < 0:
            return -1
        return self._max - self._cnt

    def err(self) -> Optional[BaseException]:
        """Return the sticky error, None if there is none or the frame ended normally."""
        if isinstance(self._err, End):
            return None
        return self._err

    def decode(self, target: Any = Any) -> Any:
        """Decode the next value of the current frame as ``target``.

        Raises:
            End: If the current frame has no more values
        """
        if self._err is not None:
            raise self._err
        try:
            return self._decode(target)
        except Exception as err:
            self._err = err
            raise

    def _decode(self, target: Any) -> Any:
        if self._kind is None:
            self._init()

        if self._kind is Kind.ARRAY:
            if self._max < 0:
                # Unknown length: every element is preceded by array-next
                try:
                    self.parser.parse_array_next(self._cnt)
                except End:
                    self.parser.parse_array_end(self._cnt)
                    self._max = self._cnt
                    raise
            elif self._cnt == self._max:
                self.parser.parse_array_end(self._cnt)
            elif self._cnt != 0:
                self.parser.parse_array_next(self._cnt)

        if 0 <= self._max <= self._cnt:
            raise End()

        value = Decoder(self.parser, self.config).decode(target)
        self._cnt += 1
        return value

    def _init(self) -> None:
        # End propagates from here when the input is exhausted at a frame boundary
        self._kind = self.parser.parse_type()
        if self._kind is Kind.ARRAY:
            self._max = self.parser.parse_array_begin()
        else:
            self._max = 1

    def next_frame(self) -> None:
        """Drain what is left of the current frame and move to the next one.

        Raises:
            Exception: The sticky error of the current frame, if it failed
        """
        if self._err is not None and not isinstance(self._err, End):
            raise self._err
        while self._err is None:
            try:
                self.decode(Any)
            except End:
                break
        self._reset()

    def __iter__(self) -> Iterator[Any]:
        return self.values()

    def values(self, target: Any = Any) -> Iterator[Any]:
        """Yield the values of the current frame until it is exhausted."""
        while True:
            try:
                yield self.decode(target)
            except End:
                return
