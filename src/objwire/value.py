"""In-memory value codec.

:class:`ValueEmitter` builds a tree of plain Python objects (``None``,
scalars, lists, dicts and exceptions) from emitter calls, and
:class:`ValueParser` walks such a tree as a parser. Chaining the two through
an Encoder and a Decoder re-shapes any supported value into another type
without going through a byte format, which is what :func:`convert` does.

Example:
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Point:
    ...     x: int
    ...     y: int
    >>> convert({"x": 1, "y": "2"}, Point)
    Point(x=1, y=2)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, List, Optional

from .codec.decoder import Decoder
from .codec.encoder import Encoder
from .config import DecoderConfig, EncoderConfig
from .emitter import Emitter
from .exceptions import End, ProtocolError
from .kinds import Kind, classify, scalar_kind
from .parser import Parser

_NO_KEY = object()


@dataclass
class _Container:
    kind: Kind
    items: Any
    key: Any = _NO_KEY


class ValueEmitter(Emitter):
    """Emitter producing plain Python objects.

    Every complete top-level value is appended to :attr:`values`. Maps are
    built as dicts; keys that are not hashable (arrays and maps) are stored
    as tuples.
    """

    def __init__(self) -> None:
        self.values: List[Any] = []
        self._stack: List[_Container] = []
        self._first: Optional[Kind] = None

    @property
    def value(self) -> Any:
        """The first complete top-level value.

        Raises:
            ProtocolError: If no complete value was emitted yet
        """
        if not self.values:
            raise ProtocolError("objwire: no value was emitted")
        return self.values[0]

    def first_kind(self) -> Kind:
        """Kind of the first token that was emitted.

        Raises:
            ProtocolError: If nothing was emitted yet
        """
        if self._first is None:
            raise ProtocolError("objwire: no value was emitted")
        return self._first

    def emit_nil(self) -> None:
        self._token(Kind.NIL)
        self._push(None)

    def emit_bool(self, v: bool) -> None:
        self._token(Kind.BOOL)
        self._push(bool(v))

    def emit_int(self, v: int, bitsize: int = 0) -> None:
        self._token(Kind.INT)
        self._push(int(v))

    def emit_uint(self, v: int, bitsize: int = 0) -> None:
        self._token(Kind.UINT)
        self._push(int(v))

    def emit_float(self, v: float, bitsize: int = 0) -> None:
        self._token(Kind.FLOAT)
        self._push(float(v))

    def emit_string(self, v: str) -> None:
        self._token(Kind.STRING)
        self._push(str(v))

    def emit_bytes(self, v: bytes) -> None:
        self._token(Kind.BYTES)
        self._push(bytes(v))

    def emit_time(self, v: datetime) -> None:
        self._token(Kind.TIME)
        self._push(v)

    def emit_duration(self, v: timedelta) -> None:
        self._token(Kind.DURATION)
        self._push(v)

    def emit_error(self, v: BaseException) -> None:
        self._token(Kind.ERROR)
        self._push(v)

    def emit_array_begin(self, n: int) -> None:
        self._token(Kind.ARRAY)
        self._stack.append(_Container(Kind.ARRAY, []))

    def emit_array_end(self) -> None:
        self._push(self._pop(Kind.ARRAY).items)

    def emit_array_next(self) -> None:
        pass

    def emit_map_begin(self, n: int) -> None:
        self._token(Kind.MAP)
        self._stack.append(_Container(Kind.MAP, {}))

    def emit_map_end(self) -> None:
        container = self._pop(Kind.MAP)
        if container.key is not _NO_KEY:
            raise ProtocolError("objwire: map ended between a key and its value")
        self._push(container.items)

    def emit_map_value(self) -> None:
        if not self._stack or self._stack[-1].key is _NO_KEY:
            raise ProtocolError("objwire: map value separator without a key")

    def emit_map_next(self) -> None:
        pass

    def _token(self, kind: Kind) -> None:
        if self._first is None:
            self._first = kind

    def _pop(self, kind: Kind) -> _Container:
        if not self._stack or self._stack[-1].kind is not kind:
            raise ProtocolError(f"objwire: {kind} end without a matching begin")
        return self._stack.pop()

    def _push(self, value: Any) -> None:
        if not self._stack:
            self.values.append(value)
            return

        top = self._stack[-1]
        if top.kind is Kind.ARRAY:
            top.items.append(value)
        elif top.key is _NO_KEY:
            top.key = _hashable(value)
        else:
            top.items[top.key] = value
            top.key = _NO_KEY


def _hashable(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_hashable(item) for item in value)
    if isinstance(value, dict):
        return tuple((k, _hashable(v)) for k, v in value.items())
    return value


@dataclass
class _Cursor:
    kind: Kind
    items: List[Any]
    pos: int = 0


class ValueParser(Parser):
    """Parser walking a tree of Python objects.

    Plain values (``None``, scalars, lists, tuples, dicts and exceptions)
    are read as they are. Anything else (records, enums, sets, values with
    adapters...) is first turned into a plain tree by encoding it with a
    :class:`ValueEmitter`, using ``config``.
    """

    def __init__(self, value: Any, config: Optional[EncoderConfig] = None) -> None:
        self.config = config if config is not None else EncoderConfig()
        self._stack: List[_Cursor] = [_Cursor(Kind.ARRAY, [value])]

    def parse_type(self) -> Kind:
        return classify(self._peek())

    def parse_nil(self) -> None:
        self._take(Kind.NIL)

    def parse_bool(self) -> bool:
        return self._take(Kind.BOOL)

    def parse_int(self) -> int:
        return int(self._take(Kind.INT))

    def parse_uint(self) -> int:
        return int(self._take(Kind.UINT))

    def parse_float(self) -> float:
        return float(self._take(Kind.FLOAT))

    def parse_string(self) -> str:
        return str(self._take(Kind.STRING))

    def parse_bytes(self) -> bytes:
        return bytes(self._take(Kind.BYTES))

    def parse_time(self) -> datetime:
        return self._take(Kind.TIME)

    def parse_duration(self) -> timedelta:
        return self._take(Kind.DURATION)

    def parse_error(self) -> BaseException:
        return self._take(Kind.ERROR)

    def parse_array_begin(self) -> int:
        items = list(self._take(Kind.ARRAY))
        self._stack.append(_Cursor(Kind.ARRAY, items))
        return len(items)

    def parse_array_end(self, n: int) -> None:
        self._leave(Kind.ARRAY)

    def parse_array_next(self, n: int) -> None:
        pass

    def parse_map_begin(self) -> int:
        mapping = self._take(Kind.MAP)
        items: List[Any] = []
        for k, v in mapping.items():
            items.append(k)
            items.append(v)
        self._stack.append(_Cursor(Kind.MAP, items))
        return len(mapping)

    def parse_map_end(self, n: int) -> None:
        self._leave(Kind.MAP)

    def parse_map_value(self) -> None:
        pass

    def parse_map_next(self, n: int) -> None:
        pass

    def _peek(self) -> Any:
        cursor = self._stack[-1]
        if cursor.pos >= len(cursor.items):
            if len(self._stack) == 1:
                raise End()
            raise ProtocolError(f"objwire: read past the end of an {cursor.kind}")
        node = cursor.items[cursor.pos]
        if not _is_plain(node):
            node = cursor.items[cursor.pos] = self._flatten(node)
        return node

    def _take(self, kind: Kind) -> Any:
        node = self._peek()
        found = classify(node)
        if found is not kind:
            raise ProtocolError(f"objwire: expected a {kind} value but found a {found} value")
        self._stack[-1].pos += 1
        return node

    def _leave(self, kind: Kind) -> None:
        cursor = self._stack[-1]
        if len(self._stack) == 1 or cursor.kind is not kind:
            raise ProtocolError(f"objwire: {kind} end without a matching begin")
        if cursor.pos != len(cursor.items):
            raise ProtocolError(f"objwire: {kind} ended with unread elements")
        self._stack.pop()

    def _flatten(self, node: Any) -> Any:
        emitter = ValueEmitter()
        Encoder(emitter, self.config).encode(node)
        return emitter.value


def _is_plain(node: Any) -> bool:
    if node is None or isinstance(node, (list, tuple, dict, BaseException)):
        return True
    return scalar_kind(node) is not None


def convert(
    value: Any,
    target: Any = Any,
    encoder_config: Optional[EncoderConfig] = None,
    decoder_config: Optional[DecoderConfig] = None,
) -> Any:
    """Re-shape ``value`` into ``target`` through the encoder and the decoder.

    Args:
        value: Any value the encoder supports
        target: Type hint of the result
        encoder_config: Configuration used to encode ``value``
        decoder_config: Configuration used to decode the result

    Returns:
        The converted value

    Raises:
        TypeConversionError: If the value cannot be converted to target
        UnsupportedTypeError: If the value cannot be encoded
    """
    if encoder_config is None:
        encoder_config = EncoderConfig()
    if decoder_config is None:
        decoder_config = DecoderConfig(cache=encoder_config.cache)

    emitter = ValueEmitter()
    Encoder(emitter, encoder_config).encode(value)
    return Decoder(ValueParser(emitter.value), decoder_config).decode(target)
