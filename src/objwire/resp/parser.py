"""RESP parser.

The parser reads from a binary stream through an internal buffer. Bytes
read ahead of the current message stay in the buffer, so several messages
pipelined on the same stream are parsed one after the other.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Callable, Optional, Tuple

from ..codec.text import parse_duration_text, parse_time_text
from ..exceptions import End, ProtocolError, Shadow
from ..kinds import Kind
from ..parser import Parser as BaseParser
from .config import ParserConfig
from .error import Error

_INTEGER = re.compile(rb"-?[0-9]+")

_KINDS = {
    b"+": Kind.STRING,
    b"-": Kind.ERROR,
    b":": Kind.INT,
    b"$": Kind.BYTES,
    b"*": Kind.ARRAY,
}


class Parser(BaseParser):
    """Parser reading RESP from a binary stream.

    Args:
        reader: Source stream; ``read1`` is used when available so that a
            socket file never blocks for more bytes than the peer sent.
            May be None and set later with :meth:`reset`.
        config: Limits and buffering, defaults to :class:`ParserConfig`

    Example:
        >>> from io import BytesIO
        >>> p = Parser(BytesIO(b"*2\\r\\n:1\\r\\n:2\\r\\n"))
        >>> p.parse_type()
        <Kind.ARRAY: 'array'>
        >>> p.parse_array_begin()
        2
    """

    def __init__(self, reader: Optional[BinaryIO] = None, config: Optional[ParserConfig] = None) -> None:
        self.config = config if config is not None else ParserConfig()
        self.reset(reader)

    def reset(self, reader: Optional[BinaryIO]) -> None:
        """Start reading from ``reader``, discarding any buffered input."""
        self.reader = reader
        self._buf = bytearray()
        self._off = 0
        self._header: Optional[Tuple[bytes, bytes]] = None

    def buffered(self) -> int:
        """Number of bytes read from the stream but not parsed yet."""
        return len(self._buf) - self._off

    def finish(self) -> None:
        """Check that the last message consumed all the buffered input.

        Raises:
            Shadow: If bytes remain buffered after the last parsed value
        """
        remaining = self.buffered()
        if self._header is not None or remaining:
            raise Shadow(remaining)

    def parse_type(self) -> Kind:
        prefix, rest = self._peek_header()
        kind = _KINDS.get(prefix)
        if kind is None:
            raise ProtocolError(f"resp: invalid type byte {prefix!r}")
        if kind in (Kind.BYTES, Kind.ARRAY) and rest == b"-1":
            return Kind.NIL
        return kind

    def parse_nil(self) -> None:
        prefix, rest = self._take_header()
        if prefix not in (b"$", b"*") or rest != b"-1":
            raise ProtocolError(f"resp: expected a null value but found {prefix + rest!r}")

    def parse_bool(self) -> bool:
        value = self.parse_int()
        if value not in (0, 1):
            raise ProtocolError(f"resp: {value} is not a boolean")
        return value == 1

    def parse_int(self) -> int:
        prefix, rest = self._take_header()
        if prefix != b":":
            raise ProtocolError(f"resp: expected an integer but found {prefix + rest!r}")
        return _integer(rest)

    def parse_uint(self) -> int:
        value = self.parse_int()
        if value < 0:
            raise ProtocolError(f"resp: expected an unsigned integer but found {value}")
        return value

    def parse_float(self) -> float:
        prefix, rest = self._take_header()
        if prefix == b":":
            try:
                return float(_integer(rest))
            except OverflowError as err:
                raise ProtocolError(f"resp: integer too large for a float: {err}") from err
        return _convert(self._text(prefix, rest), float, "float")

    def parse_string(self) -> str:
        prefix, rest = self._take_header()
        return self._text(prefix, rest)

    def parse_bytes(self) -> bytes:
        prefix, rest = self._take_header()
        if prefix == b"+":
            return rest
        if prefix == b"$":
            return self._bulk(rest)
        raise ProtocolError(f"resp: expected a string but found {prefix + rest!r}")

    def parse_time(self) -> datetime:
        prefix, rest = self._take_header()
        return _convert(self._text(prefix, rest), parse_time_text, "timestamp")

    def parse_duration(self) -> timedelta:
        prefix, rest = self._take_header()
        return _convert(self._text(prefix, rest), parse_duration_text, "duration")

    def parse_error(self) -> BaseException:
        prefix, rest = self._take_header()
        if prefix != b"-":
            raise ProtocolError(f"resp: expected an error but found {prefix + rest!r}")
        return Error(_utf8(rest))

    def parse_array_begin(self) -> int:
        prefix, rest = self._take_header()
        if prefix != b"*":
            raise ProtocolError(f"resp: expected an array but found {prefix + rest!r}")
        n = _integer(rest)
        if n < 0:
            raise ProtocolError(f"resp: invalid array length {n}")
        if n > self.config.max_array_length:
            raise ProtocolError(
                f"resp: array length {n} exceeds the limit of {self.config.max_array_length}"
            )
        return n

    def parse_array_end(self, n: int) -> None:
        pass

    def parse_array_next(self, n: int) -> None:
        pass

    def parse_map_begin(self) -> int:
        raise ProtocolError("resp: parse_map_begin should never be called because RESP has no map type")

    def parse_map_end(self, n: int) -> None:
        raise ProtocolError("resp: parse_map_end should never be called because RESP has no map type")

    def parse_map_value(self) -> None:
        raise ProtocolError("resp: parse_map_value should never be called because RESP has no map type")

    def parse_map_next(self, n: int) -> None:
        raise ProtocolError("resp: parse_map_next should never be called because RESP has no map type")

    def _peek_header(self) -> Tuple[bytes, bytes]:
        if self._header is None:
            if not self.buffered() and not self._fill(self.config.read_size):
                # Input exhausted exactly at a message boundary
                raise End()
            line = self._read_line()
            if not line:
                raise ProtocolError("resp: empty message header")
            self._header = (line[:1], line[1:])
        return self._header

    def _take_header(self) -> Tuple[bytes, bytes]:
        try:
            header = self._peek_header()
        except End as err:
            raise ProtocolError("resp: unexpected end of input") from err
        self._header = None
        return header

    def _text(self, prefix: bytes, rest: bytes) -> str:
        if prefix == b"+":
            return _utf8(rest)
        if prefix == b"$":
            return _utf8(self._bulk(rest))
        raise ProtocolError(f"resp: expected a string but found {prefix + rest!r}")

    def _bulk(self, rest: bytes) -> bytes:
        n = _integer(rest)
        if n < 0:
            raise ProtocolError(f"resp: invalid bulk string length {n}")
        if n > self.config.max_bulk_length:
            raise ProtocolError(
                f"resp: bulk string length {n} exceeds the limit of {self.config.max_bulk_length}"
            )
        data = self._read_exact(n + 2)
        if data[n:] != b"\r\n":
            raise ProtocolError("resp: bulk string is not terminated by CRLF")
        return data[:n]

    def _read_line(self) -> bytes:
        limit = self.config.max_bulk_length + 2
        scanned = 0
        while True:
            i = self._buf.find(b"\r\n", self._off + scanned)
            if i >= 0:
                line = bytes(self._buf[self._off : i])
                self._off = i + 2
                return line
            # CR may be the last buffered byte, scan it again after the next read
            scanned = max(self.buffered() - 1, 0)
            if scanned > limit:
                raise ProtocolError(f"resp: line exceeds the limit of {limit} bytes")
            if not self._fill(self.config.read_size):
                raise ProtocolError("resp: unexpected end of input")

    def _read_exact(self, n: int) -> bytes:
        while self.buffered() < n:
            if not self._fill(max(self.config.read_size, n - self.buffered())):
                raise ProtocolError("resp: unexpected end of input")
        data = bytes(self._buf[self._off : self._off + n])
        self._off += n
        return data

    def _fill(self, size: int) -> bool:
        """Read more bytes into the buffer, return False at end of input."""
        if self.reader is None:
            return False

        # Drop the bytes already parsed before growing the buffer
        if self._off:
            del self._buf[: self._off]
            self._off = 0

        read: Callable[[int], Any] = getattr(self.reader, "read1", None) or self.reader.read
        chunk = read(size)
        if not chunk:
            return False
        self._buf += chunk
        return True


def _integer(data: bytes) -> int:
    if _INTEGER.fullmatch(data) is None:
        raise ProtocolError(f"resp: invalid integer {data[:32]!r}")
    try:
        return int(data)
    except ValueError as err:
        # Integers longer than the interpreter digit limit
        raise ProtocolError(f"resp: invalid integer of {len(data)} digits") from err


def _utf8(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise ProtocolError(f"resp: invalid UTF-8 text: {err}") from err


def _convert(text: str, func: Callable[[str], Any], what: str) -> Any:
    try:
        return func(text)
    except ValueError as err:
        raise ProtocolError(f"resp: invalid {what} {text!r}") from err
