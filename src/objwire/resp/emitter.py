"""RESP emitter.

Token mapping (RESP2 has no boolean, float, timestamp or map types):

========== ==========================================================
Kind       Wire form
========== ==========================================================
nil        ``$-1\\r\\n``
bool       ``:1\\r\\n`` / ``:0\\r\\n``
int, uint  ``:<n>\\r\\n``
float      simple string holding ``repr(v)``
string     simple string, bulk string when it contains CRLF
bytes      bulk string
time       simple string holding the ISO-8601 timestamp
duration   simple string holding ``<seconds>s``
error      ``-<message>\\r\\n``
array      ``*<n>\\r\\n`` followed by the elements
map        ``*<2n>\\r\\n`` followed by key, value, key, value...
========== ==========================================================
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import BinaryIO

from ..codec.text import format_duration_text, format_time_text
from ..emitter import Emitter as BaseEmitter
from ..exceptions import ProtocolError
from .error import Error

CRLF = b"\r\n"


class Emitter(BaseEmitter):
    """Emitter writing RESP to a binary stream.

    Args:
        writer: Destination stream, anything with a ``write(bytes)`` method
        one_shot: Make stream encoders write every value as an independent
            top-level message instead of framing the stream as one array,
            which is how commands are pipelined to a server
    """

    def __init__(self, writer: BinaryIO, one_shot: bool = False) -> None:
        self.writer = writer
        self.one_shot = one_shot

    def reset(self, writer: BinaryIO) -> None:
        self.writer = writer

    def is_text(self) -> bool:
        return True

    def emit_nil(self) -> None:
        self.writer.write(b"$-1\r\n")

    def emit_bool(self, v: bool) -> None:
        self.writer.write(b":1\r\n" if v else b":0\r\n")

    def emit_int(self, v: int, bitsize: int = 0) -> None:
        self.writer.write(b":%d\r\n" % v)

    def emit_uint(self, v: int, bitsize: int = 0) -> None:
        self.writer.write(b":%d\r\n" % v)

    def emit_float(self, v: float, bitsize: int = 0) -> None:
        self._simple(repr(float(v)))

    def emit_string(self, v: str) -> None:
        if "\r\n" in v:
            self.emit_bytes(v.encode("utf-8"))
        else:
            self._simple(v)

    def emit_bytes(self, v: bytes) -> None:
        self.writer.write(b"$%d\r\n%s\r\n" % (len(v), v))

    def emit_time(self, v: datetime) -> None:
        self._simple(format_time_text(v))

    def emit_duration(self, v: timedelta) -> None:
        self._simple(format_duration_text(v))

    def emit_error(self, v: BaseException) -> None:
        message = v.message if isinstance(v, Error) else str(v)
        if "\r" in message or "\n" in message:
            raise ProtocolError(f"resp: error messages cannot contain CR or LF characters: {message!r}")
        self.writer.write(b"-" + message.encode("utf-8") + CRLF)

    def emit_array_begin(self, n: int) -> None:
        if n < 0:
            raise ProtocolError("resp: arrays of unknown length cannot be encoded")
        self.writer.write(b"*%d\r\n" % n)

    def emit_array_end(self) -> None:
        pass

    def emit_array_next(self) -> None:
        pass

    def emit_map_begin(self, n: int) -> None:
        if n < 0:
            raise ProtocolError("resp: maps of unknown length cannot be encoded")
        self.writer.write(b"*%d\r\n" % (2 * n))

    def emit_map_end(self) -> None:
        pass

    def emit_map_value(self) -> None:
        pass

    def emit_map_next(self) -> None:
        pass

    def _simple(self, text: str) -> None:
        self.writer.write(b"+" + text.encode("utf-8") + CRLF)
