"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, List, Tuple

import pytest

from objwire import Emitter, StructCache


class RecordingEmitter(Emitter):
    """Emitter that records every call it receives."""

    def __init__(self, text: bool = False) -> None:
        self.calls: List[Tuple[Any, ...]] = []
        self._text = text

    def is_text(self) -> bool:
        return self._text

    def emit_nil(self) -> None:
        self.calls.append(("nil",))

    def emit_bool(self, v: bool) -> None:
        self.calls.append(("bool", v))

    def emit_int(self, v: int, bitsize: int = 0) -> None:
        self.calls.append(("int", v))

    def emit_uint(self, v: int, bitsize: int = 0) -> None:
        self.calls.append(("uint", v))

    def emit_float(self, v: float, bitsize: int = 0) -> None:
        self.calls.append(("float", v))

    def emit_string(self, v: str) -> None:
        self.calls.append(("string", v))

    def emit_bytes(self, v: bytes) -> None:
        self.calls.append(("bytes", v))

    def emit_time(self, v: datetime) -> None:
        self.calls.append(("time", v))

    def emit_duration(self, v: timedelta) -> None:
        self.calls.append(("duration", v))

    def emit_error(self, v: BaseException) -> None:
        self.calls.append(("error", str(v)))

    def emit_array_begin(self, n: int) -> None:
        self.calls.append(("array_begin", n))

    def emit_array_end(self) -> None:
        self.calls.append(("array_end",))

    def emit_array_next(self) -> None:
        self.calls.append(("array_next",))

    def emit_map_begin(self, n: int) -> None:
        self.calls.append(("map_begin", n))

    def emit_map_end(self) -> None:
        self.calls.append(("map_end",))

    def emit_map_value(self) -> None:
        self.calls.append(("map_value",))

    def emit_map_next(self) -> None:
        self.calls.append(("map_next",))


@pytest.fixture
def recorder() -> RecordingEmitter:
    """Emitter recording the calls of the encoder."""
    return RecordingEmitter()


@pytest.fixture
def text_recorder() -> RecordingEmitter:
    """Recording emitter of a textual format."""
    return RecordingEmitter(text=True)


@pytest.fixture
def cache() -> StructCache:
    """Empty schema cache, isolated from the default one."""
    return StructCache()


@pytest.fixture
def pipeline() -> bytes:
    """Four commands pipelined on one connection: SET, GET, SET, GET."""
    return (
        b"*5\r\n$3\r\nset\r\n$3\r\nk-0\r\n"
        b"$112\r\nresp: ParseMapNext should never be called because RESP has no map type, "
        b"this is likely a bug in the decoder code\r\n"
        b"$2\r\nex\r\n$1\r\n1\r\n"
        b"*2\r\n$3\r\nget\r\n$3\r\nk-0\r\n"
        b"*5\r\n$3\r\nset\r\n$3\r\nk-1\r\n$1\r\n1\r\n$2\r\nex\r\n$1\r\n1\r\n"
        b"*2\r\n$3\r\nget\r\n$3\r\nk-1\r\n"
    )


@pytest.fixture
def long_value() -> bytes:
    """Value stored by the first SET command of the pipeline."""
    return (
        b"resp: ParseMapNext should never be called because RESP has no map type, "
        b"this is likely a bug in the decoder code"
    )
