"""Unit tests for RESP encoding."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from io import BytesIO
from typing import Any

import pytest

from objwire import ProtocolError, wire_field
from objwire.resp import Emitter, Error, marshal, new_encoder


@dataclass
class Entry:
    """Record with an optional field."""

    key: str = wire_field(name="k")
    ttl: int = wire_field(default=0, omitempty=True)


class Version:
    """Type with a text representation."""

    def marshal_text(self) -> bytes:
        return b"1.2"


class TestMarshalScalars:
    """Test the wire form of scalar values."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, b"$-1\r\n"),
            (True, b":1\r\n"),
            (False, b":0\r\n"),
            (0, b":0\r\n"),
            (-1, b":-1\r\n"),
            (42, b":42\r\n"),
            ((1 << 64) - 1, b":18446744073709551615\r\n"),
            (1.5, b"+1.5\r\n"),
            ("", b"+\r\n"),
            ("Hello World!", b"+Hello World!\r\n"),
            ("Hello\nWorld!", b"+Hello\nWorld!\r\n"),
            ("Hello\r\nWorld!", b"$13\r\nHello\r\nWorld!\r\n"),
            (b"", b"$0\r\n\r\n"),
            (b"Hello World!", b"$12\r\nHello World!\r\n"),
            (Error(""), b"-\r\n"),
            (Error("oops"), b"-oops\r\n"),
            (Error("ERR A"), b"-ERR A\r\n"),
            ([], b"*0\r\n"),
            ([1, 2, 3], b"*3\r\n:1\r\n:2\r\n:3\r\n"),
        ],
    )
    def test_marshal(self, value: Any, expected: bytes) -> None:
        assert marshal(value) == expected

    def test_unicode_string(self) -> None:
        assert marshal("héllo") == "+héllo\r\n".encode()

    def test_time(self) -> None:
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert marshal(when) == b"+2024-01-02T03:04:05+00:00\r\n"

    def test_duration(self) -> None:
        assert marshal(timedelta(seconds=1.5)) == b"+1.5s\r\n"
        assert marshal(timedelta(minutes=1)) == b"+60s\r\n"
        assert marshal(timedelta(days=100000, microseconds=1)) == b"+8640000000.000001s\r\n"
        assert marshal(timedelta(microseconds=-1)) == b"+-0.000001s\r\n"

    def test_exception(self) -> None:
        assert marshal(ValueError("bad value")) == b"-bad value\r\n"

    def test_error_with_newline(self) -> None:
        with pytest.raises(ProtocolError, match="CR or LF"):
            marshal(Error("a\nb"))

    def test_text_marshaler(self) -> None:
        assert marshal(Version()) == b"+1.2\r\n"


class TestMarshalContainers:
    """Test the wire form of arrays, maps and records."""

    def test_nested_array(self) -> None:
        assert marshal([[1], []]) == b"*2\r\n*1\r\n:1\r\n*0\r\n"

    def test_map_is_flat_array(self) -> None:
        assert marshal({"a": 1}) == b"*2\r\n+a\r\n:1\r\n"

    def test_sorted_map(self) -> None:
        assert marshal({"b": 1, "a": 2}, sort_keys=True) == b"*4\r\n+a\r\n:2\r\n+b\r\n:1\r\n"

    def test_record(self) -> None:
        assert marshal(Entry("x")) == b"*2\r\n+k\r\n+x\r\n"
        assert marshal(Entry("x", 9)) == b"*4\r\n+k\r\n+x\r\n+ttl\r\n:9\r\n"

    def test_unknown_length(self) -> None:
        with pytest.raises(ProtocolError, match="unknown length"):
            marshal(x for x in range(3))

    def test_command(self) -> None:
        assert marshal(["SET", "k-0", b"1"]) == b"*3\r\n+SET\r\n+k-0\r\n$1\r\n1\r\n"


class TestEmitter:
    """Test the emitter object."""

    def test_is_text(self) -> None:
        assert Emitter(BytesIO()).is_text()

    def test_one_shot(self) -> None:
        assert not Emitter(BytesIO()).one_shot
        assert Emitter(BytesIO(), one_shot=True).one_shot

    def test_reset(self) -> None:
        first, second = BytesIO(), BytesIO()
        emitter = Emitter(first)
        emitter.emit_int(1)
        emitter.reset(second)
        emitter.emit_int(2)

        assert first.getvalue() == b":1\r\n"
        assert second.getvalue() == b":2\r\n"

    def test_new_encoder(self) -> None:
        out = BytesIO()
        encoder = new_encoder(out)
        encoder.encode("a")
        encoder.encode(1)

        assert out.getvalue() == b"+a\r\n:1\r\n"
