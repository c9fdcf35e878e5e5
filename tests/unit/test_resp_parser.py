"""Unit tests for RESP parsing."""

from __future__ import annotations

from io import BytesIO

import pytest

from objwire import End, Kind, ProtocolError, Shadow
from objwire.resp import Error, Parser, ParserConfig


class ChunkedReader:
    """Reader without read1 returning a few bytes per call."""

    def __init__(self, data: bytes, chunk: int = 3) -> None:
        self._data = data
        self._chunk = chunk

    def read(self, size: int = -1) -> bytes:
        n = min(size, self._chunk) if size >= 0 else self._chunk
        data, self._data = self._data[:n], self._data[n:]
        return data


class TestParseType:
    """Test kind detection of every message type."""

    @pytest.mark.parametrize(
        ("data", "kind"),
        [
            (b"$-1\r\n", Kind.NIL),
            (b"*-1\r\n", Kind.NIL),
            (b":0\r\n", Kind.INT),
            (b":-1\r\n", Kind.INT),
            (b":42\r\n", Kind.INT),
            (b"+\r\n", Kind.STRING),
            (b"+Hello World!\r\n", Kind.STRING),
            (b"+Hello\nWorld!\r\n", Kind.STRING),
            (b"$13\r\nHello\r\nWorld!\r\n", Kind.BYTES),
            (b"$0\r\n\r\n", Kind.BYTES),
            (b"$12\r\nHello World!\r\n", Kind.BYTES),
            (b"-\r\n", Kind.ERROR),
            (b"-oops\r\n", Kind.ERROR),
            (b"-ERR A\r\n", Kind.ERROR),
            (b"*0\r\n", Kind.ARRAY),
            (b"*3\r\n:1\r\n:2\r\n:3\r\n", Kind.ARRAY),
        ],
    )
    def test_parse_type(self, data: bytes, kind: Kind) -> None:
        assert Parser(BytesIO(data)).parse_type() is kind

    def test_parse_type_does_not_consume(self) -> None:
        parser = Parser(BytesIO(b":7\r\n"))

        assert parser.parse_type() is Kind.INT
        assert parser.parse_type() is Kind.INT
        assert parser.parse_int() == 7

    def test_end_at_message_boundary(self) -> None:
        parser = Parser(BytesIO(b":1\r\n"))
        parser.parse_int()

        with pytest.raises(End):
            parser.parse_type()

    def test_invalid_type_byte(self) -> None:
        with pytest.raises(ProtocolError, match="invalid type byte"):
            Parser(BytesIO(b"?x\r\n")).parse_type()

    def test_empty_header(self) -> None:
        with pytest.raises(ProtocolError, match="empty message header"):
            Parser(BytesIO(b"\r\n")).parse_type()


class TestParseValues:
    """Test parsing of scalar values."""

    def test_integers(self) -> None:
        parser = Parser(BytesIO(b":0\r\n:-12\r\n:9223372036854775808\r\n"))

        assert parser.parse_int() == 0
        assert parser.parse_int() == -12
        assert parser.parse_uint() == 1 << 63

    @pytest.mark.parametrize("data", [b":\r\n", b":1 \r\n", b":1_000\r\n", b":+1\r\n", b":x\r\n"])
    def test_invalid_integers(self, data: bytes) -> None:
        with pytest.raises(ProtocolError, match="invalid integer"):
            Parser(BytesIO(data)).parse_int()

    def test_negative_unsigned(self) -> None:
        with pytest.raises(ProtocolError):
            Parser(BytesIO(b":-1\r\n")).parse_uint()

    def test_bool(self) -> None:
        parser = Parser(BytesIO(b":1\r\n:0\r\n:2\r\n"))

        assert parser.parse_bool() is True
        assert parser.parse_bool() is False
        with pytest.raises(ProtocolError):
            parser.parse_bool()

    def test_strings(self) -> None:
        parser = Parser(BytesIO(b"+Hello\nWorld!\r\n$13\r\nHello\r\nWorld!\r\n+\r\n"))

        assert parser.parse_string() == "Hello\nWorld!"
        assert parser.parse_string() == "Hello\r\nWorld!"
        assert parser.parse_string() == ""

    def test_bytes(self) -> None:
        parser = Parser(BytesIO(b"$0\r\n\r\n$12\r\nHello World!\r\n+simple\r\n"))

        assert parser.parse_bytes() == b""
        assert parser.parse_bytes() == b"Hello World!"
        assert parser.parse_bytes() == b"simple"

    def test_nil(self) -> None:
        parser = Parser(BytesIO(b"$-1\r\n*-1\r\n:1\r\n"))
        parser.parse_nil()
        parser.parse_nil()

        with pytest.raises(ProtocolError, match="null"):
            parser.parse_nil()

    def test_errors(self) -> None:
        parser = Parser(BytesIO(b"-\r\n-ERR A\r\n"))

        assert parser.parse_error() == Error("")
        err = parser.parse_error()
        assert err == Error("ERR A")
        assert err.kind == "ERR"

    def test_textual_values(self) -> None:
        parser = Parser(BytesIO(b"+1.5\r\n:2\r\n+2024-01-02T00:00:00\r\n+90.0s\r\n"))

        assert parser.parse_float() == 1.5
        assert parser.parse_float() == 2.0
        assert parser.parse_time().year == 2024
        assert parser.parse_duration().total_seconds() == 90.0

    def test_invalid_textual_value(self) -> None:
        with pytest.raises(ProtocolError, match="invalid float"):
            Parser(BytesIO(b"+abc\r\n")).parse_float()

    def test_array(self) -> None:
        parser = Parser(BytesIO(b"*3\r\n:1\r\n:2\r\n:3\r\n"))
        n = parser.parse_array_begin()
        values = [parser.parse_int() for _ in range(n)]
        parser.parse_array_end(n)

        assert values == [1, 2, 3]

    def test_maps_are_not_supported(self) -> None:
        parser = Parser(BytesIO(b"*0\r\n"))

        with pytest.raises(ProtocolError, match="no map type"):
            parser.parse_map_begin()
        with pytest.raises(ProtocolError, match="no map type"):
            parser.parse_map_next(1)

    def test_wrong_accessor(self) -> None:
        with pytest.raises(ProtocolError, match="expected an integer"):
            Parser(BytesIO(b"+1\r\n")).parse_int()


class TestMalformedInput:
    """Test that malformed input is reported as a protocol error."""

    @pytest.mark.parametrize(
        "data",
        [b":1", b"+OK\r", b"$5\r\nab", b"$5\r\nabcde", b"*2\r\n:1\r\n"],
    )
    def test_truncated(self, data: bytes) -> None:
        parser = Parser(BytesIO(data))

        with pytest.raises(ProtocolError):
            if parser.parse_type() is Kind.ARRAY:
                for _ in range(parser.parse_array_begin()):
                    parser.parse_int()
            else:
                parser.parse_bytes()

    def test_bulk_without_crlf(self) -> None:
        with pytest.raises(ProtocolError, match="not terminated by CRLF"):
            Parser(BytesIO(b"$3\r\nabcd\r\n")).parse_bytes()

    def test_negative_bulk_length(self) -> None:
        with pytest.raises(ProtocolError):
            Parser(BytesIO(b"$-2\r\n")).parse_bytes()

    def test_invalid_utf8(self) -> None:
        with pytest.raises(ProtocolError, match="UTF-8"):
            Parser(BytesIO(b"+\xff\r\n")).parse_string()


class TestLimits:
    """Test the configured limits."""

    def test_bulk_length(self) -> None:
        parser = Parser(BytesIO(b"$10\r\n0123456789\r\n"), ParserConfig(max_bulk_length=4))

        with pytest.raises(ProtocolError, match="exceeds the limit of 4"):
            parser.parse_bytes()

    def test_array_length(self) -> None:
        parser = Parser(BytesIO(b"*3\r\n"), ParserConfig(max_array_length=2))

        with pytest.raises(ProtocolError, match="exceeds the limit of 2"):
            parser.parse_array_begin()

    def test_line_length(self) -> None:
        parser = Parser(BytesIO(b"+" + b"x" * 64), ParserConfig(max_bulk_length=8, read_size=16))

        with pytest.raises(ProtocolError, match="line exceeds"):
            parser.parse_string()

    @pytest.mark.parametrize(
        "kwargs",
        [{"read_size": 0}, {"max_bulk_length": -1}, {"max_array_length": -1}],
    )
    def test_invalid_config(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ParserConfig(**kwargs)


class TestBuffering:
    """Test reading through the internal buffer."""

    def test_pipeline(self, pipeline: bytes, long_value: bytes) -> None:
        """Parse pipelined commands with the raw parser."""
        parser = Parser(BytesIO(pipeline))
        commands = []

        for _ in range(4):
            assert parser.parse_type() is Kind.ARRAY
            n = parser.parse_array_begin()
            commands.append([parser.parse_bytes() for _ in range(n)])

        assert commands == [
            [b"set", b"k-0", long_value, b"ex", b"1"],
            [b"get", b"k-0"],
            [b"set", b"k-1", b"1", b"ex", b"1"],
            [b"get", b"k-1"],
        ]

    def test_small_reads(self, pipeline: bytes, long_value: bytes) -> None:
        """Lines and bulk strings split across many reads."""
        parser = Parser(ChunkedReader(pipeline), ParserConfig(read_size=1))

        n = parser.parse_array_begin()
        values = [parser.parse_bytes() for _ in range(n)]

        assert values == [b"set", b"k-0", long_value, b"ex", b"1"]

    def test_crlf_split_across_reads(self) -> None:
        parser = Parser(ChunkedReader(b"+OK\r\n:1\r\n", chunk=4))

        assert parser.parse_string() == "OK"
        assert parser.parse_int() == 1

    def test_finish(self) -> None:
        parser = Parser(BytesIO(b":1\r\n:2\r\n"))
        parser.parse_int()

        with pytest.raises(Shadow) as excinfo:
            parser.finish()
        assert excinfo.value.remaining == 4
        assert parser.buffered() == 4

        parser.parse_int()
        parser.finish()

    def test_reset(self) -> None:
        parser = Parser(BytesIO(b":1\r\n:2\r\n"))
        parser.parse_int()
        parser.reset(BytesIO(b":3\r\n"))

        assert parser.buffered() == 0
        assert parser.parse_int() == 3

    def test_no_reader(self) -> None:
        with pytest.raises(End):
            Parser().parse_type()
