"""Unit tests for the in-memory value codec."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List

import pytest

from objwire import (
    AdapterRegistry,
    Encoder,
    EncoderConfig,
    DecoderConfig,
    Kind,
    ProtocolError,
    TypeConversionError,
    ValueEmitter,
    ValueParser,
    convert,
    wire_field,
)


class Priority(enum.Enum):
    """Test enum."""

    LOW = 1
    HIGH = 3


@dataclass
class Entry:
    """Dataclass record."""

    key: str = wire_field(name="k")
    hits: int = 0


@dataclass
class Point:
    """Plain record."""

    x: float
    y: float


class TestValueEmitter:
    """Test building Python trees from emitter calls."""

    def test_builds_tree(self) -> None:
        emitter = ValueEmitter()
        Encoder(emitter).encode({"a": [1, None, (True, b"x")], "b": Entry("k")})

        assert emitter.value == {"a": [1, None, [True, b"x"]], "b": {"k": "k", "hits": 0}}

    def test_multiple_values(self) -> None:
        emitter = ValueEmitter()
        encoder = Encoder(emitter)
        encoder.encode(1)
        encoder.encode("two")

        assert emitter.values == [1, "two"]
        assert emitter.value == 1

    def test_first_kind(self) -> None:
        emitter = ValueEmitter()
        Encoder(emitter).encode([1])

        assert emitter.first_kind() is Kind.ARRAY

    def test_nothing_emitted(self) -> None:
        emitter = ValueEmitter()

        with pytest.raises(ProtocolError):
            emitter.value
        with pytest.raises(ProtocolError):
            emitter.first_kind()

    def test_array_keys_are_frozen(self) -> None:
        emitter = ValueEmitter()
        Encoder(emitter).encode({(1, 2): "pair"})

        assert emitter.value == {(1, 2): "pair"}

    def test_unbalanced_calls(self) -> None:
        emitter = ValueEmitter()

        with pytest.raises(ProtocolError):
            emitter.emit_array_end()
        with pytest.raises(ProtocolError):
            emitter.emit_map_value()

    def test_unknown_length_array(self) -> None:
        emitter = ValueEmitter()
        Encoder(emitter).encode(iter("ab"))

        assert emitter.value == ["a", "b"]


class TestValueParser:
    """Test reading Python trees as a parser."""

    def test_kinds(self) -> None:
        parser = ValueParser([1, "s"])

        assert parser.parse_type() is Kind.ARRAY
        assert parser.parse_array_begin() == 2
        assert parser.parse_type() is Kind.INT
        assert parser.parse_int() == 1
        assert parser.parse_string() == "s"
        parser.parse_array_end(2)

    def test_kind_mismatch(self) -> None:
        parser = ValueParser("s")

        with pytest.raises(ProtocolError, match="expected a int value but found a string value"):
            parser.parse_int()

    def test_unread_elements(self) -> None:
        parser = ValueParser([1, 2])
        parser.parse_array_begin()
        parser.parse_int()

        with pytest.raises(ProtocolError, match="unread elements"):
            parser.parse_array_end(1)

    def test_records_are_flattened(self) -> None:
        parser = ValueParser(Entry("k", 2))

        assert parser.parse_type() is Kind.MAP
        assert parser.parse_map_begin() == 2

    def test_adapters_are_used(self) -> None:
        adapters = AdapterRegistry()
        adapters.register(uuid.UUID, encode=lambda e, v: e.encode_string(str(v)))
        value = uuid.UUID(int=1)
        parser = ValueParser(value, EncoderConfig(adapters=adapters))

        assert parser.parse_string() == str(value)


class TestConvert:
    """Test re-shaping values through the engine."""

    def test_dict_to_record(self) -> None:
        assert convert({"k": "a", "hits": "3"}, Entry) == Entry("a", 3)

    def test_record_to_dict(self) -> None:
        assert convert(Entry("a", 3)) == {"k": "a", "hits": 3}

    def test_record_to_typed_dict(self) -> None:
        assert convert(Point(1, 2), Dict[str, int]) == {"x": 1, "y": 2}

    def test_collections(self) -> None:
        assert convert((3, 1, 2), List[float]) == [3.0, 1.0, 2.0]
        assert convert({"a": Priority.HIGH}, Dict[str, Priority]) == {"a": Priority.HIGH}

    def test_duration(self) -> None:
        assert convert(timedelta(seconds=90), timedelta) == timedelta(seconds=90)

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_float_to_int(self, value: float) -> None:
        with pytest.raises(TypeConversionError):
            convert(value, int)

    def test_invalid_conversion(self) -> None:
        with pytest.raises(TypeConversionError):
            convert([1, 2], Entry)

    def test_adapters(self) -> None:
        adapters = AdapterRegistry()
        adapters.register(
            uuid.UUID,
            encode=lambda e, v: e.encode_string(str(v)),
            decode=lambda d: uuid.UUID(d.decode(str)),
        )
        value = uuid.uuid4()

        result = convert(
            [value],
            List[uuid.UUID],
            EncoderConfig(adapters=adapters),
            DecoderConfig(adapters=adapters),
        )

        assert result == [value]
