"""High-level RESP encoding and decoding functions."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, BinaryIO, Optional

from ..codec.decoder import Decoder, StreamDecoder
from ..codec.encoder import Encoder, StreamEncoder
from ..codec.schema import StructCache
from ..config import DecoderConfig, EncoderConfig
from ..exceptions import Shadow
from ..pool import ObjectPool
from ..registry import Codec, CodecRegistry
from .config import ParserConfig
from .emitter import Emitter
from .parser import Parser

logger = logging.getLogger(__name__)

#: Names under which :func:`install` registers the RESP codec
NAMES = ("application/resp", "resp")

CODEC = Codec(new_emitter=Emitter, new_parser=Parser)

# Scratch parsers for unmarshal; reset drops the input of the previous user
_parsers: ObjectPool[Parser] = ObjectPool(Parser, reset=lambda p: p.reset(None))

# Record schemas of the one-shot functions, which have no session to hold them
_schemas = StructCache()


def marshal(value: Any, sort_keys: bool = False) -> bytes:
    """Encode a value to RESP bytes.

    Args:
        value: Value to encode
        sort_keys: Emit map entries in key order for reproducible output

    Returns:
        Encoded bytes

    Raises:
        UnsupportedTypeError: If the value, or a value nested in it, cannot be encoded
        ProtocolError: If the value has no RESP representation

    Example:
        >>> marshal(["SET", "k-0", b"1"])
        b'*3\\r\\n+SET\\r\\n+k-0\\r\\n$1\\r\\n1\\r\\n'
    """
    out = BytesIO()
    Encoder(Emitter(out), EncoderConfig(sort_keys=sort_keys, cache=_schemas)).encode(value)
    return out.getvalue()


def unmarshal(data: bytes, target: Any = Any, config: Optional[DecoderConfig] = None) -> Any:
    """Decode one RESP value from bytes.

    Bytes following the first complete value are ignored.

    Args:
        data: Encoded bytes
        target: Type hint of the expected value
        config: Decoder configuration

    Returns:
        Decoded value

    Raises:
        TypeConversionError: If the value cannot be converted to target
        ProtocolError: If the data is malformed or truncated

    Example:
        >>> unmarshal(b"*3\\r\\n:1\\r\\n:2\\r\\n:3\\r\\n", list[int])
        [1, 2, 3]
    """
    if config is None:
        config = DecoderConfig(cache=_schemas)
    with _parsers.acquire() as parser:
        parser.reset(BytesIO(data))
        try:
            value = Decoder(parser, config).decode(target)
            parser.finish()
        except Shadow as shadow:
            logger.debug("Ignored %d bytes after the decoded value", shadow.remaining)
        finally:
            parser.reset(None)
    return value


def new_encoder(writer: BinaryIO, config: Optional[EncoderConfig] = None) -> Encoder:
    """Create an Encoder writing RESP to ``writer``."""
    return Encoder(Emitter(writer), config)


def new_decoder(
    reader: BinaryIO,
    config: Optional[DecoderConfig] = None,
    parser_config: Optional[ParserConfig] = None,
) -> Decoder:
    """Create a Decoder reading RESP from ``reader``."""
    return Decoder(Parser(reader, parser_config), config)


def new_stream_encoder(
    writer: BinaryIO, pipeline: bool = False, config: Optional[EncoderConfig] = None
) -> StreamEncoder:
    """Create a StreamEncoder writing RESP to ``writer``.

    Args:
        writer: Destination stream
        pipeline: Write every value as its own top-level message instead of
            framing the whole stream as one array
        config: Encoder configuration
    """
    return StreamEncoder(Emitter(writer, one_shot=pipeline), config)


def new_stream_decoder(
    reader: BinaryIO,
    config: Optional[DecoderConfig] = None,
    parser_config: Optional[ParserConfig] = None,
) -> StreamDecoder:
    """Create a StreamDecoder reading pipelined RESP messages from ``reader``."""
    return StreamDecoder(Parser(reader, parser_config), config)


def install(registry: CodecRegistry) -> None:
    """Register the RESP codec in ``registry`` under ``resp`` and ``application/resp``."""
    for name in NAMES:
        registry.register(name, CODEC)
