"""Codec registry.

A :class:`Codec` bundles the factories of a format's emitter and parser. A
:class:`CodecRegistry` maps names (usually a short name and a media type)
to codecs. Registries start empty and are populated explicitly, for
example with ``objwire.resp.install(registry)``; importing a format never
registers it anywhere.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from io import BytesIO
from typing import Any, BinaryIO, Callable, Dict, List, Optional

from .codec.decoder import Decoder
from .codec.encoder import Encoder
from .config import DecoderConfig, EncoderConfig
from .emitter import Emitter
from .exceptions import UnknownCodecError
from .parser import Parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Codec:
    """Pair of emitter and parser factories for one format.

    Attributes:
        new_emitter: Creates an emitter writing to a binary stream
        new_parser: Creates a parser reading from a binary stream
    """

    new_emitter: Callable[[BinaryIO], Emitter]
    new_parser: Callable[[BinaryIO], Parser]

    def new_encoder(self, writer: BinaryIO, config: Optional[EncoderConfig] = None) -> Encoder:
        return Encoder(self.new_emitter(writer), config)

    def new_decoder(self, reader: BinaryIO, config: Optional[DecoderConfig] = None) -> Decoder:
        return Decoder(self.new_parser(reader), config)

    def marshal(self, value: Any, config: Optional[EncoderConfig] = None) -> bytes:
        """Encode ``value`` to bytes."""
        out = BytesIO()
        self.new_encoder(out, config).encode(value)
        return out.getvalue()

    def unmarshal(
        self, data: bytes, target: Any = Any, config: Optional[DecoderConfig] = None
    ) -> Any:
        """Decode one value of type ``target`` from ``data``."""
        return self.new_decoder(BytesIO(data), config).decode(target)


class CodecRegistry:
    """Thread-safe mapping of names to codecs.

    Example:
        >>> from objwire import CodecRegistry
        >>> from objwire import resp
        >>> registry = CodecRegistry()
        >>> resp.install(registry)
        >>> registry.marshal("resp", [1, 2])
        b'*2\\r\\n:1\\r\\n:2\\r\\n'
    """

    def __init__(self) -> None:
        self._codecs: Dict[str, Codec] = {}
        self._lock = threading.Lock()

    def register(self, name: str, codec: Codec) -> None:
        """Install ``codec`` under ``name``, replacing any previous entry."""
        with self._lock:
            codecs = dict(self._codecs)
            replaced = name in codecs
            codecs[name] = codec
            self._codecs = codecs
        if replaced:
            logger.debug("Replaced codec registered under %r", name)
        else:
            logger.debug("Registered codec under %r", name)

    def lookup(self, name: str) -> Codec:
        """Return the codec registered under ``name``.

        Raises:
            UnknownCodecError: If no codec is registered under that name
        """
        try:
            return self._codecs[name]
        except KeyError:
            raise UnknownCodecError(name) from None

    def names(self) -> List[str]:
        """Return the registered names, sorted."""
        return sorted(self._codecs)

    def __contains__(self, name: object) -> bool:
        return name in self._codecs

    def __len__(self) -> int:
        return len(self._codecs)

    def new_encoder(
        self, name: str, writer: BinaryIO, config: Optional[EncoderConfig] = None
    ) -> Encoder:
        return self.lookup(name).new_encoder(writer, config)

    def new_decoder(
        self, name: str, reader: BinaryIO, config: Optional[DecoderConfig] = None
    ) -> Decoder:
        return self.lookup(name).new_decoder(reader, config)

    def marshal(self, name: str, value: Any, config: Optional[EncoderConfig] = None) -> bytes:
        return self.lookup(name).marshal(value, config)

    def unmarshal(
        self,
        name: str,
        data: bytes,
        target: Any = Any,
        config: Optional[DecoderConfig] = None,
    ) -> Any:
        return self.lookup(name).unmarshal(data, target, config)
